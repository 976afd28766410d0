"""Expression evaluation and value rendering for the statement interpreter."""

from __future__ import annotations

import re
from typing import Any, Mapping

from . import constants
from .classes import ObjectInstance
from .run_types import SimulatorConfig
from .statements import ATTRIBUTE_RE, NUMBER_RE, InterpreterError, string_end

_ESCAPES = {"n": "\n", "t": "\t", "\\": "\\", "'": "'", '"': '"'}
_ESCAPE_RE = re.compile(r"\\(.)")


def is_string_literal(text: str) -> bool:
    """True when *text* is exactly one quoted literal, not a concatenation."""
    if len(text) < 2 or text[0] not in "'\"":
        return False
    return string_end(text, 0) == len(text) - 1


def unquote(text: str) -> str:
    body = text[1:-1]
    return _ESCAPE_RE.sub(lambda m: _ESCAPES.get(m.group(1), m.group(0)), body)


def parse_number(text: str) -> int | float:
    if re.fullmatch(r"[+-]?\d+", text):
        return int(text)
    return float(text)


def evaluate_expression(expression: str, variables: Mapping[str, Any]) -> Any:
    """Resolve a literal or identifier; anything else comes back as raw text.

    Resolution order: string literal, number, variable, ``obj.attr`` on an
    instance, ``None``/``null``, ``True``/``False``.
    """
    text = expression.strip()
    if is_string_literal(text):
        return unquote(text)
    if NUMBER_RE.match(text):
        return parse_number(text)
    if text in variables:
        return variables[text]
    attr_match = ATTRIBUTE_RE.match(text)
    if attr_match:
        owner = variables.get(attr_match.group(1))
        if isinstance(owner, ObjectInstance):
            attr = attr_match.group(2)
            if attr not in owner.attributes:
                raise InterpreterError(
                    f"'{owner.class_name}' object has no attribute '{attr}'"
                )
            return owner.attributes[attr]
    if text in constants.NONE_LITERALS:
        return None
    if text == constants.TRUE_LITERAL:
        return True
    if text == constants.FALSE_LITERAL:
        return False
    return text


def render_value(value: Any, config: SimulatorConfig = SimulatorConfig()) -> str:
    if value is None:
        return constants.NONE_RENDERED
    if isinstance(value, bool):
        return constants.TRUE_LITERAL if value else constants.FALSE_LITERAL
    if isinstance(value, ObjectInstance):
        if value.class_name in config.linked_list_classes:
            return render_chain(value, config)
        return constants.INSTANCE_TAG_TEMPLATE.format(class_name=value.class_name)
    return str(value)


def _node_value(node: ObjectInstance) -> Any:
    for attr in constants.LINKED_LIST_VALUE_ATTRS:
        if attr in node.attributes:
            return node.attributes[attr]
    return None


def render_chain(head: ObjectInstance, config: SimulatorConfig = SimulatorConfig()) -> str:
    """Render a linked list as ``1 -> 2 -> None``.

    Stops after ``config.max_chain_nodes`` nodes or at the first revisited node.
    """
    parts: list[str] = []
    seen: set[int] = set()
    current: Any = head
    while (
        isinstance(current, ObjectInstance)
        and current.class_name in config.linked_list_classes
    ):
        if id(current) in seen:
            parts.append(constants.LINKED_LIST_CYCLE)
            return constants.LINKED_LIST_ARROW.join(parts)
        if len(parts) >= config.max_chain_nodes:
            parts.append(constants.LINKED_LIST_TRUNCATED)
            return constants.LINKED_LIST_ARROW.join(parts)
        seen.add(id(current))
        value = _node_value(current)
        if isinstance(value, ObjectInstance):
            parts.append(constants.INSTANCE_TAG_TEMPLATE.format(class_name=value.class_name))
        else:
            parts.append(render_value(value, config))
        current = current.attributes.get(constants.LINKED_LIST_NEXT_ATTR)
    parts.append(render_value(current, config))
    return constants.LINKED_LIST_ARROW.join(parts)
