"""Class definitions: builder for the line scan and the runtime object record."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from . import constants
from .statements import (
    DEF_HEADER_RE,
    SELF_ATTRIBUTE_RE,
    split_arguments,
    strip_inline_comment,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MethodDefinition:
    name: str
    params: tuple[str, ...] = ()
    defaults: dict[str, str] = field(default_factory=dict)
    body: tuple[str, ...] = ()


@dataclass(frozen=True)
class ClassDefinition:
    name: str
    parent: str | None = None
    methods: dict[str, MethodDefinition] = field(default_factory=dict)
    attributes: frozenset[str] = frozenset()


@dataclass
class ObjectInstance:
    """Runtime instance; methods are looked up with ``find_method`` so parents apply."""

    class_name: str
    attributes: dict[str, Any] = field(default_factory=dict)


def is_indented(raw_line: str) -> bool:
    """True for a line indented by a tab or at least two spaces."""
    return raw_line.startswith("\t") or raw_line.startswith("  ")


def _parse_params(param_text: str) -> tuple[tuple[str, ...], dict[str, str]]:
    names: list[str] = []
    defaults: dict[str, str] = {}
    for raw in split_arguments(param_text):
        name, sep, default = raw.partition("=")
        name = name.split(":")[0].strip()
        if not name or name == constants.SELF_NAME:
            continue
        names.append(name)
        if sep:
            defaults[name] = default.strip()
    return tuple(names), defaults


class ClassBuilder:
    """Accumulates the body of one class while the line scan consumes it."""

    def __init__(self, name: str, parent: str | None = None, line_number: int = 0):
        self.name = name
        self.parent = parent
        self.line_number = line_number
        self._methods: dict[str, MethodDefinition] = {}
        self._current: str | None = None
        self._params: tuple[str, ...] = ()
        self._defaults: dict[str, str] = {}
        self._body: list[str] = []
        self._attributes: set[str] = set()

    def add_line(self, raw_line: str) -> None:
        text = strip_inline_comment(raw_line.strip())
        if not text:
            return
        self._attributes.update(SELF_ATTRIBUTE_RE.findall(text))
        header = DEF_HEADER_RE.match(text)
        if header:
            self._close_method()
            self._current = header.group(1)
            self._params, self._defaults = _parse_params(header.group(2))
            return
        if self._current is not None:
            self._body.append(text)

    def _close_method(self) -> None:
        if self._current is None:
            return
        self._methods[self._current] = MethodDefinition(
            name=self._current,
            params=self._params,
            defaults=dict(self._defaults),
            body=tuple(self._body),
        )
        self._current = None
        self._params = ()
        self._defaults = {}
        self._body = []

    def build(self) -> ClassDefinition:
        self._close_method()
        logger.debug(
            "Class %s: methods=%s attributes=%s",
            self.name,
            sorted(self._methods),
            sorted(self._attributes),
        )
        return ClassDefinition(
            name=self.name,
            parent=self.parent,
            methods=dict(self._methods),
            attributes=frozenset(self._attributes),
        )


def find_method(
    classes: dict[str, ClassDefinition], class_name: str, method_name: str
) -> MethodDefinition | None:
    """Look up *method_name* on *class_name*, then along its parent chain."""
    seen: set[str] = set()
    current: str | None = class_name
    while current and current not in seen and current in classes:
        seen.add(current)
        definition = classes[current]
        if method_name in definition.methods:
            return definition.methods[method_name]
        current = definition.parent
    return None
