"""Line classification: source lines to a closed set of statement variants."""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel

from . import constants


class InterpreterError(Exception):
    """Raised for a line the interpreter cannot process."""


class StatementKind(str, Enum):
    CLASS_DEF = "CLASS_DEF"
    ASSIGNMENT = "ASSIGNMENT"
    PRINT = "PRINT"
    INPUT = "INPUT"
    METHOD_CALL = "METHOD_CALL"
    UNSUPPORTED = "UNSUPPORTED"


class Statement(BaseModel):
    kind: StatementKind
    line_number: int
    text: str
    target: str | None = None
    expression: str | None = None
    receiver: str | None = None
    method: str | None = None
    arguments: str = ""
    class_name: str | None = None
    parent: str | None = None

    def __str__(self) -> str:
        parts = [f"{self.line_number:>4}", self.kind.value.lower()]
        if self.class_name:
            parts.append(self.class_name)
            if self.parent:
                parts.append(f"({self.parent})")
        if self.target:
            parts.append(f"{self.target} =")
        if self.expression is not None:
            parts.append(self.expression)
        if self.receiver:
            parts.append(f"{self.receiver}.{self.method}({self.arguments})")
        elif self.kind == StatementKind.PRINT:
            parts.append(f"({self.arguments})")
        return " ".join(parts)


IDENTIFIER = r"[A-Za-z_]\w*"

CLASS_HEADER_RE = re.compile(
    rf"^class\s+({IDENTIFIER})\s*(?:\(\s*({IDENTIFIER})?\s*\))?\s*:\s*$"
)
DEF_HEADER_RE = re.compile(rf"^def\s+({IDENTIFIER})\s*\((.*)\)\s*:\s*$")
PRINT_RE = re.compile(r"^print\s*\((.*)\)\s*$")
INPUT_CALL_RE = re.compile(r"\binput\s*\(")
INPUT_PROMPT_RE = re.compile(r"\binput\s*\(\s*(?:(['\"])(.*?)\1)?\s*\)")
METHOD_CALL_RE = re.compile(rf"^({IDENTIFIER})\.({IDENTIFIER})\s*\((.*)\)\s*$")
CALL_RE = re.compile(rf"^({IDENTIFIER})\s*\((.*)\)$")
ATTRIBUTE_RE = re.compile(rf"^({IDENTIFIER})\.({IDENTIFIER})$")
SELF_ATTRIBUTE_RE = re.compile(rf"\bself\.({IDENTIFIER})")
TARGET_RE = re.compile(rf"^{IDENTIFIER}(?:\.{IDENTIFIER})?$")
NUMBER_RE = re.compile(r"^[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?$")

_CONTROL_KEYWORDS: tuple[str, ...] = ("if", "elif", "else", "while", "for", "return")
_QUOTES = "'\""
_OPEN_BRACKETS = "([{"
_CLOSE_BRACKETS = ")]}"


def _starts_with_keyword(text: str, keywords: tuple[str, ...]) -> bool:
    return any(re.match(rf"^{kw}\b", text) for kw in keywords)


def string_end(text: str, start: int) -> int:
    """Index of the quote closing the literal opened at *start*, or -1."""
    quote = text[start]
    escaped = False
    for i in range(start + 1, len(text)):
        ch = text[i]
        if escaped:
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == quote:
            return i
    return -1


def strip_inline_comment(text: str, marker: str = constants.COMMENT_MARKER) -> str:
    """Drop a trailing comment that starts outside any string literal."""
    i = 0
    while i < len(text):
        if text[i] in _QUOTES:
            end = string_end(text, i)
            if end < 0:
                return text
            i = end + 1
            continue
        if text.startswith(marker, i):
            return text[:i].rstrip()
        i += 1
    return text


def without_string_literals(text: str) -> str:
    """*text* with every string literal emptied to a bare pair of quotes."""
    parts: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch in _QUOTES:
            end = string_end(text, i)
            if end < 0:
                break
            parts.append(ch * 2)
            i = end + 1
            continue
        parts.append(ch)
        i += 1
    return "".join(parts)


def find_assignment_operator(text: str) -> int:
    """Index of a top-level ``=`` that is a plain assignment, or -1.

    Comparison operators, augmented assignments, ``=`` inside string
    literals and keyword arguments inside brackets are not assignments.
    """
    depth = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if ch in _QUOTES:
            end = string_end(text, i)
            if end < 0:
                return -1
            i = end + 1
            continue
        if ch in _OPEN_BRACKETS:
            depth += 1
        elif ch in _CLOSE_BRACKETS:
            depth = max(depth - 1, 0)
        elif ch == "=" and depth == 0:
            prev_ch = text[i - 1] if i > 0 else ""
            next_ch = text[i + 1] if i + 1 < len(text) else ""
            if next_ch != "=" and prev_ch not in "=!<>+-*/%&|^@:":
                return i
        i += 1
    return -1


def split_arguments(text: str) -> list[str]:
    """Split a call's argument text on top-level commas.

    Raises InterpreterError for an unterminated string literal.
    """
    args: list[str] = []
    depth = 0
    start = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if ch in _QUOTES:
            end = string_end(text, i)
            if end < 0:
                raise InterpreterError(f"unterminated string literal in: {text}")
            i = end + 1
            continue
        if ch in _OPEN_BRACKETS:
            depth += 1
        elif ch in _CLOSE_BRACKETS:
            depth -= 1
        elif ch == "," and depth == 0:
            args.append(text[start:i].strip())
            start = i + 1
        i += 1
    tail = text[start:].strip()
    if tail or args:
        args.append(tail)
    return args


def extract_input_prompt(text: str) -> str:
    """Return the literal prompt of the first ``input(...)`` call in *text*."""
    match = INPUT_PROMPT_RE.search(text)
    if match and match.group(2) is not None:
        return match.group(2)
    return ""


def classify_line(text: str, line_number: int) -> Statement:
    """Classify one trimmed, non-blank, non-comment source line."""
    class_match = CLASS_HEADER_RE.match(text)
    if class_match:
        return Statement(
            kind=StatementKind.CLASS_DEF,
            line_number=line_number,
            text=text,
            class_name=class_match.group(1),
            parent=class_match.group(2),
        )

    if not _starts_with_keyword(text, _CONTROL_KEYWORDS):
        eq = find_assignment_operator(text)
        if eq >= 0:
            return Statement(
                kind=StatementKind.ASSIGNMENT,
                line_number=line_number,
                text=text,
                target=text[:eq].strip(),
                expression=text[eq + 1 :].strip(),
            )

    print_match = PRINT_RE.match(text)
    if print_match:
        return Statement(
            kind=StatementKind.PRINT,
            line_number=line_number,
            text=text,
            arguments=print_match.group(1).strip(),
        )

    if INPUT_CALL_RE.search(without_string_literals(text)):
        return Statement(
            kind=StatementKind.INPUT,
            line_number=line_number,
            text=text,
            expression=text,
        )

    call_match = METHOD_CALL_RE.match(text)
    if call_match:
        return Statement(
            kind=StatementKind.METHOD_CALL,
            line_number=line_number,
            text=text,
            receiver=call_match.group(1),
            method=call_match.group(2),
            arguments=call_match.group(3).strip(),
        )

    return Statement(kind=StatementKind.UNSUPPORTED, line_number=line_number, text=text)
