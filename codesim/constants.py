"""Named constants: eliminates magic strings across the codebase."""

from __future__ import annotations

COMMENT_MARKER = "#"

LINE_ERROR_TEMPLATE = "Error on line {line}: {message}"
INPUT_TIMEOUT_MESSAGE = "Timed out waiting for input"

INSTANCE_TAG_TEMPLATE = "<{class_name} object>"

LINKED_LIST_NODE_CLASSES: tuple[str, ...] = ("ListNode", "Node")
LINKED_LIST_VALUE_ATTRS: tuple[str, ...] = ("val", "value", "data")
LINKED_LIST_NEXT_ATTR = "next"
LINKED_LIST_ARROW = " -> "
LINKED_LIST_TRUNCATED = "..."
LINKED_LIST_CYCLE = "(cycle)"
MAX_CHAIN_NODES = 20

INIT_METHOD = "__init__"
SELF_NAME = "self"

NONE_LITERALS: frozenset[str] = frozenset({"None", "null"})
NONE_RENDERED = "None"
TRUE_LITERAL = "True"
FALSE_LITERAL = "False"

# ── Harness matcher ──────────────────────────────────────────────

SOLUTION_CLASS_NAME = "Solution"
SOLUTION_RECEIVER = "solution"
MAIN_METHOD_NAME = "main"
PRINTLN_RECEIVER = "System.out"
PRINTLN_METHOD = "println"

EXECUTION_ERROR_PREFIX = "Execution Error: "
ERR_NO_MAIN = (
    EXECUTION_ERROR_PREFIX + "Could not find the main method in the test harness."
)
ERR_NO_SOLUTION_CALL = (
    EXECUTION_ERROR_PREFIX
    + "Could not find the call to the solution method in the test harness."
)
ERR_UNRESOLVED_ARGUMENT = EXECUTION_ERROR_PREFIX + "Could not resolve the test data '{arg}'."
ERR_NO_VALIDATOR = (
    EXECUTION_ERROR_PREFIX + "No validator is available for method '{method}'."
)
ERR_UNSUPPORTED_LANGUAGE = EXECUTION_ERROR_PREFIX + "Language '{language}' is not supported."

SENTINEL_WRONG_ANSWER = 0

LANGUAGE_PYTHON = "python"
LANGUAGE_JAVA = "java"

SUPPORTED_LANGUAGES: tuple[str, ...] = (LANGUAGE_PYTHON, LANGUAGE_JAVA)
