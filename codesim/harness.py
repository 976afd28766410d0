"""Harness pattern matcher: validates a Java submission against its test harness.

The source holds a ``Solution`` class and a ``main`` method that feeds it
test data. The matcher parses both with tree-sitter, classifies the
statements of ``main``, checks the submitted method body for the
constructs a correct answer needs, and replays the harness's ``println``
calls with the result of a trusted validator. The submitted method is
never executed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel

from . import constants
from .evaluator import unquote
from .parser import Parser, ParserFactory, TreeSitterParserFactory, walk_tree
from .validators import MethodFeatures, get_validator

logger = logging.getLogger(__name__)

_LOOP_TYPES: frozenset[str] = frozenset(
    {"for_statement", "enhanced_for_statement", "while_statement", "do_statement"}
)
_INT_LITERAL_TYPES: frozenset[str] = frozenset(
    {
        "decimal_integer_literal",
        "hex_integer_literal",
        "octal_integer_literal",
        "binary_integer_literal",
    }
)


class HarnessExtractionError(Exception):
    """Raised when the harness lacks a structure the matcher relies on.

    The message is the text returned to the caller as the run's output.
    """


class HarnessStatementKind(str, Enum):
    ARRAY_DECL = "ARRAY_DECL"
    SOLUTION_CALL = "SOLUTION_CALL"
    PRINT_LITERAL = "PRINT_LITERAL"
    PRINT_CONCAT = "PRINT_CONCAT"
    OTHER_PRINT = "OTHER_PRINT"


class HarnessStatement(BaseModel):
    kind: HarnessStatementKind
    line_number: int
    text: str
    name: str | None = None
    values: list[int] | None = None
    method: str | None = None
    argument: str | None = None
    result_holder: str | None = None
    literal: str | None = None
    variable: str | None = None


@dataclass
class HarnessExtraction:
    """What the matcher learned from one submission."""

    full_source: str
    user_code: str
    test_variables: dict[str, list[int]] = field(default_factory=dict)
    statements: list[HarnessStatement] = field(default_factory=list)

    def solution_call(self) -> HarnessStatement | None:
        return next(
            (
                s
                for s in self.statements
                if s.kind == HarnessStatementKind.SOLUTION_CALL
            ),
            None,
        )


class _SourceView:
    """Source bytes plus node helpers shared by the extraction steps."""

    def __init__(self, source: str, tree):
        self._source = source.encode("utf-8")
        self.root = tree.root_node

    def text(self, node) -> str:
        return self._source[node.start_byte : node.end_byte].decode("utf-8")

    def find_named(self, root, node_type: str, name: str):
        for node in walk_tree(root):
            if node.type != node_type:
                continue
            name_node = node.child_by_field_name("name")
            if name_node is not None and self.text(name_node) == name:
                return node
        return None

    def int_values(self, initializer) -> list[int] | None:
        values: list[int] = []
        for element in initializer.named_children:
            if element.type not in _INT_LITERAL_TYPES and element.type != "unary_expression":
                return None
            try:
                values.append(_java_int(self.text(element)))
            except ValueError:
                return None
        return values


def _java_int(text: str) -> int:
    text = text.replace(" ", "").replace("_", "").rstrip("lL")
    digits = text.lstrip("+-")
    if digits[:2].lower() in ("0x", "0b"):
        return int(text, 0)
    if len(digits) > 1 and digits.startswith("0"):
        return int(text, 8)
    return int(text)


def _array_initializer(value_node):
    if value_node.type == "array_initializer":
        return value_node
    if value_node.type == "array_creation_expression":
        return next(
            (c for c in value_node.children if c.type == "array_initializer"), None
        )
    return None


class HarnessClassifier:
    """Turns the statements of ``main`` into ``HarnessStatement`` variants."""

    def __init__(self, view: _SourceView):
        self._view = view
        self._receivers: set[str] = {constants.SOLUTION_RECEIVER}

    def classify(self, body) -> list[HarnessStatement]:
        statements: list[HarnessStatement] = []
        for node in walk_tree(body):
            if node.type == "variable_declarator":
                self._note_receiver(node)
                declared = self._array_declaration(node)
                if declared is not None:
                    statements.append(declared)
            elif node.type == "method_invocation":
                classified = self._invocation(node)
                if classified is not None:
                    statements.append(classified)
        return statements

    def _line(self, node) -> int:
        return node.start_point[0] + 1

    def _note_receiver(self, declarator) -> None:
        value = declarator.child_by_field_name("value")
        if value is None or value.type != "object_creation_expression":
            return
        type_node = value.child_by_field_name("type")
        if type_node is not None and self._view.text(type_node) == constants.SOLUTION_CLASS_NAME:
            name = self._view.text(declarator.child_by_field_name("name"))
            self._receivers.add(name)

    def _array_declaration(self, declarator) -> HarnessStatement | None:
        declaration = declarator.parent
        value = declarator.child_by_field_name("value")
        if declaration is None or value is None:
            return None
        type_node = declaration.child_by_field_name("type")
        if type_node is None or self._view.text(type_node).replace(" ", "") != "int[]":
            return None
        initializer = _array_initializer(value)
        if initializer is None:
            return None
        values = self._view.int_values(initializer)
        if values is None:
            logger.debug("Skipping non-literal array %s", self._view.text(declarator))
            return None
        return HarnessStatement(
            kind=HarnessStatementKind.ARRAY_DECL,
            line_number=self._line(declarator),
            text=self._view.text(declaration),
            name=self._view.text(declarator.child_by_field_name("name")),
            values=values,
        )

    def _invocation(self, node) -> HarnessStatement | None:
        obj = node.child_by_field_name("object")
        name = node.child_by_field_name("name")
        args = node.child_by_field_name("arguments")
        if obj is None or name is None or args is None:
            return None
        receiver = self._view.text(obj)
        method = self._view.text(name)
        if receiver == constants.PRINTLN_RECEIVER and method == constants.PRINTLN_METHOD:
            return self._print(node, args.named_children)
        if receiver in self._receivers:
            return self._solution_call(node, method, args.named_children)
        return None

    def _solution_call(self, node, method: str, args) -> HarnessStatement:
        statement = HarnessStatement(
            kind=HarnessStatementKind.SOLUTION_CALL,
            line_number=self._line(node),
            text=self._view.text(node),
            method=method,
            argument=self._view.text(args[0]) if args else "",
            result_holder=self._result_holder(node),
        )
        if args:
            initializer = _array_initializer(args[0])
            if initializer is not None:
                statement.values = self._view.int_values(initializer)
        return statement

    def _result_holder(self, call) -> str | None:
        parent = call.parent
        if parent is None:
            return None
        if parent.type == "variable_declarator":
            return self._view.text(parent.child_by_field_name("name"))
        if parent.type == "assignment_expression":
            return self._view.text(parent.child_by_field_name("left"))
        return None

    def _print(self, node, args) -> HarnessStatement:
        statement = HarnessStatement(
            kind=HarnessStatementKind.OTHER_PRINT,
            line_number=self._line(node),
            text=self._view.text(node),
        )
        if len(args) != 1:
            return statement
        arg = args[0]
        if arg.type == "string_literal":
            statement.kind = HarnessStatementKind.PRINT_LITERAL
            statement.literal = unquote(self._view.text(arg))
        elif arg.type == "binary_expression":
            left = arg.child_by_field_name("left")
            right = arg.child_by_field_name("right")
            operator = arg.child_by_field_name("operator")
            if (
                operator is not None
                and self._view.text(operator) == "+"
                and left is not None
                and left.type == "string_literal"
                and right is not None
                and right.type == "identifier"
            ):
                statement.kind = HarnessStatementKind.PRINT_CONCAT
                statement.literal = unquote(self._view.text(left))
                statement.variable = self._view.text(right)
        return statement


def _solution_class(view: _SourceView):
    return view.find_named(view.root, "class_declaration", constants.SOLUTION_CLASS_NAME)


def method_features(view: _SourceView, scope, method_name: str) -> MethodFeatures:
    """Scan the body of *method_name* inside *scope* for loop/accumulate/return."""
    method = view.find_named(scope, "method_declaration", method_name)
    body = method.child_by_field_name("body") if method is not None else None
    if body is None:
        return MethodFeatures()
    has_loop = has_accumulation = has_return = False
    for node in walk_tree(body):
        if node.type in _LOOP_TYPES:
            has_loop = True
        elif node.type == "return_statement":
            has_return = True
        elif node.type in ("assignment_expression", "binary_expression"):
            operator = node.child_by_field_name("operator")
            if operator is not None and view.text(operator) in ("+=", "+"):
                has_accumulation = True
    return MethodFeatures(
        found=True,
        has_loop=has_loop,
        has_accumulation=has_accumulation,
        has_return=has_return,
    )


class HarnessMatcher:
    """Runs a Java submission through its harness without executing it."""

    def __init__(self, parser_factory: ParserFactory | None = None):
        self._parser = Parser(parser_factory or TreeSitterParserFactory())

    def execute(self, full_source: str) -> str:
        """Return the harness output, or an ``Execution Error: ...`` message."""
        try:
            return self._execute(full_source)
        except HarnessExtractionError as exc:
            logger.warning("Harness rejected: %s", exc)
            return str(exc)

    def extract(self, full_source: str) -> HarnessExtraction:
        """Parse the submission and classify its harness statements.

        Raises HarnessExtractionError when the source has no ``main`` method.
        """
        tree = self._parser.parse(full_source, constants.LANGUAGE_JAVA)
        view = _SourceView(full_source, tree)
        return self._extract(view, full_source, _solution_class(view))

    def _extract(self, view: _SourceView, full_source: str, solution) -> HarnessExtraction:
        if solution is None:
            logger.info("No Solution class found, validating the whole source")
        extraction = HarnessExtraction(
            full_source=full_source,
            user_code=view.text(solution) if solution is not None else full_source,
        )
        main = view.find_named(view.root, "method_declaration", constants.MAIN_METHOD_NAME)
        body = main.child_by_field_name("body") if main is not None else None
        if body is None:
            raise HarnessExtractionError(constants.ERR_NO_MAIN)
        extraction.statements = HarnessClassifier(view).classify(body)
        extraction.test_variables = {
            s.name: s.values
            for s in extraction.statements
            if s.kind == HarnessStatementKind.ARRAY_DECL
        }
        return extraction

    def _execute(self, full_source: str) -> str:
        tree = self._parser.parse(full_source, constants.LANGUAGE_JAVA)
        view = _SourceView(full_source, tree)
        solution = _solution_class(view)
        extraction = self._extract(view, full_source, solution)

        call = extraction.solution_call()
        if call is None:
            raise HarnessExtractionError(constants.ERR_NO_SOLUTION_CALL)
        data = (
            call.values
            if call.values is not None
            else extraction.test_variables.get(call.argument or "")
        )
        if data is None:
            raise HarnessExtractionError(
                constants.ERR_UNRESOLVED_ARGUMENT.format(arg=call.argument)
            )
        validator = get_validator(call.method or "")
        if validator is None:
            raise HarnessExtractionError(
                constants.ERR_NO_VALIDATOR.format(method=call.method)
            )

        features = method_features(
            view, solution if solution is not None else view.root, call.method
        )
        result = validator.validate(features, data)
        logger.info("%s(%s) -> %s", call.method, call.argument, result)
        return self._replay(extraction.statements, call.result_holder, result)

    def _replay(
        self, statements: list[HarnessStatement], result_holder: str | None, result: int
    ) -> str:
        lines: list[str] = []
        for statement in statements:
            if statement.kind == HarnessStatementKind.PRINT_LITERAL:
                lines.append(statement.literal)
            elif (
                statement.kind == HarnessStatementKind.PRINT_CONCAT
                and result_holder is not None
                and statement.variable == result_holder
            ):
                lines.append(f"{statement.literal}{result}")
            elif statement.kind in (
                HarnessStatementKind.PRINT_CONCAT,
                HarnessStatementKind.OTHER_PRINT,
            ):
                logger.debug("Print on line %d not replayed", statement.line_number)
        return "".join(line + "\n" for line in lines)
