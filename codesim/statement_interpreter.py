"""Statement interpreter: line-oriented simulator for a small Python-like dialect.

Each non-blank, non-comment line is classified into a ``Statement`` and
dispatched on its kind. Class definitions consume their indented body
through a ``ClassBuilder``. The run itself is a generator that yields an
``InputRequest`` whenever a line needs a value from the caller;
``InterpreterSession`` drives it and exposes the run status.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections import ChainMap
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generator, Optional

from . import constants
from .classes import (
    ClassBuilder,
    ClassDefinition,
    MethodDefinition,
    ObjectInstance,
    find_method,
    is_indented,
)
from .evaluator import evaluate_expression, render_value
from .run_types import InputRequest, RunStats, RunStatus, SimulatorConfig
from .statements import (
    CALL_RE,
    INPUT_CALL_RE,
    TARGET_RE,
    InterpreterError,
    Statement,
    StatementKind,
    classify_line,
    extract_input_prompt,
    find_assignment_operator,
    split_arguments,
    strip_inline_comment,
    without_string_literals,
)

logger = logging.getLogger(__name__)

RequestInput = Callable[[str, str], str]
AsyncRequestInput = Callable[[str, str], Awaitable[str]]

_PRINT_KWARG_RE = re.compile(r"^(sep|end)\s*=\s*(.*)$")
_CONVERTED_INPUT_RE = re.compile(r"^(int|float)\s*\(\s*input\s*\(")
_SELF_TARGET_RE = re.compile(r"^self\.([A-Za-z_]\w*)$")
_IMPORT_RE = re.compile(
    r"^(?:import\s+(.+)|from\s+[\w.]+\s+import\s+\(?([^)]+)\)?)$"
)


@dataclass
class InterpreterState:
    """Everything one run owns; discarded when the run ends."""

    variables: dict[str, Any] = field(default_factory=dict)
    classes: dict[str, ClassDefinition] = field(default_factory=dict)
    modules: set[str] = field(default_factory=set)
    output: list[str] = field(default_factory=list)
    stats: RunStats = field(default_factory=RunStats)

    @property
    def output_text(self) -> str:
        return "".join(self.output)


def _class_body_end(lines: list[str], start: int) -> int:
    """Index of the first line after the class body beginning at *start*."""
    index = start
    while index < len(lines):
        raw = lines[index]
        if raw.strip() and not is_indented(raw):
            break
        index += 1
    return index


def _imported_names(clause: str) -> list[str]:
    """Names an import clause binds: the alias, else the first dotted part."""
    names = []
    for part in clause.split(","):
        name, _, alias = part.strip().partition(" as ")
        bound = alias.strip() or name.strip().split(".")[0]
        if bound:
            names.append(bound)
    return names


def _convert_input(expression: str, value: str) -> Any:
    match = _CONVERTED_INPUT_RE.match(expression)
    if match is None:
        return value
    return int(value) if match.group(1) == "int" else float(value)


class StatementInterpreter:
    """Interprets a source text line by line into printed output."""

    def __init__(self, config: SimulatorConfig = SimulatorConfig()):
        self.config = config
        self._dispatch: dict[StatementKind, Callable] = {
            StatementKind.ASSIGNMENT: self._exec_assignment,
            StatementKind.PRINT: self._exec_print,
            StatementKind.INPUT: self._exec_input,
            StatementKind.METHOD_CALL: self._exec_method_call,
            StatementKind.UNSUPPORTED: self._exec_unsupported,
        }

    # ── public API ───────────────────────────────────────────────

    def execute(self, source: str, request_input: Optional[RequestInput] = None) -> str:
        """Run *source* to completion and return its output text.

        ``request_input(prompt, variable_name)`` answers each input request;
        without it every request is answered with an empty string.
        """
        session = InterpreterSession(source, interpreter=self)
        status = session.start()
        while status == RunStatus.AWAITING_INPUT:
            request = session.pending_request
            value = (
                request_input(request.prompt, request.variable_name)
                if request_input
                else ""
            )
            status = session.provide_input(value)
        return session.output

    async def execute_async(
        self,
        source: str,
        request_input: AsyncRequestInput,
        input_timeout: float | None = None,
    ) -> str:
        """Like ``execute`` but awaits input, giving up after *input_timeout* seconds."""
        session = InterpreterSession(source, interpreter=self)
        status = session.start()
        while status == RunStatus.AWAITING_INPUT:
            request = session.pending_request
            try:
                value = await asyncio.wait_for(
                    request_input(request.prompt, request.variable_name),
                    timeout=input_timeout,
                )
            except asyncio.TimeoutError:
                logger.warning(
                    "No input for line %d after %ss", request.line_number, input_timeout
                )
                session.abandon(constants.INPUT_TIMEOUT_MESSAGE)
                break
            status = session.provide_input(value)
        return session.output

    def run(
        self, source: str, state: InterpreterState
    ) -> Generator[InputRequest, str, None]:
        """Interpret *source* into *state*, yielding whenever input is needed."""
        lines = source.splitlines()
        index = 0
        while index < len(lines):
            line_number = index + 1
            text = lines[index].strip()
            index += 1
            if not text or text.startswith(self.config.comment_marker):
                continue
            text = strip_inline_comment(text, self.config.comment_marker)
            state.stats.lines_processed += 1
            try:
                statement = classify_line(text, line_number)
                state.stats.statements[statement.kind.value] += 1
                logger.debug("%s", statement)

                if statement.kind == StatementKind.CLASS_DEF:
                    end = _class_body_end(lines, index)
                    body, index = lines[index:end], end
                    self._define_class(statement, body, state)
                    continue

                input_value = None
                if self._needs_input(statement, state):
                    state.stats.input_requests += 1
                    input_value = yield InputRequest(
                        prompt=extract_input_prompt(statement.expression or ""),
                        variable_name=statement.target or "",
                        line_number=line_number,
                    )
                self._dispatch[statement.kind](statement, state, input_value)
            except Exception as exc:
                record_line_error(state, line_number, str(exc))

    # ── statement handlers ───────────────────────────────────────

    def _define_class(
        self, statement: Statement, body: list[str], state: InterpreterState
    ) -> None:
        builder = ClassBuilder(
            statement.class_name, statement.parent, statement.line_number
        )
        for raw in body:
            builder.add_line(raw)
        state.classes[statement.class_name] = builder.build()
        state.stats.classes_defined += 1

    def _needs_input(self, statement: Statement, state: InterpreterState) -> bool:
        if statement.kind == StatementKind.INPUT:
            return True
        if statement.kind != StatementKind.ASSIGNMENT:
            return False
        expression = statement.expression or ""
        return (
            INPUT_CALL_RE.search(without_string_literals(expression)) is not None
            and self._constructor_call(expression, state) is None
        )

    def _exec_assignment(
        self, statement: Statement, state: InterpreterState, input_value: str | None
    ) -> None:
        target = statement.target or ""
        expression = statement.expression or ""
        if not TARGET_RE.match(target):
            raise InterpreterError(f"cannot assign to '{target}'")

        constructor = self._constructor_call(expression, state)
        if constructor is not None:
            value = self._instantiate(*constructor, state)
        elif input_value is not None:
            self._echo_input(state, extract_input_prompt(expression), input_value)
            value = _convert_input(expression, input_value)
        else:
            value = evaluate_expression(expression, state.variables)
        self._bind(target, value, state)

    def _exec_print(
        self, statement: Statement, state: InterpreterState, input_value: str | None
    ) -> None:
        sep, end = " ", "\n"
        rendered: list[str] = []
        for arg in split_arguments(statement.arguments):
            kwarg = _PRINT_KWARG_RE.match(arg)
            if kwarg and find_assignment_operator(arg) >= 0:
                value = str(evaluate_expression(kwarg.group(2), state.variables))
                if kwarg.group(1) == "sep":
                    sep = value
                else:
                    end = value
                continue
            value = evaluate_expression(arg, state.variables)
            rendered.append(render_value(value, self.config))
        state.output.append(sep.join(rendered) + end)

    def _exec_input(
        self, statement: Statement, state: InterpreterState, input_value: str | None
    ) -> None:
        prompt = extract_input_prompt(statement.expression or "")
        self._echo_input(state, prompt, input_value or "")

    def _exec_method_call(
        self, statement: Statement, state: InterpreterState, input_value: str | None
    ) -> None:
        receiver = statement.receiver or ""
        if receiver in state.modules and receiver not in state.variables:
            logger.debug(
                "Line %d: call on imported module %s ignored",
                statement.line_number,
                receiver,
            )
            return
        if receiver not in state.variables:
            raise InterpreterError(f"name '{receiver}' is not defined")
        owner = state.variables[receiver]
        if not isinstance(owner, ObjectInstance):
            logger.debug(
                "Line %d: %s is not an object, call ignored",
                statement.line_number,
                receiver,
            )
            return
        method = find_method(state.classes, owner.class_name, statement.method or "")
        if method is None:
            raise InterpreterError(
                f"'{owner.class_name}' object has no method '{statement.method}'"
            )
        args = [
            evaluate_expression(arg, state.variables)
            for arg in split_arguments(statement.arguments)
        ]
        self._invoke(owner, method, args, state)

    def _exec_unsupported(
        self, statement: Statement, state: InterpreterState, input_value: str | None
    ) -> None:
        imported = _IMPORT_RE.match(statement.text)
        if imported:
            clause = imported.group(1) or imported.group(2)
            state.modules.update(_imported_names(clause))
            return
        logger.debug("Line %d ignored: %s", statement.line_number, statement.text)

    # ── objects ──────────────────────────────────────────────────

    def _constructor_call(
        self, expression: str, state: InterpreterState
    ) -> tuple[str, str] | None:
        match = CALL_RE.match(expression.strip())
        if match and match.group(1) in state.classes:
            return match.group(1), match.group(2)
        return None

    def _instantiate(
        self, class_name: str, arg_text: str, state: InterpreterState
    ) -> ObjectInstance:
        instance = ObjectInstance(class_name=class_name)
        args = [
            evaluate_expression(arg, state.variables)
            for arg in split_arguments(arg_text)
        ]
        init = find_method(state.classes, class_name, constants.INIT_METHOD)
        if init is not None:
            self._invoke(instance, init, args, state)
        elif args:
            raise InterpreterError(f"{class_name}() takes no arguments")
        return instance

    def _invoke(
        self,
        instance: ObjectInstance,
        method: MethodDefinition,
        args: list[Any],
        state: InterpreterState,
    ) -> None:
        """Run a method body; only ``self.<attr> = <expr>`` lines take effect."""
        required = [p for p in method.params if p not in method.defaults]
        if len(args) < len(required) or len(args) > len(method.params):
            raise InterpreterError(
                f"{instance.class_name}.{method.name}() takes {len(method.params)} "
                f"positional arguments but {len(args)} were given"
            )
        local_vars: dict[str, Any] = {constants.SELF_NAME: instance}
        for position, param in enumerate(method.params):
            if position < len(args):
                local_vars[param] = args[position]
            else:
                local_vars[param] = evaluate_expression(
                    method.defaults[param], state.variables
                )
        scope = ChainMap(local_vars, state.variables)

        for line in method.body:
            eq = find_assignment_operator(line)
            target = _SELF_TARGET_RE.match(line[:eq].strip()) if eq >= 0 else None
            if target is None:
                continue
            expression = line[eq + 1 :].strip()
            instance.attributes[target.group(1)] = evaluate_expression(expression, scope)

    def _bind(self, target: str, value: Any, state: InterpreterState) -> None:
        owner_name, dot, attr = target.partition(".")
        if not dot:
            state.variables[target] = value
            return
        owner = state.variables.get(owner_name)
        if not isinstance(owner, ObjectInstance):
            raise InterpreterError(f"'{owner_name}' is not an object")
        owner.attributes[attr] = value

    def _echo_input(self, state: InterpreterState, prompt: str, value: str) -> None:
        if self.config.echo_input:
            state.output.append(f"{prompt}{value}\n")


def record_line_error(state: InterpreterState, line_number: int, message: str) -> None:
    logger.warning("Error on line %d: %s", line_number, message)
    state.stats.errors += 1
    state.output.append(
        constants.LINE_ERROR_TEMPLATE.format(line=line_number, message=message) + "\n"
    )


class InterpreterSession:
    """One run of the interpreter with an observable status.

    ``start()`` runs until the first input request or the end of the
    source. While ``status`` is ``AWAITING_INPUT`` the pending request is
    available as ``pending_request`` and ``provide_input()`` resumes the run.
    """

    def __init__(
        self,
        source: str,
        config: SimulatorConfig = SimulatorConfig(),
        interpreter: Optional[StatementInterpreter] = None,
    ):
        self._interpreter = interpreter or StatementInterpreter(config)
        self._source = source
        self._steps: Optional[Generator[InputRequest, str, None]] = None
        self.state = InterpreterState()
        self.status = RunStatus.RUNNING
        self.pending_request: Optional[InputRequest] = None

    @property
    def output(self) -> str:
        return self.state.output_text

    @property
    def stats(self) -> RunStats:
        return self.state.stats

    def start(self) -> RunStatus:
        if self._steps is not None:
            raise RuntimeError("session has already been started")
        logger.info("Starting run over %d source lines", len(self._source.splitlines()))
        self._steps = self._interpreter.run(self._source, self.state)
        return self._advance(lambda: next(self._steps))

    def provide_input(self, value: str) -> RunStatus:
        if self.status != RunStatus.AWAITING_INPUT:
            raise RuntimeError("no input request is pending")
        self.pending_request = None
        self.status = RunStatus.RUNNING
        return self._advance(lambda: self._steps.send(value))

    def abandon(self, message: str) -> RunStatus:
        """Stop a run that is waiting for input, recording *message* as its error."""
        if self.status != RunStatus.AWAITING_INPUT:
            raise RuntimeError("only a run awaiting input can be abandoned")
        request = self.pending_request
        self._steps.close()
        record_line_error(self.state, request.line_number, message)
        self.pending_request = None
        self._complete()
        return self.status

    def _advance(self, step: Callable[[], InputRequest]) -> RunStatus:
        try:
            request = step()
        except StopIteration:
            self._complete()
            return self.status
        logger.debug("Awaiting input for line %d", request.line_number)
        self.pending_request = request
        self.status = RunStatus.AWAITING_INPUT
        return self.status

    def _complete(self) -> None:
        self.status = RunStatus.COMPLETED
        logger.info("Run completed: %s", self.state.stats.report())
