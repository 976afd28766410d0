"""Submission simulators: a statement interpreter and a Java harness matcher."""

from .statement_interpreter import StatementInterpreter, InterpreterSession  # noqa: F401
from .harness import HarnessMatcher  # noqa: F401
from .grading import (  # noqa: F401
    SubmissionResult,
    ValidationResults,
    run_submission,
    submit_code,
)
from .run_types import RunStatus, SimulatorConfig  # noqa: F401
