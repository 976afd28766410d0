"""Submission grading: run a submission and compare its output with the expected text."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel

from . import constants
from .harness import HarnessMatcher
from .run_types import SimulatorConfig
from .statement_interpreter import RequestInput, StatementInterpreter

logger = logging.getLogger(__name__)


class ValidationResults(BaseModel):
    tests_passed: int = 0
    total_tests: int = 1
    details: str = ""


class SubmissionResult(BaseModel):
    is_correct: bool
    execution_output: str
    validation_results: ValidationResults


def normalize_output(text: str) -> str:
    """Unify line endings, drop trailing spaces and surrounding blank lines."""
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    return "\n".join(line.rstrip() for line in lines).strip("\n")


def has_errors(output: str) -> bool:
    error_prefix = constants.LINE_ERROR_TEMPLATE.split("{")[0]
    return output.startswith(constants.EXECUTION_ERROR_PREFIX) or any(
        line.startswith(error_prefix) for line in output.splitlines()
    )


def run_submission(
    source: str,
    language: str,
    request_input: Optional[RequestInput] = None,
    config: SimulatorConfig = SimulatorConfig(),
) -> str:
    """Route *source* to the simulator for *language* and return its output."""
    language = language.lower()
    if language == constants.LANGUAGE_PYTHON:
        return StatementInterpreter(config).execute(source, request_input)
    if language == constants.LANGUAGE_JAVA:
        return HarnessMatcher().execute(source)
    logger.warning("Unsupported language: %s", language)
    return constants.ERR_UNSUPPORTED_LANGUAGE.format(language=language)


def submit_code(
    source: str,
    language: str,
    expected_output: Optional[str] = None,
    request_input: Optional[RequestInput] = None,
    config: SimulatorConfig = SimulatorConfig(),
) -> SubmissionResult:
    """Run a submission and decide whether it is correct.

    With an expected output the normalised texts must match exactly.
    Without one, any error-free run that printed something passes.
    """
    output = run_submission(source, language, request_input, config)

    if expected_output:
        is_correct = normalize_output(output) == normalize_output(expected_output)
        details = (
            "All tests passed!"
            if is_correct
            else "Your output doesn't match the expected result."
        )
    else:
        is_correct = bool(output.strip()) and not has_errors(output)
        details = (
            "Code executed successfully!"
            if is_correct
            else "Code produced no output or reported errors."
        )

    logger.info("Submission (%s) graded: correct=%s", language, is_correct)
    return SubmissionResult(
        is_correct=is_correct,
        execution_output=output,
        validation_results=ValidationResults(
            tests_passed=1 if is_correct else 0,
            total_tests=1,
            details=details,
        ),
    )
