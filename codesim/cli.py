"""Command-line entry point."""

from __future__ import annotations

import argparse
import logging
import sys

from . import constants
from .grading import run_submission, submit_code
from .statements import classify_line


def _terminal_input(prompt: str, variable_name: str) -> str:
    return input(prompt)


def _dump_statements(source: str) -> None:
    print("═══ Statements ═══")
    for number, raw in enumerate(source.splitlines(), start=1):
        text = raw.strip()
        if not text or text.startswith(constants.COMMENT_MARKER):
            continue
        print(f"  {classify_line(text, number)}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Simulate a task submission and grade its output")
    parser.add_argument("file",
                        help="Source file to run")
    parser.add_argument("--language", "-l", default=constants.LANGUAGE_PYTHON,
                        choices=constants.SUPPORTED_LANGUAGES,
                        help="Submission language (default: python)")
    parser.add_argument("--expected", "-e", default=None,
                        help="File holding the expected output")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log classification and run details")
    parser.add_argument("--dump-statements", action="store_true",
                        help="Only print the classified statements (python)")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    with open(args.file) as f:
        source = f.read()

    if args.dump_statements:
        _dump_statements(source)
        return 0

    if args.expected is None:
        sys.stdout.write(run_submission(source, args.language, _terminal_input))
        return 0

    with open(args.expected) as f:
        expected = f.read()
    result = submit_code(source, args.language, expected, _terminal_input)
    sys.stdout.write(result.execution_output)
    print("═══ Verdict ═══")
    print(f"  {'correct' if result.is_correct else 'incorrect'}: "
          f"{result.validation_results.details}")
    return 0 if result.is_correct else 1


if __name__ == "__main__":
    sys.exit(main())
