"""Tests for submission routing and grading."""

from codesim.grading import (
    SubmissionResult,
    has_errors,
    normalize_output,
    run_submission,
    submit_code,
)

JAVA_SOURCE = """\
class Solution {
    public int calculateTotalSales(int[] sales) {
        int total = 0;
        for (int sale : sales) {
            total += sale;
        }
        return total;
    }
}

public class Main {
    public static void main(String[] args) {
        Solution solution = new Solution();
        int[] sales = new int[]{10, 20};
        int total = solution.calculateTotalSales(sales);
        System.out.println("Total: " + total);
    }
}
"""


class TestNormalizeOutput:
    def test_trailing_whitespace_and_blank_lines(self):
        assert normalize_output("a  \nb\n\n") == "a\nb"

    def test_line_endings(self):
        assert normalize_output("a\r\nb\r") == "a\nb"


class TestHasErrors:
    def test_line_error(self):
        assert has_errors("ok\nError on line 3: boom\n")

    def test_execution_error(self):
        assert has_errors("Execution Error: nope")

    def test_clean_output(self):
        assert not has_errors("Total: 10\n")


class TestRunSubmission:
    def test_routes_python(self):
        assert run_submission('print("hi")', "python") == "hi\n"

    def test_language_is_case_insensitive(self):
        assert run_submission('print("hi")', "Python") == "hi\n"

    def test_routes_java(self):
        assert run_submission(JAVA_SOURCE, "java") == "Total: 30\n"

    def test_unsupported_language(self):
        assert run_submission("puts 1", "ruby") == (
            "Execution Error: Language 'ruby' is not supported."
        )


class TestSubmitCode:
    def test_matching_output_is_correct(self):
        result = submit_code('print("Hello, World!")', "python", "Hello, World!\n")
        assert isinstance(result, SubmissionResult)
        assert result.is_correct
        assert result.execution_output == "Hello, World!\n"
        assert result.validation_results.tests_passed == 1
        assert result.validation_results.total_tests == 1

    def test_mismatch_is_incorrect(self):
        result = submit_code('print("Hello")', "python", "Hello, World!")
        assert not result.is_correct
        assert result.validation_results.tests_passed == 0
        assert "doesn't match" in result.validation_results.details

    def test_java_submission(self):
        result = submit_code(JAVA_SOURCE, "java", "Total: 30")
        assert result.is_correct

    def test_input_is_forwarded(self):
        source = 'name = input("Name: ")\nprint("Hi", name)\n'
        result = submit_code(source, "python", "Name: Sam\nHi Sam", lambda p, v: "Sam")
        assert result.is_correct

    def test_without_expected_output_clean_run_passes(self):
        assert submit_code('print("x")', "python").is_correct

    def test_without_expected_output_errors_fail(self):
        assert not submit_code("ghost.run()", "python").is_correct

    def test_without_expected_output_silent_run_fails(self):
        assert not submit_code("x = 1", "python").is_correct

    def test_unsupported_language_is_incorrect(self):
        result = submit_code("print 1", "cobol", "1")
        assert not result.is_correct
        assert result.execution_output.startswith("Execution Error:")

    def test_result_serializes(self):
        payload = submit_code('print("x")', "python", "x").model_dump()
        assert payload["is_correct"] is True
        assert payload["validation_results"]["details"] == "All tests passed!"
