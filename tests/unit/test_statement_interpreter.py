"""Tests for StatementInterpreter and InterpreterSession."""

import asyncio

import pytest

from codesim.run_types import RunStatus, SimulatorConfig
from codesim.statement_interpreter import InterpreterSession, StatementInterpreter

COUNTER_SOURCE = """\
class Counter:
    def __init__(self, n):
        self.n = n

    def show(self):
        print(self.n)

c = Counter(5)
c.show()
"""

LINKED_LIST_SOURCE = """\
class ListNode:
    def __init__(self, val):
        self.val = val
        self.next = None

a = ListNode(1)
b = ListNode(2)
a.next = b
print(a)
"""


def _run(source: str, answers=None) -> str:
    """Execute *source*, answering input requests from *answers* in order."""
    pending = list(answers or [])
    asked = []

    def request_input(prompt, variable_name):
        asked.append((prompt, variable_name))
        return pending.pop(0)

    return StatementInterpreter().execute(source, request_input)


class TestPrintAndAssignment:
    def test_print_variable(self):
        assert _run('x = "hello"\nprint(x)\n') == "hello\n"

    def test_prints_join_arguments_in_source_order(self):
        source = 'print("a", 1)\nx = 5\nprint(x, "b")\nprint()\n'
        assert _run(source) == "a 1\n5 b\n\n"

    def test_blank_lines_and_comments_are_skipped(self):
        source = '# greeting\n\n   \nprint("hi")  \n'
        assert _run(source) == "hi\n"

    def test_booleans_and_none_render_python_style(self):
        source = "flag = True\nnothing = None\nprint(flag, nothing)\n"
        assert _run(source) == "True None\n"

    def test_expressions_are_not_computed(self):
        assert _run("x = 3 + 4\nprint(x)\n") == "3 + 4\n"

    def test_print_keyword_arguments(self):
        source = 'print("a", "b", sep="-")\nprint("c", end="")\nprint("d")\n'
        assert _run(source) == "a-b\ncd\n"

    def test_string_concatenation_prints_raw_text(self):
        source = 'name = "Ada"\nprint("Hello, " + name + "!")\n'
        assert _run(source) == '"Hello, " + name + "!"\n'

    def test_trailing_comments_are_dropped(self):
        source = 'print("hi")  # greet\nx = 5  # five\nprint(x)\n'
        assert _run(source) == "hi\n5\n"

    def test_hash_inside_string_is_printed(self):
        assert _run('print("a # b")\n') == "a # b\n"

    def test_string_ending_in_backslash(self):
        assert _run('print("C:\\\\")\n') == "C:\\\n"

    def test_input_inside_string_does_not_ask(self):
        assert _run('x = "use input() here"\nprint(x)\n') == "use input() here\n"

    def test_unsupported_lines_are_ignored(self):
        source = 'for i in range(3):\n    pass\nprint("done")\n'
        assert _run(source) == "done\n"

    def test_same_source_twice_gives_same_output(self):
        source = 'x = "a"\nprint(x)\nprint(x, 2)\n'
        interpreter = StatementInterpreter()
        assert interpreter.execute(source) == interpreter.execute(source)


class TestClasses:
    def test_print_inside_method_is_not_interpreted(self):
        assert _run(COUNTER_SOURCE) == ""

    def test_constructor_binds_attributes(self):
        assert _run(COUNTER_SOURCE + "print(c.n)\n") == "5\n"

    def test_method_updates_attributes(self):
        source = COUNTER_SOURCE + (
            "class Light:\n"
            "    def __init__(self):\n"
            '        self.state = "off"\n'
            "    def switch(self, value):\n"
            "        self.state = value\n"
            "light = Light()\n"
            'light.switch("on")\n'
            "print(light.state)\n"
        )
        assert _run(source) == "on\n"

    def test_instance_renders_as_type_tag(self):
        assert _run(COUNTER_SOURCE + "print(c)\n") == "<Counter object>\n"

    def test_inherited_init(self):
        source = (
            "class Animal:\n"
            "    def __init__(self, name):\n"
            "        self.name = name\n"
            "class Dog(Animal):\n"
            "    def speak(self):\n"
            '        self.sound = "Woof"\n'
            'd = Dog("Rex")\n'
            "d.speak()\n"
            "print(d.name, d.sound)\n"
        )
        assert _run(source) == "Rex Woof\n"

    def test_default_parameter(self):
        source = (
            "class Box:\n"
            "    def __init__(self, width, height=1):\n"
            "        self.width = width\n"
            "        self.height = height\n"
            "b = Box(4)\n"
            "print(b.width, b.height)\n"
        )
        assert _run(source) == "4 1\n"

    def test_linked_list_renders_as_chain(self):
        assert _run(LINKED_LIST_SOURCE) == "1 -> 2 -> None\n"

    def test_linked_list_cycle(self):
        source = LINKED_LIST_SOURCE.replace("print(a)\n", "b.next = a\nprint(a)\n")
        assert _run(source) == "1 -> 2 -> (cycle)\n"

    def test_comments_inside_class_body(self):
        source = (
            "class Box:\n"
            "    def __init__(self, v):  # build\n"
            "        self.v = v  # keep\n"
            "b = Box(3)\n"
            "print(b.v)\n"
        )
        assert _run(source) == "3\n"

    def test_class_used_before_definition_is_not_instantiated(self):
        source = (
            "early = Later()\n"
            "class Later:\n"
            "    def __init__(self):\n"
            "        self.ok = True\n"
            "print(early)\n"
        )
        assert _run(source) == "Later()\n"


class TestLineErrors:
    def test_constructor_arity_error_does_not_stop_the_run(self):
        source = (
            "class Point:\n"
            "    def __init__(self, x, y):\n"
            "        self.x = x\n"
            "        self.y = y\n"
            "p = Point(1)\n"
            'print("after")\n'
        )
        assert _run(source) == (
            "Error on line 5: Point.__init__() takes 2 positional arguments "
            "but 1 were given\n"
            "after\n"
        )

    def test_unterminated_string_in_print(self):
        output = _run('print("oops)\nprint("next")\n')
        lines = output.splitlines()
        assert lines[0].startswith("Error on line 1: unterminated string literal")
        assert lines[1] == "next"

    def test_method_call_on_undefined_name(self):
        assert _run("ghost.run()\n") == "Error on line 1: name 'ghost' is not defined\n"

    def test_calls_on_imported_modules_are_ignored(self):
        source = 'import random\nrandom.seed(1)\nprint("ok")\n'
        assert _run(source) == "ok\n"

    def test_calls_on_aliased_imports_are_ignored(self):
        source = (
            "from collections import deque as dq, Counter\n"
            "dq.clear()\n"
            "Counter.clear()\n"
        )
        assert _run(source) == ""

    def test_unknown_method(self):
        output = _run(COUNTER_SOURCE + "c.reset()\n")
        assert output == "Error on line 10: 'Counter' object has no method 'reset'\n"

    def test_missing_attribute(self):
        output = _run(COUNTER_SOURCE + "print(c.missing)\n")
        assert output == "Error on line 10: 'Counter' object has no attribute 'missing'\n"

    def test_attribute_assignment_on_non_object(self):
        output = _run('x = "text"\nx.size = 3\n')
        assert output == "Error on line 2: 'x' is not an object\n"

    def test_errors_are_counted(self):
        session = InterpreterSession("ghost.run()\nghost.stop()\n")
        session.start()
        assert session.stats.errors == 2


class TestInput:
    def test_assignment_from_input(self):
        source = 'name = input("Name: ")\nprint("Hi", name)\n'
        assert _run(source, ["Ada"]) == "Name: Ada\nHi Ada\n"

    def test_callback_receives_prompt_and_variable(self):
        received = []

        def request_input(prompt, variable_name):
            received.append((prompt, variable_name))
            return "x"

        StatementInterpreter().execute('city = input("City? ")\n', request_input)
        assert received == [("City? ", "city")]

    def test_int_conversion(self):
        assert _run('age = int(input("Age: "))\nprint(age)\n', ["41"]) == "Age: 41\n41\n"

    def test_bad_int_is_a_line_error(self):
        output = _run('age = int(input("Age: "))\nprint("next")\n', ["abc"])
        lines = output.splitlines()
        assert lines[0] == "Age: abc"
        assert lines[1].startswith("Error on line 1: invalid literal for int()")
        assert lines[2] == "next"

    def test_bare_input_is_echoed(self):
        assert _run('input("Press enter")\n', ["ok"]) == "Press enterok\n"

    def test_missing_callback_answers_empty_string(self):
        output = StatementInterpreter().execute('name = input("Name: ")\nprint(name)\n')
        assert output == "Name: \n\n"

    def test_echo_can_be_disabled(self):
        interpreter = StatementInterpreter(SimulatorConfig(echo_input=False))
        output = interpreter.execute('name = input("Name: ")\nprint(name)\n', lambda p, v: "Bo")
        assert output == "Bo\n"


class TestInterpreterSession:
    SOURCE = 'print("start")\nname = input("Name: ")\nprint(name)\n'

    def test_suspends_until_input_is_provided(self):
        session = InterpreterSession(self.SOURCE)

        assert session.start() == RunStatus.AWAITING_INPUT
        assert session.status == RunStatus.AWAITING_INPUT
        assert session.output == "start\n"
        assert session.pending_request.prompt == "Name: "
        assert session.pending_request.variable_name == "name"
        assert session.pending_request.line_number == 2

        assert session.provide_input("Lin") == RunStatus.COMPLETED
        assert session.pending_request is None
        assert session.output == "start\nName: Lin\nLin\n"

    def test_source_without_input_completes_on_start(self):
        session = InterpreterSession('print("x")\n')
        assert session.start() == RunStatus.COMPLETED

    def test_input_when_not_waiting_raises(self):
        session = InterpreterSession('print("x")\n')
        session.start()
        with pytest.raises(RuntimeError, match="no input request"):
            session.provide_input("late")

    def test_cannot_start_twice(self):
        session = InterpreterSession('print("x")\n')
        session.start()
        with pytest.raises(RuntimeError, match="already been started"):
            session.start()

    def test_abandon_records_error_and_completes(self):
        session = InterpreterSession(self.SOURCE)
        session.start()

        assert session.abandon("gave up") == RunStatus.COMPLETED
        assert session.output == "start\nError on line 2: gave up\n"

    def test_stats(self):
        session = InterpreterSession(COUNTER_SOURCE + 'x = input("?")\n')
        session.start()
        session.provide_input("1")
        assert session.stats.classes_defined == 1
        assert session.stats.input_requests == 1
        assert session.stats.statements["METHOD_CALL"] == 1


class TestExecuteAsync:
    SOURCE = 'print("before")\nname = input("Name: ")\nprint("after", name)\n'

    def test_resolved_input(self):
        async def request_input(prompt, variable_name):
            return "Kai"

        output = asyncio.run(StatementInterpreter().execute_async(self.SOURCE, request_input))
        assert output == "before\nName: Kai\nafter Kai\n"

    def test_stalled_input_times_out(self):
        async def never(prompt, variable_name):
            await asyncio.sleep(10)
            return "too late"

        output = asyncio.run(
            StatementInterpreter().execute_async(self.SOURCE, never, input_timeout=0.01)
        )
        assert output == "before\nError on line 2: Timed out waiting for input\n"
