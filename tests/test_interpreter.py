"""Interpreter tests."""

import io

import pytest

from conftest import main_body, parse_source
from mathseq.interpreter import (
    Interpreter, RuntimeValue, ValueKind, parse_input_line, run_program,
)


def run(code, stdin=None, stdout=None):
    return run_program(parse_source(code), stdin=stdin, stdout=stdout)


def output_of(stmts):
    result = run(main_body(stmts))
    assert result.success, result.error
    return result.output


def test_arithmetic_and_exit_code():
    result = run(main_body("let x: int = 2 + 3 * 4;\nprint x;\nreturn x;"))
    assert result.success
    assert result.output == ["14"]
    assert result.exit_code == 14


def test_sequence_length():
    result = run(main_body("let s: sequence = [1,2,3];\nprint length(s);\nreturn 0;"))
    assert result.output == ["3"]
    assert result.exit_code == 0


def test_equality_compares_printed_forms():
    assert output_of("print 1==1;\nreturn 0;") == ["true"]
    assert output_of("print 1 == 1.0;\nreturn 0;") == ["true"]
    assert output_of('print [1, 2] != [1, 2];\nreturn 0;') == ["false"]


def test_index_out_of_range_keeps_prior_output():
    result = run(main_body("let s: sequence = [1,2];\nprint get(s, 5);\nreturn 0;"))
    assert not result.success
    assert "sequence index out of range" in result.error
    assert result.output == []

    result = run(main_body("print 1;\nlet s: sequence = [1,2];\nprint s[-1];\nreturn 0;"))
    assert not result.success
    assert result.output == ["1"]


def test_self_assignment_program():
    assert output_of("let a: int = 5;\na = a + 0;\nprint a;\nreturn 0;") == ["5"]


def test_integer_division_truncates():
    assert output_of("print 7 / 2;\nprint (-7 / 2);\nreturn 0;") == ["3", "-3"]


def test_float_arithmetic_and_formatting():
    assert output_of("print 7.0 / 2;\nprint 1.0 * 1000000;\nprint 2.0 * 0.5;\nreturn 0;") == [
        "3.5", "1e+06", "1",
    ]


def test_modulo_takes_sign_of_dividend():
    assert output_of("print 7 % 3;\nprint (-7 % 3);\nprint 7 % -3;\nreturn 0;") == ["1", "-1", "1"]


@pytest.mark.parametrize("expr", ["1 / 0", "1 % 0"])
def test_division_by_zero(expr):
    result = run(main_body(f"print {expr};\nreturn 0;"))
    assert not result.success
    assert result.error == "Runtime error: division by zero"


def test_printing_mixed_values():
    assert output_of('print "x =" 5 true [1, [2]];\nreturn 0;') == ["x = 5 true [1, [2]]"]


def test_sequence_concatenation():
    assert output_of("let s: sequence = [1] + [2, 3];\nprint s;\nreturn 0;") == ["[1, 2, 3]"]


def test_logic_and_truthiness():
    assert output_of("print 1 < 2 and not false;\nprint false or 0.0000000001;\nreturn 0;") == [
        "true", "false",
    ]


def test_unary_minus_requires_number():
    result = run(main_body('let y: int = -"abc";\nreturn 0;'))
    assert not result.success
    assert "operator '-' requires numeric operands" in result.error


def test_while_loop():
    code = main_body("let i: int = 0;\nwhile i < 3 { print i; i = i + 1; }\nreturn i;")
    result = run(code)
    assert result.output == ["0", "1", "2"]
    assert result.exit_code == 3


def test_return_unwinds_from_nested_blocks():
    code = (
        "func first_over(limit: int) -> int {\n"
        "  let i: int = 0;\n"
        "  while true {\n"
        "    if i * i > limit { return i; }\n"
        "    i = i + 1;\n"
        "  }\n"
        "  return -1;\n"
        "}\n" + main_body("print first_over(10);\nreturn 0;")
    )
    assert run(code).output == ["4"]


def test_recursion():
    code = (
        "func fact(n: int) -> int { if n <= 1 { return 1; } return n * fact(n - 1); }\n"
        + main_body("return fact(5);")
    )
    assert run(code).exit_code == 120


def test_runaway_recursion_is_a_runtime_failure():
    code = "func down(n: int) -> int { return down(n + 1); }\n" + main_body("return down(0);")
    result = run(code)
    assert not result.success
    assert "recursion" in result.error


def test_block_scoping():
    result = run(main_body("if true { let y: int = 1; }\nprint y;\nreturn 0;"))
    assert not result.success
    assert result.error == "Runtime error: Undefined variable 'y'"


def test_callee_cannot_see_caller_locals():
    code = "func peek() -> int { return x; }\n" + main_body("let x: int = 1;\nreturn peek();")
    result = run(code)
    assert not result.success
    assert "Undefined variable 'x'" in result.error


def test_assignment_to_undeclared_name_fails():
    result = run(main_body("z = 1;\nreturn 0;"))
    assert not result.success
    assert "Undefined variable 'z'" in result.error


def test_missing_arguments_bind_void():
    code = "func show(a: int, b: int) -> int { print a b; return 0; }\n" + main_body("return show(1);")
    assert run(code).output == ["1 void"]


def test_map_and_filter():
    code = (
        "func sq(n: int) -> int { return n * n; }\n"
        "func even(n: int) -> bool { return n % 2 == 0; }\n"
        + main_body("let s: sequence = [1, 2, 3, 4];\nprint map(s, sq);\nprint filter(s, even);\nreturn 0;")
    )
    assert run(code).output == ["[1, 4, 9, 16]", "[2, 4]"]


def test_map_requires_function_name():
    code = "func sq(n: int) -> int { return n * n; }\n" + main_body("print map([1], sq(2));\nreturn 0;")
    result = run(code)
    assert not result.success
    assert result.error == "Runtime error: expected function identifier"


def test_map_with_unknown_function():
    result = run(main_body("print map([1], nothing);\nreturn 0;"))
    assert result.error == "Runtime error: Undefined function 'nothing'"


def test_generate_evaluates_arguments_and_returns_empty():
    code = "func noisy() -> int { print 9; return 1; }\n" + main_body("print generate(noisy(), 3);\nreturn 0;")
    assert run(code).output == ["9", "[]"]


def test_builtin_arity_errors():
    result = run(main_body("print length([1], [2]);\nreturn 0;"))
    assert result.error == "Runtime error: length expects 1 argument"
    result = run(main_body("print get([1]);\nreturn 0;"))
    assert result.error == "Runtime error: get expects 2 arguments"


def test_input_reads_and_prompts():
    stdout = io.StringIO()
    code = main_body('let n: int = input("Enter");\nprint n + 1;\nreturn 0;')
    result = run(code, stdin=io.StringIO("  41 \n"), stdout=stdout)
    assert result.output == ["42"]
    assert stdout.getvalue() == "Enter > "


def test_input_at_end_of_stream_is_zero():
    stdout = io.StringIO()
    result = run(main_body("print input();\nreturn 0;"), stdin=io.StringIO(""), stdout=stdout)
    assert result.output == ["0"]
    assert stdout.getvalue() == "> "


@pytest.mark.parametrize("line, expected", [
    ("12", 12),
    ("-5\n", -5),
    ("3.9", 3),
    ("-2.5e1", -25),
    ("7abc", 7),
    ("abc", 0),
    ("", 0),
])
def test_parse_input_line(line, expected):
    assert parse_input_line(line) == expected


def test_missing_main():
    result = run("func helper() -> int { return 1; }")
    assert not result.success
    assert result.error == "No 'main' function found"
    assert result.output == []


def test_main_with_parameters_is_rejected():
    result = run("func main(n: int) -> int { print n; return 0; }")
    assert not result.success
    assert result.output == []


def test_void_main_exits_zero():
    result = run("func main() -> void { print 1; }")
    assert result.success
    assert result.exit_code == 0


def test_runtime_values():
    seq = RuntimeValue.from_sequence([RuntimeValue.from_int(1), RuntimeValue.from_float(2.5)])
    assert seq.kind == ValueKind.SEQUENCE
    assert str(seq) == "[1, 2.5]"
    assert isinstance(seq.payload, tuple)
    assert not RuntimeValue.void().is_truthy()
    assert not RuntimeValue.from_string("").is_truthy()
    assert RuntimeValue.from_float(3.9).as_int() == 3


def test_interpreter_can_be_rerun():
    interp = Interpreter(parse_source(main_body("print 1;\nreturn 2;")))
    first = interp.run()
    second = interp.run()
    assert first.output == second.output == ["1"]
    assert second.exit_code == 2


def test_non_integer_exit_value_fails_the_run():
    result = run("func main() -> sequence { print 1; return [1, 2]; }")
    assert not result.success
    assert result.error == "Runtime error: value is not an integer"
    assert result.output == ["1"]
