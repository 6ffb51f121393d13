"""Parser tests."""

import pytest

from conftest import main_body, parse_source
from mathseq.nodes import (
    Assign, BinaryOp, Block, Call, DataType, ExprStmt, If, Literal, Param, Return,
    SequenceLiteral, UnaryOp, Variable, VarDecl, While, dump, node_to_dict,
)
from mathseq.parser import ParseError, Parser
from mathseq.tokens import TokenType, tokenize


def body_of(stmts):
    return parse_source(main_body(stmts)).functions[0].body


def test_function_signature():
    prog = parse_source("func add(a: int, b: float) -> float { return a + b; }")
    func = prog.functions[0]
    assert func.name == "add"
    assert func.params == [Param("a", DataType.INT, 1), Param("b", DataType.FLOAT, 1)]
    assert func.return_type == DataType.FLOAT
    assert isinstance(func.body[0], Return)


def test_void_return_type():
    prog = parse_source("func show() -> void { print 1; }")
    assert prog.functions[0].return_type == DataType.VOID


def test_precedence():
    decl = body_of("let x: int = 2 + 3 * 4;")[0]
    assert isinstance(decl, VarDecl)
    expr = decl.init_expr
    assert isinstance(expr, BinaryOp) and expr.op.type == TokenType.PLUS
    assert isinstance(expr.right, BinaryOp) and expr.right.op.type == TokenType.MULTIPLY


def test_left_associativity():
    expr = body_of("let x: int = 10 - 3 - 2;")[0].init_expr
    assert expr.op.type == TokenType.MINUS
    assert isinstance(expr.left, BinaryOp)
    assert expr.right.value == "2"


def test_logical_operators_bind_loosest():
    expr = body_of("let b: bool = 1 < 2 and not false or true;")[0].init_expr
    assert expr.op.type == TokenType.OR
    assert expr.left.op.type == TokenType.AND
    assert isinstance(expr.left.right, UnaryOp)


def test_semicolons_are_optional():
    stmts = body_of("let x: int = 1\nx = x + 1\nreturn x")
    assert [type(s) for s in stmts] == [VarDecl, Assign, Return]


def test_if_else_and_while():
    stmts = body_of("if x > 1 { print x; } else { print 0; }\nwhile x < 3 { x = x + 1; }")
    assert isinstance(stmts[0], If)
    assert len(stmts[0].then_block) == 1 and len(stmts[0].else_block) == 1
    assert isinstance(stmts[1], While)
    assert isinstance(stmts[1].body[0], Assign)


def test_print_arguments_are_juxtaposed():
    stmts = body_of('print "x =" (x + 1) x;')
    first = stmts[0]
    assert isinstance(first, ExprStmt) and isinstance(first.expr, Call)
    assert first.expr.callee == "print"
    assert [type(a) for a in first.expr.arguments] == [Literal, BinaryOp, Variable]


def test_print_argument_extends_over_operators():
    # deliberate: an operator after an argument continues that argument, so
    # `print 3 - 1` prints 2 rather than 3 followed by a stray `- 1`
    args = body_of("print \"sum\" a + 1 b;")[0].expr.arguments
    assert [type(a) for a in args] == [Literal, BinaryOp, Variable]
    args = body_of("print 1==1;")[0].expr.arguments
    assert len(args) == 1 and args[0].op.type == TokenType.EQUALS
    stmts = body_of("print 3 - 1;")
    assert len(stmts) == 1
    assert dump(stmts[0]) == "ExprStmt(Call(print(BinaryOp(Literal(3) - Literal(1)))))"


def test_print_stops_before_assignment():
    stmts = body_of("print a\nb = 3")
    assert [a.name for a in stmts[0].expr.arguments] == ["a"]
    assert isinstance(stmts[1], Assign)


def test_print_stops_at_next_statement():
    stmts = body_of("print x\nprint y\nreturn 0")
    assert len(stmts) == 3
    assert [a.name for a in stmts[0].expr.arguments] == ["x"]


def test_indexing_desugars_to_get():
    expr = body_of("let v: int = s[1 + 1];")[0].init_expr
    assert isinstance(expr, Call) and expr.callee == "get"
    assert isinstance(expr.arguments[0], Variable)
    assert isinstance(expr.arguments[1], BinaryOp)


def test_sequence_literal_with_trailing_comma():
    expr = body_of("let s: sequence = [1, 2, 3,];")[0].init_expr
    assert isinstance(expr, SequenceLiteral)
    assert len(expr.elements) == 3


def test_nested_block():
    stmts = body_of("{ let y: int = 1; }")
    assert isinstance(stmts[0], Block)


def test_bare_return():
    stmts = body_of("return;")
    assert stmts[0].value is None


def test_missing_function_keyword():
    with pytest.raises(ParseError) as exc:
        parse_source("let x: int = 1;")
    assert str(exc.value) == "Expected function declaration at line 1"


def test_unknown_parameter_type():
    with pytest.raises(ParseError) as exc:
        parse_source("func f(a: widget) -> int { return 0; }")
    assert "Unknown parameter type: 'widget'" in str(exc.value)


def test_missing_closing_brace():
    with pytest.raises(ParseError) as exc:
        parse_source("func main() -> int {\n return 0;\n")
    assert "Expected '}' after block" in str(exc.value)


def test_parser_reports_error_without_raising():
    parser = Parser(tokenize("func main() -> int { let = 3; }"))
    assert parser.parse() is None
    assert "Expected variable name" in str(parser.error)


def test_dump_and_dict():
    prog = parse_source("func main() -> int { let x: int = -1; return x; }")
    text = dump(prog)
    assert "VarDecl(x:int = UnaryOp(- Literal(1)))" in text
    d = node_to_dict(prog)
    assert d["type"] == "Program"
    func = d["functions"][0]
    assert func["name"] == "main"
    assert func["body"][0]["init_expr"]["type"] == "UnaryOp"
