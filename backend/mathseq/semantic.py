"""
semantic.py
Scope-aware type checker. Walks the AST once and accumulates errors and
warnings; analysis succeeds iff no error was recorded.
"""

import logging
from typing import assert_never

from .nodes import (
    Assign, BinaryOp, Block, Call, DataType, Expr, ExprStmt, FunctionDecl, If,
    Literal, Program, Return, SequenceLiteral, Stmt, UnaryOp, Variable, VarDecl, While,
)
from .scope import ScopeTable
from .tokens import TokenType

logger = logging.getLogger(__name__)

BUILTINS = {
    'print': DataType.VOID,
    'generate': DataType.SEQUENCE,
    'map': DataType.SEQUENCE,
    'filter': DataType.SEQUENCE,
    'length': DataType.INT,
    'get': DataType.INT,
    'input': DataType.INT,
}

ARITHMETIC = (TokenType.PLUS, TokenType.MINUS, TokenType.MULTIPLY, TokenType.DIVIDE)
ORDERING = (TokenType.LESS, TokenType.LESS_EQUAL, TokenType.GREATER, TokenType.GREATER_EQUAL)
EQUALITY = (TokenType.EQUALS, TokenType.NOT_EQUALS)
LOGICAL = (TokenType.AND, TokenType.OR)

LITERAL_TYPES = {
    TokenType.NUMBER: DataType.INT,
    TokenType.FLOAT: DataType.FLOAT,
    TokenType.STRING: DataType.SEQUENCE,
    TokenType.TRUE: DataType.BOOL,
    TokenType.FALSE: DataType.BOOL,
}


def is_numeric(typ):
    return typ in (DataType.INT, DataType.FLOAT)


def type_compatible(lhs, rhs):
    """Whether a value of type rhs may be stored in a slot of type lhs."""
    if lhs == rhs:
        return True
    if lhs == DataType.FLOAT and rhs == DataType.INT:
        return True
    return False


def assignable(lhs, rhs):
    # UNKNOWN is a wildcard that suppresses further type errors
    if DataType.UNKNOWN in (lhs, rhs):
        return True
    return type_compatible(lhs, rhs)


def operands_compatible(left, right, op):
    if op == TokenType.PLUS and left == DataType.SEQUENCE and right == DataType.SEQUENCE:
        return True
    if op in ARITHMETIC or op in ORDERING:
        return is_numeric(left) and is_numeric(right)
    if op == TokenType.MODULO:
        return left == DataType.INT and right == DataType.INT
    if op in EQUALITY:
        return left == right or (is_numeric(left) and is_numeric(right))
    if op in LOGICAL:
        return left == DataType.BOOL and right == DataType.BOOL
    return False


def format_diagnostic(kind, message, lineno=None):
    if lineno is not None:
        return f"Semantic {kind} at line {lineno}: {message}"
    return f"Semantic {kind}: {message}"


class SemanticAnalyzer:
    def __init__(self):
        self.reset()

    def reset(self):
        self.symbols = ScopeTable()
        self.errors = []
        self.warnings = []
        self.return_type = DataType.VOID
        self.in_function = False
        self.saw_return = False

    def error(self, msg, lineno=None):
        self.errors.append(format_diagnostic("Error", msg, lineno))

    def warning(self, msg, lineno=None):
        self.warnings.append(format_diagnostic("Warning", msg, lineno))

    def analyze(self, program: Program) -> bool:
        self.reset()
        for name, typ in BUILTINS.items():
            self.symbols.declare(name, typ, initialized=True)
        # declare every function up front so bodies may call forward
        for func in program.functions:
            if not self.symbols.declare(func.name, func.return_type, initialized=True):
                self.error(f"Function '{func.name}' already declared", func.lineno)
        for func in program.functions:
            self.analyze_function(func)
        self.check_main(program)
        logger.debug("semantic analysis: %d errors, %d warnings", len(self.errors), len(self.warnings))
        return not self.errors

    def global_symbols(self):
        return {s.name: str(s.data_type) for s in self.symbols.frames[0].values()}

    def analyze_function(self, func: FunctionDecl):
        self.symbols.enter_scope()
        self.in_function = True
        self.saw_return = False
        self.return_type = func.return_type
        for param in func.params:
            if not self.symbols.declare(param.name, param.data_type, initialized=True):
                self.error(f"Parameter '{param.name}' already declared", param.lineno)
        for stmt in func.body:
            self.analyze_statement(stmt)
        if func.return_type != DataType.VOID and not self.saw_return:
            self.warning(f"Function '{func.name}' may not return a value", func.lineno)
        self.symbols.exit_scope()
        self.in_function = False

    def check_main(self, program):
        for func in program.functions:
            if func.name == 'main' and func.return_type == DataType.INT and not func.params:
                return
        self.warning("Program should have a 'main' function with signature: func main() -> int")

    # -------------------------------------------------
    # statements
    # -------------------------------------------------
    def analyze_block(self, statements):
        self.symbols.enter_scope()
        for stmt in statements:
            self.analyze_statement(stmt)
        self.symbols.exit_scope()

    def analyze_statement(self, stmt: Stmt):
        if isinstance(stmt, VarDecl):
            self.analyze_var_decl(stmt)
        elif isinstance(stmt, Assign):
            self.analyze_assign(stmt)
        elif isinstance(stmt, If):
            self.check_condition(stmt.cond, stmt.lineno)
            self.analyze_block(stmt.then_block)
            if stmt.else_block:
                self.analyze_block(stmt.else_block)
        elif isinstance(stmt, While):
            self.check_condition(stmt.cond, stmt.lineno)
            self.analyze_block(stmt.body)
        elif isinstance(stmt, Return):
            self.analyze_return(stmt)
        elif isinstance(stmt, ExprStmt):
            self.infer_expr_type(stmt.expr)
        elif isinstance(stmt, Block):
            self.analyze_block(stmt.statements)
        else:
            assert_never(stmt)

    def analyze_var_decl(self, decl):
        if not self.symbols.declare(decl.name, decl.var_type):
            self.error(f"Variable '{decl.name}' already declared in this scope", decl.lineno)
            return
        if decl.init_expr is None:
            return
        init_type = self.infer_expr_type(decl.init_expr)
        if assignable(decl.var_type, init_type):
            self.symbols.mark_initialized(decl.name)
        else:
            self.error(f"Type mismatch in initialization of '{decl.name}', "
                       f"expected {decl.var_type} but got {init_type}", decl.lineno)

    def analyze_assign(self, stmt):
        symbol = self.symbols.lookup(stmt.name)
        if symbol is None:
            self.error(f"Undefined variable '{stmt.name}'", stmt.lineno)
            return
        if symbol.constant:
            self.error(f"Cannot assign to constant '{stmt.name}'", stmt.lineno)
            return
        value_type = self.infer_expr_type(stmt.expr)
        if assignable(symbol.data_type, value_type):
            self.symbols.mark_initialized(stmt.name)
        else:
            self.error(f"Type mismatch in assignment to '{stmt.name}', "
                       f"expected {symbol.data_type} but got {value_type}", stmt.lineno)

    def check_condition(self, cond, lineno):
        ct = self.infer_expr_type(cond)
        if ct not in (DataType.BOOL, DataType.UNKNOWN):
            self.error("Condition expression must be boolean", lineno)

    def analyze_return(self, stmt):
        if not self.in_function:
            self.error("Return statement outside function", stmt.lineno)
            return
        self.saw_return = True
        if stmt.value is not None:
            rt = self.infer_expr_type(stmt.value)
            if not assignable(self.return_type, rt):
                self.error(f"Return type mismatch, expected {self.return_type} but got {rt}", stmt.lineno)
        elif self.return_type != DataType.VOID:
            self.error(f"Function must return a value of type {self.return_type}", stmt.lineno)

    # -------------------------------------------------
    # expressions
    # -------------------------------------------------
    def infer_expr_type(self, expr: Expr) -> DataType:
        if isinstance(expr, BinaryOp):
            typ = self.infer_binary(expr)
        elif isinstance(expr, UnaryOp):
            typ = self.infer_unary(expr)
        elif isinstance(expr, Literal):
            typ = LITERAL_TYPES.get(expr.token.type, DataType.UNKNOWN)
        elif isinstance(expr, Variable):
            typ = self.infer_variable(expr)
        elif isinstance(expr, Call):
            typ = self.infer_call(expr)
        elif isinstance(expr, SequenceLiteral):
            typ = self.infer_sequence(expr)
        else:
            assert_never(expr)
        expr.data_type = typ
        return typ

    def infer_binary(self, expr):
        lt = self.infer_expr_type(expr.left)
        rt = self.infer_expr_type(expr.right)
        op = expr.op.type
        unknown = DataType.UNKNOWN in (lt, rt)
        if not unknown and not operands_compatible(lt, rt, op):
            self.error(f"Type mismatch in binary operation '{expr.op.value}', left: {lt}, right: {rt}",
                       expr.lineno)
            return DataType.UNKNOWN
        if op in EQUALITY or op in ORDERING or op in LOGICAL:
            return DataType.BOOL
        if unknown:
            return DataType.UNKNOWN
        if op == TokenType.MODULO:
            return DataType.INT
        if op == TokenType.PLUS and lt == DataType.SEQUENCE:
            return DataType.SEQUENCE
        if lt == DataType.FLOAT or rt == DataType.FLOAT:
            return DataType.FLOAT
        return DataType.INT

    def infer_unary(self, expr):
        t = self.infer_expr_type(expr.operand)
        if t == DataType.UNKNOWN:
            return DataType.BOOL if expr.op.type == TokenType.NOT else DataType.UNKNOWN
        if expr.op.type == TokenType.MINUS and not is_numeric(t):
            self.error(f"Invalid unary operation '{expr.op.value}' for type {t}", expr.lineno)
            return DataType.UNKNOWN
        if expr.op.type == TokenType.NOT:
            if t != DataType.BOOL:
                self.error(f"Invalid unary operation '{expr.op.value}' for type {t}", expr.lineno)
                return DataType.UNKNOWN
            return DataType.BOOL
        return t

    def infer_variable(self, expr):
        symbol = self.symbols.lookup(expr.name)
        if symbol is None:
            self.error(f"Undefined variable '{expr.name}'", expr.lineno)
            return DataType.UNKNOWN
        if not symbol.initialized:
            self.warning(f"Variable '{expr.name}' may be uninitialized", expr.lineno)
        return symbol.data_type

    def infer_call(self, expr):
        name = expr.callee
        args = expr.arguments
        if name == 'print' or name == 'generate':
            for arg in args:
                self.infer_expr_type(arg)
            return BUILTINS[name]
        if name == 'length':
            if len(args) != 1:
                self.error("Function 'length' expects 1 argument", expr.lineno)
                return DataType.INT
            if self.infer_expr_type(args[0]) not in (DataType.SEQUENCE, DataType.UNKNOWN):
                self.error("Function 'length' expects a sequence argument", expr.lineno)
            return DataType.INT
        if name == 'get':
            if len(args) != 2:
                self.error("Array indexing requires array and index", expr.lineno)
                return DataType.INT
            seq_type = self.infer_expr_type(args[0])
            index_type = self.infer_expr_type(args[1])
            if seq_type not in (DataType.SEQUENCE, DataType.UNKNOWN):
                self.error("Cannot index non-sequence type", expr.lineno)
            if index_type not in (DataType.INT, DataType.UNKNOWN):
                self.error("Array index must be an integer", expr.lineno)
            # element types are not tracked; sequences are assumed to hold ints
            return DataType.INT
        if name == 'map' or name == 'filter':
            if len(args) != 2:
                self.error(f"Function '{name}' expects 2 arguments", expr.lineno)
            else:
                for arg in args:
                    self.infer_expr_type(arg)
            return DataType.SEQUENCE
        if name == 'input':
            if len(args) > 1:
                self.error("Function 'input' expects 0 or 1 argument", expr.lineno)
            elif args:
                if self.infer_expr_type(args[0]) not in (DataType.SEQUENCE, DataType.UNKNOWN):
                    self.error("Function 'input' expects a string literal prompt", expr.lineno)
            return DataType.INT

        symbol = self.symbols.lookup(name)
        if symbol is None:
            self.error(f"Undefined function '{name}'", expr.lineno)
            return DataType.UNKNOWN
        for arg in args:
            self.infer_expr_type(arg)
        return symbol.data_type

    def infer_sequence(self, expr):
        if not expr.elements:
            return DataType.SEQUENCE
        first = self.infer_expr_type(expr.elements[0])
        for elem in expr.elements[1:]:
            et = self.infer_expr_type(elem)
            if not assignable(first, et):
                self.warning("Inconsistent types in sequence", elem.lineno)
        return DataType.SEQUENCE
