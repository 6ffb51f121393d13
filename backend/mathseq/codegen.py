"""
codegen.py
Lowers the AST to a linear three-address code (TAC) listing.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import assert_never

from .nodes import (
    Assign, BinaryOp, Block, Call, DataType, Expr, ExprStmt, FunctionDecl, If,
    Literal, Program, Return, SequenceLiteral, Stmt, UnaryOp, Variable, VarDecl, While,
)
from .scope import ScopeTable
from .tokens import TokenType

logger = logging.getLogger(__name__)


class OperandKind(Enum):
    CONST = 'const'
    NAME = 'name'    # user variable, or the param_<name> binding source
    TEMP = 'temp'    # compiler temporary t<N>
    LABEL = 'label'  # compiler label L<N>, or a function entry label
    FUNC = 'func'    # callee of a call instruction


@dataclass(frozen=True)
class Operand:
    text: str
    kind: OperandKind

    def __str__(self):
        return self.text

    @property
    def is_temp(self):
        return self.kind == OperandKind.TEMP

    @property
    def is_variable(self):
        # something an instruction can write to and a later one can read
        return self.kind in (OperandKind.NAME, OperandKind.TEMP)


def const(text):
    return Operand(str(text), OperandKind.CONST)


def name(text):
    return Operand(text, OperandKind.NAME)


EMPTY_SEQUENCE = const('[]')

# opcodes other than operator symbols
LABEL = 'label'
GOTO = 'goto'
IF_FALSE = 'iffalse'
IF = 'if'
PARAM = 'param'
CALL = 'call'
RETURN = 'return'
ASSIGN = 'assign'
STORE = 'STORE'

BINARY_OPS = {
    TokenType.PLUS: '+',
    TokenType.MINUS: '-',
    TokenType.MULTIPLY: '*',
    TokenType.DIVIDE: '/',
    TokenType.MODULO: '%',
    TokenType.EQUALS: '==',
    TokenType.NOT_EQUALS: '!=',
    TokenType.LESS: '<',
    TokenType.LESS_EQUAL: '<=',
    TokenType.GREATER: '>',
    TokenType.GREATER_EQUAL: '>=',
    TokenType.AND: '&&',
    TokenType.OR: '||',
}

UNARY_OPS = {
    TokenType.MINUS: '-',
    TokenType.NOT: '!',
}


@dataclass(frozen=True)
class TACInstruction:
    op: str
    dest: Operand = None
    arg1: Operand = None
    arg2: Operand = None
    args: tuple = ()  # call arguments
    lineno: int = None

    def sources(self):
        """Operands this instruction reads."""
        found = [a for a in (self.arg1, self.arg2) if a is not None]
        found.extend(self.args)
        return found

    def __str__(self):
        if self.op == LABEL:
            return f"{self.dest}:"
        if self.op == GOTO:
            return f"goto {self.dest}"
        if self.op == IF_FALSE:
            return f"ifFalse {self.arg1} goto {self.dest}"
        if self.op == IF:
            return f"if {self.arg1} goto {self.dest}"
        if self.op == PARAM:
            return f"param {self.arg1}"
        if self.op == CALL:
            if not self.args:
                return f"{self.dest} = call {self.arg1}"
            return f"{self.dest} = call {self.arg1}, {', '.join(str(a) for a in self.args)}"
        if self.op == RETURN:
            return "return" if self.arg1 is None else f"return {self.arg1}"
        if self.op == ASSIGN:
            return f"{self.dest} = {self.arg1}"
        if self.arg2 is None:
            return f"{self.dest} = {self.arg1} {self.op}"
        return f"{self.dest} = {self.arg1} {self.op} {self.arg2}"


def format_tac(tac):
    return [str(instr) for instr in tac]


def literal_text(token):
    if token.type == TokenType.STRING:
        return f'"{token.value}"'
    return token.value


class IRGenerator:
    def __init__(self):
        self.tac = []
        self.symbols = ScopeTable()
        self.temp_count = 0
        self.label_count = 0

    def new_temp(self):
        t = Operand(f"t{self.temp_count}", OperandKind.TEMP)
        self.temp_count += 1
        return t

    def new_label(self):
        label = Operand(f"L{self.label_count}", OperandKind.LABEL)
        self.label_count += 1
        return label

    def emit(self, op, lineno=None, **operands):
        self.tac.append(TACInstruction(op, lineno=lineno, **operands))

    def gen(self, program: Program):
        self.tac = []
        self.symbols = ScopeTable()
        self.temp_count = 0
        self.label_count = 0
        for func in program.functions:
            self.gen_function(func)
        logger.debug("generated %d TAC instructions", len(self.tac))
        return self.tac

    def gen_function(self, func: FunctionDecl):
        self.emit(LABEL, func.lineno, dest=Operand(func.name, OperandKind.LABEL))
        self.symbols.enter_scope()
        for param in func.params:
            self.symbols.declare(param.name, param.data_type, initialized=True)
            self.emit(ASSIGN, func.lineno, dest=name(param.name), arg1=name(f"param_{param.name}"))
        for stmt in func.body:
            self.gen_statement(stmt)
        if func.return_type == DataType.VOID:
            self.emit(RETURN, func.lineno)
        self.symbols.exit_scope()

    def gen_block(self, statements):
        self.symbols.enter_scope()
        for stmt in statements:
            self.gen_statement(stmt)
        self.symbols.exit_scope()

    def gen_statement(self, stmt: Stmt):
        if isinstance(stmt, VarDecl):
            self.symbols.declare(stmt.name, stmt.var_type)
            if stmt.init_expr is not None:
                value = self.gen_expr(stmt.init_expr)
                self.emit(ASSIGN, stmt.lineno, dest=name(stmt.name), arg1=value)
                self.symbols.mark_initialized(stmt.name)
        elif isinstance(stmt, Assign):
            value = self.gen_expr(stmt.expr)
            self.emit(ASSIGN, stmt.lineno, dest=name(stmt.name), arg1=value)
            self.symbols.mark_initialized(stmt.name)
        elif isinstance(stmt, If):
            cond = self.gen_expr(stmt.cond)
            l_else = self.new_label()
            l_end = self.new_label()
            self.emit(IF_FALSE, stmt.lineno, dest=l_else, arg1=cond)
            self.gen_block(stmt.then_block)
            self.emit(GOTO, stmt.lineno, dest=l_end)
            self.emit(LABEL, stmt.lineno, dest=l_else)
            self.gen_block(stmt.else_block)
            self.emit(LABEL, stmt.lineno, dest=l_end)
        elif isinstance(stmt, While):
            l_start = self.new_label()
            l_cond = self.new_label()
            # only reached by falling out of the conditional jump
            l_end = self.new_label()
            self.emit(GOTO, stmt.lineno, dest=l_cond)
            self.emit(LABEL, stmt.lineno, dest=l_start)
            self.gen_block(stmt.body)
            self.emit(LABEL, stmt.lineno, dest=l_cond)
            cond = self.gen_expr(stmt.cond)
            self.emit(IF, stmt.lineno, dest=l_start, arg1=cond)
            self.emit(LABEL, stmt.lineno, dest=l_end)
        elif isinstance(stmt, Return):
            value = self.gen_expr(stmt.value) if stmt.value is not None else None
            self.emit(RETURN, stmt.lineno, arg1=value)
        elif isinstance(stmt, ExprStmt):
            self.gen_expr(stmt.expr)
        elif isinstance(stmt, Block):
            self.gen_block(stmt.statements)
        else:
            assert_never(stmt)

    def gen_expr(self, expr: Expr) -> Operand:
        if isinstance(expr, Literal):
            return const(literal_text(expr.token))
        if isinstance(expr, Variable):
            return name(expr.name)
        if isinstance(expr, BinaryOp):
            a = self.gen_expr(expr.left)
            b = self.gen_expr(expr.right)
            dest = self.new_temp()
            self.emit(BINARY_OPS[expr.op.type], expr.lineno, dest=dest, arg1=a, arg2=b)
            return dest
        if isinstance(expr, UnaryOp):
            a = self.gen_expr(expr.operand)
            dest = self.new_temp()
            self.emit(UNARY_OPS[expr.op.type], expr.lineno, dest=dest, arg1=a)
            return dest
        if isinstance(expr, Call):
            dest = self.new_temp()
            args = []
            for arg in expr.arguments:
                value = self.gen_expr(arg)
                self.emit(PARAM, expr.lineno, arg1=value)
                args.append(value)
            callee = Operand(expr.callee, OperandKind.FUNC)
            self.emit(CALL, expr.lineno, dest=dest, arg1=callee, args=tuple(args))
            return dest
        if isinstance(expr, SequenceLiteral):
            dest = self.new_temp()
            self.emit(ASSIGN, expr.lineno, dest=dest, arg1=EMPTY_SEQUENCE)
            for i, elem in enumerate(expr.elements):
                value = self.gen_expr(elem)
                self.emit(STORE, expr.lineno, dest=dest, arg1=value, arg2=const(i))
            return dest
        assert_never(expr)


def generate(program):
    return IRGenerator().gen(program)
