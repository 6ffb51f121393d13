"""
interpreter.py
Tree-walking evaluator for MathSeq programs. Runs directly on the AST and is
independent of the generated TAC.
"""

import logging
import math
import re
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import assert_never

from .nodes import (
    Assign, BinaryOp, Block, Call, Expr, ExprStmt, If, Literal, Return,
    SequenceLiteral, Stmt, UnaryOp, Variable, VarDecl, While,
)
from .tokens import TokenType

logger = logging.getLogger(__name__)

INT_TEXT = re.compile(r'[+-]?\d+')
FLOAT_PREFIX = re.compile(r'[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?')


class InterpreterError(Exception):
    pass


class ValueKind(Enum):
    VOID = 'void'
    INT = 'int'
    FLOAT = 'float'
    BOOL = 'bool'
    STRING = 'string'
    SEQUENCE = 'sequence'


@dataclass(frozen=True)
class RuntimeValue:
    kind: ValueKind = ValueKind.VOID
    payload: object = None  # sequences hold a tuple of RuntimeValue

    @classmethod
    def void(cls):
        return cls()

    @classmethod
    def from_int(cls, value):
        return cls(ValueKind.INT, int(value))

    @classmethod
    def from_float(cls, value):
        return cls(ValueKind.FLOAT, float(value))

    @classmethod
    def from_bool(cls, value):
        return cls(ValueKind.BOOL, bool(value))

    @classmethod
    def from_string(cls, value):
        return cls(ValueKind.STRING, value)

    @classmethod
    def from_sequence(cls, values):
        return cls(ValueKind.SEQUENCE, tuple(values))

    def as_float(self):
        if self.kind in (ValueKind.INT, ValueKind.FLOAT, ValueKind.BOOL):
            return float(self.payload)
        raise InterpreterError("Runtime error: value is not numeric")

    def as_int(self):
        if self.kind in (ValueKind.INT, ValueKind.BOOL):
            return int(self.payload)
        if self.kind == ValueKind.FLOAT:
            return truncate(self.payload)
        raise InterpreterError("Runtime error: value is not an integer")

    def is_truthy(self):
        if self.kind == ValueKind.VOID:
            return False
        if self.kind == ValueKind.FLOAT:
            return abs(self.payload) > 1e-9
        if self.kind in (ValueKind.BOOL, ValueKind.INT):
            return self.payload != 0
        return len(self.payload) > 0

    def __str__(self):
        if self.kind == ValueKind.VOID:
            return "void"
        if self.kind == ValueKind.BOOL:
            return "true" if self.payload else "false"
        if self.kind == ValueKind.FLOAT:
            return '%g' % self.payload
        if self.kind == ValueKind.SEQUENCE:
            return "[" + ", ".join(str(v) for v in self.payload) + "]"
        return str(self.payload)


def truncate(value):
    if not math.isfinite(value):
        raise InterpreterError("Runtime error: numeric overflow")
    return int(value)


@dataclass(frozen=True)
class Returned:
    """Result of executing a `return`; carries the value up to the call."""
    value: RuntimeValue


@dataclass
class ExecutionResult:
    success: bool = False
    exit_code: int = 0
    output: list = field(default_factory=list)
    error: str = None


ARITHMETIC = {
    TokenType.PLUS: lambda a, b: a + b,
    TokenType.MINUS: lambda a, b: a - b,
    TokenType.MULTIPLY: lambda a, b: a * b,
    TokenType.DIVIDE: lambda a, b: a / b,
}

ORDERING = {
    TokenType.LESS: lambda a, b: a < b,
    TokenType.LESS_EQUAL: lambda a, b: a <= b,
    TokenType.GREATER: lambda a, b: a > b,
    TokenType.GREATER_EQUAL: lambda a, b: a >= b,
}


def parse_input_line(line):
    """Whole integer, else the truncated leading float, else 0."""
    text = line.strip()
    if INT_TEXT.fullmatch(text):
        return int(text)
    m = FLOAT_PREFIX.match(text)
    if m:
        try:
            return truncate(float(m.group()))
        except InterpreterError:
            return 0
    return 0


class Interpreter:
    def __init__(self, program, stdin=None, stdout=None):
        self.program = program
        self.stdin = stdin
        self.stdout = stdout
        self.functions = {}
        if program is not None:
            for func in program.functions:
                self.functions[func.name] = func
        self.frames = []
        self.base = 0  # first frame owned by the active call
        self.output = []
        self.builtins = {
            'print': self.builtin_print,
            'length': self.builtin_length,
            'get': self.builtin_get,
            'map': self.builtin_map,
            'filter': self.builtin_filter,
            'generate': self.builtin_generate,
            'input': self.builtin_input,
        }

    # -------------------------------------------------
    # entry point
    # -------------------------------------------------
    def run(self):
        result = ExecutionResult()
        if self.program is None:
            result.error = "No program loaded"
            return result
        main = self.functions.get('main')
        if main is None:
            result.error = "No 'main' function found"
            return result
        if main.params:
            result.error = "'main' must not take parameters"
            return result

        self.output = []
        self.frames = []
        self.base = 0
        try:
            value = self.call_function(main, [])
            result.exit_code = 0 if value.kind == ValueKind.VOID else value.as_int()
            result.success = True
        except InterpreterError as e:
            result.error = str(e)
        except RecursionError:
            result.error = "Runtime error: maximum recursion depth exceeded"
        result.output = list(self.output)
        if result.error:
            logger.info("run failed: %s", result.error)
        return result

    # -------------------------------------------------
    # environment
    # -------------------------------------------------
    def define(self, name, value):
        self.frames[-1][name] = value

    def find_frame(self, name):
        for frame in reversed(self.frames[self.base:]):
            if name in frame:
                return frame
        return None

    def assign(self, name, value):
        frame = self.find_frame(name)
        if frame is None:
            raise InterpreterError(f"Runtime error: Undefined variable '{name}'")
        frame[name] = value

    def lookup(self, name):
        frame = self.find_frame(name)
        if frame is None:
            raise InterpreterError(f"Runtime error: Undefined variable '{name}'")
        return frame[name]

    def call_function(self, func, args):
        saved_base = self.base
        self.base = len(self.frames)
        self.frames.append({})
        try:
            for i, param in enumerate(func.params):
                self.define(param.name, args[i] if i < len(args) else RuntimeValue.void())
            outcome = self.exec_statements(func.body)
        finally:
            del self.frames[self.base:]
            self.base = saved_base
        if outcome is not None:
            return outcome.value
        return RuntimeValue.void()

    def call_user(self, name, args):
        func = self.functions.get(name)
        if func is None:
            raise InterpreterError(f"Runtime error: Undefined function '{name}'")
        return self.call_function(func, args)

    # -------------------------------------------------
    # statements
    # -------------------------------------------------
    def exec_statements(self, statements):
        for stmt in statements:
            outcome = self.exec_statement(stmt)
            if outcome is not None:
                return outcome
        return None

    def exec_block(self, statements):
        self.frames.append({})
        try:
            return self.exec_statements(statements)
        finally:
            self.frames.pop()

    def exec_statement(self, stmt: Stmt):
        if isinstance(stmt, VarDecl):
            value = RuntimeValue.void()
            if stmt.init_expr is not None:
                value = self.eval(stmt.init_expr)
            self.define(stmt.name, value)
        elif isinstance(stmt, Assign):
            self.assign(stmt.name, self.eval(stmt.expr))
        elif isinstance(stmt, If):
            if self.eval(stmt.cond).is_truthy():
                return self.exec_block(stmt.then_block)
            if stmt.else_block:
                return self.exec_block(stmt.else_block)
        elif isinstance(stmt, While):
            while self.eval(stmt.cond).is_truthy():
                outcome = self.exec_block(stmt.body)
                if outcome is not None:
                    return outcome
        elif isinstance(stmt, Return):
            value = RuntimeValue.void()
            if stmt.value is not None:
                value = self.eval(stmt.value)
            return Returned(value)
        elif isinstance(stmt, ExprStmt):
            self.eval(stmt.expr)
        elif isinstance(stmt, Block):
            return self.exec_block(stmt.statements)
        else:
            assert_never(stmt)
        return None

    # -------------------------------------------------
    # expressions
    # -------------------------------------------------
    def eval(self, expr: Expr) -> RuntimeValue:
        if isinstance(expr, BinaryOp):
            return self.eval_binary(expr)
        if isinstance(expr, UnaryOp):
            return self.eval_unary(expr)
        if isinstance(expr, Literal):
            return self.eval_literal(expr)
        if isinstance(expr, Variable):
            return self.lookup(expr.name)
        if isinstance(expr, Call):
            return self.eval_call(expr)
        if isinstance(expr, SequenceLiteral):
            return RuntimeValue.from_sequence(self.eval(e) for e in expr.elements)
        assert_never(expr)

    def eval_binary(self, expr):
        left = self.eval(expr.left)
        right = self.eval(expr.right)
        op = expr.op.type

        if op == TokenType.PLUS and left.kind == right.kind == ValueKind.SEQUENCE:
            return RuntimeValue.from_sequence(left.payload + right.payload)
        if op in ARITHMETIC:
            a, b = left.as_float(), right.as_float()
            if op == TokenType.DIVIDE and b == 0:
                raise InterpreterError("Runtime error: division by zero")
            value = ARITHMETIC[op](a, b)
            # Int unless an operand was already a Float; 7 / 2 is 3
            if ValueKind.FLOAT in (left.kind, right.kind):
                return RuntimeValue.from_float(value)
            return RuntimeValue.from_int(truncate(value))
        if op == TokenType.MODULO:
            a, b = left.as_int(), right.as_int()
            if b == 0:
                raise InterpreterError("Runtime error: division by zero")
            # remainder takes the sign of the dividend
            rem = abs(a) % abs(b)
            return RuntimeValue.from_int(-rem if a < 0 else rem)
        if op == TokenType.EQUALS:
            return RuntimeValue.from_bool(str(left) == str(right))
        if op == TokenType.NOT_EQUALS:
            return RuntimeValue.from_bool(str(left) != str(right))
        if op in ORDERING:
            return RuntimeValue.from_bool(ORDERING[op](left.as_float(), right.as_float()))
        if op == TokenType.AND:
            return RuntimeValue.from_bool(left.is_truthy() and right.is_truthy())
        if op == TokenType.OR:
            return RuntimeValue.from_bool(left.is_truthy() or right.is_truthy())
        raise InterpreterError(f"Runtime error: unsupported operator '{expr.op.value}'")

    def eval_unary(self, expr):
        value = self.eval(expr.operand)
        if expr.op.type == TokenType.MINUS:
            if value.kind == ValueKind.FLOAT:
                return RuntimeValue.from_float(-value.payload)
            if value.kind == ValueKind.INT:
                return RuntimeValue.from_int(-value.payload)
            raise InterpreterError("Runtime error: operator '-' requires numeric operands")
        if expr.op.type == TokenType.NOT:
            return RuntimeValue.from_bool(not value.is_truthy())
        raise InterpreterError(f"Runtime error: unsupported operator '{expr.op.value}'")

    @staticmethod
    def eval_literal(expr):
        tok = expr.token
        if tok.type == TokenType.NUMBER:
            return RuntimeValue.from_int(int(tok.value))
        if tok.type == TokenType.FLOAT:
            return RuntimeValue.from_float(float(tok.value))
        if tok.type == TokenType.TRUE:
            return RuntimeValue.from_bool(True)
        if tok.type == TokenType.FALSE:
            return RuntimeValue.from_bool(False)
        if tok.type == TokenType.STRING:
            return RuntimeValue.from_string(tok.value)
        return RuntimeValue.void()

    def eval_call(self, expr):
        handler = self.builtins.get(expr.callee)
        if handler is not None:
            return handler(expr.arguments)
        args = [self.eval(arg) for arg in expr.arguments]
        return self.call_user(expr.callee, args)

    # -------------------------------------------------
    # built-ins; each receives the unevaluated argument expressions
    # -------------------------------------------------
    def builtin_print(self, arguments):
        self.output.append(" ".join(str(self.eval(arg)) for arg in arguments))
        return RuntimeValue.void()

    def builtin_length(self, arguments):
        if len(arguments) != 1:
            raise InterpreterError("Runtime error: length expects 1 argument")
        seq = self.eval(arguments[0])
        if seq.kind != ValueKind.SEQUENCE:
            raise InterpreterError("Runtime error: length expects a sequence")
        return RuntimeValue.from_int(len(seq.payload))

    def builtin_get(self, arguments):
        if len(arguments) != 2:
            raise InterpreterError("Runtime error: get expects 2 arguments")
        seq = self.eval(arguments[0])
        index = self.eval(arguments[1])
        if seq.kind != ValueKind.SEQUENCE:
            raise InterpreterError("Runtime error: get expects a sequence as the first argument")
        idx = index.as_int()
        if idx < 0 or idx >= len(seq.payload):
            raise InterpreterError("Runtime error: sequence index out of range")
        return seq.payload[idx]

    def _sequence_and_function(self, name, arguments):
        if len(arguments) != 2:
            raise InterpreterError(f"Runtime error: {name} expects 2 arguments")
        seq = self.eval(arguments[0])
        if seq.kind != ValueKind.SEQUENCE:
            raise InterpreterError(f"Runtime error: {name} expects a sequence as the first argument")
        if not isinstance(arguments[1], Variable):
            raise InterpreterError("Runtime error: expected function identifier")
        return seq, arguments[1].name

    def builtin_map(self, arguments):
        seq, fname = self._sequence_and_function('map', arguments)
        return RuntimeValue.from_sequence([self.call_user(fname, [item]) for item in seq.payload])

    def builtin_filter(self, arguments):
        seq, fname = self._sequence_and_function('filter', arguments)
        kept = [item for item in seq.payload if self.call_user(fname, [item]).is_truthy()]
        return RuntimeValue.from_sequence(kept)

    def builtin_generate(self, arguments):
        # arguments are evaluated for their side effects only
        for arg in arguments:
            self.eval(arg)
        return RuntimeValue.from_sequence(())

    def builtin_input(self, arguments):
        if len(arguments) > 1:
            raise InterpreterError("Runtime error: input expects at most 1 argument")
        stdout = self.stdout if self.stdout is not None else sys.stdout
        stdin = self.stdin if self.stdin is not None else sys.stdin
        if arguments:
            prompt = str(self.eval(arguments[0]))
            if prompt:
                stdout.write(prompt + " ")
        stdout.write("> ")
        stdout.flush()
        line = stdin.readline()
        if not line:
            return RuntimeValue.from_int(0)
        return RuntimeValue.from_int(parse_input_line(line))


def run_program(program, stdin=None, stdout=None):
    return Interpreter(program, stdin, stdout).run()
