"""
nodes.py
AST for MathSeq programs. Every node is owned by exactly one parent; the
Program is the root of the tree.
"""

from collections import namedtuple
from enum import Enum
from typing import Union


class DataType(Enum):
    INT = 'int'
    FLOAT = 'float'
    BOOL = 'bool'
    SEQUENCE = 'sequence'
    PATTERN = 'pattern'
    VOID = 'void'
    UNKNOWN = 'unknown'

    def __str__(self):
        return self.value


class Node:
    lineno = None


# =====================================================
# EXPRESSIONS
# =====================================================
class Expression(Node):
    def __init__(self, lineno=None):
        self.data_type = DataType.UNKNOWN
        self.lineno = lineno


class BinaryOp(Expression):
    def __init__(self, op, left, right, lineno=None):
        super().__init__(lineno)
        self.op = op  # Token
        self.left = left
        self.right = right


class UnaryOp(Expression):
    def __init__(self, op, operand, lineno=None):
        super().__init__(lineno)
        self.op = op  # Token
        self.operand = operand


class Literal(Expression):
    def __init__(self, token):
        super().__init__(token.lineno)
        self.token = token

    @property
    def value(self):
        return self.token.value


class Variable(Expression):
    def __init__(self, name, lineno=None):
        super().__init__(lineno)
        self.name = name


class Call(Expression):
    def __init__(self, callee, arguments, lineno=None):
        super().__init__(lineno)
        self.callee = callee
        self.arguments = arguments


class SequenceLiteral(Expression):
    def __init__(self, elements, lineno=None):
        super().__init__(lineno)
        self.elements = elements


# =====================================================
# STATEMENTS
# =====================================================
class Statement(Node):
    def __init__(self, lineno=None):
        self.lineno = lineno


class VarDecl(Statement):
    def __init__(self, name, var_type, init_expr=None, lineno=None):
        super().__init__(lineno)
        self.name = name
        self.var_type = var_type
        self.init_expr = init_expr


class Assign(Statement):
    def __init__(self, name, expr, lineno=None):
        super().__init__(lineno)
        self.name = name
        self.expr = expr


class If(Statement):
    def __init__(self, cond, then_block, else_block=None, lineno=None):
        super().__init__(lineno)
        self.cond = cond
        self.then_block = then_block
        self.else_block = else_block if else_block is not None else []


class While(Statement):
    def __init__(self, cond, body, lineno=None):
        super().__init__(lineno)
        self.cond = cond
        self.body = body


class Return(Statement):
    def __init__(self, value=None, lineno=None):
        super().__init__(lineno)
        self.value = value


class ExprStmt(Statement):
    def __init__(self, expr, lineno=None):
        super().__init__(lineno)
        self.expr = expr


class Block(Statement):
    def __init__(self, statements, lineno=None):
        super().__init__(lineno)
        self.statements = statements


Param = namedtuple('Param', ['name', 'data_type', 'lineno'])


class FunctionDecl(Node):
    def __init__(self, name, params, return_type, body, lineno=None):
        self.name = name
        self.params = params  # [Param]
        self.return_type = return_type
        self.body = body
        self.lineno = lineno


class Program(Node):
    def __init__(self, functions):
        self.functions = functions


Expr = Union[BinaryOp, UnaryOp, Literal, Variable, Call, SequenceLiteral]
Stmt = Union[VarDecl, Assign, If, While, Return, ExprStmt, Block]


# =====================================================
# RENDERING
# =====================================================
def _dump_block(statements):
    return "{" + "".join(dump(s) + "; " for s in statements) + "}"


def dump(node):
    """One-line text rendering of a node and its subtree."""
    if isinstance(node, Program):
        return "Program[\n" + "".join(f"  {dump(f)}\n" for f in node.functions) + "]"
    if isinstance(node, FunctionDecl):
        params = ", ".join(f"{p.name}:{p.data_type}" for p in node.params)
        return f"FunctionDecl({node.name}({params}) -> {node.return_type} {_dump_block(node.body)})"
    if isinstance(node, BinaryOp):
        return f"BinaryOp({dump(node.left)} {node.op.value} {dump(node.right)})"
    if isinstance(node, UnaryOp):
        return f"UnaryOp({node.op.value} {dump(node.operand)})"
    if isinstance(node, Literal):
        return f"Literal({node.value})"
    if isinstance(node, Variable):
        return f"Variable({node.name})"
    if isinstance(node, Call):
        return f"Call({node.callee}({', '.join(dump(a) for a in node.arguments)}))"
    if isinstance(node, SequenceLiteral):
        return f"Sequence[{', '.join(dump(e) for e in node.elements)}]"
    if isinstance(node, VarDecl):
        init = dump(node.init_expr) if node.init_expr is not None else "null"
        return f"VarDecl({node.name}:{node.var_type} = {init})"
    if isinstance(node, Assign):
        return f"Assign({node.name} = {dump(node.expr)})"
    if isinstance(node, If):
        return f"If({dump(node.cond)} then {_dump_block(node.then_block)} else {_dump_block(node.else_block)})"
    if isinstance(node, While):
        return f"While({dump(node.cond)} {_dump_block(node.body)})"
    if isinstance(node, Return):
        return f"Return({dump(node.value) if node.value is not None else 'void'})"
    if isinstance(node, ExprStmt):
        return f"ExprStmt({dump(node.expr)})"
    if isinstance(node, Block):
        return f"Block{_dump_block(node.statements)}"
    raise TypeError(f"cannot dump {type(node).__name__}")


def node_to_dict(node):
    """
    Serialize AST to dict recursively
    """
    if node is None:
        return None
    d = {"type": type(node).__name__}
    if isinstance(node, Program):
        d["functions"] = [node_to_dict(f) for f in node.functions]
    elif isinstance(node, FunctionDecl):
        d["name"] = node.name
        d["params"] = [{"name": p.name, "type": str(p.data_type)} for p in node.params]
        d["return_type"] = str(node.return_type)
        d["body"] = [node_to_dict(s) for s in node.body]
    elif isinstance(node, VarDecl):
        d["name"] = node.name
        d["var_type"] = str(node.var_type)
        d["init_expr"] = node_to_dict(node.init_expr)
    elif isinstance(node, Assign):
        d["name"] = node.name
        d["expr"] = node_to_dict(node.expr)
    elif isinstance(node, If):
        d["cond"] = node_to_dict(node.cond)
        d["then_block"] = [node_to_dict(s) for s in node.then_block]
        d["else_block"] = [node_to_dict(s) for s in node.else_block]
    elif isinstance(node, While):
        d["cond"] = node_to_dict(node.cond)
        d["body"] = [node_to_dict(s) for s in node.body]
    elif isinstance(node, Return):
        d["value"] = node_to_dict(node.value)
    elif isinstance(node, ExprStmt):
        d["expr"] = node_to_dict(node.expr)
    elif isinstance(node, Block):
        d["statements"] = [node_to_dict(s) for s in node.statements]
    elif isinstance(node, BinaryOp):
        d["op"] = node.op.value
        d["left"] = node_to_dict(node.left)
        d["right"] = node_to_dict(node.right)
    elif isinstance(node, UnaryOp):
        d["op"] = node.op.value
        d["operand"] = node_to_dict(node.operand)
    elif isinstance(node, Literal):
        d["value"] = node.value
        d["kind"] = node.token.type.name
    elif isinstance(node, Variable):
        d["name"] = node.name
    elif isinstance(node, Call):
        d["callee"] = node.callee
        d["arguments"] = [node_to_dict(a) for a in node.arguments]
    elif isinstance(node, SequenceLiteral):
        d["elements"] = [node_to_dict(e) for e in node.elements]
    if isinstance(node, Expression):
        d["data_type"] = str(node.data_type)
    if node.lineno is not None:
        d["lineno"] = node.lineno
    return d
