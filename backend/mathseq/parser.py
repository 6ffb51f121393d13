"""
parser.py
Recursive-descent parser building the MathSeq AST from the token stream.
Parsing is all-or-nothing: the first structural violation aborts the parse.
"""

import logging

from .nodes import (
    Assign, BinaryOp, Block, Call, DataType, ExprStmt, FunctionDecl, If, Literal,
    Param, Program, Return, SequenceLiteral, UnaryOp, Variable, VarDecl, While,
)
from .tokens import Token, TokenType

logger = logging.getLogger(__name__)

TYPE_TOKENS = (
    TokenType.INT, TokenType.FLOAT_TYPE, TokenType.BOOL,
    TokenType.SEQUENCE, TokenType.PATTERN, TokenType.IDENTIFIER,
)

TYPE_NAMES = {
    'int': DataType.INT,
    'float': DataType.FLOAT,
    'bool': DataType.BOOL,
    'sequence': DataType.SEQUENCE,
    'pattern': DataType.PATTERN,
    'void': DataType.VOID,
}

PRIMARY_START = (
    TokenType.IDENTIFIER, TokenType.STRING, TokenType.NUMBER, TokenType.FLOAT,
    TokenType.TRUE, TokenType.FALSE, TokenType.LPAREN, TokenType.LBRACKET,
)


class ParseError(Exception):
    def __init__(self, message, lineno=None):
        super().__init__(message)
        self.message = message
        self.lineno = lineno

    def __str__(self):
        if self.lineno is None:
            return self.message
        return f"{self.message} at line {self.lineno}"


class Parser:
    def __init__(self, tokens):
        self.tokens = list(tokens)
        self.pos = 0
        self.error = None

    # -------------------------------------------------
    # token cursor
    # -------------------------------------------------
    def peek(self):
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        last = self.tokens[-1].lineno if self.tokens else None
        return Token(TokenType.EOF, '', last, None)

    def peek_n(self, n):
        idx = self.pos + n
        if idx < len(self.tokens):
            return self.tokens[idx]
        return Token(TokenType.EOF, '', None, None)

    def at_end(self):
        return self.peek().type == TokenType.EOF

    def advance(self):
        tok = self.peek()
        if not self.at_end():
            self.pos += 1
        return tok

    def check(self, *types):
        return not self.at_end() and self.peek().type in types

    def match(self, *types):
        if self.check(*types):
            return self.advance()
        return None

    def expect(self, ttype, msg):
        if self.check(ttype):
            return self.advance()
        raise ParseError(msg, self.peek().lineno)

    # -------------------------------------------------
    # entry point
    # -------------------------------------------------
    def parse(self):
        """Return the Program, or None with the diagnostic left in self.error."""
        self.pos = 0
        self.error = None
        try:
            return self.program()
        except ParseError as e:
            self.error = e
            logger.info("parse failed: %s", e)
            return None

    def program(self):
        functions = []
        while not self.at_end():
            if not self.match(TokenType.FUNC):
                raise ParseError("Expected function declaration", self.peek().lineno)
            functions.append(self.function())
        return Program(functions)

    def function(self):
        name = self.expect(TokenType.IDENTIFIER, "Expected function name")
        self.expect(TokenType.LPAREN, "Expected '(' after function name")
        params = self.parameters()
        self.expect(TokenType.RPAREN, "Expected ')' after parameters")
        self.expect(TokenType.ARROW, "Expected '->' after function parameters")
        if not self.check(*TYPE_TOKENS):
            raise ParseError(f"Expected return type, got: {self.peek().value}", self.peek().lineno)
        return_type = self.data_type(self.advance())
        body = self.block()
        return FunctionDecl(name.value, params, return_type, body, name.lineno)

    def parameters(self):
        params = []
        if self.check(TokenType.RPAREN):
            return params
        while True:
            if not self.check(TokenType.IDENTIFIER):
                raise ParseError(f"Expected parameter name, got: {self.peek().value}", self.peek().lineno)
            name = self.advance()
            if not self.match(TokenType.COLON):
                raise ParseError(f"Expected ':' after parameter name '{name.value}'", self.peek().lineno)
            if not self.check(*TYPE_TOKENS):
                raise ParseError(
                    f"Expected parameter type after '{name.value}:', got: {self.peek().value}",
                    self.peek().lineno)
            type_tok = self.advance()
            typ = self.data_type(type_tok)
            if typ == DataType.UNKNOWN:
                raise ParseError(f"Unknown parameter type: '{type_tok.value}'", type_tok.lineno)
            params.append(Param(name.value, typ, name.lineno))
            if not self.match(TokenType.COMMA):
                return params

    @staticmethod
    def data_type(tok):
        return TYPE_NAMES.get(tok.value, DataType.UNKNOWN)

    # -------------------------------------------------
    # statements
    # -------------------------------------------------
    def statement(self):
        if self.match(TokenType.LET):
            return self.var_decl()
        if self.match(TokenType.IF):
            return self.if_statement()
        if self.match(TokenType.WHILE):
            return self.while_statement()
        if self.check(TokenType.RETURN):
            return self.return_statement()
        tok = self.peek()
        if tok.type == TokenType.IDENTIFIER and tok.value == 'print':
            return self.print_statement()
        if tok.type == TokenType.IDENTIFIER and self.peek_n(1).type == TokenType.ASSIGN:
            return self.assignment()
        if self.check(TokenType.LBRACE):
            return Block(self.block(), tok.lineno)
        return self.expression_statement()

    def var_decl(self):
        name = self.expect(TokenType.IDENTIFIER, "Expected variable name")
        self.expect(TokenType.COLON, "Expected ':' after variable name")
        if not self.check(*TYPE_TOKENS):
            raise ParseError(
                f"Expected variable type after '{name.value}:', got: {self.peek().value}",
                self.peek().lineno)
        var_type = self.data_type(self.advance())
        init_expr = None
        if self.match(TokenType.ASSIGN):
            init_expr = self.expression()
        self.match(TokenType.SEMICOLON)
        return VarDecl(name.value, var_type, init_expr, name.lineno)

    def assignment(self):
        name = self.advance()
        self.expect(TokenType.ASSIGN, "Expected '=' after variable name")
        expr = self.expression()
        self.match(TokenType.SEMICOLON)
        return Assign(name.value, expr, name.lineno)

    def if_statement(self):
        cond = self.expression()
        then_block = self.block()
        else_block = []
        if self.match(TokenType.ELSE):
            else_block = self.block()
        return If(cond, then_block, else_block, cond.lineno)

    def while_statement(self):
        cond = self.expression()
        body = self.block()
        return While(cond, body, cond.lineno)

    def return_statement(self):
        tok = self.advance()
        value = None
        if not self.check(TokenType.SEMICOLON, TokenType.RBRACE):
            value = self.expression()
        self.match(TokenType.SEMICOLON)
        return Return(value, value.lineno if value is not None else tok.lineno)

    def print_statement(self):
        # arguments are juxtaposed, not comma separated: `print "x =" x (x + 1) y == 2`
        tok = self.advance()
        args = []
        while True:
            nxt = self.peek()
            # stops at anything that cannot start a primary
            if nxt.type not in PRIMARY_START:
                break
            if nxt.type == TokenType.IDENTIFIER and nxt.value == 'print':
                break
            if nxt.type == TokenType.IDENTIFIER and self.peek_n(1).type == TokenType.ASSIGN:
                break
            # each argument starts at a primary; a following operator extends it
            args.append(self.expression())
        self.match(TokenType.SEMICOLON)
        return ExprStmt(Call('print', args, tok.lineno), tok.lineno)

    def expression_statement(self):
        expr = self.expression()
        self.match(TokenType.SEMICOLON)
        return ExprStmt(expr, expr.lineno)

    def block(self):
        self.expect(TokenType.LBRACE, "Expected '{' before block")
        stmts = []
        while not self.check(TokenType.RBRACE) and not self.at_end():
            stmts.append(self.statement())
        self.expect(TokenType.RBRACE, "Expected '}' after block")
        return stmts

    # -------------------------------------------------
    # expressions: precedence climbing via separate functions
    # -------------------------------------------------
    def expression(self):
        return self.logical_or()

    def _binary(self, operand, *ops):
        node = operand()
        while True:
            op = self.match(*ops)
            if op is None:
                return node
            right = operand()
            node = BinaryOp(op, node, right, op.lineno)

    def logical_or(self):
        return self._binary(self.logical_and, TokenType.OR)

    def logical_and(self):
        return self._binary(self.equality, TokenType.AND)

    def equality(self):
        return self._binary(self.comparison, TokenType.EQUALS, TokenType.NOT_EQUALS)

    def comparison(self):
        return self._binary(self.term, TokenType.LESS, TokenType.LESS_EQUAL,
                            TokenType.GREATER, TokenType.GREATER_EQUAL)

    def term(self):
        return self._binary(self.factor, TokenType.PLUS, TokenType.MINUS)

    def factor(self):
        return self._binary(self.unary, TokenType.MULTIPLY, TokenType.DIVIDE, TokenType.MODULO)

    def unary(self):
        op = self.match(TokenType.MINUS, TokenType.NOT)
        if op is not None:
            operand = self.unary()
            return UnaryOp(op, operand, op.lineno)
        return self.primary()

    def primary(self):
        tok = self.match(TokenType.TRUE, TokenType.FALSE, TokenType.NUMBER,
                         TokenType.FLOAT, TokenType.STRING)
        if tok is not None:
            return Literal(tok)
        tok = self.match(TokenType.IDENTIFIER)
        if tok is not None:
            if self.match(TokenType.LPAREN):
                args = self.comma_list(TokenType.RPAREN, "Expected ')' after function arguments")
                return Call(tok.value, args, tok.lineno)
            if self.match(TokenType.LBRACKET):
                # name[index] is sugar for get(name, index)
                index = self.expression()
                self.expect(TokenType.RBRACKET, "Expected ']' after index")
                return Call('get', [Variable(tok.value, tok.lineno), index], tok.lineno)
            return Variable(tok.value, tok.lineno)
        if self.match(TokenType.LPAREN):
            node = self.expression()
            self.expect(TokenType.RPAREN, "Expected ')' after expression")
            return node
        tok = self.match(TokenType.LBRACKET)
        if tok is not None:
            elements = self.comma_list(TokenType.RBRACKET, "Expected ']' after sequence elements")
            return SequenceLiteral(elements, tok.lineno)
        raise ParseError("Expected expression", self.peek().lineno)

    def comma_list(self, closer, msg):
        # opening delimiter already consumed; a trailing comma is accepted
        items = []
        if not self.check(closer):
            items.append(self.expression())
            while self.match(TokenType.COMMA) and not self.check(closer):
                items.append(self.expression())
        self.expect(closer, msg)
        return items


def parse(tokens):
    """Parse a token list; raises ParseError instead of returning None."""
    parser = Parser(tokens)
    program = parser.parse()
    if program is None:
        raise parser.error
    return program
