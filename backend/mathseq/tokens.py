"""
tokens.py
Token kinds and the maximal-munch scanner that turns MathSeq source text into
the token stream consumed by the parser.
"""

import logging
import re
from collections import namedtuple
from enum import Enum, auto

logger = logging.getLogger(__name__)


class TokenType(Enum):
    # literals
    IDENTIFIER = auto()
    NUMBER = auto()
    FLOAT = auto()
    STRING = auto()
    # keywords
    FUNC = auto()
    LET = auto()
    IF = auto()
    ELSE = auto()
    WHILE = auto()
    RETURN = auto()
    TRUE = auto()
    FALSE = auto()
    AND = auto()
    OR = auto()
    NOT = auto()
    INT = auto()
    FLOAT_TYPE = auto()
    BOOL = auto()
    SEQUENCE = auto()
    PATTERN = auto()
    # operators
    PLUS = auto()
    MINUS = auto()
    MULTIPLY = auto()
    DIVIDE = auto()
    MODULO = auto()
    ASSIGN = auto()
    EQUALS = auto()
    NOT_EQUALS = auto()
    LESS = auto()
    GREATER = auto()
    LESS_EQUAL = auto()
    GREATER_EQUAL = auto()
    # delimiters
    LPAREN = auto()
    RPAREN = auto()
    LBRACE = auto()
    RBRACE = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    COMMA = auto()
    COLON = auto()
    SEMICOLON = auto()
    ARROW = auto()
    EOF = auto()


Token = namedtuple('Token', ['type', 'value', 'lineno', 'col'])

KEYWORDS = {
    'func': TokenType.FUNC,
    'let': TokenType.LET,
    'if': TokenType.IF,
    'else': TokenType.ELSE,
    'while': TokenType.WHILE,
    'return': TokenType.RETURN,
    'true': TokenType.TRUE,
    'false': TokenType.FALSE,
    'and': TokenType.AND,
    'or': TokenType.OR,
    'not': TokenType.NOT,
    'int': TokenType.INT,
    'float': TokenType.FLOAT_TYPE,
    'bool': TokenType.BOOL,
    'sequence': TokenType.SEQUENCE,
    'pattern': TokenType.PATTERN,
}

SYMBOLS = {
    '->': TokenType.ARROW,
    '==': TokenType.EQUALS,
    '!=': TokenType.NOT_EQUALS,
    '<=': TokenType.LESS_EQUAL,
    '>=': TokenType.GREATER_EQUAL,
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '*': TokenType.MULTIPLY,
    '/': TokenType.DIVIDE,
    '%': TokenType.MODULO,
    '=': TokenType.ASSIGN,
    '<': TokenType.LESS,
    '>': TokenType.GREATER,
    '(': TokenType.LPAREN,
    ')': TokenType.RPAREN,
    '{': TokenType.LBRACE,
    '}': TokenType.RBRACE,
    '[': TokenType.LBRACKET,
    ']': TokenType.RBRACKET,
    ',': TokenType.COMMA,
    ':': TokenType.COLON,
    ';': TokenType.SEMICOLON,
}


class LexError(Exception):
    def __init__(self, message, lineno=None, col=None):
        super().__init__(message)
        self.message = message
        self.lineno = lineno
        self.col = col

    def __str__(self):
        if self.lineno is not None:
            return f"{self.message} at line {self.lineno}"
        return self.message


class Lexer:
    token_specification = [
        ("COMMENT",    r'\#[^\n]*'),
        ("FLOAT",      r'\d+\.\d*'),
        ("NUMBER",     r'\d+'),
        ("STRING",     r'"[^"]*"'),
        ("UNTERMINATED", r'"[^"]*\Z'),
        ("ID",         r'[A-Za-z_]\w*'),
        # two-character symbols must come first
        ("SYMBOL",     r'->|==|!=|<=|>=|[-+*/%=<>(){}\[\],:;]'),
        ("SKIP",       r'[ \t\r]+'),
        ("NEWLINE",    r'\n'),
        ("MISMATCH",   r'.'),
    ]
    tok_regex = '|'.join(f'(?P<{n}>{p})' for n, p in token_specification)
    master_re = re.compile(tok_regex)

    def __init__(self, code):
        self.code = code
        self.lineno = 1
        self.line_start = 0
        self.tokens = []
        self._tokenize()

    def _tokenize(self):
        for mo in self.master_re.finditer(self.code):
            kind = mo.lastgroup
            val = mo.group()
            col = mo.start() - self.line_start + 1
            if kind == "NUMBER":
                self.tokens.append(Token(TokenType.NUMBER, val, self.lineno, col))
            elif kind == "FLOAT":
                self.tokens.append(Token(TokenType.FLOAT, val, self.lineno, col))
            elif kind == "STRING":
                self.tokens.append(Token(TokenType.STRING, val[1:-1], self.lineno, col))
                # strings may span lines
                newlines = val.count('\n')
                if newlines:
                    self.lineno += newlines
                    self.line_start = mo.start() + val.rfind('\n') + 1
            elif kind == "ID":
                self.tokens.append(Token(KEYWORDS.get(val, TokenType.IDENTIFIER), val, self.lineno, col))
            elif kind == "SYMBOL":
                self.tokens.append(Token(SYMBOLS[val], val, self.lineno, col))
            elif kind == "NEWLINE":
                self.lineno += 1
                self.line_start = mo.end()
            elif kind == "SKIP" or kind == "COMMENT":
                pass
            elif kind == "UNTERMINATED":
                raise LexError("Unterminated string", self.lineno, col)
            else:
                raise LexError(f"Unexpected character {val!r}", self.lineno, col)
        col = len(self.code) - self.line_start + 1
        self.tokens.append(Token(TokenType.EOF, '', self.lineno, col))
        logger.debug("scanned %d tokens", len(self.tokens))

    def peek_all(self):
        return list(self.tokens)


def tokenize(code):
    return Lexer(code).peek_all()
