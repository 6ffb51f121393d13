"""MathSeq: a small compiler for a sequence-oriented math language."""

from .compiler import CompileOptions, compile_source, render_listing
from .interpreter import ExecutionResult, Interpreter, InterpreterError, RuntimeValue
from .optimizer import optimize_tac
from .parser import ParseError, Parser, parse
from .semantic import SemanticAnalyzer
from .tokens import LexError, Lexer, Token, TokenType, tokenize

__version__ = "0.1.0"
