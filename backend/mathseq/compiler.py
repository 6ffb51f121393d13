"""
compiler.py
Pipeline driver: tokenize -> parse -> analyze -> generate -> optimize ->
interpret, collected into one result dict.
"""

import logging
from dataclasses import dataclass
from typing import Any

from .codegen import IRGenerator, format_tac
from .interpreter import Interpreter
from .optimizer import DEFAULT_MAX_ROUNDS, optimize_tac
from .parser import Parser
from .semantic import SemanticAnalyzer
from .tokens import LexError, Lexer

logger = logging.getLogger(__name__)


@dataclass
class CompileOptions:
    optimize: bool = True
    max_opt_rounds: int = DEFAULT_MAX_ROUNDS
    stdin: Any = None   # read by the `input` builtin
    stdout: Any = None  # receives `input` prompts


def compile_source(code, options=None):
    options = options or CompileOptions()

    # Initialize result with empty values
    result = {
        'tokens': [],
        'ast': None,
        'tac': [],
        'optimized_tac': [],
        'output': [],
        'exit_code': None,
        'errors': [],
        'warnings': [],
        'symbol_table': {},
        'failed_phase': None,  # lex, parse, semantic or runtime
    }

    try:
        toks = Lexer(code).peek_all()
    except LexError as e:
        result['errors'].append(f"Lexical error: {e}")
        result['failed_phase'] = 'lex'
        return result
    result['tokens'] = toks

    # Parse the code
    parser = Parser(toks)
    ast = parser.parse()
    if ast is None:
        result['errors'].append(f"Parse Error: {parser.error}")
        result['failed_phase'] = 'parse'
        return result
    result['ast'] = ast

    # Analyze semantics
    sem = SemanticAnalyzer()
    ok = sem.analyze(ast)
    result['errors'].extend(sem.errors)
    result['warnings'].extend(sem.warnings)
    result['symbol_table'] = sem.global_symbols()
    if not ok:
        logger.info("semantic analysis failed with %d errors", len(sem.errors))
        result['failed_phase'] = 'semantic'
        return result

    # Generate IR
    tac = IRGenerator().gen(ast)
    result['tac'] = tac

    # Optimize IR
    if options.optimize:
        result['optimized_tac'] = optimize_tac(tac, options.max_opt_rounds)
    else:
        result['optimized_tac'] = list(tac)

    # Execute
    run = Interpreter(ast, stdin=options.stdin, stdout=options.stdout).run()
    result['output'] = run.output
    if run.success:
        result['exit_code'] = run.exit_code
    else:
        result['errors'].append(run.error)
        result['failed_phase'] = 'runtime'
    return result


def render_listing(result, source_name):
    """Text listing of the final IR and the program's output, as written by --output."""
    lines = [
        "; MathSeq Compiler Output",
        f"; Source: {source_name}",
        "; =======================",
        "",
    ]
    lines.extend(format_tac(result['optimized_tac']))
    lines.append("")
    lines.append("; Program Output")
    lines.append("; --------------")
    if result['failed_phase'] is None:
        if result['output']:
            lines.extend(f"; {line}" for line in result['output'])
        else:
            lines.append("; (no print statements)")
        lines.append(f"; Exit Code: {result['exit_code']}")
    else:
        lines.append(f"; Execution skipped: {result['errors'][-1] if result['errors'] else 'unknown error'}")
    return "\n".join(lines) + "\n"
