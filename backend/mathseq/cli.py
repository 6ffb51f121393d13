"""
cli.py
Command-line driver: `mathseqc program.mathseq [--tokens] [--ast] [--no-opt] [--output FILE]`.
"""

import argparse
import logging
import sys

from .codegen import format_tac
from .compiler import CompileOptions, compile_source, render_listing
from .nodes import dump

logger = logging.getLogger(__name__)


def build_arg_parser():
    parser = argparse.ArgumentParser(prog="mathseqc", description="Compile and run a MathSeq program.")
    parser.add_argument("source", help="MathSeq source file")
    parser.add_argument("--tokens", action="store_true", help="Print the token stream.")
    parser.add_argument("--ast", action="store_true", help="Print the syntax tree.")
    parser.add_argument("--no-opt", dest="optimize", action="store_false",
                        help="Skip the optimization passes.")
    parser.add_argument("--output", metavar="FILE",
                        help="Write the final listing to FILE instead of stdout.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser


def section(title, out):
    print(title, file=out)
    print("=" * len(title), file=out)


def main(argv=None, out=None):
    args = build_arg_parser().parse_args(argv)
    out = out or sys.stdout
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    try:
        with open(args.source, "r", encoding="utf-8") as f:
            code = f.read()
    except OSError as e:
        print(f"Error: cannot read {args.source}: {e.strerror}", file=sys.stderr)
        return 1

    print(f"Compiling: {args.source}", file=out)
    result = compile_source(code, CompileOptions(optimize=args.optimize, stdin=sys.stdin, stdout=out))

    if args.tokens and result['tokens']:
        section("Tokens:", out)
        for tok in result['tokens']:
            print(f"{tok.type.name:<14} {tok.value!r:<12} line {tok.lineno}", file=out)
        print(file=out)
    if args.ast and result['ast'] is not None:
        section("AST:", out)
        print(dump(result['ast']), file=out)
        print(file=out)

    for warning in result['warnings']:
        print(warning, file=out)
    if result['failed_phase'] in ('lex', 'parse', 'semantic'):
        for error in result['errors']:
            print(error, file=sys.stderr)
        return 1

    section("Intermediate Code:", out)
    for line in format_tac(result['tac']):
        print(line, file=out)
    print(file=out)
    if args.optimize:
        section("Optimized Code:", out)
        for line in format_tac(result['optimized_tac']):
            print(line, file=out)
    else:
        print("Optimization skipped.", file=out)
    print(file=out)

    if result['failed_phase'] == 'runtime':
        print(f"Program Output skipped: {result['errors'][-1]}", file=out)
    else:
        section("Program Output:", out)
        for line in result['output'] or ["(no print statements)"]:
            print(line, file=out)
    print(file=out)

    listing = render_listing(result, args.source)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(listing)
        logger.info("wrote listing to %s", args.output)
    else:
        section("Final Output:", out)
        out.write(listing)
    return 0
