"""
optimizer.py
Local optimizations over a TAC listing. Each pass is one linear scan that
returns a new list; the input list is never mutated.
"""

import logging
import re
from dataclasses import replace

from .codegen import ASSIGN, BINARY_OPS, LABEL, STORE, UNARY_OPS, OperandKind, const

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROUNDS = 32

INT_LITERAL = re.compile(r'[+-]?\d+')
ZERO = const('0')
ONE = const('1')

# instructions with no effect beyond writing their destination
PURE_OPS = {ASSIGN, STORE} | set(BINARY_OPS.values()) | set(UNARY_OPS.values())


def is_constant(operand):
    """Integer literal operand; floats, strings and booleans do not count."""
    return (operand is not None and operand.kind == OperandKind.CONST
            and INT_LITERAL.fullmatch(operand.text) is not None)


def _trunc_div(a, b):
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


FOLDERS = {
    '+': lambda x, y: x + y,
    '-': lambda x, y: x - y,
    '*': lambda x, y: x * y,
    '/': lambda x, y: _trunc_div(x, y) if y != 0 else 0,
}


def as_assign(instr, value):
    return replace(instr, op=ASSIGN, arg1=value, arg2=None)


def fold_constants(tac):
    newtac = []
    for instr in tac:
        if instr.op in FOLDERS and is_constant(instr.arg1) and is_constant(instr.arg2):
            val = FOLDERS[instr.op](int(instr.arg1.text), int(instr.arg2.text))
            instr = as_assign(instr, const(val))
        newtac.append(instr)
    return newtac


def propagate_constants(tac):
    known = {}
    newtac = []
    for instr in tac:
        if instr.op == LABEL:
            # a branch target: values from other paths may flow in
            known.clear()
            newtac.append(instr)
            continue

        def sub(operand):
            if operand is not None and operand in known:
                return known[operand]
            return operand

        instr = replace(instr, arg1=sub(instr.arg1), arg2=sub(instr.arg2),
                        args=tuple(sub(a) for a in instr.args))
        dest = instr.dest
        if dest is not None and dest.is_variable:
            if instr.op == ASSIGN and is_constant(instr.arg1):
                known[dest] = instr.arg1
            else:
                known.pop(dest, None)
        newtac.append(instr)
    return newtac


def simplify_algebra(tac):
    newtac = []
    for instr in tac:
        op, a, b = instr.op, instr.arg1, instr.arg2
        if b is not None:
            if (op == '+' or op == '-') and b == ZERO:
                instr = as_assign(instr, a)
            elif op == '*' and b == ONE:
                instr = as_assign(instr, a)
            elif op == '*' and (a == ZERO or b == ZERO):
                instr = as_assign(instr, ZERO)
            elif op == '+' and a == ZERO:
                instr = as_assign(instr, b)
            elif op == '*' and a == ONE:
                instr = as_assign(instr, b)
        newtac.append(instr)
    return newtac


def remove_redundant_assignments(tac):
    return [instr for instr in tac if not (instr.op == ASSIGN and instr.arg1 == instr.dest)]


def eliminate_dead_code(tac):
    used = set()
    for instr in tac:
        for operand in instr.sources():
            if operand.is_temp:
                used.add(operand)
    # user-named variables are kept even when nothing reads them
    return [instr for instr in tac
            if not (instr.op in PURE_OPS and instr.dest.is_temp and instr.dest not in used)]


PASSES = (
    fold_constants,
    propagate_constants,
    simplify_algebra,
    remove_redundant_assignments,
    eliminate_dead_code,
)


def run_passes(tac):
    """One round: every pass once, in order."""
    for opt_pass in PASSES:
        tac = opt_pass(tac)
    return tac


def optimize_tac(tac, max_rounds=DEFAULT_MAX_ROUNDS):
    """Repeat the pass round until the listing stops changing."""
    current = list(tac)
    for rounds in range(1, max_rounds + 1):
        after = run_passes(current)
        if after == current:
            break
        current = after
    else:
        logger.warning("optimizer stopped after %d rounds without settling", max_rounds)
    logger.debug("optimized %d -> %d instructions in %d rounds", len(tac), len(current), rounds)
    return current
