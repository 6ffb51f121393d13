"""
scope.py
Nested symbol environments. The semantic analyzer and the code generator
each own a separate ScopeTable.
"""

from dataclasses import dataclass


@dataclass
class Symbol:
    name: str
    data_type: object
    initialized: bool = False
    constant: bool = False
    depth: int = 0


class ScopeTable:
    """A chain of name -> Symbol frames; index 0 is the global frame."""

    def __init__(self):
        self.frames = [{}]

    @property
    def depth(self):
        return len(self.frames) - 1

    def enter_scope(self):
        self.frames.append({})

    def exit_scope(self):
        # the global frame is never popped
        if len(self.frames) > 1:
            self.frames.pop()

    def declare(self, name, data_type, initialized=False, constant=False):
        current = self.frames[-1]
        if name in current:
            return False
        current[name] = Symbol(name, data_type, initialized, constant, self.depth)
        return True

    def lookup(self, name):
        for frame in reversed(self.frames):
            if name in frame:
                return frame[name]
        return None

    def mark_initialized(self, name):
        symbol = self.lookup(name)
        if symbol is None:
            return False
        symbol.initialized = True
        return True

    def is_declared_in_current_scope(self, name):
        return name in self.frames[-1]

    def current_symbols(self):
        return list(self.frames[-1].values())
