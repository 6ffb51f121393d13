"""Pytest configuration for the MathSeq test suite."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from mathseq.app import create_app  # noqa: E402
from mathseq.parser import parse  # noqa: E402
from mathseq.tokens import tokenize  # noqa: E402

EXAMPLES_DIR = Path(__file__).parent.parent / "examples"


def parse_source(code):
    return parse(tokenize(code))


def main_body(stmts):
    """Wrap statements in a `func main() -> int` declaration."""
    return "func main() -> int {\n" + stmts + "\n}\n"


@pytest.fixture
def app():
    return create_app({"TESTING": True})


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def examples_dir():
    return EXAMPLES_DIR
