"""Command-line driver tests."""

import io

from conftest import main_body
from mathseq.cli import main


def write(tmp_path, code, name="prog.mathseq"):
    path = tmp_path / name
    path.write_text(code)
    return path


def test_runs_program_and_prints_phases(tmp_path):
    src = write(tmp_path, main_body("let x: int = 2 + 3 * 4;\nprint x;\nreturn x;"))
    out = io.StringIO()
    assert main([str(src)], out=out) == 0
    text = out.getvalue()
    assert "Intermediate Code:" in text
    assert "Optimized Code:" in text
    assert "Program Output:\n===============\n14\n" in text
    assert "; Exit Code: 14" in text


def test_tokens_and_ast_flags(tmp_path):
    src = write(tmp_path, main_body("return 0;"))
    out = io.StringIO()
    assert main([str(src), "--tokens", "--ast"], out=out) == 0
    text = out.getvalue()
    assert "Tokens:" in text
    assert "FUNC" in text
    assert "AST:" in text
    assert "FunctionDecl(main() -> int" in text


def test_no_opt(tmp_path):
    src = write(tmp_path, main_body("return 0;"))
    out = io.StringIO()
    assert main([str(src), "--no-opt"], out=out) == 0
    assert "Optimization skipped." in out.getvalue()
    assert "Optimized Code:" not in out.getvalue()


def test_output_file(tmp_path):
    src = write(tmp_path, main_body("print 7;\nreturn 0;"))
    listing = tmp_path / "out.txt"
    out = io.StringIO()
    assert main([str(src), "--output", str(listing)], out=out) == 0
    written = listing.read_text()
    assert written.startswith("; MathSeq Compiler Output\n")
    assert "; 7\n" in written
    assert "Final Output:" not in out.getvalue()


def test_semantic_failure_exits_one(tmp_path, capsys):
    src = write(tmp_path, main_body("y = 1;\nreturn 0;"))
    assert main([str(src)], out=io.StringIO()) == 1
    assert "Undefined variable 'y'" in capsys.readouterr().err


def test_parse_failure_exits_one(tmp_path, capsys):
    src = write(tmp_path, "func main( -> int { }")
    assert main([str(src)], out=io.StringIO()) == 1
    assert "Parse Error" in capsys.readouterr().err


def test_missing_file_exits_one(tmp_path, capsys):
    assert main([str(tmp_path / "nope.mathseq")], out=io.StringIO()) == 1
    assert "cannot read" in capsys.readouterr().err


def test_runtime_failure_still_exits_zero(tmp_path):
    src = write(tmp_path, main_body("print 1 / 0;\nreturn 0;"))
    out = io.StringIO()
    assert main([str(src)], out=out) == 0
    assert "Program Output skipped: Runtime error: division by zero" in out.getvalue()
