import importlib.util
import sys
from pathlib import Path
import uuid
import pytest

def _load_repl_module():
    """Dynamically load the top-level jigmath_repl.py as a module with a unique name."""
    repl_path = Path(__file__).resolve().parents[1] / "jigmath_repl.py"
    mod_name = f"jigmath_repl_for_test_{uuid.uuid4().hex}"
    spec = importlib.util.spec_from_file_location(mod_name, str(repl_path))
    mod = importlib.util.module_from_spec(spec)
    sys.modules[mod_name] = mod
    assert spec.loader is not None
    spec.loader.exec_module(mod)
    return mod

def _feed(monkeypatch, repl, lines):
    it = iter(lines)

    def fake_read_line(prompt: str) -> str:
        return next(it)
    monkeypatch.setattr(repl, "read_line", fake_read_line)
    monkeypatch.setattr(sys, "argv", ["jigmath_repl.py"])

def test_repl_exit_immediately(monkeypatch, capsys):
    repl = _load_repl_module()
    _feed(monkeypatch, repl, ["exit"])

    repl.main()
    out = capsys.readouterr().out
    assert "jigmath REPL v0.1" in out
    assert "Type 'exit' or press Ctrl+D to quit." in out

def test_repl_prints_values(monkeypatch, capsys):
    repl = _load_repl_module()
    _feed(monkeypatch, repl, ["2+3*4", "x+1", "exit"])

    repl.main()
    out, err = capsys.readouterr()
    assert "\n14\n" in out
    assert "(x+1)" in out
    assert err == ""

def test_repl_commands(monkeypatch, capsys):
    repl = _load_repl_module()
    _feed(monkeypatch, repl, ["3x + (1+1)", ":set x 4", ":vars", ":simplify", ":tree", "exit"])

    repl.main()
    out = capsys.readouterr().out.splitlines()
    assert "14" in out
    assert "x = 4.0" in out
    assert "((3x)+2)" in out
    assert "equation '3x + (1+1)'" in out

def test_repl_errors_print_to_stderr(monkeypatch, capsys):
    repl = _load_repl_module()
    _feed(monkeypatch, repl, ["1+2)", ":set", ":oops", "exit"])

    repl.main()
    out, err = capsys.readouterr()
    assert "jigmath REPL v0.1" in out
    assert "ParseError: Unmatched closing bracket ')'" in err
    assert "Error: no formula yet" in err

def test_repl_warns_about_unknown_functions(monkeypatch, capsys):
    repl = _load_repl_module()
    _feed(monkeypatch, repl, ["foo(2)", "exit"])

    repl.main()
    out, err = capsys.readouterr()
    assert "foo(2)" in out
    assert "Warning: unknown-function foo" in err

def test_repl_strips_formula_prefix(monkeypatch, capsys):
    repl = _load_repl_module()
    _feed(monkeypatch, repl, ["f(x)=2*3", "exit"])

    repl.main()
    assert "6" in capsys.readouterr().out.splitlines()

def test_repl_eof_quits(monkeypatch, capsys):
    repl = _load_repl_module()

    def fake_read_line(prompt: str) -> str:
        raise EOFError
    monkeypatch.setattr(repl, "read_line", fake_read_line)
    monkeypatch.setattr(sys, "argv", ["jigmath_repl.py"])

    repl.main()
    out = capsys.readouterr().out
    assert "jigmath REPL v0.1" in out
    assert "Exiting." in out

# --- Single formula mode ---

def test_formula_argument_with_bindings(monkeypatch, capsys):
    repl = _load_repl_module()
    monkeypatch.setattr(sys, "argv", ["jigmath_repl.py", "x*y", "x=2", "y=3.5"])

    repl.main()
    assert capsys.readouterr().out.strip() == "7"

def test_formula_argument_with_verbosity(monkeypatch, capsys):
    repl = _load_repl_module()
    monkeypatch.setattr(sys, "argv", ["jigmath_repl.py", "-vv", "foo(1)"])

    repl.main()
    out, err = capsys.readouterr()
    assert out.strip() == "foo(1)"
    assert "Unknown function foo" in err

def test_formula_argument_parse_error_exits(monkeypatch, capsys):
    repl = _load_repl_module()
    monkeypatch.setattr(sys, "argv", ["jigmath_repl.py", "(1+2"])

    with pytest.raises(SystemExit) as excinfo:
        repl.main()
    assert excinfo.value.code == 1
    assert "Unmatched opening bracket" in capsys.readouterr().err

def test_formula_argument_bad_binding_exits(monkeypatch, capsys):
    repl = _load_repl_module()
    monkeypatch.setattr(sys, "argv", ["jigmath_repl.py", "x", "x"])

    with pytest.raises(SystemExit) as excinfo:
        repl.main()
    assert excinfo.value.code == 2
    assert "Expected name=value" in capsys.readouterr().err
