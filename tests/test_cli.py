import json
import sys
from pathlib import Path
from typing import Any

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from couch import couch_cli
from couch.couch_constants import INT_MAX
from couch.couch_evaluator import Evaluator

PROGRAM = "let mut a = 5; a += 5; a"


def test_run_couch_string_input_prints(capsys: pytest.CaptureFixture[str]) -> None:
    assert couch_cli.run_couch(source=PROGRAM, is_string=True) == 0
    assert capsys.readouterr().out.strip() == "10"


def test_run_couch_file_input(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    file_path = tmp_path / "input.couch"
    file_path.write_text('let greeting = "hi";\ngreeting + "!"')
    assert couch_cli.run_couch(source=str(file_path)) == 0
    assert capsys.readouterr().out.strip() == '"hi!"'


def test_run_couch_rejects_other_extensions(tmp_path: Path) -> None:
    file_path = tmp_path / "input.txt"
    file_path.write_text("1")
    with pytest.raises(ValueError, match="Only .couch files are supported."):
        couch_cli.run_couch(source=str(file_path))


def test_run_couch_runtime_error(capsys: pytest.CaptureFixture[str]) -> None:
    assert couch_cli.run_couch(source="let a = 5; a += 1;", is_string=True) == 1
    out = capsys.readouterr().out
    assert out.strip() == "[error] >>> RuntimeError: identifier 'a' is not mutable, at 1:12"


def test_run_source_reports_every_diagnostic(
    capsys: pytest.CaptureFixture[str],
) -> None:
    assert couch_cli.run_source('let = 1; "open') is False
    lines = capsys.readouterr().out.strip().splitlines()
    assert lines == [
        "[error] >>> ParserError: expected identifier, got `=`, at 1:5",
        "[error] >>> LexerError: unterminated string literal, at 1:10",
    ]


def test_run_source_statement_only_program_prints_nothing(
    capsys: pytest.CaptureFixture[str],
) -> None:
    assert couch_cli.run_source("") is True
    assert capsys.readouterr().out == ""


def test_run_source_shared_evaluator(capsys: pytest.CaptureFixture[str]) -> None:
    evaluator = Evaluator()
    couch_cli.run_source("let x = 2;", evaluator)
    couch_cli.run_source("x * 21", evaluator)
    assert capsys.readouterr().out.splitlines() == ["()", "42"]


def test_run_source_token_and_ast_dumps(capsys: pytest.CaptureFixture[str]) -> None:
    couch_cli.run_source("1 + 2", show_tokens=True, show_ast=True)
    out = capsys.readouterr().out
    tokens_part, rest = out.split("[ast] >>>\n")
    assert tokens_part.startswith("[tokens] >>>")
    assert "INTEGER" in tokens_part and "PLUS" in tokens_part
    dumped, value = rest.rsplit("\n", 2)[:2]
    tree: list[Any] = json.loads(dumped)
    assert tree[0]["kind"] == "binary"
    assert tree[0]["value"] == "ADD"
    assert value == "3"


def test_main_runs_string(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(sys, "argv", ["couch", "-s", "20 - 10 - 5"])
    couch_cli.main()
    assert capsys.readouterr().out.strip() == "15"


def test_main_forwards_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, Any] = {}

    def fake_run(**kwargs: Any) -> int:
        captured.update(kwargs)
        return 0

    monkeypatch.setattr(sys, "argv", ["couch", "-s", "1", "-t", "-a"])
    monkeypatch.setattr(couch_cli, "run_couch", fake_run)
    couch_cli.main()
    assert captured == {
        "source": "1",
        "is_string": True,
        "show_tokens": True,
        "show_ast": True,
    }


def test_main_exit_code_on_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "argv", ["couch", "-s", "1 / 0"])
    with pytest.raises(SystemExit) as e:
        couch_cli.main()
    assert e.value.code == 1


def test_main_launches_repl(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict[str, bool]] = []
    monkeypatch.setattr(
        "couch.couch_repl.start_repl", lambda **kwargs: calls.append(kwargs)
    )
    monkeypatch.setattr(sys, "argv", ["couch", "--repl", "-m"])
    couch_cli.main()
    assert calls == [{"show_tokens": False, "show_ast": False, "multiline": True}]


def test_main_without_arguments_starts_repl(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[str] = []
    monkeypatch.setattr("couch.couch_repl.start_repl", lambda: calls.append("repl"))
    monkeypatch.setattr(sys, "argv", ["couch"])
    couch_cli.main()
    assert calls == ["repl"]


def test_main_unknown_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "argv", ["couch", "--target", "c"])
    with pytest.raises(SystemExit) as e:
        couch_cli.main()
    assert e.value.code == 2


@settings(suppress_health_check=[HealthCheck.function_scoped_fixture])  # type: ignore[misc]
@given(source=st.text(max_size=40))  # type: ignore[misc]
def test_run_source_random_input_does_not_crash(
    source: str, capsys: pytest.CaptureFixture[str]
) -> None:
    try:
        couch_cli.run_source(source)
    except Exception:
        pytest.fail("Should not crash on random input")
    finally:
        capsys.readouterr()


@pytest.mark.parametrize(
    "source,message",
    [
        (str(INT_MAX + 1), f"integer literal {INT_MAX + 1} is out of range"),
        ("1" * 5000, "is out of range"),
        ("1" + "0" * 400 + ".5", "float literal"),
        ("(" * 300 + "1" + ")" * 300, "expression nested too deeply"),
        ("-" * 1500 + "1", "expression nested too deeply"),
        ("let x = " + "[" * 600 + "]" * 600 + ";", "expression nested too deeply"),
    ],
)  # type: ignore[misc]
def test_run_source_boundary_inputs_report_errors(
    source: str, message: str, capsys: pytest.CaptureFixture[str]
) -> None:
    assert couch_cli.run_source(source) is False
    (line,) = capsys.readouterr().out.strip().splitlines()
    assert line.startswith("[error] >>> ParserError: ")
    assert message in line


def test_run_source_large_float_results(capsys: pytest.CaptureFixture[str]) -> None:
    assert couch_cli.run_source("10000000000000000.0 * 1.0") is True
    assert capsys.readouterr().out.strip() == "10000000000000000.0"
    assert couch_cli.run_source("1" + "0" * 300 + ".0 * 1" + "0" * 300 + ".0") is False
    assert "RuntimeError: float overflow" in capsys.readouterr().out
