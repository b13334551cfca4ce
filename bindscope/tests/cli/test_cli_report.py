# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import io
import json
from pathlib import Path

import pytest

from bindscope.cli import ReportOptions, main, run

_SRC = """let total = 0
func add(x: Int) {
	total = total + x + missing
}
"""


def _write(tmp_path: Path, text: str) -> Path:
	path = tmp_path / "input.bs"
	path.write_text(text)
	return path


def test_human_report_lists_every_reference(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	code = main([str(_write(tmp_path, _SRC))])
	out = capsys.readouterr().out
	assert code == 0
	assert out.count("Variable: ") == 4
	assert "Variable: missing (3:22)\nRefers to:\n<unresolved>" in out
	assert "x: Int (parameter, 2:10)" in out
	assert "let total = 0 (binding, 1:1)" in out


def test_hide_unresolved_drops_unknown_names(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	code = main([str(_write(tmp_path, _SRC)), "--hide-unresolved"])
	out = capsys.readouterr().out
	assert code == 0
	assert out.count("Variable: ") == 3
	assert "missing" not in out


def test_json_report(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	code = main([str(_write(tmp_path, _SRC)), "--json"])
	payload = json.loads(capsys.readouterr().out)
	assert code == 0
	assert payload["exit_code"] == 0
	assert payload["diagnostics"] == []
	names = [r["name"] for r in payload["resolutions"]]
	assert names == ["total", "total", "x", "missing"]
	assert payload["resolutions"][-1]["declaration"] is None
	assert payload["resolutions"][2]["declaration"]["kind"] == "parameter"


def test_syntax_error_exits_with_one(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	path = _write(tmp_path, "let = 1\n")
	code = main([str(path)])
	captured = capsys.readouterr()
	assert code == 1
	assert captured.out == ""
	assert captured.err.startswith(f"{path}:1:")
	assert "error: unexpected token" in captured.err


def test_syntax_error_in_json_mode(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	code = main([str(_write(tmp_path, "func f( {\n")), "--json"])
	payload = json.loads(capsys.readouterr().out)
	assert code == 1
	assert payload["exit_code"] == 1
	assert payload["resolutions"] == []
	assert payload["diagnostics"][0]["phase"] == "parser"


def test_missing_file_is_reported(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	code = main([str(tmp_path / "absent.bs")])
	captured = capsys.readouterr()
	assert code == 1
	assert "cannot read source" in captured.err


def test_non_utf8_file_is_reported(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	path = tmp_path / "latin1.bs"
	path.write_bytes(b"let a = \xff\n")
	code = main([str(path), "--json"])
	payload = json.loads(capsys.readouterr().out)
	assert code == 1
	assert payload["exit_code"] == 1
	diag = payload["diagnostics"][0]
	assert diag["phase"] == "driver"
	assert diag["file"] == str(path)
	assert diag["message"] == "cannot read source: not valid UTF-8 (byte offset 8)"


def test_bad_string_escape_exits_with_one(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	path = _write(tmp_path, 'let s = "\\x"\n')
	code = main([str(path)])
	captured = capsys.readouterr()
	assert code == 1
	assert captured.out == ""
	assert captured.err.startswith(f"{path}:1:9: error: invalid escape sequence")


def test_usage_error_exits_with_two(capsys: pytest.CaptureFixture[str]) -> None:
	with pytest.raises(SystemExit) as excinfo:
		main([])
	assert excinfo.value.code == 2


def test_run_writes_to_given_streams() -> None:
	out = io.StringIO()
	err = io.StringIO()
	code = run("let a = 1\na\n", file="mem.bs", options=ReportOptions(), out=out, err=err)
	assert code == 0
	assert err.getvalue() == ""
	assert out.getvalue().startswith("Variable: a (2:1)\nRefers to:\nlet a = 1 (binding, 1:1)\n")
