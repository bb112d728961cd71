"""Tests for the command line front-end."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from interpreter import main

HELLO_WORLD = (
    b"++++++++[>++++[>++>+++>+++>+<<<<-]>+>+>->>+[<]<-]>>."
    b">---.+++++++..+++.>>.<-.<.+++.------.--------.>>+.>++."
)


def _program(tmp_path: Path, code: bytes, name: str = "prog.b") -> str:
    p = tmp_path / name
    p.write_bytes(code)
    return str(p)


def test_runs_program_file(tmp_path: Path, capsysbinary: Any) -> None:
    assert main([_program(tmp_path, HELLO_WORLD)]) == 0
    out, err = capsysbinary.readouterr()
    assert out == b"Hello World!\n"
    assert err == b""


def test_input_file(tmp_path: Path, capsysbinary: Any) -> None:
    inp = tmp_path / "in.txt"
    inp.write_bytes(b"ok\0")
    assert main([_program(tmp_path, b",[.,]"), "--input", str(inp)]) == 0
    assert capsysbinary.readouterr().out == b"ok"


def test_no_arguments_is_not_interactive(capsys: Any) -> None:
    assert main([]) == 2
    assert "interactive mode is not implemented" in capsys.readouterr().err


def test_too_many_arguments(tmp_path: Path, capsys: Any) -> None:
    prog = _program(tmp_path, b"+")
    with pytest.raises(SystemExit) as exc:
        main([prog, prog])
    assert exc.value.code == 2
    assert "too many arguments" in capsys.readouterr().err


def test_missing_program(tmp_path: Path, capsys: Any) -> None:
    assert main([str(tmp_path / "absent.b")]) == 2
    assert "Program file not found" in capsys.readouterr().err


def test_unreadable_program(tmp_path: Path, capsys: Any, monkeypatch: Any) -> None:
    import interpreter

    def _deny(path: Any) -> bytes:
        raise PermissionError(13, "Permission denied", str(path))

    monkeypatch.setattr(interpreter, "read_program", _deny)
    assert main([_program(tmp_path, b"+")]) == 2
    err = capsys.readouterr().err
    assert "Cannot read program file:" in err
    assert "Permission denied" in err


def test_missing_input_file(tmp_path: Path, capsys: Any) -> None:
    assert main([_program(tmp_path, b","), "--input", str(tmp_path / "absent")]) == 2
    assert "Cannot open input file" in capsys.readouterr().err


def test_pointer_out_of_bounds_exits_1(tmp_path: Path, capsysbinary: Any) -> None:
    assert main([_program(tmp_path, b"+.<.")]) == 1
    out, err = capsysbinary.readouterr()
    assert out == b"\x01"
    assert b"error: data pointer out of bounds" in err


def test_mismatched_brackets_exit_1(tmp_path: Path, capsys: Any) -> None:
    assert main([_program(tmp_path, b"+[")]) == 1
    assert "error: unmatched '[' at offset 1" in capsys.readouterr().err


def test_input_exhausted_exits_1(tmp_path: Path, capsys: Any) -> None:
    inp = tmp_path / "empty.txt"
    inp.write_bytes(b"")
    assert main([_program(tmp_path, b","), "--input", str(inp)]) == 1
    assert "error: input exhausted" in capsys.readouterr().err


def test_config_step_limit(tmp_path: Path, capsys: Any) -> None:
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("step_limit: 20\n", encoding="utf-8")
    assert main([_program(tmp_path, b"+[]"), "--config", str(cfg)]) == 3
    assert "step limit reached after 20 steps" in capsys.readouterr().err


def test_config_tape_cells(tmp_path: Path, capsys: Any) -> None:
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("tape_cells: 2\n", encoding="utf-8")
    assert main([_program(tmp_path, b">>"), "--config", str(cfg)]) == 1
    assert "0..1" in capsys.readouterr().err


def test_bad_config(tmp_path: Path, capsys: Any) -> None:
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("tape_cells: -5\n", encoding="utf-8")
    assert main([_program(tmp_path, b"+"), "--config", str(cfg)]) == 2
    assert "Bad config:" in capsys.readouterr().err


def test_debug_log(tmp_path: Path) -> None:
    log = tmp_path / "run.log"
    assert main([_program(tmp_path, b"+-"), "--debug", "--logfile", str(log)]) == 0
    text = log.read_text(encoding="utf-8")
    assert "CLI: loaded 2 bytes" in text
    assert "STEP:      0 IP:     0 DP:     0 CELL:   0\tINSTR: INC '+'" in text
    assert "End of program after 2 steps" in text


def test_no_log_file_without_debug(tmp_path: Path, monkeypatch: Any) -> None:
    monkeypatch.chdir(tmp_path)
    assert main([_program(tmp_path, b"+")]) == 0
    assert not (tmp_path / "interpreter.log").exists()


def test_dump_written_after_failure(tmp_path: Path) -> None:
    dump = tmp_path / "tape.txt"
    assert main([_program(tmp_path, b"+++>++<<"), "--dump", str(dump)]) == 1
    text = dump.read_text(encoding="utf-8")
    assert "tape_cursor: -1" in text
    assert "00000000: 03" in text
    assert "00000001: 02" in text
