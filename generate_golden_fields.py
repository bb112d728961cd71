#!/usr/bin/env python3
"""
Fill the expect section (out_stdout, ticks, state, tape, tape_cursor) of a golden YAML.
Usage: python generate_golden_fields.py path/to/golden.yaml
"""

from __future__ import annotations

import io
import os
import sys
from typing import Any

import yaml

from config import load_config
from errors import InterpreterError, MismatchedBrackets
from interpreter import Interpreter


def run_record(doc: dict[str, Any]) -> dict[str, Any]:
    """Run the program of one golden record and return its expect section."""
    src = doc.get("in_source", "")
    stdin = doc.get("in_stdin", "")
    cfg = load_config(doc.get("config"))

    out = io.BytesIO()
    try:
        interp = Interpreter.from_program(
            src,
            io.BytesIO(stdin.encode("latin-1")),
            out,
            tape_size=cfg["tape_cells"],
            validate_brackets=cfg["check_brackets"],
            lenient_log=cfg["lenient_log"],
        )
    except MismatchedBrackets as e:
        return {"error": type(e).__name__}

    expect: dict[str, Any] = {}
    try:
        ticks, state = interp.run(cfg["step_limit"])
        expect["ticks"] = ticks
        expect["state"] = state
    except InterpreterError as e:
        expect["error"] = type(e).__name__

    expect["out_stdout"] = out.getvalue().decode("latin-1")
    expect["tape"] = {i: v for i, v in enumerate(interp.state.tape) if v}
    expect["tape_cursor"] = interp.state.tape_cursor
    return expect


def main(path: str) -> None:
    if not os.path.exists(path):
        print("File not found:", path)
        sys.exit(2)

    with open(path, encoding="utf-8") as f:
        doc = yaml.safe_load(f) or {}

    if "in_source" not in doc:
        print("No 'in_source' found in YAML - nothing to run")
        sys.exit(2)

    doc["expect"] = run_record(doc)

    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(doc, f, default_flow_style=False, sort_keys=False, allow_unicode=True)

    print(f"Updated {path} with expected output, ticks and tape.")


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: generate_golden_fields.py path/to/golden.yaml")
        sys.exit(1)
    main(sys.argv[1])
