"""Interpreter (ExecutionState + Interpreter) and CLI wrapper.

Provides single-step execution over a byte tape, a driver loop, logging
initialization and an optional tape dump written after a CLI run.
"""

from __future__ import annotations

import argparse
import io
import logging
import sys
from pathlib import Path
from typing import Any, BinaryIO, TextIO

from config import ConfigError, load_config
from errors import (
    DataPointerBounds,
    EndOfProgram,
    InputExhausted,
    InterpreterError,
    MismatchedBrackets,
    OutputFailed,
)
from isa import CELL_MASK, Command, decode_command, mnemonic
from loader import check_brackets, read_program

LOGFILE = "interpreter.log"
DEFAULT_TAPE_CELLS = 30000


def init_logging(logfile: str = LOGFILE, debug: bool = False, console: bool = False) -> None:
    """Configure root logger to write to `logfile`.

    If debug=True set DEBUG level and write the per-step trace to `logfile`.
    If console=True also echo logs to stderr (stdout carries program output).
    Without debug nothing below CRITICAL is emitted and no file is created.
    """
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    lvl = logging.DEBUG if debug else logging.CRITICAL
    root.setLevel(lvl)
    if not debug:
        return

    fh = logging.FileHandler(logfile, mode="w", encoding="utf-8")
    fh.setLevel(lvl)
    fh.setFormatter(logging.Formatter("%(levelname)s %(name)s:%(filename)s:%(lineno)d %(message)s"))
    root.addHandler(fh)

    if console:
        ch = logging.StreamHandler(sys.stderr)
        ch.setLevel(lvl)
        ch.setFormatter(logging.Formatter("%(levelname)5s %(message)s"))
        root.addHandler(ch)


class ExecutionState:
    """Machine state: program bytes, tape and the two cursors."""

    instructions: bytearray
    instruction_cursor: int
    tape: bytearray
    tape_cursor: int

    def __init__(self, tape_size: int = DEFAULT_TAPE_CELLS) -> None:
        self.instructions = bytearray()
        self.instruction_cursor = 0
        self.tape = bytearray(tape_size)
        self.tape_cursor = 0

    def load(self, program: bytes | bytearray | str) -> None:
        """Append `program` to the instruction sequence (str is UTF-8 encoded)."""
        if isinstance(program, str):
            program = program.encode("utf-8")
        self.instructions.extend(program)

    def read_cell(self) -> int:
        return self.tape[self.tape_cursor]

    def write_cell(self, value: int) -> None:
        self.tape[self.tape_cursor] = value & CELL_MASK

    def dump_tape(self, f: TextIO) -> None:
        """Write cursor positions and every non-zero cell to `f`."""
        f.write("=== TAPE DUMP ===\n")
        f.write(f"tape_cells: {len(self.tape)}  tape_cursor: {self.tape_cursor}\n")
        f.write(f"instructions: {len(self.instructions)}  instruction_cursor: {self.instruction_cursor}\n\n")
        for i, v in enumerate(self.tape):
            if not v:
                continue
            ch = chr(v) if 32 <= v < 127 else "."
            f.write(f"{i:08d}: {v:02X}  ({v:3d}) '{ch}'\n")
        f.write("\n=== END DUMP ===\n")


class Interpreter:
    """Executes an ExecutionState one instruction at a time."""

    state: ExecutionState
    source: BinaryIO
    sink: BinaryIO
    steps: int
    lenient_log: bool

    def __init__(
        self,
        state: ExecutionState,
        source: BinaryIO | None = None,
        sink: BinaryIO | None = None,
        validate_brackets: bool = True,
        lenient_log: bool = False,
    ) -> None:
        """Bind `state` to a byte source and sink.

        Raises MismatchedBrackets when `validate_brackets` is set and the
        loaded program has an unbalanced loop bracket.
        """
        if validate_brackets:
            check_brackets(state.instructions)
        self.state = state
        self.source = source if source is not None else io.BytesIO()
        self.sink = sink if sink is not None else io.BytesIO()
        self.steps = 0
        self.lenient_log = bool(lenient_log)
        logging.debug(
            "Interpreter: %d instruction bytes, %d tape cells",
            len(state.instructions),
            len(state.tape),
        )

    @classmethod
    def from_program(
        cls,
        program: bytes | bytearray | str,
        source: BinaryIO | None = None,
        sink: BinaryIO | None = None,
        tape_size: int = DEFAULT_TAPE_CELLS,
        **kwargs: Any,
    ) -> Interpreter:
        """Create a fresh state, load `program` into it and bind an interpreter."""
        state = ExecutionState(tape_size)
        state.load(program)
        return cls(state, source, sink, **kwargs)

    @property
    def finished(self) -> bool:
        return self.state.instruction_cursor >= len(self.state.instructions)

    def _log_step(self) -> None:
        # skip verbose per-step logs in lenient mode to reduce log size
        if self.lenient_log or not logging.getLogger().isEnabledFor(logging.DEBUG):
            return
        st = self.state
        logging.debug(
            "STEP: %6d IP: %5d DP: %5d CELL: %3d\tINSTR: %s",
            self.steps,
            st.instruction_cursor,
            st.tape_cursor,
            st.read_cell(),
            mnemonic(st.instructions[st.instruction_cursor]),
        )

    def step(self) -> None:
        """Execute the instruction under the instruction cursor, then advance it by one.

        Raises EndOfProgram once the cursor is past the last instruction; any
        other InterpreterError is fatal and leaves the run where it failed.
        """
        st = self.state
        cmd = decode_command(st.instructions, st.instruction_cursor)
        if not 0 <= st.tape_cursor < len(st.tape):
            # a previous move already failed; the run cannot continue
            raise DataPointerBounds(st.tape_cursor, len(st.tape))
        self._log_step()
        if cmd is not None:
            self.exec(cmd)
        st.instruction_cursor += 1
        self.steps += 1

    def run(self, step_limit: int | None = None) -> tuple[int, str]:
        """Step until end of program or until `step_limit` steps ran in total.

        Returns (steps, state) where state is "stopped" or "limit".
        """
        while True:
            if step_limit is not None and self.steps >= step_limit and not self.finished:
                logging.debug("Step limit %d reached at IP %d", step_limit, self.state.instruction_cursor)
                return self.steps, "limit"
            try:
                self.step()
            except EndOfProgram:
                logging.debug("End of program after %d steps", self.steps)
                return self.steps, "stopped"

    def exec(self, cmd: Command) -> None:  # noqa: C901
        st = self.state

        if cmd == Command.RIGHT:
            self._move(1)
            return
        if cmd == Command.LEFT:
            self._move(-1)
            return

        if cmd == Command.INC:
            st.write_cell(st.read_cell() + 1)
            return
        if cmd == Command.DEC:
            st.write_cell(st.read_cell() - 1)
            return

        if cmd == Command.OUT:
            self._write_byte(st.read_cell())
            return
        if cmd == Command.IN:
            st.write_cell(self._read_byte())
            return

        if cmd == Command.LOOP_START:
            if st.read_cell() == 0:
                target = self._scan_forward(st.instruction_cursor)
                logging.debug("LOOP_START: cell is 0 -> skip to ']' at %d", target)
                st.instruction_cursor = target
            return
        if cmd == Command.LOOP_END:
            if st.read_cell() != 0:
                target = self._scan_backward(st.instruction_cursor)
                logging.debug("LOOP_END: cell is %d -> back to '[' at %d", st.read_cell(), target)
                st.instruction_cursor = target
            return

    def _move(self, delta: int) -> None:
        st = self.state
        st.tape_cursor += delta
        if not 0 <= st.tape_cursor < len(st.tape):
            logging.debug("tape cursor moved out of the tape: %d", st.tape_cursor)
            raise DataPointerBounds(st.tape_cursor, len(st.tape))

    def _scan_forward(self, start: int) -> int:
        """Return the offset of the ']' matching the '[' at `start`."""
        program = self.state.instructions
        depth = 1
        pos = start
        while depth:
            pos += 1
            if pos >= len(program):
                raise MismatchedBrackets(start, "[")
            if program[pos] == Command.LOOP_START:
                depth += 1
            elif program[pos] == Command.LOOP_END:
                depth -= 1
        return pos

    def _scan_backward(self, start: int) -> int:
        """Return the offset of the '[' matching the ']' at `start`."""
        program = self.state.instructions
        depth = 1
        pos = start
        while depth:
            pos -= 1
            if pos < 0:
                raise MismatchedBrackets(start, "]")
            if program[pos] == Command.LOOP_END:
                depth += 1
            elif program[pos] == Command.LOOP_START:
                depth -= 1
        return pos

    def _write_byte(self, value: int) -> None:
        try:
            self.sink.write(bytes((value,)))
            self.sink.flush()
        except (OSError, ValueError) as e:
            msg = f"failed to write output byte {value}: {e}"
            raise OutputFailed(msg) from e
        logging.debug("OUT: wrote %d (%r)", value, chr(value))

    def _read_byte(self) -> int:
        try:
            data = self.source.read(1)
        except (OSError, ValueError) as e:
            msg = f"failed to read input byte: {e}"
            raise InputExhausted(msg) from e
        if not data:
            msg = "input exhausted"
            raise InputExhausted(msg)
        logging.debug("IN: read %d (%r)", data[0], chr(data[0]))
        return data[0]


# ---------- Public API ----------
def run_bytes(
    program: bytes | str,
    input_bytes: bytes = b"",
    config: dict[str, Any] | None = None,
) -> tuple[bytes, int, str]:
    """Run `program` in memory and return (output, steps, state)."""
    cfg = load_config(config)
    out = io.BytesIO()
    interp = Interpreter.from_program(
        program,
        io.BytesIO(input_bytes),
        out,
        tape_size=cfg["tape_cells"],
        validate_brackets=cfg["check_brackets"],
        lenient_log=cfg["lenient_log"],
    )
    steps, state = interp.run(cfg["step_limit"])
    return out.getvalue(), steps, state


# ---------- CLI ----------
def _write_tape_dump(state: ExecutionState, path: str) -> None:
    try:
        with open(path, "w", encoding="utf-8") as f:
            state.dump_tape(f)
    except OSError as e:
        print("Failed to write tape dump:", e, file=sys.stderr)


def _run_cli(program: bytes, source: BinaryIO, cfg: dict[str, Any], dump_path: str | None) -> int:
    try:
        interp = Interpreter.from_program(
            program,
            source,
            sys.stdout.buffer,
            tape_size=cfg["tape_cells"],
            validate_brackets=cfg["check_brackets"],
            lenient_log=cfg["lenient_log"],
        )
    except MismatchedBrackets as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    try:
        steps, state = interp.run(cfg["step_limit"])
    except InterpreterError as e:
        logging.debug("Run failed after %d steps: %s", interp.steps, e)
        print(f"error: {e}", file=sys.stderr)
        status = 1
    else:
        status = 0
        if state == "limit":
            print(f"step limit reached after {steps} steps", file=sys.stderr)
            status = 3

    if dump_path:
        _write_tape_dump(interp.state, dump_path)
    return status


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(
        prog="tapevm",
        description="Tape interpreter. Runs one program file using stdin/stdout as its input and output.",
    )
    ap.add_argument("program", nargs="*", help="program file (exactly one).")
    ap.add_argument("--config", help="path to yaml config", default=None)
    ap.add_argument("--input", help="read program input from this file instead of stdin", default=None)
    ap.add_argument("--dump", help="write a tape dump to this file after the run", default=None)

    help_debug = "enable debug logging to logfile (detailed per-step state)."
    help_logfile = "path to interpreter log"
    help_console = "also echo logs to stderr (only when --debug)"
    ap.add_argument("--debug", action="store_true", help=help_debug)
    ap.add_argument("--logfile", default=LOGFILE, help=help_logfile)
    ap.add_argument("--console", action="store_true", help=help_console)
    args = ap.parse_args(argv)

    if not args.program:
        print("interactive mode is not implemented; pass a program file", file=sys.stderr)
        return 2
    if len(args.program) > 1:
        ap.error("too many arguments")

    init_logging(logfile=args.logfile, debug=args.debug, console=args.console)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        print("Bad config:", e, file=sys.stderr)
        return 2

    program_path = Path(args.program[0])
    if not program_path.is_file():
        print("Program file not found:", args.program[0], file=sys.stderr)
        return 2
    try:
        program = read_program(program_path)
    except OSError as e:
        print("Cannot read program file:", e, file=sys.stderr)
        return 2
    logging.debug("CLI: loaded %d bytes from %s", len(program), program_path)

    if args.input is None:
        return _run_cli(program, sys.stdin.buffer, cfg, args.dump)

    try:
        source = open(args.input, "rb")
    except OSError as e:
        print("Cannot open input file:", e, file=sys.stderr)
        return 2
    with source:
        return _run_cli(program, source, cfg, args.dump)


if __name__ == "__main__":
    sys.exit(main())
