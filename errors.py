"""Errors raised by the interpreter core.

`EndOfProgram` is the normal stop signal; every other subclass of
`InterpreterError` is fatal to the current run.
"""

from __future__ import annotations


class InterpreterError(Exception):
    """Base class for everything the interpreter raises while stepping."""


class EndOfProgram(InterpreterError):
    """Instruction cursor is past the last instruction."""

    def __init__(self) -> None:
        super().__init__("end of program")


class DataPointerBounds(InterpreterError):
    """Tape cursor left the tape."""

    def __init__(self, cursor: int, length: int) -> None:
        self.cursor = cursor
        self.length = length
        super().__init__(f"data pointer out of bounds: {cursor} not in 0..{length - 1}")


class MismatchedBrackets(InterpreterError):
    def __init__(self, offset: int, bracket: str | None = None) -> None:
        self.offset = offset
        self.bracket = bracket
        what = f"'{bracket}'" if bracket else "bracket"
        super().__init__(f"unmatched {what} at offset {offset}")


class InputExhausted(InterpreterError):
    """Input source returned no byte (EOF) or failed."""


class OutputFailed(InterpreterError):
    """Output sink rejected a byte."""
