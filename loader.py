"""Module: read program text and check its loop brackets.

This module contains:
- read_program(path) -> program bytes
- find_unmatched_bracket(program) -> offset or None
- check_brackets(program) raising MismatchedBrackets
"""

from __future__ import annotations

from pathlib import Path

from errors import MismatchedBrackets
from isa import Command


def read_program(path: str | Path) -> bytes:
    """Return the whole file as raw bytes; every byte becomes an instruction."""
    return Path(path).read_bytes()


def find_unmatched_bracket(program: bytes | bytearray) -> int | None:
    """Return the offset of the first bracket without a partner, or None.

    A stray ']' is reported at its own offset as soon as it is seen. Unclosed
    '[' are reported at the offset of the innermost one still open at the end.
    """
    open_offsets: list[int] = []
    for offset, b in enumerate(program):
        if b == Command.LOOP_START:
            open_offsets.append(offset)
        elif b == Command.LOOP_END:
            if not open_offsets:
                return offset
            open_offsets.pop()
    if open_offsets:
        return open_offsets[-1]
    return None


def check_brackets(program: bytes | bytearray) -> None:
    """Raise MismatchedBrackets if `program` has unbalanced loop brackets."""
    offset = find_unmatched_bracket(program)
    if offset is not None:
        raise MismatchedBrackets(offset, chr(program[offset]))
