"""ISA: command bytes and helpers."""

from __future__ import annotations

from enum import IntEnum

from errors import EndOfProgram


class Command(IntEnum):
    """Keeps the eight command bytes. Any other byte is a comment."""

    RIGHT = ord(">")  # tape_cursor += 1
    LEFT = ord("<")  # tape_cursor -= 1
    INC = ord("+")  # cell += 1 (mod 256)
    DEC = ord("-")  # cell -= 1 (mod 256)
    OUT = ord(".")  # write cell
    IN = ord(",")  # read into cell
    LOOP_START = ord("[")  # jump past matching ']' if cell == 0
    LOOP_END = ord("]")  # jump back to matching '[' if cell != 0


COMMAND_BYTES = frozenset(int(c) for c in Command)

CELL_MASK = 0xFF


def decode_command(program: bytes | bytearray, offset: int) -> Command | None:
    """Decode the byte at `offset`.

    Returns the Command, or None for a non-command byte.
    Raises EndOfProgram if `offset` is past the end of `program`.
    """
    if offset < 0 or offset >= len(program):
        raise EndOfProgram()
    b = program[offset]
    if b in COMMAND_BYTES:
        return Command(b)
    return None


def mnemonic(byte: int) -> str:
    """Get a printable mnemonic for a program byte."""
    if byte in COMMAND_BYTES:
        return f"{Command(byte).name} '{chr(byte)}'"
    if 32 <= byte < 127:
        return f"NOP '{chr(byte)}'"
    return f"NOP 0x{byte:02X}"
