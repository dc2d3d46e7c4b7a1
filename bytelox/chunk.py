"""Bytecode chunks: the instruction stream, its line table and constant pool."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

UINT8_MAX = 255
UINT8_COUNT = UINT8_MAX + 1

DEBUG_PRINT_CODE = True
DEBUG_TRACE_EXECUTION = True


class OpCode(IntEnum):
    """One-byte operation codes, in their wire order."""

    CONSTANT = 0
    NIL = 1
    TRUE = 2
    FALSE = 3
    POP = 4
    GET_GLOBAL = 5
    SET_GLOBAL = 6
    GET_LOCAL = 7
    SET_LOCAL = 8
    DEFINE_GLOBAL = 9
    EQUAL = 10
    GREATER = 11
    LESS = 12
    ADD = 13
    SUBTRACT = 14
    MULTIPLY = 15
    DIVIDE = 16
    NOT = 17
    NEGATE = 18
    PRINT = 19
    RETURN = 20


@dataclass
class Chunk:
    """A sequence of bytecode with a parallel array of source line numbers."""

    code: bytearray = field(default_factory=bytearray)
    lines: list[int] = field(default_factory=list)
    constants: list[Any] = field(default_factory=list)

    def write(self, byte: int, line: int) -> None:
        """Append one byte (opcode or operand) produced from source ``line``."""
        self.code.append(byte)
        self.lines.append(line)

    def add_constant(self, value: Any) -> int:
        """Append ``value`` to the constant pool and return its index."""
        self.constants.append(value)
        return len(self.constants) - 1

    def __len__(self) -> int:
        return len(self.code)