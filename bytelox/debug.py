"""Disassembler rendering chunks as readable instruction listings."""

from __future__ import annotations

from collections.abc import Iterator

from bytelox.chunk import Chunk, OpCode
from bytelox.value import format_value

_CONSTANT_OPS = {
    OpCode.CONSTANT: "OP_CONSTANT",
    OpCode.GET_GLOBAL: "OP_GET_GLOBAL",
    OpCode.SET_GLOBAL: "OP_SET_GLOBAL",
    OpCode.DEFINE_GLOBAL: "OP_DEFINE_GLOBAL",
}

# Local-slot instructions are listed under the global mnemonics.
_BYTE_OPS = {
    OpCode.GET_LOCAL: "OP_GET_GLOBAL",
    OpCode.SET_LOCAL: "OP_SET_GLOBAL",
}


def disassemble_instruction(chunk: Chunk, offset: int) -> tuple[str, int]:
    """Render the instruction at ``offset``; return its text and the next offset."""
    line = chunk.lines[offset]
    if offset > 0 and line == chunk.lines[offset - 1]:
        prefix = f"{offset:04d}  | "
    else:
        prefix = f"{offset:04d} {line:4d} "

    instruction = chunk.code[offset]
    try:
        op = OpCode(instruction)
    except ValueError:
        return f"{prefix}Unknown opcode {instruction}", offset + 1

    if op in _CONSTANT_OPS:
        constant = chunk.code[offset + 1]
        shown = format_value(chunk.constants[constant])
        return f"{prefix}{_CONSTANT_OPS[op]:<16} {constant:4d} '{shown}'", offset + 2
    if op in _BYTE_OPS:
        slot = chunk.code[offset + 1]
        return f"{prefix}{_BYTE_OPS[op]:<16} {slot:4d}", offset + 2
    return f"{prefix}OP_{op.name}", offset + 1


def _instructions(chunk: Chunk) -> Iterator[str]:
    offset = 0
    while offset < len(chunk.code):
        text, offset = disassemble_instruction(chunk, offset)
        yield text


def disassemble_chunk(chunk: Chunk, name: str) -> str:
    """Return a listing of every instruction in ``chunk`` under a ``name`` header."""
    lines = [f"== {name} =="]
    lines.extend(_instructions(chunk))
    return "\n".join(lines) + "\n"