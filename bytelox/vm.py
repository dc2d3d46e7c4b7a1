"""Stack-based virtual machine executing compiled chunks."""

from __future__ import annotations

import math
import operator
import sys
from collections.abc import Callable
from enum import Enum
from typing import Any, Optional, TextIO

from bytelox.chunk import DEBUG_PRINT_CODE, DEBUG_TRACE_EXECUTION, Chunk, OpCode
from bytelox.compiler import CompileError, compile_source
from bytelox.debug import disassemble_instruction
from bytelox.objects import LoxString, StringPool
from bytelox.table import Table
from bytelox.value import format_value, is_falsey, values_equal


class InterpretResult(Enum):
    """Outcome of interpreting one source text."""

    OK = 0
    COMPILE_ERROR = 1
    RUNTIME_ERROR = 2


class LoxRuntimeError(Exception):
    """An error raised while executing bytecode, tagged with its source line."""

    def __init__(self, message: str, line: Optional[int] = None) -> None:
        self.message = message
        self.line = line
        super().__init__(message)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _divide(a: float, b: float) -> float:
    try:
        return a / b
    except ZeroDivisionError:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)


class VM:
    """Executes programs; globals and interned strings persist between runs."""

    def __init__(
        self,
        out: Optional[TextIO] = None,
        err: Optional[TextIO] = None,
        *,
        trace: bool = DEBUG_TRACE_EXECUTION,
        print_code: bool = DEBUG_PRINT_CODE,
    ) -> None:
        self._out = out
        self._err = err
        self.trace = trace
        self.print_code = print_code
        self.strings = StringPool()
        self.globals = Table()
        self._stack: list[Any] = []
        self._chunk = Chunk()
        self._ip = 0

    @property
    def out(self) -> TextIO:
        """Stream receiving program output and diagnostics listings."""
        return self._out if self._out is not None else sys.stdout

    @property
    def err(self) -> TextIO:
        """Stream receiving error reports."""
        return self._err if self._err is not None else sys.stderr

    @property
    def stack(self) -> tuple[Any, ...]:
        """Snapshot of the value stack, bottom first."""
        return tuple(self._stack)

    def push(self, value: Any) -> None:
        """Push a value onto the stack."""
        self._stack.append(value)

    def pop(self) -> Any:
        """Remove and return the top of the stack."""
        return self._stack.pop()

    def _peek(self, distance: int) -> Any:
        return self._stack[-1 - distance]

    def _read_byte(self) -> int:
        byte = self._chunk.code[self._ip]
        self._ip += 1
        return byte

    def _read_constant(self) -> Any:
        return self._chunk.constants[self._read_byte()]

    def _read_string(self) -> LoxString:
        constant = self._read_constant()
        if not isinstance(constant, LoxString):
            raise self._error("Constant is not a variable name.")
        return constant

    def _error(self, message: str) -> LoxRuntimeError:
        return LoxRuntimeError(message, self._chunk.lines[self._ip - 1])

    def interpret(self, source: str) -> InterpretResult:
        """Compile and run ``source``, reporting any error to the error stream."""
        listing = self.out if self.print_code else None
        try:
            chunk = compile_source(source, self.strings, listing)
        except CompileError as exc:
            self.err.write(f"{exc}\n")
            return InterpretResult.COMPILE_ERROR

        self._chunk = chunk
        self._ip = 0
        try:
            self._run()
        except LoxRuntimeError as exc:
            self.err.write(f"{exc.message}\n")
            self.err.write(f"[line {exc.line}] in script\n")
            self._stack.clear()
            return InterpretResult.RUNTIME_ERROR
        return InterpretResult.OK

    def _trace(self) -> None:
        slots = "".join(f"[{format_value(value)}]" for value in self._stack)
        self.out.write(f" {slots}\n")
        text, _ = disassemble_instruction(self._chunk, self._ip)
        self.out.write(f"{text}\n")

    def _run(self) -> None:
        while True:
            if self.trace:
                self._trace()
            instruction = self._read_byte()
            try:
                op = OpCode(instruction)
            except ValueError:
                continue
            if op is OpCode.RETURN:
                return
            _DISPATCH[op](self)

    # -- instructions ----------------------------------------------------

    def _op_constant(self) -> None:
        constant = self._read_constant()
        self.push(constant)
        self.out.write(f"{format_value(constant)}\n")

    def _op_nil(self) -> None:
        self.push(None)

    def _op_true(self) -> None:
        self.push(True)

    def _op_false(self) -> None:
        self.push(False)

    def _op_pop(self) -> None:
        self.pop()

    def _op_get_global(self) -> None:
        name = self._read_string()
        try:
            value = self.globals.get(name)
        except KeyError:
            raise self._error(f"Undefined variable '{name.chars}'.") from None
        self.push(value)

    def _op_set_global(self) -> None:
        name = self._read_string()
        if self.globals.set(name, self._peek(0)):
            self.globals.delete(name)
            raise self._error(f"undefined variable '{name.chars}'.")

    def _op_get_local(self) -> None:
        slot = self._read_byte()
        self.push(self._stack[slot])

    def _op_set_local(self) -> None:
        slot = self._read_byte()
        self._stack[slot] = self._peek(0)

    def _op_define_global(self) -> None:
        name = self._read_string()
        self.globals.set(name, self._peek(0))
        self.pop()

    def _op_equal(self) -> None:
        b = self.pop()
        a = self.pop()
        self.push(values_equal(a, b))

    def _numeric(self, fn: Callable[[float, float], Any]) -> None:
        if not (_is_number(self._peek(0)) and _is_number(self._peek(1))):
            raise self._error("Operands must be numbers.")
        b = self.pop()
        a = self.pop()
        self.push(fn(a, b))

    def _op_greater(self) -> None:
        self._numeric(operator.gt)

    def _op_less(self) -> None:
        self._numeric(operator.lt)

    def _op_subtract(self) -> None:
        self._numeric(operator.sub)

    def _op_multiply(self) -> None:
        self._numeric(operator.mul)

    def _op_divide(self) -> None:
        self._numeric(_divide)

    def _op_add(self) -> None:
        b, a = self._peek(0), self._peek(1)
        if isinstance(a, LoxString) and isinstance(b, LoxString):
            self.pop()
            self.pop()
            self.push(self.strings.intern(a.chars + b.chars))
        elif _is_number(a) and _is_number(b):
            self.pop()
            self.pop()
            self.push(a + b)
        else:
            raise self._error("Operands must be two numbers or two strings.")

    def _op_not(self) -> None:
        self.push(is_falsey(self.pop()))

    def _op_negate(self) -> None:
        if not _is_number(self._peek(0)):
            raise self._error("Operand must be a number")
        self.push(-self.pop())

    def _op_print(self) -> None:
        self.out.write(f"{format_value(self.pop())}\n")


_DISPATCH: dict[OpCode, Callable[[VM], None]] = {
    OpCode.CONSTANT: VM._op_constant,
    OpCode.NIL: VM._op_nil,
    OpCode.TRUE: VM._op_true,
    OpCode.FALSE: VM._op_false,
    OpCode.POP: VM._op_pop,
    OpCode.GET_GLOBAL: VM._op_get_global,
    OpCode.SET_GLOBAL: VM._op_set_global,
    OpCode.GET_LOCAL: VM._op_get_local,
    OpCode.SET_LOCAL: VM._op_set_local,
    OpCode.DEFINE_GLOBAL: VM._op_define_global,
    OpCode.EQUAL: VM._op_equal,
    OpCode.GREATER: VM._op_greater,
    OpCode.LESS: VM._op_less,
    OpCode.ADD: VM._op_add,
    OpCode.SUBTRACT: VM._op_subtract,
    OpCode.MULTIPLY: VM._op_multiply,
    OpCode.DIVIDE: VM._op_divide,
    OpCode.NOT: VM._op_not,
    OpCode.NEGATE: VM._op_negate,
    OpCode.PRINT: VM._op_print,
}