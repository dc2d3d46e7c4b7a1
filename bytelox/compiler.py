"""Single-pass Pratt compiler turning source text into a bytecode chunk."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Optional, TextIO

from bytelox.chunk import DEBUG_PRINT_CODE, UINT8_COUNT, UINT8_MAX, Chunk, OpCode
from bytelox.debug import disassemble_chunk
from bytelox.objects import StringPool
from bytelox.scanner import Scanner, Token, TokenType
from bytelox.value import format_value  # noqa: F401  (keeps constants printable)


class CompileError(Exception):
    """Raised when source text fails to compile; holds every reported error."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("\n".join(self.errors))


class Precedence(IntEnum):
    """Binding strength of operators, lowest first."""

    NONE = 0
    ASSIGNMENT = 1  # =
    OR = 2  # or
    AND = 3  # and
    EQUALITY = 4  # == !=
    COMPARISON = 5  # < > <= >=
    TERM = 6  # + -
    FACTOR = 7  # * /
    UNARY = 8  # ! -
    CALL = 9  # . ()
    PRIMARY = 10


ParseFn = Callable[["Compiler", bool], None]


@dataclass(frozen=True)
class _ParseRule:
    prefix: Optional[ParseFn]
    infix: Optional[ParseFn]
    precedence: Precedence


@dataclass
class _Local:
    name: Token
    depth: int


_SYNC_TOKENS = frozenset(
    {
        TokenType.CLASS,
        TokenType.FUN,
        TokenType.VAR,
        TokenType.FOR,
        TokenType.IF,
        TokenType.WHILE,
        TokenType.PRINT,
        TokenType.RETURN,
    }
)

_BINARY_OPS: dict[TokenType, tuple[OpCode, ...]] = {
    TokenType.PLUS: (OpCode.ADD,),
    TokenType.MINUS: (OpCode.SUBTRACT,),
    TokenType.STAR: (OpCode.MULTIPLY,),
    TokenType.SLASH: (OpCode.DIVIDE,),
    TokenType.BANG_EQUAL: (OpCode.EQUAL, OpCode.NOT),
    TokenType.EQUAL_EQUAL: (OpCode.EQUAL,),
    TokenType.GREATER: (OpCode.GREATER,),
    TokenType.GREATER_EQUAL: (OpCode.GREATER,),
    TokenType.LESS: (OpCode.LESS,),
    TokenType.LESS_EQUAL: (OpCode.GREATER, OpCode.NOT),
}

_LITERALS = {
    TokenType.FALSE: OpCode.FALSE,
    TokenType.NIL: OpCode.NIL,
    TokenType.TRUE: OpCode.TRUE,
}


class Compiler:
    """Compiles one source text into a chunk, reporting errors as CompileError."""

    def __init__(
        self,
        source: str,
        strings: Optional[StringPool] = None,
        chunk: Optional[Chunk] = None,
    ) -> None:
        self._scanner = Scanner(source)
        self.strings = strings if strings is not None else StringPool()
        self.chunk = chunk if chunk is not None else Chunk()
        self.errors: list[str] = []
        self._current = Token(TokenType.EOF, "", 1)
        self._previous = self._current
        self._had_error = False
        self._panic_mode = False
        self._locals: list[_Local] = []
        self._scope_depth = 0

    # -- error reporting -------------------------------------------------

    def _error_at(self, token: Token, message: str) -> None:
        if self._panic_mode:
            return
        self._panic_mode = True
        text = f"[line {token.line}] Error"
        if token.type is TokenType.EOF:
            text += " at end"
        elif token.type is not TokenType.ERROR:
            text += f" at '{token.lexeme}'"
        self.errors.append(f"{text}: {message}")
        self._had_error = True

    def _error(self, message: str) -> None:
        self._error_at(self._previous, message)

    def _error_at_current(self, message: str) -> None:
        self._error_at(self._current, message)

    # -- token stream ----------------------------------------------------

    def _advance(self) -> None:
        self._previous = self._current
        while True:
            self._current = self._scanner.scan_token()
            if self._current.type is not TokenType.ERROR:
                break
            self._error_at_current(self._current.lexeme)

    def _consume(self, token_type: TokenType, message: str) -> None:
        if self._current.type is token_type:
            self._advance()
            return
        self._error_at_current(message)

    def _check(self, token_type: TokenType) -> bool:
        return self._current.type is token_type

    def _match(self, token_type: TokenType) -> bool:
        if not self._check(token_type):
            return False
        self._advance()
        return True

    # -- emitting --------------------------------------------------------

    def _emit(self, *data: int) -> None:
        for byte in data:
            self.chunk.write(int(byte), self._previous.line)

    def _make_constant(self, value: Any) -> int:
        constant = self.chunk.add_constant(value)
        if constant > UINT8_MAX:
            self._error("Too Many constants in one chunk.")
            return 0
        return constant

    def _emit_constant(self, value: Any) -> None:
        self._emit(OpCode.CONSTANT, self._make_constant(value))

    def _identifier_constant(self, name: Token) -> int:
        return self._make_constant(self.strings.intern(name.lexeme))

    # -- expressions -----------------------------------------------------

    def _expression(self) -> None:
        self._parse_precedence(Precedence.ASSIGNMENT)

    def _parse_precedence(self, precedence: Precedence) -> None:
        self._advance()
        prefix_rule = _get_rule(self._previous.type).prefix
        if prefix_rule is None:
            self._error("Expect expression.")
            return

        can_assign = precedence <= Precedence.ASSIGNMENT
        prefix_rule(self, can_assign)

        while precedence <= _get_rule(self._current.type).precedence:
            self._advance()
            infix_rule = _get_rule(self._previous.type).infix
            if infix_rule is not None:
                infix_rule(self, can_assign)

        if can_assign and self._match(TokenType.EQUAL):
            self._error("Invalid assignment target.")

    def _grouping(self, can_assign: bool) -> None:
        self._expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after expression")

    def _number(self, can_assign: bool) -> None:
        self._emit_constant(float(self._previous.lexeme))

    def _string(self, can_assign: bool) -> None:
        self._emit_constant(self.strings.intern(self._previous.lexeme[1:-1]))

    def _literal(self, can_assign: bool) -> None:
        op = _LITERALS.get(self._previous.type)
        if op is not None:
            self._emit(op)

    def _unary(self, can_assign: bool) -> None:
        operator_type = self._previous.type
        self._parse_precedence(Precedence.UNARY)
        if operator_type is TokenType.MINUS:
            self._emit(OpCode.NEGATE)
        elif operator_type is TokenType.BANG:
            self._emit(OpCode.NOT)

    def _binary(self, can_assign: bool) -> None:
        operator_type = self._previous.type
        rule = _get_rule(operator_type)
        self._parse_precedence(Precedence(rule.precedence + 1))
        self._emit(*_BINARY_OPS.get(operator_type, ()))

    def _variable(self, can_assign: bool) -> None:
        self._named_variable(self._previous, can_assign)

    def _named_variable(self, name: Token, can_assign: bool) -> None:
        arg = self._resolve_local(name)
        if arg == -1:
            arg = self._identifier_constant(name)
        # Both locals and globals are addressed through the global opcodes.
        if can_assign and self._match(TokenType.EQUAL):
            self._expression()
            self._emit(OpCode.SET_GLOBAL, arg & 0xFF)
        else:
            self._emit(OpCode.GET_GLOBAL, arg & 0xFF)

    def _resolve_local(self, name: Token) -> int:
        for index in reversed(range(len(self._locals))):
            local = self._locals[index]
            if local.name.lexeme == name.lexeme:
                if local.depth == -1:
                    self._error("Can't read local variable in its own initializer")
                return index
        return -1

    # -- variables -------------------------------------------------------

    def _add_local(self, name: Token) -> None:
        if len(self._locals) == UINT8_COUNT:
            self._error("Too manu local variables in function.")
            return
        self._locals.append(_Local(name, self._scope_depth))

    def _declare_variable(self) -> None:
        if self._scope_depth == 0:
            return
        name = self._previous
        for local in reversed(self._locals):
            if local.depth != -1 and local.depth < self._scope_depth:
                break
            if local.name.lexeme == name.lexeme:
                self._error("Already a variable with this name is this scope.")
        self._add_local(name)

    def _parse_variable(self, message: str) -> int:
        self._consume(TokenType.IDENTIFIER, message)
        self._declare_variable()
        if self._scope_depth > 0:
            return 0
        return self._identifier_constant(self._previous)

    def _mark_initialized(self) -> None:
        self._locals[-1].depth = self._scope_depth

    def _define_variable(self, global_index: int) -> None:
        if self._scope_depth > 0:
            self._mark_initialized()
            return
        self._emit(OpCode.DEFINE_GLOBAL, global_index)

    # -- statements ------------------------------------------------------

    def _declaration(self) -> None:
        if self._match(TokenType.VAR):
            self._var_declaration()
        else:
            self._statement()
        if self._panic_mode:
            self._synchronize()

    def _var_declaration(self) -> None:
        global_index = self._parse_variable("Expect variable name.")
        if self._match(TokenType.EQUAL):
            self._expression()
        else:
            self._emit(OpCode.NIL)
        self._consume(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        self._define_variable(global_index)

    def _statement(self) -> None:
        if self._match(TokenType.PRINT):
            self._print_statement()
        elif self._match(TokenType.LEFT_BRACE):
            self._scope_depth += 1
            self._block()
            self._end_scope()
        else:
            self._expression_statement()

    def _print_statement(self) -> None:
        self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after value.")
        self._emit(OpCode.PRINT)

    def _expression_statement(self) -> None:
        self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after expression")
        self._emit(OpCode.POP)

    def _block(self) -> None:
        while not self._check(TokenType.RIGHT_BRACE) and not self._check(TokenType.EOF):
            self._declaration()
        self._consume(TokenType.RIGHT_BRACE, "Expect '}' after block.")

    def _end_scope(self) -> None:
        self._scope_depth -= 1
        while self._locals and self._locals[-1].depth > self._scope_depth:
            self._emit(OpCode.POP)
            self._locals.pop()

    def _synchronize(self) -> None:
        self._panic_mode = False
        while self._current.type is not TokenType.EOF:
            if self._previous.type is TokenType.SEMICOLON:
                return
            if self._current.type in _SYNC_TOKENS:
                return
            self._advance()

    # -- entry point -----------------------------------------------------

    @property
    def had_error(self) -> bool:
        """Whether any error was reported."""
        return self._had_error

    def compile(self) -> Chunk:
        """Compile the whole source; return the chunk or raise CompileError."""
        self._had_error = False
        self._panic_mode = False
        self._advance()
        while not self._match(TokenType.EOF):
            self._declaration()
        self._emit(OpCode.RETURN)
        if self._had_error:
            raise CompileError(self.errors)
        return self.chunk


_NO_RULE = _ParseRule(None, None, Precedence.NONE)

_RULES: dict[TokenType, _ParseRule] = {
    TokenType.LEFT_PAREN: _ParseRule(Compiler._grouping, None, Precedence.NONE),
    TokenType.MINUS: _ParseRule(Compiler._unary, Compiler._binary, Precedence.TERM),
    TokenType.PLUS: _ParseRule(None, Compiler._binary, Precedence.TERM),
    TokenType.SLASH: _ParseRule(None, Compiler._binary, Precedence.FACTOR),
    TokenType.STAR: _ParseRule(None, Compiler._binary, Precedence.FACTOR),
    TokenType.BANG: _ParseRule(Compiler._unary, None, Precedence.NONE),
    TokenType.BANG_EQUAL: _ParseRule(None, Compiler._binary, Precedence.EQUALITY),
    TokenType.EQUAL_EQUAL: _ParseRule(None, Compiler._binary, Precedence.EQUALITY),
    TokenType.GREATER: _ParseRule(None, Compiler._binary, Precedence.COMPARISON),
    TokenType.GREATER_EQUAL: _ParseRule(None, Compiler._binary, Precedence.COMPARISON),
    TokenType.LESS: _ParseRule(None, Compiler._binary, Precedence.COMPARISON),
    TokenType.LESS_EQUAL: _ParseRule(None, Compiler._binary, Precedence.COMPARISON),
    TokenType.IDENTIFIER: _ParseRule(Compiler._variable, None, Precedence.NONE),
    TokenType.STRING: _ParseRule(Compiler._string, None, Precedence.NONE),
    TokenType.NUMBER: _ParseRule(Compiler._number, None, Precedence.NONE),
    TokenType.FALSE: _ParseRule(Compiler._literal, None, Precedence.NONE),
    TokenType.NIL: _ParseRule(Compiler._literal, None, Precedence.NONE),
    TokenType.TRUE: _ParseRule(Compiler._literal, None, Precedence.NONE),
}


def _get_rule(token_type: TokenType) -> _ParseRule:
    return _RULES.get(token_type, _NO_RULE)


def compile_source(
    source: str,
    strings: Optional[StringPool] = None,
    out: Optional[TextIO] = None,
) -> Chunk:
    """Compile ``source`` into a new chunk.

    String constants are interned in ``strings``. When ``out`` is given and
    compilation succeeds, a disassembly listing of the chunk is written to it.
    Raises CompileError if the source has errors.
    """
    chunk = Compiler(source, strings).compile()
    if DEBUG_PRINT_CODE and out is not None:
        out.write(disassemble_chunk(chunk, "code"))
    return chunk