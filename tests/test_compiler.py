import io

import pytest

from bytelox.chunk import OpCode
from bytelox.compiler import CompileError, Compiler, compile_source
from bytelox.objects import StringPool


def ops(*items):
    return bytes(int(item) for item in items)


def test_print_number_literal():
    chunk = compile_source("print 1;")
    assert bytes(chunk.code) == ops(OpCode.CONSTANT, 0, OpCode.PRINT, OpCode.RETURN)
    assert chunk.constants == [1.0]


def test_expression_statement_pops():
    chunk = compile_source("true;")
    assert bytes(chunk.code) == ops(OpCode.TRUE, OpCode.POP, OpCode.RETURN)


def test_literals():
    chunk = compile_source("nil; false;")
    assert bytes(chunk.code) == ops(
        OpCode.NIL, OpCode.POP, OpCode.FALSE, OpCode.POP, OpCode.RETURN
    )


def test_global_var_declaration_uses_interned_name():
    pool = StringPool()
    chunk = compile_source("var a = 1;", pool)
    assert bytes(chunk.code) == ops(
        OpCode.CONSTANT, 1, OpCode.DEFINE_GLOBAL, 0, OpCode.RETURN
    )
    assert chunk.constants[0] is pool.intern("a")
    assert chunk.constants[1] == 1.0


def test_var_without_initializer_is_nil():
    chunk = compile_source("var b;")
    assert bytes(chunk.code) == ops(OpCode.NIL, OpCode.DEFINE_GLOBAL, 0, OpCode.RETURN)


def test_string_literal_is_interned_without_quotes():
    pool = StringPool()
    chunk = compile_source('print "hi";', pool)
    assert chunk.constants[0] is pool.intern("hi")


def test_precedence_of_factor_over_term():
    chunk = compile_source("1 + 2 * 3;")
    assert bytes(chunk.code) == ops(
        OpCode.CONSTANT, 0, OpCode.CONSTANT, 1, OpCode.CONSTANT, 2,
        OpCode.MULTIPLY, OpCode.ADD, OpCode.POP, OpCode.RETURN,
    )
    assert chunk.constants == [1.0, 2.0, 3.0]


def test_grouping_overrides_precedence():
    chunk = compile_source("(1 + 2) * 3;")
    assert bytes(chunk.code) == ops(
        OpCode.CONSTANT, 0, OpCode.CONSTANT, 1, OpCode.ADD,
        OpCode.CONSTANT, 2, OpCode.MULTIPLY, OpCode.POP, OpCode.RETURN,
    )


def test_binary_operators_are_left_associative():
    chunk = compile_source("1 - 2 - 3;")
    assert bytes(chunk.code) == ops(
        OpCode.CONSTANT, 0, OpCode.CONSTANT, 1, OpCode.SUBTRACT,
        OpCode.CONSTANT, 2, OpCode.SUBTRACT, OpCode.POP, OpCode.RETURN,
    )


@pytest.mark.parametrize(
    "operator, emitted",
    [
        ("!=", (OpCode.EQUAL, OpCode.NOT)),
        ("==", (OpCode.EQUAL,)),
        ("<=", (OpCode.GREATER, OpCode.NOT)),
        (">=", (OpCode.GREATER,)),
        ("<", (OpCode.LESS,)),
        (">", (OpCode.GREATER,)),
        ("/", (OpCode.DIVIDE,)),
    ],
)
def test_comparison_operators(operator, emitted):
    chunk = compile_source(f"1 {operator} 2;")
    expected = ops(OpCode.CONSTANT, 0, OpCode.CONSTANT, 1, *emitted, OpCode.POP, OpCode.RETURN)
    assert bytes(chunk.code) == expected


def test_unary_operators():
    assert bytes(compile_source("-1;").code) == ops(
        OpCode.CONSTANT, 0, OpCode.NEGATE, OpCode.POP, OpCode.RETURN
    )
    assert bytes(compile_source("!!true;").code) == ops(
        OpCode.TRUE, OpCode.NOT, OpCode.NOT, OpCode.POP, OpCode.RETURN
    )


def test_global_assignment():
    pool = StringPool()
    chunk = compile_source("a = 1;", pool)
    assert bytes(chunk.code) == ops(
        OpCode.CONSTANT, 1, OpCode.SET_GLOBAL, 0, OpCode.POP, OpCode.RETURN
    )
    assert chunk.constants[0] is pool.intern("a")


def test_global_read():
    chunk = compile_source("print a;")
    assert bytes(chunk.code) == ops(OpCode.GET_GLOBAL, 0, OpCode.PRINT, OpCode.RETURN)


def test_local_in_block_uses_slot_and_is_popped():
    chunk = compile_source("{ var a = 1; print a; }")
    assert bytes(chunk.code) == ops(
        OpCode.CONSTANT, 0, OpCode.GET_GLOBAL, 0, OpCode.PRINT, OpCode.POP, OpCode.RETURN
    )
    assert chunk.constants == [1.0]


def test_local_may_reference_itself_in_initializer():
    chunk = compile_source("{ var a = a; }")
    assert chunk.code[-1] == OpCode.RETURN


def test_line_numbers_follow_source():
    chunk = compile_source("print 1;\nprint 2;")
    assert chunk.lines[0] == 1
    assert chunk.lines[3] == 2
    assert len(chunk.lines) == len(chunk.code)


def test_missing_semicolon_reports_at_end():
    with pytest.raises(CompileError) as info:
        compile_source("print 1")
    assert info.value.errors == ["[line 1] Error at end: Expect ';' after value."]


def test_invalid_assignment_target():
    with pytest.raises(CompileError) as info:
        compile_source("1 = 2;")
    assert info.value.errors == ["[line 1] Error at '=': Invalid assignment target."]


def test_scanner_error_has_no_location():
    with pytest.raises(CompileError) as info:
        compile_source("@")
    assert info.value.errors == ["[line 1] Error: Unexpected character."]


def test_missing_expression():
    with pytest.raises(CompileError) as info:
        compile_source(";")
    assert info.value.errors == ["[line 1] Error at ';': Expect expression."]


def test_panic_mode_resynchronizes_at_statement():
    with pytest.raises(CompileError) as info:
        compile_source("print 1 print 2;")
    assert info.value.errors == ["[line 1] Error at 'print': Expect ';' after value."]


def test_errors_after_resync_are_reported():
    with pytest.raises(CompileError) as info:
        compile_source("print 1 print 2")
    assert len(info.value.errors) == 2
    assert info.value.errors[1] == "[line 1] Error at end: Expect ';' after value."
    assert str(info.value) == "\n".join(info.value.errors)


def test_redeclaring_local_in_same_scope():
    with pytest.raises(CompileError) as info:
        compile_source("{ var a = 1; var a = 2; }")
    assert info.value.errors == [
        "[line 1] Error at 'a': Already a variable with this name is this scope."
    ]


def test_shadowing_in_nested_scope_is_allowed():
    chunk = compile_source("{ var a = 1; { var a = 2; } }")
    assert list(chunk.code).count(OpCode.POP) == 2


def test_unclosed_block():
    with pytest.raises(CompileError) as info:
        compile_source("{ print 1;")
    assert info.value.errors == ["[line 1] Error at end: Expect '}' after block."]


def test_too_many_constants():
    with pytest.raises(CompileError) as info:
        compile_source("1;" * 257)
    assert info.value.errors == ["[line 1] Error at '1': Too Many constants in one chunk."]


def test_listing_written_on_success():
    out = io.StringIO()
    compile_source("print 1;", StringPool(), out)
    listing = out.getvalue()
    assert listing.startswith("== code ==\n")
    assert "OP_PRINT" in listing
    assert "OP_RETURN" in listing


def test_no_listing_on_error():
    out = io.StringIO()
    with pytest.raises(CompileError):
        compile_source("print", StringPool(), out)
    assert out.getvalue() == ""


def test_compiler_class_fills_given_pool():
    pool = StringPool()
    compiler = Compiler('var greeting = "hello";', pool)
    chunk = compiler.compile()
    assert chunk is compiler.chunk
    assert "greeting" in pool
    assert "hello" in pool
    assert compiler.had_error is False