import pytest

from bytelox.objects import LoxString, StringPool, hash_string
from bytelox.value import format_value, is_falsey, values_equal


def test_format_literals():
    assert format_value(None) == "nil"
    assert format_value(True) == "true"
    assert format_value(False) == "false"


def test_format_numbers_use_general_format():
    assert format_value(2.5) == "2.5"
    assert format_value(100.0) == "100"
    assert format_value(1e21) == "1e+21"


def test_format_string_shows_raw_characters():
    string = StringPool().intern("hi there")
    assert format_value(string) == "hi there"


def test_format_rejects_foreign_values():
    with pytest.raises(TypeError):
        format_value([1, 2])


def test_equal_values_of_same_kind():
    assert values_equal(None, None)
    assert values_equal(True, True)
    assert not values_equal(True, False)
    assert values_equal(1.5, 1.5)
    assert not values_equal(1.5, 2.5)


def test_different_kinds_never_equal():
    assert not values_equal(None, False)
    assert not values_equal(1.0, True)
    assert not values_equal(0.0, False)
    assert not values_equal(0.0, None)


def test_nan_is_not_equal_to_itself():
    nan = float("nan")
    assert not values_equal(nan, nan)


def test_interned_strings_are_equal():
    pool = StringPool()
    assert values_equal(pool.intern("abc"), pool.intern("abc"))
    assert not values_equal(pool.intern("abc"), pool.intern("abd"))


def test_uninterned_strings_compare_by_identity():
    one = LoxString("abc", hash_string("abc"))
    two = LoxString("abc", hash_string("abc"))
    assert not values_equal(one, two)
    assert values_equal(one, one)


@pytest.mark.parametrize("value", [None, False])
def test_falsey_values(value):
    assert is_falsey(value) is True


@pytest.mark.parametrize("value", [True, 0.0, 1.0, -3.0])
def test_truthy_values(value):
    assert is_falsey(value) is False


def test_empty_string_is_truthy():
    assert is_falsey(StringPool().intern("")) is False