"""Runtime values: nil (None), booleans, numbers (float) and strings."""

from __future__ import annotations

from typing import Any

from bytelox.objects import LoxString


def _kind(value: Any) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, LoxString):
        return "object"
    raise TypeError(f"not a runtime value: {value!r}")


def format_value(value: Any) -> str:
    """Render a value the way the print statement shows it."""
    kind = _kind(value)
    if kind == "nil":
        return "nil"
    if kind == "bool":
        return "true" if value else "false"
    if kind == "number":
        return "%g" % value
    return value.chars


def values_equal(a: Any, b: Any) -> bool:
    """Equality as the language defines it; objects compare by identity."""
    kind = _kind(a)
    if kind != _kind(b):
        return False
    if kind == "nil":
        return True
    if kind == "object":
        return a is b
    return a == b


def is_falsey(value: Any) -> bool:
    """Only nil and false are falsey."""
    return value is None or value is False