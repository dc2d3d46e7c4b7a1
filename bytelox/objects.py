"""Heap objects: interned strings and the pool that interns them."""

from __future__ import annotations

from dataclasses import dataclass, field

from bytelox.table import Table

_FNV_OFFSET = 2166136261
_FNV_PRIME = 16777619


def hash_string(chars: str) -> int:
    """Return the 32-bit FNV-1a hash of the UTF-8 bytes of ``chars``."""
    hash_value = _FNV_OFFSET
    for byte in chars.encode("utf-8"):
        hash_value ^= byte
        hash_value = (hash_value * _FNV_PRIME) & 0xFFFFFFFF
    return hash_value


@dataclass(eq=False, frozen=True)
class LoxString:
    """An immutable string object with its cached hash."""

    chars: str
    hash: int

    def __len__(self) -> int:
        return len(self.chars)

    def __str__(self) -> str:
        return self.chars


@dataclass
class StringPool:
    """Interns strings so that equal contents share one object."""

    strings: Table = field(default_factory=Table)

    def intern(self, chars: str) -> LoxString:
        """Return the single LoxString holding ``chars``, creating it if needed."""
        hash_value = hash_string(chars)
        interned = self.strings.find_string(chars, hash_value)
        if interned is not None:
            return interned
        string = LoxString(chars, hash_value)
        self.strings.set(string, None)
        return string

    def __len__(self) -> int:
        return len(self.strings)

    def __contains__(self, chars: str) -> bool:
        return self.strings.find_string(chars, hash_string(chars)) is not None