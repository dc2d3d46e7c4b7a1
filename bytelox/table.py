"""Open-addressing hash table keyed by interned strings."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

TABLE_MAX_LOAD = 0.75
_MIN_CAPACITY = 8


def _grow_capacity(capacity: int) -> int:
    return _MIN_CAPACITY if capacity < _MIN_CAPACITY else capacity * 2


class _Entry:
    __slots__ = ("key", "value", "tombstone")

    def __init__(self) -> None:
        self.key: Any = None
        self.value: Any = None
        self.tombstone = False

    @property
    def is_empty(self) -> bool:
        return self.key is None and not self.tombstone


class Table:
    """Hash table with linear probing and tombstone deletion.

    Keys are string objects carrying a precomputed ``hash`` and compared
    by identity, which is sound because strings are interned.
    """

    def __init__(self) -> None:
        self._entries: list[_Entry] = []
        # Live entries plus tombstones: both occupy buckets for load purposes.
        self._count = 0

    @property
    def capacity(self) -> int:
        """Number of buckets currently allocated."""
        return len(self._entries)

    def __len__(self) -> int:
        return sum(1 for entry in self._entries if entry.key is not None)

    def __contains__(self, key: Any) -> bool:
        if self._count == 0:
            return False
        return _find_entry(self._entries, key).key is not None

    def items(self) -> Iterator[tuple[Any, Any]]:
        """Yield the live (key, value) pairs in bucket order."""
        for entry in self._entries:
            if entry.key is not None:
                yield entry.key, entry.value

    def __iter__(self) -> Iterator[Any]:
        return (key for key, _ in self.items())

    def _adjust_capacity(self, capacity: int) -> None:
        entries = [_Entry() for _ in range(capacity)]
        self._count = 0
        for old in self._entries:
            if old.key is None:
                continue
            dest = _find_entry(entries, old.key)
            dest.key = old.key
            dest.value = old.value
            self._count += 1
        self._entries = entries

    def set(self, key: Any, value: Any) -> bool:
        """Store ``value`` under ``key``; return True if the key was new."""
        if self._count + 1 > self.capacity * TABLE_MAX_LOAD:
            self._adjust_capacity(_grow_capacity(self.capacity))

        entry = _find_entry(self._entries, key)
        is_new_key = entry.key is None
        if is_new_key and not entry.tombstone:
            self._count += 1
        entry.key = key
        entry.value = value
        entry.tombstone = False
        return is_new_key

    def get(self, key: Any) -> Any:
        """Return the value stored under ``key``; raise KeyError if absent."""
        if self._count == 0:
            raise KeyError(key)
        entry = _find_entry(self._entries, key)
        if entry.key is None:
            raise KeyError(key)
        return entry.value

    def delete(self, key: Any) -> bool:
        """Remove ``key``, leaving a tombstone; return True if it was present."""
        if self._count == 0:
            return False
        entry = _find_entry(self._entries, key)
        if entry.key is None:
            return False
        entry.key = None
        entry.value = None
        entry.tombstone = True
        return True

    def add_all(self, other: Table) -> None:
        """Copy every entry of ``other`` into this table."""
        for key, value in list(other.items()):
            self.set(key, value)

    def find_string(self, chars: str, hash_value: int) -> Any:
        """Return the stored key equal to ``chars``, or None."""
        if self._count == 0:
            return None
        capacity = self.capacity
        index = hash_value % capacity
        while True:
            entry = self._entries[index]
            if entry.key is None:
                if not entry.tombstone:
                    return None
            elif entry.key.hash == hash_value and entry.key.chars == chars:
                return entry.key
            index = (index + 1) % capacity


def _find_entry(entries: list[_Entry], key: Any) -> _Entry:
    capacity = len(entries)
    index = key.hash % capacity
    tombstone: _Entry | None = None
    while True:
        entry = entries[index]
        if entry.key is None:
            if not entry.tombstone:
                return tombstone if tombstone is not None else entry
            if tombstone is None:
                tombstone = entry
        elif entry.key is key:
            return entry
        index = (index + 1) % capacity