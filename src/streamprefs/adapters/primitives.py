"""Adapters for the value types every store holds natively."""

from __future__ import annotations

from streamprefs.adapters.base import PreferenceAdapter, expect_raw
from streamprefs.exceptions import PreferenceDecodeError, PreferenceUnsupportedError
from streamprefs.stores.base import KeyValueStore


class BoolAdapter(PreferenceAdapter[bool]):
    def get_value(self, store: KeyValueStore, key: str) -> bool | None:
        raw = store.get(key)
        if raw is None:
            return None
        return expect_raw(raw, bool, key=key, expected="bool")

    async def set_value(self, store: KeyValueStore, key: str, value: bool) -> bool:
        return await store.set(key, bool(value))


class IntAdapter(PreferenceAdapter[int]):
    def get_value(self, store: KeyValueStore, key: str) -> int | None:
        raw = store.get(key)
        if raw is None:
            return None
        # bool is an int subclass; a stored flag is not a number.
        if isinstance(raw, bool):
            raise PreferenceDecodeError(f"Expected int for key {key!r}, found bool", key=key)
        return expect_raw(raw, int, key=key, expected="int")

    async def set_value(self, store: KeyValueStore, key: str, value: int) -> bool:
        return await store.set(key, value)


class FloatAdapter(PreferenceAdapter[float]):
    """Floats; integral values written by other code are widened."""

    def get_value(self, store: KeyValueStore, key: str) -> float | None:
        raw = store.get(key)
        if raw is None:
            return None
        if isinstance(raw, bool):
            raise PreferenceDecodeError(f"Expected float for key {key!r}, found bool", key=key)
        return float(expect_raw(raw, (int, float), key=key, expected="float"))

    async def set_value(self, store: KeyValueStore, key: str, value: float) -> bool:
        return await store.set(key, float(value))


class StrAdapter(PreferenceAdapter[str]):
    def get_value(self, store: KeyValueStore, key: str) -> str | None:
        raw = store.get(key)
        if raw is None:
            return None
        return expect_raw(raw, str, key=key, expected="str")

    async def set_value(self, store: KeyValueStore, key: str, value: str) -> bool:
        return await store.set(key, value)


class StrSetAdapter(PreferenceAdapter[frozenset[str]]):
    """Sets of strings, stored as a sorted list."""

    def get_value(self, store: KeyValueStore, key: str) -> frozenset[str] | None:
        raw = store.get(key)
        if raw is None:
            return None
        items = expect_raw(raw, list, key=key, expected="list of str")
        if not all(isinstance(item, str) for item in items):
            raise PreferenceDecodeError(f"Expected list of str for key {key!r}", key=key)
        return frozenset(items)

    async def set_value(self, store: KeyValueStore, key: str, value: frozenset[str]) -> bool:
        return await store.set(key, sorted(value))


class KeySetAdapter(PreferenceAdapter[frozenset[str]]):
    """Read-only view of every key currently present in the store.

    The key argument is ignored; this adapter backs the key-less preference.
    """

    def get_value(self, store: KeyValueStore, key: str | None) -> frozenset[str]:
        return store.keys()

    async def set_value(self, store: KeyValueStore, key: str, value: frozenset[str]) -> bool:
        raise PreferenceUnsupportedError("The set of stored keys cannot be written.")
