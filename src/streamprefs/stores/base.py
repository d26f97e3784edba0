"""Backing store contract."""

from __future__ import annotations

import math
from typing import Any, Protocol

from streamprefs.exceptions import PreferenceTypeError

#: Raw value shapes every backend must be able to hold.
NativeValue = bool | int | float | str | list[str]


class KeyValueStore(Protocol):
    """Structural interface for a persistent key-value store.

    Reads are synchronous and served from memory; mutations are awaitable
    because a backend may need to flush to disk. Mutations report success
    as a boolean rather than raising for I/O failures.
    """

    def get(self, key: str) -> NativeValue | None: ...

    def keys(self) -> frozenset[str]: ...

    async def set(self, key: str, value: NativeValue) -> bool: ...

    async def remove(self, key: str) -> bool: ...

    async def clear(self) -> bool: ...

    async def reload(self) -> None: ...


def ensure_native(key: str, value: Any) -> NativeValue:
    """Validate *value* against the native types and return a private copy."""
    if isinstance(value, float) and not math.isfinite(value):
        raise PreferenceTypeError(f"Non-finite float {value!r} for key {key!r} cannot be stored", key=key)
    if isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    raise PreferenceTypeError(
        f"Unsupported value type {type(value).__name__} for key {key!r}",
        key=key,
    )
