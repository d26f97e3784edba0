"""In-memory store."""

from __future__ import annotations

import copy
from collections.abc import Mapping

from streamprefs.stores.base import NativeValue, ensure_native


class MemoryStore:
    """Dict-backed store with no persistence. Every mutation succeeds."""

    def __init__(self, initial: Mapping[str, NativeValue] | None = None) -> None:
        self._data: dict[str, NativeValue] = {}
        for key, value in (initial or {}).items():
            self._data[key] = ensure_native(key, value)

    def get(self, key: str) -> NativeValue | None:
        return copy.copy(self._data.get(key))

    def keys(self) -> frozenset[str]:
        return frozenset(self._data)

    async def set(self, key: str, value: NativeValue) -> bool:
        self._data[key] = ensure_native(key, value)
        return True

    async def remove(self, key: str) -> bool:
        self._data.pop(key, None)
        return True

    async def clear(self) -> bool:
        self._data.clear()
        return True

    async def reload(self) -> None:
        return None
