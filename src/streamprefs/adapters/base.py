"""Adapter contract between typed preference values and raw store values."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Generic, TypeVar

from streamprefs.exceptions import PreferenceDecodeError
from streamprefs.stores.base import KeyValueStore

T = TypeVar("T")


class PreferenceAdapter(ABC, Generic[T]):
    """Reads and writes values of type ``T`` in a :class:`KeyValueStore`.

    ``get_value`` returns ``None`` when nothing is stored under the key; the
    preference then falls back to its default. Stored values of the wrong
    shape raise :class:`PreferenceDecodeError`.

    Adapters with ``sensitive = True`` never have their values written to
    logs.
    """

    sensitive: ClassVar[bool] = False

    @abstractmethod
    def get_value(self, store: KeyValueStore, key: str) -> T | None: ...

    @abstractmethod
    async def set_value(self, store: KeyValueStore, key: str, value: T) -> bool: ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def expect_raw(raw: Any, types: type | tuple[type, ...], *, key: str, expected: str) -> Any:
    """Return *raw* unchanged if it is one of *types*, otherwise raise."""
    if isinstance(raw, types):
        return raw
    raise PreferenceDecodeError(
        f"Expected {expected} for key {key!r}, found {type(raw).__name__}",
        key=key,
    )
