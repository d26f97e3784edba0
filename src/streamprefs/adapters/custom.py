"""Adapters for values serialised into a native representation.

Everything here is stored either as a string (JSON, encrypted hex) or as
an integer (timestamps), so any backend can hold it.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import TypeAdapter, ValidationError

from streamprefs._crypto.aes import aes_decrypt_utf8, aes_encrypt_hex, parse_aes_key
from streamprefs.adapters.base import PreferenceAdapter, expect_raw
from streamprefs.exceptions import PreferenceDecodeError
from streamprefs.stores.base import KeyValueStore

T = TypeVar("T")

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_ONE_MS = timedelta(milliseconds=1)


class DateTimeAdapter(PreferenceAdapter[datetime]):
    """Datetimes stored as integer epoch milliseconds.

    Values come back timezone-aware in UTC; naive datetimes are assumed to
    be UTC on write. Sub-millisecond precision is dropped.
    """

    def get_value(self, store: KeyValueStore, key: str) -> datetime | None:
        raw = store.get(key)
        if raw is None:
            return None
        if isinstance(raw, bool):
            raise PreferenceDecodeError(f"Expected epoch milliseconds for key {key!r}, found bool", key=key)
        millis = expect_raw(raw, int, key=key, expected="epoch milliseconds")
        return _EPOCH + timedelta(milliseconds=millis)

    async def set_value(self, store: KeyValueStore, key: str, value: datetime) -> bool:
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return await store.set(key, (value - _EPOCH) // _ONE_MS)


class JsonAdapter(PreferenceAdapter[T], Generic[T]):
    """Custom values stored as a JSON string.

    Parameters
    ----------
    decode : callable
        Builds a ``T`` from the parsed JSON value.
    encode : callable
        Turns a ``T`` into something :func:`json.dumps` accepts.
    """

    def __init__(self, decode: Callable[[Any], T], encode: Callable[[T], Any]) -> None:
        self._decode = decode
        self._encode = encode

    def get_value(self, store: KeyValueStore, key: str) -> T | None:
        raw = store.get(key)
        if raw is None:
            return None
        text = expect_raw(raw, str, key=key, expected="JSON string")
        try:
            return self._decode(json.loads(text))
        except (ValueError, TypeError, KeyError) as exc:
            raise PreferenceDecodeError(f"Cannot decode JSON value for key {key!r}: {exc}", key=key) from exc

    async def set_value(self, store: KeyValueStore, key: str, value: T) -> bool:
        return await store.set(key, json.dumps(self._encode(value), separators=(",", ":")))


class ModelAdapter(PreferenceAdapter[T], Generic[T]):
    """Any pydantic-validatable type (models, dataclasses, containers) as JSON."""

    def __init__(self, type_: type[T] | Any) -> None:
        self._type = type_
        self._adapter: TypeAdapter[T] = TypeAdapter(type_)

    def get_value(self, store: KeyValueStore, key: str) -> T | None:
        raw = store.get(key)
        if raw is None:
            return None
        text = expect_raw(raw, str, key=key, expected="JSON string")
        try:
            return self._adapter.validate_json(text)
        except ValidationError as exc:
            raise PreferenceDecodeError(f"Invalid stored value for key {key!r}: {exc}", key=key) from exc

    async def set_value(self, store: KeyValueStore, key: str, value: T) -> bool:
        return await store.set(key, self._adapter.dump_json(value).decode("utf-8"))

    def __repr__(self) -> str:
        return f"ModelAdapter({getattr(self._type, '__name__', self._type)!r})"


class EncryptedStrAdapter(PreferenceAdapter[str]):
    """Strings encrypted at rest with AES-CBC under a hex-encoded key."""

    sensitive: ClassVar[bool] = True

    def __init__(self, key_hex: str) -> None:
        self._key = parse_aes_key(key_hex)

    def get_value(self, store: KeyValueStore, key: str) -> str | None:
        raw = store.get(key)
        if raw is None:
            return None
        return aes_decrypt_utf8(expect_raw(raw, str, key=key, expected="ciphertext"), self._key)

    async def set_value(self, store: KeyValueStore, key: str, value: str) -> bool:
        return await store.set(key, aes_encrypt_hex(value, self._key))

    def __repr__(self) -> str:
        return "EncryptedStrAdapter(<key>)"
