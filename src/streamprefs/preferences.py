"""Entry point: typed, observable preferences over one backing store."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any, TypeVar

from streamprefs.adapters import (
    BoolAdapter,
    DateTimeAdapter,
    EncryptedStrAdapter,
    FloatAdapter,
    IntAdapter,
    JsonAdapter,
    KeySetAdapter,
    ModelAdapter,
    PreferenceAdapter,
    StrAdapter,
    StrSetAdapter,
)
from streamprefs.bus import ChangeBus
from streamprefs.config import PreferencesConfig
from streamprefs.exceptions import (
    PreferenceKeyError,
    PreferencesClosedError,
    PreferencesConfigError,
    PreferencesCryptoError,
)
from streamprefs.preference import Preference
from streamprefs.stores import JsonFileStore, KeyValueStore, MemoryStore

_logger = logging.getLogger(__name__)

T = TypeVar("T")

_BOOL = BoolAdapter()
_INT = IntAdapter()
_FLOAT = FloatAdapter()
_STR = StrAdapter()
_STR_SET = StrSetAdapter()
_DATETIME = DateTimeAdapter()
_KEY_SET = KeySetAdapter()


class StreamingPreferences:
    """Typed preferences whose changes can be observed.

    All preferences handed out by one instance share a single change bus,
    so a write through any of them reaches listeners of every other
    preference with the same key.

    Usage::

        async with await StreamingPreferences.open(PreferencesConfig(path=path)) as prefs:
            theme = prefs.get_str("theme", default_value="light")
            theme.listen(print)
            await theme.set("dark")
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        config: PreferencesConfig | None = None,
        bus: ChangeBus | None = None,
    ) -> None:
        self._store = store
        self._config = config or PreferencesConfig()
        self._bus = bus or ChangeBus()
        self._secret_adapter: EncryptedStrAdapter | None = None

    @classmethod
    async def open(cls, config: PreferencesConfig | None = None) -> StreamingPreferences:
        """Create preferences backed by the store *config* describes.

        A config without a path gives an in-memory store.

        Raises
        ------
        PreferencesStoreError
            If the configured file exists but cannot be loaded.
        """
        config = config or PreferencesConfig()
        store: KeyValueStore
        if config.path is None:
            store = MemoryStore()
        else:
            store = await JsonFileStore.open(config.path, indent=config.indent)
        _logger.debug("Opened preferences (%s)", config.path or "in-memory")
        return cls(store, config=config)

    @property
    def store(self) -> KeyValueStore:
        return self._store

    @property
    def bus(self) -> ChangeBus:
        return self._bus

    @property
    def config(self) -> PreferencesConfig:
        return self._config

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> StreamingPreferences:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the change bus; every open subscription finishes."""
        self._bus.close()

    # ------------------------------------------------------------------
    # Preference factories
    # ------------------------------------------------------------------

    def get_keys(self) -> Preference[frozenset[str]]:
        """Read-only preference over every key currently stored."""
        return Preference(self._store, None, frozenset(), _KEY_SET, self._bus)

    def get_bool(self, key: str, *, default_value: bool) -> Preference[bool]:
        return self.get_custom_value(key, default_value=default_value, adapter=_BOOL)

    def get_int(self, key: str, *, default_value: int) -> Preference[int]:
        return self.get_custom_value(key, default_value=default_value, adapter=_INT)

    def get_float(self, key: str, *, default_value: float) -> Preference[float]:
        return self.get_custom_value(key, default_value=default_value, adapter=_FLOAT)

    def get_str(self, key: str, *, default_value: str) -> Preference[str]:
        return self.get_custom_value(key, default_value=default_value, adapter=_STR)

    def get_str_set(self, key: str, *, default_value: frozenset[str] = frozenset()) -> Preference[frozenset[str]]:
        return self.get_custom_value(key, default_value=frozenset(default_value), adapter=_STR_SET)

    def get_datetime(self, key: str, *, default_value: datetime) -> Preference[datetime]:
        return self.get_custom_value(key, default_value=default_value, adapter=_DATETIME)

    def get_json(
        self,
        key: str,
        *,
        default_value: T,
        decode: Callable[[Any], T],
        encode: Callable[[T], Any],
    ) -> Preference[T]:
        return self.get_custom_value(key, default_value=default_value, adapter=JsonAdapter(decode, encode))

    def get_model(self, key: str, *, default_value: T, model_type: type[T] | Any) -> Preference[T]:
        """Preference for any type pydantic can validate, stored as JSON."""
        return self.get_custom_value(key, default_value=default_value, adapter=ModelAdapter(model_type))

    def get_secret_str(self, key: str, *, default_value: str = "") -> Preference[str]:
        """String preference encrypted at rest with ``config.encryption_key``.

        Raises
        ------
        PreferencesConfigError
            If no encryption key is configured, or it is not a valid AES key.
        """
        if self._secret_adapter is None:
            if not self._config.encryption_key:
                raise PreferencesConfigError("Secret preferences require an encryption_key")
            try:
                self._secret_adapter = EncryptedStrAdapter(self._config.encryption_key)
            except PreferencesCryptoError as exc:
                raise PreferencesConfigError(f"Invalid encryption_key: {exc}") from exc
        return self.get_custom_value(key, default_value=default_value, adapter=self._secret_adapter)

    def get_custom_value(self, key: str, *, default_value: T, adapter: PreferenceAdapter[T]) -> Preference[T]:
        """Preference for *key* read and written through *adapter*."""
        if not key:
            raise PreferenceKeyError("key must be a non-empty string")
        return Preference(self._store, key, default_value, adapter, self._bus)

    # ------------------------------------------------------------------
    # Store-wide operations
    # ------------------------------------------------------------------

    async def remove(self, key: str) -> bool:
        """Remove *key* and notify its listeners.

        Raises
        ------
        PreferencesClosedError
            If the preferences were closed; the store is left untouched.
        """
        self._require_open("remove")
        try:
            return await self._store.remove(key)
        finally:
            self._notify([key])

    async def clear(self) -> bool:
        """Remove every key and notify listeners of each one that was present."""
        self._require_open("clear")
        keys = self._store.keys()
        try:
            return await self._store.clear()
        finally:
            self._notify(sorted(keys))

    async def reload(self) -> None:
        """Re-read the backing store and notify listeners of every key involved.

        Listeners whose value did not change emit nothing.
        """
        self._require_open("reload")
        before = self._store.keys()
        await self._store.reload()
        self._notify(sorted(before | self._store.keys()))

    def _require_open(self, operation: str) -> None:
        if self._bus.is_closed:
            raise PreferencesClosedError(f"{operation}() called after the preferences were closed")

    def _notify(self, keys: list[str]) -> None:
        # The bus may have been closed while the store was busy.
        if self._bus.is_closed:
            _logger.debug("Bus closed during store update; %d key(s) not published", len(keys))
            return
        for key in keys:
            self._bus.publish(key)
