"""JSON document store.

Values live in an in-memory cache that is mirrored to a single JSON file.
Reads never touch the disk. Each mutation updates the cache first and then
rewrites the whole document atomically, so a failed flush leaves the new
value visible in memory while reporting ``False`` to the caller.
"""

from __future__ import annotations

import asyncio
import contextlib
import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from streamprefs.exceptions import PreferencesStoreError, PreferenceTypeError
from streamprefs.stores.base import NativeValue, ensure_native

_logger = logging.getLogger(__name__)

DOCUMENT_VERSION = 1


class StoreDocument(BaseModel):
    """On-disk layout of a :class:`JsonFileStore`."""

    model_config = ConfigDict(extra="forbid")

    version: int = DOCUMENT_VERSION
    values: dict[str, Any] = Field(default_factory=dict)

    @field_validator("version")
    @classmethod
    def _supported_version(cls, value: int) -> int:
        if value != DOCUMENT_VERSION:
            raise ValueError(f"unsupported document version {value}")
        return value

    @field_validator("values")
    @classmethod
    def _native_values(cls, value: dict[str, Any]) -> dict[str, Any]:
        try:
            return {key: ensure_native(key, raw) for key, raw in value.items()}
        except PreferenceTypeError as exc:
            raise ValueError(str(exc)) from exc


class JsonFileStore:
    """Store persisted as a JSON document at *path*.

    Usage::

        store = await JsonFileStore.open(Path("prefs.json"))
        await store.set("volume", 7)
    """

    def __init__(self, path: Path | str, *, indent: int | None = 2) -> None:
        self._path = Path(path)
        self._indent = indent
        self._data: dict[str, NativeValue] = {}
        self._write_lock = asyncio.Lock()

    @classmethod
    async def open(cls, path: Path | str, *, indent: int | None = 2) -> JsonFileStore:
        """Create a store and load the document off the event loop."""
        store = cls(path, indent=indent)
        await store.reload()
        return store

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, key: str) -> NativeValue | None:
        return copy.copy(self._data.get(key))

    def keys(self) -> frozenset[str]:
        return frozenset(self._data)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def set(self, key: str, value: NativeValue) -> bool:
        self._data[key] = ensure_native(key, value)
        return await self._flush()

    async def remove(self, key: str) -> bool:
        if self._data.pop(key, None) is None:
            return True
        return await self._flush()

    async def clear(self) -> bool:
        self._data.clear()
        return await self._flush()

    async def reload(self) -> None:
        """Replace the cache with the document currently on disk.

        A missing file is an empty store.

        Raises
        ------
        PreferencesStoreError
            If the file exists but cannot be read or parsed.
        """
        self._data = await asyncio.to_thread(self.load)

    def load(self) -> dict[str, NativeValue]:
        """Read and validate the document synchronously."""
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise PreferencesStoreError(f"Cannot read {self._path}: {exc}", path=str(self._path)) from exc

        if not text.strip():
            return {}
        try:
            document = StoreDocument.model_validate_json(text)
        except ValidationError as exc:
            raise PreferencesStoreError(f"Malformed preferences file {self._path}: {exc}", path=str(self._path)) from exc
        _logger.debug("Loaded %d preference(s) from %s", len(document.values), self._path)
        return dict(document.values)

    async def _flush(self) -> bool:
        async with self._write_lock:
            # Snapshot under the lock so the last writer persists the latest state.
            payload = StoreDocument(values=copy.deepcopy(self._data)).model_dump(mode="json")
            try:
                await asyncio.to_thread(self._write_atomic, payload)
            except OSError:
                _logger.warning("Persisting preferences to %s failed", self._path, exc_info=True)
                return False
        return True

    def _write_atomic(self, payload: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=self._indent, sort_keys=True)
                fh.write("\n")
            os.replace(tmp_name, self._path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise
