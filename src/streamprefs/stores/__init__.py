"""Backing stores.

A store holds raw native values (see :data:`NativeValue`) and knows nothing
about preferences, defaults or change notification.
"""

from streamprefs.stores.base import KeyValueStore, NativeValue, ensure_native
from streamprefs.stores.json_file import JsonFileStore, StoreDocument
from streamprefs.stores.memory import MemoryStore

__all__ = [
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "NativeValue",
    "StoreDocument",
    "ensure_native",
]
