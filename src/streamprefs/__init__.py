"""streamprefs - typed, observable preferences over a persistent key-value store."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("streamprefs")
except PackageNotFoundError:
    __version__ = "0+local"
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
from streamprefs.bus import AllKeys, BusSubscription, ByKey, ChangeBus, KeyFilter
from streamprefs.config import PreferencesConfig
from streamprefs.exceptions import (
    PreferenceDecodeError,
    PreferenceKeyError,
    PreferencesClosedError,
    PreferencesConfigError,
    PreferencesCryptoError,
    PreferencesError,
    PreferencesStoreError,
    PreferenceTypeError,
    PreferenceUnsupportedError,
)
from streamprefs.preference import Preference, PreferenceStream, PreferenceSubscription, SubscriptionState
from streamprefs.preferences import StreamingPreferences
from streamprefs.stores import JsonFileStore, KeyValueStore, MemoryStore

__all__ = [
    "__version__",
    "AllKeys",
    "BoolAdapter",
    "BusSubscription",
    "ByKey",
    "ChangeBus",
    "DateTimeAdapter",
    "EncryptedStrAdapter",
    "FloatAdapter",
    "IntAdapter",
    "JsonAdapter",
    "JsonFileStore",
    "KeyFilter",
    "KeySetAdapter",
    "KeyValueStore",
    "MemoryStore",
    "ModelAdapter",
    "Preference",
    "PreferenceAdapter",
    "PreferenceDecodeError",
    "PreferenceKeyError",
    "PreferenceStream",
    "PreferenceSubscription",
    "PreferenceTypeError",
    "PreferenceUnsupportedError",
    "PreferencesClosedError",
    "PreferencesConfig",
    "PreferencesConfigError",
    "PreferencesCryptoError",
    "PreferencesError",
    "PreferencesStoreError",
    "StrAdapter",
    "StrSetAdapter",
    "StreamingPreferences",
    "SubscriptionState",
]
