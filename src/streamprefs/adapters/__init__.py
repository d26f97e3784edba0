"""Value adapters: typed values in, native store values out."""

from streamprefs.adapters.base import PreferenceAdapter
from streamprefs.adapters.custom import DateTimeAdapter, EncryptedStrAdapter, JsonAdapter, ModelAdapter
from streamprefs.adapters.primitives import (
    BoolAdapter,
    FloatAdapter,
    IntAdapter,
    KeySetAdapter,
    StrAdapter,
    StrSetAdapter,
)

__all__ = [
    "BoolAdapter",
    "DateTimeAdapter",
    "EncryptedStrAdapter",
    "FloatAdapter",
    "IntAdapter",
    "JsonAdapter",
    "KeySetAdapter",
    "ModelAdapter",
    "PreferenceAdapter",
    "StrAdapter",
    "StrSetAdapter",
]
