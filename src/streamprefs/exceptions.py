"""Custom exception hierarchy for streamprefs."""

from __future__ import annotations


class PreferencesError(Exception):
    """Base exception for all streamprefs errors."""


class PreferencesConfigError(PreferencesError):
    """Invalid or missing configuration."""


class PreferenceKeyError(PreferencesError, ValueError):
    """A preference key is missing or empty."""


class PreferenceUnsupportedError(PreferencesError):
    """Operation not supported by this preference.

    Raised when writing to or clearing the key-less preference returned by
    :meth:`StreamingPreferences.get_keys`, which is a read-only view over
    every key currently present in the store.
    """


class PreferenceTypeError(PreferencesError, TypeError):
    """A value cannot be represented natively by the backing store."""

    def __init__(self, message: str, *, key: str | None = None) -> None:
        self.key = key
        super().__init__(message)


class PreferenceDecodeError(PreferencesError):
    """A stored value could not be converted to the preference's type."""

    def __init__(self, message: str, *, key: str | None = None) -> None:
        self.key = key
        super().__init__(message)


class PreferencesCryptoError(PreferenceDecodeError):
    """Encryption or decryption of a stored value failed."""


class PreferencesStoreError(PreferencesError):
    """The backing store could not be loaded (unreadable or malformed file)."""

    def __init__(self, message: str, *, path: str = "") -> None:
        self.path = path
        super().__init__(message)


class PreferencesClosedError(PreferencesError):
    """A write or publish was attempted after the change bus was closed."""
