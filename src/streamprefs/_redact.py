"""Helpers for safe debug logging.

Preference values may be secrets (tokens, passwords kept through
:class:`~streamprefs.adapters.EncryptedStrAdapter`) or arbitrarily large
documents. This module turns them into something short and safe before
they reach DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence, Set
from typing import Any

REDACTED = "<redacted>"


def redact_for_log(value: Any, *, sensitive: bool = False, max_string: int = 128, _depth: int = 0) -> Any:
    """Return a copy of *value* suitable for debug logs."""
    if sensitive:
        return REDACTED

    if _depth > 10:
        return "<max-depth>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, bytes):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        return {
            str(k): redact_for_log(v, max_string=max_string, _depth=_depth + 1) for k, v in value.items()
        }

    if isinstance(value, Set):
        return sorted((redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value), key=repr)

    if isinstance(value, Sequence):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    text = repr(value)
    if len(text) > max_string:
        return f"{text[:max_string]}…<truncated>"
    return text
