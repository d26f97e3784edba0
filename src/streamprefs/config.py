"""Configuration for streamprefs."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from streamprefs.exceptions import PreferencesConfigError


def _env_int(value: str, *, name: str) -> int | None:
    normalized = value.strip().lower()
    if normalized in {"", "none", "null"}:
        return None
    try:
        return int(normalized)
    except ValueError as exc:
        raise PreferencesConfigError(f"{name} must be an integer (got {value!r})") from exc


@dataclasses.dataclass(frozen=True)
class PreferencesConfig:
    """Preferences configuration.

    Parameters
    ----------
    path : Path or None
        Location of the JSON document backing the preferences. ``None``
        keeps everything in memory for the lifetime of the process.
    indent : int or None
        Indentation used when writing the JSON document. ``None`` writes
        it on a single line.
    encryption_key : str or None
        Hex-encoded AES key (16, 24 or 32 bytes) used by
        :meth:`StreamingPreferences.get_secret_str`. Secret preferences are
        unavailable when unset.
    """

    path: Path | None = None
    indent: int | None = 2
    encryption_key: str | None = None

    def __post_init__(self) -> None:
        if self.path is not None and not isinstance(self.path, Path):
            object.__setattr__(self, "path", Path(self.path))
        if self.indent is not None and self.indent < 0:
            raise PreferencesConfigError(f"indent must be >= 0 (got {self.indent})")

    @classmethod
    def from_env(cls, **overrides: Any) -> PreferencesConfig:
        """Create configuration from environment variables.

        Reads ``STREAMPREFS_PATH``, ``STREAMPREFS_INDENT`` and
        ``STREAMPREFS_ENCRYPTION_KEY``. Explicit keyword arguments override
        environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        PreferencesConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        path_env = env.get("STREAMPREFS_PATH")
        if path_env:
            config_kwargs["path"] = Path(path_env).expanduser()

        indent_env = env.get("STREAMPREFS_INDENT")
        if indent_env is not None and "indent" not in overrides:
            config_kwargs["indent"] = _env_int(indent_env, name="STREAMPREFS_INDENT")

        key_env = env.get("STREAMPREFS_ENCRYPTION_KEY")
        if key_env:
            config_kwargs["encryption_key"] = key_env.strip()

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
