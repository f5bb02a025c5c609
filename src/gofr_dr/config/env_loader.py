"""Prefixed environment settings with .env support.

Values are merged low -> high:
1) .env file (the given file, else ./.env when present)
2) OS environment variables
3) Explicit overrides

Settings are looked up by suffix under a prefix, so with prefix
``GOFR_DR_BACKUP`` the suffix ``MAX_BACKUPS`` reads
``GOFR_DR_BACKUP_MAX_BACKUPS``. An empty value counts as unset.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from dotenv import dotenv_values


class EnvLoader:
    """Read prefixed settings from .env, the environment and overrides."""

    def __init__(self, prefix: str = "", env_file: Optional[Path | str] = None) -> None:
        self.prefix = prefix.rstrip("_")
        self.env_file = Path(env_file) if env_file else Path.cwd() / ".env"
        self._values: Dict[str, str] = {}

    def load(self, overrides: Optional[Mapping[str, object]] = None) -> "EnvLoader":
        """Merge the sources; returns self so lookups can be chained."""
        values: Dict[str, str] = {}

        if self.env_file.is_file():
            values.update({k: v for k, v in dotenv_values(self.env_file).items() if v is not None})

        values.update(os.environ)

        if overrides:
            values.update({k: str(v) for k, v in overrides.items()})

        self._values = values
        return self

    def key(self, suffix: str) -> str:
        """Full variable name for a suffix."""
        return f"{self.prefix}_{suffix}" if self.prefix else suffix

    def raw(self, variable: str) -> Optional[str]:
        """Value of an unprefixed variable, or None when unset or empty."""
        return self._values.get(variable) or None

    def get(self, suffix: str, default: Optional[str] = None) -> Optional[str]:
        value = self.raw(self.key(suffix))
        return default if value is None else value

    def collect(self, fields: Mapping[str, str]) -> Dict[str, str]:
        """Map field names to their set values.

        Args:
            fields: Field name -> variable suffix

        Returns:
            Raw string values for the fields that are set; unset fields are
            left out so model defaults apply.
        """
        found: Dict[str, str] = {}
        for field_name, suffix in fields.items():
            value = self.get(suffix)
            if value is not None:
                found[field_name] = value
        return found


__all__ = ["EnvLoader"]
