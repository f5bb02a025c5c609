"""Backup configuration for the GOFR disaster-recovery subsystem

Supports environment variable overrides with a configurable prefix
(default GOFR_DR_BACKUP) and .env files.
"""

from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, Field

from gofr_dr.config.env_loader import EnvLoader

DEFAULT_ENV_PREFIX = "GOFR_DR_BACKUP"

# Unprefixed passphrase variable read by older deployments
LEGACY_KEY_VARIABLE = "BACKUP_ENCRYPTION_KEY"

# field name -> variable suffix under the prefix
ENV_FIELDS = {
    "backup_dir": "DIR",
    "retention_days": "RETENTION_DAYS",
    "max_backups": "MAX_BACKUPS",
    "compression_level": "COMPRESSION_LEVEL",
    "encryption_key": "ENCRYPTION_KEY",
    "app_version": "APP_VERSION",
    "chunk_size": "CHUNK_SIZE",
    "schedules_enabled": "SCHEDULES_ENABLED",
    "schedule_max_instances": "SCHEDULE_MAX_INSTANCES",
}


def _default_backup_dir() -> Path:
    return Path.cwd() / "backups"


class BackupConfig(BaseModel):
    """Backup subsystem configuration"""

    backup_dir: Path = Field(
        default_factory=_default_backup_dir,
        description="Directory holding backup payloads and metadata sidecars"
    )

    # Retention policies, applied per backup type
    retention_days: int = Field(
        default=30,
        description="Days to keep backups (age-based retention)",
        ge=1
    )
    max_backups: int = Field(
        default=100,
        description="Maximum number of backups to keep per type (count-based retention)",
        ge=1
    )

    compression_level: int = Field(
        default=9,
        description="Gzip compression level (0-9, higher = better compression but slower)",
        ge=0,
        le=9
    )
    encryption_key: Optional[str] = Field(
        default=None,
        description="Passphrase for AES-256-GCM encryption; unset disables encryption",
        repr=False
    )

    app_version: str = Field(
        default="1.0.0",
        description="Version tag recorded in each backup's metadata"
    )
    chunk_size: int = Field(
        default=64 * 1024,
        description="Chunk size in bytes for streaming compression and file I/O",
        ge=1024
    )

    # Scheduling
    schedules_enabled: bool = Field(
        default=True,
        description="Whether setup_default_schedules registers any jobs"
    )
    schedule_max_instances: int = Field(
        default=3,
        description="Concurrent runs allowed for one scheduled job",
        ge=1
    )

    @property
    def encryption_enabled(self) -> bool:
        return bool(self.encryption_key)

    @classmethod
    def from_env(
        cls,
        env_prefix: Optional[str] = None,
        env_file: Optional[Path | str] = None,
        overrides: Optional[Mapping[str, object]] = None,
    ) -> "BackupConfig":
        """Create configuration from environment variables

        Args:
            env_prefix: Variable prefix (default: GOFR_DR_BACKUP)
            env_file: Optional .env file (default: ./.env when present)
            overrides: Explicit variable values, highest precedence

        Returns:
            BackupConfig instance

        Raises:
            ValidationError: If a variable holds a value the field rejects
        """
        env = EnvLoader(env_prefix or DEFAULT_ENV_PREFIX, env_file).load(overrides)

        # Raw strings; pydantic coerces and validates them
        values = env.collect(ENV_FIELDS)
        if "encryption_key" not in values and env.raw(LEGACY_KEY_VARIABLE):
            values["encryption_key"] = env.raw(LEGACY_KEY_VARIABLE)

        return cls(**values)
