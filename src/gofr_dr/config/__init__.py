"""Configuration for the GOFR DR backup subsystem

Usage:
    from gofr_dr.config import BackupConfig

    config = BackupConfig.from_env()
    config = BackupConfig(backup_dir="/var/backups/app", max_backups=10)
"""

from gofr_dr.config.backup_config import BackupConfig, DEFAULT_ENV_PREFIX
from gofr_dr.config.env_loader import EnvLoader

__all__ = [
    "BackupConfig",
    "DEFAULT_ENV_PREFIX",
    "EnvLoader",
]
