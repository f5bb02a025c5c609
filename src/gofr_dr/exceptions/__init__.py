"""Exceptions raised by the GOFR backup subsystem.

All exceptions include structured error information (code, message,
details) and derive from GofrError.

Usage:
    from gofr_dr.exceptions import (
        GofrError,
        NotFoundError,
        ConflictError,
        IntegrityError,
    )
"""

from gofr_dr.exceptions.base import (
    BackupError,
    BackupIOError,
    ConfigurationError,
    ConflictError,
    GofrError,
    IntegrityError,
    NotFoundError,
    RestoreCancelledError,
    RestoreError,
)

__all__ = [
    "GofrError",
    "ConfigurationError",
    "NotFoundError",
    "ConflictError",
    "RestoreCancelledError",
    "IntegrityError",
    "BackupIOError",
    "BackupError",
    "RestoreError",
]
