"""Exception taxonomy for the GOFR backup subsystem.

Every error carries structured information:
- code: Machine-readable error identifier
- message: Human-readable error description
- details: Additional context for debugging/recovery

Backup creation and restore failures surface to callers; retention,
scheduler, verifier and DR drill failures are logged or captured into
result objects instead.
"""

from typing import Any, Dict, Optional


class GofrError(Exception):
    """Base exception for all backup subsystem errors.

    Attributes:
        code: Machine-readable error code (e.g., "NOT_FOUND")
        message: Human-readable error message
        details: Optional additional context for debugging/recovery
    """

    default_code = "GOFR_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize error with structured information.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (defaults to the class code)
            details: Optional additional context
        """
        self.code = code or self.default_code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return formatted error string."""
        if self.details:
            return f"{self.code}: {self.message} (details: {self.details})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(GofrError):
    """Configuration is missing or invalid.

    Raised when encryption is requested without a passphrase, when a
    compression level is out of range or when a cron expression is invalid.
    """

    default_code = "CONFIGURATION_ERROR"


class NotFoundError(GofrError):
    """Backup id is unknown, ambiguous, or its payload file is gone."""

    default_code = "NOT_FOUND"


class ConflictError(GofrError):
    """Operation conflicts with one already running.

    A second restore attempt while one is in flight fails fast with this
    error; there is no queueing.
    """

    default_code = "RESTORE_IN_PROGRESS"


class RestoreCancelledError(ConflictError):
    """The confirm-restore predicate declined the restore."""

    default_code = "RESTORE_CANCELLED"


class IntegrityError(GofrError):
    """Stored payload failed authentication, decoding or parsing."""

    default_code = "INTEGRITY_ERROR"


class BackupIOError(GofrError):
    """Filesystem or compression stream failure."""

    default_code = "IO_ERROR"


class BackupError(GofrError):
    """Backup creation failed. The original cause is chained."""

    default_code = "BACKUP_FAILED"


class RestoreError(GofrError):
    """Restore failed for a reason outside the taxonomy. The cause is chained."""

    default_code = "RESTORE_FAILED"
