"""GOFR DR - Backup and disaster recovery for GOFR services.

This package snapshots an application's state into encrypted, compressed
artifacts and brings it back:
- backup: writer, restorer, retention, scheduler, verification, DR drills
- codecs: AES-256-GCM encryption and streaming gzip compression
- storage: payload files and metadata sidecars on disk
- config: typed settings with environment overrides
- logger: structured logging with session tracking
- exceptions: error classes with structured error info
"""

__version__ = "1.0.0"

from gofr_dr.logger import (
    Logger,
    StructuredLogger,
    get_logger,
    create_logger,
)

from gofr_dr.config import BackupConfig

from gofr_dr.exceptions import (
    GofrError,
    ConfigurationError,
    NotFoundError,
    ConflictError,
    RestoreCancelledError,
    IntegrityError,
    BackupIOError,
    BackupError,
    RestoreError,
)

from gofr_dr.storage import ArtifactStore, BackupArtifact, BackupPage

from gofr_dr.backup import (
    BackupService,
    BackupDescriptor,
    RestoreResult,
    VerificationResult,
    DRTestResult,
)

__all__ = [
    "__version__",
    # Logger
    "Logger",
    "StructuredLogger",
    "get_logger",
    "create_logger",
    # Config
    "BackupConfig",
    # Exceptions
    "GofrError",
    "ConfigurationError",
    "NotFoundError",
    "ConflictError",
    "RestoreCancelledError",
    "IntegrityError",
    "BackupIOError",
    "BackupError",
    "RestoreError",
    # Storage
    "ArtifactStore",
    "BackupArtifact",
    "BackupPage",
    # Backup
    "BackupService",
    "BackupDescriptor",
    "RestoreResult",
    "VerificationResult",
    "DRTestResult",
]
