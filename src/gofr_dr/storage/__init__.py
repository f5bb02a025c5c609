"""Storage module for backup artifacts

Payload files and metadata sidecars in a single backup directory.
"""

from .artifact_store import (
    METADATA_SUFFIX,
    PAYLOAD_SUFFIX,
    ArtifactStore,
)
from .metadata import (
    DR_TEST,
    MANUAL,
    PRE_RESTORE_SAFETY,
    SCHEDULED,
    BackupArtifact,
    BackupPage,
    as_utc,
    parse_timestamp,
    utc_timestamp,
)

__all__ = [
    "ArtifactStore",
    "BackupArtifact",
    "BackupPage",
    "PAYLOAD_SUFFIX",
    "METADATA_SUFFIX",
    "MANUAL",
    "SCHEDULED",
    "DR_TEST",
    "PRE_RESTORE_SAFETY",
    "as_utc",
    "parse_timestamp",
    "utc_timestamp",
]
