"""Backup artifact metadata

The sidecar JSON describing one artifact. Keys on disk keep the camelCase
names existing artifacts were written with.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

MANUAL = "manual"
SCHEDULED = "scheduled"
DR_TEST = "dr-test"
PRE_RESTORE_SAFETY = "pre-restore-safety"


def as_utc(moment: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken to be UTC already."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with a ``Z`` suffix."""
    moment = as_utc(moment or datetime.now(timezone.utc))
    return moment.isoformat(timespec="microseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(value))


@dataclass
class BackupArtifact:
    """Attributes of one stored backup

    ``data_size`` is the UTF-8 byte length of the pretty-printed payload JSON
    alone, not of the stored envelope, which embeds this sidecar. It is
    informational and never used to validate a restore.
    """
    id: str
    timestamp: str
    type: str
    description: str
    data_size: int
    compressed: bool = True
    encrypted: bool = False
    version: str = "1.0.0"

    @property
    def created_at(self) -> datetime:
        return parse_timestamp(self.timestamp)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the sidecar JSON layout"""
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "version": self.version,
            "type": self.type,
            "description": self.description,
            "dataSize": self.data_size,
            "compressed": self.compressed,
            "encrypted": self.encrypted,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BackupArtifact":
        """Create from sidecar JSON; unknown keys are ignored"""
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            type=data.get("type", MANUAL),
            description=data.get("description", ""),
            data_size=int(data.get("dataSize", 0)),
            compressed=bool(data.get("compressed", True)),
            encrypted=bool(data.get("encrypted", False)),
            version=str(data.get("version", "1.0.0")),
        )


@dataclass
class BackupPage:
    """One page of a backup listing, newest first"""
    backups: List[BackupArtifact] = field(default_factory=list)
    total: int = 0
    page: int = 1
    pages: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backups": [b.to_dict() for b in self.backups],
            "total": self.total,
            "page": self.page,
            "pages": self.pages,
        }
