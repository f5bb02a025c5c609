"""Result objects returned by the backup operations"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from gofr_dr.storage import BackupArtifact


@dataclass
class BackupDescriptor:
    """Outcome of a successful backup"""
    backup_id: str
    backup_name: str
    path: Path
    metadata: BackupArtifact

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backupId": self.backup_id,
            "backupName": self.backup_name,
            "path": str(self.path),
            "metadata": self.metadata.to_dict(),
        }


@dataclass
class RestoreResult:
    """Restored payload and the metadata it was stored with"""
    data: Any
    metadata: Dict[str, Any]


@dataclass
class VerificationResult:
    valid: bool
    message: str
    error_code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"valid": self.valid, "message": self.message}
        if self.error_code:
            result["errorCode"] = self.error_code
        return result


@dataclass
class DRTestResult:
    """Outcome of a disaster-recovery drill

    performance_metrics holds ``backup_time`` and ``restore_time`` in
    milliseconds for the stages that completed.
    """
    backup_creation: bool = False
    backup_restore: bool = False
    data_integrity: bool = False
    performance_metrics: Dict[str, float] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.backup_creation and self.backup_restore and self.data_integrity

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "backupCreation": self.backup_creation,
            "backupRestore": self.backup_restore,
            "dataIntegrity": self.data_integrity,
            "performanceMetrics": {
                "backupTime": self.performance_metrics.get("backup_time"),
                "restoreTime": self.performance_metrics.get("restore_time"),
            },
        }
        if self.error is not None:
            result["error"] = self.error
        return result
