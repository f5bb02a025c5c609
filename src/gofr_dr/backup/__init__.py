"""GOFR DR Backup Module

Usage:
    from gofr_dr.backup import BackupService
    from gofr_dr.config import BackupConfig

    service = BackupService(BackupConfig.from_env())
    await service.initialize()
    descriptor = await service.create_backup(state, {"type": "manual"})
    restored = await service.restore_backup(descriptor.backup_id)
"""

from gofr_dr.backup.locking import NonBlockingLock
from gofr_dr.backup.providers import DataProvider
from gofr_dr.backup.restorer import BackupRestorer
from gofr_dr.backup.results import (
    BackupDescriptor,
    DRTestResult,
    RestoreResult,
    VerificationResult,
)
from gofr_dr.backup.retention import RetentionManager
from gofr_dr.backup.scheduler import DEFAULT_SCHEDULES, BackupJob, BackupScheduler
from gofr_dr.backup.service import BackupService
from gofr_dr.backup.verify import BackupVerifier, DisasterRecoveryTester
from gofr_dr.backup.writer import BackupWriter

__all__ = [
    "BackupService",
    "BackupWriter",
    "BackupRestorer",
    "RetentionManager",
    "BackupScheduler",
    "BackupJob",
    "DEFAULT_SCHEDULES",
    "BackupVerifier",
    "DisasterRecoveryTester",
    "NonBlockingLock",
    "DataProvider",
    "BackupDescriptor",
    "RestoreResult",
    "VerificationResult",
    "DRTestResult",
]
