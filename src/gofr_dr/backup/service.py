"""Backup Service Orchestrator

Wires store, codecs, writer, restorer, retention, verifier, DR drills and
the scheduler together from one BackupConfig. The application constructs
and owns the service; there is no module-level instance.

Usage:
    config = BackupConfig.from_env()
    async with BackupService(config) as service:
        service.setup_default_schedules(snapshot_state)
        descriptor = await service.create_backup(await snapshot_state())
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from gofr_dr.backup.providers import DataProvider
from gofr_dr.backup.restorer import BackupRestorer, ConfirmRestore
from gofr_dr.backup.results import (
    BackupDescriptor,
    DRTestResult,
    RestoreResult,
    VerificationResult,
)
from gofr_dr.backup.retention import RetentionManager
from gofr_dr.backup.scheduler import BackupJob, BackupScheduler
from gofr_dr.backup.verify import BackupVerifier, DisasterRecoveryTester
from gofr_dr.backup.writer import BackupWriter
from gofr_dr.codecs import CryptoCodec
from gofr_dr.config import BackupConfig
from gofr_dr.logger import Logger, create_logger
from gofr_dr.storage import ArtifactStore, BackupPage


class BackupService:
    """Main backup service orchestrator"""

    def __init__(
        self,
        config: Optional[BackupConfig] = None,
        logger: Optional[Logger] = None,
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        self.config = config or BackupConfig()
        self.logger = logger or create_logger("gofr-dr")

        self.crypto = CryptoCodec(self.config.encryption_key) if self.config.encryption_enabled else None
        self.store = ArtifactStore(self.config.backup_dir, logger=self.logger, chunk_size=self.config.chunk_size)
        self.retention = RetentionManager(
            self.store,
            retention_days=self.config.retention_days,
            max_backups=self.config.max_backups,
            logger=self.logger,
        )
        self.writer = BackupWriter(
            self.store,
            retention=self.retention,
            crypto=self.crypto,
            compression_level=self.config.compression_level,
            version=self.config.app_version,
            logger=self.logger,
        )
        self.restorer = BackupRestorer(self.store, writer=self.writer, crypto=self.crypto, logger=self.logger)
        self.verifier = BackupVerifier(self.restorer, logger=self.logger)
        self.dr_tester = DisasterRecoveryTester(self.writer, self.restorer, self.store, logger=self.logger)
        self.scheduler = BackupScheduler(
            self.writer,
            scheduler=scheduler,
            max_instances=self.config.schedule_max_instances,
            logger=self.logger,
        )

        self.logger.info(
            "Backup service initialized",
            backup_dir=str(self.config.backup_dir),
            retention_days=self.config.retention_days,
            max_backups=self.config.max_backups,
            encrypted=self.config.encryption_enabled,
        )

    async def initialize(self) -> None:
        await self.store.initialize()

    def start(self) -> None:
        self.scheduler.start()

    def shutdown(self, wait: bool = False) -> None:
        self.scheduler.stop_all_jobs()
        self.scheduler.shutdown(wait=wait)

    async def __aenter__(self) -> "BackupService":
        await self.initialize()
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    async def create_backup(self, data: Any, metadata: Optional[Dict[str, Any]] = None) -> BackupDescriptor:
        return await self.writer.create_backup(data, metadata)

    async def restore_backup(
        self,
        backup_id: str,
        confirm_restore: Optional[ConfirmRestore] = None,
        create_safety_backup: bool = False,
        current_data: Any = None,
    ) -> RestoreResult:
        return await self.restorer.restore_backup(
            backup_id,
            confirm_restore=confirm_restore,
            create_safety_backup=create_safety_backup,
            current_data=current_data,
        )

    async def list_backups(
        self,
        type: Optional[str] = None,
        created_after: Optional[datetime] = None,
        created_before: Optional[datetime] = None,
        page: int = 1,
        limit: int = 20,
    ) -> BackupPage:
        return await self.store.list_page(type, created_after, created_before, page=page, limit=limit)

    async def verify_backup(self, backup_id: str) -> VerificationResult:
        return await self.verifier.verify_backup(backup_id)

    async def cleanup_old_backups(self) -> Dict[str, int]:
        return await self.retention.cleanup_old_backups()

    async def get_stats(self) -> Dict[str, Any]:
        return await self.retention.get_stats()

    async def find_orphans(self) -> List[str]:
        return await self.store.find_orphans()

    async def test_disaster_recovery(self, data_provider: DataProvider) -> DRTestResult:
        return await self.dr_tester.test_disaster_recovery(data_provider)

    def schedule_backup(
        self,
        name: str,
        cron_expression: str,
        data_provider: DataProvider,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> BackupJob:
        return self.scheduler.schedule_backup(name, cron_expression, data_provider, metadata)

    def setup_default_schedules(self, data_provider: DataProvider) -> List[BackupJob]:
        if not self.config.schedules_enabled:
            self.logger.warning("Default backup schedules are disabled")
            return []
        return self.scheduler.setup_default_schedules(data_provider)

    def stop_all_jobs(self) -> None:
        self.scheduler.stop_all_jobs()
