"""Backup verification and disaster-recovery drills

Both drive the real restore pipeline and report through result objects;
neither raises on a failed check.
"""

import json
import time
from typing import Any, Optional

from gofr_dr.backup.providers import DataProvider, call_provider
from gofr_dr.backup.restorer import BackupRestorer
from gofr_dr.backup.results import DRTestResult, VerificationResult
from gofr_dr.backup.writer import BackupWriter
from gofr_dr.exceptions import GofrError, RestoreCancelledError
from gofr_dr.logger import Logger, create_logger
from gofr_dr.storage import DR_TEST, ArtifactStore


def canonical_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _reject(_metadata: Any) -> bool:
    return False


class BackupVerifier:
    """Checks that a backup decodes end to end without returning its data"""

    def __init__(self, restorer: BackupRestorer, logger: Optional[Logger] = None):
        self.restorer = restorer
        self.logger = logger or create_logger("gofr-dr")

    async def verify_backup(self, backup_id: str) -> VerificationResult:
        """Run locate -> decompress -> decrypt -> parse, then decline the restore

        Returns:
            VerificationResult; valid is True only when the pipeline reached
            the confirmation step
        """
        try:
            await self.restorer.restore_backup(backup_id, confirm_restore=_reject)
        except RestoreCancelledError:
            self.logger.info("Backup verification passed", backup_id=backup_id)
            return VerificationResult(valid=True, message="Backup is valid and can be restored")
        except Exception as e:
            code = e.code if isinstance(e, GofrError) else type(e).__name__
            message = e.message if isinstance(e, GofrError) else str(e)
            self.logger.warning("Backup verification failed", backup_id=backup_id, error=message)
            return VerificationResult(
                valid=False,
                message=f"Backup verification failed: {message}",
                error_code=code,
            )

        # A restore that returns normally never ran the confirmation step
        return VerificationResult(
            valid=False,
            message="Backup verification failed: restore was not gated by confirmation",
            error_code="VERIFICATION_INCONCLUSIVE",
        )


class DisasterRecoveryTester:
    """Create-restore-compare drill using a throwaway dr-test backup"""

    def __init__(
        self,
        writer: BackupWriter,
        restorer: BackupRestorer,
        store: ArtifactStore,
        logger: Optional[Logger] = None,
    ):
        self.writer = writer
        self.restorer = restorer
        self.store = store
        self.logger = logger or create_logger("gofr-dr")

    async def test_disaster_recovery(self, data_provider: DataProvider) -> DRTestResult:
        """Run the drill

        Args:
            data_provider: Returns the current state (sync or async)

        Returns:
            DRTestResult; failures are reported in ``error``
        """
        self.logger.info("Starting disaster recovery test")
        result = DRTestResult()
        backup_name: Optional[str] = None

        try:
            start = time.perf_counter()
            current_data = await call_provider(data_provider)
            backup = await self.writer.create_backup(current_data, {
                "type": DR_TEST,
                "description": "Disaster recovery test backup",
            })
            backup_name = backup.backup_name
            result.performance_metrics["backup_time"] = (time.perf_counter() - start) * 1000
            result.backup_creation = True

            start = time.perf_counter()
            restored = await self.restorer.restore_backup(backup.backup_id)
            result.performance_metrics["restore_time"] = (time.perf_counter() - start) * 1000
            result.backup_restore = True

            result.data_integrity = canonical_json(current_data) == canonical_json(restored.data)
        except Exception as e:
            self.logger.error("Disaster recovery test failed", error=str(e))
            result.error = str(e)
        finally:
            if backup_name is not None:
                try:
                    await self.store.delete(backup_name)
                except GofrError as e:
                    self.logger.error("Failed to delete DR test backup", name=backup_name, error=str(e))
                    if result.error is None:
                        result.error = str(e)

        self.logger.info(
            "Disaster recovery test completed",
            backup_creation=result.backup_creation,
            backup_restore=result.backup_restore,
            data_integrity=result.data_integrity,
        )
        return result
