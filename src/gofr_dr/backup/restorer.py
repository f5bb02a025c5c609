"""Backup restore pipeline

locate -> read + decompress (streaming) -> decrypt -> parse -> confirm ->
optional safety backup -> hand data back to the caller.

Only one restore runs at a time; a second attempt fails immediately with
ConflictError. This module never writes restored data anywhere itself.
"""

import inspect
import json
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from gofr_dr.backup.locking import NonBlockingLock
from gofr_dr.backup.results import RestoreResult
from gofr_dr.backup.writer import BackupWriter
from gofr_dr.codecs import CryptoCodec, collect, decompress_stream
from gofr_dr.exceptions import (
    ConfigurationError,
    GofrError,
    IntegrityError,
    RestoreCancelledError,
    RestoreError,
)
from gofr_dr.logger import Logger, create_logger
from gofr_dr.storage import PRE_RESTORE_SAFETY, ArtifactStore, BackupArtifact

ConfirmRestore = Callable[[Dict[str, Any]], Union[bool, Awaitable[bool]]]


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class BackupRestorer:
    """Decodes stored backups, one restore at a time"""

    def __init__(
        self,
        store: ArtifactStore,
        writer: Optional[BackupWriter] = None,
        crypto: Optional[CryptoCodec] = None,
        logger: Optional[Logger] = None,
    ):
        self.store = store
        self.writer = writer
        self.crypto = crypto
        self.logger = logger or create_logger("gofr-dr")
        self._guard = NonBlockingLock()

    @property
    def restore_in_progress(self) -> bool:
        return self._guard.locked

    async def _decode(self, name: str, artifact: BackupArtifact) -> Dict[str, Any]:
        raw = await collect(decompress_stream(self.store.read_payload(name)))

        if artifact.encrypted:
            if self.crypto is None:
                raise ConfigurationError(
                    "Backup is encrypted but no encryption key is configured",
                    details={"backup_id": artifact.id},
                )
            raw = await self.crypto.decrypt(raw)

        try:
            envelope = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise IntegrityError(
                f"Backup payload is not valid JSON: {e}",
                details={"backup_id": artifact.id},
            ) from e

        if not isinstance(envelope, dict) or "data" not in envelope:
            raise IntegrityError(
                "Backup payload has no data section",
                details={"backup_id": artifact.id},
            )
        return envelope

    async def restore_backup(
        self,
        backup_id: str,
        confirm_restore: Optional[ConfirmRestore] = None,
        create_safety_backup: bool = False,
        current_data: Any = None,
    ) -> RestoreResult:
        """Decode a backup and return its payload

        Args:
            backup_id: Id of the backup to restore
            confirm_restore: Predicate receiving the backup metadata; a falsy
                result cancels the restore before anything is returned
            create_safety_backup: Back up ``current_data`` before returning
            current_data: Live state to snapshot for the safety backup

        Raises:
            ConflictError: Another restore is in progress
            RestoreCancelledError: confirm_restore declined
            NotFoundError: Unknown or ambiguous backup id
            IntegrityError: Authentication or parse failure
            RestoreError: Any other failure; the cause is chained
        """
        async with self._guard.hold():
            try:
                name = await self.store.resolve(backup_id)
                artifact = await self.store.read_metadata(name)
                envelope = await self._decode(name, artifact)
                metadata = envelope.get("metadata") or artifact.to_dict()

                if confirm_restore is not None:
                    confirmed = await _maybe_await(confirm_restore(metadata))
                    if not confirmed:
                        raise RestoreCancelledError(
                            "Restore cancelled by user",
                            details={"backup_id": backup_id},
                        )

                if create_safety_backup and current_data is not None:
                    if self.writer is None:
                        raise ConfigurationError("Safety backup requested but no writer is configured")
                    await self.writer.create_backup(current_data, {
                        "type": PRE_RESTORE_SAFETY,
                        "description": f"Safety backup before restoring {backup_id}",
                    })
            except RestoreCancelledError:
                self.logger.info("Restore cancelled", backup_id=backup_id)
                raise
            except GofrError as e:
                self.logger.error("Restore failed", backup_id=backup_id, error=str(e))
                raise
            except Exception as e:
                self.logger.error("Restore failed", backup_id=backup_id, error=str(e))
                raise RestoreError(
                    f"Restore failed: {e}",
                    details={"backup_id": backup_id, "cause": type(e).__name__},
                ) from e

        self.logger.info("Backup restored", backup_id=backup_id)
        return RestoreResult(data=envelope["data"], metadata=metadata)
