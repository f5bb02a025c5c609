"""Backup creation pipeline

serialize -> encrypt (optional) -> compress (streaming) -> persist -> retention
"""

import json
import uuid
from typing import Any, Dict, Optional

from gofr_dr.backup.results import BackupDescriptor
from gofr_dr.backup.retention import RetentionManager
from gofr_dr.codecs import CryptoCodec, compress_stream, iter_chunks
from gofr_dr.exceptions import BackupError
from gofr_dr.logger import Logger, create_logger
from gofr_dr.storage import MANUAL, ArtifactStore, BackupArtifact, utc_timestamp

STORED_METADATA_KEYS = ("type", "description", "version")


def serialize_envelope(metadata: Dict[str, Any], data: Any) -> bytes:
    """Byte form of a stored backup: pretty-printed JSON, UTF-8"""
    return json.dumps({"metadata": metadata, "data": data}, indent=2, ensure_ascii=False).encode("utf-8")


class BackupWriter:
    """Creates backups of JSON-serializable payloads"""

    def __init__(
        self,
        store: ArtifactStore,
        retention: Optional[RetentionManager] = None,
        crypto: Optional[CryptoCodec] = None,
        compression_level: int = 9,
        version: str = "1.0.0",
        logger: Optional[Logger] = None,
    ):
        self.store = store
        self.retention = retention
        self.crypto = crypto
        self.compression_level = compression_level
        self.version = version
        self.logger = logger or create_logger("gofr-dr")

    async def create_backup(
        self, payload: Any, metadata: Optional[Dict[str, Any]] = None
    ) -> BackupDescriptor:
        """Snapshot a payload into the store

        Args:
            payload: JSON-serializable state to back up
            metadata: ``type``, ``description`` and optionally ``version``

        Returns:
            BackupDescriptor of the stored artifact

        Raises:
            BackupError: If any step fails; the cause is chained
        """
        metadata = dict(metadata or {})
        ignored = sorted(k for k in metadata if k not in STORED_METADATA_KEYS)
        if ignored:
            self.logger.debug("Metadata keys not stored in sidecar", keys=", ".join(ignored))

        backup_id = str(uuid.uuid4())
        timestamp = utc_timestamp()
        backup_name = self.store.artifact_name(backup_id, timestamp)

        try:
            data_size = len(json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8"))
            artifact = BackupArtifact(
                id=backup_id,
                timestamp=timestamp,
                type=metadata.get("type") or MANUAL,
                description=metadata.get("description") or "Database backup",
                data_size=data_size,
                compressed=True,
                encrypted=self.crypto is not None,
                version=str(metadata.get("version") or self.version),
            )

            serialized = serialize_envelope(artifact.to_dict(), payload)
            if self.crypto is not None:
                serialized = await self.crypto.encrypt(serialized)

            chunks = compress_stream(iter_chunks(serialized, self.store.chunk_size), self.compression_level)
            path = await self.store.write_artifact(backup_name, chunks, artifact)
        except Exception as e:
            self.logger.error("Backup creation failed", backup_id=backup_id, error=str(e))
            raise BackupError(
                f"Backup failed: {e}",
                details={"backup_id": backup_id, "cause": type(e).__name__},
            ) from e

        self.logger.info(
            "Backup created",
            backup_id=backup_id,
            name=backup_name,
            backup_type=artifact.type,
            encrypted=artifact.encrypted,
        )

        if self.retention is not None:
            await self.retention.cleanup_old_backups()

        return BackupDescriptor(
            backup_id=backup_id,
            backup_name=backup_name,
            path=path,
            metadata=artifact,
        )
