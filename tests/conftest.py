"""Shared fixtures for gofr_dr tests."""

import base64
import json
from datetime import datetime
from pathlib import Path
from typing import Any, List, Tuple

import pytest
import pytest_asyncio

from gofr_dr.backup import BackupService
from gofr_dr.codecs import compress, decompress
from gofr_dr.config import BackupConfig
from gofr_dr.logger import Logger
from gofr_dr.storage import ArtifactStore, utc_timestamp

TEST_PASSPHRASE = "correct horse battery staple"


class RecordingLogger(Logger):
    """Logger test double that keeps every call in memory."""

    def __init__(self):
        self.records: List[Tuple[str, str, dict]] = []

    def _record(self, level: str, message: str, **kwargs: Any) -> None:
        self.records.append((level, message, kwargs))

    def debug(self, message: str, **kwargs: Any) -> None:
        self._record("DEBUG", message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._record("INFO", message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._record("WARNING", message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._record("ERROR", message, **kwargs)

    def critical(self, message: str, **kwargs: Any) -> None:
        self._record("CRITICAL", message, **kwargs)

    def get_session_id(self) -> str:
        return "test-session"

    def messages(self, level: str) -> List[str]:
        return [message for lvl, message, _ in self.records if lvl == level]


def backdate_sidecar(store: ArtifactStore, name: str, moment: datetime) -> None:
    """Rewrite an artifact's sidecar timestamp."""
    path = store.metadata_path(name)
    data = json.loads(path.read_text())
    data["timestamp"] = utc_timestamp(moment)
    path.write_text(json.dumps(data, indent=2))


def tamper_ciphertext(path: Path, offset: int = 40) -> None:
    """Flip one ciphertext byte inside an encrypted payload file."""
    raw = bytearray(base64.b64decode(decompress(path.read_bytes())))
    raw[offset] ^= 0x01
    path.write_bytes(compress(base64.b64encode(bytes(raw))))


def flip_stored_byte(path: Path) -> None:
    """Flip one byte in the middle of a stored payload file as written to disk."""
    raw = bytearray(path.read_bytes())
    raw[len(raw) // 2] ^= 0xFF
    path.write_bytes(bytes(raw))


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def backup_dir(tmp_path: Path) -> Path:
    return tmp_path / "backups"


@pytest.fixture
def config(backup_dir: Path) -> BackupConfig:
    """Unencrypted configuration in a temporary directory."""
    return BackupConfig(backup_dir=backup_dir)


@pytest.fixture
def encrypted_config(backup_dir: Path) -> BackupConfig:
    return BackupConfig(backup_dir=backup_dir, encryption_key=TEST_PASSPHRASE)


@pytest_asyncio.fixture
async def service(config: BackupConfig, recording_logger: RecordingLogger) -> BackupService:
    svc = BackupService(config, logger=recording_logger)
    await svc.initialize()
    yield svc
    svc.shutdown()


@pytest_asyncio.fixture
async def encrypted_service(encrypted_config: BackupConfig, recording_logger: RecordingLogger) -> BackupService:
    svc = BackupService(encrypted_config, logger=recording_logger)
    await svc.initialize()
    yield svc
    svc.shutdown()
