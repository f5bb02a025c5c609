"""Tests for backup creation and restore."""

import asyncio
import json
import sys

import pytest

from conftest import TEST_PASSPHRASE, flip_stored_byte, tamper_ciphertext
from gofr_dr.backup import BackupService
from gofr_dr.codecs import compress, decompress, decrypt
from gofr_dr.config import BackupConfig
from gofr_dr.exceptions import (
    BackupError,
    ConfigurationError,
    ConflictError,
    IntegrityError,
    NotFoundError,
    RestoreCancelledError,
)

SAMPLE_STATE = {
    "users": [{"id": 1, "name": "Zoë"}, {"id": 2, "name": "Bob"}],
    "settings": {"theme": "dark", "limits": [1, 2.5, None, True]},
}


class TestCreateBackup:
    """Tests for the creation pipeline."""

    @pytest.mark.asyncio
    async def test_writes_payload_and_sidecar(self, service):
        descriptor = await service.create_backup({"foo": 1}, {"description": "before upgrade"})

        assert descriptor.path.exists()
        assert service.store.metadata_path(descriptor.backup_name).exists()
        assert descriptor.backup_name.endswith(descriptor.backup_id)

        sidecar = json.loads(service.store.metadata_path(descriptor.backup_name).read_text())
        assert sidecar["id"] == descriptor.backup_id
        assert sidecar["type"] == "manual"
        assert sidecar["description"] == "before upgrade"
        assert sidecar["compressed"] is True
        assert sidecar["encrypted"] is False
        assert sidecar["dataSize"] == len(json.dumps({"foo": 1}, indent=2).encode("utf-8"))

    @pytest.mark.asyncio
    async def test_data_size_counts_payload_only(self, service):
        descriptor = await service.create_backup(SAMPLE_STATE)

        payload_bytes = json.dumps(SAMPLE_STATE, indent=2, ensure_ascii=False).encode("utf-8")
        envelope = decompress(descriptor.path.read_bytes())
        assert descriptor.metadata.data_size == len(payload_bytes)
        assert descriptor.metadata.data_size < len(envelope)

    @pytest.mark.asyncio
    async def test_defaults(self, service):
        descriptor = await service.create_backup([1, 2, 3])
        assert descriptor.metadata.type == "manual"
        assert descriptor.metadata.description == "Database backup"
        assert descriptor.metadata.version == "1.0.0"

    @pytest.mark.asyncio
    async def test_unencrypted_payload_is_plain_envelope(self, service):
        descriptor = await service.create_backup({"foo": 1})
        envelope = json.loads(decompress(descriptor.path.read_bytes()))

        assert envelope["data"] == {"foo": 1}
        assert envelope["metadata"]["id"] == descriptor.backup_id

    @pytest.mark.asyncio
    async def test_encrypted_payload_needs_key(self, encrypted_service):
        descriptor = await encrypted_service.create_backup(SAMPLE_STATE)
        blob = decompress(descriptor.path.read_bytes())

        assert b"Bob" not in blob
        assert descriptor.metadata.encrypted is True
        envelope = json.loads(decrypt(blob, TEST_PASSPHRASE))
        assert envelope["data"] == SAMPLE_STATE

    @pytest.mark.asyncio
    async def test_unserializable_payload(self, service):
        with pytest.raises(BackupError) as exc_info:
            await service.create_backup({"when": object()})

        assert isinstance(exc_info.value.__cause__, TypeError)
        assert (await service.list_backups()).total == 0
        assert list(service.store.backup_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_too_deeply_nested_payload(self, service):
        nested = []
        for _ in range(sys.getrecursionlimit() + 100):
            nested = [nested]

        with pytest.raises(BackupError) as exc_info:
            await service.create_backup({"deep": nested})

        assert isinstance(exc_info.value.__cause__, RecursionError)
        assert exc_info.value.details["cause"] == "RecursionError"
        assert list(service.store.backup_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_extra_metadata_keys_not_stored(self, service, recording_logger):
        descriptor = await service.create_backup({"a": 1}, {"scheduleName": "daily"})

        sidecar = json.loads(service.store.metadata_path(descriptor.backup_name).read_text())
        assert "scheduleName" not in sidecar
        assert "Metadata keys not stored in sidecar" in recording_logger.messages("DEBUG")

    @pytest.mark.asyncio
    async def test_every_backup_is_listed(self, service):
        ids = [(await service.create_backup({"n": i})).backup_id for i in range(4)]

        page = await service.list_backups()
        assert page.total == 4
        assert [b.id for b in page.backups] == list(reversed(ids))


class TestRestoreBackup:
    """Tests for the restore pipeline."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("level", [0, 1, 6, 9])
    @pytest.mark.parametrize("passphrase", [None, TEST_PASSPHRASE])
    async def test_round_trip(self, backup_dir, recording_logger, level, passphrase):
        config = BackupConfig(backup_dir=backup_dir, compression_level=level, encryption_key=passphrase)
        service = BackupService(config, logger=recording_logger)
        await service.initialize()

        descriptor = await service.create_backup(SAMPLE_STATE)
        result = await service.restore_backup(descriptor.backup_id)

        assert result.data == SAMPLE_STATE
        assert result.metadata["id"] == descriptor.backup_id

    @pytest.mark.asyncio
    async def test_large_payload_round_trip(self, backup_dir, recording_logger):
        config = BackupConfig(backup_dir=backup_dir, chunk_size=1024)
        service = BackupService(config, logger=recording_logger)
        await service.initialize()
        state = {"rows": [{"i": i, "v": "x" * 50} for i in range(5000)]}

        descriptor = await service.create_backup(state)
        assert (await service.restore_backup(descriptor.backup_id)).data == state

    @pytest.mark.asyncio
    async def test_unknown_id(self, service):
        with pytest.raises(NotFoundError):
            await service.restore_backup("does-not-exist")

    @pytest.mark.asyncio
    async def test_confirm_declined(self, service):
        descriptor = await service.create_backup({"foo": 1})
        seen = []

        def decline(metadata):
            seen.append(metadata)
            return False

        with pytest.raises(RestoreCancelledError) as exc_info:
            await service.restore_backup(descriptor.backup_id, confirm_restore=decline)

        assert exc_info.value.code == "RESTORE_CANCELLED"
        assert seen[0]["id"] == descriptor.backup_id
        assert not service.restorer.restore_in_progress

    @pytest.mark.asyncio
    async def test_async_confirm_accepted(self, service):
        descriptor = await service.create_backup({"foo": 1})

        async def accept(metadata):
            return True

        result = await service.restore_backup(descriptor.backup_id, confirm_restore=accept)
        assert result.data == {"foo": 1}

    @pytest.mark.asyncio
    async def test_safety_backup(self, service):
        descriptor = await service.create_backup({"version": 1})

        result = await service.restore_backup(
            descriptor.backup_id,
            create_safety_backup=True,
            current_data={"version": 2},
        )

        assert result.data == {"version": 1}
        safety = (await service.list_backups(type="pre-restore-safety")).backups
        assert len(safety) == 1
        assert (await service.restore_backup(safety[0].id)).data == {"version": 2}

    @pytest.mark.asyncio
    async def test_no_safety_backup_when_cancelled(self, service):
        descriptor = await service.create_backup({"version": 1})

        with pytest.raises(RestoreCancelledError):
            await service.restore_backup(
                descriptor.backup_id,
                confirm_restore=lambda metadata: False,
                create_safety_backup=True,
                current_data={"version": 2},
            )
        assert (await service.list_backups(type="pre-restore-safety")).total == 0

    @pytest.mark.asyncio
    async def test_tampered_ciphertext(self, encrypted_service):
        descriptor = await encrypted_service.create_backup(SAMPLE_STATE)
        tamper_ciphertext(descriptor.path)

        with pytest.raises(IntegrityError):
            await encrypted_service.restore_backup(descriptor.backup_id)
        assert not encrypted_service.restorer.restore_in_progress

    @pytest.mark.asyncio
    async def test_corrupted_file_on_disk(self, encrypted_service):
        descriptor = await encrypted_service.create_backup(SAMPLE_STATE)
        flip_stored_byte(descriptor.path)

        with pytest.raises(IntegrityError):
            await encrypted_service.restore_backup(descriptor.backup_id)
        assert not encrypted_service.restorer.restore_in_progress

    @pytest.mark.asyncio
    async def test_wrong_key(self, encrypted_service, backup_dir, recording_logger):
        descriptor = await encrypted_service.create_backup(SAMPLE_STATE)
        other = BackupService(BackupConfig(backup_dir=backup_dir, encryption_key="wrong"), logger=recording_logger)

        with pytest.raises(IntegrityError):
            await other.restore_backup(descriptor.backup_id)

    @pytest.mark.asyncio
    async def test_encrypted_backup_without_key(self, encrypted_service, config, recording_logger):
        descriptor = await encrypted_service.create_backup(SAMPLE_STATE)
        plain = BackupService(config, logger=recording_logger)

        with pytest.raises(ConfigurationError):
            await plain.restore_backup(descriptor.backup_id)

    @pytest.mark.asyncio
    async def test_non_json_payload(self, service):
        descriptor = await service.create_backup({"foo": 1})
        descriptor.path.write_bytes(compress(b"not json at all"))

        with pytest.raises(IntegrityError):
            await service.restore_backup(descriptor.backup_id)


class TestRestoreConcurrency:
    """Only one restore may run at a time."""

    @pytest.mark.asyncio
    async def test_second_restore_is_refused(self, service):
        descriptor = await service.create_backup({"foo": 1})
        release = asyncio.Event()

        async def wait_for_release(metadata):
            await release.wait()
            return True

        first = asyncio.create_task(
            service.restore_backup(descriptor.backup_id, confirm_restore=wait_for_release)
        )
        while not service.restorer.restore_in_progress:
            await asyncio.sleep(0)

        with pytest.raises(ConflictError) as exc_info:
            await service.restore_backup(descriptor.backup_id)
        assert exc_info.value.code == "RESTORE_IN_PROGRESS"
        assert not isinstance(exc_info.value, RestoreCancelledError)

        release.set()
        assert (await first).data == {"foo": 1}

        assert not service.restorer.restore_in_progress
        assert (await service.restore_backup(descriptor.backup_id)).data == {"foo": 1}

    @pytest.mark.asyncio
    async def test_lock_released_after_failure(self, service):
        with pytest.raises(NotFoundError):
            await service.restore_backup("missing")

        descriptor = await service.create_backup({"foo": 1})
        assert (await service.restore_backup(descriptor.backup_id)).data == {"foo": 1}
