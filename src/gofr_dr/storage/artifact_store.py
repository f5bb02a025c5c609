"""Filesystem store for backup artifacts

Each artifact is a payload file plus a JSON metadata sidecar sharing one
base name inside a single directory:

    backup_<timestamp>_<id>.backup.gz
    backup_<timestamp>_<id>.meta.json

Both files are written to a temporary name and renamed into place. The
sidecar is authoritative: a payload without one is an orphan and is never
listed, resolved or evicted.
"""

import json
import math
import uuid
from datetime import datetime
from pathlib import Path
from typing import AsyncIterable, AsyncIterator, Dict, List, Optional

import aiofiles
import aiofiles.os

from gofr_dr.exceptions import BackupIOError, NotFoundError
from gofr_dr.logger import Logger, create_logger
from gofr_dr.storage.metadata import BackupArtifact, BackupPage, as_utc

PAYLOAD_SUFFIX = ".backup.gz"
METADATA_SUFFIX = ".meta.json"
TEMP_SUFFIX = ".tmp"
DEFAULT_CHUNK_SIZE = 64 * 1024


class ArtifactStore:
    """Reads, writes, lists and deletes artifacts in one backup directory"""

    def __init__(
        self,
        backup_dir: Path | str,
        logger: Optional[Logger] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.backup_dir = Path(backup_dir)
        self.chunk_size = chunk_size
        self.logger = logger or create_logger("gofr-dr")

    async def initialize(self) -> None:
        """Create the backup directory if missing"""
        try:
            await aiofiles.os.makedirs(self.backup_dir, exist_ok=True)
        except OSError as e:
            raise BackupIOError(
                f"Cannot create backup directory {self.backup_dir}: {e}"
            ) from e
        self.logger.info("Backup directory initialized", backup_dir=str(self.backup_dir))

    @staticmethod
    def artifact_name(artifact_id: str, timestamp: str) -> str:
        """Filesystem-safe base name for an artifact"""
        safe_timestamp = timestamp.replace(":", "-").replace(".", "-")
        return f"backup_{safe_timestamp}_{artifact_id}"

    def payload_path(self, name: str) -> Path:
        return self.backup_dir / f"{name}{PAYLOAD_SUFFIX}"

    def metadata_path(self, name: str) -> Path:
        return self.backup_dir / f"{name}{METADATA_SUFFIX}"

    async def _replace(self, source: Path, target: Path) -> None:
        await aiofiles.os.replace(source, target)

    async def _discard(self, path: Path) -> bool:
        """Remove a file; a missing file is not an error"""
        try:
            await aiofiles.os.remove(path)
            return True
        except FileNotFoundError:
            return False

    async def write_payload(self, name: str, chunks: AsyncIterable[bytes]) -> Path:
        """Stream chunks into the payload file

        Returns:
            Path of the written payload
        """
        target = self.payload_path(name)
        temp = target.with_name(f"{target.name}.{uuid.uuid4().hex[:8]}{TEMP_SUFFIX}")
        try:
            async with aiofiles.open(temp, "wb") as f:
                async for chunk in chunks:
                    await f.write(chunk)
            await self._replace(temp, target)
        except OSError as e:
            await self._discard(temp)
            raise BackupIOError(f"Failed to write payload {target.name}: {e}") from e
        except Exception:
            await self._discard(temp)
            raise
        return target

    async def write_metadata(self, name: str, artifact: BackupArtifact) -> Path:
        """Write the sidecar via temp file + rename"""
        target = self.metadata_path(name)
        temp = target.with_name(f"{target.name}.{uuid.uuid4().hex[:8]}{TEMP_SUFFIX}")
        try:
            async with aiofiles.open(temp, "w", encoding="utf-8") as f:
                await f.write(json.dumps(artifact.to_dict(), indent=2))
            await self._replace(temp, target)
        except OSError as e:
            await self._discard(temp)
            raise BackupIOError(f"Failed to write metadata {target.name}: {e}") from e
        return target

    async def write_artifact(
        self, name: str, chunks: AsyncIterable[bytes], artifact: BackupArtifact
    ) -> Path:
        """Write payload then sidecar

        If the sidecar cannot be written the payload is removed so no
        orphan is left behind; if that removal fails too the orphan stays
        and is reported by find_orphans().
        """
        payload = await self.write_payload(name, chunks)
        try:
            await self.write_metadata(name, artifact)
        except Exception:
            try:
                await self._discard(payload)
            except OSError as cleanup_error:
                self.logger.error(
                    "Failed to remove payload after metadata write failure",
                    name=name,
                    error=str(cleanup_error),
                )
            raise
        return payload

    async def read_metadata(self, name: str) -> BackupArtifact:
        path = self.metadata_path(name)
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                content = await f.read()
        except FileNotFoundError as e:
            raise NotFoundError(f"Backup metadata not found: {name}") from e
        except OSError as e:
            raise BackupIOError(f"Failed to read metadata {path.name}: {e}") from e
        return BackupArtifact.from_dict(json.loads(content))

    async def read_payload(self, name: str) -> AsyncIterator[bytes]:
        """Yield the payload file in chunks"""
        path = self.payload_path(name)
        try:
            async with aiofiles.open(path, "rb") as f:
                while True:
                    chunk = await f.read(self.chunk_size)
                    if not chunk:
                        break
                    yield chunk
        except FileNotFoundError as e:
            raise NotFoundError(f"Backup payload not found: {name}") from e
        except OSError as e:
            raise BackupIOError(f"Failed to read payload {path.name}: {e}") from e

    async def _list_names(self, suffix: str) -> List[str]:
        try:
            entries = await aiofiles.os.listdir(self.backup_dir)
        except FileNotFoundError:
            return []
        except OSError as e:
            raise BackupIOError(f"Failed to list {self.backup_dir}: {e}") from e
        return sorted(e[: -len(suffix)] for e in entries if e.endswith(suffix))

    async def _load_all(self) -> Dict[str, BackupArtifact]:
        """Map base name -> artifact for every readable sidecar"""
        artifacts: Dict[str, BackupArtifact] = {}
        for name in await self._list_names(METADATA_SUFFIX):
            try:
                artifacts[name] = await self.read_metadata(name)
            except NotFoundError:
                # Deleted between listing and reading
                continue
            except (ValueError, KeyError, TypeError, BackupIOError) as e:
                self.logger.warning("Skipping unreadable metadata", name=name, error=str(e))
        return artifacts

    async def list_named(
        self,
        type: Optional[str] = None,
        created_after: Optional[datetime] = None,
        created_before: Optional[datetime] = None,
    ) -> List[tuple[str, BackupArtifact]]:
        """(base name, artifact) pairs matching the filters, newest first

        Naive ``created_after``/``created_before`` bounds are read as UTC.
        """
        if created_after is not None:
            created_after = as_utc(created_after)
        if created_before is not None:
            created_before = as_utc(created_before)

        matches = []
        for name, artifact in (await self._load_all()).items():
            if type is not None and artifact.type != type:
                continue
            try:
                created = artifact.created_at
            except ValueError:
                self.logger.warning("Skipping metadata with bad timestamp", name=name)
                continue
            if created_after is not None and created < created_after:
                continue
            if created_before is not None and created > created_before:
                continue
            matches.append((name, artifact))
        return sorted(matches, key=lambda item: item[1].created_at, reverse=True)

    async def list_metadata(
        self,
        type: Optional[str] = None,
        created_after: Optional[datetime] = None,
        created_before: Optional[datetime] = None,
    ) -> List[BackupArtifact]:
        """Artifacts matching the filters, newest first"""
        named = await self.list_named(type, created_after, created_before)
        return [artifact for _, artifact in named]

    async def list_page(
        self,
        type: Optional[str] = None,
        created_after: Optional[datetime] = None,
        created_before: Optional[datetime] = None,
        page: int = 1,
        limit: int = 20,
    ) -> BackupPage:
        """One page of list_metadata()"""
        if page < 1 or limit < 1:
            raise ValueError("page and limit must be positive")
        backups = await self.list_metadata(type, created_after, created_before)
        start = (page - 1) * limit
        return BackupPage(
            backups=backups[start:start + limit],
            total=len(backups),
            page=page,
            pages=math.ceil(len(backups) / limit),
        )

    async def resolve(self, artifact_id: str) -> str:
        """Find the base name of the artifact with exactly this id

        Raises:
            NotFoundError: No match, several matches, or payload missing
        """
        names = [
            name for name, artifact in (await self._load_all()).items()
            if artifact.id == artifact_id
        ]
        if not names:
            raise NotFoundError(f"Backup not found: {artifact_id}", details={"backup_id": artifact_id})
        if len(names) > 1:
            raise NotFoundError(
                f"Backup id is ambiguous: {artifact_id}",
                details={"backup_id": artifact_id, "matches": names},
            )
        name = names[0]
        if not await aiofiles.os.path.exists(self.payload_path(name)):
            raise NotFoundError(
                f"Backup payload missing: {artifact_id}",
                details={"backup_id": artifact_id, "name": name},
            )
        return name

    async def delete(self, name: str) -> bool:
        """Remove payload and sidecar

        Returns:
            True if at least one of the two files existed

        Raises:
            BackupIOError: On errors other than a missing file
        """
        removed = False
        for path in (self.payload_path(name), self.metadata_path(name)):
            try:
                removed = await self._discard(path) or removed
            except OSError as e:
                raise BackupIOError(f"Failed to delete {path.name}: {e}") from e
        return removed

    async def find_orphans(self) -> List[str]:
        """Payload files without a sidecar, plus leftover temp files"""
        try:
            entries = await aiofiles.os.listdir(self.backup_dir)
        except FileNotFoundError:
            return []
        except OSError as e:
            raise BackupIOError(f"Failed to list {self.backup_dir}: {e}") from e

        sidecars = {e[: -len(METADATA_SUFFIX)] for e in entries if e.endswith(METADATA_SUFFIX)}
        orphans = [
            e for e in entries
            if e.endswith(PAYLOAD_SUFFIX) and e[: -len(PAYLOAD_SUFFIX)] not in sidecars
        ]
        orphans.extend(e for e in entries if e.endswith(TEMP_SUFFIX))
        return sorted(orphans)

    async def payload_size(self, name: str) -> int:
        try:
            stat = await aiofiles.os.stat(self.payload_path(name))
        except FileNotFoundError:
            return 0
        return stat.st_size
