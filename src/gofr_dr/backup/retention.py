"""Backup retention management

Applies a per-type count cap and an age cap to the artifacts in the store.
Cleanup is best effort: a failed deletion is logged and the remaining
candidates are still processed.
"""

from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from gofr_dr.exceptions import GofrError
from gofr_dr.logger import Logger, create_logger
from gofr_dr.storage import ArtifactStore, BackupArtifact


class RetentionManager:
    """Evicts backups beyond max_backups per type or older than retention_days"""

    def __init__(
        self,
        store: ArtifactStore,
        retention_days: int = 30,
        max_backups: int = 100,
        logger: Optional[Logger] = None,
    ):
        self.store = store
        self.retention_days = retention_days
        self.max_backups = max_backups
        self.logger = logger or create_logger("gofr-dr")

    def select_for_deletion(
        self,
        backups: List[Tuple[str, BackupArtifact]],
        now: Optional[datetime] = None,
    ) -> Dict[str, List[Tuple[str, BackupArtifact]]]:
        """Pick the artifacts to evict, grouped by type

        Args:
            backups: (base name, artifact) pairs
            now: Reference time (default: current UTC time)
        """
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(days=self.retention_days)

        groups: Dict[str, List[Tuple[str, BackupArtifact]]] = defaultdict(list)
        for name, artifact in backups:
            groups[artifact.type].append((name, artifact))

        selected: Dict[str, List[Tuple[str, BackupArtifact]]] = {}
        for backup_type, members in groups.items():
            members.sort(key=lambda item: item[1].created_at, reverse=True)
            # Beyond the count cap: always evicted
            to_delete = members[self.max_backups:]
            # Within the count cap but past the age cap
            to_delete.extend(
                item for item in members[:self.max_backups]
                if item[1].created_at < cutoff
            )
            if to_delete:
                selected[backup_type] = to_delete
        return selected

    async def cleanup_old_backups(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Run retention over every backup type

        Returns:
            Number of artifacts removed per type
        """
        try:
            backups = await self.store.list_named()
        except GofrError as e:
            self.logger.error("Cleanup failed: cannot list backups", error=str(e))
            return {}

        results: Dict[str, int] = {}
        for backup_type, candidates in self.select_for_deletion(backups, now).items():
            removed = 0
            for name, artifact in candidates:
                try:
                    await self.store.delete(name)
                except GofrError as e:
                    self.logger.error("Failed to delete old backup", name=name, error=str(e))
                    continue
                removed += 1
                self.logger.info(
                    "Deleted old backup",
                    name=name,
                    backup_type=backup_type,
                    timestamp=artifact.timestamp,
                )
            results[backup_type] = removed

        await self._report_orphans()

        total_removed = sum(results.values())
        if total_removed:
            self.logger.info("Cleanup complete", removed=total_removed)
        return results

    async def _report_orphans(self) -> None:
        try:
            orphans = await self.store.find_orphans()
        except GofrError as e:
            self.logger.warning("Orphan scan failed", error=str(e))
            return
        if orphans:
            self.logger.warning(
                "Found backup files without metadata",
                count=len(orphans),
                files=", ".join(orphans),
            )

    async def get_stats(self) -> Dict[str, Any]:
        """Backup statistics, overall and per type"""
        backups = await self.store.list_named()
        if not backups:
            return {
                "total_backups": 0,
                "total_size_bytes": 0,
                "oldest_backup": None,
                "newest_backup": None,
                "by_type": {},
            }

        sizes = {name: await self.store.payload_size(name) for name, _ in backups}
        by_type: Dict[str, Dict[str, Any]] = {}
        for name, artifact in backups:
            entry = by_type.setdefault(
                artifact.type,
                {"count": 0, "size_bytes": 0, "oldest": artifact.timestamp, "newest": artifact.timestamp},
            )
            entry["count"] += 1
            entry["size_bytes"] += sizes[name]
            # backups are sorted newest first
            entry["oldest"] = artifact.timestamp

        return {
            "total_backups": len(backups),
            "total_size_bytes": sum(sizes.values()),
            "oldest_backup": backups[-1][1].timestamp,
            "newest_backup": backups[0][1].timestamp,
            "by_type": by_type,
        }
