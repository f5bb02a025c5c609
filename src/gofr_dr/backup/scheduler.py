"""Cron-driven scheduled backups

Jobs live in memory for the lifetime of the scheduler; an application that
restarts must register them again. A failing run is logged and the job
keeps its schedule. Runs of the same job may overlap (up to
``max_instances``) when a backup takes longer than the cron interval.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from gofr_dr.backup.providers import DataProvider, call_provider
from gofr_dr.backup.writer import BackupWriter
from gofr_dr.exceptions import ConfigurationError
from gofr_dr.logger import Logger, create_logger
from gofr_dr.storage import SCHEDULED

# name -> (cron expression, description)
DEFAULT_SCHEDULES = {
    "daily": ("0 3 * * *", "Daily automatic backup"),
    "weekly": ("0 4 * * 0", "Weekly automatic backup"),
    "monthly": ("0 5 1 * *", "Monthly automatic backup"),
}

# Crontab weekday numbering: 0 is Sunday
CRONTAB_WEEKDAYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")


@dataclass
class BackupJob:
    """A registered scheduled backup"""
    name: str
    cron_expression: str
    data_provider: DataProvider
    metadata: Dict[str, Any] = field(default_factory=dict)
    job: Optional[Job] = None


def crontab_day_of_week(value: str) -> str:
    """Rewrite a crontab day-of-week field with day names

    Crontab counts weekdays from Sunday (0 and 7 both mean Sunday) while
    CronTrigger counts from Monday, so numbers, ranges, steps and lists are
    expanded to names. Parts that already use names pass through.

    Raises:
        ValueError: If a number is outside 0-7 or a range runs backwards
    """
    if value == "*":
        return value

    parts: List[str] = []
    days = set()
    for part in value.split(","):
        if any(c.isalpha() for c in part):
            parts.append(part)
            continue
        span, _, step = part.partition("/")
        if span == "*":
            first, last = 0, 6
        elif "-" in span:
            first, last = (int(v) for v in span.split("-", 1))
        else:
            first = int(span)
            last = 7 if step else first
        if not (0 <= first <= last <= 7):
            raise ValueError(f"Invalid day-of-week value '{part}'")
        days.update(day % 7 for day in range(first, last + 1, int(step) if step else 1))

    parts.extend(CRONTAB_WEEKDAYS[day] for day in sorted(days))
    return ",".join(parts)


def parse_cron(cron_expression: str) -> CronTrigger:
    """Build a trigger from a 5-field crontab expression"""
    try:
        fields = cron_expression.split()
        if len(fields) != 5:
            raise ValueError(f"Wrong number of fields; got {len(fields)}, expected 5")
        minute, hour, day, month, day_of_week = fields
        return CronTrigger(
            minute=minute,
            hour=hour,
            day=day,
            month=month,
            day_of_week=crontab_day_of_week(day_of_week),
        )
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid cron expression '{cron_expression}': {e}",
            details={"cron_expression": cron_expression},
        ) from e


class BackupScheduler:
    """Binds named cron schedules to a data provider and the backup writer"""

    def __init__(
        self,
        writer: BackupWriter,
        scheduler: Optional[AsyncIOScheduler] = None,
        max_instances: int = 3,
        logger: Optional[Logger] = None,
    ):
        self.writer = writer
        self.scheduler = scheduler or AsyncIOScheduler()
        self.max_instances = max_instances
        self.logger = logger or create_logger("gofr-dr")
        self._jobs: Dict[str, BackupJob] = {}

    @property
    def running(self) -> bool:
        return self.scheduler.running

    @property
    def job_names(self) -> List[str]:
        return sorted(self._jobs)

    def get_job(self, name: str) -> Optional[BackupJob]:
        return self._jobs.get(name)

    def start(self) -> None:
        """Start firing triggers; needs a running event loop"""
        if self.scheduler.running:
            self.logger.warning("Backup scheduler already running")
            return
        self.scheduler.start()
        self.logger.info("Backup scheduler started", jobs=len(self._jobs))

    def shutdown(self, wait: bool = False) -> None:
        if not self.scheduler.running:
            return
        self.scheduler.shutdown(wait=wait)
        self.logger.info("Backup scheduler stopped")

    def _unschedule(self, name: str) -> None:
        try:
            self.scheduler.remove_job(name)
        except JobLookupError:
            pass

    def schedule_backup(
        self,
        name: str,
        cron_expression: str,
        data_provider: DataProvider,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> BackupJob:
        """Register (or replace) a named scheduled backup

        Args:
            name: Job name; an existing job with this name is stopped first
            cron_expression: 5-field crontab expression
            data_provider: Returns the state to back up (sync or async)
            metadata: Merged into each backup's metadata

        Raises:
            ConfigurationError: If the cron expression is invalid
        """
        trigger = parse_cron(cron_expression)

        if name in self._jobs:
            self._unschedule(name)
            del self._jobs[name]
            self.logger.info("Replacing scheduled backup", name=name)

        backup_job = BackupJob(
            name=name,
            cron_expression=cron_expression,
            data_provider=data_provider,
            metadata=dict(metadata or {}),
        )
        backup_job.job = self.scheduler.add_job(
            self.run_job,
            trigger=trigger,
            args=[name],
            id=name,
            name=f"Scheduled backup: {name}",
            max_instances=self.max_instances,
            misfire_grace_time=3600,
            replace_existing=True,
        )
        self._jobs[name] = backup_job
        self.logger.info("Backup scheduled", name=name, cron=cron_expression)
        return backup_job

    async def run_job(self, name: str) -> None:
        """Execute one run of a scheduled backup; errors are logged only"""
        backup_job = self._jobs.get(name)
        if backup_job is None:
            self.logger.warning("Scheduled backup not registered", name=name)
            return

        self.logger.info("Running scheduled backup", name=name)
        try:
            data = await call_provider(backup_job.data_provider)
            descriptor = await self.writer.create_backup(data, {"type": SCHEDULED, **backup_job.metadata})
        except Exception as e:
            self.logger.error("Scheduled backup failed", name=name, error=str(e))
            return
        self.logger.info("Scheduled backup completed", name=name, backup_id=descriptor.backup_id)

    def setup_default_schedules(self, data_provider: DataProvider) -> List[BackupJob]:
        """Register the daily, weekly and monthly backups"""
        return [
            self.schedule_backup(name, cron, data_provider, {"description": description})
            for name, (cron, description) in DEFAULT_SCHEDULES.items()
        ]

    def next_run_time(self, name: str) -> Optional[datetime]:
        job = self.scheduler.get_job(name)
        return getattr(job, "next_run_time", None) if job else None

    def stop_all_jobs(self) -> None:
        """Deregister every job; stored backups are untouched"""
        for name in list(self._jobs):
            self._unschedule(name)
            self.logger.info("Backup job stopped", name=name)
        self._jobs.clear()
