"""
MMW — Cron Job Scheduler
=========================
Runs named async callbacks on cron schedules inside the application's event
loop.

Jobs are registered explicitly during application startup and each runs in
its own asyncio task: sleep until the next fire time, await the callback,
repeat.  A job that is still running when its next fire time passes skips
that occurrence; jobs never overlap with themselves and never block each other.

Cron expressions are standard 5-field expressions.  6-field expressions with
a leading seconds field and ``?`` placeholders are accepted and normalised:
``0 0 2 * * ?`` becomes ``0 2 * * *``.

Usage:
    scheduler = JobScheduler(timezone=ZoneInfo("Asia/Shanghai"))
    register_quality_jobs(scheduler, monitor_task, monitor_config)
    scheduler.start()
    ...
    await scheduler.stop()
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone as dt_timezone, tzinfo
from typing import TYPE_CHECKING, Awaitable, Callable

from croniter import croniter

from mmw.core.config import QualityMonitorConfig
from mmw.core.exceptions import InvalidConfigurationError
from mmw.core.logging import get_logger, job_context

if TYPE_CHECKING:
    from mmw.tasks.quality_monitor import QualityMonitorTask

logger = get_logger(__name__)

JobFunc = Callable[[], Awaitable[None]]

QUALITY_MONITOR_JOB = "quality_monitor.auto_detect"
DAILY_REPORT_JOB = "quality_monitor.daily_report"


def normalize_cron(expression: str) -> str:
    """
    Return the 5-field form of ``expression``.

    Raises ``InvalidConfigurationError`` when it is not a valid cron expression.
    """
    fields = (expression or "").split()
    if len(fields) == 6:
        fields = fields[1:]
    if len(fields) != 5:
        raise InvalidConfigurationError(
            f"Invalid cron expression {expression!r}: expected 5 or 6 fields"
        )
    normalized = " ".join("*" if f == "?" else f for f in fields)
    if not croniter.is_valid(normalized):
        raise InvalidConfigurationError(f"Invalid cron expression {expression!r}")
    return normalized


@dataclass(frozen=True)
class CronJob:
    name: str
    cron: str
    func: JobFunc

    def next_fire(self, after: datetime) -> datetime:
        """First fire time strictly after ``after`` (same timezone)."""
        return croniter(self.cron, after).get_next(datetime)


class JobScheduler:
    def __init__(
        self,
        *,
        timezone: tzinfo = dt_timezone.utc,
        clock: Callable[[tzinfo], datetime] | None = None,
    ) -> None:
        self._timezone = timezone
        self._clock = clock or (lambda tz: datetime.now(tz))
        self._jobs: dict[str, CronJob] = {}
        self._tasks: dict[str, asyncio.Task[None]] = {}

    @property
    def jobs(self) -> tuple[CronJob, ...]:
        return tuple(self._jobs.values())

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    def add_job(self, name: str, cron: str, func: JobFunc) -> CronJob:
        if name in self._jobs:
            raise InvalidConfigurationError(f"Job {name!r} is already registered")
        job = CronJob(name=name, cron=normalize_cron(cron), func=func)
        self._jobs[name] = job
        logger.info("scheduler.job.registered", job=name, cron=job.cron)
        if self._tasks:
            self._spawn(job)
        return job

    def start(self) -> None:
        for job in self._jobs.values():
            if job.name not in self._tasks:
                self._spawn(job)
        logger.info("scheduler.started", jobs=sorted(self._jobs))

    async def stop(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("scheduler.stopped")

    async def run_job(self, job: CronJob) -> None:
        """
        Await one invocation; an exception is logged, never raised.

        Every line logged during the run carries ``job`` and ``run_id``.
        """
        with job_context(job.name):
            logger.debug("scheduler.job.fired", job=job.name)
            try:
                await job.func()
            except Exception:
                logger.exception("scheduler.job.failed", job=job.name)
                return
            logger.debug("scheduler.job.finished", job=job.name)

    # ── Internals ───────────────────────────────────────────────────────

    def _spawn(self, job: CronJob) -> None:
        self._tasks[job.name] = asyncio.create_task(
            self._loop(job), name=f"cron:{job.name}"
        )

    async def _loop(self, job: CronJob) -> None:
        last_fire: datetime | None = None
        while True:
            now = self._clock(self._timezone)
            base = now if last_fire is None or now > last_fire else last_fire
            fire_at = job.next_fire(base)
            await asyncio.sleep(max((fire_at - now).total_seconds(), 0))
            last_fire = fire_at
            await self.run_job(job)


def register_quality_jobs(
    scheduler: JobScheduler,
    task: "QualityMonitorTask",
    config: QualityMonitorConfig,
) -> list[CronJob]:
    """
    Register the hourly detector and the daily report.

    Each job is guarded by its own flag; a disabled job is simply not added.
    """
    registered: list[CronJob] = []
    if config.enabled:
        registered.append(scheduler.add_job(
            QUALITY_MONITOR_JOB, config.cron, task.auto_detect_quality_issues
        ))
    else:
        logger.info("scheduler.job.disabled", job=QUALITY_MONITOR_JOB)

    if config.report_enabled:
        registered.append(scheduler.add_job(
            DAILY_REPORT_JOB, config.report_cron, task.generate_daily_quality_report
        ))
    else:
        logger.info("scheduler.job.disabled", job=DAILY_REPORT_JOB)
    return registered
