"""
MMW — Scheduled Tasks
======================
Cron scheduling and the quality monitoring jobs.

Public API:
    JobScheduler, CronJob, normalize_cron - cron scheduling
    register_quality_jobs - wire the quality jobs into a scheduler
    QualityMonitorTask - hourly detection and the daily report
"""

from mmw.tasks.quality_monitor import QualityMonitorTask
from mmw.tasks.scheduler import (
    DAILY_REPORT_JOB,
    QUALITY_MONITOR_JOB,
    CronJob,
    JobScheduler,
    normalize_cron,
    register_quality_jobs,
)

__all__ = [
    "CronJob",
    "DAILY_REPORT_JOB",
    "JobScheduler",
    "QUALITY_MONITOR_JOB",
    "QualityMonitorTask",
    "normalize_cron",
    "register_quality_jobs",
]
