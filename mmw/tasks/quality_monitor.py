"""
MMW — Scheduled Quality Monitor
================================
The two scheduled quality jobs.

``auto_detect_quality_issues``
    Runs the traceability detector over the recent window and logs exactly
    one outcome line: info on success, error otherwise.

``generate_daily_quality_report``
    Collects statistics for the four dimensions over the half-open 24 hours
    ``[previous midnight, midnight)`` in the report timezone, so each batch
    lands in exactly one daily report, and emails an HTML report to every
    administrator.  A failure while gathering statistics aborts the run
    before any email is sent; a failure for one recipient does not stop the
    others.

Neither job lets an exception escape, retries, or keeps state between runs.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Sequence
from zoneinfo import ZoneInfo

from mmw.core.config import NotificationConfig, QualityMonitorConfig
from mmw.core.logging import get_logger
from mmw.models.traceability import QualityStatistics, QueryDimension, TraceabilityQuery
from mmw.services.notifications import NotificationService
from mmw.services.traceability import TraceabilityService

logger = get_logger(__name__)

REPORT_WINDOW = timedelta(hours=24)


class QualityMonitorTask:
    def __init__(
        self,
        traceability: TraceabilityService,
        notifications: NotificationService,
        notification_config: NotificationConfig,
        monitor_config: QualityMonitorConfig,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._traceability = traceability
        self._notifications = notifications
        self._notification_config = notification_config
        self._monitor_config = monitor_config
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # ── Detection ───────────────────────────────────────────────────────

    async def auto_detect_quality_issues(self) -> None:
        logger.debug("quality_monitor.detect.started")
        try:
            result = await self._traceability.auto_detect_and_notify_quality_issues()
        except Exception:
            logger.exception("quality_monitor.detect.crashed")
            return

        if result.is_success:
            logger.info("quality_monitor.detect.completed", result=result.data)
        else:
            logger.error("quality_monitor.detect.failed", error=result.msg)

    # ── Daily report ────────────────────────────────────────────────────

    def report_window(self, now: datetime | None = None) -> tuple[datetime, datetime]:
        """
        ``(start, end)`` of the report: exactly 24 hours ending at the most
        recent midnight in the report timezone.
        """
        tz = ZoneInfo(self._monitor_config.report_timezone)
        local_now = (now or self._clock()).astimezone(tz)
        end = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
        start = (end.astimezone(timezone.utc) - REPORT_WINDOW).astimezone(tz)
        return start, end

    async def generate_daily_quality_report(self, now: datetime | None = None) -> None:
        logger.debug("quality_monitor.report.started")
        try:
            start, end = self.report_window(now)
            base = TraceabilityQuery(
                dimension=QueryDimension.MANUFACTURER,
                start_time=start,
                end_time=end,
                end_exclusive=True,
                fail_rate_threshold=self._notification_config.fail_rate_threshold,
            )

            sections: dict[QueryDimension, Sequence[QualityStatistics] | None] = {}
            for dimension in QueryDimension:
                query = base.model_copy(update={"dimension": dimension})
                result = await self._traceability.get_quality_statistics(query)
                sections[dimension] = result.data if result.is_success else None

            admins = self._notification_config.admin_emails
            if not admins:
                logger.info("quality_monitor.report.skipped", reason="no_admin_emails")
                return

            sent = await self._notifications.send_daily_report(
                start.date(), end.date(), sections
            )
            logger.info(
                "quality_monitor.report.completed",
                report_date=start.date().isoformat(),
                sent=sent,
                recipients=len(admins),
                email_enabled=self._notifications.email_enabled,
            )
        except Exception:
            logger.exception("quality_monitor.report.failed")
