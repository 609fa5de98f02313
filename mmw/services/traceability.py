"""
MMW — Traceability Service
===========================
Quality traceability analysis over wire material batches.

Aggregates pass/fail counts per dimension (manufacturer, responsible person,
process type, production machine), flags buckets whose fail rate is above a
threshold as quality issues, and notifies the people responsible.

Every public operation returns a ``BaseResponse``: failures are logged and
reported as an error-coded result instead of being raised.

Usage:
    service = TraceabilityService(repository, notifications, monitor_config)
    result = await service.auto_detect_and_notify_quality_issues()
    if result.is_success: ...
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from mmw.core.config import QualityMonitorConfig
from mmw.core.logging import get_logger
from mmw.db.repository import DimensionCounts, WireMaterialRepository
from mmw.models.common import BaseResponse
from mmw.models.traceability import (
    BatchDetail,
    CustomNotificationRequest,
    OverallStatistics,
    QualityIssue,
    QualityStatistics,
    QueryDimension,
    TraceabilityAnalysis,
    TraceabilityQuery,
)
from mmw.services.notifications import TIMESTAMP_FORMAT, NotificationService

logger = get_logger(__name__)

DEFAULT_FAIL_RATE_THRESHOLD = 5.0

_INPUT_FORMATS = ("%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_datetime(value: str | None) -> datetime | None:
    """
    Parse ``YYYY-MM-DDTHH:MM:SS``, ``YYYY-MM-DD HH:MM:SS`` or ISO-8601 text.

    Blank or unparseable input yields ``None``.  Naive results are taken as UTC.
    """
    if value is None or not value.strip():
        return None
    text = value.strip()
    parsed: datetime | None = None
    for fmt in _INPUT_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
            break
        except ValueError:
            continue
    if parsed is None:
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.warning("traceability.datetime_unparseable", value=value)
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _fmt(value: datetime) -> str:
    return value.strftime(TIMESTAMP_FORMAT)


class TraceabilityService:
    def __init__(
        self,
        repository: WireMaterialRepository,
        notifications: NotificationService,
        monitor_config: QualityMonitorConfig,
    ) -> None:
        self._repository = repository
        self._notifications = notifications
        self._monitor = monitor_config

    # ── Analysis ────────────────────────────────────────────────────────

    async def perform_traceability_analysis(
        self, query: TraceabilityQuery
    ) -> BaseResponse[TraceabilityAnalysis]:
        logger.info(
            "traceability.analysis.started",
            dimension=query.dimension.value,
            dimension_value=query.dimension_value,
        )
        try:
            statistics = await self._statistics(query)
            issues = self._issues_from(statistics, query)
            overall = await self._overall_statistics(query)
        except Exception as exc:
            logger.exception("traceability.analysis.failed")
            return BaseResponse.error(f"Traceability analysis failed: {exc}")

        logger.info(
            "traceability.analysis.completed",
            dimension=query.dimension.value,
            statistics=len(statistics),
            issues=len(issues),
        )
        return BaseResponse.success(TraceabilityAnalysis(
            dimension=query.dimension.label,
            start_time=query.start_time,
            end_time=query.end_time,
            overall_statistics=overall,
            detail_statistics=statistics,
            quality_issues=issues,
        ))

    async def get_quality_statistics(
        self, query: TraceabilityQuery
    ) -> BaseResponse[list[QualityStatistics]]:
        try:
            statistics = await self._statistics(query)
        except Exception as exc:
            logger.exception("traceability.statistics.failed")
            return BaseResponse.error(f"Failed to load quality statistics: {exc}")
        if query.only_problematic:
            statistics = [
                s for s in statistics if s.has_quality_issue(query.fail_rate_threshold)
            ]
        return BaseResponse.success(statistics)

    async def identify_quality_issues(
        self, query: TraceabilityQuery
    ) -> BaseResponse[list[QualityIssue]]:
        try:
            statistics = await self._statistics(query)
        except Exception as exc:
            logger.exception("traceability.issues.failed")
            return BaseResponse.error(f"Failed to identify quality issues: {exc}")
        return BaseResponse.success(self._issues_from(statistics, query))

    async def get_problematic_batches(
        self,
        dimension: str | None,
        dimension_value: str | None,
        start_time: str | None = None,
        end_time: str | None = None,
    ) -> BaseResponse[list[BatchDetail]]:
        if not (dimension and dimension.strip()) or not (
            dimension_value and dimension_value.strip()
        ):
            return BaseResponse.error("Dimension and dimension value must not be empty")
        try:
            parsed_dimension = QueryDimension(dimension.strip().upper())
        except ValueError:
            return BaseResponse.error(f"Unsupported dimension: {dimension}")

        start = parse_datetime(start_time)
        end = parse_datetime(end_time)
        if start is not None and end is not None and start > end:
            return BaseResponse.error("Start time must not be after end time")

        try:
            batches = await self._repository.failed_batches(
                parsed_dimension, dimension_value.strip(), start=start, end=end
            )
        except Exception as exc:
            logger.exception(
                "traceability.batches.failed",
                dimension=parsed_dimension.value,
                dimension_value=dimension_value,
            )
            return BaseResponse.error(f"Failed to load problematic batches: {exc}")

        logger.info("traceability.batches.loaded", count=len(batches))
        return BaseResponse.success([BatchDetail.from_entity(b) for b in batches])

    async def get_dimension_ranking(
        self,
        dimension: QueryDimension,
        start_time: str | None = None,
        end_time: str | None = None,
        scenario_code: str | None = None,
    ) -> BaseResponse[list[QualityStatistics]]:
        """Statistics of one dimension sorted by fail rate, worst first."""
        try:
            query = TraceabilityQuery(
                dimension=dimension,
                start_time=parse_datetime(start_time),
                end_time=parse_datetime(end_time),
                scenario_code=scenario_code or None,
            )
            statistics = await self._statistics(query)
        except Exception as exc:
            logger.exception("traceability.ranking.failed", dimension=dimension.value)
            return BaseResponse.error(
                f"Failed to rank {dimension.label.lower()} quality: {exc}"
            )
        statistics.sort(key=lambda s: s.fail_rate, reverse=True)
        return BaseResponse.success(statistics)

    async def analyze_all_quality_issues(self) -> BaseResponse[list[QualityIssue]]:
        """Issues over the full history, every dimension.  Sends no email."""
        return await self.analyze_quality_issues_by_time_window(None, None)

    async def analyze_quality_issues_by_time_window(
        self, start: datetime | None, end: datetime | None
    ) -> BaseResponse[list[QualityIssue]]:
        logger.info(
            "traceability.window_analysis.started",
            start=start.isoformat() if start else None,
            end=end.isoformat() if end else None,
        )
        issues: list[QualityIssue] = []
        try:
            for dimension in QueryDimension:
                query = TraceabilityQuery(
                    dimension=dimension,
                    start_time=start,
                    end_time=end,
                    only_problematic=True,
                    fail_rate_threshold=self._monitor.fail_rate_threshold,
                )
                issues.extend(self._issues_from(await self._statistics(query), query))
        except Exception as exc:
            logger.exception("traceability.window_analysis.failed")
            return BaseResponse.error(f"Quality issue analysis failed: {exc}")

        logger.info("traceability.window_analysis.completed", issues=len(issues))
        return BaseResponse.success(issues)

    # ── Detection & notification ────────────────────────────────────────

    async def auto_detect_and_notify_quality_issues(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> BaseResponse[str]:
        """
        Analyse a window and notify.

        The default window is the last ``detection_window_hours`` ending now.
        With no issues, administrators optionally get a confirmation email;
        otherwise every issue contact is notified and admins get a summary.
        """
        if end is None:
            end = _utcnow()
        if start is None:
            start = end - timedelta(hours=self._monitor.detection_window_hours)

        try:
            analysis = await self.analyze_quality_issues_by_time_window(start, end)
            if not analysis.is_success:
                return BaseResponse.error(f"Quality issue analysis failed: {analysis.msg}")

            issues = analysis.data or []
            if not issues:
                return await self._confirm_no_issues(start, end)

            notified = await self.send_quality_issue_notifications(issues)
            summary = (
                f"Detection finished for window {_fmt(start)} to {_fmt(end)}: "
                f"{len(issues)} quality issues found, {notified.data or notified.msg}"
            )
        except Exception as exc:
            logger.exception("traceability.auto_detect.failed")
            return BaseResponse.error(f"Automatic quality issue detection failed: {exc}")

        logger.info("traceability.auto_detect.completed", issues=len(issues))
        return BaseResponse.success(summary)

    async def send_quality_issue_notifications(
        self, issues: list[QualityIssue]
    ) -> BaseResponse[str]:
        sent = 0
        try:
            for issue in issues:
                if not (issue.contact_email and issue.contact_email.strip()):
                    continue
                try:
                    delivered = await self._notifications.send_issue_notice(issue)
                except Exception as exc:
                    logger.error(
                        "traceability.issue_notice.failed",
                        issue_id=issue.issue_id,
                        contact_email=issue.contact_email,
                        error=str(exc),
                    )
                    continue
                if not delivered:
                    continue
                issue.notified = True
                issue.notified_time = _utcnow()
                sent += 1

            urgent = [issue for issue in issues if issue.is_urgent]
            if urgent and self._notifications.admin_emails:
                await self._notifications.send_admin_summary(urgent)
        except Exception as exc:
            logger.exception("traceability.notifications.failed")
            return BaseResponse.error(f"Failed to send quality issue notifications: {exc}")

        result = f"quality issue notifications sent: {sent}/{len(issues)}"
        logger.info("traceability.notifications.sent", sent=sent, total=len(issues))
        return BaseResponse.success(result)

    async def send_custom_notification(
        self, request: CustomNotificationRequest
    ) -> BaseResponse[str]:
        if not self._notifications.email_enabled:
            logger.info("traceability.custom_notification.skipped", reason="email_disabled")
            return BaseResponse.error("Email delivery is disabled")
        sent = 0
        for recipient in request.recipients:
            try:
                delivered = await self._notifications.send_custom(
                    recipient, request.subject, request.content, is_html=request.is_html
                )
            except Exception as exc:
                logger.error(
                    "traceability.custom_notification.failed",
                    recipient=recipient,
                    error=str(exc),
                )
                continue
            sent += int(delivered)

        total = len(request.recipients)
        result = (
            f"Custom notification sent: {sent}/{total}, recipients: "
            f"{', '.join(request.recipients)}"
        )
        logger.info("traceability.custom_notification.completed", sent=sent, total=total)
        if sent == total:
            return BaseResponse.success(result)
        if sent > 0:
            return BaseResponse.success(f"{result} (partial)")
        return BaseResponse.error("All custom notification emails failed")

    # ── Internals ───────────────────────────────────────────────────────

    async def _statistics(self, query: TraceabilityQuery) -> list[QualityStatistics]:
        rows = await self._repository.dimension_statistics(
            query.dimension,
            start=query.start_time,
            end=query.end_time,
            end_exclusive=query.end_exclusive,
            scenario_code=query.scenario_code,
            dimension_value=query.dimension_value,
        )
        return [self._to_statistics(query.dimension, row) for row in rows]

    @staticmethod
    def _to_statistics(dimension: QueryDimension, row: DimensionCounts) -> QualityStatistics:
        return QualityStatistics.from_counts(
            dimension.label,
            row.dimension_value,
            total=row.total,
            passed=row.passed,
            failed=row.failed,
            pending_review=row.pending_review,
            unknown=row.unknown,
            contact_email=row.contact_email,
        )

    @staticmethod
    def _issues_from(
        statistics: list[QualityStatistics], query: TraceabilityQuery
    ) -> list[QualityIssue]:
        now = _utcnow()
        return [
            QualityIssue.from_statistics(stat, query.dimension, discovered=now)
            for stat in statistics
            if stat.has_quality_issue(query.fail_rate_threshold)
        ]

    async def _overall_statistics(self, query: TraceabilityQuery) -> OverallStatistics:
        counts = await self._repository.overall_statistics(
            start=query.start_time,
            end=query.end_time,
            end_exclusive=query.end_exclusive,
            scenario_code=query.scenario_code,
        )
        dimension_stats = await self._statistics(
            TraceabilityQuery(
                dimension=query.dimension,
                start_time=query.start_time,
                end_time=query.end_time,
                end_exclusive=query.end_exclusive,
                scenario_code=query.scenario_code,
            )
        )
        total = counts.total
        return OverallStatistics(
            total_dimensions=len(dimension_stats),
            problematic_dimensions=sum(
                1 for s in dimension_stats
                if s.has_quality_issue(DEFAULT_FAIL_RATE_THRESHOLD)
            ),
            total_batches=total,
            total_pass_batches=counts.passed,
            total_fail_batches=counts.failed,
            overall_pass_rate=counts.passed / total * 100 if total else 0.0,
            overall_fail_rate=counts.failed / total * 100 if total else 0.0,
        )

    async def _confirm_no_issues(self, start: datetime, end: datetime) -> BaseResponse[str]:
        window = f"{_fmt(start)} to {_fmt(end)}"
        if not self._monitor.send_no_issue_notification_to_admin:
            logger.info("traceability.auto_detect.no_issues", window=window)
            return BaseResponse.success(f"No quality issues detected in window {window}")
        if not self._notifications.admin_emails:
            logger.info(
                "traceability.auto_detect.no_issues", window=window, admins=0
            )
            return BaseResponse.success(
                f"No quality issues detected in window {window}; "
                "no administrators configured"
            )
        if not self._notifications.email_enabled:
            logger.info(
                "traceability.auto_detect.no_issues", window=window, email="disabled"
            )
            return BaseResponse.success(
                f"No quality issues detected in window {window}; "
                "email delivery disabled, no confirmation sent"
            )

        confirmed = await self._notifications.send_no_issue_confirmation(start, end)
        if confirmed == 0:
            return BaseResponse.error("Failed to send confirmation email to administrators")
        logger.info("traceability.auto_detect.no_issues", window=window, admins=confirmed)
        return BaseResponse.success(
            f"No quality issues detected in window {window}; confirmation sent to "
            f"{confirmed} administrators"
        )
