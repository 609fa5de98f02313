"""
MMW — Notification Service
===========================
Composes the quality emails and dispatches them through ``EmailService``.

Messages:
- issue notice: plain text, to the contact address of one quality issue
- admin summary: HTML table of CRITICAL/HIGH issues, to every admin
- no-issue confirmation: plain text, to every admin
- daily report: HTML statistics per dimension, to every admin

Broadcasts to several recipients are isolated per address: a failed
delivery is logged and the remaining recipients are still tried.

Usage:
    service = NotificationService(email_service, NotificationConfig(...))
    sent = await service.send_admin_summary(issues)
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import StrEnum
from typing import Any, Iterable, Mapping, Sequence

from jinja2 import Environment

from mmw.core.config import NotificationConfig
from mmw.core.logging import get_logger
from mmw.models.traceability import QualityIssue, QualityStatistics, QueryDimension
from mmw.services.email import EmailService

logger = get_logger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
NO_DATA = "No data"
HISTORY_LIMIT = 200


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Notification Types ──────────────────────────────────────────────────

class NotificationEventType(StrEnum):
    ISSUE_NOTICE = "quality.issue_notice"
    ADMIN_SUMMARY = "quality.admin_summary"
    NO_ISSUE_CONFIRMATION = "quality.no_issue_confirmation"
    DAILY_REPORT = "quality.daily_report"
    CUSTOM = "custom"


@dataclass(frozen=True)
class NotificationEvent:
    """One email to one recipient."""

    event_type: NotificationEventType
    recipient: str
    subject: str
    body: str
    is_html: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class DeliveryRecord:
    """Outcome of one send; ``delivered`` is False for failures and for skips."""

    event: NotificationEvent
    delivered: bool
    error: str | None = None


# ── Templates ───────────────────────────────────────────────────────────

_templates = Environment(autoescape=True, trim_blocks=True, lstrip_blocks=True)

_ADMIN_SUMMARY = _templates.from_string("""\
<html><body>
<h2>Quality Issue Summary</h2>
<p><strong>Detected at:</strong> {{ detected_at }}</p>
<p><strong>Issues:</strong> {{ issues|length }}</p>
<table border="1" style="border-collapse: collapse; width: 100%;">
<tr style="background-color: #f2f2f2;">
<th>Dimension</th><th>Value</th><th>Severity</th><th>Fail rate</th><th>Failed/Total</th><th>Contact</th>
</tr>
{% for issue in issues %}
<tr>
<td>{{ issue.dimension }}</td>
<td>{{ issue.dimension_value }}</td>
<td style="color: {{ issue.severity.color }};">{{ issue.severity.level }}</td>
<td>{{ "%.2f"|format(issue.fail_rate) }}%</td>
<td>{{ issue.fail_count }}/{{ issue.total_count }}</td>
<td>{{ issue.contact_email or "None" }}</td>
</tr>
{% endfor %}
</table>
<p><strong>Recommended actions:</strong></p>
<ul>
<li>Contact the responsible people about the critical issues immediately</li>
<li>Review the production process and quality control procedures</li>
<li>Strengthen quality monitoring and preventive measures</li>
</ul>
<p><em>This email was sent automatically by the metal micro-wire quality traceability system.</em></p>
</body></html>
""")

_DAILY_REPORT = _templates.from_string("""\
<html><body>
<h2>Daily Quality Report</h2>
<p><strong>Report period:</strong> {{ start_date }} to {{ end_date }}</p>
{% for section in sections %}
<h3>{{ section.title }}</h3>
{% if section.rows %}
<table border="1" style="border-collapse: collapse; width: 100%;">
<tr style="background-color: #f2f2f2;">
<th>Value</th><th>Total</th><th>Pass</th><th>Fail</th><th>Pending review</th><th>Unknown</th><th>Pass rate</th><th>Fail rate</th><th>Contact</th>
</tr>
{% for row in section.rows %}
<tr>
<td>{{ row.dimension_value }}</td>
<td>{{ row.total_count }}</td>
<td>{{ row.pass_count }}</td>
<td>{{ row.fail_count }}</td>
<td>{{ row.pending_review_count }}</td>
<td>{{ row.unknown_count }}</td>
<td>{{ row.pass_rate }}%</td>
<td>{{ row.fail_rate }}%</td>
<td>{{ row.contact_email or "" }}</td>
</tr>
{% endfor %}
</table>
{% else %}
<p>{{ no_data }}</p>
{% endif %}
{% endfor %}
<p><em>This report was generated automatically.</em></p>
</body></html>
""")


def issue_notice_subject(issue: QualityIssue) -> str:
    return f"[Quality Issue] {issue.dimension} quality anomaly - {issue.severity.level}"


def issue_notice_body(issue: QualityIssue) -> str:
    return (
        "Dear owner,\n\n"
        "A quality issue has been detected:\n"
        f"Dimension: {issue.dimension}\n"
        f"Value: {issue.dimension_value}\n"
        f"Severity: {issue.severity.level}\n"
        f"Fail rate: {issue.fail_rate:.2f}%\n"
        f"Failed batches: {issue.fail_count}/{issue.total_count}\n\n"
        f"Description:\n{issue.description}\n\n"
        f"Recommendation:\n{issue.recommendation}\n\n"
        f"Discovered at: {issue.discovered_time.strftime(TIMESTAMP_FORMAT)}\n\n"
        "Please handle this quality issue promptly.\n\n"
        "This email was sent automatically by the metal micro-wire quality "
        "traceability system."
    )


def render_admin_summary(issues: Sequence[QualityIssue], detected_at: datetime) -> str:
    return _ADMIN_SUMMARY.render(
        issues=issues, detected_at=detected_at.strftime(TIMESTAMP_FORMAT)
    )


def render_daily_report(
    start_date: date,
    end_date: date,
    sections: Mapping[QueryDimension, Sequence[QualityStatistics] | None],
) -> str:
    """HTML report; a dimension without rows renders the ``No data`` placeholder."""
    return _DAILY_REPORT.render(
        start_date=start_date.isoformat(),
        end_date=end_date.isoformat(),
        sections=[
            {"title": f"{dimension.label} quality statistics", "rows": rows or []}
            for dimension, rows in sections.items()
        ],
        no_data=NO_DATA,
    )


def daily_report_subject(start_date: date) -> str:
    return f"Daily Quality Report - {start_date.isoformat()}"


# ── Notification Service ───────────────────────────────────────────────

class NotificationService:
    def __init__(
        self,
        email: EmailService,
        config: NotificationConfig,
        *,
        history_limit: int = HISTORY_LIMIT,
    ) -> None:
        self._email = email
        self._config = config
        self._history: deque[DeliveryRecord] = deque(maxlen=history_limit)

    @property
    def admin_emails(self) -> tuple[str, ...]:
        return self._config.admin_emails

    @property
    def email_enabled(self) -> bool:
        return self._email.enabled

    @property
    def history(self) -> list[DeliveryRecord]:
        """The most recent deliveries, oldest first."""
        return list(self._history)

    async def notify(self, event: NotificationEvent) -> bool:
        """
        Send one event.  Returns whether it was handed to the mail server;
        delivery errors propagate after being recorded.
        """
        try:
            if event.is_html:
                delivered = await self._email.send_html_email(
                    event.recipient, event.subject, event.body
                )
            else:
                delivered = await self._email.send_simple_email(
                    event.recipient, event.subject, event.body
                )
        except Exception as exc:
            self._history.append(DeliveryRecord(event, delivered=False, error=str(exc)))
            raise
        self._history.append(DeliveryRecord(event, delivered=bool(delivered)))
        return bool(delivered)

    async def broadcast(self, events: Iterable[NotificationEvent]) -> int:
        """Send each event independently.  Returns the number delivered."""
        delivered = 0
        for event in events:
            try:
                sent = await self.notify(event)
            except Exception as exc:
                logger.error(
                    "notification.delivery_failed",
                    event_type=event.event_type.value,
                    recipient=event.recipient,
                    error=str(exc),
                )
                continue
            delivered += int(sent)
        return delivered

    # ── Quality messages ────────────────────────────────────────────────

    async def send_issue_notice(self, issue: QualityIssue) -> bool:
        return await self.notify(NotificationEvent(
            event_type=NotificationEventType.ISSUE_NOTICE,
            recipient=issue.contact_email or "",
            subject=issue_notice_subject(issue),
            body=issue_notice_body(issue),
            metadata={"issue_id": issue.issue_id, "severity": issue.severity.value},
        ))

    async def send_admin_summary(
        self, issues: Sequence[QualityIssue], *, now: datetime | None = None
    ) -> int:
        if not issues or not self.admin_emails:
            return 0
        subject = (
            f"[Quality Issue Summary] {len(issues)} critical/high quality "
            "issues detected"
        )
        html = render_admin_summary(issues, now or _utcnow())
        return await self.broadcast(
            NotificationEvent(
                event_type=NotificationEventType.ADMIN_SUMMARY,
                recipient=admin,
                subject=subject,
                body=html,
                is_html=True,
                metadata={"issue_count": len(issues)},
            )
            for admin in self.admin_emails
        )

    async def send_no_issue_confirmation(self, start: datetime, end: datetime) -> int:
        subject = f"Quality monitor confirmation - {end.strftime('%Y-%m-%d %H:%M')}"
        body = (
            "The quality monitoring system is running normally.\n\n"
            f"Detection window: {start.strftime(TIMESTAMP_FORMAT)} to "
            f"{end.strftime(TIMESTAMP_FORMAT)}\n"
            "Result: no quality issues found\n"
            "System status: running\n\n"
            "This email is only sent to administrators to confirm that the "
            "system is working."
        )
        return await self.broadcast(
            NotificationEvent(
                event_type=NotificationEventType.NO_ISSUE_CONFIRMATION,
                recipient=admin,
                subject=subject,
                body=body,
            )
            for admin in self.admin_emails
        )

    async def send_daily_report(
        self,
        start_date: date,
        end_date: date,
        sections: Mapping[QueryDimension, Sequence[QualityStatistics] | None],
    ) -> int:
        """Email the rendered report to every admin; nothing when none are set."""
        if not self.admin_emails:
            return 0
        html = render_daily_report(start_date, end_date, sections)
        subject = daily_report_subject(start_date)
        return await self.broadcast(
            NotificationEvent(
                event_type=NotificationEventType.DAILY_REPORT,
                recipient=admin,
                subject=subject,
                body=html,
                is_html=True,
                metadata={"report_date": start_date.isoformat()},
            )
            for admin in self.admin_emails
        )

    async def send_custom(
        self, recipient: str, subject: str, content: str, *, is_html: bool = False
    ) -> bool:
        return await self.notify(NotificationEvent(
            event_type=NotificationEventType.CUSTOM,
            recipient=recipient,
            subject=subject,
            body=content,
            is_html=is_html,
        ))
