"""
MMW — Quality Monitor Job Tests
================================
Validates:
- Detection logs exactly one outcome line and never raises
- The report window is the 24 hours ending at local midnight
- Four sequential statistics queries derived from one base query
- No admins, failed statistics and per-recipient failures in the report
- A batch on the midnight boundary appears in exactly one daily report
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch
from zoneinfo import ZoneInfo

import pytest

from mmw.core.config import NotificationConfig, QualityMonitorConfig
from mmw.core.exceptions import EmailDeliveryError
from mmw.db.models import WireMaterial
from mmw.db.repository import WireMaterialRepository
from mmw.models.common import BaseResponse
from mmw.models.traceability import QueryDimension
from mmw.services.notifications import NotificationService
from mmw.services.traceability import TraceabilityService
from mmw.tasks.quality_monitor import QualityMonitorTask

SHANGHAI = ZoneInfo("Asia/Shanghai")
NOW = datetime(2026, 3, 5, 2, 0, tzinfo=SHANGHAI)


@pytest.fixture
def traceability():
    service = AsyncMock()
    service.get_quality_statistics = AsyncMock(return_value=BaseResponse.success([]))
    service.auto_detect_and_notify_quality_issues = AsyncMock(
        return_value=BaseResponse.success("done")
    )
    return service


@pytest.fixture
def notifications(mock_email_service, notification_config):
    return NotificationService(mock_email_service, notification_config)


@pytest.fixture
def task(traceability, notifications, notification_config, monitor_config):
    return QualityMonitorTask(
        traceability, notifications, notification_config, monitor_config
    )


@pytest.fixture
def mock_logger():
    with patch("mmw.tasks.quality_monitor.logger", MagicMock()) as logger:
        yield logger


class TestAutoDetect:
    async def test_success_logs_one_info(self, task, mock_logger):
        await task.auto_detect_quality_issues()

        mock_logger.info.assert_called_once_with(
            "quality_monitor.detect.completed", result="done"
        )
        mock_logger.error.assert_not_called()

    async def test_error_result_logs_one_error(self, task, traceability, mock_logger):
        traceability.auto_detect_and_notify_quality_issues.return_value = (
            BaseResponse.error("analysis failed")
        )

        await task.auto_detect_quality_issues()

        mock_logger.error.assert_called_once_with(
            "quality_monitor.detect.failed", error="analysis failed"
        )
        mock_logger.info.assert_not_called()

    async def test_exception_is_swallowed(self, task, traceability, mock_logger):
        traceability.auto_detect_and_notify_quality_issues.side_effect = RuntimeError("x")

        await task.auto_detect_quality_issues()

        mock_logger.exception.assert_called_once_with("quality_monitor.detect.crashed")


class TestReportWindow:
    def test_window_ends_at_local_midnight(self, task):
        start, end = task.report_window(NOW)

        assert end == datetime(2026, 3, 5, 0, 0, tzinfo=SHANGHAI)
        assert start == datetime(2026, 3, 4, 0, 0, tzinfo=SHANGHAI)
        assert end - start == timedelta(hours=24)

    def test_window_from_utc_clock(self, task):
        # 2026-03-04 20:00 UTC is already 2026-03-05 04:00 in Shanghai
        start, end = task.report_window(datetime(2026, 3, 4, 20, 0, tzinfo=timezone.utc))

        assert end == datetime(2026, 3, 5, 0, 0, tzinfo=SHANGHAI)
        assert start.date().isoformat() == "2026-03-04"

    def test_window_is_exactly_24h_across_dst(
        self, traceability, notifications, notification_config
    ):
        task = QualityMonitorTask(
            traceability,
            notifications,
            notification_config,
            QualityMonitorConfig(report_timezone="Europe/Berlin"),
        )

        start, end = task.report_window(
            datetime(2026, 3, 30, 12, 0, tzinfo=ZoneInfo("Europe/Berlin"))
        )

        assert end.hour == 0
        assert end.astimezone(timezone.utc) - start.astimezone(timezone.utc) == timedelta(
            hours=24
        )


class TestDailyReport:
    async def test_four_sequential_queries(self, task, traceability):
        await task.generate_daily_quality_report(NOW)

        queries = [c.args[0] for c in traceability.get_quality_statistics.await_args_list]
        assert [q.dimension for q in queries] == list(QueryDimension)
        for query in queries:
            assert query.start_time == datetime(2026, 3, 4, 0, 0, tzinfo=SHANGHAI)
            assert query.end_time == datetime(2026, 3, 5, 0, 0, tzinfo=SHANGHAI)
            assert query.fail_rate_threshold == 5.0

    async def test_report_sent_to_each_admin(self, task, mock_email_service):
        await task.generate_daily_quality_report(NOW)

        calls = mock_email_service.send_html_email.await_args_list
        assert [c.args[0] for c in calls] == ["admin1@example.com", "admin2@example.com"]
        assert calls[0].args[1] == "Daily Quality Report - 2026-03-04"

    async def test_empty_admin_list_sends_nothing(
        self, traceability, mock_email_service, monitor_config, mock_logger
    ):
        config = NotificationConfig(admin_emails=())
        task = QualityMonitorTask(
            traceability,
            NotificationService(mock_email_service, config),
            config,
            monitor_config,
        )

        await task.generate_daily_quality_report(NOW)

        mock_email_service.send_html_email.assert_not_awaited()
        mock_logger.info.assert_called_once_with(
            "quality_monitor.report.skipped", reason="no_admin_emails"
        )

    async def test_statistics_exception_sends_no_email(
        self, task, traceability, mock_email_service, mock_logger
    ):
        traceability.get_quality_statistics.side_effect = RuntimeError("db down")

        await task.generate_daily_quality_report(NOW)

        mock_email_service.send_html_email.assert_not_awaited()
        mock_logger.exception.assert_called_once_with("quality_monitor.report.failed")

    async def test_error_result_renders_no_data(self, task, traceability, mock_email_service):
        traceability.get_quality_statistics.return_value = BaseResponse.error("db down")

        await task.generate_daily_quality_report(NOW)

        html = mock_email_service.send_html_email.await_args.args[2]
        assert html.count("No data") == 4

    async def test_one_failed_recipient_does_not_stop_others(
        self, task, mock_email_service
    ):
        mock_email_service.send_html_email.side_effect = [
            EmailDeliveryError("bounced"),
            True,
        ]

        await task.generate_daily_quality_report(NOW)

        calls = mock_email_service.send_html_email.await_args_list
        assert [c.args[0] for c in calls] == ["admin1@example.com", "admin2@example.com"]

    async def test_queries_use_half_open_window(self, task, traceability):
        await task.generate_daily_quality_report(NOW)

        queries = [c.args[0] for c in traceability.get_quality_statistics.await_args_list]
        assert all(q.end_exclusive for q in queries)

    async def test_disabled_email_reports_nothing_sent(
        self, task, mock_email_service, mock_logger
    ):
        mock_email_service.enabled = False
        mock_email_service.send_html_email.return_value = False

        await task.generate_daily_quality_report(NOW)

        mock_logger.info.assert_called_once_with(
            "quality_monitor.report.completed",
            report_date="2026-03-04",
            sent=0,
            recipients=2,
            email_enabled=False,
        )


class TestDailyReportAgainstDatabase:
    async def test_batch_at_midnight_lands_in_one_report(
        self, sqlite_db, mock_email_service, notification_config
    ):
        async with sqlite_db() as session:
            session.add(WireMaterial(
                batch_number="B-MIDNIGHT",
                device_id="DEV-1",
                manufacturer="Acme",
                contact_email="acme@example.com",
                scenario_code="01",
                event_time=datetime(2026, 3, 5, 0, 0, tzinfo=timezone.utc),
                final_evaluation_result="FAIL",
            ))
            await session.commit()

        monitor_config = QualityMonitorConfig(report_timezone="UTC")
        notifications = NotificationService(mock_email_service, notification_config)
        traceability = TraceabilityService(
            WireMaterialRepository(), notifications, monitor_config
        )
        task = QualityMonitorTask(
            traceability, notifications, notification_config, monitor_config
        )

        seen = []
        for run_at in (
            datetime(2026, 3, 5, 2, 0, tzinfo=timezone.utc),
            datetime(2026, 3, 6, 2, 0, tzinfo=timezone.utc),
        ):
            mock_email_service.send_html_email.reset_mock()
            await task.generate_daily_quality_report(run_at)
            html = mock_email_service.send_html_email.await_args.args[2]
            seen.append("Acme" in html)

        assert seen == [False, True]
