"""
MMW — Traceability API Tests
=============================
Validates the route contract: request parsing, service delegation and the
``BaseResponse`` envelope.  The service is an ``AsyncMock``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from mmw.models.common import BaseResponse
from mmw.models.traceability import (
    OverallStatistics,
    QueryDimension,
    TraceabilityAnalysis,
)


class TestQueryEndpoints:
    async def test_statistics(self, client, traceability_service, statistics_factory):
        traceability_service.get_quality_statistics.return_value = BaseResponse.success(
            [statistics_factory("Acme", total=3, failed=1)]
        )

        resp = await client.post(
            "/api/traceability/statistics",
            json={"dimension": "MANUFACTURER", "start_time": "2026-01-01T00:00:00"},
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["code"] == "success"
        assert body["data"][0]["dimension_value"] == "Acme"
        assert Decimal(body["data"][0]["fail_rate"]) == Decimal("33.33")
        query = traceability_service.get_quality_statistics.await_args.args[0]
        assert query.dimension is QueryDimension.MANUFACTURER
        assert query.start_time == datetime(2026, 1, 1, tzinfo=timezone.utc)

    async def test_analysis(self, client, traceability_service):
        traceability_service.perform_traceability_analysis.return_value = (
            BaseResponse.success(TraceabilityAnalysis(
                dimension="Manufacturer",
                overall_statistics=OverallStatistics(total_batches=10),
            ))
        )

        resp = await client.post("/api/traceability/analysis", json={"dimension": "MANUFACTURER"})

        assert resp.status_code == 200
        assert resp.json()["data"]["overall_statistics"]["total_batches"] == 10

    async def test_issues(self, client, traceability_service, issue_factory):
        traceability_service.identify_quality_issues.return_value = BaseResponse.success(
            [issue_factory("Acme")]
        )

        resp = await client.post("/api/traceability/issues", json={"dimension": "PROCESS_TYPE"})

        assert resp.json()["data"][0]["severity"] == "CRITICAL"

    async def test_invalid_dimension_is_400(self, client, traceability_service):
        resp = await client.post("/api/traceability/statistics", json={"dimension": "COLOR"})

        assert resp.status_code == 400
        body = resp.json()
        assert body["code"] == "error"
        assert body["data"][0]["field"] == "body.dimension"
        traceability_service.get_quality_statistics.assert_not_awaited()

    async def test_service_error_is_200_with_error_code(self, client, traceability_service):
        traceability_service.get_quality_statistics.return_value = BaseResponse.error(
            "Failed to load quality statistics: db down"
        )

        resp = await client.post(
            "/api/traceability/statistics", json={"dimension": "MANUFACTURER"}
        )

        assert resp.status_code == 200
        assert resp.json() == {
            "code": "error",
            "msg": "Failed to load quality statistics: db down",
            "data": None,
        }


class TestBatches:
    async def test_query_params_forwarded(self, client, traceability_service):
        traceability_service.get_problematic_batches.return_value = BaseResponse.success([])

        resp = await client.get(
            "/api/traceability/batches/problematic",
            params={
                "dimension": "MANUFACTURER",
                "dimension_value": "Acme",
                "start_time": "2026-01-01 00:00:00",
            },
        )

        assert resp.status_code == 200
        traceability_service.get_problematic_batches.assert_awaited_once_with(
            "MANUFACTURER", "Acme", "2026-01-01 00:00:00", None
        )


class TestRankings:
    async def test_each_ranking_route_uses_its_dimension(self, client, traceability_service):
        traceability_service.get_dimension_ranking.return_value = BaseResponse.success([])
        routes = {
            "/api/traceability/ranking/manufacturers": QueryDimension.MANUFACTURER,
            "/api/traceability/ranking/responsible-persons": QueryDimension.RESPONSIBLE_PERSON,
            "/api/traceability/analysis/process-types": QueryDimension.PROCESS_TYPE,
            "/api/traceability/analysis/production-machines": QueryDimension.PRODUCTION_MACHINE,
        }

        for path, dimension in routes.items():
            resp = await client.get(path, params={"scenario_code": "01"})
            assert resp.status_code == 200
            traceability_service.get_dimension_ranking.assert_awaited_with(
                dimension, None, None, "01"
            )


class TestDetection:
    async def test_analyze_all(self, client, traceability_service):
        traceability_service.analyze_all_quality_issues.return_value = BaseResponse.success([])

        resp = await client.post("/api/traceability/analyze/all")

        assert resp.json()["code"] == "success"

    async def test_time_window_requires_both_bounds(self, client, traceability_service):
        resp = await client.post(
            "/api/traceability/analyze/time-window",
            json={"start_time": "2026-01-01T00:00:00Z"},
        )

        assert resp.status_code == 200
        assert resp.json()["code"] == "error"
        traceability_service.analyze_quality_issues_by_time_window.assert_not_awaited()

    async def test_auto_detect_time_window(self, client, traceability_service):
        traceability_service.auto_detect_and_notify_quality_issues.return_value = (
            BaseResponse.success("Detection finished")
        )

        resp = await client.post(
            "/api/traceability/auto-detect/time-window",
            json={
                "start_time": "2026-01-01T00:00:00Z",
                "end_time": "2026-01-02T00:00:00Z",
            },
        )

        assert resp.json()["data"] == "Detection finished"
        start, end = traceability_service.auto_detect_and_notify_quality_issues.await_args.args
        assert start == datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert end == datetime(2026, 1, 2, tzinfo=timezone.utc)

    async def test_auto_detect_default_window(self, client, traceability_service):
        traceability_service.auto_detect_and_notify_quality_issues.return_value = (
            BaseResponse.success("ok")
        )

        resp = await client.post("/api/traceability/auto-detect")

        assert resp.status_code == 200
        traceability_service.auto_detect_and_notify_quality_issues.assert_awaited_once_with()


class TestNotifications:
    async def test_send_issue_notifications(self, client, traceability_service, issue_factory):
        traceability_service.send_quality_issue_notifications.return_value = (
            BaseResponse.success("quality issue notifications sent: 1/1")
        )
        issue = issue_factory("Acme")

        resp = await client.post(
            "/api/traceability/notifications/send",
            json=[issue.model_dump(mode="json")],
        )

        assert resp.status_code == 200
        [sent] = traceability_service.send_quality_issue_notifications.await_args.args[0]
        assert sent.issue_id == issue.issue_id

    async def test_send_custom(self, client, traceability_service):
        traceability_service.send_custom_notification.return_value = BaseResponse.success(
            "Custom notification sent: 1/1"
        )

        resp = await client.post(
            "/api/traceability/notifications/send-custom",
            json={"recipients": ["a@example.com"], "subject": "Hi", "content": "Hello"},
        )

        assert resp.status_code == 200
        request = traceability_service.send_custom_notification.await_args.args[0]
        assert request.recipients == ["a@example.com"]

    async def test_send_custom_without_recipients_is_400(self, client):
        resp = await client.post(
            "/api/traceability/notifications/send-custom",
            json={"recipients": [], "subject": "Hi", "content": "Hello"},
        )

        assert resp.status_code == 400


class TestTimeWindowValidation:
    async def test_reversed_window_is_400(self, client, traceability_service):
        resp = await client.post(
            "/api/traceability/auto-detect/time-window",
            json={"start_time": "2026-01-02T00:00:00", "end_time": "2026-01-01T00:00:00"},
        )

        assert resp.status_code == 400
        assert resp.json()["data"] == {"error_code": "QUERY_VALIDATION_ERROR"}
        traceability_service.auto_detect_and_notify_quality_issues.assert_not_awaited()
