"""
MMW — Request Context Middleware Tests
=======================================
Validates:
- A request id is generated when absent and echoed when supplied
- The id is bound into the structlog context during the request only
"""

from __future__ import annotations

import uuid

import structlog

from mmw.models.common import BaseResponse


async def test_request_id_generated_when_absent(client):
    resp = await client.get("/health")
    request_id = resp.headers.get("X-Request-ID")

    assert request_id is not None
    assert str(uuid.UUID(request_id, version=4)) == request_id


async def test_request_id_propagated_from_header(client):
    resp = await client.get("/health", headers={"X-Request-ID": "req-123"})

    assert resp.headers["X-Request-ID"] == "req-123"


async def test_request_id_bound_during_request(client, traceability_service):
    captured: dict = {}

    async def capture():
        captured.update(structlog.contextvars.get_contextvars())
        return BaseResponse.success([])

    traceability_service.analyze_all_quality_issues.side_effect = capture

    await client.post(
        "/api/traceability/analyze/all", headers={"X-Request-ID": "req-456"}
    )

    assert captured["request_id"] == "req-456"
    assert captured["method"] == "POST"
    assert captured["path"] == "/api/traceability/analyze/all"
    assert "request_id" not in structlog.contextvars.get_contextvars()


async def test_error_responses_carry_request_id(client, traceability_service):
    resp = await client.post(
        "/api/traceability/statistics",
        json={"dimension": "COLOR"},
        headers={"X-Request-ID": "req-789"},
    )

    assert resp.status_code == 400
    assert resp.headers["X-Request-ID"] == "req-789"
