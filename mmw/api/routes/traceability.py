"""
MMW — Traceability API Routes
==============================
Quality traceability analysis, rankings, detection and notifications.

Usage:
    POST /api/traceability/analysis                      — Full analysis of one dimension
    POST /api/traceability/statistics                    — Per-bucket statistics
    POST /api/traceability/issues                        — Buckets above the threshold
    GET  /api/traceability/batches/problematic           — Failed batches of one bucket
    POST /api/traceability/notifications/send            — Notify issue contacts
    GET  /api/traceability/ranking/manufacturers         — Manufacturers by fail rate
    GET  /api/traceability/ranking/responsible-persons   — Responsible persons by fail rate
    GET  /api/traceability/analysis/process-types        — Process types by fail rate
    GET  /api/traceability/analysis/production-machines  — Machines by fail rate
    POST /api/traceability/analyze/all                   — Issues over the full history
    POST /api/traceability/analyze/time-window           — Issues in a window
    POST /api/traceability/auto-detect                   — Detect + notify, default window
    POST /api/traceability/auto-detect/time-window       — Detect + notify, given window
    POST /api/traceability/notifications/send-custom     — Ad-hoc email

Service-level failures are answered with HTTP 200 and ``code == "error"``.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, field_validator

from mmw.api.deps import get_traceability_service
from mmw.core.exceptions import QueryValidationError
from mmw.core.logging import get_logger
from mmw.models.common import BaseResponse
from mmw.models.traceability import (
    BatchDetail,
    CustomNotificationRequest,
    QualityIssue,
    QualityStatistics,
    QueryDimension,
    TraceabilityAnalysis,
    TraceabilityQuery,
)
from mmw.services.traceability import TraceabilityService

logger = get_logger(__name__)

router = APIRouter(prefix="/api/traceability", tags=["traceability"])


class TimeWindowRequest(BaseModel):
    start_time: datetime | None = None
    end_time: datetime | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def complete(self) -> bool:
        return self.start_time is not None and self.end_time is not None

    def bounds(self) -> tuple[datetime, datetime]:
        """``(start, end)``; raises ``QueryValidationError`` when start is after end."""
        if self.start_time > self.end_time:
            raise QueryValidationError("Start time must not be after end time")
        return self.start_time, self.end_time


_MISSING_WINDOW = "Start time and end time are required"


# ── Analysis ────────────────────────────────────────────────────────────


@router.post("/analysis", response_model=BaseResponse[TraceabilityAnalysis])
async def perform_traceability_analysis(
    query: TraceabilityQuery,
    service: TraceabilityService = Depends(get_traceability_service),
) -> BaseResponse[TraceabilityAnalysis]:
    return await service.perform_traceability_analysis(query)


@router.post("/statistics", response_model=BaseResponse[list[QualityStatistics]])
async def get_quality_statistics(
    query: TraceabilityQuery,
    service: TraceabilityService = Depends(get_traceability_service),
) -> BaseResponse[list[QualityStatistics]]:
    return await service.get_quality_statistics(query)


@router.post("/issues", response_model=BaseResponse[list[QualityIssue]])
async def identify_quality_issues(
    query: TraceabilityQuery,
    service: TraceabilityService = Depends(get_traceability_service),
) -> BaseResponse[list[QualityIssue]]:
    return await service.identify_quality_issues(query)


@router.get("/batches/problematic", response_model=BaseResponse[list[BatchDetail]])
async def get_problematic_batches(
    dimension: str = Query(...),
    dimension_value: str = Query(...),
    start_time: str | None = Query(default=None),
    end_time: str | None = Query(default=None),
    service: TraceabilityService = Depends(get_traceability_service),
) -> BaseResponse[list[BatchDetail]]:
    return await service.get_problematic_batches(
        dimension, dimension_value, start_time, end_time
    )


@router.post("/notifications/send", response_model=BaseResponse[str])
async def send_quality_issue_notifications(
    issues: list[QualityIssue],
    service: TraceabilityService = Depends(get_traceability_service),
) -> BaseResponse[str]:
    return await service.send_quality_issue_notifications(issues)


# ── Rankings ────────────────────────────────────────────────────────────


def _ranking_route(path: str, dimension: QueryDimension, name: str) -> None:
    async def ranking(
        start_time: str | None = Query(default=None),
        end_time: str | None = Query(default=None),
        scenario_code: str | None = Query(default=None),
        service: TraceabilityService = Depends(get_traceability_service),
    ) -> BaseResponse[list[QualityStatistics]]:
        return await service.get_dimension_ranking(
            dimension, start_time, end_time, scenario_code
        )

    ranking.__name__ = name
    router.add_api_route(
        path,
        ranking,
        methods=["GET"],
        response_model=BaseResponse[list[QualityStatistics]],
        summary=f"{dimension.label} statistics sorted by fail rate",
    )


_ranking_route("/ranking/manufacturers", QueryDimension.MANUFACTURER, "manufacturer_ranking")
_ranking_route(
    "/ranking/responsible-persons",
    QueryDimension.RESPONSIBLE_PERSON,
    "responsible_person_ranking",
)
_ranking_route(
    "/analysis/process-types", QueryDimension.PROCESS_TYPE, "process_type_analysis"
)
_ranking_route(
    "/analysis/production-machines",
    QueryDimension.PRODUCTION_MACHINE,
    "production_machine_analysis",
)


# ── Issue analysis (no email) ───────────────────────────────────────────


@router.post("/analyze/all", response_model=BaseResponse[list[QualityIssue]])
async def analyze_all_quality_issues(
    service: TraceabilityService = Depends(get_traceability_service),
) -> BaseResponse[list[QualityIssue]]:
    return await service.analyze_all_quality_issues()


@router.post("/analyze/time-window", response_model=BaseResponse[list[QualityIssue]])
async def analyze_quality_issues_by_time_window(
    window: TimeWindowRequest,
    service: TraceabilityService = Depends(get_traceability_service),
) -> BaseResponse[list[QualityIssue]]:
    if not window.complete:
        return BaseResponse.error(_MISSING_WINDOW)
    return await service.analyze_quality_issues_by_time_window(*window.bounds())


# ── Detection + notification ────────────────────────────────────────────


@router.post("/auto-detect", response_model=BaseResponse[str])
async def auto_detect(
    service: TraceabilityService = Depends(get_traceability_service),
) -> BaseResponse[str]:
    logger.info("traceability.auto_detect.manual")
    return await service.auto_detect_and_notify_quality_issues()


@router.post("/auto-detect/time-window", response_model=BaseResponse[str])
async def auto_detect_time_window(
    window: TimeWindowRequest,
    service: TraceabilityService = Depends(get_traceability_service),
) -> BaseResponse[str]:
    if not window.complete:
        return BaseResponse.error(_MISSING_WINDOW)
    start, end = window.bounds()
    logger.info(
        "traceability.auto_detect.manual", start=start.isoformat(), end=end.isoformat()
    )
    return await service.auto_detect_and_notify_quality_issues(start, end)


@router.post("/notifications/send-custom", response_model=BaseResponse[str])
async def send_custom_notification(
    request: CustomNotificationRequest,
    service: TraceabilityService = Depends(get_traceability_service),
) -> BaseResponse[str]:
    return await service.send_custom_notification(request)
