"""
MMW — Overview API Routes
==========================
Dashboard statistics.

Usage:
    GET /api/overview/year                  — Monthly pass/fail trend
    GET /api/overview/scenario?how=<range>  — Batches per application scenario
    GET /api/overview/count                 — System-wide totals

``how`` is one of ``this_month``, ``last_month``, ``this_year``,
``last_year`` or ``all``; anything else is rejected with HTTP 400.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from mmw.api.deps import get_overview_service
from mmw.models.common import BaseResponse
from mmw.models.overview import (
    OverviewRange,
    ScenarioOverview,
    SystemOverview,
    YearlyStatistics,
)
from mmw.services.overview import OverviewService

router = APIRouter(prefix="/api/overview", tags=["overview"])


@router.get("/year", response_model=BaseResponse[YearlyStatistics])
async def get_yearly_statistics(
    service: OverviewService = Depends(get_overview_service),
) -> BaseResponse[YearlyStatistics]:
    return await service.get_yearly_statistics()


@router.get("/scenario", response_model=BaseResponse[ScenarioOverview])
async def get_scenario_statistics(
    how: OverviewRange = Query(...),
    service: OverviewService = Depends(get_overview_service),
) -> BaseResponse[ScenarioOverview]:
    return await service.get_scenario_statistics(how)


@router.get("/count", response_model=BaseResponse[SystemOverview])
async def get_overall_statistics(
    service: OverviewService = Depends(get_overview_service),
) -> BaseResponse[SystemOverview]:
    return await service.get_overall_statistics()
