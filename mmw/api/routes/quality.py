"""
MMW — Quality Evaluation API Routes
====================================
Paged listings of batches by review state.

Usage:
    GET /api/quality/pending-review   — Not evaluated or awaiting manual review
    GET /api/quality/completed        — Final PASS/FAIL, optional scenario filter
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from mmw.api.deps import get_quality_evaluation_service
from mmw.models.common import BaseResponse
from mmw.models.wire_material import (
    CompletedEvaluationPageRequest,
    PendingReviewPageRequest,
    WireMaterialPage,
)
from mmw.services.quality_evaluation import QualityEvaluationService

router = APIRouter(prefix="/api/quality", tags=["quality"])


@router.get("/pending-review", response_model=BaseResponse[WireMaterialPage])
async def get_pending_review_materials(
    params: Annotated[PendingReviewPageRequest, Query()],
    service: QualityEvaluationService = Depends(get_quality_evaluation_service),
) -> BaseResponse[WireMaterialPage]:
    return await service.get_pending_review_materials(params)


@router.get("/completed", response_model=BaseResponse[WireMaterialPage])
async def get_completed_materials(
    params: Annotated[CompletedEvaluationPageRequest, Query()],
    service: QualityEvaluationService = Depends(get_quality_evaluation_service),
) -> BaseResponse[WireMaterialPage]:
    return await service.get_completed_materials(params)
