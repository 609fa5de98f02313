"""
MMW — Quality Evaluation Listings
==================================
Paged views of batches by review state.

- pending review: final result ``UNKNOWN`` or ``PENDING_REVIEW``
- completed: final result ``PASS`` or ``FAIL``, optionally for one scenario
"""

from __future__ import annotations

from mmw.core.logging import get_logger
from mmw.db.models import FinalEvaluationResult
from mmw.db.repository import WireMaterialRepository
from mmw.models.common import BaseResponse
from mmw.models.wire_material import (
    CompletedEvaluationPageRequest,
    PageRequest,
    PendingReviewPageRequest,
    WireMaterialPage,
    WireMaterialResponse,
)

logger = get_logger(__name__)

PENDING_RESULTS = (FinalEvaluationResult.UNKNOWN, FinalEvaluationResult.PENDING_REVIEW)
COMPLETED_RESULTS = (FinalEvaluationResult.PASS, FinalEvaluationResult.FAIL)


class QualityEvaluationService:
    def __init__(self, repository: WireMaterialRepository) -> None:
        self._repository = repository

    async def get_pending_review_materials(
        self, request: PendingReviewPageRequest
    ) -> BaseResponse[WireMaterialPage]:
        try:
            items, total = await self._repository.page_by_final_result(
                PENDING_RESULTS, request
            )
        except Exception as exc:
            logger.exception("quality_evaluation.pending.failed")
            return BaseResponse.error(f"Failed to load pending-review batches: {exc}")
        return BaseResponse.success(_page(items, total, request))

    async def get_completed_materials(
        self, request: CompletedEvaluationPageRequest
    ) -> BaseResponse[WireMaterialPage]:
        try:
            items, total = await self._repository.page_by_final_result(
                COMPLETED_RESULTS, request, scenario_code=request.scenario_code
            )
        except Exception as exc:
            logger.exception(
                "quality_evaluation.completed.failed", scenario_code=request.scenario_code
            )
            return BaseResponse.error(f"Failed to load evaluated batches: {exc}")
        return BaseResponse.success(_page(items, total, request))


def _page(items, total: int, request: PageRequest) -> WireMaterialPage:
    return WireMaterialPage.build(
        [WireMaterialResponse.model_validate(item) for item in items],
        page=request.page,
        size=request.size,
        total=total,
    )
