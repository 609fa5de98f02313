"""
MMW — Pydantic Models
======================
Request/response schemas and domain values for the API and service layers.

These models are distinct from the SQLAlchemy ORM models in ``mmw.db.models``.
"""

from mmw.models.common import BaseResponse
from mmw.models.overview import (
    MonthlyStatistics,
    OverviewRange,
    ScenarioOverview,
    ScenarioStatistics,
    SystemOverview,
    YearlyStatistics,
)
from mmw.models.traceability import (
    BatchDetail,
    CustomNotificationRequest,
    IssueSeverity,
    OverallStatistics,
    QualityIssue,
    QualityMetrics,
    QualityStatistics,
    QueryDimension,
    TraceabilityAnalysis,
    TraceabilityQuery,
)
from mmw.models.wire_material import (
    CompletedEvaluationPageRequest,
    PageRequest,
    PendingReviewPageRequest,
    UpdateWireMaterialRequest,
    WireMaterialPage,
    WireMaterialPageRequest,
    WireMaterialResponse,
)

__all__ = [
    "BaseResponse",
    "BatchDetail",
    "CompletedEvaluationPageRequest",
    "CustomNotificationRequest",
    "IssueSeverity",
    "MonthlyStatistics",
    "OverallStatistics",
    "OverviewRange",
    "PageRequest",
    "PendingReviewPageRequest",
    "QualityIssue",
    "QualityMetrics",
    "QualityStatistics",
    "QueryDimension",
    "ScenarioOverview",
    "ScenarioStatistics",
    "SystemOverview",
    "TraceabilityAnalysis",
    "TraceabilityQuery",
    "UpdateWireMaterialRequest",
    "WireMaterialPage",
    "WireMaterialPageRequest",
    "WireMaterialResponse",
    "YearlyStatistics",
]
