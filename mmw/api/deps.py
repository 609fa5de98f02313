"""
MMW — API Dependencies
=======================
FastAPI dependency injectors for the route handlers.

Services are built once in the application lifespan and kept on
``app.state``; handlers receive them through these functions so tests can
swap them with ``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Request

from mmw.services.overview import OverviewService
from mmw.services.quality_evaluation import QualityEvaluationService
from mmw.services.traceability import TraceabilityService
from mmw.services.wire_materials import WireMaterialService


def get_traceability_service(request: Request) -> TraceabilityService:
    return request.app.state.traceability_service


def get_wire_material_service(request: Request) -> WireMaterialService:
    return request.app.state.wire_material_service


def get_overview_service(request: Request) -> OverviewService:
    return request.app.state.overview_service


def get_quality_evaluation_service(request: Request) -> QualityEvaluationService:
    return request.app.state.quality_evaluation_service
