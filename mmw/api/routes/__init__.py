"""
MMW — API Routes Package
=========================
Aggregates the traceability, wire material, overview and quality evaluation
route modules under ``/api``.
"""

from mmw.api.routes.overview import router as overview_router
from mmw.api.routes.quality import router as quality_router
from mmw.api.routes.traceability import router as traceability_router
from mmw.api.routes.wire_materials import router as wire_materials_router

__all__ = [
    "overview_router",
    "quality_router",
    "traceability_router",
    "wire_materials_router",
]
