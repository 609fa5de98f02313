"""
MMW — Health Endpoint
======================
Reports database connectivity and whether the quality scheduler is running.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from pydantic import BaseModel
from sqlalchemy import text

from mmw.db.session import get_engine

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    postgres: str
    scheduler: str


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="System health check",
)
async def health_check(request: Request) -> HealthResponse:
    """
    Overall status is ``healthy`` only when the database answers.

    The scheduler is reported as ``running``, ``stopped`` or ``disabled``
    and does not affect the overall status.
    """
    pg_status = await _check_postgres()
    return HealthResponse(
        status="healthy" if pg_status == "ok" else "degraded",
        postgres=pg_status,
        scheduler=_scheduler_status(request),
    )


async def _check_postgres() -> str:
    try:
        engine = get_engine()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return "ok"
    except Exception:
        return "error"


def _scheduler_status(request: Request) -> str:
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None or not scheduler.jobs:
        return "disabled"
    return "running" if scheduler.running else "stopped"
