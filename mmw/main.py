"""
MMW — FastAPI Application
==========================
Application factory with lifecycle management and middleware pipeline.

The lifespan wires the repository, the email/notification stack and the
services, then starts the quality monitoring scheduler.

Usage:
    uvicorn mmw.main:app --host 0.0.0.0 --port 8080
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator
from zoneinfo import ZoneInfo

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mmw.api.error_handlers import register_error_handlers
from mmw.api.health import router as health_router
from mmw.api.routes import (
    overview_router,
    quality_router,
    traceability_router,
    wire_materials_router,
)
from mmw.core.config import (
    NotificationConfig,
    QualityMonitorConfig,
    get_settings,
)
from mmw.core.logging import configure_logging, get_logger
from mmw.core.middleware import RequestContextMiddleware
from mmw.db.repository import WireMaterialRepository
from mmw.db.session import close_db, init_db
from mmw.services.email import EmailService
from mmw.services.notifications import NotificationService
from mmw.services.overview import OverviewService
from mmw.services.quality_evaluation import QualityEvaluationService
from mmw.services.traceability import TraceabilityService
from mmw.services.wire_materials import WireMaterialService
from mmw.tasks import JobScheduler, QualityMonitorTask, register_quality_jobs


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifecycle.

    Startup: configure logging, connect DB, build services, start jobs.
    Shutdown: stop jobs, close DB.
    """
    logger = get_logger("mmw.main")
    settings = get_settings()

    # ── Startup ──────────────────────────────────────────────────────
    configure_logging()
    logger.info("app.starting", environment=settings.environment.value)

    await init_db()
    logger.info("db.connected")

    notification_config = NotificationConfig.from_settings(settings)
    monitor_config = QualityMonitorConfig.from_settings(settings)

    repository = WireMaterialRepository()
    notifications = NotificationService(
        EmailService.from_settings(settings), notification_config
    )
    traceability = TraceabilityService(repository, notifications, monitor_config)

    application.state.traceability_service = traceability
    application.state.wire_material_service = WireMaterialService(repository)
    application.state.overview_service = OverviewService(
        repository, tz=ZoneInfo(monitor_config.report_timezone)
    )
    application.state.quality_evaluation_service = QualityEvaluationService(repository)

    scheduler = JobScheduler(timezone=ZoneInfo(monitor_config.report_timezone))
    monitor = QualityMonitorTask(
        traceability, notifications, notification_config, monitor_config
    )
    register_quality_jobs(scheduler, monitor, monitor_config)
    scheduler.start()
    application.state.scheduler = scheduler

    logger.info("app.started")
    yield

    # ── Shutdown ─────────────────────────────────────────────────────
    logger.info("app.stopping")
    await scheduler.stop()
    await close_db()
    logger.info("app.stopped")


def create_app() -> FastAPI:
    """Application factory."""
    settings = get_settings()

    application = FastAPI(
        title="MMW Quality",
        description="Metal micro-wire quality traceability and monitoring",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # ── Middleware ───────────────────────────────────────────────────
    application.add_middleware(RequestContextMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(application)

    # ── Routers ──────────────────────────────────────────────────────
    application.include_router(health_router)
    application.include_router(traceability_router)
    application.include_router(wire_materials_router)
    application.include_router(overview_router)
    application.include_router(quality_router)

    return application


# Module-level instance for ``uvicorn mmw.main:app``
app = create_app()
