"""
MMW — Test Fixtures
====================
Shared pytest fixtures.

Services are replaced with ``AsyncMock`` instances for API tests; repository
tests run against an in-memory SQLite database through the real session
module.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from mmw.core.config import NotificationConfig, QualityMonitorConfig
from mmw.models.traceability import IssueSeverity, QualityIssue, QualityStatistics


# ── Override settings BEFORE any app import ──────────────────────────────
@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Ensure a fresh Settings instance for each test."""
    from mmw.core.config import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings():
    """Return a settings instance with test defaults."""
    os.environ.setdefault("MMW_ENVIRONMENT", "development")
    os.environ.setdefault("MMW_LOG_LEVEL", "DEBUG")
    os.environ.setdefault("MMW_LOG_FORMAT", "console")
    from mmw.core.config import get_settings
    return get_settings()


# ── Configuration values ─────────────────────────────────────────────────
@pytest.fixture
def notification_config():
    return NotificationConfig(
        email_enabled=True,
        fail_rate_threshold=5.0,
        admin_emails=("admin1@example.com", "admin2@example.com"),
    )


@pytest.fixture
def monitor_config():
    return QualityMonitorConfig(report_timezone="Asia/Shanghai")


# ── Mock email stack ─────────────────────────────────────────────────────
@pytest.fixture
def mock_email_service():
    """EmailService stand-in whose sends always succeed."""
    email = MagicMock()
    email.enabled = True
    email.send_simple_email = AsyncMock(return_value=True)
    email.send_html_email = AsyncMock(return_value=True)
    return email


# ── SQLite-backed session module ─────────────────────────────────────────
@pytest.fixture
async def sqlite_db():
    """
    Point ``mmw.db.session`` at a fresh in-memory SQLite database.

    Yields the session factory; the module state is restored afterwards.
    """
    import mmw.db.session as sess_mod
    from mmw.db.models import Base

    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    original = (sess_mod._engine, sess_mod._session_factory)
    sess_mod._engine = engine
    sess_mod._session_factory = factory
    yield factory
    sess_mod._engine, sess_mod._session_factory = original
    await engine.dispose()


# ── HTTP client (services mocked) ────────────────────────────────────────
@pytest.fixture
def traceability_service():
    return AsyncMock()


@pytest.fixture
def wire_material_service():
    return AsyncMock()


@pytest.fixture
def overview_service():
    return AsyncMock()


@pytest.fixture
def quality_evaluation_service():
    return AsyncMock()


@pytest.fixture
def mock_db_engine():
    """Provide a mock async engine for tests that don't need real DB."""
    engine = MagicMock()
    conn = AsyncMock()
    conn.execute = AsyncMock(return_value=MagicMock())
    engine.connect = MagicMock(return_value=_async_cm(conn))
    return engine


@pytest.fixture
def app(
    traceability_service,
    wire_material_service,
    overview_service,
    quality_evaluation_service,
):
    """
    Application with the services injected through ``dependency_overrides``.

    ``ASGITransport`` does not run the lifespan, so nothing is built on
    ``app.state``.
    """
    from mmw.api.deps import (
        get_overview_service,
        get_quality_evaluation_service,
        get_traceability_service,
        get_wire_material_service,
    )
    from mmw.main import create_app

    application = create_app()
    application.dependency_overrides[get_traceability_service] = lambda: traceability_service
    application.dependency_overrides[get_wire_material_service] = (
        lambda: wire_material_service
    )
    application.dependency_overrides[get_overview_service] = lambda: overview_service
    application.dependency_overrides[get_quality_evaluation_service] = (
        lambda: quality_evaluation_service
    )
    return application


@pytest.fixture
async def client(app, mock_db_engine):
    """AsyncClient wired to the FastAPI app with a mocked DB engine."""
    import mmw.db.session as sess_mod

    with patch.object(sess_mod, "_engine", mock_db_engine):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac


# ── Builders ─────────────────────────────────────────────────────────────
def _make_statistics(
    value: str = "Acme",
    *,
    total: int = 100,
    failed: int = 10,
    contact_email: str | None = "owner@example.com",
    dimension_name: str = "Manufacturer",
) -> QualityStatistics:
    return QualityStatistics.from_counts(
        dimension_name,
        value,
        total=total,
        passed=total - failed,
        failed=failed,
        contact_email=contact_email,
    )


def _make_issue(
    value: str = "Acme",
    *,
    fail_rate: str = "25.00",
    severity: IssueSeverity = IssueSeverity.CRITICAL,
    contact_email: str | None = "owner@example.com",
) -> QualityIssue:
    return QualityIssue(
        issue_id=f"MANUFACTURER_{value}_1700000000000",
        dimension="Manufacturer",
        dimension_value=value,
        severity=severity,
        fail_rate=Decimal(fail_rate),
        fail_count=25,
        total_count=100,
        description=f"Manufacturer [{value}] has a quality issue",
        recommendation=severity.recommendation,
        contact_email=contact_email,
        discovered_time=datetime(2026, 1, 1, 8, 0, tzinfo=timezone.utc),
    )


# ── Helpers ──────────────────────────────────────────────────────────────
class _async_cm:
    """Turn an async mock into an async context manager."""
    def __init__(self, value):
        self._value = value
    async def __aenter__(self):
        return self._value
    async def __aexit__(self, *args):
        pass


@pytest.fixture
def statistics_factory():
    return _make_statistics


@pytest.fixture
def issue_factory():
    return _make_issue
