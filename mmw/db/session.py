"""
MMW — Database Engine & Sessions
=================================
One async engine per process, created in the application lifespan.

Usage:
    from mmw.db.session import get_db_session

    async with get_db_session() as session:
        rows = (await session.execute(stmt)).all()

Scheduled jobs run outside any request, so services never hold a session:
repositories open a short-lived one per call through ``get_db_session``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from mmw.core.config import get_settings
from mmw.core.exceptions import DataAccessError
from mmw.core.logging import get_logger

logger = get_logger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


async def init_db() -> AsyncEngine:
    """Create the engine and session factory.  Safe to call once per process."""
    global _engine, _session_factory
    settings = get_settings()
    url = settings.database_url.get_secret_value()

    engine_kwargs: dict = {"echo": settings.db_echo_sql, "pool_pre_ping": True}
    if not url.startswith("sqlite"):
        engine_kwargs["pool_size"] = settings.db_pool_size
        engine_kwargs["max_overflow"] = settings.db_pool_overflow

    _engine = create_async_engine(url, **engine_kwargs)
    _session_factory = async_sessionmaker(bind=_engine, expire_on_commit=False)
    logger.info("db.engine.created", dialect=_engine.dialect.name)
    return _engine


async def close_db() -> None:
    global _engine, _session_factory
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None
    logger.info("db.engine.disposed")


def get_engine() -> AsyncEngine:
    if _engine is None:
        raise DataAccessError("Database engine is not initialised")
    return _engine


@asynccontextmanager
async def get_db_session() -> AsyncIterator[AsyncSession]:
    """
    Yield a session bound to one transaction.

    The transaction commits when the block exits cleanly and rolls back
    otherwise.  Driver errors surface as ``DataAccessError``.
    """
    if _session_factory is None:
        raise DataAccessError("Database engine is not initialised")
    async with _session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            raise DataAccessError(f"Database operation failed: {exc}") from exc
        except Exception:
            await session.rollback()
            raise
