"""
MMW — Structured Logging
=========================
structlog over stdlib logging, one line per event with dotted event names
(``quality_monitor.report.completed``).

Context fields, merged from structlog contextvars:
- ``app`` / ``environment`` on every entry
- ``request_id`` / ``method`` / ``path`` inside an HTTP request, bound by
  ``RequestContextMiddleware``
- ``job`` / ``run_id`` inside a scheduled run, bound by ``job_context``, so
  the detector's or the report's lines from one run (email, traceability,
  repository) can be grouped

Usage:
    from mmw.core.logging import get_logger
    logger = get_logger(__name__)
    logger.info("wire_material.updated", batch_number="B-001")
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextlib import contextmanager
from typing import Iterator

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from mmw.core.config import get_settings

# Third-party loggers that are noisy at INFO.
_QUIET_LOGGERS = ("uvicorn.access", "asyncio", "sqlalchemy.engine")


def _add_service_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    settings = get_settings()
    event_dict.setdefault("app", settings.app_name)
    event_dict.setdefault("environment", settings.environment.value)
    return event_dict


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def configure_logging() -> None:
    """
    Route structlog and stdlib records through one stdout handler.

    Call once at application startup, before the scheduler starts.
    """
    settings = get_settings()

    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        _add_service_context,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(settings.log_format),
        ],
    ))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(settings.log_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def job_context(job: str) -> Iterator[str]:
    """Bind ``job`` and a fresh ``run_id`` for the duration of one scheduled run."""
    run_id = uuid.uuid4().hex[:12]
    with structlog.contextvars.bound_contextvars(job=job, run_id=run_id):
        yield run_id


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structured logger bound to the given module name."""
    return structlog.get_logger(name)
