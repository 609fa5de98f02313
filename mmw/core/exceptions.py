"""
MMW — Exception Taxonomy
=========================
Category-based exception hierarchy.  Each class carries a severity, a
machine-readable ``error_code`` and the HTTP status the API layer maps it to.

Usage:
    from mmw.core.exceptions import ResourceNotFoundError

    raise ResourceNotFoundError("Wire material not found", resource_id="B-001")
"""

from __future__ import annotations

from enum import StrEnum


class ErrorSeverity(StrEnum):
    """Error severity levels: LOW < MEDIUM < HIGH < CRITICAL."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class MMWError(Exception):
    """
    Base exception for all application errors.

    - severity: classification for logging and alerting
    - error_code: stable identifier returned to API clients
    - http_status: status code used by the global exception handler
    - resource_id: optional identifier of the entity involved
    """

    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    error_code: str = "MMW_ERROR"
    http_status: int = 500

    def __init__(self, message: str, *, resource_id: str | None = None) -> None:
        self.message = message
        self.resource_id = resource_id
        super().__init__(message)

    def __repr__(self) -> str:
        parts = [
            f"{self.__class__.__name__}(",
            f"error_code={self.error_code!r}, ",
            f"severity={self.severity.value!r}",
        ]
        if self.resource_id:
            parts.append(f", resource_id={self.resource_id!r}")
        parts.append(")")
        return "".join(parts)


# ── Configuration Exceptions ──────────────────────────────────────────────


class ConfigurationError(MMWError):
    """Errors in configuration (missing settings, invalid values)."""

    severity = ErrorSeverity.HIGH
    error_code = "CONFIGURATION_ERROR"


class InvalidConfigurationError(ConfigurationError):
    """Raised when a configuration value cannot be used, e.g. a bad cron."""

    error_code = "INVALID_CONFIGURATION_ERROR"


# ── Integration Exceptions ────────────────────────────────────────────────


class IntegrationError(MMWError):
    """Errors talking to external systems."""

    error_code = "INTEGRATION_ERROR"
    http_status = 502


class EmailDeliveryError(IntegrationError):
    """Raised when the SMTP server rejects or fails a message."""

    error_code = "EMAIL_DELIVERY_ERROR"


# ── Data Exceptions ───────────────────────────────────────────────────────


class DataAccessError(MMWError):
    """Database failures."""

    severity = ErrorSeverity.HIGH
    error_code = "DATA_ACCESS_ERROR"


class ResourceNotFoundError(MMWError):
    severity = ErrorSeverity.LOW
    error_code = "RESOURCE_NOT_FOUND"
    http_status = 404


class QueryValidationError(MMWError):
    """Raised when request parameters are semantically invalid."""

    severity = ErrorSeverity.LOW
    error_code = "QUERY_VALIDATION_ERROR"
    http_status = 400
