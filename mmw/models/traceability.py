"""
MMW — Traceability Models
==========================
Pydantic models for quality traceability: the query value object,
per-dimension statistics, detected issues and failed batch details.

Rates are percentages held as ``Decimal`` with two places (HALF_UP).
A dimension bucket is a quality issue when its fail rate is strictly
greater than the threshold.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mmw.db.models import EvaluationResult, FinalEvaluationResult

_TWO_PLACES = Decimal("0.01")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def percentage(part: int, total: int) -> Decimal:
    """``part / total * 100`` rounded to two places; zero when total is zero."""
    if not total:
        return Decimal("0.00")
    return (Decimal(part) * 100 / Decimal(total)).quantize(
        _TWO_PLACES, rounding=ROUND_HALF_UP
    )


def _as_decimal(value: float | Decimal) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


# ── Dimensions ────────────────────────────────────────────────────────────


class QueryDimension(StrEnum):
    """Grouping key for traceability statistics."""

    MANUFACTURER = "MANUFACTURER"
    RESPONSIBLE_PERSON = "RESPONSIBLE_PERSON"
    PROCESS_TYPE = "PROCESS_TYPE"
    PRODUCTION_MACHINE = "PRODUCTION_MACHINE"

    @property
    def label(self) -> str:
        return _DIMENSION_LABELS[self]

    @property
    def column(self) -> str:
        """Name of the ``wire_materials`` column this dimension groups by."""
        return self.value.lower()


_DIMENSION_LABELS: dict[str, str] = {
    "MANUFACTURER": "Manufacturer",
    "RESPONSIBLE_PERSON": "Responsible person",
    "PROCESS_TYPE": "Process type",
    "PRODUCTION_MACHINE": "Production machine",
}


class TraceabilityQuery(BaseModel):
    """
    Immutable statistics query.

    Derive variants with ``query.model_copy(update={...})``; a query value is
    never modified after construction.  Naive datetimes are taken as UTC.
    """

    model_config = ConfigDict(frozen=True)

    dimension: QueryDimension
    dimension_value: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    # False: end_time inclusive. True: half-open [start_time, end_time).
    end_exclusive: bool = False
    scenario_code: str | None = Field(default=None, max_length=2)
    only_problematic: bool = False
    fail_rate_threshold: float = Field(default=5.0, ge=0, le=100)
    page: int = Field(default=0, ge=0)
    size: int = Field(default=20, ge=1, le=100)

    @field_validator("start_time", "end_time")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


# ── Statistics ────────────────────────────────────────────────────────────


class QualityStatistics(BaseModel):
    """Pass/fail counts and rates of one dimension bucket."""

    dimension_name: str
    dimension_value: str | None = None
    total_count: int = 0
    pass_count: int = 0
    fail_count: int = 0
    pending_review_count: int = 0
    unknown_count: int = 0
    pass_rate: Decimal = Decimal("0.00")
    fail_rate: Decimal = Decimal("0.00")
    contact_email: str | None = None

    @classmethod
    def from_counts(
        cls,
        dimension_name: str,
        dimension_value: str | None,
        *,
        total: int,
        passed: int,
        failed: int,
        pending_review: int = 0,
        unknown: int = 0,
        contact_email: str | None = None,
    ) -> "QualityStatistics":
        return cls(
            dimension_name=dimension_name,
            dimension_value=dimension_value,
            total_count=total,
            pass_count=passed,
            fail_count=failed,
            pending_review_count=pending_review,
            unknown_count=unknown,
            pass_rate=percentage(passed, total),
            fail_rate=percentage(failed, total),
            contact_email=contact_email,
        )

    def has_quality_issue(self, threshold: float | Decimal) -> bool:
        return self.fail_rate > _as_decimal(threshold)


class OverallStatistics(BaseModel):
    total_dimensions: int = 0
    problematic_dimensions: int = 0
    total_batches: int = 0
    total_pass_batches: int = 0
    total_fail_batches: int = 0
    overall_pass_rate: float = 0.0
    overall_fail_rate: float = 0.0


# ── Issues ────────────────────────────────────────────────────────────────


class IssueSeverity(StrEnum):
    """Severity derived from the fail rate: >=20 / >=10 / >=5 / below."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def level(self) -> str:
        return self.value.capitalize()

    @property
    def color(self) -> str:
        return _SEVERITY_COLORS[self]

    @property
    def recommendation(self) -> str:
        return _RECOMMENDATIONS[self]

    @classmethod
    def from_fail_rate(cls, fail_rate: Decimal | float | None) -> "IssueSeverity":
        if fail_rate is None:
            return cls.LOW
        rate = _as_decimal(fail_rate)
        if rate >= 20:
            return cls.CRITICAL
        if rate >= 10:
            return cls.HIGH
        if rate >= 5:
            return cls.MEDIUM
        return cls.LOW


_SEVERITY_COLORS: dict[str, str] = {
    "CRITICAL": "#FF0000",
    "HIGH": "#FF8C00",
    "MEDIUM": "#FFD700",
    "LOW": "#32CD32",
}

_RECOMMENDATIONS: dict[str, str] = {
    "CRITICAL": (
        "Stop the related production immediately, run a full quality "
        "inspection, analyse the root cause and define corrective actions."
    ),
    "HIGH": (
        "Handle this issue with priority, tighten quality control, increase "
        "inspection frequency and analyse the cause."
    ),
    "MEDIUM": (
        "Watch the trend of this issue, add quality checks where appropriate "
        "and look for systematic causes."
    ),
    "LOW": (
        "Keep monitoring quality, review periodically and prevent the issue "
        "from growing."
    ),
}


class QualityIssue(BaseModel):
    """A dimension bucket whose fail rate exceeded the threshold."""

    issue_id: str
    dimension: str
    dimension_value: str | None = None
    severity: IssueSeverity
    fail_rate: Decimal
    fail_count: int
    total_count: int
    description: str = ""
    recommendation: str = ""
    contact_email: str | None = None
    related_batch_numbers: list[str] = Field(default_factory=list)
    discovered_time: datetime = Field(default_factory=_utcnow)
    notified: bool = False
    notified_time: datetime | None = None

    @classmethod
    def from_statistics(
        cls, stat: QualityStatistics, dimension: QueryDimension,
        *, discovered: datetime | None = None,
    ) -> "QualityIssue":
        discovered = discovered or _utcnow()
        severity = IssueSeverity.from_fail_rate(stat.fail_rate)
        issue_id = "{}_{}_{}".format(
            dimension.value, stat.dimension_value, int(discovered.timestamp() * 1000)
        )
        return cls(
            issue_id=issue_id,
            dimension=stat.dimension_name,
            dimension_value=stat.dimension_value,
            severity=severity,
            fail_rate=stat.fail_rate,
            fail_count=stat.fail_count,
            total_count=stat.total_count,
            description=(
                f"{stat.dimension_name} [{stat.dimension_value}] has a quality "
                f"issue, fail rate {stat.fail_rate:.2f}% "
                f"({stat.fail_count}/{stat.total_count}), "
                f"severity: {severity.level}"
            ),
            recommendation=severity.recommendation,
            contact_email=stat.contact_email,
            discovered_time=discovered,
        )

    @property
    def is_urgent(self) -> bool:
        return self.severity in (IssueSeverity.CRITICAL, IssueSeverity.HIGH)


class TraceabilityAnalysis(BaseModel):
    dimension: str
    start_time: datetime | None = None
    end_time: datetime | None = None
    overall_statistics: OverallStatistics
    detail_statistics: list[QualityStatistics] = Field(default_factory=list)
    quality_issues: list[QualityIssue] = Field(default_factory=list)


# ── Batches ───────────────────────────────────────────────────────────────


class QualityMetrics(BaseModel):
    diameter: Decimal | None = None
    resistance: Decimal | None = None
    extensibility: Decimal | None = None
    weight: Decimal | None = None


class BatchDetail(BaseModel):
    """A failed batch, with evaluation results rendered as labels."""

    batch_number: str
    device_id: str
    manufacturer: str | None = None
    responsible_person: str | None = None
    process_type: str | None = None
    production_machine: str | None = None
    contact_email: str | None = None
    scenario_code: str | None = None
    device_code: str | None = None
    evaluation_result: str | None = None
    model_evaluation_result: str | None = None
    model_confidence: Decimal | None = None
    final_evaluation_result: str | None = None
    evaluation_message: str | None = None
    event_time: datetime | None = None
    created_at: datetime | None = None
    quality_metrics: QualityMetrics = Field(default_factory=QualityMetrics)

    @classmethod
    def from_entity(cls, entity: Any) -> "BatchDetail":
        def _label(enum_cls: Any, raw: str | None) -> str | None:
            if raw is None:
                return None
            try:
                return enum_cls(raw).label
            except ValueError:
                return raw

        return cls(
            batch_number=entity.batch_number,
            device_id=entity.device_id,
            manufacturer=entity.manufacturer,
            responsible_person=entity.responsible_person,
            process_type=entity.process_type,
            production_machine=entity.production_machine,
            contact_email=entity.contact_email,
            scenario_code=entity.scenario_code,
            device_code=entity.device_code,
            evaluation_result=_label(EvaluationResult, entity.evaluation_result),
            model_evaluation_result=_label(
                EvaluationResult, entity.model_evaluation_result
            ),
            model_confidence=entity.model_confidence,
            final_evaluation_result=_label(
                FinalEvaluationResult, entity.final_evaluation_result
            ),
            evaluation_message=entity.evaluation_message,
            event_time=entity.event_time,
            created_at=entity.created_at,
            quality_metrics=QualityMetrics(
                diameter=entity.diameter,
                resistance=entity.resistance,
                extensibility=entity.extensibility,
                weight=entity.weight,
            ),
        )

    @property
    def is_problematic(self) -> bool:
        return self.final_evaluation_result == "Fail"

    @property
    def needs_review(self) -> bool:
        return self.final_evaluation_result in ("Pending review", "Not evaluated")


# ── Notifications ─────────────────────────────────────────────────────────


class CustomNotificationRequest(BaseModel):
    """Ad-hoc email sent to an explicit recipient list."""

    recipients: list[str] = Field(..., min_length=1)
    subject: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    email_type: str | None = None
    additional_data: str | None = None
    is_html: bool = False

    @field_validator("subject", "content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    @field_validator("recipients")
    @classmethod
    def recipients_not_blank(cls, v: list[str]) -> list[str]:
        cleaned = [r.strip() for r in v if r and r.strip()]
        if not cleaned:
            raise ValueError("at least one recipient is required")
        return cleaned
