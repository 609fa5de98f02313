"""
MMW — SQLAlchemy Models
========================
Persistent entities of the quality backend.

Entities: WireMaterial (one row per inspected wire batch), ApplicationScenario
(reference data naming the two-digit scenario codes).

Design decisions:
- ``batch_number`` is the natural primary key assigned by the production line.
- Evaluation results are stored as short strings so rows stay readable in
  ad-hoc SQL; the allowed values live in the StrEnums below.
- All timestamps are UTC with timezone.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import DateTime, Index, Numeric, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EvaluationResult(StrEnum):
    """Rule-engine / model verdict for a single batch."""

    PASS = "PASS"
    FAIL = "FAIL"
    UNKNOWN = "UNKNOWN"

    @property
    def label(self) -> str:
        return _RESULT_LABELS[self.value]


class FinalEvaluationResult(StrEnum):
    """Combined verdict, including the manual review state."""

    PASS = "PASS"
    FAIL = "FAIL"
    PENDING_REVIEW = "PENDING_REVIEW"
    UNKNOWN = "UNKNOWN"

    @property
    def label(self) -> str:
        return _RESULT_LABELS[self.value]


_RESULT_LABELS: dict[str, str] = {
    "PASS": "Pass",
    "FAIL": "Fail",
    "PENDING_REVIEW": "Pending review",
    "UNKNOWN": "Not evaluated",
}


class Base(DeclarativeBase):
    """Shared declarative base for all MMW models."""
    pass


# ── WireMaterial ────────────────────────────────────────────────────────

class WireMaterial(Base):
    """
    Inspection record of one metal micro-wire batch.

    Traceability dimensions: manufacturer, responsible_person, process_type,
    production_machine.  ``contact_email`` is the address notified when the
    batch's dimension bucket develops a quality issue.
    """

    __tablename__ = "wire_materials"

    batch_number: Mapped[str] = mapped_column(String(64), primary_key=True)
    device_id: Mapped[str] = mapped_column(String(64), nullable=False)

    diameter: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    resistance: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    extensibility: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    weight: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

    source_origin_raw: Mapped[str | None] = mapped_column(
        Text, nullable=True,
        comment="Raw production info as received from the device (hex, GBK)",
    )
    manufacturer: Mapped[str | None] = mapped_column(String(100), nullable=True)
    responsible_person: Mapped[str | None] = mapped_column(String(50), nullable=True)
    process_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    production_machine: Mapped[str | None] = mapped_column(String(100), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(100), nullable=True)
    scenario_code: Mapped[str | None] = mapped_column(String(2), nullable=True)
    device_code: Mapped[str | None] = mapped_column(String(2), nullable=True)

    event_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    evaluation_result: Mapped[str] = mapped_column(
        String(10), nullable=False, default=EvaluationResult.UNKNOWN.value
    )
    evaluation_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    model_evaluation_result: Mapped[str] = mapped_column(
        String(10), nullable=False, default=EvaluationResult.UNKNOWN.value
    )
    model_confidence: Mapped[Decimal | None] = mapped_column(
        Numeric(5, 4), nullable=True
    )
    final_evaluation_result: Mapped[str] = mapped_column(
        String(15), nullable=False, default=FinalEvaluationResult.UNKNOWN.value
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    __table_args__ = (
        Index("ix_wire_materials_event_time", "event_time"),
        Index("ix_wire_materials_final_result", "final_evaluation_result"),
        Index("ix_wire_materials_scenario_code", "scenario_code"),
    )

    def __repr__(self) -> str:
        return (
            f"<WireMaterial {self.batch_number} "
            f"result={self.final_evaluation_result}>"
        )


# ── ApplicationScenario ─────────────────────────────────────────────────

class ApplicationScenario(Base):
    """Named wire application scenario; ``WireMaterial.scenario_code`` refers to it."""

    __tablename__ = "application_scenarios"

    scenario_code: Mapped[str] = mapped_column(String(2), primary_key=True)
    scenario_name: Mapped[str] = mapped_column(String(100), nullable=False)
    wire_type: Mapped[str] = mapped_column(
        String(2), nullable=False, comment="Cu, Al, Ni, Ti or Zn"
    )

    def __repr__(self) -> str:
        return f"<ApplicationScenario {self.scenario_code} {self.scenario_name}>"
