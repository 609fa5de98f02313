"""
MMW — Wire Material Models
===========================
Request/response schemas for wire material management.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMAIL_PATTERN = r"^([^@\s]+@[^@\s]+\.[^@\s]+)?$"

SORTABLE_FIELDS: frozenset[str] = frozenset({
    "batch_number",
    "device_id",
    "manufacturer",
    "responsible_person",
    "process_type",
    "production_machine",
    "scenario_code",
    "device_code",
    "event_time",
    "created_at",
    "final_evaluation_result",
})


class WireMaterialResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    batch_number: str
    device_id: str
    diameter: Decimal | None = None
    resistance: Decimal | None = None
    extensibility: Decimal | None = None
    weight: Decimal | None = None
    source_origin_raw: str | None = None
    manufacturer: str | None = None
    responsible_person: str | None = None
    process_type: str | None = None
    production_machine: str | None = None
    contact_email: str | None = None
    scenario_code: str | None = None
    device_code: str | None = None
    event_time: datetime
    evaluation_result: str | None = None
    model_evaluation_result: str | None = None
    final_evaluation_result: str | None = None
    created_at: datetime | None = None


class PageRequest(BaseModel):
    """Page number, size and a whitelisted sort column."""

    page: int = Field(default=0, ge=0)
    size: int = Field(default=10, ge=1, le=100)
    sort_by: str = "created_at"
    sort_direction: str = Field(default="desc", pattern=r"^(asc|desc|ASC|DESC)$")

    @field_validator("sort_by")
    @classmethod
    def known_sort_field(cls, v: str) -> str:
        if v not in SORTABLE_FIELDS:
            raise ValueError(
                f"sort_by must be one of: {', '.join(sorted(SORTABLE_FIELDS))}"
            )
        return v

    @property
    def descending(self) -> bool:
        return self.sort_direction.lower() == "desc"


class WireMaterialPageRequest(PageRequest):
    """Paged listing with optional keyword (substring) and exact filters."""

    batch_number_keyword: str | None = None
    device_id_keyword: str | None = None
    manufacturer_keyword: str | None = None
    responsible_person_keyword: str | None = None
    process_type_keyword: str | None = None
    production_machine_keyword: str | None = None
    scenario_code: str | None = None
    device_code: str | None = None

    def keyword_filters(self) -> dict[str, str]:
        """Column -> keyword for every non-blank keyword filter."""
        pairs = {
            "batch_number": self.batch_number_keyword,
            "device_id": self.device_id_keyword,
            "manufacturer": self.manufacturer_keyword,
            "responsible_person": self.responsible_person_keyword,
            "process_type": self.process_type_keyword,
            "production_machine": self.production_machine_keyword,
        }
        return {col: kw.strip() for col, kw in pairs.items() if kw and kw.strip()}


class PendingReviewPageRequest(PageRequest):
    """Batches still awaiting a verdict: not evaluated or pending review."""


class CompletedEvaluationPageRequest(PageRequest):
    """Batches with a final PASS/FAIL verdict, optionally for one scenario."""

    scenario_code: str | None = Field(default=None, max_length=2)


class WireMaterialPage(BaseModel):
    wire_materials: list[WireMaterialResponse]
    current_page: int
    page_size: int
    total_pages: int
    total_elements: int
    first: bool
    last: bool

    @classmethod
    def build(
        cls, items: list[WireMaterialResponse], *, page: int, size: int, total: int
    ) -> "WireMaterialPage":
        total_pages = (total + size - 1) // size if size else 0
        return cls(
            wire_materials=items,
            current_page=page,
            page_size=size,
            total_pages=total_pages,
            total_elements=total,
            first=page == 0,
            last=page + 1 >= total_pages,
        )


class UpdateWireMaterialRequest(BaseModel):
    """Partial update; ``None`` or blank fields are left unchanged."""

    diameter: Decimal | None = Field(default=None, ge=0)
    resistance: Decimal | None = Field(default=None, ge=0)
    extensibility: Decimal | None = Field(default=None, ge=0)
    weight: Decimal | None = Field(default=None, ge=0)
    manufacturer: str | None = Field(default=None, max_length=100)
    responsible_person: str | None = Field(default=None, max_length=50)
    process_type: str | None = Field(default=None, max_length=50)
    production_machine: str | None = Field(default=None, max_length=100)
    contact_email: str | None = Field(
        default=None, max_length=100, pattern=EMAIL_PATTERN
    )

    def changes(self) -> dict[str, object]:
        """Fields to apply: numbers when set, strings when non-blank."""
        out: dict[str, object] = {}
        for name, value in self.model_dump().items():
            if value is None:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            out[name] = value
        return out
