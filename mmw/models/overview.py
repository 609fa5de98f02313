"""
MMW — Overview Models
======================
Dashboard statistics: monthly pass/fail trend, batches per application
scenario and system-wide totals.

Ranges are half-open ``[start, end)`` calendar periods in the reporting
timezone.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel

UNKNOWN_SCENARIO = "Unknown scenario"
UNKNOWN_WIRE_TYPE = "Unknown"


def shift_months(start: datetime, months: int) -> datetime:
    """First-of-month ``start`` moved by ``months`` calendar months."""
    index = start.year * 12 + start.month - 1 + months
    return start.replace(year=index // 12, month=index % 12 + 1)


def month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class OverviewRange(StrEnum):
    THIS_MONTH = "this_month"
    LAST_MONTH = "last_month"
    THIS_YEAR = "this_year"
    LAST_YEAR = "last_year"
    ALL = "all"

    def bounds(self, now: datetime) -> tuple[datetime | None, datetime | None]:
        """``[start, end)`` in ``now``'s timezone; ``(None, None)`` for ``ALL``."""
        this_month = month_start(now)
        this_year = this_month.replace(month=1)
        if self is OverviewRange.THIS_MONTH:
            return this_month, shift_months(this_month, 1)
        if self is OverviewRange.LAST_MONTH:
            return shift_months(this_month, -1), this_month
        if self is OverviewRange.THIS_YEAR:
            return this_year, this_year.replace(year=this_year.year + 1)
        if self is OverviewRange.LAST_YEAR:
            return this_year.replace(year=this_year.year - 1), this_year
        return None, None


class MonthlyStatistics(BaseModel):
    year: int
    month: int
    pass_count: int = 0
    fail_count: int = 0
    total_count: int = 0
    pass_rate: Decimal = Decimal("0.00")


class YearlyStatistics(BaseModel):
    monthly_data: list[MonthlyStatistics]


class ScenarioStatistics(BaseModel):
    scenario_code: str
    scenario_name: str = UNKNOWN_SCENARIO
    wire_type: str = UNKNOWN_WIRE_TYPE
    scenario_count: int = 0


class ScenarioOverview(BaseModel):
    scenario_data: list[ScenarioStatistics]


class SystemOverview(BaseModel):
    total_detection_count: int = 0
    current_month_count: int = 0
    last_month_count: int = 0
    total_scenario_count: int = 0
    total_device_count: int = 0
    total_pass_count: int = 0
    total_fail_count: int = 0
    total_pass_rate: Decimal = Decimal("0.00")
    current_month_pass_count: int = 0
    current_month_fail_count: int = 0
    current_month_pass_rate: Decimal = Decimal("0.00")
