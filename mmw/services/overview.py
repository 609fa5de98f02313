"""
MMW — Overview Service
=======================
Dashboard statistics over ``wire_materials``.

- yearly: pass/fail counts per month, from the first day of the month twelve
  months ago up to now
- scenario: batches per application scenario within a calendar range
- overall: lifetime totals, this month and last month, scenario and device
  counts

Calendar periods are taken in the reporting timezone.  Like the traceability
operations, failures are logged and returned as error-coded results.

Usage:
    service = OverviewService(repository, tz=ZoneInfo("Asia/Shanghai"))
    result = await service.get_scenario_statistics(OverviewRange.THIS_MONTH)
"""

from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from typing import Callable

from mmw.core.logging import get_logger
from mmw.db.repository import WireMaterialRepository
from mmw.models.common import BaseResponse
from mmw.models.overview import (
    UNKNOWN_SCENARIO,
    UNKNOWN_WIRE_TYPE,
    MonthlyStatistics,
    OverviewRange,
    ScenarioOverview,
    ScenarioStatistics,
    SystemOverview,
    YearlyStatistics,
    month_start,
    shift_months,
)
from mmw.models.traceability import percentage

logger = get_logger(__name__)

TREND_MONTHS = 12


class OverviewService:
    def __init__(
        self,
        repository: WireMaterialRepository,
        *,
        tz: tzinfo = timezone.utc,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._repository = repository
        self._tz = tz
        self._clock = clock or (lambda: datetime.now(self._tz))

    def _now(self) -> datetime:
        return self._clock().astimezone(self._tz)

    async def get_yearly_statistics(self) -> BaseResponse[YearlyStatistics]:
        since = shift_months(month_start(self._now()), -TREND_MONTHS)
        try:
            rows = await self._repository.monthly_statistics(since)
        except Exception as exc:
            logger.exception("overview.yearly.failed")
            return BaseResponse.error(f"Failed to load yearly statistics: {exc}")

        months = [
            MonthlyStatistics(
                year=row.year,
                month=row.month,
                pass_count=row.passed,
                fail_count=row.failed,
                total_count=row.total,
                pass_rate=percentage(row.passed, row.total),
            )
            for row in rows
        ]
        logger.info("overview.yearly.completed", since=since.isoformat(), months=len(months))
        return BaseResponse.success(YearlyStatistics(monthly_data=months))

    async def get_scenario_statistics(
        self, how: OverviewRange
    ) -> BaseResponse[ScenarioOverview]:
        start, end = how.bounds(self._now())
        try:
            counts = await self._repository.scenario_counts(start=start, end=end)
            scenarios = await self._repository.scenarios()
        except Exception as exc:
            logger.exception("overview.scenario.failed", range=how.value)
            return BaseResponse.error(f"Failed to load scenario statistics: {exc}")

        data = []
        for code, count in counts:
            scenario = scenarios.get(code)
            data.append(ScenarioStatistics(
                scenario_code=code,
                scenario_name=scenario.scenario_name if scenario else UNKNOWN_SCENARIO,
                wire_type=scenario.wire_type if scenario else UNKNOWN_WIRE_TYPE,
                scenario_count=count,
            ))
        logger.info("overview.scenario.completed", range=how.value, scenarios=len(data))
        return BaseResponse.success(ScenarioOverview(scenario_data=data))

    async def get_overall_statistics(self) -> BaseResponse[SystemOverview]:
        this_month = month_start(self._now())
        next_month = shift_months(this_month, 1)
        last_month = shift_months(this_month, -1)
        try:
            overall = await self._repository.overall_statistics()
            current = await self._repository.overall_statistics(
                start=this_month, end=next_month, end_exclusive=True
            )
            previous = await self._repository.overall_statistics(
                start=last_month, end=this_month, end_exclusive=True
            )
            scenario_count = len(await self._repository.scenarios())
            device_count = await self._repository.distinct_device_count()
        except Exception as exc:
            logger.exception("overview.overall.failed")
            return BaseResponse.error(f"Failed to load overall statistics: {exc}")

        logger.info("overview.overall.completed", total=overall.total)
        return BaseResponse.success(SystemOverview(
            total_detection_count=overall.total,
            current_month_count=current.total,
            last_month_count=previous.total,
            total_scenario_count=scenario_count,
            total_device_count=device_count,
            total_pass_count=overall.passed,
            total_fail_count=overall.failed,
            total_pass_rate=percentage(overall.passed, overall.total),
            current_month_pass_count=current.passed,
            current_month_fail_count=current.failed,
            current_month_pass_rate=percentage(current.passed, current.total),
        ))
