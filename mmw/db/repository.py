"""
MMW — Wire Material Repository
===============================
Read/write access to ``wire_materials``.

Each method opens its own short-lived session through the injected session
provider, so the repository can be shared by request handlers and by the
scheduled jobs alike.

Statistics are grouped by ``(dimension column, contact_email)`` and ordered by
fail count, then total count, both descending.  Time bounds are inclusive
unless ``end_exclusive`` is set, which gives the half-open ``[start, end)``
used by the daily report and the overview ranges.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, AsyncContextManager, Callable, Iterable, Sequence

from sqlalchemy import ColumnElement, Select, case, extract, func, select

from mmw.db.models import ApplicationScenario, FinalEvaluationResult, WireMaterial
from mmw.db.session import get_db_session
from mmw.models.traceability import QueryDimension
from mmw.models.wire_material import PageRequest, WireMaterialPageRequest

SessionProvider = Callable[[], AsyncContextManager[Any]]


@dataclass(frozen=True)
class DimensionCounts:
    """One aggregated row of a dimension statistics query."""

    dimension_value: str | None
    total: int
    passed: int
    failed: int
    pending_review: int
    unknown: int
    contact_email: str | None


@dataclass(frozen=True)
class OverallCounts:
    total: int
    passed: int
    failed: int


def _count_result(value: FinalEvaluationResult) -> Any:
    return func.sum(
        case((WireMaterial.final_evaluation_result == value.value, 1), else_=0)
    )


@dataclass(frozen=True)
class MonthlyCounts:
    year: int
    month: int
    total: int
    passed: int
    failed: int


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _time_filtered(
    stmt: Select,
    start: datetime | None,
    end: datetime | None,
    *,
    end_exclusive: bool = False,
) -> Select:
    if start is not None:
        stmt = stmt.where(WireMaterial.event_time >= _as_utc(start))
    if end is not None:
        end = _as_utc(end)
        stmt = stmt.where(
            WireMaterial.event_time < end if end_exclusive
            else WireMaterial.event_time <= end
        )
    return stmt


class WireMaterialRepository:
    def __init__(self, session_provider: SessionProvider = get_db_session) -> None:
        self._session = session_provider

    # ── Statistics ──────────────────────────────────────────────────────

    async def dimension_statistics(
        self,
        dimension: QueryDimension,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        end_exclusive: bool = False,
        scenario_code: str | None = None,
        dimension_value: str | None = None,
    ) -> list[DimensionCounts]:
        column = getattr(WireMaterial, dimension.column)
        total = func.count(WireMaterial.batch_number).label("total_count")
        failed = _count_result(FinalEvaluationResult.FAIL).label("fail_count")

        stmt = select(
            column.label("dimension_value"),
            total,
            _count_result(FinalEvaluationResult.PASS).label("pass_count"),
            failed,
            _count_result(FinalEvaluationResult.PENDING_REVIEW).label("pending_count"),
            _count_result(FinalEvaluationResult.UNKNOWN).label("unknown_count"),
            WireMaterial.contact_email,
        )
        stmt = _time_filtered(stmt, start, end, end_exclusive=end_exclusive)
        if scenario_code:
            stmt = stmt.where(WireMaterial.scenario_code == scenario_code)
        if dimension_value:
            stmt = stmt.where(column == dimension_value)
        stmt = stmt.group_by(column, WireMaterial.contact_email).order_by(
            failed.desc(), total.desc()
        )

        async with self._session() as session:
            rows = (await session.execute(stmt)).all()

        return [
            DimensionCounts(
                dimension_value=row.dimension_value,
                total=int(row.total_count or 0),
                passed=int(row.pass_count or 0),
                failed=int(row.fail_count or 0),
                pending_review=int(row.pending_count or 0),
                unknown=int(row.unknown_count or 0),
                contact_email=row.contact_email,
            )
            for row in rows
        ]

    async def overall_statistics(
        self,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        end_exclusive: bool = False,
        scenario_code: str | None = None,
    ) -> OverallCounts:
        stmt = select(
            func.count(WireMaterial.batch_number),
            _count_result(FinalEvaluationResult.PASS),
            _count_result(FinalEvaluationResult.FAIL),
        )
        stmt = _time_filtered(stmt, start, end, end_exclusive=end_exclusive)
        if scenario_code:
            stmt = stmt.where(WireMaterial.scenario_code == scenario_code)

        async with self._session() as session:
            row = (await session.execute(stmt)).one_or_none()

        if row is None:
            return OverallCounts(total=0, passed=0, failed=0)
        return OverallCounts(
            total=int(row[0] or 0), passed=int(row[1] or 0), failed=int(row[2] or 0)
        )

    # ── Overview ────────────────────────────────────────────────────────

    async def monthly_statistics(self, since: datetime) -> list[MonthlyCounts]:
        """Counts per calendar month of ``event_time``, oldest month first."""
        year = extract("year", WireMaterial.event_time).label("year")
        month = extract("month", WireMaterial.event_time).label("month")
        stmt = (
            select(
                year,
                month,
                func.count(WireMaterial.batch_number).label("total_count"),
                _count_result(FinalEvaluationResult.PASS).label("pass_count"),
                _count_result(FinalEvaluationResult.FAIL).label("fail_count"),
            )
            .where(WireMaterial.event_time >= _as_utc(since))
            .group_by(year, month)
            .order_by(year, month)
        )

        async with self._session() as session:
            rows = (await session.execute(stmt)).all()

        return [
            MonthlyCounts(
                year=int(row.year),
                month=int(row.month),
                total=int(row.total_count or 0),
                passed=int(row.pass_count or 0),
                failed=int(row.fail_count or 0),
            )
            for row in rows
        ]

    async def scenario_counts(
        self, *, start: datetime | None = None, end: datetime | None = None
    ) -> list[tuple[str, int]]:
        """``(scenario_code, batches)`` in ``[start, end)``, busiest first."""
        count = func.count(WireMaterial.batch_number).label("scenario_count")
        stmt = select(WireMaterial.scenario_code, count).where(
            WireMaterial.scenario_code.is_not(None)
        )
        stmt = _time_filtered(stmt, start, end, end_exclusive=True)
        stmt = stmt.group_by(WireMaterial.scenario_code).order_by(
            count.desc(), WireMaterial.scenario_code
        )

        async with self._session() as session:
            rows = (await session.execute(stmt)).all()
        return [(row.scenario_code, int(row.scenario_count)) for row in rows]

    async def scenarios(self) -> dict[str, ApplicationScenario]:
        async with self._session() as session:
            result = await session.execute(select(ApplicationScenario))
            return {s.scenario_code: s for s in result.scalars().all()}

    async def distinct_device_count(self) -> int:
        stmt = select(func.count(func.distinct(WireMaterial.device_id)))
        async with self._session() as session:
            return int((await session.execute(stmt)).scalar_one() or 0)

    async def failed_batches(
        self,
        dimension: QueryDimension,
        dimension_value: str,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> Sequence[WireMaterial]:
        """Failed batches of one bucket; the time filter needs both bounds."""
        column = getattr(WireMaterial, dimension.column)
        stmt = select(WireMaterial).where(
            WireMaterial.final_evaluation_result == FinalEvaluationResult.FAIL.value,
            column == dimension_value,
        )
        if start is not None and end is not None:
            stmt = _time_filtered(stmt, start, end)
        stmt = stmt.order_by(WireMaterial.event_time.desc())

        async with self._session() as session:
            return (await session.execute(stmt)).scalars().all()

    # ── CRUD ────────────────────────────────────────────────────────────

    async def get(self, batch_number: str) -> WireMaterial | None:
        async with self._session() as session:
            return await session.get(WireMaterial, batch_number)

    async def page(
        self, request: WireMaterialPageRequest
    ) -> tuple[Sequence[WireMaterial], int]:
        """Keyword filters are case-insensitive literal substrings."""
        conditions = [
            getattr(WireMaterial, col).icontains(kw, autoescape=True)
            for col, kw in request.keyword_filters().items()
        ]
        if request.scenario_code:
            conditions.append(WireMaterial.scenario_code == request.scenario_code)
        if request.device_code:
            conditions.append(WireMaterial.device_code == request.device_code)
        return await self._page(conditions, request)

    async def page_by_final_result(
        self,
        results: Iterable[FinalEvaluationResult],
        request: PageRequest,
        *,
        scenario_code: str | None = None,
    ) -> tuple[Sequence[WireMaterial], int]:
        conditions: list[ColumnElement[bool]] = [
            WireMaterial.final_evaluation_result.in_([r.value for r in results])
        ]
        if scenario_code:
            conditions.append(WireMaterial.scenario_code == scenario_code)
        return await self._page(conditions, request)

    async def _page(
        self, conditions: list[ColumnElement[bool]], request: PageRequest
    ) -> tuple[Sequence[WireMaterial], int]:
        sort_column = getattr(WireMaterial, request.sort_by)
        order = sort_column.desc() if request.descending else sort_column.asc()

        stmt = (
            select(WireMaterial)
            .where(*conditions)
            .order_by(order)
            .offset(request.page * request.size)
            .limit(request.size)
        )
        count_stmt = select(func.count()).select_from(WireMaterial).where(*conditions)

        async with self._session() as session:
            total = (await session.execute(count_stmt)).scalar_one()
            items = (await session.execute(stmt)).scalars().all()
        return items, int(total)

    async def save(self, entity: WireMaterial) -> WireMaterial:
        async with self._session() as session:
            merged = await session.merge(entity)
            await session.flush()
            return merged

    async def delete(self, batch_number: str) -> bool:
        """Delete one batch.  Returns ``False`` when it did not exist."""
        async with self._session() as session:
            entity = await session.get(WireMaterial, batch_number)
            if entity is None:
                return False
            await session.delete(entity)
            return True
