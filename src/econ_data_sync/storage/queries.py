"""Read-side queries over stored observations."""

from __future__ import annotations

import enum
from collections import defaultdict
from dataclasses import dataclass, replace
from statistics import fmean

from ..models import (
    Entity,
    Granularity,
    IncomeRecord,
    InflationRecord,
    ObservationFilter,
    Period,
    SortKey,
    SortOrder,
)
from .gateway import StorageGateway


class RankingMetric(str, enum.Enum):
    INFLATION = "inflation"
    PPP = "ppp"
    LCU = "lcu"
    GROWTH = "growth"


@dataclass(slots=True, frozen=True)
class CombinedRow:
    """One entity/period with inflation and that year's income side by side."""

    entity_code: str
    entity_name: str
    period: Period
    inflation: float | None = None
    ppp_value: float | None = None
    lcu_value: float | None = None
    growth_rate: float | None = None

    def metric(self, metric: RankingMetric) -> float | None:
        return {
            RankingMetric.INFLATION: self.inflation,
            RankingMetric.PPP: self.ppp_value,
            RankingMetric.LCU: self.lcu_value,
            RankingMetric.GROWTH: self.growth_rate,
        }[metric]


@dataclass(slots=True, frozen=True)
class RankingEntry:
    rank: int
    entity_code: str
    entity_name: str
    value: float


@dataclass(slots=True, frozen=True)
class ValueRange:
    minimum: float | None
    maximum: float | None


_SORT_METRICS = {
    SortKey.INFLATION: RankingMetric.INFLATION,
    SortKey.PPP: RankingMetric.PPP,
    SortKey.LCU: RankingMetric.LCU,
    SortKey.GROWTH: RankingMetric.GROWTH,
}


def _sort_rows(rows: list[CombinedRow], sort_by: SortKey, order: SortOrder) -> list[CombinedRow]:
    rows = sorted(rows, key=lambda r: (r.entity_code, r.period))
    if sort_by is SortKey.ENTITY:
        return sorted(rows, key=lambda r: r.entity_code, reverse=order is SortOrder.DESC)
    if sort_by is SortKey.PERIOD:
        return sorted(rows, key=lambda r: r.period, reverse=order is SortOrder.DESC)
    metric = _SORT_METRICS[sort_by]

    def key(row: CombinedRow) -> tuple[bool, float]:
        value = row.metric(metric)
        # None sorts lowest.
        return (value is not None, value if value is not None else 0.0)

    return sorted(rows, key=key, reverse=order is SortOrder.DESC)


def combine_rows(
    inflation: list[InflationRecord],
    income: list[IncomeRecord],
) -> list[CombinedRow]:
    """Attach each inflation row to its year's income; keep income-only years."""

    income_by_key = {(r.entity_code, r.period.year): r for r in income}
    covered: set[tuple[str, int]] = set()
    rows: list[CombinedRow] = []
    for record in inflation:
        key = (record.entity_code, record.period.year)
        covered.add(key)
        match = income_by_key.get(key)
        rows.append(
            CombinedRow(
                entity_code=record.entity_code,
                entity_name=record.entity_name,
                period=record.period,
                inflation=record.value,
                ppp_value=match.ppp_value if match else None,
                lcu_value=match.lcu_value if match else None,
                growth_rate=match.growth_rate if match else None,
            )
        )
    for key, record in income_by_key.items():
        if key in covered:
            continue
        rows.append(
            CombinedRow(
                entity_code=record.entity_code,
                entity_name=record.entity_name,
                period=record.period,
                ppp_value=record.ppp_value,
                lcu_value=record.lcu_value,
                growth_rate=record.growth_rate,
            )
        )
    return rows


class ReadQueries:
    """Queries backing the dashboard: series, rankings, tables and bounds."""

    def __init__(self, gateway: StorageGateway) -> None:
        self._gateway = gateway

    async def get_all_entities(self) -> list[Entity]:
        return await self._gateway.list_entities()

    async def get_time_series(self, code: str) -> list[CombinedRow]:
        flt = ObservationFilter(entity_codes=(code,))
        inflation = await self._gateway.select_inflation(flt)
        income = await self._gateway.select_income(flt)
        return sorted(combine_rows(inflation, income), key=lambda r: r.period)

    async def get_combined_view(self, flt: ObservationFilter) -> list[CombinedRow]:
        flt.validate()
        rows = _sort_rows(await self._combined(flt), flt.sort_by, flt.sort_order)
        end = None if flt.limit is None else flt.offset + flt.limit
        return rows[flt.offset:end]

    async def count_combined_view(self, flt: ObservationFilter) -> int:
        flt.validate()
        return len(await self._combined(flt))

    async def _combined(self, flt: ObservationFilter) -> list[CombinedRow]:
        unpaged = replace(flt, offset=0, limit=None, sort_by=SortKey.ENTITY, sort_order=SortOrder.ASC)
        inflation = await self._gateway.select_inflation(unpaged)
        income = await self._gateway.select_income(unpaged)
        return combine_rows(inflation, income)

    async def get_ranking(
        self,
        period: Period,
        metric: RankingMetric = RankingMetric.INFLATION,
        order: SortOrder = SortOrder.DESC,
        limit: int | None = None,
    ) -> list[RankingEntry]:
        """Rank entities by ``metric`` for ``period``.

        Income metrics are annual; a monthly period ranks its year. For an
        annual inflation ranking, entities with only monthly data are ranked
        on the mean of that year's months.
        """

        values = await self._metric_values(period, RankingMetric(metric))
        ordered = sorted(values, key=lambda item: item[0])
        ordered = sorted(ordered, key=lambda item: item[2], reverse=order is SortOrder.DESC)
        entries = [
            RankingEntry(rank=index, entity_code=code, entity_name=name, value=value)
            for index, (code, name, value) in enumerate(ordered, start=1)
        ]
        return entries if limit is None else entries[:limit]

    async def get_entity_rank(
        self,
        code: str,
        period: Period,
        metric: RankingMetric = RankingMetric.INFLATION,
    ) -> RankingEntry | None:
        for entry in await self.get_ranking(period, metric):
            if entry.entity_code == code:
                return entry
        return None

    async def get_available_periods(self) -> list[int]:
        years = set(await self._gateway.inflation_years())
        years.update(await self._gateway.income_years())
        return sorted(years, reverse=True)

    async def get_available_months(self, year: int) -> list[str]:
        return await self._gateway.inflation_months(year)

    async def get_year_snapshot(self, year: int) -> list[CombinedRow]:
        """One row per entity for ``year``: yearly inflation plus income."""

        annual = Period.annual(year)
        inflation = await self._yearly_inflation(year)
        income = await self._gateway.select_income(ObservationFilter(start=annual, end=annual))
        income_by_code = {r.entity_code: r for r in income}
        names = {code: name for code, (name, _) in inflation.items()}
        names.update({r.entity_code: r.entity_name for r in income})
        rows = []
        for code in sorted(names):
            match = income_by_code.get(code)
            rows.append(
                CombinedRow(
                    entity_code=code,
                    entity_name=names[code],
                    period=annual,
                    inflation=inflation[code][1] if code in inflation else None,
                    ppp_value=match.ppp_value if match else None,
                    lcu_value=match.lcu_value if match else None,
                    growth_rate=match.growth_rate if match else None,
                )
            )
        return rows

    async def get_value_bounds(self) -> dict[RankingMetric, ValueRange]:
        bounds = await self._gateway.value_bounds()
        return {
            metric: ValueRange(*bounds.get(metric.value, (None, None)))
            for metric in RankingMetric
        }

    async def _metric_values(
        self,
        period: Period,
        metric: RankingMetric,
    ) -> list[tuple[str, str, float]]:
        if metric is RankingMetric.INFLATION:
            if period.is_annual:
                yearly = await self._yearly_inflation(period.year)
                return [(code, name, value) for code, (name, value) in yearly.items()]
            records = await self._gateway.select_inflation(
                ObservationFilter(start=period, end=period),
                granularity=Granularity.MONTHLY,
            )
            return [(r.entity_code, r.entity_name, r.value) for r in records]

        annual = period.to_annual()
        income = await self._gateway.select_income(ObservationFilter(start=annual, end=annual))
        values = []
        for record in income:
            value = CombinedRow(
                entity_code=record.entity_code,
                entity_name=record.entity_name,
                period=annual,
                ppp_value=record.ppp_value,
                lcu_value=record.lcu_value,
                growth_rate=record.growth_rate,
            ).metric(metric)
            if value is not None:
                values.append((record.entity_code, record.entity_name, value))
        return values

    async def _yearly_inflation(self, year: int) -> dict[str, tuple[str, float]]:
        annual = Period.annual(year)
        records = await self._gateway.select_inflation(ObservationFilter(start=annual, end=annual))
        yearly: dict[str, tuple[str, float]] = {}
        months: dict[str, list[float]] = defaultdict(list)
        names: dict[str, str] = {}
        for record in records:
            names[record.entity_code] = record.entity_name
            if record.period.is_annual:
                yearly[record.entity_code] = (record.entity_name, record.value)
            else:
                months[record.entity_code].append(record.value)
        # Monthly data supersedes annual, so the two never coexist for a year.
        for code, values in months.items():
            yearly.setdefault(code, (names[code], fmean(values)))
        return yearly


__all__ = [
    "RankingMetric",
    "CombinedRow",
    "RankingEntry",
    "ValueRange",
    "combine_rows",
    "ReadQueries",
]
