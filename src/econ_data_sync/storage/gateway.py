"""Storage gateway: every database read and write goes through here."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

from sqlalchemy import case, delete, func, or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from ..config import StorageConfig
from ..core.errors import ConfigurationError, ErrorDetail, StorageError
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
from .engine import build_engine
from .schema import entities_table, income_table, inflation_table, metadata

logger = logging.getLogger("econ_data_sync")

T = TypeVar("T")

_INSERT_BY_DIALECT = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}

_INFLATION_SORT_COLUMNS = {
    SortKey.ENTITY: inflation_table.c.entity_code,
    SortKey.PERIOD: inflation_table.c.period_start,
    SortKey.INFLATION: inflation_table.c.value,
}

_INCOME_SORT_COLUMNS = {
    SortKey.ENTITY: income_table.c.entity_code,
    SortKey.PERIOD: income_table.c.period_start,
    SortKey.PPP: income_table.c.ppp_value,
    SortKey.LCU: income_table.c.lcu_value,
    SortKey.GROWTH: income_table.c.growth_rate,
}


def _order_clause(column: Any, order: SortOrder) -> Any:
    # NULL ranks lowest in both directions.
    if order is SortOrder.DESC:
        return column.desc().nulls_last()
    return column.asc().nulls_first()


def _apply_filter(stmt: Any, table: Any, flt: ObservationFilter) -> Any:
    if flt.entity_codes:
        stmt = stmt.where(table.c.entity_code.in_(flt.entity_codes))
    if flt.start_index is not None:
        stmt = stmt.where(table.c.period_start >= flt.start_index)
    if flt.end_index is not None:
        stmt = stmt.where(table.c.period_start <= flt.end_index)
    return stmt


def _apply_paging(stmt: Any, flt: ObservationFilter) -> Any:
    if flt.offset:
        stmt = stmt.offset(flt.offset)
    if flt.limit is not None:
        stmt = stmt.limit(flt.limit)
    return stmt


class StorageGateway:
    """Async gateway over a SQLAlchemy engine (SQLite or PostgreSQL)."""

    def __init__(
        self,
        engine: AsyncEngine,
        config: StorageConfig | None = None,
        *,
        sleeper: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self._engine = engine
        self._config = config or StorageConfig()
        self._sleep = sleeper or asyncio.sleep
        dialect = engine.dialect.name
        try:
            self._insert = _INSERT_BY_DIALECT[dialect]
        except KeyError as exc:
            raise ConfigurationError(f"unsupported storage dialect: {dialect}", kind="config") from exc
        # SQLite allows a single writer at a time.
        self._write_lock: asyncio.Lock | None = asyncio.Lock() if dialect == "sqlite" else None

    @classmethod
    def from_config(
        cls,
        config: StorageConfig,
        *,
        sleeper: Callable[[float], Awaitable[None]] | None = None,
    ) -> "StorageGateway":
        return cls(build_engine(config), config, sleeper=sleeper)

    @property
    def dialect(self) -> str:
        return self._engine.dialect.name

    def _serialized(self) -> Any:
        if self._write_lock is None:
            return contextlib.nullcontext()
        return self._write_lock

    async def retryable_exec(
        self,
        operation: str,
        fn: Callable[[AsyncConnection], Awaitable[T]],
    ) -> T:
        """Run ``fn`` in its own transaction, retrying with a fixed delay.

        Every failed attempt is recorded as an :class:`ErrorDetail`; when the
        attempts run out a :class:`StorageError` carrying all of them is raised.
        """

        max_attempts = self._config.max_attempts
        details: list[ErrorDetail] = []
        attempt = 0
        while True:
            attempt += 1
            try:
                async with self._serialized():
                    async with self._engine.begin() as conn:
                        return await fn(conn)
            except Exception as exc:
                details.append(ErrorDetail.from_exception(exc))
                # A constraint violation fails the same way on every attempt.
                integrity = isinstance(exc, IntegrityError)
                if integrity or attempt >= max_attempts:
                    logger.error(
                        "storage operation failed; giving up operation=%s attempts=%s error=%s",
                        operation,
                        attempt,
                        exc.__class__.__name__,
                    )
                    raise StorageError(
                        f"storage operation {operation} failed after {attempt} attempts",
                        operation=operation,
                        attempts=attempt,
                        details=tuple(details),
                        cause="integrity" if integrity else "storage",
                    ) from exc
                logger.warning(
                    "storage operation failed; retrying operation=%s attempt=%s delay=%.1fs error=%s",
                    operation,
                    attempt,
                    self._config.retry_delay_seconds,
                    exc.__class__.__name__,
                )
                await self._sleep(self._config.retry_delay_seconds)

    async def create_schema(self) -> None:
        async def run(conn: AsyncConnection) -> None:
            await conn.run_sync(metadata.create_all)

        await self.retryable_exec("create_schema", run)

    async def dispose(self) -> None:
        await self._engine.dispose()

    async def ensure_entity(self, code: str, name: str, *, high_frequency: bool) -> None:
        """Create the entity if missing; the flag only ever moves false -> true.

        A stored name equal to the code (no display name known at the time)
        is replaced by the incoming one.
        """

        stmt = self._insert(entities_table).values(
            code=code,
            name=name,
            has_high_frequency_source=high_frequency,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[entities_table.c.code],
            set_={
                "has_high_frequency_source": or_(
                    entities_table.c.has_high_frequency_source,
                    stmt.excluded.has_high_frequency_source,
                ),
                "name": case(
                    (entities_table.c.name == entities_table.c.code, stmt.excluded.name),
                    else_=entities_table.c.name,
                ),
            },
        )

        async def run(conn: AsyncConnection) -> None:
            await conn.execute(stmt)

        await self.retryable_exec("ensure_entity", run)

    async def insert_inflation(self, record: InflationRecord) -> bool:
        """Insert one observation; ``False`` when (entity, period) already exists."""

        period = record.period
        stmt = self._insert(inflation_table).values(
            entity_code=record.entity_code,
            period=str(period),
            granularity=period.granularity.value,
            year=period.year,
            period_start=period.start_index,
            value=record.value,
        )
        stmt = stmt.on_conflict_do_nothing(
            index_elements=[inflation_table.c.entity_code, inflation_table.c.period],
        )

        async def run(conn: AsyncConnection) -> bool:
            result = await conn.execute(stmt)
            return result.rowcount == 1

        return await self.retryable_exec("insert_inflation", run)

    async def upsert_income(self, record: IncomeRecord) -> None:
        """Insert or merge; an absent incoming field keeps the stored value."""

        period = record.period
        stmt = self._insert(income_table).values(
            entity_code=record.entity_code,
            period=str(period),
            year=period.year,
            period_start=period.start_index,
            ppp_value=record.ppp_value,
            lcu_value=record.lcu_value,
            growth_rate=record.growth_rate,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[income_table.c.entity_code, income_table.c.period],
            set_={
                name: func.coalesce(getattr(stmt.excluded, name), income_table.c[name])
                for name in ("ppp_value", "lcu_value", "growth_rate")
            },
        )

        async def run(conn: AsyncConnection) -> None:
            await conn.execute(stmt)

        await self.retryable_exec("upsert_income", run)

    async def get_income(self, code: str, year: int) -> IncomeRecord | None:
        stmt = (
            select(
                income_table.c.entity_code,
                entities_table.c.name,
                income_table.c.ppp_value,
                income_table.c.lcu_value,
                income_table.c.growth_rate,
            )
            .join(entities_table, entities_table.c.code == income_table.c.entity_code)
            .where(income_table.c.entity_code == code, income_table.c.year == year)
        )

        async def run(conn: AsyncConnection) -> IncomeRecord | None:
            row = (await conn.execute(stmt)).first()
            if row is None:
                return None
            return IncomeRecord(
                entity_code=row.entity_code,
                entity_name=row.name,
                period=Period.annual(year),
                ppp_value=row.ppp_value,
                lcu_value=row.lcu_value,
                growth_rate=row.growth_rate,
            )

        return await self.retryable_exec("get_income", run)

    async def get_inflation(self, code: str, period: Period) -> float | None:
        stmt = select(inflation_table.c.value).where(
            inflation_table.c.entity_code == code,
            inflation_table.c.period == str(period),
        )

        async def run(conn: AsyncConnection) -> float | None:
            return (await conn.execute(stmt)).scalar_one_or_none()

        return await self.retryable_exec("get_inflation", run)

    async def has_monthly_inflation(self, code: str, year: int) -> bool:
        stmt = (
            select(inflation_table.c.id)
            .where(
                inflation_table.c.entity_code == code,
                inflation_table.c.year == year,
                inflation_table.c.granularity == Granularity.MONTHLY.value,
            )
            .limit(1)
        )

        async def run(conn: AsyncConnection) -> bool:
            return (await conn.execute(stmt)).first() is not None

        return await self.retryable_exec("has_monthly_inflation", run)

    async def delete_annual_inflation(self, code: str, year: int) -> int:
        stmt = delete(inflation_table).where(
            inflation_table.c.entity_code == code,
            inflation_table.c.year == year,
            inflation_table.c.granularity == Granularity.ANNUAL.value,
        )

        async def run(conn: AsyncConnection) -> int:
            return (await conn.execute(stmt)).rowcount

        return await self.retryable_exec("delete_annual_inflation", run)

    async def latest_inflation_period(self, granularity: Granularity) -> Period | None:
        stmt = (
            select(inflation_table.c.period)
            .where(inflation_table.c.granularity == Granularity(granularity).value)
            .order_by(inflation_table.c.period_start.desc())
            .limit(1)
        )

        async def run(conn: AsyncConnection) -> Period | None:
            value = (await conn.execute(stmt)).scalar_one_or_none()
            return None if value is None else Period.parse(value)

        return await self.retryable_exec("latest_inflation_period", run)

    async def latest_income_year(self) -> int | None:
        stmt = select(func.max(income_table.c.year))

        async def run(conn: AsyncConnection) -> int | None:
            return (await conn.execute(stmt)).scalar_one_or_none()

        return await self.retryable_exec("latest_income_year", run)

    async def select_inflation(
        self,
        flt: ObservationFilter | None = None,
        *,
        granularity: Granularity | None = None,
    ) -> list[InflationRecord]:
        flt = flt or ObservationFilter()
        stmt = select(
            inflation_table.c.entity_code,
            entities_table.c.name,
            inflation_table.c.period,
            inflation_table.c.value,
        ).join(entities_table, entities_table.c.code == inflation_table.c.entity_code)
        stmt = _apply_filter(stmt, inflation_table, flt)
        if granularity is not None:
            stmt = stmt.where(inflation_table.c.granularity == Granularity(granularity).value)
        primary = _INFLATION_SORT_COLUMNS.get(flt.sort_by, inflation_table.c.entity_code)
        stmt = stmt.order_by(
            _order_clause(primary, flt.sort_order),
            inflation_table.c.entity_code,
            inflation_table.c.period_start,
            inflation_table.c.granularity,
        )
        stmt = _apply_paging(stmt, flt)

        async def run(conn: AsyncConnection) -> list[InflationRecord]:
            rows = (await conn.execute(stmt)).all()
            return [
                InflationRecord(
                    entity_code=row.entity_code,
                    entity_name=row.name,
                    period=Period.parse(row.period),
                    value=row.value,
                )
                for row in rows
            ]

        return await self.retryable_exec("select_inflation", run)

    async def select_income(self, flt: ObservationFilter | None = None) -> list[IncomeRecord]:
        flt = flt or ObservationFilter()
        stmt = select(
            income_table.c.entity_code,
            entities_table.c.name,
            income_table.c.period,
            income_table.c.ppp_value,
            income_table.c.lcu_value,
            income_table.c.growth_rate,
        ).join(entities_table, entities_table.c.code == income_table.c.entity_code)
        stmt = _apply_filter(stmt, income_table, flt)
        primary = _INCOME_SORT_COLUMNS.get(flt.sort_by, income_table.c.entity_code)
        stmt = stmt.order_by(
            _order_clause(primary, flt.sort_order),
            income_table.c.entity_code,
            income_table.c.period_start,
        )
        stmt = _apply_paging(stmt, flt)

        async def run(conn: AsyncConnection) -> list[IncomeRecord]:
            rows = (await conn.execute(stmt)).all()
            return [
                IncomeRecord(
                    entity_code=row.entity_code,
                    entity_name=row.name,
                    period=Period.parse(row.period),
                    ppp_value=row.ppp_value,
                    lcu_value=row.lcu_value,
                    growth_rate=row.growth_rate,
                )
                for row in rows
            ]

        return await self.retryable_exec("select_income", run)

    async def list_entities(self, codes: Sequence[str] = ()) -> list[Entity]:
        stmt = select(
            entities_table.c.code,
            entities_table.c.name,
            entities_table.c.has_high_frequency_source,
        ).order_by(entities_table.c.code)
        if codes:
            stmt = stmt.where(entities_table.c.code.in_(tuple(codes)))

        async def run(conn: AsyncConnection) -> list[Entity]:
            return [
                Entity(
                    code=row.code,
                    name=row.name,
                    has_high_frequency_source=bool(row.has_high_frequency_source),
                )
                for row in (await conn.execute(stmt)).all()
            ]

        return await self.retryable_exec("list_entities", run)

    async def inflation_years(self) -> list[int]:
        stmt = select(inflation_table.c.year).distinct()

        async def run(conn: AsyncConnection) -> list[int]:
            return list((await conn.execute(stmt)).scalars())

        return await self.retryable_exec("inflation_years", run)

    async def income_years(self) -> list[int]:
        stmt = select(income_table.c.year).distinct()

        async def run(conn: AsyncConnection) -> list[int]:
            return list((await conn.execute(stmt)).scalars())

        return await self.retryable_exec("income_years", run)

    async def inflation_months(self, year: int) -> list[str]:
        stmt = (
            select(inflation_table.c.period)
            .where(
                inflation_table.c.year == year,
                inflation_table.c.granularity == Granularity.MONTHLY.value,
            )
            .distinct()
            .order_by(inflation_table.c.period)
        )

        async def run(conn: AsyncConnection) -> list[str]:
            return list((await conn.execute(stmt)).scalars())

        return await self.retryable_exec("inflation_months", run)

    async def value_bounds(self) -> dict[str, tuple[float | None, float | None]]:
        """Global ``(min, max)`` per stored metric."""

        columns = {
            "inflation": inflation_table.c.value,
            "ppp": income_table.c.ppp_value,
            "lcu": income_table.c.lcu_value,
            "growth": income_table.c.growth_rate,
        }

        async def run(conn: AsyncConnection) -> dict[str, tuple[float | None, float | None]]:
            bounds: dict[str, tuple[float | None, float | None]] = {}
            for key, column in columns.items():
                row = (await conn.execute(select(func.min(column), func.max(column)))).one()
                bounds[key] = (row[0], row[1])
            return bounds

        return await self.retryable_exec("value_bounds", run)

    async def wipe_inflation(self) -> int:
        return await self._wipe("wipe_inflation", inflation_table)

    async def wipe_income(self) -> int:
        return await self._wipe("wipe_income", income_table)

    async def wipe_entities(self) -> int:
        """Delete all entities; observations referencing them must be gone first."""

        return await self._wipe("wipe_entities", entities_table)

    async def _wipe(self, operation: str, table: Any) -> int:
        async def run(conn: AsyncConnection) -> int:
            return (await conn.execute(delete(table))).rowcount

        deleted = await self.retryable_exec(operation, run)
        logger.info("storage wipe table=%s rows=%s", table.name, deleted)
        return deleted


__all__ = [
    "StorageGateway",
]
