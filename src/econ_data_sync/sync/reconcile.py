"""Source-priority reconciliation between monthly and annual inflation."""

from __future__ import annotations

import enum
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from ..core.errors import StorageError
from ..models import IncomeRecord, InflationRecord
from ..storage.gateway import StorageGateway
from .cache import EntityCache

logger = logging.getLogger("econ_data_sync")

T = TypeVar("T")


class Outcome(str, enum.Enum):
    ADDED = "added"
    UPDATED = "updated"
    DUPLICATE = "duplicate"
    SUPERSEDED = "superseded"


@dataclass(slots=True, frozen=True)
class ApplyResult:
    outcome: Outcome
    deleted: int = 0


def _merge_income_values(
    incoming: IncomeRecord,
    stored: IncomeRecord,
) -> tuple[float | None, float | None, float | None]:
    return tuple(  # type: ignore[return-value]
        new if new is not None else old
        for new, old in zip(incoming.values(), stored.values())
    )


class ReconciliationEngine:
    """Applies validated records through the gateway.

    Monthly data for an entity/year always wins over the annual figure:
    writing a month removes the annual row, and an annual row is never
    written while any month of that year is stored. An annual figure from
    the high-frequency source is stored like any other row and supersedes
    nothing.
    """

    def __init__(self, gateway: StorageGateway, *, cache: EntityCache | None = None) -> None:
        self._gateway = gateway
        self._cache = cache if cache is not None else EntityCache()

    def reset_cache(self) -> None:
        self._cache.clear()

    async def _ensure_entity(self, code: str, name: str, *, high_frequency: bool) -> None:
        if self._cache.satisfies(code, high_frequency=high_frequency):
            return
        await self._gateway.ensure_entity(code, name, high_frequency=high_frequency)
        self._cache.remember(code, high_frequency=high_frequency)

    async def _write(
        self,
        record: InflationRecord | IncomeRecord,
        write: Callable[[Any], Awaitable[T]],
        *,
        high_frequency: bool,
    ) -> T:
        """Run ``write``; if the entity was deleted behind the cache, recreate it and write once more."""

        try:
            return await write(record)
        except StorageError as exc:
            if exc.cause != "integrity":
                raise
            logger.warning(
                "entity missing behind cache; recreating code=%s operation=%s",
                record.entity_code,
                exc.operation,
            )
            self._cache.forget(record.entity_code)
            await self._ensure_entity(record.entity_code, record.entity_name, high_frequency=high_frequency)
            return await write(record)

    async def apply_high_frequency(self, record: InflationRecord) -> ApplyResult:
        await self._ensure_entity(record.entity_code, record.entity_name, high_frequency=True)
        inserted = await self._write(record, self._gateway.insert_inflation, high_frequency=True)
        deleted = 0
        if not record.period.is_annual:
            deleted = await self._gateway.delete_annual_inflation(record.entity_code, record.period.year)
        if deleted:
            logger.debug(
                "annual inflation superseded code=%s year=%s rows=%s",
                record.entity_code,
                record.period.year,
                deleted,
            )
        return ApplyResult(Outcome.ADDED if inserted else Outcome.DUPLICATE, deleted=deleted)

    async def apply_low_frequency(self, record: InflationRecord) -> ApplyResult:
        if await self._gateway.has_monthly_inflation(record.entity_code, record.period.year):
            logger.debug(
                "annual inflation skipped; monthly data present code=%s year=%s",
                record.entity_code,
                record.period.year,
            )
            return ApplyResult(Outcome.SUPERSEDED)
        await self._ensure_entity(record.entity_code, record.entity_name, high_frequency=False)
        inserted = await self._write(record, self._gateway.insert_inflation, high_frequency=False)
        return ApplyResult(Outcome.ADDED if inserted else Outcome.DUPLICATE)

    async def apply_income(self, record: IncomeRecord) -> ApplyResult:
        await self._ensure_entity(record.entity_code, record.entity_name, high_frequency=False)
        stored = await self._gateway.get_income(record.entity_code, record.period.year)
        if stored is None:
            await self._write(record, self._gateway.upsert_income, high_frequency=False)
            return ApplyResult(Outcome.ADDED)
        if _merge_income_values(record, stored) == stored.values():
            return ApplyResult(Outcome.DUPLICATE)
        await self._write(record, self._gateway.upsert_income, high_frequency=False)
        return ApplyResult(Outcome.UPDATED)


__all__ = [
    "Outcome",
    "ApplyResult",
    "ReconciliationEngine",
]
