"""Incremental sync of inflation and income data into storage."""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from ..config import EconDataSyncConfig
from ..models import Granularity, Period
from ..sources.oecd import OecdInflationSource
from ..sources.worldbank import WorldBankSource
from ..storage.gateway import StorageGateway
from ..validation import ANNUAL_ONLY, ANY_GRANULARITY, partition_income, partition_inflation
from .batching import run_batched
from .cache import EntityCache
from .merge import merge_income_indicators
from .planner import annual_resume_year, current_month, monthly_resume_point, plan_windows
from .reconcile import ApplyResult, Outcome, ReconciliationEngine
from .summary import AllSyncSummary, DatasetSyncSummary, SyncSummary, WipeResult

logger = logging.getLogger("econ_data_sync")

T = TypeVar("T")

_OUTCOME_COUNTERS = {
    Outcome.ADDED: "added",
    Outcome.UPDATED: "updated",
    Outcome.DUPLICATE: "duplicates",
    Outcome.SUPERSEDED: "superseded",
}


class SyncOrchestrator:
    """Drives source fetches, validation and reconciliation.

    Fetch windows run strictly one after another. Within a window, records
    are written in concurrent batches where one failing record is counted
    and logged without touching its siblings. Source, decode and schema
    failures propagate; windows already written stay committed.
    """

    def __init__(
        self,
        config: EconDataSyncConfig,
        *,
        gateway: StorageGateway,
        oecd: OecdInflationSource,
        worldbank: WorldBankSource,
        engine: ReconciliationEngine | None = None,
        today: Callable[[], dt.date] | None = None,
    ) -> None:
        self._config = config
        self._gateway = gateway
        self._oecd = oecd
        self._worldbank = worldbank
        self._engine = engine or ReconciliationEngine(
            gateway,
            cache=EntityCache(config.sync.entity_cache_size),
        )
        self._today = today or dt.date.today

    async def sync_high_frequency_inflation(self) -> SyncSummary:
        sync = self._config.sync
        latest = await self._gateway.latest_inflation_period(Granularity.MONTHLY)
        start = monthly_resume_point(latest, epoch=Period.parse(sync.monthly_epoch))
        windows = plan_windows(start, until=current_month(self._today()), window_size=sync.window_size)
        logger.info(
            "high-frequency sync start source=%s latest=%s resume=%s windows=%s",
            self._oecd.name,
            latest,
            start,
            len(windows),
        )

        summary = SyncSummary(source=self._oecd.name)
        entities: set[str] = set()
        for window in windows:
            batch = await self._oecd.fetch_window(window.start, window.end)
            summary.read += len(batch)
            summary.omitted += batch.omitted
            validated = partition_inflation(batch.records, accept=ANY_GRANULARITY, source=self._oecd.name)
            summary.errors += len(validated.rejected)
            await self._apply(
                validated.accepted,
                self._engine.apply_high_frequency,
                summary=summary,
                entities=entities,
            )
            logger.info(
                "window done index=%s start=%s end=%s records=%s added=%s deleted=%s errors=%s",
                window.index + 1,
                window.start,
                window.end,
                len(batch),
                summary.added,
                summary.deleted,
                summary.errors,
            )

        summary.entity_codes = frozenset(entities)
        logger.info("high-frequency sync done %s", summary.describe())
        return summary

    async def sync_low_frequency_inflation(self) -> SyncSummary:
        sources = self._config.sources
        latest = await self._gateway.latest_inflation_period(Granularity.ANNUAL)
        resume_year = annual_resume_year(
            latest.year if latest is not None else None,
            epoch_year=int(self._config.sync.annual_epoch),
        )
        logger.info(
            "low-frequency sync start source=%s latest=%s resume_year=%s",
            self._worldbank.name,
            latest,
            resume_year,
        )

        summary = SyncSummary(source=self._worldbank.name)
        batch = await self._worldbank.fetch_indicator(
            sources.worldbank_inflation_indicator,
            min_year=resume_year,
        )
        summary.read += len(batch)
        summary.omitted += batch.omitted
        validated = partition_inflation(batch.records, accept=ANNUAL_ONLY, source=self._worldbank.name)
        summary.errors += len(validated.rejected)
        entities: set[str] = set()
        await self._apply(
            validated.accepted,
            self._engine.apply_low_frequency,
            summary=summary,
            entities=entities,
        )
        summary.entity_codes = frozenset(entities)
        logger.info("low-frequency sync done %s", summary.describe())
        return summary

    async def sync_inflation(self) -> DatasetSyncSummary:
        high = await self.sync_high_frequency_inflation()
        low = await self.sync_low_frequency_inflation()
        return DatasetSyncSummary(dataset="inflation", sources=(high, low))

    async def sync_income(self) -> DatasetSyncSummary:
        sources = self._config.sources
        latest = await self._gateway.latest_income_year()
        resume_year = annual_resume_year(latest, epoch_year=int(self._config.sync.annual_epoch))
        logger.info("income sync start latest=%s resume_year=%s", latest, resume_year)

        batches = []
        for indicator in (
            sources.worldbank_ppp_indicator,
            sources.worldbank_lcu_indicator,
            sources.worldbank_growth_indicator,
        ):
            batches.append(await self._worldbank.fetch_indicator(indicator, min_year=resume_year))

        summary = SyncSummary(source=f"{self._worldbank.name}-income")
        summary.read = sum(len(batch) for batch in batches)
        summary.omitted = sum(batch.omitted for batch in batches)
        merged = merge_income_indicators(*batches)
        validated = partition_income(merged, source=summary.source)
        summary.errors += len(validated.rejected)
        entities: set[str] = set()
        await self._apply(
            validated.accepted,
            self._engine.apply_income,
            summary=summary,
            entities=entities,
        )
        summary.entity_codes = frozenset(entities)
        logger.info("income sync done merged=%s %s", len(merged), summary.describe())
        return DatasetSyncSummary(dataset="income", sources=(summary,))

    async def sync_all(self) -> AllSyncSummary:
        inflation = await self.sync_inflation()
        income = await self.sync_income()
        return AllSyncSummary(inflation=inflation, income=income)

    async def delete_inflation(self) -> WipeResult:
        return WipeResult(inflation=await self._gateway.wipe_inflation())

    async def delete_income(self) -> WipeResult:
        return WipeResult(income=await self._gateway.wipe_income())

    async def delete_all(self) -> WipeResult:
        inflation = await self._gateway.wipe_inflation()
        income = await self._gateway.wipe_income()
        entities = await self._gateway.wipe_entities()
        self._engine.reset_cache()
        return WipeResult(inflation=inflation, income=income, entities=entities)

    async def resync_inflation(self) -> DatasetSyncSummary:
        wiped = await self.delete_inflation()
        logger.info("inflation wiped before resync %s", wiped.describe())
        return await self.sync_inflation()

    async def resync_income(self) -> DatasetSyncSummary:
        wiped = await self.delete_income()
        logger.info("income wiped before resync %s", wiped.describe())
        return await self.sync_income()

    async def resync_all(self) -> AllSyncSummary:
        wiped = await self.delete_all()
        logger.info("all data wiped before resync %s", wiped.describe())
        return await self.sync_all()

    async def _apply(
        self,
        records: Sequence[T],
        apply: Callable[[T], Awaitable[ApplyResult]],
        *,
        summary: SyncSummary,
        entities: set[str],
    ) -> None:
        for record, result in await run_batched(records, apply, batch_size=self._config.sync.batch_size):
            if isinstance(result, Exception):
                summary.errors += 1
                logger.error(
                    "record write failed source=%s code=%s period=%s error=%s",
                    summary.source,
                    getattr(record, "entity_code", None),
                    getattr(record, "period", None),
                    result,
                )
                continue
            counter = _OUTCOME_COUNTERS[result.outcome]
            setattr(summary, counter, getattr(summary, counter) + 1)
            summary.deleted += result.deleted
            entities.add(getattr(record, "entity_code"))


__all__ = [
    "SyncOrchestrator",
]
