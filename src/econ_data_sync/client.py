"""Public async entrypoint."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from types import TracebackType
from typing import Union

from .admin import AdminAction, AdminResult, Dataset, verify_admin_secret
from .client_shared import (
    build_gateway,
    build_oecd_transport,
    build_worldbank_transport,
    validate_config,
)
from .config import EconDataSyncConfig
from .core.errors import ClientClosedError, EconDataError
from .core.transport import AsyncTransport
from .models import Entity, ObservationFilter, Period, SortOrder
from .sources.oecd import OecdInflationSource
from .sources.worldbank import WorldBankSource
from .storage.gateway import StorageGateway
from .storage.queries import CombinedRow, RankingEntry, RankingMetric, ReadQueries, ValueRange
from .sync.orchestrator import SyncOrchestrator
from .sync.summary import AllSyncSummary, DatasetSyncSummary, SyncSummary, WipeResult

logger = logging.getLogger("econ_data_sync")

AdminOutcome = Union[WipeResult, DatasetSyncSummary, AllSyncSummary]


class _GuardedReadQueries:
    """Guard wrapper to block reads after the facade is closed."""

    def __init__(self, owner: "EconDataSync", delegate: ReadQueries) -> None:
        self._owner = owner
        self._delegate = delegate

    async def get_all_entities(self) -> list[Entity]:
        await self._owner._ready()
        return await self._delegate.get_all_entities()

    async def get_time_series(self, code: str) -> list[CombinedRow]:
        await self._owner._ready()
        return await self._delegate.get_time_series(code)

    async def get_ranking(
        self,
        period: Period,
        metric: RankingMetric = RankingMetric.INFLATION,
        order: SortOrder = SortOrder.DESC,
        limit: int | None = None,
    ) -> list[RankingEntry]:
        await self._owner._ready()
        return await self._delegate.get_ranking(period, metric, order, limit)

    async def get_entity_rank(
        self,
        code: str,
        period: Period,
        metric: RankingMetric = RankingMetric.INFLATION,
    ) -> RankingEntry | None:
        await self._owner._ready()
        return await self._delegate.get_entity_rank(code, period, metric)

    async def get_combined_view(self, flt: ObservationFilter) -> list[CombinedRow]:
        await self._owner._ready()
        return await self._delegate.get_combined_view(flt)

    async def count_combined_view(self, flt: ObservationFilter) -> int:
        await self._owner._ready()
        return await self._delegate.count_combined_view(flt)

    async def get_available_periods(self) -> list[int]:
        await self._owner._ready()
        return await self._delegate.get_available_periods()

    async def get_available_months(self, year: int) -> list[str]:
        await self._owner._ready()
        return await self._delegate.get_available_months(year)

    async def get_year_snapshot(self, year: int) -> list[CombinedRow]:
        await self._owner._ready()
        return await self._delegate.get_year_snapshot(year)

    async def get_value_bounds(self) -> dict[RankingMetric, ValueRange]:
        await self._owner._ready()
        return await self._delegate.get_value_bounds()


def _admin_result(action: AdminAction, dataset: Dataset, outcome: AdminOutcome) -> AdminResult:
    if isinstance(outcome, WipeResult):
        return AdminResult(
            success=True,
            message=f"deleted {dataset.value} data: {outcome.describe()}",
            details={
                "inflation_deleted": outcome.inflation,
                "income_deleted": outcome.income,
                "entities_deleted": outcome.entities,
            },
        )
    total: SyncSummary = outcome.total
    verb = "updated" if action is AdminAction.UPDATE else "re-imported"
    return AdminResult(
        success=True,
        message=f"{verb} {dataset.value} data: added={total.added} updated={total.updated} errors={total.errors}",
        details={
            "read": total.read,
            "added": total.added,
            "updated": total.updated,
            "duplicates": total.duplicates,
            "superseded": total.superseded,
            "deleted": total.deleted,
            "errors": total.errors,
        },
    )


class EconDataSync:
    """Async facade over storage, sync runs, read queries and admin actions."""

    def __init__(
        self,
        *,
        config: EconDataSyncConfig | None = None,
        gateway: StorageGateway | None = None,
        oecd_transport: AsyncTransport | None = None,
        worldbank_transport: AsyncTransport | None = None,
        orchestrator: SyncOrchestrator | None = None,
    ) -> None:
        self._config = config or EconDataSyncConfig()
        validate_config(self._config)

        self._owns_gateway = gateway is None
        self._gateway = gateway or build_gateway(self._config)
        self._oecd_transport = oecd_transport or build_oecd_transport(self._config)
        self._worldbank_transport = worldbank_transport or build_worldbank_transport(self._config)
        self._orchestrator = orchestrator or SyncOrchestrator(
            self._config,
            gateway=self._gateway,
            oecd=OecdInflationSource(self._oecd_transport, self._config.sources),
            worldbank=WorldBankSource(self._worldbank_transport),
        )
        self._closed = False
        self._schema_ready = False
        self.queries = _GuardedReadQueries(self, ReadQueries(self._gateway))

    def _ensure_open(self) -> None:
        if self._closed:
            raise ClientClosedError("EconDataSync is already closed", kind="closed")

    async def _ready(self) -> None:
        self._ensure_open()
        if not self._schema_ready:
            await self._gateway.create_schema()
            self._schema_ready = True

    async def create_schema(self) -> None:
        self._schema_ready = False
        await self._ready()

    async def sync_high_frequency_inflation(self) -> SyncSummary:
        await self._ready()
        return await self._orchestrator.sync_high_frequency_inflation()

    async def sync_low_frequency_inflation(self) -> SyncSummary:
        await self._ready()
        return await self._orchestrator.sync_low_frequency_inflation()

    async def sync_inflation(self) -> DatasetSyncSummary:
        await self._ready()
        return await self._orchestrator.sync_inflation()

    async def sync_income(self) -> DatasetSyncSummary:
        await self._ready()
        return await self._orchestrator.sync_income()

    async def sync_all(self) -> AllSyncSummary:
        await self._ready()
        return await self._orchestrator.sync_all()

    async def resync_inflation(self) -> DatasetSyncSummary:
        await self._ready()
        return await self._orchestrator.resync_inflation()

    async def resync_income(self) -> DatasetSyncSummary:
        await self._ready()
        return await self._orchestrator.resync_income()

    async def resync_all(self) -> AllSyncSummary:
        await self._ready()
        return await self._orchestrator.resync_all()

    async def delete_inflation(self) -> WipeResult:
        await self._ready()
        return await self._orchestrator.delete_inflation()

    async def delete_income(self) -> WipeResult:
        await self._ready()
        return await self._orchestrator.delete_income()

    async def delete_all(self) -> WipeResult:
        await self._ready()
        return await self._orchestrator.delete_all()

    def _admin_handlers(self) -> dict[tuple[AdminAction, Dataset], Callable[[], Awaitable[AdminOutcome]]]:
        return {
            (AdminAction.UPDATE, Dataset.ALL): self.sync_all,
            (AdminAction.UPDATE, Dataset.INFLATION): self.sync_inflation,
            (AdminAction.UPDATE, Dataset.INCOME): self.sync_income,
            (AdminAction.DELETE, Dataset.ALL): self.delete_all,
            (AdminAction.DELETE, Dataset.INFLATION): self.delete_inflation,
            (AdminAction.DELETE, Dataset.INCOME): self.delete_income,
            (AdminAction.DELETE_AND_RESYNC, Dataset.ALL): self.resync_all,
            (AdminAction.DELETE_AND_RESYNC, Dataset.INFLATION): self.resync_inflation,
            (AdminAction.DELETE_AND_RESYNC, Dataset.INCOME): self.resync_income,
        }

    async def run_admin_action(
        self,
        action: AdminAction | str,
        dataset: Dataset | str,
        secret: str | None,
    ) -> AdminResult:
        """Run one mutating action after checking the shared secret.

        A wrong or missing secret raises :class:`AdminAuthError`; a failing
        action is reported as an unsuccessful :class:`AdminResult`.
        """

        self._ensure_open()
        verify_admin_secret(secret, self._config.admin_secret)
        resolved_action = AdminAction(action)
        resolved_dataset = Dataset(dataset)
        handler = self._admin_handlers()[(resolved_action, resolved_dataset)]
        logger.info("admin action start action=%s dataset=%s", resolved_action.value, resolved_dataset.value)
        try:
            outcome = await handler()
        except EconDataError as exc:
            logger.error(
                "admin action failed action=%s dataset=%s error=%s",
                resolved_action.value,
                resolved_dataset.value,
                exc,
            )
            return AdminResult(
                success=False,
                message=f"{resolved_action.value} {resolved_dataset.value} failed: {exc}",
            )
        result = _admin_result(resolved_action, resolved_dataset, outcome)
        logger.info(
            "admin action done action=%s dataset=%s details=%s",
            resolved_action.value,
            resolved_dataset.value,
            dict(result.details),
        )
        return result

    async def close(self) -> None:
        if self._closed:
            return
        await self._oecd_transport.close()
        await self._worldbank_transport.close()
        if self._owns_gateway:
            await self._gateway.dispose()
        self._closed = True

    async def __aenter__(self) -> "EconDataSync":
        self._ensure_open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        await self.close()
        return False


__all__ = [
    "EconDataSync",
]
