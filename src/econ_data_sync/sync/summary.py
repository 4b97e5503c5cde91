"""Run summaries for sync operations."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

_COUNTERS = (
    "read",
    "added",
    "updated",
    "duplicates",
    "superseded",
    "deleted",
    "omitted",
    "errors",
)


@dataclass(slots=True)
class SyncSummary:
    """Counters for one source run.

    ``superseded`` counts low-frequency inserts skipped because monthly data
    exists; ``deleted`` counts annual rows removed by high-frequency data;
    ``omitted`` counts rows the decoder skipped silently; ``errors`` counts
    rejected records plus per-record write failures. ``entities`` is the
    number of distinct codes written, so merged summaries count an entity
    seen by several sources once.
    """

    source: str
    read: int = 0
    added: int = 0
    updated: int = 0
    duplicates: int = 0
    superseded: int = 0
    deleted: int = 0
    omitted: int = 0
    errors: int = 0
    entity_codes: frozenset[str] = frozenset()

    @property
    def entities(self) -> int:
        return len(self.entity_codes)

    def _accumulate(self, other: "SyncSummary") -> None:
        for name in _COUNTERS:
            setattr(self, name, getattr(self, name) + getattr(other, name))
        self.entity_codes = self.entity_codes | other.entity_codes

    def __add__(self, other: "SyncSummary") -> "SyncSummary":
        if not isinstance(other, SyncSummary):
            return NotImplemented
        source = self.source if self.source == other.source else f"{self.source}+{other.source}"
        merged = SyncSummary(source=source)
        merged._accumulate(self)
        merged._accumulate(other)
        return merged

    @classmethod
    def combine(cls, source: str, summaries: Iterable["SyncSummary"]) -> "SyncSummary":
        total = cls(source=source)
        for summary in summaries:
            total._accumulate(summary)
        return total

    def as_dict(self) -> dict[str, int | str]:
        counters: dict[str, int | str] = {"source": self.source}
        counters.update({name: getattr(self, name) for name in _COUNTERS})
        counters["entities"] = self.entities
        return counters

    def describe(self) -> str:
        counters = " ".join(f"{name}={getattr(self, name)}" for name in (*_COUNTERS, "entities"))
        return f"source={self.source} {counters}"


@dataclass(slots=True, frozen=True)
class DatasetSyncSummary:
    dataset: str
    sources: tuple[SyncSummary, ...] = ()

    @property
    def total(self) -> SyncSummary:
        return SyncSummary.combine(self.dataset, self.sources)


@dataclass(slots=True, frozen=True)
class AllSyncSummary:
    inflation: DatasetSyncSummary
    income: DatasetSyncSummary

    @property
    def datasets(self) -> tuple[DatasetSyncSummary, ...]:
        return (self.inflation, self.income)

    @property
    def total(self) -> SyncSummary:
        return SyncSummary.combine("all", (d.total for d in self.datasets))


@dataclass(slots=True, frozen=True)
class WipeResult:
    inflation: int = 0
    income: int = 0
    entities: int = 0

    def describe(self) -> str:
        return f"inflation={self.inflation} income={self.income} entities={self.entities}"


__all__ = [
    "SyncSummary",
    "DatasetSyncSummary",
    "AllSyncSummary",
    "WipeResult",
]
