"""Domain and record models."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from functools import total_ordering

MAX_ENTITY_CODE_LENGTH = 15

_ANNUAL_RE = re.compile(r"^(\d{4})$")
_MONTHLY_RE = re.compile(r"^(\d{4})-(\d{2})$")


class Granularity(str, enum.Enum):
    ANNUAL = "annual"
    MONTHLY = "monthly"


@total_ordering
@dataclass(slots=True, frozen=True)
class Period:
    """Observation period: a calendar year or a single month.

    Ordering and range checks go through month indexes, never through the
    string form, so ``"2021"`` and ``"2021-06"`` compare by calendar position.
    """

    year: int
    month: int | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.year, int) or not 0 <= self.year <= 9999:
            raise ValueError(f"year out of range: {self.year!r}")
        if self.month is not None and (not isinstance(self.month, int) or not 1 <= self.month <= 12):
            raise ValueError(f"month out of range: {self.month!r}")

    @classmethod
    def parse(cls, text: str) -> "Period":
        value = text.strip() if isinstance(text, str) else ""
        match = _MONTHLY_RE.match(value)
        if match:
            return cls(int(match.group(1)), int(match.group(2)))
        match = _ANNUAL_RE.match(value)
        if match:
            return cls(int(match.group(1)))
        raise ValueError(f"period must be YYYY or YYYY-MM: {text!r}")

    @classmethod
    def annual(cls, year: int) -> "Period":
        return cls(year)

    @classmethod
    def monthly(cls, year: int, month: int) -> "Period":
        return cls(year, month)

    @classmethod
    def from_month_index(cls, index: int) -> "Period":
        return cls(index // 12, index % 12 + 1)

    @property
    def granularity(self) -> Granularity:
        return Granularity.ANNUAL if self.month is None else Granularity.MONTHLY

    @property
    def is_annual(self) -> bool:
        return self.month is None

    @property
    def start_index(self) -> int:
        return self.year * 12 + (self.month or 1) - 1

    @property
    def end_index(self) -> int:
        if self.month is None:
            return self.year * 12 + 11
        return self.start_index

    def to_annual(self) -> "Period":
        return Period(self.year)

    def shift(self, steps: int) -> "Period":
        if self.month is None:
            return Period(self.year + steps)
        return Period.from_month_index(self.start_index + steps)

    def contains(self, other: "Period") -> bool:
        return self.start_index <= other.start_index and other.end_index <= self.end_index

    def _sort_key(self) -> tuple[int, int]:
        return (self.start_index, 0 if self.month is None else 1)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Period):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __str__(self) -> str:
        if self.month is None:
            return f"{self.year:04d}"
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(slots=True, frozen=True)
class RawObservation:
    """Decoder output before validation."""

    entity_code: str
    period: str
    value: float
    entity_name: str | None = None


@dataclass(slots=True, frozen=True)
class DecodedBatch:
    records: tuple[RawObservation, ...] | list[RawObservation] = ()
    omitted: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.records, tuple):
            return
        object.__setattr__(self, "records", tuple(self.records))

    def __len__(self) -> int:
        return len(self.records)


@dataclass(slots=True, frozen=True)
class RawIncomeObservation:
    """Three World Bank income indicators merged per entity and year."""

    entity_code: str
    period: str
    entity_name: str | None = None
    ppp_value: float | None = None
    lcu_value: float | None = None
    growth_rate: float | None = None

    def values(self) -> tuple[float | None, float | None, float | None]:
        return (self.ppp_value, self.lcu_value, self.growth_rate)


@dataclass(slots=True, frozen=True)
class InflationRecord:
    entity_code: str
    entity_name: str
    period: Period
    value: float


@dataclass(slots=True, frozen=True)
class IncomeRecord:
    entity_code: str
    entity_name: str
    period: Period
    ppp_value: float | None = None
    lcu_value: float | None = None
    growth_rate: float | None = None

    def values(self) -> tuple[float | None, float | None, float | None]:
        return (self.ppp_value, self.lcu_value, self.growth_rate)


@dataclass(slots=True, frozen=True)
class Entity:
    code: str
    name: str
    has_high_frequency_source: bool = False


class SortKey(str, enum.Enum):
    ENTITY = "entity"
    PERIOD = "period"
    INFLATION = "inflation"
    PPP = "ppp"
    LCU = "lcu"
    GROWTH = "growth"


class SortOrder(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(slots=True, frozen=True)
class ObservationFilter:
    """Read-side filter. Range bounds are inclusive and granularity-aware:
    ``end=Period(2021)`` reaches through December 2021.
    """

    entity_codes: tuple[str, ...] = ()
    start: Period | None = None
    end: Period | None = None
    sort_by: SortKey = SortKey.ENTITY
    sort_order: SortOrder = SortOrder.ASC
    offset: int = 0
    limit: int | None = None

    def validate(self) -> None:
        if self.offset < 0:
            raise ValueError("offset must be >= 0")
        if self.limit is not None and self.limit < 0:
            raise ValueError("limit must be >= 0")
        if self.start is not None and self.end is not None and self.end.end_index < self.start.start_index:
            raise ValueError(f"end {self.end} is before start {self.start}")

    @property
    def start_index(self) -> int | None:
        return None if self.start is None else self.start.start_index

    @property
    def end_index(self) -> int | None:
        return None if self.end is None else self.end.end_index


__all__ = [
    "MAX_ENTITY_CODE_LENGTH",
    "Granularity",
    "Period",
    "RawObservation",
    "DecodedBatch",
    "RawIncomeObservation",
    "InflationRecord",
    "IncomeRecord",
    "Entity",
    "SortKey",
    "SortOrder",
    "ObservationFilter",
]
