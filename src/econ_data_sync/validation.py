"""Record validation before anything reaches storage."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from .core.errors import RecordRejected
from .countries import get_country_name
from .models import (
    MAX_ENTITY_CODE_LENGTH,
    Granularity,
    IncomeRecord,
    InflationRecord,
    Period,
    RawIncomeObservation,
    RawObservation,
)

logger = logging.getLogger("econ_data_sync")

T = TypeVar("T")
R = TypeVar("R")

ANNUAL_ONLY = frozenset({Granularity.ANNUAL})
ANY_GRANULARITY = frozenset({Granularity.ANNUAL, Granularity.MONTHLY})


@dataclass(slots=True, frozen=True)
class Rejection(Generic[R]):
    record: R
    reason: str


@dataclass(slots=True)
class ValidationResult(Generic[T, R]):
    accepted: list[T] = field(default_factory=list)
    rejected: list[Rejection[R]] = field(default_factory=list)


def _ensure_code(code: str | None, *, period: str | None) -> str:
    text = (code or "").strip()
    if not text:
        raise RecordRejected("entity code is empty", entity_code=code, period=period)
    if len(text) > MAX_ENTITY_CODE_LENGTH:
        raise RecordRejected(
            f"entity code longer than {MAX_ENTITY_CODE_LENGTH} characters",
            entity_code=text,
            period=period,
        )
    return text


def _ensure_period(
    period: str | Period | None,
    *,
    code: str,
    accept: frozenset[Granularity],
) -> Period:
    if isinstance(period, Period):
        parsed = period
    else:
        text = (period or "").strip()
        if not text:
            raise RecordRejected("period is empty", entity_code=code, period=period)
        try:
            parsed = Period.parse(text)
        except ValueError as exc:
            raise RecordRejected(str(exc), entity_code=code, period=text) from exc
    if parsed.granularity not in accept:
        raise RecordRejected(
            f"{parsed.granularity.value} period not accepted here",
            entity_code=code,
            period=str(parsed),
        )
    return parsed


def _is_finite_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _resolve_name(code: str, name: str | None) -> str:
    text = (name or "").strip()
    return text or get_country_name(code)


def validate_inflation(
    raw: RawObservation,
    *,
    accept: frozenset[Granularity] = ANY_GRANULARITY,
) -> InflationRecord:
    code = _ensure_code(raw.entity_code, period=raw.period)
    period = _ensure_period(raw.period, code=code, accept=accept)
    if not _is_finite_number(raw.value):
        raise RecordRejected(
            f"value is not a finite number: {raw.value!r}",
            entity_code=code,
            period=str(period),
        )
    return InflationRecord(
        entity_code=code,
        entity_name=_resolve_name(code, raw.entity_name),
        period=period,
        value=float(raw.value),
    )


def validate_income(record: RawIncomeObservation) -> IncomeRecord:
    code = _ensure_code(record.entity_code, period=record.period)
    period = _ensure_period(record.period, code=code, accept=ANNUAL_ONLY)
    present = [value for value in record.values() if value is not None]
    if not present:
        raise RecordRejected(
            "income record has no ppp, lcu or growth value",
            entity_code=code,
            period=str(period),
        )
    for value in present:
        if not _is_finite_number(value):
            raise RecordRejected(
                f"income value is not a finite number: {value!r}",
                entity_code=code,
                period=str(period),
            )
    return IncomeRecord(
        entity_code=code,
        entity_name=_resolve_name(code, record.entity_name),
        period=period,
        ppp_value=record.ppp_value,
        lcu_value=record.lcu_value,
        growth_rate=record.growth_rate,
    )


def partition_inflation(
    records: Iterable[RawObservation],
    *,
    accept: frozenset[Granularity] = ANY_GRANULARITY,
    source: str = "inflation",
) -> ValidationResult[InflationRecord, RawObservation]:
    result: ValidationResult[InflationRecord, RawObservation] = ValidationResult()
    for raw in records:
        try:
            result.accepted.append(validate_inflation(raw, accept=accept))
        except RecordRejected as exc:
            logger.warning(
                "record rejected source=%s code=%s period=%s value=%r reason=%s",
                source,
                raw.entity_code,
                raw.period,
                raw.value,
                exc.reason,
            )
            result.rejected.append(Rejection(record=raw, reason=exc.reason))
    return result


def partition_income(
    records: Iterable[RawIncomeObservation],
    *,
    source: str = "income",
) -> ValidationResult[IncomeRecord, RawIncomeObservation]:
    result: ValidationResult[IncomeRecord, RawIncomeObservation] = ValidationResult()
    for record in records:
        try:
            result.accepted.append(validate_income(record))
        except RecordRejected as exc:
            logger.warning(
                "record rejected source=%s code=%s period=%s values=%r reason=%s",
                source,
                record.entity_code,
                record.period,
                record.values(),
                exc.reason,
            )
            result.rejected.append(Rejection(record=record, reason=exc.reason))
    return result


__all__ = [
    "ANNUAL_ONLY",
    "ANY_GRANULARITY",
    "Rejection",
    "ValidationResult",
    "validate_inflation",
    "validate_income",
    "partition_inflation",
    "partition_income",
]
