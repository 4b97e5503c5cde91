"""Combine the three income indicator downloads into per-year records."""

from __future__ import annotations

from ..models import DecodedBatch, RawIncomeObservation

_FIELDS = ("ppp_value", "lcu_value", "growth_rate")


def merge_income_indicators(
    ppp: DecodedBatch,
    lcu: DecodedBatch,
    growth: DecodedBatch,
) -> list[RawIncomeObservation]:
    """Key every indicator value by ``(entity_code, period)``.

    An entity/year missing from one indicator keeps ``None`` for that field.
    The first non-empty entity name seen wins. Output keeps first-seen order.
    """

    merged: dict[tuple[str, str], dict[str, object]] = {}
    for field_name, batch in zip(_FIELDS, (ppp, lcu, growth)):
        for record in batch.records:
            key = (record.entity_code, record.period)
            entry = merged.setdefault(
                key,
                {"entity_code": record.entity_code, "period": record.period, "entity_name": None},
            )
            if not entry["entity_name"] and record.entity_name:
                entry["entity_name"] = record.entity_name
            entry[field_name] = record.value
    return [RawIncomeObservation(**entry) for entry in merged.values()]  # type: ignore[arg-type]


__all__ = [
    "merge_income_indicators",
]
