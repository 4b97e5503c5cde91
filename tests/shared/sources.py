from __future__ import annotations

from collections.abc import Callable, Mapping

from econ_data_sync.models import DecodedBatch, Period, RawObservation


def batch(*records: tuple[str, str, float], names: Mapping[str, str] | None = None) -> DecodedBatch:
    resolved = names or {}
    return DecodedBatch(
        [RawObservation(code, period, value, resolved.get(code)) for code, period, value in records]
    )


class FakeOecdSource:
    name = "oecd"

    def __init__(self, respond: Callable[[Period, Period], DecodedBatch] | None = None):
        self.respond = respond or (lambda start, end: DecodedBatch())
        self.calls: list[tuple[Period, Period]] = []

    async def fetch_window(self, start: Period, end: Period) -> DecodedBatch:
        self.calls.append((start, end))
        result = self.respond(start, end)
        if isinstance(result, Exception):
            raise result
        return result


class FakeWorldBankSource:
    name = "worldbank"

    def __init__(self, indicators: Mapping[str, DecodedBatch] | None = None):
        self.indicators = dict(indicators or {})
        self.calls: list[tuple[str, int | None]] = []

    async def fetch_indicator(self, indicator: str, *, min_year: int | None = None) -> DecodedBatch:
        self.calls.append((indicator, min_year))
        found = self.indicators.get(indicator, DecodedBatch())
        if min_year is None:
            return found
        return DecodedBatch(
            [r for r in found.records if int(r.period[:4]) >= min_year],
            omitted=found.omitted,
        )
