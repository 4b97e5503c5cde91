from __future__ import annotations

import pytest

from econ_data_sync.models import IncomeRecord, InflationRecord, Period
from econ_data_sync.sync.cache import EntityCache
from econ_data_sync.sync.reconcile import Outcome, ReconciliationEngine


def _record(code: str, period: str, value: float) -> InflationRecord:
    return InflationRecord(code, code, Period.parse(period), value)


@pytest.mark.asyncio
async def test_monthly_record_supersedes_stored_annual(gateway):
    engine = ReconciliationEngine(gateway)
    await engine.apply_low_frequency(_record("DEU", "2021", 3.0))

    result = await engine.apply_high_frequency(_record("DEU", "2021-06", 2.8))

    assert result.outcome is Outcome.ADDED
    assert result.deleted == 1
    assert await gateway.get_inflation("DEU", Period(2021)) is None
    assert await gateway.get_inflation("DEU", Period(2021, 6)) == 2.8


@pytest.mark.asyncio
async def test_annual_record_is_skipped_when_months_exist(gateway):
    engine = ReconciliationEngine(gateway)
    await engine.apply_high_frequency(_record("DEU", "2021-06", 2.8))

    result = await engine.apply_low_frequency(_record("DEU", "2021", 3.0))

    assert result.outcome is Outcome.SUPERSEDED
    assert await gateway.get_inflation("DEU", Period(2021)) is None


@pytest.mark.asyncio
async def test_priority_holds_in_either_order(gateway):
    engine = ReconciliationEngine(gateway)
    await engine.apply_low_frequency(_record("FRA", "2020", 0.5))
    await engine.apply_high_frequency(_record("FRA", "2020-03", 0.7))
    await engine.apply_low_frequency(_record("FRA", "2020", 0.5))
    await engine.apply_high_frequency(_record("FRA", "2020-04", 0.3))

    rows = await gateway.select_inflation()
    assert [str(r.period) for r in rows] == ["2020-03", "2020-04"]


@pytest.mark.asyncio
async def test_duplicate_inserts_are_reported(gateway):
    engine = ReconciliationEngine(gateway)
    first = await engine.apply_high_frequency(_record("ITA", "2022-01", 4.8))
    second = await engine.apply_high_frequency(_record("ITA", "2022-01", 4.8))
    assert (first.outcome, second.outcome) == (Outcome.ADDED, Outcome.DUPLICATE)


@pytest.mark.asyncio
async def test_low_frequency_never_clears_high_frequency_flag(gateway):
    engine = ReconciliationEngine(gateway, cache=EntityCache(max_size=0))
    await engine.apply_high_frequency(_record("JPN", "2022-01", 0.5))
    await engine.apply_low_frequency(_record("JPN", "2019", 0.5))
    await engine.apply_income(IncomeRecord("JPN", "Japan", Period(2019), ppp_value=42000.0))

    [entity] = await gateway.list_entities()
    assert entity.has_high_frequency_source is True


@pytest.mark.asyncio
async def test_income_outcomes_added_updated_duplicate(gateway):
    engine = ReconciliationEngine(gateway)
    ppp_only = IncomeRecord("USA", "United States", Period(2020), ppp_value=65000.0)
    growth_only = IncomeRecord("USA", "United States", Period(2020), growth_rate=-3.4)

    assert (await engine.apply_income(ppp_only)).outcome is Outcome.ADDED
    assert (await engine.apply_income(growth_only)).outcome is Outcome.UPDATED
    assert (await engine.apply_income(ppp_only)).outcome is Outcome.DUPLICATE

    stored = await gateway.get_income("USA", 2020)
    assert stored.values() == (65000.0, None, -3.4)


@pytest.mark.asyncio
async def test_cache_skips_redundant_entity_upserts(gateway):
    calls: list[tuple[str, bool]] = []
    original = gateway.ensure_entity

    async def counting(code, name, *, high_frequency):
        calls.append((code, high_frequency))
        await original(code, name, high_frequency=high_frequency)

    gateway.ensure_entity = counting
    engine = ReconciliationEngine(gateway)
    await engine.apply_high_frequency(_record("DEU", "2021-01", 1.0))
    await engine.apply_high_frequency(_record("DEU", "2021-02", 1.0))
    await engine.apply_low_frequency(_record("DEU", "2019", 1.0))

    assert calls == [("DEU", True)]

    engine.reset_cache()
    await engine.apply_low_frequency(_record("DEU", "2018", 1.0))
    assert calls == [("DEU", True), ("DEU", False)]


@pytest.mark.asyncio
async def test_annual_high_frequency_record_is_kept(gateway):
    engine = ReconciliationEngine(gateway)

    first = await engine.apply_high_frequency(_record("DEU", "2021", 3.1))
    second = await engine.apply_high_frequency(_record("DEU", "2021", 3.1))

    assert (first.outcome, first.deleted) == (Outcome.ADDED, 0)
    assert (second.outcome, second.deleted) == (Outcome.DUPLICATE, 0)
    assert await gateway.get_inflation("DEU", Period(2021)) == 3.1


@pytest.mark.asyncio
async def test_entity_deleted_behind_the_cache_is_recreated(gateway):
    engine = ReconciliationEngine(gateway)
    await engine.apply_high_frequency(_record("DEU", "2021-01", 1.0))
    await engine.apply_income(IncomeRecord("DEU", "DEU", Period(2020), ppp_value=1.0))
    await gateway.wipe_inflation()
    await gateway.wipe_income()
    await gateway.wipe_entities()

    monthly = await engine.apply_high_frequency(_record("DEU", "2021-02", 2.0))
    income = await engine.apply_income(IncomeRecord("DEU", "DEU", Period(2020), ppp_value=2.0))

    assert (monthly.outcome, income.outcome) == (Outcome.ADDED, Outcome.ADDED)
    [entity] = await gateway.list_entities()
    assert entity.code == "DEU"
    assert entity.has_high_frequency_source is True
    assert [str(r.period) for r in await gateway.select_inflation()] == ["2021-02"]
    assert (await gateway.get_income("DEU", 2020)).ppp_value == 2.0
