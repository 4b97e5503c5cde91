from __future__ import annotations

import math

import pytest

from econ_data_sync.core.errors import RecordRejected
from econ_data_sync.models import Period, RawIncomeObservation, RawObservation
from econ_data_sync.validation import (
    ANNUAL_ONLY,
    partition_income,
    partition_inflation,
    validate_income,
    validate_inflation,
)


def test_inflation_record_gets_typed_period_and_table_name():
    record = validate_inflation(RawObservation(entity_code="DEU", period="2021-06", value=2.8))
    assert record.period == Period(2021, 6)
    assert record.entity_name == "Germany"
    assert record.value == 2.8


def test_inflation_record_keeps_upstream_name():
    record = validate_inflation(RawObservation("XKX", "2020", 0.2, entity_name="Kosovo"), accept=ANNUAL_ONLY)
    assert record.entity_name == "Kosovo"


@pytest.mark.parametrize(
    ("raw", "accept_annual_only"),
    [
        (RawObservation("", "2021", 1.0), False),
        (RawObservation("DEU", "", 1.0), False),
        (RawObservation("DEU", "2021-6", 1.0), False),
        (RawObservation("DEU", "2021", math.nan), False),
        (RawObservation("DEU", "2021", math.inf), False),
        (RawObservation("X" * 16, "2021", 1.0), False),
        (RawObservation("DEU", "2021-06", 1.0), True),
    ],
    ids=["empty-code", "empty-period", "bad-period", "nan", "inf", "long-code", "monthly-for-annual-source"],
)
def test_inflation_rejections(raw, accept_annual_only):
    kwargs = {"accept": ANNUAL_ONLY} if accept_annual_only else {}
    with pytest.raises(RecordRejected) as excinfo:
        validate_inflation(raw, **kwargs)
    assert excinfo.value.reason


def test_income_needs_at_least_one_value():
    with pytest.raises(RecordRejected, match="no ppp, lcu or growth"):
        validate_income(RawIncomeObservation("USA", "2020"))


def test_income_rejects_non_finite_present_value_and_monthly_period():
    with pytest.raises(RecordRejected):
        validate_income(RawIncomeObservation("USA", "2020", ppp_value=1.0, growth_rate=math.nan))
    with pytest.raises(RecordRejected):
        validate_income(RawIncomeObservation("USA", "2020-01", ppp_value=1.0))


def test_income_partial_record_is_accepted():
    record = validate_income(RawIncomeObservation("USA", "2020", entity_name="United States", growth_rate=-3.4))
    assert record.period == Period(2020)
    assert record.values() == (None, None, -3.4)


def test_partition_logs_and_collects_rejections(caplog):
    raws = [
        RawObservation("DEU", "2021", 3.0),
        RawObservation("FRA", "2021", math.nan),
        RawObservation("ITA", "2021", 1.9),
    ]
    with caplog.at_level("WARNING", logger="econ_data_sync"):
        result = partition_inflation(raws, accept=ANNUAL_ONLY, source="worldbank")
    assert [r.entity_code for r in result.accepted] == ["DEU", "ITA"]
    assert [r.record.entity_code for r in result.rejected] == ["FRA"]
    assert "record rejected source=worldbank code=FRA period=2021" in caplog.text


def test_partition_income_keeps_order():
    result = partition_income(
        [
            RawIncomeObservation("USA", "2020", ppp_value=65000.0),
            RawIncomeObservation("GBR", "2020"),
            RawIncomeObservation("JPN", "2020", lcu_value=4.2e6),
        ]
    )
    assert [r.entity_code for r in result.accepted] == ["USA", "JPN"]
    assert len(result.rejected) == 1
