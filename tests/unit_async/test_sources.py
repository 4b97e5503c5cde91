from __future__ import annotations

import pytest

from econ_data_sync.core.errors import DecodeError, HttpStatusError, ValidationError
from econ_data_sync.core.transport import AsyncTransport
from econ_data_sync.models import Period
from econ_data_sync.sources.oecd import OecdInflationSource, build_data_path
from econ_data_sync.sources.worldbank import WorldBankSource, extract_data_csv
from tests.shared.payloads import make_sdmx_flat, make_worldbank_csv, make_worldbank_zip, make_zip
from tests.shared.transport import AsyncSequencedClient, Response, build_config, no_sleep


def _oecd(steps) -> tuple[OecdInflationSource, AsyncSequencedClient]:
    cfg = build_config()
    client = AsyncSequencedClient(steps)
    transport = AsyncTransport(cfg, base_url=cfg.sources.oecd_base_url, client=client, sleeper=no_sleep)
    return OecdInflationSource(transport, cfg.sources), client


def _worldbank(steps) -> tuple[WorldBankSource, AsyncSequencedClient]:
    cfg = build_config()
    client = AsyncSequencedClient(steps)
    transport = AsyncTransport(cfg, base_url=cfg.sources.worldbank_base_url, client=client, sleeper=no_sleep)
    return WorldBankSource(transport), client


def test_data_path_joins_entity_codes():
    path = build_data_path(dataflow="FLOW,1.0", entity_codes=["DEU", "FRA"], series_suffix="M.N")
    assert path == "data/FLOW,1.0/DEU+FRA.M.N"
    with pytest.raises(ValidationError):
        build_data_path(dataflow="FLOW", entity_codes=[], series_suffix="M")


@pytest.mark.asyncio
async def test_oecd_window_request_and_decode():
    source, client = _oecd([Response(200, make_sdmx_flat([("DEU", "2021-06", "2.8")]))])

    batch = await source.fetch_window(Period(2021, 1), Period(2021, 12))

    url, params = client.calls[0]
    assert url.startswith("data/OECD.SDD.TPS,DSD_PRICES@DF_PRICES_ALL,1.0/DEU+FRA+USA.")
    assert params == {
        "startPeriod": "2021-01",
        "endPeriod": "2021-12",
        "dimensionAtObservation": "AllDimensions",
    }
    assert [(r.entity_code, r.period, r.value) for r in batch.records] == [("DEU", "2021-06", 2.8)]


@pytest.mark.asyncio
async def test_oecd_404_means_no_results_for_window():
    source, _ = _oecd([Response(404, b"NoResultsFound")])
    batch = await source.fetch_window(Period(2030, 1), Period(2030, 12))
    assert len(batch) == 0


@pytest.mark.asyncio
async def test_oecd_other_statuses_propagate():
    source, _ = _oecd([Response(500, b"oops")])
    with pytest.raises(HttpStatusError):
        await source.fetch_window(Period(2021, 1), Period(2021, 2))


@pytest.mark.asyncio
async def test_oecd_rejects_inverted_window():
    source, client = _oecd([])
    with pytest.raises(ValidationError):
        await source.fetch_window(Period(2021, 5), Period(2021, 4))
    assert client.calls == []


@pytest.mark.asyncio
async def test_worldbank_downloads_zip_and_trims_by_min_year():
    csv_text = make_worldbank_csv(
        [("Germany", "DEU", {"2019": "1.4", "2020": "0.1", "2021": "3.1"})],
        years=["2019", "2020", "2021"],
    )
    source, client = _worldbank([Response(200, make_worldbank_zip(csv_text))])

    batch = await source.fetch_indicator("FP.CPI.TOTL.ZG", min_year=2020)

    assert client.calls == [("FP.CPI.TOTL.ZG", {"downloadformat": "csv"})]
    assert [(r.entity_code, r.period, r.value) for r in batch.records] == [("DEU", "2020", 0.1), ("DEU", "2021", 3.1)]
    assert batch.records[0].entity_name == "Germany"


@pytest.mark.asyncio
async def test_worldbank_bad_archive_is_a_decode_error():
    source, _ = _worldbank([Response(200, b"not a zip")])
    with pytest.raises(DecodeError):
        await source.fetch_indicator("NY.GNP.PCAP.CN")


def test_extract_requires_a_matching_entry():
    archive = make_zip({"Metadata_Country_API_X.csv": "a,b\n"})
    with pytest.raises(DecodeError, match="API\\*.csv"):
        extract_data_csv(archive)


def test_extract_matches_on_basename_in_subfolders():
    archive = make_zip({"nested/API_X_DS2.csv": "\ufeffhello"})
    assert extract_data_csv(archive) == "hello"
