"""OECD SDMX REST client for monthly CPI growth (high-frequency inflation)."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ..config import SourcesConfig
from ..core.errors import HttpStatusError, ValidationError
from ..core.transport import AsyncTransport
from ..decoders.sdmx import decode_sdmx_generic
from ..models import DecodedBatch, Period

logger = logging.getLogger("econ_data_sync")

SOURCE_NAME = "oecd"


def build_data_path(
    *,
    dataflow: str,
    entity_codes: Sequence[str],
    series_suffix: str,
) -> str:
    if not entity_codes:
        raise ValidationError("entity_codes must not be empty")
    return f"data/{dataflow}/{'+'.join(entity_codes)}.{series_suffix}"


def build_window_params(start: Period, end: Period) -> dict[str, str]:
    if end < start:
        raise ValidationError(f"window end {end} is before start {start}")
    return {
        "startPeriod": str(start),
        "endPeriod": str(end),
        "dimensionAtObservation": "AllDimensions",
    }


class OecdInflationSource:
    """Fetches one inclusive period window for the configured entity list."""

    name = SOURCE_NAME

    def __init__(self, transport: AsyncTransport, config: SourcesConfig) -> None:
        self._transport = transport
        self._path = build_data_path(
            dataflow=config.oecd_dataflow,
            entity_codes=config.oecd_entity_codes,
            series_suffix=config.oecd_series_suffix,
        )

    async def fetch_window(self, start: Period, end: Period) -> DecodedBatch:
        params = build_window_params(start, end)
        logger.info("oecd window fetch start=%s end=%s", start, end)
        try:
            payload = await self._transport.get_bytes(self._path, params=params)
        except HttpStatusError as exc:
            # SDMX REST answers 404 when the window holds no observations.
            if exc.cause == "not_found":
                logger.info("oecd window has no results start=%s end=%s", start, end)
                return DecodedBatch()
            raise
        batch = decode_sdmx_generic(payload)
        logger.info(
            "oecd window decoded start=%s end=%s records=%s entities=%s",
            start,
            end,
            len(batch.records),
            len({r.entity_code for r in batch.records}),
        )
        return batch


__all__ = [
    "SOURCE_NAME",
    "build_data_path",
    "build_window_params",
    "OecdInflationSource",
]
