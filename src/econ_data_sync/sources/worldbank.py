"""World Bank bulk indicator download (zipped CSV, low-frequency annual data)."""

from __future__ import annotations

import io
import logging
import zipfile
from fnmatch import fnmatch

from ..core.errors import DecodeError
from ..core.transport import AsyncTransport
from ..decoders.worldbank_csv import decode_worldbank_csv
from ..models import DecodedBatch

logger = logging.getLogger("econ_data_sync")

SOURCE_NAME = "worldbank"
DATA_ENTRY_PATTERN = "API*.csv"


def extract_data_csv(archive_bytes: bytes, *, pattern: str = DATA_ENTRY_PATTERN) -> str:
    """Return the text of the single archive entry matching ``pattern``."""

    try:
        with zipfile.ZipFile(io.BytesIO(archive_bytes)) as archive:
            names = [
                name
                for name in archive.namelist()
                if fnmatch(name.rsplit("/", 1)[-1], pattern)
            ]
            if not names:
                raise DecodeError(
                    f"archive has no entry matching {pattern}",
                    kind="decode",
                    cause="decode",
                )
            if len(names) > 1:
                logger.warning("archive has several %s entries, using %s", pattern, names[0])
            raw = archive.read(names[0])
    except zipfile.BadZipFile as exc:
        raise DecodeError("download is not a zip archive", kind="decode", cause="decode") from exc
    return raw.decode("utf-8-sig", errors="replace")


def filter_min_year(batch: DecodedBatch, min_year: int | None) -> DecodedBatch:
    if min_year is None:
        return batch
    kept = [r for r in batch.records if r.period[:4].isdigit() and int(r.period[:4]) >= min_year]
    return DecodedBatch(records=kept, omitted=batch.omitted)


class WorldBankSource:
    """Downloads whole indicators; the orchestrator trims by resume year."""

    name = SOURCE_NAME

    def __init__(self, transport: AsyncTransport) -> None:
        self._transport = transport

    async def fetch_indicator(self, indicator: str, *, min_year: int | None = None) -> DecodedBatch:
        logger.info("worldbank download indicator=%s min_year=%s", indicator, min_year)
        archive_bytes = await self._transport.get_bytes(
            indicator,
            params={"downloadformat": "csv"},
        )
        batch = filter_min_year(decode_worldbank_csv(extract_data_csv(archive_bytes)), min_year)
        logger.info(
            "worldbank indicator decoded indicator=%s records=%s omitted=%s",
            indicator,
            len(batch.records),
            batch.omitted,
        )
        return batch


__all__ = [
    "SOURCE_NAME",
    "DATA_ENTRY_PATTERN",
    "extract_data_csv",
    "filter_min_year",
    "WorldBankSource",
]
