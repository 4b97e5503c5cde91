"""World Bank bulk indicator CSV (wide year columns) into raw observations."""

from __future__ import annotations

import csv
import logging
import math
import re

from ..models import DecodedBatch, RawObservation

logger = logging.getLogger("econ_data_sync")

HEADER_SCAN_LINES = 10
_YEAR_RE = re.compile(r"^\d{4}$")
_CODE_HEADERS = ("Country Code", "country_code")
_NAME_HEADERS = ("Country Name", "country_name")
_TRAILER_PREFIXES = ("Data Source", "Last Updated")


def _split_row(line: str) -> list[str]:
    row = next(csv.reader([line], skipinitialspace=True), [])
    return [cell.strip().strip('"').strip() for cell in row]


def _index_of(headers: list[str], candidates: tuple[str, ...]) -> int:
    for index, header in enumerate(headers):
        if header in candidates:
            return index
    return -1


def _parse_value(text: str) -> float | None:
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def decode_worldbank_csv(text: str) -> DecodedBatch:
    """Decode a World Bank ``API_*.csv`` export.

    The real header is found within the first ``HEADER_SCAN_LINES`` non-empty
    lines by its ``Country Code`` column; the metadata preamble above it is
    ignored. Every 4-digit header after the code/name columns is a year.
    """

    lines = [line.strip() for line in text.lstrip("\ufeff").splitlines()]
    lines = [line for line in lines if line]

    header_index = -1
    headers: list[str] = []
    code_index = name_index = -1
    for index, line in enumerate(lines[:HEADER_SCAN_LINES]):
        if "Country Code" not in line and "Country Name" not in line:
            continue
        candidate = _split_row(line)
        code_index = _index_of(candidate, _CODE_HEADERS)
        if code_index != -1:
            header_index = index
            headers = candidate
            name_index = _index_of(candidate, _NAME_HEADERS)
            break

    if header_index == -1:
        logger.warning("worldbank csv has no header row with Country Code")
        return DecodedBatch()

    first_year_column = max(code_index, name_index) + 1
    year_columns = [
        (index, header)
        for index, header in enumerate(headers)
        if index >= first_year_column and _YEAR_RE.match(header)
    ]
    if not year_columns:
        logger.warning("worldbank csv has no year columns")
        return DecodedBatch()

    records: list[RawObservation] = []
    omitted = 0
    for line in lines[header_index + 1 :]:
        if line.startswith(_TRAILER_PREFIXES):
            continue
        values = _split_row(line)
        if len(values) <= max(code_index, name_index):
            omitted += 1
            continue
        code = values[code_index]
        if not code:
            omitted += 1
            continue
        name = values[name_index] if name_index != -1 else None
        for index, year in year_columns:
            if index >= len(values):
                continue
            value = _parse_value(values[index])
            if value is None:
                continue
            records.append(
                RawObservation(
                    entity_code=code,
                    period=year,
                    value=value,
                    entity_name=name or None,
                )
            )

    logger.debug(
        "worldbank csv decoded rows=%s records=%s years=%s omitted=%s",
        len(lines) - header_index - 1,
        len(records),
        len(year_columns),
        omitted,
    )
    return DecodedBatch(records=records, omitted=omitted)


__all__ = [
    "HEADER_SCAN_LINES",
    "decode_worldbank_csv",
]
