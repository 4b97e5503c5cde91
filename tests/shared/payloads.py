from __future__ import annotations

import io
import zipfile
from collections.abc import Mapping, Sequence

MESSAGE_NS = "http://www.sdmx.org/resources/sdmxml/schemas/v2_1/message"
GENERIC_NS = "http://www.sdmx.org/resources/sdmxml/schemas/v2_1/data/generic"

Observation = tuple[str, str, object]


def _obs_value(value: object) -> str:
    if value is None:
        return ""
    return f'<generic:ObsValue value="{value}"/>'


def make_sdmx_flat(observations: Sequence[Observation]) -> bytes:
    """``GenericData/DataSet/Obs`` with every key on the observation."""

    body = "".join(
        "<generic:Obs>"
        "<generic:ObsKey>"
        f'<generic:Value id="REF_AREA" value="{code}"/>'
        '<generic:Value id="FREQ" value="M"/>'
        f'<generic:Value id="TIME_PERIOD" value="{period}"/>'
        "</generic:ObsKey>"
        f"{_obs_value(value)}"
        "</generic:Obs>"
        for code, period, value in observations
    )
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        f'<message:GenericData xmlns:message="{MESSAGE_NS}" xmlns:generic="{GENERIC_NS}">'
        "<message:Header><message:ID>test</message:ID></message:Header>"
        f"<message:DataSet>{body}</message:DataSet>"
        "</message:GenericData>"
    ).encode("utf-8")


def make_sdmx_series(series: Mapping[str, Sequence[tuple[str, float | None]]]) -> bytes:
    """``GenericData/DataSet/Series/Obs`` with ``REF_AREA`` on the series key."""

    body = "".join(
        "<generic:Series>"
        f'<generic:SeriesKey><generic:Value id="REF_AREA" value="{code}"/></generic:SeriesKey>'
        + "".join(
            "<generic:Obs>"
            f'<generic:ObsDimension value="{period}"/>'
            f"{_obs_value(value)}"
            "</generic:Obs>"
            for period, value in points
        )
        + "</generic:Series>"
        for code, points in series.items()
    )
    return (
        f'<message:GenericData xmlns:message="{MESSAGE_NS}" xmlns:generic="{GENERIC_NS}">'
        f"<message:DataSet>{body}</message:DataSet>"
        "</message:GenericData>"
    ).encode("utf-8")


def make_worldbank_csv(
    rows: Sequence[tuple[str, str, Mapping[str, str]]],
    *,
    years: Sequence[str],
    preamble: bool = True,
) -> str:
    """World Bank ``API_*.csv`` layout: metadata preamble, header, wide years."""

    lines: list[str] = []
    if preamble:
        lines.append('"Data Source","World Development Indicators",')
        lines.append("")
        lines.append('"Last Updated Date","2024-06-28",')
        lines.append("")
    header = ["Country Name", "Country Code", "Indicator Name", "Indicator Code", *years]
    lines.append(",".join(f'"{cell}"' for cell in header) + ",")
    for name, code, values in rows:
        cells = [name, code, "Inflation, consumer prices (annual %)", "FP.CPI.TOTL.ZG"]
        cells.extend(values.get(year, "") for year in years)
        lines.append(",".join(f'"{cell}"' for cell in cells) + ",")
    return "\n".join(lines) + "\n"


def make_zip(entries: Mapping[str, str | bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, content in entries.items():
            archive.writestr(name, content)
    return buffer.getvalue()


def make_worldbank_zip(csv_text: str, *, indicator: str = "FP.CPI.TOTL.ZG") -> bytes:
    return make_zip(
        {
            f"API_{indicator}_DS2_en_csv_v2_1.csv": "\ufeff" + csv_text,
            f"Metadata_Indicator_API_{indicator}_DS2_en_csv_v2_1.csv": "INDICATOR_CODE,INDICATOR_NAME\n",
            f"Metadata_Country_API_{indicator}_DS2_en_csv_v2_1.csv": "Country Code,Region\n",
        }
    )
