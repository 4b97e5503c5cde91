"""SDMX-ML generic data documents into raw observations."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator, Mapping

from lxml import etree

from ..core.errors import DecodeError
from ..models import DecodedBatch, RawObservation

logger = logging.getLogger("econ_data_sync")

TIME_PERIOD_KEY = "TIME_PERIOD"
REF_AREA_KEY = "REF_AREA"
OBS_VALUE_KEY = "OBS_VALUE"

_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True, remove_comments=True)


def _local(element: etree._Element) -> str:
    tag = element.tag
    if not isinstance(tag, str):
        return ""
    return etree.QName(tag).localname


def _children(element: etree._Element, local_name: str) -> Iterator[etree._Element]:
    for child in element:
        if _local(child) == local_name:
            yield child


def _parse(payload: bytes | str) -> etree._Element:
    data = payload.encode("utf-8") if isinstance(payload, str) else payload
    if not data or not data.strip():
        raise DecodeError("SDMX document is empty", kind="decode", cause="decode")
    try:
        return etree.fromstring(data, parser=_PARSER)
    except etree.XMLSyntaxError as exc:
        raise DecodeError(f"SDMX document is not well-formed: {exc}", kind="decode", cause="decode") from exc


def _key_values(container: etree._Element) -> dict[str, str]:
    values: dict[str, str] = {}
    for item in _children(container, "Value"):
        key = item.get("id")
        if key:
            values[key] = item.get("value", "")
    return values


def _series_keys(series: etree._Element) -> dict[str, str]:
    keys = {k: v for k, v in series.attrib.items() if isinstance(k, str)}
    for container in _children(series, "SeriesKey"):
        keys.update(_key_values(container))
    return keys


def _observation_keys(obs: etree._Element, inherited: Mapping[str, str]) -> dict[str, str]:
    keys = dict(inherited)
    # Structure-specific messages carry dimensions as plain attributes.
    keys.update({k: v for k, v in obs.attrib.items() if isinstance(k, str)})
    for child in obs:
        name = _local(child)
        if name == "ObsKey":
            keys.update(_key_values(child))
        elif name == "ObsDimension":
            keys[child.get("id", TIME_PERIOD_KEY)] = child.get("value", "")
    return keys


def _observation_value(obs: etree._Element, keys: Mapping[str, str]) -> float:
    raw: str | None = None
    for child in _children(obs, "ObsValue"):
        raw = child.get("value")
        break
    if raw is None:
        raw = keys.get(OBS_VALUE_KEY)
    if raw is None or raw.strip() == "":
        # A missing value is stored as 0, matching the upstream dashboard.
        return 0.0
    try:
        return float(raw)
    except ValueError:
        return math.nan


def _outermost_observations(element: etree._Element) -> Iterator[etree._Element]:
    for child in element:
        if "Obs" in _local(child):
            yield child
        else:
            yield from _outermost_observations(child)


def _locate_observations(
    root: etree._Element,
) -> list[tuple[etree._Element, dict[str, str]]] | None:
    datasets = [el for el in root.iter() if _local(el) == "DataSet"]
    if not datasets:
        return None
    located: list[tuple[etree._Element, dict[str, str]]] = []
    for dataset in datasets:
        for child in dataset:
            name = _local(child)
            if name == "Obs":
                located.append((child, {}))
            elif "Series" in name and name != "SeriesKey":
                inherited = _series_keys(child)
                located.extend((obs, inherited) for obs in _children(child, "Obs"))
    return located


def decode_sdmx_generic(payload: bytes | str) -> DecodedBatch:
    """Decode an SDMX generic (or structure-specific) data message.

    Observations are looked up under ``DataSet/Series/Obs`` or ``DataSet/Obs``
    regardless of namespace prefix. When no ``DataSet`` exists the whole tree
    is searched for the outermost elements whose name contains ``Obs``.
    """

    root = _parse(payload)
    located = _locate_observations(root)
    if located is None:
        fallback = list(_outermost_observations(root))
        if not fallback:
            raise DecodeError(
                "no DataSet or observation elements found in SDMX document",
                kind="decode",
                cause="decode",
            )
        logger.info("sdmx fallback search located observations=%s", len(fallback))
        located = [(obs, {}) for obs in fallback]

    records: list[RawObservation] = []
    omitted = 0
    for obs, inherited in located:
        keys = _observation_keys(obs, inherited)
        period = keys.get(TIME_PERIOD_KEY, "").strip()
        code = keys.get(REF_AREA_KEY, "").strip()
        if not period or not code:
            omitted += 1
            continue
        records.append(
            RawObservation(
                entity_code=code,
                period=period,
                value=_observation_value(obs, keys),
            )
        )

    logger.debug(
        "sdmx decoded observations=%s records=%s entities=%s omitted=%s",
        len(located),
        len(records),
        len({r.entity_code for r in records}),
        omitted,
    )
    return DecodedBatch(records=records, omitted=omitted)


__all__ = [
    "TIME_PERIOD_KEY",
    "REF_AREA_KEY",
    "decode_sdmx_generic",
]
