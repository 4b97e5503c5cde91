"""Display names for entity codes returned without names (SDMX REF_AREA)."""

from __future__ import annotations

from types import MappingProxyType

_NAMES: dict[str, str] = {
    "ARG": "Argentina",
    "AUS": "Australia",
    "AUT": "Austria",
    "BEL": "Belgium",
    "BGR": "Bulgaria",
    "BRA": "Brazil",
    "CAN": "Canada",
    "CHE": "Switzerland",
    "CHL": "Chile",
    "CHN": "China",
    "COL": "Colombia",
    "CRI": "Costa Rica",
    "CZE": "Czechia",
    "DEU": "Germany",
    "DNK": "Denmark",
    "ESP": "Spain",
    "EST": "Estonia",
    "FIN": "Finland",
    "FRA": "France",
    "GBR": "United Kingdom",
    "GRC": "Greece",
    "HRV": "Croatia",
    "HUN": "Hungary",
    "IDN": "Indonesia",
    "IND": "India",
    "IRL": "Ireland",
    "ISL": "Iceland",
    "ISR": "Israel",
    "ITA": "Italy",
    "JPN": "Japan",
    "KOR": "Korea",
    "LTU": "Lithuania",
    "LUX": "Luxembourg",
    "LVA": "Latvia",
    "MEX": "Mexico",
    "NLD": "Netherlands",
    "NOR": "Norway",
    "NZL": "New Zealand",
    "POL": "Poland",
    "PRT": "Portugal",
    "RUS": "Russia",
    "SAU": "Saudi Arabia",
    "SVK": "Slovak Republic",
    "SVN": "Slovenia",
    "SWE": "Sweden",
    "TUR": "Türkiye",
    "USA": "United States",
    "ZAF": "South Africa",
    # Aggregates published by the OECD alongside member countries.
    "G7": "G7",
    "G20": "G20",
    "EA20": "Euro area (20 countries)",
    "EU27_2020": "European Union (27 countries)",
    "OECD": "OECD total",
    "OECDE": "OECD Europe",
}

COUNTRY_NAMES = MappingProxyType(_NAMES)


def get_country_name(code: str) -> str:
    """Return the display name for ``code``, or the code itself if unknown."""

    return COUNTRY_NAMES.get(code.strip().upper(), code)


__all__ = [
    "COUNTRY_NAMES",
    "get_country_name",
]
