"""Upstream payload decoders."""

from .sdmx import decode_sdmx_generic
from .worldbank_csv import decode_worldbank_csv

__all__ = [
    "decode_sdmx_generic",
    "decode_worldbank_csv",
]
