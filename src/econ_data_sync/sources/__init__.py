"""Upstream source clients."""

from .oecd import OecdInflationSource
from .worldbank import WorldBankSource

__all__ = [
    "OecdInflationSource",
    "WorldBankSource",
]
