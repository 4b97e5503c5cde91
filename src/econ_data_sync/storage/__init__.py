"""Relational storage for entities and observations."""

from .engine import build_engine
from .gateway import StorageGateway
from .queries import ReadQueries

__all__ = [
    "build_engine",
    "StorageGateway",
    "ReadQueries",
]
