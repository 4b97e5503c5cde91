"""Async engine construction."""

from __future__ import annotations

from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from ..config import StorageConfig

SUPPORTED_DIALECTS = frozenset({"sqlite", "postgresql"})


def is_memory_sqlite(url: str) -> bool:
    parsed = make_url(url)
    return parsed.get_backend_name() == "sqlite" and parsed.database in (None, "", ":memory:")


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    # SQLite ships with foreign key checks off, per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(config: StorageConfig) -> AsyncEngine:
    """Create the async engine for ``config.url``.

    In-memory SQLite lives on a single shared connection; any other URL uses
    the driver's default pool. SQLite connections enforce foreign keys so an
    observation can never outlive its entity.
    """

    url = make_url(config.url)
    backend = url.get_backend_name()
    if backend not in SUPPORTED_DIALECTS:
        raise ValueError(f"unsupported storage backend: {backend}")
    if is_memory_sqlite(config.url):
        engine = create_async_engine(
            url,
            echo=config.echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_async_engine(url, echo=config.echo, pool_pre_ping=True)
    if backend == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


__all__ = [
    "SUPPORTED_DIALECTS",
    "is_memory_sqlite",
    "build_engine",
]
