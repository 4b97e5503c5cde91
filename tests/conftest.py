from __future__ import annotations

import sys
from collections.abc import AsyncIterator
from pathlib import Path

import pytest
import pytest_asyncio

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from econ_data_sync.config import StorageConfig  # noqa: E402
from econ_data_sync.storage.gateway import StorageGateway  # noqa: E402

MEMORY_URL = "sqlite+aiosqlite://"


async def _no_sleep(seconds: float) -> None:
    return None


@pytest.fixture
def storage_config() -> StorageConfig:
    return StorageConfig(url=MEMORY_URL, max_attempts=1, retry_delay_seconds=0.0)


@pytest_asyncio.fixture
async def gateway(storage_config: StorageConfig) -> AsyncIterator[StorageGateway]:
    store = StorageGateway.from_config(storage_config, sleeper=_no_sleep)
    await store.create_schema()
    try:
        yield store
    finally:
        await store.dispose()
