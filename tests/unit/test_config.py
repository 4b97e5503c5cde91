from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from econ_data_sync.config import (
    DEFAULT_OECD_ENTITY_CODES,
    DEFAULT_STORAGE_URL,
    EconDataSyncConfig,
    RetryConfig,
    SourcesConfig,
    StorageConfig,
    SyncConfig,
    ThrottlingConfig,
    TransportConfig,
)


def test_defaults_validate():
    cfg = EconDataSyncConfig()
    cfg.validate()
    assert cfg.sync.window_size == 75
    assert cfg.sync.batch_size == 5
    assert cfg.retry.max_retries == 6
    assert cfg.storage.max_attempts == 3
    assert cfg.sources.oecd_entity_codes == DEFAULT_OECD_ENTITY_CODES


def test_config_is_immutable():
    cfg = EconDataSyncConfig()
    with pytest.raises(FrozenInstanceError):
        cfg.retry = RetryConfig(max_retries=10)


def test_admin_secret_is_not_in_repr():
    cfg = EconDataSyncConfig(admin_secret="hunter2")
    assert "hunter2" not in repr(cfg)


@pytest.mark.parametrize(
    ("section", "field", "value"),
    [
        ("retry", "max_retries", -1),
        ("retry", "multiplier", 0.5),
        ("retry", "max_backoff_seconds", -1.0),
        ("retry", "total_retry_budget_seconds", -1.0),
        ("throttling", "min_wait_interval_seconds", -1.0),
        ("transport", "timeout_connect_seconds", 0.0),
        ("transport", "timeout_read_seconds", 0.0),
        ("storage", "max_attempts", 0),
        ("storage", "url", ""),
        ("sync", "window_size", 0),
        ("sync", "batch_size", 0),
        ("sync", "monthly_epoch", "1914"),
    ],
)
def test_validate_rejects_invalid_values(section, field, value):
    kwargs = {field: value}
    cfg = EconDataSyncConfig(
        retry=RetryConfig(**kwargs) if section == "retry" else RetryConfig(),
        throttling=ThrottlingConfig(**kwargs) if section == "throttling" else ThrottlingConfig(),
        transport=TransportConfig(**kwargs) if section == "transport" else TransportConfig(),
        storage=StorageConfig(**kwargs) if section == "storage" else StorageConfig(),
        sync=SyncConfig(**kwargs) if section == "sync" else SyncConfig(),
    )
    with pytest.raises(ValueError):
        cfg.validate()


def test_sources_require_entity_codes():
    with pytest.raises(ValueError, match="oecd_entity_codes"):
        SourcesConfig(oecd_entity_codes=()).validate()


def test_from_env_reads_known_variables():
    cfg = EconDataSyncConfig.from_env(
        {
            "ECON_DATABASE_URL": "postgresql+asyncpg://u:p@db/econ",
            "ADMIN_PASSWORD": "pw",
            "ECON_SYNC_WINDOW_SIZE": "12",
            "ECON_SYNC_BATCH_SIZE": "10",
        }
    )
    assert cfg.storage.url == "postgresql+asyncpg://u:p@db/econ"
    assert cfg.admin_secret == "pw"
    assert cfg.sync.window_size == 12
    assert cfg.sync.batch_size == 10


def test_from_env_defaults_and_bad_integers():
    cfg = EconDataSyncConfig.from_env({})
    assert cfg.storage.url == DEFAULT_STORAGE_URL
    assert cfg.admin_secret is None
    with pytest.raises(ValueError, match="ECON_SYNC_BATCH_SIZE"):
        EconDataSyncConfig.from_env({"ECON_SYNC_BATCH_SIZE": "five"})
