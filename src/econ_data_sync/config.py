"""Client configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

DEFAULT_STORAGE_URL = "sqlite+aiosqlite:///econ_data.db"
DEFAULT_WINDOW_SIZE = 75
DEFAULT_BATCH_SIZE = 5

DEFAULT_OECD_ENTITY_CODES: tuple[str, ...] = (
    "AUS", "AUT", "BEL", "CAN", "CHL", "COL", "CRI", "CZE", "DNK", "EST",
    "FIN", "FRA", "DEU", "GRC", "HUN", "ISL", "IRL", "ISR", "ITA", "JPN",
    "KOR", "LVA", "LTU", "LUX", "MEX", "NLD", "NOR", "POL", "PRT", "SVK",
    "SVN", "ESP", "SWE", "CHE", "TUR", "GBR", "USA", "G7", "G20", "EA20",
    "EU27_2020", "OECD", "OECDE", "ARG", "BRA", "BGR", "CHN", "HRV", "IND",
    "IDN", "RUS", "SAU", "ZAF",
)


@dataclass(slots=True, frozen=True)
class TransportConfig:
    """Transport-related settings."""

    timeout_connect_seconds: float = 10.0
    timeout_read_seconds: float = 120.0
    timeout_write_seconds: float = 30.0
    timeout_pool_seconds: float = 10.0

    def validate(self) -> None:
        for field_name in (
            "timeout_connect_seconds",
            "timeout_read_seconds",
            "timeout_write_seconds",
            "timeout_pool_seconds",
        ):
            if getattr(self, field_name) <= 0:
                raise ValueError(f"transport.{field_name} must be > 0")


@dataclass(slots=True, frozen=True)
class RetryConfig:
    """Rate-limit and network retry settings."""

    max_retries: int = 6
    base_delay_seconds: float = 1.0
    multiplier: float = 2.0
    max_backoff_seconds: float = 120.0
    total_retry_budget_seconds: float = 1800.0

    def validate(self) -> None:
        if self.max_retries < 0:
            raise ValueError("retry.max_retries must be >= 0")
        if self.base_delay_seconds < 0:
            raise ValueError("retry.base_delay_seconds must be >= 0")
        if self.multiplier < 1:
            raise ValueError("retry.multiplier must be >= 1")
        if self.max_backoff_seconds < 0:
            raise ValueError("retry.max_backoff_seconds must be >= 0")
        if self.total_retry_budget_seconds < 0:
            raise ValueError("retry.total_retry_budget_seconds must be >= 0")


@dataclass(slots=True, frozen=True)
class ThrottlingConfig:
    """Throttling-related settings."""

    min_wait_interval_seconds: float = 1.0

    def validate(self) -> None:
        if self.min_wait_interval_seconds < 0:
            raise ValueError("throttling.min_wait_interval_seconds must be >= 0")


@dataclass(slots=True, frozen=True)
class SourcesConfig:
    """Upstream endpoints and the series requested from them."""

    oecd_base_url: str = "https://sdmx.oecd.org/public/rest"
    oecd_dataflow: str = "OECD.SDD.TPS,DSD_PRICES@DF_PRICES_ALL,1.0"
    oecd_series_suffix: str = "M.N.CPI.PA._T.N.GY"
    oecd_entity_codes: tuple[str, ...] = DEFAULT_OECD_ENTITY_CODES
    worldbank_base_url: str = "https://api.worldbank.org/v2/en/indicator"
    worldbank_inflation_indicator: str = "FP.CPI.TOTL.ZG"
    worldbank_ppp_indicator: str = "NY.GNP.PCAP.PP.CD"
    worldbank_lcu_indicator: str = "NY.GNP.PCAP.CN"
    worldbank_growth_indicator: str = "NY.GNP.PCAP.KD.ZG"

    def validate(self) -> None:
        if not self.oecd_base_url:
            raise ValueError("sources.oecd_base_url must not be empty")
        if not self.worldbank_base_url:
            raise ValueError("sources.worldbank_base_url must not be empty")
        if not self.oecd_entity_codes:
            raise ValueError("sources.oecd_entity_codes must not be empty")
        for field_name in (
            "worldbank_inflation_indicator",
            "worldbank_ppp_indicator",
            "worldbank_lcu_indicator",
            "worldbank_growth_indicator",
        ):
            if not getattr(self, field_name):
                raise ValueError(f"sources.{field_name} must not be empty")


@dataclass(slots=True, frozen=True)
class StorageConfig:
    """Storage gateway settings."""

    url: str = DEFAULT_STORAGE_URL
    max_attempts: int = 3
    retry_delay_seconds: float = 1.0
    echo: bool = False

    def validate(self) -> None:
        if not self.url:
            raise ValueError("storage.url must not be empty")
        if self.max_attempts < 1:
            raise ValueError("storage.max_attempts must be >= 1")
        if self.retry_delay_seconds < 0:
            raise ValueError("storage.retry_delay_seconds must be >= 0")
        if not isinstance(self.echo, bool):
            raise ValueError("storage.echo must be bool")


@dataclass(slots=True, frozen=True)
class SyncConfig:
    """Windowing and batching settings for sync runs."""

    window_size: int = DEFAULT_WINDOW_SIZE
    batch_size: int = DEFAULT_BATCH_SIZE
    monthly_epoch: str = "1914-01"
    annual_epoch: str = "1900"
    entity_cache_size: int = 4096

    def validate(self) -> None:
        if self.window_size < 1:
            raise ValueError("sync.window_size must be >= 1")
        if self.batch_size < 1:
            raise ValueError("sync.batch_size must be >= 1")
        if self.entity_cache_size < 0:
            raise ValueError("sync.entity_cache_size must be >= 0")
        if len(self.monthly_epoch) != 7:
            raise ValueError("sync.monthly_epoch must be YYYY-MM")
        if len(self.annual_epoch) != 4 or not self.annual_epoch.isdigit():
            raise ValueError("sync.annual_epoch must be YYYY")


@dataclass(slots=True, frozen=True)
class EconDataSyncConfig:
    """Runtime configuration for the ingestion pipeline."""

    user_agent: str = "econ-data-sync/0.1.0"
    admin_secret: str | None = field(default=None, repr=False)

    transport: TransportConfig = field(default_factory=TransportConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    throttling: ThrottlingConfig = field(default_factory=ThrottlingConfig)
    sources: SourcesConfig = field(default_factory=SourcesConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "EconDataSyncConfig":
        env = os.environ if environ is None else environ
        storage = StorageConfig(url=env.get("ECON_DATABASE_URL") or DEFAULT_STORAGE_URL)
        sync = SyncConfig(
            window_size=_env_int(env, "ECON_SYNC_WINDOW_SIZE", DEFAULT_WINDOW_SIZE),
            batch_size=_env_int(env, "ECON_SYNC_BATCH_SIZE", DEFAULT_BATCH_SIZE),
        )
        return cls(
            admin_secret=env.get("ADMIN_PASSWORD") or None,
            storage=storage,
            sync=sync,
        )

    def validate(self) -> None:
        if not self.user_agent:
            raise ValueError("user_agent must not be empty")
        self.transport.validate()
        self.retry.validate()
        self.throttling.validate()
        self.sources.validate()
        self.storage.validate()
        self.sync.validate()


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc


__all__ = [
    "DEFAULT_OECD_ENTITY_CODES",
    "DEFAULT_STORAGE_URL",
    "DEFAULT_WINDOW_SIZE",
    "DEFAULT_BATCH_SIZE",
    "TransportConfig",
    "RetryConfig",
    "ThrottlingConfig",
    "SourcesConfig",
    "StorageConfig",
    "SyncConfig",
    "EconDataSyncConfig",
]
