"""Bootstrap helpers for the public facade."""

from __future__ import annotations

from .config import EconDataSyncConfig
from .core.errors import ConfigurationError
from .core.transport import AsyncTransport
from .storage.gateway import StorageGateway

SDMX_GENERIC_ACCEPT = "application/vnd.sdmx.genericdata+xml;version=2.1"


def validate_config(config: EconDataSyncConfig) -> None:
    try:
        config.validate()
    except ValueError as exc:
        raise ConfigurationError(str(exc), kind="config") from exc


def build_oecd_transport(config: EconDataSyncConfig) -> AsyncTransport:
    return AsyncTransport(
        config,
        base_url=config.sources.oecd_base_url,
        extra_headers={"Accept": SDMX_GENERIC_ACCEPT},
    )


def build_gateway(config: EconDataSyncConfig) -> StorageGateway:
    try:
        return StorageGateway.from_config(config.storage)
    except ValueError as exc:
        raise ConfigurationError(str(exc), kind="config") from exc


def build_worldbank_transport(config: EconDataSyncConfig) -> AsyncTransport:
    return AsyncTransport(config, base_url=config.sources.worldbank_base_url)


__all__ = [
    "SDMX_GENERIC_ACCEPT",
    "validate_config",
    "build_oecd_transport",
    "build_worldbank_transport",
    "build_gateway",
]
