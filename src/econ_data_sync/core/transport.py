"""Async HTTP transport with rate-limit backoff, throttling, and status evaluation."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Protocol

import httpx

from ..config import EconDataSyncConfig
from .errors import (
    HttpStatusError,
    RateLimitExceededError,
    TransportError,
    classify_http_status,
)
from .retry import RetryPolicy
from .throttling import RequestSpacer

logger = logging.getLogger("econ_data_sync")


class AsyncTransportClient(Protocol):
    async def get(self, url: str, params: Mapping[str, str] | None = None) -> object: ...
    async def aclose(self) -> None: ...


def build_default_headers(config: EconDataSyncConfig) -> Mapping[str, str]:
    return {
        "Accept-Encoding": "gzip",
        "User-Agent": config.user_agent,
    }


def build_default_timeout(config: EconDataSyncConfig) -> httpx.Timeout:
    return httpx.Timeout(
        connect=config.transport.timeout_connect_seconds,
        read=config.transport.timeout_read_seconds,
        write=config.transport.timeout_write_seconds,
        pool=config.transport.timeout_pool_seconds,
    )


class AsyncTransport:
    """GET-only transport bound to one upstream base URL."""

    def __init__(
        self,
        config: EconDataSyncConfig,
        *,
        base_url: str,
        client: AsyncTransportClient | None = None,
        sleeper: Callable[[float], Awaitable[None]] | None = None,
        clock: Callable[[], float] | None = None,
        extra_headers: Mapping[str, str] | None = None,
    ) -> None:
        self._config = config
        self._sleep = sleeper or _default_sleep
        self._clock = clock or time.monotonic
        self._closed = False
        self._base_url = base_url.rstrip("/") + "/"

        self._retry = RetryPolicy.from_config(config.retry)
        self._spacer = RequestSpacer(
            config.throttling.min_wait_interval_seconds,
            clock=self._clock,
            sleeper=self._sleep,
        )
        self._owns_client = client is None
        headers = dict(build_default_headers(config))
        headers.update(extra_headers or {})
        self._client = client or httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=build_default_timeout(config),
            follow_redirects=True,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._owns_client and hasattr(self._client, "aclose"):
            await self._client.aclose()

    async def get_bytes(self, endpoint: str, *, params: Mapping[str, str] | None = None) -> bytes:
        if self._closed:
            raise TransportError("transport is already closed", kind="closed")

        started_at = self._clock()
        attempt = 0
        retries_done = 0
        normalized_endpoint = endpoint.lstrip("/")

        while True:
            attempt += 1
            logger.debug("request start endpoint=%s attempt=%s", normalized_endpoint, attempt)
            await self._spacer.acquire()

            try:
                response = await self._client.get(normalized_endpoint, params=params)
            except Exception as exc:
                if self._may_retry(retries_done, started_at):
                    delay = self._backoff(retries_done)
                    logger.warning(
                        "request network error; retrying endpoint=%s attempt=%s delay=%.1fs error=%s",
                        normalized_endpoint,
                        attempt,
                        delay,
                        exc.__class__.__name__,
                    )
                    retries_done += 1
                    await self._sleep(delay)
                    continue
                logger.error(
                    "request network error; giving up endpoint=%s attempt=%s error=%s",
                    normalized_endpoint,
                    attempt,
                    exc.__class__.__name__,
                )
                raise TransportError(
                    "network/transport error",
                    kind="network",
                    attempts=attempt,
                    cause="network",
                ) from exc

            http_status = getattr(response, "status_code", None)
            outcome = classify_http_status(http_status)
            logger.debug(
                "response received endpoint=%s attempt=%s http_status=%s",
                normalized_endpoint,
                attempt,
                http_status,
            )
            if outcome == "success":
                content = getattr(response, "content", b"")
                logger.info(
                    "request success endpoint=%s attempt=%s bytes=%s",
                    normalized_endpoint,
                    attempt,
                    len(content),
                )
                return content

            if outcome == "rate_limited":
                if self._may_retry(retries_done, started_at):
                    delay = self._backoff(retries_done)
                    logger.warning(
                        "too many requests; retrying endpoint=%s attempt=%s delay=%.1fs",
                        normalized_endpoint,
                        attempt,
                        delay,
                    )
                    retries_done += 1
                    await self._sleep(delay)
                    continue
                logger.error(
                    "too many requests; giving up endpoint=%s attempts=%s max_retries=%s",
                    normalized_endpoint,
                    attempt,
                    self._retry.max_retries,
                )
                raise RateLimitExceededError(
                    "rate limit retries exhausted",
                    kind="rate_limit",
                    attempts=attempt,
                    http_status=http_status,
                    cause="rate_limit",
                )

            headers = dict(getattr(response, "headers", {}) or {})
            logger.error(
                "request failed endpoint=%s attempt=%s http_status=%s category=%s headers=%s",
                normalized_endpoint,
                attempt,
                http_status,
                outcome,
                headers,
            )
            raise HttpStatusError(
                f"upstream returned HTTP {http_status}",
                http_status=http_status,
                headers=headers,
                url=self._base_url + normalized_endpoint,
                attempts=attempt,
            )

    def _may_retry(self, retries_done: int, started_at: float) -> bool:
        return self._retry.allows(retries_done=retries_done, elapsed_seconds=self._clock() - started_at)

    def _backoff(self, retries_done: int) -> float:
        return self._retry.delay_for(retries_done)


async def _default_sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


__all__ = [
    "AsyncTransportClient",
    "AsyncTransport",
    "build_default_headers",
    "build_default_timeout",
]
