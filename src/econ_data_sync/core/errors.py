"""Error types and status mapping."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class ErrorDetail:
    """Diagnostic snapshot of one failed attempt."""

    type_name: str
    message: str
    code: str | None = None
    causes: tuple[str, ...] = ()

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ErrorDetail":
        code = getattr(exc, "code", None)
        if code is None:
            code = getattr(exc, "sqlstate", None)
        causes: list[str] = []
        seen: set[int] = {id(exc)}
        current = exc.__cause__ or exc.__context__
        while current is not None and id(current) not in seen:
            seen.add(id(current))
            causes.append(f"{current.__class__.__name__}: {current}")
            current = current.__cause__ or current.__context__
        return cls(
            type_name=exc.__class__.__name__,
            message=str(exc),
            code=str(code) if code is not None else None,
            causes=tuple(causes),
        )


class EconDataError(Exception):
    """Base exception for this package."""

    def __init__(
        self,
        message: str,
        *,
        kind: str | None = None,
        attempts: int | None = None,
        http_status: int | None = None,
        cause: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.attempts = attempts
        self.http_status = http_status
        self.cause = cause


class TransportError(EconDataError):
    """Network/transport-level failure."""


class RateLimitExceededError(TransportError):
    """Upstream kept answering 429 until the retry budget ran out."""


class HttpStatusError(EconDataError):
    """Non-retryable HTTP status from an upstream source.

    ``cause`` carries the status category from :func:`classify_http_status`
    (``not_found``, ``client``, ``server`` or ``protocol``).
    """

    def __init__(
        self,
        message: str,
        *,
        http_status: int | None,
        headers: Mapping[str, str] | None = None,
        url: str | None = None,
        attempts: int | None = None,
    ) -> None:
        super().__init__(
            message,
            kind="http_status",
            attempts=attempts,
            http_status=http_status,
            cause=classify_http_status(http_status),
        )
        self.headers = dict(headers or {})
        self.url = url


class DecodeError(EconDataError):
    """Upstream payload could not be decoded into observations."""


class ValidationError(EconDataError):
    """Invalid input / request rejected."""


class ConfigurationError(ValidationError):
    """Configuration failed validation."""


class ClientClosedError(EconDataError):
    """Raised when client is used after close."""


class AdminAuthError(EconDataError):
    """Shared admin secret missing or not matching."""


class StorageError(EconDataError):
    """Storage call failed after exhausting its retries.

    ``cause`` is ``"integrity"`` when a constraint rejected the write; such
    failures are raised on the first attempt.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        attempts: int,
        details: tuple[ErrorDetail, ...] = (),
        cause: str = "storage",
    ) -> None:
        super().__init__(message, kind="storage", attempts=attempts, cause=cause)
        self.operation = operation
        self.details = details

    @property
    def last_detail(self) -> ErrorDetail | None:
        return self.details[-1] if self.details else None


class RecordRejected(EconDataError):
    """A single upstream record failed validation."""

    def __init__(self, reason: str, *, entity_code: str | None = None, period: str | None = None) -> None:
        super().__init__(reason, kind="validation", cause="invalid_record")
        self.reason = reason
        self.entity_code = entity_code
        self.period = period


def classify_http_status(http_status: int | None) -> str:
    """Map an HTTP status to the transport's handling category."""

    if http_status is None:
        return "protocol"
    if 200 <= http_status < 300:
        return "success"
    if http_status == 429:
        return "rate_limited"
    if http_status == 404:
        return "not_found"
    if http_status >= 500:
        return "server"
    return "client"


def cause_from_error(exc: BaseException) -> str:
    if isinstance(exc, EconDataError) and exc.cause:
        return exc.cause
    if isinstance(exc, EconDataError) and exc.kind:
        return exc.kind
    return exc.__class__.__name__


__all__ = [
    "ErrorDetail",
    "EconDataError",
    "TransportError",
    "RateLimitExceededError",
    "HttpStatusError",
    "DecodeError",
    "ValidationError",
    "ConfigurationError",
    "ClientClosedError",
    "AdminAuthError",
    "StorageError",
    "RecordRejected",
    "classify_http_status",
    "cause_from_error",
]
