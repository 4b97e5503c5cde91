from __future__ import annotations

import pytest

from econ_data_sync.core.errors import (
    AdminAuthError,
    EconDataError,
    ErrorDetail,
    HttpStatusError,
    RateLimitExceededError,
    StorageError,
    TransportError,
    cause_from_error,
    classify_http_status,
)


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (200, "success"),
        (204, "success"),
        (429, "rate_limited"),
        (404, "not_found"),
        (500, "server"),
        (503, "server"),
        (400, "client"),
        (None, "protocol"),
    ],
)
def test_classify_http_status(status, expected):
    assert classify_http_status(status) == expected


def test_rate_limit_is_a_transport_error():
    err = RateLimitExceededError("x", kind="rate_limit", attempts=7, http_status=429)
    assert isinstance(err, TransportError)
    assert err.attempts == 7


def test_http_status_error_keeps_headers():
    err = HttpStatusError("bad", http_status=403, headers={"X-Reason": "blocked"}, url="u")
    assert err.kind == "http_status"
    assert err.cause == "client"
    assert err.headers == {"X-Reason": "blocked"}


def test_admin_auth_error_is_distinct_from_transport_and_storage():
    err = AdminAuthError("no")
    assert isinstance(err, EconDataError)
    assert not isinstance(err, (TransportError, StorageError))


def test_error_detail_walks_cause_chain():
    try:
        try:
            raise OSError("disk full")
        except OSError as inner:
            raise RuntimeError("insert failed") from inner
    except RuntimeError as exc:
        detail = ErrorDetail.from_exception(exc)
    assert detail.type_name == "RuntimeError"
    assert detail.message == "insert failed"
    assert detail.causes == ("OSError: disk full",)


def test_storage_error_exposes_last_detail():
    details = (ErrorDetail("A", "first"), ErrorDetail("B", "second"))
    err = StorageError("failed", operation="insert_inflation", attempts=2, details=details)
    assert err.kind == "storage"
    assert err.attempts == 2
    assert err.last_detail == details[-1]
    assert cause_from_error(err) == "storage"
    assert cause_from_error(ValueError("x")) == "ValueError"
