"""Shared-secret gate and the closed set of admin actions."""

from __future__ import annotations

import enum
import hmac
from collections.abc import Mapping
from dataclasses import dataclass, field

from .core.errors import AdminAuthError


class AdminAction(str, enum.Enum):
    UPDATE = "update"
    DELETE = "delete"
    DELETE_AND_RESYNC = "resync"


class Dataset(str, enum.Enum):
    ALL = "all"
    INFLATION = "inflation"
    INCOME = "income"


@dataclass(slots=True, frozen=True)
class AdminResult:
    success: bool
    message: str
    details: Mapping[str, int] = field(default_factory=dict)


def verify_admin_secret(provided: str | None, expected: str | None) -> None:
    """Raise :class:`AdminAuthError` unless ``provided`` equals ``expected``.

    An unset or empty expected secret rejects every caller.
    """

    if not expected:
        raise AdminAuthError("admin secret is not configured", kind="auth", cause="auth")
    if provided is None or not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        raise AdminAuthError("admin secret does not match", kind="auth", cause="auth")


__all__ = [
    "AdminAction",
    "Dataset",
    "AdminResult",
    "verify_admin_secret",
]
