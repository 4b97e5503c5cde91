"""Resume points and fetch-window planning."""

from __future__ import annotations

import datetime as dt
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TypeVar

from ..models import Period

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class FetchWindow:
    index: int
    start: Period
    end: Period


def current_month(today: dt.date | None = None) -> Period:
    today = today or dt.date.today()
    return Period.monthly(today.year, today.month)


def monthly_resume_point(latest: Period | None, *, epoch: Period) -> Period:
    """The month after the newest stored monthly period, or ``epoch``."""

    if latest is None:
        return epoch
    if latest.is_annual:
        raise ValueError(f"monthly resume point needs a monthly period, got {latest}")
    return latest.shift(1)


def annual_resume_year(latest_year: int | None, *, epoch_year: int) -> int:
    if latest_year is None:
        return epoch_year
    return latest_year + 1


def plan_windows(start: Period, *, until: Period, window_size: int) -> list[FetchWindow]:
    """Consecutive inclusive windows of ``window_size`` months.

    Windows never overlap. The last window starts at or before ``until`` and
    may reach past it.
    """

    if window_size <= 0:
        raise ValueError("window_size must be > 0")
    if start.is_annual or until.is_annual:
        raise ValueError("windows are planned over monthly periods")
    windows: list[FetchWindow] = []
    cursor = start
    while cursor <= until:
        end = cursor.shift(window_size - 1)
        windows.append(FetchWindow(index=len(windows), start=cursor, end=end))
        cursor = end.shift(1)
    return windows


def chunk_records(records: Sequence[T], *, chunk_size: int) -> tuple[tuple[T, ...], ...]:
    if chunk_size <= 0:
        raise ValueError("chunk_size must be > 0")
    return tuple(
        tuple(records[i : i + chunk_size])
        for i in range(0, len(records), chunk_size)
    )


__all__ = [
    "FetchWindow",
    "current_month",
    "monthly_resume_point",
    "annual_resume_year",
    "plan_windows",
    "chunk_records",
]
