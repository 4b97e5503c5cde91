"""Fixed-size concurrent batches with per-item failure isolation."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from .planner import chunk_records

T = TypeVar("T")
R = TypeVar("R")


async def run_batched(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    *,
    batch_size: int,
) -> list[tuple[T, R | Exception]]:
    """Run ``worker`` over ``items``, ``batch_size`` at a time.

    Batches run one after another; items inside a batch run concurrently.
    A failing item yields its exception in place of a result and does not
    affect its siblings.
    """

    results: list[tuple[T, R | Exception]] = []
    for batch in chunk_records(items, chunk_size=batch_size):
        outcomes = await asyncio.gather(*(worker(item) for item in batch), return_exceptions=True)
        for item, outcome in zip(batch, outcomes):
            if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
                raise outcome
            results.append((item, outcome))
    return results


__all__ = [
    "run_batched",
]
