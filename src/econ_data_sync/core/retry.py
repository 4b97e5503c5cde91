"""Backoff schedule shared by the upstream transports."""

from __future__ import annotations

from dataclasses import dataclass

from ..config import RetryConfig


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Exponential backoff bounded by a retry count and a wall-clock budget.

    Rate-limited responses and network errors both draw from the same
    allowance within one request.
    """

    max_retries: int
    base_delay_seconds: float
    multiplier: float
    max_backoff_seconds: float
    budget_seconds: float

    @classmethod
    def from_config(cls, config: RetryConfig) -> "RetryPolicy":
        return cls(
            max_retries=config.max_retries,
            base_delay_seconds=config.base_delay_seconds,
            multiplier=config.multiplier,
            max_backoff_seconds=config.max_backoff_seconds,
            budget_seconds=config.total_retry_budget_seconds,
        )

    def delay_for(self, retry_index: int) -> float:
        """Seconds to wait before retry number ``retry_index`` (0-based)."""

        if retry_index < 0:
            raise ValueError("retry_index must be >= 0")
        raw = self.base_delay_seconds * (self.multiplier**retry_index)
        return max(0.0, min(self.max_backoff_seconds, raw))

    def allows(self, *, retries_done: int, elapsed_seconds: float) -> bool:
        return retries_done < self.max_retries and elapsed_seconds <= self.budget_seconds


__all__ = [
    "RetryPolicy",
]
