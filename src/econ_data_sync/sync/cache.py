"""Best-effort memo of entities already written during this process."""

from __future__ import annotations

from collections import OrderedDict


class EntityCache:
    """Bounded LRU of ``code -> high-frequency flag known to be stored``.

    A hit only lets the caller skip a redundant entity upsert; a miss or an
    eviction just costs one extra idempotent write.
    """

    def __init__(self, max_size: int = 4096) -> None:
        if max_size < 0:
            raise ValueError("max_size must be >= 0")
        self._max_size = max_size
        self._entries: OrderedDict[str, bool] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def satisfies(self, code: str, *, high_frequency: bool) -> bool:
        known = self._entries.get(code)
        if known is None:
            return False
        self._entries.move_to_end(code)
        return known or not high_frequency

    def remember(self, code: str, *, high_frequency: bool) -> None:
        if self._max_size == 0:
            return
        self._entries[code] = self._entries.get(code, False) or high_frequency
        self._entries.move_to_end(code)
        while len(self._entries) > self._max_size:
            self._entries.popitem(last=False)

    def forget(self, code: str) -> None:
        self._entries.pop(code, None)

    def clear(self) -> None:
        self._entries.clear()


__all__ = [
    "EntityCache",
]
