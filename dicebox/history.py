"""Bounded, most-recent-first roll history."""

from __future__ import annotations

import threading
from collections import deque

from dicebox.config import settings
from dicebox.models import RollResult


class HistoryBuffer:
    """Fixed-capacity FIFO of committed roll results.

    Writes and reads share one lock, so concurrent rollers never lose an
    entry or evict twice, and readers only ever see whole results.

    Args:
        capacity: Maximum entries retained. Defaults to settings.
    """

    def __init__(self, capacity: int | None = None) -> None:
        capacity = settings.history_capacity if capacity is None else capacity
        if capacity < 1:
            raise ValueError(f"History capacity must be at least 1, got {capacity}")
        self._capacity = capacity
        self._entries: deque[RollResult] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def push(self, result: RollResult) -> None:
        """Append a result, evicting the oldest entry when full."""
        with self._lock:
            self._entries.append(result)

    def recent(self, limit: int = 10) -> list[RollResult]:
        """Return up to ``limit`` results, newest first."""
        if limit <= 0:
            return []
        with self._lock:
            snapshot = list(self._entries)
        return snapshot[::-1][:limit]

    def last(self) -> RollResult | None:
        with self._lock:
            return self._entries[-1] if self._entries else None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
