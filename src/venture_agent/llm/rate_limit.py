"""Per-provider request rate limiting."""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable


class SlidingWindowRateLimiter:
    """Admits at most `limit` acquisitions in any trailing `window_seconds`."""

    def __init__(
        self,
        limit: int,
        *,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._stamps: deque[float] = deque()

    def try_acquire(self) -> bool:
        now = self._clock()
        self._evict(now)
        if len(self._stamps) >= self.limit:
            return False
        self._stamps.append(now)
        return True

    def remaining(self) -> int:
        self._evict(self._clock())
        return self.limit - len(self._stamps)

    def _evict(self, now: float) -> None:
        cutoff = now - self.window_seconds
        while self._stamps and self._stamps[0] <= cutoff:
            self._stamps.popleft()
