"""
Sliding-window limiter for the manual ingestion trigger.

Keyed by API key (if present) or client IP address. One instance lives
on the FastAPI app state; the number of tracked keys is bounded so a
flood of distinct clients cannot grow memory without limit.
"""

import time
from collections import OrderedDict, deque
from collections.abc import Callable

from starlette.requests import Request


def get_rate_limit_key(request: Request) -> str:
    """Extract rate limit key: API key header or remote IP."""
    api_key = request.headers.get("X-API-KEY")
    if api_key:
        return f"key:{api_key}"
    host = request.client.host if request.client else "unknown"
    return f"ip:{host}"


class SlidingWindowLimiter:
    """
    Allow at most ``limit`` hits per key within ``window`` seconds.

    When ``max_keys`` keys are tracked, expired keys are evicted first;
    if none are expired the least recently used key is dropped.
    """

    def __init__(
        self,
        limit: int,
        window: float,
        max_keys: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if limit < 1 or window <= 0 or max_keys < 1:
            raise ValueError("limit, window and max_keys must be positive")
        self._limit = limit
        self._window = window
        self._max_keys = max_keys
        self._clock = clock
        self._hits: OrderedDict[str, deque[float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._hits)

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window(self) -> float:
        return self._window

    def _prune(self, hits: deque[float], now: float) -> None:
        while hits and now - hits[0] >= self._window:
            hits.popleft()

    def allow(self, key: str) -> bool:
        """Record a hit for ``key``; False when the key is over its limit."""
        now = self._clock()
        hits = self._hits.get(key)

        if hits is None:
            if len(self._hits) >= self._max_keys:
                self.evict_expired()
            while len(self._hits) >= self._max_keys:
                self._hits.popitem(last=False)
            hits = deque()
            self._hits[key] = hits
        else:
            self._hits.move_to_end(key)
            self._prune(hits, now)

        if len(hits) >= self._limit:
            return False
        hits.append(now)
        return True

    def retry_after(self, key: str) -> float:
        """Seconds until ``key`` may hit again (0 if it may now)."""
        hits = self._hits.get(key)
        if not hits:
            return 0.0
        now = self._clock()
        self._prune(hits, now)
        if len(hits) < self._limit:
            return 0.0
        return max(0.0, self._window - (now - hits[0]))

    def evict_expired(self) -> int:
        """Forget keys with no hits inside the window; returns how many."""
        now = self._clock()
        expired = []
        for key, hits in self._hits.items():
            self._prune(hits, now)
            if not hits:
                expired.append(key)
        for key in expired:
            del self._hits[key]
        return len(expired)
