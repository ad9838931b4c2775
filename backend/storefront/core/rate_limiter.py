"""In-memory sliding-window rate limiter for public code lookups."""

import time
from collections import defaultdict, deque
from threading import Lock

from storefront.core.config import settings


class RateLimiter:
    """Sliding-window limiter keyed by an arbitrary string.

    Used on the coupon and gift-card validation endpoints so that codes
    cannot be enumerated quickly from a single client.
    """

    def __init__(self, max_requests: int, window_seconds: int = 60):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._hits: dict[str, deque[float]] = defaultdict(deque)
        self._lock = Lock()
        self._last_sweep = time.monotonic()

    def is_allowed(self, key: str) -> bool:
        """Record a hit for ``key`` and return False once the window is full."""
        now = time.monotonic()
        cutoff = now - self.window_seconds

        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._evict_idle(cutoff)
                self._last_sweep = now

            hits = self._hits[key]
            while hits and hits[0] <= cutoff:
                hits.popleft()

            if len(hits) >= self.max_requests:
                return False

            hits.append(now)
            return True

    def _evict_idle(self, cutoff: float) -> None:
        """Drop keys with no hits inside the current window. Caller holds the lock."""
        idle = [key for key, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for key in idle:
            del self._hits[key]

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


validation_rate_limiter = RateLimiter(
    max_requests=settings.RATE_LIMIT_VALIDATIONS_PER_MINUTE,
    window_seconds=60,
)
