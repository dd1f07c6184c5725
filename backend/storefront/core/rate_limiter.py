"""Simple in-memory sliding-window rate limiter."""

import time
from collections import defaultdict, deque
from threading import Lock


class RateLimiter:
    """In-memory sliding-window rate limiter keyed by an arbitrary string.

    Used to slow down coupon-code guessing: each key (a user id) may make at
    most ``max_requests`` calls per ``window_seconds``.
    """

    def __init__(self, max_requests: int, window_seconds: int = 60):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._requests: dict[str, deque[float]] = defaultdict(deque)
        self._lock = Lock()

    def _prune(self, key: str, now: float) -> deque[float]:
        timestamps = self._requests[key]
        cutoff = now - self.window_seconds
        while timestamps and timestamps[0] <= cutoff:
            timestamps.popleft()
        return timestamps

    def is_allowed(self, key: str) -> bool:
        """Record a call for ``key``; False if it is over the limit."""
        now = time.monotonic()
        with self._lock:
            timestamps = self._prune(key, now)
            if len(timestamps) >= self.max_requests:
                return False
            timestamps.append(now)
            return True

    def retry_after(self, key: str) -> int:
        """Whole seconds until ``key`` may call again (0 if it may now)."""
        now = time.monotonic()
        with self._lock:
            timestamps = self._prune(key, now)
            if len(timestamps) < self.max_requests:
                return 0
            # A zero limit blocks every call, so there is no oldest call to wait on
            if not timestamps:
                return self.window_seconds
            return max(1, int(timestamps[0] + self.window_seconds - now) + 1)

    def reset(self) -> None:
        """Clear all tracked state (useful for testing)."""
        with self._lock:
            self._requests.clear()
