"""Token-bucket rate limiter for embedding API calls."""

from __future__ import annotations

import threading
import time


class RateLimiter:
    """Blocking token bucket refilled once per ``60 / requests_per_minute`` seconds.

    Keeps remote embedding providers within their per-minute quota. A
    ``requests_per_minute`` of ``None`` or ``<= 0`` disables limiting.
    """

    def __init__(self, requests_per_minute: int | None) -> None:
        enabled = bool(requests_per_minute and requests_per_minute > 0)
        self.capacity = requests_per_minute if enabled else None
        self.tokens = float(requests_per_minute) if enabled else None
        self.refill_interval = 60.0 / requests_per_minute if enabled else None
        self.last_refill = time.monotonic()
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.capacity is not None

    def _refill(self) -> None:
        """Add the tokens earned since the last refill."""
        if not self.enabled:
            return

        elapsed = time.monotonic() - self.last_refill
        earned = int(elapsed // self.refill_interval)
        if earned > 0:
            self.tokens = min(float(self.capacity), self.tokens + earned)
            self.last_refill += earned * self.refill_interval

    def try_acquire(self) -> bool:
        """Take a token if one is available, without blocking."""
        if not self.enabled:
            return True
        with self._lock:
            self._refill()
            if self.tokens >= 1:
                self.tokens -= 1
                return True
            return False

    def acquire(self) -> None:
        """Block until a token is available or limiting is disabled."""
        if not self.enabled:
            return

        while True:
            with self._lock:
                self._refill()
                if self.tokens >= 1:
                    self.tokens -= 1
                    return
                wait_time = max(self.refill_interval - (time.monotonic() - self.last_refill), 0.0)

            # Sleep outside the lock so other threads can refill and take tokens
            time.sleep(wait_time if wait_time > 0 else self.refill_interval)
