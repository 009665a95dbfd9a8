"""Per-caller sliding-window rate limiting for the oracle service."""

from __future__ import annotations

import threading
import time
from typing import Callable

import bittensor as bt


class SlidingWindowRateLimiter:
    """Allows ``limit`` requests per caller in any ``window`` seconds.

    Counters are shared by all request handlers, so every read-modify-write
    happens under one lock.
    """

    def __init__(
        self,
        limit: int = 30,
        window: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window = window
        self._clock = clock
        self._lock = threading.Lock()
        # Rate limiting: caller -> list of request timestamps
        self._request_log: dict[str, list[float]] = {}

    def check(self, caller: str) -> bool:
        """Record a request and return True if the caller is within limits."""
        with self._lock:
            now = self._clock()
            log = [t for t in self._request_log.get(caller, []) if now - t < self.window]
            log.append(now)
            self._request_log[caller] = log
            count = len(log)
            self._evict_idle(now)

        allowed = count <= self.limit
        if not allowed:
            bt.logging.warning({"oracle_rate_limit": {"event": "rate_limited", "caller": caller, "requests_in_window": count}})
        return allowed

    def remaining(self, caller: str) -> int:
        with self._lock:
            now = self._clock()
            recent = [t for t in self._request_log.get(caller, []) if now - t < self.window]
        return max(0, self.limit - len(recent))

    def _evict_idle(self, now: float) -> None:
        """Drop callers whose newest request has left the window."""
        idle = [c for c, log in self._request_log.items() if not log or now - log[-1] >= self.window]
        for caller in idle:
            del self._request_log[caller]


__all__ = ["SlidingWindowRateLimiter"]
