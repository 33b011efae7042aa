"""Sliding-window rate limiting for expensive endpoints."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from collections.abc import Callable

LOGGER = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """Allow at most ``max_calls`` per ``window_seconds`` for each key.

    Instances are created by the application factory and injected where
    needed, so each app (and each test) gets its own independent history.
    """

    def __init__(
        self,
        max_calls: int,
        window_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_calls <= 0:
            raise ValueError("max_calls must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self._max_calls = max_calls
        self._window = window_seconds
        self._clock = clock
        self._history: dict[str, deque[float]] = {}
        self._lock = threading.Lock()

    def try_acquire(self, key: str = "default") -> bool:
        """Record a call for ``key`` unless the window is already full."""
        with self._lock:
            now = self._clock()
            history = self._history.setdefault(key, deque())
            self._evict(history, now)
            if len(history) >= self._max_calls:
                LOGGER.info("Rate limit reached for %s", key)
                return False
            history.append(now)
            return True

    def retry_after(self, key: str = "default") -> float:
        """Seconds until ``key`` may call again; ``0`` when allowed now."""
        with self._lock:
            history = self._history.get(key)
            if not history:
                return 0.0
            now = self._clock()
            self._evict(history, now)
            if len(history) < self._max_calls:
                return 0.0
            return max(0.0, self._window - (now - history[0]))

    def _evict(self, history: deque[float], now: float) -> None:
        while history and now - history[0] >= self._window:
            history.popleft()


__all__ = ["SlidingWindowRateLimiter"]
