"""In-memory sliding window registration limiter."""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable
from threading import Lock


class SlidingWindowRegistrationLimiter:
    """Thread-safe sliding window limit on open registrations, instance-wide."""

    def __init__(
        self,
        max_registrations: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialise limiter parameters and event storage."""
        self._max_registrations = max_registrations
        self._window = window_seconds
        self._clock = clock
        self._events: deque[float] = deque()
        self._lock = Lock()

    def is_available(self, consuming: bool) -> bool:
        """Return ``True`` while the window has room; record the registration if ``consuming``."""
        now = self._clock()
        with self._lock:
            while self._events and now - self._events[0] > self._window:
                self._events.popleft()
            if len(self._events) >= self._max_registrations:
                return False
            if consuming:
                self._events.append(now)
            return True
