"""Fixed-window request budgets for external services."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from stock_screener.exceptions import RateLimitExceeded
from stock_screener.models import RateLimitStatus

DEFAULT_MAX_REQUESTS = 5
DEFAULT_WINDOW_MS = 60_000


def _now_ms() -> float:
    return time.time() * 1000


@dataclass
class RateLimitState:
    requests_in_window: int = 0
    window_start_ms: float = 0.0


class FixedWindowRateLimiter:
    """Allow at most ``max_requests`` calls per ``window_ms``.

    The counter resets once the current time is past
    ``window_start + window_ms``; the reset opens a new window at that moment.
    """

    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_ms: float = DEFAULT_WINDOW_MS,
        clock: Callable[[], float] | None = None,
        service: str | None = None,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")
        self.max_requests = max_requests
        self.window_ms = window_ms
        self.service = service
        self._clock = clock or _now_ms
        self._state = RateLimitState()

    def acquire(self) -> None:
        """Record one outbound call or raise :class:`RateLimitExceeded`."""

        now = self._clock()
        state = self._state
        if now - state.window_start_ms > self.window_ms:
            state.requests_in_window = 0
            state.window_start_ms = now

        if state.requests_in_window >= self.max_requests:
            wait_ms = self.window_ms - (now - state.window_start_ms)
            raise RateLimitExceeded(wait_ms, service=self.service)

        state.requests_in_window += 1

    def status(self) -> RateLimitStatus:
        now = self._clock()
        state = self._state
        if now - state.window_start_ms > self.window_ms:
            used = 0
        else:
            used = state.requests_in_window
        return RateLimitStatus(
            remaining=max(0, self.max_requests - used),
            reset_timestamp=state.window_start_ms + self.window_ms,
        )


class ThreadSafeRateLimiter(FixedWindowRateLimiter):
    """Same budget guarded by a lock for hosts that share it across threads."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._lock = threading.Lock()

    def acquire(self) -> None:
        with self._lock:
            super().acquire()

    def status(self) -> RateLimitStatus:
        with self._lock:
            return super().status()


__all__ = [
    "DEFAULT_MAX_REQUESTS",
    "DEFAULT_WINDOW_MS",
    "FixedWindowRateLimiter",
    "RateLimitState",
    "ThreadSafeRateLimiter",
]
