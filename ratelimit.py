# -----------------------------
# ratelimit.py
# -----------------------------
"""Fixed-window message throttle, one window per connection.

The window opens on the first accepted message and a reset is scheduled
for ``window_ms`` later. Only that reset zeroes the count. A rejected
attempt always reports the full window length as the retry delay, even
when part of the window has already elapsed.
"""
from __future__ import annotations
import asyncio
from dataclasses import dataclass
from typing import Callable, Optional, Protocol


DEFAULT_LIMIT = 10
DEFAULT_WINDOW_MS = 5000


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle: ...


class LoopScheduler:
    """Schedules callbacks on the running asyncio event loop."""

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay_s, callback)


@dataclass
class RateWindow:
    count: int = 0
    reset_handle: Optional[TimerHandle] = None

    @property
    def scheduled(self) -> bool:
        return self.reset_handle is not None


@dataclass(frozen=True)
class RateDecision:
    allowed: bool
    retry_after_ms: int = 0


class RateLimiter:
    def __init__(self, scheduler: Scheduler, limit: int = DEFAULT_LIMIT, window_ms: int = DEFAULT_WINDOW_MS):
        if limit <= 0 or window_ms <= 0:
            raise ValueError("limit and window_ms must be positive")
        self.scheduler = scheduler
        self.limit = limit
        self.window_ms = window_ms

    def attempt_send(self, window: RateWindow) -> RateDecision:
        window.count += 1
        if window.count > self.limit:
            return RateDecision(False, retry_after_ms=self.window_ms)
        if window.reset_handle is None:
            window.reset_handle = self.scheduler.call_later(
                self.window_ms / 1000, lambda: self._reset(window)
            )
        return RateDecision(True)

    def cancel(self, window: RateWindow) -> None:
        """Drop a pending reset; safe to call when nothing is scheduled."""
        if window.reset_handle is not None:
            window.reset_handle.cancel()
            window.reset_handle = None

    @staticmethod
    def _reset(window: RateWindow) -> None:
        window.count = 0
        window.reset_handle = None
