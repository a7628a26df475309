"""
Rate Limiter: two independent fixed windows (per minute, per hour).

A request is admitted only if both windows are under their maxima, in which
case both counters increment together. Denied requests never count.
"""

import math
import threading
import time
from typing import Callable, Optional

from pilot_engine.models.config import RateLimitConfig

MINUTE = 60.0
HOUR = 3600.0


class RateWindow:
    """A fixed admission window. Counts reset only when the clock crosses reset_at."""

    def __init__(self, length: float, now: float):
        self.length = length
        self.count = 0
        self.reset_at = now + length

    def roll(self, now: float) -> None:
        if now >= self.reset_at:
            self.count = 0
            elapsed_windows = math.floor((now - self.reset_at) / self.length) + 1
            self.reset_at += elapsed_windows * self.length


class RateLimiter:

    def __init__(
        self,
        config: Optional[RateLimitConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or RateLimitConfig()
        self._clock = clock
        self._lock = threading.Lock()
        now = clock()
        self._minute = RateWindow(MINUTE, now)
        self._hour = RateWindow(HOUR, now)

    def is_allowed(self) -> bool:
        """Admit or deny one request. Admission consumes quota in both windows."""
        if not self.config.enabled:
            return True

        with self._lock:
            self._roll()
            if self._has_quota():
                self._minute.count += 1
                self._hour.count += 1
                return True
            return False

    def get_status(self) -> dict:
        with self._lock:
            self._roll()
            return {
                "enabled": self.config.enabled,
                "requests_this_minute": self._minute.count,
                "requests_this_hour": self._hour.count,
                "remaining_per_minute": max(0, self.config.requests_per_minute - self._minute.count),
                "remaining_per_hour": max(0, self.config.requests_per_hour - self._hour.count),
                "reset_time_minute": self._minute.reset_at,
                "reset_time_hour": self._hour.reset_at,
                "is_allowed": (not self.config.enabled) or self._has_quota(),
            }

    def get_remaining_requests(self) -> dict:
        status = self.get_status()
        return {
            "per_minute": status["remaining_per_minute"],
            "per_hour": status["remaining_per_hour"],
        }

    def get_time_until_reset(self) -> dict:
        """Seconds until each window resets, for client-side back-off."""
        with self._lock:
            now = self._clock()
            self._roll()
            return {
                "minute": max(0.0, self._minute.reset_at - now),
                "hour": max(0.0, self._hour.reset_at - now),
            }

    def update_config(self, **changes) -> None:
        with self._lock:
            self.config = self.config.model_copy(update=changes)

    def reset(self) -> None:
        with self._lock:
            now = self._clock()
            self._minute = RateWindow(MINUTE, now)
            self._hour = RateWindow(HOUR, now)

    def _roll(self) -> None:
        now = self._clock()
        self._minute.roll(now)
        self._hour.roll(now)

    def _has_quota(self) -> bool:
        return (
            self._minute.count < self.config.requests_per_minute
            and self._hour.count < self.config.requests_per_hour
        )
