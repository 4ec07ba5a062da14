# This file rate-limits guest submissions per client address.
# It exists so the public submission endpoint cannot be flooded from one source.
# Two sliding windows are enforced (hourly and daily); timestamps live in process memory.
# The clock is injectable so window expiry is testable without sleeping.
# Keys with no submission inside the daily window are swept so the key map stays bounded.

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

HOUR_SECONDS = 3600.0
DAY_SECONDS = 86400.0
SWEEP_INTERVAL_SECONDS = 300.0


@dataclass(frozen=True)
class LimitDecision:
    allowed: bool
    reason: str | None = None
    retry_after_seconds: int | None = None


class SubmissionRateLimiter:
    def __init__(
        self,
        *,
        hourly_limit: int,
        daily_limit: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if hourly_limit <= 0 or daily_limit <= 0:
            raise ValueError("Submission limits must be greater than 0.")
        self.hourly_limit = hourly_limit
        self.daily_limit = daily_limit
        self._clock = clock
        self._lock = threading.Lock()
        self._events: dict[str, deque[float]] = {}
        self._last_sweep: float | None = None

    @property
    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._events)

    def check_and_record(self, key: str) -> LimitDecision:
        """Record one submission for `key` unless a window is already full."""

        now = self._clock()
        with self._lock:
            self._sweep(now)
            events = self._events.pop(key, None) or deque()
            while events and now - events[0] >= DAY_SECONDS:
                events.popleft()
            if events:
                self._events[key] = events

            in_last_hour = [ts for ts in events if now - ts < HOUR_SECONDS]
            if len(in_last_hour) >= self.hourly_limit:
                retry = HOUR_SECONDS - (now - in_last_hour[0])
                return LimitDecision(
                    allowed=False,
                    reason=f"Hourly submission limit of {self.hourly_limit} reached.",
                    retry_after_seconds=max(1, int(retry)),
                )
            if len(events) >= self.daily_limit:
                retry = DAY_SECONDS - (now - events[0])
                return LimitDecision(
                    allowed=False,
                    reason=f"Daily submission limit of {self.daily_limit} reached.",
                    retry_after_seconds=max(1, int(retry)),
                )

            events.append(now)
            self._events[key] = events
            return LimitDecision(allowed=True)

    def reset(self) -> None:
        with self._lock:
            self._events.clear()
            self._last_sweep = None

    def _sweep(self, now: float) -> None:
        # Caller holds the lock. Keys whose newest event left the daily window are dropped.
        if self._last_sweep is not None and now - self._last_sweep < SWEEP_INTERVAL_SECONDS:
            return
        self._last_sweep = now
        stale = [key for key, events in self._events.items() if not events or now - events[-1] >= DAY_SECONDS]
        for key in stale:
            del self._events[key]
