"""
Simple in-process rate limiting utilities.

- `MinIntervalThrottle` gates the watch loop's route requests to at most one per interval.
- `SlidingWindowRateLimiter` caps gateway requests per client address within a rolling window.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from shelterroute.core.cache import KeyedStore


class MinIntervalThrottle:
    """Permit at most one action per `interval_seconds`; denied calls are simply dropped."""

    def __init__(self, interval_seconds: float, clock: Callable[[], float] = time.monotonic):
        if interval_seconds < 0:
            raise ValueError("interval_seconds must be >= 0")
        self._interval = float(interval_seconds)
        self._clock = clock
        self._last: float | None = None
        self._lock = threading.Lock()

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def last_permitted_at(self) -> float | None:
        return self._last

    def try_acquire(self, now: float | None = None) -> bool:
        """Return True and record `now` if the interval has elapsed since the last permit."""
        with self._lock:
            t = self._clock() if now is None else float(now)
            if self._last is not None and t - self._last < self._interval:
                return False
            self._last = t
            return True

    def reset(self) -> None:
        with self._lock:
            self._last = None


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one rate-limit check for a client."""

    allowed: bool
    limit: int
    remaining: int
    reset_after_seconds: int


class SlidingWindowRateLimiter:
    """At most `max_requests` per client within the trailing `window_seconds`.

    Hit timestamps live in the shared store under namespace `ratelimit`, one entry per
    client, so the check-and-record step is a single atomic `store.update`.
    Rejected requests are not recorded.
    """

    namespace = "ratelimit"

    def __init__(
        self,
        store: KeyedStore,
        *,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests <= 0:
            raise ValueError("max_requests must be > 0")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self._store = store
        self._max = int(max_requests)
        self._window = float(window_seconds)
        self._clock = clock

    @property
    def max_requests(self) -> int:
        return self._max

    @property
    def window_seconds(self) -> float:
        return self._window

    def hit(self, client_key: str) -> RateLimitDecision:
        now = self._clock()
        cutoff = now - self._window

        def _update(current: Any | None) -> tuple[tuple[float, ...], RateLimitDecision]:
            hits = tuple(t for t in (current or ()) if t > cutoff)
            allowed = len(hits) < self._max
            if allowed:
                hits = hits + (now,)
            oldest = hits[0] if hits else now
            reset_after = max(0, math.ceil(oldest + self._window - now))
            decision = RateLimitDecision(
                allowed=allowed,
                limit=self._max,
                remaining=max(0, self._max - len(hits)),
                reset_after_seconds=reset_after,
            )
            return hits, decision

        return self._store.update(self.namespace, client_key, _update, ttl_seconds=self._window)
