"""Fixed-window request throttling keyed by caller identity."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single rate-limit check."""

    allowed: bool
    remaining: int
    retry_after_ms: int

    @property
    def retry_after_seconds(self) -> int:
        """Whole seconds suitable for a ``Retry-After`` header."""

        return max(1, math.ceil(self.retry_after_ms / 1000))


@dataclass
class RateBucket:
    count: int
    reset_at: float


class RateLimiter:
    """Approximate, burst-tolerant limiter: ``limit`` calls per fixed window.

    Buckets live in process memory. ``check`` never awaits, so concurrent
    requests on one event loop cannot interleave inside it.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_ms: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if limit <= 0:
            raise ValueError("limit must be greater than zero.")
        if window_ms <= 0:
            raise ValueError("window_ms must be greater than zero.")
        self._limit = limit
        self._window_seconds = window_ms / 1000
        self._window_ms = window_ms
        self._clock = clock
        self._buckets: dict[str, RateBucket] = {}

    @property
    def limit(self) -> int:
        return self._limit

    def check(self, key: str) -> RateLimitDecision:
        now = self._clock()
        bucket = self._buckets.get(key)

        if bucket is None or bucket.reset_at <= now:
            self._buckets[key] = RateBucket(count=1, reset_at=now + self._window_seconds)
            return RateLimitDecision(
                allowed=True,
                remaining=max(self._limit - 1, 0),
                retry_after_ms=self._window_ms,
            )

        retry_after_ms = max(math.ceil((bucket.reset_at - now) * 1000), 0)
        if bucket.count >= self._limit:
            return RateLimitDecision(allowed=False, remaining=0, retry_after_ms=retry_after_ms)

        bucket.count += 1
        return RateLimitDecision(
            allowed=True,
            remaining=max(self._limit - bucket.count, 0),
            retry_after_ms=retry_after_ms,
        )


__all__ = ["RateBucket", "RateLimitDecision", "RateLimiter"]
