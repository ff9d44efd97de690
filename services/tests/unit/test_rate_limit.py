from __future__ import annotations

import pytest

from scenariolab.services.rate_limit import RateLimitDecision, RateLimiter


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def test_first_call_opens_window() -> None:
    limiter = RateLimiter(limit=3, window_ms=60_000, clock=FakeClock())

    decision = limiter.check("writer-1")

    assert decision == RateLimitDecision(allowed=True, remaining=2, retry_after_ms=60_000)


def test_call_past_limit_is_rejected_with_remaining_window() -> None:
    clock = FakeClock()
    limiter = RateLimiter(limit=2, window_ms=60_000, clock=clock)

    assert limiter.check("writer-1").allowed
    clock.advance(10)
    second = limiter.check("writer-1")
    assert second.allowed
    assert second.remaining == 0

    clock.advance(5)
    rejected = limiter.check("writer-1")

    assert rejected.allowed is False
    assert rejected.remaining == 0
    assert rejected.retry_after_ms == 45_000
    assert rejected.retry_after_seconds == 45


def test_window_resets_after_expiry() -> None:
    clock = FakeClock()
    limiter = RateLimiter(limit=1, window_ms=1_000, clock=clock)

    assert limiter.check("writer-1").allowed
    assert not limiter.check("writer-1").allowed

    clock.advance(1.0)
    decision = limiter.check("writer-1")

    assert decision.allowed
    assert decision.retry_after_ms == 1_000


def test_keys_are_isolated() -> None:
    limiter = RateLimiter(limit=1, window_ms=60_000, clock=FakeClock())

    assert limiter.check("writer-1").allowed
    assert not limiter.check("writer-1").allowed
    assert limiter.check("writer-2").allowed


def test_thirty_per_minute_default_shape() -> None:
    limiter = RateLimiter(limit=30, window_ms=60_000, clock=FakeClock())

    decisions = [limiter.check("writer-1") for _ in range(31)]

    assert all(decision.allowed for decision in decisions[:30])
    assert decisions[-1].allowed is False
    assert decisions[-1].retry_after_ms > 0


def test_retry_after_seconds_rounds_up() -> None:
    assert RateLimitDecision(allowed=False, remaining=0, retry_after_ms=1).retry_after_seconds == 1
    assert RateLimitDecision(allowed=False, remaining=0, retry_after_ms=1_001).retry_after_seconds == 2


@pytest.mark.parametrize("kwargs", [{"limit": 0, "window_ms": 1_000}, {"limit": 1, "window_ms": 0}])
def test_invalid_configuration_rejected(kwargs: dict[str, int]) -> None:
    with pytest.raises(ValueError):
        RateLimiter(**kwargs)
