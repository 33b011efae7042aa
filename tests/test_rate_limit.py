"""Tests for the sliding-window rate limiter."""

from __future__ import annotations

import pytest

from swipe_triage.web import SlidingWindowRateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_calls_beyond_limit_are_rejected_until_window_passes() -> None:
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(2, 60.0, clock=clock)

    assert limiter.try_acquire() is True
    clock.now = 10.0
    assert limiter.try_acquire() is True
    assert limiter.try_acquire() is False
    assert limiter.retry_after() == pytest.approx(50.0)

    clock.now = 60.0
    assert limiter.try_acquire() is True
    assert limiter.try_acquire() is False


def test_keys_are_tracked_independently() -> None:
    limiter = SlidingWindowRateLimiter(1, 30.0, clock=FakeClock())

    assert limiter.try_acquire("alpha") is True
    assert limiter.try_acquire("beta") is True
    assert limiter.try_acquire("alpha") is False


def test_separate_instances_do_not_share_history() -> None:
    first = SlidingWindowRateLimiter(1, 30.0, clock=FakeClock())
    second = SlidingWindowRateLimiter(1, 30.0, clock=FakeClock())

    assert first.try_acquire() is True
    assert second.try_acquire() is True


@pytest.mark.parametrize(("calls", "window"), [(0, 10.0), (1, 0.0)])
def test_invalid_configuration_is_rejected(calls: int, window: float) -> None:
    with pytest.raises(ValueError):
        SlidingWindowRateLimiter(calls, window)
