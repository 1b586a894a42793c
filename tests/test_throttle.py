import pytest

from shelterroute.core.rate_limit import MinIntervalThrottle


def test_throttle_checks_inside_interval_yield_one_permit():
    throttle = MinIntervalThrottle(4.0)
    permits = [throttle.try_acquire(now=0.0), throttle.try_acquire(now=3.999)]
    assert permits == [True, False]


def test_throttle_checks_past_interval_yield_two_permits():
    throttle = MinIntervalThrottle(4.0)
    permits = [throttle.try_acquire(now=0.0), throttle.try_acquire(now=4.001)]
    assert permits == [True, True]


def test_throttle_denied_calls_do_not_move_the_window():
    throttle = MinIntervalThrottle(4.0)
    assert throttle.try_acquire(now=10.0)
    assert not throttle.try_acquire(now=12.0)
    assert not throttle.try_acquire(now=13.9)
    assert throttle.try_acquire(now=14.0)
    assert throttle.last_permitted_at == 14.0


def test_throttle_uses_injected_clock_and_reset():
    now = {"t": 100.0}
    throttle = MinIntervalThrottle(5.0, clock=lambda: now["t"])
    assert throttle.try_acquire()
    now["t"] = 101.0
    assert not throttle.try_acquire()
    throttle.reset()
    assert throttle.try_acquire()


def test_throttle_rejects_negative_interval():
    with pytest.raises(ValueError):
        MinIntervalThrottle(-1)
