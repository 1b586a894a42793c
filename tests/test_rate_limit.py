from shelterroute.core.cache import MemoryStore
from shelterroute.core.rate_limit import SlidingWindowRateLimiter


class _Clock:
    def __init__(self, t: float = 0.0):
        self.t = t

    def __call__(self) -> float:
        return self.t


def _limiter(clock: _Clock, max_requests: int = 60) -> SlidingWindowRateLimiter:
    store = MemoryStore(clock=clock)
    return SlidingWindowRateLimiter(store, max_requests=max_requests, window_seconds=900, clock=clock)


def test_sixty_first_request_is_rejected():
    clock = _Clock()
    limiter = _limiter(clock)

    decisions = [limiter.hit("10.0.0.1") for _ in range(61)]

    assert all(d.allowed for d in decisions[:60])
    assert decisions[59].remaining == 0
    assert not decisions[60].allowed
    assert decisions[60].reset_after_seconds == 900


def test_clients_are_counted_separately():
    clock = _Clock()
    limiter = _limiter(clock, max_requests=1)
    assert limiter.hit("a").allowed
    assert limiter.hit("b").allowed
    assert not limiter.hit("a").allowed


def test_window_rolls_forward():
    clock = _Clock()
    limiter = _limiter(clock, max_requests=4)
    limiter.hit("c")
    limiter.hit("c")
    clock.t = 500
    limiter.hit("c")
    limiter.hit("c")

    denied = limiter.hit("c")
    assert not denied.allowed
    assert denied.reset_after_seconds == 400

    # The two hits from t=0 have left the window; the two from t=500 have not.
    clock.t = 901
    assert limiter.hit("c").allowed
    assert limiter.hit("c").allowed
    assert not limiter.hit("c").allowed


def test_rejected_requests_are_not_recorded():
    clock = _Clock()
    limiter = _limiter(clock, max_requests=1)
    limiter.hit("d")
    for _ in range(5):
        clock.t += 100
        limiter.hit("d")
    clock.t = 900.5
    assert limiter.hit("d").allowed
