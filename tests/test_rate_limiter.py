from app.core.rate_limiter import InMemoryRateLimiterService


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_blocks_after_limit_and_reports_retry_after():
    clock = FakeClock()
    limiter = InMemoryRateLimiterService(limit=2, window_seconds=60, clock=clock)

    first = limiter.check(client_key="1.2.3.4", endpoint="auth")
    second = limiter.check(client_key="1.2.3.4", endpoint="auth")
    clock.now += 10
    blocked = limiter.check(client_key="1.2.3.4", endpoint="auth")

    assert (first.allowed, first.remaining) == (True, 1)
    assert (second.allowed, second.remaining) == (True, 0)
    assert blocked.allowed is False
    assert blocked.retry_after_seconds == 50


def test_window_slides_and_clients_are_independent():
    clock = FakeClock()
    limiter = InMemoryRateLimiterService(limit=1, window_seconds=60, clock=clock)

    assert limiter.check(client_key="a", endpoint="auth").allowed is True
    assert limiter.check(client_key="b", endpoint="auth").allowed is True
    assert limiter.check(client_key="a", endpoint="auth").allowed is False

    clock.now += 61
    assert limiter.check(client_key="a", endpoint="auth").allowed is True


def test_expired_clients_are_evicted():
    clock = FakeClock()
    limiter = InMemoryRateLimiterService(limit=5, window_seconds=60, sweep_every=3, clock=clock)

    limiter.check(client_key="a", endpoint="auth")
    limiter.check(client_key="b", endpoint="auth")
    assert len(limiter) == 2

    clock.now += 120
    limiter.check(client_key="c", endpoint="auth")

    assert len(limiter) == 1
