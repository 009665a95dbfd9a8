"""Tests for the sliding-window rate limiter."""

import threading

from moisture.oracle.rate_limit import SlidingWindowRateLimiter


class FakeClock:

    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestSlidingWindowRateLimiter:

    def test_limit_enforced(self):
        limiter = SlidingWindowRateLimiter(limit=3, window=10, clock=FakeClock())
        assert [limiter.check("a") for _ in range(4)] == [True, True, True, False]

    def test_callers_independent(self):
        limiter = SlidingWindowRateLimiter(limit=1, window=10, clock=FakeClock())
        assert limiter.check("a")
        assert not limiter.check("a")
        assert limiter.check("b")

    def test_window_slides(self):
        clock = FakeClock()
        limiter = SlidingWindowRateLimiter(limit=2, window=10, clock=clock)
        limiter.check("a")
        clock.now += 6
        limiter.check("a")
        assert not limiter.check("a")
        clock.now += 4.5
        # first request has aged out; the rejected one still counts
        assert limiter.remaining("a") == 0
        clock.now += 6
        assert limiter.check("a")

    def test_remaining(self):
        clock = FakeClock()
        limiter = SlidingWindowRateLimiter(limit=5, window=10, clock=clock)
        assert limiter.remaining("a") == 5
        limiter.check("a")
        limiter.check("a")
        assert limiter.remaining("a") == 3
        clock.now += 10
        assert limiter.remaining("a") == 5

    def test_idle_callers_evicted(self):
        clock = FakeClock()
        limiter = SlidingWindowRateLimiter(limit=5, window=10, clock=clock)
        limiter.check("a")
        clock.now += 11
        limiter.check("b")
        assert set(limiter._request_log) == {"b"}

    def test_threads_share_one_budget(self):
        limiter = SlidingWindowRateLimiter(limit=50, window=60)
        allowed = []
        lock = threading.Lock()

        def hammer():
            for _ in range(20):
                ok = limiter.check("shared")
                with lock:
                    allowed.append(ok)

        threads = [threading.Thread(target=hammer) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert allowed.count(True) == 50
        assert allowed.count(False) == 50
