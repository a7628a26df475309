"""Tests for the two-window rate limiter."""

from pilot_engine.models.config import RateLimitConfig
from pilot_engine.ratelimit.limiter import RateLimiter


class _FakeClock:
    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _make_limiter(clock, per_minute: int = 3, per_hour: int = 100, enabled: bool = True) -> RateLimiter:
    config = RateLimitConfig(
        enabled=enabled,
        requests_per_minute=per_minute,
        requests_per_hour=per_hour,
    )
    return RateLimiter(config, clock=clock)


class TestRateLimiter:
    def setup_method(self):
        self.clock = _FakeClock()

    def test_minute_quota(self):
        limiter = _make_limiter(self.clock, per_minute=3)
        assert [limiter.is_allowed() for _ in range(4)] == [True, True, True, False]

    def test_window_resets_after_boundary(self):
        limiter = _make_limiter(self.clock, per_minute=3)
        for _ in range(3):
            limiter.is_allowed()
        assert limiter.is_allowed() is False
        self.clock.advance(60)
        assert limiter.is_allowed() is True

    def test_denied_requests_do_not_count(self):
        limiter = _make_limiter(self.clock, per_minute=2)
        for _ in range(5):
            limiter.is_allowed()
        status = limiter.get_status()
        assert status["requests_this_minute"] == 2
        assert status["requests_this_hour"] == 2
        assert status["remaining_per_minute"] == 0
        assert status["is_allowed"] is False

    def test_hour_window_blocks_independently(self):
        limiter = _make_limiter(self.clock, per_minute=100, per_hour=5)
        for _ in range(5):
            assert limiter.is_allowed() is True
        assert limiter.is_allowed() is False
        self.clock.advance(60)
        assert limiter.is_allowed() is False
        self.clock.advance(3600)
        assert limiter.is_allowed() is True

    def test_no_partial_admission(self):
        """A request denied by the hour window must not consume minute quota."""
        limiter = _make_limiter(self.clock, per_minute=2, per_hour=3)
        assert limiter.is_allowed() is True
        assert limiter.is_allowed() is True
        self.clock.advance(60)
        assert limiter.is_allowed() is True
        assert limiter.is_allowed() is False
        status = limiter.get_status()
        assert status["requests_this_minute"] == 1
        assert status["requests_this_hour"] == 3

    def test_reset_at_advances_by_whole_windows(self):
        limiter = _make_limiter(self.clock)
        limiter.is_allowed()
        self.clock.advance(185)
        status = limiter.get_status()
        assert status["reset_time_minute"] == 240
        assert status["requests_this_minute"] == 0
        assert limiter.get_time_until_reset()["minute"] == 55

    def test_disabled_always_allows(self):
        limiter = _make_limiter(self.clock, per_minute=0, per_hour=0, enabled=False)
        assert all(limiter.is_allowed() for _ in range(10))
        assert limiter.get_status()["enabled"] is False

    def test_remaining_requests(self):
        limiter = _make_limiter(self.clock, per_minute=3, per_hour=10)
        limiter.is_allowed()
        assert limiter.get_remaining_requests() == {"per_minute": 2, "per_hour": 9}

    def test_update_config(self):
        limiter = _make_limiter(self.clock, per_minute=1)
        limiter.is_allowed()
        assert limiter.is_allowed() is False
        limiter.update_config(requests_per_minute=5)
        assert limiter.is_allowed() is True

    def test_reset(self):
        limiter = _make_limiter(self.clock, per_minute=1)
        limiter.is_allowed()
        limiter.reset()
        assert limiter.is_allowed() is True
