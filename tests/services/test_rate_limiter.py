# tests/services/test_rate_limiter.py
import pytest

from authz.services.exceptions import RateLimitExceeded
from authz.services.rate_limiter import UserRateLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_limit_is_enforced_per_user():
    clock = FakeClock()
    limiter = UserRateLimiter(max_requests=2, window_seconds=60, clock=clock)

    assert limiter.hit(1) == 1
    assert limiter.hit(1) == 0
    with pytest.raises(RateLimitExceeded):
        limiter.hit(1)
    # 다른 사용자는 영향을 받지 않음
    assert limiter.hit(2) == 1


def test_window_resets_after_expiry():
    clock = FakeClock()
    limiter = UserRateLimiter(max_requests=1, window_seconds=60, clock=clock)
    limiter.hit(1)

    clock.now += 61

    assert limiter.hit(1) == 0


def test_reset_clears_counters():
    limiter = UserRateLimiter(max_requests=1, window_seconds=60, clock=FakeClock())
    limiter.hit(1)

    limiter.reset(1)

    assert limiter.hit(1) == 0
