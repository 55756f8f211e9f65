# tests/core/rate_limit/test_rate_limiter.py
"""Tests for the pyrate-limiter wrapper."""

from __future__ import annotations

import time

import pytest

from proofmark.core.rate_limit import RateLimiter


class TestRateLimiterValidation:
    """Tests for rate limiter input validation."""

    @pytest.mark.parametrize("max_requests", [0, -1])
    def test_rejects_non_positive_max_requests(self, max_requests: int) -> None:
        with pytest.raises(ValueError, match="max_requests must be positive"):
            RateLimiter(max_requests=max_requests, window_seconds=60)

    @pytest.mark.parametrize("window_seconds", [0, -0.5])
    def test_rejects_non_positive_window(self, window_seconds: float) -> None:
        with pytest.raises(ValueError, match="window_seconds must be positive"):
            RateLimiter(max_requests=1, window_seconds=window_seconds)


class TestRateLimiterBehavior:
    def test_allows_up_to_limit_then_rejects(self) -> None:
        with RateLimiter(max_requests=3, window_seconds=60, name="client") as limiter:
            assert [limiter.try_acquire() for _ in range(3)] == [True, True, True]
            assert limiter.try_acquire() is False
            assert limiter.try_acquire() is False

    def test_attributes(self) -> None:
        with RateLimiter(max_requests=10, window_seconds=60, name="10.0.0.1") as limiter:
            assert limiter.name == "10.0.0.1"
            assert limiter.max_requests == 10
            assert limiter.window_seconds == 60

    @pytest.mark.slow
    def test_window_expiry_allows_again(self) -> None:
        with RateLimiter(max_requests=1, window_seconds=0.2) as limiter:
            assert limiter.try_acquire() is True
            assert limiter.try_acquire() is False

            time.sleep(0.3)

            assert limiter.try_acquire() is True

    def test_close_is_safe_after_use(self) -> None:
        limiter = RateLimiter(max_requests=2, window_seconds=60)
        limiter.try_acquire()
        limiter.close()
