"""Tests for the in-memory rate limiter."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from backend.middleware.rate_limit import RateLimiter


class TestRateLimiter:
    def test_allows_up_to_limit(self):
        limiter = RateLimiter()
        assert [limiter.check_rate_limit("ip", 3) for _ in range(4)] == [True, True, True, False]

    def test_keys_independent(self):
        limiter = RateLimiter()
        assert limiter.check_rate_limit("a", 1)
        assert limiter.check_rate_limit("b", 1)
        assert not limiter.check_rate_limit("a", 1)

    def test_window_slides(self):
        limiter = RateLimiter()
        limiter._requests["ip"] = [datetime.now(UTC) - timedelta(minutes=2)]
        assert limiter.check_rate_limit("ip", 1, window_minutes=1)

    def test_rejected_requests_not_counted(self):
        limiter = RateLimiter()
        limiter.check_rate_limit("ip", 1)
        for _ in range(5):
            limiter.check_rate_limit("ip", 1)
        assert len(limiter._requests["ip"]) == 1

    def test_cleanup(self):
        limiter = RateLimiter()
        limiter._requests["old"] = [datetime.now(UTC) - timedelta(hours=1)]
        limiter.check_rate_limit("fresh", 5)
        assert limiter.cleanup_old_entries(max_age_minutes=10) == 1
        assert "old" not in limiter._requests
        assert "fresh" in limiter._requests
