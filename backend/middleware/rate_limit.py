"""
In-memory rate limiting for the public embed endpoints.

Keyed by client IP. State lives in the process; behind several workers
each one counts on its own.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import UTC, datetime, timedelta


class RateLimiter:
    """
    Sliding-window request counter.

    Tracks request timestamps per key within a time window.
    """

    def __init__(self):
        # key -> request timestamps, oldest first
        self._requests: dict[str, list[datetime]] = defaultdict(list)

    def check_rate_limit(self, key: str, max_requests: int, window_minutes: int = 1) -> bool:
        """
        Record a request for `key` unless it has exceeded the limit.

        Args:
            key: Identifier to rate limit (usually an IP address)
            max_requests: Maximum requests allowed in the window
            window_minutes: Time window in minutes (default 1)

        Returns:
            True if under the limit, False if limit exceeded
        """
        now = datetime.now(UTC)
        cutoff = now - timedelta(minutes=window_minutes)

        recent = [ts for ts in self._requests[key] if ts > cutoff]
        if len(recent) >= max_requests:
            self._requests[key] = recent
            return False

        recent.append(now)
        self._requests[key] = recent
        return True

    def cleanup_old_entries(self, max_age_minutes: int = 10) -> int:
        """
        Drop keys with no requests in the last `max_age_minutes`.

        Returns:
            Number of keys removed
        """
        cutoff = datetime.now(UTC) - timedelta(minutes=max_age_minutes)
        removed = 0
        for key in list(self._requests.keys()):
            self._requests[key] = [ts for ts in self._requests[key] if ts > cutoff]
            if not self._requests[key]:
                del self._requests[key]
                removed += 1
        return removed

    def reset(self) -> None:
        self._requests.clear()


# Global rate limiter instance
rate_limiter = RateLimiter()
