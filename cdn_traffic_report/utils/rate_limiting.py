"""
Thread-safe rate limiting for Fastly API calls.

All enrichment workers share one limiter per API host, so the total request
rate stays under the configured limit no matter how many services are in
flight.

Usage:
    from cdn_traffic_report.utils.rate_limiting import RateLimiter

    limiter = RateLimiter(requests_per_second=10.0, source_name="fastly")

    # Use as a callable
    limiter()
    session.get(url)

    # Or use as a context manager
    with limiter:
        session.get(url)
"""

import time
from threading import Lock


class RateLimiter:
    """
    Thread-safe rate limiter that spaces calls by a minimum interval.

    Each caller reserves the next free time slot under the lock and then
    sleeps outside it, so waiting threads do not block each other while
    reserving.

    Args:
        requests_per_second: Maximum requests per second allowed
        source_name: Name of the API (for logging/debugging)

    Example:
        >>> limiter = RateLimiter(requests_per_second=10.0, source_name="fastly")
        >>> limiter()  # First call - no wait
        >>> limiter()  # Second call - waits up to 0.1s
    """

    def __init__(self, requests_per_second: float, source_name: str = "default"):
        """
        Initialize rate limiter.

        Raises:
            ValueError: If requests_per_second <= 0
        """
        if requests_per_second <= 0:
            raise ValueError(f"requests_per_second must be > 0, got {requests_per_second}")

        self.requests_per_second = requests_per_second
        self.source_name = source_name
        self.min_interval = 1.0 / requests_per_second
        self._lock = Lock()
        self._next_slot = 0.0

    def reserve(self) -> float:
        """
        Reserve the next call slot.

        Returns:
            Seconds the caller must wait before making its call
        """
        with self._lock:
            now = time.monotonic()
            slot = max(now, self._next_slot)
            self._next_slot = slot + self.min_interval
            return slot - now

    def __call__(self) -> None:
        """Wait until this caller's reserved slot arrives."""
        delay = self.reserve()
        if delay > 0:
            time.sleep(delay)

    def __enter__(self):
        """Context manager entry - enforces rate limiting."""
        self()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False

    def reset(self) -> None:
        """Forget reserved slots so the next call proceeds immediately."""
        with self._lock:
            self._next_slot = 0.0


# Shared limiters keyed by source name
_rate_limiters: dict[str, RateLimiter] = {}
_rate_limiters_lock = Lock()


def get_rate_limiter(
    source_name: str,
    requests_per_second: float,
    create_if_missing: bool = True,
) -> RateLimiter | None:
    """
    Get or create a shared rate limiter for a source.

    Args:
        source_name: Name of the source (e.g., "fastly")
        requests_per_second: Maximum requests per second (used only on creation)
        create_if_missing: If True, create a new limiter if one doesn't exist

    Returns:
        RateLimiter instance, or None if create_if_missing is False and none exists
    """
    with _rate_limiters_lock:
        if source_name in _rate_limiters:
            return _rate_limiters[source_name]

        if not create_if_missing:
            return None

        limiter = RateLimiter(requests_per_second=requests_per_second, source_name=source_name)
        _rate_limiters[source_name] = limiter
        return limiter
