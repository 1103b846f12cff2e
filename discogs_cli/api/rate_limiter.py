"""
Provides a token-bucket rate limiter that follows the limit reported by the Discogs API.
"""

import asyncio
import logging
import threading
import time

log = logging.getLogger(__name__)


def per_minute(requests: int) -> float:
    """Converts a requests-per-minute count to a refill rate in tokens per second."""
    return requests / 60.0


class TokenBucketRateLimiter:
    """
    Token bucket shared by every request issued through one client.

    The bucket refills at ``limit`` tokens per second up to ``burst`` tokens and
    starts full. Both values can be changed at runtime, either explicitly with
    ``set_max_requests`` or from the server's rate-limit header with
    ``update_from_server``. State is guarded by a lock that is never held while
    a caller sleeps waiting for a token.
    """

    def __init__(self, requests_per_minute: int, max_requests: int = 0):
        """
        Initializes the rate limiter.

        Args:
            requests_per_minute: The starting rate and bucket capacity.
            max_requests: An explicit per-minute ceiling; 0 means none was set.
        """
        if requests_per_minute <= 0:
            raise ValueError("requests_per_minute must be a positive integer")

        self._limit = per_minute(requests_per_minute)
        self._burst = requests_per_minute
        self._tokens = float(requests_per_minute)
        self._last = time.monotonic()
        self._max_requests = max_requests
        self._lock = threading.Lock()

    @property
    def limit(self) -> float:
        """The current refill rate, in tokens per second."""
        with self._lock:
            return self._limit

    @property
    def burst(self) -> int:
        """The current bucket capacity."""
        with self._lock:
            return self._burst

    @property
    def max_requests(self) -> int:
        """The explicit per-minute ceiling, or 0 if none was set."""
        with self._lock:
            return self._max_requests

    @property
    def tokens(self) -> float:
        """The number of tokens available right now. Negative while callers wait."""
        with self._lock:
            elapsed = max(0.0, time.monotonic() - self._last)
            return min(float(self._burst), self._tokens + elapsed * self._limit)

    def _advance(self, now: float) -> None:
        elapsed = max(0.0, now - self._last)
        self._tokens = min(float(self._burst), self._tokens + elapsed * self._limit)
        self._last = now

    def _configure(self, requests_per_minute: int) -> None:
        # Caller holds the lock. Tokens are settled at the old rate first.
        self._advance(time.monotonic())
        self._limit = per_minute(requests_per_minute)
        self._burst = requests_per_minute

    async def acquire(self) -> float:
        """
        Takes one token, waiting until it becomes available.

        If the waiting task is cancelled the reserved token is handed back and
        ``asyncio.CancelledError`` propagates.

        Returns:
            The time spent waiting, in seconds.
        """
        with self._lock:
            self._advance(time.monotonic())
            self._tokens -= 1
            wait_time = -self._tokens / self._limit if self._tokens < 0 else 0.0

        if wait_time > 0:
            log.debug(f"Rate limit reached, waiting {wait_time:.2f}s for a token")
            try:
                await asyncio.sleep(wait_time)
            except asyncio.CancelledError:
                with self._lock:
                    self._tokens = min(float(self._burst), self._tokens + 1)
                raise

        return wait_time

    def set_max_requests(self, requests_per_minute: int) -> None:
        """
        Sets an explicit per-minute ceiling and reconfigures the bucket to it.
        Non-positive values are ignored.
        """
        if requests_per_minute <= 0:
            return

        with self._lock:
            self._max_requests = requests_per_minute
            self._configure(requests_per_minute)

        log.info(f"Rate limit set to {requests_per_minute} requests/min")

    def update_from_server(self, rate_limit: int) -> bool:
        """
        Adjusts the bucket to the per-minute limit reported by the server.

        The effective limit is the smaller of ``rate_limit`` and the explicit
        ceiling, if one was set. A zero result leaves the bucket untouched, since
        it would stall every request.

        Returns:
            True if the bucket was reconfigured.
        """
        with self._lock:
            if self._max_requests > 0:
                effective = min(self._max_requests, rate_limit)
            else:
                effective = rate_limit

            if effective <= 0:
                return False

            changed = effective != self._burst
            self._configure(effective)

        if changed:
            log.debug(f"Rate limit adjusted from server feedback: {effective} requests/min")
        return True
