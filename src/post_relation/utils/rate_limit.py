"""REST API Rate Limiting Utilities

Token bucket rate limiter for the WordPress REST client. Hosted WordPress
installs commonly throttle bursts of authenticated writes, and a single
relation update issues up to three of them.
"""

import time
import threading
from typing import Optional


class RateLimiter:
    """Thread-safe token bucket rate limiter."""

    def __init__(self, requests_per_second: float = 5.0, burst: Optional[float] = None):
        """Initialize rate limiter.

        Args:
            requests_per_second: Refill rate of the bucket (default: 5.0)
            burst: Bucket capacity; defaults to one second worth of requests,
                and never less than a single request
        """
        if requests_per_second <= 0:
            raise ValueError(f"requests_per_second must be positive, got {requests_per_second}")

        self.rate = requests_per_second
        self.capacity = burst if burst is not None else max(1.0, requests_per_second)
        if self.capacity < 1:
            raise ValueError(f"burst must hold at least one request, got {burst}")
        self.tokens = self.capacity
        self.last_update = time.monotonic()
        self.lock = threading.Lock()

    def _refill_tokens(self) -> None:
        now = time.monotonic()
        elapsed = now - self.last_update
        self.tokens = min(self.capacity, self.tokens + elapsed * self.rate)
        self.last_update = now

    def acquire(self, tokens: int = 1) -> float:
        """Acquire tokens from the bucket, sleeping until they are available.

        Args:
            tokens: Number of tokens to acquire (default: 1)

        Returns:
            Seconds spent waiting

        Raises:
            ValueError: If more tokens are requested than the bucket holds
        """
        if tokens > self.capacity:
            raise ValueError(f"Cannot acquire {tokens} tokens from a bucket of {self.capacity}")
        waited = 0.0
        while True:
            with self.lock:
                self._refill_tokens()
                if self.tokens >= tokens:
                    self.tokens -= tokens
                    return waited
                wait_time = (tokens - self.tokens) / self.rate

            # Sleep outside the lock so other threads can check the bucket
            time.sleep(wait_time)
            waited += wait_time

    def try_acquire(self, tokens: int = 1) -> bool:
        """Try to acquire tokens without blocking.

        Returns:
            True if tokens were acquired, False otherwise
        """
        with self.lock:
            self._refill_tokens()

            if self.tokens >= tokens:
                self.tokens -= tokens
                return True

            return False
