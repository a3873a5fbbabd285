"""Token bucket rate limiter for the arXiv API.

arXiv asks clients to make no more than one request every three seconds,
so the default bucket holds a single token refilled at 1/3 per second.
"""

import asyncio
import time
from dataclasses import dataclass, field


@dataclass
class RateLimiter:
    """Token bucket rate limiter for async operations.

    - Bucket fills at `requests_per_second` rate
    - Maximum bucket size is `burst_size`
    - Each request consumes one token

    Attributes:
        requests_per_second: Rate at which tokens are added (default: 1/3)
        burst_size: Maximum tokens in bucket (default: 1)
    """

    requests_per_second: float = 1 / 3
    burst_size: int = 1
    _tokens: float = field(init=False, default=0.0)
    _last_update: float = field(init=False, default_factory=time.monotonic)
    _lock: asyncio.Lock = field(init=False, default_factory=asyncio.Lock)

    def __post_init__(self) -> None:
        if self.requests_per_second <= 0:
            raise ValueError("requests_per_second must be positive")
        self.burst_size = max(1, self.burst_size)
        self._tokens = float(self.burst_size)

    async def acquire(self) -> None:
        """Acquire a token, waiting if necessary."""
        async with self._lock:
            await self._wait_for_token()
            self._tokens -= 1

    async def _wait_for_token(self) -> None:
        while True:
            self._add_tokens()
            if self._tokens >= 1:
                return

            tokens_needed = 1 - self._tokens
            await asyncio.sleep(tokens_needed / self.requests_per_second)

    def _add_tokens(self) -> None:
        now = time.monotonic()
        elapsed = now - self._last_update
        self._last_update = now
        self._tokens = min(
            self._tokens + elapsed * self.requests_per_second, float(self.burst_size)
        )

    async def __aenter__(self) -> "RateLimiter":
        """Async context manager entry - acquires token."""
        await self.acquire()
        return self

    async def __aexit__(self, *args) -> None:
        pass

    @property
    def available_tokens(self) -> float:
        """Current number of available tokens (for monitoring)."""
        self._add_tokens()
        return self._tokens
