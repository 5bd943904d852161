"""Async HTTP client wrapper with rate limiting and bounded retry."""

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

import httpx

from .settings import (
    MAX_ATTEMPTS,
    REQUEST_TIMEOUT,
    RETRY_BASE_DELAY,
    RETRY_JITTER,
    RETRY_MAX_DELAY,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "PUT", "DELETE"})


class RateLimiter:
    """Minimum-interval rate limiter."""

    def __init__(self, requests_per_second: float):
        self.requests_per_second = requests_per_second
        self.min_interval = 1.0 / requests_per_second if requests_per_second > 0 else 0.0
        self.last_request_time = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait until we can make another request."""
        async with self._lock:
            now = time.monotonic()
            time_since_last = now - self.last_request_time
            if time_since_last < self.min_interval:
                await asyncio.sleep(self.min_interval - time_since_last)
            self.last_request_time = time.monotonic()


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry with capped exponential backoff plus jitter (seconds)."""

    max_attempts: int = MAX_ATTEMPTS
    base_delay: float = RETRY_BASE_DELAY
    max_delay: float = RETRY_MAX_DELAY
    jitter: float = RETRY_JITTER

    def backoff(self, attempt: int, rng: random.Random | None = None) -> float:
        """Delay to wait after failed attempt number `attempt` (1-based)."""
        if attempt < 1:
            raise ValueError("attempt numbers start at 1")
        rand = (rng or random).random()
        return min(self.base_delay * 2 ** (attempt - 1), self.max_delay) + rand * self.jitter


def is_retryable(exc: BaseException) -> bool:
    """
    Classify an error raised by an outbound call.

    Network failures, HTTP 429 and 5xx responses to idempotent requests are
    retried. Everything else (400, 404, parse errors, ...) is terminal.
    """
    if isinstance(exc, httpx.TransportError):
        return True

    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status == 429:
            return True
        method = exc.request.method.upper() if exc.request is not None else ""
        return 500 <= status < 600 and method in IDEMPOTENT_METHODS

    return False


class RateLimitedClient:
    """
    Rate-limited, retrying wrapper around one provider's httpx.AsyncClient.

    One instance serves exactly one provider.

    Usage:
        async with RateLimitedClient("https://example.org/api") as client:
            response = await client.get("/search", "Example search", params={...})
    """

    def __init__(
        self,
        base_url: str,
        name: str,
        requests_per_second: float = 1.0,
        retry_policy: RetryPolicy | None = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float = REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.name = name
        self.retry_policy = retry_policy or RetryPolicy()
        self.rate_limiter = RateLimiter(requests_per_second)
        self.params = params or {}
        self.headers = headers or {}
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "RateLimitedClient":
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            params=self.params,
            headers=self.headers,
            timeout=self.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(
                "Client not initialized. Use 'async with' context manager."
            )
        return self._client

    async def run(self, operation: Callable[[], Awaitable[T]], context: str) -> T:
        """Execute one outbound unit of work under the retry policy."""
        policy = self.retry_policy

        for attempt in range(1, policy.max_attempts + 1):
            try:
                return await operation()
            except Exception as e:
                # Terminal errors have no retries left regardless of attempt number
                remaining = policy.max_attempts - attempt if is_retryable(e) else 0
                logger.warning(
                    f"{context}: Attempt {attempt} failed. {remaining} retries left. ({e})"
                )
                if remaining == 0:
                    raise
                await asyncio.sleep(policy.backoff(attempt))

        raise RuntimeError("Retry loop exited without a result")

    async def get(self, url: str, context: str, **kwargs: Any) -> httpx.Response:
        """Rate-limited GET that raises for error statuses, run under `run`."""

        async def operation() -> httpx.Response:
            await self.rate_limiter.acquire()
            logger.debug(f"{self.name} GET {url}")
            response = await self.client.get(url, **kwargs)
            response.raise_for_status()
            return response

        return await self.run(operation, context)
