"""Quota-aware retry with exponential backoff for provider calls."""

import asyncio
import functools
import logging
import random
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx
from geopy.exc import GeocoderQuotaExceeded, GeocoderRateLimited

from addressflow.core.metrics import PROVIDER_RETRIES

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_STATUS_CODES = frozenset({429, 503})
QUOTA_MESSAGES = ("quota", "rate limit")


def _status_code(error: BaseException) -> int | None:
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(error, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def is_quota_error(error: BaseException) -> bool:
    """Check whether an error is a quota or rate-limit rejection.

    Args:
        error: Exception raised by a provider call

    Returns:
        True for HTTP 429/503, geopy quota/rate-limit errors, or messages
        mentioning a quota or rate limit
    """
    if isinstance(error, (GeocoderQuotaExceeded, GeocoderRateLimited)):
        return True
    if _status_code(error) in RETRYABLE_STATUS_CODES:
        return True
    message = str(error).lower()
    return any(marker in message for marker in QUOTA_MESSAGES)


class RetryPolicy:
    """Retries an async call with jittered exponential backoff.

    Only errors accepted by ``is_retryable`` are retried; any other error
    is raised immediately. The delay before retry ``n`` is
    ``base_delay * 2 ** (n - 1)`` plus up to ``jitter`` seconds.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 0.5,
        jitter: float = 0.2,
        is_retryable: Callable[[BaseException], bool] = is_quota_error,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.max_attempts = max(1, max_attempts)
        self.base_delay = max(0.0, base_delay)
        self.jitter = max(0.0, jitter)
        self.is_retryable = is_retryable
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        """Backoff before the retry that follows failed ``attempt``."""
        backoff = self.base_delay * (2 ** (attempt - 1))
        return backoff + random.uniform(0, self.jitter)

    async def execute(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Run ``fn`` under the retry policy.

        Args:
            fn: Zero-argument coroutine function

        Returns:
            The first successful result

        Raises:
            Exception: The last error once retries are exhausted or the error
                is not retryable
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await fn()
            except Exception as e:
                if attempt >= self.max_attempts or not self.is_retryable(e):
                    raise

                delay = self.delay_for(attempt)
                PROVIDER_RETRIES.inc()
                logger.info(
                    f"Provider call throttled (attempt {attempt}/{self.max_attempts}): {e}. "
                    f"Retrying in {delay:.2f}s..."
                )
                await self._sleep(delay)

        # This should never be reached, the loop either returns or raises
        raise RuntimeError("Unexpected retry loop exit")


def with_quota_retry(
    max_attempts: int = 3,
    base_delay: float = 0.5,
    jitter: float = 0.2,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorator that retries an async provider call on quota errors.

    Args:
        max_attempts: Maximum number of attempts including the first call
        base_delay: Initial delay between retries in seconds
        jitter: Maximum random delay added to each backoff in seconds

    Returns:
        Decorated coroutine function with retry logic
    """
    policy = RetryPolicy(max_attempts=max_attempts, base_delay=base_delay, jitter=jitter)

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            return await policy.execute(lambda: func(*args, **kwargs))

        return wrapper

    return decorator
