"""Retry with exponential backoff and 429-aware rate limiting.

Wraps any awaitable operation (typically an httpx request) and retries it
on transient failures:

- transport errors (connect errors, timeouts, network errors),
- HTTP 5xx and 408,
- HTTP 429, which additionally blocks the provider in the
  :class:`ProviderRateLimiter` for ``Retry-After`` seconds.

Every other 4xx propagates immediately.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import httpx
import structlog

from extractarr.infrastructure.common.rate_limiter import ProviderRateLimiter

log = structlog.get_logger(__name__)

T = TypeVar("T")

# Jitter scales the delay by a uniform factor in [1 - J, 1 + J]
_JITTER_RATIO = 0.5


@dataclass(frozen=True)
class RetryConfig:
    """Backoff policy for :class:`RetryHandler`.

    Args:
        max_attempts: Total attempts including the first one (>= 1).
        initial_delay_ms: Delay before the second attempt.
        max_delay_ms: Upper bound for any single delay.
        backoff_multiplier: Growth factor per attempt (>= 1).
        use_jitter: Randomize delays to avoid synchronized retries.
    """

    max_attempts: int = 3
    initial_delay_ms: int = 1000
    max_delay_ms: int = 30_000
    backoff_multiplier: float = 2.0
    use_jitter: bool = True

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.initial_delay_ms < 0:
            raise ValueError("initial_delay_ms must be >= 0")
        if self.initial_delay_ms > self.max_delay_ms:
            raise ValueError("initial_delay_ms must be <= max_delay_ms")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be >= 1")

    @classmethod
    def default(cls) -> RetryConfig:
        """Standard policy for network fetches."""
        return cls()

    @classmethod
    def aggressive(cls) -> RetryConfig:
        """More attempts for critical operations."""
        return cls(max_attempts=5, initial_delay_ms=500, max_delay_ms=60_000)

    @classmethod
    def conservative(cls) -> RetryConfig:
        """Fewer, slower attempts for non-critical operations."""
        return cls(
            max_attempts=2,
            initial_delay_ms=2000,
            max_delay_ms=10_000,
            backoff_multiplier=1.5,
        )


def parse_retry_after(headers: httpx.Headers) -> float | None:
    """Parse ``Retry-After`` header value (integer seconds only).

    Returns ``None`` if the header is missing, negative or unparseable.
    HTTP-date format is ignored.
    """
    raw = headers.get("retry-after")
    if raw is None:
        return None
    try:
        seconds = int(raw.strip())
    except (ValueError, TypeError):
        return None
    if seconds < 0:
        return None
    return float(seconds)


def is_retryable_error(error: BaseException) -> bool:
    """Default retry classification."""
    # Malformed requests fail the same way on every attempt
    if isinstance(error, (httpx.UnsupportedProtocol, httpx.InvalidURL)):
        return False
    if isinstance(error, (httpx.TransportError, asyncio.TimeoutError)):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return status >= 500 or status in (408, 429)
    return False


class RetryHandler:
    """Execute async operations with bounded retries and backoff.

    Args:
        config: Backoff policy.
        rate_limiter: Shared limiter consulted before each attempt when a
            provider id is given.
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        rate_limiter: ProviderRateLimiter | None = None,
    ) -> None:
        self.config = config or RetryConfig.default()
        self.rate_limiter = rate_limiter or ProviderRateLimiter()

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        provider_id: str | None = None,
        operation_name: str = "operation",
        should_retry: Callable[[BaseException], bool] | None = None,
    ) -> T:
        """Run *operation*, retrying transient failures.

        Raises the last error once ``max_attempts`` attempts have failed,
        or immediately for non-retryable errors.
        """
        max_attempts = self.config.max_attempts
        attempt = 1

        while True:
            try:
                if provider_id is not None:
                    result = await self.rate_limiter.queue_request(
                        provider_id, operation
                    )
                else:
                    result = await operation()
            except Exception as exc:
                self._note_rate_limit(exc, provider_id, operation_name)

                retryable = (
                    should_retry(exc)
                    if should_retry is not None
                    else is_retryable_error(exc)
                )
                if not retryable:
                    log.debug(
                        "retry_not_retryable",
                        operation=operation_name,
                        attempt=attempt,
                        error=repr(exc),
                    )
                    raise

                if attempt >= max_attempts:
                    log.warning(
                        "retry_exhausted",
                        operation=operation_name,
                        attempts=attempt,
                        error=repr(exc),
                    )
                    raise

                delay = self.compute_delay(attempt)
                log.info(
                    "retry_backoff",
                    operation=operation_name,
                    attempt=attempt,
                    max_attempts=max_attempts,
                    delay=round(delay, 3),
                    error=repr(exc),
                )
                await asyncio.sleep(delay)
                attempt += 1
                continue

            if attempt > 1:
                log.info("retry_succeeded", operation=operation_name, attempt=attempt)
            return result

    def compute_delay(self, attempt: int) -> float:
        """Delay in seconds after failed attempt number *attempt* (1-based)."""
        cfg = self.config
        delay_ms = min(
            float(cfg.max_delay_ms),
            cfg.initial_delay_ms * cfg.backoff_multiplier ** (attempt - 1),
        )
        if cfg.use_jitter:
            factor = random.uniform(1 - _JITTER_RATIO, 1 + _JITTER_RATIO)  # noqa: S311
            delay_ms = min(float(cfg.max_delay_ms), delay_ms * factor)
        return delay_ms / 1000.0

    def _note_rate_limit(
        self,
        error: BaseException,
        provider_id: str | None,
        operation_name: str,
    ) -> None:
        """Record a 429 response in the shared rate limiter."""
        if not isinstance(error, httpx.HTTPStatusError):
            return
        if error.response.status_code != 429:
            return
        log.warning(
            "rate_limit_detected", operation=operation_name, provider=provider_id
        )
        if provider_id is None:
            return
        self.rate_limiter.record_rate_limit(
            provider_id, parse_retry_after(error.response.headers)
        )
