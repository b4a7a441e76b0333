"""Common infrastructure utilities."""

from __future__ import annotations

from .http_fetcher import HttpFetcher
from .rate_limiter import ProviderRateLimiter
from .retry_handler import RetryConfig, RetryHandler

__all__ = [
    "HttpFetcher",
    "ProviderRateLimiter",
    "RetryConfig",
    "RetryHandler",
]
