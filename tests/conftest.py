"""Shared test fixtures for the extractarr test suite."""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest

from extractarr.domain.entities.extraction import (
    ExtractorRequest,
    RawStream,
    SubtitleTrack,
)
from extractarr.infrastructure.common.http_fetcher import HttpFetcher
from extractarr.infrastructure.common.rate_limiter import ProviderRateLimiter
from extractarr.infrastructure.common.retry_handler import RetryConfig, RetryHandler

# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def raw_stream() -> RawStream:
    """Minimal HLS stream with one subtitle track."""
    return RawStream(
        url="https://cdn.example.com/hls/master.m3u8",
        source_label="Example",
        is_manifest=True,
        quality="720p",
        headers={"Referer": "https://embed.example.com/"},
        subtitles=(
            SubtitleTrack(
                url="https://cdn.example.com/subs/en.vtt",
                name="English",
                language="English",
            ),
        ),
    )


@pytest.fixture()
def extractor_request() -> ExtractorRequest:
    return ExtractorRequest(url="https://embed.example.com/e/abc123")


# ---------------------------------------------------------------------------
# Infrastructure fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def no_delay_retry_config() -> RetryConfig:
    """Three attempts without any backoff sleep."""
    return RetryConfig(
        max_attempts=3,
        initial_delay_ms=0,
        max_delay_ms=0,
        backoff_multiplier=1.0,
        use_jitter=False,
    )


@pytest.fixture()
def rate_limiter() -> ProviderRateLimiter:
    """Limiter without queue spacing so queued tests stay fast."""
    return ProviderRateLimiter(default_window=60.0, queue_spacing=0.0)


@pytest.fixture()
def retry_handler(
    no_delay_retry_config: RetryConfig, rate_limiter: ProviderRateLimiter
) -> RetryHandler:
    return RetryHandler(no_delay_retry_config, rate_limiter)


@pytest.fixture()
async def http_client() -> AsyncIterator[httpx.AsyncClient]:
    """Real httpx.AsyncClient for use with respx mocking."""
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture()
def fetcher(http_client: httpx.AsyncClient, retry_handler: RetryHandler) -> HttpFetcher:
    return HttpFetcher(http_client, retry_handler)
