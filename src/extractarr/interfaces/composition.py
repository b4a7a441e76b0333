"""Composition root: wires config into a ready-to-use extraction service."""

from __future__ import annotations

from types import TracebackType

import httpx
import structlog

from extractarr.application.use_cases.extract_streams import ExtractionOrchestrator
from extractarr.domain.entities.extraction import (
    ExtractorCategory,
    ExtractorInfo,
    ExtractorRequest,
    RawStream,
)
from extractarr.infrastructure.common.http_fetcher import HttpFetcher
from extractarr.infrastructure.common.rate_limiter import ProviderRateLimiter
from extractarr.infrastructure.common.retry_handler import RetryConfig, RetryHandler
from extractarr.infrastructure.config.schema import AppConfig
from extractarr.infrastructure.extractors import (
    ExtractorRegistry,
    build_default_registry,
)

log = structlog.get_logger(__name__)


class ExtractionService:
    """Owns the shared HTTP client and exposes the extraction pipeline.

    Use as ``async with build_extraction_service(config) as service:`` or
    call :meth:`aclose` explicitly.
    """

    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        rate_limiter: ProviderRateLimiter,
        registry: ExtractorRegistry,
        orchestrator: ExtractionOrchestrator,
    ) -> None:
        self.client = client
        self.rate_limiter = rate_limiter
        self.registry = registry
        self.orchestrator = orchestrator

    async def extract(self, request: ExtractorRequest) -> list[RawStream]:
        return await self.orchestrator.extract(request)

    def extractors(
        self, category: ExtractorCategory = ExtractorCategory.VIDEO
    ) -> list[ExtractorInfo]:
        return self.orchestrator.get_extractors(category)

    async def aclose(self) -> None:
        await self.client.aclose()
        self.rate_limiter.clear_all()
        log.debug("extraction_service_closed")

    async def __aenter__(self) -> ExtractionService:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


def build_retry_config(config: AppConfig) -> RetryConfig:
    retry = config.retry
    return RetryConfig(
        max_attempts=retry.max_attempts,
        initial_delay_ms=retry.initial_delay_ms,
        max_delay_ms=retry.max_delay_ms,
        backoff_multiplier=retry.backoff_multiplier,
        use_jitter=retry.use_jitter,
    )


def build_extraction_service(config: AppConfig) -> ExtractionService:
    """Create client, rate limiter, retry handler, registry and orchestrator.

    Order matters:
        1. Rate limiter (shared by every retry loop)
        2. HTTP client + fetcher
        3. Registry (extractors hold the fetcher)
        4. Orchestrator
    """
    rate_limiter = ProviderRateLimiter(
        default_window=config.rate_limit.default_window_seconds,
        queue_spacing=config.rate_limit.queue_spacing_seconds,
    )
    retry_handler = RetryHandler(build_retry_config(config), rate_limiter)

    client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=config.http_follow_redirects,
    )
    fetcher = HttpFetcher(client, retry_handler)
    log.debug(
        "http_client_initialized",
        timeout=config.http_timeout_seconds,
        retry_max_attempts=config.retry.max_attempts,
    )

    registry = build_default_registry(fetcher, disabled=config.extraction.disabled)
    orchestrator = ExtractionOrchestrator(
        registry, timeout_seconds=config.extraction.timeout_seconds
    )
    return ExtractionService(
        client=client,
        rate_limiter=rate_limiter,
        registry=registry,
        orchestrator=orchestrator,
    )
