"""Stream extraction use case.

URL -> registry lookup -> concurrent extractors -> aggregated RawStream list.
"""

from __future__ import annotations

import asyncio
import time

import structlog

from extractarr.domain.entities.extraction import (
    ExtractorCategory,
    ExtractorInfo,
    ExtractorRequest,
    RawStream,
)
from extractarr.domain.ports.extractor import ExtractorPort
from extractarr.domain.ports.extractor_registry import ExtractorRegistryPort

log = structlog.get_logger(__name__)


class ExtractionOrchestrator:
    """Runs every extractor matching a request and merges their streams.

    Matched extractors run concurrently; results are concatenated in
    registry order.  Extractors never raise by contract, but anything
    that escapes (or exceeds *timeout_seconds*) is logged and counted as
    an empty result.
    """

    def __init__(
        self,
        registry: ExtractorRegistryPort,
        *,
        timeout_seconds: float | None = None,
    ) -> None:
        self._registry = registry
        self._timeout = timeout_seconds if timeout_seconds else None

    def get_extractors(
        self, category: ExtractorCategory = ExtractorCategory.VIDEO
    ) -> list[ExtractorInfo]:
        return self._registry.by_category(category)

    async def extract(self, request: ExtractorRequest) -> list[RawStream]:
        extractors = self._registry.resolve(request.url, category=request.category)
        if not extractors:
            log.warning(
                "no_extractor_matched",
                url=request.url,
                category=request.category.value,
            )
            return []

        t0 = time.perf_counter()
        results = await asyncio.gather(
            *(self._safe_execute(extractor, request) for extractor in extractors)
        )

        streams: list[RawStream] = []
        for result in results:
            streams.extend(result)

        log.info(
            "extraction_complete",
            url=request.url,
            extractors=[e.name for e in extractors],
            streams=len(streams),
            duration_ms=round((time.perf_counter() - t0) * 1000),
        )
        return streams

    async def _safe_execute(
        self, extractor: ExtractorPort, request: ExtractorRequest
    ) -> list[RawStream]:
        name = extractor.name
        try:
            if self._timeout is None:
                return await extractor.extract(request)
            return await asyncio.wait_for(
                extractor.extract(request), timeout=self._timeout
            )
        except TimeoutError:
            log.warning(
                "extractor_timeout",
                extractor=name,
                url=request.url,
                timeout=self._timeout,
            )
            return []
        except Exception:
            log.warning(
                "extractor_crashed", extractor=name, url=request.url, exc_info=True
            )
            return []
