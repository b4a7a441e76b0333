"""Port for extractor lookup."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from extractarr.domain.entities.extraction import (
    ExtractorCategory,
    ExtractorInfo,
    ExtractorRequest,
)
from extractarr.domain.ports.extractor import ExtractorPort


@runtime_checkable
class ExtractorRegistryPort(Protocol):
    """Synchronous interface for URL-to-extractor dispatch."""

    def resolve(
        self, url: str, category: ExtractorCategory | None = None
    ) -> list[ExtractorPort]: ...
    def match(self, request: ExtractorRequest) -> list[ExtractorInfo]: ...
    def by_category(self, category: ExtractorCategory) -> list[ExtractorInfo]: ...
    def get(self, extractor_id: str) -> ExtractorInfo: ...
