"""Registry that dispatches embed URLs to per-site extractors."""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import urlparse

import structlog

from extractarr.domain.entities.extraction import (
    ExtractorCategory,
    ExtractorInfo,
    ExtractorRequest,
)
from extractarr.domain.exceptions import DuplicateExtractorError, UnknownExtractorError
from extractarr.domain.ports.extractor import ExtractorPort

log = structlog.get_logger(__name__)


def match_target(url: str) -> str:
    """Return ``host + path`` of *url*, the string patterns are tested on.

    Falls back to the raw input when it has no scheme or host (bare
    ``host/path`` strings are accepted as-is).
    """
    parsed = urlparse(url)
    if not parsed.netloc:
        return url
    return f"{parsed.netloc}{parsed.path}"


def extractor_key(extractor: ExtractorPort) -> str:
    """Identity used to suppress duplicate extractors."""
    return getattr(extractor, "id", "") or extractor.name


class ExtractorRegistry:
    """Ordered collection of :class:`ExtractorInfo` entries.

    Lookup preserves registration order. An extractor matched by several
    infos or patterns is returned once, at its first position.
    """

    def __init__(self, infos: Iterable[ExtractorInfo] = ()) -> None:
        self._infos: dict[str, ExtractorInfo] = {}
        for info in infos:
            self.register(info)

    def register(self, info: ExtractorInfo) -> None:
        if info.id in self._infos:
            raise DuplicateExtractorError(f"extractor id already registered: {info.id}")
        self._infos[info.id] = info
        log.debug(
            "extractor_registered",
            extractor=info.id,
            patterns=[p.pattern for p in info.patterns],
        )

    @property
    def ids(self) -> list[str]:
        return list(self._infos)

    @property
    def infos(self) -> list[ExtractorInfo]:
        return list(self._infos.values())

    def get(self, extractor_id: str) -> ExtractorInfo:
        try:
            return self._infos[extractor_id]
        except KeyError:
            raise UnknownExtractorError(f"unknown extractor: {extractor_id}") from None

    def by_category(self, category: ExtractorCategory) -> list[ExtractorInfo]:
        return [info for info in self._infos.values() if info.category == category]

    def match(self, request: ExtractorRequest) -> list[ExtractorInfo]:
        """Infos of the request's category whose patterns match its URL."""
        target = match_target(request.url)
        return [
            info for info in self.by_category(request.category) if info.matches(target)
        ]

    def resolve(
        self, url: str, category: ExtractorCategory | None = None
    ) -> list[ExtractorPort]:
        """All extractors whose patterns match *url*, deduplicated by id.

        With *category* only infos of that category are considered.
        No match yields an empty list.
        """
        target = match_target(url)
        infos = (
            self._infos.values() if category is None else self.by_category(category)
        )
        seen: set[str] = set()
        extractors: list[ExtractorPort] = []
        for info in infos:
            if not info.matches(target):
                continue
            for extractor in info.extractors:
                key = extractor_key(extractor)
                if key in seen:
                    continue
                seen.add(key)
                extractors.append(extractor)
        return extractors
