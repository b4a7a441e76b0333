"""Built-in extractor set, in dispatch order."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from extractarr.domain.entities.extraction import ExtractorInfo
from extractarr.infrastructure.common.http_fetcher import HttpFetcher

from .base import ExtractorBase
from .filemoon import FilemoonExtractor
from .gogocdn import GogoCdnExtractor
from .jwplayer import JwPlayerExtractor
from .kwik import KwikExtractor
from .mixdrop import MixDropExtractor
from .noodlemagazine import NoodleMagazineExtractor
from .registry import ExtractorRegistry
from .streamwish import StreamWishExtractor

log = structlog.get_logger(__name__)

DEFAULT_EXTRACTORS: tuple[type[ExtractorBase], ...] = (
    GogoCdnExtractor,
    StreamWishExtractor,
    KwikExtractor,
    FilemoonExtractor,
    MixDropExtractor,
    JwPlayerExtractor,
    NoodleMagazineExtractor,
)


def build_default_extractor_infos(
    fetcher: HttpFetcher, disabled: Iterable[str] = ()
) -> list[ExtractorInfo]:
    """Instantiate every built-in extractor except the *disabled* ids."""
    skip = set(disabled)
    unknown = skip - {cls.id for cls in DEFAULT_EXTRACTORS}
    if unknown:
        log.warning("unknown_disabled_extractors", extractors=sorted(unknown))
    return [cls.build_info(fetcher) for cls in DEFAULT_EXTRACTORS if cls.id not in skip]


def build_default_registry(
    fetcher: HttpFetcher, disabled: Iterable[str] = ()
) -> ExtractorRegistry:
    registry = ExtractorRegistry(build_default_extractor_infos(fetcher, disabled))
    log.info("extractor_registry_ready", extractors=registry.ids)
    return registry
