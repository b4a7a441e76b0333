"""Per-site stream extractors."""

from __future__ import annotations

from .catalog import (
    DEFAULT_EXTRACTORS,
    build_default_extractor_infos,
    build_default_registry,
)
from .filemoon import FilemoonExtractor
from .gogocdn import GogoCdnExtractor
from .jwplayer import JwPlayerExtractor
from .kwik import KwikExtractor
from .mixdrop import MixDropExtractor
from .noodlemagazine import NoodleMagazineExtractor
from .registry import ExtractorRegistry, extractor_key, match_target
from .streamwish import StreamWishExtractor

__all__ = [
    "DEFAULT_EXTRACTORS",
    "ExtractorRegistry",
    "FilemoonExtractor",
    "GogoCdnExtractor",
    "JwPlayerExtractor",
    "KwikExtractor",
    "MixDropExtractor",
    "NoodleMagazineExtractor",
    "StreamWishExtractor",
    "build_default_extractor_infos",
    "build_default_registry",
    "extractor_key",
    "match_target",
]
