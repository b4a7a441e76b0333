"""Domain entities for stream extraction.

Pure value objects without framework dependencies or I/O.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from extractarr.domain.ports.extractor import ExtractorPort


class ExtractorCategory(str, Enum):
    """Kind of media an extractor produces."""

    VIDEO = "video"
    AUDIO = "audio"


@dataclass(frozen=True)
class ExtractorRequest:
    """Page or embed URL to resolve into playable streams."""

    url: str
    referer: str | None = None
    category: ExtractorCategory = ExtractorCategory.VIDEO
    # Extra caller headers; extractor-specific headers take precedence.
    headers: Mapping[str, str] | None = None


@dataclass(frozen=True)
class SubtitleTrack:
    """External subtitle (or thumbnail) track attached to a stream."""

    url: str
    name: str | None = None
    language: str | None = None
    mime_type: str = "text/vtt"


@dataclass(frozen=True)
class RawStream:
    """A single playable candidate returned by an extractor.

    ``headers`` must be replayed by the player when fetching ``url``.
    """

    url: str
    source_label: str
    is_manifest: bool = False
    quality: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    subtitles: tuple[SubtitleTrack, ...] = ()


@dataclass(frozen=True)
class ExtractorInfo:
    """Static descriptor of an extractor family, registered once at startup."""

    id: str
    patterns: tuple[re.Pattern[str], ...]
    extractors: tuple[ExtractorPort, ...]
    category: ExtractorCategory = ExtractorCategory.VIDEO

    def matches(self, url: str) -> bool:
        """Return ``True`` if any pattern matches *url*."""
        return any(pattern.search(url) for pattern in self.patterns)
