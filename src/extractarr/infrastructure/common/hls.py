"""HLS master playlist parsing and variant expansion.

A master playlist lists renditions as::

    #EXT-X-STREAM-INF:BANDWIDTH=2000000,RESOLUTION=1280x720
    720p/index.m3u8

Each ``#EXT-X-STREAM-INF`` carrying a ``RESOLUTION`` becomes one stream
whose quality is the rendition height (``"720p"``).
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import urljoin

import httpx
import structlog

from extractarr.domain.entities.extraction import RawStream
from extractarr.domain.exceptions import ExtractionError
from extractarr.infrastructure.common.http_fetcher import HttpFetcher

log = structlog.get_logger(__name__)

_STREAM_INF_RE = re.compile(
    r"#EXT-X-STREAM-INF:[^\n]*?RESOLUTION=\d+x(\d+)[^\n]*\n\s*([^\n#][^\n]*)"
)


@dataclass(frozen=True)
class HlsVariant:
    """One rendition of a master playlist."""

    url: str
    height: int

    @property
    def quality(self) -> str:
        return f"{self.height}p"


def is_manifest_url(url: str) -> bool:
    return ".m3u8" in url


def parse_master_playlist(playlist: str, manifest_url: str) -> list[HlsVariant]:
    """Parse variant entries, resolving relative URIs against *manifest_url*.

    Duplicate variant URLs are dropped (first occurrence wins).
    """
    text = playlist.replace("\r\n", "\n")
    if "#EXTM3U" not in text:
        return []

    variants: list[HlsVariant] = []
    seen: set[str] = set()
    for match in _STREAM_INF_RE.finditer(text):
        uri = match.group(2).strip()
        if not uri:
            continue
        absolute = urljoin(manifest_url, uri)
        if absolute in seen:
            continue
        seen.add(absolute)
        variants.append(HlsVariant(url=absolute, height=int(match.group(1))))
    return variants


async def expand_hls_variants(
    fetcher: HttpFetcher,
    manifest_url: str,
    *,
    source_label: str,
    headers: Mapping[str, str],
    provider_id: str | None = None,
    fallback_to_manifest: bool = True,
) -> list[RawStream]:
    """Fetch *manifest_url* and return one stream per variant.

    Falls back to the manifest itself (``quality="auto"``) when no variant
    parses, unless *fallback_to_manifest* is false.  Returns ``[]`` when
    the manifest cannot be fetched so the caller can choose its own
    fallback.
    """
    try:
        playlist = await fetcher.get_text(
            manifest_url, provider_id=provider_id, headers=headers
        )
    except (httpx.HTTPError, ExtractionError) as exc:
        log.warning(
            "hls_manifest_fetch_failed",
            url=manifest_url,
            source=source_label,
            error=str(exc),
        )
        return []

    variants = parse_master_playlist(playlist, manifest_url)
    if not variants:
        log.debug("hls_no_variants", url=manifest_url, source=source_label)
        if not fallback_to_manifest:
            return []
        return [
            RawStream(
                url=manifest_url,
                source_label=source_label,
                is_manifest=True,
                quality="auto",
                headers=dict(headers),
            )
        ]

    return [
        RawStream(
            url=variant.url,
            source_label=source_label,
            is_manifest=True,
            quality=variant.quality,
            headers=dict(headers),
        )
        for variant in variants
    ]
