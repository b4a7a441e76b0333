"""StreamWish extractor (streamwish.*, dhcplay.*).

The player page hides its config inside a Dean Edwards packed script.
After unpacking, the first ``.m3u8`` URL is the master playlist and the
``tracks`` array lists captions and the thumbnail sprite sheet.
"""

from __future__ import annotations

import re

from extractarr.domain.entities.extraction import (
    ExtractorRequest,
    RawStream,
    SubtitleTrack,
)
from extractarr.domain.exceptions import PatternNotFoundError
from extractarr.infrastructure.common.hls import expand_hls_variants, is_manifest_url
from extractarr.infrastructure.common.packer import unpack_html
from extractarr.infrastructure.common.subtitles import make_subtitle

from .base import ExtractorBase, url_origin
from .constants import BROWSER_ACCEPT

_M3U8_RE = re.compile(r"""https?://[^"']+?\.m3u8[^"']*""")
_TRACK_RE = re.compile(
    r'\{file:"([^"]+)",(label:"([^"]+)",)?kind:"(thumbnails|captions)"'
)

_THUMBNAIL_BASE = "https://streamwish.com"
_SEC_CH_UA = '"Google Chrome";v="129", "Not=A?Brand";v="8", "Chromium";v="129"'


def clean_master_url(link: str) -> str:
    """Strip packer leftovers and append the player's ``i`` parameter."""
    if 'hls2"' in link:
        link = link.replace('hls2"', "").replace('"', "")
    separator = "&" if "?" in link else "?"
    return f"{link}{separator}i=0.4"


def parse_tracks(script: str) -> tuple[SubtitleTrack, ...]:
    tracks: list[SubtitleTrack] = []
    for match in _TRACK_RE.finditer(script):
        file, label, kind = match.group(1), match.group(3), match.group(4)
        if kind == "thumbnails":
            tracks.append(make_subtitle(f"{_THUMBNAIL_BASE}{file}", kind, kind))
        else:
            tracks.append(make_subtitle(file, label, label))
    return tuple(tracks)


class StreamWishExtractor(ExtractorBase):
    id = "streamwish"
    name = "StreamWish"
    patterns = (r"streamwish\.", r"dhcplay\.")

    def _browser_headers(self, request: ExtractorRequest) -> dict[str, str]:
        origin = url_origin(request.url)
        return self._headers(
            request,
            accept=BROWSER_ACCEPT,
            accept_encoding="*",
            accept_language="en-US,en;q=0.9",
            cache_control="max-age=0",
            priority="u=0, i",
            origin=origin,
            referer=origin,
            sec_ch_ua=_SEC_CH_UA,
            sec_ch_ua_mobile="?0",
            sec_ch_ua_platform="Windows",
            sec_fetch_dest="document",
            sec_fetch_mode="navigate",
            sec_fetch_site="none",
            sec_fetch_user="?1",
            upgrade_insecure_requests="1",
        )

    async def _extract(self, request: ExtractorRequest) -> list[RawStream]:
        headers = self._browser_headers(request)
        html = await self._get_text(request.url, headers)

        script = unpack_html(html)
        match = _M3U8_RE.search(script)
        if match is None:
            raise PatternNotFoundError("m3u8 link not found in unpacked script")

        master_url = clean_master_url(match.group(0))
        results = [
            RawStream(
                url=master_url,
                source_label=self.name,
                is_manifest=is_manifest_url(master_url),
                headers=dict(headers),
                subtitles=parse_tracks(script),
            )
        ]
        results.extend(
            await expand_hls_variants(
                self._fetcher,
                master_url,
                source_label=self.name,
                headers=headers,
                provider_id=self.id,
                fallback_to_manifest=False,
            )
        )
        return results
