"""Filemoon extractor (filemoon.*, 2glho.org).

The landing page only wraps the player in an ``<iframe>``.  The iframe
page carries a packed script whose ``sources`` array points at the HLS
master playlist.
"""

from __future__ import annotations

import re
from urllib.parse import urljoin

from extractarr.domain.entities.extraction import ExtractorRequest, RawStream
from extractarr.domain.exceptions import PatternNotFoundError
from extractarr.infrastructure.common.hls import expand_hls_variants, is_manifest_url
from extractarr.infrastructure.common.html_selectors import extract_attr, parse_html
from extractarr.infrastructure.common.packer import unpack_html

from .base import ExtractorBase, url_origin
from .constants import BROWSER_ACCEPT

_SOURCE_RE = re.compile(r'sources:\[\{file:"(.*?)"')


class FilemoonExtractor(ExtractorBase):
    id = "filemoon"
    name = "Filemoon"
    patterns = (r"filemoon\.", r"2glho\.org")

    async def _extract(self, request: ExtractorRequest) -> list[RawStream]:
        headers = self._headers(
            request,
            accept=BROWSER_ACCEPT,
            accept_language="en-US,en;q=0.9",
            referer=url_origin(request.url),
            origin=request.url,
        )
        html = await self._get_text(request.url, headers)

        iframe_src = extract_attr(parse_html(html), "iframe", "src")
        if not iframe_src:
            raise PatternNotFoundError("player iframe not found")
        iframe_url = urljoin(request.url, iframe_src)

        script = unpack_html(await self._get_text(iframe_url, headers))
        match = _SOURCE_RE.search(script)
        if match is None or not match.group(1):
            raise PatternNotFoundError("sources file not found in unpacked script")

        source = match.group(1)
        stream_headers = {
            "Referer": url_origin(iframe_url),
            "User-Agent": self._user_agent,
        }
        results = [
            RawStream(
                url=source,
                source_label=self.name,
                is_manifest=is_manifest_url(source),
                headers=dict(stream_headers),
            )
        ]
        if results[0].is_manifest:
            results.extend(
                await expand_hls_variants(
                    self._fetcher,
                    source,
                    source_label=self.name,
                    headers=stream_headers,
                    provider_id=self.id,
                    fallback_to_manifest=False,
                )
            )
        return results
