"""MixDrop extractor (mixdrop.*).

The embed page packs its player config; after unpacking, ``wurl`` holds
the direct (usually protocol-relative) video URL.
"""

from __future__ import annotations

import re

from extractarr.domain.entities.extraction import ExtractorRequest, RawStream
from extractarr.domain.exceptions import PatternNotFoundError
from extractarr.infrastructure.common.hls import is_manifest_url
from extractarr.infrastructure.common.packer import unpack_html

from .base import ExtractorBase, url_origin

_WURL_RE = re.compile(r'wurl="([^"]+)"')


def absolute_source(link: str) -> str:
    """Prefix protocol-relative links with ``https:``."""
    if link.startswith("http"):
        return link
    return f"https:{link}"


class MixDropExtractor(ExtractorBase):
    id = "mixdrop"
    name = "MixDrop"
    patterns = (r"mixdrop\.",)

    async def _extract(self, request: ExtractorRequest) -> list[RawStream]:
        html = await self._get_text(request.url, self._headers(request))

        script = unpack_html(html)
        match = _WURL_RE.search(script)
        if match is None:
            raise PatternNotFoundError("wurl not found in unpacked script")

        source = absolute_source(match.group(1))
        return [
            RawStream(
                url=source,
                source_label=self.name,
                is_manifest=is_manifest_url(source),
                headers={
                    "Referer": f"{url_origin(request.url)}/",
                    "User-Agent": self._user_agent,
                },
            )
        ]
