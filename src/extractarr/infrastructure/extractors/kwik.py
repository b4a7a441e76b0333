"""Kwik extractor (kwik.*), the AnimePahe player host."""

from __future__ import annotations

import re

from extractarr.domain.entities.extraction import ExtractorRequest, RawStream
from extractarr.domain.exceptions import PatternNotFoundError
from extractarr.infrastructure.common.hls import is_manifest_url
from extractarr.infrastructure.common.packer import unpack

from .base import ExtractorBase, url_origin

_REFERER = "https://animepahe.ru/"

# The packed call sits right before the closing script tag
_PACKED_RE = re.compile(r"(eval)(\(f.*?)(\n</script>)", re.DOTALL)
_SOURCE_RE = re.compile(r"https.*?m3u8")


class KwikExtractor(ExtractorBase):
    id = "kwik"
    name = "Kwik"
    patterns = (r"kwik\.",)

    async def _extract(self, request: ExtractorRequest) -> list[RawStream]:
        headers = self._headers(request, referer=_REFERER)
        html = await self._get_text(request.url, headers)

        packed = _PACKED_RE.search(html)
        if packed is None:
            raise PatternNotFoundError("packed player script not found")

        source = _SOURCE_RE.search(unpack(packed.group(2)))
        if source is None:
            raise PatternNotFoundError("m3u8 source not found in unpacked script")

        url = source.group(0)
        origin = url_origin(request.url)
        return [
            RawStream(
                url=url,
                source_label=self.name,
                is_manifest=is_manifest_url(url),
                headers={
                    "Referer": f"{origin}/",
                    "Origin": origin,
                    "User-Agent": self._user_agent,
                },
            )
        ]
