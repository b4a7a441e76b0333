"""NoodleMagazine extractor: reads the inline ``window.playlist`` JSON."""

from __future__ import annotations

import json
import re

from extractarr.domain.entities.extraction import ExtractorRequest, RawStream
from extractarr.domain.exceptions import PatternNotFoundError, PayloadDecodeError
from extractarr.infrastructure.common.hls import is_manifest_url

from .base import ExtractorBase
from .constants import MOBILE_USER_AGENT

_PLAYLIST_RE = re.compile(r"window\.playlist\s*=\s*(\{[\s\S]*?\});")


class NoodleMagazineExtractor(ExtractorBase):
    id = "noodlemagazine"
    name = "NoodleMagazine"
    patterns = (r"noodlemagazine\.",)

    _user_agent = MOBILE_USER_AGENT

    async def _extract(self, request: ExtractorRequest) -> list[RawStream]:
        headers = self._headers(request, referer=request.url)
        html = await self._get_text(request.url, headers)

        match = _PLAYLIST_RE.search(html)
        if match is None:
            raise PatternNotFoundError("window.playlist not found")
        try:
            playlist = json.loads(match.group(1))
        except json.JSONDecodeError as exc:
            raise PayloadDecodeError("window.playlist is not valid JSON") from exc
        if not isinstance(playlist, dict):
            raise PayloadDecodeError("window.playlist is not an object")

        stream_headers = {"Referer": request.url, "User-Agent": self._user_agent}
        streams: list[RawStream] = []
        for source in playlist.get("sources") or []:
            if not isinstance(source, dict):
                continue
            file = source.get("file")
            if not isinstance(file, str) or not file:
                continue
            label = str(source.get("label") or "")
            streams.append(
                RawStream(
                    url=file,
                    source_label=f"{self.name} {label}" if label else self.name,
                    is_manifest=is_manifest_url(file),
                    quality=label or None,
                    headers=dict(stream_headers),
                )
            )

        if not streams:
            raise PatternNotFoundError("playlist has no sources")
        return streams
