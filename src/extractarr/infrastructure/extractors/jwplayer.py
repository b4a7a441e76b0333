"""JWPlayer extractor for s3taku.* WordPress players.

The watch page carries the video id and a player nonce inside a packed
symbol table (``|ajaxUrl|...|video_id`` and ``|autoPlay|...|playerNonce``).
The stream list is then fetched from ``/wp-admin/admin-ajax.php``; the
endpoint intermittently answers ``success: false``, so the page + AJAX
round trip is repeated a bounded number of times.
"""

from __future__ import annotations

import asyncio
import re
from typing import Any
from urllib.parse import urlparse

from extractarr.domain.entities.extraction import (
    ExtractorRequest,
    RawStream,
    SubtitleTrack,
)
from extractarr.domain.exceptions import PayloadDecodeError
from extractarr.infrastructure.common.http_fetcher import parse_json
from extractarr.infrastructure.common.subtitles import make_subtitle

from .base import ExtractorBase

_VIDEO_ID_RE = re.compile(r"\|ajaxUrl\|(.*?)\|video_id")
_NONCE_RE = re.compile(r"\|autoPlay\|(.*?)\|playerNonce")

_AJAX_PATH = "/wp-admin/admin-ajax.php"
_MAX_ATTEMPTS = 10


def build_video_id(raw: str) -> str:
    """Reassemble the base64 video id from its packed fragments."""
    parts = sorted(raw.split("|"), reverse=True)
    return "+".join(parts) + "="


class JwPlayerExtractor(ExtractorBase):
    id = "jw-player"
    name = "JWPlayer"
    patterns = (r"s3taku\.",)

    # Pause between unsuccessful polling rounds (seconds)
    _poll_delay: float = 0.5

    async def _extract(self, request: ExtractorRequest) -> list[RawStream]:
        headers = self._headers(
            request,
            referer=request.url,
            content_type="application/x-www-form-urlencoded",
        )
        parsed = urlparse(request.url)
        ajax_url = f"{parsed.scheme}://{parsed.netloc}{_AJAX_PATH}"

        player_data: dict[str, Any] | None = None
        for attempt in range(1, _MAX_ATTEMPTS + 1):
            if attempt > 1 and self._poll_delay > 0:
                await asyncio.sleep(self._poll_delay)

            player_data = await self._poll_player_data(
                request.url, ajax_url, headers, attempt
            )
            if player_data is not None and player_data.get("success") is True:
                break
        else:
            raise PayloadDecodeError(
                f"player data unavailable after {_MAX_ATTEMPTS} attempts"
            )

        subtitles = self._parse_subtitles(player_data.get("subtitles"))
        stream_headers = {
            "Referer": request.url.split("watch?")[0],
            "User-Agent": self._user_agent,
        }

        streams: list[RawStream] = []
        for source in player_data.get("sources") or []:
            if not isinstance(source, dict):
                continue
            file = source.get("file")
            if not isinstance(file, str) or not file:
                continue
            streams.append(
                RawStream(
                    url=file,
                    source_label=self.name,
                    is_manifest=source.get("type") == "hls",
                    headers=dict(stream_headers),
                    subtitles=subtitles,
                )
            )
        return streams

    async def _poll_player_data(
        self,
        page_url: str,
        ajax_url: str,
        headers: dict[str, str],
        attempt: int,
    ) -> dict[str, Any] | None:
        """One page + AJAX round trip; ``None`` when the page lacks markers."""
        html = await self._get_text(page_url, headers)

        video_id = _VIDEO_ID_RE.search(html)
        if video_id is None:
            self._log.debug("jw_player_video_id_missing", attempt=attempt)
            return None
        nonce = _NONCE_RE.search(html)
        if nonce is None:
            self._log.debug("jw_player_nonce_missing", attempt=attempt)
            return None

        response = await self._fetcher.post_form(
            ajax_url,
            {
                "action": "get_player_data",
                "video_id": build_video_id(video_id.group(1)),
                "player_nonce": nonce.group(1),
            },
            provider_id=self.id,
            headers=headers,
        )
        data = parse_json(response)
        if not isinstance(data, dict):
            return None
        if data.get("success") is not True:
            self._log.debug("jw_player_not_ready", attempt=attempt)
        return data

    @staticmethod
    def _parse_subtitles(raw: Any) -> tuple[SubtitleTrack, ...]:
        if not isinstance(raw, list):
            return ()
        subtitles: list[SubtitleTrack] = []
        for item in raw:
            if not isinstance(item, dict):
                continue
            url = item.get("url")
            if not isinstance(url, str) or not url:
                continue
            lang = item.get("lang")
            subtitles.append(make_subtitle(url, name=lang, language=lang))
        return tuple(subtitles)
