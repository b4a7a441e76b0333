"""Tests for GogoCdnExtractor."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from extractarr.domain.entities.extraction import ExtractorRequest
from extractarr.infrastructure.common.crypto import aes_cbc_encrypt
from extractarr.infrastructure.common.http_fetcher import HttpFetcher
from extractarr.infrastructure.extractors import gogocdn
from extractarr.infrastructure.extractors.gogocdn import (
    GogoCdnExtractor,
    build_ajax_query,
    decrypt_ajax_payload,
    encrypt_content_id,
)

_HOST = "goload.example"
_EMBED_URL = f"https://{_HOST}/streaming.php?id=MTIz&title=Episode+1"
_TOKEN_PLAIN = "token=t0k3n&expires=1700000000"
_REQUEST = ExtractorRequest(url=_EMBED_URL)


def _embed_page(token_plain: str = _TOKEN_PLAIN) -> str:
    token = aes_cbc_encrypt(token_plain, gogocdn._KEY, gogocdn._IV)
    return (
        "<html><head>"
        f'<script type="text/javascript" data-name="episode" data-value="{token}">'
        "</script></head><body></body></html>"
    )


def _ajax_envelope(payload: dict) -> dict:  # type: ignore[type-arg]
    data = aes_cbc_encrypt(json.dumps(payload), gogocdn._SECOND_KEY, gogocdn._IV)
    return {"data": data}


class TestCrypto:
    def test_ajax_query_layout(self) -> None:
        token = aes_cbc_encrypt(_TOKEN_PLAIN, gogocdn._KEY, gogocdn._IV)
        query = build_ajax_query(token, "MTIz")
        parts = query.split("&")
        assert parts[0].startswith("id=")
        assert "=" not in parts[0][3:]  # base64 padding is url-encoded
        assert parts[1] == "alias=MTIz"
        assert "&".join(parts[2:]) == _TOKEN_PLAIN

    def test_content_id_is_deterministic(self) -> None:
        assert encrypt_content_id("MTIz") == encrypt_content_id("MTIz")

    def test_payload_round_trip(self) -> None:
        envelope = _ajax_envelope({"source": [{"file": "https://a/b.mp4"}]})
        assert decrypt_ajax_payload(envelope["data"]) == {
            "source": [{"file": "https://a/b.mp4"}]
        }


class TestGogoCdnExtractor:
    def test_identity(self, fetcher: HttpFetcher) -> None:
        extractor = GogoCdnExtractor(fetcher)
        assert extractor.id == "gogocdn"
        assert extractor.name == "GogoCDN"

    @respx.mock
    @pytest.mark.asyncio
    async def test_extracts_sources_backup_and_subtitles(
        self, fetcher: HttpFetcher
    ) -> None:
        respx.get(host=_HOST, path="/streaming.php").respond(200, text=_embed_page())
        ajax = respx.get(host=_HOST, path="/encrypt-ajax.php").respond(
            200,
            json=_ajax_envelope(
                {
                    "source": [
                        {"file": "https://cdn.example.com/ep1-720.mp4", "label": "720 P"}
                    ],
                    "source_bk": [
                        {"file": "https://backup.example.com/ep1.mp4", "label": ""},
                        {"file": "https://cdn.example.com/ep1-720.mp4", "label": "720 P"},
                    ],
                    "track": {
                        "tracks": [
                            {"file": "https://cdn.example.com/en.vtt", "kind": "English"},
                            {"file": "", "kind": "broken"},
                        ]
                    },
                }
            ),
        )

        streams = await GogoCdnExtractor(fetcher).extract(_REQUEST)

        assert [s.url for s in streams] == [
            "https://cdn.example.com/ep1-720.mp4",
            "https://backup.example.com/ep1.mp4",
        ]
        assert [s.quality for s in streams] == ["720", "backup"]
        assert all(s.source_label == "GogoCDN" for s in streams)
        assert not any(s.is_manifest for s in streams)
        assert streams[0].headers["Referer"] == _EMBED_URL

        assert len(streams[0].subtitles) == 1
        assert streams[0].subtitles[0].name == "English"
        assert streams[0].subtitles[0].mime_type == "text/vtt"
        assert streams[1].subtitles == ()

        request = ajax.calls.last.request
        assert request.headers["X-Requested-With"] == "XMLHttpRequest"
        assert request.url.params["alias"] == "MTIz"
        assert request.url.params["token"] == "t0k3n"
        assert request.url.params["id"] == encrypt_content_id("MTIz")

    @respx.mock
    @pytest.mark.asyncio
    async def test_hls_source_expanded_into_variants(self, fetcher: HttpFetcher) -> None:
        master = "https://hls.example.com/ep1/master.m3u8"
        respx.get(host=_HOST, path="/streaming.php").respond(200, text=_embed_page())
        respx.get(host=_HOST, path="/encrypt-ajax.php").respond(
            200,
            json=_ajax_envelope(
                {"source": [{"file": master, "label": "hls P", "type": "hls"}]}
            ),
        )
        respx.get(master).respond(
            200,
            text=(
                "#EXTM3U\n"
                "#EXT-X-STREAM-INF:BANDWIDTH=1,RESOLUTION=854x480\n480.m3u8\n"
                "#EXT-X-STREAM-INF:BANDWIDTH=2,RESOLUTION=1920x1080\n1080.m3u8\n"
            ),
        )

        streams = await GogoCdnExtractor(fetcher).extract(_REQUEST)

        assert [s.quality for s in streams] == ["480p", "1080p"]
        assert streams[0].url == "https://hls.example.com/ep1/480.m3u8"
        assert all(s.is_manifest for s in streams)

    @respx.mock
    @pytest.mark.asyncio
    async def test_manifest_fetch_failure_keeps_master(self, fetcher: HttpFetcher) -> None:
        master = "https://hls.example.com/ep1/master.m3u8"
        respx.get(host=_HOST, path="/streaming.php").respond(200, text=_embed_page())
        respx.get(host=_HOST, path="/encrypt-ajax.php").respond(
            200, json=_ajax_envelope({"source": [{"file": master, "label": "hls P"}]})
        )
        respx.get(master).respond(403)

        streams = await GogoCdnExtractor(fetcher).extract(_REQUEST)

        assert len(streams) == 1
        assert streams[0].url == master
        assert streams[0].is_manifest is True
        assert streams[0].quality == "hls"

    @pytest.mark.asyncio
    async def test_missing_id_returns_empty(self, fetcher: HttpFetcher) -> None:
        request = ExtractorRequest(url=f"https://{_HOST}/streaming.php")
        assert await GogoCdnExtractor(fetcher).extract(request) == []

    @respx.mock
    @pytest.mark.asyncio
    async def test_missing_token_returns_empty(self, fetcher: HttpFetcher) -> None:
        respx.get(host=_HOST, path="/streaming.php").respond(
            200, text="<html><body>gone</body></html>"
        )
        streams = await GogoCdnExtractor(fetcher).extract(_REQUEST)
        assert streams == []

    @respx.mock
    @pytest.mark.asyncio
    async def test_undecryptable_payload_returns_empty(self, fetcher: HttpFetcher) -> None:
        respx.get(host=_HOST, path="/streaming.php").respond(200, text=_embed_page())
        respx.get(host=_HOST, path="/encrypt-ajax.php").respond(
            200, json={"data": "bm90LWFlcw=="}
        )
        streams = await GogoCdnExtractor(fetcher).extract(_REQUEST)
        assert streams == []

    @respx.mock
    @pytest.mark.asyncio
    async def test_network_error_returns_empty(self, fetcher: HttpFetcher) -> None:
        respx.get(host=_HOST, path="/streaming.php").mock(
            side_effect=httpx.ConnectError("refused")
        )
        streams = await GogoCdnExtractor(fetcher).extract(_REQUEST)
        assert streams == []
