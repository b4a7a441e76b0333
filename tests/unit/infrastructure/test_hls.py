"""Tests for HLS master playlist parsing and variant expansion."""

from __future__ import annotations

import httpx
import pytest
import respx

from extractarr.infrastructure.common.hls import (
    expand_hls_variants,
    is_manifest_url,
    parse_master_playlist,
)
from extractarr.infrastructure.common.http_fetcher import HttpFetcher

MASTER_URL = "https://cdn.example.com/hls/abc/master.m3u8"

MASTER_PLAYLIST = """#EXTM3U
#EXT-X-VERSION:3
#EXT-X-STREAM-INF:BANDWIDTH=800000,RESOLUTION=640x360
360p/index.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=1400000,RESOLUTION=1280x720,CODECS="avc1.4d401f"
720p/index.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=2800000,RESOLUTION=1920x1080
https://cdn2.example.com/hls/abc/1080p/index.m3u8
"""


class TestParseMasterPlaylist:
    def test_three_variants(self) -> None:
        variants = parse_master_playlist(MASTER_PLAYLIST, MASTER_URL)
        assert [v.quality for v in variants] == ["360p", "720p", "1080p"]
        assert [v.height for v in variants] == [360, 720, 1080]

    def test_relative_uris_resolved_against_manifest(self) -> None:
        variants = parse_master_playlist(MASTER_PLAYLIST, MASTER_URL)
        assert variants[0].url == "https://cdn.example.com/hls/abc/360p/index.m3u8"
        assert variants[2].url == "https://cdn2.example.com/hls/abc/1080p/index.m3u8"

    def test_duplicates_suppressed(self) -> None:
        doubled = MASTER_PLAYLIST + MASTER_PLAYLIST.replace("#EXTM3U\n", "")
        variants = parse_master_playlist(doubled, MASTER_URL)
        assert len(variants) == 3

    def test_crlf_line_endings(self) -> None:
        variants = parse_master_playlist(
            MASTER_PLAYLIST.replace("\n", "\r\n"), MASTER_URL
        )
        assert len(variants) == 3

    def test_not_a_playlist(self) -> None:
        assert parse_master_playlist("<html>nope</html>", MASTER_URL) == []

    def test_variant_without_resolution_skipped(self) -> None:
        playlist = "#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1\naudio.m3u8\n"
        assert parse_master_playlist(playlist, MASTER_URL) == []


def test_is_manifest_url() -> None:
    assert is_manifest_url("https://a.b/master.m3u8?token=1") is True
    assert is_manifest_url("https://a.b/video.mp4") is False


class TestExpandHlsVariants:
    @respx.mock
    @pytest.mark.asyncio
    async def test_one_stream_per_variant(self, fetcher: HttpFetcher) -> None:
        respx.get(MASTER_URL).respond(200, text=MASTER_PLAYLIST)
        headers = {"Referer": "https://embed.example.com/"}

        first = await expand_hls_variants(
            fetcher, MASTER_URL, source_label="Test", headers=headers
        )
        second = await expand_hls_variants(
            fetcher, MASTER_URL, source_label="Test", headers=headers
        )

        assert [s.quality for s in first] == ["360p", "720p", "1080p"]
        assert all(s.is_manifest for s in first)
        assert all(s.source_label == "Test" for s in first)
        assert all(dict(s.headers) == headers for s in first)
        assert len({s.url for s in first}) == 3
        assert first == second

    @respx.mock
    @pytest.mark.asyncio
    async def test_no_variants_falls_back_to_manifest(self, fetcher: HttpFetcher) -> None:
        respx.get(MASTER_URL).respond(200, text="#EXTM3U\n#EXTINF:10,\nseg0.ts\n")
        streams = await expand_hls_variants(
            fetcher, MASTER_URL, source_label="Test", headers={}
        )
        assert len(streams) == 1
        assert streams[0].url == MASTER_URL
        assert streams[0].quality == "auto"

    @respx.mock
    @pytest.mark.asyncio
    async def test_no_variants_without_fallback(self, fetcher: HttpFetcher) -> None:
        respx.get(MASTER_URL).respond(200, text="#EXTM3U\n#EXTINF:10,\nseg0.ts\n")
        streams = await expand_hls_variants(
            fetcher,
            MASTER_URL,
            source_label="Test",
            headers={},
            fallback_to_manifest=False,
        )
        assert streams == []

    @respx.mock
    @pytest.mark.asyncio
    async def test_fetch_failure_returns_empty(self, fetcher: HttpFetcher) -> None:
        respx.get(MASTER_URL).mock(side_effect=httpx.ConnectError("refused"))
        streams = await expand_hls_variants(
            fetcher, MASTER_URL, source_label="Test", headers={}
        )
        assert streams == []

    @respx.mock
    @pytest.mark.asyncio
    async def test_http_error_returns_empty(self, fetcher: HttpFetcher) -> None:
        respx.get(MASTER_URL).respond(404)
        streams = await expand_hls_variants(
            fetcher, MASTER_URL, source_label="Test", headers={}
        )
        assert streams == []
