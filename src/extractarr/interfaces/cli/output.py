"""JSON-friendly views of domain objects for CLI output."""

from __future__ import annotations

from typing import Any

from extractarr.domain.entities.extraction import (
    ExtractorInfo,
    RawStream,
    SubtitleTrack,
)


def subtitle_to_dict(track: SubtitleTrack) -> dict[str, Any]:
    return {
        "url": track.url,
        "name": track.name,
        "language": track.language,
        "mime_type": track.mime_type,
    }


def stream_to_dict(stream: RawStream) -> dict[str, Any]:
    """Serialize a stream; every value is a JSON primitive, list or dict."""
    return {
        "url": stream.url,
        "source": stream.source_label,
        "is_manifest": stream.is_manifest,
        "quality": stream.quality,
        "headers": dict(stream.headers),
        "subtitles": [subtitle_to_dict(track) for track in stream.subtitles],
    }


def info_to_dict(info: ExtractorInfo) -> dict[str, Any]:
    return {
        "id": info.id,
        "category": info.category.value,
        "patterns": [pattern.pattern for pattern in info.patterns],
    }
