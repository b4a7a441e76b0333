from __future__ import annotations

from urllib.parse import urlparse

from extractarr.domain.entities.extraction import SubtitleTrack

_MIME_TYPES = {
    "vtt": "text/vtt",
    "srt": "text/srt",
    "sub": "text/sub",
    "sbv": "text/sbv",
    "smi": "text/smi",
    "ssa": "text/ssa",
    "ass": "text/ass",
}

DEFAULT_SUBTITLE_MIME = "text/vtt"


def detect_subtitle_mime_type(url: str) -> str:
    """Guess a subtitle MIME type from the URL's file extension."""
    path = urlparse(url).path or url
    extension = path.rsplit(".", 1)[-1].lower() if "." in path else ""
    return _MIME_TYPES.get(extension, DEFAULT_SUBTITLE_MIME)


def make_subtitle(
    url: str, name: str | None = None, language: str | None = None
) -> SubtitleTrack:
    return SubtitleTrack(
        url=url,
        name=name or None,
        language=language or None,
        mime_type=detect_subtitle_mime_type(url),
    )
