from .extraction import (
    ExtractorCategory,
    ExtractorInfo,
    ExtractorRequest,
    RawStream,
    SubtitleTrack,
)

__all__ = [
    "ExtractorCategory",
    "ExtractorInfo",
    "ExtractorRequest",
    "RawStream",
    "SubtitleTrack",
]
