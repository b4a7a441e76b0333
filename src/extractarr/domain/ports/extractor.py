"""Port for extracting playable streams from hoster embed pages."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from extractarr.domain.entities.extraction import ExtractorRequest, RawStream


@runtime_checkable
class ExtractorPort(Protocol):
    """Resolves a hoster embed page URL to playable stream URLs.

    Implementations handle site-specific extraction logic (packed JS,
    AES-encrypted AJAX payloads, HLS manifests, etc.).
    """

    @property
    def name(self) -> str:
        """Human-readable extractor name (e.g. 'GogoCDN', 'StreamWish')."""
        ...

    async def extract(self, request: ExtractorRequest) -> list[RawStream]:
        """Extract playable streams for *request*.

        Never raises. Returns an empty list if extraction fails (page
        offline, pattern not found, decryption broken, etc.).
        """
        ...
