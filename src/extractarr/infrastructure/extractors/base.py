"""Shared base class for extractors.

Takes care of what every extractor repeats: pattern compilation, info
construction, header assembly, fetching through the retrying
:class:`HttpFetcher`, and the never-raise ``extract()`` boundary.

This base class lives in the *infrastructure* layer because it depends
on ``httpx`` and ``structlog``.  The *domain* layer only knows
``ExtractorPort``; subclasses structurally satisfy that Protocol.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlparse

import httpx
import structlog

from extractarr.domain.entities.extraction import (
    ExtractorCategory,
    ExtractorInfo,
    ExtractorRequest,
    RawStream,
)
from extractarr.domain.exceptions import ExtractionError
from extractarr.infrastructure.common.http_fetcher import HttpFetcher

from .constants import DEFAULT_USER_AGENT


def url_origin(url: str) -> str:
    """Return ``scheme://host[:port]`` of *url*."""
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


class ExtractorBase:
    """Shared base for extractors.

    Subclasses **must** set:
    - ``id`` (registry id, also used as rate-limit provider id)
    - ``name`` (label attached to every returned stream)
    - ``patterns`` (regex sources tested against host + path)

    Subclasses **must** override:
    - ``_extract()``, which may raise; ``extract()`` never does.
    """

    id: str = ""
    name: str = ""
    patterns: tuple[str, ...] = ()
    category: ExtractorCategory = ExtractorCategory.VIDEO

    _user_agent: str = DEFAULT_USER_AGENT

    def __init__(self, fetcher: HttpFetcher) -> None:
        self._fetcher = fetcher
        self._log = structlog.get_logger(self.id or __name__)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    @classmethod
    def compiled_patterns(cls) -> tuple[re.Pattern[str], ...]:
        return tuple(re.compile(p, re.IGNORECASE) for p in cls.patterns)

    @classmethod
    def build_info(cls, fetcher: HttpFetcher) -> ExtractorInfo:
        """Create the registry descriptor with a single extractor instance."""
        return ExtractorInfo(
            id=cls.id,
            patterns=cls.compiled_patterns(),
            extractors=(cls(fetcher),),
            category=cls.category,
        )

    # ------------------------------------------------------------------
    # Extraction boundary
    # ------------------------------------------------------------------

    async def extract(self, request: ExtractorRequest) -> list[RawStream]:
        """Run the extractor; failures are logged and yield ``[]``."""
        url = request.url
        try:
            streams = await self._extract(request)
        except ExtractionError as exc:
            self._log.warning(f"{self.id}_extraction_failed", url=url, error=str(exc))
        except httpx.TimeoutException:
            self._log.warning(f"{self.id}_timeout", url=url)
        except httpx.HTTPStatusError as exc:
            self._log.warning(
                f"{self.id}_http_error",
                url=url,
                status=exc.response.status_code,
            )
        except httpx.HTTPError as exc:
            self._log.warning(f"{self.id}_request_failed", url=url, error=str(exc))
        except Exception:
            self._log.exception(f"{self.id}_extraction_error", url=url)
        else:
            self._log.debug(f"{self.id}_extracted", url=url, streams=len(streams))
            return streams
        return []

    async def _extract(self, request: ExtractorRequest) -> list[RawStream]:
        raise NotImplementedError(f"{type(self).__name__}._extract() not implemented")

    # ------------------------------------------------------------------
    # Convenience helpers
    # ------------------------------------------------------------------

    def _headers(
        self, request: ExtractorRequest, **overrides: str | None
    ) -> dict[str, str]:
        """Caller headers < default User-Agent < *overrides*.

        Keyword names map ``snake_case`` to ``Header-Case``; ``None``
        values drop the header.
        """
        headers: dict[str, str] = dict(request.headers or {})
        headers["User-Agent"] = self._user_agent
        for key, value in overrides.items():
            header = "-".join(part.capitalize() for part in key.split("_"))
            if value is None:
                headers.pop(header, None)
            else:
                headers[header] = value
        return headers

    async def _get_text(
        self,
        url: str,
        headers: Mapping[str, str],
        params: Mapping[str, str] | None = None,
    ) -> str:
        return await self._fetcher.get_text(
            url, provider_id=self.id, headers=headers, params=params
        )

    async def _get_json(self, url: str, headers: Mapping[str, str]) -> Any:
        return await self._fetcher.get_json(url, provider_id=self.id, headers=headers)
