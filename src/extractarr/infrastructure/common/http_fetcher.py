"""Shared HTTP fetch layer for extractors.

Every request goes through :class:`RetryHandler` (and therefore the
per-provider rate limiter).  Non-2xx responses are turned into
``httpx.HTTPStatusError`` so the retry policy can classify them.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import httpx
import structlog

from extractarr.domain.exceptions import PayloadDecodeError
from extractarr.infrastructure.common.retry_handler import RetryHandler

log = structlog.get_logger(__name__)


class HttpFetcher:
    """Retrying, rate-limit-aware wrapper around a shared ``httpx.AsyncClient``."""

    def __init__(self, client: httpx.AsyncClient, retry_handler: RetryHandler) -> None:
        self._client = client
        self._retry = retry_handler

    @property
    def retry_handler(self) -> RetryHandler:
        return self._retry

    async def request(
        self,
        method: str,
        url: str,
        *,
        provider_id: str | None = None,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        data: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """Send a request with retries; raises on non-2xx after retries."""

        async def _send() -> httpx.Response:
            resp = await self._client.request(
                method,
                url,
                headers=dict(headers) if headers else None,
                params=params,
                data=data,
            )
            resp.raise_for_status()
            return resp

        return await self._retry.execute(
            _send,
            provider_id=provider_id,
            operation_name=f"{method.upper()} {url}",
        )

    async def get_text(
        self,
        url: str,
        *,
        provider_id: str | None = None,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> str:
        resp = await self.request(
            "GET", url, provider_id=provider_id, headers=headers, params=params
        )
        return resp.text

    async def get_json(
        self,
        url: str,
        *,
        provider_id: str | None = None,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> Any:
        resp = await self.request(
            "GET", url, provider_id=provider_id, headers=headers, params=params
        )
        return parse_json(resp)

    async def post_form(
        self,
        url: str,
        data: Mapping[str, str],
        *,
        provider_id: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """POST ``application/x-www-form-urlencoded`` *data*."""
        return await self.request(
            "POST", url, provider_id=provider_id, headers=headers, data=data
        )


def parse_json(response: httpx.Response) -> Any:
    """Decode a JSON body.

    Raises:
        PayloadDecodeError: body is not valid JSON.
    """
    try:
        return response.json()
    except (json.JSONDecodeError, ValueError) as exc:
        log.debug("http_invalid_json", url=str(response.url))
        raise PayloadDecodeError(f"invalid JSON from {response.url}") from exc
