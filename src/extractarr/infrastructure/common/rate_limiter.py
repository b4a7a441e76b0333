"""Per-provider rate limiter driven by 429 responses.

A provider is blocked once a ``429 Too Many Requests`` is recorded for it
and stays blocked until its window expires.  Callers that go through
:meth:`ProviderRateLimiter.queue_request` are held back until then and
released in FIFO order.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import structlog

log = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_WINDOW_SECONDS = 60.0
DEFAULT_QUEUE_SPACING_SECONDS = 0.1


@dataclass
class RateLimitState:
    """Suppression window of a single provider (monotonic clock)."""

    blocked_until: float | None = None


class ProviderRateLimiter:
    """Tracks 429 windows per provider id and queues callers.

    Thread-safety note: this class is *not* thread-safe but is safe
    for single-threaded asyncio.  Each provider gets its own
    ``asyncio.Lock`` so a blocked provider never delays another one.

    Args:
        default_window: Block duration (seconds) when a 429 carries no
            ``Retry-After`` header.
        queue_spacing: Pause (seconds) between consecutive queued
            dispatches for the same provider.
    """

    def __init__(
        self,
        *,
        default_window: float = DEFAULT_WINDOW_SECONDS,
        queue_spacing: float = DEFAULT_QUEUE_SPACING_SECONDS,
    ) -> None:
        self._default_window = default_window
        self._queue_spacing = queue_spacing
        self._states: dict[str, RateLimitState] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        # Callers holding or waiting for a provider lock
        self._pending: dict[str, int] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def is_rate_limited(self, provider_id: str) -> bool:
        """Return ``True`` while *provider_id* is inside a 429 window."""
        return self.get_time_until_reset(provider_id) is not None

    def record_rate_limit(
        self, provider_id: str, retry_after: float | None = None
    ) -> None:
        """Block *provider_id* for *retry_after* seconds (or the default)."""
        window = retry_after if retry_after is not None else self._default_window
        state = self._states.setdefault(provider_id, RateLimitState())
        state.blocked_until = time.monotonic() + max(0.0, window)
        log.warning(
            "rate_limit_recorded",
            provider=provider_id,
            window_seconds=round(window, 2),
        )

    def get_time_until_reset(self, provider_id: str) -> float | None:
        """Seconds until *provider_id* is released, or ``None`` if not limited."""
        state = self._states.get(provider_id)
        if state is None or state.blocked_until is None:
            return None

        remaining = state.blocked_until - time.monotonic()
        if remaining <= 0:
            # Window expired, drop the entry lazily
            del self._states[provider_id]
            return None
        return remaining

    async def queue_request(
        self,
        provider_id: str,
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        """Run *operation* once *provider_id* is no longer rate limited.

        Executes immediately when the provider is eligible and nobody
        else is queued.  Otherwise waits its turn behind earlier callers
        for the same provider.  Every caller passes through the provider
        lock, so a newcomer can never overtake a woken waiter.
        """
        lock = self._locks.setdefault(provider_id, asyncio.Lock())
        queued = self._pending.get(provider_id, 0) > 0 or self.is_rate_limited(
            provider_id
        )

        self._pending[provider_id] = self._pending.get(provider_id, 0) + 1
        try:
            # Uncontended acquire does not yield
            async with lock:
                if queued:
                    await self._wait_for_release(provider_id)
        finally:
            self._leave_queue(provider_id)

        return await operation()

    async def _wait_for_release(self, provider_id: str) -> None:
        """Sleep until the window is over, then keep the queue spacing.

        The window is checked again after the spacing sleep, since a new
        429 may have been recorded meanwhile.
        """
        while True:
            while (remaining := self.get_time_until_reset(provider_id)) is not None:
                log.info(
                    "rate_limit_wait",
                    provider=provider_id,
                    wait_seconds=round(remaining, 2),
                )
                await asyncio.sleep(remaining)
            if self._queue_spacing <= 0:
                return
            await asyncio.sleep(self._queue_spacing)
            if not self.is_rate_limited(provider_id):
                return

    def _leave_queue(self, provider_id: str) -> None:
        count = self._pending.get(provider_id, 0) - 1
        if count > 0:
            self._pending[provider_id] = count
        else:
            self._pending.pop(provider_id, None)

    def clear_all(self) -> None:
        """Forget every recorded window and queue lock."""
        self._states.clear()
        self._locks.clear()
        self._pending.clear()
