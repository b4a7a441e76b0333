"""Shared fixtures for integration tests.

These tests wire the real composition root (HTTP client, retry handler,
rate limiter, registry and orchestrator) and mock HTTP via respx.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

from extractarr.infrastructure.config.schema import AppConfig
from extractarr.interfaces.composition import (
    ExtractionService,
    build_extraction_service,
)


@pytest.fixture()
def pipeline_config() -> AppConfig:
    """Two attempts without backoff sleeps or queue spacing."""
    return AppConfig.model_validate(
        {
            "environment": "test",
            "retry": {
                "max_attempts": 2,
                "initial_delay_ms": 0,
                "max_delay_ms": 0,
                "use_jitter": False,
            },
            "rate_limit": {"queue_spacing_seconds": 0},
            "extraction": {"timeout_seconds": 5},
        }
    )


@pytest.fixture()
async def service(pipeline_config: AppConfig) -> AsyncIterator[ExtractionService]:
    async with build_extraction_service(pipeline_config) as svc:
        yield svc
