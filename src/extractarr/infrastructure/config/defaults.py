"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "extractarr",
    "environment": "dev",
    "http": {
        "timeout_seconds": 20.0,
        "follow_redirects": True,
        "user_agent": "extractarr/0.1.0",
    },
    "retry": {
        "max_attempts": 3,
        "initial_delay_ms": 1000,
        "max_delay_ms": 30_000,
        "backoff_multiplier": 2.0,
        "use_jitter": True,
    },
    "rate_limit": {
        "default_window_seconds": 60.0,
        "queue_spacing_seconds": 0.1,
    },
    "extraction": {
        "timeout_seconds": 60.0,
        "disabled": [],
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
}
