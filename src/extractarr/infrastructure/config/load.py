"""Layered loading of the extractarr settings.

Layers, lowest first: built-in defaults, a YAML file, ``EXTRACTARR_*``
environment variables (optionally seeded from a ``.env`` file) and the
CLI flags.
"""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

_SECTION_KEYS: set[str] = {"http", "retry", "rate_limit", "extraction", "logging"}

# Flat key (env / CLI) -> (section, key)
_FLAT_MAP: dict[str, tuple[str, str]] = {
    "http_timeout_seconds": ("http", "timeout_seconds"),
    "http_follow_redirects": ("http", "follow_redirects"),
    "http_user_agent": ("http", "user_agent"),
    "retry_max_attempts": ("retry", "max_attempts"),
    "retry_initial_delay_ms": ("retry", "initial_delay_ms"),
    "retry_max_delay_ms": ("retry", "max_delay_ms"),
    "retry_backoff_multiplier": ("retry", "backoff_multiplier"),
    "retry_use_jitter": ("retry", "use_jitter"),
    "rate_limit_default_window_seconds": ("rate_limit", "default_window_seconds"),
    "rate_limit_queue_spacing_seconds": ("rate_limit", "queue_spacing_seconds"),
    "extraction_timeout_seconds": ("extraction", "timeout_seconds"),
    "extraction_disabled": ("extraction", "disabled"),
    "log_level": ("logging", "level"),
    "log_format": ("logging", "format"),
}


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Fold *override* into *base* in place.

    Nested sections are merged key by key; any other value from
    *override* replaces the one in *base*.
    """
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, Mapping):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _normalize_layer(data: Mapping[str, Any]) -> dict[str, Any]:
    """Bring one settings layer into the sectioned ``AppConfig`` shape.

    Sections given as nested mappings are copied; flat keys such as
    ``retry_max_attempts`` (env vars, CLI flags) are routed to their
    section via ``_FLAT_MAP``.  Unknown keys are dropped.
    """
    out: dict[str, Any] = {}

    # Nested sections, as written in YAML
    for section in _SECTION_KEYS:
        if section in data and isinstance(data[section], Mapping):
            out[section] = dict(data[section])

    if "app_name" in data:
        out["app_name"] = data["app_name"]
    if "environment" in data:
        out["environment"] = data["environment"]

    for flat_key, (section, section_key) in _FLAT_MAP.items():
        if flat_key in data:
            out.setdefault(section, {})
            out[section][section_key] = data[flat_key]

    return out


def _read_yaml_config(config_path: Path) -> dict[str, Any]:
    raw = config_path.read_text(encoding="utf-8")
    parsed = yaml.safe_load(raw)
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(
            f"{config_path}: expected a mapping at the top level, "
            f"got {type(parsed).__name__}"
        )
    return parsed


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """Build the effective :class:`AppConfig`.

    Later layers win: defaults, *config_path*, environment, *cli_overrides*.
    Explicitly given files must exist; nothing is ever written to disk.

    Raises:
        FileNotFoundError: *config_path* or *dotenv_path* does not exist.
        ValueError: the YAML document is not a mapping.
        pydantic.ValidationError: the merged settings are invalid.
    """
    cli_overrides = cli_overrides or {}

    # .env values only fill variables the process does not already set
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        load_dotenv(dotenv_path, override=False)

    base = _normalize_layer(deepcopy(DEFAULT_CONFIG))

    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(config_path)
        yaml_layer = _normalize_layer(_read_yaml_config(config_path))
        _deep_merge(base, yaml_layer)

    env_layer = _normalize_layer(EnvOverrides().to_update_dict())
    _deep_merge(base, env_layer)

    cli_layer = _normalize_layer(cli_overrides)
    _deep_merge(base, cli_layer)

    # Validation happens once, on the merged result
    return AppConfig.model_validate(base)
