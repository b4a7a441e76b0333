"""Integration tests for configuration loading with layered precedence.

Tests the real load_config() function with actual YAML files, .env files,
environment variables and CLI overrides to verify precedence:
defaults < YAML < ENV < CLI.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from extractarr.infrastructure.config.load import load_config

pytestmark = pytest.mark.integration


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop EXTRACTARR_* variables leaking in from the host environment."""
    for key in list(os.environ):
        if key.startswith("EXTRACTARR_"):
            monkeypatch.delenv(key)


@pytest.fixture()
def yaml_config(tmp_path: Path) -> Path:
    """Write a minimal YAML config and return its path."""
    config = {
        "app_name": "extractarr-test",
        "environment": "test",
        "http": {
            "timeout_seconds": 15.0,
            "user_agent": "TestAgent/1.0",
        },
        "retry": {"max_attempts": 5, "initial_delay_ms": 250},
        "extraction": {"timeout_seconds": 30, "disabled": ["kwik"]},
        "logging": {"level": "DEBUG", "format": "console"},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config), encoding="utf-8")
    return path


class TestDefaultsOnly:
    """Load with no YAML, no ENV, no CLI: pure defaults."""

    def test_defaults_produce_valid_config(self) -> None:
        config = load_config()
        assert config.app_name == "extractarr"
        assert config.environment == "dev"
        assert config.http_timeout_seconds == 20.0
        assert config.retry.max_attempts == 3
        assert config.retry.initial_delay_ms == 1000
        assert config.rate_limit.default_window_seconds == 60.0
        assert config.rate_limit.queue_spacing_seconds == 0.1
        assert config.extraction.timeout_seconds == 60.0
        assert config.extraction.disabled == []
        assert config.log_level == "INFO"
        assert config.log_format == "console"  # dev -> console

    def test_prod_derives_json_logs(self) -> None:
        config = load_config(cli_overrides={"environment": "prod"})
        assert config.log_format == "json"


class TestYamlOverrides:
    """YAML values override defaults."""

    def test_yaml_overrides_defaults(self, yaml_config: Path) -> None:
        config = load_config(config_path=yaml_config)
        assert config.app_name == "extractarr-test"
        assert config.environment == "test"
        assert config.http_timeout_seconds == 15.0
        assert config.http_user_agent == "TestAgent/1.0"
        assert config.retry.max_attempts == 5
        assert config.retry.initial_delay_ms == 250
        assert config.extraction.timeout_seconds == 30.0
        assert config.extraction.disabled == ["kwik"]
        assert config.log_level == "DEBUG"

    def test_partial_section_keeps_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "partial.yaml"
        path.write_text(yaml.dump({"retry": {"max_attempts": 7}}), encoding="utf-8")

        config = load_config(config_path=path)

        assert config.retry.max_attempts == 7
        assert config.retry.backoff_multiplier == 2.0
        assert config.retry.use_jitter is True

    def test_empty_yaml_is_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(config_path=path).app_name == "extractarr"

    def test_non_mapping_yaml_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping") as exc_info:
            load_config(config_path=path)
        assert "list.yaml" in str(exc_info.value)
        assert "got list" in str(exc_info.value)

    def test_yaml_file_not_found_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "nonexistent.yaml")


class TestEnvOverrides:
    """EXTRACTARR_* variables override YAML and defaults."""

    def test_env_overrides_yaml(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("EXTRACTARR_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("EXTRACTARR_RETRY_MAX_ATTEMPTS", "2")

        config = load_config(config_path=yaml_config)

        assert config.log_level == "WARNING"
        assert config.retry.max_attempts == 2
        # Untouched YAML values survive
        assert config.http_timeout_seconds == 15.0

    def test_disabled_list_from_csv(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EXTRACTARR_EXTRACTION_DISABLED", "kwik, jw-player,")
        config = load_config()
        assert config.extraction.disabled == ["kwik", "jw-player"]

    def test_dotenv_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        # Registers the variable with monkeypatch so it is removed afterwards
        monkeypatch.setenv("EXTRACTARR_HTTP_TIMEOUT_SECONDS", "0")
        monkeypatch.delenv("EXTRACTARR_HTTP_TIMEOUT_SECONDS")
        dotenv = tmp_path / ".env"
        dotenv.write_text("EXTRACTARR_HTTP_TIMEOUT_SECONDS=42\n", encoding="utf-8")

        config = load_config(dotenv_path=dotenv)

        assert config.http_timeout_seconds == 42.0

    def test_missing_dotenv_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(dotenv_path=tmp_path / "missing.env")


class TestCliOverrides:
    """CLI overrides have the highest precedence."""

    def test_cli_overrides_yaml_and_env(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("EXTRACTARR_LOG_LEVEL", "WARNING")

        config = load_config(
            config_path=yaml_config, cli_overrides={"log_level": "ERROR"}
        )

        assert config.log_level == "ERROR"

    def test_cli_sectioned_format(self) -> None:
        config = load_config(cli_overrides={"logging": {"format": "json"}})
        assert config.log_format == "json"


class TestValidation:
    def test_initial_delay_above_max_rejected(self) -> None:
        with pytest.raises(ValidationError):
            load_config(
                cli_overrides={
                    "retry": {"initial_delay_ms": 5000, "max_delay_ms": 1000}
                }
            )

    def test_non_positive_http_timeout_rejected(self) -> None:
        with pytest.raises(ValidationError):
            load_config(cli_overrides={"http_timeout_seconds": 0})

    def test_unknown_log_level_rejected(self) -> None:
        with pytest.raises(ValidationError):
            load_config(cli_overrides={"log_level": "VERBOSE"})

    def test_to_sectioned_dict_round_trips(self, yaml_config: Path) -> None:
        config = load_config(config_path=yaml_config)
        dumped = config.to_sectioned_dict()
        assert dumped["http"]["timeout_seconds"] == 15.0
        assert dumped["extraction"]["disabled"] == ["kwik"]
        assert dumped["logging"] == {"level": "DEBUG", "format": "console"}
