"""Pydantic configuration models with validation."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


class RetrySettings(BaseModel):
    """Retry policy for every extractor HTTP request (YAML section: retry.*)."""

    max_attempts: int = Field(default=3, ge=1, description="Attempts incl. the first.")
    initial_delay_ms: int = Field(
        default=1000, ge=0, description="Delay before the 2nd attempt (ms)."
    )
    max_delay_ms: int = Field(default=30_000, ge=0, description="Backoff ceiling (ms).")
    backoff_multiplier: float = Field(
        default=2.0, ge=1.0, description="Delay growth factor per attempt."
    )
    use_jitter: bool = Field(
        default=True, description="Scale each delay by a random factor in [0.5, 1.5]."
    )

    @model_validator(mode="after")
    def _check_delay_bounds(self) -> "RetrySettings":
        if self.initial_delay_ms > self.max_delay_ms:
            raise ValueError("initial_delay_ms must be <= max_delay_ms")
        return self


class RateLimitSettings(BaseModel):
    """Per-provider 429 handling (YAML section: rate_limit.*)."""

    default_window_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Block window after a 429 without a usable Retry-After.",
    )
    queue_spacing_seconds: float = Field(
        default=0.1,
        ge=0,
        description="Gap between queued requests released for one provider.",
    )


class ExtractionSettings(BaseModel):
    """Orchestrator settings (YAML section: extraction.*)."""

    timeout_seconds: float = Field(
        default=60.0,
        ge=0,
        description="Per-extractor deadline in seconds. 0 = no deadline.",
    )
    disabled: list[str] = Field(
        default_factory=list,
        description="Extractor ids excluded from the registry.",
    )

    @field_validator("disabled", mode="before")
    @classmethod
    def _split_csv(cls, v: Any) -> Any:
        # "kwik,jw-player" from env or CLI
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/retry/rate_limit/extraction/logging).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="extractarr", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP client (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=20.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Connect/read timeout in seconds for extractor requests.",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "http_follow_redirects",
            AliasPath("http", "follow_redirects"),
        ),
        description="Whether HTTP client follows redirects.",
    )
    http_user_agent: str = Field(
        default="extractarr/0.1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description=(
            "Client-level User-Agent. Extractors override it with their own"
            " browser User-Agent per request."
        ),
    )

    retry: RetrySettings = Field(default_factory=RetrySettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "follow_redirects": self.http_follow_redirects,
                "user_agent": self.http_user_agent,
            },
            "retry": self.retry.model_dump(),
            "rate_limit": self.rate_limit.model_dump(),
            "extraction": self.extraction.model_dump(),
            "logging": {"level": self.log_level, "format": self.log_format},
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read EXTRACTARR_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - EXTRACTARR_HTTP_TIMEOUT_SECONDS
    - EXTRACTARR_RETRY_MAX_ATTEMPTS
    - EXTRACTARR_EXTRACTION_DISABLED=kwik,jw-player
    - EXTRACTARR_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="EXTRACTARR_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None

    retry_max_attempts: Optional[int] = None
    retry_initial_delay_ms: Optional[int] = None
    retry_max_delay_ms: Optional[int] = None
    retry_backoff_multiplier: Optional[float] = None
    retry_use_jitter: Optional[bool] = None

    rate_limit_default_window_seconds: Optional[float] = None
    rate_limit_queue_spacing_seconds: Optional[float] = None

    extraction_timeout_seconds: Optional[float] = None
    # Kept as a raw string so pydantic-settings does not expect JSON
    extraction_disabled: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
