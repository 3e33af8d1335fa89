"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
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

from mangacrawl.domain.entities import DedupMode, RateBudget, RenderMode

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class RateLimitOverride(BaseModel):
    """Per-host budget replacing whatever the site profile declares."""

    permits: int = Field(..., description="Requests per window. 0 = unlimited.")
    window_seconds: float = Field(default=1.0)

    @field_validator("permits")
    @classmethod
    def _validate_permits(cls, v: int) -> int:
        if v < 0:
            raise ValueError("permits must be >= 0")
        return v

    @field_validator("window_seconds")
    @classmethod
    def _validate_window(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("window_seconds must be > 0")
        return v


class PreferencesConfig(BaseModel):
    """User preferences read by the crawling core (YAML section: preferences)."""

    render_mode: RenderMode = Field(
        default=RenderMode.CASCADE,
        description="Viewer layout requested for chapter pages.",
    )
    dedup_mode: DedupMode = Field(
        default=DedupMode.ALL,
        description="'all' keeps every scanlator upload, 'one' keeps one per chapter.",
    )
    sfw_mode: bool = Field(
        default=False,
        description="Append the site's SFW parameters and drop NSFW filters.",
    )


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (sites/http/rate_limit/preferences/logging).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="mangacrawl", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # Sites (YAML section: sites.site_dir)
    site_dir: Path = Field(
        default=Path("./sites"),
        validation_alias=AliasChoices(
            "site_dir",
            AliasPath("sites", "site_dir"),
        ),
        description="Directory containing YAML site profiles.",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="HTTP timeout in seconds.",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "http_follow_redirects",
            AliasPath("http", "follow_redirects"),
        ),
        description="Whether the HTTP client follows redirects.",
    )
    http_user_agent: str = Field(
        default="Mangacrawl/0.1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="Fallback User-Agent when the site profile sets none.",
    )
    http_user_agent_list_url: str = Field(
        default="https://tachiyomiorg.github.io/user-agents/user-agents.json",
        validation_alias=AliasChoices(
            "http_user_agent_list_url",
            AliasPath("http", "user_agent_list_url"),
        ),
        description="JSON document with the pool of rotating User-Agents.",
    )
    http_rotate_user_agent: Optional[bool] = Field(
        default=None,
        validation_alias=AliasChoices(
            "http_rotate_user_agent",
            AliasPath("http", "rotate_user_agent"),
        ),
        description="Force UA rotation on/off. If unset, the site profile decides.",
    )

    # Rate limiting (YAML section: rate_limit.*)
    rate_limit_default_permits: int = Field(
        default=0,
        validation_alias=AliasChoices(
            "rate_limit_default_permits",
            AliasPath("rate_limit", "default_permits"),
        ),
        description="Budget for hosts without an explicit one. 0 = unlimited.",
    )
    rate_limit_default_window_seconds: float = Field(
        default=1.0,
        validation_alias=AliasChoices(
            "rate_limit_default_window_seconds",
            AliasPath("rate_limit", "default_window_seconds"),
        ),
    )
    rate_limit_overrides: dict[str, RateLimitOverride] = Field(
        default_factory=dict,
        validation_alias=AliasChoices(
            "rate_limit_overrides",
            AliasPath("rate_limit", "overrides"),
        ),
        description="Host -> budget, applied after the site profile's budgets.",
    )

    # Preferences (YAML section: preferences.*)
    preferences: PreferencesConfig = Field(default_factory=PreferencesConfig)

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

    @field_validator("site_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator("http_timeout_seconds", "rate_limit_default_window_seconds")
    @classmethod
    def _validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("value must be > 0")
        return v

    @field_validator("rate_limit_default_permits")
    @classmethod
    def _validate_default_permits(cls, v: int) -> int:
        if v < 0:
            raise ValueError("rate_limit_default_permits must be >= 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def rate_budget_overrides(self) -> list[RateBudget]:
        return [
            RateBudget(
                host=host,
                permits=override.permits,
                window_seconds=override.window_seconds,
            )
            for host, override in self.rate_limit_overrides.items()
        ]

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "sites": {"site_dir": str(self.site_dir)},
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "follow_redirects": self.http_follow_redirects,
                "user_agent": self.http_user_agent,
                "user_agent_list_url": self.http_user_agent_list_url,
                "rotate_user_agent": self.http_rotate_user_agent,
            },
            "rate_limit": {
                "default_permits": self.rate_limit_default_permits,
                "default_window_seconds": self.rate_limit_default_window_seconds,
                "overrides": {
                    host: o.model_dump()
                    for host, o in self.rate_limit_overrides.items()
                },
            },
            "preferences": self.preferences.model_dump(mode="json"),
            "logging": {"level": self.log_level, "format": self.log_format},
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read MANGACRAWL_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - MANGACRAWL_SITE_DIR
    - MANGACRAWL_HTTP_TIMEOUT_SECONDS
    - MANGACRAWL_RENDER_MODE
    - MANGACRAWL_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="MANGACRAWL_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    site_dir: Optional[Path] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None
    http_user_agent_list_url: Optional[str] = None
    http_rotate_user_agent: Optional[bool] = None

    rate_limit_default_permits: Optional[int] = None
    rate_limit_default_window_seconds: Optional[float] = None

    render_mode: Optional[RenderMode] = None
    dedup_mode: Optional[DedupMode] = None
    sfw_mode: Optional[bool] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    @field_validator("site_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
