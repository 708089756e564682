"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front.
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


PLACEHOLDER_MARKER = "placeholder"


class AppSettings(BaseSettings):
    """Application-wide configuration, mostly request admission budgets."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client rate limiting on public endpoints",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )
    rate_limit_sweep_probability: float = Field(
        0.01,
        description="Chance per admission check of sweeping idle clients out of memory",
        ge=0.0,
        le=1.0,
    )

    search_rate_limit_requests: int = Field(
        60,
        description="Nearby search requests allowed per client per window",
    )
    search_rate_limit_window_ms: int = Field(
        60_000,
        description="Nearby search rate limit window in milliseconds",
    )
    listings_rate_limit_requests: int = Field(
        30,
        description="Listing requests allowed per client per window",
    )
    listings_rate_limit_window_ms: int = Field(
        60_000,
        description="Listing rate limit window in milliseconds",
    )
    admin_rate_limit_requests: int = Field(
        10,
        description="Admin API requests allowed per client per window",
    )
    admin_rate_limit_window_ms: int = Field(
        60_000,
        description="Admin API rate limit window in milliseconds",
    )

    listings_page_size: int = Field(
        12,
        description="Number of listing rows returned per page",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class SearchSettings(BaseSettings):
    """Proximity search tuning."""

    default_radius_miles: int = Field(
        10,
        description="Radius used when the client does not send one",
    )
    max_results: int = Field(
        50,
        description="Maximum number of results returned per search",
        ge=1,
    )
    fallback_distance_miles: float = Field(
        15.0,
        description="Distance assigned to candidates whose location cannot be resolved",
        ge=0.0,
    )

    model_config = SettingsConfigDict(
        env_prefix="SEARCH_",
        case_sensitive=False,
    )


class SupabaseSettings(BaseSettings):
    """Connection details for the managed data store and identity provider."""

    url: str | None = Field(
        None,
        description="Project URL, e.g. https://xyz.supabase.co",
    )
    anon_key: str | None = Field(
        None,
        description="Public anon key used for row-level-security scoped queries",
    )
    service_role_key: str | None = Field(
        None,
        description="Service role key used by admin-only reads (falls back to anon key)",
    )
    timeout_seconds: float = Field(
        10.0,
        description="HTTP timeout for data store and auth calls",
    )
    access_token_cookie: str = Field(
        "sb-access-token",
        description="Cookie holding the session access token",
    )

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        case_sensitive=False,
    )

    @property
    def is_configured(self) -> bool:
        """True when both URL and anon key are present and not placeholders."""
        if not self.url or not self.anon_key:
            return False
        return PLACEHOLDER_MARKER not in self.url and PLACEHOLDER_MARKER not in self.anon_key


class AdminSettings(BaseSettings):
    """Role-gated admission for the admin area."""

    protected_prefix: str = Field(
        "/admin",
        description="Page paths under this prefix require the privileged role",
    )
    api_prefix: str = Field(
        "/api/admin",
        description="API paths under this prefix require the privileged role",
    )
    privileged_role: str = Field(
        "admin",
        description="Role value that is admitted",
    )
    login_path: str = Field(
        "/login",
        description="Where unauthenticated users are sent",
    )
    default_path: str = Field(
        "/dashboard",
        description="Landing area for authenticated but unprivileged users",
    )
    lookup_timeout_seconds: float = Field(
        5.0,
        description="Timeout applied to each identity/role lookup",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="ADMIN_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="'json' or 'plain'")
    output: str = Field("stdout", description="'stdout' or 'file'")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(10_485_760, description="Rotate log file after this size (0 disables)")
    backup_count: int = Field(5, description="Rotated files to keep")
    request_id_header: str = Field("X-Request-ID", description="Correlation header name")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=AppSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    supabase: SupabaseSettings = Field(default_factory=SupabaseSettings)
    admin: AdminSettings = Field(default_factory=AdminSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance composed from domain-specific groups.
settings = Settings()
