"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field
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


# Nested BaseSettings don't inherit env_file, so populate os.environ first
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class TenantRateLimits(BaseModel):
    """Quota configuration for a single tenant."""

    ai_events_per_minute: int = Field(50, ge=1)
    requests_per_minute: int = Field(100, ge=1)
    requests_per_hour: int = Field(1000, ge=1)


def _default_tenant_rate_limits() -> dict[str, TenantRateLimits]:
    return {
        "tenant-1": TenantRateLimits(
            ai_events_per_minute=50, requests_per_minute=100, requests_per_hour=1000
        ),
        "tenant-2": TenantRateLimits(
            ai_events_per_minute=100, requests_per_minute=200, requests_per_hour=2000
        ),
        "test-tenant": TenantRateLimits(
            ai_events_per_minute=10, requests_per_minute=20, requests_per_hour=100
        ),
    }


def _default_tenant_prompt_tones() -> dict[str, str]:
    return {
        "tenant-1": "Keep it fun and family-friendly. Focus on activities suitable for all ages.",
        "tenant-2": "Keep it adventurous and outdoor-focused. Emphasize active experiences and nature.",
        "test-tenant": "Showcase the authentic local culture of the area.",
    }


class LLMSettings(BaseSettings):
    """LLM provider configuration.

    Each provider is enabled only when its API key is present. Provider
    priority follows the order of ``providers``.
    """

    providers: str = Field(
        "openai,gemini",
        description="Comma-separated provider names in priority order",
    )
    openai_api_key: str | None = Field(None, description="OpenAI API key")
    openai_model: str = Field("gpt-4o-mini", description="OpenAI chat model")
    openai_base_url: str | None = Field(
        None,
        description="Custom OpenAI-compatible endpoint",
    )
    gemini_api_key: str | None = Field(None, description="Google Gemini API key")
    gemini_model: str = Field("gemini-1.5-flash", description="Gemini model")
    temperature: float = Field(0.7, ge=0.0, le=2.0)
    max_output_tokens: int = Field(700, ge=1)
    timeout_seconds: float = Field(
        20.0,
        description="Request timeout in seconds for each completion call",
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        case_sensitive=False,
    )


class SourceSettings(BaseSettings):
    """Read-only geo, event and weather sources."""

    osm_enabled: bool = Field(True, description="Query OpenStreetMap via Overpass")
    osm_overpass_url: str = Field("https://overpass-api.de/api/interpreter")
    osm_radius_m: int = Field(1200, ge=50, le=10000)
    meetup_access_token: str | None = Field(None)
    meetup_base_url: str = Field("https://api.meetup.com")
    eventbrite_token: str | None = Field(None)
    eventbrite_base_url: str = Field("https://www.eventbriteapi.com/v3")
    openweather_api_key: str | None = Field(None)
    openweather_base_url: str = Field("https://api.openweathermap.org/data/2.5")
    event_radius_km: int = Field(10, ge=1, le=100)
    timeout_seconds: float = Field(
        8.0,
        description="Timeout in seconds applied to every outbound source call",
    )

    model_config = SettingsConfigDict(
        env_prefix="SOURCES_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    tenant_api_keys: str | None = Field(
        None,
        description=(
            "Comma-separated tenant registry entries 'api_key:tenant_id', "
            "optionally suffixed with ':disabled'"
        ),
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-tenant rate limiting",
    )
    default_ai_events_per_minute: int = Field(50, ge=1)
    default_requests_per_minute: int = Field(100, ge=1)
    default_requests_per_hour: int = Field(1000, ge=1)
    tenant_rate_limits: dict[str, TenantRateLimits] = Field(
        default_factory=_default_tenant_rate_limits,
        description="Per-tenant quota overrides (JSON object keyed by tenant id)",
    )
    rate_limit_sweep_interval_seconds: int = Field(300, ge=1)

    provider_cooldown_seconds: int = Field(
        600,
        description="How long an LLM provider is skipped after signalling rate limiting",
        ge=1,
    )

    cache_ttl_seconds: int = Field(300, ge=1)
    cache_max_entries: int | None = Field(1024)
    cache_sweep_interval_seconds: int = Field(300, ge=1)

    max_cards: int = Field(5, ge=1, description="Maximum cards returned per response")
    prompt_context_limit: int = Field(
        12,
        ge=0,
        description="Maximum geo context items embedded in a prompt",
    )
    default_mood: str = Field("adventurous")
    tenant_prompt_tones: dict[str, str] = Field(
        default_factory=_default_tenant_prompt_tones,
        description="Tenant-specific tone guidance appended to generation prompts",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO")
    format: str = Field("json", description="json or plain")
    output: str = Field("stdout", description="stdout or file")
    file_path: str | None = Field(None)
    max_bytes: int = Field(10 * 1024 * 1024)
    backup_count: int = Field(5)
    request_id_header: str = Field("X-Request-ID")

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
    llm: LLMSettings = Field(default_factory=LLMSettings)
    sources: SourceSettings = Field(default_factory=SourceSettings)
    app: AppSettings = Field(default_factory=AppSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
