"""Ambient provider settings loaded from the environment."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderSettings(BaseSettings):
    """Knobs that are not part of the required package options.

    Hey future me – apiKey/apiSecret/db* live in PackageConfig and are validated by
    ConfigValidator. THIS class is for things with sane defaults: logging, endpoints,
    timeouts. Override via LASTFM_PROVIDER_* env vars (e.g. LASTFM_PROVIDER_LOG_LEVEL=DEBUG).
    """

    model_config = SettingsConfigDict(
        env_prefix="LASTFM_PROVIDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "lastfm-provider"
    log_level: str = Field(default="INFO", description="DEBUG, INFO, WARNING, ERROR")
    log_json_format: bool = False

    api_base_url: str = "https://ws.audioscrobbler.com/2.0/"
    auth_url: str = "https://www.last.fm/api/auth/"
    http_timeout: float = Field(default=30.0, gt=0)

    # auth.getSession polling while the user approves the token in the browser
    auth_poll_interval: float = Field(default=3.0, ge=0)
    auth_max_attempts: int = Field(default=100, ge=1)

    cache_ttl_seconds: int = Field(default=3600, ge=1)
    match_threshold: float = Field(default=0.85, ge=0, le=1)


@lru_cache
def get_settings() -> ProviderSettings:
    """Get cached settings instance."""
    return ProviderSettings()
