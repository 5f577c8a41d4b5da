"""
Module: settings.py
Description: Application configuration using pydantic-settings.

Resolves all settings from environment variables once per process,
with validation and defaults. Supports .env files for local runs.
Action inputs arrive as INPUT_<NAME> variables and take precedence
over the plain environment overrides.
"""

from functools import lru_cache
from typing import Optional, Tuple, Type

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import (
    BaseSettings,
    EnvSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

DEFAULT_INGEST_URL = "https://shiploud.so/api/github-actions/ingest"


def _validate_http_url(url: str) -> str:
    url = url.strip()
    if not url:
        raise ValueError("ingest URL must be a non-empty string")
    if not url.startswith(("http://", "https://")):
        raise ValueError("ingest URL must be a valid HTTP/HTTPS URL")
    return url


class StrippedEnvSettingsSource(EnvSettingsSource):
    """
    Environment source that ignores whitespace-only variables.

    Blank values are dropped before alias selection, so a blank
    INPUT_INGEST-URL falls through to SHIPLOUD_INGEST_URL.
    """

    def __init__(self, settings_cls: Type[BaseSettings]):
        super().__init__(settings_cls)
        self.env_vars = {
            name: value
            for name, value in self.env_vars.items()
            if value is None or value.strip()
        }


class Settings(BaseSettings):
    """Export client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore",
    )

    # Application settings
    log_level: str = Field(default="INFO", description="Logging level")

    # Delivery settings
    ingest_url: str = Field(
        default=DEFAULT_INGEST_URL,
        validation_alias=AliasChoices(
            "input_ingest-url",
            "shiploud_ingest_url",
            "buildinpublic_ingest_url",
            "ingest_url",
        ),
        description="Ingest endpoint receiving signed payloads"
    )
    api_token: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices(
            "input_api-token",
            "shiploud_api_token",
            "api_token",
        ),
        description="Shared secret used to sign payloads"
    )
    delivery_timeout: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="HTTP timeout in seconds for each delivery attempt"
    )
    max_attempts: int = Field(
        default=5,
        ge=1,
        le=10,
        description="Maximum number of delivery attempts"
    )
    retry_base_delay: float = Field(
        default=1.0,
        ge=0,
        description="Backoff delay in seconds before the second attempt"
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            StrippedEnvSettingsSource(settings_cls),
            dotenv_settings,
            file_secret_settings,
        )

    @field_validator('ingest_url')
    @classmethod
    def validate_ingest_url(cls, v: str) -> str:
        """Strip whitespace and require an HTTP(S) URL."""
        return _validate_http_url(v)

    @field_validator('api_token', mode='before')
    @classmethod
    def strip_api_token(cls, v):
        """Trim surrounding whitespace from the token."""
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(valid_levels)}")
        return v.upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return the process-wide settings, resolved on first use.

    Call get_settings.cache_clear() to force re-resolution (tests).
    """
    return Settings()


def resolve_ingest_url(override: Optional[str] = None, settings: Optional[Settings] = None) -> str:
    """
    Resolve the ingest URL, giving an explicit override the highest priority.

    Args:
        override: Explicit URL (e.g. from a command-line flag); blank values are ignored
        settings: Settings to fall back to; defaults to get_settings()

    Returns:
        Validated ingest URL

    Raises:
        ValueError: If the override is not an HTTP(S) URL
    """
    if override and override.strip():
        return _validate_http_url(override)
    return (settings or get_settings()).ingest_url
