"""
Configuration Management for the Expense Parser

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Missing credentials are NOT a startup failure - an empty Gemini key
simply disables the remote extraction path.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        default="",
        description="Gemini API key (empty disables remote extraction)"
    )
    model_name: str = Field(
        default="gemini-2.5-flash-lite",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=512,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )


class ParserSettings(BaseSettings):
    """Extraction pipeline tuning."""

    model_config = SettingsConfigDict(
        env_prefix="PARSER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    min_call_interval_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="Minimum spacing between two remote extraction calls"
    )
    request_timeout_seconds: float = Field(
        default=5.0,
        gt=0.0,
        description="Deadline for a single remote extraction call"
    )
    cache_max_entries: Optional[int] = Field(
        default=None,
        ge=1,
        description="LRU bound for the result cache (None = unbounded)"
    )
    fallback_items_placeholder: str = Field(
        default="miscellaneous expense",
        min_length=1,
        description="Items text used when nothing is left after amount removal"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Validation thresholds
    max_reasonable_amount_vnd: int = Field(
        default=10_000_000_000,
        ge=1,
        description="Amounts above this are flagged for review"
    )
    future_date_tolerance_days: int = Field(
        default=1,
        ge=0,
        description="How many days in the future a paid date can be"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are built on every access so a credential added
    # after start-up is visible without a restart.

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def parser(self) -> ParserSettings:
        return ParserSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks. A missing Gemini key is reported
    as "gemini_remote_enabled": False, not as an error.
    """
    results = {}

    settings = get_settings()

    try:
        gemini = settings.gemini
        results["gemini"] = True
        results["gemini_remote_enabled"] = bool(gemini.api_key)
    except Exception as e:
        results["gemini"] = False
        results["gemini_error"] = str(e)

    try:
        _ = settings.parser
        results["parser"] = True
    except Exception as e:
        results["parser"] = False
        results["parser_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
