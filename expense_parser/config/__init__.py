"""Configuration package."""

from expense_parser.config.settings import (
    AppSettings,
    GeminiSettings,
    ParserSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GeminiSettings",
    "ParserSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
