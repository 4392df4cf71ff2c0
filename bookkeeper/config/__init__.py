"""Configuration package."""

from bookkeeper.config.settings import (
    AppSettings,
    LedgerSettings,
    ParserSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "LedgerSettings",
    "ParserSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
