"""Configuration package."""

from src.config.settings import (
    AppSettings,
    ChatSettings,
    GoogleSheetsSettings,
    Settings,
    SupabaseSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "ChatSettings",
    "GoogleSheetsSettings",
    "Settings",
    "SupabaseSettings",
    "get_settings",
    "validate_all_settings",
]
