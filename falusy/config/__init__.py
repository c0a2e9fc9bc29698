"""Configuration package."""

from falusy.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    MirrorSettings,
    RemoteSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "MirrorSettings",
    "RemoteSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
