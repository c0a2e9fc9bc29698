"""
Configuration Management for Falusy

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see which external services the tracker talks to and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_HOME = Path.home() / ".falusy"


class RemoteSettings(BaseSettings):
    """Remote Data Service selection."""

    model_config = SettingsConfigDict(
        env_prefix="FALUSY_REMOTE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: Literal["memory", "google_sheets"] = Field(
        default="memory",
        description="Which remote document service implementation to use"
    )
    poll_interval_seconds: float = Field(
        default=2.0,
        gt=0,
        le=60,
        description="How often polling-based live queries re-read the backend"
    )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets document store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the spreadsheet holding one worksheet per collection"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class MirrorSettings(BaseSettings):
    """Local offline mirror configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FALUSY_MIRROR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    database_path: Path = Field(
        default=DEFAULT_HOME / "offline.db",
        description="SQLite file used as the primary mirror backend"
    )
    fallback_dir: Path = Field(
        default=DEFAULT_HOME / "fallback",
        description="Directory for flat JSON fallback files"
    )
    key_prefix: str = Field(
        default="falusy",
        min_length=1,
        description="Prefix of fallback file names"
    )
    flush_interval_seconds: float = Field(
        default=0.5,
        gt=0,
        description="Seconds between full-list mirror flushes"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FALUSY_",
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

    # Display defaults
    default_language: Literal["ar", "en"] = Field(
        default="ar",
        description="Language used before the user picks one"
    )
    default_theme: Literal["light", "dark"] = Field(
        default="dark",
        description="Theme used before the user picks one"
    )
    default_currency: str = Field(
        default="SAR",
        min_length=1,
        max_length=8,
        description="Currency shown next to amounts"
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

    # Sub-settings are loaded lazily so a memory-only setup does not need
    # Google credentials.

    @property
    def remote(self) -> RemoteSettings:
        return RemoteSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def mirror(self) -> MirrorSettings:
        return MirrorSettings()

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
    Google Sheets is only checked when it is the selected backend.
    """
    results = {}

    settings = get_settings()

    try:
        remote = settings.remote
        results["remote"] = True
    except Exception as e:
        remote = None
        results["remote"] = False
        results["remote_error"] = str(e)

    if remote is not None and remote.backend == "google_sheets":
        try:
            _ = settings.google_sheets
            results["google_sheets"] = True
        except Exception as e:
            results["google_sheets"] = False
            results["google_sheets_error"] = str(e)

    try:
        _ = settings.mirror
        results["mirror"] = True
    except Exception as e:
        results["mirror"] = False
        results["mirror_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
