"""
Configuration Management for Trip Budget Tracker

Every setting comes from the environment or a local .env file,
parsed and checked by pydantic-settings.

DESIGN DECISION: Each external service has its own settings class, so a
missing Gemini key never stops the ledger from working.
The store client is built from these settings once, at process start,
and handed to the collection stores explicitly.
"""

import warnings
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Where the trip ledger lives: one spreadsheet, one worksheet per collection."""
    
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
        description="ID of the Google Sheets spreadsheet to use"
    )
    
    # One worksheet per collection
    trip_days_sheet_name: str = Field(
        default="tripDays",
        description="Name of the sheet for trip days"
    )
    members_sheet_name: str = Field(
        default="members",
        description="Name of the sheet for members"
    )
    expenses_sheet_name: str = Field(
        default="expenses",
        description="Name of the sheet for expenses"
    )
    incomes_sheet_name: str = Field(
        default="incomes",
        description="Name of the sheet for incomes"
    )
    
    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """The key file may be mounted after startup, so only warn."""
        if not Path(v).exists():
            warnings.warn(f"No service account key at {v}; Sheets calls will fail until it exists.")
        return v


class GeminiSettings(BaseSettings):
    """Gemini model used for chart suggestions."""
    
    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=4096,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.2,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )


class AppSettings(BaseSettings):
    """
    Behaviour of the app itself: storage choice, display and logging.
    """
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    # Logging
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for structured logs"
    )
    
    # Storage
    storage_backend: str = Field(
        default="google_sheets",
        pattern="^(google_sheets|memory)$",
        description="Which record store to use"
    )
    seed_demo_data: bool = Field(
        default=False,
        description="Load the sample trip into an in-memory store on startup"
    )

    # Display
    currency_symbol: str = Field(
        default="₹",
        max_length=5,
        description="Currency symbol shown next to amounts"
    )
    recent_entries_limit: int = Field(
        default=5,
        ge=1,
        le=50,
        description="How many recent expenses the dashboard shows"
    )


class Settings(BaseSettings):
    """
    Entry point for all settings.

    Sub-settings are built on access, so one unconfigured service
    only fails when something actually asks for it.
    """
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()
    
    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()
    
    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Process-wide settings. Tests call get_settings.cache_clear() to reload.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Report which services are configured, for the settings page.
    
    Returns a dict of {setting_name: is_valid}, plus a
    {setting_name}_error entry for each failure.
    """
    results = {}
    
    settings = get_settings()
    
    for name in ("google_sheets", "gemini", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)
    
    return results
