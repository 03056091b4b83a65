"""
Expense Tracker settings.

Read from environment variables (and an optional .env file) with
pydantic-settings. One settings class per concern:

- GoogleSheetsSettings: where the hosted data lives (GOOGLE_SHEETS_*)
- AppSettings: storage choice, list paging, statistics windows, display

Sections are built on access, so a missing Google Sheets configuration
only fails when the Sheets backend is actually requested.
"""

import warnings
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Service account and spreadsheet used by the Sheets backend."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Service account key file (JSON)"
    )
    spreadsheet_id: str = Field(
        ...,
        description="Key of the spreadsheet holding every table"
    )

    # Worksheet per table
    categories_sheet_name: str = Field(default="Categories")
    expenses_sheet_name: str = Field(default="Expenses")
    budgets_sheet_name: str = Field(default="Budgets")
    activity_sheet_name: str = Field(default="ActivityLog")
    users_sheet_name: str = Field(default="Users")

    @field_validator('credentials_path')
    @classmethod
    def check_credentials_file(cls, v: str) -> str:
        """The key file may be mounted after startup, so a missing one only warns."""
        if not Path(v).exists():
            warnings.warn(f"Service account key file {v} does not exist yet")
        return v


class AppSettings(BaseSettings):
    """Behaviour of the tracker itself."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(default="development")
    debug_mode: bool = Field(default=False)
    storage_backend: str = Field(
        default="sheets",
        pattern="^(sheets|memory)$",
        description="Where data lives: Google Sheets or process memory"
    )

    # Expense list
    page_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Expenses shown per page"
    )

    # Statistics
    trailing_months: int = Field(
        default=12,
        ge=1,
        le=60,
        description="Months covered by the month-by-month statistics view"
    )
    budget_warning_ratio: float = Field(
        default=0.8,
        gt=0.0,
        lt=1.0,
        description="Share of a budget after which a category is flagged as warning"
    )

    # Display
    currency_symbol: str = Field(
        default="₹",
        max_length=5,
        description="Currency symbol used when rendering amounts"
    )


class Settings(BaseSettings):
    """Entry point to every settings section."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings. get_settings.cache_clear() forces a reload."""
    return Settings()


SECTIONS = ("google_sheets", "app")


def validate_all_settings() -> dict[str, object]:
    """
    Try to load every section.

    Returns {section: bool}, plus {section}_error with the reason for
    each section that failed. Shown on the settings page.
    """
    settings = get_settings()
    results: dict[str, object] = {}
    for section in SECTIONS:
        try:
            getattr(settings, section)
        except Exception as e:
            results[section] = False
            results[f"{section}_error"] = str(e)
        else:
            results[section] = True
    return results
