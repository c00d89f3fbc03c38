"""
Configuration Management for the Teller

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: Exchange rates and the data file location are
configuration, not business logic. The account model receives rates
as a value, so changing a rate never means touching the model.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from teller.models.account import ExchangeRates


class StorageSettings(BaseSettings):
    """Where and how the account document is persisted."""
    
    model_config = SettingsConfigDict(
        env_prefix="TELLER_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    backend: Literal["json", "google_sheets"] = Field(
        default="json",
        description="Storage backend for the account document"
    )
    data_file: Path = Field(
        default=Path("UserData.json"),
        description="Path of the JSON account document"
    )
    save_attempts: int = Field(
        default=1,
        ge=1,
        le=10,
        description="How many times the session tries a save before reporting failure"
    )


class ExchangeRateSettings(BaseSettings):
    """Fixed conversion rates (home currency per foreign unit)."""
    
    model_config = SettingsConfigDict(
        env_prefix="TELLER_RATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    usd: Decimal = Field(
        default=Decimal("2.6"),
        gt=0,
        description="Home currency units per US dollar"
    )
    eur: Decimal = Field(
        default=Decimal("2.9"),
        gt=0,
        description="Home currency units per euro"
    )
    
    def to_rates(self) -> ExchangeRates:
        return ExchangeRates(usd=self.usd, eur=self.eur)


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""
    
    model_config = SettingsConfigDict(
        env_prefix="TELLER_GOOGLE_SHEETS_",
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
        description="ID of the spreadsheet holding the account"
    )
    
    # Sheet names within the spreadsheet
    account_sheet_name: str = Field(
        default="Account",
        description="Name of the sheet holding the account row"
    )
    transactions_sheet_name: str = Field(
        default="Transactions",
        description="Name of the sheet holding the ledger"
    )
    
    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before starting a session."
            )
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.
    
    Loads configuration from environment variables and .env file.
    """
    
    model_config = SettingsConfigDict(
        env_prefix="TELLER_APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Log level for the structured logger"
    )
    max_auth_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Failed card/PIN attempts before the session locks"
    )
    statement_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="How many ledger entries a mini statement shows"
    )
    
    @field_validator('log_level', mode='before')
    @classmethod
    def upper_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v


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
    
    # Sub-settings are built on access so a missing Google Sheets
    # configuration does not break the JSON backend
    
    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()
    
    @property
    def rates(self) -> ExchangeRateSettings:
        return ExchangeRateSettings()
    
    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()
    
    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).
    
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.
    
    Returns a dict of {setting_name: is_valid}, with a
    "<name>_error" entry for every section that failed.
    """
    results = {}
    
    settings = get_settings()
    
    for name in ("storage", "rates", "google_sheets", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)
    
    return results
