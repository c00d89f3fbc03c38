"""Tests for environment-driven configuration."""

from decimal import Decimal
from pathlib import Path

import pytest
from pydantic import ValidationError

from teller.config import (
    AppSettings,
    ExchangeRateSettings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)
from teller.models.account import ExchangeRates


class TestDefaults:
    """Tests for the out-of-the-box configuration."""
    
    def test_storage_defaults(self):
        storage = StorageSettings()
        assert storage.backend == "json"
        assert storage.data_file == Path("UserData.json")
        assert storage.save_attempts == 1
    
    def test_default_rates(self):
        """Test the stock rates match the account model's own defaults."""
        assert ExchangeRateSettings().to_rates() == ExchangeRates()
    
    def test_app_defaults(self):
        app = AppSettings()
        assert app.max_auth_attempts == 3
        assert app.log_level == "INFO"


class TestEnvironment:
    """Tests for TELLER_* environment overrides."""
    
    def test_rates_from_env(self, monkeypatch):
        monkeypatch.setenv("TELLER_RATE_USD", "2.75")
        monkeypatch.setenv("TELLER_RATE_EUR", "3.1")
        rates = ExchangeRateSettings().to_rates()
        assert rates.usd == Decimal("2.75")
        assert rates.eur == Decimal("3.1")
    
    def test_non_positive_rate_rejected(self, monkeypatch):
        monkeypatch.setenv("TELLER_RATE_USD", "0")
        with pytest.raises(ValidationError):
            ExchangeRateSettings()
    
    def test_log_level_is_uppercased(self, monkeypatch):
        monkeypatch.setenv("TELLER_APP_LOG_LEVEL", "debug")
        assert AppSettings().log_level == "DEBUG"
    
    def test_unknown_backend_rejected(self, monkeypatch):
        monkeypatch.setenv("TELLER_STORAGE_BACKEND", "postgres")
        with pytest.raises(ValidationError):
            StorageSettings()
    
    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestValidateAllSettings:
    """Tests for the settings health check."""
    
    def test_google_sheets_optional(self):
        """Test a missing Sheets configuration is reported, not raised."""
        status = validate_all_settings()
        
        assert status["storage"] is True
        assert status["rates"] is True
        assert status["app"] is True
        assert status["google_sheets"] is False
        assert "google_sheets_error" in status
    
    def test_bad_section_reported(self, monkeypatch):
        monkeypatch.setenv("TELLER_STORAGE_SAVE_ATTEMPTS", "0")
        status = validate_all_settings()
        assert status["storage"] is False
        assert "storage_error" in status
