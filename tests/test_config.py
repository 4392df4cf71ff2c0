"""Tests for settings loading."""

import pytest
from pydantic import ValidationError

from bookkeeper.config.settings import (
    AppSettings,
    LedgerSettings,
    ParserSettings,
    get_settings,
    validate_all_settings,
)


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Defaults and environment overrides."""

    def test_defaults(self, monkeypatch):
        """Test the shipped defaults."""
        monkeypatch.delenv("LEDGER_DEFAULT_CUSTOMER_NAME", raising=False)
        ledger = LedgerSettings()

        assert ledger.default_customer_name == "Walk-in"
        assert ledger.default_credit_party == "Unknown"
        assert ParserSettings().max_expression_length == 200

    def test_env_prefix(self, monkeypatch):
        """Test each group reads its own prefix."""
        monkeypatch.setenv("LEDGER_FUTURE_DATE_TOLERANCE_DAYS", "3")
        monkeypatch.setenv("PARSER_MAX_NOTE_LENGTH", "120")

        settings = get_settings()
        assert settings.ledger.future_date_tolerance_days == 3
        assert settings.parser.max_note_length == 120

    def test_log_level_normalised(self, monkeypatch):
        """Test log level names are upper-cased."""
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert AppSettings().log_level == "DEBUG"

    def test_app_settings_only_carry_log_level(self):
        """Test the app group holds only what the package reads."""
        assert set(AppSettings.model_fields) == {"log_level"}

    def test_bad_log_level(self, monkeypatch):
        """Test an unknown log level is rejected."""
        monkeypatch.setenv("LOG_LEVEL", "loud")
        with pytest.raises(ValidationError):
            AppSettings()

    def test_validate_all_settings(self, monkeypatch):
        """Test the startup check reports the broken group."""
        assert validate_all_settings() == {"ledger": True, "parser": True, "app": True}

        monkeypatch.setenv("PARSER_MAX_NOTE_LENGTH", "1")
        results = validate_all_settings()
        assert results["parser"] is False
        assert "parser_error" in results


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
