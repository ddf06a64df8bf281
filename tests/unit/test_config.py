"""Tests for ops-assistant configuration loading."""

from __future__ import annotations

from datetime import time

import pytest

from ops_assistant.config import ConfigError, Settings, load_settings


class TestLoadSettingsHappyPath:
    """Tests for successful configuration loading."""

    def test_load_settings_with_required_vars(self, monkeypatch_env: dict[str, str]) -> None:
        """Required vars present returns Settings with defaults for the rest."""
        settings = load_settings()

        assert settings.telegram_bot_token == "123456:test-bot-token"
        assert settings.owner_email == "owner@example.com"
        assert settings.telegram_chat_id is None
        assert settings.google_calendar_id is None
        assert settings.gmail_token_path is None
        assert settings.timezone == "America/New_York"
        assert settings.briefing_time == time(7, 40)
        assert settings.log_level == "INFO"

    def test_values_are_stripped(
        self, monkeypatch_env: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Surrounding whitespace is ignored."""
        monkeypatch.setenv("OWNER_EMAIL", "  owner@example.com \n")

        assert load_settings().owner_email == "owner@example.com"

    def test_optional_vars(
        self, monkeypatch_env: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Optional integrations are read when set."""
        monkeypatch.setenv("TELEGRAM_CHAT_ID", "4242")
        monkeypatch.setenv("GOOGLE_CALENDAR_ID", "ops@example.com")
        monkeypatch.setenv("GOOGLE_SERVICE_ACCOUNT_JSON", '{"type": "service_account"}')
        monkeypatch.setenv("GMAIL_TOKEN_PATH", "/tmp/token.json")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        settings = load_settings()

        assert settings.telegram_chat_id == "4242"
        assert settings.google_calendar_id == "ops@example.com"
        assert settings.gmail_token_path == "/tmp/token.json"
        assert settings.log_level == "DEBUG"
        assert settings.calendar_enabled is True

    def test_custom_timezone(
        self, monkeypatch_env: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """TIMEZONE=Europe/Madrid is honoured."""
        monkeypatch.setenv("TIMEZONE", "Europe/Madrid")

        assert load_settings().timezone == "Europe/Madrid"

    def test_custom_briefing_time(
        self, monkeypatch_env: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """BRIEFING_TIME=6:05 is honoured."""
        monkeypatch.setenv("BRIEFING_TIME", "6:05")

        assert load_settings().briefing_time == time(6, 5)

    def test_calendar_needs_both_values(
        self, monkeypatch_env: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A calendar id without a service account leaves the calendar disabled."""
        monkeypatch.setenv("GOOGLE_CALENDAR_ID", "ops@example.com")

        assert load_settings().calendar_enabled is False


class TestLoadSettingsMissingVars:
    """Tests for missing or invalid environment variables."""

    def test_missing_bot_token(self, clean_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
        """Missing TELEGRAM_BOT_TOKEN raises ConfigError naming the variable."""
        monkeypatch.setenv("OWNER_EMAIL", "owner@example.com")

        with pytest.raises(ConfigError, match="TELEGRAM_BOT_TOKEN"):
            load_settings()

    def test_whitespace_only_is_missing(
        self, clean_env: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A whitespace-only OWNER_EMAIL counts as missing."""
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "token")
        monkeypatch.setenv("OWNER_EMAIL", "   ")

        with pytest.raises(ConfigError, match="OWNER_EMAIL"):
            load_settings()

    def test_all_missing_are_named(self, clean_env: None) -> None:
        """The error lists every missing variable."""
        with pytest.raises(ConfigError) as exc_info:
            load_settings()

        message = str(exc_info.value)
        assert "TELEGRAM_BOT_TOKEN" in message
        assert "OWNER_EMAIL" in message

    def test_unknown_timezone(
        self, monkeypatch_env: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """An unknown TIMEZONE raises ConfigError."""
        monkeypatch.setenv("TIMEZONE", "Mars/Olympus_Mons")

        with pytest.raises(ConfigError, match="TIMEZONE"):
            load_settings()

    @pytest.mark.parametrize("value", ["7", "07:40am", "25:00", "07:60"])
    def test_invalid_briefing_time(
        self, monkeypatch_env: dict[str, str], monkeypatch: pytest.MonkeyPatch, value: str
    ) -> None:
        """A malformed or out-of-range BRIEFING_TIME raises ConfigError."""
        monkeypatch.setenv("BRIEFING_TIME", value)

        with pytest.raises(ConfigError, match="BRIEFING_TIME"):
            load_settings()


class TestSettingsRepr:
    """Secrets never appear in the repr."""

    def test_repr_masks_secrets(self) -> None:
        settings = Settings(
            telegram_bot_token="123456:secret-token",
            owner_email="owner@example.com",
            google_service_account_json='{"private_key": "secret-key"}',
        )

        text = repr(settings)

        assert "secret-token" not in text
        assert "secret-key" not in text
        assert "owner@example.com" in text
        assert "'***'" in text
