"""Configuration loading for ops-assistant.

Reads settings from environment variables (with .env support via python-dotenv)
and validates that all required values are present.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from datetime import time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

_BRIEFING_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables.

    Attributes:
        telegram_bot_token: Telegram Bot API token.
        owner_email: Email of the single owner; identifies the owner record.
        telegram_chat_id: Chat that receives the daily briefing, or ``None``.
        google_calendar_id: Calendar to create events in, or ``None`` to
            disable event commands.
        google_service_account_json: Service account key (JSON text) for
            the Calendar API, or ``None``.
        gmail_token_path: Authorized-user token file for Gmail ingestion,
            or ``None`` to disable email sync.
        timezone: IANA reference timezone (default ``"America/New_York"``).
        briefing_time: Local time of the daily briefing (default ``07:40``).
        log_level: Logging level (default ``"INFO"``).
    """

    telegram_bot_token: str
    owner_email: str
    telegram_chat_id: str | None = None
    google_calendar_id: str | None = None
    google_service_account_json: str | None = None
    gmail_token_path: str | None = None
    timezone: str = "America/New_York"
    briefing_time: time = time(7, 40)
    log_level: str = "INFO"

    def __repr__(self) -> str:
        service_account = "'***'" if self.google_service_account_json else "None"
        return (
            f"Settings(telegram_bot_token='***', "
            f"owner_email={self.owner_email!r}, "
            f"telegram_chat_id={self.telegram_chat_id!r}, "
            f"google_calendar_id={self.google_calendar_id!r}, "
            f"google_service_account_json={service_account}, "
            f"gmail_token_path={self.gmail_token_path!r}, "
            f"timezone={self.timezone!r}, "
            f"briefing_time={self.briefing_time.strftime('%H:%M')!r}, "
            f"log_level={self.log_level!r})"
        )

    @property
    def calendar_enabled(self) -> bool:
        """Whether both the calendar id and the service account are set."""
        return bool(self.google_calendar_id and self.google_service_account_json)


def _parse_briefing_time(raw: str) -> time:
    match = _BRIEFING_TIME_RE.match(raw)
    if match is None:
        raise ConfigError(f"BRIEFING_TIME must be HH:MM, got {raw!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ConfigError(f"BRIEFING_TIME out of range: {raw!r}")
    return time(hour, minute)


def _validate_timezone(name: str) -> str:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"TIMEZONE is not a known IANA timezone: {name!r}") from exc
    return name


def load_settings() -> Settings:
    """Load and validate settings from environment variables.

    Calls :func:`dotenv.load_dotenv` so a ``.env`` file in the project root
    is picked up automatically.

    Returns:
        A validated :class:`Settings` instance.

    Raises:
        ConfigError: If any required environment variable is missing,
            empty, or whitespace-only (the message names **all** missing
            variables), or if ``TIMEZONE`` / ``BRIEFING_TIME`` is invalid.
    """
    load_dotenv()

    required = {
        "TELEGRAM_BOT_TOKEN": "telegram_bot_token",
        "OWNER_EMAIL": "owner_email",
    }

    values: dict = {}
    missing: list[str] = []

    for env_var, field_name in required.items():
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            missing.append(env_var)
        else:
            values[field_name] = raw.strip()

    if missing:
        names = ", ".join(missing)
        raise ConfigError(f"Missing required environment variables: {names}")

    optional = {
        "TELEGRAM_CHAT_ID": "telegram_chat_id",
        "GOOGLE_CALENDAR_ID": "google_calendar_id",
        "GOOGLE_SERVICE_ACCOUNT_JSON": "google_service_account_json",
        "GMAIL_TOKEN_PATH": "gmail_token_path",
        "LOG_LEVEL": "log_level",
    }
    for env_var, field_name in optional.items():
        raw = os.environ.get(env_var, "").strip()
        if raw:
            values[field_name] = raw

    timezone = os.environ.get("TIMEZONE", "").strip()
    if timezone:
        values["timezone"] = _validate_timezone(timezone)

    briefing_time = os.environ.get("BRIEFING_TIME", "").strip()
    if briefing_time:
        values["briefing_time"] = _parse_briefing_time(briefing_time)

    return Settings(**values)
