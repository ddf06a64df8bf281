"""Shared fixtures for ops-assistant tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from ops_assistant.owner import OwnerContext
from ops_assistant.tasks.store import InMemoryTaskStore

TIMEZONE = "America/New_York"

# Tuesday, mid-day in the reference timezone.
FIXED_NOW = datetime(2025, 6, 10, 12, 0, tzinfo=ZoneInfo(TIMEZONE))

_ENV_VARS = (
    "TELEGRAM_BOT_TOKEN",
    "OWNER_EMAIL",
    "TELEGRAM_CHAT_ID",
    "GOOGLE_CALENDAR_ID",
    "GOOGLE_SERVICE_ACCOUNT_JSON",
    "GMAIL_TOKEN_PATH",
    "TIMEZONE",
    "BRIEFING_TIME",
    "LOG_LEVEL",
)


@pytest.fixture()
def monkeypatch_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set the required environment variables and clear the optional ones.

    Also patches ``load_dotenv`` so that a real ``.env`` file on disk does not
    override the test values.

    Returns the dict of variables so tests can inspect or override values.
    """
    monkeypatch.setattr("ops_assistant.config.load_dotenv", lambda *_a, **_kw: None)
    for key in _ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    env_vars = {
        "TELEGRAM_BOT_TOKEN": "123456:test-bot-token",
        "OWNER_EMAIL": "owner@example.com",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove all ops-assistant environment variables.

    Patches ``load_dotenv`` so a real ``.env`` file cannot re-inject values
    that the test explicitly removed.
    """
    monkeypatch.setattr("ops_assistant.config.load_dotenv", lambda *_a, **_kw: None)
    for key in _ENV_VARS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def store() -> InMemoryTaskStore:
    """An empty in-memory task store."""
    return InMemoryTaskStore()


@pytest.fixture()
def owner(store: InMemoryTaskStore) -> OwnerContext:
    """Owner context registered in ``store``."""
    return OwnerContext(
        owner_id=store.ensure_owner("owner@example.com"),
        email="owner@example.com",
        chat_id="4242",
        timezone=TIMEZONE,
    )


@pytest.fixture(autouse=True)
def _reset_root_logger() -> Generator[None, None, None]:
    """Reset the root logger after each test to prevent handler leaks."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
