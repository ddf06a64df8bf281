"""Wire the assistant's components from :class:`~ops_assistant.config.Settings`.

:func:`build_app` performs the one-time start-up work (owner record,
calendar and Gmail clients) and returns an :class:`App` bundle that the CLI
subcommands share.  Optional integrations that are not configured, or that
fail to initialise, are left as ``None`` with a warning so the chat
commands that do not need them keep working.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from google.auth.exceptions import GoogleAuthError
from telegram import Update

from ops_assistant.briefing import prepare_briefing, send_daily_briefing
from ops_assistant.calendar.auth import load_service_account_credentials
from ops_assistant.calendar.client import GoogleCalendarClient
from ops_assistant.calendar.exceptions import CalendarAuthError
from ops_assistant.config import Settings
from ops_assistant.gmail import build_gmail_service
from ops_assistant.handlers import CommandHandler
from ops_assistant.messaging import TelegramMessenger, build_application, schedule_daily_briefing
from ops_assistant.owner import OwnerContext, init_owner
from ops_assistant.tasks.store import InMemoryTaskStore, TaskStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class App:
    """Everything a running assistant needs.

    Attributes:
        settings: Loaded settings.
        owner: Owner context.
        store: Task store.
        messenger: One-shot Telegram sender for use outside the bot.
        handler: Chat command handler.
        calendar: Calendar client, or ``None``.
        gmail_service: Gmail API service, or ``None``.
    """

    settings: Settings
    owner: OwnerContext
    store: TaskStore
    messenger: TelegramMessenger
    handler: CommandHandler
    calendar: GoogleCalendarClient | None = None
    gmail_service: Any | None = None

    def prepare_briefing(self) -> str:
        """Sync email and compose the briefing text."""
        return prepare_briefing(self.owner, self.store, self.gmail_service)

    def send_briefing(self) -> str | None:
        """Send the daily briefing now."""
        return send_daily_briefing(self.owner, self.store, self.messenger, self.gmail_service)


def build_calendar(settings: Settings) -> GoogleCalendarClient | None:
    """Build the calendar client, or ``None`` when it is not configured."""
    if not settings.calendar_enabled:
        logger.info("Calendar disabled (GOOGLE_CALENDAR_ID/GOOGLE_SERVICE_ACCOUNT_JSON not set)")
        return None
    try:
        credentials = load_service_account_credentials(settings.google_service_account_json)
    except CalendarAuthError as exc:
        logger.warning("Calendar disabled: %s", exc)
        return None
    return GoogleCalendarClient(
        calendar_id=settings.google_calendar_id or "",
        timezone=settings.timezone,
        credentials=credentials,
    )


def build_gmail(settings: Settings) -> Any | None:
    """Build the Gmail service, or ``None`` when it is not configured."""
    if not settings.gmail_token_path:
        logger.info("Email sync disabled (GMAIL_TOKEN_PATH not set)")
        return None
    try:
        return build_gmail_service(settings.gmail_token_path)
    except (OSError, ValueError, GoogleAuthError) as exc:
        logger.warning("Email sync disabled: %s", exc)
        return None


def build_app(settings: Settings, store: TaskStore | None = None) -> App:
    """Initialise the owner and all collaborators."""
    store = store if store is not None else InMemoryTaskStore()
    owner = init_owner(settings, store)
    calendar = build_calendar(settings)
    return App(
        settings=settings,
        owner=owner,
        store=store,
        messenger=TelegramMessenger(settings.telegram_bot_token),
        handler=CommandHandler(owner, store, calendar=calendar),
        calendar=calendar,
        gmail_service=build_gmail(settings),
    )


def run_bot(app: App) -> None:
    """Schedule the daily briefing and poll Telegram until interrupted.

    The briefing is only scheduled when the owner has a chat to send to.
    """
    application = build_application(
        app.settings.telegram_bot_token,
        app.handler.handle,
        allowed_chat_id=app.owner.chat_id,
    )

    if app.owner.chat_id:
        schedule_daily_briefing(
            application,
            app.prepare_briefing,
            chat_id=app.owner.chat_id,
            at=app.settings.briefing_time,
            timezone=app.owner.timezone,
        )
    else:
        logger.warning("TELEGRAM_CHAT_ID not set; daily briefing disabled")

    logger.info("Polling Telegram for messages")
    application.run_polling(allowed_updates=[Update.MESSAGE])
