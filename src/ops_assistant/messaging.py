"""Telegram messaging on python-telegram-bot.

:func:`build_application` wires an :class:`telegram.ext.Application` whose
text handler feeds every message from the owner's chat to a reply callback.
:func:`schedule_daily_briefing` puts the briefing on the application's
job queue.  :class:`TelegramMessenger` is the one-shot sender used outside
the running bot (``ops-assistant briefing``): delivery is best-effort, a
failed send is logged and reported as ``False``, never raised.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import time
from typing import Protocol

from telegram import Bot, Update
from telegram.constants import MessageLimit
from telegram.error import TelegramError
from telegram.ext import Application, ContextTypes, Job, MessageHandler, filters

from ops_assistant.parser.when import get_zone

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = MessageLimit.MAX_TEXT_LENGTH
FALLBACK_REPLY = "Something went wrong handling that message."
BRIEFING_JOB_NAME = "daily-briefing"


class Messenger(Protocol):
    """Anything that can deliver a text message to a chat."""

    def send(self, chat_id: str, text: str) -> bool:
        """Deliver *text* to *chat_id*; return ``False`` on failure."""
        ...


def truncate(text: str) -> str:
    """Clip *text* to Telegram's message length limit."""
    if len(text) > MAX_MESSAGE_LENGTH:
        return text[: MAX_MESSAGE_LENGTH - 1] + "…"
    return text


class TelegramMessenger:
    """Synchronous, best-effort sender for use outside the bot's event loop.

    Args:
        token: Bot token from BotFather.
        bot: Optional :class:`telegram.Bot` (inject a mock in tests).
    """

    def __init__(self, token: str, bot: Bot | None = None) -> None:
        self._bot = bot if bot is not None else Bot(token)

    def send(self, chat_id: str, text: str) -> bool:
        try:
            asyncio.run(self._send(chat_id, text))
        except TelegramError as exc:
            logger.error("Failed to send message to chat %s: %s", chat_id, exc)
            return False
        return True

    async def _send(self, chat_id: str, text: str) -> None:
        async with self._bot:
            await self._bot.send_message(chat_id=chat_id, text=truncate(text))


def make_reply_callback(
    on_message: Callable[[str], str],
) -> Callable[[Update, ContextTypes.DEFAULT_TYPE], Awaitable[None]]:
    """Wrap a synchronous text-to-reply function as a message callback.

    *on_message* runs in a worker thread because it may call Google APIs.
    An unexpected exception is logged and answered with
    :data:`FALLBACK_REPLY`.
    """

    async def reply(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.effective_message
        if message is None or not message.text:
            return
        try:
            text = await asyncio.to_thread(on_message, message.text)
        except Exception:
            logger.exception("Unhandled error while handling message from chat %s", message.chat_id)
            text = FALLBACK_REPLY
        await message.reply_text(truncate(text))

    return reply


async def log_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Application error handler: log and keep polling."""
    logger.error("Telegram update %s failed: %s", update, context.error)


def build_application(
    token: str,
    on_message: Callable[[str], str],
    allowed_chat_id: str | None = None,
) -> Application:
    """Build the bot application.

    Args:
        token: Bot token from BotFather.
        on_message: Maps the message text to the reply text.
        allowed_chat_id: When set, messages from other chats are ignored.

    Returns:
        An application ready for ``run_polling``.  Commands such as
        ``/event`` are text too, so they reach *on_message*.
    """
    application = Application.builder().token(token).build()

    message_filter = filters.TEXT
    if allowed_chat_id:
        message_filter = message_filter & filters.Chat(chat_id=int(allowed_chat_id))
    else:
        logger.warning("TELEGRAM_CHAT_ID not set; answering every chat")

    application.add_handler(MessageHandler(message_filter, make_reply_callback(on_message)))
    application.add_error_handler(log_error)
    return application


async def send_briefing_job(context: ContextTypes.DEFAULT_TYPE) -> None:
    """Job callback: build the briefing text and send it to the job's chat."""
    job = context.job
    try:
        text = await asyncio.to_thread(job.data)
    except Exception:
        logger.exception("Daily briefing failed")
        return

    try:
        await context.bot.send_message(chat_id=job.chat_id, text=truncate(text))
    except TelegramError as exc:
        logger.error("Failed to send briefing to chat %s: %s", job.chat_id, exc)
        return
    logger.info("Briefing sent to chat %s", job.chat_id)


def schedule_daily_briefing(
    application: Application,
    prepare: Callable[[], str],
    chat_id: str,
    at: time,
    timezone: str,
) -> Job:
    """Run *prepare* every day at local time *at* and send its text to *chat_id*.

    Raises:
        RuntimeError: If python-telegram-bot was installed without its
            ``job-queue`` extra.
    """
    job_queue = application.job_queue
    if job_queue is None:
        raise RuntimeError('The daily briefing needs "python-telegram-bot[job-queue]"')

    local_time = at.replace(tzinfo=get_zone(timezone))
    logger.info("Daily briefing scheduled at %s %s", at.strftime("%H:%M"), timezone)
    return job_queue.run_daily(
        send_briefing_job,
        time=local_time,
        chat_id=chat_id,
        data=prepare,
        name=BRIEFING_JOB_NAME,
    )
