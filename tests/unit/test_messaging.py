"""Tests for Telegram messaging, the reply callback and the briefing job."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, time, timezone
from unittest.mock import AsyncMock, MagicMock
from zoneinfo import ZoneInfo

import pytest
from telegram import Chat, Message, Update
from telegram.error import NetworkError
from telegram.ext import Application, MessageHandler

from ops_assistant.messaging import (
    BRIEFING_JOB_NAME,
    FALLBACK_REPLY,
    MAX_MESSAGE_LENGTH,
    TelegramMessenger,
    build_application,
    make_reply_callback,
    schedule_daily_briefing,
    send_briefing_job,
    truncate,
)

TOKEN = "123456:test-bot-token"
TZ = "America/New_York"


@pytest.fixture()
def bot() -> MagicMock:
    mock = MagicMock()
    mock.send_message = AsyncMock()
    return mock


@pytest.fixture()
def messenger(bot: MagicMock) -> TelegramMessenger:
    return TelegramMessenger(TOKEN, bot=bot)


def _update(chat_id: int, text: str | None) -> Update:
    message = Message(
        message_id=1,
        date=datetime(2025, 6, 10, 12, 0, tzinfo=timezone.utc),
        chat=Chat(id=chat_id, type=Chat.PRIVATE),
        text=text,
    )
    return Update(update_id=1, message=message)


def _mock_update(text: str | None) -> MagicMock:
    update = MagicMock()
    update.effective_message.text = text
    update.effective_message.chat_id = 42
    update.effective_message.reply_text = AsyncMock()
    return update


# ---------------------------------------------------------------------------
# One-shot sender
# ---------------------------------------------------------------------------


class TestSend:
    """Tests for :meth:`TelegramMessenger.send`."""

    def test_sends_message(self, messenger: TelegramMessenger, bot: MagicMock) -> None:
        assert messenger.send("4242", "hello") is True
        bot.send_message.assert_awaited_once_with(chat_id="4242", text="hello")

    def test_truncates_long_text(self, messenger: TelegramMessenger, bot: MagicMock) -> None:
        messenger.send("4242", "x" * (MAX_MESSAGE_LENGTH + 100))

        text = bot.send_message.call_args.kwargs["text"]
        assert len(text) == MAX_MESSAGE_LENGTH
        assert text.endswith("…")

    def test_telegram_error_returns_false(
        self,
        messenger: TelegramMessenger,
        bot: MagicMock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        bot.send_message.side_effect = NetworkError("unreachable")

        with caplog.at_level(logging.ERROR, logger="ops_assistant.messaging"):
            assert messenger.send("4242", "hello") is False

        assert "unreachable" in caplog.text


def test_truncate_leaves_short_text() -> None:
    assert truncate("hello") == "hello"


# ---------------------------------------------------------------------------
# Incoming messages
# ---------------------------------------------------------------------------


class TestReplyCallback:
    """Tests for :func:`make_reply_callback`."""

    def test_replies_with_handler_text(self) -> None:
        update = _mock_update("top")

        asyncio.run(make_reply_callback(lambda text: f"echo {text}")(update, MagicMock()))

        update.effective_message.reply_text.assert_awaited_once_with("echo top")

    def test_handler_failure_sends_fallback(self) -> None:
        update = _mock_update("top")

        def explode(_text: str) -> str:
            raise RuntimeError("boom")

        asyncio.run(make_reply_callback(explode)(update, MagicMock()))

        update.effective_message.reply_text.assert_awaited_once_with(FALLBACK_REPLY)

    def test_ignores_messages_without_text(self) -> None:
        update = _mock_update(None)
        on_message = MagicMock()

        asyncio.run(make_reply_callback(on_message)(update, MagicMock()))

        on_message.assert_not_called()
        update.effective_message.reply_text.assert_not_awaited()


class TestBuildApplication:
    """Tests for :func:`build_application`."""

    def test_registers_text_handler(self) -> None:
        application = build_application(TOKEN, lambda text: "ok")

        assert isinstance(application, Application)
        (handler,) = application.handlers[0]
        assert isinstance(handler, MessageHandler)

    def test_commands_reach_the_handler(self) -> None:
        """``/event ...`` is a bot command but must still be answered."""
        (handler,) = build_application(TOKEN, lambda text: "ok").handlers[0]
        assert handler.check_update(_update(42, "/event Visit / tomorrow 3pm"))

    def test_owner_chat_only(self) -> None:
        (handler,) = build_application(TOKEN, lambda text: "ok", allowed_chat_id="42").handlers[0]

        assert handler.check_update(_update(42, "top"))
        assert not handler.check_update(_update(99, "top"))

    def test_non_text_ignored(self) -> None:
        (handler,) = build_application(TOKEN, lambda text: "ok").handlers[0]
        assert not handler.check_update(_update(42, None))


# ---------------------------------------------------------------------------
# Daily briefing job
# ---------------------------------------------------------------------------


class TestScheduleDailyBriefing:
    """Tests for :func:`schedule_daily_briefing`."""

    def test_runs_daily_at_local_time(self) -> None:
        application = MagicMock()
        prepare = MagicMock(return_value="Ops briefing")

        schedule_daily_briefing(application, prepare, "4242", time(7, 40), TZ)

        call = application.job_queue.run_daily.call_args
        assert call.args == (send_briefing_job,)
        assert call.kwargs["time"] == time(7, 40, tzinfo=ZoneInfo(TZ))
        assert call.kwargs["time"].tzinfo.key == TZ
        assert call.kwargs["chat_id"] == "4242"
        assert call.kwargs["data"] is prepare
        assert call.kwargs["name"] == BRIEFING_JOB_NAME

    def test_real_job_queue(self) -> None:
        application = build_application(TOKEN, lambda text: "ok", allowed_chat_id="4242")

        job = schedule_daily_briefing(application, lambda: "Ops briefing", "4242", time(7, 40), TZ)

        assert job.name == BRIEFING_JOB_NAME
        assert job.chat_id == "4242"

    def test_without_job_queue(self) -> None:
        application = MagicMock()
        application.job_queue = None

        with pytest.raises(RuntimeError, match="job-queue"):
            schedule_daily_briefing(application, lambda: "", "4242", time(7, 40), TZ)


class TestSendBriefingJob:
    """Tests for :func:`send_briefing_job`."""

    @pytest.fixture()
    def context(self) -> MagicMock:
        context = MagicMock()
        context.job.chat_id = "4242"
        context.job.data = lambda: "Ops briefing"
        context.bot.send_message = AsyncMock()
        return context

    def test_sends_prepared_text(self, context: MagicMock) -> None:
        asyncio.run(send_briefing_job(context))
        context.bot.send_message.assert_awaited_once_with(chat_id="4242", text="Ops briefing")

    def test_prepare_failure_sends_nothing(
        self, context: MagicMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        context.job.data = MagicMock(side_effect=RuntimeError("gmail down"))

        with caplog.at_level(logging.ERROR, logger="ops_assistant.messaging"):
            asyncio.run(send_briefing_job(context))

        context.bot.send_message.assert_not_awaited()
        assert "Daily briefing failed" in caplog.text

    def test_send_failure_is_logged(
        self, context: MagicMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        context.bot.send_message.side_effect = NetworkError("unreachable")

        with caplog.at_level(logging.ERROR, logger="ops_assistant.messaging"):
            asyncio.run(send_briefing_job(context))

        assert "unreachable" in caplog.text
