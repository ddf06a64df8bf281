"""Daily briefing.

Once a day, at a fixed local time in the owner's timezone, the assistant
syncs recent email into tasks, then sends the owner the top open tasks.
The bot schedules :func:`prepare_briefing` on its job queue
(:func:`ops_assistant.messaging.schedule_daily_briefing`); the CLI sends one
immediately with :func:`send_daily_briefing`.  The email sync is
best-effort: a failure is logged and the briefing still goes out.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

from googleapiclient.errors import HttpError

from ops_assistant.gmail import sync_recent_email
from ops_assistant.messaging import Messenger
from ops_assistant.models.task import Task
from ops_assistant.owner import OwnerContext
from ops_assistant.parser.when import now_in
from ops_assistant.tasks.store import TaskStore

logger = logging.getLogger(__name__)

BRIEFING_TASK_LIMIT = 10


def compose_briefing(tasks: list[Task], today: date) -> str:
    """Render the briefing text for *today*."""
    lines = [
        "Ops briefing",
        today.strftime("%A, %b %d, %Y"),
        "",
        "Top tasks:",
    ]
    if tasks:
        lines.extend(f"- [P{int(t.priority)}] {t.title} (#{t.id})" for t in tasks)
    else:
        lines.append("- nothing open")
    lines.extend(["", "Write: top | hoy | tarea: ... | done: ..."])
    return "\n".join(lines)


def prepare_briefing(
    owner: OwnerContext,
    store: TaskStore,
    gmail_service: Any | None = None,
    now: datetime | None = None,
) -> str:
    """Sync email, then compose the briefing from the top open tasks.

    Args:
        owner: Owner context.
        store: Task store.
        gmail_service: Gmail service for the email sync, or ``None`` to skip.
        now: Optional injected current time.
    """
    if gmail_service is not None:
        try:
            sync_recent_email(gmail_service, store, owner)
        except (HttpError, OSError) as exc:
            logger.error("Email sync before briefing failed: %s", exc)

    today = now_in(owner.timezone, now).date()
    return compose_briefing(store.list_open_tasks(owner.owner_id, BRIEFING_TASK_LIMIT), today)


def send_daily_briefing(
    owner: OwnerContext,
    store: TaskStore,
    messenger: Messenger,
    gmail_service: Any | None = None,
    now: datetime | None = None,
) -> str | None:
    """Prepare the briefing and send it to the owner's chat right away.

    Returns:
        The briefing text, or ``None`` when the owner has no chat.
    """
    text = prepare_briefing(owner, store, gmail_service, now)

    if not owner.chat_id:
        logger.warning("No TELEGRAM_CHAT_ID configured; briefing not sent")
        return None

    if messenger.send(owner.chat_id, text):
        logger.info("Briefing sent to chat %s", owner.chat_id)
    return text
