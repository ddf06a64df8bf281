"""Owner context for the single-owner assistant.

The owner is resolved once at start-up and passed explicitly to every
handler as an immutable value.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ops_assistant.config import Settings
from ops_assistant.tasks.store import TaskStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OwnerContext:
    """Who the assistant works for.

    Attributes:
        owner_id: Task store id of the owner.
        email: Owner email.
        chat_id: Chat that receives unsolicited messages (the briefing),
            or ``None``.
        timezone: Reference timezone for all relative phrases.
    """

    owner_id: str
    email: str
    chat_id: str | None
    timezone: str


def init_owner(settings: Settings, store: TaskStore) -> OwnerContext:
    """Ensure the owner exists in *store* and build its context."""
    owner_id = store.ensure_owner(settings.owner_email)
    owner = OwnerContext(
        owner_id=owner_id,
        email=settings.owner_email,
        chat_id=settings.telegram_chat_id,
        timezone=settings.timezone,
    )
    logger.info("Owner %s (%s) in %s", owner.owner_id, owner.email, owner.timezone)
    return owner
