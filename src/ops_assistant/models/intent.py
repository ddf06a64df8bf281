"""Intent model returned by the command classifier."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ops_assistant.models.event import EventRequest


class IntentKind(str, Enum):
    """The classified purpose of an incoming chat message."""

    CREATE_TASK = "create_task"
    LIST_TOP = "list_top"
    LIST_TODAY = "list_today"
    MARK_DONE = "mark_done"
    CREATE_EVENT = "create_event"
    HELP = "help"


@dataclass(frozen=True)
class Intent:
    """A tagged intent with its payload.

    Attributes:
        kind: Which handler should run.
        payload: Remainder of the message after the command prefix, in the
            user's original casing.  Empty for list and help intents.
        event: The resolved event for :attr:`IntentKind.CREATE_EVENT`,
            otherwise ``None``.
    """

    kind: IntentKind
    payload: str = ""
    event: EventRequest | None = None

    def to_dict(self) -> dict:
        """Return a JSON-friendly representation."""
        data: dict = {"kind": self.kind.value, "payload": self.payload}
        if self.event is not None:
            data["event"] = self.event.model_dump(mode="json")
        return data
