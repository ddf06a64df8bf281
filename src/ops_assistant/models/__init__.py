"""Data models for ops-assistant."""

from __future__ import annotations

from ops_assistant.models.event import CreatedEvent, EventRequest
from ops_assistant.models.intent import Intent, IntentKind
from ops_assistant.models.task import (
    OPEN_STATUSES,
    Priority,
    Task,
    TaskCreate,
    TaskDraft,
    TaskSource,
    TaskStatus,
)

__all__ = [
    "OPEN_STATUSES",
    "CreatedEvent",
    "EventRequest",
    "Intent",
    "IntentKind",
    "Priority",
    "Task",
    "TaskCreate",
    "TaskDraft",
    "TaskSource",
    "TaskStatus",
]
