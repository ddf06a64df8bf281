"""ops-assistant: a single-owner personal operations assistant.

Turns chat messages into tasks and calendar events, ingests recent email
into the task list, and sends a daily briefing.
"""

from __future__ import annotations

from ops_assistant.exceptions import CommandError, ParseError, ValidationError
from ops_assistant.models.event import CreatedEvent, EventRequest
from ops_assistant.models.intent import Intent, IntentKind
from ops_assistant.models.task import Priority, TaskDraft
from ops_assistant.parser import (
    add_duration,
    build_event_request,
    classify,
    extract_field,
    normalize_priority,
    parse_task_draft,
    resolve_when,
    split_segments,
    strip_fields,
)

__version__ = "0.1.0"

__all__ = [
    "CommandError",
    "CreatedEvent",
    "EventRequest",
    "Intent",
    "IntentKind",
    "ParseError",
    "Priority",
    "TaskDraft",
    "ValidationError",
    "add_duration",
    "build_event_request",
    "classify",
    "extract_field",
    "normalize_priority",
    "parse_task_draft",
    "resolve_when",
    "split_segments",
    "strip_fields",
]
