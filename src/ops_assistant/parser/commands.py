"""Chat command classification.

Turns a raw chat message into a single :class:`~ops_assistant.models.intent.Intent`.
Supported commands (case-insensitive)::

    top                                   -> ListTop
    hoy | today                           -> ListToday
    done: fillers | done:7 | done 7       -> MarkDone
    tarea: title / role / high            -> CreateTask
    event: title / when / minutes / ...   -> CreateEvent
    anything else                         -> Help

Rules are tried in that order and the first match wins.  Prefixes are
matched case-insensitively; payloads keep the user's original casing.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime

from pydantic import ValidationError as PydanticValidationError

from ops_assistant.exceptions import ValidationError
from ops_assistant.models.event import EventRequest
from ops_assistant.models.intent import Intent, IntentKind
from ops_assistant.models.task import Priority, TaskDraft
from ops_assistant.parser.fields import extract_fields, parse_invitees, strip_fields
from ops_assistant.parser.segments import parse_event_segments, split_segments
from ops_assistant.parser.when import add_duration, resolve_when

logger = logging.getLogger(__name__)

HIGH_PRIORITY_WORDS: tuple[str, ...] = ("high", "alta", "p1")
LOW_PRIORITY_WORDS: tuple[str, ...] = ("low", "baja", "p3")

UNTITLED_TASK = "(untitled task)"

_TOP_WORDS = frozenset({"top"})
_TODAY_WORDS = frozenset({"hoy", "today"})

_DONE_RE = re.compile(r"^done\b\s*:?\s*(.*)$", re.IGNORECASE | re.DOTALL)
_TASK_RE = re.compile(r"^(?:tarea|task)\s*:\s*(.*)$", re.IGNORECASE | re.DOTALL)
# "/event@SomeBot" is how Telegram addresses commands in group chats.
_EVENT_RE = re.compile(
    r"^(?:/event(?:@\w+)?|event|agenda(?=\s*:))\b\s*:?\s*(.*)$",
    re.IGNORECASE | re.DOTALL,
)


def normalize_priority(text: str | None) -> Priority:
    """Map free text to a :class:`Priority`.

    ``high``/``alta``/``p1`` anywhere in the text gives :attr:`Priority.HIGH`;
    otherwise ``low``/``baja``/``p3`` gives :attr:`Priority.LOW`; anything
    else is :attr:`Priority.DEFAULT`.
    """
    low = (text or "").lower()
    if any(word in low for word in HIGH_PRIORITY_WORDS):
        return Priority.HIGH
    if any(word in low for word in LOW_PRIORITY_WORDS):
        return Priority.LOW
    return Priority.DEFAULT


def parse_task_draft(payload: str) -> TaskDraft:
    """Parse a ``tarea:`` payload of the form ``title / assignee / priority``."""
    parts = split_segments(payload)
    title = parts[0] if parts else UNTITLED_TASK
    assignee = parts[1] if len(parts) > 1 else None
    priority = normalize_priority(parts[2] if len(parts) > 2 else "")
    return TaskDraft(title=title, assignee=assignee, priority=priority)


def build_event_request(
    text: str,
    timezone: str,
    now: datetime | None = None,
) -> EventRequest:
    """Build an :class:`EventRequest` from event text (prefix removed).

    Labeled fields are extracted first, then the remaining positional
    segments give the title, when-phrase and duration.

    Args:
        text: e.g. ``"Client visit / tomorrow 9am / 60 / loc: Miami"``.
        timezone: Reference timezone for the when-phrase.
        now: Optional injected current time.

    Returns:
        The resolved event request.

    Raises:
        ParseError: If the when-phrase is missing or unreadable.
        ValidationError: If the time is out of range.
    """
    fields = extract_fields(text)
    segments = parse_event_segments(strip_fields(text))

    start = resolve_when(segments.when_text, timezone, now=now)
    end = add_duration(start, segments.duration_minutes, timezone)
    location = ", ".join(value for value in (fields["loc"], fields["addr"]) if value)

    try:
        return EventRequest(
            title=segments.title,
            start_local=start,
            end_local=end,
            timezone=timezone,
            location=location or None,
            description=fields["desc"] or None,
            invitees=parse_invitees(fields["invite"]),
            linked_task_title=fields["task"] or None,
        )
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid event: {exc.errors()[0]['msg']}", text=text) from exc


def classify(
    text: str,
    timezone: str,
    now: datetime | None = None,
) -> Intent:
    """Classify a chat message into exactly one :class:`Intent`.

    Args:
        text: Raw message text.
        timezone: Reference timezone used to resolve event times.
        now: Optional injected current time.

    Returns:
        The classified intent.

    Raises:
        ParseError: For an event message whose time cannot be read.
        ValidationError: For an event message with an out-of-range time.
    """
    message = (text or "").strip()
    low = message.lower()

    if low in _TOP_WORDS:
        return Intent(kind=IntentKind.LIST_TOP)

    if low in _TODAY_WORDS:
        return Intent(kind=IntentKind.LIST_TODAY)

    match = _DONE_RE.match(message)
    if match:
        payload = match.group(1).strip()
        if payload:
            return Intent(kind=IntentKind.MARK_DONE, payload=payload)
        return Intent(kind=IntentKind.HELP)

    match = _TASK_RE.match(message)
    if match:
        return Intent(kind=IntentKind.CREATE_TASK, payload=match.group(1).strip())

    match = _EVENT_RE.match(message)
    if match:
        payload = match.group(1).strip()
        event = build_event_request(payload, timezone, now=now)
        logger.info(
            "Parsed event '%s' at %s (%d min)",
            event.title,
            event.start_local.isoformat(),
            event.duration_minutes,
        )
        return Intent(kind=IntentKind.CREATE_EVENT, payload=payload, event=event)

    return Intent(kind=IntentKind.HELP)
