"""Chat command and natural-language date/time parsing."""

from __future__ import annotations

from ops_assistant.parser.commands import (
    build_event_request,
    classify,
    normalize_priority,
    parse_task_draft,
)
from ops_assistant.parser.fields import (
    FIELD_KEYS,
    Token,
    extract_field,
    extract_fields,
    parse_invitees,
    strip_fields,
    tokenize_event_text,
)
from ops_assistant.parser.segments import (
    DEFAULT_DURATION_MINUTES,
    EventSegments,
    parse_event_segments,
    split_segments,
)
from ops_assistant.parser.when import (
    add_duration,
    format_local,
    format_with_offset,
    resolve_when,
    tokenize_when,
)

__all__ = [
    "DEFAULT_DURATION_MINUTES",
    "FIELD_KEYS",
    "EventSegments",
    "Token",
    "add_duration",
    "build_event_request",
    "classify",
    "extract_field",
    "extract_fields",
    "format_local",
    "format_with_offset",
    "normalize_priority",
    "parse_event_segments",
    "parse_invitees",
    "parse_task_draft",
    "resolve_when",
    "split_segments",
    "strip_fields",
    "tokenize_event_text",
    "tokenize_when",
]
