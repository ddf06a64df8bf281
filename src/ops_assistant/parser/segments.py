"""Positional segment splitting for chat commands.

Both task and event messages use ``/`` between positional parts::

    tarea: cut kitchen fillers / Production / high
    event: Client visit / tomorrow 9am / 60
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ops_assistant.exceptions import ParseError, ValidationError
from ops_assistant.parser.fields import SEGMENT_DELIMITER

DEFAULT_DURATION_MINUTES = 60
MAX_DURATION_MINUTES = 14 * 24 * 60

_LEADING_INT_RE = re.compile(r"^\s*(\d+)")


@dataclass(frozen=True)
class EventSegments:
    """Positional parts of an event message.

    Attributes:
        title: Position 0.
        when_text: Position 1, the phrase handed to the datetime resolver.
        duration_minutes: Position 2, or :data:`DEFAULT_DURATION_MINUTES`.
    """

    title: str
    when_text: str
    duration_minutes: int = DEFAULT_DURATION_MINUTES


def split_segments(text: str) -> list[str]:
    """Split *text* on ``/``, trim each piece and drop empty pieces."""
    return [part.strip() for part in (text or "").split(SEGMENT_DELIMITER) if part.strip()]


def parse_duration(text: str | None) -> int:
    """Read a duration in minutes, falling back to the default.

    A leading integer is honoured (``"90 min"`` is 90).  Missing,
    non-numeric and non-positive values give
    :data:`DEFAULT_DURATION_MINUTES`.

    Raises:
        ValidationError: If the value exceeds :data:`MAX_DURATION_MINUTES`.
    """
    match = _LEADING_INT_RE.match(text or "")
    if match is None:
        return DEFAULT_DURATION_MINUTES
    minutes = int(match.group(1))
    if minutes > MAX_DURATION_MINUTES:
        raise ValidationError(
            f"Duration of {minutes} minutes is too long (max {MAX_DURATION_MINUTES})",
            text=text,
        )
    return minutes if minutes > 0 else DEFAULT_DURATION_MINUTES


def parse_event_segments(text: str) -> EventSegments:
    """Split field-free event text into title, when-text and duration.

    Args:
        text: Event text with labeled fields already stripped.

    Returns:
        The parsed :class:`EventSegments`.  Parts beyond position 2 are
        ignored.

    Raises:
        ParseError: If there is no when-text (position 1).
        ValidationError: If the duration is too long.
    """
    parts = split_segments(text)
    if len(parts) < 2:
        raise ParseError(
            'No time given. Use: "event: Title / tomorrow 3pm / 60"',
            text=text,
        )

    duration = parse_duration(parts[2]) if len(parts) > 2 else DEFAULT_DURATION_MINUTES
    return EventSegments(title=parts[0], when_text=parts[1], duration_minutes=duration)
