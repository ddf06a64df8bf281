"""Map parsed event requests to the Google Calendar API body format.

Converts :class:`~ops_assistant.models.event.EventRequest` instances into
``dict`` payloads for ``events().insert()``:

- **summary** from the title.
- **start / end** as local ISO 8601 datetimes carrying their UTC offset,
  plus the reference ``timeZone``.  The offset keeps the two occurrences of a
  repeated fall-back hour apart.
- **location** and **description** when present.
- **attendees** from the ``invite:`` emails (optional, so the caller can
  retry without them).
"""

from __future__ import annotations

import logging
from datetime import datetime

from ops_assistant.models.event import EventRequest
from ops_assistant.parser.when import format_with_offset

logger = logging.getLogger(__name__)


def map_to_google_event(event: EventRequest, include_attendees: bool = True) -> dict:
    """Convert an event request into a Google Calendar API event body.

    Args:
        event: The parsed event request.
        include_attendees: When ``False`` the ``attendees`` key is left out
            even if the request has invitees.

    Returns:
        A ``dict`` conforming to the Google Calendar Event resource schema.
    """
    body: dict = {
        "summary": event.title,
        "start": _format_datetime(event.start_local, event.timezone),
        "end": _format_datetime(event.end_local, event.timezone),
    }

    if event.location:
        body["location"] = event.location
    if event.description:
        body["description"] = event.description
    if include_attendees and event.invitees:
        body["attendees"] = [{"email": email} for email in event.invitees]

    logger.debug(
        "Mapped event '%s' (%s -> %s, %d attendee(s))",
        event.title,
        body["start"]["dateTime"],
        body["end"]["dateTime"],
        len(body.get("attendees", [])),
    )
    return body


def _format_datetime(dt: datetime, timezone: str) -> dict:
    return {"dateTime": format_with_offset(dt, timezone), "timeZone": timezone}
