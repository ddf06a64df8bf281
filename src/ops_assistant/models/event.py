"""Pydantic models for calendar event requests.

Defines the structured values produced by the event command parser:

- :class:`EventRequest` -- a fully resolved event with naive local
  datetimes tied to the reference timezone.
- :class:`CreatedEvent` -- what the calendar collaborator hands back after
  an insert.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class EventRequest(BaseModel):
    """A calendar event parsed from a chat message.

    ``start_local`` and ``end_local`` carry no UTC offset; they are wall-clock
    times in ``timezone``.  In a repeated fall-back hour ``fold`` tells the two
    occurrences apart, so ordering and length are measured in elapsed time.

    Attributes:
        title: Event summary.
        start_local: Naive local start time (seconds always zero).
        end_local: Naive local end time, strictly after ``start_local``.
        timezone: IANA timezone the local times are expressed in.
        location: Location text (``loc:`` and ``addr:`` combined), or ``None``.
        description: Description text from ``desc:``, or ``None``.
        invitees: Attendee emails in the order they were given.
        linked_task_title: Title of a task to create alongside the event
            (from ``task:``), or ``None``.
    """

    model_config = ConfigDict(frozen=True)

    title: str = Field(..., min_length=1)
    start_local: datetime
    end_local: datetime
    timezone: str
    location: str | None = None
    description: str | None = None
    invitees: list[str] = Field(default_factory=list)
    linked_task_title: str | None = None

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone {value!r}") from exc
        return value

    @model_validator(mode="after")
    def _check_order(self) -> EventRequest:
        if _elapsed_minutes(self.start_local, self.end_local, self.timezone) <= 0:
            raise ValueError(
                f"end_local ({self.end_local.isoformat()}) must be after "
                f"start_local ({self.start_local.isoformat()})"
            )
        return self

    @property
    def duration_minutes(self) -> int:
        """Elapsed length of the event in whole minutes."""
        return _elapsed_minutes(self.start_local, self.end_local, self.timezone)


def _elapsed_minutes(start: datetime, end: datetime, timezone: str) -> int:
    """Whole minutes of real time between two local datetimes in *timezone*.

    Plain subtraction of naive values ignores ``fold``: on a fall-back day
    01:30 to the repeated 01:30 would be zero minutes instead of sixty.
    """
    zone = ZoneInfo(timezone)
    instants = [
        value.astimezone(zone) if value.tzinfo is not None else value.replace(tzinfo=zone)
        for value in (start, end)
    ]
    return int((instants[1].timestamp() - instants[0].timestamp()) // 60)


@dataclass(frozen=True)
class CreatedEvent:
    """Result of inserting an event into the calendar.

    Attributes:
        event_id: Calendar event identifier, or ``None`` if not returned.
        html_link: Shareable link to the event (may be empty).
        attendees_dropped: ``True`` when the calendar rejected the invitees
            and the event was created without them.
    """

    event_id: str | None
    html_link: str = ""
    attendees_dropped: bool = False
