"""Google Calendar client used by the event commands.

Provides :class:`GoogleCalendarClient`, a thin wrapper around the Google
Calendar API that handles:

- **Create** -- insert an event from an
  :class:`~ops_assistant.models.event.EventRequest`, falling back to an
  attendee-free insert when the calendar refuses the invitees (service
  accounts without domain-wide delegation cannot invite).
- **Read** -- list the events of one local day, with pagination.

All API calls are wrapped with the :func:`~ops_assistant.calendar.exceptions.with_retry`
decorator for automatic retry on transient failures.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, time, timedelta
from typing import Any

from googleapiclient.discovery import build

from ops_assistant.calendar.event_mapper import map_to_google_event
from ops_assistant.calendar.exceptions import CalendarAPIError, with_retry
from ops_assistant.models.event import CreatedEvent, EventRequest
from ops_assistant.parser.when import get_zone

logger = logging.getLogger(__name__)

_ATTENDEE_REJECTION_RE = re.compile(r"cannot invite attendees|delegation", re.IGNORECASE)


class GoogleCalendarClient:
    """Create and list events on one Google calendar.

    Args:
        calendar_id: Target calendar identifier.
        timezone: IANA reference timezone used for day boundaries.
        credentials: Google credentials; ignored when *service* is given.
        service: Optional pre-built ``googleapiclient`` service resource.
            Pass a mock here in tests.
    """

    def __init__(
        self,
        calendar_id: str,
        timezone: str,
        credentials: Any | None = None,
        service: Any | None = None,
    ) -> None:
        self._calendar_id = calendar_id
        self._timezone = timezone
        self._service = service or build(
            "calendar", "v3", credentials=credentials, cache_discovery=False
        )

    @property
    def timezone(self) -> str:
        return self._timezone

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_event(self, event: EventRequest) -> CreatedEvent:
        """Insert *event* into the calendar.

        When the event has invitees and the API rejects them ("cannot
        invite attendees" / "delegation"), the insert is retried once
        without attendees and without notifications.

        Args:
            event: The parsed event request.

        Returns:
            A :class:`CreatedEvent` with the event id and shareable link.

        Raises:
            CalendarAPIError: If the insert fails for any other reason, or
                the attendee-free retry fails too.
        """
        attendees_dropped = False
        body = map_to_google_event(event)

        try:
            result = self._insert(body, send_updates="all" if event.invitees else "none")
        except CalendarAPIError as exc:
            if not (event.invitees and _ATTENDEE_REJECTION_RE.search(str(exc))):
                raise
            logger.warning(
                "Calendar rejected %d invitee(s) for '%s', creating without attendees",
                len(event.invitees),
                event.title,
            )
            result = self._insert(
                map_to_google_event(event, include_attendees=False),
                send_updates="none",
            )
            attendees_dropped = True

        created = CreatedEvent(
            event_id=result.get("id"),
            html_link=result.get("htmlLink", ""),
            attendees_dropped=attendees_dropped,
        )
        logger.info("Created event '%s' (id=%s)", event.title, created.event_id)
        return created

    @with_retry()
    def _insert(self, body: dict, send_updates: str) -> dict:
        return (
            self._service.events()
            .insert(calendarId=self._calendar_id, body=body, sendUpdates=send_updates)
            .execute()
        )

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @with_retry()
    def list_events_for_day(self, day: date) -> list[dict]:
        """List the events that start on *day* in the reference timezone.

        Handles pagination automatically.

        Args:
            day: Local calendar day.

        Returns:
            Google Calendar event resource dicts ordered by start time.
        """
        zone = get_zone(self._timezone)
        time_min = datetime.combine(day, time.min, tzinfo=zone)
        time_max = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)

        events: list[dict] = []
        page_token: str | None = None

        while True:
            response = (
                self._service.events()
                .list(
                    calendarId=self._calendar_id,
                    timeMin=time_min.isoformat(),
                    timeMax=time_max.isoformat(),
                    timeZone=self._timezone,
                    singleEvents=True,
                    orderBy="startTime",
                    pageToken=page_token,
                )
                .execute()
            )

            events.extend(response.get("items", []))

            page_token = response.get("nextPageToken")
            if page_token is None:
                break

        logger.info("Listed %d event(s) for %s", len(events), day.isoformat())
        return events


def event_start_label(event: dict) -> str:
    """Return a short ``HH:MM`` (or ``all day``) label for an event resource."""
    start = event.get("start", {})
    if "dateTime" in start:
        try:
            return datetime.fromisoformat(start["dateTime"]).strftime("%H:%M")
        except ValueError:
            return start["dateTime"]
    return "all day"
