"""Google Calendar integration for ops-assistant."""

from __future__ import annotations

from ops_assistant.calendar.auth import load_service_account_credentials
from ops_assistant.calendar.client import GoogleCalendarClient
from ops_assistant.calendar.event_mapper import map_to_google_event
from ops_assistant.calendar.exceptions import CalendarAPIError

__all__ = [
    "CalendarAPIError",
    "GoogleCalendarClient",
    "load_service_account_credentials",
    "map_to_google_event",
]
