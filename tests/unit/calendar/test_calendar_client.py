"""Tests for :class:`GoogleCalendarClient`.

The Calendar API service is a ``MagicMock`` passed in through the
``service`` argument, so no network calls are made.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime
from unittest.mock import MagicMock, patch

import pytest
from googleapiclient.errors import HttpError

from ops_assistant.calendar.client import GoogleCalendarClient, event_start_label
from ops_assistant.calendar.exceptions import CalendarAPIError, CalendarNotFoundError
from ops_assistant.models.event import EventRequest

TZ = "America/New_York"


def _event(invitees: list[str] | None = None) -> EventRequest:
    return EventRequest(
        title="Client visit",
        start_local=datetime(2025, 6, 11, 9, 0),
        end_local=datetime(2025, 6, 11, 10, 0),
        timezone=TZ,
        location="Miami",
        invitees=invitees or [],
    )


@pytest.fixture()
def client(mock_service: MagicMock) -> GoogleCalendarClient:
    return GoogleCalendarClient(calendar_id="ops@example.com", timezone=TZ, service=mock_service)


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


class TestCreateEvent:
    """Tests for :meth:`GoogleCalendarClient.create_event`."""

    def test_inserts_without_notifications(
        self, client: GoogleCalendarClient, mock_service: MagicMock
    ) -> None:
        insert = mock_service.events.return_value.insert
        insert.return_value.execute.return_value = {"id": "evt-1", "htmlLink": "https://cal/evt-1"}

        created = client.create_event(_event())

        assert created.event_id == "evt-1"
        assert created.html_link == "https://cal/evt-1"
        assert created.attendees_dropped is False
        kwargs = insert.call_args.kwargs
        assert kwargs["calendarId"] == "ops@example.com"
        assert kwargs["sendUpdates"] == "none"
        assert kwargs["body"]["start"] == {"dateTime": "2025-06-11T09:00:00-04:00", "timeZone": TZ}
        assert "attendees" not in kwargs["body"]

    def test_invitees_are_notified(
        self, client: GoogleCalendarClient, mock_service: MagicMock
    ) -> None:
        insert = mock_service.events.return_value.insert
        insert.return_value.execute.return_value = {"id": "evt-1"}

        created = client.create_event(_event(["a@b.com"]))

        assert created.html_link == ""
        kwargs = insert.call_args.kwargs
        assert kwargs["sendUpdates"] == "all"
        assert kwargs["body"]["attendees"] == [{"email": "a@b.com"}]

    def test_attendee_rejection_falls_back(
        self,
        client: GoogleCalendarClient,
        mock_service: MagicMock,
        http_error: Callable[..., HttpError],
    ) -> None:
        insert = mock_service.events.return_value.insert
        insert.return_value.execute.side_effect = [
            http_error(
                403,
                "Service accounts cannot invite attendees without Domain-Wide "
                "Delegation of Authority.",
            ),
            {"id": "evt-2", "htmlLink": "https://cal/evt-2"},
        ]

        created = client.create_event(_event(["a@b.com"]))

        assert created.event_id == "evt-2"
        assert created.attendees_dropped is True
        assert insert.call_count == 2
        retry_kwargs = insert.call_args_list[1].kwargs
        assert retry_kwargs["sendUpdates"] == "none"
        assert "attendees" not in retry_kwargs["body"]

    def test_other_errors_propagate(
        self,
        client: GoogleCalendarClient,
        mock_service: MagicMock,
        http_error: Callable[..., HttpError],
    ) -> None:
        insert = mock_service.events.return_value.insert
        insert.return_value.execute.side_effect = http_error(403, "Forbidden")

        with pytest.raises(CalendarAPIError) as exc_info:
            client.create_event(_event(["a@b.com"]))

        assert exc_info.value.status_code == 403
        assert insert.call_count == 1

    def test_rejection_without_invitees_propagates(
        self,
        client: GoogleCalendarClient,
        mock_service: MagicMock,
        http_error: Callable[..., HttpError],
    ) -> None:
        insert = mock_service.events.return_value.insert
        insert.return_value.execute.side_effect = http_error(403, "requires delegation")

        with pytest.raises(CalendarAPIError):
            client.create_event(_event())

        assert insert.call_count == 1

    def test_unknown_calendar(
        self,
        client: GoogleCalendarClient,
        mock_service: MagicMock,
        http_error: Callable[..., HttpError],
    ) -> None:
        mock_service.events.return_value.insert.return_value.execute.side_effect = (
            http_error(404, "Not Found")
        )
        with pytest.raises(CalendarNotFoundError):
            client.create_event(_event())

    @patch("ops_assistant.calendar.exceptions.time.sleep")
    def test_rate_limit_is_retried(
        self,
        mock_sleep: MagicMock,
        client: GoogleCalendarClient,
        mock_service: MagicMock,
        http_error: Callable[..., HttpError],
    ) -> None:
        mock_service.events.return_value.insert.return_value.execute.side_effect = [
            http_error(429, "Rate Limit Exceeded"),
            {"id": "evt-3"},
        ]

        assert client.create_event(_event()).event_id == "evt-3"
        mock_sleep.assert_called_once_with(1.0)


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------


class TestListEventsForDay:
    """Tests for :meth:`GoogleCalendarClient.list_events_for_day`."""

    def test_uses_local_day_bounds(
        self, client: GoogleCalendarClient, mock_service: MagicMock
    ) -> None:
        list_call = mock_service.events.return_value.list
        list_call.return_value.execute.return_value = {"items": [{"id": "a"}]}

        events = client.list_events_for_day(date(2025, 6, 10))

        assert events == [{"id": "a"}]
        kwargs = list_call.call_args.kwargs
        assert kwargs["timeMin"] == "2025-06-10T00:00:00-04:00"
        assert kwargs["timeMax"] == "2025-06-11T00:00:00-04:00"
        assert kwargs["timeZone"] == TZ
        assert kwargs["singleEvents"] is True
        assert kwargs["orderBy"] == "startTime"

    def test_bounds_across_fall_back(
        self, client: GoogleCalendarClient, mock_service: MagicMock
    ) -> None:
        list_call = mock_service.events.return_value.list
        list_call.return_value.execute.return_value = {"items": []}

        client.list_events_for_day(date(2025, 11, 2))

        kwargs = list_call.call_args.kwargs
        assert kwargs["timeMin"] == "2025-11-02T00:00:00-04:00"
        assert kwargs["timeMax"] == "2025-11-03T00:00:00-05:00"

    def test_paginates(self, client: GoogleCalendarClient, mock_service: MagicMock) -> None:
        list_call = mock_service.events.return_value.list
        list_call.return_value.execute.side_effect = [
            {"items": [{"id": "a"}], "nextPageToken": "p2"},
            {"items": [{"id": "b"}]},
        ]

        events = client.list_events_for_day(date(2025, 6, 10))

        assert [e["id"] for e in events] == ["a", "b"]
        assert list_call.call_args_list[1].kwargs["pageToken"] == "p2"


class TestEventStartLabel:
    """Tests for :func:`event_start_label`."""

    def test_timed(self) -> None:
        assert event_start_label({"start": {"dateTime": "2025-06-10T14:30:00-04:00"}}) == "14:30"

    def test_all_day(self) -> None:
        assert event_start_label({"start": {"date": "2025-06-10"}}) == "all day"

    def test_missing_start(self) -> None:
        assert event_start_label({}) == "all day"
