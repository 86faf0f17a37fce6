"""Tests for the Google Calendar client."""

import pytest
from datetime import datetime
from unittest.mock import MagicMock, patch
from zoneinfo import ZoneInfo

from googleapiclient.errors import HttpError

from app.core.errors import CalendarError
from app.core.scheduling.calendar_client import CalendarEvent, GoogleCalendarClient

TZ = ZoneInfo("Asia/Kolkata")


def http_error(status: int = 500) -> HttpError:
    resp = MagicMock()
    resp.status = status
    resp.reason = "error"
    return HttpError(resp, b'{"error": {"message": "boom"}}')


class TestCalendarEvent:
    """Test parsing Google event resources."""

    def test_timed_event(self):
        event = CalendarEvent.from_google(
            {
                "summary": "Appointment - Jane",
                "start": {"dateTime": "2025-06-02T10:00:00+05:30"},
                "end": {"dateTime": "2025-06-02T11:00:00+05:30"},
            },
            TZ,
        )

        assert event.start == datetime(2025, 6, 2, 10, tzinfo=TZ)
        assert event.end == datetime(2025, 6, 2, 11, tzinfo=TZ)
        assert event.summary == "Appointment - Jane"

    def test_utc_event_compares_with_local(self):
        event = CalendarEvent.from_google(
            {
                "start": {"dateTime": "2025-06-02T04:30:00Z"},
                "end": {"dateTime": "2025-06-02T05:30:00Z"},
            },
            TZ,
        )

        assert event.start == datetime(2025, 6, 2, 10, tzinfo=TZ)

    def test_all_day_event(self):
        event = CalendarEvent.from_google(
            {"start": {"date": "2025-06-03"}, "end": {"date": "2025-06-04"}},
            TZ,
        )

        assert event.start == datetime(2025, 6, 3, 0, tzinfo=TZ)
        assert event.end == datetime(2025, 6, 4, 0, tzinfo=TZ)
        assert event.summary == ""


class TestGoogleCalendarClient:
    """Test calendar reads and writes against a mocked service."""

    @pytest.fixture
    def service(self):
        return MagicMock()

    @pytest.fixture
    def client(self, service):
        return GoogleCalendarClient(
            calendar_id="clinic@example.com",
            timezone_name="Asia/Kolkata",
            service=service,
        )

    @pytest.mark.asyncio
    async def test_events_in_range(self, client, service):
        service.events.return_value.list.return_value.execute.return_value = {
            "items": [
                {
                    "start": {"dateTime": "2025-06-02T10:00:00+05:30"},
                    "end": {"dateTime": "2025-06-02T10:30:00+05:30"},
                },
                {
                    "status": "cancelled",
                    "start": {"dateTime": "2025-06-02T11:00:00+05:30"},
                    "end": {"dateTime": "2025-06-02T12:00:00+05:30"},
                },
            ]
        }

        events = await client.events_in_range(
            datetime(2025, 6, 2, 9, tzinfo=TZ),
            datetime(2025, 6, 3, 12, tzinfo=TZ),
        )

        assert len(events) == 1
        assert events[0].end == datetime(2025, 6, 2, 10, 30, tzinfo=TZ)

        call_kwargs = service.events.return_value.list.call_args.kwargs
        assert call_kwargs["calendarId"] == "clinic@example.com"
        assert call_kwargs["timeMin"] == "2025-06-02T09:00:00+05:30"
        assert call_kwargs["timeMax"] == "2025-06-03T12:00:00+05:30"
        assert call_kwargs["singleEvents"] is True

    @pytest.mark.asyncio
    async def test_events_empty(self, client, service):
        service.events.return_value.list.return_value.execute.return_value = {}

        events = await client.events_in_range(
            datetime(2025, 6, 2, 9, tzinfo=TZ),
            datetime(2025, 6, 3, 12, tzinfo=TZ),
        )

        assert events == []

    @pytest.mark.asyncio
    async def test_list_error_wrapped(self, client, service):
        service.events.return_value.list.return_value.execute.side_effect = http_error()

        with pytest.raises(CalendarError):
            await client.events_in_range(
                datetime(2025, 6, 2, 9, tzinfo=TZ),
                datetime(2025, 6, 3, 12, tzinfo=TZ),
            )

    @pytest.mark.asyncio
    async def test_create_event(self, client, service):
        service.events.return_value.insert.return_value.execute.return_value = {"id": "evt123"}

        event_id = await client.create_event(
            summary="Appointment - Jane",
            description="Patient: Jane",
            start=datetime(2025, 6, 2, 10, tzinfo=TZ),
            end=datetime(2025, 6, 2, 11, tzinfo=TZ),
        )

        assert event_id == "evt123"
        call_kwargs = service.events.return_value.insert.call_args.kwargs
        body = call_kwargs["body"]
        assert call_kwargs["calendarId"] == "clinic@example.com"
        assert body["summary"] == "Appointment - Jane"
        assert body["start"] == {
            "dateTime": "2025-06-02T10:00:00+05:30",
            "timeZone": "Asia/Kolkata",
        }
        assert body["end"]["dateTime"] == "2025-06-02T11:00:00+05:30"

    @pytest.mark.asyncio
    async def test_create_error_wrapped(self, client, service):
        service.events.return_value.insert.return_value.execute.side_effect = OSError("reset")

        with pytest.raises(CalendarError):
            await client.create_event(
                summary="Appointment - Jane",
                description="",
                start=datetime(2025, 6, 2, 10, tzinfo=TZ),
                end=datetime(2025, 6, 2, 11, tzinfo=TZ),
            )

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        settings = MagicMock(
            google_calendar_id="primary",
            clinic_timezone="Asia/Kolkata",
            calendar_configured=False,
        )

        with patch("app.core.scheduling.calendar_client.get_settings", return_value=settings):
            client = GoogleCalendarClient()

            with pytest.raises(CalendarError):
                await client.events_in_range(
                    datetime(2025, 6, 2, 9, tzinfo=TZ),
                    datetime(2025, 6, 3, 12, tzinfo=TZ),
                )
