"""
Calendar access for the scheduling engine.

The engine only needs two things from a calendar:
- Reading events in a date range (to find already-booked time)
- Creating an event (to commit a booking)

GoogleCalendarClient implements both against Google Calendar API v3
using a pre-issued OAuth2 refresh token.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from functools import partial
from typing import Any, Optional
from zoneinfo import ZoneInfo

from google.auth.exceptions import GoogleAuthError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from app.config import get_settings
from app.core.errors import CalendarError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar"]
TOKEN_URI = "https://oauth2.googleapis.com/token"


@dataclass(frozen=True)
class CalendarEvent:
    """Existing calendar event (read-only snapshot)."""

    start: datetime
    end: datetime
    summary: str = ""

    @classmethod
    def from_google(cls, data: dict, tz: ZoneInfo) -> "CalendarEvent":
        """Create from a Google Calendar event resource.

        All-day events only carry a date; they are read as
        midnight-to-midnight in the clinic time zone.
        """
        return cls(
            start=_parse_event_time(data.get("start", {}), tz),
            end=_parse_event_time(data.get("end", {}), tz),
            summary=data.get("summary", ""),
        )


def _parse_event_time(value: dict, tz: ZoneInfo) -> datetime:
    """Parse the start/end object of a Google event."""
    if value.get("dateTime"):
        parsed = datetime.fromisoformat(value["dateTime"])
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=tz)
        return parsed
    return datetime.combine(date.fromisoformat(value["date"]), time.min, tzinfo=tz)


class CalendarReader(ABC):
    """Read side of the calendar."""

    @abstractmethod
    async def events_in_range(
        self,
        start: datetime,
        end: datetime,
    ) -> list[CalendarEvent]:
        """Return events overlapping ``[start, end)``.

        Raises:
            CalendarError: If the calendar can't be read
        """


class CalendarWriter(ABC):
    """Write side of the calendar."""

    @abstractmethod
    async def create_event(
        self,
        summary: str,
        description: str,
        start: datetime,
        end: datetime,
    ) -> str:
        """Create an event and return its id.

        Raises:
            CalendarError: If the event could not be created
        """


class GoogleCalendarClient(CalendarReader, CalendarWriter):
    """
    Google Calendar API v3 client.

    The API client library is synchronous, so every call is pushed to
    the default thread pool. The discovery service is built lazily on
    first use; missing credentials surface as CalendarError at that point.
    """

    def __init__(
        self,
        calendar_id: Optional[str] = None,
        timezone_name: Optional[str] = None,
        service: Any = None,
    ):
        """Initialize client.

        Args:
            calendar_id: Calendar to use (defaults to settings)
            timezone_name: Zone for new events (defaults to settings)
            service: Prebuilt discovery service (for testing)
        """
        settings = get_settings()
        self.calendar_id = calendar_id or settings.google_calendar_id
        self.timezone_name = timezone_name or settings.clinic_timezone
        self._tz = ZoneInfo(self.timezone_name)
        self._service = service

    def _get_service(self) -> Any:
        """Get or build the discovery service."""
        if self._service is None:
            settings = get_settings()
            if not settings.calendar_configured:
                raise CalendarError(
                    "Google Calendar credentials not configured. Set "
                    "GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET and GOOGLE_REFRESH_TOKEN."
                )
            credentials = Credentials(
                token=None,
                refresh_token=settings.google_refresh_token,
                client_id=settings.google_client_id,
                client_secret=settings.google_client_secret,
                token_uri=TOKEN_URI,
                scopes=SCOPES,
            )
            self._service = build(
                "calendar", "v3", credentials=credentials, cache_discovery=False
            )
        return self._service

    async def _run_in_executor(self, func, *args, **kwargs) -> Any:
        """Run a synchronous Google API call in the default thread pool."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args, **kwargs))

    @staticmethod
    def _to_rfc3339(dt: datetime) -> str:
        """Convert a datetime to an RFC 3339 string with timezone."""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.isoformat()

    async def events_in_range(
        self,
        start: datetime,
        end: datetime,
    ) -> list[CalendarEvent]:
        """List single (expanded) events between start and end."""
        try:
            service = self._get_service()
            response = await self._run_in_executor(
                service.events()
                .list(
                    calendarId=self.calendar_id,
                    timeMin=self._to_rfc3339(start),
                    timeMax=self._to_rfc3339(end),
                    singleEvents=True,
                    orderBy="startTime",
                )
                .execute
            )
        except (HttpError, GoogleAuthError, OSError) as e:
            raise CalendarError(f"Failed to list calendar events: {e}") from e

        items = response.get("items", [])
        events = [
            CalendarEvent.from_google(item, self._tz)
            for item in items
            if item.get("status") != "cancelled"
        ]
        logger.info(f"Found {len(events)} calendar event(s) in date range")
        return events

    async def create_event(
        self,
        summary: str,
        description: str,
        start: datetime,
        end: datetime,
    ) -> str:
        """Insert an event on the calendar."""
        body: dict[str, Any] = {
            "summary": summary,
            "description": description,
            "start": {"dateTime": self._to_rfc3339(start), "timeZone": self.timezone_name},
            "end": {"dateTime": self._to_rfc3339(end), "timeZone": self.timezone_name},
        }

        try:
            service = self._get_service()
            result = await self._run_in_executor(
                service.events().insert(calendarId=self.calendar_id, body=body).execute
            )
        except (HttpError, GoogleAuthError, OSError) as e:
            raise CalendarError(f"Failed to create calendar event: {e}") from e

        logger.info(f"Created event {result['id']} on calendar {self.calendar_id}")
        return result["id"]


# Singleton
_client: Optional[GoogleCalendarClient] = None


def get_calendar_client() -> GoogleCalendarClient:
    """Get singleton GoogleCalendarClient."""
    global _client
    if _client is None:
        _client = GoogleCalendarClient()
    return _client
