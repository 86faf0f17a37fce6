"""
Slot generation, conflict filtering and matching.

All functions here are pure: they take windows/slots/events and a
reference time, and return new lists. Nothing is cached between calls.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional

from app.core.scheduling.availability import (
    AvailabilityWindow,
    Weekday,
    format_time_label,
    parse_time_of_day,
)
from app.core.scheduling.calendar_client import CalendarEvent

logger = logging.getLogger(__name__)

SLOT_LENGTH = timedelta(hours=1)


@dataclass(frozen=True)
class Slot:
    """One concrete, bookable hour."""

    day: Weekday
    date: date
    start: datetime
    end: datetime
    label: str

    @property
    def date_str(self) -> str:
        """ISO date (YYYY-MM-DD), used when a request names a date."""
        return self.date.isoformat()

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "day": self.day.value,
            "date": self.date_str,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "label": self.label,
        }


def current_week_dates(now: datetime) -> dict[Weekday, date]:
    """Map each weekday to its date in the Monday-Sunday week containing now."""
    monday = now.date() - timedelta(days=now.weekday())
    return {day: monday + timedelta(days=day.index) for day in Weekday}


def format_slot_label(day: Weekday, start: datetime, end: datetime) -> str:
    """Build the display label, e.g. "Monday 2/6/2025 — 09:00 AM to 10:00 AM"."""
    d = start.date()
    return (
        f"{day.value} {d.day}/{d.month}/{d.year} — "
        f"{format_time_label(start.time())} to {format_time_label(end.time())}"
    )


def generate_slots(
    windows: Iterable[AvailabilityWindow],
    now: datetime,
) -> list[Slot]:
    """Expand weekly windows into one-hour slots for the current week.

    Only the week containing ``now`` is considered; there is no rollover
    into next week. A trailing remainder shorter than an hour is dropped,
    and any slot starting at or before ``now`` is skipped.

    Slot instants carry ``now``'s tzinfo, so pass an aware ``now`` in the
    clinic time zone.

    Args:
        windows: Availability windows, typically from AvailabilityStore.read
        now: Evaluation timestamp

    Returns:
        Slots in window order, ascending within each window
    """
    week = current_week_dates(now)
    tz = now.tzinfo
    slots = []

    for window in windows:
        day_date = week[window.day_of_week]
        # Step in UTC so a DST change inside the window still gives 1h slots
        cursor = datetime.combine(day_date, window.start, tzinfo=tz).astimezone(timezone.utc)
        window_end = datetime.combine(day_date, window.end, tzinfo=tz).astimezone(timezone.utc)

        while cursor + SLOT_LENGTH <= window_end:
            slot_end = cursor + SLOT_LENGTH
            if cursor > now:
                start_local = cursor.astimezone(tz)
                end_local = slot_end.astimezone(tz)
                slots.append(
                    Slot(
                        day=window.day_of_week,
                        date=day_date,
                        start=start_local,
                        end=end_local,
                        label=format_slot_label(window.day_of_week, start_local, end_local),
                    )
                )
            cursor = slot_end

    return slots


def remove_booked_slots(
    slots: list[Slot],
    events: list[CalendarEvent],
) -> list[Slot]:
    """Drop slots that overlap any calendar event.

    Overlap is open-interval: an event ending exactly when a slot starts
    (or starting exactly when it ends) does not block it.
    """
    if not events:
        return list(slots)

    return [
        slot
        for slot in slots
        if not any(event.start < slot.end and event.end > slot.start for event in events)
    ]


def find_matching_slot(
    slots: Iterable[Slot],
    requested_day: str,
    requested_time: str,
) -> Optional[Slot]:
    """Find the slot for a requested day (name or ISO date) and start time.

    Args:
        slots: Candidate slots, searched in order
        requested_day: Weekday name ("monday") or ISO date ("2025-06-02")
        requested_time: 12-hour time ("10:00 AM")

    Returns:
        First matching slot, or None
    """
    try:
        wanted = parse_time_of_day(requested_time)
    except ValueError:
        logger.debug(f"Unparseable requested time: {requested_time!r}")
        return None

    day_lower = requested_day.lower()

    for slot in slots:
        day_match = slot.day.value.lower() == day_lower or slot.date_str == requested_day
        time_match = (
            slot.start.hour == wanted.hour and slot.start.minute == wanted.minute
        )
        if day_match and time_match:
            return slot

    return None


class SlotPool:
    """
    Remaining offerable slots for one booking run.

    Keyed by start instant so a committed slot is removed in O(1) and
    can't be matched again by a later request in the same message.
    """

    def __init__(self, slots: Iterable[Slot]):
        self._slots: dict[datetime, Slot] = {slot.start: slot for slot in slots}

    def __len__(self) -> int:
        return len(self._slots)

    def __contains__(self, slot: Slot) -> bool:
        return slot.start in self._slots

    @property
    def slots(self) -> list[Slot]:
        """Remaining slots in original order."""
        return list(self._slots.values())

    def find(self, requested_day: str, requested_time: str) -> Optional[Slot]:
        """Match a request against the remaining slots."""
        return find_matching_slot(self._slots.values(), requested_day, requested_time)

    def remove(self, slot: Slot) -> None:
        """Take a slot out of the pool."""
        self._slots.pop(slot.start, None)
