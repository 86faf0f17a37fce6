"""
Doctor availability source.

Reads the recurring weekly availability table (CSV) and turns each row
for the requested doctor into an AvailabilityWindow.

CSV format (header row required, extra columns ignored):

    doctor,day,start,end
    Dr Rishabh,Monday,09:00 AM,12:00 PM
    Dr Rishabh,Wednesday,02:00 PM,05:00 PM
"""

import csv
import logging
import re
from dataclasses import dataclass
from datetime import time
from enum import Enum
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


_TIME_PATTERN = re.compile(r"^\s*(\d{1,2})(?::(\d{2}))?\s*([AaPp])\.?\s*[Mm]\.?\s*$")


class Weekday(str, Enum):
    """Days of the week, Monday first."""

    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @property
    def index(self) -> int:
        """Offset from Monday (0-6), same as date.weekday()."""
        return list(Weekday).index(self)

    @classmethod
    def parse(cls, value: str) -> Optional["Weekday"]:
        """Parse a weekday name case-insensitively. Returns None if unknown."""
        value = value.strip().lower()
        for day in cls:
            if day.value.lower() == value:
                return day
        return None

    @classmethod
    def from_index(cls, index: int) -> "Weekday":
        """Weekday for a date.weekday() value."""
        return list(cls)[index]


def parse_time_of_day(value: str) -> time:
    """Parse a 12-hour clock string such as "09:00 AM" or "2 PM".

    12 AM is midnight and 12 PM is noon.

    Raises:
        ValueError: If the string is not a 12-hour time with meridiem
    """
    match = _TIME_PATTERN.match(value or "")
    if not match:
        raise ValueError(f"Invalid time format: {value!r}")

    hours = int(match.group(1))
    minutes = int(match.group(2) or 0)
    meridiem = match.group(3).upper()

    if hours < 1 or hours > 12 or minutes > 59:
        raise ValueError(f"Invalid time format: {value!r}")

    if meridiem == "P" and hours != 12:
        hours += 12
    elif meridiem == "A" and hours == 12:
        hours = 0

    return time(hour=hours, minute=minutes)


def format_time_label(value: time) -> str:
    """Format a time as "hh:mm AM/PM"."""
    period = "PM" if value.hour >= 12 else "AM"
    display_hour = value.hour % 12 or 12
    return f"{display_hour:02d}:{value.minute:02d} {period}"


@dataclass(frozen=True)
class AvailabilityWindow:
    """A recurring weekly interval of availability for one doctor."""

    doctor: str
    day_of_week: Weekday
    start: time
    end: time


class AvailabilityStore:
    """
    Reads availability windows from the CSV table.

    The file is opened on every read, so edits take effect immediately.
    Missing files, empty files and unusable rows never raise; they just
    produce fewer (or no) windows.
    """

    def __init__(self, csv_path: str | Path):
        """Initialize store.

        Args:
            csv_path: Path to the availability CSV
        """
        self.csv_path = Path(csv_path)

    def read(self, doctor_name: str) -> list[AvailabilityWindow]:
        """Read all windows for a doctor.

        Args:
            doctor_name: Doctor name, matched case-insensitively and exactly

        Returns:
            Windows in file order, empty if none are configured
        """
        if not self.csv_path.exists():
            logger.warning(f"Availability file not found: {self.csv_path}")
            return []

        try:
            with open(self.csv_path, newline="", encoding="utf-8") as f:
                rows = list(csv.reader(f))
        except OSError as e:
            logger.error(f"Error reading availability file: {e}")
            return []

        wanted = doctor_name.strip().lower()
        windows = []

        # First row is the header
        for line_no, row in enumerate(rows[1:], start=2):
            parts = [p.strip() for p in row]
            if len(parts) < 4:
                continue

            doctor, day, start, end = parts[:4]
            if doctor.lower() != wanted:
                continue

            window = self._parse_row(doctor, day, start, end, line_no)
            if window:
                windows.append(window)

        logger.info(f"Found {len(windows)} availability entries for {doctor_name}")
        return windows

    def _parse_row(
        self,
        doctor: str,
        day: str,
        start: str,
        end: str,
        line_no: int,
    ) -> Optional[AvailabilityWindow]:
        """Build a window from raw cells, or None if the row is unusable."""
        weekday = Weekday.parse(day)
        if weekday is None:
            logger.warning(f"Skipping availability line {line_no}: unknown day {day!r}")
            return None

        try:
            start_time = parse_time_of_day(start)
            end_time = parse_time_of_day(end)
        except ValueError as e:
            logger.warning(f"Skipping availability line {line_no}: {e}")
            return None

        if start_time >= end_time:
            logger.warning(f"Skipping availability line {line_no}: start is not before end")
            return None

        return AvailabilityWindow(
            doctor=doctor,
            day_of_week=weekday,
            start=start_time,
            end=end_time,
        )
