"""Tests for slot generation, conflict filtering and matching."""

import pytest
from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from app.core.scheduling.availability import AvailabilityWindow, Weekday
from app.core.scheduling.calendar_client import CalendarEvent
from app.core.scheduling.slots import (
    Slot,
    SlotPool,
    current_week_dates,
    find_matching_slot,
    generate_slots,
    remove_booked_slots,
)

TZ = ZoneInfo("Asia/Kolkata")

# 2025-06-02 is a Monday
MONDAY_8AM = datetime(2025, 6, 2, 8, 0, tzinfo=TZ)


def window(day: Weekday, start: time, end: time) -> AvailabilityWindow:
    return AvailabilityWindow(doctor="Dr Rishabh", day_of_week=day, start=start, end=end)


def at(day: int, hour: int, minute: int = 0) -> datetime:
    """Datetime in the test week (day 2 = Monday 2025-06-02)."""
    return datetime(2025, 6, day, hour, minute, tzinfo=TZ)


class TestCurrentWeek:
    """Test week boundary computation."""

    def test_monday_start(self):
        week = current_week_dates(MONDAY_8AM)

        assert week[Weekday.MONDAY].isoformat() == "2025-06-02"
        assert week[Weekday.SUNDAY].isoformat() == "2025-06-08"

    def test_sunday_belongs_to_previous_monday(self):
        sunday = datetime(2025, 6, 8, 20, 0, tzinfo=TZ)

        week = current_week_dates(sunday)

        assert week[Weekday.MONDAY].isoformat() == "2025-06-02"
        assert week[Weekday.SUNDAY].isoformat() == "2025-06-08"


class TestGenerateSlots:
    """Test expansion of windows into hourly slots."""

    def test_morning_window_yields_three_slots(self):
        windows = [window(Weekday.MONDAY, time(9), time(12))]

        slots = generate_slots(windows, MONDAY_8AM)

        assert [(s.start, s.end) for s in slots] == [
            (at(2, 9), at(2, 10)),
            (at(2, 10), at(2, 11)),
            (at(2, 11), at(2, 12)),
        ]
        assert all(s.day == Weekday.MONDAY for s in slots)
        assert all(s.date_str == "2025-06-02" for s in slots)

    def test_empty_windows(self):
        assert generate_slots([], MONDAY_8AM) == []

    def test_partial_trailing_hour_dropped(self):
        windows = [window(Weekday.TUESDAY, time(9), time(11, 30))]

        slots = generate_slots(windows, MONDAY_8AM)

        assert len(slots) == 2
        assert slots[-1].end == at(3, 11)

    def test_window_shorter_than_an_hour(self):
        windows = [window(Weekday.TUESDAY, time(9), time(9, 45))]

        assert generate_slots(windows, MONDAY_8AM) == []

    def test_half_hour_aligned_window(self):
        windows = [window(Weekday.TUESDAY, time(9, 30), time(11, 30))]

        slots = generate_slots(windows, MONDAY_8AM)

        assert [s.start.time() for s in slots] == [time(9, 30), time(10, 30)]

    def test_slots_tile_window_without_overlap(self):
        windows = [
            window(Weekday.MONDAY, time(9), time(13)),
            window(Weekday.WEDNESDAY, time(14), time(17)),
        ]

        slots = generate_slots(windows, MONDAY_8AM)

        assert len(slots) == 7
        for slot in slots:
            assert slot.end - slot.start == timedelta(hours=1)
        for a, b in zip(slots, slots[1:]):
            if a.date == b.date:
                assert a.end == b.start

    def test_never_returns_elapsed_or_current_slot(self):
        windows = [window(Weekday.MONDAY, time(9), time(12))]
        now = at(2, 10)

        slots = generate_slots(windows, now)

        assert [s.start for s in slots] == [at(2, 11)]
        assert all(s.start > now for s in slots)

    def test_slot_in_progress_skipped(self):
        windows = [window(Weekday.MONDAY, time(9), time(12))]

        slots = generate_slots(windows, at(2, 9, 30))

        assert [s.start for s in slots] == [at(2, 10), at(2, 11)]

    def test_past_day_has_no_rollover(self):
        windows = [window(Weekday.MONDAY, time(9), time(12))]
        wednesday = at(4, 8)

        assert generate_slots(windows, wednesday) == []

    def test_label_format(self):
        windows = [window(Weekday.MONDAY, time(11), time(13))]

        slots = generate_slots(windows, MONDAY_8AM)

        assert slots[0].label == "Monday 2/6/2025 — 11:00 AM to 12:00 PM"
        assert slots[1].label == "Monday 2/6/2025 — 12:00 PM to 01:00 PM"

    def test_daylight_saving_change_inside_window(self):
        london = ZoneInfo("Europe/London")
        # Clocks go forward at 01:00 on Sunday 2025-03-30
        now = datetime(2025, 3, 24, 8, 0, tzinfo=london)
        windows = [window(Weekday.SUNDAY, time(0), time(4))]

        slots = generate_slots(windows, now)

        utc_starts = [s.start.astimezone(timezone.utc) for s in slots]
        assert utc_starts == [
            datetime(2025, 3, 30, 0, tzinfo=timezone.utc),
            datetime(2025, 3, 30, 1, tzinfo=timezone.utc),
            datetime(2025, 3, 30, 2, tzinfo=timezone.utc),
        ]
        for slot in slots:
            elapsed = slot.end.astimezone(timezone.utc) - slot.start.astimezone(timezone.utc)
            assert elapsed == timedelta(hours=1)
        assert [s.start.time() for s in slots] == [time(0), time(2), time(3)]

    def test_slots_carry_timezone(self):
        windows = [window(Weekday.FRIDAY, time(9), time(10))]

        slots = generate_slots(windows, MONDAY_8AM)

        assert slots[0].start.tzinfo == TZ


class TestRemoveBookedSlots:
    """Test calendar conflict filtering."""

    @pytest.fixture
    def slots(self):
        return generate_slots([window(Weekday.MONDAY, time(9), time(12))], MONDAY_8AM)

    def test_partial_overlap_removes_slot(self, slots):
        events = [CalendarEvent(start=at(2, 10), end=at(2, 10, 30))]

        remaining = remove_booked_slots(slots, events)

        assert [s.start for s in remaining] == [at(2, 9), at(2, 11)]

    def test_no_events_is_identity(self, slots):
        assert remove_booked_slots(slots, []) == slots

    def test_touching_boundaries_do_not_conflict(self, slots):
        events = [
            CalendarEvent(start=at(2, 8), end=at(2, 9)),
            CalendarEvent(start=at(2, 12), end=at(2, 13)),
        ]

        assert remove_booked_slots(slots, events) == slots

    def test_event_spanning_several_slots(self, slots):
        events = [CalendarEvent(start=at(2, 9, 30), end=at(2, 11, 15))]

        assert remove_booked_slots(slots, events) == []

    def test_all_day_event_blocks_whole_day(self, slots):
        events = [CalendarEvent(start=at(2, 0), end=at(3, 0))]

        assert remove_booked_slots(slots, events) == []

    def test_idempotent(self, slots):
        events = [CalendarEvent(start=at(2, 10, 15), end=at(2, 10, 45))]

        once = remove_booked_slots(slots, events)

        assert remove_booked_slots(once, events) == once

    def test_order_preserved(self):
        slots = generate_slots(
            [
                window(Weekday.WEDNESDAY, time(9), time(11)),
                window(Weekday.MONDAY, time(9), time(11)),
            ],
            MONDAY_8AM,
        )
        events = [CalendarEvent(start=at(4, 9), end=at(4, 10))]

        remaining = remove_booked_slots(slots, events)

        assert [s.start for s in remaining] == [at(4, 10), at(2, 9), at(2, 10)]


class TestFindMatchingSlot:
    """Test matching requested day/time to a slot."""

    @pytest.fixture
    def slots(self):
        return generate_slots(
            [
                window(Weekday.MONDAY, time(9), time(12)),
                window(Weekday.TUESDAY, time(14), time(16)),
            ],
            MONDAY_8AM,
        )

    def test_match_by_weekday_name(self, slots):
        slot = find_matching_slot(slots, "Monday", "10:00 AM")

        assert slot is not None
        assert slot.start == at(2, 10)

    def test_weekday_case_insensitive(self, slots):
        slot = find_matching_slot(slots, "tUESDAY", "2:00 PM")

        assert slot is not None
        assert slot.start == at(3, 14)

    def test_match_by_iso_date(self, slots):
        slot = find_matching_slot(slots, "2025-06-03", "3:00 PM")

        assert slot is not None
        assert slot.start == at(3, 15)

    def test_no_match_for_wrong_minute(self, slots):
        assert find_matching_slot(slots, "Monday", "10:30 AM") is None

    def test_no_match_for_wrong_day(self, slots):
        assert find_matching_slot(slots, "Friday", "10:00 AM") is None

    def test_unparseable_time(self, slots):
        assert find_matching_slot(slots, "Monday", "ten-ish") is None

    def test_first_match_wins(self):
        start = at(2, 9)
        first = Slot(Weekday.MONDAY, start.date(), start, start + timedelta(hours=1), "first")
        second = Slot(Weekday.MONDAY, start.date(), start, start + timedelta(hours=1), "second")

        assert find_matching_slot([first, second], "Monday", "9:00 AM").label == "first"


class TestSlotPool:
    """Test the shrinking pool used during booking."""

    def test_remove_prevents_rematch(self):
        slots = generate_slots([window(Weekday.MONDAY, time(9), time(12))], MONDAY_8AM)
        pool = SlotPool(slots)

        slot = pool.find("Monday", "10:00 AM")
        pool.remove(slot)

        assert slot not in pool
        assert pool.find("Monday", "10:00 AM") is None
        assert len(pool) == 2

    def test_slots_keep_original_order(self):
        slots = generate_slots([window(Weekday.MONDAY, time(9), time(12))], MONDAY_8AM)
        pool = SlotPool(slots)

        pool.remove(slots[1])

        assert pool.slots == [slots[0], slots[2]]

    def test_remove_missing_slot_is_noop(self):
        slots = generate_slots([window(Weekday.MONDAY, time(9), time(11))], MONDAY_8AM)
        pool = SlotPool(slots[:1])

        pool.remove(slots[1])

        assert pool.slots == slots[:1]
