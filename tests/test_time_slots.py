from datetime import date, datetime, timedelta

import pytest

from practice.domain.scheduling.rules import SchedulingRules
from practice.domain.scheduling.time_slots import (
    REASON_INSUFFICIENT_NOTICE,
    REASON_SLOT_BLOCKED,
    REASON_SLOT_UNAVAILABLE,
    BookedInterval,
    WindowSnapshot,
    build_day_slots,
    check_business_hours,
    day_of_week,
    display_time,
    fits_within_availability,
    has_appointment_conflict,
    time_string_to_minutes,
)

MONDAY = date(2025, 1, 6)
NOW = datetime(2025, 1, 1, 8, 0)
MONDAY_WINDOWS = [WindowSnapshot(1, "09:00", "12:00"), WindowSnapshot(1, "13:00", "17:00")]


def at(hour, minute=0, day=MONDAY):
    return datetime(day.year, day.month, day.day, hour, minute)


def test_monday_slots_cover_every_quarter_hour_that_fits():
    slots = build_day_slots(MONDAY, 60, MONDAY_WINDOWS, [], [], NOW)

    times = [slot.date_time for slot in slots]
    # 09:00-11:00 and 13:00-16:00 at 15 minute steps
    assert len(slots) == 22
    assert times[0] == at(9)
    assert times[8] == at(11)
    assert times[9] == at(13)
    assert times[-1] == at(16)
    assert times == sorted(times)
    assert all(slot.available and slot.reason is None for slot in slots)


def test_window_shorter_than_service_yields_no_slots():
    slots = build_day_slots(MONDAY, 60, [WindowSnapshot(1, "09:00", "09:45")], [], [], NOW)
    assert slots == []


def test_windows_for_other_days_are_ignored():
    slots = build_day_slots(MONDAY, 60, [WindowSnapshot(2, "09:00", "17:00")], [], [], NOW)
    assert slots == []


def test_overlapping_windows_do_not_repeat_start_times():
    windows = [WindowSnapshot(1, "09:00", "11:00"), WindowSnapshot(1, "10:00", "12:00")]
    slots = build_day_slots(MONDAY, 60, windows, [], [], NOW)

    times = [slot.date_time for slot in slots]
    assert len(times) == len(set(times))
    assert times[0] == at(9)
    assert times[-1] == at(11)
    assert len(times) == 9


def test_booked_appointment_blocks_its_buffered_neighbourhood():
    booked = [BookedInterval(start=at(10), duration=60, appointment_id=1)]
    slots = {slot.date_time: slot for slot in build_day_slots(MONDAY, 60, MONDAY_WINDOWS, booked, [], NOW)}

    assert slots[at(9)].reason == REASON_SLOT_UNAVAILABLE
    assert slots[at(11)].reason == REASON_SLOT_UNAVAILABLE
    assert slots[at(13)].available


@pytest.mark.parametrize(
    "booked_start, booked_duration, duration",
    [
        (datetime(2025, 1, 6, 10, 0), 60, 60),
        (datetime(2025, 1, 6, 14, 30), 45, 50),
        (datetime(2025, 1, 6, 9, 15), 90, 30),
    ],
)
def test_buffer_applies_on_both_sides(booked_start, booked_duration, duration):
    booked = [BookedInterval(start=booked_start, duration=booked_duration)]
    earliest = booked_start - timedelta(minutes=15 + duration)
    latest = booked_start + timedelta(minutes=booked_duration + 15)

    candidate = earliest
    while candidate <= latest:
        assert has_appointment_conflict(candidate, duration, booked), candidate
        candidate += timedelta(minutes=5)

    # Two full buffers apart the intervals only touch
    assert not has_appointment_conflict(booked_start + timedelta(minutes=booked_duration + 30), duration, booked)
    assert not has_appointment_conflict(booked_start - timedelta(minutes=duration + 30), duration, booked)


def test_blocked_slot_has_no_buffer():
    blocked = [BookedInterval(start=at(13), duration=60)]
    slots = {slot.date_time: slot for slot in build_day_slots(MONDAY, 60, MONDAY_WINDOWS, [], blocked, NOW)}

    assert slots[at(13)].reason == REASON_SLOT_BLOCKED
    assert slots[at(13, 45)].reason == REASON_SLOT_BLOCKED
    assert slots[at(14)].available
    assert slots[at(11)].available


def test_advance_notice_boundary():
    exactly_a_day_before = at(9) - timedelta(hours=24)
    slots = build_day_slots(MONDAY, 60, MONDAY_WINDOWS, [], [], exactly_a_day_before)
    assert slots[0].available

    one_minute_later = exactly_a_day_before + timedelta(minutes=1)
    slots = build_day_slots(MONDAY, 60, MONDAY_WINDOWS, [], [], one_minute_later)
    assert not slots[0].available
    assert slots[0].reason == REASON_INSUFFICIENT_NOTICE
    assert slots[1].available


def test_notice_is_reported_before_conflicts():
    booked = [BookedInterval(start=at(9), duration=60)]
    slots = build_day_slots(MONDAY, 60, MONDAY_WINDOWS, booked, [], at(8))
    assert slots[0].reason == REASON_INSUFFICIENT_NOTICE


def test_slot_generation_is_deterministic():
    booked = [BookedInterval(start=at(14), duration=60)]
    blocked = [BookedInterval(start=at(9), duration=30)]
    first = build_day_slots(MONDAY, 45, MONDAY_WINDOWS, booked, blocked, NOW)
    second = build_day_slots(MONDAY, 45, MONDAY_WINDOWS, booked, blocked, NOW)
    assert first == second


def test_fits_within_availability():
    assert fits_within_availability(at(11), 60, MONDAY_WINDOWS)
    assert not fits_within_availability(at(11, 15), 60, MONDAY_WINDOWS)
    assert not fits_within_availability(at(12), 30, MONDAY_WINDOWS)
    assert not fits_within_availability(at(9, day=date(2025, 1, 7)), 60, MONDAY_WINDOWS)


@pytest.mark.parametrize(
    "when, message",
    [
        (datetime(2025, 1, 5, 11, 0), "We are closed on Sundays"),
        (datetime(2025, 1, 6, 8, 30), "Weekday appointments are only available from 9 AM to 5 PM"),
        (datetime(2025, 1, 6, 17, 0), "Weekday appointments are only available from 9 AM to 5 PM"),
        (datetime(2025, 1, 4, 15, 0), "Saturday appointments are only available from 10 AM to 2 PM"),
        (datetime(2025, 1, 6, 9, 0), None),
        (datetime(2025, 1, 6, 16, 59), None),
        (datetime(2025, 1, 4, 10, 0), None),
    ],
)
def test_business_hours(when, message):
    assert check_business_hours(when) == message


def test_time_helpers():
    assert time_string_to_minutes("9:30") == 570
    assert time_string_to_minutes("23:59") == 1439
    with pytest.raises(ValueError):
        time_string_to_minutes("24:00")
    assert day_of_week(date(2025, 1, 5)) == 0
    assert day_of_week(date(2025, 1, 4)) == 6
    assert display_time(at(13, 15)) == "1:15 PM"
    assert display_time(at(0, 0)) == "12:00 AM"


def test_rules_drive_buffer_and_step():
    rules = SchedulingRules(BUFFER_MINUTES=0, SLOT_GRANULARITY_MINUTES=30)
    booked = [BookedInterval(start=at(10), duration=60)]

    slots = build_day_slots(MONDAY, 60, MONDAY_WINDOWS, booked, [], NOW, rules)
    assert len(slots) == 12
    free = [slot.date_time for slot in slots if slot.available]
    # Back to back is fine without a buffer
    assert at(9) in free
    assert at(11) in free
    assert at(9, 30) not in free
