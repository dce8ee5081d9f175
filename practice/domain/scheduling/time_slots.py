"""
Slot generation and conflict detection.

Everything in this module is a pure function of its arguments: callers pass in
snapshots of availability windows, booked appointments and blocked slots along
with the current time. Database access lives in AvailabilityEngine.

All datetimes are naive UTC. Days of week follow the 0 = Sunday convention
used by the availability table.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional, Sequence

from .rules import DAY_NAMES, DEFAULT_RULES, SATURDAY, SUNDAY, SchedulingRules

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")

# Rejection reasons surfaced to clients verbatim
REASON_INSUFFICIENT_NOTICE = "Insufficient advance notice"
REASON_SLOT_UNAVAILABLE = "Time slot unavailable"
REASON_SLOT_BLOCKED = "Time slot blocked"
REASON_SERVICE_NOT_FOUND = "Service not found or inactive"
REASON_OUTSIDE_HOURS = "Outside business hours"
REASON_APPOINTMENT_CONFLICT = "Time slot conflicts with existing appointment"
REASON_OWN_APPOINTMENT_CONFLICT = "You already have an appointment at this time"

# Machine-readable conflict categories for the admin conflict checker
CONFLICT_SERVICE = "service"
CONFLICT_OUTSIDE_HOURS = "outside_hours"
CONFLICT_ADVANCE_NOTICE = "advance_notice"
CONFLICT_APPOINTMENT = "appointment"
CONFLICT_BLOCKED = "blocked"


@dataclass(frozen=True)
class WindowSnapshot:
    day_of_week: int
    start_time: str
    end_time: str


@dataclass(frozen=True)
class BookedInterval:
    start: datetime
    duration: int
    appointment_id: Optional[int] = None
    user_id: Optional[int] = None


@dataclass
class TimeSlot:
    date_time: datetime
    available: bool
    reason: Optional[str] = None


@dataclass
class AvailabilityCheck:
    available: bool
    reason: Optional[str] = None
    conflict_type: Optional[str] = None


def advance_notice_reason(rules: SchedulingRules = DEFAULT_RULES) -> str:
    return f"Must be booked at least {rules.MIN_ADVANCE_HOURS} hours in advance"


def time_string_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight"""
    match = TIME_PATTERN.match(value or "")
    if not match:
        raise ValueError(f"Invalid time format: {value}")
    return int(match.group(1)) * 60 + int(match.group(2))


def day_of_week(value) -> int:
    """Day of week with Sunday = 0, for a date or datetime"""
    return (value.weekday() + 1) % 7


def minutes_of_day(value: datetime) -> int:
    return value.hour * 60 + value.minute


def day_bounds(target_date: date) -> tuple[datetime, datetime]:
    """[start, end) of the UTC calendar day"""
    start = datetime.combine(target_date, time.min)
    return start, start + timedelta(days=1)


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open interval overlap: touching edges do not overlap"""
    return a_start < b_end and b_start < a_end


def meets_advance_notice(
    date_time: datetime, now: datetime, rules: SchedulingRules = DEFAULT_RULES
) -> bool:
    return date_time >= now + timedelta(hours=rules.MIN_ADVANCE_HOURS)


def find_conflicting_appointments(
    date_time: datetime,
    duration: int,
    appointments: Iterable[BookedInterval],
    rules: SchedulingRules = DEFAULT_RULES,
) -> list[BookedInterval]:
    """
    Appointments whose buffered interval overlaps the candidate's buffered interval.

    The buffer is applied on both sides of both bookings, so two appointments
    always keep at least two buffers of idle time between them.
    """
    buffer = timedelta(minutes=rules.BUFFER_MINUTES)
    candidate_start = date_time - buffer
    candidate_end = date_time + timedelta(minutes=duration) + buffer

    conflicts = []
    for appointment in appointments:
        booked_start = appointment.start - buffer
        booked_end = appointment.start + timedelta(minutes=appointment.duration) + buffer
        if intervals_overlap(candidate_start, candidate_end, booked_start, booked_end):
            conflicts.append(appointment)
    return conflicts


def has_appointment_conflict(
    date_time: datetime,
    duration: int,
    appointments: Iterable[BookedInterval],
    rules: SchedulingRules = DEFAULT_RULES,
) -> bool:
    return bool(find_conflicting_appointments(date_time, duration, appointments, rules))


def has_blocked_slot_conflict(
    date_time: datetime, duration: int, blocked_slots: Iterable[BookedInterval]
) -> bool:
    slot_end = date_time + timedelta(minutes=duration)
    return any(
        intervals_overlap(
            date_time, slot_end, blocked.start, blocked.start + timedelta(minutes=blocked.duration)
        )
        for blocked in blocked_slots
    )


def fits_within_availability(
    date_time: datetime, duration: int, windows: Iterable[WindowSnapshot]
) -> bool:
    """True when the appointment starts inside a window for its weekday and ends by the window's end"""
    weekday = day_of_week(date_time)
    start_minutes = minutes_of_day(date_time)
    for window in windows:
        if window.day_of_week != weekday:
            continue
        window_start = time_string_to_minutes(window.start_time)
        window_end = time_string_to_minutes(window.end_time)
        if window_start <= start_minutes and start_minutes + duration <= window_end:
            return True
    return False


def window_candidates(
    target_date: date,
    window: WindowSnapshot,
    duration: int,
    rules: SchedulingRules = DEFAULT_RULES,
) -> list[datetime]:
    """Start times on the slot step whose full duration fits before the window ends"""
    window_start = time_string_to_minutes(window.start_time)
    window_end = time_string_to_minutes(window.end_time)
    day_start, _ = day_bounds(target_date)

    candidates = []
    minutes = window_start
    while minutes + duration <= window_end:
        candidates.append(day_start + timedelta(minutes=minutes))
        minutes += rules.SLOT_GRANULARITY_MINUTES
    return candidates


def evaluate_slot(
    date_time: datetime,
    duration: int,
    appointments: Sequence[BookedInterval],
    blocked_slots: Sequence[BookedInterval],
    now: datetime,
    rules: SchedulingRules = DEFAULT_RULES,
) -> TimeSlot:
    if not meets_advance_notice(date_time, now, rules):
        return TimeSlot(date_time, False, REASON_INSUFFICIENT_NOTICE)
    if has_appointment_conflict(date_time, duration, appointments, rules):
        return TimeSlot(date_time, False, REASON_SLOT_UNAVAILABLE)
    if has_blocked_slot_conflict(date_time, duration, blocked_slots):
        return TimeSlot(date_time, False, REASON_SLOT_BLOCKED)
    return TimeSlot(date_time, True)


def build_day_slots(
    target_date: date,
    duration: int,
    windows: Iterable[WindowSnapshot],
    appointments: Sequence[BookedInterval],
    blocked_slots: Sequence[BookedInterval],
    now: datetime,
    rules: SchedulingRules = DEFAULT_RULES,
) -> list[TimeSlot]:
    """Every candidate start time for the day, in chronological order, tagged with availability"""
    weekday = day_of_week(target_date)
    seen: set[datetime] = set()
    slots = []

    for window in windows:
        if window.day_of_week != weekday:
            continue
        for candidate in window_candidates(target_date, window, duration, rules):
            # Overlapping windows would otherwise yield the same start twice
            if candidate in seen:
                continue
            seen.add(candidate)
            slots.append(evaluate_slot(candidate, duration, appointments, blocked_slots, now, rules))

    slots.sort(key=lambda slot: slot.date_time)
    return slots


def check_business_hours(
    date_time: datetime, rules: SchedulingRules = DEFAULT_RULES
) -> Optional[str]:
    """
    Fixed opening-hours rule applied by the client reschedule flow on top of
    the availability windows. Returns a rejection message, or None when open.
    """
    weekday = day_of_week(date_time)
    hours = rules.business_hours.get(weekday)
    minutes = minutes_of_day(date_time)

    if weekday == SUNDAY or hours is None:
        return "We are closed on Sundays" if weekday == SUNDAY else f"We are closed on {DAY_NAMES[weekday]}s"

    opens, closes = hours
    if opens <= minutes < closes:
        return None

    if weekday == SATURDAY:
        return (
            f"Saturday appointments are only available from "
            f"{_hour_label(opens)} to {_hour_label(closes)}"
        )
    return f"Weekday appointments are only available from {_hour_label(opens)} to {_hour_label(closes)}"


def _hour_label(total_minutes: int) -> str:
    hour, minute = divmod(total_minutes, 60)
    suffix = "AM" if hour < 12 else "PM"
    display_hour = hour % 12 or 12
    if minute:
        return f"{display_hour}:{minute:02d} {suffix}"
    return f"{display_hour} {suffix}"


def display_time(value: datetime) -> str:
    """"9:00 AM" style label for a UTC slot"""
    return f"{value.hour % 12 or 12}:{value.minute:02d} {'AM' if value.hour < 12 else 'PM'}"
