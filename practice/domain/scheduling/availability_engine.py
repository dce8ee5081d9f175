"""
Availability engine - turns weekly windows, bookings and blocked slots into bookable slots.

The engine only reads. It issues a handful of queries per call, snapshots the
rows into plain intervals and hands them to the pure functions in time_slots.
Nothing here takes a lock: the partial unique index on appointments.date_time
is what finally rejects two concurrent writes for the same start time.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from .clock import Clock, to_naive_utc
from .repository import SchedulingRepository
from .rules import DEFAULT_RULES, SchedulingRules
from .time_slots import (
    CONFLICT_ADVANCE_NOTICE,
    CONFLICT_APPOINTMENT,
    CONFLICT_BLOCKED,
    CONFLICT_OUTSIDE_HOURS,
    CONFLICT_SERVICE,
    REASON_APPOINTMENT_CONFLICT,
    REASON_OUTSIDE_HOURS,
    REASON_OWN_APPOINTMENT_CONFLICT,
    REASON_SERVICE_NOT_FOUND,
    REASON_SLOT_BLOCKED,
    AvailabilityCheck,
    BookedInterval,
    TimeSlot,
    WindowSnapshot,
    advance_notice_reason,
    build_day_slots,
    day_bounds,
    day_of_week,
    display_time,
    find_conflicting_appointments,
    fits_within_availability,
    has_blocked_slot_conflict,
    meets_advance_notice,
)

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 6


class ServiceNotFoundError(Exception):
    """Raised when slots are requested for a service that is missing or inactive"""

    def __init__(self, service_id: int):
        self.service_id = service_id
        super().__init__(REASON_SERVICE_NOT_FOUND)


class AvailabilityEngine:
    """Slot generation and single-slot checks over the shared practice calendar"""

    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        rules: SchedulingRules = DEFAULT_RULES,
    ):
        self.db = db
        self.clock = clock or Clock()
        self.rules = rules
        self.repo = SchedulingRepository()

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def _windows_for_day(self, weekday: int) -> list[WindowSnapshot]:
        return [
            WindowSnapshot(w.day_of_week, w.start_time, w.end_time)
            for w in self.repo.get_active_windows_for_day(self.db, weekday)
        ]

    def _booked_intervals(
        self, start: datetime, end: datetime, exclude_appointment_id: Optional[int] = None
    ) -> list[BookedInterval]:
        # Both sides carry a buffer, so a booking can reach back its own length
        # plus two buffers. Stored services may predate the current duration cap.
        longest = max(self.rules.MAX_DURATION, self.repo.get_longest_service_duration(self.db) or 0)
        padding = timedelta(minutes=longest + 2 * self.rules.BUFFER_MINUTES)
        appointments = self.repo.get_active_appointments_between(
            self.db, start - padding, end + padding, exclude_appointment_id
        )
        return [
            BookedInterval(
                start=a.date_time,
                duration=a.service.duration if a.service else self.rules.DEFAULT_SERVICE_DURATION,
                appointment_id=a.id,
                user_id=a.user_id,
            )
            for a in appointments
        ]

    def _blocked_intervals(self, start: datetime, end: datetime) -> list[BookedInterval]:
        # Whole-day closures are stored as a single 1440-minute block
        padding = timedelta(days=1)
        return [
            BookedInterval(start=b.date_time, duration=b.duration)
            for b in self.repo.get_blocked_slots_between(self.db, start - padding, end)
        ]

    def get_service_duration(self, service_id: Optional[int]) -> int:
        if service_id is None:
            return self.rules.DEFAULT_SERVICE_DURATION
        service = self.repo.get_active_service(self.db, service_id)
        if not service:
            raise ServiceNotFoundError(service_id)
        return service.duration

    # ------------------------------------------------------------------
    # Day views
    # ------------------------------------------------------------------

    def generate_day_slots(self, target_date: date, service_id: Optional[int] = None) -> list[TimeSlot]:
        """
        Every candidate start time for the UTC calendar day, tagged available or not.

        Raises ServiceNotFoundError when service_id does not resolve to an active
        service, since no duration means no slots can be computed.
        """
        if isinstance(target_date, datetime):
            target_date = to_naive_utc(target_date).date()

        duration = self.get_service_duration(service_id)
        day_start, day_end = day_bounds(target_date)
        now = self.clock.now()

        slots = build_day_slots(
            target_date,
            duration,
            self._windows_for_day(day_of_week(target_date)),
            self._booked_intervals(day_start, day_end),
            self._blocked_intervals(day_start, day_end),
            now,
            self.rules,
        )

        available_count = sum(1 for slot in slots if slot.available)
        logger.info(
            f"📅 Generated {len(slots)} slots for {target_date.isoformat()} "
            f"(service={service_id}, duration={duration}m, available={available_count})"
        )
        return slots

    def get_available_slots(self, target_date: date, service_id: Optional[int] = None) -> list[datetime]:
        """Start times of the available slots only"""
        return [slot.date_time for slot in self.generate_day_slots(target_date, service_id) if slot.available]

    # ------------------------------------------------------------------
    # Single-slot checks
    # ------------------------------------------------------------------

    def is_time_slot_available(
        self,
        date_time: datetime,
        service_id: int,
        exclude_appointment_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> AvailabilityCheck:
        """
        Check one start time right before a booking or reschedule is written.

        Returns the first failing rule in order: service, availability window,
        advance notice, appointment conflict, blocked slot. When user_id is given
        and the conflicting booking belongs to that user the reason says so.
        """
        date_time = to_naive_utc(date_time)

        service = self.repo.get_active_service(self.db, service_id)
        if not service:
            return AvailabilityCheck(False, REASON_SERVICE_NOT_FOUND, CONFLICT_SERVICE)

        windows = self._windows_for_day(day_of_week(date_time))
        if not fits_within_availability(date_time, service.duration, windows):
            return AvailabilityCheck(False, REASON_OUTSIDE_HOURS, CONFLICT_OUTSIDE_HOURS)

        if not meets_advance_notice(date_time, self.clock.now(), self.rules):
            return AvailabilityCheck(False, advance_notice_reason(self.rules), CONFLICT_ADVANCE_NOTICE)

        slot_end = date_time + timedelta(minutes=service.duration)
        conflicts = find_conflicting_appointments(
            date_time,
            service.duration,
            self._booked_intervals(date_time, slot_end, exclude_appointment_id),
            self.rules,
        )
        if conflicts:
            own = user_id is not None and any(c.user_id == user_id for c in conflicts)
            reason = REASON_OWN_APPOINTMENT_CONFLICT if own else REASON_APPOINTMENT_CONFLICT
            logger.info(f"⚠️ Slot {date_time.isoformat()} conflicts with {len(conflicts)} appointment(s)")
            return AvailabilityCheck(False, reason, CONFLICT_APPOINTMENT)

        if has_blocked_slot_conflict(date_time, service.duration, self._blocked_intervals(date_time, slot_end)):
            return AvailabilityCheck(False, REASON_SLOT_BLOCKED, CONFLICT_BLOCKED)

        return AvailabilityCheck(True)

    def find_conflicts(
        self,
        date_time: datetime,
        duration: int,
        exclude_appointment_id: Optional[int] = None,
    ) -> list[BookedInterval]:
        """Bookings whose buffered interval overlaps the requested one"""
        date_time = to_naive_utc(date_time)
        slot_end = date_time + timedelta(minutes=duration)
        return find_conflicting_appointments(
            date_time,
            duration,
            self._booked_intervals(date_time, slot_end, exclude_appointment_id),
            self.rules,
        )

    def suggest_alternatives(self, date_time: datetime, service_id: int) -> list[dict]:
        """Up to six free slots the same day, falling back to the following day"""
        target_date = to_naive_utc(date_time).date()

        slots = self.get_available_slots(target_date, service_id)[:MAX_SUGGESTIONS]
        if slots:
            return [{"dateTime": s, "displayTime": display_time(s)} for s in slots]

        next_day = target_date + timedelta(days=1)
        slots = self.get_available_slots(next_day, service_id)[:MAX_SUGGESTIONS]
        return [{"dateTime": s, "displayTime": f"Tomorrow {display_time(s)}"} for s in slots]
