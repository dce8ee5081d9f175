"""Appointment service - Business logic for client booking, reschedule and cancellation"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import (
    ACTION_CANCELLED,
    ACTION_CREATED,
    ACTION_RESCHEDULED,
    ACTION_STATUS_CHANGED,
    ACTIVE_APPOINTMENT_STATUSES,
    CANCELLED,
    PENDING,
    ROLE_ADMIN,
    STATUS_TRANSITIONS,
    Appointment,
    User,
)
from ..scheduling.availability_engine import AvailabilityEngine, ServiceNotFoundError
from ..scheduling.clock import Clock
from ..scheduling.policy import (
    PolicyCalculator,
    PolicyResult,
    exact_hours_until,
    get_cancellation_warning_color,
)
from ..scheduling.rules import DEFAULT_RULES, SchedulingRules
from ..scheduling.time_slots import (
    CONFLICT_APPOINTMENT,
    REASON_APPOINTMENT_CONFLICT,
    REASON_SERVICE_NOT_FOUND,
    check_business_hours,
    display_time,
)
from .repository import AppointmentRepository
from .schemas import AppointmentUpdate, BookAppointmentRequest, CancelRequest, RescheduleRequest

logger = logging.getLogger(__name__)

DEFAULT_RESCHEDULE_REASON = "Client requested reschedule"
DEFAULT_CANCEL_REASON = "Cancelled by user"
PAGE_SIZE = 10


@dataclass
class RescheduleOutcome:
    """Previous start time and the fee policy that applied to a reschedule"""

    old_date_time: datetime
    policy: PolicyResult


def appointment_to_dict(appointment: Appointment) -> dict:
    service = appointment.service
    user = appointment.user
    return {
        "id": appointment.id,
        "dateTime": appointment.date_time,
        "status": appointment.status,
        "notes": appointment.notes,
        "cancellationReason": appointment.cancellation_reason,
        "service": {
            "id": service.id,
            "title": service.title,
            "duration": service.duration,
            "price": float(service.price),
        },
        "user": {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "phone": user.phone,
        },
        "createdAt": appointment.created_at,
        "updatedAt": appointment.updated_at,
    }


def commit_or_conflict(db: Session) -> None:
    """Commit, turning a lost race on the active-slot unique index into a 409"""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"⚠️ Slot uniqueness constraint rejected a write: {e.orig}")
        raise HTTPException(status_code=409, detail=REASON_APPOINTMENT_CONFLICT) from e


class AppointmentService:
    """Service layer for client-facing appointment operations"""

    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        rules: SchedulingRules = DEFAULT_RULES,
    ):
        self.db = db
        self.clock = clock or Clock()
        self.rules = rules
        self.repo = AppointmentRepository()
        self.engine = AvailabilityEngine(db, self.clock, rules)
        self.policy = PolicyCalculator(self.clock, rules)

    # ------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------

    def get_day_slots(self, target_date: date, service_id: Optional[int] = None) -> dict:
        if target_date < self.clock.now().date():
            raise HTTPException(status_code=400, detail="Date cannot be in the past")

        try:
            slots = self.engine.generate_day_slots(target_date, service_id)
        except ServiceNotFoundError as e:
            raise HTTPException(status_code=404, detail=REASON_SERVICE_NOT_FOUND) from e

        return {
            "date": target_date.isoformat(),
            "serviceId": service_id,
            "slots": [
                {
                    "dateTime": slot.date_time,
                    "displayTime": display_time(slot.date_time),
                    "available": slot.available,
                    "reason": slot.reason,
                }
                for slot in slots
            ],
            "availableCount": sum(1 for slot in slots if slot.available),
        }

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_appointment(self, appointment_id: int, user: User) -> Appointment:
        """Owner or admin only"""
        appointment = self.repo.get_appointment(self.db, appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        if appointment.user_id != user.id and user.role != ROLE_ADMIN:
            raise HTTPException(status_code=403, detail="You can only access your own appointments")
        return appointment

    def list_appointments(
        self,
        user: User,
        upcoming: Optional[bool] = None,
        status: Optional[str] = None,
        service_id: Optional[int] = None,
        page: int = 1,
    ) -> dict:
        items, total = self.repo.list_for_user(
            self.db, user.id, self.clock.now(), upcoming, status, service_id, page, PAGE_SIZE
        )
        total_pages = (total + PAGE_SIZE - 1) // PAGE_SIZE
        return {
            "appointments": [appointment_to_dict(a) for a in items],
            "pagination": {
                "page": page,
                "limit": PAGE_SIZE,
                "total": total,
                "totalPages": total_pages,
                "hasNext": page * PAGE_SIZE < total,
                "hasPrev": page > 1,
            },
        }

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------

    def book(self, user: User, data: BookAppointmentRequest) -> Appointment:
        logger.info(f"📥 Booking request from user {user.id}: service={data.serviceId} at {data.dateTime.isoformat()}")

        now = self.clock.now()
        if data.dateTime > now + timedelta(days=self.rules.MAX_ADVANCE_DAYS):
            raise HTTPException(
                status_code=400,
                detail=f"Appointments cannot be booked more than {self.rules.MAX_ADVANCE_DAYS} days in advance",
            )

        # Runs right before the insert; the unique index covers the remaining race
        check = self.engine.is_time_slot_available(data.dateTime, data.serviceId, user_id=user.id)
        if not check.available:
            logger.warning(f"⚠️ Booking rejected for user {user.id}: {check.reason}")
            status_code = 404 if check.reason == REASON_SERVICE_NOT_FOUND else 400
            raise HTTPException(status_code=status_code, detail=check.reason)

        appointment = Appointment(
            user_id=user.id,
            service_id=data.serviceId,
            date_time=data.dateTime,
            status=PENDING,
            notes=data.notes,
        )
        self.db.add(appointment)
        self.repo.add_history(
            self.db, appointment, ACTION_CREATED, actor=user, new_status=PENDING, new_date_time=data.dateTime
        )
        commit_or_conflict(self.db)

        logger.info(f"✅ Appointment {appointment.id} booked for user {user.id}")
        return self.repo.get_appointment(self.db, appointment.id)

    # ------------------------------------------------------------------
    # Status changes
    # ------------------------------------------------------------------

    def update_appointment(self, appointment_id: int, user: User, data: AppointmentUpdate) -> Appointment:
        appointment = self.get_appointment(appointment_id, user)

        if data.status and data.status != appointment.status:
            current_status = appointment.status
            if data.status not in STATUS_TRANSITIONS.get(current_status, ()):
                raise HTTPException(
                    status_code=400,
                    detail=f"Cannot change status from {current_status} to {data.status}",
                )
            if user.role != ROLE_ADMIN and data.status != CANCELLED:
                raise HTTPException(status_code=403, detail="Only the practice can change this status")
            if data.status == CANCELLED and not data.cancellationReason:
                raise HTTPException(status_code=400, detail="Cancellation reason is required")

            appointment.status = data.status
            self.repo.add_history(
                self.db,
                appointment,
                ACTION_CANCELLED if data.status == CANCELLED else ACTION_STATUS_CHANGED,
                actor=user,
                reason=data.cancellationReason,
                old_status=current_status,
                new_status=data.status,
            )
            logger.info(f"🔄 Appointment {appointment.id}: {current_status} -> {data.status} by user {user.id}")

        if data.notes is not None:
            appointment.notes = data.notes
        if data.cancellationReason is not None:
            appointment.cancellation_reason = data.cancellationReason

        self.db.commit()
        self.db.refresh(appointment)
        return appointment

    # ------------------------------------------------------------------
    # Policy
    # ------------------------------------------------------------------

    def get_policies(self, appointment_id: int, user: User) -> dict:
        appointment = self.get_appointment(appointment_id, user)
        price = appointment.service.price
        reschedule = self.policy.rescheduling(appointment.date_time, price)
        cancellation = self.policy.cancellation(appointment.date_time, price)
        is_active = appointment.status in ACTIVE_APPOINTMENT_STATUSES

        reschedule_view = reschedule.as_reschedule_dict()
        cancellation_view = cancellation.as_cancellation_dict()
        # Policy tiers only look at time; terminal appointments can never change
        if not is_active:
            reschedule_view["canReschedule"] = False
            cancellation_view["canCancel"] = False

        return {
            "appointmentId": appointment.id,
            "status": appointment.status,
            "hoursUntilAppointment": self.policy.hours_until(appointment.date_time),
            "warningColor": get_cancellation_warning_color(
                exact_hours_until(appointment.date_time, self.clock.now()), self.rules
            ),
            "canReschedule": self.policy.can_reschedule(appointment.status, appointment.date_time),
            "reschedulePolicy": reschedule_view,
            "cancellationPolicy": cancellation_view,
        }

    # ------------------------------------------------------------------
    # Reschedule
    # ------------------------------------------------------------------

    def reschedule(
        self, appointment_id: int, user: User, data: RescheduleRequest
    ) -> tuple[Appointment, RescheduleOutcome]:
        appointment = self.repo.get_appointment(self.db, appointment_id)
        if not appointment or appointment.user_id != user.id:
            raise HTTPException(status_code=404, detail="Appointment not found")

        policy = self.policy.rescheduling(appointment.date_time, appointment.service.price)
        if not self.policy.can_reschedule(appointment.status, appointment.date_time) or not policy.can_act:
            raise HTTPException(status_code=400, detail="This appointment cannot be rescheduled")

        new_date_time = data.newDateTime
        if new_date_time <= self.clock.now():
            raise HTTPException(status_code=400, detail="Cannot reschedule to a past date or time")

        closed_reason = check_business_hours(new_date_time, self.rules)
        if closed_reason:
            raise HTTPException(status_code=400, detail=closed_reason)

        check = self.engine.is_time_slot_available(
            new_date_time,
            appointment.service_id,
            exclude_appointment_id=appointment.id,
            user_id=user.id,
        )
        if not check.available:
            logger.warning(f"⚠️ Reschedule of appointment {appointment.id} rejected: {check.reason}")
            status_code = 409 if check.conflict_type == CONFLICT_APPOINTMENT else 400
            raise HTTPException(status_code=status_code, detail=check.reason)

        old_date_time = appointment.date_time
        reason = data.reason or DEFAULT_RESCHEDULE_REASON
        appointment.date_time = new_date_time
        appointment.notes = (
            f"{appointment.notes}\n\nRescheduled: {reason}" if appointment.notes else f"Rescheduled: {reason}"
        )
        self.repo.add_history(
            self.db,
            appointment,
            ACTION_RESCHEDULED,
            actor=user,
            reason=reason,
            old_date_time=old_date_time,
            new_date_time=new_date_time,
        )
        commit_or_conflict(self.db)
        self.db.refresh(appointment)

        logger.info(
            f"✅ Appointment {appointment.id} rescheduled {old_date_time.isoformat()} -> {new_date_time.isoformat()}"
        )
        return appointment, RescheduleOutcome(old_date_time, policy)

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def cancel(self, appointment_id: int, user: User, data: CancelRequest) -> tuple[Appointment, PolicyResult]:
        appointment = self.get_appointment(appointment_id, user)

        if appointment.status not in ACTIVE_APPOINTMENT_STATUSES:
            raise HTTPException(
                status_code=400,
                detail=f"Cannot cancel appointment with status: {appointment.status}",
            )

        policy = self.policy.cancellation(appointment.date_time, appointment.service.price)
        if not policy.can_act:
            raise HTTPException(status_code=400, detail=policy.message)

        old_status = appointment.status
        reason = data.reason or DEFAULT_CANCEL_REASON
        appointment.status = CANCELLED
        appointment.cancellation_reason = reason
        self.repo.add_history(
            self.db,
            appointment,
            ACTION_CANCELLED,
            actor=user,
            reason=f"{reason} ({policy.policy} refund: ${policy.amount})",
            old_status=old_status,
            new_status=CANCELLED,
        )
        self.db.commit()
        self.db.refresh(appointment)

        logger.info(f"🚫 Appointment {appointment.id} cancelled by user {user.id} ({policy.policy}, refund ${policy.amount})")
        return appointment, policy
