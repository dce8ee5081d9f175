"""Admin appointment service - Practice-side listing, conflict detection, reschedule and cancellation"""

import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...email_service import (
    send_appointment_cancelled,
    send_appointment_confirmation,
    send_appointment_reminder,
    send_appointment_rescheduled,
)
from ...models import (
    ACTION_CANCELLED,
    ACTION_NOTIFIED,
    ACTION_RESCHEDULED,
    CANCELLED,
    COMPLETED,
    NO_SHOW,
    PENDING,
    Appointment,
    AppointmentHistory,
    User,
)
from ..appointments.repository import AppointmentRepository
from ..appointments.service import appointment_to_dict, commit_or_conflict
from ..scheduling.availability_engine import AvailabilityEngine, ServiceNotFoundError
from ..scheduling.clock import Clock
from ..scheduling.rules import DEFAULT_RULES, SchedulingRules
from ..scheduling.time_slots import CONFLICT_APPOINTMENT
from .schemas import AdminCancelRequest, AdminRescheduleRequest, ConflictCheckRequest, NotifyRequest

logger = logging.getLogger(__name__)

ADMIN_PAGE_SIZE = 20
TERMINAL_STATUSES = (COMPLETED, CANCELLED, NO_SHOW)


def history_to_dict(entry: AppointmentHistory) -> dict:
    return {
        "id": entry.id,
        "action": entry.action,
        "oldStatus": entry.old_status,
        "newStatus": entry.new_status,
        "oldDateTime": entry.old_date_time,
        "newDateTime": entry.new_date_time,
        "reason": entry.reason,
        "actorId": entry.actor_id,
        "actorName": entry.actor_name,
        "createdAt": entry.created_at,
    }


class AdminAppointmentService:
    """Service layer for appointment management from the practice dashboard"""

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

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.repo.get_appointment(self.db, appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        return appointment

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_appointments(
        self,
        status: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        service_id: Optional[int] = None,
        client_id: Optional[int] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = ADMIN_PAGE_SIZE,
    ) -> dict:
        if status:
            status = status.upper()
            if status == "ALL":
                status = None

        items, total = self.repo.list_all(
            self.db, status, start, end, service_id, client_id, search.strip() if search else None, page, limit
        )
        total_pages = (total + limit - 1) // limit
        return {
            "appointments": [appointment_to_dict(a) for a in items],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": total_pages,
                "hasNext": page * limit < total,
                "hasPrev": page > 1,
            },
        }

    def get_calendar(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> dict:
        """Appointments grouped by UTC calendar date (YYYY-MM-DD)"""
        grouped: dict[str, list[dict]] = {}
        appointments = self.repo.list_between(self.db, start, end)
        for appointment in appointments:
            day = appointment.date_time.date().isoformat()
            grouped.setdefault(day, []).append(
                {
                    "id": appointment.id,
                    "dateTime": appointment.date_time,
                    "status": appointment.status,
                    "service": {
                        "title": appointment.service.title,
                        "duration": appointment.service.duration,
                    },
                    "user": {
                        "name": appointment.user.name,
                        "email": appointment.user.email,
                    },
                }
            )
        logger.info(f"📅 Calendar view: {len(appointments)} appointments across {len(grouped)} days")
        return {"appointments": grouped}

    # ------------------------------------------------------------------
    # Conflict detection
    # ------------------------------------------------------------------

    def detect_conflicts(self, data: ConflictCheckRequest) -> dict:
        logger.info(
            f"🔍 Checking conflicts for {data.dateTime.isoformat()} "
            f"(service={data.serviceId}, exclude={data.excludeAppointmentId})"
        )

        check = self.engine.is_time_slot_available(data.dateTime, data.serviceId, data.excludeAppointmentId)
        if check.available:
            return {
                "hasConflict": False,
                "conflictType": None,
                "conflictingAppointments": [],
                "reason": "",
                "suggestedAlternatives": [],
            }

        conflicting: list[dict] = []
        if check.conflict_type == CONFLICT_APPOINTMENT:
            duration = data.serviceDuration or self.engine.get_service_duration(data.serviceId)
            intervals = self.engine.find_conflicts(data.dateTime, duration, data.excludeAppointmentId)
            for appointment in self.repo.get_by_ids(self.db, [i.appointment_id for i in intervals]):
                conflicting.append(
                    {
                        "id": appointment.id,
                        "dateTime": appointment.date_time,
                        "status": appointment.status,
                        "service": {
                            "title": appointment.service.title,
                            "duration": appointment.service.duration,
                        },
                        "user": {"name": appointment.user.name},
                    }
                )

        try:
            suggestions = self.engine.suggest_alternatives(data.dateTime, data.serviceId)
        except ServiceNotFoundError:
            suggestions = []

        logger.info(
            f"⚠️ Conflict detected ({check.conflict_type}): {len(conflicting)} conflicting, "
            f"{len(suggestions)} suggestions"
        )
        return {
            "hasConflict": True,
            "conflictType": check.conflict_type,
            "conflictingAppointments": conflicting,
            "reason": check.reason,
            "suggestedAlternatives": suggestions,
        }

    # ------------------------------------------------------------------
    # Reschedule / cancel
    # ------------------------------------------------------------------

    def reschedule(self, appointment_id: int, admin: User, data: AdminRescheduleRequest) -> Appointment:
        appointment = self.get_appointment(appointment_id)

        if appointment.status in TERMINAL_STATUSES:
            raise HTTPException(
                status_code=400,
                detail="Cannot reschedule completed, cancelled, or no-show appointments",
            )

        check = self.engine.is_time_slot_available(
            data.newDateTime, appointment.service_id, exclude_appointment_id=appointment.id
        )
        if not check.available:
            raise HTTPException(
                status_code=409,
                detail=f"New time slot is not available: {check.reason or 'Unknown reason'}",
            )

        old_date_time = appointment.date_time
        old_status = appointment.status
        appointment.date_time = data.newDateTime
        # A moved session needs to be confirmed again
        appointment.status = PENDING
        self.repo.add_history(
            self.db,
            appointment,
            ACTION_RESCHEDULED,
            actor=admin,
            reason=data.reason,
            old_status=old_status,
            new_status=PENDING,
            old_date_time=old_date_time,
            new_date_time=data.newDateTime,
        )
        commit_or_conflict(self.db)
        self.db.refresh(appointment)

        logger.info(
            f"✅ Admin {admin.id} rescheduled appointment {appointment.id}: "
            f"{old_date_time.isoformat()} -> {appointment.date_time.isoformat()}"
        )
        return appointment

    def cancel(self, appointment_id: int, admin: User, data: AdminCancelRequest) -> Appointment:
        appointment = self.get_appointment(appointment_id)

        if appointment.status == CANCELLED:
            raise HTTPException(status_code=400, detail="Appointment is already cancelled")
        if appointment.status in (COMPLETED, NO_SHOW):
            raise HTTPException(status_code=400, detail="Cannot cancel completed or no-show appointments")

        old_status = appointment.status
        appointment.status = CANCELLED
        if data.reason:
            appointment.cancellation_reason = data.reason
        self.repo.add_history(
            self.db,
            appointment,
            ACTION_CANCELLED,
            actor=admin,
            reason=data.reason,
            old_status=old_status,
            new_status=CANCELLED,
        )
        self.db.commit()
        self.db.refresh(appointment)

        logger.info(f"🚫 Admin {admin.id} cancelled appointment {appointment.id}")
        return appointment

    # ------------------------------------------------------------------
    # History / notifications
    # ------------------------------------------------------------------

    def get_history(self, appointment_id: int) -> dict:
        appointment = self.get_appointment(appointment_id)
        entries = self.repo.get_history(self.db, appointment.id)
        return {
            "appointmentId": appointment.id,
            "history": [history_to_dict(e) for e in entries],
        }

    def _previous_date_time(self, appointment: Appointment) -> Optional[datetime]:
        for entry in self.repo.get_history(self.db, appointment.id):
            if entry.action == ACTION_RESCHEDULED and entry.old_date_time:
                return entry.old_date_time
        return None

    def build_notification(
        self, appointment: Appointment, data: NotifyRequest
    ) -> tuple[Callable[..., Awaitable[Any]], dict]:
        """Pick the email sender and its arguments for a manual notification"""
        custom_message = data.customMessage if data.includeCustomMessage else None
        common = {
            "to": appointment.user.email,
            "client_name": appointment.user.name,
            "service_title": appointment.service.title,
        }

        if data.type == "confirmation":
            return send_appointment_confirmation, {
                **common,
                "date_time": appointment.date_time,
                "duration": appointment.service.duration,
                "price": f"{appointment.service.price:.2f}",
                "custom_message": custom_message,
            }

        if data.type == "reschedule":
            previous = data.previousDateTime or self._previous_date_time(appointment)
            if previous is None:
                raise HTTPException(
                    status_code=400,
                    detail="previousDateTime is required for a reschedule notification",
                )
            return send_appointment_rescheduled, {
                **common,
                "old_date_time": previous,
                "new_date_time": appointment.date_time,
                "duration": appointment.service.duration,
                "fee_message": custom_message,
            }

        if data.type == "cancellation":
            return send_appointment_cancelled, {
                **common,
                "date_time": appointment.date_time,
                "policy_message": data.cancellationPolicy or data.reason or custom_message,
            }

        return send_appointment_reminder, {
            **common,
            "date_time": appointment.date_time,
            "duration": appointment.service.duration,
            "custom_message": custom_message,
        }

    def record_notification(self, appointment: Appointment, admin: User, notification_type: str) -> None:
        self.repo.add_history(
            self.db,
            appointment,
            ACTION_NOTIFIED,
            actor=admin,
            reason=f"{notification_type.capitalize()} notification sent",
        )
        self.db.commit()
        logger.info(f"📧 Admin {admin.id} sent {notification_type} notification for appointment {appointment.id}")
