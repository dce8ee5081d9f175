"""Appointment router - client booking, reschedule and cancellation endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...email_service import (
    send_appointment_cancelled,
    send_appointment_confirmation,
    send_appointment_rescheduled,
    send_appointment_status_update,
)
from ...models import CANCELLED, Appointment, User
from ...notifications import deliver
from ...shared.query_params import parse_date_param
from ..scheduling.clock import Clock, get_clock
from ..scheduling.policy import ReschedulePolicy
from .schemas import (
    AppointmentResponse,
    AppointmentUpdate,
    BookAppointmentRequest,
    CancelRequest,
    RescheduleRequest,
)
from .service import AppointmentService, appointment_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_appointment_service(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db, clock)


def _wants_email(appointment: Appointment) -> bool:
    return bool(appointment.user and appointment.user.email and appointment.user.email_notifications)


# ============================================================================
# AVAILABILITY
# ============================================================================


@router.get("/available")
async def get_available_slots(
    date: str = Query(..., description="YYYY-MM-DD (UTC calendar day)"),
    serviceId: Optional[int] = Query(None),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Every candidate slot for the day with its availability and reason"""
    target_date = parse_date_param(date, "date")
    if target_date is None:
        raise HTTPException(status_code=400, detail="date is required")
    return service.get_day_slots(target_date, serviceId)


# ============================================================================
# BOOKING
# ============================================================================


@router.post("/book", status_code=201)
async def book_appointment(
    data: BookAppointmentRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.book(current_user, data)

    if _wants_email(appointment):
        background_tasks.add_task(
            deliver,
            send_appointment_confirmation,
            to=appointment.user.email,
            client_name=appointment.user.name,
            service_title=appointment.service.title,
            date_time=appointment.date_time,
            duration=appointment.service.duration,
            price=f"{appointment.service.price:.2f}",
        )

    return {"message": "Appointment booked successfully", "appointment": appointment_to_dict(appointment)}


# ============================================================================
# CLIENT APPOINTMENTS
# ============================================================================


@router.get("")
async def list_appointments(
    upcoming: Optional[bool] = Query(None),
    status: Optional[str] = Query(None),
    serviceId: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """The signed-in client's appointments, newest first (soonest first when upcoming)"""
    if status == "all":
        status = None
    return service.list_appointments(current_user, upcoming, status, serviceId, page)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return appointment_to_dict(service.get_appointment(appointment_id, current_user))


@router.patch("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Status transition and/or notes update"""
    previous_status = service.get_appointment(appointment_id, current_user).status
    appointment = service.update_appointment(appointment_id, current_user, data)

    if appointment.status != previous_status and _wants_email(appointment):
        if appointment.status == CANCELLED:
            background_tasks.add_task(
                deliver,
                send_appointment_cancelled,
                to=appointment.user.email,
                client_name=appointment.user.name,
                service_title=appointment.service.title,
                date_time=appointment.date_time,
                policy_message=appointment.cancellation_reason,
            )
        else:
            background_tasks.add_task(
                deliver,
                send_appointment_status_update,
                to=appointment.user.email,
                client_name=appointment.user.name,
                service_title=appointment.service.title,
                date_time=appointment.date_time,
                duration=appointment.service.duration,
                status=appointment.status,
            )

    return appointment_to_dict(appointment)


@router.get("/{appointment_id}/policy")
async def get_appointment_policy(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Current reschedule fee and cancellation refund for the appointment"""
    return service.get_policies(appointment_id, current_user)


@router.put("/{appointment_id}/reschedule")
async def reschedule_appointment(
    appointment_id: int,
    data: RescheduleRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment, outcome = service.reschedule(appointment_id, current_user, data)
    policy = outcome.policy

    if _wants_email(appointment):
        background_tasks.add_task(
            deliver,
            send_appointment_rescheduled,
            to=appointment.user.email,
            client_name=appointment.user.name,
            service_title=appointment.service.title,
            old_date_time=outcome.old_date_time,
            new_date_time=appointment.date_time,
            duration=appointment.service.duration,
            fee_message=policy.message if policy.policy == ReschedulePolicy.FEE.value else None,
        )

    return {
        "message": "Appointment rescheduled successfully",
        "appointment": appointment_to_dict(appointment),
        "policy": policy.as_reschedule_dict(),
    }


@router.post("/{appointment_id}/cancel")
async def cancel_appointment(
    appointment_id: int,
    background_tasks: BackgroundTasks,
    data: Optional[CancelRequest] = None,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment, policy = service.cancel(appointment_id, current_user, data or CancelRequest())

    if _wants_email(appointment):
        background_tasks.add_task(
            deliver,
            send_appointment_cancelled,
            to=appointment.user.email,
            client_name=appointment.user.name,
            service_title=appointment.service.title,
            date_time=appointment.date_time,
            policy_message=policy.message,
            refund_amount=f"{policy.amount:.2f}",
        )

    return {
        "message": "Appointment cancelled successfully",
        "appointment": appointment_to_dict(appointment),
        "policy": policy.as_cancellation_dict(),
    }


__all__ = ["router"]
