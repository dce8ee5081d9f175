"""Admin appointment router - dashboard listing, calendar, conflicts and manual changes"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin
from ...database import get_db
from ...email_service import send_appointment_cancelled
from ...models import User
from ...notifications import deliver
from ...shared.query_params import parse_datetime_param
from ..appointments.service import appointment_to_dict
from ..scheduling.clock import Clock, get_clock
from .schemas import (
    AdminCancelRequest,
    AdminRescheduleRequest,
    AppointmentHistoryResponse,
    ConflictCheckRequest,
    NotifyRequest,
)
from .service import ADMIN_PAGE_SIZE, AdminAppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/appointments", tags=["Admin Appointments"])


def get_admin_appointment_service(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> AdminAppointmentService:
    """Dependency injection for AdminAppointmentService"""
    return AdminAppointmentService(db, clock)


@router.get("")
async def list_appointments(
    status: Optional[str] = Query(None),
    startDate: Optional[str] = Query(None),
    endDate: Optional[str] = Query(None),
    serviceId: Optional[int] = Query(None),
    clientId: Optional[int] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(ADMIN_PAGE_SIZE, ge=1, le=100),
    current_admin: User = Depends(get_current_admin),
    service: AdminAppointmentService = Depends(get_admin_appointment_service),
):
    return service.list_appointments(
        status=status,
        start=parse_datetime_param(startDate, "startDate"),
        end=parse_datetime_param(endDate, "endDate"),
        service_id=serviceId,
        client_id=clientId,
        search=search,
        page=page,
        limit=limit,
    )


@router.get("/calendar")
async def get_calendar(
    start: Optional[str] = Query(None),
    end: Optional[str] = Query(None),
    current_admin: User = Depends(get_current_admin),
    service: AdminAppointmentService = Depends(get_admin_appointment_service),
):
    return service.get_calendar(parse_datetime_param(start, "start"), parse_datetime_param(end, "end"))


@router.post("/conflicts")
async def check_conflicts(
    data: ConflictCheckRequest,
    current_admin: User = Depends(get_current_admin),
    service: AdminAppointmentService = Depends(get_admin_appointment_service),
):
    """Explain why a start time is unavailable and suggest nearby free slots"""
    return service.detect_conflicts(data)


@router.post("/{appointment_id}/reschedule")
async def reschedule_appointment(
    appointment_id: int,
    data: AdminRescheduleRequest,
    current_admin: User = Depends(get_current_admin),
    service: AdminAppointmentService = Depends(get_admin_appointment_service),
):
    appointment = service.reschedule(appointment_id, current_admin, data)
    return {"message": "Appointment rescheduled successfully", "appointment": appointment_to_dict(appointment)}


@router.post("/{appointment_id}/cancel")
async def cancel_appointment(
    appointment_id: int,
    background_tasks: BackgroundTasks,
    data: Optional[AdminCancelRequest] = None,
    current_admin: User = Depends(get_current_admin),
    service: AdminAppointmentService = Depends(get_admin_appointment_service),
):
    data = data or AdminCancelRequest()
    appointment = service.cancel(appointment_id, current_admin, data)

    if data.sendNotification and appointment.user and appointment.user.email:
        background_tasks.add_task(
            deliver,
            send_appointment_cancelled,
            to=appointment.user.email,
            client_name=appointment.user.name,
            service_title=appointment.service.title,
            date_time=appointment.date_time,
            policy_message=data.cancellationPolicy or data.reason,
        )

    return {
        "message": "Appointment cancelled successfully",
        "appointment": appointment_to_dict(appointment),
        "notificationQueued": bool(data.sendNotification),
    }


@router.get("/{appointment_id}/history", response_model=AppointmentHistoryResponse)
async def get_appointment_history(
    appointment_id: int,
    current_admin: User = Depends(get_current_admin),
    service: AdminAppointmentService = Depends(get_admin_appointment_service),
):
    return service.get_history(appointment_id)


@router.post("/{appointment_id}/notify")
async def notify_client(
    appointment_id: int,
    data: NotifyRequest,
    current_admin: User = Depends(get_current_admin),
    service: AdminAppointmentService = Depends(get_admin_appointment_service),
):
    """Send a confirmation, reschedule, cancellation or reminder email right away"""
    appointment = service.get_appointment(appointment_id)
    sender, kwargs = service.build_notification(appointment, data)

    try:
        result = await sender(**kwargs)
    except Exception as e:
        logger.error(f"❌ {data.type} notification for appointment {appointment_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to send notification") from e

    service.record_notification(appointment, current_admin, data.type)
    return {
        "success": True,
        "notificationType": data.type,
        "messageId": result.get("id") if isinstance(result, dict) else None,
        "message": f"{data.type.capitalize()} notification sent successfully",
    }


__all__ = ["router"]
