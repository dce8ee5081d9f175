"""Client service - Admin directory of practice clients"""

import logging
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import CANCELLED, COMPLETED, User
from ..admin_appointments.service import history_to_dict
from ..contact.service import submission_to_dict
from ..scheduling.clock import Clock
from .repository import ClientRepository

logger = logging.getLogger(__name__)

CLIENT_PAGE_SIZE = 20
SORT_OPTIONS = ("name", "created", "appointments")


def client_to_dict(client: User, appointment_count: int = 0, last_visit=None) -> dict:
    return {
        "id": client.id,
        "name": client.name,
        "email": client.email,
        "phone": client.phone,
        "emailVerified": client.email_verified,
        "createdAt": client.created_at,
        "appointmentCount": appointment_count,
        "lastVisit": last_visit,
    }


class ClientService:
    """Service layer for the admin client directory"""

    def __init__(self, db: Session, clock: Optional[Clock] = None):
        self.db = db
        self.clock = clock or Clock()
        self.repo = ClientRepository()

    def list_clients(
        self, search: Optional[str] = None, sort_by: str = "name", page: int = 1, limit: int = CLIENT_PAGE_SIZE
    ) -> dict:
        if sort_by not in SORT_OPTIONS:
            sort_by = "name"
        clients, total = self.repo.list_clients(
            self.db, search.strip() if search else None, sort_by, page, limit
        )
        stats = self.repo.appointment_stats(self.db, [c.id for c in clients])

        return {
            "clients": [client_to_dict(c, *stats.get(c.id, (0, None))) for c in clients],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": (total + limit - 1) // limit,
                "hasNext": page * limit < total,
                "hasPrev": page > 1,
            },
        }

    def get_client_detail(self, client_id: int) -> dict:
        client = self.repo.get_client(self.db, client_id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")

        now = self.clock.now()
        appointments = self.repo.get_client_appointments(self.db, client.id)
        submissions = self.repo.get_contact_submissions(self.db, client.id)

        completed = [a for a in appointments if a.status == COMPLETED]
        total_spent = sum((Decimal(a.service.price) for a in completed), Decimal("0"))
        # Appointments are ordered newest first
        last_visit = completed[0].date_time if completed else None

        history = []
        for appointment in appointments:
            for entry in appointment.history:
                history.append(
                    {
                        **history_to_dict(entry),
                        "appointmentId": appointment.id,
                        "serviceTitle": appointment.service.title,
                        "appointmentDateTime": appointment.date_time,
                    }
                )
        history.sort(key=lambda h: (h["createdAt"] is not None, h["createdAt"], h["id"]), reverse=True)

        logger.info(f"👤 Loaded client {client.id}: {len(appointments)} appointments, {len(submissions)} messages")
        return {
            "client": {
                **client_to_dict(client, len(appointments), last_visit),
                "emergencyContactName": client.emergency_contact_name,
                "emergencyContactPhone": client.emergency_contact_phone,
                "emailNotifications": client.email_notifications,
                "smsReminders": client.sms_reminders,
                "reminderTime": client.reminder_time,
            },
            "stats": {
                "totalAppointments": len(appointments),
                "completedAppointments": len(completed),
                "cancelledAppointments": sum(1 for a in appointments if a.status == CANCELLED),
                "upcomingAppointments": sum(
                    1 for a in appointments if a.status != CANCELLED and a.date_time > now
                ),
                "totalSpent": float(total_spent),
                "lastVisit": last_visit,
            },
            "appointments": [
                {
                    "id": a.id,
                    "dateTime": a.date_time,
                    "status": a.status,
                    "notes": a.notes,
                    "cancellationReason": a.cancellation_reason,
                    "service": {
                        "id": a.service.id,
                        "title": a.service.title,
                        "duration": a.service.duration,
                        "price": float(a.service.price),
                    },
                }
                for a in appointments
            ],
            "appointmentHistory": history,
            "contactSubmissions": [submission_to_dict(s) for s in submissions],
        }
