"""Appointment repository - Database operations for appointments and their history"""

from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...models import ACTIVE_APPOINTMENT_STATUSES, Appointment, AppointmentHistory, User


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_appointment(db: Session, appointment_id: int) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.service), joinedload(Appointment.user))
            .filter(Appointment.id == appointment_id)
            .first()
        )

    @staticmethod
    def list_for_user(
        db: Session,
        user_id: int,
        now: datetime,
        upcoming: Optional[bool] = None,
        status: Optional[str] = None,
        service_id: Optional[int] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> tuple[list[Appointment], int]:
        """Paginated appointments for a client. Returns (items, total_count)"""
        query = (
            db.query(Appointment)
            .options(joinedload(Appointment.service), joinedload(Appointment.user))
            .filter(Appointment.user_id == user_id)
        )

        if upcoming is True:
            query = query.filter(
                Appointment.date_time >= now,
                Appointment.status.in_(ACTIVE_APPOINTMENT_STATUSES),
            )
        elif upcoming is False:
            query = query.filter(Appointment.date_time < now)

        if status:
            query = query.filter(Appointment.status == status)
        if service_id is not None:
            query = query.filter(Appointment.service_id == service_id)

        total = query.count()
        ordering = Appointment.date_time.asc() if upcoming else Appointment.date_time.desc()
        items = query.order_by(ordering).offset((page - 1) * page_size).limit(page_size).all()
        return items, total

    @staticmethod
    def list_all(
        db: Session,
        status: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        service_id: Optional[int] = None,
        client_id: Optional[int] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Appointment], int]:
        """Practice-wide appointment list for the admin dashboard"""
        query = db.query(Appointment).options(joinedload(Appointment.service), joinedload(Appointment.user))

        if status:
            query = query.filter(Appointment.status == status)
        if start is not None:
            query = query.filter(Appointment.date_time >= start)
        if end is not None:
            query = query.filter(Appointment.date_time <= end)
        if service_id is not None:
            query = query.filter(Appointment.service_id == service_id)
        if client_id is not None:
            query = query.filter(Appointment.user_id == client_id)
        if search:
            pattern = f"%{search}%"
            query = query.join(User, Appointment.user_id == User.id).filter(
                or_(User.name.ilike(pattern), User.email.ilike(pattern))
            )

        total = query.count()
        items = (
            query.order_by(Appointment.date_time.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return items, total

    @staticmethod
    def list_between(db: Session, start: Optional[datetime], end: Optional[datetime]) -> list[Appointment]:
        query = db.query(Appointment).options(joinedload(Appointment.service), joinedload(Appointment.user))
        if start is not None:
            query = query.filter(Appointment.date_time >= start)
        if end is not None:
            query = query.filter(Appointment.date_time <= end)
        return query.order_by(Appointment.date_time.asc()).all()

    @staticmethod
    def get_by_ids(db: Session, appointment_ids: list[int]) -> list[Appointment]:
        if not appointment_ids:
            return []
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.service), joinedload(Appointment.user))
            .filter(Appointment.id.in_(appointment_ids))
            .order_by(Appointment.date_time.asc())
            .all()
        )

    @staticmethod
    def add_history(
        db: Session,
        appointment: Appointment,
        action: str,
        actor=None,
        reason: Optional[str] = None,
        old_status: Optional[str] = None,
        new_status: Optional[str] = None,
        old_date_time: Optional[datetime] = None,
        new_date_time: Optional[datetime] = None,
    ) -> AppointmentHistory:
        """Stage a history row; committed together with the appointment change"""
        entry = AppointmentHistory(
            appointment=appointment,
            action=action,
            reason=reason,
            old_status=old_status,
            new_status=new_status,
            old_date_time=old_date_time,
            new_date_time=new_date_time,
            actor_id=actor.id if actor is not None else None,
            actor_name=actor.name if actor is not None else None,
        )
        db.add(entry)
        return entry

    @staticmethod
    def get_history(db: Session, appointment_id: int) -> list[AppointmentHistory]:
        return (
            db.query(AppointmentHistory)
            .filter(AppointmentHistory.appointment_id == appointment_id)
            .order_by(AppointmentHistory.created_at.desc(), AppointmentHistory.id.desc())
            .all()
        )
