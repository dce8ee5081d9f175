"""Client repository - Database operations for the admin client directory"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload, selectinload

from ...models import COMPLETED, ROLE_CLIENT, Appointment, ContactSubmission, User


class ClientRepository:
    """Repository for client database operations"""

    @staticmethod
    def list_clients(
        db: Session,
        search: Optional[str] = None,
        sort_by: str = "name",
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[User], int]:
        query = db.query(User).filter(User.role == ROLE_CLIENT)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))

        total = query.count()

        if sort_by == "created":
            query = query.order_by(User.created_at.desc(), User.id.desc())
        elif sort_by == "appointments":
            counts = (
                db.query(Appointment.user_id, func.count(Appointment.id).label("appointment_count"))
                .group_by(Appointment.user_id)
                .subquery()
            )
            query = query.outerjoin(counts, counts.c.user_id == User.id).order_by(
                func.coalesce(counts.c.appointment_count, 0).desc(), User.name.asc()
            )
        else:
            query = query.order_by(User.name.asc())

        items = query.offset((page - 1) * page_size).limit(page_size).all()
        return items, total

    @staticmethod
    def appointment_stats(db: Session, user_ids: list[int]) -> dict[int, tuple[int, Optional[datetime]]]:
        """{user_id: (appointment_count, last completed visit)}"""
        if not user_ids:
            return {}
        counts = dict(
            db.query(Appointment.user_id, func.count(Appointment.id))
            .filter(Appointment.user_id.in_(user_ids))
            .group_by(Appointment.user_id)
            .all()
        )
        last_visits = dict(
            db.query(Appointment.user_id, func.max(Appointment.date_time))
            .filter(Appointment.user_id.in_(user_ids), Appointment.status == COMPLETED)
            .group_by(Appointment.user_id)
            .all()
        )
        return {uid: (counts.get(uid, 0), last_visits.get(uid)) for uid in user_ids}

    @staticmethod
    def get_client(db: Session, client_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == client_id, User.role == ROLE_CLIENT).first()

    @staticmethod
    def get_client_appointments(db: Session, client_id: int) -> list[Appointment]:
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.service), selectinload(Appointment.history))
            .filter(Appointment.user_id == client_id)
            .order_by(Appointment.date_time.desc())
            .all()
        )

    @staticmethod
    def get_contact_submissions(db: Session, client_id: int) -> list[ContactSubmission]:
        return (
            db.query(ContactSubmission)
            .filter(ContactSubmission.user_id == client_id)
            .order_by(ContactSubmission.created_at.desc(), ContactSubmission.id.desc())
            .all()
        )
