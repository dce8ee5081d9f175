"""Analytics repository - Aggregate queries for the admin dashboard"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import ROLE_CLIENT, Appointment, ContactSubmission, Service, User


class AnalyticsRepository:
    """Read-only aggregate queries"""

    @staticmethod
    def count_clients(db: Session) -> int:
        return db.query(User).filter(User.role == ROLE_CLIENT).count()

    @staticmethod
    def count_appointments(
        db: Session,
        status: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        end_inclusive: bool = False,
    ) -> int:
        query = db.query(Appointment)
        if status:
            query = query.filter(Appointment.status == status)
        if start is not None:
            query = query.filter(Appointment.date_time >= start)
        if end is not None:
            query = query.filter(Appointment.date_time <= end if end_inclusive else Appointment.date_time < end)
        return query.count()

    @staticmethod
    def count_unread_messages(db: Session) -> int:
        return db.query(ContactSubmission).filter(ContactSubmission.is_read.is_(False)).count()

    @staticmethod
    def revenue_between(db: Session, status: str, start: datetime, end: datetime) -> Decimal:
        """Sum of service prices for appointments in [start, end) with the given status"""
        total = (
            db.query(func.coalesce(func.sum(Service.price), 0))
            .select_from(Appointment)
            .join(Service, Appointment.service_id == Service.id)
            .filter(
                Appointment.status == status,
                Appointment.date_time >= start,
                Appointment.date_time < end,
            )
            .scalar()
        )
        return Decimal(str(total or 0))

    @staticmethod
    def appointments_with_first_visit(db: Session, start: datetime, end: datetime) -> list[tuple[int, datetime]]:
        """For each appointment in [start, end): its client's earliest appointment start"""
        first_visits = (
            db.query(Appointment.user_id, func.min(Appointment.date_time).label("first_visit"))
            .group_by(Appointment.user_id)
            .subquery()
        )
        return (
            db.query(Appointment.id, first_visits.c.first_visit)
            .join(first_visits, first_visits.c.user_id == Appointment.user_id)
            .filter(Appointment.date_time >= start, Appointment.date_time < end)
            .all()
        )
