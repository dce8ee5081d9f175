"""Scheduling repository - Database reads and writes for availability data"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import ACTIVE_APPOINTMENT_STATUSES, Appointment, Availability, BlockedSlot, Service


class SchedulingRepository:
    """Repository for availability windows, blocked slots and the bookings the engine reads"""

    # ------------------------------------------------------------------
    # Engine reads
    # ------------------------------------------------------------------

    @staticmethod
    def get_active_service(db: Session, service_id: int) -> Optional[Service]:
        return (
            db.query(Service)
            .filter(Service.id == service_id, Service.is_active.is_(True))
            .first()
        )

    @staticmethod
    def get_longest_service_duration(db: Session) -> Optional[int]:
        """Inactive services count too, their bookings still occupy the calendar"""
        return db.query(func.max(Service.duration)).scalar()

    @staticmethod
    def get_active_windows_for_day(db: Session, day_of_week: int) -> list[Availability]:
        return (
            db.query(Availability)
            .filter(Availability.day_of_week == day_of_week, Availability.is_active.is_(True))
            .order_by(Availability.start_time)
            .all()
        )

    @staticmethod
    def get_active_appointments_between(
        db: Session,
        start: datetime,
        end: datetime,
        exclude_appointment_id: Optional[int] = None,
    ) -> list[Appointment]:
        """PENDING/CONFIRMED appointments starting in [start, end)"""
        query = (
            db.query(Appointment)
            .options(joinedload(Appointment.service), joinedload(Appointment.user))
            .filter(
                Appointment.date_time >= start,
                Appointment.date_time < end,
                Appointment.status.in_(ACTIVE_APPOINTMENT_STATUSES),
            )
        )
        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)
        return query.order_by(Appointment.date_time).all()

    @staticmethod
    def get_blocked_slots_between(db: Session, start: datetime, end: datetime) -> list[BlockedSlot]:
        """Blocked slots starting in [start, end)"""
        return (
            db.query(BlockedSlot)
            .filter(BlockedSlot.date_time >= start, BlockedSlot.date_time < end)
            .order_by(BlockedSlot.date_time)
            .all()
        )

    # ------------------------------------------------------------------
    # Availability windows
    # ------------------------------------------------------------------

    @staticmethod
    def list_windows(
        db: Session, day_of_week: Optional[int] = None, active_only: bool = False
    ) -> list[Availability]:
        query = db.query(Availability)
        if day_of_week is not None:
            query = query.filter(Availability.day_of_week == day_of_week)
        if active_only:
            query = query.filter(Availability.is_active.is_(True))
        return query.order_by(Availability.day_of_week, Availability.start_time).all()

    @staticmethod
    def get_window(db: Session, window_id: int) -> Optional[Availability]:
        return db.query(Availability).filter(Availability.id == window_id).first()

    @staticmethod
    def create_window(db: Session, **window_data) -> Availability:
        window = Availability(**window_data)
        db.add(window)
        db.commit()
        db.refresh(window)
        return window

    @staticmethod
    def update_window(db: Session, window: Availability, **updates) -> Availability:
        for key, value in updates.items():
            if value is not None and hasattr(window, key):
                setattr(window, key, value)
        db.commit()
        db.refresh(window)
        return window

    @staticmethod
    def delete_window(db: Session, window: Availability) -> None:
        db.delete(window)
        db.commit()

    # ------------------------------------------------------------------
    # Blocked slots
    # ------------------------------------------------------------------

    @staticmethod
    def list_blocked_slots(
        db: Session, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> list[BlockedSlot]:
        query = db.query(BlockedSlot)
        if start is not None:
            query = query.filter(BlockedSlot.date_time >= start)
        if end is not None:
            query = query.filter(BlockedSlot.date_time < end)
        return query.order_by(BlockedSlot.date_time).all()

    @staticmethod
    def get_blocked_slot(db: Session, slot_id: int) -> Optional[BlockedSlot]:
        return db.query(BlockedSlot).filter(BlockedSlot.id == slot_id).first()

    @staticmethod
    def create_blocked_slot(db: Session, **slot_data) -> BlockedSlot:
        slot = BlockedSlot(**slot_data)
        db.add(slot)
        db.commit()
        db.refresh(slot)
        return slot

    @staticmethod
    def delete_blocked_slot(db: Session, slot: BlockedSlot) -> None:
        db.delete(slot)
        db.commit()
