"""Service catalog repository - Database operations for services"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Appointment, Service


class ServiceRepository:
    """Repository for service database operations"""

    @staticmethod
    def list_services(db: Session, active_only: bool = True) -> list[Service]:
        query = db.query(Service)
        if active_only:
            query = query.filter(Service.is_active.is_(True))
        return query.order_by(Service.title).all()

    @staticmethod
    def get_service(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def appointment_counts(db: Session) -> dict[int, int]:
        """Number of appointments per service id"""
        rows = (
            db.query(Appointment.service_id, func.count(Appointment.id))
            .group_by(Appointment.service_id)
            .all()
        )
        return {service_id: count for service_id, count in rows}

    @staticmethod
    def create_service(db: Session, **service_data) -> Service:
        service = Service(**service_data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def update_service(db: Session, service: Service, **updates) -> Service:
        """Update a service with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(service, key):
                setattr(service, key, value)

        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def delete_service(db: Session, service: Service) -> None:
        db.delete(service)
        db.commit()
