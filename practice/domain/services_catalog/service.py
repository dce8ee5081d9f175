"""Service catalog service - Business logic for the services the practice offers"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Service
from .repository import ServiceRepository
from .schemas import ServiceCreate, ServiceUpdate

logger = logging.getLogger(__name__)


def service_to_dict(service: Service, appointment_count=None) -> dict:
    return {
        "id": service.id,
        "title": service.title,
        "description": service.description,
        "duration": service.duration,
        "price": float(service.price),
        "features": service.features or [],
        "isActive": service.is_active,
        "appointmentCount": appointment_count,
        "createdAt": service.created_at,
        "updatedAt": service.updated_at,
    }


class CatalogService:
    """Service layer for the service catalog"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ServiceRepository()

    def list_public(self) -> list[dict]:
        return [service_to_dict(s) for s in self.repo.list_services(self.db, active_only=True)]

    def list_all(self) -> list[dict]:
        counts = self.repo.appointment_counts(self.db)
        return [
            service_to_dict(s, counts.get(s.id, 0))
            for s in self.repo.list_services(self.db, active_only=False)
        ]

    def get_service(self, service_id: int) -> Service:
        service = self.repo.get_service(self.db, service_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")
        return service

    def create_service(self, data: ServiceCreate) -> Service:
        service = self.repo.create_service(
            self.db,
            title=data.title,
            description=data.description,
            duration=data.duration,
            price=data.price,
            features=data.features,
            is_active=data.isActive,
        )
        logger.info(f"✅ Service created: {service.id} ({service.title})")
        return service

    def update_service(self, service_id: int, data: ServiceUpdate) -> Service:
        service = self.get_service(service_id)

        updates = {
            "title": data.title,
            "description": data.description,
            "duration": data.duration,
            "price": data.price,
            "features": data.features,
        }
        if data.isActive is not None:
            # Explicit assignment so the service can be deactivated
            service.is_active = data.isActive

        service = self.repo.update_service(self.db, service, **updates)
        logger.info(f"✅ Service updated: {service.id}")
        return service

    def delete_service(self, service_id: int) -> dict:
        """Hard delete, or deactivate when existing appointments still reference the service"""
        service = self.get_service(service_id)
        appointment_count = self.repo.appointment_counts(self.db).get(service.id, 0)

        if appointment_count > 0:
            service.is_active = False
            self.db.commit()
            logger.info(f"⏸️ Service {service.id} deactivated ({appointment_count} appointments reference it)")
            return {
                "message": f'Service "{service.title}" has {appointment_count} associated appointments and was deactivated instead of deleted',
                "deactivated": True,
            }

        title = service.title
        self.repo.delete_service(self.db, service)
        logger.info(f"🗑️ Service {service_id} deleted")
        return {"message": f'Service "{title}" deleted successfully', "deactivated": False}
