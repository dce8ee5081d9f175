"""Service catalog router - public list and admin management"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_admin
from ...database import get_db
from ...models import User
from .schemas import ServiceCreate, ServiceResponse, ServiceUpdate
from .service import CatalogService, service_to_dict

router = APIRouter(prefix="/services", tags=["Services"])
admin_router = APIRouter(prefix="/admin/services", tags=["Services"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


@router.get("", response_model=list[ServiceResponse])
async def list_services(service: CatalogService = Depends(get_catalog_service)):
    """Active services offered by the practice"""
    return service.list_public()


# ============================================================================
# ADMIN
# ============================================================================


@admin_router.get("", response_model=list[ServiceResponse])
async def admin_list_services(
    current_admin: User = Depends(get_current_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.list_all()


@admin_router.post("", response_model=ServiceResponse, status_code=201)
async def create_service(
    data: ServiceCreate,
    current_admin: User = Depends(get_current_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return service_to_dict(service.create_service(data), 0)


@admin_router.patch("/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: int,
    data: ServiceUpdate,
    current_admin: User = Depends(get_current_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return service_to_dict(service.update_service(service_id, data))


@admin_router.delete("/{service_id}")
async def delete_service(
    service_id: int,
    current_admin: User = Depends(get_current_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    """Delete a service; one with appointments is deactivated instead"""
    return service.delete_service(service_id)


__all__ = ["router", "admin_router"]
