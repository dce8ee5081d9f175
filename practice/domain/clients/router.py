"""Admin client router - client directory and client detail"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin
from ...database import get_db
from ...models import User
from ..scheduling.clock import Clock, get_clock
from .service import CLIENT_PAGE_SIZE, ClientService

router = APIRouter(prefix="/admin/clients", tags=["Admin Clients"])


def get_client_service(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> ClientService:
    """Dependency injection for ClientService"""
    return ClientService(db, clock)


@router.get("")
async def list_clients(
    search: Optional[str] = Query(None, max_length=100),
    sortBy: str = Query("name"),
    page: int = Query(1, ge=1),
    limit: int = Query(CLIENT_PAGE_SIZE, ge=1, le=100),
    current_admin: User = Depends(get_current_admin),
    service: ClientService = Depends(get_client_service),
):
    """Clients with appointment counts and their last completed visit"""
    return service.list_clients(search, sortBy, page, limit)


@router.get("/{client_id}")
async def get_client(
    client_id: int,
    current_admin: User = Depends(get_current_admin),
    service: ClientService = Depends(get_client_service),
):
    return service.get_client_detail(client_id)


__all__ = ["router"]
