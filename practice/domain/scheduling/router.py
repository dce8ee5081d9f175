"""Availability router - weekly availability windows and blocked slots"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin
from ...database import get_db
from ...models import User
from ...shared.query_params import parse_datetime_param
from .schemas import (
    AvailabilityWindowCreate,
    AvailabilityWindowResponse,
    AvailabilityWindowUpdate,
    BlockedSlotCreate,
    BlockedSlotResponse,
    BulkAvailabilityUpdate,
)
from .service import AvailabilityService, blocked_slot_to_dict, window_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/availability", tags=["Availability"])
blocked_slots_router = APIRouter(prefix="/admin/blocked-slots", tags=["Availability"])


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(db)


# ============================================================================
# WEEKLY WINDOWS
# ============================================================================


@router.get("")
async def list_availability(
    dayOfWeek: Optional[int] = Query(None),
    activeOnly: bool = Query(False),
    service: AvailabilityService = Depends(get_availability_service),
):
    """List availability windows, also grouped by day name"""
    return service.list_windows(dayOfWeek, activeOnly)


@router.post("", response_model=AvailabilityWindowResponse, status_code=201)
async def create_availability(
    data: AvailabilityWindowCreate,
    current_admin: User = Depends(get_current_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Create an availability window (rejects overlaps with active windows on the same day)"""
    return window_to_dict(service.create_window(data, current_admin.id))


@router.put("")
async def bulk_update_availability(
    data: BulkAvailabilityUpdate,
    current_admin: User = Depends(get_current_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    return service.bulk_update(data)


@router.patch("/{window_id}", response_model=AvailabilityWindowResponse)
async def update_availability(
    window_id: int,
    data: AvailabilityWindowUpdate,
    current_admin: User = Depends(get_current_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    return window_to_dict(service.update_window(window_id, data))


@router.delete("/{window_id}")
async def delete_availability(
    window_id: int,
    current_admin: User = Depends(get_current_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    return service.delete_window(window_id)


# ============================================================================
# BLOCKED SLOTS
# ============================================================================


@blocked_slots_router.get("", response_model=list[BlockedSlotResponse])
async def list_blocked_slots(
    start: Optional[str] = Query(None),
    end: Optional[str] = Query(None),
    current_admin: User = Depends(get_current_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    start_dt = parse_datetime_param(start, "start")
    end_dt = parse_datetime_param(end, "end")
    return [blocked_slot_to_dict(s) for s in service.list_blocked_slots(start_dt, end_dt)]


@blocked_slots_router.post("", response_model=BlockedSlotResponse, status_code=201)
async def create_blocked_slot(
    data: BlockedSlotCreate,
    current_admin: User = Depends(get_current_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    return blocked_slot_to_dict(service.create_blocked_slot(data, current_admin.id))


@blocked_slots_router.delete("/{slot_id}")
async def delete_blocked_slot(
    slot_id: int,
    current_admin: User = Depends(get_current_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    return service.delete_blocked_slot(slot_id)


__all__ = ["router", "blocked_slots_router"]
