"""Availability service - Business logic for weekly windows and blocked slots"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Availability, BlockedSlot
from .repository import SchedulingRepository
from .rules import DAY_NAMES
from .schemas import (
    AvailabilityWindowCreate,
    AvailabilityWindowUpdate,
    BlockedSlotCreate,
    BulkAvailabilityUpdate,
)
from .time_slots import time_string_to_minutes

logger = logging.getLogger(__name__)


def window_to_dict(window: Availability) -> dict:
    return {
        "id": window.id,
        "dayOfWeek": window.day_of_week,
        "dayName": DAY_NAMES[window.day_of_week],
        "startTime": window.start_time,
        "endTime": window.end_time,
        "isActive": window.is_active,
        "createdAt": window.created_at,
        "updatedAt": window.updated_at,
    }


def blocked_slot_to_dict(slot: BlockedSlot) -> dict:
    return {
        "id": slot.id,
        "dateTime": slot.date_time,
        "duration": slot.duration,
        "reason": slot.reason,
        "createdAt": slot.created_at,
    }


class AvailabilityService:
    """Service layer for availability administration"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository()

    # ------------------------------------------------------------------
    # Weekly windows
    # ------------------------------------------------------------------

    def list_windows(self, day_of_week: Optional[int] = None, active_only: bool = False) -> dict:
        # Out-of-range filters are ignored rather than rejected
        if day_of_week is not None and not 0 <= day_of_week <= 6:
            day_of_week = None

        windows = self.repo.list_windows(self.db, day_of_week, active_only)

        grouped: dict[str, list[dict]] = {}
        for window in windows:
            entry = window_to_dict(window)
            grouped.setdefault(entry["dayName"], []).append(entry)

        logger.info(f"📅 Retrieved {len(windows)} availability windows (day={day_of_week}, active_only={active_only})")
        return {
            "windows": [window_to_dict(w) for w in windows],
            "grouped": grouped,
            "total": len(windows),
        }

    def _find_overlap(
        self, day_of_week: int, start_time: str, end_time: str, exclude_id: Optional[int] = None
    ) -> Optional[Availability]:
        start = time_string_to_minutes(start_time)
        end = time_string_to_minutes(end_time)
        for window in self.repo.list_windows(self.db, day_of_week, active_only=True):
            if window.id == exclude_id:
                continue
            if start < time_string_to_minutes(window.end_time) and time_string_to_minutes(window.start_time) < end:
                return window
        return None

    def get_window(self, window_id: int) -> Availability:
        window = self.repo.get_window(self.db, window_id)
        if not window:
            raise HTTPException(status_code=404, detail="Availability window not found")
        return window

    def create_window(self, data: AvailabilityWindowCreate, admin_id: int) -> Availability:
        if data.isActive and self._find_overlap(data.dayOfWeek, data.startTime, data.endTime):
            raise HTTPException(
                status_code=400,
                detail="New availability window overlaps with existing active window",
            )

        window = self.repo.create_window(
            self.db,
            day_of_week=data.dayOfWeek,
            start_time=data.startTime,
            end_time=data.endTime,
            is_active=data.isActive,
        )
        logger.info(
            f"✅ Availability window {window.id} created by admin {admin_id}: "
            f"{DAY_NAMES[window.day_of_week]} {window.start_time}-{window.end_time}"
        )
        return window

    def _merged_update(self, window: Availability, data: AvailabilityWindowUpdate) -> dict:
        merged = {
            "day_of_week": data.dayOfWeek if data.dayOfWeek is not None else window.day_of_week,
            "start_time": data.startTime or window.start_time,
            "end_time": data.endTime or window.end_time,
            "is_active": data.isActive if data.isActive is not None else window.is_active,
        }
        if time_string_to_minutes(merged["end_time"]) <= time_string_to_minutes(merged["start_time"]):
            raise HTTPException(status_code=400, detail="End time must be after start time")
        return merged

    def update_window(self, window_id: int, data: AvailabilityWindowUpdate) -> Availability:
        window = self.get_window(window_id)
        merged = self._merged_update(window, data)

        if merged["is_active"] and self._find_overlap(
            merged["day_of_week"], merged["start_time"], merged["end_time"], exclude_id=window.id
        ):
            raise HTTPException(
                status_code=400,
                detail="Updated availability window would overlap with existing active window",
            )

        # is_active may legitimately be set to False, so assign directly
        for key, value in merged.items():
            setattr(window, key, value)
        self.db.commit()
        self.db.refresh(window)
        logger.info(f"✅ Availability window {window.id} updated")
        return window

    def bulk_update(self, data: BulkAvailabilityUpdate) -> dict:
        """Apply every create/update in one transaction"""
        created: list[Availability] = []
        updated: list[Availability] = []

        try:
            for item in data.windows:
                if item.id is not None:
                    window = self.get_window(item.id)
                    for key, value in self._merged_update(window, item).items():
                        setattr(window, key, value)
                    updated.append(window)
                    continue

                if item.dayOfWeek is None or not item.startTime or not item.endTime:
                    raise HTTPException(
                        status_code=400,
                        detail="dayOfWeek, startTime and endTime are required for new windows",
                    )
                if time_string_to_minutes(item.endTime) <= time_string_to_minutes(item.startTime):
                    raise HTTPException(status_code=400, detail="End time must be after start time")
                window = Availability(
                    day_of_week=item.dayOfWeek,
                    start_time=item.startTime,
                    end_time=item.endTime,
                    is_active=True if item.isActive is None else item.isActive,
                )
                self.db.add(window)
                created.append(window)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        for window in created + updated:
            self.db.refresh(window)

        logger.info(f"✅ Bulk availability update: {len(created)} created, {len(updated)} updated")
        return {
            "created": [window_to_dict(w) for w in created],
            "updated": [window_to_dict(w) for w in updated],
        }

    def delete_window(self, window_id: int) -> dict:
        window = self.get_window(window_id)
        self.repo.delete_window(self.db, window)
        logger.info(f"🗑️ Availability window {window_id} deleted")
        return {"message": "Availability window deleted successfully"}

    # ------------------------------------------------------------------
    # Blocked slots
    # ------------------------------------------------------------------

    def list_blocked_slots(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> list[BlockedSlot]:
        return self.repo.list_blocked_slots(self.db, start, end)

    def create_blocked_slot(self, data: BlockedSlotCreate, admin_id: int) -> BlockedSlot:
        slot = self.repo.create_blocked_slot(
            self.db,
            date_time=data.dateTime,
            duration=data.duration,
            reason=data.reason.strip() if data.reason else None,
        )
        logger.info(f"🚧 Blocked slot {slot.id} created by admin {admin_id}: {slot.date_time.isoformat()} ({slot.duration}m)")
        return slot

    def delete_blocked_slot(self, slot_id: int) -> dict:
        slot = self.repo.get_blocked_slot(self.db, slot_id)
        if not slot:
            raise HTTPException(status_code=404, detail="Blocked slot not found")
        self.repo.delete_blocked_slot(self.db, slot)
        return {"message": "Blocked slot deleted successfully"}
