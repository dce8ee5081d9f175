"""Scheduling schemas - Pydantic models for availability windows and blocked slots"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.validators import validate_time_string
from .clock import to_naive_utc
from .rules import DEFAULT_RULES
from .time_slots import time_string_to_minutes

MINUTES_PER_DAY = 24 * 60


class AvailabilityWindowCreate(BaseModel):
    """Schema for creating a weekly availability window"""

    dayOfWeek: int = Field(ge=0, le=6)
    startTime: str
    endTime: str
    isActive: bool = True

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_time(cls, v):
        return validate_time_string(v)

    @model_validator(mode="after")
    def check_order(self):
        if time_string_to_minutes(self.endTime) <= time_string_to_minutes(self.startTime):
            raise ValueError("End time must be after start time")
        return self


class AvailabilityWindowUpdate(BaseModel):
    dayOfWeek: Optional[int] = Field(default=None, ge=0, le=6)
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    isActive: Optional[bool] = None

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_time(cls, v):
        if v is None:
            return v
        return validate_time_string(v)


class BulkWindowItem(AvailabilityWindowUpdate):
    """Entry in a bulk update: with an id it updates, without one it creates"""

    id: Optional[int] = None


class BulkAvailabilityUpdate(BaseModel):
    windows: list[BulkWindowItem]


class AvailabilityWindowResponse(BaseModel):
    id: int
    dayOfWeek: int
    dayName: str
    startTime: str
    endTime: str
    isActive: bool
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class BlockedSlotCreate(BaseModel):
    """Schema for closing off a specific time range"""

    dateTime: datetime
    # Up to a whole day
    duration: int = Field(ge=DEFAULT_RULES.MIN_DURATION, le=MINUTES_PER_DAY)
    reason: Optional[str] = Field(default=None, max_length=200)

    @field_validator("dateTime")
    @classmethod
    def normalize_datetime(cls, v):
        return to_naive_utc(v)


class BlockedSlotResponse(BaseModel):
    id: int
    dateTime: datetime
    duration: int
    reason: Optional[str]
    createdAt: Optional[datetime] = None
