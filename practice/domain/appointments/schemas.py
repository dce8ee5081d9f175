"""Appointment schemas - Pydantic models for booking, updates and reschedules"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...utils.sanitization import strip_tags
from ..scheduling.clock import to_naive_utc

AppointmentStatusLiteral = Literal["PENDING", "CONFIRMED", "CANCELLED", "COMPLETED", "NO_SHOW"]


def _clean_optional_text(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    return strip_tags(v) or None


class BookAppointmentRequest(BaseModel):
    """Schema for booking a session"""

    serviceId: int
    dateTime: datetime
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator("dateTime")
    @classmethod
    def normalize_datetime(cls, v):
        return to_naive_utc(v)

    @field_validator("notes")
    @classmethod
    def clean_notes(cls, v):
        return _clean_optional_text(v)


class AppointmentUpdate(BaseModel):
    status: Optional[AppointmentStatusLiteral] = None
    notes: Optional[str] = Field(default=None, max_length=500)
    cancellationReason: Optional[str] = Field(default=None, max_length=200)

    @field_validator("notes", "cancellationReason")
    @classmethod
    def clean_text(cls, v):
        return _clean_optional_text(v)


class RescheduleRequest(BaseModel):
    newDateTime: datetime
    reason: Optional[str] = Field(default=None, max_length=200)

    @field_validator("newDateTime")
    @classmethod
    def normalize_datetime(cls, v):
        return to_naive_utc(v)

    @field_validator("reason")
    @classmethod
    def clean_reason(cls, v):
        return _clean_optional_text(v)


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=200)

    @field_validator("reason")
    @classmethod
    def clean_reason(cls, v):
        return _clean_optional_text(v)


class ServiceSummary(BaseModel):
    id: int
    title: str
    duration: int
    price: float


class ClientSummary(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None


class AppointmentResponse(BaseModel):
    """Schema for appointment response"""

    id: int
    dateTime: datetime
    status: str
    notes: Optional[str]
    cancellationReason: Optional[str]
    service: ServiceSummary
    user: ClientSummary
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

