"""Admin appointment schemas - Pydantic models for practice-side appointment management"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..appointments.schemas import RescheduleRequest, _clean_optional_text
from ..scheduling.clock import to_naive_utc

NotificationType = Literal["confirmation", "reschedule", "cancellation", "reminder"]


class ConflictCheckRequest(BaseModel):
    """Schema for probing a start time before an admin books or moves a session"""

    dateTime: datetime
    serviceId: int
    serviceDuration: Optional[int] = Field(default=None, gt=0)
    excludeAppointmentId: Optional[int] = None

    @field_validator("dateTime")
    @classmethod
    def normalize_datetime(cls, v):
        return to_naive_utc(v)


class AdminRescheduleRequest(RescheduleRequest):
    pass


class AdminCancelRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=200)
    sendNotification: bool = True
    cancellationPolicy: Optional[str] = Field(default=None, max_length=500)

    @field_validator("reason", "cancellationPolicy")
    @classmethod
    def clean_text(cls, v):
        return _clean_optional_text(v)


class NotifyRequest(BaseModel):
    type: NotificationType
    customMessage: Optional[str] = Field(default=None, max_length=500)
    includeCustomMessage: bool = False
    reason: Optional[str] = Field(default=None, max_length=200)
    cancellationPolicy: Optional[str] = Field(default=None, max_length=500)
    previousDateTime: Optional[datetime] = None

    @field_validator("customMessage", "reason", "cancellationPolicy")
    @classmethod
    def clean_text(cls, v):
        return _clean_optional_text(v)

    @field_validator("previousDateTime")
    @classmethod
    def normalize_datetime(cls, v):
        return to_naive_utc(v) if v is not None else v

    @model_validator(mode="after")
    def check_custom_message(self):
        if self.includeCustomMessage and not self.customMessage:
            raise ValueError("customMessage is required when includeCustomMessage is set")
        return self


class HistoryEntryResponse(BaseModel):
    id: int
    action: str
    oldStatus: Optional[str] = None
    newStatus: Optional[str] = None
    oldDateTime: Optional[datetime] = None
    newDateTime: Optional[datetime] = None
    reason: Optional[str] = None
    actorId: Optional[int] = None
    actorName: Optional[str] = None
    createdAt: Optional[datetime] = None


class AppointmentHistoryResponse(BaseModel):
    appointmentId: int
    history: list[HistoryEntryResponse]
