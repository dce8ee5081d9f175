"""Service catalog schemas - Pydantic models for validation"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_text_length


class ServiceCreate(BaseModel):
    """Schema for creating a counseling service"""

    title: str
    description: str
    duration: int = Field(ge=15, le=480)
    price: Decimal = Field(ge=0, decimal_places=2)
    features: list[str] = Field(default_factory=list)
    isActive: bool = True

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        return validate_text_length(v, "Title", 5, 200)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return validate_text_length(v, "Description", 20, 5000)


class ServiceUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=15, le=480)
    price: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    features: Optional[list[str]] = None
    isActive: Optional[bool] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if v is None:
            return v
        return validate_text_length(v, "Title", 5, 200)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        if v is None:
            return v
        return validate_text_length(v, "Description", 20, 5000)


class ServiceResponse(BaseModel):
    """Schema for service response"""

    id: int
    title: str
    description: str
    duration: int
    price: float
    features: list[str] = Field(default_factory=list)
    isActive: bool
    appointmentCount: Optional[int] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
