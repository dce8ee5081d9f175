"""Account schemas - registration, login and profile"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_password, validate_text_length, validate_us_phone


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str
    phone: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return validate_text_length(v, "Name", 2, 100)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return validate_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        return validate_password(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v and v.strip():
            return validate_us_phone(v)
        return None


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()


class VerifyEmailRequest(BaseModel):
    token: str


class ResendVerificationRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return validate_email(v)


class UserResponse(BaseModel):
    """Schema for the signed-in user"""

    id: int
    name: str
    email: str
    role: str
    phone: Optional[str] = None
    emailVerified: bool = False


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class CommunicationPreferences(BaseModel):
    emailNotifications: bool
    smsReminders: bool
    reminderTime: Literal["24", "2", "1", "0.5"]


class ProfileUpdate(BaseModel):
    name: str
    phone: Optional[str] = None
    emergencyContactName: Optional[str] = Field(default=None, max_length=100)
    emergencyContactPhone: Optional[str] = None
    communicationPreferences: CommunicationPreferences

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return validate_text_length(v, "Name", 2, 100)

    @field_validator("phone", "emergencyContactPhone")
    @classmethod
    def validate_phone(cls, v):
        if v and v.strip():
            return validate_us_phone(v)
        return None


class ProfileResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str]
    emergencyContactName: Optional[str]
    emergencyContactPhone: Optional[str]
    emailNotifications: bool
    smsReminders: bool
    reminderTime: str
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
