"""Contact schemas - Pydantic models for the public contact form and admin replies"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_text_length, validate_us_phone
from ...utils.sanitization import strip_tags


class ContactFormRequest(BaseModel):
    """Schema for a message sent from the public contact page"""

    name: str
    email: str
    phone: Optional[str] = None
    subject: str
    message: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return validate_text_length(strip_tags(v), "Name", 2, 100)

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v is None or not v.strip():
            return None
        return validate_us_phone(v)

    @field_validator("subject")
    @classmethod
    def validate_subject(cls, v):
        return validate_text_length(strip_tags(v), "Subject", 5, 200)

    @field_validator("message")
    @classmethod
    def validate_message(cls, v):
        return validate_text_length(strip_tags(v), "Message", 10, 1000)


class ContactUpdate(BaseModel):
    isRead: bool


class ContactReplyRequest(BaseModel):
    subject: str
    message: str = Field(max_length=2000)

    @field_validator("subject")
    @classmethod
    def validate_subject(cls, v):
        return validate_text_length(strip_tags(v), "Subject", 5, 200)

    @field_validator("message")
    @classmethod
    def validate_message(cls, v):
        return validate_text_length(strip_tags(v), "Message", 10, 2000)
