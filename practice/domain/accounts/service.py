"""Account service - registration, sign-in, verification and profile"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config import FRONTEND_URL
from ...models import ROLE_CLIENT, User
from ...security import (
    create_access_token,
    generate_email_verification_token,
    hash_password,
    verify_email_verification_token,
    verify_password,
)
from ..scheduling.clock import Clock
from .repository import UserRepository
from .schemas import LoginRequest, ProfileUpdate, RegisterRequest

logger = logging.getLogger(__name__)


def user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "phone": user.phone,
        "emailVerified": bool(user.email_verified),
    }


def profile_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
        "emergencyContactName": user.emergency_contact_name,
        "emergencyContactPhone": user.emergency_contact_phone,
        "emailNotifications": user.email_notifications,
        "smsReminders": user.sms_reminders,
        "reminderTime": user.reminder_time,
        "createdAt": user.created_at,
        "updatedAt": user.updated_at,
    }


def verification_link(email: str) -> str:
    return f"{FRONTEND_URL}/auth/verify-email?token={generate_email_verification_token(email)}"


class AccountService:
    """Service layer for client accounts"""

    def __init__(self, db: Session, clock: Optional[Clock] = None):
        self.db = db
        self.clock = clock or Clock()
        self.repo = UserRepository()

    def register(self, data: RegisterRequest) -> User:
        if self.repo.get_by_email(self.db, data.email):
            logger.warning(f"⚠️ Registration attempt for existing email: {data.email}")
            raise HTTPException(status_code=409, detail="User already exists with this email address")

        try:
            user = self.repo.create_user(
                self.db,
                name=data.name,
                email=data.email,
                password_hash=hash_password(data.password),
                phone=data.phone,
                role=ROLE_CLIENT,
                email_verified=False,
            )
        except IntegrityError as e:
            # Lost a race with a concurrent registration for the same address
            self.db.rollback()
            raise HTTPException(status_code=409, detail="User already exists with this email address") from e

        logger.info(f"✅ User registered: {user.id} ({user.email})")
        return user

    def authenticate(self, data: LoginRequest) -> dict:
        user = self.repo.get_by_email(self.db, data.email)
        if not user or not verify_password(data.password, user.password_hash):
            logger.warning(f"❌ Failed sign-in for {data.email}")
            raise HTTPException(status_code=401, detail="Invalid email or password")

        logger.info(f"🔐 User {user.id} signed in")
        return {
            "access_token": create_access_token(user.id, user.role),
            "token_type": "bearer",
            "user": user_to_dict(user),
        }

    def is_email_available(self, email: str) -> dict:
        available = self.repo.get_by_email(self.db, email) is None
        return {
            "available": available,
            "message": "Email address is available" if available else "Email address is already registered",
        }

    def verify_email(self, token: str) -> dict:
        email = verify_email_verification_token(token)
        if not email:
            raise HTTPException(status_code=400, detail="Invalid or expired verification link")

        user = self.repo.get_by_email(self.db, email)
        if not user:
            raise HTTPException(status_code=400, detail="Invalid or expired verification link")

        if not user.email_verified:
            user.email_verified = True
            user.email_verified_at = self.clock.now()
            self.repo.save(self.db, user)
            logger.info(f"✅ Email verified for user {user.id}")

        return {"message": "Email verified successfully. You can now sign in to your account."}

    def get_unverified_user(self, email: str) -> User:
        user = self.repo.get_by_email(self.db, email)
        if not user:
            raise HTTPException(status_code=404, detail="No account found with this email address")
        if user.email_verified:
            raise HTTPException(status_code=400, detail="Email is already verified. You can sign in to your account.")
        return user

    def update_profile(self, user: User, data: ProfileUpdate) -> User:
        user.name = data.name
        user.phone = data.phone
        user.emergency_contact_name = (data.emergencyContactName or "").strip() or None
        user.emergency_contact_phone = data.emergencyContactPhone
        user.email_notifications = data.communicationPreferences.emailNotifications
        user.sms_reminders = data.communicationPreferences.smsReminders
        user.reminder_time = data.communicationPreferences.reminderTime
        user = self.repo.save(self.db, user)
        logger.info(f"✅ Profile updated for user {user.id}")
        return user
