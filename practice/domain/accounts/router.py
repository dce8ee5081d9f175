"""Account router - authentication and profile endpoints"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...email_service import send_welcome_verification_email
from ...models import User
from ...notifications import deliver
from ..scheduling.clock import Clock, get_clock
from .schemas import (
    LoginRequest,
    ProfileResponse,
    ProfileUpdate,
    RegisterRequest,
    ResendVerificationRequest,
    TokenResponse,
    UserResponse,
    VerifyEmailRequest,
)
from .service import AccountService, profile_to_dict, user_to_dict, verification_link

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])
profile_router = APIRouter(prefix="/user", tags=["Profile"])


def get_account_service(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> AccountService:
    """Dependency injection for AccountService"""
    return AccountService(db, clock)


# ============================================================================
# AUTHENTICATION
# ============================================================================


@router.post("/register", status_code=201)
async def register(
    data: RegisterRequest,
    background_tasks: BackgroundTasks,
    service: AccountService = Depends(get_account_service),
):
    """Create a client account and email a verification link"""
    user = service.register(data)

    background_tasks.add_task(
        deliver,
        send_welcome_verification_email,
        to=user.email,
        user_name=user.name,
        verification_link=verification_link(user.email),
    )

    return {
        "message": "Registration successful. Please check your email to verify your account.",
        "user": user_to_dict(user),
    }


@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest, service: AccountService = Depends(get_account_service)):
    return service.authenticate(data)


@router.get("/check-email")
async def check_email(
    email: str = Query(..., min_length=3),
    service: AccountService = Depends(get_account_service),
):
    """Whether an email address is free for registration"""
    return service.is_email_available(email)


@router.post("/verify-email")
async def verify_email(data: VerifyEmailRequest, service: AccountService = Depends(get_account_service)):
    return service.verify_email(data.token)


@router.post("/resend-verification")
async def resend_verification(
    data: ResendVerificationRequest,
    background_tasks: BackgroundTasks,
    service: AccountService = Depends(get_account_service),
):
    user = service.get_unverified_user(data.email)
    background_tasks.add_task(
        deliver,
        send_welcome_verification_email,
        to=user.email,
        user_name=user.name,
        verification_link=verification_link(user.email),
    )
    return {"message": "Verification email sent successfully. Please check your inbox."}


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    return user_to_dict(current_user)


# ============================================================================
# PROFILE
# ============================================================================


@profile_router.get("/profile", response_model=ProfileResponse)
async def get_profile(current_user: User = Depends(get_current_user)):
    return profile_to_dict(current_user)


@profile_router.put("/profile", response_model=ProfileResponse)
async def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
):
    return profile_to_dict(service.update_profile(current_user, data))


__all__ = ["router", "profile_router"]
