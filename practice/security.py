"""
Security utilities
Password hashing, session tokens and signed email-verification links
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from jose import JWTError
from jose import jwt as jose_jwt
from passlib.context import CryptContext

from .config import EMAIL_VERIFICATION_MAX_AGE, SECRET_KEY, SESSION_TTL_HOURS

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
EMAIL_VERIFICATION_SALT = "email-verification"

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify password against bcrypt hash; accounts without a password never match"""
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        logger.error(f"Password verification error: {e}")
        return False


# ============================================================================
# SESSION TOKENS
# ============================================================================


def create_access_token(user_id: int, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed session token

    Args:
        user_id: Subject of the token
        role: CLIENT or ADMIN, checked again against the database on every request
        expires_delta: Token lifetime (default SESSION_TTL_HOURS)
    """
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=SESSION_TTL_HOURS))
    to_encode = {"sub": str(user_id), "role": role, "exp": expire}
    return jose_jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def verify_access_token(token: str) -> Optional[dict[str, Any]]:
    """
    Verify and decode a session token

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None


# ============================================================================
# EMAIL VERIFICATION
# ============================================================================


def generate_email_verification_token(email: str) -> str:
    serializer = URLSafeTimedSerializer(SECRET_KEY)
    return serializer.dumps({"email": email}, salt=EMAIL_VERIFICATION_SALT)


def verify_email_verification_token(token: str, max_age: int = EMAIL_VERIFICATION_MAX_AGE) -> Optional[str]:
    """
    Verify a verification-link token

    Returns:
        The email address it was issued for, None if invalid or expired
    """
    serializer = URLSafeTimedSerializer(SECRET_KEY)
    try:
        data = serializer.loads(token, salt=EMAIL_VERIFICATION_SALT, max_age=max_age)
    except SignatureExpired:
        logger.warning("Email verification token expired")
        return None
    except BadSignature:
        logger.warning("Invalid email verification token signature")
        return None
    return data.get("email") if isinstance(data, dict) else None
