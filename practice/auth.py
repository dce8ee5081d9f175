import logging

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .models import ROLE_ADMIN, User
from .security import verify_access_token

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer session token to a user"""
    payload = verify_access_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        logger.warning("❌ Rejected request with invalid or expired token")
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=401, detail="Invalid token subject") from e

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        logger.warning(f"❌ Token for unknown user_id: {user_id}")
        raise HTTPException(status_code=401, detail="User not found")

    return user


def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    """Same as get_current_user, restricted to administrators"""
    if current_user.role != ROLE_ADMIN:
        logger.warning(f"🚫 User {current_user.id} attempted an admin action")
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user
