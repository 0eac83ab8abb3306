"""
Identity dependencies.

Authentication happens in front of this service; by the time a request
reaches a router the acting user's id travels in the identity header.
"""
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from absence_tracker.core.config import settings
from absence_tracker.database import get_db
from absence_tracker.models.user import User, UserRole
from absence_tracker.services.storage import LocalStorageService

logger = logging.getLogger(__name__)


def get_current_user(
    user_id: Optional[str] = Header(default=None, alias=settings.user_id_header),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolves the acting user from the identity header.
    """
    if not user_id or not user_id.strip().isdigit():
        logger.warning("Authentication failed: missing or malformed identity header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    user = db.get(User, int(user_id))
    if user is None:
        logger.warning(f"Authentication failed: User {user_id} not found in database")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    if not user.is_active:
        logger.warning(f"Authentication failed: User {user_id} is inactive")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is inactive"
        )
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Access denied. Required roles: {[UserRole.ADMIN.value]}"
        )
    return current_user


def get_storage() -> LocalStorageService:
    """Certificate storage provider; overridden in tests."""
    return LocalStorageService()
