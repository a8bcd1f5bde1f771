"""Request dependencies: caller identity, role checks and error translation."""

import hashlib
import hmac
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException

from ..config.settings import Config
from ..db import DatabaseError
from ..models import AppRole
from ..services import users
from ..staffing.errors import StaffingError, ValidationFailedError

logger = logging.getLogger(__name__)

ACCESS_DENIED = "Access denied"


def verify_user_signature(user_id: str, signature: Optional[str]) -> bool:
    """Verify the session provider's HMAC-SHA256 signature of the user id."""
    secret = Config.AUTH_SIGNING_SECRET
    if not secret:
        logger.warning("AUTH_SIGNING_SECRET not set, skipping signature verification")
        return True
    if not signature:
        return False

    expected_signature = hmac.new(
        secret.encode(),
        user_id.encode(),
        hashlib.sha256
    ).hexdigest()

    return hmac.compare_digest(signature, expected_signature)


def optional_user_id(
    x_user_id: Optional[str] = Header(None),
    x_user_signature: Optional[str] = Header(None),
) -> Optional[str]:
    """The authenticated user id, or None for anonymous callers."""
    if not x_user_id:
        return None
    if not verify_user_signature(x_user_id, x_user_signature):
        raise HTTPException(status_code=401, detail="Invalid user signature")
    return x_user_id


def current_user_id(user_id: Optional[str] = Depends(optional_user_id)) -> str:
    if user_id is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user_id


def _roles(user_id: str):
    try:
        return users.roles_for(user_id)
    except DatabaseError as e:
        logger.error(f"Error loading roles of user {user_id}: {e}")
        raise HTTPException(status_code=503, detail="The service is temporarily unavailable, please try again")


def require_staff(user_id: str = Depends(current_user_id)) -> str:
    """Employees and administrators."""
    if not any(role in users.STAFF_ROLES for role in _roles(user_id)):
        raise HTTPException(status_code=403, detail=ACCESS_DENIED)
    return user_id


def require_admin(user_id: str = Depends(current_user_id)) -> str:
    if AppRole.ADMINISTRATOR.value not in _roles(user_id):
        raise HTTPException(status_code=403, detail=ACCESS_DENIED)
    return user_id


def is_admin(user_id: str) -> bool:
    return AppRole.ADMINISTRATOR.value in _roles(user_id)


def error_detail(error: StaffingError):
    """The HTTP error detail shown to the user for a domain error."""
    if isinstance(error, ValidationFailedError):
        return {'message': error.message, 'errors': error.errors}
    return error.message
