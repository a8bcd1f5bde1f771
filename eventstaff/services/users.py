"""Roles and profiles of authenticated users."""

import logging
from typing import List, Optional

from sqlalchemy import select

from ..db import db
from ..models import AppRole, Profile, UserRole
from ..staffing.errors import ValidationFailedError

logger = logging.getLogger(__name__)

STAFF_ROLES = (AppRole.EMPLOYEE.value, AppRole.ADMINISTRATOR.value)


def roles_for(user_id: str) -> List[str]:
    with db.session() as session:
        return list(session.execute(
            select(UserRole.role).where(UserRole.user_id == user_id)
        ).scalars().all())


def has_role(user_id: str, role: str) -> bool:
    """Whether the user has been granted `role`."""
    return role in roles_for(user_id)


def is_staff(user_id: str) -> bool:
    return any(role in STAFF_ROLES for role in roles_for(user_id))


def set_role(user_id: str, role: str, granted: bool) -> List[str]:
    """
    Grant or revoke a role.

    Args:
        user_id: The user
        role: One of the AppRole values
        granted: True to grant, False to revoke

    Returns:
        List[str]: The user's roles afterwards

    Raises:
        ValidationFailedError: If the role is unknown
    """
    if role not in {r.value for r in AppRole}:
        raise ValidationFailedError({'role': f"Unknown role '{role}'"})

    with db.session() as session:
        existing = session.execute(
            select(UserRole).where(UserRole.user_id == user_id, UserRole.role == role)
        ).scalar_one_or_none()
        if granted and existing is None:
            session.add(UserRole(user_id=user_id, role=role))
            logger.info(f"Granted role {role} to user {user_id}")
        elif not granted and existing is not None:
            session.delete(existing)
            logger.info(f"Revoked role {role} from user {user_id}")

    return roles_for(user_id)


def get_profile(user_id: str) -> Optional[Profile]:
    with db.session() as session:
        return session.execute(
            select(Profile).where(Profile.user_id == user_id)
        ).scalar_one_or_none()
