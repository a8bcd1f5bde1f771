"""User profile and role models."""

import enum
from typing import Dict, Any

from sqlalchemy import Column, String, Text, DateTime, UniqueConstraint

from .base import Base, new_id
from ..utils.timezone import now_utc


class AppRole(str, enum.Enum):
    ADMINISTRATOR = "administrator"
    EMPLOYEE = "employee"
    USER = "user"


class Profile(Base):
    """Display data for an authenticated user."""
    __tablename__ = 'profiles'

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, unique=True)
    first_name = Column(String)
    last_name = Column(String)
    email = Column(String)
    signature_data_url = Column(Text)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'user_id': self.user_id,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'email': self.email,
        }


class UserRole(Base):
    """Role grant for a user."""
    __tablename__ = 'user_roles'
    __table_args__ = (
        UniqueConstraint('user_id', 'role', name='uq_user_roles_user_role'),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    role = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)
