"""Event registration model definition."""

import enum
from typing import Dict, Any

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import Base, new_id
from ..utils.timezone import ensure_utc, now_utc


class RegistrationStatus(str, enum.Enum):
    SIGNED_UP = "angemeldet"
    CONFIRMED = "bestätigt"
    REJECTED = "abgelehnt"
    WITHDRAWN = "zurückgezogen"


class EventRegistration(Base):
    """
    A staff member's registration for one category of an internal event.

    The (event_id, user_id) pair is unique: a user holds at most one
    registration row per event, and a role change re-points that row.
    """
    __tablename__ = 'event_registrations'
    __table_args__ = (
        UniqueConstraint('event_id', 'user_id', name='uq_event_registrations_event_user'),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    event_id = Column(
        String(36),
        ForeignKey('internal_events.id', ondelete='CASCADE'),
        nullable=False,
        index=True,
    )
    user_id = Column(String(36), nullable=False, index=True)
    staff_category = Column(String, nullable=False)
    status = Column(String, nullable=False, default=RegistrationStatus.SIGNED_UP.value)
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    event = relationship('InternalEvent', back_populates='registrations')

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'event_id': self.event_id,
            'user_id': self.user_id,
            'staff_category': self.staff_category,
            'status': self.status,
            'notes': self.notes,
            'created_at': ensure_utc(self.created_at),
        }

    def __str__(self) -> str:
        """String representation."""
        return (
            f"EventRegistration(id={self.id}, event_id={self.event_id}, "
            f"user_id={self.user_id}, staff_category={self.staff_category}, status={self.status})"
        )
