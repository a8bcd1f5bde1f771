"""Internal event model definition."""

import enum
from typing import Dict, Any

from sqlalchemy import Column, String, Text, Integer, Boolean, DateTime, JSON
from sqlalchemy.orm import relationship

from .base import Base, new_id
from ..utils.timezone import ensure_utc, now_utc


class EventStatus(str, enum.Enum):
    PLANNED = "geplant"
    RUNNING = "laufend"
    COMPLETED = "abgeschlossen"
    CANCELLED = "abgesagt"


class InternalEvent(Base):
    """
    An internal event that needs staff.

    Fields:
        id: Unique identifier
        title: Event title
        description: Free-text description (optional)
        event_date: When the event starts
        end_date: When the event ends (optional)
        location: Where the event takes place
        guest_count: Expected number of guests (optional)
        status: Stored status; only 'abgesagt' is authoritative on read
        staff_requirements: Stored as JSON; may be a list, a single object or
                            a JSON-encoded string, decoded by the repository
        qualification_requirements: Same storage rules as staff_requirements
        pricing_structure: Same storage rules as staff_requirements
        notes: Internal notes (optional)
        contract_required: Whether staff must sign a work contract to register
        created_by: User id of the administrator who created the event
    """
    __tablename__ = 'internal_events'

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String, nullable=False)
    description = Column(Text)
    event_date = Column(DateTime(timezone=True), nullable=False, index=True)
    end_date = Column(DateTime(timezone=True))
    location = Column(String, nullable=False)
    guest_count = Column(Integer)
    status = Column(String, nullable=False, default=EventStatus.PLANNED.value)
    staff_requirements = Column(JSON)
    qualification_requirements = Column(JSON)
    pricing_structure = Column(JSON)
    notes = Column(Text)
    contract_required = Column(Boolean, nullable=False, default=False)
    created_by = Column(String(36))
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    registrations = relationship(
        'EventRegistration',
        back_populates='event',
        cascade='all, delete-orphan',
    )

    def __init__(self, **kwargs):
        """Initialize InternalEvent storing timestamps in UTC."""
        for key in ('event_date', 'end_date'):
            if kwargs.get(key) is not None:
                kwargs[key] = ensure_utc(kwargs[key])
        super().__init__(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'event_date': ensure_utc(self.event_date),
            'end_date': ensure_utc(self.end_date),
            'location': self.location,
            'guest_count': self.guest_count,
            'status': self.status,
            'staff_requirements': self.staff_requirements,
            'qualification_requirements': self.qualification_requirements,
            'pricing_structure': self.pricing_structure,
            'notes': self.notes,
            'contract_required': self.contract_required,
            'created_by': self.created_by,
            'created_at': ensure_utc(self.created_at),
        }

    def __str__(self) -> str:
        """String representation."""
        return f"InternalEvent(id={self.id}, title={self.title}, event_date={self.event_date})"
