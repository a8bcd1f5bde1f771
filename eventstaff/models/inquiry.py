"""Customer-facing request models: contact requests and event (quote) requests."""

import enum
from typing import Dict, Any

from sqlalchemy import Column, String, Text, Boolean, Date, DateTime, JSON

from .base import Base, new_id
from ..utils.timezone import ensure_utc, now_utc


class RequestStatus(str, enum.Enum):
    REQUESTED = "ANGEFRAGT"
    IN_PROGRESS = "IN_BEARBEITUNG"
    COMPLETED = "ABGESCHLOSSEN"
    QUESTIONS_OPEN = "RÜCKFRAGEN_OFFEN"


class ContactRequest(Base):
    """Message sent through the public contact form."""
    __tablename__ = 'contact_requests'

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String)
    mobile = Column(String)
    company = Column(String)
    event_type = Column(String)
    callback_time = Column(String)
    venue = Column(String)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'mobile': self.mobile,
            'company': self.company,
            'event_type': self.event_type,
            'callback_time': self.callback_time,
            'venue': self.venue,
            'message': self.message,
            'created_at': ensure_utc(self.created_at),
        }


class EventRequest(Base):
    """Quote request submitted through the multi-step offer form."""
    __tablename__ = 'event_requests'

    id = Column(String(36), primary_key=True, default=new_id)
    offer_number = Column(String, unique=True)
    user_id = Column(String(36), index=True)
    event_title = Column(String, nullable=False)
    event_date = Column(Date, nullable=False)
    end_date = Column(Date)
    end_time = Column(String)
    location = Column(String, nullable=False)
    guest_count = Column(String, nullable=False)
    dj_genres = Column(JSON)
    photographer = Column(Boolean, default=False)
    videographer = Column(Boolean, default=False)
    light_operator = Column(Boolean, default=False)
    tech_requirements = Column(JSON, nullable=False)
    additional_wishes = Column(Text)
    contact_name = Column(String, nullable=False)
    contact_email = Column(String, nullable=False, index=True)
    contact_phone = Column(String)
    contact_company = Column(String)
    contact_street = Column(String)
    contact_house_number = Column(String)
    contact_postal_code = Column(String)
    contact_city = Column(String)
    status = Column(String, nullable=False, default=RequestStatus.REQUESTED.value)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'offer_number': self.offer_number,
            'user_id': self.user_id,
            'event_title': self.event_title,
            'event_date': self.event_date,
            'end_date': self.end_date,
            'end_time': self.end_time,
            'location': self.location,
            'guest_count': self.guest_count,
            'dj_genres': self.dj_genres or [],
            'photographer': bool(self.photographer),
            'videographer': bool(self.videographer),
            'light_operator': bool(self.light_operator),
            'tech_requirements': self.tech_requirements or [],
            'additional_wishes': self.additional_wishes,
            'contact_name': self.contact_name,
            'contact_email': self.contact_email,
            'contact_phone': self.contact_phone,
            'contact_company': self.contact_company,
            'contact_street': self.contact_street,
            'contact_house_number': self.contact_house_number,
            'contact_postal_code': self.contact_postal_code,
            'contact_city': self.contact_city,
            'status': self.status,
            'created_at': ensure_utc(self.created_at),
        }
