"""Work contract model definition."""

from typing import Dict, Any

from sqlalchemy import Column, String, Text, Numeric, Boolean, Date, DateTime, ForeignKey, UniqueConstraint

from .base import Base, new_id
from ..utils.timezone import ensure_utc, now_utc


class WorkContract(Base):
    """
    Short-term employment contract between the business and a staff member
    for one category of one event.
    """
    __tablename__ = 'work_contracts'
    __table_args__ = (
        UniqueConstraint('user_id', 'event_id', 'staff_category', name='uq_work_contracts_user_event_category'),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    event_id = Column(String(36), ForeignKey('internal_events.id', ondelete='CASCADE'), nullable=False)
    staff_category = Column(String, nullable=False)
    job_title = Column(String, nullable=False)
    hourly_wage = Column(Numeric(10, 2), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    additional_agreements = Column(Text)
    signature_data_url = Column(Text)
    signed_at = Column(DateTime(timezone=True))
    signed_by_employee = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'user_id': self.user_id,
            'event_id': self.event_id,
            'staff_category': self.staff_category,
            'job_title': self.job_title,
            'hourly_wage': float(self.hourly_wage) if self.hourly_wage is not None else None,
            'start_date': self.start_date,
            'end_date': self.end_date,
            'additional_agreements': self.additional_agreements,
            'signed_at': ensure_utc(self.signed_at),
            'signed_by_employee': self.signed_by_employee,
        }
