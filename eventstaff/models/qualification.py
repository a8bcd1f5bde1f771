"""Qualification catalog, held qualifications and qualification requests."""

import enum
from typing import Dict, Any

from sqlalchemy import (
    Column, String, Text, Integer, Boolean, Date, DateTime, ForeignKey, UniqueConstraint, JSON,
)
from sqlalchemy.orm import relationship

from .base import Base, new_id
from ..utils.timezone import ensure_utc, now_utc


class QualificationRequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Qualification(Base):
    """A named qualification staff can hold (e.g. 'Führerschein B', 'Erste Hilfe')."""
    __tablename__ = 'qualifications'

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False, unique=True)
    description = Column(Text)
    is_expirable = Column(Boolean, nullable=False, default=False)
    validity_period_months = Column(Integer)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'is_expirable': self.is_expirable,
            'validity_period_months': self.validity_period_months,
        }


class EmployeeQualification(Base):
    """A qualification held by a user."""
    __tablename__ = 'employee_qualifications'
    __table_args__ = (
        UniqueConstraint('user_id', 'qualification_id', name='uq_employee_qualifications_user_qualification'),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    qualification_id = Column(String(36), ForeignKey('qualifications.id', ondelete='CASCADE'), nullable=False)
    acquired_date = Column(Date)
    expires_at = Column(Date)
    proof_files = Column(JSON)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    qualification = relationship('Qualification', lazy='joined')

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'user_id': self.user_id,
            'qualification_id': self.qualification_id,
            'acquired_date': self.acquired_date,
            'expires_at': self.expires_at,
            'qualification': self.qualification.to_dict() if self.qualification else None,
        }


class QualificationRequest(Base):
    """A staff member's request to have a qualification recognised."""
    __tablename__ = 'qualification_requests'

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    qualification_id = Column(String(36), ForeignKey('qualifications.id', ondelete='CASCADE'), nullable=False)
    status = Column(String, nullable=False, default=QualificationRequestStatus.PENDING.value)
    notes = Column(Text)
    proof_files = Column(JSON)
    admin_notes = Column(Text)
    reviewed_by = Column(String(36))
    reviewed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=now_utc)

    qualification = relationship('Qualification', lazy='joined')

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'user_id': self.user_id,
            'qualification_id': self.qualification_id,
            'qualification_name': self.qualification.name if self.qualification else None,
            'status': self.status,
            'notes': self.notes,
            'admin_notes': self.admin_notes,
            'reviewed_by': self.reviewed_by,
            'reviewed_at': ensure_utc(self.reviewed_at),
            'created_at': ensure_utc(self.created_at),
        }
