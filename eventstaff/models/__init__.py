"""Models package initialization."""

from .base import Base
from .event import InternalEvent, EventStatus
from .registration import EventRegistration, RegistrationStatus
from .user import Profile, UserRole, AppRole
from .qualification import (
    Qualification,
    EmployeeQualification,
    QualificationRequest,
    QualificationRequestStatus,
)
from .contract import WorkContract
from .inquiry import ContactRequest, EventRequest, RequestStatus

__all__ = [
    'Base',
    'InternalEvent', 'EventStatus',
    'EventRegistration', 'RegistrationStatus',
    'Profile', 'UserRole', 'AppRole',
    'Qualification', 'EmployeeQualification', 'QualificationRequest', 'QualificationRequestStatus',
    'WorkContract',
    'ContactRequest', 'EventRequest', 'RequestStatus',
]
