"""Read-side records handed out by the repository.

These are short-lived, in-memory copies of database rows with every
loosely-typed JSON field already decoded. They are rebuilt on every read.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class StaffRequirement:
    """How many people of one staff category an event needs."""
    category: str
    count: int


@dataclass(frozen=True)
class QualificationRequirement:
    """Qualification names a staff category requires on one event."""
    category: str
    qualifications: Tuple[str, ...]


@dataclass(frozen=True)
class PricingEntry:
    """Pay for one staff category on one event."""
    category: str
    hourly_rate: Optional[float] = None
    fixed_rate: Optional[float] = None


@dataclass(frozen=True)
class EventRecord:
    """
    Decoded internal event.

    Fields:
        id: Unique identifier
        title: Event title
        start: When the event starts (aware UTC)
        end: When the event ends (aware UTC, optional)
        location: Where the event takes place
        stored_status: Status as stored; see status.effective_status
        staff_requirements: Ordered staff requirements
        qualification_requirements: Qualification requirements per category
        pricing_structure: Pay per category
        contract_required: Whether registration goes through a work contract
    """
    id: str
    title: str
    start: datetime
    location: str
    stored_status: str
    end: Optional[datetime] = None
    description: Optional[str] = None
    guest_count: Optional[int] = None
    notes: Optional[str] = None
    contract_required: bool = False
    staff_requirements: Tuple[StaffRequirement, ...] = ()
    qualification_requirements: Tuple[QualificationRequirement, ...] = ()
    pricing_structure: Tuple[PricingEntry, ...] = ()

    def requirement_for(self, category: str) -> Optional[StaffRequirement]:
        for requirement in self.staff_requirements:
            if requirement.category == category:
                return requirement
        return None

    def pricing_for(self, category: str) -> Optional[PricingEntry]:
        for entry in self.pricing_structure:
            if entry.category == category:
                return entry
        return None


@dataclass(frozen=True)
class RegistrationRecord:
    """A staff member's registration for one category of an event."""
    id: str
    event_id: str
    user_id: str
    staff_category: str
    status: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class UserQualificationRecord:
    """A qualification held by a user."""
    user_id: str
    qualification_id: str
    name: str
    description: Optional[str] = None


@dataclass
class AssignmentResult:
    """Outcome of the single-transaction role assignment."""
    registration: RegistrationRecord
    previous_category: Optional[str] = None
    created: bool = True
