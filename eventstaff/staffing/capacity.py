"""Capacity and eligibility merge for one staff category of one event."""

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .qualifications import missing_qualifications
from .records import PricingEntry, RegistrationRecord, StaffRequirement


class SlotState(str, enum.Enum):
    REGISTERED = "registered"
    OPEN = "open"
    BLOCKED = "blocked"


class BlockedReason(str, enum.Enum):
    FULL = "full"
    MISSING_QUALIFICATIONS = "missing_qualifications"


@dataclass
class SlotView:
    """Presentation state of one staff category for the viewing user."""
    category: str
    count: int
    filled: int
    state: SlotState
    eligible: bool
    blocked_reason: Optional[BlockedReason] = None
    missing_qualifications: List[str] = field(default_factory=list)
    registration_id: Optional[str] = None
    pricing: Optional[PricingEntry] = None

    @property
    def is_full(self) -> bool:
        return self.filled >= self.count

    @property
    def overbooked(self) -> bool:
        return self.filled > self.count

    def to_dict(self) -> Dict[str, Any]:
        return {
            'category': self.category,
            'count': self.count,
            'filled': self.filled,
            'state': self.state.value,
            'blocked_reason': self.blocked_reason.value if self.blocked_reason else None,
            'eligible': self.eligible,
            'is_full': self.is_full,
            'overbooked': self.overbooked,
            'missing_qualifications': list(self.missing_qualifications),
            'registration_id': self.registration_id,
            'hourly_rate': self.pricing.hourly_rate if self.pricing else None,
            'fixed_rate': self.pricing.fixed_rate if self.pricing else None,
        }


def merge_slot(
    requirement: StaffRequirement,
    filled: int,
    qualification_requirements: Sequence[Any],
    user_qualifications: Iterable[Any],
    user_registration: Optional[RegistrationRecord] = None,
    pricing: Optional[PricingEntry] = None,
) -> SlotView:
    """
    Combine required count, filled count and eligibility into a slot state.

    registered: the user's active registration on the event is this category.
    open: not full, eligible and not registered.
    blocked: full or ineligible; a full category reports FULL even when the
    user is also missing qualifications.
    """
    missing = missing_qualifications(qualification_requirements, requirement.category, user_qualifications)
    eligible = not missing
    holds_category = (
        user_registration is not None
        and user_registration.staff_category == requirement.category
    )

    if holds_category:
        state, reason = SlotState.REGISTERED, None
    elif filled >= requirement.count:
        state, reason = SlotState.BLOCKED, BlockedReason.FULL
    elif not eligible:
        state, reason = SlotState.BLOCKED, BlockedReason.MISSING_QUALIFICATIONS
    else:
        state, reason = SlotState.OPEN, None

    return SlotView(
        category=requirement.category,
        count=requirement.count,
        filled=filled,
        state=state,
        eligible=eligible,
        blocked_reason=reason,
        missing_qualifications=missing,
        registration_id=user_registration.id if holds_category else None,
        pricing=pricing,
    )
