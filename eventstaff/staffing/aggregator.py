"""Registration aggregator: filled counts per event and staff category."""

import logging
from collections import defaultdict
from typing import Dict, Iterable, Optional

from ..models.registration import RegistrationStatus
from .records import RegistrationRecord

logger = logging.getLogger(__name__)

FilledCounts = Dict[str, Dict[str, int]]


def aggregate_filled_counts(registrations: Iterable[RegistrationRecord]) -> FilledCounts:
    """
    Count signed-up registrations per event and category.

    Counts are never capped at the required count; over-booked categories
    show up as filled > count.
    """
    counts: Dict[str, Dict[str, int]] = defaultdict(lambda: defaultdict(int))
    for registration in registrations:
        if registration.status != RegistrationStatus.SIGNED_UP.value:
            continue
        counts[registration.event_id][registration.staff_category] += 1
    return {event_id: dict(by_category) for event_id, by_category in counts.items()}


class RegistrationAggregator:
    """Loads the full set of signed-up registrations and aggregates them."""

    def __init__(self, repository):
        self.repository = repository

    def load(self, event_id: Optional[str] = None) -> FilledCounts:
        """
        Fetch signed-up registrations (optionally for one event) and count them.

        Raises:
            DatabaseError: If the registrations cannot be read
        """
        registrations = self.repository.list_registrations(
            status=RegistrationStatus.SIGNED_UP.value,
            event_id=event_id,
        )
        return aggregate_filled_counts(registrations)
