"""'My events': a staff member's registrations joined with their events."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..db import DatabaseError, StaffingRepository
from ..staffing.errors import ServiceUnavailableError
from ..staffing.status import effective_status
from ..utils.timezone import now_utc

logger = logging.getLogger(__name__)

SCOPE_UPCOMING = 'upcoming'
SCOPE_PAST = 'past'
SCOPE_ALL = 'all'


def list_my_registrations(
    user_id: str,
    status: Optional[str] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
    scope: str = SCOPE_UPCOMING,
    now: Optional[datetime] = None,
    repository: Optional[StaffingRepository] = None,
) -> List[Dict[str, Any]]:
    """
    List the user's registrations with event data and effective status.

    Args:
        user_id: The staff member
        status: Registration status to keep; None or 'all' keeps every status
        category: Staff category to keep; None or 'all' keeps every category
        search: Case-insensitive match on event title or location
        scope: 'upcoming' (event starts in the future, soonest first),
               'past' (newest first) or 'all' (soonest first)
        now: Reference time, defaults to the current time

    Raises:
        ServiceUnavailableError: If the reads fail
    """
    repository = repository or StaffingRepository()
    now = now or now_utc()

    try:
        registrations = repository.list_registrations(user_id=user_id)
        events = {
            event.id: event
            for event in repository.list_events(event_ids=[r.event_id for r in registrations])
        }
    except DatabaseError as e:
        logger.error(f"Error loading registrations of user {user_id}: {e}")
        raise ServiceUnavailableError("Could not load your events") from e

    items = []
    for registration in registrations:
        event = events.get(registration.event_id)
        if event is None:
            continue
        if status and status != 'all' and registration.status != status:
            continue
        if category and category != 'all' and registration.staff_category != category:
            continue
        if search:
            term = search.lower()
            if term not in event.title.lower() and term not in (event.location or '').lower():
                continue
        upcoming = event.start > now
        if scope == SCOPE_UPCOMING and not upcoming:
            continue
        if scope == SCOPE_PAST and upcoming:
            continue

        pricing = event.pricing_for(registration.staff_category)
        items.append({
            'registration_id': registration.id,
            'staff_category': registration.staff_category,
            'registration_status': registration.status,
            'notes': registration.notes,
            'registered_at': registration.created_at,
            'event_id': event.id,
            'event_title': event.title,
            'event_start': event.start,
            'event_end': event.end,
            'location': event.location,
            'event_status': effective_status(event.start, event.end, event.stored_status, now),
            'hourly_rate': pricing.hourly_rate if pricing else None,
            'fixed_rate': pricing.fixed_rate if pricing else None,
        })

    items.sort(key=lambda item: item['event_start'], reverse=(scope == SCOPE_PAST))
    return items
