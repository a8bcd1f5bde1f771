"""Event catalog: loads events with fresh counts and builds per-user event views.

Views are rebuilt from the repository on every call. Nothing is cached between
calls, and a failed read never yields a partially annotated list.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..config.settings import Config
from ..db.db_core import DatabaseError
from ..db.repository import StaffingRepository
from ..models.registration import RegistrationStatus
from ..utils.timezone import now_utc, start_of_local_month
from .aggregator import RegistrationAggregator
from .capacity import SlotView, merge_slot
from .errors import EventNotFoundError, ServiceUnavailableError
from .records import EventRecord, RegistrationRecord, UserQualificationRecord
from .status import effective_end, effective_status, status_colors

logger = logging.getLogger(__name__)

WINDOW_MONTH = 'month'
WINDOW_UPCOMING = 'upcoming'
WINDOWS = (WINDOW_MONTH, WINDOW_UPCOMING)

ALL = 'all'


@dataclass
class EventView:
    """An event annotated for one viewer: effective status and a slot per category."""
    event: EventRecord
    status: str
    slots: List[SlotView] = field(default_factory=list)
    user_registration: Optional[RegistrationRecord] = None

    @property
    def total_required(self) -> int:
        return sum(slot.count for slot in self.slots)

    @property
    def total_filled(self) -> int:
        return sum(slot.filled for slot in self.slots)

    def slot(self, category: str) -> Optional[SlotView]:
        for slot in self.slots:
            if slot.category == category:
                return slot
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        event = self.event
        return {
            'id': event.id,
            'title': event.title,
            'description': event.description,
            'start': event.start,
            'end': event.end,
            'effective_end': effective_end(event.start, event.end),
            'location': event.location,
            'guest_count': event.guest_count,
            'notes': event.notes,
            'contract_required': event.contract_required,
            'stored_status': event.stored_status,
            'status': self.status,
            'colors': status_colors(self.status),
            'slots': [slot.to_dict() for slot in self.slots],
            'total_required': self.total_required,
            'total_filled': self.total_filled,
            'user_registration': (
                {
                    'id': self.user_registration.id,
                    'staff_category': self.user_registration.staff_category,
                    'status': self.user_registration.status,
                }
                if self.user_registration else None
            ),
        }


def active_registration_for(
    registrations: Iterable[RegistrationRecord], event_id: str
) -> Optional[RegistrationRecord]:
    """The user's non-withdrawn registration on the event, if any."""
    for registration in registrations:
        if (registration.event_id == event_id
                and registration.status != RegistrationStatus.WITHDRAWN.value):
            return registration
    return None


def build_event_view(
    event: EventRecord,
    filled_by_category: Dict[str, int],
    user_qualifications: Sequence[UserQualificationRecord] = (),
    user_registration: Optional[RegistrationRecord] = None,
    now: Optional[datetime] = None,
) -> EventView:
    """Merge one event with its filled counts and the viewer's qualifications."""
    slots = [
        merge_slot(
            requirement,
            filled_by_category.get(requirement.category, 0),
            event.qualification_requirements,
            user_qualifications,
            user_registration,
            event.pricing_for(requirement.category),
        )
        for requirement in event.staff_requirements
    ]
    return EventView(
        event=event,
        status=effective_status(event.start, event.end, event.stored_status, now),
        slots=slots,
        user_registration=user_registration,
    )


def filter_events(
    views: Iterable[EventView],
    search: Optional[str] = None,
    status: Optional[str] = None,
    location: Optional[str] = None,
) -> List[EventView]:
    """
    Filter event views the way the staff event list does.

    Args:
        views: Event views to filter
        search: Case-insensitive match on title, location or description
        status: Effective status to keep; None or 'all' keeps every status
        location: Case-insensitive location substring; None or 'all' keeps all

    Returns:
        List[EventView]: Matching views in their original order
    """
    result = list(views)

    if search:
        term = search.lower()
        result = [
            view for view in result
            if term in (view.event.title or '').lower()
            or term in (view.event.location or '').lower()
            or term in (view.event.description or '').lower()
        ]

    if status and status != ALL:
        result = [view for view in result if view.status == status]

    if location and location != ALL:
        needle = location.lower()
        result = [view for view in result if needle in (view.event.location or '').lower()]

    return result


def total_pages(total_items: int, per_page: int) -> int:
    """Number of pages; never less than one."""
    if total_items <= 0 or per_page <= 0:
        return 1
    return math.ceil(total_items / per_page)


def paginate(items: Sequence[Any], page: int = 1, per_page: Optional[int] = None) -> Tuple[List[Any], int, int]:
    """
    Slice one page out of `items`.

    Returns:
        Tuple[List[Any], int, int]: The page's items, the page actually served
                                    (clamped to the valid range) and the total pages
    """
    per_page = per_page or Config.EVENTS_PER_PAGE
    pages = total_pages(len(items), per_page)
    page = min(max(page, 1), pages)
    start = (page - 1) * per_page
    return list(items[start:start + per_page]), page, pages


def unique_locations(views: Iterable[EventView]) -> List[str]:
    """Non-blank locations in first-seen order."""
    locations: List[str] = []
    for view in views:
        location = view.event.location
        if location and location.strip() and location not in locations:
            locations.append(location)
    return locations


class EventCatalog:
    """Builds event views for a viewer from the repository."""

    def __init__(self, repository: Optional[StaffingRepository] = None):
        self.repository = repository or StaffingRepository()
        self.aggregator = RegistrationAggregator(self.repository)

    def _window_start(self, window: str, now: datetime) -> Dict[str, datetime]:
        if window == WINDOW_UPCOMING:
            return {'starts_after': now}
        if window == WINDOW_MONTH:
            return {'starts_in_month_onwards': start_of_local_month(now)}
        raise ValueError(f"Unknown event window '{window}'")

    def load(
        self,
        window: str = WINDOW_MONTH,
        user_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[EventView]:
        """
        Load events in the window, annotated with counts and the viewer's state.

        Args:
            window: 'month' for events from the first day of the current month,
                    'upcoming' for events starting now or later
            user_id: The viewer; without one no slot is marked registered and
                     qualification checks run against an empty set
            now: Reference time, defaults to the current time

        Returns:
            List[EventView]: Views ordered by start ascending

        Raises:
            ServiceUnavailableError: If any of the reads fails
        """
        now = now or now_utc()
        bounds = self._window_start(window, now)

        try:
            events = self.repository.list_events(**bounds)
            filled = self.aggregator.load()
            user_qualifications = self.repository.list_user_qualifications(user_id) if user_id else []
            user_registrations = self.repository.list_registrations(user_id=user_id) if user_id else []
        except DatabaseError as e:
            logger.error(f"Error loading events for window '{window}': {e}")
            raise ServiceUnavailableError("Could not load events") from e

        return [
            build_event_view(
                event,
                filled.get(event.id, {}),
                user_qualifications,
                active_registration_for(user_registrations, event.id),
                now,
            )
            for event in events
        ]

    def get_event_view(
        self,
        event_id: str,
        user_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> EventView:
        """
        Build the view of a single event with freshly aggregated counts.

        Raises:
            EventNotFoundError: If the event does not exist
            ServiceUnavailableError: If any of the reads fails
        """
        try:
            event = self.repository.get_event(event_id)
            if event is None:
                raise EventNotFoundError(event_id)
            filled = self.aggregator.load(event_id=event_id)
            user_qualifications = self.repository.list_user_qualifications(user_id) if user_id else []
            registration = (
                self.repository.find_registration(event_id, user_id) if user_id else None
            )
        except DatabaseError as e:
            logger.error(f"Error loading event {event_id}: {e}")
            raise ServiceUnavailableError("Could not load event") from e

        if registration is not None and registration.status == RegistrationStatus.WITHDRAWN.value:
            registration = None

        return build_event_view(
            event,
            filled.get(event_id, {}),
            user_qualifications,
            registration,
            now,
        )
