"""Administration of internal events and their registrations."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..db import db, StaffingRepository
from ..models import EventStatus, InternalEvent, RegistrationStatus
from ..schemas.staffing import EventCreate, EventUpdate
from ..staffing.aggregator import RegistrationAggregator
from ..staffing.catalog import EventView, build_event_view
from ..staffing.errors import (
    EventNotFoundError,
    RegistrationNotFoundError,
    ValidationFailedError,
)
from ..staffing.requirements import (
    parse_pricing_structure,
    parse_qualification_requirements,
    parse_staff_requirements,
    unmatched_categories,
)
from ..utils.timezone import ensure_utc, from_local, now_utc

logger = logging.getLogger(__name__)

JSON_FIELDS = ('staff_requirements', 'qualification_requirements', 'pricing_structure')

# Slot fields that only mean something for a particular viewer
VIEWER_SLOT_FIELDS = ('state', 'blocked_reason', 'eligible', 'missing_qualifications', 'registration_id')


def admin_event_dict(view: EventView) -> Dict[str, Any]:
    """Serialize an event for the admin console, without per-viewer slot state."""
    data = view.to_dict()
    data.pop('user_registration', None)
    data['slots'] = [
        {key: value for key, value in slot.items() if key not in VIEWER_SLOT_FIELDS}
        for slot in data['slots']
    ]
    return data


def validate_event_fields(fields: Dict[str, Any]) -> Dict[str, str]:
    """
    Check the fields of a new or updated event.

    Returns:
        Dict[str, str]: Field name to message; empty if valid
    """
    errors = {}
    if not (fields.get('title') or '').strip():
        errors['title'] = 'Title is required'
    if not (fields.get('location') or '').strip():
        errors['location'] = 'Location is required'
    start = fields.get('event_date')
    end = fields.get('end_date')
    if start is None:
        errors['event_date'] = 'Start is required'
    elif end is not None and ensure_utc(end) < ensure_utc(start):
        errors['end_date'] = 'The end must not be before the start'

    for index, requirement in enumerate(fields.get('staff_requirements') or []):
        if not (requirement.get('category') or '').strip():
            errors[f'staff_requirements.{index}.category'] = 'Category is required'
        if (requirement.get('count') or 0) < 0:
            errors[f'staff_requirements.{index}.count'] = 'Count must not be negative'

    guest_count = fields.get('guest_count')
    if guest_count is not None and guest_count < 0:
        errors['guest_count'] = 'Guest count must not be negative'
    return errors


class AdminEventService:
    """Creates, edits, cancels and deletes events; reviews registrations."""

    def __init__(self, repository: Optional[StaffingRepository] = None):
        self.repository = repository or StaffingRepository()
        self.aggregator = RegistrationAggregator(self.repository)

    def list_events(self, now: Optional[datetime] = None) -> List[EventView]:
        """Every event with counts and effective status, soonest first."""
        events = self.repository.list_events()
        filled = self.aggregator.load()
        return [build_event_view(event, filled.get(event.id, {}), now=now) for event in events]

    def _warn_unmatched(self, event_id: str, fields: Dict[str, Any]) -> None:
        unmatched = unmatched_categories(
            parse_staff_requirements(fields.get('staff_requirements'), event_id),
            parse_qualification_requirements(fields.get('qualification_requirements'), event_id),
            parse_pricing_structure(fields.get('pricing_structure'), event_id),
        )
        if unmatched:
            logger.warning(
                f"Event {event_id} names categories without staff requirement: {', '.join(unmatched)}"
            )

    def create(self, data: EventCreate, created_by: str) -> Dict[str, Any]:
        """
        Create an event.

        Raises:
            ValidationFailedError: If a field is missing or inconsistent
        """
        fields = data.model_dump()
        fields['event_date'] = from_local(fields['event_date'])
        fields['end_date'] = from_local(fields.get('end_date'))
        errors = validate_event_fields(fields)
        if errors:
            raise ValidationFailedError(errors)

        with db.session() as session:
            event = InternalEvent(created_by=created_by, status=EventStatus.PLANNED.value, **fields)
            session.add(event)
            session.flush()
            result = event.to_dict()

        self._warn_unmatched(result['id'], fields)
        logger.info(f"Event {result['id']} created by {created_by}")
        return result

    def update(self, event_id: str, data: EventUpdate) -> Dict[str, Any]:
        """
        Update the given fields of an event.

        Raises:
            EventNotFoundError: If the event does not exist
            ValidationFailedError: If the resulting event would be invalid
        """
        changes = data.model_dump(exclude_unset=True)
        for key in ('event_date', 'end_date'):
            if key in changes:
                changes[key] = from_local(changes[key])

        with db.session() as session:
            event = session.get(InternalEvent, event_id)
            if event is None:
                raise EventNotFoundError(event_id)

            merged = {
                'title': event.title,
                'location': event.location,
                'event_date': event.event_date,
                'end_date': event.end_date,
                'guest_count': event.guest_count,
                'staff_requirements': [
                    {'category': r.category, 'count': r.count}
                    for r in parse_staff_requirements(event.staff_requirements, event_id)
                ],
            }
            merged.update(changes)
            errors = validate_event_fields(merged)
            if errors:
                raise ValidationFailedError(errors)

            for key, value in changes.items():
                setattr(event, key, value)
            event.updated_at = now_utc()
            session.flush()
            result = event.to_dict()

        if any(key in changes for key in JSON_FIELDS):
            self._warn_unmatched(event_id, result)
        logger.info(f"Event {event_id} updated: {', '.join(sorted(changes)) or 'no changes'}")
        return result

    def cancel(self, event_id: str) -> Dict[str, Any]:
        """Mark an event as cancelled; registrations are kept."""
        with db.session() as session:
            event = session.get(InternalEvent, event_id)
            if event is None:
                raise EventNotFoundError(event_id)
            event.status = EventStatus.CANCELLED.value
            event.updated_at = now_utc()
            logger.info(f"Event {event_id} cancelled")
            return event.to_dict()

    def delete(self, event_id: str) -> None:
        """Delete an event together with its registrations."""
        with db.session() as session:
            event = session.get(InternalEvent, event_id)
            if event is None:
                raise EventNotFoundError(event_id)
            session.delete(event)
        logger.info(f"Event {event_id} deleted")

    def list_registrations(self, event_id: str) -> List[Dict[str, Any]]:
        """Registrations of an event with the registrant's profile."""
        if self.repository.get_event(event_id) is None:
            raise EventNotFoundError(event_id)
        registrations = self.repository.list_registrations(event_id=event_id)
        profiles = self.repository.list_profiles(r.user_id for r in registrations)
        return [registration_with_profile(r, profiles.get(r.user_id)) for r in registrations]

    def update_registration(
        self,
        registration_id: str,
        status: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Change status and/or notes of a registration.

        Raises:
            ValidationFailedError: If the status is not a registration status
            RegistrationNotFoundError: If the registration does not exist
        """
        fields = {}
        if status is not None:
            if status not in {s.value for s in RegistrationStatus}:
                raise ValidationFailedError({'status': f"Unknown status '{status}'"})
            fields['status'] = status
        if notes is not None:
            fields['notes'] = notes

        if fields:
            registration = self.repository.update_registration(registration_id, **fields)
        else:
            registration = self.repository.get_registration(registration_id)
        if registration is None:
            raise RegistrationNotFoundError()

        logger.info(f"Registration {registration_id} updated: {', '.join(sorted(fields)) or 'no changes'}")
        return registration_with_profile(registration, None)


def registration_with_profile(registration, profile: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        'id': registration.id,
        'event_id': registration.event_id,
        'user_id': registration.user_id,
        'staff_category': registration.staff_category,
        'status': registration.status,
        'notes': registration.notes,
        'created_at': registration.created_at,
        'profile': (
            {
                'first_name': profile.get('first_name'),
                'last_name': profile.get('last_name'),
                'full_name': profile.get('full_name'),
            }
            if profile else None
        ),
    }
