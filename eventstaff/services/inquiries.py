"""Contact requests and quote (event) requests from the public site."""

import logging
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError

from ..config.settings import Config
from ..db import db, SessionError
from ..models import ContactRequest, EventRequest, RequestStatus
from ..schemas.inquiries import (
    ContactRequestCreate,
    ContactStep,
    EventDetailsStep,
    ServicesStep,
)
from ..staffing.errors import NotFoundError, ValidationFailedError
from ..utils.timezone import local_zone, now_utc
from .notifications import (
    CONTACT_NOTIFICATION,
    OFFER_CONFIRMATION,
    OFFER_NOTIFICATION,
    NotificationClient,
)

logger = logging.getLogger(__name__)

LOCATION_PENDING = 'Location wird gesucht'

# Inserts tried before a clash on the offer number is reported
OFFER_NUMBER_ATTEMPTS = 3

# Wizard steps: schema and the key under which the step's fields are nested
STEPS: Dict[int, Tuple[Type[BaseModel], Optional[str]]] = {
    1: (EventDetailsStep, None),
    2: (ServicesStep, None),
    3: (ContactStep, 'contact'),
}

ERROR_MESSAGES = {
    'event_title': 'Event title is required',
    'event_date': 'Event date is required',
    'guest_count': 'Expected guest count is required',
    'tech_requirements': 'Select at least one technical requirement',
    'contact.name': 'Name is required',
    'contact.email': 'A valid e-mail address is required',
    'contact.phone': 'A valid phone number is required',
    'contact.street': 'Street is required',
    'contact.house_number': 'House number is required',
    'contact.postal_code': 'Postal code must have 5 digits',
    'contact.city': 'City is required',
    'name': 'Name must be at least 2 characters',
    'email': 'A valid e-mail address is required',
    'message': 'Message must be at least 10 characters',
}


def _errors_from(exc: ValidationError, prefix: Optional[str] = None) -> Dict[str, str]:
    errors = {}
    for error in exc.errors():
        field = '.'.join(str(part) for part in error['loc'][:1]) or '__root__'
        key = f"{prefix}.{field}" if prefix else field
        errors.setdefault(key, ERROR_MESSAGES.get(key, error['msg']))
    return errors


def _event_details_errors(details: EventDetailsStep) -> Dict[str, str]:
    errors = {}
    if details.is_multi_day:
        if details.end_date is None:
            errors['end_date'] = 'End date is required for multi-day events'
        elif details.end_date < details.event_date:
            errors['end_date'] = 'End date must not be before the event date'
    if details.location_option == 'has_location' and not details.location:
        errors['location'] = 'Location is required'
    return errors


def _parse_step(step: int, data: Dict[str, Any]) -> Tuple[Optional[BaseModel], Dict[str, str]]:
    if step not in STEPS:
        raise ValidationFailedError({'step': f"Unknown step {step}"})
    schema, nested_key = STEPS[step]
    payload = (data.get(nested_key) or {}) if nested_key else data
    try:
        model = schema.model_validate(payload)
    except ValidationError as e:
        return None, _errors_from(e, nested_key)
    if isinstance(model, EventDetailsStep):
        return model, _event_details_errors(model)
    return model, {}


def validate_step(step: int, data: Dict[str, Any]) -> Dict[str, str]:
    """
    Validate one step of the quote request wizard.

    Args:
        step: 1 (event details), 2 (services) or 3 (contact)
        data: The whole form; step 3 reads the nested 'contact' object

    Returns:
        Dict[str, str]: Field name to message; empty if the step is valid
    """
    _, errors = _parse_step(step, data)
    return errors


def _offer_number(session, year: int) -> str:
    prefix = f"{Config.OFFER_NUMBER_PREFIX}-{year}-"
    existing = session.execute(
        select(EventRequest.offer_number).where(EventRequest.offer_number.like(f"{prefix}%"))
    ).scalars().all()
    sequence = 0
    for number in existing:
        suffix = number[len(prefix):]
        if suffix.isdigit():
            sequence = max(sequence, int(suffix))
    return f"{prefix}{sequence + 1:04d}"


def _json_safe(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: value.isoformat() if hasattr(value, 'isoformat') else value
        for key, value in data.items()
    }


class InquiryService:
    """Stores customer requests and dispatches their notification e-mails."""

    def __init__(self, notifications: Optional[NotificationClient] = None):
        self.notifications = notifications or NotificationClient()

    # Contact requests

    def create_contact_request(self, data: ContactRequestCreate) -> Dict[str, Any]:
        with db.session() as session:
            request = ContactRequest(**data.model_dump())
            session.add(request)
            session.flush()
            result = request.to_dict()

        logger.info(f"Stored contact request {result['id']}")
        self.notifications.send(CONTACT_NOTIFICATION, _json_safe(result))
        return result

    def list_contact_requests(self) -> List[Dict[str, Any]]:
        with db.session() as session:
            rows = session.execute(
                select(ContactRequest).order_by(ContactRequest.created_at.desc())
            ).scalars().all()
            return [row.to_dict() for row in rows]

    # Quote requests

    def submit_event_request(self, data: Dict[str, Any], user_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Validate all three steps and store the quote request.

        The request is stored with status ANGEFRAGT and the next offer number
        of the current year; the business and the customer are notified.

        Raises:
            ValidationFailedError: With every field error of every step
        """
        models = {}
        errors: Dict[str, str] = {}
        for step in STEPS:
            model, step_errors = _parse_step(step, data)
            errors.update(step_errors)
            models[step] = model
        if errors:
            raise ValidationFailedError(errors)

        details: EventDetailsStep = models[1]
        services: ServicesStep = models[2]
        contact: ContactStep = models[3]

        year = now_utc().astimezone(local_zone()).year
        fields = dict(
            user_id=user_id,
            event_title=details.event_title,
            event_date=details.event_date,
            end_date=details.end_date if details.is_multi_day else None,
            end_time=details.end_time,
            location=details.location if details.location_option == 'has_location' else LOCATION_PENDING,
            guest_count=details.guest_count,
            dj_genres=services.dj_genres,
            photographer=services.photographer,
            videographer=services.videographer,
            light_operator=services.light_operator,
            tech_requirements=services.tech_requirements,
            additional_wishes=services.additional_wishes or '',
            contact_name=contact.name,
            contact_email=contact.email,
            contact_phone=contact.phone,
            contact_company=contact.company or '',
            contact_street=contact.street,
            contact_house_number=contact.house_number,
            contact_postal_code=contact.postal_code,
            contact_city=contact.city,
            status=RequestStatus.REQUESTED.value,
        )
        result = self._store_event_request(fields, year)

        logger.info(f"Stored event request {result['id']} as {result['offer_number']}")
        payload = _json_safe(result)
        self.notifications.send(OFFER_NOTIFICATION, payload)
        self.notifications.send(OFFER_CONFIRMATION, payload)
        return result

    def _store_event_request(self, fields: Dict[str, Any], year: int) -> Dict[str, Any]:
        """
        Insert a quote request under the next free offer number.

        A concurrent submission can claim the same number between reading the
        highest one and committing; the unique constraint rejects the second
        insert, which is then repeated with a freshly computed number.
        """
        for attempt in range(1, OFFER_NUMBER_ATTEMPTS + 1):
            try:
                with db.session() as session:
                    request = EventRequest(offer_number=_offer_number(session, year), **fields)
                    session.add(request)
                    session.flush()
                    return request.to_dict()
            except SessionError as e:
                if not isinstance(e.__cause__, IntegrityError) or attempt == OFFER_NUMBER_ATTEMPTS:
                    raise
                logger.warning(f"Offer number already taken (attempt {attempt}), retrying: {e}")

    def list_for_customer(self, user_id: Optional[str], email: Optional[str] = None) -> List[Dict[str, Any]]:
        """A customer's requests by user id, falling back to their e-mail address."""
        with db.session() as session:
            rows = []
            if user_id:
                rows = session.execute(
                    select(EventRequest)
                    .where(EventRequest.user_id == user_id)
                    .order_by(EventRequest.created_at.desc())
                ).scalars().all()
            if not rows and email:
                rows = session.execute(
                    select(EventRequest)
                    .where(func.lower(EventRequest.contact_email) == email.lower())
                    .order_by(EventRequest.created_at.desc())
                ).scalars().all()
            return [row.to_dict() for row in rows]

    def list_event_requests(self, status: Optional[str] = None, search: Optional[str] = None) -> List[Dict[str, Any]]:
        """All requests, newest first, with status filter and search."""
        with db.session() as session:
            query = select(EventRequest)
            if status and status != 'all':
                query = query.where(EventRequest.status == status)
            if search:
                term = f"%{search.lower()}%"
                query = query.where(or_(
                    func.lower(EventRequest.event_title).like(term),
                    func.lower(EventRequest.contact_name).like(term),
                    func.lower(EventRequest.contact_email).like(term),
                    func.lower(EventRequest.offer_number).like(term),
                ))
            query = query.order_by(EventRequest.created_at.desc())
            return [row.to_dict() for row in session.execute(query).scalars().all()]

    def update_event_request_status(self, request_id: str, status: str) -> Dict[str, Any]:
        """
        Raises:
            ValidationFailedError: If the status is not a request status
            NotFoundError: If the request does not exist
        """
        if status not in {s.value for s in RequestStatus}:
            raise ValidationFailedError({'status': f"Unknown status '{status}'"})
        with db.session() as session:
            request = session.get(EventRequest, request_id)
            if request is None:
                raise NotFoundError("Event request not found")
            request.status = status
            request.updated_at = now_utc()
            logger.info(f"Event request {request_id} set to {status}")
            return request.to_dict()
