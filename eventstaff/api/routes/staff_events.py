"""Staff event routes: the event list, event details and registration writes."""

import dataclasses
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from ...config.settings import Config
from ...services.events_admin import registration_with_profile
from ...schemas.staffing import RegistrationCreate
from ...staffing.catalog import (
    WINDOWS,
    EventCatalog,
    filter_events,
    paginate,
    unique_locations,
)
from ...staffing.writer import RegistrationOutcome, RegistrationWriter
from ..deps import is_admin, require_staff

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/staff", tags=["staff"])


def get_catalog() -> EventCatalog:
    return EventCatalog()


def get_writer() -> RegistrationWriter:
    return RegistrationWriter()


def outcome_to_dict(outcome: RegistrationOutcome) -> Dict[str, Any]:
    return {
        'notice': outcome.notice.to_dict(),
        'registration': dataclasses.asdict(outcome.registration) if outcome.registration else None,
        'contract_request': outcome.contract_request.to_dict() if outcome.contract_request else None,
        'user_registrations': (
            [dataclasses.asdict(r) for r in outcome.user_registrations]
            if outcome.user_registrations is not None else None
        ),
        'event': outcome.event.to_dict() if outcome.event else None,
    }


@router.get("/events")
def list_events(
    window: str = Query("month"),
    search: Optional[str] = None,
    status: Optional[str] = None,
    location: Optional[str] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(Config.EVENTS_PER_PAGE, ge=1, le=100),
    user_id: str = Depends(require_staff),
    catalog: EventCatalog = Depends(get_catalog),
):
    """Events in the window for the caller, filtered and paginated."""
    if window not in WINDOWS:
        raise HTTPException(status_code=422, detail=f"window must be one of {', '.join(WINDOWS)}")

    views = catalog.load(window=window, user_id=user_id)
    filtered = filter_events(views, search=search, status=status, location=location)
    items, page, pages = paginate(filtered, page, per_page)

    return {
        'events': [view.to_dict() for view in items],
        'page': page,
        'per_page': per_page,
        'total_pages': pages,
        'total': len(filtered),
        'window_total': len(views),
        'locations': unique_locations(views),
    }


@router.get("/events/{event_id}")
def get_event(
    event_id: str,
    user_id: str = Depends(require_staff),
    catalog: EventCatalog = Depends(get_catalog),
):
    """One event for the caller, with its registrations and registrants' names."""
    view = catalog.get_event_view(event_id, user_id)
    repository = catalog.repository
    registrations = repository.list_registrations(event_id=event_id)
    profiles = repository.list_profiles(r.user_id for r in registrations)
    return {
        'event': view.to_dict(),
        'registrations': [registration_with_profile(r, profiles.get(r.user_id)) for r in registrations],
    }


@router.post("/events/{event_id}/registrations", status_code=201)
def register(
    event_id: str,
    body: RegistrationCreate,
    user_id: str = Depends(require_staff),
    writer: RegistrationWriter = Depends(get_writer),
):
    """
    Register the caller for a staff category.

    Contract-required events answer 202 with the data for the contract
    dialog; nothing is written until the contract is signed.
    """
    outcome = writer.register(event_id, user_id, body.category)
    if outcome.requires_contract:
        return JSONResponse(status_code=202, content=jsonable_encoder(outcome_to_dict(outcome)))
    return outcome_to_dict(outcome)


@router.delete("/events/{event_id}/registrations/{registration_id}")
def unregister(
    event_id: str,
    registration_id: str,
    user_id: str = Depends(require_staff),
    writer: RegistrationWriter = Depends(get_writer),
):
    """Remove a registration; administrators may remove anyone's."""
    outcome = writer.unregister(registration_id, event_id, user_id, is_admin=is_admin(user_id))
    return outcome_to_dict(outcome)
