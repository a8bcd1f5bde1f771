"""Administration routes: events, registrations, qualifications, requests and roles."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response

from ...schemas.inquiries import EventRequestStatusUpdate
from ...schemas.staffing import (
    EventCreate,
    EventUpdate,
    QualificationApproval,
    QualificationCreate,
    QualificationRejection,
    RegistrationUpdate,
    RoleUpdate,
)
from ...services import users
from ...services.events_admin import AdminEventService, admin_event_dict
from ...services.inquiries import InquiryService
from ...services.qualifications import QualificationService
from ..deps import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def get_event_service() -> AdminEventService:
    return AdminEventService()


def get_qualification_service() -> QualificationService:
    return QualificationService()


def get_inquiry_service() -> InquiryService:
    return InquiryService()


# Events

@router.get("/events")
def list_events(
    admin_id: str = Depends(require_admin),
    service: AdminEventService = Depends(get_event_service),
):
    """Every event with effective status and filled counts."""
    return {'events': [admin_event_dict(view) for view in service.list_events()]}


@router.post("/events", status_code=201)
def create_event(
    body: EventCreate,
    admin_id: str = Depends(require_admin),
    service: AdminEventService = Depends(get_event_service),
):
    return service.create(body, created_by=admin_id)


@router.put("/events/{event_id}")
def update_event(
    event_id: str,
    body: EventUpdate,
    admin_id: str = Depends(require_admin),
    service: AdminEventService = Depends(get_event_service),
):
    return service.update(event_id, body)


@router.post("/events/{event_id}/cancel")
def cancel_event(
    event_id: str,
    admin_id: str = Depends(require_admin),
    service: AdminEventService = Depends(get_event_service),
):
    return service.cancel(event_id)


@router.delete("/events/{event_id}", status_code=204)
def delete_event(
    event_id: str,
    admin_id: str = Depends(require_admin),
    service: AdminEventService = Depends(get_event_service),
):
    service.delete(event_id)
    return Response(status_code=204)


# Registrations

@router.get("/events/{event_id}/registrations")
def event_registrations(
    event_id: str,
    admin_id: str = Depends(require_admin),
    service: AdminEventService = Depends(get_event_service),
):
    return {'registrations': service.list_registrations(event_id)}


@router.patch("/registrations/{registration_id}")
def update_registration(
    registration_id: str,
    body: RegistrationUpdate,
    admin_id: str = Depends(require_admin),
    service: AdminEventService = Depends(get_event_service),
):
    return service.update_registration(registration_id, status=body.status, notes=body.notes)


# Qualifications

@router.post("/qualifications", status_code=201)
def create_qualification(
    body: QualificationCreate,
    admin_id: str = Depends(require_admin),
    service: QualificationService = Depends(get_qualification_service),
):
    return service.create_qualification(
        body.name,
        description=body.description,
        is_expirable=body.is_expirable,
        validity_period_months=body.validity_period_months,
    )


@router.get("/qualifications/expiring")
def expiring_qualifications(
    admin_id: str = Depends(require_admin),
    service: QualificationService = Depends(get_qualification_service),
):
    return {'qualifications': service.list_expiring()}


@router.get("/qualification-requests")
def qualification_requests(
    status: Optional[str] = None,
    admin_id: str = Depends(require_admin),
    service: QualificationService = Depends(get_qualification_service),
):
    return {'requests': service.list_requests(status=status)}


@router.post("/qualification-requests/{request_id}/approve")
def approve_qualification_request(
    request_id: str,
    body: QualificationApproval,
    admin_id: str = Depends(require_admin),
    service: QualificationService = Depends(get_qualification_service),
):
    return service.approve(
        request_id,
        reviewer_id=admin_id,
        admin_notes=body.admin_notes,
        valid_from=body.valid_from,
        valid_until=body.valid_until,
    )


@router.post("/qualification-requests/{request_id}/reject")
def reject_qualification_request(
    request_id: str,
    body: QualificationRejection,
    admin_id: str = Depends(require_admin),
    service: QualificationService = Depends(get_qualification_service),
):
    return service.reject(request_id, reviewer_id=admin_id, admin_notes=body.admin_notes)


# Customer requests

@router.get("/contact-requests")
def contact_requests(
    admin_id: str = Depends(require_admin),
    service: InquiryService = Depends(get_inquiry_service),
):
    return {'requests': service.list_contact_requests()}


@router.get("/event-requests")
def event_requests(
    status: Optional[str] = None,
    search: Optional[str] = None,
    admin_id: str = Depends(require_admin),
    service: InquiryService = Depends(get_inquiry_service),
):
    return {'requests': service.list_event_requests(status=status, search=search)}


@router.patch("/event-requests/{request_id}")
def update_event_request(
    request_id: str,
    body: EventRequestStatusUpdate,
    admin_id: str = Depends(require_admin),
    service: InquiryService = Depends(get_inquiry_service),
):
    return service.update_event_request_status(request_id, body.status)


# Users

@router.put("/users/{user_id}/roles")
def update_roles(
    user_id: str,
    body: RoleUpdate,
    admin_id: str = Depends(require_admin),
):
    roles = users.set_role(user_id, body.role, body.granted)
    logger.info(f"Roles of user {user_id} changed by {admin_id}: {', '.join(roles) or 'none'}")
    return {'user_id': user_id, 'roles': roles}
