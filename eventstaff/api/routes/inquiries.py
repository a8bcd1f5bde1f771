"""Public routes: contact form, quote request wizard and 'my offers'."""

from typing import Optional

from fastapi import APIRouter, Body, Depends

from ...schemas.inquiries import ContactRequestCreate, StepValidationRequest
from ...services.inquiries import InquiryService, validate_step
from ...services import users
from ..deps import current_user_id, optional_user_id

router = APIRouter(tags=["inquiries"])


def get_inquiry_service() -> InquiryService:
    return InquiryService()


@router.post("/contact-requests", status_code=201)
def create_contact_request(
    body: ContactRequestCreate,
    service: InquiryService = Depends(get_inquiry_service),
):
    return service.create_contact_request(body)


@router.post("/event-requests/validate-step")
def validate_event_request_step(body: StepValidationRequest):
    """Validate one wizard step; the client moves on only when `valid` is true."""
    errors = validate_step(body.step, body.data)
    return {'step': body.step, 'valid': not errors, 'errors': errors}


@router.post("/event-requests", status_code=201)
def submit_event_request(
    data: dict = Body(...),
    user_id: Optional[str] = Depends(optional_user_id),
    service: InquiryService = Depends(get_inquiry_service),
):
    return service.submit_event_request(data, user_id=user_id)


@router.get("/me/event-requests")
def my_event_requests(
    user_id: str = Depends(current_user_id),
    service: InquiryService = Depends(get_inquiry_service),
):
    """The caller's quote requests by user id, falling back to their profile e-mail."""
    profile = users.get_profile(user_id)
    return {'requests': service.list_for_customer(user_id, profile.email if profile else None)}
