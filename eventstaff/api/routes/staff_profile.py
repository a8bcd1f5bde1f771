"""Staff routes about the caller: my events, qualifications and work contracts."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...schemas.staffing import ContractCreate, ContractSign, QualificationRequestCreate
from ...services.contracts import ContractService
from ...services.my_events import SCOPE_ALL, SCOPE_PAST, SCOPE_UPCOMING, list_my_registrations
from ...services.qualifications import QualificationService
from ..deps import current_user_id, require_staff
from .staff_events import outcome_to_dict

router = APIRouter(tags=["staff"])


def get_qualification_service() -> QualificationService:
    return QualificationService()


def get_contract_service() -> ContractService:
    return ContractService()


@router.get("/staff/me/registrations")
def my_registrations(
    status: Optional[str] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
    scope: str = Query(SCOPE_UPCOMING, pattern=f"^({SCOPE_UPCOMING}|{SCOPE_PAST}|{SCOPE_ALL})$"),
    user_id: str = Depends(require_staff),
):
    return {
        'registrations': list_my_registrations(
            user_id, status=status, category=category, search=search, scope=scope,
        )
    }


@router.get("/qualifications")
def qualification_catalog(
    user_id: str = Depends(current_user_id),
    service: QualificationService = Depends(get_qualification_service),
):
    return {'qualifications': service.list_catalog()}


@router.get("/staff/me/qualifications")
def my_qualifications(
    user_id: str = Depends(require_staff),
    service: QualificationService = Depends(get_qualification_service),
):
    return {'qualifications': service.list_for_user(user_id)}


@router.get("/staff/me/qualification-requests")
def my_qualification_requests(
    user_id: str = Depends(require_staff),
    service: QualificationService = Depends(get_qualification_service),
):
    return {'requests': service.list_requests(user_id=user_id)}


@router.post("/staff/me/qualification-requests", status_code=201)
def request_qualification(
    body: QualificationRequestCreate,
    user_id: str = Depends(require_staff),
    service: QualificationService = Depends(get_qualification_service),
):
    return service.request(user_id, body.qualification_id, notes=body.notes, proof_files=body.proof_files)


@router.post("/staff/contracts", status_code=201)
def create_contract(
    body: ContractCreate,
    user_id: str = Depends(require_staff),
    service: ContractService = Depends(get_contract_service),
):
    """Save the contract draft for the caller's pending registration."""
    return service.create(
        event_id=body.event_id,
        user_id=user_id,
        staff_category=body.staff_category,
        job_title=body.job_title,
        hourly_wage=body.hourly_wage,
        additional_agreements=body.additional_agreements,
    )


@router.post("/staff/contracts/{contract_id}/sign")
def sign_contract(
    contract_id: str,
    body: ContractSign,
    user_id: str = Depends(require_staff),
    service: ContractService = Depends(get_contract_service),
):
    """Sign the contract; the deferred registration is written afterwards."""
    contract, outcome = service.sign(
        contract_id,
        user_id,
        signature_data_url=body.signature_data_url,
        use_existing_signature=body.use_existing_signature,
    )
    return {'contract': contract, **outcome_to_dict(outcome)}


@router.get("/staff/me/contracts")
def my_contracts(
    user_id: str = Depends(require_staff),
    service: ContractService = Depends(get_contract_service),
):
    return {'contracts': service.list_for_user(user_id)}
