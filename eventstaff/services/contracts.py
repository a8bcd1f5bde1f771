"""Work contracts: the signing step in front of contract-required registrations."""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy import select

from ..db import db
from ..models import InternalEvent, Profile, WorkContract
from ..staffing.errors import (
    ConflictError,
    NotAllowedError,
    NotFoundError,
    ValidationFailedError,
)
from ..staffing.writer import RegistrationOutcome, RegistrationWriter
from ..utils.timezone import ensure_utc, local_zone, now_utc

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[str, str, str], RegistrationOutcome]


def _parse_wage(value: Any) -> Optional[Decimal]:
    try:
        wage = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        return None
    return wage if wage.is_finite() and wage > 0 else None


class ContractService:
    """
    Creates and signs work contracts.

    Signing hands over to `on_signed(event_id, user_id, staff_category)`, by
    default the registration writer's deferred write.
    """

    def __init__(
        self,
        writer: Optional[RegistrationWriter] = None,
        on_signed: Optional[CompletionCallback] = None,
    ):
        self.writer = writer or RegistrationWriter()
        self.on_signed = on_signed or self.writer.complete_contract_registration

    def create(
        self,
        event_id: str,
        user_id: str,
        staff_category: str,
        job_title: str,
        hourly_wage: Any,
        additional_agreements: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create the contract draft for a user, event and staff category.

        Start and end date are the event's local dates; an event without an
        end uses its start date. An unsigned draft for the same user, event
        and category is replaced.

        Raises:
            ValidationFailedError: If job title or wage are missing or invalid
            NotFoundError: If the event does not exist
            ConflictError: If the contract has already been signed
        """
        errors = {}
        if not (job_title or '').strip():
            errors['job_title'] = 'Job title is required'
        wage = _parse_wage(hourly_wage)
        if wage is None:
            errors['hourly_wage'] = 'Hourly wage must be a positive amount'
        if errors:
            raise ValidationFailedError(errors)

        zone = local_zone()
        with db.session() as session:
            event = session.get(InternalEvent, event_id)
            if event is None:
                raise NotFoundError("Event not found")
            start_date = ensure_utc(event.event_date).astimezone(zone).date()
            end_date = ensure_utc(event.end_date or event.event_date).astimezone(zone).date()

            contract = session.execute(
                select(WorkContract).where(
                    WorkContract.user_id == user_id,
                    WorkContract.event_id == event_id,
                    WorkContract.staff_category == staff_category,
                )
            ).scalar_one_or_none()

            if contract is not None and contract.signed_by_employee:
                raise ConflictError("The contract for this position has already been signed")

            if contract is None:
                contract = WorkContract(
                    user_id=user_id,
                    event_id=event_id,
                    staff_category=staff_category,
                )
                session.add(contract)

            contract.job_title = job_title.strip()
            contract.hourly_wage = wage
            contract.start_date = start_date
            contract.end_date = end_date
            contract.additional_agreements = additional_agreements
            session.flush()
            logger.info(f"Saved contract {contract.id} for user {user_id} on event {event_id}")
            return contract.to_dict()

    def sign(
        self,
        contract_id: str,
        user_id: str,
        signature_data_url: Optional[str] = None,
        use_existing_signature: bool = False,
    ) -> Tuple[Dict[str, Any], RegistrationOutcome]:
        """
        Sign a contract and complete the deferred registration.

        Signing an already signed contract skips the signature and only runs
        the completion again, so a registration that failed after signing can
        be retried.

        Returns:
            Tuple[Dict[str, Any], RegistrationOutcome]: The contract and the
            outcome of the completion callback

        Raises:
            NotFoundError: If the contract does not exist
            NotAllowedError: If the contract belongs to another user
            ValidationFailedError: If no signature is available
        """
        with db.session() as session:
            contract = session.get(WorkContract, contract_id)
            if contract is None:
                raise NotFoundError("Contract not found")
            if contract.user_id != user_id:
                raise NotAllowedError()

            if not contract.signed_by_employee:
                signature = signature_data_url
                if use_existing_signature:
                    profile = session.execute(
                        select(Profile).where(Profile.user_id == user_id)
                    ).scalar_one_or_none()
                    signature = profile.signature_data_url if profile else None
                if not signature:
                    raise ValidationFailedError({'signature': 'A signature is required'})

                contract.signature_data_url = signature
                contract.signed_at = now_utc()
                contract.signed_by_employee = True
                logger.info(f"Contract {contract_id} signed by user {user_id}")

            contract_data = contract.to_dict()

        outcome = self.on_signed(
            contract_data['event_id'],
            contract_data['user_id'],
            contract_data['staff_category'],
        )
        return contract_data, outcome

    def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        """The user's contracts with their event titles, newest first."""
        with db.session() as session:
            rows = session.execute(
                select(WorkContract, InternalEvent.title)
                .join(InternalEvent, InternalEvent.id == WorkContract.event_id)
                .where(WorkContract.user_id == user_id)
                .order_by(WorkContract.created_at.desc())
            ).all()
            return [dict(contract.to_dict(), event_title=title) for contract, title in rows]
