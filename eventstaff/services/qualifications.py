"""Qualification catalog, held qualifications and the request/review workflow."""

import calendar
import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ..db import db, SessionError
from ..models import (
    EmployeeQualification,
    Qualification,
    QualificationRequest,
    QualificationRequestStatus,
)
from ..staffing.errors import ConflictError, NotFoundError, ValidationFailedError
from ..utils.timezone import local_zone, now_utc

logger = logging.getLogger(__name__)

EXPIRY_WARNING_DAYS = 60


def add_months(start: date, months: int) -> date:
    """Add calendar months, clamping the day to the target month's length."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def local_today() -> date:
    return now_utc().astimezone(local_zone()).date()


class QualificationService:
    """Reads and writes qualifications and qualification requests."""

    # Catalog

    def list_catalog(self) -> List[Dict[str, Any]]:
        with db.session() as session:
            rows = session.execute(select(Qualification).order_by(Qualification.name)).scalars().all()
            return [row.to_dict() for row in rows]

    def create_qualification(
        self,
        name: str,
        description: Optional[str] = None,
        is_expirable: bool = False,
        validity_period_months: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Add a qualification to the catalog.

        Raises:
            ValidationFailedError: If the name is blank or the validity period is invalid
            ConflictError: If a qualification with that name exists
        """
        name = (name or '').strip()
        errors = {}
        if not name:
            errors['name'] = 'Name is required'
        if validity_period_months is not None and validity_period_months <= 0:
            errors['validity_period_months'] = 'Validity period must be at least one month'
        if errors:
            raise ValidationFailedError(errors)

        try:
            with db.session() as session:
                qualification = Qualification(
                    name=name,
                    description=description,
                    is_expirable=is_expirable,
                    validity_period_months=validity_period_months if is_expirable else None,
                )
                session.add(qualification)
                session.flush()
                logger.info(f"Created qualification {qualification.id} '{name}'")
                return qualification.to_dict()
        except SessionError as e:
            if isinstance(e.__cause__, IntegrityError):
                raise ConflictError(f"Qualification '{name}' already exists") from e
            raise

    # Held qualifications

    def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        with db.session() as session:
            rows = session.execute(
                select(EmployeeQualification).where(EmployeeQualification.user_id == user_id)
            ).scalars().all()
            return [row.to_dict() for row in rows]

    def list_expiring(self, days: int = EXPIRY_WARNING_DAYS, today: Optional[date] = None) -> List[Dict[str, Any]]:
        """Held qualifications expiring between today and `days` from now, soonest first."""
        today = today or local_today()
        with db.session() as session:
            rows = session.execute(
                select(EmployeeQualification)
                .where(
                    EmployeeQualification.expires_at.is_not(None),
                    EmployeeQualification.expires_at >= today,
                    EmployeeQualification.expires_at <= today + timedelta(days=days),
                )
                .order_by(EmployeeQualification.expires_at.asc())
            ).scalars().all()
            return [row.to_dict() for row in rows]

    # Requests

    def request(
        self,
        user_id: str,
        qualification_id: str,
        notes: Optional[str] = None,
        proof_files: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """
        File a request to have a qualification recognised.

        Raises:
            NotFoundError: If the qualification does not exist
            ConflictError: If the user already holds it or has a pending request
        """
        with db.session() as session:
            if session.get(Qualification, qualification_id) is None:
                raise NotFoundError("Qualification not found")

            held = session.execute(
                select(EmployeeQualification.id).where(
                    EmployeeQualification.user_id == user_id,
                    EmployeeQualification.qualification_id == qualification_id,
                )
            ).first()
            if held:
                raise ConflictError("You already hold this qualification")

            pending = session.execute(
                select(QualificationRequest.id).where(
                    QualificationRequest.user_id == user_id,
                    QualificationRequest.qualification_id == qualification_id,
                    QualificationRequest.status == QualificationRequestStatus.PENDING.value,
                )
            ).first()
            if pending:
                raise ConflictError("A request for this qualification is already pending")

            request = QualificationRequest(
                user_id=user_id,
                qualification_id=qualification_id,
                status=QualificationRequestStatus.PENDING.value,
                notes=notes,
                proof_files=proof_files or [],
            )
            session.add(request)
            session.flush()
            session.refresh(request)
            logger.info(f"User {user_id} requested qualification {qualification_id}")
            return request.to_dict()

    def list_requests(
        self,
        user_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Requests, newest first, optionally for one user or one status."""
        with db.session() as session:
            query = select(QualificationRequest)
            if user_id is not None:
                query = query.where(QualificationRequest.user_id == user_id)
            if status and status != 'all':
                query = query.where(QualificationRequest.status == status)
            query = query.order_by(QualificationRequest.created_at.desc())
            return [row.to_dict() for row in session.execute(query).scalars().all()]

    def _pending_request(self, session, request_id: str) -> QualificationRequest:
        request = session.get(QualificationRequest, request_id)
        if request is None:
            raise NotFoundError("Qualification request not found")
        if request.status != QualificationRequestStatus.PENDING.value:
            raise ConflictError("Only pending requests can be reviewed")
        return request

    def approve(
        self,
        request_id: str,
        reviewer_id: str,
        admin_notes: Optional[str] = None,
        valid_from: Optional[date] = None,
        valid_until: Optional[date] = None,
    ) -> Dict[str, Any]:
        """
        Approve a pending request and record the qualification as held.

        For expirable qualifications a validity window is required; without an
        explicit end it runs for the qualification's validity period. Other
        qualifications are held from today without expiry.

        Raises:
            NotFoundError: If the request does not exist
            ConflictError: If the request is no longer pending
            ValidationFailedError: If the validity window is missing or inverted
        """
        with db.session() as session:
            request = self._pending_request(session, request_id)
            qualification = request.qualification

            if qualification.is_expirable:
                if valid_from and valid_until is None and qualification.validity_period_months:
                    valid_until = add_months(valid_from, qualification.validity_period_months)
                if valid_from is None or valid_until is None:
                    raise ValidationFailedError(
                        {'validity': 'A validity period (from/until) is required'}
                    )
                if valid_until < valid_from:
                    raise ValidationFailedError(
                        {'validity': 'The end date must not be before the start date'}
                    )
                acquired, expires = valid_from, valid_until
            else:
                acquired, expires = local_today(), None

            request.status = QualificationRequestStatus.APPROVED.value
            request.admin_notes = admin_notes
            request.reviewed_at = now_utc()
            request.reviewed_by = reviewer_id

            held = session.execute(
                select(EmployeeQualification).where(
                    EmployeeQualification.user_id == request.user_id,
                    EmployeeQualification.qualification_id == request.qualification_id,
                )
            ).scalar_one_or_none()
            if held is None:
                held = EmployeeQualification(
                    user_id=request.user_id,
                    qualification_id=request.qualification_id,
                )
                session.add(held)
            held.acquired_date = acquired
            held.expires_at = expires
            held.proof_files = request.proof_files or []

            logger.info(f"Request {request_id} approved by {reviewer_id}")
            return request.to_dict()

    def reject(self, request_id: str, reviewer_id: str, admin_notes: Optional[str] = None) -> Dict[str, Any]:
        with db.session() as session:
            request = self._pending_request(session, request_id)
            request.status = QualificationRequestStatus.REJECTED.value
            request.admin_notes = admin_notes
            request.reviewed_at = now_utc()
            request.reviewed_by = reviewer_id
            logger.info(f"Request {request_id} rejected by {reviewer_id}")
            return request.to_dict()
