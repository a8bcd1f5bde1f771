"""Staffing repository: the logical read/write operations on events and registrations.

Every row leaving this module is converted into a record from
`eventstaff.staffing.records`; the loosely-typed JSON fields are decoded here
and nowhere else.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from .db_core import db, Database, DatabaseError, SessionError
from ..models import (
    EmployeeQualification,
    EventRegistration,
    InternalEvent,
    Profile,
    RegistrationStatus,
)
from ..staffing.records import (
    AssignmentResult,
    EventRecord,
    RegistrationRecord,
    UserQualificationRecord,
)
from ..staffing.requirements import (
    parse_pricing_structure,
    parse_qualification_requirements,
    parse_staff_requirements,
)
from ..utils.timezone import ensure_utc, now_utc

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE for unique_violation
UNIQUE_VIOLATION_CODE = '23505'

# Fields a caller may change through update_registration
UPDATABLE_REGISTRATION_FIELDS = ('staff_category', 'status', 'notes')


class DuplicateRegistrationError(DatabaseError):
    """The (event, user) uniqueness constraint rejected a write."""
    pass


def _is_unique_violation(exc: BaseException) -> bool:
    """
    Recognize a unique-constraint violation behind a session error.

    PostgreSQL drivers expose the SQLSTATE (psycopg as `sqlstate`, psycopg2 as
    `pgcode`); SQLite only reports it in the message.
    """
    cause = exc if isinstance(exc, IntegrityError) else exc.__cause__
    if not isinstance(cause, IntegrityError):
        return False
    orig = cause.orig
    code = getattr(orig, 'sqlstate', None) or getattr(orig, 'pgcode', None)
    if code == UNIQUE_VIOLATION_CODE:
        return True
    return 'UNIQUE constraint failed' in str(orig)


def to_event_record(row: InternalEvent) -> EventRecord:
    """Convert an event row, decoding its JSON fields once."""
    return EventRecord(
        id=row.id,
        title=row.title,
        start=ensure_utc(row.event_date),
        end=ensure_utc(row.end_date),
        location=row.location,
        stored_status=row.status,
        description=row.description,
        guest_count=row.guest_count,
        notes=row.notes,
        contract_required=bool(row.contract_required),
        staff_requirements=parse_staff_requirements(row.staff_requirements, row.id),
        qualification_requirements=parse_qualification_requirements(row.qualification_requirements, row.id),
        pricing_structure=parse_pricing_structure(row.pricing_structure, row.id),
    )


def to_registration_record(row: EventRegistration) -> RegistrationRecord:
    return RegistrationRecord(
        id=row.id,
        event_id=row.event_id,
        user_id=row.user_id,
        staff_category=row.staff_category,
        status=row.status,
        notes=row.notes,
        created_at=ensure_utc(row.created_at),
    )


class StaffingRepository:
    """Data access for internal events, registrations and held qualifications."""

    def __init__(self, database: Database = db):
        self.database = database

    # Events

    def list_events(
        self,
        starts_after: Optional[datetime] = None,
        starts_in_month_onwards: Optional[datetime] = None,
        event_ids: Optional[Iterable[str]] = None,
    ) -> List[EventRecord]:
        """
        List events ordered by start ascending.

        Args:
            starts_after: Only events starting at or after this instant
            starts_in_month_onwards: Only events starting at or after this
                                     instant (the first day of a month)
            event_ids: Restrict to these ids

        Returns:
            List[EventRecord]: Decoded events

        Raises:
            DatabaseError: If the query fails
        """
        lower_bound = starts_after or starts_in_month_onwards
        with self.database.session() as session:
            query = select(InternalEvent)
            if lower_bound is not None:
                query = query.where(InternalEvent.event_date >= ensure_utc(lower_bound))
            if event_ids is not None:
                query = query.where(InternalEvent.id.in_(list(event_ids)))
            query = query.order_by(InternalEvent.event_date.asc())
            rows = session.execute(query).scalars().all()
            return [to_event_record(row) for row in rows]

    def get_event(self, event_id: str) -> Optional[EventRecord]:
        with self.database.session() as session:
            row = session.get(InternalEvent, event_id)
            return to_event_record(row) if row else None

    # Registrations

    def list_registrations(
        self,
        status: Optional[str] = None,
        event_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> List[RegistrationRecord]:
        """List registrations matching every given filter, oldest first."""
        with self.database.session() as session:
            query = select(EventRegistration)
            if status is not None:
                query = query.where(EventRegistration.status == status)
            if event_id is not None:
                query = query.where(EventRegistration.event_id == event_id)
            if user_id is not None:
                query = query.where(EventRegistration.user_id == user_id)
            query = query.order_by(EventRegistration.created_at.asc())
            rows = session.execute(query).scalars().all()
            return [to_registration_record(row) for row in rows]

    def get_registration(self, registration_id: str) -> Optional[RegistrationRecord]:
        with self.database.session() as session:
            row = session.get(EventRegistration, registration_id)
            return to_registration_record(row) if row else None

    def find_registration(self, event_id: str, user_id: str) -> Optional[RegistrationRecord]:
        """The user's registration row for the event, whatever its status."""
        with self.database.session() as session:
            row = session.execute(
                select(EventRegistration).where(
                    EventRegistration.event_id == event_id,
                    EventRegistration.user_id == user_id,
                )
            ).scalar_one_or_none()
            return to_registration_record(row) if row else None

    def insert_registration(
        self,
        event_id: str,
        user_id: str,
        category: str,
        status: str = RegistrationStatus.SIGNED_UP.value,
    ) -> RegistrationRecord:
        """
        Insert a registration row.

        Raises:
            DuplicateRegistrationError: If the user already has a row for the event
            DatabaseError: If the write fails for any other reason
        """
        try:
            with self.database.session() as session:
                row = EventRegistration(
                    event_id=event_id,
                    user_id=user_id,
                    staff_category=category,
                    status=status,
                )
                session.add(row)
                session.flush()
                return to_registration_record(row)
        except SessionError as e:
            if _is_unique_violation(e):
                raise DuplicateRegistrationError(
                    f"User {user_id} is already registered for event {event_id}"
                ) from e
            raise

    def update_registration(self, registration_id: str, **fields: Any) -> Optional[RegistrationRecord]:
        """
        Update the given fields of a registration.

        Returns:
            Optional[RegistrationRecord]: The updated record, or None if no such row
        """
        unknown = set(fields) - set(UPDATABLE_REGISTRATION_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update registration fields: {', '.join(sorted(unknown))}")

        with self.database.session() as session:
            row = session.get(EventRegistration, registration_id)
            if row is None:
                return None
            for key, value in fields.items():
                setattr(row, key, value)
            row.updated_at = now_utc()
            session.flush()
            return to_registration_record(row)

    def delete_registration(self, registration_id: str) -> bool:
        """Delete a registration; returns False if it did not exist."""
        with self.database.session() as session:
            row = session.get(EventRegistration, registration_id)
            if row is None:
                return False
            session.delete(row)
            return True

    def assign_registration(self, event_id: str, user_id: str, category: str) -> AssignmentResult:
        """
        Give the user `category` on the event, in a single transaction.

        An existing row for (event, user) is re-pointed to the category with
        status signed-up; otherwise a new row is inserted. The uniqueness
        constraint on (event, user) turns a concurrent duplicate insert into
        DuplicateRegistrationError.

        Raises:
            DuplicateRegistrationError: If a concurrent registration won the insert
            DatabaseError: If the write fails for any other reason
        """
        try:
            with self.database.session() as session:
                row = session.execute(
                    select(EventRegistration).where(
                        EventRegistration.event_id == event_id,
                        EventRegistration.user_id == user_id,
                    )
                ).scalar_one_or_none()

                if row is None:
                    row = EventRegistration(
                        event_id=event_id,
                        user_id=user_id,
                        staff_category=category,
                        status=RegistrationStatus.SIGNED_UP.value,
                    )
                    session.add(row)
                    session.flush()
                    return AssignmentResult(registration=to_registration_record(row))

                previous_category = None
                if row.status != RegistrationStatus.WITHDRAWN.value:
                    previous_category = row.staff_category
                row.staff_category = category
                row.status = RegistrationStatus.SIGNED_UP.value
                row.updated_at = now_utc()
                session.flush()
                return AssignmentResult(
                    registration=to_registration_record(row),
                    previous_category=previous_category,
                    created=False,
                )
        except SessionError as e:
            if _is_unique_violation(e):
                raise DuplicateRegistrationError(
                    f"User {user_id} is already registered for event {event_id}"
                ) from e
            raise

    # Qualifications and profiles

    def list_user_qualifications(self, user_id: str) -> List[UserQualificationRecord]:
        with self.database.session() as session:
            rows = session.execute(
                select(EmployeeQualification).where(EmployeeQualification.user_id == user_id)
            ).scalars().all()
            return [
                UserQualificationRecord(
                    user_id=row.user_id,
                    qualification_id=row.qualification_id,
                    name=row.qualification.name,
                    description=row.qualification.description,
                )
                for row in rows
                if row.qualification is not None
            ]

    def list_profiles(self, user_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        """Profiles keyed by user id; users without a profile are absent."""
        user_ids = list(set(user_ids))
        if not user_ids:
            return {}
        with self.database.session() as session:
            rows = session.execute(
                select(Profile).where(Profile.user_id.in_(user_ids))
            ).scalars().all()
            return {
                row.user_id: dict(row.to_dict(), full_name=row.full_name)
                for row in rows
            }
