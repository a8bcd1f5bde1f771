"""Registration writer: registering, changing role and unregistering staff.

Every successful write is followed by two independent reads, the user's own
registrations and the event view with fresh counts, which are returned with
the outcome. They are not transactional with the write.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, date
from typing import Any, Dict, List, Optional

from ..db.db_core import DatabaseError
from ..db.repository import DuplicateRegistrationError, StaffingRepository
from .catalog import EventCatalog, EventView
from .errors import (
    AlreadyRegisteredError,
    CategoryFullError,
    EventClosedError,
    EventNotFoundError,
    NotAllowedError,
    NotEligibleError,
    RegistrationNotFoundError,
    ServiceUnavailableError,
    UnknownCategoryError,
)
from .records import RegistrationRecord
from .status import is_open_for_registration
from ..utils.timezone import local_zone

logger = logging.getLogger(__name__)


@dataclass
class Notice:
    """User-visible message returned with a write."""
    level: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {'level': self.level, 'message': self.message}


@dataclass
class ContractRequest:
    """Hand-off to contract signing; the registration is written once it is signed."""
    event_id: str
    event_title: str
    start_date: date
    end_date: date
    staff_category: str
    user_id: str
    user_name: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'event_id': self.event_id,
            'event_title': self.event_title,
            'start_date': self.start_date,
            'end_date': self.end_date,
            'staff_category': self.staff_category,
            'user_id': self.user_id,
            'user_name': self.user_name,
        }


@dataclass
class RegistrationOutcome:
    """Result of a write together with the state read back afterwards."""
    notice: Notice
    registration: Optional[RegistrationRecord] = None
    contract_request: Optional[ContractRequest] = None
    user_registrations: Optional[List[RegistrationRecord]] = None
    event: Optional[EventView] = None

    @property
    def requires_contract(self) -> bool:
        return self.contract_request is not None


class RegistrationWriter:
    """Performs registration writes for a user against one event."""

    def __init__(
        self,
        repository: Optional[StaffingRepository] = None,
        catalog: Optional[EventCatalog] = None,
    ):
        self.repository = repository or StaffingRepository()
        self.catalog = catalog or EventCatalog(self.repository)

    def register(
        self,
        event_id: str,
        user_id: str,
        category: str,
        now: Optional[datetime] = None,
    ) -> RegistrationOutcome:
        """
        Register the user for a staff category, changing role if already registered.

        If the event requires a work contract nothing is written; the outcome
        carries a ContractRequest and the write happens in
        complete_contract_registration once the contract is signed.

        Args:
            event_id: The event
            user_id: The registering user
            category: The staff category to take
            now: Reference time, defaults to the current time

        Returns:
            RegistrationOutcome: Notice, written registration and refreshed state

        Raises:
            EventNotFoundError: If the event does not exist
            EventClosedError: If the event is no longer planned
            UnknownCategoryError: If the event has no such staff category
            AlreadyRegisteredError: If the user already holds the category
            NotEligibleError: If the user lacks required qualifications
            CategoryFullError: If every position of the category is taken
            ServiceUnavailableError: If a read or the write fails
        """
        view = self._checked_view(event_id, user_id, category, now)

        if view.event.contract_required:
            logger.info(
                f"Event {event_id} requires a contract, deferring registration of "
                f"user {user_id} as {category}"
            )
            return RegistrationOutcome(
                notice=Notice('info', 'Please sign the work contract to complete your registration'),
                contract_request=self._contract_request(view, user_id, category),
                event=view,
            )

        return self._assign(view, user_id, category, now)

    def complete_contract_registration(
        self,
        event_id: str,
        user_id: str,
        category: str,
        now: Optional[datetime] = None,
    ) -> RegistrationOutcome:
        """
        Write the registration deferred by a contract-required event.

        Called once the contract is signed. The same checks as register() run
        again, since counts may have moved while the contract was open.
        """
        view = self._checked_view(event_id, user_id, category, now)
        return self._assign(view, user_id, category, now)

    def unregister(
        self,
        registration_id: str,
        event_id: str,
        user_id: str,
        is_admin: bool = False,
        now: Optional[datetime] = None,
    ) -> RegistrationOutcome:
        """
        Delete a registration.

        Raises:
            RegistrationNotFoundError: If no such registration exists on the event
            NotAllowedError: If the registration belongs to someone else and the
                             caller is not an administrator
            EventClosedError: If a non-administrator unregisters from an event
                              that is no longer planned
            ServiceUnavailableError: If the delete fails
        """
        try:
            registration = self.repository.get_registration(registration_id)
        except DatabaseError as e:
            logger.error(f"Error loading registration {registration_id}: {e}")
            raise ServiceUnavailableError("Unregistration failed") from e

        if registration is None or registration.event_id != event_id:
            raise RegistrationNotFoundError()
        if registration.user_id != user_id and not is_admin:
            raise NotAllowedError()
        # Administrators may clean up staffing on any event
        if not is_admin:
            view = self.catalog.get_event_view(event_id, user_id, now)
            if not is_open_for_registration(view.status):
                raise EventClosedError()

        try:
            deleted = self.repository.delete_registration(registration_id)
        except DatabaseError as e:
            logger.error(f"Error deleting registration {registration_id}: {e}")
            raise ServiceUnavailableError("Unregistration failed") from e

        if not deleted:
            raise RegistrationNotFoundError()

        logger.info(f"Deleted registration {registration_id} of user {registration.user_id} on event {event_id}")
        outcome = RegistrationOutcome(
            notice=Notice('success', 'Successfully unregistered'),
            registration=registration,
        )
        self._refresh(outcome, event_id, user_id, now)
        return outcome

    def refresh(self, event_id: str, user_id: str, now: Optional[datetime] = None) -> RegistrationOutcome:
        """Read back the user's registrations and the event view without writing."""
        outcome = RegistrationOutcome(notice=Notice('info', 'Refreshed'))
        self._refresh(outcome, event_id, user_id, now)
        return outcome

    def _checked_view(
        self,
        event_id: str,
        user_id: str,
        category: str,
        now: Optional[datetime],
    ) -> EventView:
        view = self.catalog.get_event_view(event_id, user_id, now)

        if not is_open_for_registration(view.status):
            raise EventClosedError()

        slot = view.slot(category)
        if slot is None:
            raise UnknownCategoryError(category)

        if view.user_registration and view.user_registration.staff_category == category:
            raise AlreadyRegisteredError()

        if slot.missing_qualifications:
            raise NotEligibleError(category, slot.missing_qualifications)

        if slot.is_full:
            raise CategoryFullError(category)

        return view

    def _assign(
        self,
        view: EventView,
        user_id: str,
        category: str,
        now: Optional[datetime],
    ) -> RegistrationOutcome:
        event_id = view.event.id
        try:
            result = self.repository.assign_registration(event_id, user_id, category)
        except DuplicateRegistrationError as e:
            logger.info(f"Duplicate registration of user {user_id} on event {event_id}: {e}")
            raise AlreadyRegisteredError() from e
        except DatabaseError as e:
            logger.error(f"Error registering user {user_id} for event {event_id} as {category}: {e}")
            raise ServiceUnavailableError("Registration failed") from e

        if result.previous_category and result.previous_category != category:
            logger.info(
                f"User {user_id} changed position on event {event_id} "
                f"from {result.previous_category} to {category}"
            )
            notice = Notice('success', f'Position changed to {category}')
        else:
            logger.info(f"User {user_id} registered for event {event_id} as {category}")
            notice = Notice('success', f'Successfully registered as {category}')

        outcome = RegistrationOutcome(notice=notice, registration=result.registration)
        self._refresh(outcome, event_id, user_id, now)
        return outcome

    def _refresh(
        self,
        outcome: RegistrationOutcome,
        event_id: str,
        user_id: str,
        now: Optional[datetime],
    ) -> None:
        # The two reads are independent; one failing leaves the other in place
        try:
            outcome.user_registrations = self.repository.list_registrations(user_id=user_id)
        except DatabaseError as e:
            logger.error(f"Error refreshing registrations of user {user_id}: {e}")

        try:
            outcome.event = self.catalog.get_event_view(event_id, user_id, now)
        except (EventNotFoundError, ServiceUnavailableError) as e:
            logger.warning(f"Could not refresh event {event_id} after write: {e.message}")

    def _contract_request(self, view: EventView, user_id: str, category: str) -> ContractRequest:
        try:
            profile = self.repository.list_profiles([user_id]).get(user_id)
        except DatabaseError as e:
            logger.error(f"Error loading profile of user {user_id}: {e}")
            raise ServiceUnavailableError() from e

        event = view.event
        zone = local_zone()
        return ContractRequest(
            event_id=event.id,
            event_title=event.title,
            start_date=event.start.astimezone(zone).date(),
            end_date=(event.end or event.start).astimezone(zone).date(),
            staff_category=category,
            user_id=user_id,
            user_name=(profile or {}).get('full_name') or '',
        )
