"""Registration writes: register, change role, contract hand-off and unregister."""

from datetime import timedelta

import pytest

from eventstaff.db import DatabaseError, DuplicateRegistrationError, StaffingRepository
from eventstaff.staffing.errors import (
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
from eventstaff.staffing.writer import RegistrationWriter
from eventstaff.utils.timezone import now_utc

from conftest import ADMIN_ID, EMPLOYEE_ID, OTHER_EMPLOYEE_ID

TWO_ROLES = [{'category': 'DJ', 'count': 1}, {'category': 'Licht', 'count': 1}]


@pytest.fixture
def writer(repository):
    return RegistrationWriter(repository)


def test_single_position_goes_to_the_first_registrant(writer, make_event):
    event_id = make_event()

    outcome = writer.register(event_id, EMPLOYEE_ID, 'DJ')

    assert outcome.notice.level == 'success'
    assert outcome.notice.message == 'Successfully registered as DJ'
    assert outcome.registration.status == 'angemeldet'
    assert [r.event_id for r in outcome.user_registrations] == [event_id]
    slot = outcome.event.slot('DJ')
    assert (slot.filled, slot.state.value) == (1, 'registered')

    with pytest.raises(CategoryFullError) as excinfo:
        writer.register(event_id, OTHER_EMPLOYEE_ID, 'DJ')
    assert excinfo.value.status_code == 409


def test_register_unregister_register_again(writer, repository, make_event):
    event_id = make_event()
    first = writer.register(event_id, EMPLOYEE_ID, 'DJ')

    outcome = writer.unregister(first.registration.id, event_id, EMPLOYEE_ID)
    assert outcome.notice.message == 'Successfully unregistered'
    assert outcome.user_registrations == []
    assert outcome.event.slot('DJ').filled == 0

    again = writer.register(event_id, EMPLOYEE_ID, 'DJ')
    assert again.event.slot('DJ').filled == 1
    assert len(repository.list_registrations(event_id=event_id)) == 1


def test_changing_role_repoints_the_existing_row(writer, repository, make_event):
    event_id = make_event(staff_requirements=TWO_ROLES)
    first = writer.register(event_id, EMPLOYEE_ID, 'DJ')

    outcome = writer.register(event_id, EMPLOYEE_ID, 'Licht')

    assert outcome.notice.message == 'Position changed to Licht'
    assert outcome.registration.id == first.registration.id
    assert outcome.event.slot('DJ').filled == 0
    assert outcome.event.slot('Licht').filled == 1
    assert len(repository.list_registrations(event_id=event_id)) == 1


def test_same_category_twice_is_already_registered(writer, make_event):
    event_id = make_event(staff_requirements=[{'category': 'DJ', 'count': 3}])
    writer.register(event_id, EMPLOYEE_ID, 'DJ')
    with pytest.raises(AlreadyRegisteredError):
        writer.register(event_id, EMPLOYEE_ID, 'DJ')


def test_withdrawn_registration_can_be_reactivated(writer, repository, make_event):
    event_id = make_event()
    repository.insert_registration(event_id, EMPLOYEE_ID, 'DJ', status='zurückgezogen')

    outcome = writer.register(event_id, EMPLOYEE_ID, 'DJ')

    assert outcome.notice.message == 'Successfully registered as DJ'
    assert outcome.registration.status == 'angemeldet'


def test_missing_qualification_blocks_registration(writer, make_event, grant_qualification):
    event_id = make_event(
        qualification_requirements=[{'category': 'DJ', 'qualifications': ['Pyrotechnik']}],
    )
    with pytest.raises(NotEligibleError) as excinfo:
        writer.register(event_id, EMPLOYEE_ID, 'DJ')
    assert excinfo.value.missing == ['Pyrotechnik']

    grant_qualification(EMPLOYEE_ID, 'Pyrotechnik')
    assert writer.register(event_id, EMPLOYEE_ID, 'DJ').registration is not None


@pytest.mark.parametrize('fields', [
    {'status': 'abgesagt'},
    {'event_date': now_utc() - timedelta(days=2)},
])
def test_only_planned_events_accept_registrations(writer, repository, make_event, fields):
    event_id = make_event(**fields)
    with pytest.raises(EventClosedError):
        writer.register(event_id, EMPLOYEE_ID, 'DJ')
    assert repository.list_registrations(event_id=event_id) == []


def test_staff_cannot_unregister_once_the_event_has_passed(writer, repository, make_event):
    event_id = make_event()
    registration = writer.register(event_id, EMPLOYEE_ID, 'DJ').registration
    later = now_utc() + timedelta(days=20)

    with pytest.raises(EventClosedError):
        writer.unregister(registration.id, event_id, EMPLOYEE_ID, now=later)
    assert [r.id for r in repository.list_registrations(event_id=event_id)] == [registration.id]

    outcome = writer.unregister(registration.id, event_id, ADMIN_ID, is_admin=True, now=later)
    assert outcome.notice.level == 'success'
    assert repository.list_registrations(event_id=event_id) == []


def test_unknown_category_and_event(writer, make_event):
    event_id = make_event()
    with pytest.raises(UnknownCategoryError):
        writer.register(event_id, EMPLOYEE_ID, 'Catering')
    with pytest.raises(EventNotFoundError):
        writer.register('missing', EMPLOYEE_ID, 'DJ')


def test_contract_required_event_defers_the_write(writer, repository, users, make_event):
    event_id = make_event(contract_required=True)

    outcome = writer.register(event_id, EMPLOYEE_ID, 'DJ')

    assert outcome.requires_contract
    assert outcome.notice.level == 'info'
    assert outcome.contract_request.user_name == 'Erik Employee'
    assert outcome.contract_request.staff_category == 'DJ'
    assert repository.list_registrations(event_id=event_id) == []

    completed = writer.complete_contract_registration(event_id, EMPLOYEE_ID, 'DJ')
    assert completed.registration.staff_category == 'DJ'


def test_completion_rechecks_capacity(writer, make_event):
    event_id = make_event(contract_required=True)
    writer.register(event_id, EMPLOYEE_ID, 'DJ')
    writer.complete_contract_registration(event_id, OTHER_EMPLOYEE_ID, 'DJ')

    with pytest.raises(CategoryFullError):
        writer.complete_contract_registration(event_id, EMPLOYEE_ID, 'DJ')


def test_only_owner_or_admin_may_unregister(writer, make_event):
    event_id = make_event(staff_requirements=[{'category': 'DJ', 'count': 2}])
    registration = writer.register(event_id, EMPLOYEE_ID, 'DJ').registration

    with pytest.raises(NotAllowedError):
        writer.unregister(registration.id, event_id, OTHER_EMPLOYEE_ID)

    outcome = writer.unregister(registration.id, event_id, ADMIN_ID, is_admin=True)
    assert outcome.registration.user_id == EMPLOYEE_ID
    assert outcome.event.slot('DJ').filled == 0


def test_unregister_checks_the_event(writer, make_event):
    event_id = make_event()
    other_event = make_event(title='Andere')
    registration = writer.register(event_id, EMPLOYEE_ID, 'DJ').registration

    with pytest.raises(RegistrationNotFoundError):
        writer.unregister(registration.id, other_event, EMPLOYEE_ID)
    with pytest.raises(RegistrationNotFoundError):
        writer.unregister('missing', event_id, EMPLOYEE_ID)


class RacingRepository(StaffingRepository):
    """Loses the insert race to a concurrent registration."""

    def assign_registration(self, event_id, user_id, category):
        raise DuplicateRegistrationError(f"User {user_id} is already registered for event {event_id}")


class BrokenWriteRepository(StaffingRepository):
    def assign_registration(self, event_id, user_id, category):
        raise DatabaseError("disk I/O error")


def test_lost_insert_race_reports_already_registered(make_event):
    event_id = make_event()
    with pytest.raises(AlreadyRegisteredError) as excinfo:
        RegistrationWriter(RacingRepository()).register(event_id, EMPLOYEE_ID, 'DJ')
    assert excinfo.value.status_code == 409


def test_failed_write_is_service_unavailable(make_event):
    event_id = make_event()
    with pytest.raises(ServiceUnavailableError) as excinfo:
        RegistrationWriter(BrokenWriteRepository()).register(event_id, EMPLOYEE_ID, 'DJ')
    assert excinfo.value.message == 'Registration failed'


class FlakyRefreshRepository(StaffingRepository):
    def list_registrations(self, status=None, event_id=None, user_id=None):
        if user_id is not None and event_id is None:
            raise DatabaseError("timeout")
        return super().list_registrations(status=status, event_id=event_id, user_id=user_id)


def test_failed_refresh_keeps_the_write_and_the_other_read(make_event):
    event_id = make_event()
    outcome = RegistrationWriter(FlakyRefreshRepository()).register(event_id, EMPLOYEE_ID, 'DJ')

    assert outcome.registration is not None
    assert outcome.user_registrations is None
    assert outcome.event.slot('DJ').filled == 1
