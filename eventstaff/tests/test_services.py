"""Services around staffing: contracts, qualifications, inquiries, admin and roles."""

from datetime import date, datetime, timedelta, timezone

import pytest
import requests

from eventstaff.schemas.inquiries import ContactRequestCreate
from eventstaff.schemas.staffing import EventCreate, EventUpdate
from eventstaff.services import inquiries, users as user_service
from eventstaff.services.contracts import ContractService
from eventstaff.services.events_admin import AdminEventService, admin_event_dict
from eventstaff.services.inquiries import LOCATION_PENDING, InquiryService, validate_step
from eventstaff.services.my_events import list_my_registrations
from eventstaff.services.notifications import CONTACT_NOTIFICATION, NotificationClient
from eventstaff.services.qualifications import QualificationService, add_months
from eventstaff.staffing.errors import (
    AlreadyRegisteredError,
    ConflictError,
    EventNotFoundError,
    NotAllowedError,
    NotFoundError,
    RegistrationNotFoundError,
    ValidationFailedError,
)
from eventstaff.staffing.writer import RegistrationWriter
from eventstaff.utils.timezone import local_zone, now_utc

from conftest import ADMIN_ID, CUSTOMER_ID, EMPLOYEE_ID, OTHER_EMPLOYEE_ID

SIGNATURE = 'data:image/png;base64,iVBORw0KGgo='


def quote_request(**contact):
    form = {
        'event_title': 'Firmenjubiläum',
        'event_date': '2030-09-12',
        'location_option': 'has_location',
        'location': 'Alte Halle, Potsdam',
        'guest_count': '120',
        'tech_requirements': ['PA', 'Licht'],
        'dj_genres': ['House'],
        'contact': {
            'name': 'Carl Customer',
            'email': 'carl@example.com',
            'phone': '+49 30 1234567',
            'street': 'Hauptstraße',
            'house_number': '5a',
            'postal_code': '10115',
            'city': 'Berlin',
        },
    }
    form['contact'].update(contact)
    return form


# Contracts

@pytest.fixture
def contracts(repository):
    return ContractService(writer=RegistrationWriter(repository))


def test_signing_completes_the_deferred_registration(contracts, repository, users, make_event):
    event_id = make_event(contract_required=True, event_date=datetime(2030, 5, 1, 22, 30, tzinfo=timezone.utc))
    draft = contracts.create(event_id, EMPLOYEE_ID, 'DJ', 'DJ', '25.50')

    assert draft['hourly_wage'] == 25.5
    assert draft['start_date'] == date(2030, 5, 2)
    assert repository.list_registrations(event_id=event_id) == []

    contract, outcome = contracts.sign(draft['id'], EMPLOYEE_ID, signature_data_url=SIGNATURE)

    assert contract['signed_by_employee'] is True
    assert outcome.registration.staff_category == 'DJ'
    assert len(repository.list_registrations(event_id=event_id)) == 1


def test_signing_again_only_retries_the_registration(contracts, users, make_event):
    event_id = make_event(contract_required=True)
    draft = contracts.create(event_id, EMPLOYEE_ID, 'DJ', 'DJ', 20)
    contracts.sign(draft['id'], EMPLOYEE_ID, signature_data_url=SIGNATURE)

    with pytest.raises(AlreadyRegisteredError):
        contracts.sign(draft['id'], EMPLOYEE_ID)
    with pytest.raises(ConflictError):
        contracts.create(event_id, EMPLOYEE_ID, 'DJ', 'DJ', 22)


def test_contract_checks(contracts, users, make_event):
    event_id = make_event(contract_required=True)

    with pytest.raises(ValidationFailedError) as excinfo:
        contracts.create(event_id, EMPLOYEE_ID, 'DJ', ' ', 0)
    assert set(excinfo.value.errors) == {'job_title', 'hourly_wage'}
    with pytest.raises(NotFoundError):
        contracts.create('missing', EMPLOYEE_ID, 'DJ', 'DJ', 20)

    draft = contracts.create(event_id, EMPLOYEE_ID, 'DJ', 'DJ', 20)
    with pytest.raises(NotAllowedError):
        contracts.sign(draft['id'], OTHER_EMPLOYEE_ID, signature_data_url=SIGNATURE)
    with pytest.raises(ValidationFailedError):
        contracts.sign(draft['id'], EMPLOYEE_ID, use_existing_signature=True)


def test_unsigned_draft_is_replaced(contracts, make_event):
    event_id = make_event(contract_required=True)
    first = contracts.create(event_id, EMPLOYEE_ID, 'DJ', 'DJ', 20)
    second = contracts.create(event_id, EMPLOYEE_ID, 'DJ', 'Resident DJ', 24)

    assert second['id'] == first['id']
    listed = contracts.list_for_user(EMPLOYEE_ID)
    assert [(c['job_title'], c['event_title']) for c in listed] == [('Resident DJ', 'Sommerfest')]


# Qualifications

def test_add_months_clamps_to_month_end():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2025, 11, 15), 3) == date(2026, 2, 15)


def test_request_and_approve_expirable_qualification():
    service = QualificationService()
    qualification = service.create_qualification('Erste Hilfe', is_expirable=True, validity_period_months=24)

    request = service.request(EMPLOYEE_ID, qualification['id'], notes='Kurs beim DRK')
    assert request['status'] == 'pending'
    with pytest.raises(ConflictError):
        service.request(EMPLOYEE_ID, qualification['id'])

    with pytest.raises(ValidationFailedError):
        service.approve(request['id'], ADMIN_ID)

    approved = service.approve(request['id'], ADMIN_ID, valid_from=date(2025, 1, 31))
    assert approved['status'] == 'approved'
    assert approved['reviewed_by'] == ADMIN_ID

    held = service.list_for_user(EMPLOYEE_ID)
    assert held[0]['expires_at'] == date(2027, 1, 31)
    assert held[0]['qualification']['name'] == 'Erste Hilfe'

    expiring = service.list_expiring(days=60, today=date(2026, 12, 20))
    assert [q['user_id'] for q in expiring] == [EMPLOYEE_ID]
    assert service.list_expiring(days=60, today=date(2026, 6, 1)) == []

    with pytest.raises(ConflictError):
        service.request(EMPLOYEE_ID, qualification['id'])


def test_inverted_validity_window_is_rejected():
    service = QualificationService()
    qualification = service.create_qualification('Staplerschein', is_expirable=True)
    request = service.request(EMPLOYEE_ID, qualification['id'])

    with pytest.raises(ValidationFailedError):
        service.approve(request['id'], ADMIN_ID, valid_from=date(2025, 5, 1), valid_until=date(2025, 4, 1))


def test_reject_and_review_only_once():
    service = QualificationService()
    qualification = service.create_qualification('Pyrotechnik')
    request = service.request(EMPLOYEE_ID, qualification['id'])

    rejected = service.reject(request['id'], ADMIN_ID, admin_notes='Nachweis fehlt')
    assert rejected['status'] == 'rejected'
    with pytest.raises(ConflictError):
        service.approve(request['id'], ADMIN_ID)
    assert service.list_requests(status='pending') == []
    assert len(service.list_requests(user_id=EMPLOYEE_ID)) == 1


def test_catalog_rejects_duplicates_and_unknown_requests():
    service = QualificationService()
    service.create_qualification('Tontechnik')
    with pytest.raises(ConflictError):
        service.create_qualification('Tontechnik')
    with pytest.raises(ValidationFailedError):
        service.create_qualification('  ')
    with pytest.raises(NotFoundError):
        service.request(EMPLOYEE_ID, 'missing')
    assert [q['name'] for q in service.list_catalog()] == ['Tontechnik']


# Inquiries

def test_step_validation_messages():
    errors = validate_step(1, {})
    assert set(errors) == {'event_title', 'event_date', 'guest_count'}
    assert errors['event_title'] == 'Event title is required'

    multi_day = quote_request()
    multi_day.update(is_multi_day=True, end_date='2030-09-10')
    assert validate_step(1, multi_day) == {'end_date': 'End date must not be before the event date'}

    assert validate_step(2, {'tech_requirements': []}) == {
        'tech_requirements': 'Select at least one technical requirement'
    }
    assert validate_step(3, quote_request(postal_code='1011')) == {
        'contact.postal_code': 'Postal code must have 5 digits'
    }
    assert validate_step(3, quote_request()) == {}

    with pytest.raises(ValidationFailedError):
        validate_step(4, {})


def test_submitted_request_is_numbered_and_notified(sent_notifications):
    service = InquiryService()
    year = now_utc().astimezone(local_zone()).year

    first = service.submit_event_request(quote_request(), user_id=CUSTOMER_ID)
    form = quote_request()
    form.update(location_option='find_location', location=None)
    second = service.submit_event_request(form)

    assert first['status'] == 'ANGEFRAGT'
    assert first['offer_number'] == f'ANG-{year}-0001'
    assert second['offer_number'] == f'ANG-{year}-0002'
    assert second['location'] == LOCATION_PENDING

    functions = [call['url'].rsplit('/', 1)[-1] for call in sent_notifications]
    assert functions == ['send-offer-notification', 'send-offer-confirmation'] * 2
    assert sent_notifications[0]['json']['event_date'] == '2030-09-12'


def test_taken_offer_number_is_recomputed(monkeypatch):
    service = InquiryService()
    year = now_utc().astimezone(local_zone()).year
    first = service.submit_event_request(quote_request())

    calls = []
    compute = inquiries._offer_number

    def offer_number(session, year):
        # The first read hands out a number a concurrent submission already stored
        calls.append(year)
        return first['offer_number'] if len(calls) == 1 else compute(session, year)

    monkeypatch.setattr(inquiries, '_offer_number', offer_number)

    second = service.submit_event_request(quote_request())

    assert len(calls) == 2
    assert second['offer_number'] == f'ANG-{year}-0002'
    assert [r['offer_number'] for r in service.list_event_requests()].count(first['offer_number']) == 1
    assert len(service.list_event_requests()) == 2


def test_invalid_request_reports_every_step():
    form = quote_request(email='not-an-email')
    form['tech_requirements'] = []
    with pytest.raises(ValidationFailedError) as excinfo:
        InquiryService().submit_event_request(form)
    assert set(excinfo.value.errors) == {'tech_requirements', 'contact.email'}
    assert InquiryService().list_event_requests() == []


def test_customer_requests_fall_back_to_email():
    service = InquiryService()
    service.submit_event_request(quote_request())

    assert service.list_for_customer(CUSTOMER_ID) == []
    assert len(service.list_for_customer(CUSTOMER_ID, 'Carl@Example.com')) == 1
    assert len(service.list_event_requests(search='jubiläum')) == 1


def test_event_request_status_update():
    service = InquiryService()
    request = service.submit_event_request(quote_request())

    updated = service.update_event_request_status(request['id'], 'IN_BEARBEITUNG')
    assert updated['status'] == 'IN_BEARBEITUNG'
    assert service.list_event_requests(status='ANGEFRAGT') == []
    with pytest.raises(ValidationFailedError):
        service.update_event_request_status(request['id'], 'erledigt')
    with pytest.raises(NotFoundError):
        service.update_event_request_status('missing', 'ABGESCHLOSSEN')


def test_contact_request_is_stored_without_configured_notifications():
    service = InquiryService()
    stored = service.create_contact_request(ContactRequestCreate(
        name='Carl', email='carl@example.com', message='Wir planen eine Sommerfeier.',
    ))
    assert stored['id']
    assert [r['name'] for r in service.list_contact_requests()] == ['Carl']


def test_contact_request_notifies(sent_notifications):
    InquiryService().create_contact_request(ContactRequestCreate(
        name='Carl', email='carl@example.com', message='Bitte um Rückruf wegen Hochzeit.',
    ))
    assert sent_notifications[0]['url'] == 'https://functions.example.com/send-contact-notification'


# Event administration

def test_admin_creates_event_in_local_time(repository):
    service = AdminEventService(repository)
    created = service.create(EventCreate(
        title='Stadtfest',
        event_date=datetime(2030, 7, 1, 18, 0),
        location='Marktplatz',
        staff_requirements=[{'category': 'DJ', 'count': 2}],
        pricing_structure=[{'category': 'DJ', 'hourly_rate': 25}],
    ), created_by=ADMIN_ID)

    event = repository.get_event(created['id'])
    assert event.start == datetime(2030, 7, 1, 16, 0, tzinfo=timezone.utc)
    assert event.stored_status == 'geplant'
    assert event.pricing_for('DJ').hourly_rate == 25.0


def test_admin_event_validation(repository):
    service = AdminEventService(repository)
    with pytest.raises(ValidationFailedError) as excinfo:
        service.create(EventCreate(
            title=' ',
            event_date=datetime(2030, 7, 1, 18, 0),
            end_date=datetime(2030, 7, 1, 17, 0),
            location='Marktplatz',
            staff_requirements=[{'category': 'DJ', 'count': -1}],
        ), created_by=ADMIN_ID)
    assert set(excinfo.value.errors) == {'title', 'end_date', 'staff_requirements.0.count'}


def test_update_cancel_and_delete(repository, make_event):
    service = AdminEventService(repository)
    event_id = make_event()
    repository.insert_registration(event_id, EMPLOYEE_ID, 'DJ')

    updated = service.update(event_id, EventUpdate(title='Sommerfest 2030'))
    assert updated['title'] == 'Sommerfest 2030'
    with pytest.raises(ValidationFailedError):
        service.update(event_id, EventUpdate(location=''))

    service.cancel(event_id)
    views = service.list_events()
    assert views[0].status == 'abgesagt'
    assert views[0].slot('DJ').filled == 1

    service.delete(event_id)
    assert repository.list_registrations() == []
    with pytest.raises(EventNotFoundError):
        service.delete(event_id)


def test_admin_listing_has_no_viewer_slot_state(repository, users, make_event):
    service = AdminEventService(repository)
    make_event(qualification_requirements=[{'category': 'DJ', 'qualifications': ['Führerschein B']}])
    repository.insert_registration(make_event(title='Andere'), EMPLOYEE_ID, 'DJ')

    listed = [admin_event_dict(view) for view in service.list_events()]

    for event in listed:
        assert 'user_registration' not in event
        slot = event['slots'][0]
        assert slot['category'] == 'DJ'
        assert not {'state', 'blocked_reason', 'eligible', 'missing_qualifications', 'registration_id'} & set(slot)
    assert sorted(event['slots'][0]['filled'] for event in listed) == [0, 1]


def test_admin_registration_review(repository, users, make_event):
    service = AdminEventService(repository)
    event_id = make_event()
    registration = repository.insert_registration(event_id, EMPLOYEE_ID, 'DJ')

    listed = service.list_registrations(event_id)
    assert listed[0]['profile']['full_name'] == 'Erik Employee'

    updated = service.update_registration(registration.id, status='bestätigt', notes='Pünktlich')
    assert (updated['status'], updated['notes']) == ('bestätigt', 'Pünktlich')
    with pytest.raises(ValidationFailedError):
        service.update_registration(registration.id, status='confirmed')
    with pytest.raises(RegistrationNotFoundError):
        service.update_registration('missing', notes='x')
    with pytest.raises(EventNotFoundError):
        service.list_registrations('missing')


# Roles

def test_roles_are_granted_and_revoked(users):
    assert user_service.is_staff(EMPLOYEE_ID)
    assert not user_service.is_staff(CUSTOMER_ID)

    assert sorted(user_service.set_role(CUSTOMER_ID, 'employee', True)) == ['employee', 'user']
    assert user_service.is_staff(CUSTOMER_ID)
    assert sorted(user_service.set_role(CUSTOMER_ID, 'employee', True)) == ['employee', 'user']
    assert user_service.set_role(CUSTOMER_ID, 'user', False) == ['employee']
    with pytest.raises(ValidationFailedError):
        user_service.set_role(CUSTOMER_ID, 'superuser', True)


# My events

def test_my_registrations_by_scope(repository, make_event):
    now = now_utc()
    soon = make_event(title='Bald', event_date=now + timedelta(days=2), pricing_structure=[{'category': 'DJ', 'amount': 30}])
    later = make_event(title='Später', event_date=now + timedelta(days=30))
    past = make_event(title='Vorbei', event_date=now - timedelta(days=30))
    for event_id in (later, past, soon):
        repository.insert_registration(event_id, EMPLOYEE_ID, 'DJ')

    upcoming = list_my_registrations(EMPLOYEE_ID, repository=repository)
    assert [r['event_title'] for r in upcoming] == ['Bald', 'Später']
    assert upcoming[0]['hourly_rate'] == 30.0

    assert [r['event_title'] for r in list_my_registrations(EMPLOYEE_ID, scope='past', repository=repository)] == ['Vorbei']
    assert len(list_my_registrations(EMPLOYEE_ID, scope='all', repository=repository)) == 3
    assert list_my_registrations(EMPLOYEE_ID, search='spät', repository=repository)[0]['event_id'] == later
    assert list_my_registrations(EMPLOYEE_ID, status='bestätigt', repository=repository) == []


# Notifications

def test_notification_failures_are_reported_not_raised(monkeypatch):
    def failing_post(*args, **kwargs):
        raise requests.ConnectionError("functions unreachable")

    monkeypatch.setattr('eventstaff.services.notifications.requests.post', failing_post)
    client = NotificationClient(base_url='https://functions.example.com', api_key='key')

    assert client.send(CONTACT_NOTIFICATION, {'id': '1'}) is False
    assert client.headers['Authorization'] == 'Bearer key'
    assert NotificationClient(base_url='').send(CONTACT_NOTIFICATION, {}) is False
