"""Shared fixtures: a fresh SQLite database per test and seeding helpers."""

from datetime import timedelta

import pytest

from eventstaff.config.settings import Config
from eventstaff.db import db, DatabaseConfig, StaffingRepository
from eventstaff.models import (
    AppRole,
    EmployeeQualification,
    InternalEvent,
    Profile,
    Qualification,
    UserRole,
)
from eventstaff.utils.timezone import now_utc

ADMIN_ID = 'admin-0001'
EMPLOYEE_ID = 'employee-0001'
OTHER_EMPLOYEE_ID = 'employee-0002'
CUSTOMER_ID = 'customer-0001'


@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch):
    """Point the database singleton at a throwaway SQLite file."""
    monkeypatch.setattr(Config, 'AUTH_SIGNING_SECRET', '')
    monkeypatch.setattr(Config, 'FUNCTIONS_BASE_URL', '')
    db.configure(DatabaseConfig(url=f"sqlite:///{tmp_path / 'test.db'}"))
    db.init_db()
    yield db
    db.drop_all()


@pytest.fixture
def repository():
    return StaffingRepository()


@pytest.fixture
def users():
    """Seed an administrator, two employees and a customer with profiles."""
    seeded = [
        (ADMIN_ID, AppRole.ADMINISTRATOR.value, 'Ada', 'Admin'),
        (EMPLOYEE_ID, AppRole.EMPLOYEE.value, 'Erik', 'Employee'),
        (OTHER_EMPLOYEE_ID, AppRole.EMPLOYEE.value, 'Olga', 'Other'),
        (CUSTOMER_ID, AppRole.USER.value, 'Carl', 'Customer'),
    ]
    with db.session() as session:
        for user_id, role, first_name, last_name in seeded:
            session.add(UserRole(user_id=user_id, role=role))
            session.add(Profile(
                user_id=user_id,
                first_name=first_name,
                last_name=last_name,
                email=f"{first_name.lower()}@example.com",
            ))
    return {user_id: role for user_id, role, _, _ in seeded}


@pytest.fixture
def make_event():
    """Factory inserting an internal event; starts ten days from now by default."""
    def _make_event(**overrides):
        fields = {
            'title': 'Sommerfest',
            'event_date': now_utc() + timedelta(days=10),
            'location': 'Berlin',
            'staff_requirements': [{'category': 'DJ', 'count': 1}],
        }
        fields.update(overrides)
        with db.session() as session:
            event = InternalEvent(**fields)
            session.add(event)
            session.flush()
            return event.id
    return _make_event


@pytest.fixture
def grant_qualification():
    """Factory giving a user a qualification by name, creating it if needed."""
    def _grant(user_id, name, **qualification_fields):
        with db.session() as session:
            qualification = session.query(Qualification).filter_by(name=name).one_or_none()
            if qualification is None:
                qualification = Qualification(name=name, **qualification_fields)
                session.add(qualification)
                session.flush()
            session.add(EmployeeQualification(user_id=user_id, qualification_id=qualification.id))
            return qualification.id
    return _grant


@pytest.fixture
def sent_notifications(monkeypatch):
    """Capture notification calls instead of posting them."""
    calls = []

    class _Response:
        def raise_for_status(self):
            return None

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append({'url': url, 'json': json, 'headers': headers})
        return _Response()

    monkeypatch.setattr(Config, 'FUNCTIONS_BASE_URL', 'https://functions.example.com')
    monkeypatch.setattr('eventstaff.services.notifications.requests.post', fake_post)
    return calls
