"""Event catalog loading, filtering and pagination."""

from datetime import datetime, timedelta, timezone

import pytest

from eventstaff.db import DatabaseError
from eventstaff.staffing.catalog import (
    EventCatalog,
    build_event_view,
    filter_events,
    paginate,
    unique_locations,
)
from eventstaff.staffing.errors import EventNotFoundError, ServiceUnavailableError
from eventstaff.staffing.records import EventRecord, StaffRequirement
from eventstaff.utils.timezone import now_utc

from conftest import EMPLOYEE_ID, OTHER_EMPLOYEE_ID

NOW = datetime(2025, 6, 14, 12, 0, tzinfo=timezone.utc)


def view(title, location='Berlin', description=None, stored_status='geplant', days=1):
    event = EventRecord(
        id=title,
        title=title,
        start=NOW + timedelta(days=days),
        location=location,
        stored_status=stored_status,
        description=description,
        staff_requirements=(StaffRequirement('DJ', 2), StaffRequirement('Licht', 1)),
    )
    return build_event_view(event, {'DJ': 1}, now=NOW)


def test_event_view_totals():
    event_view = view('Gala')
    assert (event_view.total_required, event_view.total_filled) == (3, 1)
    assert event_view.to_dict()['colors']['bg']


def test_filter_by_search_status_and_location():
    views = [
        view('Sommerfest', location='Berlin Mitte'),
        view('Firmenfeier', location='Potsdam', description='Mit Lichtshow'),
        view('Hochzeit', location='Berlin', stored_status='abgesagt'),
    ]
    assert [v.event.title for v in filter_events(views, search='licht')] == ['Firmenfeier']
    assert [v.event.title for v in filter_events(views, search='BERLIN')] == ['Sommerfest', 'Hochzeit']
    assert [v.event.title for v in filter_events(views, status='abgesagt')] == ['Hochzeit']
    assert [v.event.title for v in filter_events(views, location='berlin', status='geplant')] == ['Sommerfest']
    assert len(filter_events(views, status='all', location='all')) == 3


def test_paginate_defaults_and_clamps():
    items = list(range(12))
    assert paginate(items) == ([0, 1, 2, 3, 4], 1, 3)
    assert paginate(items, page=3) == ([10, 11], 3, 3)
    assert paginate(items, page=9) == ([10, 11], 3, 3)
    assert paginate(items, page=0, per_page=10) == (list(range(10)), 1, 2)


def test_empty_list_still_has_one_page():
    assert paginate([], page=4) == ([], 1, 1)


def test_unique_locations_skip_blanks_and_keep_order():
    views = [view('A', 'Berlin'), view('B', '  '), view('C', 'Potsdam'), view('D', 'Berlin')]
    assert unique_locations(views) == ['Berlin', 'Potsdam']


def test_load_annotates_counts_and_the_viewers_state(repository, make_event):
    event_id = make_event(staff_requirements=[{'category': 'DJ', 'count': 1}, {'category': 'Licht', 'count': 2}])
    repository.insert_registration(event_id, OTHER_EMPLOYEE_ID, 'DJ')

    views = EventCatalog(repository).load(window='upcoming', user_id=EMPLOYEE_ID)

    assert len(views) == 1
    dj, light = views[0].slots
    assert (dj.filled, dj.state.value, dj.blocked_reason.value) == (1, 'blocked', 'full')
    assert (light.filled, light.state.value) == (0, 'open')
    assert views[0].status == 'geplant'


def test_month_window_includes_earlier_events_of_this_month(repository, make_event):
    now = now_utc()
    past = make_event(title='Vorbei', event_date=now - timedelta(days=60))
    upcoming = make_event(title='Bald', event_date=now + timedelta(days=3))

    month_ids = [v.event.id for v in EventCatalog(repository).load(window='month', now=now)]
    upcoming_ids = [v.event.id for v in EventCatalog(repository).load(window='upcoming', now=now)]

    assert past not in month_ids
    assert upcoming in month_ids
    assert upcoming_ids == [upcoming]


def test_event_with_malformed_requirements_loads_without_slots(repository, make_event):
    make_event(staff_requirements='[broken')
    views = EventCatalog(repository).load(window='upcoming')
    assert views[0].slots == []


def test_withdrawn_registration_is_not_shown_as_registered(repository, make_event):
    event_id = make_event()
    repository.insert_registration(event_id, EMPLOYEE_ID, 'DJ', status='zurückgezogen')
    event_view = EventCatalog(repository).get_event_view(event_id, EMPLOYEE_ID)
    assert event_view.user_registration is None
    assert event_view.slots[0].state.value == 'open'


def test_unknown_event_raises_not_found(repository):
    with pytest.raises(EventNotFoundError):
        EventCatalog(repository).get_event_view('missing', EMPLOYEE_ID)


class FailingRepository:
    def list_events(self, **kwargs):
        raise DatabaseError("connection lost")

    def get_event(self, event_id):
        raise DatabaseError("connection lost")


def test_failed_reads_return_nothing_partial():
    catalog = EventCatalog(FailingRepository())
    with pytest.raises(ServiceUnavailableError):
        catalog.load(window='upcoming')
    with pytest.raises(ServiceUnavailableError):
        catalog.get_event_view('any', EMPLOYEE_ID)
