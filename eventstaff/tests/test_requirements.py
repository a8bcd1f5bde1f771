"""Decoding of stored staff requirements, qualification requirements and pricing."""

import logging

from eventstaff.staffing.records import (
    PricingEntry,
    QualificationRequirement,
    StaffRequirement,
)
from eventstaff.staffing.requirements import (
    coerce_list,
    parse_pricing_structure,
    parse_qualification_requirements,
    parse_staff_requirements,
    unmatched_categories,
)


def test_staff_requirements_accept_every_stored_shape():
    """Lists, single objects and JSON strings decode to the same records."""
    expected = (StaffRequirement('DJ', 2),)
    assert parse_staff_requirements([{'category': 'DJ', 'count': 2}]) == expected
    assert parse_staff_requirements({'category': 'DJ', 'count': 2}) == expected
    assert parse_staff_requirements('[{"category": "DJ", "count": 2}]') == expected
    assert parse_staff_requirements('{"category": "DJ", "count": "2"}') == expected


def test_missing_fields_decode_to_empty():
    assert parse_staff_requirements(None) == ()
    assert parse_staff_requirements('') == ()
    assert parse_staff_requirements([]) == ()


def test_malformed_json_yields_empty_list_and_logs(caplog):
    """Invalid JSON is logged once and treated as no requirements."""
    with caplog.at_level(logging.ERROR, logger='eventstaff.staffing.requirements'):
        assert parse_staff_requirements('[{"category": "DJ", ', event_id='evt-1') == ()
    assert any('evt-1' in record.getMessage() for record in caplog.records)


def test_unexpected_types_are_ignored():
    assert coerce_list(42, 'staff_requirements') == []
    assert parse_staff_requirements(['DJ', {'category': 'Licht', 'count': 1}]) == (
        StaffRequirement('Licht', 1),
    )


def test_counts_are_never_negative():
    requirements = parse_staff_requirements([
        {'category': 'DJ', 'count': -3},
        {'category': 'Licht', 'count': 'viele'},
        {'category': 'Service'},
    ])
    assert [r.count for r in requirements] == [0, 0, 0]


def test_requirement_order_is_preserved():
    requirements = parse_staff_requirements([
        {'category': 'Service', 'count': 4},
        {'category': 'DJ', 'count': 1},
        {'category': 'Licht', 'count': 2},
    ])
    assert [r.category for r in requirements] == ['Service', 'DJ', 'Licht']


def test_qualification_entries_may_be_names_or_objects():
    requirements = parse_qualification_requirements([
        {'category': 'Fahrer', 'qualifications': ['Führerschein B', {'name': 'Erste Hilfe'}, {'id': 7}]},
    ])
    assert requirements == (
        QualificationRequirement('Fahrer', ('Führerschein B', 'Erste Hilfe')),
    )

    # A single name stored without its list
    assert parse_qualification_requirements([{'category': 'DJ', 'qualifications': 'Führerschein B'}]) == (
        QualificationRequirement('DJ', ('Führerschein B',)),
    )


def test_pricing_accepts_alternative_rate_keys():
    pricing = parse_pricing_structure([
        {'category': 'DJ', 'hourly_rate': 25},
        {'category': 'Licht', 'amount': '18.5'},
        {'category': 'Service', 'hourlyRate': 15, 'fixedRate': 50},
        {'category': 'Fahrer'},
    ])
    assert pricing == (
        PricingEntry('DJ', 25.0, None),
        PricingEntry('Licht', 18.5, None),
        PricingEntry('Service', 15.0, 50.0),
        PricingEntry('Fahrer', None, None),
    )


def test_unmatched_categories_are_reported_once():
    staff = parse_staff_requirements([{'category': 'DJ', 'count': 1}])
    qualifications = parse_qualification_requirements([{'category': 'Fahrer', 'qualifications': ['B']}])
    pricing = parse_pricing_structure([{'category': 'Fahrer', 'hourly_rate': 20}, {'category': 'DJ', 'rate': 30}])
    assert unmatched_categories(staff, qualifications, pricing) == ['Fahrer']
