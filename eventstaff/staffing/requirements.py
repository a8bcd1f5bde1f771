"""Decoding of the loosely-typed JSON fields stored on internal events.

Staff requirements, qualification requirements and pricing structure have
been written over time as JSON arrays, single JSON objects and JSON-encoded
strings. The repository runs every row through these functions once, so the
rest of the code only ever sees tuples of records.

Unparseable input is logged and decoded as an empty list; it never raises.
"""

import json
import logging
from typing import Any, List, Optional, Tuple

from .records import PricingEntry, QualificationRequirement, StaffRequirement

logger = logging.getLogger(__name__)

# Alternative keys seen in stored pricing entries, in order of preference
HOURLY_RATE_KEYS = ('hourly_rate', 'amount', 'hourlyRate', 'rate')
FIXED_RATE_KEYS = ('fixed_rate', 'fixedRate')


def coerce_list(value: Any, field_name: str, event_id: Optional[str] = None) -> List[Any]:
    """
    Normalize a stored field to a list.

    Args:
        value: The raw stored value (None, JSON string, list or single object)
        field_name: Field name, for logging
        event_id: Owning event, for logging

    Returns:
        List[Any]: The items; empty for missing or malformed input
    """
    if value is None or value == '':
        return []

    if isinstance(value, str):
        try:
            value = json.loads(value)
        except (ValueError, TypeError) as e:
            logger.error(f"Error parsing {field_name} for event {event_id}: {e}")
            return []

    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        return [value]

    logger.error(
        f"Unexpected {type(value).__name__} in {field_name} for event {event_id}, ignoring"
    )
    return []


def _to_count(value: Any) -> int:
    try:
        count = int(value or 0)
    except (ValueError, TypeError):
        return 0
    return max(count, 0)


def _to_rate(value: Any) -> Optional[float]:
    if value is None or value == '':
        return None
    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def qualification_name(entry: Any) -> Optional[str]:
    """A requirement entry is either a bare name or an object with a 'name'."""
    if isinstance(entry, str):
        return entry
    if isinstance(entry, dict):
        name = entry.get('name')
        return name if isinstance(name, str) else None
    return None


def qualification_names(entries: Any) -> List[str]:
    """Names from a requirement's qualification list; a bare string is one name."""
    if isinstance(entries, str):
        entries = [entries]
    names = [qualification_name(entry) for entry in entries or []]
    return [name for name in names if name]


def parse_staff_requirements(value: Any, event_id: Optional[str] = None) -> Tuple[StaffRequirement, ...]:
    """Decode staff requirements into ordered (category, count) records."""
    requirements = []
    for item in coerce_list(value, 'staff_requirements', event_id):
        if not isinstance(item, dict):
            logger.warning(f"Skipping malformed staff requirement {item!r} for event {event_id}")
            continue
        requirements.append(StaffRequirement(
            category=item.get('category') or '',
            count=_to_count(item.get('count')),
        ))
    return tuple(requirements)


def parse_qualification_requirements(
    value: Any, event_id: Optional[str] = None
) -> Tuple[QualificationRequirement, ...]:
    """Decode qualification requirements; entries may be names or {name: ...} objects."""
    requirements = []
    for item in coerce_list(value, 'qualification_requirements', event_id):
        if not isinstance(item, dict):
            logger.warning(f"Skipping malformed qualification requirement {item!r} for event {event_id}")
            continue
        names = qualification_names(item.get('qualifications'))
        requirements.append(QualificationRequirement(
            category=item.get('category') or '',
            qualifications=tuple(names),
        ))
    return tuple(requirements)


def parse_pricing_structure(value: Any, event_id: Optional[str] = None) -> Tuple[PricingEntry, ...]:
    """Decode pricing entries, accepting the alternative rate keys."""
    entries = []
    for item in coerce_list(value, 'pricing_structure', event_id):
        if not isinstance(item, dict):
            logger.warning(f"Skipping malformed pricing entry {item!r} for event {event_id}")
            continue
        hourly = next((item[key] for key in HOURLY_RATE_KEYS if item.get(key) is not None), None)
        fixed = next((item[key] for key in FIXED_RATE_KEYS if item.get(key) is not None), None)
        entries.append(PricingEntry(
            category=item.get('category') or '',
            hourly_rate=_to_rate(hourly),
            fixed_rate=_to_rate(fixed),
        ))
    return tuple(entries)


def unmatched_categories(
    staff: Tuple[StaffRequirement, ...],
    qualifications: Tuple[QualificationRequirement, ...],
    pricing: Tuple[PricingEntry, ...],
) -> List[str]:
    """Categories named in qualification or pricing lists but not in staff requirements."""
    known = {requirement.category for requirement in staff}
    unmatched = []
    for entry in list(qualifications) + list(pricing):
        if entry.category not in known and entry.category not in unmatched:
            unmatched.append(entry.category)
    return unmatched
