"""Routes package initialization."""

from . import (
    admin,
    health,
    inquiries,
    staff_events,
    staff_profile,
)

__all__ = [
    'admin',
    'health',
    'inquiries',
    'staff_events',
    'staff_profile',
]
