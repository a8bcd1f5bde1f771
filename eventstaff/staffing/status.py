"""Effective event status.

The stored status is only authoritative for cancellation. Everything else is
derived from the event's start and end against the current time, on every
read, and never written back.
"""

from datetime import datetime, timedelta
from typing import Dict, Optional

from ..config.settings import Config
from ..models.event import EventStatus
from ..utils.timezone import ensure_utc, now_utc

DEFAULT_EVENT_DURATION = timedelta(hours=Config.DEFAULT_EVENT_DURATION_HOURS)

# Calendar colours per status: background and border
STATUS_COLORS: Dict[str, Dict[str, str]] = {
    EventStatus.PLANNED.value: {'bg': '#3b82f6', 'border': '#2563eb'},
    EventStatus.RUNNING.value: {'bg': '#f59e0b', 'border': '#d97706'},
    EventStatus.COMPLETED.value: {'bg': '#22c55e', 'border': '#16a34a'},
    EventStatus.CANCELLED.value: {'bg': '#ef4444', 'border': '#dc2626'},
}
FALLBACK_COLORS = {'bg': '#8b5cf6', 'border': '#7c3aed'}


def effective_end(start: datetime, end: Optional[datetime]) -> datetime:
    """The event's end, or start plus the default duration when none is stored."""
    start = ensure_utc(start)
    return ensure_utc(end) if end else start + DEFAULT_EVENT_DURATION


def effective_status(
    start: datetime,
    end: Optional[datetime],
    stored_status: Optional[str],
    now: Optional[datetime] = None,
) -> str:
    """
    Derive the status to display for an event.

    Priority: a stored cancellation always wins; then an event whose end lies
    in the past is completed; an event whose start has passed and whose end
    has not is running; anything else is planned.

    Args:
        start: Event start
        end: Event end; None means start plus DEFAULT_EVENT_DURATION
        stored_status: Status stored on the event
        now: Reference time, defaults to the current time

    Returns:
        str: One of the EventStatus values
    """
    if stored_status == EventStatus.CANCELLED.value:
        return EventStatus.CANCELLED.value

    now = ensure_utc(now) if now else now_utc()
    start = ensure_utc(start)
    end = effective_end(start, end)

    if end < now:
        return EventStatus.COMPLETED.value
    if start <= now <= end:
        return EventStatus.RUNNING.value
    return EventStatus.PLANNED.value


def status_colors(status: str) -> Dict[str, str]:
    return STATUS_COLORS.get(status, FALLBACK_COLORS)


def is_open_for_registration(status: str) -> bool:
    return status == EventStatus.PLANNED.value
