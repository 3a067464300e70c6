"""
Calendar availability.

A date (or a time on a date) is blocked only once every staff member is
occupied. An occupying event is an ``unavailable`` or ``booked`` event; events
without an employee count for the owner placeholder. ``requested`` events are
tentative and never block.

Everything is recomputed per request from the stored events.
"""

import logging
from datetime import date, time
from typing import Any, Dict, Iterable, List, Optional, Set

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from quotedesk.models.calendar_event import CalendarEvent
from quotedesk.models.organization import WEEKDAYS
from quotedesk.models.user import User

logger = logging.getLogger(__name__)

OWNER_PLACEHOLDER = "__owner__"
BLOCKING_TYPES = frozenset({"unavailable", "booked"})


def _blocker(event: Any):
    return event.employee_id if event.employee_id is not None else OWNER_PLACEHOLDER


def _capacity(staff_count: int) -> int:
    return max(staff_count or 0, 1)


def blocked_dates(events: Iterable[Any], staff_count: int) -> Set[date]:
    """Dates on which all staff have an all-day unavailable/booked event."""
    blockers: Dict[date, Set] = {}
    for event in events:
        if event.type not in BLOCKING_TYPES or event.start_time is not None:
            continue
        blockers.setdefault(event.date, set()).add(_blocker(event))

    capacity = _capacity(staff_count)
    return {day for day, who in blockers.items() if len(who) >= capacity}


def booked_times(events: Iterable[Any], on_date: date, staff_count: int) -> Set[time]:
    """Whole-hour slots on ``on_date`` in which all staff have a timed event.

    Events are grouped by the hour they start in, so a 10:00 and a 10:30
    booking by two people together fill the 10:00 slot.
    """
    blockers: Dict[time, Set] = {}
    for event in events:
        if event.type not in BLOCKING_TYPES or event.start_time is None or event.date != on_date:
            continue
        blockers.setdefault(time(event.start_time.hour), set()).add(_blocker(event))

    capacity = _capacity(staff_count)
    return {start for start, who in blockers.items() if len(who) >= capacity}


def parse_hhmm(value: Optional[str]) -> Optional[time]:
    if not value:
        return None
    try:
        hours, minutes = value.split(":")[:2]
        return time(int(hours), int(minutes))
    except (ValueError, TypeError):
        logger.warning("Ignoring malformed opening hour %r", value)
        return None


def generate_slots(opening_hours: Optional[Dict[str, Any]], on_date: date) -> List[time]:
    """One slot per whole hour in [open, close) for the weekday of ``on_date``."""
    if not opening_hours:
        return []
    day = opening_hours.get(WEEKDAYS[on_date.weekday()])
    if not day or day.get("enabled") is False:
        return []

    opens = parse_hhmm(day.get("open"))
    closes = parse_hhmm(day.get("close"))
    if opens is None or closes is None:
        return []
    return [time(hour) for hour in range(opens.hour, closes.hour)]


def available_slots(
    events: Iterable[Any],
    opening_hours: Optional[Dict[str, Any]],
    on_date: date,
    staff_count: int,
) -> List[time]:
    """Generated slots minus fully booked hours. Empty when the whole date is blocked."""
    events = list(events)
    if on_date in blocked_dates(events, staff_count):
        return []
    taken = booked_times(events, on_date, staff_count)
    return [slot for slot in generate_slots(opening_hours, on_date) if slot not in taken]


# Database access


async def count_staff(db: AsyncSession, organization_id) -> int:
    """Active staff accounts (owner and employees), at least 1."""
    result = await db.execute(
        select(func.count(User.id)).where(
            User.organization_id == organization_id,
            User.is_active.is_(True),
        )
    )
    return max(result.scalar() or 0, 1)


async def load_blocking_events(
    db: AsyncSession,
    organization_id,
    on_date: Optional[date] = None,
    from_date: Optional[date] = None,
) -> List[CalendarEvent]:
    query = select(CalendarEvent).where(
        CalendarEvent.organization_id == organization_id,
        CalendarEvent.type.in_(BLOCKING_TYPES),
    )
    if on_date is not None:
        query = query.where(CalendarEvent.date == on_date)
    if from_date is not None:
        query = query.where(CalendarEvent.date >= from_date)
    result = await db.execute(query)
    return list(result.scalars().all())
