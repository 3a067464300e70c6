"""Public availability for the lead form date/time pickers."""

from datetime import date

from fastapi import APIRouter, Query

from quotedesk.api.deps import DbSession
from quotedesk.api.public.deps import PublicOrganization
from quotedesk.models.organization import default_opening_hours
from quotedesk.schemas.calendar import (
    BookedTimesResponse,
    OpeningHoursResponse,
    SlotsResponse,
    UnavailableDatesResponse,
)
from quotedesk.services.availability import (
    available_slots,
    blocked_dates,
    booked_times,
    count_staff,
    load_blocking_events,
)

router = APIRouter(prefix="/calendar", tags=["Public - Calendar"])


@router.get("/{org}/unavailable", response_model=UnavailableDatesResponse)
async def unavailable_dates(organization: PublicOrganization, db: DbSession):
    """Dates from today on where every staff member is occupied all day."""
    events = await load_blocking_events(db, organization.id, from_date=date.today())
    staff = await count_staff(db, organization.id)
    return UnavailableDatesResponse(dates=sorted(blocked_dates(events, staff)))


@router.get("/{org}/booked-times", response_model=BookedTimesResponse)
async def get_booked_times(
    organization: PublicOrganization,
    db: DbSession,
    on_date: date = Query(..., alias="date"),
):
    events = await load_blocking_events(db, organization.id, on_date=on_date)
    staff = await count_staff(db, organization.id)
    return BookedTimesResponse(date=on_date, times=sorted(booked_times(events, on_date, staff)))


@router.get("/{org}/opening-hours", response_model=OpeningHoursResponse)
async def opening_hours(organization: PublicOrganization):
    return OpeningHoursResponse(opening_hours=organization.opening_hours or default_opening_hours())


@router.get("/{org}/slots", response_model=SlotsResponse)
async def slots(
    organization: PublicOrganization,
    db: DbSession,
    on_date: date = Query(..., alias="date"),
):
    """One-hour slots still bookable on ``date``."""
    events = await load_blocking_events(db, organization.id, on_date=on_date)
    staff = await count_staff(db, organization.id)
    blocked = on_date in blocked_dates(events, staff)
    return SlotsResponse(
        date=on_date,
        blocked=blocked,
        slots=available_slots(events, organization.opening_hours or default_opening_hours(), on_date, staff),
    )
