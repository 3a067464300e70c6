"""Calendar events (staff). Employees see their own and unassigned events."""

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Query
from sqlalchemy import select

from quotedesk.api.deps import Context, DbSession
from quotedesk.database import utcnow
from quotedesk.exceptions import NotFoundError, ValidationError
from quotedesk.models.calendar_event import CalendarEvent
from quotedesk.models.quotation import Quotation
from quotedesk.models.user import User
from quotedesk.schemas.calendar import CalendarEventCreate, CalendarEventResponse, CalendarEventUpdate
from quotedesk.security.rbac import RequestContext, can_see_assigned, scope_calendar

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_event(db, ctx: RequestContext, event_id: int) -> CalendarEvent:
    result = await db.execute(
        select(CalendarEvent).where(
            CalendarEvent.id == event_id,
            CalendarEvent.organization_id == ctx.organization_id,
        )
    )
    event = result.scalar_one_or_none()
    if event is None or (event.employee_id is not None and not can_see_assigned(ctx, event.employee_id)):
        raise NotFoundError("Calendar event", event_id)
    return event


async def _check_references(db, ctx: RequestContext, employee_id: Optional[int], quotation_id: Optional[int]):
    if employee_id is not None:
        if not ctx.is_owner and employee_id != ctx.user_id:
            raise ValidationError("Employees can only plan their own events")
        result = await db.execute(
            select(User.id).where(User.id == employee_id, User.organization_id == ctx.organization_id)
        )
        if result.scalar_one_or_none() is None:
            raise ValidationError(f"Employee {employee_id} does not belong to this organization")
    if quotation_id is not None:
        result = await db.execute(
            select(Quotation.id).where(
                Quotation.id == quotation_id, Quotation.organization_id == ctx.organization_id
            )
        )
        if result.scalar_one_or_none() is None:
            raise ValidationError(f"Quotation {quotation_id} does not belong to this organization")


@router.get("/events", response_model=List[CalendarEventResponse])
async def list_events(
    ctx: Context,
    db: DbSession,
    start: Optional[date] = Query(None, alias="from"),
    end: Optional[date] = Query(None, alias="to"),
):
    query = select(CalendarEvent).where(CalendarEvent.organization_id == ctx.organization_id)
    query = scope_calendar(query, ctx, CalendarEvent.employee_id)
    if start is not None:
        query = query.where(CalendarEvent.date >= start)
    if end is not None:
        query = query.where(CalendarEvent.date <= end)
    result = await db.execute(query.order_by(CalendarEvent.date, CalendarEvent.start_time, CalendarEvent.id))
    return result.scalars().all()


@router.post("/events", response_model=CalendarEventResponse, status_code=201)
async def create_event(data: CalendarEventCreate, ctx: Context, db: DbSession):
    await _check_references(db, ctx, data.employee_id, data.quotation_id)
    fields = data.model_dump()
    if not ctx.is_owner:
        # an employee blocks their own agenda, never the owner placeholder
        fields["employee_id"] = ctx.user_id
    event = CalendarEvent(organization_id=ctx.organization_id, created_at=utcnow(), **fields)
    db.add(event)
    await db.commit()
    logger.info("Calendar event created", extra={"event_id": event.id, "type": event.type})
    return event


@router.patch("/events/{event_id}", response_model=CalendarEventResponse)
async def update_event(event_id: int, data: CalendarEventUpdate, ctx: Context, db: DbSession):
    event = await _get_event(db, ctx, event_id)
    changes = data.model_dump(exclude_unset=True)
    if "employee_id" in changes:
        await _check_references(db, ctx, changes["employee_id"], None)
        if not ctx.is_owner:
            changes["employee_id"] = ctx.user_id
    start_time = changes.get("start_time", event.start_time)
    end_time = changes.get("end_time", event.end_time)
    if start_time and end_time and end_time <= start_time:
        raise ValidationError("end_time must be after start_time")

    for field, value in changes.items():
        if value is None and field in ("date", "type"):
            continue
        setattr(event, field, value)
    await db.commit()
    return event


@router.delete("/events/{event_id}", status_code=204)
async def delete_event(event_id: int, ctx: Context, db: DbSession):
    event = await _get_event(db, ctx, event_id)
    await db.delete(event)
    await db.commit()
