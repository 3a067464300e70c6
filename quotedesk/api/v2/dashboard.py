"""Dashboard statistics, scoped like the quotation list."""

from datetime import date
from decimal import Decimal

from fastapi import APIRouter
from sqlalchemy import func, select

from quotedesk.api.deps import Context, DbSession
from quotedesk.models.calendar_event import CalendarEvent
from quotedesk.models.quotation import Quotation
from quotedesk.schemas.dashboard import DashboardStats
from quotedesk.schemas.quotation import QuotationSummary
from quotedesk.security.rbac import scope_assigned, scope_calendar

router = APIRouter()

PIPELINE_STATUSES = ("quote_sent", "viewed", "approved")


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(ctx: Context, db: DbSession):
    """Revenue, pipeline and status counts over the quotations visible to the caller."""
    base = scope_assigned(
        select(Quotation.status, func.count(Quotation.id), func.coalesce(func.sum(Quotation.total), 0))
        .where(Quotation.organization_id == ctx.organization_id),
        ctx,
        Quotation.assigned_employee_id,
    ).group_by(Quotation.status)
    rows = (await db.execute(base)).all()

    status_counts = {status: count for status, count, _ in rows}
    sums = {status: Decimal(str(total or 0)) for status, _, total in rows}

    recent_query = scope_assigned(
        select(Quotation).where(Quotation.organization_id == ctx.organization_id),
        ctx,
        Quotation.assigned_employee_id,
    ).order_by(Quotation.created_at.desc(), Quotation.id.desc()).limit(5)
    recent = (await db.execute(recent_query)).scalars().all()

    upcoming = []
    if not ctx.is_owner:
        events_query = scope_calendar(
            select(CalendarEvent).where(
                CalendarEvent.organization_id == ctx.organization_id,
                CalendarEvent.date >= date.today(),
            ),
            ctx,
            CalendarEvent.employee_id,
        ).order_by(CalendarEvent.date, CalendarEvent.start_time).limit(10)
        upcoming = (await db.execute(events_query)).scalars().all()

    return DashboardStats(
        total_revenue=sums.get("paid", Decimal("0")).quantize(Decimal("0.01")),
        pipeline_value=sum((sums.get(s, Decimal("0")) for s in PIPELINE_STATUSES), Decimal("0")).quantize(
            Decimal("0.01")
        ),
        active_quotes=sum(status_counts.get(s, 0) for s in PIPELINE_STATUSES),
        open_invoices=status_counts.get("invoiced", 0),
        total_quotes=sum(status_counts.values()),
        status_counts=status_counts,
        recent_quotes=[QuotationSummary.model_validate(q) for q in recent],
        upcoming_events=upcoming,
        role=ctx.role.value,
    )
