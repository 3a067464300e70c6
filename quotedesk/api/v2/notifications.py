"""Notifications API - organization notification inbox."""

from fastapi import APIRouter, Query
from sqlalchemy import func, select, update

from quotedesk.api.deps import Context, DbSession
from quotedesk.exceptions import NotFoundError
from quotedesk.models.notification import Notification
from quotedesk.schemas.notification import NotificationListResponse, NotificationResponse, UnreadCountResponse

router = APIRouter()


async def _unread_count(db, organization_id) -> int:
    result = await db.execute(
        select(func.count(Notification.id)).where(
            Notification.organization_id == organization_id,
            Notification.is_read.is_(False),
        )
    )
    return result.scalar() or 0


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    ctx: Context,
    db: DbSession,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    unread_only: bool = False,
):
    """List notifications for the current organization, newest first."""
    query = select(Notification).where(Notification.organization_id == ctx.organization_id)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    query = query.order_by(Notification.created_at.desc(), Notification.id.desc()).offset(offset).limit(limit)
    result = await db.execute(query)

    return NotificationListResponse(
        items=[NotificationResponse.model_validate(n) for n in result.scalars().all()],
        total=total,
        unread=await _unread_count(db, ctx.organization_id),
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(ctx: Context, db: DbSession):
    return UnreadCountResponse(count=await _unread_count(db, ctx.organization_id))


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(notification_id: int, ctx: Context, db: DbSession):
    """Mark a notification as read."""
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.organization_id == ctx.organization_id,
        )
    )
    notification = result.scalar_one_or_none()
    if notification is None:
        raise NotFoundError("Notification", notification_id)

    notification.is_read = True
    await db.commit()
    return notification


@router.post("/read-all")
async def mark_all_notifications_read(ctx: Context, db: DbSession):
    """Mark all notifications as read."""
    result = await db.execute(
        update(Notification)
        .where(Notification.organization_id == ctx.organization_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    await db.commit()
    return {"success": True, "marked_read": result.rowcount}
