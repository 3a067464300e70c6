"""In-app notification sink."""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from quotedesk.models.notification import Notification

logger = logging.getLogger(__name__)


async def notify(
    db: AsyncSession,
    organization_id,
    type: str,
    title: str,
    message: str,
    related_id: Optional[int] = None,
) -> Notification:
    """Queue a notification in the caller's transaction; the caller commits."""
    notification = Notification(
        organization_id=organization_id,
        type=type,
        title=title,
        message=message,
        related_id=related_id,
    )
    db.add(notification)
    logger.info(
        "Notification queued",
        extra={"organization_id": str(organization_id), "type": type, "related_id": related_id},
    )
    return notification
