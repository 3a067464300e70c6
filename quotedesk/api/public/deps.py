"""Helpers for the unauthenticated, token/slug addressed endpoints."""

from typing import Annotated, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from quotedesk.database import get_db
from quotedesk.models.organization import Organization
from quotedesk.services.organization_service import resolve_organization


def client_ip(request: Request) -> Optional[str]:
    """First X-Forwarded-For hop when behind a proxy, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def user_agent(request: Request) -> Optional[str]:
    value = request.headers.get("user-agent")
    return value[:500] if value else None


async def get_public_organization(org: str, db: Annotated[AsyncSession, Depends(get_db)]) -> Organization:
    """``org`` path parameter: organization id or slug."""
    return await resolve_organization(db, org)


PublicOrganization = Annotated[Organization, Depends(get_public_organization)]
