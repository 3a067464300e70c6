"""Organization lookup and slug handling."""

import re
import secrets
import uuid
from typing import Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quotedesk.exceptions import NotFoundError
from quotedesk.models.organization import Organization

_SLUG_STRIP = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    slug = _SLUG_STRIP.sub("-", name.lower()).strip("-")
    return slug[:80] or "organisatie"


async def unique_slug(db: AsyncSession, name: str) -> str:
    base = slugify(name)
    slug = base
    while True:
        result = await db.execute(select(Organization.id).where(Organization.slug == slug))
        if result.scalar_one_or_none() is None:
            return slug
        slug = f"{base}-{secrets.token_hex(2)}"


async def get_organization(db: AsyncSession, organization_id) -> Organization:
    organization = await db.get(Organization, organization_id)
    if organization is None:
        raise NotFoundError("Organization", organization_id)
    return organization


async def resolve_organization(db: AsyncSession, identifier: Union[str, uuid.UUID]) -> Organization:
    """Find an organization by raw id or by public slug."""
    try:
        organization_id = identifier if isinstance(identifier, uuid.UUID) else uuid.UUID(str(identifier))
    except ValueError:
        organization_id = None

    if organization_id is not None:
        organization = await db.get(Organization, organization_id)
        if organization is not None:
            return organization

    result = await db.execute(select(Organization).where(Organization.slug == str(identifier)))
    organization = result.scalar_one_or_none()
    if organization is None:
        raise NotFoundError("Organization")
    return organization
