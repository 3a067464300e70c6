import logging

from fastapi import APIRouter

from quotedesk.api.deps import Context, DbSession, OwnerContext
from quotedesk.schemas.organization import OrganizationResponse, OrganizationUpdate
from quotedesk.services.organization_service import get_organization

logger = logging.getLogger(__name__)

router = APIRouter()

# Columns that cannot be cleared; a null in the body leaves them unchanged
REQUIRED_FIELDS = frozenset({"name", "invoice_prefix", "default_vat_rate", "opening_hours"})


@router.get("", response_model=OrganizationResponse)
async def read_organization(ctx: Context, db: DbSession):
    return await get_organization(db, ctx.organization_id)


@router.patch("", response_model=OrganizationResponse)
async def update_organization(data: OrganizationUpdate, ctx: OwnerContext, db: DbSession):
    """Owner-only settings update."""
    organization = await get_organization(db, ctx.organization_id)
    changes = {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None or field not in REQUIRED_FIELDS
    }
    if "opening_hours" in changes:
        # partial weekday updates merge into the stored week
        merged = dict(organization.opening_hours or {})
        merged.update(changes["opening_hours"])
        changes["opening_hours"] = merged
    for field, value in changes.items():
        setattr(organization, field, value)
    await db.commit()

    logger.info(
        "Organization settings updated",
        extra={"organization_id": str(organization.id), "fields": sorted(changes)},
    )
    return organization
