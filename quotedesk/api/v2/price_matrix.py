"""Price matrix (catalog) API. Reads for all staff, writes for owners."""

import logging
from typing import List

from fastapi import APIRouter
from sqlalchemy import select, update

from quotedesk.api.deps import CatalogContext, Context, DbSession
from quotedesk.exceptions import NotFoundError, ValidationError
from quotedesk.models.price_matrix import PriceMatrixItem
from quotedesk.schemas.price_matrix import (
    PriceMatrixItemCreate,
    PriceMatrixItemResponse,
    PriceMatrixItemUpdate,
    VisibilityRequest,
    VisibilityResponse,
)
from quotedesk.services.catalog import CatalogDependencyError, resolve_visibility, validate_dependency

logger = logging.getLogger(__name__)

router = APIRouter()

# Fields a PATCH may clear with an explicit null
NULLABLE_FIELDS = frozenset({"description", "category", "depends_on_item_id"})


async def _catalog(db, organization_id) -> List[PriceMatrixItem]:
    result = await db.execute(
        select(PriceMatrixItem)
        .where(PriceMatrixItem.organization_id == organization_id)
        .order_by(PriceMatrixItem.sort_order, PriceMatrixItem.id)
    )
    return list(result.scalars().all())


async def _get_item(db, organization_id, item_id: int) -> PriceMatrixItem:
    result = await db.execute(
        select(PriceMatrixItem).where(
            PriceMatrixItem.id == item_id,
            PriceMatrixItem.organization_id == organization_id,
        )
    )
    item = result.scalar_one_or_none()
    if item is None:
        raise NotFoundError("Price matrix item", item_id)
    return item


def _check_dependency(item_id, depends_on_item_id, catalog) -> None:
    try:
        validate_dependency(item_id, depends_on_item_id, catalog)
    except CatalogDependencyError as e:
        raise ValidationError(str(e), errors=[{"field": "depends_on_item_id", "message": str(e)}])


@router.get("", response_model=List[PriceMatrixItemResponse])
async def list_items(ctx: Context, db: DbSession):
    return await _catalog(db, ctx.organization_id)


@router.post("", response_model=PriceMatrixItemResponse, status_code=201)
async def create_item(data: PriceMatrixItemCreate, ctx: CatalogContext, db: DbSession):
    _check_dependency(None, data.depends_on_item_id, await _catalog(db, ctx.organization_id))

    item = PriceMatrixItem(organization_id=ctx.organization_id, **data.model_dump())
    db.add(item)
    await db.commit()
    logger.info("Catalog item created", extra={"item_id": item.id, "user_id": ctx.user_id})
    return item


@router.post("/visibility", response_model=VisibilityResponse)
async def evaluate_visibility(data: VisibilityRequest, ctx: Context, db: DbSession):
    """Which catalog items are visible for a given selection."""
    catalog = await _catalog(db, ctx.organization_id)
    return VisibilityResponse(visibility=resolve_visibility(catalog, data.selection))


@router.get("/{item_id}", response_model=PriceMatrixItemResponse)
async def get_item(item_id: int, ctx: Context, db: DbSession):
    return await _get_item(db, ctx.organization_id, item_id)


@router.patch("/{item_id}", response_model=PriceMatrixItemResponse)
async def update_item(item_id: int, data: PriceMatrixItemUpdate, ctx: CatalogContext, db: DbSession):
    item = await _get_item(db, ctx.organization_id, item_id)
    changes = data.model_dump(exclude_unset=True)

    if "depends_on_item_id" in changes:
        _check_dependency(item.id, changes["depends_on_item_id"], await _catalog(db, ctx.organization_id))
    for field, value in changes.items():
        if value is None and field not in NULLABLE_FIELDS:
            continue
        setattr(item, field, value)
    await db.commit()
    return item


@router.delete("/{item_id}", status_code=204)
async def delete_item(item_id: int, ctx: CatalogContext, db: DbSession):
    """Delete an item; items depending on it become unconditional."""
    item = await _get_item(db, ctx.organization_id, item_id)
    await db.execute(
        update(PriceMatrixItem)
        .where(PriceMatrixItem.depends_on_item_id == item.id)
        .values(depends_on_item_id=None, depends_on_condition="always")
    )
    await db.delete(item)
    await db.commit()
    logger.info("Catalog item deleted", extra={"item_id": item_id, "user_id": ctx.user_id})
