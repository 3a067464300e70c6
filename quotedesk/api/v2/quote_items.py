from fastapi import APIRouter

from quotedesk.api.deps import Context, DbSession
from quotedesk.schemas.quotation import QuoteItemResponse, QuoteItemUpdate
from quotedesk.services import quotation_service

router = APIRouter()


@router.patch("/{item_id}", response_model=QuoteItemResponse)
async def update_item(item_id: int, data: QuoteItemUpdate, ctx: Context, db: DbSession):
    item = await quotation_service.get_item(db, ctx, item_id)
    quotation = await quotation_service.get_quotation(db, ctx, item.quotation_id)
    return await quotation_service.update_item(db, quotation, item, data.model_dump(exclude_unset=True))


@router.delete("/{item_id}", status_code=204)
async def delete_item(item_id: int, ctx: Context, db: DbSession):
    item = await quotation_service.get_item(db, ctx, item_id)
    quotation = await quotation_service.get_quotation(db, ctx, item.quotation_id)
    await quotation_service.delete_item(db, quotation, item)
