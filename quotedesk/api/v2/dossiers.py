"""
Dossiers API (staff).

Dossiers are created by sending an invoice, never directly. Employees only
reach dossiers assigned to them.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select

from quotedesk.api.deps import Context, DbSession
from quotedesk.models.client_user import ClientUser
from quotedesk.models.dossier import Dossier, DossierSignature
from quotedesk.models.quotation import Quotation
from quotedesk.schemas.dossier import (
    DossierDetail,
    DossierEntryCreate,
    DossierEntryResponse,
    DossierEntryUpdate,
    DossierListItem,
    DossierMessageCreate,
    DossierMessageResponse,
    DossierResponse,
    DossierSignatureResponse,
)
from quotedesk.schemas.quotation import PublicQuotation
from quotedesk.security.rbac import scope_assigned
from quotedesk.services import dossier_service
from quotedesk.services.email_service import EmailService, get_email_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _list_item(dossier: Dossier, client: Optional[ClientUser], unread: int, signed: bool) -> DossierListItem:
    item = DossierListItem.model_validate(dossier)
    item.client_name = client.name if client else None
    item.client_email = client.email if client else None
    item.unread_messages = unread
    item.has_signature = signed
    return item


@router.get("", response_model=List[DossierListItem])
async def list_dossiers(
    ctx: Context,
    db: DbSession,
    status: Optional[str] = Query(None, pattern="^(open|completed|signed)$"),
):
    query = (
        select(Dossier, ClientUser)
        .outerjoin(ClientUser, ClientUser.id == Dossier.client_user_id)
        .where(Dossier.organization_id == ctx.organization_id)
    )
    query = scope_assigned(query, ctx, Dossier.assigned_employee_id)
    if status:
        query = query.where(Dossier.status == status)
    rows = (await db.execute(query.order_by(Dossier.id.desc()))).all()

    dossier_ids = [dossier.id for dossier, _ in rows]
    unread = await dossier_service.unread_counts(db, dossier_ids, sender_type="client")
    signed_ids = set()
    if dossier_ids:
        result = await db.execute(
            select(DossierSignature.dossier_id).where(DossierSignature.dossier_id.in_(dossier_ids))
        )
        signed_ids = set(result.scalars().all())

    return [
        _list_item(dossier, client, unread.get(dossier.id, 0), dossier.id in signed_ids)
        for dossier, client in rows
    ]


@router.get("/{dossier_id}", response_model=DossierDetail)
async def get_dossier(dossier_id: int, ctx: Context, db: DbSession):
    """Full dossier. Opening it marks the client's messages as read."""
    dossier = await dossier_service.get_dossier(db, ctx, dossier_id)
    await dossier_service.mark_messages_read(db, dossier.id, sender_type="client")

    client = await db.get(ClientUser, dossier.client_user_id) if dossier.client_user_id else None
    quotation = await db.get(Quotation, dossier.quotation_id)
    signature = await dossier_service.get_signature(db, dossier.id)

    return DossierDetail(
        dossier=_list_item(dossier, client, 0, signature is not None),
        quotation=PublicQuotation.model_validate(quotation) if quotation else None,
        entries=await dossier_service.list_entries(db, dossier.id),
        messages=await dossier_service.list_messages(db, dossier.id),
        signature=DossierSignatureResponse.model_validate(signature) if signature else None,
    )


@router.delete("/{dossier_id}", status_code=204)
async def delete_dossier(dossier_id: int, ctx: Context, db: DbSession):
    dossier = await dossier_service.get_dossier(db, ctx, dossier_id)
    await dossier_service.delete_dossier(db, dossier)


@router.post("/{dossier_id}/complete", response_model=DossierResponse)
async def complete_dossier(dossier_id: int, ctx: Context, db: DbSession):
    """open -> completed; the client can sign afterwards."""
    dossier = await dossier_service.get_dossier(db, ctx, dossier_id)
    return await dossier_service.complete_dossier(db, dossier)


@router.get("/{dossier_id}/entries", response_model=List[DossierEntryResponse])
async def list_entries(dossier_id: int, ctx: Context, db: DbSession):
    dossier = await dossier_service.get_dossier(db, ctx, dossier_id)
    return await dossier_service.list_entries(db, dossier.id)


@router.post("/{dossier_id}/entries", response_model=DossierEntryResponse, status_code=201)
async def add_entry(dossier_id: int, data: DossierEntryCreate, ctx: Context, db: DbSession):
    dossier = await dossier_service.get_dossier(db, ctx, dossier_id)
    return await dossier_service.add_entry(db, dossier, created_by="tenant", **data.model_dump())


@router.patch("/{dossier_id}/entries/{entry_id}", response_model=DossierEntryResponse)
async def update_entry(dossier_id: int, entry_id: int, data: DossierEntryUpdate, ctx: Context, db: DbSession):
    dossier = await dossier_service.get_dossier(db, ctx, dossier_id)
    entry = await dossier_service.get_entry(db, dossier, entry_id)
    entry.caption = data.caption
    await db.commit()
    return entry


@router.delete("/{dossier_id}/entries/{entry_id}", status_code=204)
async def delete_entry(dossier_id: int, entry_id: int, ctx: Context, db: DbSession):
    dossier = await dossier_service.get_dossier(db, ctx, dossier_id)
    entry = await dossier_service.get_entry(db, dossier, entry_id)
    await db.delete(entry)
    await db.commit()


@router.get("/{dossier_id}/messages", response_model=List[DossierMessageResponse])
async def list_messages(dossier_id: int, ctx: Context, db: DbSession):
    dossier = await dossier_service.get_dossier(db, ctx, dossier_id)
    return await dossier_service.list_messages(db, dossier.id)


@router.post("/{dossier_id}/messages", response_model=DossierMessageResponse, status_code=201)
async def post_message(
    dossier_id: int,
    data: DossierMessageCreate,
    ctx: Context,
    db: DbSession,
    email_service: EmailService = Depends(get_email_service),
):
    dossier = await dossier_service.get_dossier(db, ctx, dossier_id)
    return await dossier_service.post_staff_message(db, ctx, dossier, data.message, data.file_path, email_service)
