"""
Public quote page, addressed by the quotation's unguessable token.

Opening the page counts as the client viewing the quote; accepting and
rejecting are only possible from ``viewed``.
"""

import logging

from fastapi import APIRouter, Request

from quotedesk.api.deps import DbSession
from quotedesk.api.public.deps import client_ip, user_agent
from quotedesk.schemas.organization import OrganizationPublic
from quotedesk.schemas.quotation import (
    AcceptQuoteRequest,
    PublicQuoteItem,
    PublicQuotation,
    PublicQuoteResponse,
    RejectQuoteRequest,
)
from quotedesk.services import quotation_service
from quotedesk.services.organization_service import get_organization

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotes", tags=["Public - Quotes"])


async def _response(db, quotation) -> PublicQuoteResponse:
    organization = await get_organization(db, quotation.organization_id)
    return PublicQuoteResponse(
        quotation=PublicQuotation.model_validate(quotation),
        items=[PublicQuoteItem.model_validate(item) for item in quotation.items],
        organization=OrganizationPublic.model_validate(organization),
    )


@router.get("/{token}", response_model=PublicQuoteResponse)
async def view_quote(token: str, request: Request, db: DbSession):
    quotation = await quotation_service.get_quotation_by_token(db, token, refresh=True)
    await quotation_service.record_view(db, quotation, ip=client_ip(request))
    return await _response(db, await quotation_service.reload(db, quotation))


@router.post("/{token}/accept", response_model=PublicQuoteResponse)
async def accept_quote(token: str, data: AcceptQuoteRequest, request: Request, db: DbSession):
    quotation = await quotation_service.get_quotation_by_token(db, token, refresh=True)
    await quotation_service.approve_quote(
        db,
        quotation,
        data.signature,
        data.selected_items,
        ip=client_ip(request),
        user_agent=user_agent(request),
    )
    return await _response(db, await quotation_service.reload(db, quotation))


@router.post("/{token}/reject", response_model=PublicQuoteResponse)
async def reject_quote(token: str, request: Request, db: DbSession, data: RejectQuoteRequest | None = None):
    quotation = await quotation_service.get_quotation_by_token(db, token, refresh=True)
    await quotation_service.reject_quote(
        db,
        quotation,
        data.reason if data else None,
        ip=client_ip(request),
        user_agent=user_agent(request),
    )
    return await _response(db, await quotation_service.reload(db, quotation))
