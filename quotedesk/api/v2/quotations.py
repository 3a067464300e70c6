"""
Quotations API (staff).

Lifecycle actions go through services.quotation_service; handlers only parse
input, pass the RequestContext and shape the response.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from quotedesk.api.deps import Context, DbSession, OwnerContext
from quotedesk.schemas.quotation import (
    AssignRequest,
    InvoiceRequest,
    QuotationCreate,
    QuotationListResponse,
    QuotationResponse,
    QuotationSummary,
    QuotationUpdate,
    QuoteItemCreate,
    QuoteItemResponse,
    SendInvoiceResult,
    SendResult,
    StatusType,
)
from quotedesk.services import quotation_service
from quotedesk.services.email_service import EmailService, get_email_service
from quotedesk.services.invoice_pdf import InvoiceRenderer, get_invoice_renderer, invoice_filename

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=QuotationListResponse)
async def list_quotations(
    ctx: Context,
    db: DbSession,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: Optional[StatusType] = None,
    search: Optional[str] = None,
):
    """List quotations; employees only see those assigned to them."""
    quotations, total = await quotation_service.list_quotations(
        db, ctx, status=status, search=search, page=page, page_size=page_size
    )
    return QuotationListResponse(
        items=[QuotationSummary.model_validate(q) for q in quotations],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post("", response_model=QuotationResponse, status_code=201)
async def create_quotation(
    data: QuotationCreate,
    ctx: Context,
    db: DbSession,
    email_service: EmailService = Depends(get_email_service),
):
    fields = data.model_dump(exclude={"items", "send"})
    items = [item.model_dump() for item in data.items]
    quotation = await quotation_service.create_quotation(db, ctx, fields, items, data.send, email_service)
    return await quotation_service.reload(db, quotation)


@router.get("/{quotation_id}", response_model=QuotationResponse)
async def get_quotation(quotation_id: int, ctx: Context, db: DbSession):
    return await quotation_service.get_quotation(db, ctx, quotation_id, refresh=True)


@router.patch("/{quotation_id}", response_model=QuotationResponse)
async def update_quotation(quotation_id: int, data: QuotationUpdate, ctx: Context, db: DbSession):
    quotation = await quotation_service.get_quotation(db, ctx, quotation_id)
    await quotation_service.update_quotation(db, quotation, data.model_dump(exclude_unset=True))
    return await quotation_service.reload(db, quotation)


@router.post("/{quotation_id}/items", response_model=QuoteItemResponse, status_code=201)
async def add_item(quotation_id: int, data: QuoteItemCreate, ctx: Context, db: DbSession):
    quotation = await quotation_service.get_quotation(db, ctx, quotation_id)
    return await quotation_service.add_item(db, quotation, data.model_dump())


@router.post("/{quotation_id}/send", response_model=SendResult)
async def send_quotation(
    quotation_id: int,
    ctx: Context,
    db: DbSession,
    email_service: EmailService = Depends(get_email_service),
):
    """new_lead -> quote_sent and mail the public link."""
    quotation = await quotation_service.get_quotation(db, ctx, quotation_id)
    outcome = await quotation_service.send_quote(db, ctx, quotation, email_service)
    return SendResult(success=outcome.success, email_sent=outcome.email_sent)


@router.post("/{quotation_id}/generate-invoice", response_model=QuotationResponse)
async def generate_invoice(
    quotation_id: int,
    ctx: Context,
    db: DbSession,
    data: Optional[InvoiceRequest] = None,
):
    quotation = await quotation_service.get_quotation(db, ctx, quotation_id)
    await quotation_service.generate_invoice(db, ctx, quotation, data.invoice_notes if data else None)
    return await quotation_service.reload(db, quotation)


@router.post("/{quotation_id}/mark-paid", response_model=QuotationResponse)
async def mark_paid(quotation_id: int, ctx: Context, db: DbSession):
    quotation = await quotation_service.get_quotation(db, ctx, quotation_id)
    await quotation_service.mark_paid(db, ctx, quotation)
    return await quotation_service.reload(db, quotation)


@router.post("/{quotation_id}/send-invoice", response_model=SendInvoiceResult)
async def send_invoice(
    quotation_id: int,
    ctx: Context,
    db: DbSession,
    email_service: EmailService = Depends(get_email_service),
    renderer: InvoiceRenderer = Depends(get_invoice_renderer),
):
    """Mail the invoice PDF; first successful send provisions the portal account and dossier."""
    quotation = await quotation_service.get_quotation(db, ctx, quotation_id)
    outcome = await quotation_service.send_invoice(db, ctx, quotation, email_service, renderer)
    return SendInvoiceResult(success=outcome.success, email_sent=outcome.email_sent, dossier_id=outcome.dossier_id)


@router.get("/{quotation_id}/invoice-pdf")
async def download_invoice(
    quotation_id: int,
    ctx: Context,
    db: DbSession,
    renderer: InvoiceRenderer = Depends(get_invoice_renderer),
):
    """Invoice PDF download. Rendering failures surface as 502."""
    quotation = await quotation_service.get_quotation(db, ctx, quotation_id)
    pdf_bytes = await quotation_service.render_invoice(db, quotation, renderer)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{invoice_filename(quotation)}"'},
    )


@router.post("/{quotation_id}/assign", response_model=QuotationResponse)
async def assign_quotation(quotation_id: int, data: AssignRequest, ctx: OwnerContext, db: DbSession):
    """Owner-only: (re)assign the quotation, its dossier and its calendar events."""
    quotation = await quotation_service.get_quotation(db, ctx, quotation_id)
    await quotation_service.assign_quotation(db, ctx, quotation, data.employee_id)
    return await quotation_service.reload(db, quotation)
