"""
Quotation lifecycle orchestration.

Every status change goes through quote_lifecycle.apply_event and appends
exactly one audit entry in the same transaction. Outgoing mail and PDF work
happens after the commit; a failure there is logged and never undoes the
transition.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterable, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from quotedesk.database import utcnow
from quotedesk.exceptions import ExternalServiceError, InvalidTransitionError, NotFoundError, ValidationError
from quotedesk.models.calendar_event import CalendarEvent
from quotedesk.models.dossier import Dossier, DossierEntry
from quotedesk.models.organization import Organization
from quotedesk.models.price_matrix import PriceMatrixItem
from quotedesk.models.quotation import Quotation, QuotationAuditEntry, QuoteItem
from quotedesk.models.user import User
from quotedesk.security.rbac import RequestContext, can_see_assigned
from quotedesk.services import dossier_service
from quotedesk.services.catalog import resolve_visibility
from quotedesk.services.email_service import EmailService
from quotedesk.services.email_templates import invoice_email, new_lead_email, portal_access_email, quote_email
from quotedesk.services.invoice_pdf import InvoiceRenderer, pdf_attachment, store_invoice_pdf
from quotedesk.services.notification_service import notify
from quotedesk.services.organization_service import get_organization
from quotedesk.services.pricing import compute_totals, line_total, round2
from quotedesk.services.quote_lifecycle import (
    INVOICED_STATUSES,
    QuoteEvent,
    QuoteStatus,
    apply_event,
    is_editable,
)

logger = logging.getLogger(__name__)

# Statuses from which a public GET moves the quote to viewed
VIEW_TRIGGER_STATUSES = frozenset({QuoteStatus.NEW_LEAD.value, QuoteStatus.QUOTE_SENT.value})

# Never cleared by a partial update
REQUIRED_FIELDS = frozenset({
    "client_name", "client_email", "discount", "vat_rate", "include_vat",
    "name", "quantity", "unit_price", "is_optional", "is_selected",
})

# Stored as Numeric(10, 2); line totals use the stored precision
AMOUNT_FIELDS = ("quantity", "unit_price")


@dataclass
class SendOutcome:
    success: bool
    email_sent: bool
    dossier_id: Optional[int] = None


# Lookups


async def get_quotation(
    db: AsyncSession, ctx: RequestContext, quotation_id: int, refresh: bool = False
) -> Quotation:
    """Organization-scoped lookup; employees only reach quotations assigned to them."""
    query = select(Quotation).where(
        Quotation.id == quotation_id,
        Quotation.organization_id == ctx.organization_id,
    )
    if refresh:
        query = query.execution_options(populate_existing=True)
    quotation = (await db.execute(query)).scalar_one_or_none()
    if quotation is None or not can_see_assigned(ctx, quotation.assigned_employee_id):
        raise NotFoundError("Quotation", quotation_id)
    return quotation


async def get_quotation_by_token(db: AsyncSession, token: str, refresh: bool = False) -> Quotation:
    query = select(Quotation).where(Quotation.token == token)
    if refresh:
        query = query.execution_options(populate_existing=True)
    quotation = (await db.execute(query)).scalar_one_or_none()
    if quotation is None:
        raise NotFoundError("Quotation")
    return quotation


async def reload(db: AsyncSession, quotation: Quotation) -> Quotation:
    """Fresh copy with items and audit log, for responses."""
    result = await db.execute(
        select(Quotation)
        .where(Quotation.id == quotation.id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


# Building blocks


def append_audit(quotation: Quotation, action: str, **context: Any) -> QuotationAuditEntry:
    """Append one audit record. Existing records are never touched."""
    entry = QuotationAuditEntry(
        action=action,
        timestamp=utcnow(),
        context={key: value for key, value in context.items() if value is not None},
    )
    quotation.audit_log.append(entry)
    return entry


def transition(quotation: Quotation, event: QuoteEvent, **context: Any) -> QuoteStatus:
    """Apply ``event`` and record it. Raises InvalidTransitionError, leaving the quotation untouched."""
    target = apply_event(quotation.status, event)
    previous = quotation.status
    quotation.status = target.value
    append_audit(quotation, target.value, **context)
    logger.info(
        "Quotation status changed",
        extra={"quotation_id": quotation.id, "from_status": previous, "to_status": target.value},
    )
    return target


async def claim_transition(db: AsyncSession, quotation: Quotation, event: QuoteEvent, **context: Any) -> bool:
    """
    transition() guarded by a conditional UPDATE on the status the quotation was loaded with.

    Returns False and changes nothing when another request moved the
    quotation first, so two racing requests never both apply ``event``.
    """
    target = apply_event(quotation.status, event)
    result = await db.execute(
        update(Quotation)
        .where(Quotation.id == quotation.id, Quotation.status == quotation.status)
        .values(status=target.value)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        return False
    transition(quotation, event, **context)
    return True


def recalculate(quotation: Quotation) -> None:
    """Refresh line totals and quotation totals from the current item selection."""
    for item in quotation.items:
        item.total = line_total(item)
    totals = compute_totals(quotation.items, quotation.discount, quotation.vat_rate, quotation.include_vat)
    quotation.subtotal = totals.subtotal
    quotation.vat_amount = totals.vat_amount
    quotation.total = totals.total


def ensure_editable(quotation: Quotation) -> None:
    if not is_editable(quotation.status):
        raise InvalidTransitionError("quotation", quotation.status, "edit")


def build_item(**fields: Any) -> QuoteItem:
    for field in AMOUNT_FIELDS:
        if fields.get(field) is not None:
            fields[field] = round2(fields[field])
    fields.setdefault("is_optional", False)
    fields.setdefault("is_selected", True)
    item = QuoteItem(**fields)
    item.total = line_total(item)
    return item


async def _employee_in_org(db: AsyncSession, organization_id, employee_id: int) -> User:
    result = await db.execute(
        select(User).where(User.id == employee_id, User.organization_id == organization_id)
    )
    employee = result.scalar_one_or_none()
    if employee is None:
        raise ValidationError(f"Employee {employee_id} does not belong to this organization")
    return employee


async def _mail_quote(email_service: EmailService, organization: Organization, quotation: Quotation) -> bool:
    content = quote_email(organization, quotation)
    result = await email_service.send_email_with_copy(
        quotation.client_email, organization.email, content.subject, content.body,
        html_body=content.html, sender_name=organization.name,
    )
    if not result.get("success"):
        logger.warning(
            "Quote email not delivered",
            extra={"quotation_id": quotation.id, "error": result.get("error")},
        )
    return bool(result.get("success"))


# Staff actions


async def create_quotation(
    db: AsyncSession,
    ctx: RequestContext,
    data: dict,
    items: Iterable[dict],
    send: bool,
    email_service: EmailService,
) -> Quotation:
    organization = await get_organization(db, ctx.organization_id)

    if data.get("vat_rate") is None:
        data["vat_rate"] = organization.default_vat_rate
    assigned = data.pop("assigned_employee_id", None)
    if not ctx.is_owner:
        assigned = ctx.user_id
    elif assigned is not None:
        await _employee_in_org(db, ctx.organization_id, assigned)

    quotation = Quotation(
        organization_id=ctx.organization_id,
        status=QuoteStatus.NEW_LEAD.value,
        assigned_employee_id=assigned,
        **data,
    )
    for fields in items:
        quotation.items.append(build_item(**fields))
    recalculate(quotation)
    append_audit(quotation, "created", user_id=ctx.user_id)
    db.add(quotation)
    await db.commit()

    logger.info("Quotation created", extra={"quotation_id": quotation.id, "user_id": ctx.user_id})
    if send:
        await send_quote(db, ctx, quotation, email_service)
    return quotation


async def update_quotation(db: AsyncSession, quotation: Quotation, changes: dict) -> Quotation:
    ensure_editable(quotation)
    for field, value in changes.items():
        if value is None and field in REQUIRED_FIELDS:
            continue
        setattr(quotation, field, value)
    recalculate(quotation)
    await db.commit()
    return quotation


async def add_item(db: AsyncSession, quotation: Quotation, fields: dict) -> QuoteItem:
    ensure_editable(quotation)
    item = build_item(**fields)
    quotation.items.append(item)
    recalculate(quotation)
    await db.commit()
    return item


async def get_item(db: AsyncSession, ctx: RequestContext, item_id: int) -> QuoteItem:
    result = await db.execute(select(QuoteItem).where(QuoteItem.id == item_id))
    item = result.scalar_one_or_none()
    if item is None:
        raise NotFoundError("Quote item", item_id)
    # scope through the parent quotation
    try:
        await get_quotation(db, ctx, item.quotation_id)
    except NotFoundError:
        raise NotFoundError("Quote item", item_id)
    return item


async def update_item(db: AsyncSession, quotation: Quotation, item: QuoteItem, changes: dict) -> QuoteItem:
    ensure_editable(quotation)
    for field, value in changes.items():
        if value is None and field in REQUIRED_FIELDS:
            continue
        if field in AMOUNT_FIELDS:
            value = round2(value)
        setattr(item, field, value)
    recalculate(quotation)
    await db.commit()
    return item


async def delete_item(db: AsyncSession, quotation: Quotation, item: QuoteItem) -> None:
    ensure_editable(quotation)
    quotation.items.remove(item)
    recalculate(quotation)
    await db.commit()


async def send_quote(
    db: AsyncSession, ctx: RequestContext, quotation: Quotation, email_service: EmailService
) -> SendOutcome:
    """new_lead -> quote_sent, then mail the public link (plus an internal copy)."""
    transition(quotation, QuoteEvent.SEND, user_id=ctx.user_id)
    await db.commit()

    organization = await get_organization(db, quotation.organization_id)
    email_sent = await _mail_quote(email_service, organization, quotation)
    return SendOutcome(success=True, email_sent=email_sent)


async def generate_invoice(
    db: AsyncSession, ctx: RequestContext, quotation: Quotation, invoice_notes: Optional[str] = None
) -> Quotation:
    """approved -> invoiced with the next invoice number of the organization."""
    # validate before a number is consumed
    apply_event(quotation.status, QuoteEvent.INVOICE)

    invoice_number = await allocate_invoice_number(db, quotation.organization_id)
    quotation.invoice_number = invoice_number
    if invoice_notes is not None:
        quotation.invoice_notes = invoice_notes
    transition(quotation, QuoteEvent.INVOICE, invoice_number=invoice_number, user_id=ctx.user_id)
    await db.commit()
    return quotation


async def allocate_invoice_number(db: AsyncSession, organization_id) -> str:
    """
    Atomically increment the organization's counter and format the number.

    A single UPDATE ... RETURNING, so concurrent callers serialize on the
    organization row and never see the same value.
    """
    stmt = (
        update(Organization)
        .where(Organization.id == organization_id)
        .values(invoice_counter=func.coalesce(Organization.invoice_counter, 1000) + 1)
        .returning(Organization.invoice_counter, Organization.invoice_prefix)
        .execution_options(synchronize_session=False)
    )
    row = (await db.execute(stmt)).one_or_none()
    if row is None:
        raise NotFoundError("Organization", organization_id)
    counter, prefix = row
    return f"{prefix or 'INV'}-{counter}"


async def mark_paid(db: AsyncSession, ctx: RequestContext, quotation: Quotation) -> Quotation:
    transition(quotation, QuoteEvent.MARK_PAID, user_id=ctx.user_id)
    await db.commit()
    return quotation


async def render_invoice(db: AsyncSession, quotation: Quotation, renderer: InvoiceRenderer) -> bytes:
    """PDF for download. Rendering failures propagate as ExternalServiceError (502)."""
    if quotation.status not in {s.value for s in INVOICED_STATUSES} or not quotation.invoice_number:
        raise InvalidTransitionError("quotation", quotation.status, "download invoice for")
    organization = await get_organization(db, quotation.organization_id)
    return renderer.render(organization, quotation, quotation.items)


async def send_invoice(
    db: AsyncSession,
    ctx: RequestContext,
    quotation: Quotation,
    email_service: EmailService,
    renderer: InvoiceRenderer,
) -> SendOutcome:
    """
    Mail the invoice PDF. Not a transition, may be retried.

    Only after a successful mail: audit ``invoice_sent``, get-or-create the
    client portal account and the dossier, and attach the PDF to the dossier.
    Running it twice never duplicates the account or the dossier.
    """
    if quotation.status not in {s.value for s in INVOICED_STATUSES} or not quotation.invoice_number:
        raise InvalidTransitionError("quotation", quotation.status, "send invoice for")

    organization = await get_organization(db, quotation.organization_id)

    try:
        pdf_bytes = renderer.render(organization, quotation, quotation.items)
    except ExternalServiceError:
        logger.warning("Invoice not sent: PDF rendering failed", extra={"quotation_id": quotation.id})
        return SendOutcome(success=False, email_sent=False)

    content = invoice_email(organization, quotation)
    result = await email_service.send_email_with_copy(
        quotation.client_email, organization.email, content.subject, content.body,
        html_body=content.html, attachments=[pdf_attachment(quotation, pdf_bytes)],
        sender_name=organization.name,
    )
    if not result.get("success"):
        logger.warning(
            "Invoice email not delivered",
            extra={"quotation_id": quotation.id, "error": result.get("error")},
        )
        return SendOutcome(success=False, email_sent=False)

    append_audit(quotation, "invoice_sent", invoice_number=quotation.invoice_number, user_id=ctx.user_id)
    client_user, password = await dossier_service.ensure_client_user(db, organization, quotation)
    dossier = await dossier_service.ensure_dossier(db, quotation, client_user)
    await _attach_invoice(db, dossier, quotation, pdf_bytes)
    await db.commit()

    if password is not None:
        portal = portal_access_email(organization, client_user, password)
        portal_result = await email_service.send_email(
            client_user.email, portal.subject, portal.body, html_body=portal.html,
            reply_to=organization.email, sender_name=organization.name,
        )
        if not portal_result.get("success"):
            logger.warning("Portal access email not delivered", extra={"client_user_id": client_user.id})

    return SendOutcome(success=True, email_sent=True, dossier_id=dossier.id)


async def _attach_invoice(db: AsyncSession, dossier: Dossier, quotation: Quotation, pdf_bytes: bytes) -> None:
    try:
        file_path = store_invoice_pdf(quotation, pdf_bytes)
    except (OSError, ExternalServiceError) as e:
        logger.error("Could not store invoice PDF", extra={"quotation_id": quotation.id, "error": str(e)})
        return

    existing = await db.execute(
        select(DossierEntry.id).where(DossierEntry.dossier_id == dossier.id, DossierEntry.file_path == file_path)
    )
    if existing.first() is not None:
        return
    db.add(DossierEntry(
        dossier_id=dossier.id,
        type="file",
        file_path=file_path,
        caption=f"Factuur {quotation.invoice_number}",
        created_by="tenant",
        created_at=utcnow(),
    ))


async def assign_quotation(
    db: AsyncSession, ctx: RequestContext, quotation: Quotation, employee_id: Optional[int]
) -> Quotation:
    """Assign (or unassign) the quotation; its dossier and calendar events follow."""
    if employee_id is not None:
        await _employee_in_org(db, ctx.organization_id, employee_id)

    quotation.assigned_employee_id = employee_id
    await db.execute(
        update(Dossier).where(Dossier.quotation_id == quotation.id).values(assigned_employee_id=employee_id)
    )
    await db.execute(
        update(CalendarEvent).where(CalendarEvent.quotation_id == quotation.id).values(employee_id=employee_id)
    )
    await db.commit()
    logger.info("Quotation assigned", extra={"quotation_id": quotation.id, "employee_id": employee_id})
    return quotation


# Client (public) actions


async def record_view(db: AsyncSession, quotation: Quotation, ip: Optional[str] = None) -> bool:
    """First view moves new_lead/quote_sent to viewed. Any later view is a no-op."""
    if quotation.status not in VIEW_TRIGGER_STATUSES:
        return False
    claimed = await claim_transition(db, quotation, QuoteEvent.VIEW, ip=ip)
    await db.commit()
    return claimed


async def approve_quote(
    db: AsyncSession,
    quotation: Quotation,
    signature: str,
    selections: Iterable[Any] = (),
    ip: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Quotation:
    """
    Client signs: viewed -> approved.

    Applies optional-item toggles, recomputes totals, stores the signature,
    turns the tentative calendar request into a booking and notifies the
    organization.
    """
    apply_event(quotation.status, QuoteEvent.APPROVE)
    if not signature or not signature.strip():
        raise ValidationError("Signature is required")

    items_by_id = {item.id: item for item in quotation.items}
    toggles = []
    for selection in selections:
        item = items_by_id.get(selection.id)
        if item is None:
            raise ValidationError(f"Item {selection.id} does not belong to this quotation")
        if not item.is_optional and selection.is_selected != item.is_selected:
            raise ValidationError(f"Item {selection.id} is not optional")
        toggles.append((item, selection.is_selected))

    quotation_id = quotation.id
    if not await claim_transition(db, quotation, QuoteEvent.APPROVE, ip=ip, user_agent=user_agent):
        # another request approved or rejected it first
        await db.rollback()
        current = (await db.execute(select(Quotation.status).where(Quotation.id == quotation_id))).scalar()
        raise InvalidTransitionError("quotation", current, QuoteEvent.APPROVE.value)

    for item, is_selected in toggles:
        item.is_selected = is_selected

    recalculate(quotation)
    quotation.signature = signature
    quotation.signed_at = utcnow()

    if quotation.desired_start_date is not None:
        await _book_calendar(db, quotation)

    await notify(
        db,
        quotation.organization_id,
        "quote_approved",
        "Offerte goedgekeurd",
        f"{quotation.client_name} heeft offerte #{quotation.id} goedgekeurd",
        related_id=quotation.id,
    )
    await db.commit()
    return quotation


async def _book_calendar(db: AsyncSession, quotation: Quotation) -> None:
    """Replace the quotation's requested events by one booked event (delete, then insert)."""
    await db.execute(
        delete(CalendarEvent).where(
            CalendarEvent.quotation_id == quotation.id,
            CalendarEvent.type == "requested",
        )
    )
    start = quotation.desired_start_time
    end = None
    if start is not None and start.hour < 23:
        end = (datetime.combine(quotation.desired_start_date, start) + timedelta(hours=1)).time()
    db.add(CalendarEvent(
        organization_id=quotation.organization_id,
        date=quotation.desired_start_date,
        start_time=start,
        end_time=end,
        type="booked",
        title=f"Geboekt: {quotation.client_name}",
        notes=f"Offerte #{quotation.id} goedgekeurd",
        quotation_id=quotation.id,
        employee_id=quotation.assigned_employee_id,
        created_at=utcnow(),
    ))


async def reject_quote(
    db: AsyncSession,
    quotation: Quotation,
    reason: Optional[str] = None,
    ip: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Quotation:
    """Client declines: viewed -> rejected."""
    reason = reason.strip() if reason else None
    transition(quotation, QuoteEvent.REJECT, ip=ip, user_agent=user_agent, reason=reason)
    quotation.rejection_reason = reason
    await notify(
        db,
        quotation.organization_id,
        "quote_rejected",
        "Offerte afgewezen",
        f"{quotation.client_name} heeft offerte #{quotation.id} afgewezen"
        + (f": {reason}" if reason else ""),
        related_id=quotation.id,
    )
    await db.commit()
    return quotation


async def submit_lead(
    db: AsyncSession,
    organization: Organization,
    lead: Any,
    email_service: EmailService,
    ip: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Quotation:
    """
    Public lead form: builds a quotation from catalog selections and sends it.

    Unknown or foreign catalog ids are skipped, as are items hidden by their
    dependency rule for this selection.
    """
    catalog = (
        await db.execute(select(PriceMatrixItem).where(PriceMatrixItem.organization_id == organization.id))
    ).scalars().all()
    by_id = {item.id: item for item in catalog}
    visibility = resolve_visibility(catalog, [selection.price_matrix_item_id for selection in lead.items])

    notes = lead.notes
    if lead.extra_fields:
        extra = "\n".join(f"{key}: {value}" for key, value in lead.extra_fields.items())
        notes = f"{notes}\n\n{extra}" if notes else extra

    quotation = Quotation(
        organization_id=organization.id,
        status=QuoteStatus.NEW_LEAD.value,
        client_name=lead.client_name.strip(),
        client_email=lead.client_email,
        client_phone=lead.client_phone,
        client_company=lead.client_company,
        client_address=lead.client_address,
        notes=notes,
        desired_start_date=lead.desired_start_date,
        desired_start_time=lead.desired_start_time,
        discount=0,
        vat_rate=organization.default_vat_rate,
        include_vat=True,
    )
    for selection in lead.items:
        catalog_item = by_id.get(selection.price_matrix_item_id)
        if catalog_item is None or not visibility.get(catalog_item.id, True):
            logger.debug("Skipping lead item", extra={"price_matrix_item_id": selection.price_matrix_item_id})
            continue
        quotation.items.append(build_item(
            price_matrix_item_id=catalog_item.id,
            name=catalog_item.name,
            description=catalog_item.description,
            quantity=selection.quantity,
            unit_price=catalog_item.unit_price,
            unit=catalog_item.unit,
            is_optional=catalog_item.is_optional,
        ))
    recalculate(quotation)
    append_audit(quotation, "lead_submitted", ip=ip, user_agent=user_agent)
    transition(quotation, QuoteEvent.SEND, ip=ip)
    db.add(quotation)
    await db.flush()

    if quotation.desired_start_date is not None:
        db.add(CalendarEvent(
            organization_id=organization.id,
            date=quotation.desired_start_date,
            start_time=quotation.desired_start_time,
            type="requested",
            title=f"Aanvraag: {quotation.client_name}",
            notes=f"Offerte #{quotation.id}",
            quotation_id=quotation.id,
            created_at=utcnow(),
        ))

    await notify(
        db,
        organization.id,
        "new_lead",
        "Nieuwe aanvraag",
        f"{quotation.client_name} heeft een offerte aangevraagd",
        related_id=quotation.id,
    )
    await db.commit()
    logger.info("Lead submitted", extra={"organization_id": str(organization.id), "quotation_id": quotation.id})

    await _mail_quote(email_service, organization, quotation)
    if organization.email:
        content = new_lead_email(organization, quotation)
        result = await email_service.send_email(
            organization.email, content.subject, content.body, html_body=content.html,
            reply_to=quotation.client_email, sender_name=organization.name,
        )
        if not result.get("success"):
            logger.warning("New lead email not delivered", extra={"quotation_id": quotation.id})
    return quotation


async def list_quotations(
    db: AsyncSession,
    ctx: RequestContext,
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[List[Quotation], int]:
    query = select(Quotation).where(Quotation.organization_id == ctx.organization_id)
    if not ctx.is_owner:
        query = query.where(Quotation.assigned_employee_id == ctx.user_id)
    if status:
        query = query.where(Quotation.status == status)
    if search:
        pattern = f"%{search}%"
        query = query.where(
            Quotation.client_name.ilike(pattern)
            | Quotation.client_email.ilike(pattern)
            | Quotation.client_company.ilike(pattern)
        )

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    query = query.order_by(Quotation.created_at.desc(), Quotation.id.desc())
    query = query.offset((page - 1) * page_size).limit(page_size)
    result = await db.execute(query)
    return list(result.scalars().all()), total
