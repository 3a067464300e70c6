"""
Dossier orchestration: lazy provisioning from invoice sending, the staff and
client collaboration actions, and the gated client signature.

Provisioning is idempotent under concurrent calls: unique constraints on
client_users(organization_id, email) and dossiers(quotation_id) plus
INSERT ... ON CONFLICT DO NOTHING followed by a re-select.
"""

import logging
import secrets
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from quotedesk.config import settings
from quotedesk.exceptions import NotFoundError, ValidationError
from quotedesk.models.client_user import ClientUser
from quotedesk.models.dossier import Dossier, DossierEntry, DossierMessage, DossierSignature
from quotedesk.models.quotation import Quotation, generate_token
from quotedesk.security.passwords import get_password_hash
from quotedesk.security.rbac import RequestContext, can_see_assigned
from quotedesk.services.dossier_workflow import DossierEvent, DossierStatus, apply_dossier_event
from quotedesk.services.email_service import EmailService
from quotedesk.services.email_templates import dossier_message_email, portal_url
from quotedesk.services.notification_service import notify
from quotedesk.services.organization_service import get_organization
from quotedesk.database import utcnow

logger = logging.getLogger(__name__)


def _insert(db: AsyncSession):
    """Dialect specific insert() that supports on_conflict_do_nothing."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise RuntimeError(f"Unsupported database dialect: {dialect}")
    return insert


# Provisioning


async def ensure_client_user(
    db: AsyncSession, organization, quotation: Quotation
) -> Tuple[ClientUser, Optional[str]]:
    """
    Get or create the portal account for the quotation's client.

    Returns:
        (client_user, password) where password is only set when the account
        was created by this call, so credentials are mailed exactly once.
    """
    email = quotation.client_email.strip().lower()
    lookup = select(ClientUser).where(
        ClientUser.organization_id == organization.id,
        ClientUser.email == email,
    )

    existing = (await db.execute(lookup)).scalar_one_or_none()
    if existing is not None:
        return existing, None

    password = secrets.token_urlsafe(9)
    insert = _insert(db)
    stmt = (
        insert(ClientUser)
        .values(
            organization_id=organization.id,
            quotation_id=quotation.id,
            email=email,
            hashed_password=get_password_hash(password),
            name=quotation.client_name,
            phone=quotation.client_phone,
            company=quotation.client_company,
            login_token=generate_token(),
            created_at=utcnow(),
        )
        .on_conflict_do_nothing(index_elements=["organization_id", "email"])
        .returning(ClientUser.id)
    )
    inserted_id = (await db.execute(stmt)).scalar_one_or_none()
    client_user = (await db.execute(lookup)).scalar_one()

    if inserted_id is None:
        # lost the race to a concurrent send
        return client_user, None

    logger.info(
        "Client portal account created",
        extra={"organization_id": str(organization.id), "client_user_id": client_user.id},
    )
    return client_user, password


async def ensure_dossier(db: AsyncSession, quotation: Quotation, client_user: ClientUser) -> Dossier:
    """Get or create the single dossier of a quotation."""
    lookup = select(Dossier).where(Dossier.quotation_id == quotation.id)
    existing = (await db.execute(lookup)).scalar_one_or_none()
    if existing is not None:
        return existing

    title = quotation.client_company or quotation.client_name
    if quotation.invoice_number:
        title = f"{title} - {quotation.invoice_number}"

    insert = _insert(db)
    stmt = (
        insert(Dossier)
        .values(
            organization_id=quotation.organization_id,
            quotation_id=quotation.id,
            client_user_id=client_user.id,
            title=title,
            status=DossierStatus.OPEN.value,
            assigned_employee_id=quotation.assigned_employee_id,
            created_at=utcnow(),
            updated_at=utcnow(),
        )
        .on_conflict_do_nothing(index_elements=["quotation_id"])
    )
    await db.execute(stmt)
    dossier = (await db.execute(lookup)).scalar_one()
    logger.info("Dossier ready", extra={"dossier_id": dossier.id, "quotation_id": quotation.id})
    return dossier


# Lookups


async def get_dossier(db: AsyncSession, ctx: RequestContext, dossier_id: int) -> Dossier:
    """Organization-scoped lookup. Foreign and unassigned (for employees) dossiers are NotFound."""
    result = await db.execute(
        select(Dossier).where(Dossier.id == dossier_id, Dossier.organization_id == ctx.organization_id)
    )
    dossier = result.scalar_one_or_none()
    if dossier is None or not can_see_assigned(ctx, dossier.assigned_employee_id):
        raise NotFoundError("Dossier", dossier_id)
    return dossier


async def latest_dossier_for_client(db: AsyncSession, client_user: ClientUser) -> Dossier:
    result = await db.execute(
        select(Dossier)
        .where(Dossier.client_user_id == client_user.id)
        .order_by(Dossier.id.desc())
        .limit(1)
    )
    dossier = result.scalar_one_or_none()
    if dossier is None:
        raise NotFoundError("Dossier")
    return dossier


async def list_entries(db: AsyncSession, dossier_id: int) -> List[DossierEntry]:
    result = await db.execute(
        select(DossierEntry).where(DossierEntry.dossier_id == dossier_id).order_by(DossierEntry.id)
    )
    return list(result.scalars().all())


async def list_messages(db: AsyncSession, dossier_id: int) -> List[DossierMessage]:
    result = await db.execute(
        select(DossierMessage).where(DossierMessage.dossier_id == dossier_id).order_by(DossierMessage.id)
    )
    return list(result.scalars().all())


async def get_signature(db: AsyncSession, dossier_id: int) -> Optional[DossierSignature]:
    result = await db.execute(select(DossierSignature).where(DossierSignature.dossier_id == dossier_id))
    return result.scalar_one_or_none()


async def unread_counts(db: AsyncSession, dossier_ids: Iterable[int], sender_type: str) -> Dict[int, int]:
    """Unread messages per dossier, sent by ``sender_type``."""
    dossier_ids = list(dossier_ids)
    if not dossier_ids:
        return {}
    result = await db.execute(
        select(DossierMessage.dossier_id, func.count(DossierMessage.id))
        .where(
            DossierMessage.dossier_id.in_(dossier_ids),
            DossierMessage.sender_type == sender_type,
            DossierMessage.is_read.is_(False),
        )
        .group_by(DossierMessage.dossier_id)
    )
    return {dossier_id: count for dossier_id, count in result.all()}


# Workflow


async def complete_dossier(db: AsyncSession, dossier: Dossier) -> Dossier:
    dossier.status = apply_dossier_event(dossier.status, DossierEvent.COMPLETE).value
    await db.commit()
    logger.info("Dossier completed", extra={"dossier_id": dossier.id})
    return dossier


async def sign_dossier(
    db: AsyncSession,
    dossier: Dossier,
    client_user: ClientUser,
    signature: str,
    rating: Optional[int] = None,
    feedback: Optional[str] = None,
) -> DossierSignature:
    """Client sign-off. Only a completed dossier can be signed, and only once."""
    target = apply_dossier_event(dossier.status, DossierEvent.SIGN)

    if not signature or not signature.strip():
        raise ValidationError("Signature is required")
    if rating is not None and not 1 <= rating <= 5:
        raise ValidationError("Rating must be between 1 and 5")

    record = DossierSignature(
        dossier_id=dossier.id,
        signature=signature,
        rating=rating,
        feedback=feedback or None,
        signed_at=utcnow(),
    )
    db.add(record)
    dossier.status = target.value

    stars = f" ({rating}/5 sterren)" if rating else ""
    await notify(
        db,
        dossier.organization_id,
        "dossier_signed",
        "Dossier ondertekend",
        f'{client_user.name} heeft dossier "{dossier.title}" ondertekend{stars}',
        related_id=dossier.id,
    )
    await db.commit()
    logger.info("Dossier signed", extra={"dossier_id": dossier.id, "rating": rating})
    return record


async def mark_messages_read(db: AsyncSession, dossier_id: int, sender_type: str) -> None:
    """Mark messages sent by ``sender_type`` as read; the other direction is untouched."""
    await db.execute(
        update(DossierMessage)
        .where(
            DossierMessage.dossier_id == dossier_id,
            DossierMessage.sender_type == sender_type,
            DossierMessage.is_read.is_(False),
        )
        .values(is_read=True)
    )
    await db.commit()


async def add_entry(
    db: AsyncSession,
    dossier: Dossier,
    created_by: str,
    type: str = "note",
    content: Optional[str] = None,
    file_path: Optional[str] = None,
    caption: Optional[str] = None,
) -> DossierEntry:
    if type == "note" and not (content and content.strip()):
        raise ValidationError("A note needs content")
    if type in ("photo", "file") and not file_path:
        raise ValidationError(f"A {type} entry needs a file_path")

    entry = DossierEntry(
        dossier_id=dossier.id,
        type=type,
        content=content,
        file_path=file_path,
        caption=caption,
        created_by=created_by,
        created_at=utcnow(),
    )
    db.add(entry)
    await db.commit()
    return entry


async def get_entry(db: AsyncSession, dossier: Dossier, entry_id: int) -> DossierEntry:
    result = await db.execute(
        select(DossierEntry).where(DossierEntry.id == entry_id, DossierEntry.dossier_id == dossier.id)
    )
    entry = result.scalar_one_or_none()
    if entry is None:
        raise NotFoundError("Dossier entry", entry_id)
    return entry


async def post_client_message(
    db: AsyncSession,
    dossier: Dossier,
    client_user: ClientUser,
    message: str,
    file_path: Optional[str],
    email_service: EmailService,
) -> DossierMessage:
    """Client writes to the organization: notification plus a mail to the org address."""
    record = DossierMessage(
        dossier_id=dossier.id,
        sender_type="client",
        sender_name=client_user.name,
        message=message,
        file_path=file_path,
        is_read=False,
        created_at=utcnow(),
    )
    db.add(record)

    if file_path:
        db.add(DossierEntry(
            dossier_id=dossier.id,
            type="photo",
            content=message,
            file_path=file_path,
            caption=message,
            created_by="client",
            created_at=utcnow(),
        ))

    await notify(
        db,
        dossier.organization_id,
        "new_message",
        "Nieuw bericht",
        f'{client_user.name} heeft een bericht gestuurd in dossier "{dossier.title}"',
        related_id=dossier.id,
    )
    await db.commit()

    organization = await get_organization(db, dossier.organization_id)
    if organization.email:
        link = f"{settings.FRONTEND_URL.rstrip('/')}/dossiers/{dossier.id}"
        content = dossier_message_email(organization, client_user.name, message, link)
        result = await email_service.send_email(
            organization.email, content.subject, content.body, html_body=content.html,
            sender_name=organization.name,
        )
        if not result.get("success"):
            logger.warning("Dossier message mail to organization failed", extra={"dossier_id": dossier.id})
    return record


async def post_staff_message(
    db: AsyncSession,
    ctx: RequestContext,
    dossier: Dossier,
    message: str,
    file_path: Optional[str],
    email_service: EmailService,
) -> DossierMessage:
    """Staff writes to the client: mail with a portal link."""
    organization = await get_organization(db, dossier.organization_id)
    record = DossierMessage(
        dossier_id=dossier.id,
        sender_type="tenant",
        sender_name=organization.name,
        message=message,
        file_path=file_path,
        is_read=False,
        created_at=utcnow(),
    )
    db.add(record)
    await db.commit()

    client_user = await db.get(ClientUser, dossier.client_user_id) if dossier.client_user_id else None
    if client_user is not None:
        content = dossier_message_email(
            organization, organization.name, message, portal_url(client_user.login_token)
        )
        result = await email_service.send_email(
            client_user.email, content.subject, content.body, html_body=content.html,
            reply_to=organization.email, sender_name=organization.name,
        )
        if not result.get("success"):
            logger.warning("Dossier message mail to client failed", extra={"dossier_id": dossier.id})

    logger.info("Staff message posted", extra={"dossier_id": dossier.id, "user_id": ctx.user_id})
    return record


async def delete_dossier(db: AsyncSession, dossier: Dossier) -> None:
    await db.execute(delete(DossierSignature).where(DossierSignature.dossier_id == dossier.id))
    await db.execute(delete(DossierMessage).where(DossierMessage.dossier_id == dossier.id))
    await db.execute(delete(DossierEntry).where(DossierEntry.dossier_id == dossier.id))
    await db.delete(dossier)
    await db.commit()
    logger.info("Dossier deleted", extra={"dossier_id": dossier.id})
