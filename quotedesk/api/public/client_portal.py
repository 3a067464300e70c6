"""
Client portal.

Clients log in with the email and password mailed on their first invoice, or
follow the auto-login link; both yield the login token that addresses every
other portal endpoint. The portal shows the client's most recent dossier.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import select

from quotedesk.api.deps import CurrentClient, DbSession
from quotedesk.exceptions import UnauthorizedError
from quotedesk.models.client_user import ClientUser
from quotedesk.models.quotation import Quotation
from quotedesk.schemas.dossier import (
    ClientDossierResponse,
    ClientInfo,
    ClientLoginRequest,
    ClientSession,
    DossierEntryResponse,
    DossierMessageCreate,
    DossierMessageResponse,
    DossierResponse,
    DossierSignatureResponse,
    SignDossierRequest,
)
from quotedesk.schemas.organization import OrganizationPublic
from quotedesk.schemas.quotation import PublicQuotation
from quotedesk.security.passwords import verify_password
from quotedesk.services import dossier_service
from quotedesk.services.email_service import EmailService, get_email_service
from quotedesk.services.organization_service import get_organization

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/client", tags=["Public - Client portal"])


def _session(client_user: ClientUser) -> ClientSession:
    return ClientSession(token=client_user.login_token, name=client_user.name, email=client_user.email)


@router.post("/login", response_model=ClientSession)
async def login(data: ClientLoginRequest, db: DbSession):
    """Email + password. The same email may exist at several organizations; the first match wins."""
    result = await db.execute(
        select(ClientUser).where(ClientUser.email == data.email.lower()).order_by(ClientUser.id.desc())
    )
    for client_user in result.scalars().all():
        if verify_password(data.password, client_user.hashed_password):
            logger.info("Client logged in", extra={"client_user_id": client_user.id})
            return _session(client_user)
    raise UnauthorizedError("Incorrect email or password")


@router.get("/auto-login/{token}", response_model=ClientSession)
async def auto_login(client_user: CurrentClient):
    return _session(client_user)


@router.get("/dossier/{token}", response_model=ClientDossierResponse)
async def get_dossier(client_user: CurrentClient, db: DbSession):
    dossier = await dossier_service.latest_dossier_for_client(db, client_user)
    organization = await get_organization(db, dossier.organization_id)
    quotation = await db.get(Quotation, dossier.quotation_id)
    signature = await dossier_service.get_signature(db, dossier.id)

    return ClientDossierResponse(
        dossier=DossierResponse.model_validate(dossier),
        organization=OrganizationPublic.model_validate(organization),
        quotation=PublicQuotation.model_validate(quotation) if quotation else None,
        client=ClientInfo(name=client_user.name, email=client_user.email),
        signature=DossierSignatureResponse.model_validate(signature) if signature else None,
    )


@router.get("/dossier/{token}/entries", response_model=List[DossierEntryResponse])
async def list_entries(client_user: CurrentClient, db: DbSession):
    dossier = await dossier_service.latest_dossier_for_client(db, client_user)
    return await dossier_service.list_entries(db, dossier.id)


@router.get("/dossier/{token}/messages", response_model=List[DossierMessageResponse])
async def list_messages(client_user: CurrentClient, db: DbSession):
    """Messages of the dossier; the organization's messages are marked read."""
    dossier = await dossier_service.latest_dossier_for_client(db, client_user)
    await dossier_service.mark_messages_read(db, dossier.id, sender_type="tenant")
    return await dossier_service.list_messages(db, dossier.id)


@router.post("/dossier/{token}/messages", response_model=DossierMessageResponse, status_code=201)
async def post_message(
    data: DossierMessageCreate,
    client_user: CurrentClient,
    db: DbSession,
    email_service: EmailService = Depends(get_email_service),
):
    dossier = await dossier_service.latest_dossier_for_client(db, client_user)
    return await dossier_service.post_client_message(
        db, dossier, client_user, data.message, data.file_path, email_service
    )


@router.post("/dossier/{token}/sign", response_model=DossierSignatureResponse, status_code=201)
async def sign_dossier(data: SignDossierRequest, client_user: CurrentClient, db: DbSession):
    """Final sign-off; only possible once the organization completed the dossier."""
    dossier = await dossier_service.latest_dossier_for_client(db, client_user)
    return await dossier_service.sign_dossier(
        db, dossier, client_user, data.signature, data.rating, data.feedback
    )
