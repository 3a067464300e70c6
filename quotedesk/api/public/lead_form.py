import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy import select

from quotedesk.api.deps import DbSession
from quotedesk.api.public.deps import PublicOrganization, client_ip, user_agent
from quotedesk.models.form_template import FormTemplate
from quotedesk.models.price_matrix import PriceMatrixItem
from quotedesk.schemas.form_template import FormTemplateResponse
from quotedesk.schemas.lead_form import LeadFormGroup, LeadFormResponse, LeadSubmitRequest, LeadSubmitResponse
from quotedesk.schemas.organization import OrganizationPublic
from quotedesk.schemas.price_matrix import PriceMatrixItemResponse
from quotedesk.services import quotation_service
from quotedesk.services.catalog import group_by_parent
from quotedesk.services.email_service import EmailService, get_email_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/lead-form", tags=["Public - Lead form"])


async def _published_template(db, organization_id):
    result = await db.execute(
        select(FormTemplate)
        .where(FormTemplate.organization_id == organization_id, FormTemplate.is_published.is_(True))
        .order_by(FormTemplate.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


@router.get("/{org}", response_model=LeadFormResponse)
async def get_lead_form(organization: PublicOrganization, db: DbSession):
    """Everything the embeddable form needs: branding, copy and the grouped catalog."""
    result = await db.execute(
        select(PriceMatrixItem)
        .where(PriceMatrixItem.organization_id == organization.id)
        .order_by(PriceMatrixItem.sort_order, PriceMatrixItem.id)
    )
    items = list(result.scalars().all())
    template = await _published_template(db, organization.id)

    return LeadFormResponse(
        organization=OrganizationPublic.model_validate(organization),
        template=FormTemplateResponse.model_validate(template) if template else None,
        price_items=[PriceMatrixItemResponse.model_validate(item) for item in items],
        groups=[
            LeadFormGroup(
                item=PriceMatrixItemResponse.model_validate(group["item"]),
                children=[PriceMatrixItemResponse.model_validate(child) for child in group["children"]],
            )
            for group in group_by_parent(items)
        ],
    )


@router.post("/{org}/submit", response_model=LeadSubmitResponse, status_code=201)
async def submit_lead(
    organization: PublicOrganization,
    data: LeadSubmitRequest,
    request: Request,
    db: DbSession,
    email_service: EmailService = Depends(get_email_service),
):
    quotation = await quotation_service.submit_lead(
        db, organization, data, email_service, ip=client_ip(request), user_agent=user_agent(request)
    )
    template = await _published_template(db, organization.id)
    return LeadSubmitResponse(
        success=True,
        token=quotation.token,
        status=quotation.status,
        success_message=template.success_message if template else None,
    )
