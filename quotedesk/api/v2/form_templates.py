"""Lead-form templates. Reads for all staff, writes for owners.

Publishing a template unpublishes the organization's other templates so the
public lead form always shows exactly one.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import select, update

from quotedesk.api.deps import Context, DbSession, require_permission
from quotedesk.exceptions import NotFoundError
from quotedesk.models.form_template import FormTemplate
from quotedesk.schemas.form_template import FormTemplateCreate, FormTemplateResponse, FormTemplateUpdate
from quotedesk.security.rbac import Permission, RequestContext

router = APIRouter()

FormAdmin = require_permission(Permission.MANAGE_FORMS)


async def _get_template(db, ctx: RequestContext, template_id: int) -> FormTemplate:
    result = await db.execute(
        select(FormTemplate).where(
            FormTemplate.id == template_id,
            FormTemplate.organization_id == ctx.organization_id,
        )
    )
    template = result.scalar_one_or_none()
    if template is None:
        raise NotFoundError("Form template", template_id)
    return template


async def _unpublish_others(db, ctx: RequestContext, template_id) -> None:
    query = update(FormTemplate).where(FormTemplate.organization_id == ctx.organization_id)
    if template_id is not None:
        query = query.where(FormTemplate.id != template_id)
    await db.execute(query.values(is_published=False))


@router.get("", response_model=List[FormTemplateResponse])
async def list_templates(ctx: Context, db: DbSession):
    result = await db.execute(
        select(FormTemplate).where(FormTemplate.organization_id == ctx.organization_id).order_by(FormTemplate.id)
    )
    return result.scalars().all()


@router.post("", response_model=FormTemplateResponse, status_code=201)
async def create_template(data: FormTemplateCreate, db: DbSession, ctx: RequestContext = Depends(FormAdmin)):
    if data.is_published:
        await _unpublish_others(db, ctx, None)
    template = FormTemplate(organization_id=ctx.organization_id, **data.model_dump())
    db.add(template)
    await db.commit()
    return template


@router.get("/{template_id}", response_model=FormTemplateResponse)
async def get_template(template_id: int, ctx: Context, db: DbSession):
    return await _get_template(db, ctx, template_id)


@router.patch("/{template_id}", response_model=FormTemplateResponse)
async def update_template(
    template_id: int, data: FormTemplateUpdate, db: DbSession, ctx: RequestContext = Depends(FormAdmin)
):
    template = await _get_template(db, ctx, template_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("is_published"):
        await _unpublish_others(db, ctx, template.id)
    for field, value in changes.items():
        if value is None and field in ("title", "submit_text", "fields", "is_published"):
            continue
        setattr(template, field, value)
    await db.commit()
    return template


@router.delete("/{template_id}", status_code=204)
async def delete_template(template_id: int, db: DbSession, ctx: RequestContext = Depends(FormAdmin)):
    template = await _get_template(db, ctx, template_id)
    await db.delete(template)
    await db.commit()
