"""
Employee (medewerker) management. Owner only.

The organization's max_employees caps the number of employee accounts; the
owner account does not count.
"""

import logging
import secrets
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import func, select, update

from quotedesk.api.deps import DbSession, require_permission
from quotedesk.exceptions import ConflictError, NotFoundError, QuotaExceededError, ValidationError
from quotedesk.models.calendar_event import CalendarEvent
from quotedesk.models.dossier import Dossier
from quotedesk.models.quotation import Quotation
from quotedesk.models.user import User
from quotedesk.schemas.auth import UserResponse
from quotedesk.schemas.employee import EmployeeCreate, EmployeeUpdate
from quotedesk.security.passwords import get_password_hash
from quotedesk.security.rbac import Permission, RequestContext, Role
from quotedesk.services.email_service import EmailService, get_email_service
from quotedesk.services.email_templates import employee_invite_email
from quotedesk.services.organization_service import get_organization

logger = logging.getLogger(__name__)

router = APIRouter()

EmployeeAdmin = require_permission(Permission.MANAGE_EMPLOYEES)


async def _get_employee(db, ctx: RequestContext, user_id: int) -> User:
    result = await db.execute(
        select(User).where(
            User.id == user_id,
            User.organization_id == ctx.organization_id,
            User.role == Role.EMPLOYEE.value,
        )
    )
    employee = result.scalar_one_or_none()
    if employee is None:
        raise NotFoundError("Employee", user_id)
    return employee


@router.get("", response_model=List[UserResponse])
async def list_employees(db: DbSession, ctx: RequestContext = Depends(EmployeeAdmin)):
    result = await db.execute(
        select(User)
        .where(User.organization_id == ctx.organization_id, User.role == Role.EMPLOYEE.value)
        .order_by(User.id)
    )
    return result.scalars().all()


@router.post("", response_model=UserResponse, status_code=201)
async def create_employee(
    data: EmployeeCreate,
    db: DbSession,
    ctx: RequestContext = Depends(EmployeeAdmin),
    email_service: EmailService = Depends(get_email_service),
):
    """Create an employee account and mail them their login details."""
    organization = await get_organization(db, ctx.organization_id)
    count = (
        await db.execute(
            select(func.count(User.id)).where(
                User.organization_id == ctx.organization_id,
                User.role == Role.EMPLOYEE.value,
            )
        )
    ).scalar() or 0
    if count >= organization.max_employees:
        raise QuotaExceededError(f"Employee limit of {organization.max_employees} reached")

    email = data.email.lower()
    existing = await db.execute(select(User.id).where(User.email == email))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Email already registered")

    # a generated password is only ever shown in the invite mail
    generated = None if data.password else secrets.token_urlsafe(12)
    employee = User(
        organization_id=ctx.organization_id,
        email=email,
        hashed_password=get_password_hash(data.password or generated),
        full_name=data.full_name,
        phone=data.phone,
        role=Role.EMPLOYEE.value,
    )
    db.add(employee)
    await db.commit()
    logger.info("Employee created", extra={"user_id": employee.id, "created_by": ctx.user_id})

    invite = employee_invite_email(organization, employee, generated)
    result = await email_service.send_email(
        employee.email, invite.subject, invite.body, html_body=invite.html,
        reply_to=organization.email, sender_name=organization.name,
    )
    if not result.get("success"):
        logger.warning("Employee invite not delivered", extra={"user_id": employee.id})
    return employee


@router.patch("/{user_id}", response_model=UserResponse)
async def update_employee(
    user_id: int, data: EmployeeUpdate, db: DbSession, ctx: RequestContext = Depends(EmployeeAdmin)
):
    employee = await _get_employee(db, ctx, user_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None and field in ("full_name", "is_active"):
            raise ValidationError(f"{field} cannot be empty")
        setattr(employee, field, value)
    await db.commit()
    return employee


@router.delete("/{user_id}", status_code=204)
async def delete_employee(user_id: int, db: DbSession, ctx: RequestContext = Depends(EmployeeAdmin)):
    """Remove an employee; their assigned work falls back to the owner."""
    employee = await _get_employee(db, ctx, user_id)
    await db.execute(
        update(Quotation).where(Quotation.assigned_employee_id == employee.id).values(assigned_employee_id=None)
    )
    await db.execute(
        update(Dossier).where(Dossier.assigned_employee_id == employee.id).values(assigned_employee_id=None)
    )
    await db.execute(
        update(CalendarEvent).where(CalendarEvent.employee_id == employee.id).values(employee_id=None)
    )
    await db.delete(employee)
    await db.commit()
    logger.info("Employee deleted", extra={"user_id": user_id, "deleted_by": ctx.user_id})
