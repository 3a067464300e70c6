"""
Role-Based Access Control (RBAC) Module

Two staff roles exist per organization:
    owner       - full access, manages catalog, settings, staff and assignment
    medewerker  - employee, sees only work assigned to them
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Set
import logging

from sqlalchemy import or_

from quotedesk.exceptions import ForbiddenError

logger = logging.getLogger(__name__)


class Role(str, Enum):
    OWNER = "owner"
    EMPLOYEE = "medewerker"


class Permission(str, Enum):
    MANAGE_CATALOG = "manage_catalog"
    MANAGE_SETTINGS = "manage_settings"
    MANAGE_EMPLOYEES = "manage_employees"
    MANAGE_FORMS = "manage_forms"
    ASSIGN_WORK = "assign_work"
    VIEW_ALL_WORK = "view_all_work"
    MANAGE_CALENDAR = "manage_calendar"
    MANAGE_QUOTATIONS = "manage_quotations"
    MANAGE_DOSSIERS = "manage_dossiers"


ROLE_PERMISSIONS: dict[Role, Set[Permission]] = {
    Role.OWNER: set(Permission),
    Role.EMPLOYEE: {
        Permission.MANAGE_CALENDAR,
        Permission.MANAGE_QUOTATIONS,
        Permission.MANAGE_DOSSIERS,
    },
}


@dataclass(frozen=True)
class RequestContext:
    """Authenticated principal, passed explicitly into every service call."""

    user_id: int
    organization_id: object
    role: Role
    email: str = ""
    full_name: Optional[str] = None

    @classmethod
    def from_user(cls, user) -> "RequestContext":
        try:
            role = Role(user.role)
        except ValueError:
            logger.warning(f"Unknown role {user.role!r} for user {user.id}, treating as employee")
            role = Role.EMPLOYEE
        return cls(
            user_id=user.id,
            organization_id=user.organization_id,
            role=role,
            email=user.email,
            full_name=user.full_name,
        )

    @property
    def is_owner(self) -> bool:
        return self.role == Role.OWNER

    @property
    def display_name(self) -> str:
        return self.full_name or self.email


def has_permission(ctx: RequestContext, permission: Permission) -> bool:
    return permission in ROLE_PERMISSIONS.get(ctx.role, set())


def ensure_permission(ctx: RequestContext, permission: Permission) -> None:
    if not has_permission(ctx, permission):
        logger.warning(
            f"Permission denied: user {ctx.user_id} lacks {permission.value}",
            extra={"user_id": ctx.user_id, "permission": permission.value},
        )
        raise ForbiddenError(f"Permission denied: requires {permission.value}")


def can_see_assigned(ctx: RequestContext, assigned_employee_id: Optional[int]) -> bool:
    """Owners see everything; employees only what is assigned to them."""
    return ctx.is_owner or assigned_employee_id == ctx.user_id


def scope_assigned(query, ctx: RequestContext, column):
    """Restrict a select() to rows assigned to the employee."""
    if ctx.is_owner:
        return query
    return query.where(column == ctx.user_id)


def scope_calendar(query, ctx: RequestContext, column):
    """Employees see their own calendar events and unassigned ones."""
    if ctx.is_owner:
        return query
    return query.where(or_(column == ctx.user_id, column.is_(None)))
