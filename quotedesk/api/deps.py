"""
FastAPI Dependencies

Database sessions, staff authentication (JWT bearer or session cookie),
the explicit RequestContext and client-portal token lookup.

SECURITY NOTES:
- JWT payloads and tokens are never logged
- Bearer token is the primary auth method, the session cookie is a fallback
"""

from typing import Annotated
from fastapi import Depends, Cookie
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from jose import JWTError, jwt
from datetime import datetime, timedelta
import logging

from quotedesk.database import get_db
from quotedesk.config import settings
from quotedesk.exceptions import ForbiddenError, NotFoundError, UnauthorizedError
from quotedesk.models.client_user import ClientUser
from quotedesk.models.user import User
from quotedesk.schemas.auth import TokenData
from quotedesk.security.rbac import Permission, RequestContext, ensure_permission

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


async def get_current_user(
    db: Annotated[AsyncSession, Depends(get_db)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)] = None,
    session_token: Annotated[str | None, Cookie(alias="session")] = None,
) -> User:
    """Resolve the staff user from a bearer token or the session cookie."""
    if credentials:
        token, auth_method = credentials.credentials, "bearer"
    elif session_token:
        token, auth_method = session_token, "cookie"
    else:
        raise UnauthorizedError("Could not validate credentials")

    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        sub = payload.get("sub")
        if sub is None:
            raise UnauthorizedError("Could not validate credentials")
        token_data = TokenData(user_id=int(sub), email=payload.get("email"))
    except JWTError:
        logger.warning("JWT validation failed", extra={"auth_method": auth_method})
        raise UnauthorizedError("Could not validate credentials")
    except ValueError:
        logger.warning("Invalid token format", extra={"auth_method": auth_method})
        raise UnauthorizedError("Could not validate credentials")

    result = await db.execute(select(User).where(User.id == token_data.user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise UnauthorizedError("Could not validate credentials")
    if not user.is_active:
        raise ForbiddenError("User account is disabled")

    logger.debug("User authenticated", extra={"user_id": user.id, "auth_method": auth_method})
    return user


def get_request_context(current_user: Annotated[User, Depends(get_current_user)]) -> RequestContext:
    return RequestContext.from_user(current_user)


def require_permission(permission: Permission):
    """
    Dependency factory returning the RequestContext when the role allows ``permission``.

    Usage:
        @router.post("")
        async def create_item(ctx: Annotated[RequestContext, Depends(require_permission(Permission.MANAGE_CATALOG))]):
            ...
    """

    def checker(ctx: Annotated[RequestContext, Depends(get_request_context)]) -> RequestContext:
        ensure_permission(ctx, permission)
        return ctx

    return checker


async def get_client_user(token: str, db: Annotated[AsyncSession, Depends(get_db)]) -> ClientUser:
    """Client-portal identity addressed by its unguessable login token."""
    result = await db.execute(select(ClientUser).where(ClientUser.login_token == token))
    client_user = result.scalar_one_or_none()
    if client_user is None:
        raise NotFoundError("Client portal")
    return client_user


# Type aliases for dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[User, Depends(get_current_user)]
Context = Annotated[RequestContext, Depends(get_request_context)]
OwnerContext = Annotated[RequestContext, Depends(require_permission(Permission.MANAGE_SETTINGS))]
CatalogContext = Annotated[RequestContext, Depends(require_permission(Permission.MANAGE_CATALOG))]
CurrentClient = Annotated[ClientUser, Depends(get_client_user)]
