import logging
from datetime import timedelta

from fastapi import APIRouter, Response
from sqlalchemy import select

from quotedesk.api.deps import DbSession, CurrentUser, create_access_token
from quotedesk.config import settings
from quotedesk.exceptions import ConflictError, ForbiddenError, UnauthorizedError
from quotedesk.models.organization import Organization
from quotedesk.models.user import User
from quotedesk.schemas.auth import AuthMeResponse, LoginRequest, RegisterRequest, Token, UserResponse
from quotedesk.security.passwords import get_password_hash, verify_password
from quotedesk.security.rbac import Role
from quotedesk.services.organization_service import unique_slug

logger = logging.getLogger(__name__)

router = APIRouter()


def _issue_token(response: Response, user: User) -> Token:
    access_token = create_access_token(
        data={"sub": str(user.id), "email": user.email},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    # Set session cookie
    response.set_cookie(
        key="session",
        value=access_token,
        httponly=True,
        secure=settings.ENVIRONMENT != "development",
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return Token(access_token=access_token, token_type="bearer")


@router.post("/login", response_model=Token)
async def login(
    response: Response,
    login_data: LoginRequest,
    db: DbSession,
):
    """Authenticate staff and return JWT token."""
    result = await db.execute(select(User).where(User.email == login_data.email.lower()))
    user = result.scalar_one_or_none()

    if not user or not verify_password(login_data.password, user.hashed_password):
        raise UnauthorizedError("Incorrect email or password")
    if not user.is_active:
        raise ForbiddenError("User account is disabled")

    logger.info("User logged in", extra={"user_id": user.id})
    return _issue_token(response, user)


@router.post("/register", response_model=Token, status_code=201)
async def register(
    response: Response,
    data: RegisterRequest,
    db: DbSession,
):
    """Sign up: creates the organization and its owner account."""
    email = data.email.lower()
    result = await db.execute(select(User.id).where(User.email == email))
    if result.scalar_one_or_none() is not None:
        raise ConflictError("Email already registered")

    organization = Organization(
        name=data.organization_name,
        slug=await unique_slug(db, data.organization_name),
        email=email,
    )
    db.add(organization)
    await db.flush()

    user = User(
        organization_id=organization.id,
        email=email,
        hashed_password=get_password_hash(data.password),
        full_name=data.full_name,
        role=Role.OWNER.value,
    )
    db.add(user)
    await db.commit()

    logger.info(
        "Organization registered",
        extra={"organization_id": str(organization.id), "user_id": user.id},
    )
    return _issue_token(response, user)


@router.post("/logout")
async def logout(response: Response):
    """Logout user by clearing session cookie."""
    response.delete_cookie(key="session")
    return {"message": "Successfully logged out"}


@router.get("/me", response_model=AuthMeResponse)
async def get_current_user_info(current_user: CurrentUser):
    """Get current authenticated user information."""
    return AuthMeResponse(user=UserResponse.model_validate(current_user))
