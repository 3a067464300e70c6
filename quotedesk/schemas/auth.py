from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional, Literal

from quotedesk.schemas.types import UUIDStr


RoleType = Literal["owner", "medewerker"]


class TokenData(BaseModel):
    """Data encoded in JWT token."""

    user_id: Optional[int] = None
    email: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RegisterRequest(BaseModel):
    """Sign-up: creates the organization and its owner account."""

    organization_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: Optional[str] = Field(None, max_length=200)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    id: int
    organization_id: UUIDStr
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: RoleType
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class AuthMeResponse(BaseModel):
    user: UserResponse
