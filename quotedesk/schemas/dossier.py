from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from quotedesk.schemas.organization import OrganizationPublic
from quotedesk.schemas.quotation import PublicQuotation


class DossierResponse(BaseModel):
    id: int
    quotation_id: int
    client_user_id: Optional[int] = None
    title: str
    status: str
    assigned_employee_id: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DossierListItem(DossierResponse):
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    unread_messages: int = 0
    has_signature: bool = False


class DossierEntryCreate(BaseModel):
    type: Literal["photo", "file", "note"] = "note"
    content: Optional[str] = None
    file_path: Optional[str] = Field(None, max_length=500)
    caption: Optional[str] = None


class DossierEntryUpdate(BaseModel):
    caption: Optional[str] = None


class DossierEntryResponse(BaseModel):
    id: int
    dossier_id: int
    type: str
    content: Optional[str] = None
    file_path: Optional[str] = None
    caption: Optional[str] = None
    created_by: str
    created_at: datetime

    class Config:
        from_attributes = True


class DossierMessageCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    message: str = Field(..., min_length=1)
    file_path: Optional[str] = Field(None, max_length=500)


class DossierMessageResponse(BaseModel):
    id: int
    dossier_id: int
    sender_type: str
    sender_name: Optional[str] = None
    message: str
    file_path: Optional[str] = None
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class SignDossierRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    signature: str = Field(..., min_length=1)
    rating: Optional[int] = Field(None, ge=1, le=5)
    feedback: Optional[str] = Field(None, max_length=5000)


class DossierSignatureResponse(BaseModel):
    id: int
    dossier_id: int
    signature: str
    rating: Optional[int] = None
    feedback: Optional[str] = None
    signed_at: datetime

    class Config:
        from_attributes = True


class DossierDetail(BaseModel):
    dossier: DossierListItem
    quotation: Optional[PublicQuotation] = None
    entries: List[DossierEntryResponse]
    messages: List[DossierMessageResponse]
    signature: Optional[DossierSignatureResponse] = None


# Client portal


class ClientLoginRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(..., min_length=1)


class ClientSession(BaseModel):
    token: str
    name: str
    email: str


class ClientInfo(BaseModel):
    name: str
    email: str


class ClientDossierResponse(BaseModel):
    dossier: DossierResponse
    organization: OrganizationPublic
    quotation: Optional[PublicQuotation] = None
    client: ClientInfo
    signature: Optional[DossierSignatureResponse] = None
