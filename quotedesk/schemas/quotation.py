from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from quotedesk.schemas.organization import OrganizationPublic

StatusType = Literal["new_lead", "quote_sent", "viewed", "approved", "rejected", "invoiced", "paid"]


class QuoteItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    quantity: Decimal = Field(Decimal("1"), gt=0, decimal_places=2)
    unit_price: Decimal = Field(..., ge=0, decimal_places=2)
    unit: Optional[str] = Field(None, max_length=50)
    is_optional: bool = False
    is_selected: bool = True
    price_matrix_item_id: Optional[int] = None


class QuoteItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    quantity: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    unit_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    unit: Optional[str] = None
    is_optional: Optional[bool] = None
    is_selected: Optional[bool] = None


class QuoteItemResponse(BaseModel):
    id: int
    quotation_id: int
    price_matrix_item_id: Optional[int] = None
    name: str
    description: Optional[str] = None
    quantity: Decimal
    unit_price: Decimal
    unit: Optional[str] = None
    is_optional: bool
    is_selected: bool
    total: Decimal

    class Config:
        from_attributes = True


class AuditEntryResponse(BaseModel):
    id: int
    action: str
    timestamp: datetime
    context: Dict[str, Any] = {}

    class Config:
        from_attributes = True


class QuotationCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    client_name: str = Field(..., min_length=1, max_length=255)
    client_email: EmailStr
    client_phone: Optional[str] = None
    client_company: Optional[str] = None
    client_address: Optional[str] = None
    discount: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    vat_rate: Optional[Decimal] = Field(None, ge=0, le=100, decimal_places=2)
    include_vat: bool = True
    desired_start_date: Optional[date] = None
    desired_start_time: Optional[time] = None
    notes: Optional[str] = None
    valid_until: Optional[date] = None
    assigned_employee_id: Optional[int] = None
    items: List[QuoteItemCreate] = []
    send: bool = False


class QuotationUpdate(BaseModel):
    """Draft edits. Status and financial totals are never set directly."""

    model_config = ConfigDict(str_strip_whitespace=True)

    client_name: Optional[str] = Field(None, min_length=1, max_length=255)
    client_email: Optional[EmailStr] = None
    client_phone: Optional[str] = None
    client_company: Optional[str] = None
    client_address: Optional[str] = None
    discount: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    vat_rate: Optional[Decimal] = Field(None, ge=0, le=100, decimal_places=2)
    include_vat: Optional[bool] = None
    desired_start_date: Optional[date] = None
    desired_start_time: Optional[time] = None
    notes: Optional[str] = None
    valid_until: Optional[date] = None


class QuotationSummary(BaseModel):
    id: int
    status: str
    client_name: str
    client_email: str
    client_company: Optional[str] = None
    subtotal: Decimal
    discount: Decimal
    vat_rate: Decimal
    vat_amount: Decimal
    total: Decimal
    include_vat: bool
    desired_start_date: Optional[date] = None
    desired_start_time: Optional[time] = None
    invoice_number: Optional[str] = None
    assigned_employee_id: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class QuotationResponse(QuotationSummary):
    token: str
    client_phone: Optional[str] = None
    client_address: Optional[str] = None
    notes: Optional[str] = None
    valid_until: Optional[date] = None
    signature: Optional[str] = None
    signed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    invoice_notes: Optional[str] = None
    items: List[QuoteItemResponse] = []
    audit_log: List[AuditEntryResponse] = []


class QuotationListResponse(BaseModel):
    items: List[QuotationSummary]
    total: int
    page: int
    page_size: int


class InvoiceRequest(BaseModel):
    invoice_notes: Optional[str] = None


class SendResult(BaseModel):
    success: bool
    email_sent: bool


class SendInvoiceResult(SendResult):
    dossier_id: Optional[int] = None


class AssignRequest(BaseModel):
    employee_id: Optional[int] = None


# Public (token-addressed) shapes


class PublicQuoteItem(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    quantity: Decimal
    unit_price: Decimal
    unit: Optional[str] = None
    is_optional: bool
    is_selected: bool
    total: Decimal

    class Config:
        from_attributes = True


class PublicQuotation(BaseModel):
    status: str
    client_name: str
    client_company: Optional[str] = None
    subtotal: Decimal
    discount: Decimal
    vat_rate: Decimal
    vat_amount: Decimal
    total: Decimal
    include_vat: bool
    desired_start_date: Optional[date] = None
    desired_start_time: Optional[time] = None
    notes: Optional[str] = None
    valid_until: Optional[date] = None
    signed_at: Optional[datetime] = None
    invoice_number: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PublicQuoteResponse(BaseModel):
    quotation: PublicQuotation
    items: List[PublicQuoteItem]
    organization: OrganizationPublic


class ItemSelection(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: int
    is_selected: bool


class AcceptQuoteRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    signature: str = Field(..., min_length=1)
    selected_items: List[ItemSelection] = []


class RejectQuoteRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    reason: Optional[str] = Field(None, max_length=2000)
