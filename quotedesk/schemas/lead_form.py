from datetime import date, time
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from quotedesk.schemas.form_template import FormTemplateResponse
from quotedesk.schemas.organization import OrganizationPublic
from quotedesk.schemas.price_matrix import PriceMatrixItemResponse


class LeadFormGroup(BaseModel):
    item: PriceMatrixItemResponse
    children: List[PriceMatrixItemResponse] = []


class LeadFormResponse(BaseModel):
    organization: OrganizationPublic
    template: Optional[FormTemplateResponse] = None
    price_items: List[PriceMatrixItemResponse]
    groups: List[LeadFormGroup]


class LeadItemSelection(BaseModel):
    model_config = ConfigDict(extra="forbid")

    price_matrix_item_id: int
    quantity: Decimal = Field(Decimal("1"), gt=0, decimal_places=2)


class LeadSubmitRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    client_name: str = Field(..., min_length=1, max_length=255)
    client_email: EmailStr
    client_phone: Optional[str] = Field(None, max_length=50)
    client_company: Optional[str] = Field(None, max_length=255)
    client_address: Optional[str] = None
    notes: Optional[str] = None
    desired_start_date: Optional[date] = None
    desired_start_time: Optional[time] = None
    items: List[LeadItemSelection] = []
    extra_fields: Dict[str, Any] = {}


class LeadSubmitResponse(BaseModel):
    success: bool = True
    token: str
    status: str
    success_message: Optional[str] = None
