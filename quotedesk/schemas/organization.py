import re
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator

from quotedesk.models.organization import WEEKDAYS
from quotedesk.schemas.types import UUIDStr

HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class DayHours(BaseModel):
    open: str = "08:00"
    close: str = "17:00"
    enabled: bool = True

    @field_validator("open", "close")
    @classmethod
    def check_format(cls, v: str) -> str:
        if not HHMM.match(v):
            raise ValueError("Time must be HH:MM")
        return v


class OrganizationPublic(BaseModel):
    """Profile shown on public pages (quote, lead form, portal)."""

    id: UUIDStr
    name: str
    slug: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    primary_color: Optional[str] = None
    currency: str = "EUR"
    quote_footer: Optional[str] = None
    terms_conditions: Optional[str] = None

    class Config:
        from_attributes = True


class OrganizationResponse(OrganizationPublic):
    vat_number: Optional[str] = None
    kvk_number: Optional[str] = None
    iban: Optional[str] = None
    invoice_prefix: str
    invoice_counter: int
    default_vat_rate: Decimal
    opening_hours: Dict[str, DayHours]
    max_employees: int
    created_at: datetime


class OrganizationUpdate(BaseModel):
    """Owner-editable settings. The invoice counter is not editable."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    vat_number: Optional[str] = None
    kvk_number: Optional[str] = None
    iban: Optional[str] = None
    primary_color: Optional[str] = Field(None, max_length=20)
    quote_footer: Optional[str] = None
    terms_conditions: Optional[str] = None
    invoice_prefix: Optional[str] = Field(None, min_length=1, max_length=20, pattern=r"^[A-Za-z0-9_-]+$")
    default_vat_rate: Optional[Decimal] = Field(None, ge=0, le=100, decimal_places=2)
    opening_hours: Optional[Dict[str, DayHours]] = None

    @field_validator("opening_hours")
    @classmethod
    def check_weekdays(cls, v):
        if v is None:
            return v
        unknown = set(v) - set(WEEKDAYS)
        if unknown:
            raise ValueError(f"Unknown weekday(s): {', '.join(sorted(unknown))}")
        return v
