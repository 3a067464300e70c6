"""Organization (tenant) model."""

import uuid
from sqlalchemy import Column, String, Integer, Numeric, DateTime, Text, JSON
from sqlalchemy.dialects.postgresql import UUID

from quotedesk.database import Base, utcnow

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def default_opening_hours() -> dict:
    """Weekdays 08:00-17:00, weekend closed."""
    hours = {}
    for day in WEEKDAYS:
        hours[day] = {"open": "08:00", "close": "17:00", "enabled": day not in ("saturday", "sunday")}
    return hours


class Organization(Base):
    """A tenant: owns its catalog, quotations, calendar and staff."""

    __tablename__ = "organizations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)

    # Contact / company profile (printed on quotes and invoices)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    website = Column(String(255), nullable=True)
    vat_number = Column(String(50), nullable=True)
    kvk_number = Column(String(50), nullable=True)
    iban = Column(String(50), nullable=True)
    currency = Column(String(3), nullable=False, default="EUR")
    primary_color = Column(String(20), nullable=True)
    quote_footer = Column(Text, nullable=True)
    terms_conditions = Column(Text, nullable=True)

    # Invoice numbering: {invoice_prefix}-{invoice_counter}, counter only ever
    # moves through allocate_invoice_number()
    invoice_prefix = Column(String(20), nullable=False, default="INV")
    invoice_counter = Column(Integer, nullable=False, default=1000)

    default_vat_rate = Column(Numeric(5, 2), nullable=False, default=21)
    opening_hours = Column(JSON, nullable=False, default=default_opening_hours)
    max_employees = Column(Integer, nullable=False, default=3)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Organization {self.slug}>"
