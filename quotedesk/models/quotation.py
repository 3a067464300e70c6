"""
Quotation, its line items and its audit trail.

The audit trail is a separate append-only table; the autoincrement primary key
is the ordering guarantee, timestamps are informational only.
"""

import secrets
from sqlalchemy import (
    Column, Integer, String, Boolean, Numeric, Date, Time, DateTime, Text, ForeignKey, JSON, Index
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from quotedesk.database import Base, utcnow


def generate_token() -> str:
    """256 bits of randomness, hex encoded."""
    return secrets.token_hex(32)


class Quotation(Base):
    """One client-facing quote/invoice across its whole lifecycle. Never hard-deleted."""

    __tablename__ = "quotations"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(
        UUID(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token = Column(String(64), unique=True, nullable=False, index=True, default=generate_token)

    # new_lead, quote_sent, viewed, approved, rejected, invoiced, paid
    status = Column(String(20), nullable=False, default="new_lead", index=True)

    # Client
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255), nullable=False)
    client_phone = Column(String(50), nullable=True)
    client_company = Column(String(255), nullable=True)
    client_address = Column(Text, nullable=True)

    # Financials, derived from items via services.pricing.compute_totals
    subtotal = Column(Numeric(10, 2), nullable=False, default=0)
    discount = Column(Numeric(10, 2), nullable=False, default=0)
    vat_rate = Column(Numeric(5, 2), nullable=False, default=21)
    vat_amount = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False, default=0)
    include_vat = Column(Boolean, nullable=False, default=True)

    desired_start_date = Column(Date, nullable=True)
    desired_start_time = Column(Time, nullable=True)
    notes = Column(Text, nullable=True)
    valid_until = Column(Date, nullable=True)

    # Client decision
    signature = Column(Text, nullable=True)
    signed_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    # Invoicing
    invoice_number = Column(String(50), nullable=True, index=True)
    invoice_notes = Column(Text, nullable=True)

    assigned_employee_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    items = relationship(
        "QuoteItem",
        back_populates="quotation",
        cascade="all, delete-orphan",
        order_by="QuoteItem.id",
        lazy="selectin",
    )
    audit_log = relationship(
        "QuotationAuditEntry",
        back_populates="quotation",
        cascade="all",
        order_by="QuotationAuditEntry.id",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_quotations_org_status", "organization_id", "status"),
    )

    def __repr__(self):
        return f"<Quotation id={self.id} status={self.status}>"


class QuoteItem(Base):
    """A quotation line. ``total`` is quantity * unit_price when selected."""

    __tablename__ = "quote_items"

    id = Column(Integer, primary_key=True, index=True)
    quotation_id = Column(Integer, ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False, index=True)
    price_matrix_item_id = Column(Integer, nullable=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    quantity = Column(Numeric(10, 2), nullable=False, default=1)
    unit_price = Column(Numeric(10, 2), nullable=False, default=0)
    unit = Column(String(50), nullable=True)
    is_optional = Column(Boolean, nullable=False, default=False)
    is_selected = Column(Boolean, nullable=False, default=True)
    total = Column(Numeric(10, 2), nullable=False, default=0)

    quotation = relationship("Quotation", back_populates="items")

    def __repr__(self):
        return f"<QuoteItem {self.name} x{self.quantity}>"


class QuotationAuditEntry(Base):
    """Append-only lifecycle record. Rows are never updated or deleted."""

    __tablename__ = "quotation_audit_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    quotation_id = Column(Integer, ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String(50), nullable=False)
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    # ip, user_agent, invoice_number, reason, user_id ...
    context = Column(JSON, nullable=False, default=dict)

    quotation = relationship("Quotation", back_populates="audit_log")

    def __repr__(self):
        return f"<QuotationAuditEntry {self.action} on {self.quotation_id}>"
