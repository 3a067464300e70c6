"""
Price matrix (catalog) items.

An item may depend on one other item of the same organization:
``depends_on_condition`` is one of always / when_selected / when_not_selected.
Only one level is allowed; see services.catalog.validate_dependency.
"""

from sqlalchemy import Column, Integer, String, Boolean, Numeric, DateTime, Text, ForeignKey
from sqlalchemy.dialects.postgresql import UUID

from quotedesk.database import Base, utcnow


class PriceMatrixItem(Base):
    __tablename__ = "price_matrix_items"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(
        UUID(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)
    unit = Column(String(50), nullable=False, default="stuk")
    unit_price = Column(Numeric(10, 2), nullable=False)
    is_optional = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Integer, nullable=False, default=0)

    depends_on_item_id = Column(
        Integer, ForeignKey("price_matrix_items.id", ondelete="SET NULL"), nullable=True
    )
    depends_on_condition = Column(String(30), nullable=False, default="always")

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<PriceMatrixItem {self.name}>"
