"""
Test factories for generating realistic test data.

Uses factory_boy for declarative test data generation. Factories build
plain dicts; fixtures turn them into ORM rows.
"""

from .organization import OrganizationFactory, UserFactory
from .quotation import QuotationFactory, QuoteItemFactory, OptionalQuoteItemFactory
from .catalog import PriceMatrixItemFactory, CalendarEventFactory

__all__ = [
    "OrganizationFactory",
    "UserFactory",
    "QuotationFactory",
    "QuoteItemFactory",
    "OptionalQuoteItemFactory",
    "PriceMatrixItemFactory",
    "CalendarEventFactory",
]
