"""
Quotation test factories.
"""

from decimal import Decimal

import factory
from faker import Faker

fake = Faker()


class QuotationFactory(factory.Factory):
    """
    Client and pricing fields of a Quotation. Status, items and totals are
    set by the ``make_quotation`` fixture.
    """

    class Meta:
        model = dict

    client_name = factory.LazyFunction(fake.name)
    client_email = factory.Sequence(lambda n: f"client{n}@example.com")
    client_phone = factory.LazyFunction(fake.phone_number)
    client_company = factory.LazyFunction(fake.company)
    client_address = factory.LazyFunction(fake.address)
    discount = Decimal("0")
    vat_rate = Decimal("21")
    include_vat = True


class QuoteItemFactory(factory.Factory):
    class Meta:
        model = dict

    name = factory.LazyFunction(lambda: fake.word().capitalize())
    quantity = Decimal("2")
    unit_price = Decimal("100.00")
    unit = "stuk"
    is_optional = False
    is_selected = True


class OptionalQuoteItemFactory(QuoteItemFactory):
    """Optional line the client may toggle when signing."""

    quantity = Decimal("1")
    unit_price = Decimal("50.00")
    is_optional = True
