"""
Catalog and calendar test factories.
"""

from datetime import date
from decimal import Decimal

import factory
from faker import Faker

fake = Faker()


class PriceMatrixItemFactory(factory.Factory):
    class Meta:
        model = dict

    name = factory.LazyFunction(lambda: fake.word().capitalize())
    description = factory.LazyFunction(fake.sentence)
    category = "Algemeen"
    unit = "stuk"
    unit_price = Decimal("100.00")
    is_optional = False
    sort_order = factory.Sequence(lambda n: n)
    depends_on_item_id = None
    depends_on_condition = "always"


class CalendarEventFactory(factory.Factory):
    """All-day ``unavailable`` event unless overridden."""

    class Meta:
        model = dict

    date = date(2026, 3, 2)
    start_time = None
    end_time = None
    type = "unavailable"
    title = factory.LazyFunction(lambda: fake.sentence(nb_words=3))
    employee_id = None
