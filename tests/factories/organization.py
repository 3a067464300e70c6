"""
Organization and staff test factories.
"""

import factory
from faker import Faker

from quotedesk.models.organization import default_opening_hours

fake = Faker()


class OrganizationFactory(factory.Factory):
    """
    Factory for generating Organization test data.

    Usage:
        org = Organization(**OrganizationFactory())
        org = Organization(**OrganizationFactory(name="Acme", slug="acme"))
    """

    class Meta:
        model = dict

    name = factory.LazyFunction(fake.company)
    slug = factory.Sequence(lambda n: f"org-{n}")
    email = factory.LazyFunction(lambda: fake.company_email().lower())
    phone = factory.LazyFunction(fake.phone_number)
    address = factory.LazyFunction(fake.address)
    iban = "NL91ABNA0417164300"
    invoice_prefix = "INV"
    invoice_counter = 1000
    default_vat_rate = 21
    opening_hours = factory.LazyFunction(default_opening_hours)
    max_employees = 3


class UserFactory(factory.Factory):
    """Staff account data; ``hashed_password`` is set by the fixture."""

    class Meta:
        model = dict

    email = factory.Sequence(lambda n: f"staff{n}@example.com")
    full_name = factory.LazyFunction(fake.name)
    role = "owner"
    is_active = True
