import os

# Must be set before quotedesk.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from quotedesk.main import app
from quotedesk.api.deps import create_access_token
from quotedesk.config import settings
from quotedesk.database import Base, get_db
from quotedesk.exceptions import ExternalServiceError
from quotedesk.models.organization import Organization
from quotedesk.models.quotation import Quotation
from quotedesk.models.user import User
from quotedesk.security.passwords import get_password_hash
from quotedesk.security.rbac import RequestContext
from quotedesk.services import quotation_service
from quotedesk.services.email_service import MockEmailService, get_email_service
from quotedesk.services.invoice_pdf import InvoiceRenderer, get_invoice_renderer
from tests.factories import OrganizationFactory, QuotationFactory, QuoteItemFactory, UserFactory

PASSWORD = "testpassword123"


class StubRenderer(InvoiceRenderer):
    """Returns fixed bytes instead of running WeasyPrint."""

    def __init__(self):
        self.fail = False
        self.rendered = []

    def render(self, org, quotation, items) -> bytes:
        if self.fail:
            raise ExternalServiceError("PDF", "invoice could not be rendered")
        self.rendered.append(quotation.invoice_number)
        return b"%PDF-1.4 test invoice"


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    """Generated documents go to a per-test directory."""
    target = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(target))
    return target


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """File-backed SQLite per test so separate sessions see each other's commits."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def test_db(session_factory):
    async with session_factory() as session:
        yield session


async def _add_user(db, organization, **overrides) -> User:
    data = UserFactory(**overrides)
    user = User(organization_id=organization.id, hashed_password=get_password_hash(PASSWORD), **data)
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def organization(test_db: AsyncSession):
    """Tenant "Acme" with prefix INV and counter 1000."""
    org = Organization(**OrganizationFactory(name="Acme", slug="acme", email="info@acme.test"))
    test_db.add(org)
    await test_db.commit()
    return org


@pytest_asyncio.fixture
async def owner(test_db: AsyncSession, organization):
    return await _add_user(test_db, organization, email="owner@acme.test", full_name="Olga Owner")


@pytest_asyncio.fixture
async def employee(test_db: AsyncSession, organization, owner):
    return await _add_user(
        test_db, organization, email="employee@acme.test", full_name="Mark Medewerker", role="medewerker"
    )


@pytest_asyncio.fixture
async def other_organization(test_db: AsyncSession):
    org = Organization(**OrganizationFactory(name="Globex", slug="globex", email="info@globex.test"))
    test_db.add(org)
    await test_db.commit()
    return org


@pytest_asyncio.fixture
async def other_owner(test_db: AsyncSession, other_organization):
    return await _add_user(test_db, other_organization, email="owner@globex.test")


@pytest.fixture
def owner_ctx(owner) -> RequestContext:
    return RequestContext.from_user(owner)


@pytest.fixture
def employee_ctx(employee) -> RequestContext:
    return RequestContext.from_user(employee)


@pytest.fixture
def email_service() -> MockEmailService:
    return MockEmailService()


@pytest.fixture
def renderer() -> StubRenderer:
    return StubRenderer()


@pytest_asyncio.fixture
async def client(test_db: AsyncSession, email_service, renderer):
    """Create test client with overridden database, mailer and PDF renderer."""

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_service] = lambda: email_service
    app.dependency_overrides[get_invoice_renderer] = lambda: renderer

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def auth_headers(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id), "email": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def owner_headers(owner) -> dict:
    return auth_headers(owner)


@pytest.fixture
def employee_headers(employee) -> dict:
    return auth_headers(employee)


@pytest_asyncio.fixture
async def authenticated_client(client: AsyncClient, owner: User):
    """Client authenticated as the organization owner."""
    client.headers.update(auth_headers(owner))
    return client


@pytest_asyncio.fixture
async def make_quotation(test_db: AsyncSession, organization):
    """
    Insert a quotation directly in a given status.

    Usage:
        quotation = await make_quotation(status="viewed")
        quotation = await make_quotation(items=[QuoteItemFactory(), OptionalQuoteItemFactory()])
    """

    async def _make(status="new_lead", items=None, org=None, assigned_employee_id=None, **overrides):
        quotation = Quotation(
            organization_id=(org or organization).id,
            status=status,
            assigned_employee_id=assigned_employee_id,
            **QuotationFactory(**overrides),
        )
        for fields in items if items is not None else [QuoteItemFactory()]:
            quotation.items.append(quotation_service.build_item(**fields))
        quotation_service.recalculate(quotation)
        quotation_service.append_audit(quotation, "created")
        test_db.add(quotation)
        await test_db.commit()
        return quotation

    return _make


@pytest_asyncio.fixture
async def invoiced_quotation(test_db: AsyncSession, make_quotation, owner_ctx):
    """Approved quotation that went through generate_invoice (INV-1001)."""
    quotation = await make_quotation(status="approved")
    await quotation_service.generate_invoice(test_db, owner_ctx, quotation)
    return quotation


@pytest_asyncio.fixture
async def dossier(test_db: AsyncSession, invoiced_quotation, owner_ctx, email_service, renderer):
    """Dossier provisioned by sending the invoice."""
    from quotedesk.models.dossier import Dossier

    outcome = await quotation_service.send_invoice(test_db, owner_ctx, invoiced_quotation, email_service, renderer)
    assert outcome.success
    return await test_db.get(Dossier, outcome.dossier_id)
