"""
Tests for the auth API endpoints (/api/v2/auth).
"""
import pytest
from httpx import AsyncClient
from jose import jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quotedesk.config import settings
from quotedesk.models.organization import Organization
from quotedesk.models.user import User
from tests.conftest import PASSWORD

AUTH_PREFIX = "/api/v2/auth"


class TestLogin:
    """Tests for POST /api/v2/auth/login."""

    @pytest.mark.asyncio
    async def test_login_success(self, client: AsyncClient, owner: User):
        response = await client.post(
            f"{AUTH_PREFIX}/login",
            json={"email": owner.email, "password": PASSWORD},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"

        payload = jwt.decode(data["access_token"], settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        assert payload["sub"] == str(owner.id)
        assert payload["email"] == owner.email

        assert "session" in response.cookies

    @pytest.mark.asyncio
    async def test_login_email_is_case_insensitive(self, client: AsyncClient, owner: User):
        response = await client.post(
            f"{AUTH_PREFIX}/login",
            json={"email": "OWNER@acme.test", "password": PASSWORD},
        )
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client: AsyncClient, owner: User):
        response = await client.post(
            f"{AUTH_PREFIX}/login",
            json={"email": owner.email, "password": "wrongpassword"},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Incorrect email or password"
        assert response.json()["code"] == "AUTH_001"

    @pytest.mark.asyncio
    async def test_login_nonexistent_email(self, client: AsyncClient, owner: User):
        response = await client.post(
            f"{AUTH_PREFIX}/login",
            json={"email": "nobody@acme.test", "password": PASSWORD},
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_login_inactive_user(self, test_db: AsyncSession, client: AsyncClient, employee: User):
        employee.is_active = False
        await test_db.commit()

        response = await client.post(
            f"{AUTH_PREFIX}/login",
            json={"email": employee.email, "password": PASSWORD},
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_login_validation_error(self, client: AsyncClient):
        response = await client.post(f"{AUTH_PREFIX}/login", json={"email": "not-an-email"})

        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "VAL_001"
        fields = {error["field"] for error in body["errors"]}
        assert "body.password" in fields


class TestRegister:
    """Tests for POST /api/v2/auth/register."""

    @pytest.mark.asyncio
    async def test_register_creates_organization_and_owner(self, client: AsyncClient, test_db: AsyncSession):
        response = await client.post(
            f"{AUTH_PREFIX}/register",
            json={
                "organization_name": "Schilders & Zn.",
                "email": "Info@Schilders.test",
                "password": "supersecure123",
                "full_name": "Sam Schilder",
            },
        )

        assert response.status_code == 201
        token = response.json()["access_token"]

        user = (await test_db.execute(select(User).where(User.email == "info@schilders.test"))).scalar_one()
        assert user.role == "owner"
        organization = await test_db.get(Organization, user.organization_id)
        assert organization.slug == "schilders-zn"
        assert organization.invoice_prefix == "INV"
        assert organization.invoice_counter == 1000

        me = await client.get(f"{AUTH_PREFIX}/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["user"]["organization_id"] == str(organization.id)

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, client: AsyncClient, owner: User):
        response = await client.post(
            f"{AUTH_PREFIX}/register",
            json={"organization_name": "Other", "email": owner.email, "password": "supersecure123"},
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_register_slug_collision_gets_suffix(self, client: AsyncClient, organization):
        response = await client.post(
            f"{AUTH_PREFIX}/register",
            json={"organization_name": "Acme", "email": "second@acme.test", "password": "supersecure123"},
        )
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_register_short_password(self, client: AsyncClient):
        response = await client.post(
            f"{AUTH_PREFIX}/register",
            json={"organization_name": "Tiny", "email": "tiny@example.com", "password": "short"},
        )
        assert response.status_code == 422


class TestMe:
    """Tests for GET /api/v2/auth/me and logout."""

    @pytest.mark.asyncio
    async def test_me(self, client: AsyncClient, owner: User, owner_headers: dict):
        response = await client.get(f"{AUTH_PREFIX}/me", headers=owner_headers)

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["email"] == "owner@acme.test"
        assert user["role"] == "owner"
        assert "hashed_password" not in user

    @pytest.mark.asyncio
    async def test_me_without_token(self, client: AsyncClient):
        response = await client.get(f"{AUTH_PREFIX}/me")
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_logout_clears_cookie(self, client: AsyncClient):
        response = await client.post(f"{AUTH_PREFIX}/logout")
        assert response.status_code == 200
        assert "session=" in response.headers["set-cookie"]
