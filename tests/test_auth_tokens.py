"""Tests for JWT token creation and validation."""
import pytest
import time
from datetime import timedelta
from jose import jwt, JWTError


class TestJWTTokens:
    """Test JWT access token behavior."""

    def test_create_access_token(self):
        """Access token should contain sub and email claims."""
        from quotedesk.api.deps import create_access_token
        token = create_access_token(data={"sub": "1", "email": "test@example.com"})
        assert isinstance(token, str)
        assert len(token) > 50

    def test_access_token_decode(self):
        from quotedesk.api.deps import create_access_token
        from quotedesk.config import settings
        token = create_access_token(data={"sub": "42", "email": "user@test.com"})
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        assert payload["sub"] == "42"
        assert payload["email"] == "user@test.com"
        assert "exp" in payload

    def test_access_token_expiry(self):
        """Access token should expire after ACCESS_TOKEN_EXPIRE_MINUTES (120 min)."""
        from quotedesk.api.deps import create_access_token
        from quotedesk.config import settings
        token = create_access_token(data={"sub": "1", "email": "test@test.com"})
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        assert 7000 < (payload["exp"] - time.time()) < 7300

    def test_access_token_custom_expiry(self):
        from quotedesk.api.deps import create_access_token
        from quotedesk.config import settings
        token = create_access_token(
            data={"sub": "1", "email": "test@test.com"},
            expires_delta=timedelta(minutes=30),
        )
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        assert 1700 < (payload["exp"] - time.time()) < 1900

    def test_wrong_secret_fails(self):
        from quotedesk.api.deps import create_access_token
        token = create_access_token(data={"sub": "1", "email": "test@test.com"})
        with pytest.raises(JWTError):
            jwt.decode(token, "wrong-secret-key", algorithms=["HS256"])

    def test_token_algorithm_is_hs256(self):
        from quotedesk.config import settings
        assert settings.ALGORITHM == "HS256"


class TestTokenAuthentication:
    """Tokens against the /auth/me endpoint."""

    @pytest.mark.asyncio
    async def test_expired_token_rejected(self, client, owner):
        from quotedesk.api.deps import create_access_token
        token = create_access_token(
            data={"sub": str(owner.id), "email": owner.email},
            expires_delta=timedelta(minutes=-5),
        )
        response = await client.get("/api/v2/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.headers["content-type"].startswith("application/problem+json")

    @pytest.mark.asyncio
    async def test_token_for_unknown_user_rejected(self, client, owner):
        from quotedesk.api.deps import create_access_token
        token = create_access_token(data={"sub": "999999", "email": "ghost@example.com"})
        response = await client.get("/api/v2/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_non_numeric_subject_rejected(self, client, owner):
        from quotedesk.api.deps import create_access_token
        token = create_access_token(data={"sub": "not-a-number"})
        response = await client.get("/api/v2/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_session_cookie_fallback(self, client, owner):
        from quotedesk.api.deps import create_access_token
        token = create_access_token(data={"sub": str(owner.id), "email": owner.email})
        client.cookies.set("session", token)
        response = await client.get("/api/v2/auth/me")
        assert response.status_code == 200
        assert response.json()["user"]["email"] == owner.email
