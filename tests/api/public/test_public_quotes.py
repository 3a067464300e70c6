"""
Tests for the client quote page (/api/public/quotes/{token}).
"""
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from quotedesk.models.notification import Notification
from tests.factories import OptionalQuoteItemFactory, QuoteItemFactory

PREFIX = "/api/public/quotes"
SIGNATURE = "data:image/png;base64,iVBORw0KGgo="


class TestViewQuote:
    @pytest.mark.asyncio
    async def test_first_view_marks_viewed(self, client: AsyncClient, make_quotation):
        quotation = await make_quotation(status="quote_sent")

        response = await client.get(f"{PREFIX}/{quotation.token}")

        assert response.status_code == 200
        data = response.json()
        assert data["quotation"]["status"] == "viewed"
        assert data["organization"]["slug"] == "acme"
        assert len(data["items"]) == 1
        assert "token" not in data["quotation"]

    @pytest.mark.asyncio
    async def test_second_view_is_not_audited(self, client: AsyncClient, authenticated_client, make_quotation):
        quotation = await make_quotation(status="quote_sent")

        await client.get(f"{PREFIX}/{quotation.token}")
        await client.get(f"{PREFIX}/{quotation.token}")

        detail = (await authenticated_client.get(f"/api/v2/quotations/{quotation.id}")).json()
        assert [entry["action"] for entry in detail["audit_log"]] == ["created", "viewed"]

    @pytest.mark.asyncio
    async def test_unknown_token(self, client: AsyncClient):
        response = await client.get(f"{PREFIX}/{'0' * 64}")
        assert response.status_code == 404
        assert response.json()["code"] == "RES_001"


class TestAcceptQuote:
    @pytest.mark.asyncio
    async def test_accept_with_deselected_option(self, client: AsyncClient, test_db, make_quotation):
        quotation = await make_quotation(status="viewed", items=[QuoteItemFactory(), OptionalQuoteItemFactory()])
        optional = quotation.items[1]
        assert Decimal(quotation.total) == Decimal("302.50")

        response = await client.post(
            f"{PREFIX}/{quotation.token}/accept",
            json={"signature": SIGNATURE, "selected_items": [{"id": optional.id, "is_selected": False}]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["quotation"]["status"] == "approved"
        assert data["quotation"]["signed_at"] is not None
        assert Decimal(str(data["quotation"]["total"])) == Decimal("242.00")
        assert [item["is_selected"] for item in data["items"]] == [True, False]

        kinds = (await test_db.execute(select(Notification.type))).scalars().all()
        assert kinds == ["quote_approved"]

    @pytest.mark.asyncio
    async def test_required_item_cannot_be_deselected(self, client: AsyncClient, make_quotation):
        quotation = await make_quotation(status="viewed")
        response = await client.post(
            f"{PREFIX}/{quotation.token}/accept",
            json={"signature": SIGNATURE, "selected_items": [{"id": quotation.items[0].id, "is_selected": False}]},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_accept_before_viewing_is_rejected(self, client: AsyncClient, make_quotation):
        quotation = await make_quotation(status="quote_sent")
        response = await client.post(f"{PREFIX}/{quotation.token}/accept", json={"signature": SIGNATURE})
        assert response.status_code == 409
        assert response.json()["code"] == "BIZ_003"

    @pytest.mark.asyncio
    async def test_accept_twice(self, client: AsyncClient, make_quotation):
        quotation = await make_quotation(status="viewed")
        first = await client.post(f"{PREFIX}/{quotation.token}/accept", json={"signature": SIGNATURE})
        second = await client.post(f"{PREFIX}/{quotation.token}/accept", json={"signature": SIGNATURE})
        assert first.status_code == 200
        assert second.status_code == 409

    @pytest.mark.asyncio
    async def test_unknown_fields_are_refused(self, client: AsyncClient, make_quotation):
        quotation = await make_quotation(status="viewed")
        response = await client.post(
            f"{PREFIX}/{quotation.token}/accept",
            json={"signature": SIGNATURE, "status": "paid"},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_empty_signature(self, client: AsyncClient, make_quotation):
        quotation = await make_quotation(status="viewed")
        response = await client.post(f"{PREFIX}/{quotation.token}/accept", json={"signature": ""})
        assert response.status_code == 422


class TestRejectQuote:
    @pytest.mark.asyncio
    async def test_reject_with_reason(self, client: AsyncClient, authenticated_client, make_quotation):
        quotation = await make_quotation(status="viewed")

        response = await client.post(f"{PREFIX}/{quotation.token}/reject", json={"reason": "Te duur"})

        assert response.status_code == 200
        assert response.json()["quotation"]["status"] == "rejected"
        detail = (await authenticated_client.get(f"/api/v2/quotations/{quotation.id}")).json()
        assert detail["rejection_reason"] == "Te duur"

    @pytest.mark.asyncio
    async def test_reject_without_body(self, client: AsyncClient, make_quotation):
        quotation = await make_quotation(status="viewed")
        response = await client.post(f"{PREFIX}/{quotation.token}/reject")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_approved_quote_cannot_be_rejected(self, client: AsyncClient, make_quotation):
        quotation = await make_quotation(status="approved")
        response = await client.post(f"{PREFIX}/{quotation.token}/reject")
        assert response.status_code == 409
