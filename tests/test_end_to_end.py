"""
Lead to paid invoice for a one-person organization, through the HTTP API only.
"""
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from quotedesk.models.calendar_event import CalendarEvent
from quotedesk.models.client_user import ClientUser
from quotedesk.models.dossier import Dossier
from quotedesk.models.notification import Notification
from quotedesk.models.organization import Organization
from quotedesk.models.price_matrix import PriceMatrixItem
from tests.factories import PriceMatrixItemFactory


async def _count(db, model, *where):
    return (await db.execute(select(func.count()).select_from(model).where(*where))).scalar()


@pytest.mark.asyncio
async def test_lead_to_paid_invoice(authenticated_client: AsyncClient, client: AsyncClient, test_db, organization, email_service):
    item = PriceMatrixItem(organization_id=organization.id, **PriceMatrixItemFactory(name="Dakgoot"))
    test_db.add(item)
    await test_db.commit()

    # Lead
    submitted = await client.post(
        "/api/public/lead-form/acme/submit",
        json={
            "client_name": "Jan Jansen",
            "client_email": "jan@example.com",
            "desired_start_date": "2026-03-01",
            "items": [{"price_matrix_item_id": item.id, "quantity": 2}],
        },
    )
    assert submitted.status_code == 201
    token = submitted.json()["token"]
    assert submitted.json()["status"] == "quote_sent"

    [summary] = (await authenticated_client.get("/api/v2/quotations")).json()["items"]
    quotation_id = summary["id"]
    assert Decimal(str(summary["subtotal"])) == Decimal("200.00")
    assert Decimal(str(summary["vat_amount"])) == Decimal("42.00")
    assert Decimal(str(summary["total"])) == Decimal("242.00")
    events = (await test_db.execute(select(CalendarEvent.type))).scalars().all()
    assert events == ["requested"]

    # View
    before = len((await authenticated_client.get(f"/api/v2/quotations/{quotation_id}")).json()["audit_log"])
    viewed = await client.get(f"/api/public/quotes/{token}")
    assert viewed.json()["quotation"]["status"] == "viewed"
    after = (await authenticated_client.get(f"/api/v2/quotations/{quotation_id}")).json()["audit_log"]
    assert len(after) == before + 1

    # Accept
    accepted = await client.post(f"/api/public/quotes/{token}/accept", json={"signature": "data:image/png;base64,AA=="})
    assert accepted.json()["quotation"]["status"] == "approved"
    events = (await test_db.execute(select(CalendarEvent.type))).scalars().all()
    assert events == ["booked"]
    assert await _count(test_db, Notification, Notification.type == "quote_approved") == 1

    # Invoice
    invoiced = await authenticated_client.post(f"/api/v2/quotations/{quotation_id}/generate-invoice", json={})
    assert invoiced.status_code == 200
    assert invoiced.json()["invoice_number"] == "INV-1001"
    counter = (
        await test_db.execute(select(Organization.invoice_counter).where(Organization.id == organization.id))
    ).scalar()
    assert counter == 1001

    for _ in range(2):
        sent = await authenticated_client.post(f"/api/v2/quotations/{quotation_id}/send-invoice")
        assert sent.status_code == 200
        assert sent.json()["success"] is True

    assert await _count(test_db, ClientUser) == 1
    assert await _count(test_db, Dossier) == 1
    portal_mails = [m for m in email_service.sent_emails if m["subject"] == "Uw klantenportaal bij Acme"]
    assert len(portal_mails) == 1

    # Paid
    paid = await authenticated_client.post(f"/api/v2/quotations/{quotation_id}/mark-paid")
    assert paid.json()["status"] == "paid"
    stats = (await authenticated_client.get("/api/v2/dashboard/stats")).json()
    assert Decimal(str(stats["total_revenue"])) == Decimal("242.00")
