"""
Tests for organization settings (/api/v2/organization).
"""
import pytest
from httpx import AsyncClient

PREFIX = "/api/v2/organization"


@pytest.mark.asyncio
async def test_read_settings(authenticated_client: AsyncClient):
    response = await authenticated_client.get(PREFIX)

    assert response.status_code == 200
    data = response.json()
    assert data["slug"] == "acme"
    assert data["invoice_prefix"] == "INV"
    assert data["invoice_counter"] == 1000
    assert data["opening_hours"]["friday"]["close"] == "17:00"


@pytest.mark.asyncio
async def test_partial_opening_hours_merge(authenticated_client: AsyncClient):
    response = await authenticated_client.patch(
        PREFIX, json={"opening_hours": {"saturday": {"open": "09:00", "close": "13:00", "enabled": True}}}
    )

    assert response.status_code == 200
    hours = response.json()["opening_hours"]
    assert hours["saturday"] == {"open": "09:00", "close": "13:00", "enabled": True}
    assert hours["monday"]["enabled"] is True


@pytest.mark.asyncio
async def test_invalid_opening_hours(authenticated_client: AsyncClient):
    bad_day = await authenticated_client.patch(PREFIX, json={"opening_hours": {"funday": {}}})
    bad_time = await authenticated_client.patch(PREFIX, json={"opening_hours": {"monday": {"open": "8 uur"}}})
    assert bad_day.status_code == 422
    assert bad_time.status_code == 422


@pytest.mark.asyncio
async def test_counter_is_not_editable(authenticated_client: AsyncClient):
    response = await authenticated_client.patch(PREFIX, json={"invoice_prefix": "ACM", "invoice_counter": 1})
    assert response.json()["invoice_prefix"] == "ACM"
    assert response.json()["invoice_counter"] == 1000


@pytest.mark.asyncio
async def test_null_name_is_ignored(authenticated_client: AsyncClient):
    response = await authenticated_client.patch(PREFIX, json={"name": None, "phone": None})
    assert response.status_code == 200
    assert response.json()["name"] == "Acme"
    assert response.json()["phone"] is None


@pytest.mark.asyncio
async def test_employee_can_read_but_not_update(client: AsyncClient, employee_headers):
    assert (await client.get(PREFIX, headers=employee_headers)).status_code == 200
    response = await client.patch(PREFIX, json={"name": "Overgenomen"}, headers=employee_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.parametrize("prefix", ["../../../esc", "INV/2026", "IN V"])
async def test_invoice_prefix_must_be_a_plain_name(authenticated_client: AsyncClient, prefix):
    response = await authenticated_client.patch(PREFIX, json={"invoice_prefix": prefix})
    assert response.status_code == 422
    assert (await authenticated_client.get(PREFIX)).json()["invoice_prefix"] == "INV"
