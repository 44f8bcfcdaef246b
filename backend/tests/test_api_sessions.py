"""
Tests for session ticket endpoints.
"""

import pytest
from httpx import AsyncClient


async def buy(client: AsyncClient, session_id: int, adults: int, day: str = "2024-08-15", **party):
    return await client.post(
        "/api/v1/sessions/tickets",
        json={"session_id": session_id, "session_date": day, "adults": adults, **party},
    )


@pytest.mark.asyncio
async def test_buy_tickets(client: AsyncClient, pool):
    response = await buy(client, pool.id, 4)

    assert response.status_code == 201
    data = response.json()
    assert data["resource_type"] == "shared"
    assert data["session_date"] == "2024-08-15"
    assert data["party_size"] == 4
    assert data["unit_price_snapshot"] == "15.00"
    assert data["total_price"] == "60.00"
    assert data["reference"].startswith("P-")


@pytest.mark.asyncio
async def test_sold_out_returns_409_with_available(client: AsyncClient, pool):
    """10 + 15 sold; a party of 20 sees the 15 remaining spots."""
    assert (await buy(client, pool.id, 10)).status_code == 201
    assert (await buy(client, pool.id, 15)).status_code == 201

    response = await buy(client, pool.id, 20)
    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["kind"] == "CAPACITY_EXCEEDED"
    assert detail["available"] == 15


@pytest.mark.asyncio
async def test_zero_party_returns_422(client: AsyncClient, pool):
    response = await buy(client, pool.id, 0)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unknown_session_returns_404(client: AsyncClient):
    response = await buy(client, 99999, 1)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_capacity_endpoint(client: AsyncClient, pool):
    await buy(client, pool.id, 12)

    response = await client.get(f"/api/v1/sessions/{pool.id}/capacity?date=2024-08-15")
    assert response.status_code == 200
    data = response.json()
    assert data["max_capacity"] == 40
    assert data["sold"] == 12
    assert data["available"] == 28


@pytest.mark.asyncio
async def test_quote_tickets(client: AsyncClient, pool):
    await buy(client, pool.id, 38)

    response = await client.get(f"/api/v1/sessions/{pool.id}/quote?date=2024-08-15&adults=3")
    assert response.status_code == 200
    data = response.json()
    assert data["unit_price"] == "15.00"
    assert data["total_price"] == "45.00"
    assert data["headcount"] == 3
    assert data["available"] == 2
    assert data["feasible"] is False


@pytest.mark.asyncio
async def test_reschedule_tickets(client: AsyncClient, pool):
    ticket = await buy(client, pool.id, 5)

    response = await client.patch(
        f"/api/v1/sessions/tickets/{ticket.json()['id']}/date",
        json={"session_date": "2024-08-20"},
    )
    assert response.status_code == 200
    assert response.json()["session_date"] == "2024-08-20"

    capacity = await client.get(f"/api/v1/sessions/{pool.id}/capacity?date=2024-08-15")
    assert capacity.json()["sold"] == 0


@pytest.mark.asyncio
async def test_reschedule_into_full_date_returns_409(client: AsyncClient, pool):
    ticket = await buy(client, pool.id, 5)
    await buy(client, pool.id, 40, day="2024-08-20")

    response = await client.patch(
        f"/api/v1/sessions/tickets/{ticket.json()['id']}/date",
        json={"session_date": "2024-08-20"},
    )
    assert response.status_code == 409
    assert response.json()["detail"]["available"] == 0


@pytest.mark.asyncio
async def test_buy_family_tickets(client: AsyncClient, pool):
    """Children pay half the 15.00 session price; infants are free and take no spot."""
    response = await buy(client, pool.id, 2, children=1, infants=2)

    assert response.status_code == 201
    data = response.json()
    assert data["party_size"] == 3
    assert data["total_price"] == "37.50"
    assert data["details"]["party"] == {"adults": 2, "children": 1, "infants": 2}

    capacity = await client.get(f"/api/v1/sessions/{pool.id}/capacity?date=2024-08-15")
    assert capacity.json()["sold"] == 3


@pytest.mark.asyncio
async def test_infants_only_returns_422(client: AsyncClient, pool):
    response = await buy(client, pool.id, 0, infants=2)
    assert response.status_code == 422
    assert response.json()["detail"]["kind"] == "INVALID_INPUT"


@pytest.mark.asyncio
async def test_quote_family_party(client: AsyncClient, pool):
    response = await client.get(
        f"/api/v1/sessions/{pool.id}/quote?date=2024-08-15&adults=1&children=2&infants=1"
    )
    assert response.status_code == 200
    data = response.json()
    assert data["headcount"] == 3
    assert data["child_unit_price"] == "7.50"
    assert data["total_price"] == "30.00"
    assert data["available"] == 40


@pytest.mark.asyncio
async def test_validate_ticket_for_its_date(client: AsyncClient, pool):
    ticket = (await buy(client, pool.id, 2)).json()

    response = await client.get(f"/api/v1/sessions/tickets/{ticket['reference']}/validate?date=2024-08-15")
    assert response.status_code == 200
    data = response.json()
    assert data["valid"] is True
    assert data["refusal"] is None
    assert data["reservation"]["id"] == ticket["id"]


@pytest.mark.asyncio
async def test_validate_ticket_defaults_to_today(client: AsyncClient, pool):
    """The fixed clock reads 2026-06-01, so an August ticket is for another day."""
    ticket = (await buy(client, pool.id, 2)).json()

    response = await client.get(f"/api/v1/sessions/tickets/{ticket['reference']}/validate")
    data = response.json()
    assert data["valid"] is False
    assert data["refusal"] == "WRONG_DATE"
    assert data["session_date"] == "2026-06-01"


@pytest.mark.asyncio
async def test_validate_used_ticket(client: AsyncClient, pool):
    ticket = (await buy(client, pool.id, 2)).json()
    await client.post(f"/api/v1/reservations/{ticket['id']}/check-in")

    response = await client.get(f"/api/v1/sessions/tickets/{ticket['reference']}/validate?date=2024-08-15")
    assert response.json()["refusal"] == "ALREADY_USED"


@pytest.mark.asyncio
async def test_validate_unknown_ticket_returns_404(client: AsyncClient):
    response = await client.get("/api/v1/sessions/tickets/P-240815-NOPE00/validate?date=2024-08-15")
    assert response.status_code == 404
