"""
Tests for stay endpoints.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_create_stay(client: AsyncClient, chalet):
    """Successful stay booking returns the priced reservation."""
    response = await client.post(
        "/api/v1/stays/",
        json={"resource_id": chalet.id, "check_in": "2024-06-03", "check_out": "2024-06-05", "guests": 2},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["resource_id"] == chalet.id
    assert data["resource_type"] == "exclusive"
    assert data["interval_start"] == "2024-06-03"
    assert data["interval_end"] == "2024-06-05"
    assert data["status"] == "confirmed"
    assert data["total_price"] == "200.00"
    assert data["deposit_amount"] == "60.00"
    assert data["reference"].startswith("C-")


@pytest.mark.asyncio
async def test_overlapping_stay_returns_409_with_conflicts(client: AsyncClient, chalet):
    first = await client.post(
        "/api/v1/stays/",
        json={"resource_id": chalet.id, "check_in": "2024-06-01", "check_out": "2024-06-05"},
    )
    response = await client.post(
        "/api/v1/stays/",
        json={"resource_id": chalet.id, "check_in": "2024-06-04", "check_out": "2024-06-06"},
    )
    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["kind"] == "CONFLICT"
    assert [c["id"] for c in detail["conflicts"]] == [first.json()["id"]]


@pytest.mark.asyncio
async def test_adjacent_stay_is_accepted(client: AsyncClient, chalet):
    await client.post(
        "/api/v1/stays/",
        json={"resource_id": chalet.id, "check_in": "2024-06-01", "check_out": "2024-06-03"},
    )
    response = await client.post(
        "/api/v1/stays/",
        json={"resource_id": chalet.id, "check_in": "2024-06-03", "check_out": "2024-06-05"},
    )
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_reversed_dates_return_422(client: AsyncClient, chalet):
    response = await client.post(
        "/api/v1/stays/",
        json={"resource_id": chalet.id, "check_in": "2024-06-05", "check_out": "2024-06-01"},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_too_many_guests_return_422(client: AsyncClient, chalet):
    response = await client.post(
        "/api/v1/stays/",
        json={"resource_id": chalet.id, "check_in": "2024-06-01", "check_out": "2024-06-02", "guests": 9},
    )
    assert response.status_code == 422
    assert response.json()["detail"]["kind"] == "INVALID_INPUT"


@pytest.mark.asyncio
async def test_book_nonexistent_chalet(client: AsyncClient):
    """Booking a non-existent chalet returns 404."""
    response = await client.post(
        "/api/v1/stays/",
        json={"resource_id": 99999, "check_in": "2024-06-01", "check_out": "2024-06-02"},
    )
    assert response.status_code == 404
    assert response.json()["detail"]["kind"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_quote_stay_with_add_ons(client: AsyncClient, chalet, breakfast, cleaning):
    response = await client.get(
        f"/api/v1/stays/{chalet.id}/quote",
        params=[
            ("start", "2024-06-03"),
            ("end", "2024-06-06"),
            ("guests", "2"),
            ("add_on", str(breakfast.id)),
            ("add_on", str(breakfast.id)),
            ("add_on", str(cleaning.id)),
        ],
    )
    assert response.status_code == 200
    data = response.json()
    assert data["feasible"] is True
    assert data["nights"] == 3
    assert [n["price"] for n in data["nightly_prices"]] == ["100.00", "100.00", "100.00"]
    assert data["add_ons_amount"] == "115.00"
    assert data["total_price"] == "415.00"


@pytest.mark.asyncio
async def test_quote_does_not_hold_the_dates(client: AsyncClient, chalet):
    quote = await client.get(f"/api/v1/stays/{chalet.id}/quote?start=2024-06-03&end=2024-06-06")
    blocked = await client.get(f"/api/v1/stays/{chalet.id}/blocked-dates?start=2024-06-01&end=2024-06-30")

    assert quote.status_code == 200
    assert blocked.json()["blocked_dates"] == []


@pytest.mark.asyncio
async def test_blocked_dates(client: AsyncClient, chalet):
    await client.post(
        "/api/v1/stays/",
        json={"resource_id": chalet.id, "check_in": "2024-06-10", "check_out": "2024-06-12"},
    )
    response = await client.get(f"/api/v1/stays/{chalet.id}/blocked-dates?start=2024-06-01&end=2024-06-30")

    assert response.status_code == 200
    assert response.json()["blocked_dates"] == ["2024-06-10", "2024-06-11"]


@pytest.mark.asyncio
async def test_change_stay_dates(client: AsyncClient, chalet):
    created = await client.post(
        "/api/v1/stays/",
        json={"resource_id": chalet.id, "check_in": "2024-06-03", "check_out": "2024-06-05"},
    )
    reservation_id = created.json()["id"]

    response = await client.patch(
        f"/api/v1/stays/reservations/{reservation_id}/dates",
        json={"check_in": "2024-06-03", "check_out": "2024-06-06"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["reservation"]["interval_end"] == "2024-06-06"
    assert data["previous_total"] == "200.00"
    assert data["price_difference"] == "100.00"
