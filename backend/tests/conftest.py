"""
Pytest fixtures for the booking engine, its in-memory store, and the HTTP client.

The engine runs against InMemoryReservationStore for isolation and speed;
test_sql_store.py covers the PostgreSQL store when TEST_DATABASE_URL is set.
"""

import os

# Settings are cached on first use: configure before importing the app.
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("STORE_BACKEND", "memory")

from datetime import datetime, timezone
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from resort.main import app
from resort.api.deps import get_coordinator
from resort.engine.clock import FixedClock
from resort.engine.coordinator import BookingCoordinator, BookingPolicy
from resort.engine.memory_store import InMemoryReservationStore
from resort.engine.types import AddOnPriceType, ExclusiveResource, SharedSession

NOW = datetime(2026, 6, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def store() -> InMemoryReservationStore:
    return InMemoryReservationStore()


@pytest.fixture
def coordinator(store: InMemoryReservationStore, clock: FixedClock) -> BookingCoordinator:
    return BookingCoordinator(store, clock=clock, policy=BookingPolicy())


@pytest.fixture
def chalet(store: InMemoryReservationStore) -> ExclusiveResource:
    """Chalet at 100.00 a night for up to 4 guests, no weekend rate."""
    return store.add_exclusive_resource("Chalet Cedre", Decimal("100.00"), max_guests=4)


@pytest.fixture
def pool(store: InMemoryReservationStore) -> SharedSession:
    """Pool session with 40 spots at 15.00 per person."""
    return store.add_shared_session("Morning pool", 40, Decimal("15.00"))


@pytest.fixture
def breakfast(store: InMemoryReservationStore):
    return store.add_add_on("Breakfast", Decimal("12.50"), price_type=AddOnPriceType.PER_NIGHT)


@pytest.fixture
def cleaning(store: InMemoryReservationStore):
    return store.add_add_on("Final cleaning", Decimal("40.00"), price_type=AddOnPriceType.ONE_TIME)


@pytest_asyncio.fixture(scope="function")
async def client(coordinator: BookingCoordinator) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the coordinator dependency with the test one."""

    app.dependency_overrides[get_coordinator] = lambda: coordinator

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
