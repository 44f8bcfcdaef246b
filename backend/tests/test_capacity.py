"""
Tests for the shared-session capacity ledger.
"""

from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from resort.engine.capacity import CapacityLedger
from resort.engine.clock import FixedClock
from resort.engine.errors import ErrorCode, Rejection, RejectionKind
from resort.engine.memory_store import InMemoryReservationStore
from resort.engine.store import shared_key
from resort.engine.types import CapacitySnapshot, ReservationStatus

DAY = date(2024, 8, 15)
PRICE = Decimal("15.00")


class RecordingCache:
    """Dict-backed stand-in for the Redis snapshot cache, generations included."""

    def __init__(self):
        self.entries = {}
        self.generations = {}
        self.invalidated = []

    async def get(self, session_id, day):
        return self.entries.get((session_id, day))

    async def generation(self, session_id, day):
        return self.generations.get((session_id, day), 0)

    async def set(self, snapshot, generation):
        key = (snapshot.session_id, snapshot.day)
        if generation != self.generations.get(key, 0):
            return
        self.entries[key] = snapshot

    async def invalidate(self, session_id, day):
        key = (session_id, day)
        self.invalidated.append(key)
        self.generations[key] = self.generations.get(key, 0) + 1
        self.entries.pop(key, None)


class CommitDuringCount(InMemoryReservationStore):
    """Runs ``during_count`` once, right after an unlocked read of the rows."""

    during_count = None

    async def list_reservations(self, query):
        rows = await super().list_reservations(query)
        if self._staged is None and self.during_count is not None:
            hook, self.during_count = self.during_count, None
            await hook()
        return rows


@pytest.fixture
def ledger(store, clock):
    return CapacityLedger(store, clock=clock)


@pytest.mark.asyncio
async def test_third_purchase_exceeding_capacity_is_rejected(ledger, pool):
    """10 + 15 sold of 40; a party of 20 finds only 15 spots."""
    first = await ledger.check_and_reserve(pool.id, DAY, 10, unit_price=PRICE)
    second = await ledger.check_and_reserve(pool.id, DAY, 15, unit_price=PRICE)
    third = await ledger.check_and_reserve(pool.id, DAY, 20, unit_price=PRICE)

    assert not isinstance(first, Rejection)
    assert not isinstance(second, Rejection)
    assert isinstance(third, Rejection)
    assert third.kind == RejectionKind.CAPACITY_EXCEEDED
    assert third.available == 15

    snapshot = await ledger.get_capacity_snapshot(pool.id, DAY)
    assert snapshot.sold == 25
    assert snapshot.available == 15


@pytest.mark.asyncio
async def test_exact_fit_is_admitted(ledger, pool):
    await ledger.check_and_reserve(pool.id, DAY, 25, unit_price=PRICE)
    last = await ledger.check_and_reserve(pool.id, DAY, 15, unit_price=PRICE)

    assert not isinstance(last, Rejection)
    snapshot = await ledger.get_capacity_snapshot(pool.id, DAY)
    assert snapshot.available == 0


@pytest.mark.asyncio
async def test_reservation_records_price_and_reference(ledger, pool):
    reservation = await ledger.check_and_reserve(pool.id, DAY, 3, unit_price=Decimal("12.5"))

    assert reservation.session_date == DAY
    assert reservation.party_size == 3
    assert reservation.unit_price_snapshot == Decimal("12.50")
    assert reservation.total_price == Decimal("37.50")
    assert reservation.status == ReservationStatus.CONFIRMED
    assert reservation.reference.startswith("P-260601-")


@pytest.mark.asyncio
async def test_dates_are_counted_separately(ledger, pool):
    await ledger.check_and_reserve(pool.id, DAY, 40, unit_price=PRICE)
    next_day = await ledger.check_and_reserve(pool.id, date(2024, 8, 16), 40, unit_price=PRICE)

    assert not isinstance(next_day, Rejection)


@pytest.mark.asyncio
@pytest.mark.parametrize("party_size", [0, -3])
async def test_non_positive_party_is_invalid(ledger, pool, party_size):
    outcome = await ledger.check_and_reserve(pool.id, DAY, party_size, unit_price=PRICE)
    assert outcome.kind == RejectionKind.INVALID_INPUT
    assert outcome.code == ErrorCode.INVALID_PARTY_SIZE


@pytest.mark.asyncio
async def test_unknown_session_is_not_found(ledger):
    outcome = await ledger.check_and_reserve(999, DAY, 1, unit_price=PRICE)
    assert outcome.kind == RejectionKind.NOT_FOUND


@pytest.mark.asyncio
async def test_cancelled_tickets_free_capacity_used_tickets_do_not(store, ledger, pool):
    cancelled = await ledger.check_and_reserve(pool.id, DAY, 10, unit_price=PRICE)
    used = await ledger.check_and_reserve(pool.id, DAY, 5, unit_price=PRICE)
    await store.update_reservation(replace(cancelled, status=ReservationStatus.CANCELLED))
    await store.update_reservation(replace(used, status=ReservationStatus.USED))

    snapshot = await ledger.get_capacity_snapshot(pool.id, DAY)
    assert snapshot.sold == 5
    assert snapshot.admitted == 5
    assert snapshot.available == 35


@pytest.mark.asyncio
async def test_snapshot_defaults_to_clock_today(store, pool):
    ledger = CapacityLedger(store, clock=FixedClock(datetime(2024, 8, 15, 23, 0, tzinfo=timezone.utc)))
    await ledger.check_and_reserve(pool.id, DAY, 4, unit_price=PRICE)

    snapshot = await ledger.get_capacity_snapshot(pool.id)
    assert snapshot.day == DAY
    assert snapshot.sold == 4


@pytest.mark.asyncio
async def test_move_checks_target_date_capacity(ledger, pool):
    ticket = await ledger.check_and_reserve(pool.id, DAY, 6, unit_price=PRICE)
    await ledger.check_and_reserve(pool.id, date(2024, 8, 16), 36, unit_price=PRICE)

    refused = await ledger.check_and_move(ticket.id, date(2024, 8, 16))
    assert refused.kind == RejectionKind.CAPACITY_EXCEEDED
    assert refused.available == 4

    moved = await ledger.check_and_move(ticket.id, date(2024, 8, 17))
    assert moved.session_date == date(2024, 8, 17)
    assert (await ledger.get_capacity_snapshot(pool.id, DAY)).sold == 0


@pytest.mark.asyncio
async def test_cache_is_filled_on_read_and_dropped_on_sale(store, clock, pool):
    cache = RecordingCache()
    ledger = CapacityLedger(store, clock=clock, cache=cache)

    first = await ledger.get_capacity_snapshot(pool.id, DAY)
    assert cache.entries[(pool.id, DAY)] == first

    await ledger.check_and_reserve(pool.id, DAY, 2, unit_price=PRICE)
    assert (pool.id, DAY) in cache.invalidated

    fresh = await ledger.get_capacity_snapshot(pool.id, DAY)
    assert fresh.sold == 2


@pytest.mark.asyncio
async def test_capacity_check_never_reads_cache(store, clock, pool):
    """A stale snapshot cannot admit an extra guest."""
    cache = RecordingCache()
    cache.entries[(pool.id, DAY)] = CapacitySnapshot(
        session_id=pool.id, day=DAY, max_capacity=40, sold=0, admitted=0
    )
    ledger = CapacityLedger(store, clock=clock, cache=cache)
    await CapacityLedger(store, clock=clock).check_and_reserve(pool.id, DAY, 40, unit_price=PRICE)

    outcome = await ledger.check_and_reserve(pool.id, DAY, 1, unit_price=PRICE)
    assert outcome.kind == RejectionKind.CAPACITY_EXCEEDED
    assert outcome.available == 0


@pytest.mark.asyncio
async def test_mixed_party_total_is_kept(ledger, pool):
    """Two adults at 15.00 and a child at 7.50."""
    reservation = await ledger.check_and_reserve(
        pool.id, DAY, 3, unit_price=PRICE, total_price=Decimal("37.5")
    )

    assert reservation.unit_price_snapshot == PRICE
    assert reservation.total_price == Decimal("37.50")


@pytest.mark.asyncio
async def test_sale_during_count_does_not_fill_cache(clock):
    """A snapshot counted before a sale must not be cached after it."""
    store = CommitDuringCount()
    pool = store.add_shared_session("Morning pool", 40, PRICE)
    cache = RecordingCache()
    ledger = CapacityLedger(store, clock=clock, cache=cache)

    async def sell():
        await ledger.check_and_reserve(pool.id, DAY, 2, unit_price=PRICE)

    store.during_count = sell
    counted = await ledger.get_capacity_snapshot(pool.id, DAY)

    assert counted.sold == 0
    assert (pool.id, DAY) not in cache.entries

    fresh = await ledger.get_capacity_snapshot(pool.id, DAY)
    assert fresh.sold == 2
    assert cache.entries[(pool.id, DAY)] == fresh


@pytest.mark.asyncio
async def test_ticket_unit_follows_a_moved_ticket(store, ledger, pool):
    """A unit opened from a stale copy locks the date the ticket is on now."""
    stale = await ledger.check_and_reserve(pool.id, DAY, 4, unit_price=PRICE)
    new_day = date(2024, 8, 16)
    await ledger.check_and_move(stale.id, new_day)

    async with ledger.ticket_unit(stale) as tx:
        current = await tx.get_reservation(stale.id)
        assert current.session_date == new_day
        assert store._locks[shared_key(pool.id, new_day)].locked()

    assert not store._locks[shared_key(pool.id, new_day)].locked()
