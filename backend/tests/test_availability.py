"""
Tests for half-open conflict detection on exclusive resources.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from resort.engine.availability import AvailabilityIndex, find_overlapping
from resort.engine.errors import InvalidRangeError
from resort.engine.types import Reservation, ReservationStatus, ResourceType

NOW = datetime(2026, 6, 1, 9, 30, tzinfo=timezone.utc)


async def book(store, resource_id, start, end, status=ReservationStatus.CONFIRMED, reference=None):
    return await store.insert_reservation(
        Reservation(
            reference=reference or f"C-TEST-{start.isoformat()}-{status.value}",
            resource_id=resource_id,
            resource_type=ResourceType.EXCLUSIVE,
            interval_start=start,
            interval_end=end,
            status=status,
            unit_price_snapshot=Decimal("100.00"),
            total_price=Decimal("100.00"),
            created_at=NOW,
            updated_at=NOW,
        )
    )


@pytest.mark.asyncio
async def test_adjacent_stays_do_not_conflict(store, chalet):
    """Check-out day of one stay is the check-in day of the next."""
    await book(store, chalet.id, date(2024, 6, 1), date(2024, 6, 3))
    index = AvailabilityIndex(store)

    assert await index.find_conflicts(chalet.id, date(2024, 6, 3), date(2024, 6, 5)) == []
    assert await index.find_conflicts(chalet.id, date(2024, 5, 30), date(2024, 6, 1)) == []


@pytest.mark.asyncio
async def test_overlapping_stay_is_reported(store, chalet):
    existing = await book(store, chalet.id, date(2024, 6, 1), date(2024, 6, 5))
    index = AvailabilityIndex(store)

    conflicts = await index.find_conflicts(chalet.id, date(2024, 6, 4), date(2024, 6, 6))
    assert [r.id for r in conflicts] == [existing.id]


@pytest.mark.asyncio
async def test_enclosing_and_enclosed_ranges_conflict(store, chalet):
    await book(store, chalet.id, date(2024, 6, 10), date(2024, 6, 12))
    index = AvailabilityIndex(store)

    assert len(await index.find_conflicts(chalet.id, date(2024, 6, 1), date(2024, 6, 30))) == 1
    assert len(await index.find_conflicts(chalet.id, date(2024, 6, 11), date(2024, 6, 12))) == 1


@pytest.mark.asyncio
async def test_other_resources_are_ignored(store, chalet):
    other = store.add_exclusive_resource("Chalet Pin", Decimal("80.00"))
    await book(store, other.id, date(2024, 6, 1), date(2024, 6, 5))

    assert await AvailabilityIndex(store).find_conflicts(chalet.id, date(2024, 6, 1), date(2024, 6, 5)) == []


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [ReservationStatus.CANCELLED, ReservationStatus.CHECKED_OUT])
async def test_released_statuses_do_not_block(store, chalet, status):
    await book(store, chalet.id, date(2024, 6, 1), date(2024, 6, 5), status=status)

    assert await AvailabilityIndex(store).find_conflicts(chalet.id, date(2024, 6, 2), date(2024, 6, 3)) == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status",
    [ReservationStatus.PENDING, ReservationStatus.CHECKED_IN, ReservationStatus.NO_SHOW],
)
async def test_held_statuses_block(store, chalet, status):
    await book(store, chalet.id, date(2024, 6, 1), date(2024, 6, 5), status=status)

    assert len(await AvailabilityIndex(store).find_conflicts(chalet.id, date(2024, 6, 2), date(2024, 6, 3))) == 1


@pytest.mark.asyncio
async def test_excluded_reservation_does_not_conflict_with_itself(store, chalet):
    existing = await book(store, chalet.id, date(2024, 6, 1), date(2024, 6, 5))
    index = AvailabilityIndex(store)

    conflicts = await index.find_conflicts(
        chalet.id, date(2024, 6, 2), date(2024, 6, 7), exclude_reservation_id=existing.id
    )
    assert conflicts == []


@pytest.mark.asyncio
async def test_empty_or_reversed_range_is_rejected(store, chalet):
    index = AvailabilityIndex(store)
    with pytest.raises(InvalidRangeError):
        await index.find_conflicts(chalet.id, date(2024, 6, 5), date(2024, 6, 5))
    with pytest.raises(InvalidRangeError):
        await index.find_conflicts(chalet.id, date(2024, 6, 5), date(2024, 6, 1))


@pytest.mark.asyncio
async def test_blocked_dates_lists_taken_nights_inside_window(store, chalet):
    await book(store, chalet.id, date(2024, 6, 1), date(2024, 6, 3))
    await book(store, chalet.id, date(2024, 6, 3), date(2024, 6, 4))
    await book(store, chalet.id, date(2024, 6, 8), date(2024, 6, 9), status=ReservationStatus.CANCELLED)

    blocked = await AvailabilityIndex(store).blocked_dates(chalet.id, date(2024, 6, 2), date(2024, 6, 10))
    assert blocked == [date(2024, 6, 2), date(2024, 6, 3)]


def test_find_overlapping_over_loaded_rows():
    rows = [
        Reservation(
            id=i,
            resource_id=1,
            resource_type=ResourceType.EXCLUSIVE,
            interval_start=start,
            interval_end=end,
            status=ReservationStatus.CONFIRMED,
            unit_price_snapshot=Decimal("1"),
            total_price=Decimal("1"),
            created_at=NOW,
            updated_at=NOW,
        )
        for i, (start, end) in enumerate(
            [(date(2024, 1, 1), date(2024, 1, 3)), (date(2024, 1, 3), date(2024, 1, 6))], start=1
        )
    ]
    assert [r.id for r in find_overlapping(rows, date(2024, 1, 2), date(2024, 1, 3))] == [1]
    assert [r.id for r in find_overlapping(rows, date(2024, 1, 2), date(2024, 1, 4))] == [1, 2]
    assert find_overlapping(rows, date(2024, 1, 6), date(2024, 1, 8)) == []
