"""
Availability index for exclusive-use resources.

A stay occupies whole nights ``[check_in, check_out)``. Two stays conflict iff
their half-open intervals overlap, so a check-out and a check-in on the same
date (same-day turnover) never conflict.
"""

from datetime import date
from typing import Iterable, Optional

from resort.engine.filters import BLOCKING, DateRangeFilter, ReservationFilter
from resort.engine.store import ReservationStore
from resort.engine.types import DateRange, Reservation, ResourceType


def find_overlapping(
    reservations: Iterable[Reservation],
    start: date,
    end: date,
    exclude_reservation_id: Optional[int] = None,
) -> list[Reservation]:
    """Pure overlap filter over already-loaded reservations."""
    return [
        r for r in reservations
        if r.blocks_interval()
        and r.id != exclude_reservation_id
        and r.overlaps(start, end)
    ]


class AvailabilityIndex:
    """Read-only conflict queries; takes no locks."""

    def __init__(self, store: ReservationStore) -> None:
        self._store = store

    async def find_conflicts(
        self,
        resource_id: int,
        start: date,
        end: date,
        exclude_reservation_id: Optional[int] = None,
    ) -> list[Reservation]:
        """
        Return blocking reservations on the resource overlapping ``[start, end)``.

        Raises:
            InvalidRangeError: ``end <= start``
        """
        window = DateRange(start, end)
        candidates = await self._store.list_reservations(
            ReservationFilter(
                resource_type=ResourceType.EXCLUSIVE,
                resource_id=resource_id,
                statuses=BLOCKING,
                dates=DateRangeFilter(window.start, window.end),
                exclude_reservation_id=exclude_reservation_id,
            )
        )
        # The half-open predicate here is authoritative over the store query.
        return find_overlapping(candidates, start, end, exclude_reservation_id)

    async def blocked_dates(self, resource_id: int, start: date, end: date) -> list[date]:
        """Nights in ``[start, end)`` already held by a blocking reservation."""
        window = DateRange(start, end)
        blocked: set[date] = set()
        for reservation in await self.find_conflicts(resource_id, start, end):
            stay = DateRange(reservation.interval_start, reservation.interval_end)
            blocked.update(night for night in stay.days() if window.start <= night < window.end)
        return sorted(blocked)
