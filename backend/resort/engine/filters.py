"""Reservation query filters.

A small closed set of filter structs replaces open key/value filter bags.
Invalid combinations fail when the filter is built, not when a store runs it.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

from resort.engine.errors import InvalidInputError, InvalidRangeError
from resort.engine.types import (
    NON_BLOCKING_STATUSES,
    NON_CONSUMING_STATUSES,
    Reservation,
    ReservationStatus,
    ResourceType,
)


@dataclass(frozen=True)
class StatusFilter:
    """Either an allow-list or a deny-list of statuses, never both."""

    include: Optional[frozenset] = None
    exclude: frozenset = frozenset()

    def __post_init__(self) -> None:
        if self.include is not None and self.exclude:
            raise InvalidInputError("Status filter takes include or exclude, not both")
        if self.include is not None and not self.include:
            raise InvalidInputError("Status filter include set must not be empty")

    @classmethod
    def only(cls, statuses: Iterable[ReservationStatus]) -> "StatusFilter":
        return cls(include=frozenset(statuses))

    @classmethod
    def excluding(cls, statuses: Iterable[ReservationStatus]) -> "StatusFilter":
        return cls(exclude=frozenset(statuses))

    @classmethod
    def any(cls) -> "StatusFilter":
        return cls()

    def matches(self, status: ReservationStatus) -> bool:
        if self.include is not None:
            return status in self.include
        return status not in self.exclude


BLOCKING = StatusFilter.excluding(NON_BLOCKING_STATUSES)
CONSUMING = StatusFilter.excluding(NON_CONSUMING_STATUSES)


@dataclass(frozen=True)
class DateRangeFilter:
    """Half-open ``[start, end)`` window.

    Exclusive reservations match when their interval overlaps the window;
    shared reservations match when their session date falls inside it.
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise InvalidRangeError("Date filter end must be after its start")

    @classmethod
    def single_day(cls, day: date) -> "DateRangeFilter":
        return cls(start=day, end=day + timedelta(days=1))

    def matches(self, reservation: Reservation) -> bool:
        if reservation.is_exclusive:
            return reservation.overlaps(self.start, self.end)
        return self.start <= reservation.session_date < self.end


@dataclass(frozen=True)
class ReservationFilter:
    resource_type: ResourceType
    resource_id: int
    statuses: StatusFilter = StatusFilter()
    dates: Optional[DateRangeFilter] = None
    exclude_reservation_id: Optional[int] = None

    def matches(self, reservation: Reservation) -> bool:
        if reservation.resource_type != self.resource_type:
            return False
        if reservation.resource_id != self.resource_id:
            return False
        if not self.statuses.matches(reservation.status):
            return False
        if self.exclude_reservation_id is not None and reservation.id == self.exclude_reservation_id:
            return False
        if self.dates is not None and not self.dates.matches(reservation):
            return False
        return True
