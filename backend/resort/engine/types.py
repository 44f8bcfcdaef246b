"""Domain objects for the booking engine.

These are pure values with no persistence concerns; the ORM models in
``resort.models`` are mapped onto them by the SQL store.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Iterator, Mapping, Optional, Union

from resort.engine.errors import ErrorCode, InvalidInputError, InvalidRangeError

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")
CHILD_SHARE = Decimal("0.5")


def to_money(value: Union[Decimal, int, str]) -> Decimal:
    """Quantize to two fraction digits, rounding half-up."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


class ResourceType(str, Enum):
    EXCLUSIVE = "exclusive"
    SHARED = "shared"


class ReservationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    USED = "used"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


TERMINAL_STATUSES = frozenset({
    ReservationStatus.CHECKED_OUT,
    ReservationStatus.CANCELLED,
    ReservationStatus.NO_SHOW,
})

# Statuses that no longer hold an exclusive interval
NON_BLOCKING_STATUSES = frozenset({ReservationStatus.CANCELLED, ReservationStatus.CHECKED_OUT})

# Statuses that no longer consume shared capacity
NON_CONSUMING_STATUSES = frozenset({ReservationStatus.CANCELLED})

ADMITTED_STATUSES = frozenset({ReservationStatus.CHECKED_IN, ReservationStatus.USED})

ALLOWED_TRANSITIONS: Mapping[ReservationStatus, frozenset] = {
    ReservationStatus.PENDING: frozenset({
        ReservationStatus.CONFIRMED,
        ReservationStatus.CHECKED_IN,
        ReservationStatus.USED,
        ReservationStatus.CANCELLED,
        ReservationStatus.NO_SHOW,
    }),
    ReservationStatus.CONFIRMED: frozenset({
        ReservationStatus.CHECKED_IN,
        ReservationStatus.USED,
        ReservationStatus.CANCELLED,
        ReservationStatus.NO_SHOW,
    }),
    ReservationStatus.CHECKED_IN: frozenset({ReservationStatus.CHECKED_OUT}),
    ReservationStatus.USED: frozenset(),
    ReservationStatus.CHECKED_OUT: frozenset(),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.NO_SHOW: frozenset(),
}


@dataclass(frozen=True)
class DateRange:
    """Half-open range of nights ``[start, end)``."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise InvalidRangeError(
                f"End date {self.end.isoformat()} must be after start date {self.start.isoformat()}"
            )

    @property
    def nights(self) -> int:
        return (self.end - self.start).days

    def days(self) -> Iterator[date]:
        current = self.start
        while current < self.end:
            yield current
            current += timedelta(days=1)

    def overlaps(self, start: date, end: date) -> bool:
        return self.start < end and start < self.end


@dataclass(frozen=True)
class ExclusiveResource:
    """A unit that serves one reservation per instant (a chalet)."""

    id: int
    name: str
    base_price: Decimal
    max_guests: int = 1
    weekend_price: Optional[Decimal] = None
    is_active: bool = True


@dataclass(frozen=True)
class SharedSession:
    """A time slot with a finite headcount (a pool session, a dining seating).

    Adults pay ``adult_price`` (default ``price``), children ``child_price``
    (default half of ``price``). Infants are free and take no spot.
    """

    id: int
    name: str
    max_capacity: int
    price: Decimal
    adult_price: Optional[Decimal] = None
    child_price: Optional[Decimal] = None
    is_active: bool = True

    def __post_init__(self) -> None:
        if self.max_capacity <= 0:
            raise InvalidInputError("Session capacity must be positive")

    @property
    def adult_base_price(self) -> Decimal:
        return to_money(self.adult_price if self.adult_price is not None else self.price)

    @property
    def child_base_price(self) -> Decimal:
        if self.child_price is not None:
            return to_money(self.child_price)
        return to_money(self.price * CHILD_SHARE)


@dataclass(frozen=True)
class PartyComposition:
    """Who a ticket admits. ``headcount`` is what counts against capacity."""

    adults: int
    children: int = 0
    infants: int = 0

    def __post_init__(self) -> None:
        if min(self.adults, self.children, self.infants) < 0:
            raise InvalidInputError("Party counts cannot be negative", code=ErrorCode.INVALID_PARTY_SIZE)
        if self.headcount <= 0:
            raise InvalidInputError(
                f"Party size must be positive, got {self.headcount}", code=ErrorCode.INVALID_PARTY_SIZE
            )

    @classmethod
    def of(cls, party: Union["PartyComposition", int]) -> "PartyComposition":
        """A bare int is a party of adults."""
        if isinstance(party, PartyComposition):
            return party
        return cls(adults=party)

    @property
    def headcount(self) -> int:
        return self.adults + self.children

    def as_details(self) -> dict:
        return {"adults": self.adults, "children": self.children, "infants": self.infants}


class AddOnPriceType(str, Enum):
    PER_NIGHT = "per_night"
    ONE_TIME = "one_time"


@dataclass(frozen=True)
class AddOn:
    id: int
    name: str
    price: Decimal
    price_type: AddOnPriceType = AddOnPriceType.ONE_TIME
    is_active: bool = True

    def charge(self, quantity: int, nights: int) -> Decimal:
        multiplier = nights if self.price_type == AddOnPriceType.PER_NIGHT else 1
        return to_money(self.price * quantity * multiplier)


@dataclass(frozen=True)
class AddOnSelection:
    add_on_id: int
    quantity: int = 1

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise InvalidInputError("Add-on quantity must be positive")


@dataclass(frozen=True)
class PriceRule:
    """A date-bounded price modifier.

    ``resource_id=None`` scopes the rule to every resource of ``resource_type``.
    Exactly one of ``multiplier`` and ``override_price`` is set.
    """

    id: int
    resource_type: ResourceType
    start_date: date
    end_date: date
    created_at: datetime
    priority: int = 0
    resource_id: Optional[int] = None
    multiplier: Optional[Decimal] = None
    override_price: Optional[Decimal] = None
    is_active: bool = True
    name: str = ""

    def __post_init__(self) -> None:
        if (self.multiplier is None) == (self.override_price is None):
            raise InvalidInputError("A price rule needs exactly one of multiplier or override price")
        if self.multiplier is not None and self.multiplier <= 0:
            raise InvalidInputError("Multiplier must be positive")
        if self.override_price is not None and self.override_price <= 0:
            raise InvalidInputError("Override price must be positive")
        if self.end_date < self.start_date:
            raise InvalidRangeError("Rule end date precedes its start date")

    @property
    def is_resource_specific(self) -> bool:
        return self.resource_id is not None

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def applies_to(self, resource_id: int, resource_type: ResourceType) -> bool:
        if self.resource_type != resource_type:
            return False
        return self.resource_id is None or self.resource_id == resource_id

    def apply(self, base_price: Decimal) -> Decimal:
        if self.override_price is not None:
            return to_money(self.override_price)
        return to_money(base_price * self.multiplier)


@dataclass(frozen=True)
class Reservation:
    """A sold unit of a resource.

    Exclusive reservations carry ``interval_start``/``interval_end``; shared
    ones carry ``session_date``. ``party_size`` is the guest count for stays
    and the headcount consumed for sessions.
    """

    resource_id: int
    resource_type: ResourceType
    status: ReservationStatus
    unit_price_snapshot: Decimal
    total_price: Decimal
    created_at: datetime
    updated_at: datetime
    id: Optional[int] = None
    reference: str = ""
    interval_start: Optional[date] = None
    interval_end: Optional[date] = None
    session_date: Optional[date] = None
    party_size: int = 1
    add_ons_amount: Decimal = ZERO
    deposit_amount: Decimal = ZERO
    details: Mapping[str, Any] = field(default_factory=dict)
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    checked_in_at: Optional[datetime] = None
    checked_out_at: Optional[datetime] = None

    @property
    def is_exclusive(self) -> bool:
        return self.resource_type == ResourceType.EXCLUSIVE

    @property
    def is_frozen(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def nights(self) -> int:
        if not self.is_exclusive:
            return 0
        return (self.interval_end - self.interval_start).days

    def blocks_interval(self) -> bool:
        return self.is_exclusive and self.status not in NON_BLOCKING_STATUSES

    def consumes_capacity(self) -> bool:
        return not self.is_exclusive and self.status not in NON_CONSUMING_STATUSES

    def overlaps(self, start: date, end: date) -> bool:
        """Half-open overlap: ``[a, b)`` and ``[c, d)`` overlap iff a < d and c < b."""
        return self.interval_start < end and start < self.interval_end

    def can_transition_to(self, status: ReservationStatus) -> bool:
        return status in ALLOWED_TRANSITIONS[self.status]


@dataclass(frozen=True)
class CapacitySnapshot:
    session_id: int
    day: date
    max_capacity: int
    sold: int
    admitted: int

    @property
    def available(self) -> int:
        return self.max_capacity - self.sold
