"""
Booking coordinator: the engine's entry point for order/booking controllers.

Per attempt:

  Requested -> Feasible -> Priced -> Committed
           \\-> Rejected(kind)

Stays (exclusive resources):
  1. conflict pre-check without locks (fast rejection, returns conflicts)
  2. price every night, add add-ons and deposit
  3. atomic unit keyed by resource: re-check conflicts, insert

Tickets (shared sessions):
  1. price first (price does not depend on the capacity outcome)
  2. CapacityLedger.check_and_reserve in an atomic unit keyed by (session, date)

Every business failure comes back as a Rejection value. Only store outages
(StoreUnavailableError) propagate as exceptions; the engine never retries.
A stay and a ticket bought in one checkout are two independent calls with
two independent results.
"""

import time
from dataclasses import dataclass, replace
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Literal, Mapping, Optional, Sequence, Union

from resort.core.config import Settings
from resort.core.logging import get_logger
from resort.core.metrics import (
    commit_latency,
    price_rule_ambiguities,
    record_reservation_attempt,
    record_transition,
)
from resort.engine.availability import AvailabilityIndex
from resort.engine.capacity import CapacityLedger
from resort.engine.clock import Clock
from resort.engine.errors import (
    AmbiguousPriceRuleError,
    EngineError,
    InvalidInputError,
    Rejection,
    RejectionKind,
    UniqueViolationError,
    invalid_input,
    invalid_transition,
    not_found,
    rejection_from_error,
)
from resort.engine.pricing import PriceRuleResolver, expand_weekend_rules, total_of
from resort.engine.references import STAY_PREFIX, new_reference
from resort.engine.store import ReservationStore, exclusive_key
from resort.engine.types import (
    ZERO,
    AddOnSelection,
    CapacitySnapshot,
    DateRange,
    ExclusiveResource,
    PartyComposition,
    Reservation,
    ReservationStatus,
    ResourceType,
    SharedSession,
    to_money,
)

logger = get_logger(__name__)

INITIAL_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})
MODIFIABLE_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})


@dataclass(frozen=True)
class BookingPolicy:
    default_status: ReservationStatus = ReservationStatus.CONFIRMED
    weekend_days: frozenset = frozenset({5, 6})
    weekend_priority: int = 0
    deposit_type: Literal["percentage", "fixed"] = "percentage"
    deposit_percentage: Decimal = Decimal("30")
    deposit_fixed: Decimal = Decimal("100.00")
    max_stay_nights: int = 30

    @classmethod
    def from_settings(cls, settings: Settings) -> "BookingPolicy":
        return cls(
            default_status=ReservationStatus(settings.DEFAULT_RESERVATION_STATUS),
            weekend_days=frozenset(settings.WEEKEND_DAYS),
            weekend_priority=settings.WEEKEND_RULE_PRIORITY,
            deposit_type=settings.DEPOSIT_TYPE,
            deposit_percentage=settings.DEPOSIT_PERCENTAGE,
            deposit_fixed=settings.DEPOSIT_FIXED,
            max_stay_nights=settings.MAX_STAY_NIGHTS,
        )

    def deposit_for(self, accommodation: Decimal, total: Decimal) -> Decimal:
        if self.deposit_type == "fixed":
            return to_money(min(self.deposit_fixed, total))
        return to_money(accommodation * self.deposit_percentage / Decimal("100"))


@dataclass(frozen=True)
class StayPrice:
    nightly_prices: tuple[tuple[date, Decimal], ...]
    accommodation_total: Decimal
    add_ons_amount: Decimal
    add_on_lines: tuple[Mapping[str, Any], ...]
    deposit_amount: Decimal

    @property
    def total_price(self) -> Decimal:
        return to_money(self.accommodation_total + self.add_ons_amount)


@dataclass(frozen=True)
class ExclusiveQuote:
    resource_id: int
    start: date
    end: date
    feasible: bool
    conflicts: tuple[Reservation, ...]
    price: StayPrice

    @property
    def total_price(self) -> Decimal:
        return self.price.total_price

    @property
    def nights(self) -> int:
        return (self.end - self.start).days


@dataclass(frozen=True)
class TicketPrice:
    """Per-head prices for one session date, already rule-resolved."""

    adult_unit_price: Decimal
    child_unit_price: Decimal
    party: PartyComposition

    @property
    def total_price(self) -> Decimal:
        return to_money(
            self.adult_unit_price * self.party.adults + self.child_unit_price * self.party.children
        )


@dataclass(frozen=True)
class SharedQuote:
    session_id: int
    day: date
    price: TicketPrice
    available: int

    @property
    def party_size(self) -> int:
        return self.price.party.headcount

    @property
    def unit_price(self) -> Decimal:
        return self.price.adult_unit_price

    @property
    def feasible(self) -> bool:
        return self.party_size <= self.available

    @property
    def total_price(self) -> Decimal:
        return self.price.total_price


class TicketRefusal(str, Enum):
    """Why a ticket does not open the gate."""

    WRONG_DATE = "WRONG_DATE"
    ALREADY_USED = "ALREADY_USED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"
    NOT_CONFIRMED = "NOT_CONFIRMED"


@dataclass(frozen=True)
class TicketValidation:
    reservation: Reservation
    day: date
    refusal: Optional[TicketRefusal] = None

    @property
    def valid(self) -> bool:
        return self.refusal is None


@dataclass(frozen=True)
class DateChange:
    reservation: Reservation
    previous_total: Decimal

    @property
    def price_difference(self) -> Decimal:
        """Positive: guest owes more. Negative: amount to refund."""
        return to_money(self.reservation.total_price - self.previous_total)


class BookingCoordinator:

    def __init__(
        self,
        store: ReservationStore,
        clock: Optional[Clock] = None,
        cache=None,
        policy: Optional[BookingPolicy] = None,
    ) -> None:
        self._store = store
        self._clock = clock or Clock()
        self._policy = policy or BookingPolicy()
        self._availability = AvailabilityIndex(store)
        self._ledger = CapacityLedger(store, clock=self._clock, cache=cache)

    # ------------------------------------------------------------------
    # Exclusive resources
    # ------------------------------------------------------------------

    async def quote_exclusive(
        self,
        resource_id: int,
        start: date,
        end: date,
        *,
        guests: int = 1,
        add_ons: Sequence[AddOnSelection] = (),
    ) -> Union[ExclusiveQuote, Rejection]:
        """Feasibility and price for a stay. Read-only."""
        resource = await self._load_stay_resource(resource_id, start, end)
        if isinstance(resource, Rejection):
            return resource

        conflicts = await self._availability.find_conflicts(resource_id, start, end)
        price = await self._price_stay(self._store, resource, start, end, guests, add_ons)
        if isinstance(price, Rejection):
            return price

        return ExclusiveQuote(
            resource_id=resource_id,
            start=start,
            end=end,
            feasible=not conflicts,
            conflicts=tuple(conflicts),
            price=price,
        )

    async def commit_exclusive(
        self,
        resource_id: int,
        start: date,
        end: date,
        *,
        guests: int = 1,
        add_ons: Sequence[AddOnSelection] = (),
        metadata: Optional[Mapping[str, Any]] = None,
        status: Optional[ReservationStatus] = None,
    ) -> Union[Reservation, Rejection]:
        started = time.perf_counter()
        outcome = await self._commit_exclusive(resource_id, start, end, guests, add_ons, metadata, status)
        self._record_commit(ResourceType.EXCLUSIVE, outcome, started, resource_id=resource_id)
        return outcome

    async def _commit_exclusive(
        self,
        resource_id: int,
        start: date,
        end: date,
        guests: int,
        add_ons: Sequence[AddOnSelection],
        metadata: Optional[Mapping[str, Any]],
        status: Optional[ReservationStatus],
    ) -> Union[Reservation, Rejection]:
        status = status or self._policy.default_status
        if status not in INITIAL_STATUSES:
            return invalid_input(f"New reservations cannot start as {status.value}")

        resource = await self._load_stay_resource(resource_id, start, end)
        if isinstance(resource, Rejection):
            return resource

        # Requested -> Feasible
        conflicts = await self._availability.find_conflicts(resource_id, start, end)
        if conflicts:
            return _conflict(conflicts)

        # Feasible -> Priced
        price = await self._price_stay(self._store, resource, start, end, guests, add_ons)
        if isinstance(price, Rejection):
            return price

        # Priced -> Committed, re-validated under the resource lock
        now = self._clock.now()
        draft = Reservation(
            reference=new_reference(STAY_PREFIX, now),
            resource_id=resource_id,
            resource_type=ResourceType.EXCLUSIVE,
            interval_start=start,
            interval_end=end,
            party_size=guests,
            status=status,
            unit_price_snapshot=price.accommodation_total,
            add_ons_amount=price.add_ons_amount,
            deposit_amount=price.deposit_amount,
            total_price=price.total_price,
            details={**dict(metadata or {}), "add_ons": list(price.add_on_lines)},
            created_at=now,
            updated_at=now,
        )
        try:
            async with self._store.atomic(exclusive_key(resource_id)) as tx:
                conflicts = await AvailabilityIndex(tx).find_conflicts(resource_id, start, end)
                if conflicts:
                    return _conflict(conflicts)
                return await tx.insert_reservation(draft)
        except UniqueViolationError as e:
            logger.warning("stay_unique_violation", resource_id=resource_id, error=e.message)
            return Rejection(
                kind=RejectionKind.CONFLICT,
                message="Resource is already booked for the selected dates",
                code=e.code,
            )

    async def modify_exclusive_dates(
        self,
        reservation_id: int,
        start: date,
        end: date,
    ) -> Union[DateChange, Rejection]:
        """Move a stay to new dates, ignoring its own current interval."""
        current = await self._store.get_reservation(reservation_id)
        if current is None or not current.is_exclusive:
            return not_found(f"Reservation {reservation_id} not found")
        if current.status not in MODIFIABLE_STATUSES:
            return invalid_transition(f"Cannot change dates of a reservation with status: {current.status.value}")

        resource = await self._load_stay_resource(current.resource_id, start, end)
        if isinstance(resource, Rejection):
            return resource

        conflicts = await self._availability.find_conflicts(
            current.resource_id, start, end, exclude_reservation_id=reservation_id
        )
        if conflicts:
            return _conflict(conflicts)

        selections = [
            AddOnSelection(add_on_id=line["add_on_id"], quantity=line["quantity"])
            for line in current.details.get("add_ons", [])
        ]
        price = await self._price_stay(self._store, resource, start, end, current.party_size, selections)
        if isinstance(price, Rejection):
            return price

        try:
            async with self._store.atomic(exclusive_key(current.resource_id)) as tx:
                current = await tx.get_reservation(reservation_id)
                if current.status not in MODIFIABLE_STATUSES:
                    return invalid_transition(
                        f"Cannot change dates of a reservation with status: {current.status.value}"
                    )
                conflicts = await AvailabilityIndex(tx).find_conflicts(
                    current.resource_id, start, end, exclude_reservation_id=reservation_id
                )
                if conflicts:
                    return _conflict(conflicts)
                updated = await tx.update_reservation(
                    replace(
                        current,
                        interval_start=start,
                        interval_end=end,
                        unit_price_snapshot=price.accommodation_total,
                        add_ons_amount=price.add_ons_amount,
                        deposit_amount=price.deposit_amount,
                        total_price=price.total_price,
                        details={**dict(current.details), "add_ons": list(price.add_on_lines)},
                        updated_at=self._clock.now(),
                    )
                )
        except UniqueViolationError as e:
            return Rejection(kind=RejectionKind.CONFLICT, message="Dates are no longer available", code=e.code)

        change = DateChange(reservation=updated, previous_total=current.total_price)
        logger.info(
            "stay_dates_changed",
            reservation_id=reservation_id,
            check_in=start.isoformat(),
            check_out=end.isoformat(),
            price_difference=str(change.price_difference),
        )
        return change

    async def blocked_dates(self, resource_id: int, start: date, end: date) -> Union[list[date], Rejection]:
        resource = await self._load_stay_resource(resource_id, start, end, check_length=False)
        if isinstance(resource, Rejection):
            return resource
        return await self._availability.blocked_dates(resource_id, start, end)

    # ------------------------------------------------------------------
    # Shared sessions
    # ------------------------------------------------------------------

    async def quote_shared(
        self,
        session_id: int,
        day: date,
        party: Union[PartyComposition, int],
    ) -> Union[SharedQuote, Rejection]:
        """Per-head prices and advisory availability for a ticket. Read-only."""
        party = _party(party)
        if isinstance(party, Rejection):
            return party
        session = await self._load_session(session_id)
        if isinstance(session, Rejection):
            return session

        price = await self._price_ticket(session, day, party)
        if isinstance(price, Rejection):
            return price

        snapshot = await self._ledger.get_capacity_snapshot(session_id, day)
        if isinstance(snapshot, Rejection):
            return snapshot

        return SharedQuote(session_id=session_id, day=day, price=price, available=snapshot.available)

    async def commit_shared(
        self,
        session_id: int,
        day: date,
        party: Union[PartyComposition, int],
        *,
        metadata: Optional[Mapping[str, Any]] = None,
        status: Optional[ReservationStatus] = None,
    ) -> Union[Reservation, Rejection]:
        """
        Sell a ticket. A bare int is a party of adults; infants in a
        PartyComposition ride free and take no spot.
        """
        started = time.perf_counter()
        outcome = await self._commit_shared(session_id, day, party, metadata, status)
        self._record_commit(ResourceType.SHARED, outcome, started, resource_id=session_id)
        return outcome

    async def _commit_shared(
        self,
        session_id: int,
        day: date,
        party: Union[PartyComposition, int],
        metadata: Optional[Mapping[str, Any]],
        status: Optional[ReservationStatus],
    ) -> Union[Reservation, Rejection]:
        status = status or self._policy.default_status
        if status not in INITIAL_STATUSES:
            return invalid_input(f"New reservations cannot start as {status.value}")

        party = _party(party)
        if isinstance(party, Rejection):
            return party
        session = await self._load_session(session_id)
        if isinstance(session, Rejection):
            return session

        price = await self._price_ticket(session, day, party)
        if isinstance(price, Rejection):
            return price

        return await self._ledger.check_and_reserve(
            session_id,
            day,
            party.headcount,
            unit_price=price.adult_unit_price,
            total_price=price.total_price,
            status=status,
            details={
                **dict(metadata or {}),
                "party": party.as_details(),
                "child_unit_price": str(price.child_unit_price),
            },
        )

    async def reschedule_shared(self, reservation_id: int, new_day: date) -> Union[Reservation, Rejection]:
        return await self._ledger.check_and_move(reservation_id, new_day)

    async def get_capacity_snapshot(
        self,
        session_id: int,
        day: Optional[date] = None,
    ) -> Union[CapacitySnapshot, Rejection]:
        return await self._ledger.get_capacity_snapshot(session_id, day)

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    async def get_reservation(self, reservation_id: int) -> Union[Reservation, Rejection]:
        reservation = await self._store.get_reservation(reservation_id)
        if reservation is None:
            return not_found(f"Reservation {reservation_id} not found")
        return reservation

    async def get_reservation_by_reference(self, reference: str) -> Union[Reservation, Rejection]:
        """Look up a stay or ticket by the number printed on it (C-... / P-...)."""
        reservation = await self._store.get_by_reference(reference.strip().upper())
        if reservation is None:
            return not_found(f"Reservation {reference} not found")
        return reservation

    async def validate_ticket(self, reference: str, day: Optional[date] = None) -> Union[TicketValidation, Rejection]:
        """
        Gate check for a ticket number. Read-only: admitting the party is a
        separate check_in.

        ``day`` defaults to the clock's today. The date is checked first, so a
        cancelled ticket for another day reports WRONG_DATE.
        """
        ticket = await self._store.get_by_reference(reference.strip().upper())
        if ticket is None or ticket.is_exclusive:
            return not_found(f"Ticket {reference} not found")

        day = day or self._clock.today()
        refusal = None
        if ticket.session_date != day:
            refusal = TicketRefusal.WRONG_DATE
        elif ticket.status == ReservationStatus.USED:
            refusal = TicketRefusal.ALREADY_USED
        elif ticket.status == ReservationStatus.CANCELLED:
            refusal = TicketRefusal.CANCELLED
        elif ticket.status == ReservationStatus.NO_SHOW:
            refusal = TicketRefusal.NO_SHOW
        elif ticket.status != ReservationStatus.CONFIRMED:
            refusal = TicketRefusal.NOT_CONFIRMED

        logger.info(
            "ticket_validated",
            reference=ticket.reference,
            date=day.isoformat(),
            valid=refusal is None,
            refusal=refusal.value if refusal else None,
        )
        return TicketValidation(reservation=ticket, day=day, refusal=refusal)

    async def cancel(self, reservation_id: int, reason: str = "") -> Union[Reservation, Rejection]:
        """Cancelled reservations stop counting immediately; the row is kept."""
        return await self._transition(reservation_id, ReservationStatus.CANCELLED, reason=reason)

    async def confirm(self, reservation_id: int) -> Union[Reservation, Rejection]:
        return await self._transition(reservation_id, ReservationStatus.CONFIRMED)

    async def check_in(self, reservation_id: int) -> Union[Reservation, Rejection]:
        """Stays become checked_in, tickets become used."""
        return await self._transition(reservation_id, None)

    async def check_out(self, reservation_id: int) -> Union[Reservation, Rejection]:
        return await self._transition(reservation_id, ReservationStatus.CHECKED_OUT)

    async def mark_no_show(self, reservation_id: int) -> Union[Reservation, Rejection]:
        return await self._transition(reservation_id, ReservationStatus.NO_SHOW)

    async def _transition(
        self,
        reservation_id: int,
        target: Optional[ReservationStatus],
        reason: str = "",
    ) -> Union[Reservation, Rejection]:
        current = await self._store.get_reservation(reservation_id)
        if current is None:
            return not_found(f"Reservation {reservation_id} not found")

        if current.is_exclusive:
            unit = self._store.atomic(exclusive_key(current.resource_id))
        else:
            # Follows the ticket if a concurrent reschedule moves it first
            unit = self._ledger.ticket_unit(current)

        async with unit as tx:
            current = await tx.get_reservation(reservation_id)
            if target is None:
                target = ReservationStatus.CHECKED_IN if current.is_exclusive else ReservationStatus.USED
            if not current.can_transition_to(target):
                logger.warning(
                    "transition_refused",
                    reservation_id=reservation_id,
                    from_status=current.status.value,
                    to_status=target.value,
                )
                return invalid_transition(
                    f"Cannot move reservation from {current.status.value} to {target.value}"
                )

            now = self._clock.now()
            changes: dict[str, Any] = {"status": target, "updated_at": now}
            if target == ReservationStatus.CANCELLED:
                changes.update(cancelled_at=now, cancellation_reason=reason or None)
            elif target in (ReservationStatus.CHECKED_IN, ReservationStatus.USED):
                changes["checked_in_at"] = now
            elif target == ReservationStatus.CHECKED_OUT:
                changes["checked_out_at"] = now
            updated = await tx.update_reservation(replace(current, **changes))

        if not updated.is_exclusive:
            await self._ledger.release(updated.resource_id, updated.session_date)

        record_transition(target.value)
        logger.info(
            "reservation_status_changed",
            reservation_id=reservation_id,
            reference=updated.reference,
            from_status=current.status.value,
            to_status=target.value,
        )
        return updated

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _load_stay_resource(
        self,
        resource_id: int,
        start: date,
        end: date,
        check_length: bool = True,
    ) -> Union[ExclusiveResource, Rejection]:
        try:
            stay = DateRange(start, end)
        except InvalidInputError as e:
            return rejection_from_error(e)
        if check_length and stay.nights > self._policy.max_stay_nights:
            return invalid_input(f"Stays are limited to {self._policy.max_stay_nights} nights")

        resource = await self._store.get_exclusive_resource(resource_id)
        if resource is None:
            return not_found(f"Resource {resource_id} not found")
        if not resource.is_active:
            return invalid_input(f"Resource {resource_id} is not available for booking")
        return resource

    async def _load_session(self, session_id: int) -> Union[SharedSession, Rejection]:
        session = await self._store.get_shared_session(session_id)
        if session is None:
            return not_found(f"Session {session_id} not found")
        if not session.is_active:
            return invalid_input(f"Session {session_id} is not available for booking")
        return session

    async def _price_stay(
        self,
        store: ReservationStore,
        resource: ExclusiveResource,
        start: date,
        end: date,
        guests: int,
        selections: Sequence[AddOnSelection],
    ) -> Union[StayPrice, Rejection]:
        if guests <= 0:
            return invalid_input(f"Guest count must be positive, got {guests}")
        if guests > resource.max_guests:
            return invalid_input(f"{resource.name} takes at most {resource.max_guests} guests")

        last_night = end - timedelta(days=1)
        rules = await store.list_active_rules(resource.id, ResourceType.EXCLUSIVE, start, last_night)
        rules.extend(
            expand_weekend_rules(
                resource, start, end, self._policy.weekend_days, self._policy.weekend_priority
            )
        )
        try:
            nightly = PriceRuleResolver(rules).resolve_price_range(
                resource.base_price, resource.id, ResourceType.EXCLUSIVE, start, end
            )
        except EngineError as e:
            return self._pricing_failure(e, resource.id)

        nights = (end - start).days
        add_ons_amount = ZERO
        lines = []
        if selections:
            found = {a.id: a for a in await store.get_add_ons([s.add_on_id for s in selections])}
            for selection in selections:
                add_on = found.get(selection.add_on_id)
                if add_on is None or not add_on.is_active:
                    return invalid_input(f"Add-on {selection.add_on_id} is not available")
                subtotal = add_on.charge(selection.quantity, nights)
                add_ons_amount += subtotal
                lines.append({
                    "add_on_id": add_on.id,
                    "name": add_on.name,
                    "quantity": selection.quantity,
                    "unit_price": str(add_on.price),
                    "price_type": add_on.price_type.value,
                    "subtotal": str(subtotal),
                })

        accommodation = total_of(nightly)
        add_ons_amount = to_money(add_ons_amount)
        return StayPrice(
            nightly_prices=tuple(nightly),
            accommodation_total=accommodation,
            add_ons_amount=add_ons_amount,
            add_on_lines=tuple(lines),
            deposit_amount=self._policy.deposit_for(accommodation, accommodation + add_ons_amount),
        )

    async def _price_ticket(
        self,
        session: SharedSession,
        day: date,
        party: PartyComposition,
    ) -> Union[TicketPrice, Rejection]:
        """Run the adult and child base prices through the same day's rules."""
        rules = await self._store.list_active_rules(session.id, ResourceType.SHARED, day, day)
        resolver = PriceRuleResolver(rules)
        try:
            adult = resolver.resolve_price(session.adult_base_price, session.id, ResourceType.SHARED, day)
            child = session.child_base_price
            if child > ZERO:
                child = resolver.resolve_price(child, session.id, ResourceType.SHARED, day)
        except EngineError as e:
            return self._pricing_failure(e, session.id)
        return TicketPrice(adult_unit_price=adult, child_unit_price=child, party=party)

    def _pricing_failure(self, error: EngineError, resource_id: int) -> Rejection:
        if isinstance(error, AmbiguousPriceRuleError):
            price_rule_ambiguities.inc()
            logger.error(
                "price_rule_ambiguous",
                resource_id=resource_id,
                date=error.day.isoformat(),
                rule_ids=[rule.id for rule in error.rules],
            )
        return rejection_from_error(error)

    def _record_commit(
        self,
        resource_type: ResourceType,
        outcome: Union[Reservation, Rejection],
        started: float,
        **context: Any,
    ) -> None:
        commit_latency.labels(resource_type=resource_type.value).observe(time.perf_counter() - started)
        if isinstance(outcome, Rejection):
            record_reservation_attempt(resource_type.value, outcome.kind.value.lower())
            logger.warning(
                "reservation_rejected",
                resource_type=resource_type.value,
                kind=outcome.kind.value,
                reason=outcome.message,
                **context,
            )
            return

        record_reservation_attempt(resource_type.value, "committed")
        logger.info(
            "reservation_committed",
            resource_type=resource_type.value,
            reservation_id=outcome.id,
            reference=outcome.reference,
            status=outcome.status.value,
            total=str(outcome.total_price),
            **context,
        )


def _conflict(conflicts: Sequence[Reservation]) -> Rejection:
    return Rejection(
        kind=RejectionKind.CONFLICT,
        message="Resource is already booked for the selected dates",
        conflicts=tuple(conflicts),
    )


def _party(party: Union[PartyComposition, int]) -> Union[PartyComposition, Rejection]:
    try:
        return PartyComposition.of(party)
    except InvalidInputError as e:
        return rejection_from_error(e)
