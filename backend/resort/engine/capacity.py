"""
Capacity ledger for shared sessions.

Sold capacity is never stored as a counter. Every decision aggregates the
reservation rows for ``(session_id, date)``:

  sold      = sum(party_size) over non-cancelled reservations
  admitted  = sum(party_size) over checked-in / used reservations
  available = max_capacity - sold

``party_size`` is the ticket's headcount (adults and children; infants take no
spot). ``admitted`` is informational: a used ticket keeps occupying its slot
for the day. The check and the insert run in one atomic unit keyed by
``(session_id, date)``, so two purchases for the last spots cannot both see
room.

Any write to an existing ticket happens inside ``ticket_unit``, which holds
the key of the date the ticket is on at that moment. A reschedule and a
cancellation of the same ticket therefore always serialize.
"""

from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Any, AsyncIterator, Iterable, Mapping, Optional, Union

from resort.core.logging import get_logger
from resort.engine.clock import Clock
from resort.engine.errors import (
    ErrorCode,
    Rejection,
    RejectionKind,
    invalid_input,
    invalid_transition,
    not_found,
)
from resort.engine.filters import CONSUMING, DateRangeFilter, ReservationFilter
from resort.engine.references import TICKET_PREFIX, new_reference
from resort.engine.store import ReservationStore, shared_key
from resort.engine.types import (
    ADMITTED_STATUSES,
    CapacitySnapshot,
    Reservation,
    ReservationStatus,
    ResourceType,
    SharedSession,
    to_money,
)

logger = get_logger(__name__)

MOVABLE_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})


def compute_snapshot(
    session: SharedSession,
    day: date,
    reservations: Iterable[Reservation],
) -> CapacitySnapshot:
    sold = 0
    admitted = 0
    for reservation in reservations:
        if not reservation.consumes_capacity() or reservation.session_date != day:
            continue
        sold += reservation.party_size
        if reservation.status in ADMITTED_STATUSES:
            admitted += reservation.party_size
    return CapacitySnapshot(
        session_id=session.id,
        day=day,
        max_capacity=session.max_capacity,
        sold=sold,
        admitted=admitted,
    )


class CapacityLedger:

    def __init__(
        self,
        store: ReservationStore,
        clock: Optional[Clock] = None,
        cache=None,
    ) -> None:
        """
        Args:
            store: persistence collaborator
            clock: timestamps and the default snapshot date
            cache: optional snapshot cache exposing async ``get(session_id, day)``,
                ``generation(session_id, day)``, ``set(snapshot, generation=...)``
                and ``invalidate(session_id, day)``
        """
        self._store = store
        self._clock = clock or Clock()
        self._cache = cache

    async def _snapshot_from(self, store: ReservationStore, session: SharedSession, day: date) -> CapacitySnapshot:
        rows = await store.list_reservations(
            ReservationFilter(
                resource_type=ResourceType.SHARED,
                resource_id=session.id,
                statuses=CONSUMING,
                dates=DateRangeFilter.single_day(day),
            )
        )
        return compute_snapshot(session, day, rows)

    async def check_and_reserve(
        self,
        session_id: int,
        day: date,
        party_size: int,
        *,
        unit_price: Decimal,
        total_price: Optional[Decimal] = None,
        status: ReservationStatus = ReservationStatus.CONFIRMED,
        details: Optional[Mapping[str, Any]] = None,
    ) -> Union[Reservation, Rejection]:
        """
        Admit the party and record the sale, or reject with CAPACITY_EXCEEDED.

        ``total_price`` defaults to ``unit_price * party_size``; callers pricing
        adults and children separately pass the mixed total.
        """
        if party_size <= 0:
            return invalid_input(f"Party size must be positive, got {party_size}", code=ErrorCode.INVALID_PARTY_SIZE)

        async with self._store.atomic(shared_key(session_id, day)) as tx:
            session = await tx.get_shared_session(session_id)
            if session is None:
                return not_found(f"Session {session_id} not found")

            snapshot = await self._snapshot_from(tx, session, day)
            if snapshot.sold + party_size > session.max_capacity:
                logger.warning(
                    "capacity_exceeded",
                    session_id=session_id,
                    date=day.isoformat(),
                    requested=party_size,
                    available=snapshot.available,
                )
                return Rejection(
                    kind=RejectionKind.CAPACITY_EXCEEDED,
                    message=f"Only {max(snapshot.available, 0)} spots left, requested {party_size}",
                    available=snapshot.available,
                )

            now = self._clock.now()
            unit_price = to_money(unit_price)
            reservation = await tx.insert_reservation(
                Reservation(
                    reference=new_reference(TICKET_PREFIX, now),
                    resource_id=session_id,
                    resource_type=ResourceType.SHARED,
                    session_date=day,
                    party_size=party_size,
                    status=status,
                    unit_price_snapshot=unit_price,
                    total_price=to_money(total_price if total_price is not None else unit_price * party_size),
                    details=dict(details or {}),
                    created_at=now,
                    updated_at=now,
                )
            )

        await self._invalidate(session_id, day)
        logger.info(
            "capacity_reserved",
            reservation_id=reservation.id,
            session_id=session_id,
            date=day.isoformat(),
            party_size=party_size,
            sold=snapshot.sold + party_size,
        )
        return reservation

    @asynccontextmanager
    async def ticket_unit(self, ticket: Reservation, *other_days: date) -> AsyncIterator[ReservationStore]:
        """
        Atomic unit holding the ticket's current date and ``other_days``.

        The ticket may be rescheduled between the caller's unlocked read and
        the lock. When the locked re-read shows a date outside the held keys,
        the unit is abandoned and re-opened on the ticket's new date.
        """
        while True:
            days = {ticket.session_date, *other_days}
            async with self._store.atomic(*(shared_key(ticket.resource_id, d) for d in days)) as tx:
                fresh = await tx.get_reservation(ticket.id)
                if fresh.session_date in days:
                    yield tx
                    return
            logger.info("ticket_moved_while_locking", reservation_id=ticket.id, to_date=fresh.session_date)
            ticket = fresh

    async def check_and_move(self, reservation_id: int, new_day: date) -> Union[Reservation, Rejection]:
        """Move a ticket to another date if that date still has room for its party."""
        current = await self._store.get_reservation(reservation_id)
        if current is None or current.is_exclusive:
            return not_found(f"Ticket {reservation_id} not found")

        async with self.ticket_unit(current, new_day) as tx:
            current = await tx.get_reservation(reservation_id)
            if current.status not in MOVABLE_STATUSES:
                return invalid_transition(f"Cannot reschedule a ticket with status: {current.status.value}")
            if current.session_date == new_day:
                return current

            session = await tx.get_shared_session(current.resource_id)
            if session is None:
                return not_found(f"Session {current.resource_id} not found")

            snapshot = await self._snapshot_from(tx, session, new_day)
            if snapshot.sold + current.party_size > session.max_capacity:
                return Rejection(
                    kind=RejectionKind.CAPACITY_EXCEEDED,
                    message=f"Only {max(snapshot.available, 0)} spots left on {new_day.isoformat()}",
                    available=snapshot.available,
                )

            moved = await tx.update_reservation(
                replace(current, session_date=new_day, updated_at=self._clock.now())
            )

        await self._invalidate(current.resource_id, current.session_date)
        await self._invalidate(current.resource_id, new_day)
        logger.info(
            "ticket_rescheduled",
            reservation_id=reservation_id,
            from_date=current.session_date.isoformat(),
            to_date=new_day.isoformat(),
        )
        return moved

    async def get_capacity_snapshot(
        self,
        session_id: int,
        day: Optional[date] = None,
    ) -> Union[CapacitySnapshot, Rejection]:
        """
        Advisory counts for display; may be served from cache.

        The cache generation is read before counting. A commit that lands
        while we count bumps it, and the cache then refuses our stale fill.
        """
        day = day or self._clock.today()

        generation = None
        if self._cache is not None:
            cached = await self._cache.get(session_id, day)
            if cached is not None:
                return cached
            generation = await self._cache.generation(session_id, day)

        session = await self._store.get_shared_session(session_id)
        if session is None:
            return not_found(f"Session {session_id} not found")

        snapshot = await self._snapshot_from(self._store, session, day)
        if self._cache is not None:
            await self._cache.set(snapshot, generation=generation)
        return snapshot

    async def release(self, session_id: int, day: date) -> None:
        """Drop cached counts after a status change frees capacity."""
        await self._invalidate(session_id, day)

    async def _invalidate(self, session_id: int, day: date) -> None:
        if self._cache is not None:
            await self._cache.invalidate(session_id, day)
