"""
In-memory reservation store.

Backs tests and the ``STORE_BACKEND=memory`` demo mode. Atomic units are
serialized with one asyncio.Lock per key; writes made inside a unit are
staged and only become visible when the unit exits cleanly.
"""

import asyncio
import itertools
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import AsyncIterator, Hashable, Optional, Sequence

from resort.engine.errors import UniqueViolationError
from resort.engine.filters import ReservationFilter
from resort.engine.store import ReservationStore, lock_order
from resort.engine.types import (
    AddOn,
    AddOnPriceType,
    ExclusiveResource,
    PriceRule,
    Reservation,
    ResourceType,
    SharedSession,
)


class _Tables:
    def __init__(self) -> None:
        self.exclusive: dict[int, ExclusiveResource] = {}
        self.sessions: dict[int, SharedSession] = {}
        self.add_ons: dict[int, AddOn] = {}
        self.rules: dict[int, PriceRule] = {}
        self.reservations: dict[int, Reservation] = {}
        self.ids = itertools.count(1)


class InMemoryReservationStore(ReservationStore):

    def __init__(self, tables: Optional[_Tables] = None, locks: Optional[dict] = None) -> None:
        self._tables = tables or _Tables()
        self._locks: dict[Hashable, asyncio.Lock] = locks if locks is not None else {}
        self._staged: Optional[dict[int, Reservation]] = None

    # ------------------------------------------------------------------
    # Seeding (administrative collaborator stand-in)
    # ------------------------------------------------------------------

    def add_exclusive_resource(
        self,
        name: str,
        base_price: Decimal,
        max_guests: int = 4,
        weekend_price: Optional[Decimal] = None,
        is_active: bool = True,
    ) -> ExclusiveResource:
        resource = ExclusiveResource(
            id=next(self._tables.ids),
            name=name,
            base_price=base_price,
            max_guests=max_guests,
            weekend_price=weekend_price,
            is_active=is_active,
        )
        self._tables.exclusive[resource.id] = resource
        return resource

    def add_shared_session(
        self,
        name: str,
        max_capacity: int,
        price: Decimal,
        adult_price: Optional[Decimal] = None,
        child_price: Optional[Decimal] = None,
        is_active: bool = True,
    ) -> SharedSession:
        session = SharedSession(
            id=next(self._tables.ids),
            name=name,
            max_capacity=max_capacity,
            price=price,
            adult_price=adult_price,
            child_price=child_price,
            is_active=is_active,
        )
        self._tables.sessions[session.id] = session
        return session

    def add_add_on(
        self,
        name: str,
        price: Decimal,
        price_type: AddOnPriceType = AddOnPriceType.ONE_TIME,
        is_active: bool = True,
    ) -> AddOn:
        add_on = AddOn(
            id=next(self._tables.ids),
            name=name,
            price=price,
            price_type=price_type,
            is_active=is_active,
        )
        self._tables.add_ons[add_on.id] = add_on
        return add_on

    def add_price_rule(
        self,
        resource_type: ResourceType,
        start_date: date,
        end_date: date,
        priority: int = 0,
        resource_id: Optional[int] = None,
        multiplier: Optional[Decimal] = None,
        override_price: Optional[Decimal] = None,
        is_active: bool = True,
        created_at: Optional[datetime] = None,
        name: str = "",
    ) -> PriceRule:
        rule = PriceRule(
            id=next(self._tables.ids),
            resource_type=resource_type,
            start_date=start_date,
            end_date=end_date,
            created_at=created_at or datetime.now(timezone.utc),
            priority=priority,
            resource_id=resource_id,
            multiplier=multiplier,
            override_price=override_price,
            is_active=is_active,
            name=name,
        )
        self._tables.rules[rule.id] = rule
        return rule

    # ------------------------------------------------------------------
    # ReservationStore
    # ------------------------------------------------------------------

    async def get_exclusive_resource(self, resource_id: int) -> Optional[ExclusiveResource]:
        await asyncio.sleep(0)
        return self._tables.exclusive.get(resource_id)

    async def get_shared_session(self, session_id: int) -> Optional[SharedSession]:
        await asyncio.sleep(0)
        return self._tables.sessions.get(session_id)

    async def get_add_ons(self, add_on_ids: Sequence[int]) -> list[AddOn]:
        await asyncio.sleep(0)
        return [self._tables.add_ons[i] for i in add_on_ids if i in self._tables.add_ons]

    async def get_reservation(self, reservation_id: int) -> Optional[Reservation]:
        await asyncio.sleep(0)
        return self._visible().get(reservation_id)

    async def get_by_reference(self, reference: str) -> Optional[Reservation]:
        await asyncio.sleep(0)
        return next((r for r in self._visible().values() if r.reference == reference), None)

    async def list_reservations(self, query: ReservationFilter) -> list[Reservation]:
        # Yield to the loop so concurrent callers interleave the way they
        # would around a real database round trip.
        await asyncio.sleep(0)
        rows = self._visible()
        return [rows[i] for i in sorted(rows) if query.matches(rows[i])]

    async def insert_reservation(self, reservation: Reservation) -> Reservation:
        await asyncio.sleep(0)
        self._check_unique(reservation)
        stored = replace(reservation, id=next(self._tables.ids))
        self._write(stored)
        return stored

    async def update_reservation(self, reservation: Reservation) -> Reservation:
        await asyncio.sleep(0)
        if reservation.id not in self._visible():
            raise KeyError(reservation.id)
        self._write(reservation)
        return reservation

    async def list_active_rules(
        self,
        resource_id: int,
        resource_type: ResourceType,
        start: date,
        end: date,
    ) -> list[PriceRule]:
        await asyncio.sleep(0)
        return [
            rule for rule in self._tables.rules.values()
            if rule.is_active
            and rule.applies_to(resource_id, resource_type)
            and rule.start_date <= end
            and rule.end_date >= start
        ]

    @asynccontextmanager
    async def atomic(self, *keys: Hashable) -> AsyncIterator["InMemoryReservationStore"]:
        async with AsyncExitStack() as held:
            for key in lock_order(keys):
                await held.enter_async_context(self._locks.setdefault(key, asyncio.Lock()))
            unit = type(self)(self._tables, self._locks)
            unit._staged = {}
            yield unit
            self._tables.reservations.update(unit._staged)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _visible(self) -> dict[int, Reservation]:
        if not self._staged:
            return self._tables.reservations
        return {**self._tables.reservations, **self._staged}

    def _write(self, reservation: Reservation) -> None:
        if self._staged is not None:
            self._staged[reservation.id] = reservation
        else:
            self._tables.reservations[reservation.id] = reservation

    def _check_unique(self, reservation: Reservation) -> None:
        for existing in self._visible().values():
            if reservation.reference and existing.reference == reservation.reference:
                raise UniqueViolationError(f"Reference {reservation.reference} already exists")
            if (
                reservation.blocks_interval()
                and existing.blocks_interval()
                and existing.resource_id == reservation.resource_id
                and existing.interval_start == reservation.interval_start
            ):
                raise UniqueViolationError(
                    f"Resource {reservation.resource_id} already starts a stay on "
                    f"{reservation.interval_start.isoformat()}"
                )
