"""
Reservation store interface (persistence collaborator).

Implementations:
- InMemoryReservationStore: dict-backed, one asyncio.Lock per atomic key
- SqlAlchemyReservationStore: PostgreSQL via async SQLAlchemy, advisory locks

The engine never caches store state between calls. Commit paths open an
atomic unit with ``atomic(*keys)`` and do every read and write of the
"recompute then insert" step through the store it yields.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import AsyncContextManager, Hashable, Iterable, Optional, Sequence

from resort.engine.filters import ReservationFilter
from resort.engine.types import (
    AddOn,
    ExclusiveResource,
    PriceRule,
    Reservation,
    ResourceType,
    SharedSession,
)


def exclusive_key(resource_id: int) -> tuple:
    return ("exclusive", resource_id)


def shared_key(session_id: int, day: date) -> tuple:
    return ("shared", session_id, day.isoformat())


def lock_order(keys: Iterable[Hashable]) -> list:
    """Distinct keys in one global order, shared by every store."""
    return sorted(set(keys), key=repr)


class ReservationStore(ABC):
    """Interface for reservation, resource and price rule persistence."""

    @abstractmethod
    async def get_exclusive_resource(self, resource_id: int) -> Optional[ExclusiveResource]:
        """Return an exclusive resource by ID, or None."""
        ...

    @abstractmethod
    async def get_shared_session(self, session_id: int) -> Optional[SharedSession]:
        """Return a shared session by ID, or None."""
        ...

    @abstractmethod
    async def get_add_ons(self, add_on_ids: Sequence[int]) -> list[AddOn]:
        """Return the add-ons that exist among the given IDs."""
        ...

    @abstractmethod
    async def get_reservation(self, reservation_id: int) -> Optional[Reservation]:
        ...

    @abstractmethod
    async def get_by_reference(self, reference: str) -> Optional[Reservation]:
        """Return the reservation printed with this booking or ticket number."""
        ...

    @abstractmethod
    async def list_reservations(self, query: ReservationFilter) -> list[Reservation]:
        """Return reservations matching the filter, ordered by id."""
        ...

    @abstractmethod
    async def insert_reservation(self, reservation: Reservation) -> Reservation:
        """
        Persist a new reservation and return it with its id assigned.

        Raises:
            UniqueViolationError: a uniqueness constraint refused the row
        """
        ...

    @abstractmethod
    async def update_reservation(self, reservation: Reservation) -> Reservation:
        """Overwrite the stored reservation with the same id."""
        ...

    @abstractmethod
    async def list_active_rules(
        self,
        resource_id: int,
        resource_type: ResourceType,
        start: date,
        end: date,
    ) -> list[PriceRule]:
        """
        Return active rules of the resource type, scoped to the resource or
        type-wide, whose inclusive date range intersects ``[start, end]``.
        """
        ...

    @abstractmethod
    def atomic(self, *keys: Hashable) -> AsyncContextManager["ReservationStore"]:
        """
        Open an atomic unit serialized against every other unit sharing a key.

        Keys are locked in ``lock_order`` so two units over the same keys
        cannot deadlock. Yields a store whose reads and writes belong to the
        unit. Leaving the block normally commits; an exception discards the
        unit's writes.
        """
        ...
