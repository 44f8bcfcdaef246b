"""
SQLAlchemy-backed reservation store.

CONCURRENCY STRATEGY: Keyed Transaction Lock
============================================

Problem:
  Two guests try to book overlapping nights on the same chalet, or the last
  pool spots of a session, at the same moment. Both read "free", both insert.
  Result: double booking / overselling.

Solution:
  Every commit runs "recompute conflicts or sold count, then insert" inside
  one transaction that first takes a lock scoped to the booking key:

  - ("exclusive", resource_id) for stays
  - ("shared", session_id, date) for session tickets

  On PostgreSQL the lock is pg_advisory_xact_lock on a stable 64-bit hash of
  the key. It is released automatically at COMMIT/ROLLBACK, so a failed
  request can never leave a resource locked. Unrelated keys never wait on
  each other; pool sessions on different dates proceed in parallel.

  Rescheduling a ticket holds both its old and its new date. Units taking
  several keys lock them in lock_order(), so they cannot deadlock.

  Other dialects fall back to SELECT ... FOR UPDATE on the resource row,
  which serializes per resource instead of per (resource, date).

  The partial unique index on active stays' (resource_id, interval_start)
  backs this up. A violation surfaces as UniqueViolationError.

Alternatives considered:
  - Optimistic version column on the resource: retries under contention, and
    the engine must fail fast instead of retrying.
  - SERIALIZABLE isolation: correct but aborts unrelated transactions that
    happen to touch the same index pages.
"""

import hashlib
from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal
from typing import AsyncIterator, Hashable, Optional, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from resort.core.logging import get_logger
from resort.engine.errors import StoreUnavailableError, UniqueViolationError
from resort.engine.filters import ReservationFilter
from resort.engine.store import ReservationStore, lock_order
from resort.engine.types import (
    AddOn,
    AddOnPriceType,
    ExclusiveResource,
    PriceRule,
    Reservation,
    ReservationStatus,
    ResourceType,
    SharedSession,
)
from resort.models import (
    AddOnModel,
    ExclusiveResourceModel,
    PriceRuleModel,
    ReservationModel,
    SharedSessionModel,
)

logger = get_logger(__name__)

_UNAVAILABLE_ERRORS = (OperationalError, InterfaceError, PoolTimeoutError, OSError)


def advisory_lock_id(key: Hashable) -> int:
    """Map a booking key to a signed 64-bit advisory lock id."""
    digest = hashlib.blake2b(repr(key).encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


class SqlAlchemyReservationStore(ReservationStore):
    """PostgreSQL-backed store using async SQLAlchemy sessions."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        session: Optional[AsyncSession] = None,
    ) -> None:
        self._session_factory = session_factory
        self._session = session

    @asynccontextmanager
    async def _use_session(self, write: bool = False) -> AsyncIterator[AsyncSession]:
        """Use the unit's session if bound, else a short-lived one."""
        try:
            if self._session is not None:
                yield self._session
                return
            async with self._session_factory() as session:
                if write:
                    async with session.begin():
                        yield session
                else:
                    yield session
        except IntegrityError as e:
            raise UniqueViolationError(str(e.orig)) from e
        except _UNAVAILABLE_ERRORS as e:
            logger.error("store_unavailable", error=str(e))
            raise StoreUnavailableError("Reservation store is unavailable") from e

    async def get_exclusive_resource(self, resource_id: int) -> Optional[ExclusiveResource]:
        async with self._use_session() as session:
            row = await session.get(ExclusiveResourceModel, resource_id)
            return _exclusive_to_domain(row) if row else None

    async def get_shared_session(self, session_id: int) -> Optional[SharedSession]:
        async with self._use_session() as session:
            row = await session.get(SharedSessionModel, session_id)
            return _session_to_domain(row) if row else None

    async def get_add_ons(self, add_on_ids: Sequence[int]) -> list[AddOn]:
        if not add_on_ids:
            return []
        async with self._use_session() as session:
            result = await session.execute(select(AddOnModel).where(AddOnModel.id.in_(list(add_on_ids))))
            return [_add_on_to_domain(row) for row in result.scalars().all()]

    async def get_reservation(self, reservation_id: int) -> Optional[Reservation]:
        async with self._use_session() as session:
            row = await session.get(ReservationModel, reservation_id)
            return _reservation_to_domain(row) if row else None

    async def get_by_reference(self, reference: str) -> Optional[Reservation]:
        async with self._use_session() as session:
            result = await session.execute(
                select(ReservationModel).where(ReservationModel.reference == reference)
            )
            row = result.scalar_one_or_none()
            return _reservation_to_domain(row) if row else None

    async def list_reservations(self, query: ReservationFilter) -> list[Reservation]:
        stmt = select(ReservationModel).where(
            ReservationModel.resource_type == query.resource_type.value,
            ReservationModel.resource_id == query.resource_id,
        )

        if query.statuses.include is not None:
            stmt = stmt.where(ReservationModel.status.in_([s.value for s in query.statuses.include]))
        elif query.statuses.exclude:
            stmt = stmt.where(ReservationModel.status.not_in([s.value for s in query.statuses.exclude]))

        if query.exclude_reservation_id is not None:
            stmt = stmt.where(ReservationModel.id != query.exclude_reservation_id)

        if query.dates is not None:
            if query.resource_type == ResourceType.EXCLUSIVE:
                # Half-open overlap: existing.start < end AND start < existing.end
                stmt = stmt.where(
                    ReservationModel.interval_start < query.dates.end,
                    ReservationModel.interval_end > query.dates.start,
                )
            else:
                stmt = stmt.where(
                    ReservationModel.session_date >= query.dates.start,
                    ReservationModel.session_date < query.dates.end,
                )

        async with self._use_session() as session:
            result = await session.execute(stmt.order_by(ReservationModel.id))
            return [_reservation_to_domain(row) for row in result.scalars().all()]

    async def insert_reservation(self, reservation: Reservation) -> Reservation:
        row = ReservationModel(
            reference=reservation.reference,
            resource_type=reservation.resource_type.value,
            resource_id=reservation.resource_id,
            created_at=reservation.created_at,
            updated_at=reservation.updated_at,
        )
        _apply_mutable_fields(row, reservation)
        async with self._use_session(write=True) as session:
            session.add(row)
            await session.flush()
            await session.refresh(row)
            return _reservation_to_domain(row)

    async def update_reservation(self, reservation: Reservation) -> Reservation:
        async with self._use_session(write=True) as session:
            row = await session.get(ReservationModel, reservation.id)
            if row is None:
                raise KeyError(reservation.id)
            _apply_mutable_fields(row, reservation)
            row.updated_at = reservation.updated_at
            await session.flush()
            await session.refresh(row)
            return _reservation_to_domain(row)

    async def list_active_rules(
        self,
        resource_id: int,
        resource_type: ResourceType,
        start: date,
        end: date,
    ) -> list[PriceRule]:
        stmt = select(PriceRuleModel).where(
            PriceRuleModel.is_active.is_(True),
            PriceRuleModel.resource_type == resource_type.value,
            or_(PriceRuleModel.resource_id == resource_id, PriceRuleModel.resource_id.is_(None)),
            PriceRuleModel.start_date <= end,
            PriceRuleModel.end_date >= start,
        )
        async with self._use_session() as session:
            result = await session.execute(stmt)
            return [_rule_to_domain(row) for row in result.scalars().all()]

    @asynccontextmanager
    async def atomic(self, *keys: Hashable) -> AsyncIterator["SqlAlchemyReservationStore"]:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    for key in lock_order(keys):
                        await self._lock(session, key)
                    yield SqlAlchemyReservationStore(self._session_factory, session)
        except IntegrityError as e:
            raise UniqueViolationError(str(e.orig)) from e
        except _UNAVAILABLE_ERRORS as e:
            logger.error("store_unavailable", error=str(e), keys=[repr(k) for k in keys])
            raise StoreUnavailableError("Reservation store is unavailable") from e

    async def _lock(self, session: AsyncSession, key: Hashable) -> None:
        if session.bind.dialect.name == "postgresql":
            await session.execute(select(func.pg_advisory_xact_lock(advisory_lock_id(key))))
            return

        kind, resource_id = key[0], key[1]
        model = ExclusiveResourceModel if kind == "exclusive" else SharedSessionModel
        await session.execute(select(model.id).where(model.id == resource_id).with_for_update())


def _apply_mutable_fields(row: ReservationModel, reservation: Reservation) -> None:
    row.interval_start = reservation.interval_start
    row.interval_end = reservation.interval_end
    row.session_date = reservation.session_date
    row.party_size = reservation.party_size
    row.status = reservation.status.value
    row.unit_price_snapshot = reservation.unit_price_snapshot
    row.add_ons_amount = reservation.add_ons_amount
    row.deposit_amount = reservation.deposit_amount
    row.total_price = reservation.total_price
    row.details = dict(reservation.details)
    row.cancelled_at = reservation.cancelled_at
    row.cancellation_reason = reservation.cancellation_reason
    row.checked_in_at = reservation.checked_in_at
    row.checked_out_at = reservation.checked_out_at


def _money(value) -> Decimal:
    return Decimal(value).quantize(Decimal("0.01"))


def _exclusive_to_domain(row: ExclusiveResourceModel) -> ExclusiveResource:
    return ExclusiveResource(
        id=row.id,
        name=row.name,
        base_price=_money(row.base_price),
        weekend_price=_money(row.weekend_price) if row.weekend_price is not None else None,
        max_guests=row.max_guests,
        is_active=row.is_active,
    )


def _session_to_domain(row: SharedSessionModel) -> SharedSession:
    return SharedSession(
        id=row.id,
        name=row.name,
        max_capacity=row.max_capacity,
        price=_money(row.price),
        adult_price=_money(row.adult_price) if row.adult_price is not None else None,
        child_price=_money(row.child_price) if row.child_price is not None else None,
        is_active=row.is_active,
    )


def _add_on_to_domain(row: AddOnModel) -> AddOn:
    return AddOn(
        id=row.id,
        name=row.name,
        price=_money(row.price),
        price_type=AddOnPriceType(row.price_type),
        is_active=row.is_active,
    )


def _rule_to_domain(row: PriceRuleModel) -> PriceRule:
    return PriceRule(
        id=row.id,
        name=row.name,
        resource_type=ResourceType(row.resource_type),
        resource_id=row.resource_id,
        start_date=row.start_date,
        end_date=row.end_date,
        multiplier=Decimal(row.multiplier) if row.multiplier is not None else None,
        override_price=_money(row.override_price) if row.override_price is not None else None,
        priority=row.priority,
        is_active=row.is_active,
        created_at=row.created_at,
    )


def _reservation_to_domain(row: ReservationModel) -> Reservation:
    return Reservation(
        id=row.id,
        reference=row.reference,
        resource_id=row.resource_id,
        resource_type=ResourceType(row.resource_type),
        status=ReservationStatus(row.status),
        interval_start=row.interval_start,
        interval_end=row.interval_end,
        session_date=row.session_date,
        party_size=row.party_size,
        unit_price_snapshot=_money(row.unit_price_snapshot),
        add_ons_amount=_money(row.add_ons_amount),
        deposit_amount=_money(row.deposit_amount),
        total_price=_money(row.total_price),
        details=dict(row.details or {}),
        created_at=row.created_at,
        updated_at=row.updated_at,
        cancelled_at=row.cancelled_at,
        cancellation_reason=row.cancellation_reason,
        checked_in_at=row.checked_in_at,
        checked_out_at=row.checked_out_at,
    )
