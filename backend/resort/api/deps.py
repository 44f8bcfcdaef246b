"""
FastAPI dependencies wiring the booking engine to its collaborators.
"""

from functools import lru_cache

from resort.core.config import get_settings
from resort.db.session import get_session_factory
from resort.engine.coordinator import BookingCoordinator, BookingPolicy
from resort.engine.memory_store import InMemoryReservationStore
from resort.engine.sql_store import SqlAlchemyReservationStore
from resort.engine.store import ReservationStore
from resort.services.cache_service import SnapshotCache


@lru_cache()
def get_store() -> ReservationStore:
    """One store per process; STORE_BACKEND=memory keeps everything in RAM."""
    settings = get_settings()
    if settings.STORE_BACKEND == "memory":
        return InMemoryReservationStore()
    return SqlAlchemyReservationStore(get_session_factory())


@lru_cache()
def get_coordinator() -> BookingCoordinator:
    settings = get_settings()
    cache = SnapshotCache() if settings.REDIS_ENABLED else None
    return BookingCoordinator(
        get_store(),
        cache=cache,
        policy=BookingPolicy.from_settings(settings),
    )
