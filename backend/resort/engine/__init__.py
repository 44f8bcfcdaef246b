"""
Booking and capacity engine.

Keeps business rules clean from the HTTP and persistence layers: callers hand
in a ReservationStore and get back reservations, quotes or Rejection values.
"""

from .availability import AvailabilityIndex
from .capacity import CapacityLedger
from .coordinator import (
    BookingCoordinator,
    BookingPolicy,
    DateChange,
    ExclusiveQuote,
    SharedQuote,
    TicketPrice,
    TicketRefusal,
    TicketValidation,
)
from .errors import Rejection, RejectionKind, StoreUnavailableError
from .memory_store import InMemoryReservationStore
from .pricing import PriceRuleResolver
from .store import ReservationStore
from .types import PartyComposition

__all__ = [
    "AvailabilityIndex", "CapacityLedger", "PriceRuleResolver",
    "BookingCoordinator", "BookingPolicy", "DateChange", "ExclusiveQuote", "SharedQuote",
    "TicketPrice", "TicketRefusal", "TicketValidation", "PartyComposition",
    "Rejection", "RejectionKind", "StoreUnavailableError",
    "ReservationStore", "InMemoryReservationStore",
]
