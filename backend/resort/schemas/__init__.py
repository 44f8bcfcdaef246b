from resort.schemas.reservation import ReservationResponse, ConflictResponse, CancelRequest, ReservationStatusResponse
from resort.schemas.stay import (
    AddOnRequest, StayCreate, StayDatesUpdate,
    StayQuoteResponse, StayDatesResponse, BlockedDatesResponse,
)
from resort.schemas.ticket import (
    TicketCreate, TicketReschedule, TicketQuoteResponse, TicketValidationResponse, CapacityResponse,
)

__all__ = [
    "ReservationResponse", "ConflictResponse", "CancelRequest", "ReservationStatusResponse",
    "AddOnRequest", "StayCreate", "StayDatesUpdate",
    "StayQuoteResponse", "StayDatesResponse", "BlockedDatesResponse",
    "TicketCreate", "TicketReschedule", "TicketQuoteResponse", "TicketValidationResponse", "CapacityResponse",
]
