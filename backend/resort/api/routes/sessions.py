"""
Ticket endpoints for shared sessions (pool sessions, seatings).
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from resort.api.deps import get_coordinator
from resort.api.errors import unwrap
from resort.core.logging import get_logger
from resort.engine.coordinator import BookingCoordinator
from resort.engine.errors import InvalidInputError, rejection_from_error
from resort.engine.types import PartyComposition, ReservationStatus
from resort.schemas.reservation import ReservationResponse
from resort.schemas.ticket import (
    CapacityResponse,
    TicketCreate,
    TicketQuoteResponse,
    TicketReschedule,
    TicketValidationResponse,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/sessions", tags=["Sessions"])


def _party(adults: int, children: int, infants: int) -> PartyComposition:
    try:
        return PartyComposition(adults=adults, children=children, infants=infants)
    except InvalidInputError as e:
        return unwrap(rejection_from_error(e))


@router.get("/{session_id}/quote", response_model=TicketQuoteResponse)
async def quote_tickets(
    session_id: int,
    session_date: date = Query(..., alias="date"),
    adults: int = Query(1, ge=0),
    children: int = Query(0, ge=0),
    infants: int = Query(0, ge=0),
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    """Per-head prices and advisory availability. Availability may lag by the cache TTL."""
    party = _party(adults, children, infants)
    quote = unwrap(await coordinator.quote_shared(session_id, session_date, party))
    return TicketQuoteResponse(
        session_id=quote.session_id,
        session_date=quote.day,
        adults=party.adults,
        children=party.children,
        infants=party.infants,
        headcount=quote.party_size,
        unit_price=quote.unit_price,
        child_unit_price=quote.price.child_unit_price,
        total_price=quote.total_price,
        available=quote.available,
        feasible=quote.feasible,
    )


@router.get("/{session_id}/capacity", response_model=CapacityResponse)
async def get_capacity(
    session_id: int,
    session_date: Optional[date] = Query(None, alias="date"),
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    """
    Sold and remaining spots for a session date (defaults to today).
    Served from Redis when cached; invalidated on every sale.
    """
    snapshot = unwrap(await coordinator.get_capacity_snapshot(session_id, session_date))
    return CapacityResponse(
        session_id=snapshot.session_id,
        session_date=snapshot.day,
        max_capacity=snapshot.max_capacity,
        sold=snapshot.sold,
        admitted=snapshot.admitted,
        available=snapshot.available,
    )


@router.post("/tickets", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
async def create_tickets(
    ticket_data: TicketCreate,
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    """
    Buy tickets for a session date. Infants are free and take no spot.
    Returns 409 with the remaining spot count if the party does not fit.
    """
    reservation = await coordinator.commit_shared(
        ticket_data.session_id,
        ticket_data.session_date,
        _party(ticket_data.adults, ticket_data.children, ticket_data.infants),
        metadata=ticket_data.metadata,
        status=ReservationStatus(ticket_data.status) if ticket_data.status else None,
    )
    return unwrap(reservation)


@router.get("/tickets/{reference}/validate", response_model=TicketValidationResponse)
async def validate_ticket(
    reference: str,
    session_date: Optional[date] = Query(None, alias="date"),
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    """
    Gate check by ticket number for ``date`` (defaults to today).
    Always 200 for a known ticket; ``refusal`` says why it does not admit.
    """
    validation = unwrap(await coordinator.validate_ticket(reference, session_date))
    return TicketValidationResponse(
        valid=validation.valid,
        refusal=validation.refusal.value if validation.refusal else None,
        session_date=validation.day,
        reservation=ReservationResponse.model_validate(validation.reservation),
    )


@router.patch("/tickets/{reservation_id}/date", response_model=ReservationResponse)
async def reschedule_tickets(
    reservation_id: int,
    reschedule: TicketReschedule,
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    """Move tickets to another date of the same session if it has room."""
    return unwrap(await coordinator.reschedule_shared(reservation_id, reschedule.session_date))
