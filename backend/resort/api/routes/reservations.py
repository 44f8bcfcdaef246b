"""
Reservation lookup and staff status transitions.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from resort.api.deps import get_coordinator
from resort.api.errors import unwrap
from resort.core.logging import get_logger
from resort.engine.coordinator import BookingCoordinator
from resort.schemas.reservation import CancelRequest, ReservationResponse, ReservationStatusResponse

logger = get_logger(__name__)
router = APIRouter(prefix="/reservations", tags=["Reservations"])


def _status_response(message: str, reservation) -> ReservationStatusResponse:
    return ReservationStatusResponse(message=message, reservation=ReservationResponse.model_validate(reservation))


@router.get("/by-reference/{reference}", response_model=ReservationResponse)
async def get_reservation_by_reference(
    reference: str,
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    """Look up a stay (C-...) or ticket (P-...) by the number printed on it."""
    return unwrap(await coordinator.get_reservation_by_reference(reference))


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: int,
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    return unwrap(await coordinator.get_reservation(reservation_id))


@router.post("/{reservation_id}/cancel", response_model=ReservationStatusResponse)
async def cancel_reservation(
    reservation_id: int,
    cancel_data: Optional[CancelRequest] = None,
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    """Cancel and release the nights or spots immediately. Checked-in stays cannot be cancelled."""
    reason = cancel_data.reason if cancel_data else ""
    reservation = unwrap(await coordinator.cancel(reservation_id, reason=reason))
    return _status_response("Reservation cancelled successfully", reservation)


@router.post("/{reservation_id}/confirm", response_model=ReservationStatusResponse)
async def confirm_reservation(
    reservation_id: int,
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    reservation = unwrap(await coordinator.confirm(reservation_id))
    return _status_response("Reservation confirmed", reservation)


@router.post("/{reservation_id}/check-in", response_model=ReservationStatusResponse)
async def check_in_reservation(
    reservation_id: int,
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    """Stays become checked_in; tickets become used."""
    reservation = unwrap(await coordinator.check_in(reservation_id))
    return _status_response("Guest checked in", reservation)


@router.post("/{reservation_id}/check-out", response_model=ReservationStatusResponse)
async def check_out_reservation(
    reservation_id: int,
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    reservation = unwrap(await coordinator.check_out(reservation_id))
    logger.info("guest_checked_out", reservation_id=reservation_id)
    return _status_response("Guest checked out", reservation)


@router.post("/{reservation_id}/no-show", response_model=ReservationStatusResponse)
async def mark_no_show(
    reservation_id: int,
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    reservation = unwrap(await coordinator.mark_no_show(reservation_id))
    return _status_response("Reservation marked as no-show", reservation)
