"""
Stay endpoints for exclusive resources (chalets).
"""

from collections import Counter
from datetime import date

from fastapi import APIRouter, Depends, Query, status

from resort.api.deps import get_coordinator
from resort.api.errors import unwrap
from resort.core.logging import get_logger
from resort.engine.coordinator import BookingCoordinator
from resort.engine.types import AddOnSelection, ReservationStatus
from resort.schemas.reservation import ConflictResponse, ReservationResponse
from resort.schemas.stay import (
    BlockedDatesResponse,
    NightlyPrice,
    StayCreate,
    StayDatesResponse,
    StayDatesUpdate,
    StayQuoteResponse,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/stays", tags=["Stays"])


@router.get("/{resource_id}/quote", response_model=StayQuoteResponse)
async def quote_stay(
    resource_id: int,
    start: date = Query(..., description="Check-in date"),
    end: date = Query(..., description="Check-out date (exclusive)"),
    guests: int = Query(1, gt=0),
    add_on: list[int] = Query([], description="Add-on id, repeat for quantity"),
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    """
    Price a stay and report whether it is currently free.
    Nothing is held: a feasible quote can still lose the race at commit time.
    """
    selections = [AddOnSelection(add_on_id=i, quantity=n) for i, n in Counter(add_on).items()]
    quote = unwrap(
        await coordinator.quote_exclusive(resource_id, start, end, guests=guests, add_ons=selections)
    )
    return StayQuoteResponse(
        resource_id=quote.resource_id,
        check_in=quote.start,
        check_out=quote.end,
        nights=quote.nights,
        feasible=quote.feasible,
        conflicts=[ConflictResponse.model_validate(r) for r in quote.conflicts],
        nightly_prices=[NightlyPrice(night=night, price=price) for night, price in quote.price.nightly_prices],
        accommodation_total=quote.price.accommodation_total,
        add_ons_amount=quote.price.add_ons_amount,
        add_ons=[dict(line) for line in quote.price.add_on_lines],
        deposit_amount=quote.price.deposit_amount,
        total_price=quote.total_price,
    )


@router.post("/", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
async def create_stay(
    stay_data: StayCreate,
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    """
    Book a chalet for [check_in, check_out).

    Overlapping active stays return 409 with the conflicting reservations.
    A check-out and a check-in on the same date never conflict.
    """
    reservation = await coordinator.commit_exclusive(
        stay_data.resource_id,
        stay_data.check_in,
        stay_data.check_out,
        guests=stay_data.guests,
        add_ons=[AddOnSelection(add_on_id=a.add_on_id, quantity=a.quantity) for a in stay_data.add_ons],
        metadata=stay_data.metadata,
        status=ReservationStatus(stay_data.status) if stay_data.status else None,
    )
    return unwrap(reservation)


@router.get("/{resource_id}/blocked-dates", response_model=BlockedDatesResponse)
async def list_blocked_dates(
    resource_id: int,
    start: date = Query(...),
    end: date = Query(...),
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    """Nights in [start, end) already taken, for the availability calendar."""
    blocked = unwrap(await coordinator.blocked_dates(resource_id, start, end))
    return BlockedDatesResponse(resource_id=resource_id, start=start, end=end, blocked_dates=blocked)


@router.patch("/reservations/{reservation_id}/dates", response_model=StayDatesResponse)
async def change_stay_dates(
    reservation_id: int,
    dates: StayDatesUpdate,
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    """Move a pending or confirmed stay; the response carries the price difference."""
    change = unwrap(
        await coordinator.modify_exclusive_dates(reservation_id, dates.check_in, dates.check_out)
    )
    return StayDatesResponse(
        reservation=ReservationResponse.model_validate(change.reservation),
        previous_total=change.previous_total,
        price_difference=change.price_difference,
    )
