"""
Pydantic schemas for exclusive-resource stays (chalets).
"""

from datetime import date
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from resort.schemas.reservation import ConflictResponse, ReservationResponse


class AddOnRequest(BaseModel):
    add_on_id: int
    quantity: int = Field(default=1, gt=0, le=100)


class StayCreate(BaseModel):
    resource_id: int
    check_in: date
    check_out: date
    guests: int = Field(default=1, gt=0, le=50)
    add_ons: list[AddOnRequest] = []
    status: Optional[Literal["pending", "confirmed"]] = None
    metadata: dict[str, Any] = {}

    @model_validator(mode="after")
    def check_dates(self):
        if self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in")
        return self


class StayDatesUpdate(BaseModel):
    check_in: date
    check_out: date

    @model_validator(mode="after")
    def check_dates(self):
        if self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in")
        return self


class NightlyPrice(BaseModel):
    night: date
    price: Decimal


class StayQuoteResponse(BaseModel):
    resource_id: int
    check_in: date
    check_out: date
    nights: int
    feasible: bool
    conflicts: list[ConflictResponse]
    nightly_prices: list[NightlyPrice]
    accommodation_total: Decimal
    add_ons_amount: Decimal
    add_ons: list[dict[str, Any]]
    deposit_amount: Decimal
    total_price: Decimal


class StayDatesResponse(BaseModel):
    reservation: ReservationResponse
    previous_total: Decimal
    price_difference: Decimal


class BlockedDatesResponse(BaseModel):
    resource_id: int
    start: date
    end: date
    blocked_dates: list[date]
