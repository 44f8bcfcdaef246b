"""
Pydantic schemas for reservation responses and status changes.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field

from resort.engine.types import ReservationStatus, ResourceType


class ReservationResponse(BaseModel):
    id: int
    reference: str
    resource_id: int
    resource_type: ResourceType
    status: ReservationStatus
    interval_start: Optional[date] = None
    interval_end: Optional[date] = None
    session_date: Optional[date] = None
    party_size: int
    unit_price_snapshot: Decimal
    add_ons_amount: Decimal
    deposit_amount: Decimal
    total_price: Decimal
    details: dict[str, Any] = {}
    created_at: datetime
    updated_at: datetime
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    checked_in_at: Optional[datetime] = None
    checked_out_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ConflictResponse(BaseModel):
    id: int
    reference: str
    status: ReservationStatus
    interval_start: date
    interval_end: date

    model_config = {"from_attributes": True}


class CancelRequest(BaseModel):
    reason: str = Field(default="", max_length=500)


class ReservationStatusResponse(BaseModel):
    message: str
    reservation: ReservationResponse
