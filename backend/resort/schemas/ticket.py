"""
Pydantic schemas for shared-session tickets (pool sessions, seatings).
"""

from datetime import date
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from resort.schemas.reservation import ReservationResponse


class TicketCreate(BaseModel):
    session_id: int
    session_date: date
    adults: int = Field(default=1, ge=0, le=500)
    children: int = Field(default=0, ge=0, le=500)
    infants: int = Field(default=0, ge=0, le=100)  # free, take no spot
    status: Optional[Literal["pending", "confirmed"]] = None
    metadata: dict[str, Any] = {}


class TicketReschedule(BaseModel):
    session_date: date


class TicketQuoteResponse(BaseModel):
    session_id: int
    session_date: date
    adults: int
    children: int
    infants: int
    headcount: int
    unit_price: Decimal
    child_unit_price: Decimal
    total_price: Decimal
    available: int
    feasible: bool


class TicketValidationResponse(BaseModel):
    valid: bool
    refusal: Optional[str] = None
    session_date: date
    reservation: ReservationResponse


class CapacityResponse(BaseModel):
    session_id: int
    session_date: date
    max_capacity: int
    sold: int
    admitted: int
    available: int
