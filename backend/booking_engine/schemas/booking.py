"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Optional, Union

from pydantic import BaseModel, Field

from booking_engine.models.booking import BookingStatus
from booking_engine.schemas.payment import PaymentResponse
from booking_engine.schemas.schedule import ScheduleResponse
from booking_engine.services.cancellation_service import CancellationOutcome


class BookingCreate(BaseModel):
    schedule_id: int = Field(..., gt=0)
    # "A1,A2,A3" or ["A1", "A2", "A3"]; normalized by the seat ledger
    seat_numbers: Union[
        Annotated[str, Field(max_length=500)],
        Annotated[list[Annotated[str, Field(max_length=100)]], Field(max_length=50)],
    ]


class BookingCreateResponse(BaseModel):
    booking_id: int
    schedule_id: int
    status: BookingStatus
    travel_date: date
    claimed_seats: list[str]
    rejected_seats: list[str]
    message: str

    model_config = {"from_attributes": True}


class BookingResponse(BaseModel):
    id: int
    customer_id: int
    schedule_id: int
    status: BookingStatus
    booking_date: date
    travel_date: date
    seat_labels: list[str]
    seat_count: int
    created_at: datetime

    model_config = {"from_attributes": True}


class TicketResponse(BookingResponse):
    schedule: ScheduleResponse
    payments: list[PaymentResponse]


class BookingCancelResponse(BaseModel):
    booking_id: int
    status: BookingStatus
    outcome: CancellationOutcome
    refund_amount: Optional[Decimal] = None
    message: str

    model_config = {"from_attributes": True}
