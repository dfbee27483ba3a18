from booking_engine.schemas.schedule import ScheduleResponse, SeatMapResponse
from booking_engine.schemas.payment import (
    PaymentCreate, PaymentResponse, PaymentCreateResponse, ExpectedAmountResponse,
)
from booking_engine.schemas.booking import (
    BookingCreate, BookingCreateResponse, BookingResponse, TicketResponse, BookingCancelResponse,
)

__all__ = [
    "ScheduleResponse", "SeatMapResponse",
    "PaymentCreate", "PaymentResponse", "PaymentCreateResponse", "ExpectedAmountResponse",
    "BookingCreate", "BookingCreateResponse", "BookingResponse", "TicketResponse", "BookingCancelResponse",
]
