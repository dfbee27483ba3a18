"""
Error taxonomy for the booking engine.

Every error is an HTTPException so FastAPI renders it without extra handlers.
The response body is:

    {"detail": {"kind": "NoSeatsAvailable", "message": "...", ...context}}

`kind` is the class name and is stable for machine consumers. Only
SeatConflict is transient; every other kind is terminal for the request.
"""

from typing import Any, Optional

from fastapi import HTTPException, status


class BookingEngineError(HTTPException):
    """Base class for all engine errors."""

    http_status: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, *, headers: Optional[dict] = None, **context: Any):
        self.kind = type(self).__name__
        self.message = message
        self.context = context
        super().__init__(
            status_code=self.http_status,
            detail={"kind": self.kind, "message": message, **context},
            headers=headers,
        )

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


# Seat selection

class InvalidSeatSelection(BookingEngineError):
    def __init__(self, message: str = "At least one seat number is required"):
        super().__init__(message)


class TooManySeats(BookingEngineError):
    def __init__(self, requested: int, limit: int):
        super().__init__(
            f"Cannot book more than {limit} seats (requested {requested})",
            requested=requested,
            limit=limit,
        )


class NoSeatsAvailable(BookingEngineError):
    http_status = status.HTTP_409_CONFLICT

    def __init__(self, rejected_seats: list[str]):
        self.rejected_seats = list(rejected_seats)
        super().__init__(
            "No seats were booked. Unavailable seats: " + ", ".join(self.rejected_seats),
            rejected_seats=self.rejected_seats,
        )


class SeatConflict(BookingEngineError):
    """Claim retries exhausted under contention. The caller may retry."""

    http_status = status.HTTP_409_CONFLICT

    def __init__(self, attempts: int):
        super().__init__(
            "Seats are in high demand right now. Please try again.",
            headers={"Retry-After": "1"},
            attempts=attempts,
        )


# Lookups

class ScheduleNotFound(BookingEngineError):
    http_status = status.HTTP_404_NOT_FOUND

    def __init__(self, schedule_id: int):
        super().__init__(f"Schedule {schedule_id} not found", schedule_id=schedule_id)


class BookingNotFound(BookingEngineError):
    http_status = status.HTTP_404_NOT_FOUND

    def __init__(self, booking_id: int):
        super().__init__(f"Booking not found for ID: {booking_id}", booking_id=booking_id)


# Payments

class BookingNotPayable(BookingEngineError):
    http_status = status.HTTP_409_CONFLICT

    def __init__(self, booking_id: int, booking_status: str):
        super().__init__(
            f"Booking {booking_id} is {booking_status} and cannot be paid",
            booking_id=booking_id,
            status=booking_status,
        )


class InvalidAmount(BookingEngineError):
    def __init__(self, submitted: str, expected: str, seat_count: int):
        super().__init__(
            f"Amount paid ({submitted}) does not match expected amount "
            f"({expected}) for {seat_count} seat(s)",
            submitted=submitted,
            expected=expected,
            seat_count=seat_count,
        )


class InvalidPaymentDetails(BookingEngineError):
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message, field=field)


class UnsupportedMethod(BookingEngineError):
    def __init__(self, method: Optional[str], supported: list[str]):
        super().__init__(
            "Invalid payment mode",
            method=method,
            supported=supported,
        )


class DuplicatePayment(BookingEngineError):
    http_status = status.HTTP_409_CONFLICT

    def __init__(self, booking_id: int):
        super().__init__(
            f"Booking {booking_id} already has a completed payment",
            booking_id=booking_id,
        )


# Cancellation

class BookingNotCancelable(BookingEngineError):
    def __init__(self, booking_id: int):
        super().__init__("Booking not found or already canceled", booking_id=booking_id)
