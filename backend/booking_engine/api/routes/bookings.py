"""
Booking endpoints: seat claiming, booking history, ticket view, cancellation.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from booking_engine.core.security import get_current_customer_id
from booking_engine.db.session import get_db
from booking_engine.schemas.booking import (
    BookingCancelResponse,
    BookingCreate,
    BookingCreateResponse,
    BookingResponse,
    TicketResponse,
)
from booking_engine.services.booking_service import create_booking, get_booking, list_customer_bookings
from booking_engine.services.cancellation_service import cancel_booking

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/", response_model=BookingCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_booking_endpoint(
    booking_data: BookingCreate,
    customer_id: int = Depends(get_current_customer_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Book seats on a schedule.

    Seats that are already taken are returned in `rejected_seats`; the booking
    holds the rest. If none are free the request fails with NoSeatsAvailable.
    Concurrent requests for the same seat are resolved by a unique index, with
    up to 3 internal retries before SeatConflict.
    """
    result = await create_booking(db, customer_id, booking_data.schedule_id, booking_data.seat_numbers)
    return BookingCreateResponse.model_validate(result)


@router.get("/", response_model=list[BookingResponse])
async def list_bookings_endpoint(
    customer_id: int = Depends(get_current_customer_id),
    db: AsyncSession = Depends(get_db),
):
    """Booking history for the authenticated customer."""
    return await list_customer_bookings(db, customer_id)


@router.get("/{booking_id}", response_model=TicketResponse)
async def get_booking_endpoint(
    booking_id: int,
    customer_id: int = Depends(get_current_customer_id),
    db: AsyncSession = Depends(get_db),
):
    """Ticket view: seats, schedule and payments for one booking."""
    return await get_booking(db, booking_id, customer_id)


@router.post("/{booking_id}/cancel", response_model=BookingCancelResponse)
async def cancel_booking_endpoint(
    booking_id: int,
    customer_id: int = Depends(get_current_customer_id),
    db: AsyncSession = Depends(get_db),
):
    """Cancel a booking; a completed payment moves to refund-pending."""
    result = await cancel_booking(db, booking_id, customer_id)
    return BookingCancelResponse.model_validate(result)
