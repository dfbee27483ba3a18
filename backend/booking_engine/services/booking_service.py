"""
Booking transaction manager.

Claim-then-persist: the booking row is written in the same transaction as
its seat claims, so an over-subscribed booking is never visible, not even
briefly. Partial success is normal; rejected seats are reported back to the
caller instead of failing the whole request.
"""

import time
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from booking_engine.core.exceptions import BookingEngineError, BookingNotFound, NoSeatsAvailable, SeatConflict
from booking_engine.core.logging import get_logger
from booking_engine.core.metrics import booking_latency, record_booking_attempt
from booking_engine.domain.seats import RawSeats
from booking_engine.models.booking import Booking, BookingStatus
from booking_engine.services.schedule_service import get_schedule
from booking_engine.services.seat_ledger import claim_seats

logger = get_logger(__name__)


@dataclass
class BookingResult:
    booking_id: int
    schedule_id: int
    status: BookingStatus
    travel_date: date
    claimed_seats: list[str]
    rejected_seats: list[str]

    @property
    def message(self) -> str:
        if self.rejected_seats:
            return (
                "Booked seats: " + ", ".join(self.claimed_seats)
                + ". Unavailable seats: " + ", ".join(self.rejected_seats)
            )
        return "Booked seats: " + ", ".join(self.claimed_seats)


async def create_booking(
    db: AsyncSession,
    customer_id: int,
    schedule_id: int,
    requested: RawSeats,
) -> BookingResult:
    """
    Claim the requested seats and persist one confirmed booking for the
    seats that were free. Raises NoSeatsAvailable if none were.
    """
    schedule = await get_schedule(db, schedule_id)
    travel_date = schedule.travel_date
    booking_date = date.today()

    def make_booking() -> Booking:
        return Booking(
            customer_id=customer_id,
            schedule_id=schedule_id,
            booking_date=booking_date,
            travel_date=travel_date,
            status=BookingStatus.CONFIRMED,
            payments=[],
        )

    start = time.perf_counter()
    try:
        claim = await claim_seats(db, schedule_id, requested, make_booking)
    except NoSeatsAvailable:
        record_booking_attempt("no_seats")
        raise
    except SeatConflict:
        record_booking_attempt("conflict")
        raise
    except BookingEngineError:
        record_booking_attempt("rejected")
        raise
    finally:
        booking_latency.observe(time.perf_counter() - start)

    record_booking_attempt("partial" if claim.rejected else "success")
    logger.info(
        "booking_created",
        booking_id=claim.booking.id,
        customer_id=customer_id,
        schedule_id=schedule_id,
        seats=claim.claimed,
        rejected=claim.rejected,
        attempts=claim.attempts,
    )
    return BookingResult(
        booking_id=claim.booking.id,
        schedule_id=schedule_id,
        status=BookingStatus.CONFIRMED,
        travel_date=travel_date,
        claimed_seats=claim.claimed,
        rejected_seats=claim.rejected,
    )


async def get_booking(
    db: AsyncSession,
    booking_id: int,
    customer_id: Optional[int] = None,
) -> Booking:
    """
    Load a booking with its seats, schedule and payments.
    A booking owned by another customer is reported as not found.
    """
    query = select(Booking).where(Booking.id == booking_id)
    if customer_id is not None:
        query = query.where(Booking.customer_id == customer_id)

    result = await db.execute(query.execution_options(populate_existing=True))
    booking = result.scalar_one_or_none()

    if not booking:
        raise BookingNotFound(booking_id)
    return booking


async def list_customer_bookings(db: AsyncSession, customer_id: int) -> list[Booking]:
    """Booking history for a customer, newest first."""
    result = await db.execute(
        select(Booking)
        .where(Booking.customer_id == customer_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return list(result.scalars().all())
