"""
Seat inventory ledger: the single source of truth for seat occupancy.

CONCURRENCY STRATEGY: Unique Index + Optimistic Retry
=====================================================

Problem:
  Two customers ask for seat A3 on the same schedule at the same moment.
  Both read the occupied set, both see A3 free, both insert a booking.
  Result: Double-booking.

Solution:
  "Seat occupied" is a uniquely-constrained fact. Every confirmed booking
  writes one `booking_seats` row per seat, and a partial unique index on
  (schedule_id, seat_label) WHERE status = 'confirmed' lets only one of them
  commit.

  1. Read the occupied set for the schedule (no locks)
  2. Split the request into free and taken seats
  3. INSERT the booking and its seat rows in one transaction
  4. If the index rejects a seat, roll back, re-read occupancy and retry;
     the seat that was just taken now shows up as rejected

  This approach:
  - Serializes only claims touching the same (schedule, seat) pair
  - Disjoint seats and other schedules never contend
  - Does not depend on every request being served by the same process
  - Bounded by SEAT_CLAIM_MAX_ATTEMPTS, after which SeatConflict is raised

  Occupancy is always derived live from booking status, so a cancellation
  frees its seats the moment it commits. There is no release operation.
"""

import asyncio
import random
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from booking_engine.core.config import get_settings
from booking_engine.core.exceptions import InvalidSeatSelection, NoSeatsAvailable, SeatConflict, TooManySeats
from booking_engine.core.logging import get_logger
from booking_engine.core.metrics import record_seat_claim_retry, record_seats_claimed
from booking_engine.domain.seats import MAX_SEAT_LABEL_LENGTH, RawSeats, SeatSelection
from booking_engine.models.booking import Booking, BookingSeat, BookingStatus

logger = get_logger(__name__)

SEAT_INDEX_NAME = "uq_booking_seats_confirmed_seat"


@dataclass
class SeatClaim:
    booking: Booking
    claimed: list[str]
    rejected: list[str]
    attempts: int


async def snapshot_occupied(db: AsyncSession, schedule_id: int) -> set[str]:
    """Seat labels held by confirmed bookings on this schedule."""
    result = await db.execute(
        select(BookingSeat.seat_label)
        .join(Booking, Booking.id == BookingSeat.booking_id)
        .where(
            Booking.schedule_id == schedule_id,
            Booking.status == BookingStatus.CONFIRMED,
        )
    )
    return set(result.scalars().all())


def normalize_request(requested: RawSeats, max_seats: int) -> SeatSelection:
    """Parse and cap a seat request. Runs before any storage access."""
    selection = SeatSelection.parse(requested)
    if not selection:
        raise InvalidSeatSelection()
    too_long = [label for label in selection if len(label) > MAX_SEAT_LABEL_LENGTH]
    if too_long:
        raise InvalidSeatSelection(
            f"Seat labels must be at most {MAX_SEAT_LABEL_LENGTH} characters: " + ", ".join(too_long)
        )
    if len(selection) > max_seats:
        raise TooManySeats(requested=len(selection), limit=max_seats)
    return selection


def _is_seat_conflict(exc: IntegrityError) -> bool:
    # asyncpg names the index; sqlite lists the indexed columns
    message = str(exc.orig).lower()
    return SEAT_INDEX_NAME in message or (
        "unique" in message and "booking_seats.schedule_id" in message
    )


def _backoff_seconds(attempt: int, base: float) -> float:
    return base * attempt * random.uniform(0.5, 1.5)


async def claim_seats(
    db: AsyncSession,
    schedule_id: int,
    requested: RawSeats,
    make_booking: Callable[[], Booking],
    *,
    max_seats: Optional[int] = None,
    max_attempts: Optional[int] = None,
) -> SeatClaim:
    """
    Atomically claim every requested seat that is not already occupied.

    `make_booking` builds a fresh, unsaved holder booking on each attempt;
    the ledger attaches the seat rows for the free seats and commits both
    together. Nothing is persisted when no seat can be claimed.
    """
    settings = get_settings()
    if max_seats is None:
        max_seats = settings.MAX_SEATS_PER_BOOKING
    if max_attempts is None:
        max_attempts = settings.SEAT_CLAIM_MAX_ATTEMPTS

    selection = normalize_request(requested, max_seats)

    for attempt in range(1, max_attempts + 1):
        occupied = await snapshot_occupied(db, schedule_id)
        free, taken = selection.partition(occupied)

        if not free:
            logger.warning(
                "seat_claim_no_seats",
                schedule_id=schedule_id,
                requested=selection.as_list(),
                attempt=attempt,
            )
            raise NoSeatsAvailable(taken.as_list())

        booking = make_booking()
        booking.seats = [
            BookingSeat(
                schedule_id=schedule_id,
                seat_label=label,
                position=position,
                status=BookingStatus.CONFIRMED,
            )
            for position, label in enumerate(free)
        ]
        db.add(booking)

        try:
            await db.flush()
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            if not _is_seat_conflict(exc):
                raise
            record_seat_claim_retry()
            logger.info(
                "seat_claim_retry",
                schedule_id=schedule_id,
                seats=free.as_list(),
                attempt=attempt,
                reason="seat_taken",
            )
            if attempt < max_attempts:
                await asyncio.sleep(_backoff_seconds(attempt, settings.SEAT_CLAIM_RETRY_BACKOFF_SECONDS))
            continue

        record_seats_claimed(len(free))
        logger.info(
            "seats_claimed",
            schedule_id=schedule_id,
            booking_id=booking.id,
            claimed=free.as_list(),
            rejected=taken.as_list(),
            attempt=attempt,
        )
        return SeatClaim(
            booking=booking,
            claimed=free.as_list(),
            rejected=taken.as_list(),
            attempts=attempt,
        )

    logger.warning("seat_claim_exhausted", schedule_id=schedule_id, attempts=max_attempts)
    raise SeatConflict(attempts=max_attempts)
