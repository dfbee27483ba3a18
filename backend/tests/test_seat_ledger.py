"""
Tests for the seat ledger and booking transaction manager, including the
unique-index retry path and concurrent overlapping claims.
"""

import asyncio
from datetime import date

import pytest
from sqlalchemy import func, select

from booking_engine.core.exceptions import NoSeatsAvailable, SeatConflict, TooManySeats
from booking_engine.models.booking import Booking, BookingSeat, BookingStatus
from booking_engine.services import seat_ledger
from booking_engine.services.booking_service import BookingResult, create_booking
from booking_engine.services.seat_ledger import claim_seats, snapshot_occupied


def booking_factory(customer_id: int, schedule_id: int):
    def make_booking():
        return Booking(
            customer_id=customer_id,
            schedule_id=schedule_id,
            booking_date=date.today(),
            travel_date=date(2026, 12, 1),
            status=BookingStatus.CONFIRMED,
            payments=[],
        )

    return make_booking


async def count_bookings(session_factory) -> int:
    async with session_factory() as session:
        return await session.scalar(select(func.count(Booking.id)))


async def confirmed_holders(session_factory, schedule_id: int, seat_label: str) -> int:
    async with session_factory() as session:
        return await session.scalar(
            select(func.count(BookingSeat.id)).where(
                BookingSeat.schedule_id == schedule_id,
                BookingSeat.seat_label == seat_label,
                BookingSeat.status == BookingStatus.CONFIRMED,
            )
        )


@pytest.mark.asyncio
async def test_claim_all_free_seats(db_session, schedule):
    result = await create_booking(db_session, 1, schedule.id, "A1, A2")

    assert isinstance(result, BookingResult)
    assert result.claimed_seats == ["A1", "A2"]
    assert result.rejected_seats == []
    assert result.status is BookingStatus.CONFIRMED
    assert result.travel_date == date(2026, 12, 1)
    assert result.message == "Booked seats: A1, A2"
    assert await snapshot_occupied(db_session, schedule.id) == {"A1", "A2"}


@pytest.mark.asyncio
async def test_partial_success(db_session, schedule):
    await create_booking(db_session, 1, schedule.id, "A1")

    result = await create_booking(db_session, 2, schedule.id, "A1,A2,A3")

    assert result.claimed_seats == ["A2", "A3"]
    assert result.rejected_seats == ["A1"]
    assert result.message == "Booked seats: A2, A3. Unavailable seats: A1"


@pytest.mark.asyncio
async def test_no_seats_available_persists_nothing(db_session, session_factory, schedule):
    await create_booking(db_session, 1, schedule.id, "A1,A2")

    with pytest.raises(NoSeatsAvailable) as exc_info:
        await create_booking(db_session, 2, schedule.id, "A2,A1")

    assert exc_info.value.rejected_seats == ["A2", "A1"]
    assert await count_bookings(session_factory) == 1


@pytest.mark.asyncio
async def test_occupancy_is_per_schedule(db_session, make_schedule):
    first = await make_schedule()
    second = await make_schedule()

    await create_booking(db_session, 1, first.id, "A1")
    result = await create_booking(db_session, 2, second.id, "A1")

    assert result.claimed_seats == ["A1"]


@pytest.mark.asyncio
async def test_stale_snapshot_retries_and_rejects_taken_seat(db_session, session_factory, schedule, monkeypatch):
    """A claim built from a stale snapshot hits the unique index and retries."""
    schedule_id = schedule.id
    await create_booking(db_session, 1, schedule_id, "A1")

    real_snapshot = seat_ledger.snapshot_occupied
    calls = []

    async def stale_then_real(db, sid):
        calls.append(sid)
        if len(calls) == 1:
            return set()
        return await real_snapshot(db, sid)

    monkeypatch.setattr(seat_ledger, "snapshot_occupied", stale_then_real)

    claim = await claim_seats(db_session, schedule_id, "A1,A2", booking_factory(2, schedule_id))

    assert claim.attempts == 2
    assert claim.claimed == ["A2"]
    assert claim.rejected == ["A1"]
    assert await confirmed_holders(session_factory, schedule_id, "A1") == 1
    assert await count_bookings(session_factory) == 2


@pytest.mark.asyncio
async def test_seat_conflict_after_exhausting_attempts(db_session, session_factory, schedule, monkeypatch):
    schedule_id = schedule.id
    await create_booking(db_session, 1, schedule_id, "A1")

    async def always_stale(db, sid):
        return set()

    monkeypatch.setattr(seat_ledger, "snapshot_occupied", always_stale)

    with pytest.raises(SeatConflict) as exc_info:
        await claim_seats(db_session, schedule_id, "A1", booking_factory(2, schedule_id), max_attempts=3)

    assert exc_info.value.status_code == 409
    assert exc_info.value.detail["attempts"] == 3
    assert exc_info.value.headers == {"Retry-After": "1"}
    assert await count_bookings(session_factory) == 1


@pytest.mark.asyncio
async def test_concurrent_requests_for_one_seat(session_factory, schedule):
    """Overlapping requests from separate sessions: exactly one holder."""
    schedule_id = schedule.id

    async def attempt(customer_id: int):
        async with session_factory() as session:
            try:
                return await create_booking(session, customer_id, schedule_id, "B1")
            except (NoSeatsAvailable, SeatConflict) as exc:
                return exc

    results = await asyncio.gather(*(attempt(customer_id) for customer_id in range(1, 9)))

    winners = [r for r in results if isinstance(r, BookingResult)]
    assert len(winners) == 1
    assert winners[0].claimed_seats == ["B1"]
    assert await confirmed_holders(session_factory, schedule_id, "B1") == 1


@pytest.mark.asyncio
async def test_concurrent_overlapping_selections(session_factory, schedule):
    """Every seat ends up with at most one confirmed holder."""
    schedule_id = schedule.id
    requests = ["C1,C2", "C2,C3", "C3,C1", "C1,C2,C3"]

    async def attempt(customer_id: int, seats: str):
        async with session_factory() as session:
            try:
                return await create_booking(session, customer_id, schedule_id, seats)
            except (NoSeatsAvailable, SeatConflict) as exc:
                return exc

    results = await asyncio.gather(
        *(attempt(customer_id, seats) for customer_id, seats in enumerate(requests, start=1))
    )

    claimed = [seat for r in results if isinstance(r, BookingResult) for seat in r.claimed_seats]
    assert len(claimed) == len(set(claimed))
    for seat in ("C1", "C2", "C3"):
        assert await confirmed_holders(session_factory, schedule_id, seat) <= 1


@pytest.mark.asyncio
async def test_explicit_zero_seat_cap_is_not_replaced_by_default(db_session, session_factory, schedule):
    schedule_id = schedule.id

    with pytest.raises(TooManySeats):
        await claim_seats(db_session, schedule_id, "A1", booking_factory(1, schedule_id), max_seats=0)

    assert await count_bookings(session_factory) == 0
