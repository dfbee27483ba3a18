"""
Schedule endpoints: cached metadata and the live seat map.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from booking_engine.db.session import get_db
from booking_engine.schemas.schedule import ScheduleResponse, SeatMapResponse
from booking_engine.services.schedule_service import get_schedule, get_schedule_summary
from booking_engine.services.seat_ledger import snapshot_occupied

router = APIRouter(prefix="/schedules", tags=["Schedules"])


@router.get("/{schedule_id}", response_model=ScheduleResponse)
async def get_schedule_endpoint(
    schedule_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Schedule metadata. Cached in Redis; schedules are immutable here."""
    return await get_schedule_summary(db, schedule_id)


@router.get("/{schedule_id}/seats", response_model=SeatMapResponse)
async def get_seat_map_endpoint(
    schedule_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Seats held by confirmed bookings. Never cached."""
    schedule = await get_schedule(db, schedule_id)
    occupied = sorted(await snapshot_occupied(db, schedule_id))
    return SeatMapResponse(
        schedule_id=schedule_id,
        capacity=schedule.capacity,
        occupied_seats=occupied,
        available_count=max(schedule.capacity - len(occupied), 0),
    )
