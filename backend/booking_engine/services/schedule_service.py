"""
Schedule lookup: read-only access to trip metadata.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from booking_engine.core.exceptions import ScheduleNotFound
from booking_engine.core.logging import get_logger
from booking_engine.models.schedule import Schedule
from booking_engine.services.cache_service import get_cached_schedule, set_cached_schedule

logger = get_logger(__name__)


async def get_schedule(db: AsyncSession, schedule_id: int) -> Schedule:
    """Load a schedule straight from the database."""
    result = await db.execute(select(Schedule).where(Schedule.id == schedule_id))
    schedule = result.scalar_one_or_none()

    if not schedule:
        raise ScheduleNotFound(schedule_id)
    return schedule


def summarize_schedule(schedule: Schedule) -> dict:
    return {
        "id": schedule.id,
        "route_id": schedule.route_id,
        "bus_id": schedule.bus_id,
        "departure_time": schedule.departure_time.isoformat(),
        "arrival_time": schedule.arrival_time.isoformat(),
        "travel_date": schedule.travel_date.isoformat(),
        "price": str(schedule.price),
        "capacity": schedule.capacity,
    }


async def get_schedule_summary(db: AsyncSession, schedule_id: int) -> dict:
    """
    Schedule metadata for display, read through the Redis cache.
    Never used on the seat-claim or payment paths.
    """
    cached = await get_cached_schedule(schedule_id)
    if cached:
        logger.info("schedule_cache_hit", schedule_id=schedule_id)
        return cached

    schedule = await get_schedule(db, schedule_id)
    summary = summarize_schedule(schedule)
    await set_cached_schedule(schedule_id, summary)
    return summary
