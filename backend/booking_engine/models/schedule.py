"""
Schedule model: one trip instance (bus + route + time + price).

Rows are owned by the external scheduling tooling; the engine only reads them.
"""

from datetime import date, timezone
from zoneinfo import ZoneInfo

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, Numeric

from booking_engine.core.config import get_settings
from booking_engine.db.base import Base


class Schedule(Base):
    __tablename__ = "schedules"

    id = Column(Integer, primary_key=True, index=True)
    route_id = Column(Integer, nullable=False, index=True)
    bus_id = Column(Integer, nullable=False, index=True)
    departure_time = Column(DateTime(timezone=True), nullable=False)
    arrival_time = Column(DateTime(timezone=True), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)  # per seat
    capacity = Column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("price > 0", name="check_schedule_price_positive"),
        CheckConstraint("capacity > 0", name="check_schedule_capacity_positive"),
        CheckConstraint("arrival_time > departure_time", name="check_schedule_arrives_after_departure"),
        Index("ix_schedules_departure_time", "departure_time"),
    )

    @property
    def travel_date(self) -> date:
        """Departure date on the operator's local calendar."""
        departure = self.departure_time
        if departure.tzinfo is None:
            # SQLite hands back naive UTC
            departure = departure.replace(tzinfo=timezone.utc)
        return departure.astimezone(ZoneInfo(get_settings().TIMEZONE)).date()

    def __repr__(self) -> str:
        return f"<Schedule(id={self.id}, departs={self.departure_time}, price={self.price})>"
