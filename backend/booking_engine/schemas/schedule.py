"""
Pydantic schemas for schedule lookups and seat maps.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel


class ScheduleResponse(BaseModel):
    id: int
    route_id: int
    bus_id: int
    departure_time: datetime
    arrival_time: datetime
    travel_date: date
    price: Decimal
    capacity: int

    model_config = {"from_attributes": True}


class SeatMapResponse(BaseModel):
    schedule_id: int
    capacity: int
    occupied_seats: list[str]
    available_count: int
