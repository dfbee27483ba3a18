"""
Tests for schedule lookup, seat map and service endpoints.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from httpx import AsyncClient

from booking_engine.core.logging import _add_service_context


@pytest.mark.asyncio
async def test_get_schedule(client: AsyncClient, schedule):
    response = await client.get(f"/api/v1/schedules/{schedule.id}")
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == schedule.id
    assert data["capacity"] == 40
    assert data["travel_date"] == "2026-12-01"
    assert Decimal(data["price"]) == Decimal("1000.00")


@pytest.mark.asyncio
async def test_get_unknown_schedule(client: AsyncClient):
    response = await client.get("/api/v1/schedules/9999")
    assert response.status_code == 404
    assert response.json()["detail"]["kind"] == "ScheduleNotFound"


@pytest.mark.asyncio
async def test_seat_map_tracks_confirmed_bookings(client: AsyncClient, auth_headers, schedule, book):
    empty = (await client.get(f"/api/v1/schedules/{schedule.id}/seats")).json()
    assert empty == {"schedule_id": schedule.id, "capacity": 40, "occupied_seats": [], "available_count": 40}

    booking = await book(auth_headers, schedule.id, "B2,A1")
    seat_map = (await client.get(f"/api/v1/schedules/{schedule.id}/seats")).json()
    assert seat_map["occupied_seats"] == ["A1", "B2"]
    assert seat_map["available_count"] == 38

    await client.post(f"/api/v1/bookings/{booking['booking_id']}/cancel", headers=auth_headers)
    seat_map = (await client.get(f"/api/v1/schedules/{schedule.id}/seats")).json()
    assert seat_map["occupied_seats"] == []


@pytest.mark.asyncio
async def test_seat_map_unknown_schedule(client: AsyncClient):
    response = await client.get("/api/v1/schedules/9999/seats")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["cache"] == {"status": "disabled"}


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"
    assert response.headers["X-Response-Time"].endswith("ms")


@pytest.mark.asyncio
async def test_metrics_endpoint(client: AsyncClient, auth_headers, schedule, book):
    await book(auth_headers, schedule.id, "A1")

    response = await client.get("/metrics")

    assert response.status_code == 200
    assert "booking_attempts_total" in response.text
    assert "seat_claim_retries_total" in response.text


@pytest.mark.asyncio
async def test_travel_date_uses_operator_local_calendar(client: AsyncClient, auth_headers, make_schedule, book):
    """22:00 UTC on Nov 30 is 01:00 on Dec 1 in Nairobi."""
    late = await make_schedule(departure=datetime(2026, 11, 30, 22, 0, tzinfo=timezone.utc))

    schedule = (await client.get(f"/api/v1/schedules/{late.id}")).json()
    booking = await book(auth_headers, late.id, "A1")

    assert schedule["travel_date"] == "2026-12-01"
    assert booking["travel_date"] == "2026-12-01"


def test_log_records_carry_service_context():
    event_dict = _add_service_context(None, "info", {"event": "booking_created"})
    assert event_dict["service"] == "booking-engine"
    assert event_dict["environment"] == "test"
    assert "version" in event_dict
