"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter

from booking_engine.api.routes import bookings, payments, schedules

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(schedules.router)
api_router.include_router(bookings.router)
api_router.include_router(payments.router)
