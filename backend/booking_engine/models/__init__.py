from booking_engine.models.schedule import Schedule
from booking_engine.models.booking import Booking, BookingSeat, BookingStatus, BOOKING_TRANSITIONS
from booking_engine.models.payment import Payment, PaymentMethod, PaymentStatus, PAYMENT_TRANSITIONS

__all__ = [
    "Schedule",
    "Booking", "BookingSeat", "BookingStatus", "BOOKING_TRANSITIONS",
    "Payment", "PaymentMethod", "PaymentStatus", "PAYMENT_TRANSITIONS",
]
