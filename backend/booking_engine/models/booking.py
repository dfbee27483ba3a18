"""
Booking and seat-claim models.

Key design decisions:
- A booking's seats live in `booking_seats`, one row per (schedule, seat label)
- `booking_seats.status` mirrors the owning booking's status and is changed in
  the same transaction
- A partial unique index on (schedule_id, seat_label) WHERE status = 'confirmed'
  makes double-booking impossible at the storage layer, whatever process
  handles the request
- Bookings are never deleted; cancellation is a status transition
"""

import enum

from sqlalchemy import Column, Date, Enum, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import relationship

from booking_engine.db.base import Base, TimestampMixin
from booking_engine.domain.seats import MAX_SEAT_LABEL_LENGTH


class BookingStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    CANCELED = "canceled"


# Allowed transitions; Canceled is terminal.
BOOKING_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELED}),
    BookingStatus.CANCELED: frozenset(),
}


def booking_status_type(name: str) -> Enum:
    return Enum(
        BookingStatus,
        name=name,
        native_enum=False,
        create_constraint=True,
        values_callable=lambda members: [m.value for m in members],
        length=20,
    )


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, nullable=False, index=True)
    schedule_id = Column(Integer, ForeignKey("schedules.id"), nullable=False, index=True)
    booking_date = Column(Date, nullable=False)
    travel_date = Column(Date, nullable=False)
    status = Column(booking_status_type("booking_status"), nullable=False, default=BookingStatus.CONFIRMED)

    # Relationships
    schedule = relationship("Schedule", lazy="selectin")
    seats = relationship(
        "BookingSeat",
        back_populates="booking",
        order_by="BookingSeat.position",
        lazy="selectin",
    )
    payments = relationship(
        "Payment",
        back_populates="booking",
        order_by="Payment.id",
        lazy="selectin",
    )

    @property
    def seat_labels(self) -> list[str]:
        return [seat.seat_label for seat in self.seats]

    @property
    def seat_count(self) -> int:
        return len(self.seats)

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, customer={self.customer_id}, schedule={self.schedule_id}, status={self.status})>"


class BookingSeat(Base):
    __tablename__ = "booking_seats"

    id = Column(Integer, primary_key=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    schedule_id = Column(Integer, ForeignKey("schedules.id"), nullable=False)
    seat_label = Column(String(MAX_SEAT_LABEL_LENGTH), nullable=False)
    position = Column(Integer, nullable=False)
    status = Column(booking_status_type("booking_seat_status"), nullable=False, default=BookingStatus.CONFIRMED)

    booking = relationship("Booking", back_populates="seats")

    __table_args__ = (
        # One confirmed holder per seat per schedule
        Index(
            "uq_booking_seats_confirmed_seat",
            "schedule_id",
            "seat_label",
            unique=True,
            postgresql_where=text("status = 'confirmed'"),
            sqlite_where=text("status = 'confirmed'"),
        ),
        # Occupancy snapshot lookups
        Index("ix_booking_seats_schedule_status", "schedule_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<BookingSeat(schedule={self.schedule_id}, seat={self.seat_label}, status={self.status})>"
