"""
Payment model tied to a booking.

Key design decisions:
- receipt_number and transaction_reference are globally unique
- Partial unique index on booking_id WHERE status = 'completed' allows at most
  one active payment per booking
- Refund settlement is external; Refund-Pending is terminal here
"""

import enum
from typing import Optional

from sqlalchemy import CheckConstraint, Column, DateTime, Enum, ForeignKey, Index, Integer, Numeric, String, text
from sqlalchemy.orm import relationship

from booking_engine.db.base import Base, TimestampMixin, utcnow


class PaymentMethod(str, enum.Enum):
    MOBILE_MONEY = "Mobile Money"
    CARD = "Card"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["PaymentMethod"]:
        """Match by value or member name, ignoring case, spaces and underscores."""
        if not raw:
            return None
        key = raw.strip().lower().replace("_", " ")
        for method in cls:
            if key in (method.value.lower(), method.name.lower().replace("_", " ")):
                return method
        return None

    @property
    def reference_prefix(self) -> str:
        return "MPESA" if self is PaymentMethod.MOBILE_MONEY else "CARD"


class PaymentStatus(str, enum.Enum):
    COMPLETED = "completed"
    REFUND_PENDING = "refund_pending"


PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.COMPLETED: frozenset({PaymentStatus.REFUND_PENDING}),
    PaymentStatus.REFUND_PENDING: frozenset(),
}


class Payment(Base, TimestampMixin):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    amount_paid = Column(Numeric(10, 2), nullable=False)
    payment_method = Column(
        Enum(
            PaymentMethod,
            name="payment_method",
            native_enum=False,
            create_constraint=True,
            values_callable=lambda members: [m.value for m in members],
            length=20,
        ),
        nullable=False,
    )
    payment_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    receipt_number = Column(String(40), nullable=False, unique=True)
    transaction_reference = Column(String(40), nullable=False, unique=True)
    status = Column(
        Enum(
            PaymentStatus,
            name="payment_status",
            native_enum=False,
            create_constraint=True,
            values_callable=lambda members: [m.value for m in members],
            length=20,
        ),
        nullable=False,
        default=PaymentStatus.COMPLETED,
    )

    booking = relationship("Booking", back_populates="payments")

    __table_args__ = (
        CheckConstraint("amount_paid > 0", name="check_payment_amount_positive"),
        Index(
            "uq_payments_completed_booking",
            "booking_id",
            unique=True,
            postgresql_where=text("status = 'completed'"),
            sqlite_where=text("status = 'completed'"),
        ),
    )

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, booking={self.booking_id}, amount={self.amount_paid}, status={self.status})>"
