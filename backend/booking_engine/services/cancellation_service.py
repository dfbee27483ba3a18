"""
Cancellation / refund state machine.

    Booking:  confirmed --> canceled        (terminal)
    Payment:  completed --> refund_pending  (terminal here; settlement is external)

Both transitions are conditional UPDATEs guarded by the current status, and
they commit together. The payment transition only runs after the booking
transition changed a row, so a second cancel of the same booking can never
touch its payment again.
"""

import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from booking_engine.core.config import get_settings
from booking_engine.core.exceptions import BookingNotCancelable
from booking_engine.core.logging import get_logger
from booking_engine.core.metrics import record_cancellation
from booking_engine.models.booking import BOOKING_TRANSITIONS, Booking, BookingSeat, BookingStatus
from booking_engine.models.payment import PAYMENT_TRANSITIONS, Payment, PaymentStatus

logger = get_logger(__name__)


class CancellationOutcome(str, enum.Enum):
    REFUND_PENDING = "refund_pending"
    NO_PAYMENT = "no_payment"


@dataclass
class CancellationResult:
    booking_id: int
    outcome: CancellationOutcome
    refund_amount: Optional[Decimal] = None
    payment_id: Optional[int] = None

    @property
    def status(self) -> BookingStatus:
        return BookingStatus.CANCELED

    @property
    def message(self) -> str:
        if self.outcome is CancellationOutcome.REFUND_PENDING:
            currency = get_settings().CURRENCY
            return f"Booking canceled. Refund of {currency} {self.refund_amount} will be processed."
        return "Booking canceled. No payment found."


Status = Union[BookingStatus, PaymentStatus]


def can_transition(current: Status, target: Status) -> bool:
    """True when `current -> target` is a legal transition for its enum."""
    if isinstance(current, BookingStatus) and isinstance(target, BookingStatus):
        return target in BOOKING_TRANSITIONS[current]
    if isinstance(current, PaymentStatus) and isinstance(target, PaymentStatus):
        return target in PAYMENT_TRANSITIONS[current]
    return False


def _sources(target: Status) -> list:
    """States from which `target` is reachable in one step."""
    return [state for state in type(target) if can_transition(state, target)]


async def cancel_booking(
    db: AsyncSession,
    booking_id: int,
    customer_id: Optional[int] = None,
) -> CancellationResult:
    """
    Cancel a confirmed booking and mark its completed payment refund-pending.
    Raises BookingNotCancelable if the booking is missing, not owned by the
    customer, or already canceled.
    """
    booking_update = (
        update(Booking)
        .where(
            Booking.id == booking_id,
            Booking.status.in_(_sources(BookingStatus.CANCELED)),
        )
        .values(status=BookingStatus.CANCELED)
        .execution_options(synchronize_session=False)
    )
    if customer_id is not None:
        booking_update = booking_update.where(Booking.customer_id == customer_id)

    result = await db.execute(booking_update)
    if result.rowcount == 0:
        await db.rollback()
        record_cancellation("not_cancelable")
        logger.warning("booking_not_cancelable", booking_id=booking_id, customer_id=customer_id)
        raise BookingNotCancelable(booking_id)

    # Seat rows follow the booking; this is what frees the seats
    await db.execute(
        update(BookingSeat)
        .where(BookingSeat.booking_id == booking_id)
        .values(status=BookingStatus.CANCELED)
        .execution_options(synchronize_session=False)
    )

    payment_result = await db.execute(
        update(Payment)
        .where(
            Payment.booking_id == booking_id,
            Payment.status.in_(_sources(PaymentStatus.REFUND_PENDING)),
        )
        .values(status=PaymentStatus.REFUND_PENDING)
        .execution_options(synchronize_session=False)
    )

    refunded = None
    if payment_result.rowcount > 0:
        refunded = (
            await db.execute(
                select(Payment.id, Payment.amount_paid)
                .where(
                    Payment.booking_id == booking_id,
                    Payment.status == PaymentStatus.REFUND_PENDING,
                )
                .order_by(Payment.id.desc())
                .limit(1)
            )
        ).first()

    await db.commit()

    if refunded is not None:
        outcome = CancellationResult(
            booking_id=booking_id,
            outcome=CancellationOutcome.REFUND_PENDING,
            refund_amount=refunded.amount_paid,
            payment_id=refunded.id,
        )
    else:
        outcome = CancellationResult(booking_id=booking_id, outcome=CancellationOutcome.NO_PAYMENT)

    record_cancellation(outcome.outcome.value)
    logger.info(
        "booking_cancelled",
        booking_id=booking_id,
        customer_id=customer_id,
        outcome=outcome.outcome.value,
        refund_amount=str(outcome.refund_amount) if outcome.refund_amount is not None else None,
    )
    return outcome
