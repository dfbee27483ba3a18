"""
Payment reconciliation: validate and record a payment against a booking.

The expected charge is always recomputed from the schedule's per-seat price
and the booking's seat count; the client's figure is only ever compared
against it, never trusted. Amounts are Decimals quantized to minor units.
"""

import uuid
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from booking_engine.core.config import get_settings
from booking_engine.core.exceptions import (
    BookingEngineError,
    BookingNotPayable,
    DuplicatePayment,
    InvalidAmount,
    UnsupportedMethod,
)
from booking_engine.core.logging import get_logger
from booking_engine.core.metrics import record_payment_attempt
from booking_engine.db.base import utcnow
from booking_engine.domain.payment_details import validate_card, validate_mobile_money
from booking_engine.models.booking import Booking, BookingStatus
from booking_engine.models.payment import Payment, PaymentMethod, PaymentStatus
from booking_engine.services.booking_service import get_booking

logger = get_logger(__name__)

CENT = Decimal("0.01")


def quantize_amount(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class ExpectedAmount:
    booking_id: int
    amount: Decimal
    seat_count: int
    price: Decimal


@dataclass
class PaymentResult:
    payment: Payment
    message: str


def _expected_for(booking: Booking) -> ExpectedAmount:
    price = quantize_amount(booking.schedule.price)
    seat_count = booking.seat_count
    return ExpectedAmount(
        booking_id=booking.id,
        amount=quantize_amount(price * seat_count),
        seat_count=seat_count,
        price=price,
    )


async def compute_expected_amount(
    db: AsyncSession,
    booking_id: int,
    customer_id: Optional[int] = None,
) -> ExpectedAmount:
    """Schedule price x seat count for a booking."""
    booking = await get_booking(db, booking_id, customer_id)
    return _expected_for(booking)


def _new_reference(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:16].upper()}"


def _check_method_details(method: PaymentMethod, fields: Mapping[str, Optional[str]], amount: str) -> str:
    """Validate method fields and build the confirmation message."""
    settings = get_settings()
    if method is PaymentMethod.MOBILE_MONEY:
        phone = validate_mobile_money(fields, settings.MOBILE_MONEY_PREFIX)
        return f"Payment of {settings.CURRENCY} {amount} received from {phone}"
    if method is PaymentMethod.CARD:
        validate_card(fields)
        return f"Card payment of {settings.CURRENCY} {amount} processed"
    raise UnsupportedMethod(method.value, [m.value for m in PaymentMethod])


async def _has_completed_payment(db: AsyncSession, booking_id: int) -> bool:
    result = await db.execute(
        select(Payment.id).where(
            Payment.booking_id == booking_id,
            Payment.status == PaymentStatus.COMPLETED,
        )
    )
    return result.first() is not None


async def submit_payment(
    db: AsyncSession,
    booking_id: int,
    amount_paid,
    method: Optional[str],
    method_fields: Mapping[str, Optional[str]],
    customer_id: Optional[int] = None,
) -> PaymentResult:
    """
    Validate a payment and persist it as Completed.

    Checks run in order: booking exists, booking is confirmed, amount matches,
    method is supported, method fields are well-formed, no completed payment
    exists yet, booking is still confirmed when the payment row is written.
    Nothing is committed unless every check passes.
    """
    try:
        booking = await get_booking(db, booking_id, customer_id)
        if booking.status is not BookingStatus.CONFIRMED:
            raise BookingNotPayable(booking_id, booking.status.value)

        expected = _expected_for(booking)
        submitted = quantize_amount(amount_paid)
        if submitted != expected.amount:
            raise InvalidAmount(
                submitted=str(amount_paid),
                expected=str(expected.amount),
                seat_count=expected.seat_count,
            )

        payment_method = PaymentMethod.parse(method)
        if payment_method is None:
            raise UnsupportedMethod(method, [m.value for m in PaymentMethod])

        message = _check_method_details(payment_method, method_fields, str(expected.amount))

        if await _has_completed_payment(db, booking_id):
            raise DuplicatePayment(booking_id)

        # Touch the booking row while it is still confirmed. This serializes the
        # insert below with the conditional UPDATE in cancel_booking.
        guard = await db.execute(
            update(Booking)
            .where(Booking.id == booking_id, Booking.status == BookingStatus.CONFIRMED)
            .values(updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if guard.rowcount != 1:
            await db.rollback()
            raise BookingNotPayable(booking_id, BookingStatus.CANCELED.value)
    except BookingEngineError as exc:
        record_payment_attempt(exc.kind)
        logger.warning(
            "payment_rejected",
            booking_id=booking_id,
            kind=exc.kind,
            reason=exc.message,
        )
        raise

    payment = Payment(
        booking_id=booking_id,
        amount_paid=expected.amount,
        payment_method=payment_method,
        receipt_number=_new_reference("REC"),
        transaction_reference=_new_reference(payment_method.reference_prefix),
        status=PaymentStatus.COMPLETED,
    )
    db.add(payment)
    try:
        await db.flush()
        await db.commit()
    except IntegrityError:
        await db.rollback()
        if not await _has_completed_payment(db, booking_id):
            raise
        # Lost a race with another submission for the same booking
        record_payment_attempt("DuplicatePayment")
        logger.warning("payment_rejected", booking_id=booking_id, kind="DuplicatePayment")
        raise DuplicatePayment(booking_id)

    record_payment_attempt("completed")
    logger.info(
        "payment_completed",
        payment_id=payment.id,
        booking_id=booking_id,
        amount=str(payment.amount_paid),
        method=payment_method.value,
        transaction_reference=payment.transaction_reference,
    )
    return PaymentResult(payment=payment, message=message)


async def list_customer_payments(db: AsyncSession, customer_id: int) -> list[Payment]:
    """Payment history across all of a customer's bookings, newest first."""
    result = await db.execute(
        select(Payment)
        .join(Booking, Booking.id == Payment.booking_id)
        .where(Booking.customer_id == customer_id)
        .order_by(Payment.payment_date.desc(), Payment.id.desc())
    )
    return list(result.scalars().all())
