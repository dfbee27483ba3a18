"""
Payment endpoints: expected amount, submission, history.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from booking_engine.core.config import get_settings
from booking_engine.core.security import get_current_customer_id
from booking_engine.db.session import get_db
from booking_engine.schemas.payment import (
    ExpectedAmountResponse,
    PaymentCreate,
    PaymentCreateResponse,
    PaymentResponse,
)
from booking_engine.services.payment_service import (
    compute_expected_amount,
    list_customer_payments,
    submit_payment,
)

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.get("/expected-amount/{booking_id}", response_model=ExpectedAmountResponse)
async def expected_amount_endpoint(
    booking_id: int,
    customer_id: int = Depends(get_current_customer_id),
    db: AsyncSession = Depends(get_db),
):
    """Amount the payment form must submit: schedule price x seat count."""
    expected = await compute_expected_amount(db, booking_id, customer_id)
    return ExpectedAmountResponse(
        booking_id=expected.booking_id,
        amount=expected.amount,
        seat_count=expected.seat_count,
        price=expected.price,
        currency=get_settings().CURRENCY,
    )


@router.post("/", response_model=PaymentCreateResponse, status_code=status.HTTP_201_CREATED)
async def submit_payment_endpoint(
    payment_data: PaymentCreate,
    customer_id: int = Depends(get_current_customer_id),
    db: AsyncSession = Depends(get_db),
):
    """Validate and record a payment for a confirmed booking."""
    result = await submit_payment(
        db,
        payment_data.booking_id,
        payment_data.amount_paid,
        payment_data.payment_method,
        payment_data.method_fields(),
        customer_id=customer_id,
    )
    return PaymentCreateResponse(
        message=result.message,
        payment=PaymentResponse.model_validate(result.payment),
    )


@router.get("/", response_model=list[PaymentResponse])
async def list_payments_endpoint(
    customer_id: int = Depends(get_current_customer_id),
    db: AsyncSession = Depends(get_db),
):
    """Payment history for the authenticated customer."""
    return await list_customer_payments(db, customer_id)
