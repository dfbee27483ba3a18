"""
Pydantic schemas for payment-related request/response validation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from booking_engine.models.payment import PaymentMethod, PaymentStatus


class PaymentCreate(BaseModel):
    booking_id: int = Field(..., gt=0)
    amount_paid: Decimal = Field(..., gt=0)
    # Free text on purpose: unknown methods are reported as UnsupportedMethod
    payment_method: str = Field(..., min_length=1, max_length=40)

    # Mobile Money
    phone_number: Optional[str] = Field(None, max_length=32)

    # Card
    card_number: Optional[str] = Field(None, max_length=32)
    expiry: Optional[str] = Field(None, max_length=10)
    cvv: Optional[str] = Field(None, max_length=10)

    def method_fields(self) -> dict[str, Optional[str]]:
        return {
            "phone_number": self.phone_number,
            "card_number": self.card_number,
            "expiry": self.expiry,
            "cvv": self.cvv,
        }


class PaymentResponse(BaseModel):
    id: int
    booking_id: int
    amount_paid: Decimal
    payment_method: PaymentMethod
    payment_date: datetime
    receipt_number: str
    transaction_reference: str
    status: PaymentStatus

    model_config = {"from_attributes": True}


class PaymentCreateResponse(BaseModel):
    message: str
    payment: PaymentResponse


class ExpectedAmountResponse(BaseModel):
    booking_id: int
    amount: Decimal
    seat_count: int
    price: Decimal
    currency: str
