"""
Structural validation of method-specific payment fields.

Each validator raises InvalidPaymentDetails naming the first field that
fails. Nothing here touches the database or the amount.
"""

import re
from typing import Mapping, Optional

from booking_engine.core.exceptions import InvalidPaymentDetails

CARD_NUMBER_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{4}-[0-9]{4}-[0-9]{4}$")
EXPIRY_PATTERN = re.compile(r"^([0-9]{2})/([0-9]{2})$")
CVV_PATTERN = re.compile(r"^[0-9]{3}$")
DIGITS_PATTERN = re.compile(r"^[0-9]+$")


def _field(fields: Mapping[str, Optional[str]], name: str) -> Optional[str]:
    value = fields.get(name)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def validate_mobile_money(fields: Mapping[str, Optional[str]], carrier_prefix: str) -> str:
    """
    Validate a mobile-money payer number:
    - exactly 10 characters
    - starts with the carrier prefix
    - digits only

    Returns the normalized phone number.
    """
    phone = _field(fields, "phone_number")
    if phone is None:
        raise InvalidPaymentDetails("phone_number", "Phone number is required")

    if len(phone) != 10:
        raise InvalidPaymentDetails("phone_number", "Phone number must be 10 digits")

    if not phone.startswith(carrier_prefix):
        raise InvalidPaymentDetails(
            "phone_number", f"Phone number must start with {carrier_prefix}"
        )

    if not DIGITS_PATTERN.match(phone):
        raise InvalidPaymentDetails("phone_number", "Phone number must contain only digits")

    return phone


def validate_card(fields: Mapping[str, Optional[str]]) -> str:
    """
    Validate card fields:
    - card number: 16 digits grouped 4-4-4-4 with hyphens
    - expiry: MM/YY, month 01-12
    - cvv: exactly 3 digits

    Returns the last four digits of the card for display.
    """
    card_number = _field(fields, "card_number")
    expiry = _field(fields, "expiry")
    cvv = _field(fields, "cvv")

    for name, value in (("card_number", card_number), ("expiry", expiry), ("cvv", cvv)):
        if value is None:
            raise InvalidPaymentDetails(name, "All card details are required")

    if not CARD_NUMBER_PATTERN.match(card_number):
        raise InvalidPaymentDetails(
            "card_number",
            "Card number must be 16 digits with hyphens (e.g., 4111-1111-1111-1111)",
        )

    match = EXPIRY_PATTERN.match(expiry)
    if not match:
        raise InvalidPaymentDetails("expiry", "Expiry must be in MM/YY format (e.g., 12/25)")

    month = int(match.group(1))
    if month < 1 or month > 12:
        raise InvalidPaymentDetails("expiry", "Expiry month must be between 01 and 12")

    if not CVV_PATTERN.match(cvv):
        raise InvalidPaymentDetails("cvv", "CVV must be exactly 3 digits")

    return card_number[-4:]
