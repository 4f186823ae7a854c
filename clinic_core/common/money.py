# clinic_core/common/money.py
"""
Money helpers.

Every monetary field in the database is an integer number of minor units
(cents). Major-unit values only exist at the presentation boundary.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings
from rest_framework.exceptions import ValidationError

CENTS = Decimal("100")

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "INR": "₹",
}


def round_half_up(value: Decimal) -> int:
    """Round to the nearest whole minor unit, halves away from zero."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_minor(value, field_name: str = "amount") -> int:
    """
    Major-unit input (str / int / float / Decimal) -> minor units.
    """
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError({field_name: "Invalid decimal value."})
    return round_half_up(amount * CENTS)


def to_major(cents: int) -> Decimal:
    return (Decimal(int(cents)) / CENTS).quantize(Decimal("0.01"))


def format_minor(cents: int, currency: str | None = None) -> str:
    code = (currency or getattr(settings, "CLINIC_CURRENCY", "USD")).upper()
    symbol = CURRENCY_SYMBOLS.get(code)
    amount = to_major(cents)
    if symbol:
        return f"{symbol}{amount:,.2f}"
    return f"{amount:,.2f} {code}"
