"""Package pricing and validity-window status."""
from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from .errors import ValidationError

CENT = Decimal("0.01")

UPCOMING = "upcoming"
ACTIVE = "active"
EXPIRED = "expired"


def _as_decimal(value, field: str) -> Decimal:
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"{field} must be a number", field=field) from None
    if not number.is_finite():
        raise ValidationError(f"{field} must be a finite number", field=field)
    return number


def compute_final_price(base_price, discount_rate) -> float:
    """Return ``base_price`` reduced by ``discount_rate`` percent.

    The arithmetic is decimal so a zero discount returns the base price
    exactly; the result is rounded half-up to cents. For a base price that
    is itself a whole number of cents the result never exceeds it.
    """
    base = _as_decimal(base_price, "base_price")
    rate = _as_decimal(discount_rate, "discount_rate")
    if base < 0:
        raise ValidationError("base_price must not be negative", field="base_price")
    if rate < 0 or rate > 100:
        raise ValidationError("discount_rate must be between 0 and 100", field="discount_rate")

    final = base * (1 - rate / 100)
    return float(final.quantize(CENT, rounding=ROUND_HALF_UP))


def compute_status(start_date: date, end_date: date, today: date) -> str:
    if today < start_date:
        return UPCOMING
    if today > end_date:
        return EXPIRED
    return ACTIVE


def validate_window(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date", field="end_date")
