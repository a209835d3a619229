"""Field-level parsing helpers shared by the request handlers."""
from __future__ import annotations

import re
from datetime import date, time
from decimal import Decimal, InvalidOperation

from .errors import ValidationError

EMAIL_RE = re.compile(r"^\S+@\S+\.\S+$")
PHONE_RE = re.compile(r"^\d{10}$")
DURATION_RE = re.compile(r"^(?:(\d+)h\s*)?(?:(\d+)m\s*)?$")
MONEY_RE = re.compile(r"^\d+(\.\d{0,2})?$")


def require_fields(payload: dict, fields: list[str]) -> None:
    missing = [
        name for name in fields
        if payload.get(name) is None or (isinstance(payload.get(name), str) and not payload[name].strip())
    ]
    if missing:
        raise ValidationError(
            f"Missing required field(s): {', '.join(missing)}",
            field=missing[0],
        )


def clean_str(payload: dict, field: str) -> str | None:
    value = payload.get(field)
    if value is None:
        return None
    return str(value).strip() or None


def parse_email(value, field: str = "email") -> str:
    email = (value or "").strip().lower()
    if not EMAIL_RE.match(email):
        raise ValidationError("Please provide a valid email address", field=field)
    return email


def parse_phone(value, field: str = "client_phone") -> str:
    phone = str(value or "").strip()
    if not PHONE_RE.match(phone):
        raise ValidationError("Please provide a valid 10-digit phone number", field=field)
    return phone


def parse_date(value, field: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except (ValueError, TypeError):
        raise ValidationError(f"{field} must be a date in YYYY-MM-DD format", field=field) from None


def parse_time(value, field: str) -> time:
    if isinstance(value, time):
        return value
    try:
        parsed = time.fromisoformat(str(value).strip())
    except (ValueError, TypeError):
        raise ValidationError(f"{field} must be a time in HH:MM format", field=field) from None
    return parsed.replace(second=0, microsecond=0)


def parse_money(value, field: str, *, maximum: Decimal | None = None, allow_zero: bool = False) -> Decimal:
    """Parse a price with at most two decimal places."""
    text = str(value).strip() if value is not None else ""
    if isinstance(value, bool) or not MONEY_RE.match(text):
        raise ValidationError(f"{field} must be a number with up to 2 decimal places", field=field)
    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValidationError(f"{field} must be a valid number", field=field) from None
    if amount < 0 or (amount == 0 and not allow_zero):
        raise ValidationError(f"{field} must be greater than 0", field=field)
    if maximum is not None and amount > maximum:
        raise ValidationError(f"{field} cannot exceed {maximum:,}", field=field)
    return amount


def parse_int(value, field: str, *, minimum: int | None = None, maximum: int | None = None) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer", field=field)
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        number = int(value.strip())
    else:
        raise ValidationError(f"{field} must be an integer", field=field)
    if minimum is not None and number < minimum:
        raise ValidationError(f"{field} must be at least {minimum}", field=field)
    if maximum is not None and number > maximum:
        raise ValidationError(f"{field} cannot exceed {maximum:,}", field=field)
    return number


def parse_duration(value, field: str = "duration") -> str:
    text = str(value or "").strip()
    match = DURATION_RE.match(text)
    if not text or not match:
        raise ValidationError('Duration must be in format "Xh Ym" (e.g. "1h 30m", "2h", "45m")', field=field)
    hours = int(match.group(1) or 0)
    minutes = int(match.group(2) or 0)
    if hours == 0 and minutes == 0:
        raise ValidationError("Duration must specify either hours, minutes, or both", field=field)
    return text


def parse_flag(value, field: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value or "").strip().lower()
    if text in {"yes", "true", "1"}:
        return True
    if text in {"no", "false", "0"}:
        return False
    raise ValidationError(f"{field} must be Yes or No", field=field)
