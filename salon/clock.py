"""Local wall-clock helpers used by the date rules."""
from __future__ import annotations

from datetime import date, datetime


def local_now() -> datetime:
    """Return the current naive local datetime."""
    return datetime.now()


def local_today() -> date:
    return local_now().date()
