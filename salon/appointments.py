"""Appointment lifecycle: booking validation and status transitions."""
from __future__ import annotations

import re
from datetime import date, datetime, time

from .errors import NotFoundError, TransitionError, ValidationError
from .extensions import db
from .models import Appointment, Package
from .validation import clean_str, parse_date, parse_email, parse_phone, parse_time, require_fields

PROCESSING = "Processing"
PENDING = "Pending"
CONFIRMED = "Confirmed"
COMPLETED = "Completed"
CANCELLED = "Cancelled"

# Forward order of the happy path; Cancelled sits outside it.
LIFECYCLE = (PROCESSING, PENDING, CONFIRMED, COMPLETED)
STATUSES = LIFECYCLE + (CANCELLED,)
TERMINAL = frozenset({COMPLETED, CANCELLED})

REQUIRED_FIELDS = [
    "client_name",
    "client_email",
    "client_phone",
    "stylist",
    "appoi_date",
    "appoi_time",
    "services",
]

_DIGIT_RE = re.compile(r"\d")


def is_terminal(status: str) -> bool:
    return status in TERMINAL


def check_transition(current: str, new: str) -> None:
    """Raise TransitionError unless ``current -> new`` moves forward.

    Setting the current status again is allowed. Skipping forward along the
    lifecycle is allowed; moving backwards or leaving a terminal state is not.
    """
    if new not in STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(STATUSES)}", field="status")
    if new == current:
        return
    if is_terminal(current):
        raise TransitionError(f"Cannot change status of a {current.lower()} appointment")
    if new == CANCELLED:
        return
    if LIFECYCLE.index(new) < LIFECYCLE.index(current):
        raise TransitionError(f"Cannot move appointment from {current} back to {new}")


def normalize_services(value) -> str:
    if isinstance(value, (list, tuple)):
        names = [str(v).strip() for v in value]
    else:
        names = str(value or "").split(",")
    names = [n.strip() for n in names if n and n.strip()]
    if not names:
        raise ValidationError("At least one service must be selected", field="services")
    return ", ".join(names)


def check_not_in_past(appoi_date: date, appoi_time: time, now: datetime) -> None:
    if appoi_date < now.date():
        raise ValidationError("appoi_date cannot be in the past", field="appoi_date")
    if appoi_date == now.date() and appoi_time < now.time().replace(second=0, microsecond=0):
        raise ValidationError("appoi_time cannot be in the past", field="appoi_time")


def _client_name(value) -> str:
    name = str(value).strip()
    if _DIGIT_RE.search(name):
        raise ValidationError("client_name must not contain numbers", field="client_name")
    return name


def _package_id(value) -> str | None:
    package_id = (str(value).strip() if value is not None else "") or None
    if package_id and db.session.get(Package, package_id) is None:
        raise NotFoundError("Package not found")
    return package_id


def build_appointment(payload: dict, user_id: str, now: datetime) -> Appointment:
    """Validate a booking request and return an unsaved Appointment."""
    require_fields(payload, REQUIRED_FIELDS)

    appoi_date = parse_date(payload["appoi_date"], "appoi_date")
    appoi_time = parse_time(payload["appoi_time"], "appoi_time")
    check_not_in_past(appoi_date, appoi_time, now)

    return Appointment(
        user_id=user_id,
        client_name=_client_name(payload["client_name"]),
        client_email=parse_email(payload["client_email"], "client_email"),
        client_phone=parse_phone(payload["client_phone"]),
        stylist=str(payload["stylist"]).strip(),
        services=normalize_services(payload["services"]),
        package_id=_package_id(payload.get("packages", payload.get("package_id"))),
        customize_package=clean_str(payload, "customize_package"),
        appoi_date=appoi_date,
        appoi_time=appoi_time,
        status=PROCESSING,
    )


def apply_update(appointment: Appointment, payload: dict, now: datetime) -> Appointment:
    """Apply an owner edit. Status is moderated separately."""
    if is_terminal(appointment.status):
        raise TransitionError(f"Cannot edit a {appointment.status.lower()} appointment")
    if "status" in payload:
        raise ValidationError("status is changed through the status endpoint", field="status")

    for field in ("client_name", "client_email", "client_phone", "stylist", "services"):
        if field in payload:
            require_fields(payload, [field])

    if "client_name" in payload:
        appointment.client_name = _client_name(payload["client_name"])
    if "client_email" in payload:
        appointment.client_email = parse_email(payload["client_email"], "client_email")
    if "client_phone" in payload:
        appointment.client_phone = parse_phone(payload["client_phone"])
    if "stylist" in payload:
        appointment.stylist = str(payload["stylist"]).strip()
    if "services" in payload:
        appointment.services = normalize_services(payload["services"])
    if "packages" in payload or "package_id" in payload:
        appointment.package_id = _package_id(payload.get("packages", payload.get("package_id")))
    if "customize_package" in payload:
        appointment.customize_package = clean_str(payload, "customize_package")

    if "appoi_date" in payload or "appoi_time" in payload:
        new_date = parse_date(payload.get("appoi_date", appointment.appoi_date), "appoi_date")
        new_time = parse_time(payload.get("appoi_time", appointment.appoi_time), "appoi_time")
        check_not_in_past(new_date, new_time, now)
        appointment.appoi_date = new_date
        appointment.appoi_time = new_time

    return appointment


def set_status(appointment: Appointment, new_status) -> Appointment:
    new_status = (str(new_status).strip() if new_status is not None else "")
    # Accept "confirmed" as well as "Confirmed".
    new_status = new_status[:1].upper() + new_status[1:].lower() if new_status else new_status
    check_transition(appointment.status, new_status)
    appointment.status = new_status
    return appointment
