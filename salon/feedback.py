"""Feedback submission rules and moderation."""
from __future__ import annotations

from datetime import date

from .errors import TransitionError, ValidationError
from .models import Feedback, User
from .validation import clean_str, parse_date, parse_int, require_fields

PENDING = "pending"
APPROVED = "approved"
DECLINED = "declined"

MODERATION_OUTCOMES = (APPROVED, DECLINED)

REQUIRED_FIELDS = ["serviceID", "message", "star_rating", "date_of_service"]


def parse_rating(value) -> int:
    try:
        return parse_int(value, "star_rating", minimum=1, maximum=5)
    except ValidationError:
        raise ValidationError("star_rating must be an integer between 1 and 5", field="star_rating") from None


def _service_ref(value) -> str:
    ref = str(value).strip()
    if not ref:
        raise ValidationError("Missing required field(s): serviceID", field="serviceID")
    return ref


def build_feedback(payload: dict, user: User, today: date) -> Feedback:
    """Validate a submission and return an unsaved, pending Feedback.

    Feedback is only accepted for a service received today, judged by the
    server clock. Any status sent by the client is ignored.
    """
    require_fields(payload, REQUIRED_FIELDS)

    date_of_service = parse_date(payload["date_of_service"], "date_of_service")
    if date_of_service != today:
        raise ValidationError(
            "You can only provide feedback for today's service",
            field="date_of_service",
        )

    return Feedback(
        user_id=user.id,
        username=user.username,
        service_ref=_service_ref(payload["serviceID"]),
        employee=clean_str(payload, "employee"),
        message=str(payload["message"]).strip(),
        star_rating=parse_rating(payload["star_rating"]),
        date_of_service=date_of_service,
        status=PENDING,
    )


def apply_update(feedback: Feedback, payload: dict) -> Feedback:
    """Owner edit of the content. The moderation status is left untouched."""
    if "message" in payload:
        require_fields(payload, ["message"])
        feedback.message = str(payload["message"]).strip()
    if "star_rating" in payload:
        feedback.star_rating = parse_rating(payload["star_rating"])
    if "serviceID" in payload:
        require_fields(payload, ["serviceID"])
        feedback.service_ref = _service_ref(payload["serviceID"])
    if "employee" in payload:
        feedback.employee = clean_str(payload, "employee")
    return feedback


def moderate(feedback: Feedback, new_status) -> Feedback:
    new_status = str(new_status or "").strip().lower()
    if new_status not in MODERATION_OUTCOMES:
        raise ValidationError(
            f"status must be one of: {', '.join(MODERATION_OUTCOMES)}",
            field="status",
        )
    if feedback.status != PENDING:
        raise TransitionError(f"Feedback has already been {feedback.status}")
    feedback.status = new_status
    return feedback
