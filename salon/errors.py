"""Error taxonomy shared by the domain modules and the HTTP layer."""
from __future__ import annotations

from flask import jsonify


class SalonError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500
    error = "server_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_response(self):
        return jsonify({"error": self.error, "message": self.message}), self.status_code


class ValidationError(SalonError):
    """A required field is missing or malformed."""

    status_code = 400
    error = "invalid_payload"

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field

    def to_response(self):
        body = {"error": self.error, "message": self.message}
        if self.field:
            body["field"] = self.field
        return jsonify(body), self.status_code


class NotFoundError(SalonError):
    status_code = 404
    error = "not_found"


class TransitionError(SalonError):
    """A lifecycle change that the current status does not allow."""

    status_code = 409
    error = "invalid_transition"


class AuthError(SalonError):
    status_code = 401
    error = "unauthorized"


class ForbiddenError(AuthError):
    status_code = 403
    error = "forbidden"


def database_error(message: str = "Unexpected database error"):
    return jsonify({"error": "database_error", "message": message}), 500
