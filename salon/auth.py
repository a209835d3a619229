"""Signed auth tokens and the request guards built on them."""
from __future__ import annotations

from functools import wraps

from flask import current_app, g, request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from sqlalchemy.exc import SQLAlchemyError

from .errors import AuthError, ForbiddenError, SalonError, database_error
from .extensions import db
from .models import User

TOKEN_COOKIE = "access_token"


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt="auth-token")


def build_token(user: User) -> str:
    return _serializer().dumps({"id": user.id, "role": user.role})


def _raw_token() -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return request.cookies.get(TOKEN_COOKIE)


def load_user() -> User | None:
    """Return the user behind the request token, or None if absent/invalid."""
    token = _raw_token()
    if not token:
        return None
    try:
        payload = _serializer().loads(token, max_age=current_app.config.get("TOKEN_MAX_AGE", 86400))
    except SignatureExpired:
        current_app.logger.warning("Rejected expired auth token")
        return None
    except BadSignature:
        current_app.logger.warning("Rejected malformed auth token")
        return None
    return db.session.get(User, payload.get("id"))


def current_user() -> User:
    user = getattr(g, "current_user", None)
    if user is None:
        raise AuthError("Authentication required")
    return user


def is_admin(user: User) -> bool:
    return user.role == "admin"


def ensure_owner_or_admin(owner_id: str) -> None:
    user = current_user()
    if user.id != owner_id and not is_admin(user):
        raise ForbiddenError("Only the owner or an admin may do this")


def login_required(*roles: str):
    """Resolve the caller into ``g.current_user``; optionally restrict roles."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                user = load_user()
                if user is None:
                    return AuthError("Authentication required").to_response()
                if roles and user.role not in roles:
                    return ForbiddenError(f"Requires role: {', '.join(roles)}").to_response()
                g.current_user = user
                return view(*args, **kwargs)
            except SalonError as exc:
                db.session.rollback()
                return exc.to_response()
            except SQLAlchemyError as exc:
                db.session.rollback()
                current_app.logger.exception(f"Database error in {view.__name__}", exc_info=exc)
                return database_error()

        return wrapper

    return decorator


admin_required = login_required("admin")
