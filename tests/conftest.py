"""pytest configuration and shared fixtures."""
from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path

import pytest
from werkzeug.security import generate_password_hash

# Ensure the project root is available on sys.path so tests can import the salon package.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from salon import clock, create_app  # noqa: E402
from salon.auth import build_token  # noqa: E402
from salon.extensions import db  # noqa: E402
from salon.models import AuthAccount, User  # noqa: E402

# Fixed "now" for every test that depends on the clock.
FIXED_NOW = datetime(2030, 6, 15, 12, 0)


@pytest.fixture
def app(tmp_path):
    flask_app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "SECRET_KEY": "test-secret",
        "UPLOAD_FOLDER": str(tmp_path / "uploads"),
    })
    with flask_app.app_context():
        db.create_all()

    yield flask_app

    with flask_app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def frozen_now(monkeypatch):
    monkeypatch.setattr(clock, "local_now", lambda: FIXED_NOW)
    return FIXED_NOW


def create_account(app, *, role: str = "customer", email: str = "user@example.com",
                   password: str = "Secret123!", username: str = "Test User") -> tuple[str, dict[str, str]]:
    """Create a user with a password and return (user_id, auth headers)."""
    with app.app_context():
        user = User(username=username, email=email, role=role)
        db.session.add(user)
        db.session.flush()
        db.session.add(AuthAccount(user_id=user.id, password_hash=generate_password_hash(password)))
        db.session.commit()
        token = build_token(user)
        return user.id, {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin(app):
    return create_account(app, role="admin", email="admin@example.com", username="Admin")


@pytest.fixture
def customer(app):
    return create_account(app, role="customer", email="cathy@example.com", username="Cathy")
