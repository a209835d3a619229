"""Utility to seed or update user account passwords for local development."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from werkzeug.security import generate_password_hash

# Ensure the project root is on sys.path so ``salon`` can be imported when the script is executed directly.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from salon import create_app
from salon.extensions import db
from salon.models import AuthAccount, User

VALID_ROLES = ["customer", "stylist", "admin"]


def set_password(email: str, password: str, role: str = "admin") -> None:
    app = create_app()
    email = email.strip().lower()

    with app.app_context():
        db.create_all()

        user = User.query.filter_by(email=email).first()
        if user is None:
            user = User(username=f"{role.title()} User", email=email, role=role)
            db.session.add(user)
            db.session.flush()
            print(f"Created new {role} user: {email}")
        elif user.role != role:
            print(f"Updating user role from '{user.role}' to '{role}'")
            user.role = role

        account = db.session.get(AuthAccount, user.id)
        if account is None:
            account = AuthAccount(user_id=user.id)
            db.session.add(account)
            print(f"Created auth account for user: {email}")

        account.password_hash = generate_password_hash(password)
        db.session.commit()

        print(f"Password for {role} user '{email}' has been set successfully.")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Set a user password for local testing.")
    parser.add_argument("email", help="User email address")
    parser.add_argument("password", help="Plain-text password to hash and store")
    parser.add_argument(
        "--role",
        choices=VALID_ROLES,
        default="admin",
        help="User role (default: admin)"
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    set_password(args.email, args.password, args.role)


if __name__ == "__main__":
    main()
