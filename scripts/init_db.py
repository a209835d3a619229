#!/usr/bin/env python3
"""Create the salon tables (users, auth accounts, services, packages,
appointments, feedback, inventory) in the configured database.

Existing tables are left untouched; run with DATABASE_URL set to target a
database other than the local sqlite default.
"""
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from salon import create_app
from salon.extensions import db


def init_database():
    app = create_app()
    with app.app_context():
        db.create_all()
        tables = ", ".join(sorted(db.metadata.tables))
        print(f"✅ Salon tables ready in {app.config['SQLALCHEMY_DATABASE_URI']}: {tables}")


if __name__ == "__main__":
    init_database()
