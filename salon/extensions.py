"""Flask extensions shared by the salon app factory, models and routes."""
from __future__ import annotations

from flask_sqlalchemy import SQLAlchemy

# Bound to an app in create_app; models and route handlers use db.session.
db = SQLAlchemy()
