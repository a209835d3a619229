"""Database models for the salon backend."""
from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

from . import clock
from .extensions import db
from .pricing import compute_final_price, compute_status


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


def _money(value) -> float | None:
    return float(value) if value is not None else None


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    username = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    role = db.Column(
        db.Enum(
            "customer",
            "stylist",
            "admin",
            name="user_role",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        server_default="customer",
    )
    position = db.Column(db.String(100))
    phone = db.Column(db.String(30))
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    auth_account = db.relationship(
        "AuthAccount",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    def to_dict_basic(self) -> dict[str, object]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "position": self.position,
            "phone": self.phone,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class AuthAccount(db.Model):
    __tablename__ = "auth_accounts"

    user_id = db.Column(db.String(32), db.ForeignKey("users.id"), primary_key=True)
    password_hash = db.Column(db.String(255), nullable=False)
    last_login_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(db.DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    user = db.relationship("User", back_populates="auth_account")


class Service(db.Model):
    """A bookable salon service (haircut, manicure, ...)."""

    __tablename__ = "services"

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    # Canonical identifier such as "service42"; feedback rows point at it.
    service_id = db.Column(db.String(64), unique=True, nullable=False)
    category = db.Column(db.String(50), nullable=False)
    sub_category = db.Column(db.String(50), nullable=False)
    description = db.Column(db.Text)
    duration = db.Column(db.String(20), nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    available = db.Column(db.Boolean, nullable=False, default=True)
    image = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    def to_summary(self) -> dict[str, object]:
        return {"category": self.category, "subCategory": self.sub_category}

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "service_id": self.service_id,
            "category": self.category,
            "subCategory": self.sub_category,
            "description": self.description,
            "duration": self.duration,
            "price": _money(self.price),
            "available": bool(self.available),
            "image": self.image,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class Package(db.Model):
    """A discounted bundle of services with a validity window."""

    __tablename__ = "packages"

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    p_name = db.Column(db.String(50), nullable=False)
    description = db.Column(db.Text)
    # Store ids of the bundled services. Not enforced; a service may vanish.
    services = db.Column(db.JSON, nullable=False, default=list)
    base_price = db.Column(db.Numeric(10, 2), nullable=False)
    discount_rate = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    conditions = db.Column(db.Text)
    package_type = db.Column(db.String(50))
    category = db.Column(db.String(30))
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    def to_dict(self, today: date | None = None) -> dict[str, object]:
        today = today or clock.local_today()
        return {
            "id": self.id,
            "p_name": self.p_name,
            "description": self.description,
            "services": list(self.services or []),
            "base_price": _money(self.base_price),
            "discount_rate": _money(self.discount_rate),
            "final_price": compute_final_price(self.base_price, self.discount_rate),
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "status": compute_status(self.start_date, self.end_date, today),
            "conditions": self.conditions,
            "package_type": self.package_type,
            "category": self.category,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Appointment(db.Model):
    __tablename__ = "appointments"

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    user_id = db.Column(db.String(32), nullable=False, index=True)
    client_name = db.Column(db.String(100), nullable=False)
    client_email = db.Column(db.String(255), nullable=False)
    client_phone = db.Column(db.String(10), nullable=False)
    stylist = db.Column(db.String(100), nullable=False)
    services = db.Column(db.Text, nullable=False)
    package_id = db.Column(db.String(32))
    customize_package = db.Column(db.Text)
    appoi_date = db.Column(db.Date, nullable=False)
    appoi_time = db.Column(db.Time, nullable=False)
    status = db.Column(
        db.Enum(
            "Processing",
            "Pending",
            "Confirmed",
            "Completed",
            "Cancelled",
            name="appointment_status",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        default="Processing",
        server_default="Processing",
    )
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "client_name": self.client_name,
            "client_email": self.client_email,
            "client_phone": self.client_phone,
            "stylist": self.stylist,
            "services": self.services,
            "package_id": self.package_id,
            "customize_package": self.customize_package,
            "appoi_date": self.appoi_date.isoformat() if self.appoi_date else None,
            "appoi_time": self.appoi_time.strftime("%H:%M") if self.appoi_time else None,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class Feedback(db.Model):
    __tablename__ = "feedback"

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    user_id = db.Column(db.String(32), nullable=False, index=True)
    username = db.Column(db.String(100))
    # Historically an ObjectId, a bare id or a "service"-prefixed id.
    service_ref = db.Column(db.String(64), nullable=False)
    employee = db.Column(db.String(100))
    message = db.Column(db.Text, nullable=False)
    star_rating = db.Column(db.Integer, nullable=False)
    date_of_service = db.Column(db.Date, nullable=False)
    status = db.Column(
        db.Enum(
            "pending",
            "approved",
            "declined",
            name="feedback_status",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        default="pending",
        server_default="pending",
    )
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "username": self.username,
            "serviceID": self.service_ref,
            "employee": self.employee,
            "message": self.message,
            "star_rating": self.star_rating,
            "date_of_service": self.date_of_service.isoformat() if self.date_of_service else None,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class InventoryItem(db.Model):
    __tablename__ = "inventory_items"

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    item_name = db.Column(db.String(100), nullable=False)
    category = db.Column(db.String(50), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    supplier_name = db.Column(db.String(100), nullable=False)
    supplier_email = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "item_name": self.item_name,
            "category": self.category,
            "quantity": self.quantity,
            "price": _money(self.price),
            "supplier_name": self.supplier_name,
            "supplier_email": self.supplier_email,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
