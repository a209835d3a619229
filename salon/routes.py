"""HTTP routes for the salon backend."""
from __future__ import annotations

import os
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from flask import Blueprint, Flask, current_app, jsonify, request
from sqlalchemy import or_, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash
from werkzeug.utils import secure_filename

from . import clock
from .auth import (TOKEN_COOKIE, admin_required, build_token, current_user, ensure_owner_or_admin,
                   is_admin, login_required)
from .errors import NotFoundError, SalonError, ValidationError, database_error
from .extensions import db
from .models import AuthAccount, InventoryItem, Package, Service, User
from .pricing import compute_final_price, validate_window
from .stock import derive_low_stock_alerts, retrieve_stock
from .validation import (clean_str, parse_date, parse_duration, parse_email, parse_flag, parse_int,
                         parse_money, require_fields)

bp = Blueprint("api", __name__)
health_bp = Blueprint("health", __name__)

API_PREFIX = "/api/v1"

USER_ROLES = ("customer", "stylist", "admin")
SIGNUP_ROLES = ("customer", "stylist")


@health_bp.get("/health")
def health_check() -> tuple[dict[str, str], int]:
    """
    Expose a simple uptime check endpoint.
    ---
    tags:
      - Health
    responses:
      200:
        description: Service is healthy and running.
    """
    return jsonify({"status": "ok"}), 200


@health_bp.get("/db-health")
def database_health() -> tuple[dict[str, str], int]:
    """Check connectivity to the configured database."""
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        current_app.logger.exception("Database connectivity check failed", exc_info=exc)
        return jsonify({"database": "unavailable"}), 500

    return jsonify({"database": "ok"}), 200


# ============================================================================
# Authentication
# ============================================================================

@bp.post("/auth/signup")
def signup() -> tuple[dict[str, object], int]:
    """Register a new customer or stylist account.
    ---
    tags:
      - Authentication
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            username:
              type: string
            email:
              type: string
            password:
              type: string
            role:
              type: string
              enum: [customer, stylist]
          required:
            - username
            - email
            - password
    responses:
      201:
        description: User created
      400:
        description: Invalid payload
      409:
        description: Email already in use
      500:
        description: Server error
    """
    payload = request.get_json(silent=True) or {}

    try:
        require_fields(payload, ["username", "email", "password"])
        email = parse_email(payload["email"])
    except ValidationError as exc:
        return exc.to_response()

    role = (payload.get("role") or "customer").strip().lower()
    if role not in SIGNUP_ROLES:
        return (
            jsonify({"error": "invalid_role", "message": f"role must be one of: {', '.join(SIGNUP_ROLES)}"}),
            400,
        )

    if User.query.filter_by(email=email).first():
        return jsonify({"error": "conflict", "message": "email address is already in use"}), 409

    try:
        user = _create_user(payload, email=email, role=role)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to register new user", exc_info=exc)
        return database_error()

    return jsonify({"message": "User created successfully", "user": user.to_dict_basic()}), 201


@bp.post("/auth/login")
def login() -> tuple[dict[str, object], int]:
    """Authenticate by email/password; returns a token and sets it as an httpOnly cookie.
    ---
    tags:
      - Authentication
    responses:
      200:
        description: Login successful
      400:
        description: Missing email or password
      401:
        description: Wrong password
      404:
        description: Unknown email
    """
    payload = request.get_json(silent=True) or {}

    email = (payload.get("email") or "").strip().lower()
    password = payload.get("password") or ""

    if not email or not password:
        return (
            jsonify({"error": "invalid_payload", "message": "email and password are required"}),
            400,
        )

    record = (
        db.session.query(User, AuthAccount)
        .join(AuthAccount, AuthAccount.user_id == User.id)
        .filter(User.email == email)
        .first()
    )
    if not record:
        return jsonify({"error": "not_found", "message": "User not found"}), 404

    user, auth_account = record
    if not check_password_hash(auth_account.password_hash, password):
        return jsonify({"error": "unauthorized", "message": "Email or Password incorrect"}), 401

    auth_account.last_login_at = datetime.now(timezone.utc)
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update last login timestamp", exc_info=exc)
        return database_error()

    token = build_token(user)
    response = jsonify({"token": token, "user": user.to_dict_basic()})
    response.set_cookie(TOKEN_COOKIE, token, httponly=True, samesite="Lax")
    return response, 200


@bp.get("/auth/signout")
def signout():
    response = jsonify({"message": "User has been signed out"})
    response.delete_cookie(TOKEN_COOKIE)
    return response, 200


# ============================================================================
# Users
# ============================================================================

def _create_user(payload: dict, *, email: str, role: str) -> User:
    user = User(
        username=str(payload["username"]).strip(),
        email=email,
        role=role,
        position=clean_str(payload, "position"),
        phone=clean_str(payload, "phone"),
    )
    db.session.add(user)
    db.session.flush()
    db.session.add(AuthAccount(user_id=user.id, password_hash=generate_password_hash(payload["password"])))
    return user


def _get_user(user_id: str) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


@bp.get("/user")
@admin_required
def list_users():
    try:
        users = User.query.order_by(User.created_at.desc()).all()
        return jsonify([u.to_dict_basic() for u in users]), 200
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch users", exc_info=exc)
        return database_error()


@bp.post("/user")
@admin_required
def create_user():
    """Admin creation of an account with any role."""
    payload = request.get_json(silent=True) or {}

    require_fields(payload, ["username", "email", "password"])
    email = parse_email(payload["email"])
    role = (payload.get("role") or "customer").strip().lower()
    if role not in USER_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(USER_ROLES)}", field="role")

    if User.query.filter_by(email=email).first():
        return jsonify({"error": "conflict", "message": "email address is already in use"}), 409

    try:
        user = _create_user(payload, email=email, role=role)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to create user", exc_info=exc)
        return database_error()

    return jsonify(user.to_dict_basic()), 201


@bp.get("/user/<user_id>")
@login_required()
def get_user(user_id: str):
    ensure_owner_or_admin(user_id)
    return jsonify(_get_user(user_id).to_dict_basic()), 200


@bp.put("/user/<user_id>")
@login_required()
def update_user(user_id: str):
    """Profile edit. Only admins may change a role."""
    ensure_owner_or_admin(user_id)
    user = _get_user(user_id)
    payload = request.get_json(silent=True) or {}

    if "username" in payload:
        require_fields(payload, ["username"])
        user.username = str(payload["username"]).strip()
    if "email" in payload:
        email = parse_email(payload["email"])
        clash = User.query.filter(User.email == email, User.id != user.id).first()
        if clash:
            return jsonify({"error": "conflict", "message": "email address is already in use"}), 409
        user.email = email
    if "phone" in payload:
        user.phone = clean_str(payload, "phone")
    if "position" in payload:
        user.position = clean_str(payload, "position")
    if "role" in payload:
        role = str(payload["role"] or "").strip().lower()
        if not is_admin(current_user()):
            return jsonify({"error": "forbidden", "message": "Only an admin may change roles"}), 403
        if role not in USER_ROLES:
            raise ValidationError(f"role must be one of: {', '.join(USER_ROLES)}", field="role")
        user.role = role
    if payload.get("password"):
        user.auth_account.password_hash = generate_password_hash(payload["password"])

    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update user", exc_info=exc)
        return database_error()

    return jsonify(user.to_dict_basic()), 200


@bp.delete("/user/<user_id>")
@login_required()
def delete_user(user_id: str):
    ensure_owner_or_admin(user_id)
    user = _get_user(user_id)
    try:
        db.session.delete(user)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to delete user", exc_info=exc)
        return database_error()

    return jsonify({"message": "User deleted successfully"}), 200


# ============================================================================
# Services
# ============================================================================

def _request_payload() -> dict:
    """JSON body, or the form fields of a multipart upload."""
    if request.mimetype == "multipart/form-data" or request.form:
        return request.form.to_dict()
    return request.get_json(silent=True) or {}


def _save_image() -> str | None:
    upload = request.files.get("image")
    if upload is None or not upload.filename:
        return None
    filename = f"{uuid.uuid4().hex}_{secure_filename(upload.filename)}"
    folder = current_app.config["UPLOAD_FOLDER"]
    os.makedirs(folder, exist_ok=True)
    upload.save(os.path.join(folder, filename))
    return filename


def _next_service_id() -> str:
    numbers = []
    for (service_id,) in db.session.query(Service.service_id).all():
        suffix = service_id[len("service"):] if service_id.startswith("service") else ""
        if suffix.isdigit():
            numbers.append(int(suffix))
    return f"service{max(numbers, default=0) + 1}"


def _apply_service_fields(service: Service, payload: dict) -> None:
    if "category" in payload:
        require_fields(payload, ["category"])
        service.category = str(payload["category"]).strip()
    if "subCategory" in payload:
        require_fields(payload, ["subCategory"])
        service.sub_category = str(payload["subCategory"]).strip()
    if "description" in payload:
        service.description = clean_str(payload, "description")
    if "duration" in payload:
        service.duration = parse_duration(payload["duration"])
    if "price" in payload:
        service.price = parse_money(payload["price"], "price")
    if "available" in payload:
        service.available = parse_flag(payload["available"], "available")


@bp.get("/Service")
def list_services():
    try:
        services = Service.query.order_by(Service.created_at.asc()).all()
        return jsonify([s.to_dict() for s in services]), 200
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch services", exc_info=exc)
        return database_error()


@bp.post("/Service")
@admin_required
def create_service():
    """Create a service from JSON or multipart form data (with optional image).
    ---
    tags:
      - Services
    consumes:
      - application/json
      - multipart/form-data
    responses:
      201:
        description: Service created
      400:
        description: Invalid payload
      409:
        description: service_id already in use
    """
    payload = _request_payload()
    require_fields(payload, ["category", "subCategory", "duration", "price", "available"])

    service = Service()
    _apply_service_fields(service, payload)

    service_id = clean_str(payload, "service_id")
    if service_id and not service_id.startswith("service"):
        service_id = f"service{service_id}"
    if service_id and Service.query.filter_by(service_id=service_id).first():
        return jsonify({"error": "conflict", "message": f"{service_id} is already in use"}), 409

    try:
        service_id = service_id or _next_service_id()
        service.service_id = service_id
        service.image = _save_image()
        db.session.add(service)
        db.session.commit()
    except IntegrityError as exc:
        # Another create claimed the same service_id first.
        db.session.rollback()
        current_app.logger.warning(f"Service id collision on create: {exc.orig}")
        return jsonify({"error": "conflict", "message": f"{service_id} is already in use"}), 409
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to create service", exc_info=exc)
        return database_error()

    return jsonify(service.to_dict()), 201


@bp.get("/Service/<service_id>")
def get_service(service_id: str):
    try:
        service = db.session.get(Service, service_id)
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch service", exc_info=exc)
        return database_error()
    if service is None:
        return jsonify({"error": "not_found", "message": "Service not found"}), 404
    return jsonify(service.to_dict()), 200


@bp.put("/Service/<service_id>")
@admin_required
def update_service(service_id: str):
    service = db.session.get(Service, service_id)
    if service is None:
        return jsonify({"error": "not_found", "message": "Service not found"}), 404

    payload = _request_payload()
    _apply_service_fields(service, payload)

    try:
        image = _save_image()
        if image:
            service.image = image
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update service", exc_info=exc)
        return database_error()

    return jsonify(service.to_dict()), 200


@bp.delete("/Service/<service_id>")
@admin_required
def delete_service(service_id: str):
    """Delete a service. Packages and feedback that point at it are left alone."""
    service = db.session.get(Service, service_id)
    if service is None:
        return jsonify({"error": "not_found", "message": "Service not found"}), 404

    try:
        db.session.delete(service)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to delete service", exc_info=exc)
        return database_error()

    return jsonify({"message": "Service deleted successfully"}), 200


# ============================================================================
# Packages
# ============================================================================

def _parse_service_ids(value) -> list[str]:
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple)):
        raise ValidationError("services must be a list of service ids", field="services")
    ids = [str(v).strip() for v in value if v is not None and str(v).strip()]
    if not ids:
        raise ValidationError("At least one service must be selected", field="services")

    found = {sid for (sid,) in db.session.query(Service.id).filter(Service.id.in_(ids)).all()}
    missing = [sid for sid in ids if sid not in found]
    if missing:
        raise ValidationError(f"Unknown service id(s): {', '.join(missing)}", field="services")
    return ids


def _apply_package_fields(package: Package, payload: dict) -> None:
    if "p_name" in payload:
        name = str(payload["p_name"] or "").strip()
        if not 3 <= len(name) <= 50:
            raise ValidationError("Package name must be between 3 and 50 characters", field="p_name")
        package.p_name = name
    if "description" in payload:
        package.description = clean_str(payload, "description")
    if "services" in payload:
        package.services = _parse_service_ids(payload["services"])
    if "base_price" in payload:
        package.base_price = parse_money(payload["base_price"], "base_price", allow_zero=True)
    if "discount_rate" in payload:
        rate = payload["discount_rate"]
        if isinstance(rate, bool):
            raise ValidationError("discount_rate must be a number", field="discount_rate")
        # Reuses the pricing bounds check (0-100).
        compute_final_price(0, rate)
        package.discount_rate = Decimal(str(rate))
    if "start_date" in payload:
        package.start_date = parse_date(payload["start_date"], "start_date")
    if "end_date" in payload:
        package.end_date = parse_date(payload["end_date"], "end_date")
    if "conditions" in payload:
        package.conditions = clean_str(payload, "conditions")
    if "package_type" in payload:
        package.package_type = clean_str(payload, "package_type")
    if "category" in payload:
        package.category = clean_str(payload, "category")

    validate_window(package.start_date, package.end_date)


def _serialize_packages(packages: list[Package]) -> list[dict[str, object]]:
    """Attach the bundled services that still exist; dangling ids are skipped."""
    wanted = {sid for p in packages for sid in (p.services or [])}
    services = {}
    if wanted:
        services = {s.id: s for s in Service.query.filter(Service.id.in_(wanted)).all()}

    today = clock.local_today()
    result = []
    for package in packages:
        data = package.to_dict(today)
        details = []
        for sid in package.services or []:
            service = services.get(sid)
            if service is None:
                current_app.logger.warning(f"Package {package.id} references missing service {sid}")
                continue
            details.append({"id": service.id, **service.to_summary(), "price": float(service.price)})
        data["service_details"] = details
        result.append(data)
    return result


@bp.get("/Package")
def list_packages():
    """List packages with computed final_price and status."""
    try:
        packages = Package.query.order_by(Package.created_at.asc()).all()
        return jsonify(_serialize_packages(packages)), 200
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch packages", exc_info=exc)
        return database_error()


@bp.post("/Package")
@admin_required
def create_package():
    payload = request.get_json(silent=True) or {}
    require_fields(payload, ["p_name", "services", "base_price", "discount_rate", "start_date", "end_date"])

    package = Package()
    _apply_package_fields(package, payload)

    try:
        db.session.add(package)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to create package", exc_info=exc)
        return database_error()

    return jsonify(_serialize_packages([package])[0]), 201


@bp.get("/Package/<package_id>")
def get_package(package_id: str):
    try:
        package = db.session.get(Package, package_id)
        if package is None:
            return jsonify({"error": "not_found", "message": "Package not found"}), 404
        return jsonify(_serialize_packages([package])[0]), 200
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch package", exc_info=exc)
        return database_error()


@bp.put("/Package/<package_id>")
@admin_required
def update_package(package_id: str):
    package = db.session.get(Package, package_id)
    if package is None:
        return jsonify({"error": "not_found", "message": "Package not found"}), 404

    payload = request.get_json(silent=True) or {}
    _apply_package_fields(package, payload)

    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update package", exc_info=exc)
        return database_error()

    return jsonify(_serialize_packages([package])[0]), 200


@bp.delete("/Package/<package_id>")
@admin_required
def delete_package(package_id: str):
    package = db.session.get(Package, package_id)
    if package is None:
        return jsonify({"error": "not_found", "message": "Package not found"}), 404

    try:
        db.session.delete(package)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to delete package", exc_info=exc)
        return database_error()

    return jsonify({"message": "Package deleted successfully"}), 200


# ============================================================================
# Inventory
# ============================================================================

INVENTORY_FIELDS = ["item_name", "category", "quantity", "price", "supplier_name", "supplier_email"]


def _apply_inventory_fields(item: InventoryItem, payload: dict) -> None:
    for field in ("item_name", "category", "supplier_name"):
        if field in payload:
            require_fields(payload, [field])
            setattr(item, field, str(payload[field]).strip())
    if "quantity" in payload:
        item.quantity = parse_int(payload["quantity"], "quantity", minimum=0, maximum=10000)
    if "price" in payload:
        item.price = parse_money(payload["price"], "price", maximum=100000)
    if "supplier_email" in payload:
        item.supplier_email = parse_email(payload["supplier_email"], "supplier_email")


@bp.get("/inventory")
def list_inventory():
    try:
        items = InventoryItem.query.order_by(InventoryItem.item_name.asc()).all()
        return jsonify([item.to_dict() for item in items]), 200
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch inventory", exc_info=exc)
        return database_error()


@bp.get("/inventory/search")
def search_inventory():
    term = (request.args.get("search") or "").strip()
    try:
        query = InventoryItem.query
        if term:
            pattern = f"%{term}%"
            query = query.filter(or_(
                InventoryItem.item_name.ilike(pattern),
                InventoryItem.category.ilike(pattern),
                InventoryItem.supplier_name.ilike(pattern),
                InventoryItem.supplier_email.ilike(pattern),
            ))
        items = query.order_by(InventoryItem.item_name.asc()).all()
        return jsonify([item.to_dict() for item in items]), 200
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to search inventory", exc_info=exc)
        return database_error()


@bp.get("/inventory/notifications")
def low_stock_notifications():
    """Low-stock alerts derived from the current inventory snapshot.
    ---
    tags:
      - Inventory
    responses:
      200:
        description: One unread alert per item at or below the threshold
    """
    try:
        items = InventoryItem.query.order_by(InventoryItem.quantity.asc()).all()
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to load inventory for alerts", exc_info=exc)
        return database_error()

    threshold = current_app.config.get("LOW_STOCK_THRESHOLD", 10)
    alerts = derive_low_stock_alerts(items, threshold=threshold)
    return jsonify([alert.to_dict() for alert in alerts]), 200


@bp.post("/inventory")
@admin_required
def create_inventory():
    payload = request.get_json(silent=True) or {}
    require_fields(payload, INVENTORY_FIELDS)

    item = InventoryItem()
    _apply_inventory_fields(item, payload)

    try:
        db.session.add(item)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to create inventory item", exc_info=exc)
        return database_error()

    return jsonify(item.to_dict()), 201


@bp.get("/inventory/<item_id>")
def get_inventory(item_id: str):
    try:
        item = db.session.get(InventoryItem, item_id)
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch inventory item", exc_info=exc)
        return database_error()
    if item is None:
        return jsonify({"error": "not_found", "message": "Inventory not found"}), 404
    return jsonify(item.to_dict()), 200


@bp.put("/inventory/<item_id>")
@admin_required
def update_inventory(item_id: str):
    item = db.session.get(InventoryItem, item_id)
    if item is None:
        return jsonify({"error": "not_found", "message": "Inventory not found"}), 404

    payload = request.get_json(silent=True) or {}
    _apply_inventory_fields(item, payload)

    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update inventory item", exc_info=exc)
        return database_error()

    return jsonify(item.to_dict()), 200


@bp.post("/inventory/<item_id>/retrieve")
@admin_required
def retrieve_inventory(item_id: str):
    """Take units out of stock; rejected when more is asked than is available.
    ---
    tags:
      - Inventory
    parameters:
      - in: body
        name: body
        required: true
        schema:
          properties:
            quantity:
              type: integer
              minimum: 1
    responses:
      200:
        description: Updated item
      400:
        description: Invalid or excessive quantity
      404:
        description: Item not found
    """
    payload = request.get_json(silent=True) or {}
    require_fields(payload, ["quantity"])
    quantity = parse_int(payload["quantity"], "quantity", minimum=1)

    try:
        item = retrieve_stock(item_id, quantity)
        db.session.commit()
    except SalonError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to retrieve inventory", exc_info=exc)
        return database_error()

    return jsonify(item.to_dict()), 200


@bp.delete("/inventory/<item_id>")
@admin_required
def delete_inventory(item_id: str):
    item = db.session.get(InventoryItem, item_id)
    if item is None:
        return jsonify({"error": "not_found", "message": "Inventory not found"}), 404

    try:
        db.session.delete(item)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to delete inventory item", exc_info=exc)
        return database_error()

    return jsonify({"message": "Inventory deleted successfully"}), 200


def register_routes(app: Flask) -> None:
    from .routes_extended import bp_ext

    app.register_blueprint(health_bp)
    app.register_blueprint(bp, url_prefix=API_PREFIX)
    app.register_blueprint(bp_ext, url_prefix=API_PREFIX)
