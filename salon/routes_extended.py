"""Booking and feedback routes."""
from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from . import appointments as lifecycle
from . import clock
from . import feedback as moderation
from .auth import admin_required, current_user, ensure_owner_or_admin, login_required
from .errors import ForbiddenError, NotFoundError, SalonError, database_error
from .extensions import db
from .models import Appointment, Feedback
from .service_refs import ServiceReferenceResolver

bp_ext = Blueprint("api_ext", __name__)


# ============================================================================
# Appointments
# ============================================================================

def _get_appointment(appointment_id: str) -> Appointment:
    appointment = db.session.get(Appointment, appointment_id)
    if appointment is None:
        raise NotFoundError("Appointment not found")
    return appointment


@bp_ext.get("/appoiment")
def list_appointments():
    try:
        rows = Appointment.query.order_by(Appointment.appoi_date.desc(), Appointment.appoi_time.desc()).all()
        return jsonify([a.to_dict() for a in rows]), 200
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch appointments", exc_info=exc)
        return database_error()


@bp_ext.get("/appoiment/searchappointment")
def search_appointments():
    term = (request.args.get("search") or "").strip()
    try:
        query = Appointment.query
        if term:
            pattern = f"%{term}%"
            query = query.filter(or_(
                Appointment.client_name.ilike(pattern),
                Appointment.client_email.ilike(pattern),
                Appointment.client_phone.ilike(pattern),
                Appointment.stylist.ilike(pattern),
                Appointment.services.ilike(pattern),
                Appointment.status.ilike(pattern),
            ))
        rows = query.order_by(Appointment.appoi_date.desc()).all()
        return jsonify([a.to_dict() for a in rows]), 200
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to search appointments", exc_info=exc)
        return database_error()


@bp_ext.get("/appoiment/user/<user_id>")
def list_user_appointments(user_id: str):
    try:
        rows = (
            Appointment.query.filter(Appointment.user_id == user_id)
            .order_by(Appointment.appoi_date.desc(), Appointment.appoi_time.desc())
            .all()
        )
        return jsonify([a.to_dict() for a in rows]), 200
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch user appointments", exc_info=exc)
        return database_error()


@bp_ext.post("/appoiment")
@login_required()
def create_appointment():
    """Book an appointment for the authenticated user.
    ---
    tags:
      - Appointments
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            client_name:
              type: string
            client_email:
              type: string
            client_phone:
              type: string
              pattern: '^\\d{10}$'
            stylist:
              type: string
            services:
              type: array
              items:
                type: string
            packages:
              type: string
            customize_package:
              type: string
            appoi_date:
              type: string
              format: date
            appoi_time:
              type: string
              example: "14:30"
          required:
            - client_name
            - client_email
            - client_phone
            - stylist
            - services
            - appoi_date
            - appoi_time
    responses:
      201:
        description: Appointment created with status Processing
      400:
        description: Invalid payload or a date/time in the past
      404:
        description: Referenced package not found
      500:
        description: Database error
    """
    payload = request.get_json(silent=True) or {}
    user = current_user()

    # Admins may book on behalf of a customer.
    owner_id = user.id
    if payload.get("user_id") and user.role == "admin":
        owner_id = str(payload["user_id"])

    appointment = lifecycle.build_appointment(payload, owner_id, clock.local_now())

    try:
        db.session.add(appointment)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to create appointment", exc_info=exc)
        return database_error()

    return jsonify(appointment.to_dict()), 201


@bp_ext.get("/appoiment/<appointment_id>")
def get_appointment(appointment_id: str):
    try:
        appointment = _get_appointment(appointment_id)
    except SalonError as exc:
        return exc.to_response()
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch appointment", exc_info=exc)
        return database_error()
    return jsonify(appointment.to_dict()), 200


@bp_ext.put("/appoiment/<appointment_id>")
@login_required()
def update_appointment(appointment_id: str):
    """Edit an appointment.

    A payload with only ``status`` is the admin moderation action; any other
    payload is an owner edit, refused once the appointment is completed or
    cancelled.
    """
    appointment = _get_appointment(appointment_id)
    payload = request.get_json(silent=True) or {}

    if set(payload) == {"status"}:
        if current_user().role != "admin":
            raise ForbiddenError("Only an admin may change appointment status")
        lifecycle.set_status(appointment, payload["status"])
    else:
        ensure_owner_or_admin(appointment.user_id)
        lifecycle.apply_update(appointment, payload, clock.local_now())

    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update appointment", exc_info=exc)
        return database_error()

    return jsonify(appointment.to_dict()), 200


@bp_ext.put("/appoiment/status/<appointment_id>")
@admin_required
def update_appointment_status(appointment_id: str):
    """Move an appointment along Processing -> Pending -> Confirmed -> Completed.
    ---
    tags:
      - Appointments
    parameters:
      - in: body
        name: body
        required: true
        schema:
          properties:
            status:
              type: string
              enum: [Processing, Pending, Confirmed, Completed, Cancelled]
    responses:
      200:
        description: Updated appointment
      400:
        description: Unknown status
      404:
        description: Appointment not found
      409:
        description: Transition not allowed from the current status
    """
    appointment = _get_appointment(appointment_id)
    payload = request.get_json(silent=True) or {}
    lifecycle.set_status(appointment, payload.get("status"))

    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update appointment status", exc_info=exc)
        return database_error()

    return jsonify(appointment.to_dict()), 200


@bp_ext.delete("/appoiment/<appointment_id>")
@login_required()
def delete_appointment(appointment_id: str):
    appointment = _get_appointment(appointment_id)
    ensure_owner_or_admin(appointment.user_id)

    try:
        db.session.delete(appointment)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to delete appointment", exc_info=exc)
        return database_error()

    return jsonify({"message": "Appointment deleted successfully"}), 200


# ============================================================================
# Feedback
# ============================================================================

def _get_feedback(feedback_id: str) -> Feedback:
    feedback = db.session.get(Feedback, feedback_id)
    if feedback is None:
        raise NotFoundError("Feedback not found")
    return feedback


@bp_ext.get("/feedback")
def list_feedback():
    """All feedback, each with ``serviceDetails`` resolved (null when unresolved)."""
    try:
        rows = Feedback.query.order_by(Feedback.created_at.desc()).all()
        return jsonify(ServiceReferenceResolver().serialize_all(rows)), 200
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch feedback", exc_info=exc)
        return database_error()


@bp_ext.get("/feedback/search")
def search_feedback():
    term = (request.args.get("search") or "").strip()
    try:
        query = Feedback.query
        if term:
            pattern = f"%{term}%"
            query = query.filter(or_(
                Feedback.username.ilike(pattern),
                Feedback.message.ilike(pattern),
                Feedback.employee.ilike(pattern),
                Feedback.status.ilike(pattern),
            ))
        rows = query.order_by(Feedback.created_at.desc()).all()
        return jsonify(ServiceReferenceResolver().serialize_all(rows)), 200
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to search feedback", exc_info=exc)
        return database_error()


@bp_ext.get("/feedback/user/<user_id>")
def list_user_feedback(user_id: str):
    try:
        rows = Feedback.query.filter(Feedback.user_id == user_id).order_by(Feedback.created_at.desc()).all()
        return jsonify(ServiceReferenceResolver().serialize_all(rows)), 200
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch user feedback", exc_info=exc)
        return database_error()


@bp_ext.post("/feedback")
@login_required()
def create_feedback():
    """Submit feedback for a service received today.
    ---
    tags:
      - Feedback
    parameters:
      - in: body
        name: body
        required: true
        schema:
          properties:
            serviceID:
              type: string
            message:
              type: string
            star_rating:
              type: integer
              minimum: 1
              maximum: 5
            date_of_service:
              type: string
              format: date
    responses:
      201:
        description: Feedback created with status pending
      400:
        description: Invalid payload, rating out of range, or date not today
    """
    payload = request.get_json(silent=True) or {}
    feedback = moderation.build_feedback(payload, current_user(), clock.local_today())

    try:
        db.session.add(feedback)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to create feedback", exc_info=exc)
        return database_error()

    return jsonify(ServiceReferenceResolver().serialize(feedback)), 201


@bp_ext.get("/feedback/<feedback_id>")
def get_feedback(feedback_id: str):
    try:
        feedback = _get_feedback(feedback_id)
        return jsonify(ServiceReferenceResolver().serialize(feedback)), 200
    except SalonError as exc:
        return exc.to_response()
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch feedback", exc_info=exc)
        return database_error()


@bp_ext.put("/feedback/<feedback_id>")
@login_required()
def update_feedback(feedback_id: str):
    feedback = _get_feedback(feedback_id)
    if feedback.user_id != current_user().id:
        raise ForbiddenError("Only the author may edit this feedback")

    moderation.apply_update(feedback, request.get_json(silent=True) or {})

    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update feedback", exc_info=exc)
        return database_error()

    return jsonify(ServiceReferenceResolver().serialize(feedback)), 200


@bp_ext.put("/feedback/status/<feedback_id>")
@admin_required
def moderate_feedback(feedback_id: str):
    """Approve or decline pending feedback.
    ---
    tags:
      - Feedback
    responses:
      200:
        description: Feedback moderated
      400:
        description: Status is not approved or declined
      404:
        description: Feedback not found
      409:
        description: Feedback already moderated
    """
    feedback = _get_feedback(feedback_id)
    payload = request.get_json(silent=True) or {}
    moderation.moderate(feedback, payload.get("status"))

    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to moderate feedback", exc_info=exc)
        return database_error()

    return jsonify(ServiceReferenceResolver().serialize(feedback)), 200


@bp_ext.delete("/feedback/<feedback_id>")
@login_required()
def delete_feedback(feedback_id: str):
    feedback = _get_feedback(feedback_id)
    ensure_owner_or_admin(feedback.user_id)

    try:
        db.session.delete(feedback)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to delete feedback", exc_info=exc)
        return database_error()

    return jsonify({"message": "Feedback deleted successfully"}), 200
