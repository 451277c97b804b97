"""
Inspection routes: list, create, edit, complete and reminders
"""
from __future__ import annotations

import logging
from datetime import date

from flask import request, jsonify
from flask_login import login_required, current_user
from sqlalchemy.exc import SQLAlchemyError

from bikeshop.extensions import db
from bikeshop.models.bike import Bike
from bikeshop.models.customer import Customer
from bikeshop.models.inspection import Inspection, INSPECTION_STATUSES
from bikeshop.models.settings import Setting
from bikeshop.services.authz import roles_required
from bikeshop.services.email_service import EmailService, INSPECTION_TEMPLATE
from bikeshop.services.pagination import get_page_args, page_meta, paginate_query
from bikeshop.services.reminders import (
    CLOSED_INSPECTION_STATUSES,
    DEFAULT_INSPECTION_HORIZON_DAYS,
    describe,
    evaluate,
    find_upcoming_inspections,
)
from bikeshop.services.sales_linker import find_or_create_bike, find_future_inspection
from bikeshop.services.validation import InspectionValidator, form_data

from . import inspections_bp

logger = logging.getLogger(__name__)


def _inspection_row(inspection: Inspection, today: date) -> dict:
    row = inspection.to_dict()
    window = evaluate(inspection.next_inspection_date, today, recurring=False)
    row["days_until"] = window.days_until
    row["due_label"] = describe(window)
    return row


@inspections_bp.route("/", methods=["GET"])
@login_required
@roles_required("STAFF")
def inspections():
    """List inspections, optionally filtered by ``?status=``"""
    status = request.args.get("status", "").strip().lower()
    page, per_page = get_page_args()

    query = Inspection.query
    if status:
        if status not in INSPECTION_STATUSES:
            return jsonify({"success": False, "errors": {"status": f"Status must be one of: {', '.join(INSPECTION_STATUSES)}"}}), 400
        query = query.filter(Inspection.status == status)

    result = paginate_query(query.order_by(Inspection.next_inspection_date, Inspection.id), page, per_page)
    today = date.today()
    return jsonify({
        "inspections": [_inspection_row(i, today) for i in result.items],
        "pagination": page_meta(result),
        "status": status,
    })


@inspections_bp.route("/", methods=["POST"])
@login_required
@roles_required("STAFF")
def add_inspection():
    """Create an inspection for an existing bike or a new one"""
    clean, errors = InspectionValidator.validate(form_data())
    if errors:
        return jsonify({"success": False, "errors": errors}), 400

    customer = db.session.get(Customer, clean["customer_id"])
    if customer is None:
        return jsonify({"success": False, "errors": {"customer_id": "Customer not found"}}), 400

    if clean["bike_id"] is not None:
        bike = db.session.get(Bike, clean["bike_id"])
        if bike is None or bike.customer_id != customer.id:
            return jsonify({"success": False, "errors": {"bike_id": "Bike not found for this customer"}}), 400

    try:
        if clean["bike_id"] is None:
            bike = find_or_create_bike(customer.id, clean["bike_model"], clean["bike_serial_number"])

        inspection = Inspection(
            customer_id=customer.id,
            bike_id=bike.id,
            date=clean["date"],
            next_inspection_date=clean["next_inspection_date"],
            status=clean["status"],
            notes=clean["notes"],
            inspection_value=clean["inspection_value"],
            labor_cost=clean["labor_cost"],
            invoice_file=clean["invoice_file"],
        )
        db.session.add(inspection)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to create inspection: {e}", exc_info=True)
        return jsonify({"success": False, "message": "Could not save the inspection"}), 500

    logger.info(f"Inspection {inspection.id} created by {current_user.username}")
    return jsonify({
        "success": True,
        "message": "Inspection scheduled",
        "inspection": _inspection_row(inspection, date.today()),
    }), 201


@inspections_bp.route("/upcoming")
@login_required
@roles_required("STAFF")
def upcoming():
    """Open inspections due between today and the reminder horizon"""
    default_horizon = Setting.get_int("REMINDER_HORIZON_DAYS", DEFAULT_INSPECTION_HORIZON_DAYS)
    horizon = request.args.get("days", default_horizon, type=int)
    if horizon is None or horizon < 0:
        horizon = default_horizon
    today = date.today()

    candidates = (
        Inspection.query.filter(Inspection.status.notin_(CLOSED_INSPECTION_STATUSES))
        .order_by(Inspection.next_inspection_date, Inspection.id)
        .all()
    )
    due = find_upcoming_inspections(candidates, horizon, today)
    return jsonify({
        "horizon_days": horizon,
        "inspections": [_inspection_row(i, today) for i in due],
    })


@inspections_bp.route("/future")
@login_required
@roles_required("STAFF")
def future():
    """Existing open inspection of a customer (and bike) due today or later"""
    customer_id = request.args.get("customer_id", type=int)
    bike_id = request.args.get("bike_id", type=int)
    if customer_id is None:
        return jsonify({"success": False, "errors": {"customer_id": "Customer is required"}}), 400

    inspection = find_future_inspection(customer_id, bike_id)
    return jsonify({
        "exists": inspection is not None,
        "inspection": _inspection_row(inspection, date.today()) if inspection else None,
    })


@inspections_bp.route("/<int:inspection_id>")
@login_required
@roles_required("STAFF")
def inspection_detail(inspection_id: int):
    inspection = db.get_or_404(Inspection, inspection_id)
    return jsonify({"inspection": _inspection_row(inspection, date.today())})


@inspections_bp.route("/<int:inspection_id>/edit", methods=["POST"])
@login_required
@roles_required("STAFF")
def edit_inspection(inspection_id: int):
    """Update the submitted inspection fields"""
    inspection = db.get_or_404(Inspection, inspection_id)

    clean, errors = InspectionValidator.validate(form_data(), partial=True)
    if not errors:
        # dates not submitted keep their stored value
        start = clean.get("date", inspection.date)
        due = clean.get("next_inspection_date", inspection.next_inspection_date)
        if start and due and due < start:
            errors["next_inspection_date"] = "Next inspection date must be on or after the inspection date"
    if errors:
        return jsonify({"success": False, "errors": errors}), 400

    try:
        for key, value in clean.items():
            setattr(inspection, key, value)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to update inspection {inspection_id}: {e}", exc_info=True)
        return jsonify({"success": False, "message": "Could not update the inspection"}), 500

    return jsonify({
        "success": True,
        "message": "Inspection updated successfully",
        "inspection": _inspection_row(inspection, date.today()),
    })


@inspections_bp.route("/<int:inspection_id>/complete", methods=["POST"])
@login_required
@roles_required("STAFF")
def complete_inspection(inspection_id: int):
    inspection = db.get_or_404(Inspection, inspection_id)

    try:
        inspection.mark_completed()
    except ValueError as e:
        return jsonify({"success": False, "message": str(e)}), 400

    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to complete inspection {inspection_id}: {e}", exc_info=True)
        return jsonify({"success": False, "message": "Could not update the inspection"}), 500

    logger.info(f"Inspection {inspection_id} completed by {current_user.username}")
    return jsonify({
        "success": True,
        "message": "Inspection marked as completed",
        "inspection": _inspection_row(inspection, date.today()),
    })


@inspections_bp.route("/<int:inspection_id>/reminder-email", methods=["POST"])
@login_required
@roles_required("STAFF")
def reminder_email(inspection_id: int):
    """Send the inspection reminder template to the customer"""
    inspection = db.get_or_404(Inspection, inspection_id)
    customer = inspection.customer
    if customer is None or not customer.email:
        return jsonify({"success": False, "message": "Customer has no email address"}), 400

    success, message = EmailService.send_template(
        customer.email,
        INSPECTION_TEMPLATE,
        EmailService.inspection_template_data(inspection),
        customer_id=customer.id,
    )
    return jsonify({"success": success, "message": message}), (200 if success else 400)
