from __future__ import annotations

import logging
from datetime import date
from urllib.parse import quote

from flask import request, jsonify, current_app
from flask_login import login_required, current_user
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from bikeshop.extensions import db
from bikeshop.models.customer import Customer
from bikeshop.models.inspection import Inspection
from bikeshop.models.sales import Sale
from bikeshop.services.authz import roles_required
from bikeshop.services.email_service import EmailService, BIRTHDAY_TEMPLATE
from bikeshop.services.pagination import get_page_args, paginate_query, paginate_sequence, page_meta
from bikeshop.services.security import phone_digits
from bikeshop.services.reminders import describe, evaluate, find_upcoming_birthdays
from bikeshop.services.validation import CustomerValidator, form_data

from . import customers_bp

logger = logging.getLogger(__name__)


def _birthday(customer: Customer, today: date) -> dict:
    window = evaluate(customer.birthdate, today)
    return {
        "is_today": window.is_today,
        "days_until": window.days_until,
        "bucket": window.bucket,
        "label": describe(window),
    }


def _customer_row(customer: Customer, today: date) -> dict:
    row = customer.to_dict()
    row["birthday"] = _birthday(customer, today)
    return row


@customers_bp.route("/", methods=["GET"])
@login_required
@roles_required("STAFF")
def customers():
    """List customers with search and the birthday window of each one

    ``?birthdays=upcoming`` keeps only birthdays within the next 30 days,
    soonest first.
    """
    q = request.args.get("q", "").strip()
    page, per_page = get_page_args(default_per_page=50)
    today = date.today()

    query = Customer.query
    if q:
        query = query.filter(
            or_(
                Customer.name.ilike(f"%{q}%"),
                Customer.phone.ilike(f"%{q}%"),
                Customer.email.ilike(f"%{q}%"),
                Customer.tax_id.ilike(f"%{q}%"),
            )
        )

    if request.args.get("birthdays") == "upcoming":
        upcoming = find_upcoming_birthdays(query.filter(Customer.birthdate.isnot(None)).all(), today=today)
        upcoming.sort(key=lambda c: evaluate(c.birthdate, today).days_until)
        customers_list = paginate_sequence(upcoming, page, per_page)
    else:
        customers_list = paginate_query(query.order_by(Customer.name), page, per_page)

    return jsonify({
        "customers": [_customer_row(c, today) for c in customers_list.items],
        "pagination": page_meta(customers_list),
        "q": q,
    })


@customers_bp.route("/", methods=["POST"])
@login_required
@roles_required("STAFF")
def add_customer():
    """Create a customer"""
    clean, errors = CustomerValidator.validate(form_data())
    if errors:
        return jsonify({"success": False, "errors": errors}), 400

    try:
        customer = Customer(**clean)
        customer.created_by_user_id = current_user.id
        db.session.add(customer)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to create customer: {e}", exc_info=True)
        return jsonify({"success": False, "message": "Could not save the customer"}), 500

    logger.info(f"Customer {customer.id} created by {current_user.username}")
    return jsonify({
        "success": True,
        "message": f"Customer {customer.name} added",
        "customer": _customer_row(customer, date.today()),
    }), 201


@customers_bp.route("/<int:customer_id>")
@login_required
@roles_required("STAFF")
def customer_detail(customer_id: int):
    """Customer details with bikes, inspections and sales"""
    customer = db.get_or_404(Customer, customer_id)
    today = date.today()

    inspections = (
        Inspection.query.filter_by(customer_id=customer_id)
        .order_by(Inspection.next_inspection_date.desc())
        .all()
    )
    sales = Sale.query.filter_by(customer_id=customer_id).order_by(Sale.date.desc(), Sale.id.desc()).all()

    return jsonify({
        "customer": _customer_row(customer, today),
        "bikes": [b.to_dict() for b in customer.bikes],
        "inspections": [i.to_dict() for i in inspections],
        "sales": [s.to_dict() for s in sales],
        "stats": {
            "total_inspections": len(inspections),
            "completed_inspections": len([i for i in inspections if i.status == "completed"]),
            "total_spent": float(sum((s.price or 0) for s in sales)),
        },
    })


@customers_bp.route("/<int:customer_id>/edit", methods=["POST"])
@login_required
@roles_required("STAFF")
def edit_customer(customer_id: int):
    """Update the submitted customer fields"""
    customer = db.get_or_404(Customer, customer_id)

    clean, errors = CustomerValidator.validate(form_data(), partial=True)
    if errors:
        return jsonify({"success": False, "errors": errors}), 400

    try:
        for key, value in clean.items():
            setattr(customer, key, value)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to update customer {customer_id}: {e}", exc_info=True)
        return jsonify({"success": False, "message": "Could not update the customer"}), 500

    return jsonify({
        "success": True,
        "message": "Customer updated successfully",
        "customer": _customer_row(customer, date.today()),
    })


@customers_bp.route("/<int:customer_id>/bikes")
@login_required
@roles_required("STAFF")
def customer_bikes(customer_id: int):
    """Bikes of a customer (used by the inspection and sale forms)"""
    customer = db.get_or_404(Customer, customer_id)
    return jsonify([b.to_dict() for b in customer.bikes])


@customers_bp.route("/<int:customer_id>/birthday-message")
@login_required
@roles_required("STAFF")
def birthday_message(customer_id: int):
    """WhatsApp link with a ready-made birthday greeting"""
    customer = db.get_or_404(Customer, customer_id)

    phone = phone_digits(customer.phone)
    if not phone:
        return jsonify({"success": False, "message": "Customer has no phone number"}), 400

    shop_name = current_app.config.get("SHOP_NAME", "Ambikes")
    message = (
        f"Hello {customer.name}! The {shop_name} team wishes you a Happy Birthday! "
        f"As a special gift, enjoy 10% off your bike's next inspection. We hope to see you soon!"
    )
    return jsonify({
        "success": True,
        "message": message,
        "url": f"https://wa.me/{phone}?text={quote(message)}",
    })


@customers_bp.route("/<int:customer_id>/birthday-email", methods=["POST"])
@login_required
@roles_required("STAFF")
def birthday_email(customer_id: int):
    """Send the birthday template to the customer"""
    customer = db.get_or_404(Customer, customer_id)
    if not customer.email:
        return jsonify({"success": False, "message": "Customer has no email address"}), 400

    success, message = EmailService.send_template(
        customer.email,
        BIRTHDAY_TEMPLATE,
        EmailService.birthday_template_data(customer),
        customer_id=customer.id,
    )
    return jsonify({"success": success, "message": message}), (200 if success else 400)
