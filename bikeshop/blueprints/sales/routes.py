"""
Sales routes: list, detail and recording a sale
"""
from __future__ import annotations

import logging

from flask import request, jsonify
from flask_login import login_required, current_user

from bikeshop.extensions import db
from bikeshop.models.sales import Sale
from bikeshop.services.authz import roles_required
from bikeshop.services.dates import parse_date
from bikeshop.services.pagination import get_page_args, page_meta, paginate_query
from bikeshop.services.sales_linker import record_sale, CustomerNotFound, SaleLinkError
from bikeshop.services.validation import SaleValidator, form_data

from . import sales_bp

logger = logging.getLogger(__name__)


@sales_bp.route("/", methods=["GET"])
@login_required
@roles_required("STAFF")
def sales():
    """List sales, newest first, optionally between ``?start=`` and ``?end=``"""
    page, per_page = get_page_args()
    start = parse_date(request.args.get("start"))
    end = parse_date(request.args.get("end"))

    query = Sale.query
    if start:
        query = query.filter(Sale.date >= start)
    if end:
        query = query.filter(Sale.date <= end)

    result = paginate_query(query.order_by(Sale.date.desc(), Sale.id.desc()), page, per_page)
    return jsonify({
        "sales": [s.to_dict() for s in result.items],
        "pagination": page_meta(result),
    })


@sales_bp.route("/", methods=["POST"])
@login_required
@roles_required("STAFF")
def add_sale():
    """Record a sale; selling a bike also books its first inspection"""
    clean, errors = SaleValidator.validate(form_data())
    if errors:
        return jsonify({"success": False, "errors": errors}), 400

    try:
        result = record_sale(clean, actor=current_user)
    except CustomerNotFound as e:
        return jsonify({"success": False, "errors": {"customer_id": str(e)}}), 400
    except SaleLinkError as e:
        return jsonify({
            "success": False,
            "message": str(e),
            "step": e.step,
            "completed_steps": e.completed_steps,
        }), 500

    message = "Sale recorded"
    if result.inspection is not None:
        message += f"; inspection scheduled for {result.inspection.next_inspection_date.isoformat()}"

    return jsonify({
        "success": True,
        "message": message,
        "sale": result.sale.to_dict(),
        "customer": result.customer.to_dict() if result.customer else None,
        "bike": result.bike.to_dict() if result.bike else None,
        "inspection": result.inspection.to_dict() if result.inspection else None,
    }), 201


@sales_bp.route("/<int:sale_id>")
@login_required
@roles_required("STAFF")
def sale_detail(sale_id: int):
    sale = db.get_or_404(Sale, sale_id)
    return jsonify({"sale": sale.to_dict()})
