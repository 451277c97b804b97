"""
Form validation for customers, sales and inspections

Every validator takes the submitted mapping (form or JSON body) and returns
``(clean_data, errors)``. ``errors`` maps a field name to a message and is
empty when the data can be stored. Referenced ids are checked by the caller.
"""

from decimal import Decimal, InvalidOperation
from datetime import date
from typing import Dict, Optional, Tuple

from bikeshop.models.inspection import INSPECTION_STATUSES, INSPECTION_INTERVAL_YEARS
from bikeshop.services.dates import add_years, parse_date
from bikeshop.services.security import is_valid_email, sanitize_input


Errors = Dict[str, str]


def _text(data, key: str, max_length: Optional[int] = None) -> Optional[str]:
    """Stripped string value or None for blanks."""
    value = data.get(key)
    if value is None:
        return None
    value = sanitize_input(str(value), max_length)
    return value or None


def _optional_int(data, key: str, errors: Errors) -> Optional[int]:
    value = data.get(key)
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        errors[key] = f"{key} must be a number"
        return None


def _decimal(data, key: str, errors: Errors, label: str) -> Optional[Decimal]:
    value = data.get(key)
    if value in (None, ""):
        return None
    try:
        amount = Decimal(str(value).replace(",", "."))
    except InvalidOperation:
        errors[key] = f"{label} must be a valid number"
        return None
    if not amount.is_finite():
        errors[key] = f"{label} must be a valid number"
        return None
    return amount


def _date(data, key: str, errors: Errors, label: str) -> Optional[date]:
    value = data.get(key)
    if value in (None, ""):
        return None
    parsed = parse_date(value)
    if parsed is None:
        errors[key] = f"{label} is not a valid date (use YYYY-MM-DD)"
    return parsed


class CustomerValidator:
    """Validates customer create/edit forms"""

    @staticmethod
    def validate(data, partial: bool = False) -> Tuple[dict, Errors]:
        """
        Args:
            data: submitted fields
            partial: only validate the fields present (edit form)
        """
        errors: Errors = {}
        clean = {}

        if not partial or "name" in data:
            name = _text(data, "name", 100)
            if not name:
                errors["name"] = "Name is required"
            clean["name"] = name

        for key, max_length in (("tax_id", 30), ("phone", 20), ("address", 500), ("notes", 2000)):
            if not partial or key in data:
                clean[key] = _text(data, key, max_length)

        if not partial or "email" in data:
            email = _text(data, "email", 100)
            if email and not is_valid_email(email):
                errors["email"] = "Invalid email address"
            clean["email"] = email

        if not partial or "birthdate" in data:
            birthdate = _date(data, "birthdate", errors, "Birthdate")
            if birthdate and birthdate > date.today():
                errors["birthdate"] = "Birthdate cannot be in the future"
            clean["birthdate"] = birthdate

        return clean, errors


class SaleValidator:
    """Validates the new-sale form, including an inline new customer"""

    @staticmethod
    def validate(data) -> Tuple[dict, Errors]:
        errors: Errors = {}
        clean = {
            "customer_id": _optional_int(data, "customer_id", errors),
            "product_name": _text(data, "product_name", 200),
            "bike_model": _text(data, "bike_model", 120),
            "bike_serial_number": _text(data, "bike_serial_number", 80),
            "notes": _text(data, "notes", 2000),
            "invoice_file": _text(data, "invoice_file", 255),
        }

        if not clean["product_name"]:
            errors["product_name"] = "Product name is required"

        price = _decimal(data, "price", errors, "Price")
        if price is None and "price" not in errors:
            errors["price"] = "Price is required"
        elif price is not None and price <= 0:
            errors["price"] = "Price must be greater than zero"
        clean["price"] = price

        sale_date = _date(data, "date", errors, "Date")
        clean["date"] = sale_date or (None if "date" in errors else date.today())

        new_customer = data.get("new_customer")
        if new_customer:
            if not isinstance(new_customer, dict):
                errors["new_customer"] = "Invalid customer data"
                clean["new_customer"] = None
            else:
                customer_data, customer_errors = CustomerValidator.validate(new_customer)
                for key, message in customer_errors.items():
                    errors[f"new_customer.{key}"] = message
                clean["new_customer"] = customer_data
                clean["customer_id"] = None
        else:
            clean["new_customer"] = None

        if clean["bike_serial_number"] and not clean["bike_model"]:
            errors["bike_model"] = "Bike model is required when a serial number is given"
        if clean["bike_model"] and clean["customer_id"] is None and not clean["new_customer"]:
            errors.setdefault("customer_id", "A customer is required when selling a bike")

        return clean, errors


class InspectionValidator:
    """Validates inspection create/edit forms"""

    @staticmethod
    def validate(data, partial: bool = False) -> Tuple[dict, Errors]:
        errors: Errors = {}
        clean = {}

        if not partial:
            clean["customer_id"] = _optional_int(data, "customer_id", errors)
            if clean["customer_id"] is None and "customer_id" not in errors:
                errors["customer_id"] = "Customer is required"

            clean["bike_id"] = _optional_int(data, "bike_id", errors)
            clean["bike_model"] = _text(data, "bike_model", 120)
            clean["bike_serial_number"] = _text(data, "bike_serial_number", 80)
            if clean["bike_id"] is None and "bike_id" not in errors:
                if not clean["bike_model"] or len(clean["bike_model"]) < 2:
                    errors["bike_model"] = "Bike model is required"

        if not partial or "date" in data:
            inspection_date = _date(data, "date", errors, "Inspection date")
            if inspection_date is None and not partial and "date" not in errors:
                inspection_date = date.today()
            if inspection_date is not None:
                clean["date"] = inspection_date

        if not partial or "next_inspection_date" in data:
            next_date = _date(data, "next_inspection_date", errors, "Next inspection date")
            if next_date is None and "next_inspection_date" not in errors:
                if partial:
                    errors["next_inspection_date"] = "Next inspection date is required"
                elif "date" in clean:
                    next_date = add_years(clean["date"], INSPECTION_INTERVAL_YEARS)
            if next_date is not None:
                clean["next_inspection_date"] = next_date

        if "date" in clean and "next_inspection_date" in clean:
            if clean["next_inspection_date"] < clean["date"]:
                errors["next_inspection_date"] = "Next inspection date must be on or after the inspection date"

        if not partial or "status" in data:
            status = (_text(data, "status", 20) or "scheduled").lower()
            if status not in INSPECTION_STATUSES:
                errors["status"] = f"Status must be one of: {', '.join(INSPECTION_STATUSES)}"
            clean["status"] = status

        for key, label in (("inspection_value", "Inspection value"), ("labor_cost", "Labor cost")):
            if not partial or key in data:
                amount = _decimal(data, key, errors, label)
                if amount is not None and amount < 0:
                    errors[key] = f"{label} cannot be negative"
                clean[key] = amount

        for key, max_length in (("notes", 2000), ("invoice_file", 255)):
            if not partial or key in data:
                clean[key] = _text(data, key, max_length)

        return clean, errors


def form_data():
    """Submitted fields of the current request: JSON body or form post."""
    from flask import request

    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form
