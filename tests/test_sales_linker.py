from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import SQLAlchemyError

from bikeshop.extensions import db
from bikeshop.models.bike import Bike
from bikeshop.models.customer import Customer
from bikeshop.models.inspection import Inspection
from bikeshop.models.notification import Notification
from bikeshop.models.sales import Sale
from bikeshop.services import sales_linker
from bikeshop.services.sales_linker import (
    CustomerNotFound,
    SaleLinkError,
    find_future_inspection,
    next_inspection_date,
    record_sale,
)
from bikeshop.services.validation import SaleValidator


def _customer_id():
    return Customer.query.filter_by(name='Test Customer').first().id


def _sale(**overrides):
    data = {
        "product_name": "Trek Marlin 7",
        "price": "899.90",
        "date": "2024-01-01",
    }
    data.update(overrides)
    clean, errors = SaleValidator.validate(data)
    assert errors == {}
    return clean


def test_next_inspection_date_is_one_calendar_year_later():
    assert next_inspection_date(date(2024, 1, 1)) == date(2025, 1, 1)
    assert next_inspection_date(date(2024, 2, 29)) == date(2025, 2, 28)


def test_bike_sale_books_inspection(app):
    with app.app_context():
        result = record_sale(_sale(customer_id=_customer_id(), bike_model="Trek Marlin"))

        assert result.bike is not None and result.bike.serial_number is None
        assert result.inspection.next_inspection_date == date(2025, 1, 1)
        assert result.inspection.date == date(2024, 1, 1)
        assert result.inspection.status == "scheduled"
        assert "Trek Marlin 7" in result.inspection.notes
        assert result.sale.bike_id == result.bike.id
        assert result.sale.price == Decimal("899.90")
        assert result.notification.type == "system"


def test_sale_without_bike_creates_only_sale_and_notification(app):
    with app.app_context():
        bikes_before = Bike.query.count()
        result = record_sale(_sale(product_name="Helmet", price="49.99"))

        assert result.bike is None
        assert result.inspection is None
        assert result.customer is None
        assert Bike.query.count() == bikes_before
        assert Inspection.query.count() == 0
        assert Sale.query.count() == 1

        notifications = Notification.query.all()
        assert len(notifications) == 1
        assert notifications[0].type == "system"
        assert "Helmet" in notifications[0].message


def test_repeat_sale_reuses_bike(app):
    with app.app_context():
        customer_id = _customer_id()
        first = record_sale(_sale(customer_id=customer_id, bike_model="Trek Marlin"))
        second = record_sale(_sale(customer_id=customer_id, bike_model="Trek Marlin", date="2024-03-01"))

        assert second.bike.id == first.bike.id
        assert Bike.query.filter_by(customer_id=customer_id, model="Trek Marlin").count() == 1
        assert Inspection.query.count() == 2


def test_serial_number_distinguishes_bikes(app):
    with app.app_context():
        customer_id = _customer_id()
        first = record_sale(_sale(customer_id=customer_id, bike_model="Trek Marlin"))
        second = record_sale(_sale(customer_id=customer_id, bike_model="Trek Marlin", bike_serial_number="TM-1"))
        assert first.bike.id != second.bike.id


def test_sale_with_new_customer(app):
    with app.app_context():
        result = record_sale(_sale(
            bike_model="Cube Attention",
            new_customer={"name": "Ana Ferreira", "email": "ana@example.com", "birthdate": "1982-09-30"},
        ))
        assert result.customer.id is not None
        assert result.customer.birthdate == date(1982, 9, 30)
        assert result.bike.customer_id == result.customer.id
        assert result.inspection.customer_id == result.customer.id


def test_unknown_customer_writes_nothing(app):
    with app.app_context():
        with pytest.raises(CustomerNotFound):
            record_sale(_sale(customer_id=9999))
        assert Sale.query.count() == 0


def test_failure_after_bike_keeps_earlier_steps(app, monkeypatch):
    def broken_commit_after_bike(*args, **kwargs):
        raise SQLAlchemyError("disk full")

    with app.app_context():
        customer_id = _customer_id()
        bikes_before = Bike.query.count()

        original_find = sales_linker.find_or_create_bike

        def find_then_break(*args, **kwargs):
            bike = original_find(*args, **kwargs)
            monkeypatch.setattr(db.session, "commit", broken_commit_after_bike)
            return bike

        monkeypatch.setattr(sales_linker, "find_or_create_bike", find_then_break)

        with pytest.raises(SaleLinkError) as excinfo:
            record_sale(_sale(customer_id=customer_id, bike_model="Orbea Alma"))

        monkeypatch.undo()
        assert excinfo.value.step == "sale"
        assert excinfo.value.completed_steps == ["bike"]
        # the bike stays without a sale
        assert Bike.query.count() == bikes_before + 1
        assert Sale.query.count() == 0


def test_find_future_inspection(app):
    with app.app_context():
        customer_id = _customer_id()
        bike = Bike.query.filter_by(customer_id=customer_id).first()
        db.session.add_all([
            Inspection(customer_id=customer_id, bike_id=bike.id, date=date(2024, 1, 1),
                       next_inspection_date=date(2024, 6, 1), status="scheduled"),
            Inspection(customer_id=customer_id, bike_id=bike.id, date=date(2024, 1, 1),
                       next_inspection_date=date(2024, 7, 1), status="completed"),
        ])
        db.session.commit()

        found = find_future_inspection(customer_id, bike.id, today=date(2024, 5, 1))
        assert found is not None and found.next_inspection_date == date(2024, 6, 1)
        assert find_future_inspection(customer_id, today=date(2024, 6, 2)) is None


def test_sale_date_falls_back_to_today(app):
    with app.app_context():
        data = _sale(customer_id=_customer_id(), bike_model="Trek Marlin")
        data["date"] = None
        result = record_sale(data, today=date(2024, 2, 29))

        assert result.sale.date == date(2024, 2, 29)
        assert result.inspection.next_inspection_date == date(2025, 2, 28)


def test_missing_field_mid_saga_is_reported_as_step_failure(app):
    with app.app_context():
        data = _sale(customer_id=_customer_id(), bike_model="Trek Marlin")
        del data["product_name"]

        with pytest.raises(SaleLinkError) as excinfo:
            record_sale(data)

        assert not isinstance(excinfo.value, LookupError)
        assert excinfo.value.step == "sale"
        assert excinfo.value.completed_steps == ["bike"]
        assert isinstance(excinfo.value.__cause__, KeyError)
        assert Sale.query.count() == 0
