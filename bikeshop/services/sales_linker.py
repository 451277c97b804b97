"""
Recording a sale and booking the bike's first inspection.

``record_sale`` runs five steps in order, committing after each one:

    customer -> bike (find or create) -> sale -> inspection -> notification

The steps are not wrapped in one transaction. If a step fails, the records
written by the earlier steps stay in place (for example a bike without a
sale) and ``SaleLinkError`` tells the caller which steps had completed.
"""
from __future__ import annotations
from datetime import date
from typing import List, NamedTuple, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError

from bikeshop.extensions import db
from bikeshop.models.bike import Bike
from bikeshop.models.customer import Customer
from bikeshop.models.inspection import Inspection, INSPECTION_INTERVAL_YEARS
from bikeshop.models.notification import Notification
from bikeshop.models.sales import Sale
from bikeshop.services.dates import add_years, format_date
from bikeshop.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

STEP_CUSTOMER = "customer"
STEP_BIKE = "bike"
STEP_SALE = "sale"
STEP_INSPECTION = "inspection"
STEP_NOTIFICATION = "notification"


class CustomerNotFound(LookupError):
    """``customer_id`` names no stored customer; nothing was written."""


class SaleLinkError(Exception):
    """A step of ``record_sale`` failed after ``completed_steps`` were committed."""

    def __init__(self, step: str, completed_steps: List[str], message: str):
        super().__init__(message)
        self.step = step
        self.completed_steps = list(completed_steps)


class SaleLinkResult(NamedTuple):
    sale: Sale
    customer: Optional[Customer]
    bike: Optional[Bike]
    inspection: Optional[Inspection]
    notification: Notification


def next_inspection_date(sale_date: date) -> date:
    """Date of the follow-up inspection for a bike sold on ``sale_date``."""
    return add_years(sale_date, INSPECTION_INTERVAL_YEARS)


def find_or_create_bike(customer_id: int, model: str, serial_number: Optional[str]) -> Bike:
    """Return the customer's matching bike, inserting it when missing.

    Two concurrent callers can both miss and insert; there is no unique
    constraint to stop them.
    """
    bike = Bike.find_for(customer_id, model, serial_number)
    if bike is not None:
        logger.debug(f"Reusing bike {bike.id} for customer {customer_id}")
        return bike

    bike = Bike(customer_id=customer_id, model=model, serial_number=serial_number or None)
    db.session.add(bike)
    db.session.commit()
    logger.info(f"Created bike {bike.id} ({model}) for customer {customer_id}")
    return bike


def find_future_inspection(customer_id: int, bike_id: Optional[int] = None,
                           today: Optional[date] = None) -> Optional[Inspection]:
    """First open inspection of the customer (optionally for one bike) due today or later.

    Used before offering to book another inspection; ``record_sale`` does not
    consult it.
    """
    today = today or date.today()
    query = Inspection.query.filter(
        Inspection.customer_id == customer_id,
        Inspection.status.in_(("scheduled", "pending")),
        Inspection.next_inspection_date >= today,
    )
    if bike_id is not None:
        query = query.filter(Inspection.bike_id == bike_id)
    return query.order_by(Inspection.next_inspection_date).first()


def record_sale(data: dict, actor=None, today: Optional[date] = None) -> SaleLinkResult:
    """
    Store a sale, its bike and the follow-up inspection.

    Args:
        data: clean values from ``SaleValidator.validate``
        actor: user recording the sale (stored as the creator of a new customer)
        today: sale date used when ``data`` carries none

    Returns:
        SaleLinkResult with every record written

    Raises:
        CustomerNotFound: ``customer_id`` does not exist (nothing was written)
        SaleLinkError: a step failed; earlier steps stay committed
    """
    completed: List[str] = []
    step = STEP_CUSTOMER

    try:
        # 1. customer
        customer = None
        if data.get("new_customer"):
            customer = Customer(**data["new_customer"])
            if actor is not None:
                customer.created_by_user_id = actor.id
            db.session.add(customer)
            db.session.commit()
            logger.info(f"Created customer {customer.id} while recording a sale")
            completed.append(STEP_CUSTOMER)
        elif data.get("customer_id") is not None:
            customer = db.session.get(Customer, data["customer_id"])
            if customer is None:
                raise CustomerNotFound(f"Customer {data['customer_id']} not found")

        sale_date = data.get("date") or today or date.today()

        # 2. bike
        step = STEP_BIKE
        bike = None
        if data.get("bike_model"):
            if customer is None:
                raise ValueError("A customer is required to register a bike")
            bike = find_or_create_bike(customer.id, data["bike_model"], data.get("bike_serial_number"))
            completed.append(STEP_BIKE)

        # 3. sale
        step = STEP_SALE
        sale = Sale(
            customer_id=customer.id if customer else None,
            bike_id=bike.id if bike else None,
            product_name=data["product_name"],
            bike_model=data.get("bike_model"),
            bike_serial_number=data.get("bike_serial_number"),
            price=data["price"],
            date=sale_date,
            notes=data.get("notes"),
            invoice_file=data.get("invoice_file"),
        )
        db.session.add(sale)
        db.session.commit()
        completed.append(STEP_SALE)
        logger.info(f"Recorded sale {sale.id}: {sale.product_name} ({sale.price})")

        # 4. follow-up inspection
        step = STEP_INSPECTION
        inspection = None
        if bike is not None:
            due = next_inspection_date(sale_date)
            inspection = Inspection(
                customer_id=customer.id,
                bike_id=bike.id,
                date=sale_date,
                next_inspection_date=due,
                status="scheduled",
                notes=(
                    f"Inspection booked automatically after the sale of {data['product_name']} "
                    f"on {format_date(sale_date)}. Due on {format_date(due)}."
                ),
            )
            db.session.add(inspection)
            db.session.commit()
            completed.append(STEP_INSPECTION)
            logger.info(f"Scheduled inspection {inspection.id} for bike {bike.id} on {due}")

        # 5. notification
        step = STEP_NOTIFICATION
        notification = NotificationService.create(
            title="New sale recorded",
            message=f"A new sale was recorded for {data['product_name']}.",
            type="system",
            customer_id=customer.id if customer else None,
        )
        completed.append(STEP_NOTIFICATION)

    except CustomerNotFound:
        raise
    except (SQLAlchemyError, ValueError, KeyError) as e:
        db.session.rollback()
        logger.error(f"Recording sale failed at step '{step}' after {completed}: {e}", exc_info=True)
        raise SaleLinkError(step, completed, f"Failed to record sale at step '{step}': {e}") from e

    return SaleLinkResult(sale, customer, bike, inspection, notification)
