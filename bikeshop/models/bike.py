from __future__ import annotations

from datetime import datetime
from typing import List
from bikeshop.extensions import db
from bikeshop.models.base import BaseModel


class Bike(BaseModel, db.Model):
    """A customer's bicycle.

    There is no unique constraint on (customer, model, serial number); callers
    look the bike up before inserting (see ``Bike.find_for``).
    """
    __tablename__ = "bike"

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customer.id"), nullable=False, index=True)
    model = db.Column(db.String(120), nullable=False)
    serial_number = db.Column(db.String(80))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    customer: "Customer"
    inspections: List["Inspection"]

    customer = db.relationship("Customer", back_populates="bikes")
    inspections = db.relationship("Inspection", back_populates="bike", lazy=True)

    @classmethod
    def find_for(cls, customer_id: int, model: str, serial_number: str | None):
        """Return the bike matching (customer, model, serial) or None.

        A missing serial number only matches bikes stored without one.
        """
        query = cls.query.filter_by(customer_id=customer_id, model=model)
        if serial_number:
            query = query.filter(cls.serial_number == serial_number)
        else:
            query = query.filter(cls.serial_number.is_(None))
        return query.order_by(cls.id).first()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "model": self.model,
            "serial_number": self.serial_number,
            "created_at": self.isoformat(self.created_at),
        }

    def __repr__(self) -> str:
        return f"<Bike {self.model} sn={self.serial_number}>"
