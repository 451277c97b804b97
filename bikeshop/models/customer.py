from __future__ import annotations

from datetime import datetime
from typing import List
from bikeshop.extensions import db
from bikeshop.models.base import BaseModel


class Customer(BaseModel, db.Model):
    __tablename__ = "customer"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, index=True)
    tax_id = db.Column(db.String(30))
    email = db.Column(db.String(100))
    phone = db.Column(db.String(20), index=True)
    birthdate = db.Column(db.Date)
    address = db.Column(db.Text)
    notes = db.Column(db.Text)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # type hints for relationships so the static analyser can see them
    bikes: List["Bike"]
    inspections: List["Inspection"]
    sales: List["Sale"]
    created_by_user: "User"

    bikes = db.relationship("Bike", back_populates="customer", lazy=True, order_by="Bike.created_at")
    inspections = db.relationship("Inspection", back_populates="customer", lazy=True)
    sales = db.relationship("Sale", back_populates="customer", lazy=True)
    created_by_user = db.relationship("User", foreign_keys=[created_by_user_id])

    def to_dict(self) -> dict:
        from bikeshop.services.dates import format_date

        return {
            "id": self.id,
            "name": self.name,
            "tax_id": self.tax_id,
            "email": self.email,
            "phone": self.phone,
            "birthdate": format_date(self.birthdate),
            "address": self.address,
            "notes": self.notes,
            "created_at": self.isoformat(self.created_at),
        }

    def __repr__(self) -> str:
        return f"<Customer {self.id} {self.name}>"
