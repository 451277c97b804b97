from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from bikeshop.extensions import db
from bikeshop.models.base import BaseModel


class Sale(BaseModel, db.Model):
    __tablename__ = "sale"

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customer.id"), index=True)  # nullable for walk-in
    bike_id = db.Column(db.Integer, db.ForeignKey("bike.id"), nullable=True)

    product_name = db.Column(db.String(200), nullable=False)
    # snapshot of the bike at the time of sale, kept even if the bike row changes
    bike_model = db.Column(db.String(120))
    bike_serial_number = db.Column(db.String(80))

    # VALIDATION: price must be > 0 (see SaleValidator)
    price = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    date = db.Column(db.Date, nullable=False, default=lambda: datetime.now().date(), index=True)
    notes = db.Column(db.Text)
    invoice_file = db.Column(db.String(255))

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # relationship hints for static type checking
    customer: Optional["Customer"]
    bike: Optional["Bike"]

    customer = db.relationship("Customer", back_populates="sales")
    bike = db.relationship("Bike")

    def to_dict(self) -> dict:
        from bikeshop.services.dates import format_date

        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "customer_name": self.customer.name if self.customer else "Walk-in",
            "bike_id": self.bike_id,
            "product_name": self.product_name,
            "bike_model": self.bike_model,
            "bike_serial_number": self.bike_serial_number,
            "price": float(self.price or 0),
            "date": format_date(self.date),
            "notes": self.notes,
            "invoice_file": self.invoice_file,
        }

    def __repr__(self) -> str:
        return f"<Sale {self.id} {self.product_name} price={self.price}>"
