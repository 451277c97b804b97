from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from bikeshop.extensions import db
from bikeshop.models.base import BaseModel


INSPECTION_STATUSES = ("scheduled", "completed", "pending", "cancelled")

# follow-up inspections are booked this many calendar years after the sale/inspection date
INSPECTION_INTERVAL_YEARS = 1


class Inspection(BaseModel, db.Model):
    __tablename__ = "inspection"

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customer.id"), nullable=False, index=True)
    bike_id = db.Column(db.Integer, db.ForeignKey("bike.id"), nullable=False, index=True)

    date = db.Column(db.Date, nullable=False, default=lambda: datetime.now().date())
    next_inspection_date = db.Column(db.Date, nullable=False, index=True)

    status = db.Column(db.String(20), nullable=False, default="scheduled")  # see INSPECTION_STATUSES
    notes = db.Column(db.Text)

    inspection_value = db.Column(db.Numeric(10, 2))
    labor_cost = db.Column(db.Numeric(10, 2))
    # filename or URL, the file itself is stored elsewhere
    invoice_file = db.Column(db.String(255))

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    customer: "Customer"
    bike: "Bike"

    customer = db.relationship("Customer", back_populates="inspections")
    bike = db.relationship("Bike", back_populates="inspections")

    def mark_completed(self) -> None:
        """Move a pending or scheduled inspection to completed.

        Raises:
            ValueError: if the inspection is already completed or was cancelled
        """
        if self.status not in ("pending", "scheduled"):
            raise ValueError(f"Cannot complete an inspection with status '{self.status}'")
        self.status = "completed"

    @property
    def total_value(self) -> Decimal:
        return Decimal(self.inspection_value or 0) + Decimal(self.labor_cost or 0)

    def to_dict(self) -> dict:
        from bikeshop.services.dates import format_date

        bike: Optional["Bike"] = self.bike
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "customer_name": self.customer.name if self.customer else "Unknown",
            "bike_id": self.bike_id,
            "bike_model": bike.model if bike else "Unknown",
            "bike_serial_number": (bike.serial_number or "") if bike else "",
            "date": format_date(self.date),
            "next_inspection_date": format_date(self.next_inspection_date),
            "status": self.status,
            "notes": self.notes or "",
            "inspection_value": float(self.inspection_value) if self.inspection_value is not None else None,
            "labor_cost": float(self.labor_cost) if self.labor_cost is not None else None,
            "invoice_file": self.invoice_file,
        }

    def __repr__(self) -> str:
        return f"<Inspection {self.id} {self.status} next={self.next_inspection_date}>"
