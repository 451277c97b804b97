from __future__ import annotations

from datetime import datetime
from typing import Optional
from bikeshop.extensions import db
from bikeshop.models.base import BaseModel


NOTIFICATION_TYPES = ("inspection", "birthday", "system", "email")


class Notification(BaseModel, db.Model):
    __tablename__ = "notification"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(20), nullable=False, default="system")
    read = db.Column(db.Boolean, nullable=False, default=False, index=True)
    date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customer.id"), nullable=True)

    customer: Optional["Customer"]
    customer = db.relationship("Customer")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "message": self.message,
            "type": self.type,
            "read": self.read,
            "date": self.isoformat(self.date),
            "customer_id": self.customer_id,
        }

    def __repr__(self) -> str:
        return f"<Notification {self.type} read={self.read} {self.title!r}>"
