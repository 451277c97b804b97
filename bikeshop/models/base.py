"""Shared base class for the shop's declarative models.

Accepts column names as keyword arguments (``Customer(name=..., phone=...)``)
and carries the date formatting used by every ``to_dict``.
"""
from typing import Any, Optional

from bikeshop.extensions import db


class BaseModel(db.Model):
    __abstract__ = True
    __allow_unmapped__ = True

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)

    @staticmethod
    def isoformat(value) -> Optional[str]:
        """ISO string for a date/datetime column, None when unset"""
        return value.isoformat() if value else None
