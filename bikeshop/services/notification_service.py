"""
Notification feed shown on the dashboard
"""
from __future__ import annotations
from datetime import datetime, date, timedelta
from typing import List, Optional
import logging

from bikeshop.extensions import db
from bikeshop.models.notification import Notification, NOTIFICATION_TYPES

logger = logging.getLogger(__name__)


class NotificationService:
    """Create, list and acknowledge notifications"""

    @staticmethod
    def create(title: str, message: str, type: str = "system",
               customer_id: Optional[int] = None, commit: bool = True) -> Notification:
        """
        Add a notification to the feed.

        Raises:
            ValueError: for an unknown notification type
        """
        if type not in NOTIFICATION_TYPES:
            raise ValueError(f"Unknown notification type '{type}'")

        notification = Notification(
            title=title,
            message=message,
            type=type,
            customer_id=customer_id,
            read=False,
            date=datetime.utcnow(),
        )
        db.session.add(notification)
        if commit:
            db.session.commit()
        logger.debug(f"Notification created: {type} {title!r}")
        return notification

    @staticmethod
    def exists_for_day(type: str, message: str, day: date, customer_id: Optional[int] = None) -> bool:
        """True if the same notification was already emitted on ``day``."""
        start = datetime.combine(day, datetime.min.time())
        end = start + timedelta(days=1)
        query = Notification.query.filter(
            Notification.type == type,
            Notification.message == message,
            Notification.date >= start,
            Notification.date < end,
        )
        if customer_id is not None:
            query = query.filter(Notification.customer_id == customer_id)
        return db.session.query(query.exists()).scalar()

    @staticmethod
    def feed(limit: int = 20, unread_only: bool = False) -> List[Notification]:
        query = Notification.query
        if unread_only:
            query = query.filter(Notification.read.is_(False))
        return query.order_by(Notification.date.desc(), Notification.id.desc()).limit(limit).all()

    @staticmethod
    def unread_count() -> int:
        return Notification.query.filter(Notification.read.is_(False)).count()

    @staticmethod
    def mark_as_read(notification_id: int) -> bool:
        """Mark one notification as read; False if it does not exist."""
        notification = db.session.get(Notification, notification_id)
        if notification is None:
            return False
        notification.read = True
        db.session.commit()
        return True

    @staticmethod
    def mark_all_as_read() -> int:
        """Mark every unread notification as read and return how many changed."""
        updated = (
            Notification.query
            .filter(Notification.read.is_(False))
            .update({Notification.read: True}, synchronize_session=False)
        )
        db.session.commit()
        return updated
