"""
Database models package
"""
# Base model used to give all declarative models a permissive constructor
from bikeshop.models.base import BaseModel

from bikeshop.models.user import User
from bikeshop.models.settings import Setting
from bikeshop.models.customer import Customer
from bikeshop.models.bike import Bike
from bikeshop.models.inspection import Inspection
from bikeshop.models.sales import Sale
from bikeshop.models.notification import Notification
from bikeshop.models.email_config import SMTPSettings, EmailLog

__all__ = [
    'User', 'Setting',
    'Customer', 'Bike', 'Inspection',
    'Sale', 'Notification',
    'SMTPSettings', 'EmailLog'
]
