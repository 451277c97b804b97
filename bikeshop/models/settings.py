"""
Shop settings: the reminder feature flags and the reminder horizon
"""
from datetime import datetime

from bikeshop.extensions import db
from bikeshop.models.base import BaseModel


# key -> (default value, description)
DEFAULT_SETTINGS = {
    'BIRTHDAY_REMINDERS_ENABLED': ('true', 'Create birthday notifications every morning'),
    'INSPECTION_REMINDERS_ENABLED': ('true', 'Create notifications for inspections that are due soon'),
    'REMINDER_EMAILS_ENABLED': ('false', 'Email customers together with the daily reminders'),
    'REMINDER_HORIZON_DAYS': ('5', 'How many days ahead an inspection counts as upcoming'),
}

FLAG_KEYS = ('BIRTHDAY_REMINDERS_ENABLED', 'INSPECTION_REMINDERS_ENABLED', 'REMINDER_EMAILS_ENABLED')

TRUTHY = ('true', '1', 'yes', 'on')


class Setting(BaseModel, db.Model):
    __tablename__ = 'settings'

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(100), unique=True, nullable=False, index=True)
    value = db.Column(db.String(500), nullable=False)
    description = db.Column(db.String(255))
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @staticmethod
    def get_value(key, default=None):
        """Stored value, else ``default``, else the built-in default for ``key``"""
        setting = Setting.query.filter_by(key=key).first()
        if setting:
            return setting.value
        if default is not None:
            return default
        return DEFAULT_SETTINGS.get(key, ('false', None))[0]

    @staticmethod
    def get_bool(key, default=None):
        fallback = None if default is None else ('true' if default else 'false')
        return Setting.get_value(key, fallback).lower() in TRUTHY

    @staticmethod
    def get_int(key, default=0):
        try:
            return int(Setting.get_value(key, str(default)))
        except (TypeError, ValueError):
            return default

    @staticmethod
    def set_value(key, value, description=None):
        setting = Setting.query.filter_by(key=key).first()
        if setting:
            setting.value = str(value)
            if description:
                setting.description = description
        else:
            if description is None:
                description = DEFAULT_SETTINGS.get(key, (None, None))[1]
            db.session.add(Setting(key=key, value=str(value), description=description))
        db.session.commit()

    @staticmethod
    def set_flag(key, raw):
        """Store a checkbox/JSON boolean as 'true' or 'false'"""
        enabled = raw is True or str(raw).lower() in TRUTHY
        Setting.set_value(key, 'true' if enabled else 'false')

    @staticmethod
    def snapshot():
        """Every known setting with its current value"""
        return {key: Setting.get_value(key) for key in DEFAULT_SETTINGS}

    @staticmethod
    def seed_defaults():
        """Add missing default rows; the caller commits"""
        for key, (value, description) in DEFAULT_SETTINGS.items():
            if not Setting.query.filter_by(key=key).first():
                db.session.add(Setting(key=key, value=value, description=description))

    def __repr__(self):
        return f'<Setting {self.key}={self.value}>'
