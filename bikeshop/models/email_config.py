"""
Email Configuration and Dispatch Log Models
"""
from __future__ import annotations
from datetime import datetime
import base64
import hashlib
import logging
import os
import re

from bikeshop.extensions import db
from bikeshop.models.base import BaseModel

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[^@ \t\r\n]+@[^@ \t\r\n]+\.[^@ \t\r\n]+")


class SMTPSettings(BaseModel, db.Model):
    """SMTP configuration used for customer reminders and test emails"""
    __tablename__ = 'smtp_settings'

    id = db.Column(db.Integer, primary_key=True)

    # SMTP Configuration
    smtp_server = db.Column(db.String(255), nullable=False)  # e.g., 'smtp.gmail.com'
    smtp_port = db.Column(db.Integer, default=587)
    email_address = db.Column(db.String(255), nullable=False)
    sender_name = db.Column(db.String(100), default='Ambikes')
    email_password_encrypted = db.Column(db.LargeBinary, nullable=False)
    use_tls = db.Column(db.Boolean, default=True)

    # Control flags
    is_enabled = db.Column(db.Boolean, default=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @staticmethod
    def get_cipher():
        """Get Fernet cipher for password encryption/decryption.

        Uses EMAIL_ENCRYPTION_KEY when it is a valid Fernet key, otherwise
        derives a stable key from that value or from the app SECRET_KEY.
        """
        from cryptography.fernet import Fernet

        key = os.environ.get('EMAIL_ENCRYPTION_KEY')
        if key:
            try:
                return Fernet(key.encode())
            except (ValueError, TypeError):
                seed = key
        else:
            from flask import current_app
            seed = current_app.config.get('SECRET_KEY') or 'bikeshop-default-key'

        hashed = hashlib.sha256(seed.encode()).digest()
        return Fernet(base64.urlsafe_b64encode(hashed))

    def set_password(self, password: str):
        """Encrypt and store password"""
        self.email_password_encrypted = self.get_cipher().encrypt(password.encode())

    def get_password(self) -> str:
        """Decrypt and retrieve password"""
        from cryptography.fernet import InvalidToken

        if not self.email_password_encrypted:
            return ""
        try:
            return self.get_cipher().decrypt(self.email_password_encrypted).decode()
        except InvalidToken:
            # key rotated since the password was saved
            logger.error("Failed to decrypt SMTP password; re-enter it in the email settings")
            return ""

    @property
    def from_header(self) -> str:
        if self.sender_name:
            return f"{self.sender_name} <{self.email_address}>"
        return self.email_address

    @classmethod
    def get_active_config(cls):
        """Get the active SMTP configuration (assumes single config)"""
        return cls.query.first()

    @staticmethod
    def validate_address(email: str) -> bool:
        """Simple validation for email format"""
        return bool(email) and EMAIL_PATTERN.fullmatch(email) is not None

    def to_dict(self) -> dict:
        return {
            "smtp_server": self.smtp_server,
            "smtp_port": self.smtp_port,
            "email_address": self.email_address,
            "sender_name": self.sender_name,
            "use_tls": self.use_tls,
            "is_enabled": self.is_enabled,
            "has_password": bool(self.email_password_encrypted),
        }

    def __repr__(self) -> str:
        return f"<SMTPSettings {self.email_address} enabled={self.is_enabled}>"


class EmailLog(BaseModel, db.Model):
    """Log of every email the shop tried to send"""
    __tablename__ = 'email_log'

    id = db.Column(db.Integer, primary_key=True)
    recipient_email = db.Column(db.String(255), nullable=False)
    subject = db.Column(db.String(255), nullable=False)
    # birthday, inspection, test or None for ad-hoc messages
    template = db.Column(db.String(30), nullable=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('customer.id'), nullable=True)

    # Status tracking
    status = db.Column(db.String(20), default='pending')  # pending, sent, failed
    error_message = db.Column(db.Text, nullable=True)
    attempted_at = db.Column(db.DateTime, default=datetime.utcnow)
    sent_at = db.Column(db.DateTime, nullable=True)

    def mark_sent(self):
        """Mark email as successfully sent"""
        self.status = 'sent'
        self.sent_at = datetime.utcnow()
        db.session.commit()

    def mark_failed(self, error_msg: str):
        """Mark email as failed with error message"""
        self.status = 'failed'
        self.error_message = error_msg
        db.session.commit()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "recipient_email": self.recipient_email,
            "subject": self.subject,
            "template": self.template,
            "customer_id": self.customer_id,
            "status": self.status,
            "error_message": self.error_message,
            "attempted_at": self.isoformat(self.attempted_at),
            "sent_at": self.isoformat(self.sent_at),
        }

    def __repr__(self) -> str:
        return f"<EmailLog {self.template} {self.status} to {self.recipient_email}>"
