"""
Shop staff accounts
"""
from datetime import datetime

from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from bikeshop.extensions import db
from bikeshop.models.base import BaseModel


# role -> what it unlocks
ROLES = {
    'ADMIN': 'Full system access, settings and email configuration',
    'STAFF': 'Customers, inspections and sales',
}


class User(UserMixin, BaseModel, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(100), nullable=False)
    role = db.Column(db.String(20), nullable=False, default='STAFF')
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def has_role(self, *roles):
        """True when the user holds one of ``roles``; ADMIN also counts as STAFF."""
        if self.role == 'ADMIN' and 'STAFF' in roles:
            return True
        return self.role in roles

    @property
    def is_admin(self):
        return self.role == 'ADMIN'

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'username': self.username,
            'full_name': self.full_name,
            'role': self.role,
        }

    def __repr__(self):
        return f'<User {self.username} ({self.role})>'
