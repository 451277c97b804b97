import os
from datetime import date

import pytest

from bikeshop import create_app
from bikeshop.extensions import db
from bikeshop.models.bike import Bike
from bikeshop.models.customer import Customer
from bikeshop.services.security import rate_limiter


@pytest.fixture()
def app(tmp_path):
    # Ensure SECRET_KEY is present (Config requires it)
    os.environ['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'test-secret')

    config = {
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{(tmp_path / 'test_bikeshop.db').as_posix()}",
        'SECRET_KEY': 'test-secret',
        'SCHEDULER_ENABLED': False,
        'SHOP_NAME': 'Ambikes',
        'SHOP_ADDRESS': 'Rua das Oficinas 1, Lisboa',
        'SHOP_PHONE': '210000000',
    }
    app = create_app(config=config)
    rate_limiter.attempts.clear()

    # Use default admin created by initialize_database() in the app factory
    with app.app_context():
        c = Customer(name='Test Customer', email='test.customer@example.com', phone='912 345 678',
                     birthdate=date(1985, 6, 15))
        db.session.add(c)
        db.session.flush()
        db.session.add(Bike(customer_id=c.id, model='Scott Scale 970', serial_number='SC970'))
        db.session.commit()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def logged_in_client(client):
    # Log in as admin
    rv = client.post('/auth/login', data={'username': 'admin', 'password': 'admin123'})
    assert b'Welcome back' in rv.data
    return client


@pytest.fixture()
def staff_client(app):
    from bikeshop.models.user import User

    with app.app_context():
        user = User(username='staff', full_name='Shop Staff', role='STAFF')
        user.set_password('staff123')
        db.session.add(user)
        db.session.commit()

    client = app.test_client()
    rv = client.post('/auth/login', json={'username': 'staff', 'password': 'staff123'})
    assert rv.status_code == 200
    return client


class FakeSMTP:
    """Records what would have been sent instead of opening a connection"""
    sent = []
    fail_with = None

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port

    def __enter__(self):
        if FakeSMTP.fail_with is not None:
            raise FakeSMTP.fail_with
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, user, password):
        self.credentials = (user, password)

    def send_message(self, msg, from_addr=None, to_addrs=None):
        FakeSMTP.sent.append(msg)


@pytest.fixture()
def fake_smtp(monkeypatch):
    import smtplib

    FakeSMTP.sent = []
    FakeSMTP.fail_with = None
    monkeypatch.setattr(smtplib, 'SMTP', FakeSMTP)
    return FakeSMTP


@pytest.fixture()
def smtp_config(app):
    from bikeshop.models.email_config import SMTPSettings

    with app.app_context():
        config = SMTPSettings(smtp_server='smtp.example.com', smtp_port=587,
                              email_address='shop@example.com', sender_name='Ambikes',
                              use_tls=True, is_enabled=True)
        config.set_password('smtp-secret')
        db.session.add(config)
        db.session.commit()
