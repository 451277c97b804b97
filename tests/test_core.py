from datetime import date, timedelta

from bikeshop.extensions import db
from bikeshop.models.customer import Customer
from bikeshop.models.inspection import Inspection
from bikeshop.models.settings import Setting


def test_health(client):
    rv = client.get('/health')
    assert rv.status_code == 200
    assert rv.get_json()['status'] == 'healthy'


def test_default_settings_seeded(app):
    with app.app_context():
        assert Setting.get_bool('BIRTHDAY_REMINDERS_ENABLED') is True
        assert Setting.get_bool('REMINDER_EMAILS_ENABLED') is False
        assert Setting.get_int('REMINDER_HORIZON_DAYS') == 5


def test_security_headers(client):
    rv = client.get('/health')
    assert rv.headers['X-Content-Type-Options'] == 'nosniff'


def test_dashboard(app, logged_in_client):
    today = date.today()
    with app.app_context():
        customer = Customer.query.filter_by(name='Test Customer').first()
        customer.birthdate = None
        # 1992 is a leap year
        db.session.add(Customer(name='Birthday Today', birthdate=date(1992, today.month, today.day)))
        db.session.add(Inspection(customer_id=customer.id, bike_id=customer.bikes[0].id, date=today,
                                  next_inspection_date=today + timedelta(days=1), status='pending'))
        db.session.commit()

    rv = logged_in_client.get('/')
    assert rv.status_code == 200
    body = rv.get_json()
    assert [c['name'] for c in body['alerts']['birthdays_today']] == ['Birthday Today']
    assert body['alerts']['inspections_due'][0]['due_label'] == 'In 1 day'
    assert body['stats']['customer_count'] == 2
    assert len(body['chart']) == 12
    assert body['unread_notifications'] == 0


def test_settings_update(app, logged_in_client):
    rv = logged_in_client.post('/settings', json={'REMINDER_HORIZON_DAYS': 7, 'REMINDER_EMAILS_ENABLED': 'on'})
    assert rv.status_code == 200
    settings = rv.get_json()['settings']
    assert settings['REMINDER_HORIZON_DAYS'] == '7'
    assert settings['REMINDER_EMAILS_ENABLED'] == 'true'
    assert settings['BIRTHDAY_REMINDERS_ENABLED'] == 'true'


def test_settings_reject_bad_horizon(logged_in_client):
    rv = logged_in_client.post('/settings', json={'REMINDER_HORIZON_DAYS': 'soon'})
    assert rv.status_code == 400


def test_create_app_requires_secret_key(monkeypatch, tmp_path):
    import pytest
    from bikeshop import create_app

    monkeypatch.delenv('SECRET_KEY', raising=False)
    with pytest.raises(ValueError):
        create_app({'TESTING': True, 'SECRET_KEY': '', 'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'x.db'}"})
