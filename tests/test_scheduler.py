from datetime import date, timedelta

from bikeshop.extensions import db
from bikeshop.models.customer import Customer
from bikeshop.models.email_config import EmailLog
from bikeshop.models.inspection import Inspection
from bikeshop.models.notification import Notification
from bikeshop.models.settings import Setting
from bikeshop.services.scheduler import send_daily_reminders


def _birthday_today_and_due_inspection(app):
    today = date.today()
    with app.app_context():
        customer = Customer.query.filter_by(name='Test Customer').first()
        # 1984 is a leap year
        customer.birthdate = date(1984, today.month, today.day)
        db.session.add(Inspection(customer_id=customer.id, bike_id=customer.bikes[0].id,
                                  date=today - timedelta(days=360),
                                  next_inspection_date=today + timedelta(days=2), status='scheduled'))
        db.session.add(Inspection(customer_id=customer.id, bike_id=customer.bikes[0].id,
                                  date=today, next_inspection_date=today + timedelta(days=2),
                                  status='completed'))
        db.session.commit()


def test_daily_reminders_create_notifications(app):
    _birthday_today_and_due_inspection(app)
    with app.app_context():
        summary = send_daily_reminders()
        assert summary == {'birthdays': 1, 'inspections': 1, 'emails': 0}

        types = sorted(n.type for n in Notification.query.all())
        assert types == ['birthday', 'inspection']
        inspection_note = Notification.query.filter_by(type='inspection').one()
        assert 'Scott Scale 970' in inspection_note.message
        assert 'in 2 days' in inspection_note.message


def test_daily_reminders_are_idempotent(app):
    _birthday_today_and_due_inspection(app)
    with app.app_context():
        send_daily_reminders()
        summary = send_daily_reminders()
        assert summary == {'birthdays': 0, 'inspections': 0, 'emails': 0}
        assert Notification.query.count() == 2


def test_disabled_flags_skip_reminders(app):
    _birthday_today_and_due_inspection(app)
    with app.app_context():
        Setting.set_value('BIRTHDAY_REMINDERS_ENABLED', 'false')
        Setting.set_value('INSPECTION_REMINDERS_ENABLED', 'false')
        assert send_daily_reminders() == {'birthdays': 0, 'inspections': 0, 'emails': 0}
        assert Notification.query.count() == 0


def test_horizon_setting(app):
    _birthday_today_and_due_inspection(app)
    with app.app_context():
        Setting.set_value('REMINDER_HORIZON_DAYS', '1')
        assert send_daily_reminders()['inspections'] == 0


def test_reminder_emails_when_enabled(app, fake_smtp, smtp_config):
    _birthday_today_and_due_inspection(app)
    with app.app_context():
        Setting.set_value('REMINDER_EMAILS_ENABLED', 'true')
        summary = send_daily_reminders()
        assert summary['emails'] == 2
        assert sorted(log.template for log in EmailLog.query.all()) == ['birthday', 'inspection']
    assert len(fake_smtp.sent) == 2
