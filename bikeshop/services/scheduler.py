"""
Background Scheduler for the daily customer reminders
Uses APScheduler to run the reminder job once a day
"""
from __future__ import annotations
import logging
from datetime import date, datetime
from typing import Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from bikeshop.models.customer import Customer
from bikeshop.models.email_config import SMTPSettings
from bikeshop.models.inspection import Inspection
from bikeshop.models.settings import Setting
from bikeshop.services.dates import format_date
from bikeshop.services.email_service import EmailService, BIRTHDAY_TEMPLATE, INSPECTION_TEMPLATE
from bikeshop.services.notification_service import NotificationService
from bikeshop.services.reminders import (
    CLOSED_INSPECTION_STATUSES,
    DEFAULT_INSPECTION_HORIZON_DAYS,
    describe,
    evaluate,
    find_birthdays_today,
    find_upcoming_inspections,
)

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def init_scheduler(app):
    """
    Initialize and start the scheduler.

    APScheduler runs jobs in a background thread where ``current_app`` is not
    available, so the app instance is captured here and passed to the job.
    """
    if scheduler.running:
        return

    scheduler.add_job(
        func=run_daily_reminders,
        args=[app],
        trigger=CronTrigger(hour=app.config.get('REMINDER_JOB_HOUR', 8), minute=0),
        id='daily_reminders',
        name='Birthday and inspection reminders',
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=3600
    )

    try:
        scheduler.start()
        logger.info("Reminder scheduler started successfully")
    except Exception as e:
        logger.error(f"Failed to start scheduler: {e}")


def run_daily_reminders(app):
    """Scheduler entry point: run ``send_daily_reminders`` inside an app context."""
    try:
        with app.app_context():
            summary = send_daily_reminders()
            logger.info(f"Daily reminders done at {datetime.now()}: {summary}")
    except Exception as e:
        logger.error(f"Error in daily reminder task: {e}", exc_info=True)


def _emails_enabled() -> bool:
    if not Setting.get_bool('REMINDER_EMAILS_ENABLED', False):
        return False
    config = SMTPSettings.get_active_config()
    return bool(config and config.is_enabled)


def send_daily_reminders(today: Optional[date] = None) -> Dict[str, int]:
    """
    Create today's birthday and inspection notifications.

    Running it twice on the same day adds nothing: each notification is
    skipped when an identical one already exists for the day. Reminder
    emails go out only for newly created notifications.

    Returns:
        counts of notifications and emails produced
    """
    today = today or date.today()
    # notification timestamps are UTC
    stamp_day = datetime.utcnow().date()
    send_emails = _emails_enabled()
    summary = {'birthdays': 0, 'inspections': 0, 'emails': 0}

    if Setting.get_bool('BIRTHDAY_REMINDERS_ENABLED', True):
        customers = Customer.query.filter(Customer.birthdate.isnot(None)).all()
        for customer in find_birthdays_today(customers, today):
            message = f"Today is {customer.name}'s birthday."
            if NotificationService.exists_for_day('birthday', message, stamp_day, customer.id):
                continue
            NotificationService.create(
                title="Customer birthday",
                message=message,
                type='birthday',
                customer_id=customer.id,
            )
            summary['birthdays'] += 1

            if send_emails and customer.email:
                success, _ = EmailService.send_template(
                    customer.email,
                    BIRTHDAY_TEMPLATE,
                    EmailService.birthday_template_data(customer, today),
                    customer_id=customer.id,
                )
                summary['emails'] += int(success)

    if Setting.get_bool('INSPECTION_REMINDERS_ENABLED', True):
        horizon = Setting.get_int('REMINDER_HORIZON_DAYS', DEFAULT_INSPECTION_HORIZON_DAYS)
        candidates = Inspection.query.filter(
            Inspection.status.notin_(CLOSED_INSPECTION_STATUSES)
        ).all()
        for inspection in find_upcoming_inspections(candidates, horizon, today):
            window = evaluate(inspection.next_inspection_date, today, recurring=False)
            bike = inspection.bike.model if inspection.bike else 'bike'
            message = (
                f"Inspection of {inspection.customer.name}'s {bike} is due "
                f"{describe(window).lower()} ({format_date(inspection.next_inspection_date)})."
            )
            if NotificationService.exists_for_day('inspection', message, stamp_day, inspection.customer_id):
                continue
            NotificationService.create(
                title="Inspection due",
                message=message,
                type='inspection',
                customer_id=inspection.customer_id,
            )
            summary['inspections'] += 1

            if send_emails and inspection.customer.email:
                success, _ = EmailService.send_template(
                    inspection.customer.email,
                    INSPECTION_TEMPLATE,
                    EmailService.inspection_template_data(inspection),
                    customer_id=inspection.customer_id,
                )
                summary['emails'] += int(success)

    return summary


def stop_scheduler():
    """Stop the scheduler gracefully"""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Reminder scheduler stopped")
