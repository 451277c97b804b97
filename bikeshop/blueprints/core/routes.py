"""
Core routes (dashboard, settings, health)
"""
from datetime import date

from flask import request, jsonify
from flask_login import login_required
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from bikeshop.blueprints.core import core_bp
from bikeshop.extensions import db
from bikeshop.models.customer import Customer
from bikeshop.models.inspection import Inspection
from bikeshop.models.settings import Setting, FLAG_KEYS
from bikeshop.services.authz import admin_required
from bikeshop.services.notification_service import NotificationService
from bikeshop.services.reminders import (
    CLOSED_INSPECTION_STATUSES,
    DEFAULT_INSPECTION_HORIZON_DAYS,
    describe,
    evaluate,
    find_birthdays_today,
    find_upcoming_inspections,
)
from bikeshop.services.report_service import ReportService


@core_bp.route('/health')
def health():
    """Health check endpoint for monitoring and load balancers"""
    try:
        # Check database connection
        db.session.execute(text('SELECT 1'))
        return jsonify({'status': 'healthy', 'message': 'Application is running'}), 200
    except SQLAlchemyError as e:
        return jsonify({'status': 'unhealthy', 'message': str(e)}), 503


@core_bp.route('/')
@core_bp.route('/dashboard')
@login_required
def dashboard():
    """Main dashboard: counters, today's alerts, notification feed and chart"""
    today = date.today()
    horizon = Setting.get_int('REMINDER_HORIZON_DAYS', DEFAULT_INSPECTION_HORIZON_DAYS)

    customers = Customer.query.filter(Customer.birthdate.isnot(None)).all()
    birthdays = find_birthdays_today(customers, today)

    open_inspections = Inspection.query.filter(
        Inspection.status.notin_(CLOSED_INSPECTION_STATUSES)
    ).order_by(Inspection.next_inspection_date).all()
    due = find_upcoming_inspections(open_inspections, horizon, today)

    due_rows = []
    for inspection in due:
        row = inspection.to_dict()
        row['due_label'] = describe(evaluate(inspection.next_inspection_date, today, recurring=False))
        due_rows.append(row)

    return jsonify({
        'stats': ReportService.dashboard_stats(today),
        'alerts': {
            'birthdays_today': [c.to_dict() for c in birthdays],
            'inspections_due': due_rows,
            'horizon_days': horizon,
        },
        'notifications': [n.to_dict() for n in NotificationService.feed(limit=10)],
        'unread_notifications': NotificationService.unread_count(),
        'chart': ReportService.monthly_summary(today.year),
    })


@core_bp.route('/settings', methods=['GET', 'POST'])
@login_required
@admin_required
def settings():
    """Admin settings for the reminder feature flags"""
    if request.method == 'POST':
        data = request.get_json(silent=True) or request.form

        if 'REMINDER_HORIZON_DAYS' in data:
            try:
                horizon = int(data.get('REMINDER_HORIZON_DAYS'))
            except (TypeError, ValueError):
                horizon = -1
            if not 0 <= horizon <= 365:
                return jsonify({
                    'success': False,
                    'errors': {'REMINDER_HORIZON_DAYS': 'Horizon must be a number of days between 0 and 365'},
                }), 400
            Setting.set_value('REMINDER_HORIZON_DAYS', horizon)

        for key in FLAG_KEYS:
            if key in data:
                Setting.set_flag(key, data.get(key))

        return jsonify({'success': True, 'message': 'Settings updated successfully.', 'settings': Setting.snapshot()})

    return jsonify({'settings': Setting.snapshot()})
