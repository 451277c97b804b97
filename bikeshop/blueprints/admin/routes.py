"""
Admin routes for email configuration
"""
from __future__ import annotations
import logging

from flask import request, jsonify
from flask_login import login_required, current_user
from sqlalchemy.exc import SQLAlchemyError

from bikeshop.extensions import db
from bikeshop.models.email_config import SMTPSettings, EmailLog
from bikeshop.services.authz import admin_required
from bikeshop.services.email_service import EmailService
from bikeshop.services.pagination import get_page_args, page_meta, paginate_query
from bikeshop.services.validation import form_data

from . import admin_bp

logger = logging.getLogger(__name__)


def _flag(data, key, default=False) -> bool:
    if key not in data:
        return default
    return str(data.get(key)).lower() in ('true', '1', 'on', 'yes')


@admin_bp.route('/email-settings', methods=['GET', 'POST'])
@login_required
@admin_required
def email_settings():
    """SMTP configuration: ``action`` is ``save`` (default) or ``toggle``"""
    config = SMTPSettings.get_active_config()

    if request.method == 'GET':
        return jsonify({'config': config.to_dict() if config else None})

    data = form_data()
    action = data.get('action', 'save')

    if action == 'toggle':
        if not config:
            return jsonify({'success': False, 'message': 'Please configure SMTP settings first'}), 400
        config.is_enabled = not config.is_enabled
        db.session.commit()
        status = 'enabled' if config.is_enabled else 'disabled'
        return jsonify({'success': True, 'message': f'Email sending {status}', 'config': config.to_dict()})

    if action != 'save':
        return jsonify({'success': False, 'errors': {'action': 'Unknown action'}}), 400

    errors = {}
    smtp_server = str(data.get('smtp_server') or '').strip()
    email_address = str(data.get('email_address') or '').strip()
    password = str(data.get('email_password') or '').strip()

    if not smtp_server:
        errors['smtp_server'] = 'SMTP server is required'
    if not SMTPSettings.validate_address(email_address):
        errors['email_address'] = 'Invalid sender email address'
    try:
        smtp_port = int(data.get('smtp_port') or 587)
        if not 0 < smtp_port < 65536:
            raise ValueError(smtp_port)
    except (TypeError, ValueError):
        errors['smtp_port'] = 'SMTP port must be a number between 1 and 65535'
    if not password and not (config and config.email_password_encrypted):
        errors['email_password'] = 'Password is required'
    if errors:
        return jsonify({'success': False, 'errors': errors}), 400

    try:
        if not config:
            config = SMTPSettings()
            db.session.add(config)

        config.smtp_server = smtp_server
        config.smtp_port = smtp_port
        config.email_address = email_address
        config.sender_name = str(data.get('sender_name') or '').strip() or None
        config.use_tls = _flag(data, 'use_tls', default=True if config.use_tls is None else config.use_tls)
        config.is_enabled = _flag(data, 'is_enabled', default=bool(config.is_enabled))

        # Update password if provided
        if password:
            config.set_password(password)

        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to save email settings: {e}", exc_info=True)
        return jsonify({'success': False, 'message': 'Could not save the email settings'}), 500

    logger.info(f"Email settings updated by {current_user.username}")
    return jsonify({'success': True, 'message': 'Email settings updated successfully', 'config': config.to_dict()})


@admin_bp.route('/test-email', methods=['POST'])
@login_required
@admin_required
def test_email():
    """Send the static test email (to ``to`` or to the sender address)"""
    config = SMTPSettings.get_active_config()
    to = str(form_data().get('to') or '').strip() or (config.email_address if config else '')
    if not to:
        return jsonify({'success': False, 'message': 'Please configure SMTP settings first'}), 400

    success, message = EmailService.send_test_email(to)
    return jsonify({'success': success, 'message': message}), (200 if success else 400)


@admin_bp.route('/email-logs')
@login_required
@admin_required
def email_logs():
    """View email sending logs"""
    page, per_page = get_page_args()
    query = EmailLog.query.order_by(EmailLog.attempted_at.desc(), EmailLog.id.desc())
    logs = paginate_query(query, page, per_page)
    return jsonify({'logs': [log.to_dict() for log in logs.items], 'pagination': page_meta(logs)})
