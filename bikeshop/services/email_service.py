"""
Email Service for customer reminders and test messages
"""
from __future__ import annotations
from datetime import datetime, date
from typing import Optional, Tuple
import smtplib
import socket
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
import logging

from flask import current_app
from markupsafe import escape

from bikeshop.extensions import db
from bikeshop.models.email_config import SMTPSettings, EmailLog
from bikeshop.services.dates import format_date

logger = logging.getLogger(__name__)

BIRTHDAY_TEMPLATE = 'birthday'
INSPECTION_TEMPLATE = 'inspection'
TEMPLATES = (BIRTHDAY_TEMPLATE, INSPECTION_TEMPLATE)

BASE_STYLE = """
    body { font-family: Arial, sans-serif; line-height: 1.6; color: #333333; margin: 0; padding: 0; }
    .container { max-width: 600px; margin: 0 auto; padding: 20px; }
    .header { background-color: #FF7E00; padding: 20px; text-align: center; color: white; border-radius: 5px 5px 0 0; }
    .content { background-color: #ffffff; padding: 20px; border-left: 1px solid #eeeeee; border-right: 1px solid #eeeeee; }
    .footer { background-color: #f5f5f5; padding: 15px; text-align: center; font-size: 12px; color: #666666; border-radius: 0 0 5px 5px; }
    .coupon { background-color: #f8f8f8; border: 2px dashed #FF7E00; padding: 15px; margin: 20px 0; text-align: center; }
    .coupon-code { font-size: 24px; font-weight: bold; color: #FF7E00; letter-spacing: 2px; }
    .details { background-color: #f8f8f8; padding: 15px; margin: 20px 0; border-left: 4px solid #FF7E00; }
"""


def _wrap_html(title: str, header: str, body: str, shop_name: str) -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
  <style>{BASE_STYLE}</style>
</head>
<body>
  <div class="container">
    <div class="header"><h1>{header}</h1></div>
    <div class="content">
{body}
    </div>
    <div class="footer">
      <p>&copy; {datetime.now().year} {shop_name}. All rights reserved.</p>
      <p>You are receiving this email because you are a customer of {shop_name}.</p>
    </div>
  </div>
</body>
</html>
"""


class EmailService:
    """Builds and sends customer emails via SMTP"""

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    @staticmethod
    def generate_birthday_email(data: dict) -> Tuple[str, str, str]:
        """
        Birthday greeting with a discount coupon.

        Args:
            data: customer_name, birthday_date, coupon_code (optional)

        Returns:
            (subject, html, text)
        """
        shop_name = current_app.config.get('SHOP_NAME', 'Ambikes')
        name = data.get('customer_name') or ''
        coupon = data.get('coupon_code') or current_app.config.get('BIRTHDAY_COUPON_CODE', 'ANIVERSARIO10')

        subject = f"Happy Birthday, {name}! A special gift from {shop_name}"
        body = f"""
      <p>Hello {escape(name)},</p>
      <p>Everyone at {escape(shop_name)} wishes you a <strong>happy birthday</strong>!</p>
      <p>To celebrate your day we prepared a gift for you:</p>
      <div class="coupon">
        <p>Get <strong>10% off</strong> any service in our workshop.</p>
        <p>Use the code:</p>
        <p class="coupon-code">{escape(coupon)}</p>
        <p><small>Valid for 30 days from {escape(data.get('birthday_date') or '')}.</small></p>
      </div>
      <p>Thank you for trusting {escape(shop_name)} with your bike.</p>
"""
        html = _wrap_html("Happy Birthday!", f"Happy Birthday, {escape(name)}!", body, escape(shop_name))
        text = (
            f"Hello {name},\n\n"
            f"Everyone at {shop_name} wishes you a happy birthday!\n\n"
            f"Get 10% off any service in our workshop with the code {coupon}.\n"
            f"Valid for 30 days from {data.get('birthday_date') or ''}.\n\n"
            f"Thank you for trusting {shop_name} with your bike."
        )
        return subject, html, text

    @staticmethod
    def generate_inspection_email(data: dict) -> Tuple[str, str, str]:
        """
        Inspection reminder.

        Args:
            data: customer_name, bike_model, inspection_date, inspection_time,
                  shop_address, contact_phone

        Returns:
            (subject, html, text)
        """
        shop_name = current_app.config.get('SHOP_NAME', 'Ambikes')
        name = data.get('customer_name') or ''
        bike = data.get('bike_model') or ''
        when_date = data.get('inspection_date') or ''
        when_time = data.get('inspection_time') or ''
        address = data.get('shop_address') or ''
        phone = data.get('contact_phone') or ''

        subject = f"Reminder: inspection of your {bike} at {shop_name}"
        body = f"""
      <p>Hello {escape(name)},</p>
      <p>This is a reminder that your bike is due for its safety inspection.</p>
      <div class="details">
        <p><strong>Bike:</strong> {escape(bike)}</p>
        <p><strong>Date:</strong> {escape(when_date)}</p>
        <p><strong>Time:</strong> {escape(when_time)}</p>
        <p><strong>Address:</strong> {escape(address)}</p>
      </div>
      <p>If you need to reschedule, please call us on {escape(phone)}.</p>
      <p>Regular inspections keep your bike safe and extend its life.</p>
"""
        html = _wrap_html("Inspection reminder", "Inspection reminder", body, escape(shop_name))
        text = (
            f"Hello {name},\n\n"
            f"This is a reminder that your bike is due for its safety inspection.\n\n"
            f"Bike: {bike}\nDate: {when_date}\nTime: {when_time}\nAddress: {address}\n\n"
            f"If you need to reschedule, please call us on {phone}."
        )
        return subject, html, text

    @staticmethod
    def generate_email_content(template: str, data: dict) -> Tuple[str, str, str]:
        """Dispatch to the named template generator"""
        if template == BIRTHDAY_TEMPLATE:
            return EmailService.generate_birthday_email(data)
        if template == INSPECTION_TEMPLATE:
            return EmailService.generate_inspection_email(data)
        raise ValueError(f"Unsupported template type '{template}'")

    @staticmethod
    def generate_test_email() -> Tuple[str, str, str]:
        """Static message used to check the SMTP configuration"""
        shop_name = current_app.config.get('SHOP_NAME', 'Ambikes')
        sent_at = datetime.now().strftime('%Y-%m-%d %H:%M')
        subject = f"Test email - {shop_name} notification system"
        body = f"""
      <p>This is a test email sent from the {escape(shop_name)} management system.</p>
      <p>If you are reading it, customer notifications are configured correctly.</p>
      <p><small>Sent on {sent_at}.</small></p>
"""
        html = _wrap_html("Test email", "Notification system test", body, escape(shop_name))
        text = (
            f"This is a test email sent from the {shop_name} management system.\n"
            f"If you are reading it, customer notifications are configured correctly.\n"
            f"Sent on {sent_at}."
        )
        return subject, html, text

    @staticmethod
    def birthday_template_data(customer, today: Optional[date] = None) -> dict:
        today = today or date.today()
        return {
            'customer_name': customer.name,
            'birthday_date': format_date(today, '%d/%m/%Y'),
            'coupon_code': current_app.config.get('BIRTHDAY_COUPON_CODE'),
        }

    @staticmethod
    def inspection_template_data(inspection) -> dict:
        return {
            'customer_name': inspection.customer.name if inspection.customer else '',
            'bike_model': inspection.bike.model if inspection.bike else '',
            'inspection_date': format_date(inspection.next_inspection_date, '%d/%m/%Y'),
            'inspection_time': current_app.config.get('INSPECTION_DEFAULT_TIME', ''),
            'shop_address': current_app.config.get('SHOP_ADDRESS', ''),
            'contact_phone': current_app.config.get('SHOP_PHONE', ''),
        }

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    @staticmethod
    def send_email(
        to: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
        template: Optional[str] = None,
        customer_id: Optional[int] = None,
        smtp_config: Optional[SMTPSettings] = None,
    ) -> Tuple[bool, str]:
        """
        Send one email and record the attempt in the email log.

        Returns:
            (success: bool, message: str)
        """
        if not to or not subject or not html_content:
            return False, "Missing required fields: to, subject, or htmlContent"

        if not SMTPSettings.validate_address(to):
            return False, f"Invalid recipient address '{to}'"

        if smtp_config is None:
            smtp_config = SMTPSettings.get_active_config()
        if not smtp_config or not smtp_config.smtp_server:
            return False, "Please configure SMTP settings first"

        log = EmailLog(
            recipient_email=to,
            subject=subject[:255],
            template=template,
            customer_id=customer_id,
            status='pending',
        )
        db.session.add(log)
        db.session.commit()

        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = smtp_config.from_header
            msg['To'] = to

            # last part is the preferred one
            if text_content:
                msg.attach(MIMEText(text_content, 'plain', 'utf-8'))
            msg.attach(MIMEText(html_content, 'html', 'utf-8'))

            with smtplib.SMTP(smtp_config.smtp_server, smtp_config.smtp_port, timeout=30) as server:
                if smtp_config.use_tls:
                    server.starttls()

                password = smtp_config.get_password()
                if password:
                    server.login(smtp_config.email_address, password)
                server.send_message(msg, from_addr=smtp_config.email_address, to_addrs=[to])

            log.mark_sent()
            logger.info(f"Email sent successfully to {to} ({template or 'custom'})")
            return True, "Email sent successfully"

        except (smtplib.SMTPException, OSError) as e:
            # give a clearer hint on DNS failures
            if isinstance(e, socket.gaierror):
                error_msg = (
                    f"Failed to send email: could not resolve SMTP host '{smtp_config.smtp_server}'. "
                    "Please verify the server address and network connectivity."
                )
            else:
                error_msg = f"Failed to send email: {str(e)}"
            logger.error(error_msg, exc_info=True)
            log.mark_failed(error_msg)
            return False, error_msg

    @staticmethod
    def send_template(to: str, template: str, template_data: dict,
                      customer_id: Optional[int] = None) -> Tuple[bool, str]:
        """Render one of the customer templates and send it"""
        try:
            subject, html, text = EmailService.generate_email_content(template, template_data)
        except ValueError as e:
            return False, str(e)
        return EmailService.send_email(to, subject, html, text, template=template, customer_id=customer_id)

    @staticmethod
    def send_test_email(to: str) -> Tuple[bool, str]:
        """Send the static test email and add an ``email`` notification on success"""
        from bikeshop.services.notification_service import NotificationService

        subject, html, text = EmailService.generate_test_email()
        success, message = EmailService.send_email(to, subject, html, text, template='test')
        if success:
            NotificationService.create(
                title="Test email sent",
                message=f"A test email was sent to {to}.",
                type="email",
            )
        return success, message
