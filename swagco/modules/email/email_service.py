"""
Email Service Module
====================

Configurable email service supporting Resend, Amazon SES, and SMTP (e.g. Gmail).
Provider is selected via EMAIL_PROVIDER config ('resend', 'ses', or 'smtp').
Templates cover the order lifecycle: confirmation, art review outcomes,
balance requests, payment receipts and shipping.
"""

import logging
import re
import sqlite3
import smtplib
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional, Dict, Any

import boto3
import resend
from botocore.exceptions import ClientError

# Rejects consecutive dots, leading/trailing dots in local part
_VALID_EMAIL = re.compile(r'^[a-zA-Z0-9_%+-]+(\.[a-zA-Z0-9_%+-]+)*@[a-zA-Z0-9-]+(\.[a-zA-Z0-9-]+)*\.[a-zA-Z]{2,}$')

logger = logging.getLogger(__name__)


def is_valid_email(address) -> bool:
    return isinstance(address, str) and bool(_VALID_EMAIL.match(address.strip()))


def _money(amount) -> str:
    return f"${(amount or 0):,.2f}"


class EmailService:
    """
    Configurable email service supporting Resend, Amazon SES, and SMTP.

    Configuration (set in Flask app.config):
        EMAIL_PROVIDER: 'resend' (default), 'ses', or 'smtp'
        RESEND_API_KEY: Your Resend API key (required if provider is 'resend')
        AWS_REGION: AWS region for SES
        EMAIL_HOST / EMAIL_PORT / EMAIL_PASSWORD: SMTP settings
        EMAIL_ADDRESS: Sender email address
        EMAIL_BRAND_NAME: Brand name for emails (default: 'My Swag Co')
        EMAIL_WEBSITE_URL: Storefront URL used for order links
        EMAIL_SUPPORT_EMAIL: Support email
        EMAIL_ADMIN_EMAIL: Admin notification email (default: None)
        SHOP_DB: SQLite database for email logs
    """

    def __init__(self, app=None):
        self.provider = 'resend'
        self.api_key = None
        self.ses_client = None
        self.sender_email = None
        self.brand_name = 'My Swag Co'
        self.website_url = 'http://localhost:5000'
        self.support_email = 'support@myswagco.com'
        self.admin_email = None
        self.log_db = None
        self.style = {}

        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        """Initialize email service with Flask app configuration"""
        self.provider = (app.config.get('EMAIL_PROVIDER') or 'resend').lower()
        logger.info(f"Initializing email service (provider: {self.provider})")

        self.sender_email = app.config.get('EMAIL_ADDRESS', 'orders@myswagco.com')
        self.brand_name = app.config.get('EMAIL_BRAND_NAME', 'My Swag Co')
        self.website_url = (app.config.get('EMAIL_WEBSITE_URL') or 'http://localhost:5000').rstrip('/')
        self.support_email = app.config.get('EMAIL_SUPPORT_EMAIL', 'support@myswagco.com')
        self.admin_email = app.config.get('EMAIL_ADMIN_EMAIL')
        self.log_db = app.config.get('SHOP_DB')
        custom_style = app.config.get('EMAIL_STYLE', {})
        self.style = {
            'bg': custom_style.get('bg', '#f4f6f8'),
            'card_bg': custom_style.get('card_bg', '#ffffff'),
            'header_bg': custom_style.get('header_bg', '#0f172a'),
            'header_text': custom_style.get('header_text', '#ffffff'),
            'text': custom_style.get('text', '#1e293b'),
            'text_secondary': custom_style.get('text_secondary', '#64748b'),
            'highlight_bg': custom_style.get('highlight_bg', '#f1f5f9'),
            'border': custom_style.get('border', '#e2e8f0'),
            'btn_bg': custom_style.get('btn_bg', '#0284c7'),
            'btn_text': custom_style.get('btn_text', '#ffffff'),
            'font': custom_style.get('font', 'Arial, sans-serif'),
        }

        if self.provider == 'ses':
            self._init_ses(app)
        elif self.provider == 'smtp':
            self._init_smtp(app)
        else:
            self._init_resend(app)

    def _init_resend(self, app):
        """Initialize Resend provider"""
        self.api_key = app.config.get('RESEND_API_KEY')
        if not self.api_key:
            logger.warning("RESEND_API_KEY not configured - email sending disabled")
            return
        resend.api_key = self.api_key
        logger.info("Resend API client initialized successfully")

    def _init_ses(self, app):
        """Initialize Amazon SES provider"""
        aws_region = app.config.get('AWS_REGION', 'us-east-1')
        try:
            self.ses_client = boto3.client('ses', region_name=aws_region)
            logger.info(f"SES client initialized successfully (region: {aws_region})")
        except Exception as e:
            logger.error(f"Failed to initialize SES client: {e}")

    def _init_smtp(self, app):
        """Initialize SMTP provider (e.g. Gmail)"""
        self.smtp_host = app.config.get('EMAIL_HOST', 'smtp.gmail.com')
        self.smtp_port = int(app.config.get('EMAIL_PORT', 587))
        self.smtp_password = app.config.get('EMAIL_PASSWORD')
        if not self.smtp_password:
            logger.warning("EMAIL_PASSWORD not configured - SMTP email sending disabled")
            return
        logger.info(f"SMTP configured: {self.smtp_host}:{self.smtp_port}")

    @property
    def is_configured(self) -> bool:
        if self.provider == 'ses':
            return self.ses_client is not None
        if self.provider == 'smtp':
            return bool(getattr(self, 'smtp_password', None))
        return bool(self.api_key)

    def _log_email(self, recipient: str, subject: str, email_type: str,
                   status: str, error_message: str = None):
        """Log email attempt to database"""
        if not self.log_db:
            return
        try:
            with sqlite3.connect(self.log_db) as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS email_logs (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        recipient TEXT NOT NULL,
                        subject TEXT NOT NULL,
                        email_type TEXT,
                        status TEXT NOT NULL,
                        error_message TEXT,
                        sent_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)
                cursor.execute("""
                    INSERT INTO email_logs (recipient, subject, email_type, status, error_message)
                    VALUES (?, ?, ?, ?, ?)
                """, (recipient, subject, email_type, status, error_message))
                conn.commit()
        except Exception as e:
            logger.error(f"Failed to log email to database: {e}")

    def send_email(self, to: List[str], subject: str, html_body: str,
                   text_body: Optional[str] = None, email_type: str = 'other') -> bool:
        """
        Send an email to recipients via the configured provider.

        Returns:
            bool: True if at least one email was sent successfully, False otherwise
        """
        valid_recipients = [addr for addr in (to or []) if is_valid_email(addr)]
        if not valid_recipients:
            logger.error("No valid recipients provided")
            return False

        if not self.sender_email:
            logger.error("Sender email not configured")
            return False

        sent_count = 0
        for recipient in valid_recipients:
            logger.info(f"Sending '{subject}' to {recipient}")
            try:
                if self.provider == 'ses':
                    success = self._send_via_ses(recipient, subject, html_body, text_body)
                elif self.provider == 'smtp':
                    success = self._send_via_smtp(recipient, subject, html_body, text_body)
                else:
                    success = self._send_via_resend(recipient, subject, html_body, text_body)

                if success:
                    self._log_email(recipient, subject, email_type, 'sent')
                    sent_count += 1
                else:
                    self._log_email(recipient, subject, email_type, 'failed', 'Provider returned failure')
            except Exception as send_error:
                logger.error(f"Error sending to {recipient}: {send_error}")
                self._log_email(recipient, subject, email_type, 'failed', str(send_error))

        return sent_count > 0

    def _send_via_resend(self, recipient: str, subject: str, html_body: str,
                         text_body: Optional[str] = None) -> bool:
        """Send a single email via Resend API"""
        if not self.api_key:
            logger.error("Resend API key not configured")
            return False

        email_params = {
            "from": self.sender_email,
            "to": recipient,
            "subject": subject,
            "html": html_body
        }
        if text_body:
            email_params["text"] = text_body

        r = resend.Emails.send(email_params)
        if r and r.get('id'):
            logger.debug(f"Email sent successfully to: {recipient}, ID: {r['id']}")
            return True
        logger.error(f"Resend error for {recipient}: {r}")
        return False

    def _send_via_ses(self, recipient: str, subject: str, html_body: str,
                      text_body: Optional[str] = None) -> bool:
        """Send a single email via Amazon SES"""
        if not self.ses_client:
            logger.error("SES client not initialized")
            return False

        body = {'Html': {'Charset': 'UTF-8', 'Data': html_body}}
        if text_body:
            body['Text'] = {'Charset': 'UTF-8', 'Data': text_body}

        try:
            response = self.ses_client.send_email(
                Source=self.sender_email,
                Destination={'ToAddresses': [recipient]},
                Message={
                    'Subject': {'Charset': 'UTF-8', 'Data': subject},
                    'Body': body,
                },
            )
            logger.debug(f"SES MessageId: {response.get('MessageId', '')}")
            return True
        except ClientError as e:
            logger.error(f"SES error for {recipient}: {e.response['Error']['Message']}")
            return False

    def _send_via_smtp(self, recipient: str, subject: str, html_body: str,
                       text_body: Optional[str] = None) -> bool:
        """Send a single email via SMTP (e.g. Gmail)"""
        if not getattr(self, 'smtp_password', None):
            logger.error("SMTP password not configured")
            return False

        msg = MIMEMultipart('alternative')
        msg['From'] = self.sender_email
        msg['To'] = recipient
        msg['Subject'] = subject
        if text_body:
            msg.attach(MIMEText(text_body, 'plain', 'utf-8'))
        msg.attach(MIMEText(html_body, 'html', 'utf-8'))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                server.starttls()
                server.login(self.sender_email, self.smtp_password)
                server.send_message(msg)
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP error for {recipient}: {e}")
            return False

    # ==================== Layout ====================

    def order_url(self, order_id: str) -> str:
        return f"{self.website_url}/orders/{order_id}"

    def _layout(self, title: str, heading: str, body_html: str,
                button_text: Optional[str] = None, button_url: Optional[str] = None) -> str:
        s = self.style
        button = ''
        if button_text and button_url:
            button = f"""
            <p style="text-align: center; margin-top: 32px;">
                <a href="{button_url}" style="background-color: {s['btn_bg']}; color: {s['btn_text']}; padding: 12px 24px; text-decoration: none; border-radius: 6px; display: inline-block;">{button_text}</a>
            </p>"""

        return f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
</head>
<body style="font-family: {s['font']}; line-height: 1.6; color: {s['text']}; background: {s['bg']}; max-width: 600px; margin: 0 auto; padding: 24px;">
    <div style="background: {s['card_bg']}; border: 1px solid {s['border']};">
        <div style="background: {s['header_bg']}; color: {s['header_text']}; padding: 28px; text-align: center;">
            <h1 style="font-size: 22px; margin: 0;">{heading}</h1>
            <p style="font-size: 14px; margin: 4px 0 0 0; opacity: 0.8;">{self.brand_name}</p>
        </div>
        <div style="padding: 32px;">
            {body_html}
            {button}
            <p style="margin-top: 32px;">Best regards,<br>The {self.brand_name} Team</p>
        </div>
        <div style="padding: 20px; text-align: center; font-size: 13px; color: {s['text_secondary']}; border-top: 1px solid {s['border']};">
            <p style="margin: 4px 0;">{self.brand_name} . {datetime.now().year}</p>
            <p style="margin: 4px 0;"><a href="{self.website_url}">Website</a> | <a href="mailto:{self.support_email}">Support</a></p>
        </div>
    </div>
</body>
</html>
        """

    def _detail_rows(self, rows: List[tuple]) -> str:
        s = self.style
        cells = ''.join(
            f'<tr><td style="color: {s["text_secondary"]}; padding: 6px 0;">{label}</td>'
            f'<td style="padding: 6px 0; text-align: right;"><strong>{value}</strong></td></tr>'
            for label, value in rows
        )
        return (f'<div style="background: {s["highlight_bg"]}; padding: 20px; margin: 20px 0;">'
                f'<table width="100%" cellpadding="0" cellspacing="0" border="0">{cells}</table></div>')

    # ==================== Customer emails ====================

    def send_order_confirmation(self, order: Dict[str, Any]) -> bool:
        """Order received: totals, deposit and balance"""
        subject = f"Order Confirmation - {self.brand_name}"
        deposit = order.get('deposit_amount', 0)
        body = f"""
            <h2>Thanks for your order, {order.get('customer_name', '')}!</h2>
            <p>Your custom screen printing order has been received.</p>
            {self._detail_rows([
                ('Order ID', order.get('id')),
                ('Total quantity', order.get('total_quantity')),
                ('Total cost', _money(order.get('total_cost'))),
                ('Deposit', _money(deposit)),
                ('Balance due', _money(order.get('balance_due'))),
            ])}
            <h3>What's next?</h3>
            <p>Our team will review your artwork within 1-2 business days. If everything looks good,
            your order will be approved and move into production.</p>
            <p>Most orders ship in ~14 business days after art approval.</p>
        """
        text = (f"Thanks for your order, {order.get('customer_name', '')}!\n"
                f"Order ID: {order.get('id')}\nTotal: {_money(order.get('total_cost'))}\n"
                f"Deposit: {_money(deposit)}\nBalance due: {_money(order.get('balance_due'))}\n")
        html = self._layout(subject, 'ORDER CONFIRMATION', body, 'View Order', self.order_url(order.get('id')))
        return self.send_email([order.get('email')], subject, html, text, 'order_confirmation')

    def send_art_approved(self, order: Dict[str, Any], estimated_ship_date: str) -> bool:
        subject = 'Artwork Approved - Order Moving to Production'
        body = f"""
            <h2>Great news, {order.get('customer_name', '')}!</h2>
            <p>Your artwork has been approved and we've moved your order into production.</p>
            {self._detail_rows([('Order ID', order.get('id')), ('Estimated ship date', estimated_ship_date)])}
            <p>We'll send you another email when your order ships with tracking information.</p>
        """
        html = self._layout(subject, 'ARTWORK APPROVED', body, 'View Order', self.order_url(order.get('id')))
        return self.send_email([order.get('email')], subject, html, None, 'art_approved')

    def send_art_revision_needed(self, order: Dict[str, Any], revision_notes: str) -> bool:
        subject = 'Artwork Revision Needed'
        body = f"""
            <h2>Hi {order.get('customer_name', '')},</h2>
            <p>We've reviewed your artwork and need to discuss a few things before we can proceed with production.</p>
            {self._detail_rows([('Order ID', order.get('id'))])}
            <h3>Notes</h3>
            <p>{revision_notes}</p>
            <p>Please reply to this email and we'll help you get everything sorted out quickly.</p>
        """
        html = self._layout(subject, 'REVISION NEEDED', body)
        return self.send_email([order.get('email')], subject, html, None, 'art_revision_needed')

    def send_balance_due(self, order: Dict[str, Any], payment_link: Optional[str] = None) -> bool:
        subject = 'Balance Due - Order Ready to Ship'
        link = payment_link or f"{self.order_url(order.get('id'))}/pay"
        body = f"""
            <h2>Hi {order.get('customer_name', '')},</h2>
            <p>Your order is ready to ship! Before we send it out, we need to collect the remaining balance.</p>
            {self._detail_rows([('Order ID', order.get('id')), ('Balance due', _money(order.get('balance_due')))])}
            <p>Once payment is received, we'll ship your order immediately.</p>
        """
        html = self._layout(subject, 'BALANCE DUE', body, 'Pay Balance', link)
        return self.send_email([order.get('email')], subject, html, None, 'balance_due')

    def send_balance_paid(self, order: Dict[str, Any], amount_paid: float) -> bool:
        subject = f"Payment Received - {self.brand_name}"
        body = f"""
            <h2>Thank you, {order.get('customer_name', '')}!</h2>
            <p>We've received your final payment. Your order is now ready to ship.</p>
            {self._detail_rows([('Order ID', order.get('id')), ('Amount paid', _money(amount_paid))])}
        """
        html = self._layout(subject, 'PAYMENT RECEIVED', body, 'View Order', self.order_url(order.get('id')))
        return self.send_email([order.get('email')], subject, html, None, 'balance_paid')

    def send_shipping_notification(self, order: Dict[str, Any], carrier: str,
                                   tracking_number: Optional[str]) -> bool:
        subject = 'Your Order Has Shipped!'
        body = f"""
            <h2>Great news, {order.get('customer_name', '')}!</h2>
            <p>Your custom screen printing order has shipped and is on its way to you.</p>
            {self._detail_rows([
                ('Order ID', order.get('id')),
                ('Carrier', carrier or 'N/A'),
                ('Tracking number', tracking_number or 'Not yet available'),
            ])}
            <p>Thank you for your business!</p>
        """
        html = self._layout(subject, 'ORDER SHIPPED', body)
        return self.send_email([order.get('email')], subject, html, None, 'shipping_confirmation')

    # ==================== Admin emails ====================

    def send_admin_order_notification(self, order: Dict[str, Any]) -> bool:
        """Send new order notification to admin"""
        if not self.admin_email:
            logger.warning("Admin email not configured - skipping admin notification")
            return False

        subject = f"New Order Alert - {self.brand_name}"
        html_body = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2 style="color: #dc3545;">New Order Received!</h2>
            <div style="background: #f8f9fa; padding: 20px; border-radius: 5px; margin: 20px 0;">
                <p><strong>Order ID:</strong> {order.get('id')}</p>
                <p><strong>Quantity:</strong> {order.get('total_quantity')}</p>
                <p><strong>Total:</strong> {_money(order.get('total_cost'))}</p>
                <p><strong>Notes:</strong> {order.get('internal_notes') or '-'}</p>
            </div>
            <div style="background: #e9ecef; padding: 20px; border-radius: 5px; margin: 20px 0;">
                <p><strong>Name:</strong> {order.get('customer_name')}</p>
                <p><strong>Email:</strong> {order.get('email')}</p>
            </div>
            <p style="color: #6c757d; font-size: 12px;">This is an automated notification from {self.brand_name}.</p>
        </div>
        """
        text_body = (f"NEW ORDER ALERT\nOrder ID: {order.get('id')}\n"
                     f"Customer: {order.get('customer_name')} <{order.get('email')}>\n"
                     f"Total: {_money(order.get('total_cost'))}\n")
        return self.send_email([self.admin_email], subject, html_body, text_body, 'admin_notification')


# Global email service instance
email_service = EmailService()
