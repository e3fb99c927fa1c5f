"""
Email Module
============

Provides transactional email for the shop via Resend, Amazon SES or SMTP.
Includes templates for order confirmation, art review, balance and shipping emails.
"""

from .email_service import EmailService, email_service, is_valid_email

__all__ = ['EmailService', 'email_service', 'is_valid_email']
