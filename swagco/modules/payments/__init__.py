"""
Payments Module
===============

Stripe PaymentIntents for order deposits and balances, the webhook that
records successful payments, and campaign participant settlements.
"""

from flask import Blueprint

payments_bp = Blueprint('payments', __name__, url_prefix='/api/payments')

from . import routes

__all__ = ['payments_bp']
