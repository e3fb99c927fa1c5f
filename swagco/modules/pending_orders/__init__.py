"""
Pending Orders Module
=====================

Provides:
- Pay-first checkout: checkout data is priced and parked in pending_orders
  until the deposit PaymentIntent succeeds
- Conversion of a paid pending order into a real order, from the Stripe
  webhook or from the confirmation page (/api/orders/from-pending)
"""

from flask import Blueprint

pending_orders_bp = Blueprint('pending_orders', __name__, url_prefix='/api')

from . import routes

__all__ = ['pending_orders_bp']
