"""
Orders Module
=============

Provides:
- Order checkout with server-side pricing, discount re-validation and deposit split
- Order lookup with garment summary, artwork files and activity timeline
- Admin status updates, notes and templated customer emails
"""

from flask import Blueprint

orders_bp = Blueprint('orders', __name__, url_prefix='/api/orders')

from . import routes

__all__ = ['orders_bp']
