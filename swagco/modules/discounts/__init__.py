"""
Discounts Module
================

Provides:
- Public discount code validation against an order subtotal
- Admin management of percentage and fixed-amount codes
"""

from flask import Blueprint

discounts_bp = Blueprint('discounts', __name__, url_prefix='/api/discount-codes')

from . import routes

__all__ = ['discounts_bp']
