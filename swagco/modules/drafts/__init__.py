"""
Order Drafts Module
===================

Provides:
- Saved, unfinished checkouts for signed-in customers
- Autosave from the configurator (create or update in one call)
"""

from flask import Blueprint

drafts_bp = Blueprint('drafts', __name__, url_prefix='/api/order-drafts')

from . import routes

__all__ = ['drafts_bp']
