"""
Campaigns Module
================

Provides:
- Group-order campaigns with a shareable slug page
- Participant orders with per-participant or organizer payment
- Soft delete with optional Stripe refunds, and restore
- Conversion of a finished campaign into a production order
"""

from flask import Blueprint

campaigns_bp = Blueprint('campaigns', __name__, url_prefix='/api/campaigns')

from . import routes

__all__ = ['campaigns_bp']
