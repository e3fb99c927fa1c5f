"""
Pricing Module
==============

Provides:
- Quote calculator (garment markup by quantity tier + print cost + setup fees)
- Campaign per-shirt pricing at the minimum order tier
- Public rate tables and admin management of tiers, print pricing and app config
"""

from flask import Blueprint

pricing_bp = Blueprint('pricing', __name__, url_prefix='/api')

from . import routes
from .calculator import (
    PricingError, calculate_quote, calculate_campaign_price_per_shirt,
    calculate_campaign_prices_for_garments
)

__all__ = ['pricing_bp', 'PricingError', 'calculate_quote',
           'calculate_campaign_price_per_shirt', 'calculate_campaign_prices_for_garments']
