"""
Pricing Calculator
==================

Quote arithmetic for screen-printed orders.

A quote is garment cost (base cost marked up by the garment's own tier) plus print
cost (per-shirt rate for the largest colour count, multiplied by the number of
active locations) plus one setup fee per screen. Campaign pricing uses the
minimum-order tier and carries no setup fees.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP

from swagco.modules.garments.models import get_garment
from .models import (
    get_tier, get_tier_for_quantity, tier_covers, get_print_pricing, get_deposit_percentage,
    get_min_order_quantity
)

logger = logging.getLogger(__name__)

# Used when no tier or print_pricing row matches
FALLBACK_GARMENT_MULTIPLIER = 1.5
FALLBACK_COST_PER_COLOR = 0.5
FALLBACK_SETUP_FEE = 25


class PricingError(Exception):
    """Raised when a quote cannot be produced (e.g. unknown garment)"""


def round_money(value):
    """Round half-up to cents"""
    return float(Decimal(str(value)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))


def _enabled_locations(print_config):
    locations = (print_config or {}).get('locations') or {}
    return [loc for loc in locations.values() if isinstance(loc, dict) and loc.get('enabled')]


def calculate_total_screens(print_config):
    """One screen per ink colour per enabled location"""
    return sum(int(loc.get('num_colors') or 0) for loc in _enabled_locations(print_config))


def calculate_active_locations(print_config):
    return len(_enabled_locations(print_config))


def calculate_total_quantity(size_quantities):
    return sum(int(qty or 0) for qty in (size_quantities or {}).values())


def calculate_total_quantity_from_colors(color_size_quantities):
    return sum(
        calculate_total_quantity(sizes)
        for sizes in (color_size_quantities or {}).values()
    )


def calculate_garment_quantity(selection):
    """Quantity for one entry of selected_garments ({colorSizeQuantities: {...}})"""
    return calculate_total_quantity_from_colors((selection or {}).get('colorSizeQuantities'))


def calculate_garment_cost(garment_id, quantity):
    """Garment cost for a quantity.

    The garment's own pricing tier sets the markup when its range covers the
    quantity; otherwise the base cost is marked up by FALLBACK_GARMENT_MULTIPLIER.
    """
    garment = get_garment(garment_id)
    if not garment:
        raise PricingError('Garment not found')

    tier = get_tier(garment['pricing_tier_id']) if garment.get('pricing_tier_id') else None
    if tier and tier_covers(tier, quantity):
        cost_per_shirt = garment['base_cost'] * (1 + tier['garment_markup_percentage'] / 100)
    else:
        cost_per_shirt = garment['base_cost'] * FALLBACK_GARMENT_MULTIPLIER

    return {
        'total_cost': cost_per_shirt * quantity,
        'cost_per_shirt': cost_per_shirt,
    }


def calculate_print_cost(quantity, print_config):
    """Print cost for a quantity, including setup fees"""
    total_screens = calculate_total_screens(print_config)
    if total_screens == 0:
        return {'total_cost': 0, 'cost_per_shirt': 0, 'setup_fees': 0, 'total_screens': 0}

    enabled = _enabled_locations(print_config)
    active_locations = len(enabled)
    max_colors = max(int(loc.get('num_colors') or 0) for loc in enabled)

    tier = get_tier_for_quantity(quantity)
    pricing = get_print_pricing(tier['id'], max_colors) if tier else None

    if not pricing:
        cost_per_shirt = max_colors * FALLBACK_COST_PER_COLOR * active_locations
        setup_fees = total_screens * FALLBACK_SETUP_FEE
    else:
        cost_per_shirt = pricing['cost_per_shirt'] * active_locations
        setup_fees = total_screens * pricing['setup_fee_per_screen']

    return {
        'total_cost': cost_per_shirt * quantity + setup_fees,
        'cost_per_shirt': cost_per_shirt,
        'setup_fees': setup_fees,
        'total_screens': total_screens,
    }


def calculate_quote(garment_id, quantity, print_config):
    """Full quote for a single-garment order"""
    garment = calculate_garment_cost(garment_id, quantity)
    printing = calculate_print_cost(quantity, print_config)

    total = garment['total_cost'] + printing['total_cost']
    deposit_percentage = get_deposit_percentage()
    deposit_amount = round_money(total * deposit_percentage / 100)

    return {
        'garment_cost': garment['total_cost'],
        'garment_cost_per_shirt': garment['cost_per_shirt'],
        'print_cost': printing['total_cost'] - printing['setup_fees'],
        'print_cost_per_shirt': printing['cost_per_shirt'],
        'setup_fees': printing['setup_fees'],
        'total_screens': printing['total_screens'],
        'subtotal': total,
        'total': total,
        'per_shirt_price': total / quantity if quantity else 0,
        'deposit_amount': deposit_amount,
        'balance_due': round_money(total - deposit_amount),
    }


def calculate_multi_garment_breakdown(selected_garments, total_quantity, print_config, garment_names=None):
    """Pricing breakdown for an order spanning several garments.

    Each garment is marked up at the tier for its own quantity; print cost is
    computed once on the total quantity.
    """
    garment_names = garment_names or {}
    breakdown = []
    total_garment_cost = 0
    for garment_id, selection in selected_garments.items():
        garment_qty = calculate_garment_quantity(selection)
        if garment_qty <= 0:
            continue
        cost = calculate_garment_cost(garment_id, garment_qty)
        breakdown.append({
            'garment_id': garment_id,
            'name': garment_names.get(garment_id, 'Unknown'),
            'quantity': garment_qty,
            'cost_per_shirt': cost['cost_per_shirt'],
            'total': cost['total_cost'],
        })
        total_garment_cost += cost['total_cost']

    printing = calculate_print_cost(total_quantity, print_config)
    total = total_garment_cost + printing['total_cost']
    return {
        'garment_cost_per_shirt': total_garment_cost / total_quantity,
        'print_cost_per_shirt': printing['cost_per_shirt'],
        'setup_fees': printing['setup_fees'],
        'total_screens': printing['total_screens'],
        'per_shirt_total': total / total_quantity,
        'garment_breakdown': breakdown,
    }, total


def calculate_campaign_price_per_shirt(garment_id, print_config):
    """Per-shirt campaign price at the minimum-order tier, without setup fees"""
    quantity = get_min_order_quantity()
    garment = calculate_garment_cost(garment_id, quantity)
    printing = calculate_print_cost(quantity, print_config)

    return {
        'price_per_shirt': round_money(garment['cost_per_shirt'] + printing['cost_per_shirt']),
        'garment_cost_per_shirt': round_money(garment['cost_per_shirt']),
        'print_cost_per_shirt': round_money(printing['cost_per_shirt']),
    }


def calculate_campaign_prices_for_garments(garment_ids, print_config):
    """Campaign price per garment id; unknown garments are left out"""
    prices = {}
    for garment_id in garment_ids:
        try:
            prices[garment_id] = calculate_campaign_price_per_shirt(garment_id, print_config)['price_per_shirt']
        except PricingError:
            logger.warning(f"Skipping unknown garment {garment_id} in campaign pricing")
    return prices
