"""
Pricing Routes
==============

Quote endpoint, campaign price calculation and rate-table management.
Reads are public; writes require an admin session.
"""

import logging
from flask import request, jsonify

from swagco.core import LoggingService
from swagco.modules.auth.utils import admin_required
from . import pricing_bp
from .calculator import PricingError, calculate_quote, calculate_campaign_prices_for_garments
from .models import (
    get_app_config, update_app_config, get_min_order_quantity, get_max_ink_colors,
    get_all_tiers, get_tier, find_overlapping_tier, create_tier, update_tier, delete_tier,
    get_all_print_pricing, upsert_print_pricing
)
from .validation import is_number, validate_print_config

logger = logging.getLogger(__name__)


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


# ===================
# QUOTES
# ===================

@pricing_bp.route('/quote', methods=['POST'])
def quote():
    """Price a single-garment order"""
    data = request.get_json(silent=True) or {}
    garment_id = data.get('garment_id')
    quantity = data.get('quantity')
    print_config = data.get('print_config')

    min_qty = get_min_order_quantity()
    details = []
    if not garment_id:
        details.append('garment_id is required')
    if not _is_int(quantity) or quantity < min_qty:
        details.append(f'quantity must be at least {min_qty}')
    details.extend(validate_print_config(print_config, get_max_ink_colors()))
    if details:
        return jsonify({'error': 'Invalid quote request', 'details': details}), 400

    try:
        return jsonify(calculate_quote(garment_id, quantity, print_config))
    except PricingError as e:
        return jsonify({'error': str(e)}), 404
    except Exception as e:
        LoggingService.log_error_with_traceback('pricing', e, {'garment_id': garment_id})
        return jsonify({'error': 'Failed to calculate quote'}), 500


@pricing_bp.route('/campaigns/calculate-price', methods=['POST'])
def campaign_calculate_price():
    """Per-shirt campaign price for each garment id"""
    data = request.get_json(silent=True) or {}
    garment_ids = data.get('garment_ids')
    print_config = data.get('print_config')

    if not isinstance(garment_ids, list) or not garment_ids:
        return jsonify({'error': 'garment_ids must be a non-empty list'}), 400
    if not print_config:
        return jsonify({'error': 'print_config is required'}), 400

    try:
        prices = calculate_campaign_prices_for_garments(garment_ids, print_config)
    except Exception as e:
        LoggingService.log_error_with_traceback('pricing', e)
        return jsonify({'error': 'Failed to calculate campaign price'}), 500

    missing = [gid for gid in garment_ids if gid not in prices]
    return jsonify({'prices': prices, 'missing_garments': missing})


# ===================
# PRICING TIERS
# ===================

def _validate_tier_range(min_qty, max_qty, exclude_id=None):
    if not _is_int(min_qty) or min_qty < 1:
        return 'min_qty must be a positive integer'
    if max_qty is not None:
        if not _is_int(max_qty):
            return 'max_qty must be an integer or null'
        if max_qty <= min_qty:
            return 'max_qty must be greater than min_qty'
    overlap = find_overlapping_tier(min_qty, max_qty, exclude_id)
    if overlap:
        return f"Tier range overlaps with existing tier: {overlap['name']}"
    return None


@pricing_bp.route('/pricing-tiers', methods=['GET'])
def list_pricing_tiers():
    return jsonify({'tiers': get_all_tiers()})


@pricing_bp.route('/pricing-tiers', methods=['POST'])
@admin_required
def add_pricing_tier():
    data = request.get_json(silent=True) or {}
    missing = [f for f in ('name', 'min_qty', 'garment_markup_percentage') if data.get(f) in (None, '')]
    if missing:
        return jsonify({'error': f"Missing required fields: {', '.join(missing)}"}), 400

    markup = data['garment_markup_percentage']
    if not is_number(markup) or markup < 0:
        return jsonify({'error': 'garment_markup_percentage must be a non-negative number'}), 400

    error = _validate_tier_range(data['min_qty'], data.get('max_qty'))
    if error:
        return jsonify({'error': error}), 400

    tier = create_tier(data['name'], data['min_qty'], data.get('max_qty'), markup)
    return jsonify({'tier': tier}), 201


@pricing_bp.route('/pricing-tiers/<int:tier_id>', methods=['PATCH'])
@admin_required
def edit_pricing_tier(tier_id):
    tier = get_tier(tier_id)
    if not tier:
        return jsonify({'error': 'Pricing tier not found'}), 404

    data = request.get_json(silent=True) or {}
    updates = {k: data[k] for k in ('name', 'min_qty', 'max_qty', 'garment_markup_percentage') if k in data}
    if not updates:
        return jsonify({'error': 'No fields to update'}), 400

    if 'garment_markup_percentage' in updates:
        markup = updates['garment_markup_percentage']
        if not is_number(markup) or markup < 0:
            return jsonify({'error': 'garment_markup_percentage must be a non-negative number'}), 400

    if 'min_qty' in updates or 'max_qty' in updates:
        error = _validate_tier_range(
            updates.get('min_qty', tier['min_qty']),
            updates.get('max_qty', tier['max_qty']),
            exclude_id=tier_id
        )
        if error:
            return jsonify({'error': error}), 400

    return jsonify({'tier': update_tier(tier_id, updates)})


@pricing_bp.route('/pricing-tiers/<int:tier_id>', methods=['DELETE'])
@admin_required
def remove_pricing_tier(tier_id):
    if not delete_tier(tier_id):
        return jsonify({'error': 'Pricing tier not found'}), 404
    return jsonify({'success': True})


# ===================
# PRINT PRICING
# ===================

@pricing_bp.route('/print-pricing', methods=['GET'])
def list_print_pricing():
    return jsonify({'print_pricing': get_all_print_pricing()})


@pricing_bp.route('/print-pricing', methods=['PUT'])
@admin_required
def save_print_pricing():
    """Upsert one row or a list of rows under 'rows'"""
    data = request.get_json(silent=True) or {}
    rows = data.get('rows') if isinstance(data.get('rows'), list) else [data]

    errors = []
    for i, row in enumerate(rows):
        if not isinstance(row, dict) or not get_tier(row.get('tier_id')):
            errors.append(f'row {i}: unknown tier_id')
            continue
        num_colors = row.get('num_colors')
        if not _is_int(num_colors) or not 1 <= num_colors <= 4:
            errors.append(f'row {i}: num_colors must be between 1 and 4')
        for field in ('cost_per_shirt', 'setup_fee_per_screen'):
            if not is_number(row.get(field)) or row[field] < 0:
                errors.append(f'row {i}: {field} must be a non-negative number')
    if errors:
        return jsonify({'error': 'Invalid print pricing', 'details': errors}), 400

    saved = [
        upsert_print_pricing(row['tier_id'], row['num_colors'], row['cost_per_shirt'], row['setup_fee_per_screen'])
        for row in rows
    ]
    return jsonify({'print_pricing': saved})


# ===================
# APP CONFIG
# ===================

@pricing_bp.route('/app-config', methods=['GET'])
def app_config():
    return jsonify({'config': get_app_config()})


@pricing_bp.route('/app-config', methods=['PATCH'])
@admin_required
def edit_app_config():
    data = request.get_json(silent=True) or {}
    updates = {}

    if 'deposit_percentage' in data:
        value = data['deposit_percentage']
        if not is_number(value) or not 0 <= value <= 100:
            return jsonify({'error': 'deposit_percentage must be between 0 and 100'}), 400
        updates['deposit_percentage'] = value

    if 'min_order_quantity' in data:
        value = data['min_order_quantity']
        if not _is_int(value) or value < 1:
            return jsonify({'error': 'min_order_quantity must be at least 1'}), 400
        updates['min_order_quantity'] = value

    if 'max_ink_colors' in data:
        value = data['max_ink_colors']
        if not _is_int(value) or not 1 <= value <= 10:
            return jsonify({'error': 'max_ink_colors must be between 1 and 10'}), 400
        updates['max_ink_colors'] = value

    if not updates:
        return jsonify({'error': 'No fields to update'}), 400

    config = update_app_config(updates)
    if not config:
        return jsonify({'error': 'App config not found'}), 404
    return jsonify({'config': config})
