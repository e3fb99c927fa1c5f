"""
Garments Routes
===============

Public catalog endpoints plus admin create/update/delete.
"""

import logging
from flask import request, jsonify

from swagco.core import LoggingService
from swagco.modules.auth.utils import admin_required, is_admin
from swagco.modules.pricing.calculator import round_money
from swagco.modules.pricing.models import get_all_tiers
from swagco.modules.pricing.validation import is_number
from . import garments_bp
from .models import get_garment, get_garments, create_garment, update_garment, delete_garment

logger = logging.getLogger(__name__)

DEFAULT_MARKUP_PERCENTAGE = 50

REQUIRED_FIELDS = (
    'name', 'brand', 'description', 'category', 'base_cost',
    'available_colors', 'size_range', 'pricing_tier_id',
)


def _with_customer_price(garment, tiers_by_id):
    """Attach markup_percentage and customer_price from the garment's own tier"""
    tier = tiers_by_id.get(garment.get('pricing_tier_id'))
    markup = tier['garment_markup_percentage'] if tier else DEFAULT_MARKUP_PERCENTAGE
    garment['markup_percentage'] = markup
    garment['customer_price'] = round_money(garment['base_cost'] * (1 + markup / 100))
    return garment


def _tiers_by_id():
    return {tier['id']: tier for tier in get_all_tiers()}


def _validate_fields(data):
    """Validate whichever garment fields are present"""
    errors = []
    if 'base_cost' in data and (not is_number(data['base_cost']) or data['base_cost'] <= 0):
        errors.append('base_cost must be a positive number')
    for field in ('available_colors', 'size_range'):
        if field in data and (not isinstance(data[field], list) or not data[field]):
            errors.append(f'{field} must be a non-empty list')
    for field in ('color_images', 'color_back_images'):
        if field in data and data[field] is not None and not isinstance(data[field], dict):
            errors.append(f'{field} must be an object')
    return errors


@garments_bp.route('', methods=['GET'])
def list_garments():
    """Active garments by name; ?admin=true with an admin session includes inactive ones"""
    include_inactive = request.args.get('admin') == 'true' and is_admin()
    tiers = _tiers_by_id()
    garments = [_with_customer_price(g, tiers) for g in get_garments(include_inactive)]
    return jsonify({'garments': garments})


@garments_bp.route('/<garment_id>', methods=['GET'])
def garment_detail(garment_id):
    garment = get_garment(garment_id)
    if not garment:
        return jsonify({'error': 'Garment not found'}), 404
    return jsonify({'garment': _with_customer_price(garment, _tiers_by_id())})


@garments_bp.route('', methods=['POST'])
@admin_required
def add_garment():
    data = request.get_json(silent=True) or {}
    missing = [f for f in REQUIRED_FIELDS if data.get(f) in (None, '')]
    if missing:
        return jsonify({'error': f"Missing required fields: {', '.join(missing)}"}), 400

    errors = _validate_fields(data)
    if errors:
        return jsonify({'error': 'Invalid garment', 'details': errors}), 400

    try:
        garment = create_garment(data)
    except Exception as e:
        LoggingService.log_error_with_traceback('garments', e)
        return jsonify({'error': 'Failed to create garment'}), 500
    return jsonify({'garment': garment}), 201


@garments_bp.route('/<garment_id>', methods=['PATCH'])
@admin_required
def edit_garment(garment_id):
    data = request.get_json(silent=True) or {}
    if not data:
        return jsonify({'error': 'No fields to update'}), 400

    errors = _validate_fields(data)
    if errors:
        return jsonify({'error': 'Invalid garment', 'details': errors}), 400

    garment = update_garment(garment_id, data)
    if not garment:
        return jsonify({'error': 'Garment not found'}), 404
    return jsonify({'garment': garment})


@garments_bp.route('/<garment_id>', methods=['DELETE'])
@admin_required
def remove_garment(garment_id):
    """Soft delete (active=false); ?permanent=true removes the row"""
    if request.args.get('permanent') == 'true':
        garment = delete_garment(garment_id)
        if not garment:
            return jsonify({'error': 'Garment not found'}), 404
        return jsonify({'message': 'Garment permanently deleted', 'garment': garment})

    garment = update_garment(garment_id, {'active': False})
    if not garment:
        return jsonify({'error': 'Garment not found'}), 404
    return jsonify({'message': 'Garment deactivated', 'garment': garment})
