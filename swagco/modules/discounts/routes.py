"""
Discount Codes Routes
=====================

POST /validate is public; listing and management require an admin session.
"""

import logging
from flask import request, jsonify

from swagco.core import LoggingService
from swagco.modules.auth.utils import admin_required
from swagco.modules.pricing.validation import is_number
from . import discounts_bp
from .models import (
    DISCOUNT_TYPES, DiscountError, apply_discount_code, normalize_code, parse_timestamp,
    get_discount_codes, get_discount_code, get_discount_code_by_code,
    create_discount_code, update_discount_code, delete_discount_code
)

logger = logging.getLogger(__name__)


def _db_log(level, message, details=None):
    """Log to the persistent DB logger"""
    try:
        from swagco.core import db_log
        db_log(level, 'discounts', message, details)
    except Exception:
        pass


def _validate_terms(discount_type, discount_value):
    if discount_type not in DISCOUNT_TYPES:
        return 'Invalid discount type. Must be "percentage" or "fixed"'
    if not is_number(discount_value) or discount_value <= 0:
        return 'Discount value must be a positive number'
    if discount_type == 'percentage' and discount_value > 100:
        return 'Percentage discount cannot exceed 100%'
    return None


def _validate_expires_at(expires_at):
    """expires_at is optional; when present it must be an ISO 8601 string"""
    if expires_at in (None, ''):
        return None
    if not isinstance(expires_at, str):
        return 'expires_at must be an ISO 8601 timestamp'
    try:
        parse_timestamp(expires_at)
    except ValueError:
        return 'expires_at must be an ISO 8601 timestamp'
    return None


@discounts_bp.route('/validate', methods=['POST'])
def validate_discount_code():
    data = request.get_json(silent=True) or {}
    code = data.get('code')
    subtotal = data.get('subtotal')

    if not code or not isinstance(code, str):
        return jsonify({'error': 'Discount code is required'}), 400
    if not is_number(subtotal) or subtotal <= 0:
        return jsonify({'error': 'Valid subtotal is required'}), 400

    try:
        discount_code, amount = apply_discount_code(code, subtotal)
    except DiscountError as e:
        return jsonify({'valid': False, 'error': str(e)}), 400

    return jsonify({
        'valid': True,
        'discount': {
            'code': discount_code['code'],
            'discount_type': discount_code['discount_type'],
            'discount_value': discount_code['discount_value'],
            'discount_amount': amount,
        },
        'discount_code_id': discount_code['id'],
        'message': f"Discount applied: -${amount:.2f}",
    })


# ===================
# ADMIN
# ===================

@discounts_bp.route('', methods=['GET'])
@admin_required
def list_discount_codes():
    return jsonify({'discount_codes': get_discount_codes()})


@discounts_bp.route('', methods=['POST'])
@admin_required
def add_discount_code():
    data = request.get_json(silent=True) or {}
    code = normalize_code(data.get('code') if isinstance(data.get('code'), str) else '')
    if not code:
        return jsonify({'error': 'Code is required'}), 400

    error = _validate_terms(data.get('discount_type'), data.get('discount_value')) or \
        _validate_expires_at(data.get('expires_at'))
    if error:
        return jsonify({'error': error}), 400

    if get_discount_code_by_code(code):
        return jsonify({'error': 'A discount code with this code already exists'}), 400

    try:
        discount_code = create_discount_code(
            code,
            data['discount_type'],
            data['discount_value'],
            description=data.get('description'),
            active=data.get('active') is not False,
            expires_at=data.get('expires_at') or None,
        )
    except Exception as e:
        LoggingService.log_error_with_traceback('discounts', e)
        return jsonify({'error': 'Failed to create discount code'}), 500

    _db_log('info', f'Discount code created: {code}')
    return jsonify({'discount_code': discount_code}), 201


@discounts_bp.route('/<discount_id>', methods=['PATCH'])
@admin_required
def edit_discount_code(discount_id):
    existing = get_discount_code(discount_id)
    if not existing:
        return jsonify({'error': 'Discount code not found'}), 404

    data = request.get_json(silent=True) or {}
    if not data:
        return jsonify({'error': 'No fields to update'}), 400

    if 'discount_type' in data or 'discount_value' in data:
        error = _validate_terms(
            data.get('discount_type', existing['discount_type']),
            data.get('discount_value', existing['discount_value'])
        )
        if error:
            return jsonify({'error': error}), 400

    if 'expires_at' in data:
        error = _validate_expires_at(data['expires_at'])
        if error:
            return jsonify({'error': error}), 400

    if 'code' in data:
        code = normalize_code(data['code'] if isinstance(data['code'], str) else '')
        if not code:
            return jsonify({'error': 'Code is required'}), 400
        duplicate = get_discount_code_by_code(code)
        if duplicate and duplicate['id'] != discount_id:
            return jsonify({'error': 'A discount code with this code already exists'}), 400

    return jsonify({'discount_code': update_discount_code(discount_id, data)})


@discounts_bp.route('/<discount_id>', methods=['DELETE'])
@admin_required
def remove_discount_code(discount_id):
    if not delete_discount_code(discount_id):
        return jsonify({'error': 'Discount code not found'}), 404
    _db_log('info', f'Discount code deleted: {discount_id}')
    return jsonify({'success': True})
