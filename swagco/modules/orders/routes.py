"""
Orders Routes
=============

Checkout (public), customer order history (login) and admin management.
"""

import logging
from datetime import date, timedelta
from flask import request, jsonify, session

from swagco.core import LoggingService
from swagco.modules.auth.database import AccountDatabase
from swagco.modules.auth.utils import admin_required, login_required, current_user_id
from swagco.modules.artwork.models import get_order_artwork
from swagco.modules.discounts.models import increment_usage
from swagco.modules.email.email_service import email_service
from swagco.modules.garments.models import get_garment, get_garments_by_ids
from . import orders_bp
from .checkout import CheckoutError, price_checkout
from .models import (
    ORDER_STATUSES, create_order, get_order, get_orders, get_customer_orders,
    update_order, log_activity, get_activity
)

logger = logging.getLogger(__name__)

ADMIN_UPDATABLE_FIELDS = (
    'status', 'internal_notes', 'customer_name', 'email', 'phone', 'shipping_address',
    'garment_id', 'garment_color', 'size_quantities', 'print_config', 'selected_garments',
    'carrier', 'tracking_number',
)

EMAIL_TYPES = ('order_confirmation', 'art_approved', 'art_revision_needed', 'balance_due', 'shipped')

ESTIMATED_SHIP_BUSINESS_DAYS = 14


def _db_log(level, message, details=None):
    """Log to the persistent DB logger"""
    try:
        from swagco.core import db_log
        db_log(level, 'orders', message, details)
    except Exception:
        pass


def _send_safely(send, *args):
    """Call an email_service sender; failures are logged, never raised"""
    try:
        return bool(send(*args))
    except Exception as e:
        logger.error(f"Email send failed ({send.__name__}): {e}")
        _db_log('error', f'Email send failed: {send.__name__}', {'error': str(e)})
        return False


def add_business_days(start, days):
    current = start
    while days > 0:
        current += timedelta(days=1)
        if current.weekday() < 5:
            days -= 1
    return current


def _garment_summary(garment):
    if not garment:
        return None
    return {'name': garment['name'], 'brand': garment['brand'], 'thumbnail_url': garment.get('thumbnail_url')}


def _update_customer_profile(customer_id, data):
    """Copy checkout details onto the signed-in customer's profile"""
    updates = {}
    if data.get('customer_name'):
        updates['name'] = data['customer_name']
    if data.get('phone'):
        updates['phone'] = data['phone']
    if data.get('organization_name'):
        updates['organization_name'] = data['organization_name']
    if (data.get('shipping_address') or {}).get('line1'):
        updates['default_shipping_address'] = data['shipping_address']
    if not updates:
        return
    try:
        AccountDatabase.update_customer_profile(customer_id, updates)
    except Exception as e:
        logger.error(f"Error updating customer profile {customer_id}: {e}")


# ===================
# CHECKOUT
# ===================

@orders_bp.route('', methods=['POST'])
def place_order():
    data = request.get_json(silent=True) or {}

    try:
        priced = price_checkout(data)
    except CheckoutError as e:
        return jsonify(e.to_dict()), 400
    except Exception as e:
        LoggingService.log_error_with_traceback('orders', e)
        return jsonify({'error': 'Failed to create order'}), 500

    customer_id = current_user_id()
    try:
        order = create_order({
            **priced,
            'customer_id': customer_id,
            'deposit_paid': False,
            'status': 'pending_art_review',
        })
        log_activity(order['id'], 'status_change', 'Order created and awaiting art review')
    except Exception as e:
        LoggingService.log_error_with_traceback('orders', e)
        return jsonify({'error': 'Failed to create order'}), 500

    if data.get('discount_code') and priced['discount_code_id']:
        increment_usage(priced['discount_code_id'])

    if customer_id:
        _update_customer_profile(customer_id, data)

    _db_log('info', f"Order created: {order['id']}", {
        'total': priced['total_cost'], 'quantity': priced['total_quantity']
    })
    _send_safely(email_service.send_order_confirmation, order)
    _send_safely(email_service.send_admin_order_notification, order)

    return jsonify(order), 201


# ===================
# CUSTOMER / ADMIN READS
# ===================

@orders_bp.route('/customer', methods=['GET'])
@login_required
def customer_orders():
    return jsonify({'orders': get_customer_orders(session['user_id'], session.get('email'))})


@orders_bp.route('', methods=['GET'])
@admin_required
def list_orders():
    orders = get_orders(request.args.get('status') or None)
    garments = get_garments_by_ids([o['garment_id'] for o in orders])
    for order in orders:
        order['garment'] = _garment_summary(garments.get(order['garment_id']))
    return jsonify({'orders': orders})


@orders_bp.route('/<order_id>', methods=['GET'])
def order_detail(order_id):
    order = get_order(order_id)
    if not order:
        return jsonify({'error': 'Order not found'}), 404

    order['garment'] = _garment_summary(get_garment(order['garment_id']))
    order['artwork_files'] = get_order_artwork(order_id)
    order['activity'] = get_activity(order_id)
    return jsonify(order)


# ===================
# ADMIN UPDATES
# ===================

@orders_bp.route('/<order_id>', methods=['PATCH'])
@admin_required
def edit_order(order_id):
    if not get_order(order_id):
        return jsonify({'error': 'Order not found'}), 404

    data = request.get_json(silent=True) or {}
    updates = {k: data[k] for k in ADMIN_UPDATABLE_FIELDS if k in data}
    if not updates:
        return jsonify({'error': 'No fields to update'}), 400

    status = updates.get('status')
    if 'status' in updates and status not in ORDER_STATUSES:
        return jsonify({'error': f'Invalid status: {status}'}), 400

    try:
        order = update_order(order_id, updates)
        if status:
            log_activity(order_id, 'status_change', f'Status changed to {status}', 'admin')
    except Exception as e:
        LoggingService.log_error_with_traceback('orders', e, {'order_id': order_id})
        return jsonify({'error': 'Failed to update order'}), 500

    return jsonify(order)


@orders_bp.route('/<order_id>/notes', methods=['POST'])
@admin_required
def add_note(order_id):
    if not get_order(order_id):
        return jsonify({'error': 'Order not found'}), 404

    data = request.get_json(silent=True) or {}
    note = (data.get('note') or '').strip()
    if not note:
        return jsonify({'error': 'Note is required'}), 400

    log_activity(order_id, 'note_added', note, 'admin')
    return jsonify({'success': True, 'activity': get_activity(order_id)}), 201


@orders_bp.route('/<order_id>/send-email', methods=['POST'])
@admin_required
def send_order_email(order_id):
    order = get_order(order_id)
    if not order:
        return jsonify({'error': 'Order not found'}), 404
    if not order.get('email'):
        return jsonify({'error': 'Order has no customer email'}), 400

    data = request.get_json(silent=True) or {}
    email_type = data.get('email_type') or data.get('type')
    if email_type not in EMAIL_TYPES:
        return jsonify({'error': 'Invalid email type'}), 400

    if email_type == 'order_confirmation':
        sent = _send_safely(email_service.send_order_confirmation, order)
    elif email_type == 'art_approved':
        ship_date = add_business_days(date.today(), ESTIMATED_SHIP_BUSINESS_DAYS)
        sent = _send_safely(email_service.send_art_approved, order,
                            f"{ship_date:%B} {ship_date.day}, {ship_date.year}")
    elif email_type == 'art_revision_needed':
        notes = (data.get('revision_notes') or '').strip()
        if not notes:
            return jsonify({'error': 'Revision notes are required for art revision emails'}), 400
        sent = _send_safely(email_service.send_art_revision_needed, order, notes)
    elif email_type == 'balance_due':
        sent = _send_safely(email_service.send_balance_due, order, data.get('payment_link'))
    else:
        carrier = data.get('carrier') or order.get('carrier') or ''
        tracking_number = data.get('tracking_number') or order.get('tracking_number') or ''
        if data.get('carrier') or data.get('tracking_number'):
            update_order(order_id, {'carrier': carrier, 'tracking_number': tracking_number})
        sent = _send_safely(email_service.send_shipping_notification, order, carrier, tracking_number)

    log_activity(
        order_id, 'email_sent',
        f"{email_type.replace('_', ' ')} email sent to {order['email']}",
        'admin',
        {'email_type': email_type, 'recipient': order['email'], 'success': sent}
    )
    return jsonify({'success': True, 'sent': sent, 'message': f'{email_type} email sent'})
