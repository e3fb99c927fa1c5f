"""
Pending Orders Routes
=====================

Pay-first checkout: the storefront parks the checkout here, pays the
deposit against /api/payments/create-intent with pendingOrderId, then
calls /api/orders/from-pending (the webhook does the same server-side).
"""

import logging
from flask import request, jsonify

import stripe

from swagco.core import LoggingService
from swagco.modules.auth.utils import current_user_id
from swagco.modules.discounts.models import normalize_code
from swagco.modules.orders.checkout import CheckoutError, price_checkout
from swagco.modules.payments.stripe_service import PaymentsNotConfigured, retrieve_payment_intent
from . import pending_orders_bp
from .fulfillment import create_order_from_pending
from .models import create_pending_order, get_pending_order, delete_pending_order, is_pending_expired

logger = logging.getLogger(__name__)


@pending_orders_bp.route('/pending-orders', methods=['POST'])
def add_pending_order():
    data = request.get_json(silent=True) or {}

    artwork_data = data.get('artwork_data')
    if artwork_data is not None and not isinstance(artwork_data, list):
        return jsonify({'error': 'artwork_data must be a list'}), 400

    try:
        priced = price_checkout(data)
        pending = create_pending_order({
            **priced,
            'customer_id': current_user_id(),
            'discount_code': normalize_code(data['discount_code']) if data.get('discount_code') else None,
            'artwork_data': artwork_data,
        })
    except CheckoutError as e:
        return jsonify(e.to_dict()), 400
    except Exception as e:
        LoggingService.log_error_with_traceback('orders', e)
        return jsonify({'error': 'Failed to create pending order'}), 500

    return jsonify(pending), 201


@pending_orders_bp.route('/pending-orders/<pending_order_id>', methods=['GET'])
def pending_order_detail(pending_order_id):
    pending = get_pending_order(pending_order_id)
    if not pending or is_pending_expired(pending):
        return jsonify({'error': 'Pending order not found'}), 404
    return jsonify(pending)


@pending_orders_bp.route('/pending-orders/<pending_order_id>', methods=['DELETE'])
def remove_pending_order(pending_order_id):
    if not delete_pending_order(pending_order_id):
        return jsonify({'error': 'Pending order not found'}), 404
    return jsonify({'success': True})


@pending_orders_bp.route('/orders/from-pending', methods=['POST'])
def order_from_pending():
    """Create the order for a pending order whose deposit PaymentIntent succeeded"""
    data = request.get_json(silent=True) or {}
    pending_order_id = data.get('pendingOrderId')
    payment_intent_id = data.get('paymentIntentId')
    if not pending_order_id:
        return jsonify({'error': 'Missing pending order ID'}), 400
    if not payment_intent_id:
        return jsonify({'error': 'Payment intent ID required'}), 400

    try:
        intent = retrieve_payment_intent(payment_intent_id)
    except PaymentsNotConfigured as e:
        return jsonify({'error': str(e)}), 500
    except stripe.StripeError as e:
        LoggingService.log_error_with_traceback('orders', e, {'pending_order_id': pending_order_id})
        return jsonify({'error': e.user_message or str(e)}), 500

    if intent.get('status') != 'succeeded':
        return jsonify({'error': 'Payment not completed'}), 400
    if (intent.get('metadata') or {}).get('pending_order_id') != pending_order_id:
        return jsonify({'error': 'Payment does not match pending order'}), 400

    amount = (intent.get('amount_received') or intent.get('amount') or 0) / 100
    try:
        order, created = create_order_from_pending(pending_order_id, intent['id'], amount)
    except Exception as e:
        LoggingService.log_error_with_traceback('orders', e, {'pending_order_id': pending_order_id})
        return jsonify({'error': 'Failed to create order'}), 500

    if not order:
        return jsonify({'error': 'Pending order not found or already processed'}), 404
    return jsonify(order), 201 if created else 200
