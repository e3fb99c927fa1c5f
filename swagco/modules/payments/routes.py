"""
Payments Routes
===============

create-intent and config are called by the storefront checkout; webhook is
called by Stripe and verified with STRIPE_WEBHOOK_SECRET.
"""

import logging
from flask import request, jsonify

import stripe

from swagco.core import LoggingService, get_config_value
from swagco.modules.campaigns.models import get_campaign, update_campaign, mark_campaign_order_paid
from swagco.modules.email.email_service import email_service
from swagco.modules.orders.models import get_order, get_order_by_payment_intent, update_order, log_activity
from swagco.modules.pending_orders.fulfillment import create_order_from_pending
from swagco.modules.pending_orders.models import get_pending_order, set_pending_payment_intent, is_pending_expired
from swagco.modules.pricing.validation import is_number
from . import payments_bp
from .stripe_service import (
    PaymentsNotConfigured, create_payment_intent, retrieve_payment_intent,
    construct_webhook_event, to_cents
)

logger = logging.getLogger(__name__)

PAYMENT_TYPES = ('deposit', 'balance')


def _db_log(level, message, details=None):
    """Log to the persistent DB logger"""
    try:
        from swagco.core import db_log
        db_log(level, 'payments', message, details)
    except Exception:
        pass


def _send_safely(send, *args):
    try:
        send(*args)
    except Exception as e:
        logger.error(f"Email send failed ({send.__name__}): {e}")


@payments_bp.route('/config', methods=['GET'])
def payments_config():
    return jsonify({'publishableKey': get_config_value('STRIPE_PUBLISHABLE_KEY')})


def _create_pending_order_intent(data, pending_order_id):
    """Deposit intent for a pending order; the amount comes from the stored quote"""
    pending = get_pending_order(pending_order_id)
    if not pending or is_pending_expired(pending):
        return jsonify({'error': 'Pending order not found'}), 404

    try:
        intent = create_payment_intent(
            to_cents(pending['deposit_amount']),
            {'pending_order_id': pending_order_id, 'payment_type': 'deposit'},
            receipt_email=data.get('customerEmail') or pending.get('email'),
            description=f"Pending order {pending_order_id} - deposit",
        )
    except PaymentsNotConfigured as e:
        return jsonify({'error': str(e)}), 500
    except stripe.StripeError as e:
        LoggingService.log_error_with_traceback('payments', e, {'pending_order_id': pending_order_id})
        return jsonify({'error': e.user_message or str(e)}), 500

    set_pending_payment_intent(pending_order_id, intent['id'])
    return jsonify({
        'clientSecret': intent['client_secret'],
        'paymentIntentId': intent['id'],
        'amount': pending['deposit_amount'],
    })


@payments_bp.route('/create-intent', methods=['POST'])
def create_intent():
    data = request.get_json(silent=True) or {}
    amount = data.get('amount')
    order_id = data.get('orderId')
    payment_type = data.get('paymentType') or 'deposit'

    if data.get('pendingOrderId') and not order_id:
        return _create_pending_order_intent(data, data['pendingOrderId'])

    if not is_number(amount) or amount <= 0 or not order_id:
        return jsonify({'error': 'Missing required fields: amount, orderId or pendingOrderId'}), 400
    if payment_type not in PAYMENT_TYPES:
        return jsonify({'error': 'paymentType must be deposit or balance'}), 400

    order = get_order(order_id)
    if not order:
        return jsonify({'error': 'Order not found'}), 404

    try:
        intent = create_payment_intent(
            to_cents(amount),
            {'order_id': order_id, 'payment_type': payment_type},
            receipt_email=data.get('customerEmail') or order.get('email'),
            description=f"Order {order_id} - {payment_type}",
        )
    except PaymentsNotConfigured as e:
        return jsonify({'error': str(e)}), 500
    except stripe.StripeError as e:
        LoggingService.log_error_with_traceback('payments', e, {'order_id': order_id})
        return jsonify({'error': e.user_message or str(e)}), 500

    update_order(order_id, {'stripe_payment_intent_id': intent['id']})
    return jsonify({'clientSecret': intent['client_secret'], 'paymentIntentId': intent['id']})


@payments_bp.route('/check-order', methods=['GET'])
def check_order():
    """Resolve the order created for a PaymentIntent (used after redirects)"""
    payment_intent_id = request.args.get('payment_intent_id')
    if not payment_intent_id:
        return jsonify({'error': 'Missing payment_intent_id'}), 400

    try:
        intent = retrieve_payment_intent(payment_intent_id)
    except PaymentsNotConfigured as e:
        return jsonify({'error': str(e)}), 500
    except stripe.StripeError as e:
        return jsonify({'error': e.user_message or str(e)}), 500

    order_id = (intent.get('metadata') or {}).get('order_id')
    if not order_id:
        order = get_order_by_payment_intent(payment_intent_id)
        order_id = order['id'] if order else None

    payload = {'orderId': order_id, 'status': intent.get('status')}
    if not order_id:
        payload['message'] = 'Order not yet created'
    return jsonify(payload)


# ===================
# WEBHOOK
# ===================

def _amount_received(intent):
    return (intent.get('amount_received') or intent.get('amount') or 0) / 100


def _handle_pending_order_payment(intent, pending_order_id):
    order, created = create_order_from_pending(pending_order_id, intent.get('id'), _amount_received(intent))
    if not order:
        logger.error(f"Webhook payment for unknown pending order {pending_order_id}")
    elif created:
        _db_log('info', f"Deposit payment created order {order['id']}", {'pending_order_id': pending_order_id})


def _handle_order_payment(intent, order_id, payment_type):
    order = get_order(order_id)
    if not order:
        logger.error(f"Webhook payment for unknown order {order_id}")
        return

    amount = _amount_received(intent)
    metadata = {'payment_intent_id': intent.get('id'), 'amount': amount}

    if payment_type == 'balance':
        if order['balance_due'] == 0 and order['status'] == 'ready_to_ship':
            return
        order = update_order(order_id, {'balance_due': 0, 'status': 'ready_to_ship'})
        log_activity(order_id, 'payment_received', f'Balance payment of ${amount:.2f} received', 'system', metadata)
        _send_safely(email_service.send_balance_paid, order, amount)
    else:
        if order['deposit_paid']:
            return
        order = update_order(order_id, {'deposit_paid': True})
        log_activity(order_id, 'payment_received', f'Deposit payment of ${amount:.2f} received', 'system', metadata)
        _send_safely(email_service.send_order_confirmation, order)

    _db_log('info', f'{payment_type.title()} payment received for order {order_id}', metadata)


def _handle_campaign_organizer_payment(metadata):
    campaign = get_campaign(metadata.get('campaign_id'))
    if campaign and campaign['status'] == 'active':
        update_campaign(campaign['id'], {'status': 'closed'})
        _db_log('info', f"Campaign closed after organizer payment: {campaign['slug']}")


@payments_bp.route('/webhook', methods=['POST'])
def stripe_webhook():
    if not get_config_value('STRIPE_WEBHOOK_SECRET'):
        logger.error("Stripe webhook secret missing.")
        return jsonify({'error': 'Webhook secret not configured'}), 500

    payload = request.get_data()
    sig_header = request.headers.get('Stripe-Signature')
    try:
        event = construct_webhook_event(payload, sig_header)
    except (ValueError, stripe.SignatureVerificationError):
        logger.warning("Stripe webhook with invalid payload or signature.")
        return jsonify({'error': 'Invalid signature'}), 400

    if event['type'] == 'payment_intent.succeeded':
        intent = event['data']['object']
        metadata = intent.get('metadata') or {}
        try:
            if metadata.get('campaign_order_id'):
                amount = _amount_received(intent)
                mark_campaign_order_paid(metadata['campaign_order_id'], amount, intent.get('id'))
            elif metadata.get('type') == 'campaign_organizer_payment':
                _handle_campaign_organizer_payment(metadata)
            elif metadata.get('pending_order_id') and metadata.get('payment_type', 'deposit') == 'deposit':
                _handle_pending_order_payment(intent, metadata['pending_order_id'])
            elif metadata.get('order_id'):
                _handle_order_payment(intent, metadata['order_id'], metadata.get('payment_type') or 'deposit')
        except Exception as e:
            LoggingService.log_error_with_traceback('payments', e, {'event_id': event.get('id')})
            return jsonify({'error': 'Webhook handler failed'}), 500

    elif event['type'] == 'payment_intent.payment_failed':
        intent = event['data']['object']
        _db_log('warning', f"Payment failed: {intent.get('id')}", intent.get('metadata') or {})

    return jsonify({'received': True})
