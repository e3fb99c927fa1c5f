"""
Pending Order Fulfillment
=========================

Turns a pending order into a real order once its deposit has been paid.
Both the Stripe webhook and the confirmation page call
create_order_from_pending; whichever arrives second gets the order the
first one created.
"""

import logging

from swagco.modules.artwork.models import create_artwork_file
from swagco.modules.discounts.models import increment_usage
from swagco.modules.email.email_service import email_service
from swagco.modules.orders.models import create_order, get_order_by_payment_intent, log_activity
from .models import PENDING_COLUMNS, claim_pending_order

logger = logging.getLogger(__name__)

# Pending-only columns that have no orders counterpart
_NOT_ORDER_COLUMNS = ('discount_code', 'artwork_data')


def _db_log(level, message, details=None):
    """Log to the persistent DB logger"""
    try:
        from swagco.core import db_log
        db_log(level, 'orders', message, details)
    except Exception:
        pass


def _attach_artwork(order_id, artwork_data):
    """Artwork uploaded before payment becomes artwork_files rows"""
    for artwork in artwork_data or []:
        if not isinstance(artwork, dict) or not artwork.get('file_url'):
            continue
        create_artwork_file(
            order_id,
            artwork.get('location') or 'front',
            artwork['file_url'],
            artwork.get('file_name') or 'artwork',
            transform=artwork.get('transform'),
        )


def create_order_from_pending(pending_order_id, payment_intent_id=None, amount_paid=None):
    """Create the order for a paid pending order.

    Returns (order, created). order is None when the pending order does not
    exist and no order was created for payment_intent_id either.
    """
    if payment_intent_id:
        existing = get_order_by_payment_intent(payment_intent_id)
        if existing:
            return existing, False

    pending = claim_pending_order(pending_order_id)
    if not pending:
        existing = get_order_by_payment_intent(payment_intent_id) if payment_intent_id else None
        return existing, False

    fields = {c: pending[c] for c in PENDING_COLUMNS if c not in _NOT_ORDER_COLUMNS}
    fields.update({
        'deposit_paid': True,
        'status': 'pending_art_review',
        'stripe_payment_intent_id': payment_intent_id or pending.get('stripe_payment_intent_id'),
    })
    order = create_order(fields)

    amount = pending['deposit_amount'] if amount_paid is None else amount_paid
    log_activity(order['id'], 'status_change', 'Order created after successful payment')
    log_activity(
        order['id'], 'payment_received', f'Deposit payment of ${amount:.2f} received', 'system',
        {'payment_intent_id': fields['stripe_payment_intent_id'], 'amount': amount}
    )
    _attach_artwork(order['id'], pending.get('artwork_data'))

    if pending.get('discount_code') and pending.get('discount_code_id'):
        increment_usage(pending['discount_code_id'])

    logger.info(f"Pending order {pending_order_id} converted to order {order['id']}")
    _db_log('info', f"Order created from pending order: {order['id']}", {
        'pending_order_id': pending_order_id, 'total': order['total_cost']
    })

    try:
        email_service.send_order_confirmation(order)
        email_service.send_admin_order_notification(order)
    except Exception as e:
        logger.error(f"Order emails failed for {order['id']}: {e}")

    return order, True
