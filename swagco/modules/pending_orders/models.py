"""
Pending Orders Models
=====================

Priced checkouts waiting for their deposit payment (SHOP_DB). Rows expire
after PENDING_ORDER_TTL_HOURS and are removed by the cleanup command.
"""

import logging
from datetime import datetime, timedelta, timezone

from swagco.core.database import Database, get_shop_db, row_to_dict, new_id, to_json

logger = logging.getLogger(__name__)

PENDING_ORDER_TTL_HOURS = 24

PENDING_COLUMNS = (
    'customer_id', 'customer_name', 'email', 'phone', 'shipping_address',
    'organization_name', 'need_by_date', 'garment_id', 'garment_color',
    'size_quantities', 'color_size_quantities', 'selected_garments', 'total_quantity',
    'print_config', 'total_cost', 'deposit_amount', 'balance_due', 'discount_code',
    'discount_code_id', 'discount_amount', 'pricing_breakdown', 'artwork_data',
    'stripe_payment_intent_id',
)

JSON_FIELDS = (
    'shipping_address', 'size_quantities', 'color_size_quantities',
    'selected_garments', 'print_config', 'pricing_breakdown', 'artwork_data',
)


def _encode(key, value):
    return to_json(value) if key in JSON_FIELDS else value


def is_pending_expired(pending_order, now=None):
    now = now or datetime.now(timezone.utc)
    return datetime.fromisoformat(pending_order['expires_at']) < now


def create_pending_order(data):
    pending_id = new_id()
    created = datetime.now(timezone.utc)
    expires = created + timedelta(hours=PENDING_ORDER_TTL_HOURS)
    columns = [c for c in PENDING_COLUMNS if c in data]
    values = [_encode(c, data[c]) for c in columns]

    with Database.connect(get_shop_db()) as conn:
        conn.execute(f'''
            INSERT INTO pending_orders (id, {', '.join(columns)}, created_at, expires_at)
            VALUES (?, {', '.join('?' for _ in columns)}, ?, ?)
        ''', [pending_id] + values + [created.isoformat(), expires.isoformat()])
        conn.commit()

    logger.info(f"Created pending order {pending_id} ({data.get('total_quantity')} pcs)")
    return get_pending_order(pending_id)


def get_pending_order(pending_id):
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute('SELECT * FROM pending_orders WHERE id = ?', (pending_id,))
        return row_to_dict(cursor.fetchone())


def set_pending_payment_intent(pending_id, payment_intent_id):
    with Database.connect(get_shop_db()) as conn:
        conn.execute(
            'UPDATE pending_orders SET stripe_payment_intent_id = ? WHERE id = ?',
            (payment_intent_id, pending_id)
        )
        conn.commit()


def delete_pending_order(pending_id):
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.execute('DELETE FROM pending_orders WHERE id = ?', (pending_id,))
        conn.commit()
        return cursor.rowcount > 0


def claim_pending_order(pending_id):
    """Fetch and delete a pending order in one transaction.

    Returns None when the row is gone, including when a concurrent caller
    claimed it first; only one caller ever gets the row.
    """
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute('SELECT * FROM pending_orders WHERE id = ?', (pending_id,))
        pending = row_to_dict(cursor.fetchone())
        if not pending:
            return None
        cursor.execute('DELETE FROM pending_orders WHERE id = ?', (pending_id,))
        if cursor.rowcount == 0:
            conn.rollback()
            return None
        conn.commit()
    return pending


def delete_expired_pending_orders(now=None):
    """Remove pending orders past expires_at. Returns the number deleted."""
    now = now or datetime.now(timezone.utc)
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.execute('DELETE FROM pending_orders WHERE expires_at < ?', (now.isoformat(),))
        conn.commit()
        deleted = cursor.rowcount
    if deleted:
        logger.info(f"Deleted {deleted} expired pending orders")
    return deleted
