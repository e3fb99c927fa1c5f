"""
Orders Models
=============

Custom print orders and their activity timeline (SHOP_DB).
"""

import logging

from swagco.core.database import Database, get_shop_db, row_to_dict, new_id, utc_now, to_json

logger = logging.getLogger(__name__)

ORDER_STATUSES = (
    'pending_art_review', 'art_approved', 'art_revision_needed', 'in_production',
    'balance_due', 'ready_to_ship', 'completed', 'cancelled',
)

ACTIVITY_TYPES = ('status_change', 'note_added', 'price_adjustment', 'email_sent', 'payment_received')

ORDER_COLUMNS = (
    'customer_id', 'customer_name', 'email', 'phone', 'shipping_address',
    'organization_name', 'need_by_date', 'garment_id', 'garment_color',
    'size_quantities', 'color_size_quantities', 'selected_garments', 'total_quantity',
    'print_config', 'total_cost', 'deposit_amount', 'deposit_paid', 'balance_due',
    'discount_code_id', 'discount_amount', 'pricing_breakdown', 'status',
    'internal_notes', 'stripe_payment_intent_id', 'carrier', 'tracking_number',
)

JSON_FIELDS = (
    'shipping_address', 'size_quantities', 'color_size_quantities',
    'selected_garments', 'print_config', 'pricing_breakdown',
)


def _encode(key, value):
    return to_json(value) if key in JSON_FIELDS else value


def create_order(data):
    """Insert an order from a dict of ORDER_COLUMNS. Returns the new row."""
    order_id = new_id()
    now = utc_now()
    columns = [c for c in ORDER_COLUMNS if c in data]
    values = [_encode(c, data[c]) for c in columns]

    with Database.connect(get_shop_db()) as conn:
        conn.execute(f'''
            INSERT INTO orders (id, {', '.join(columns)}, created_at, updated_at)
            VALUES (?, {', '.join('?' for _ in columns)}, ?, ?)
        ''', [order_id] + values + [now, now])
        conn.commit()

    logger.info(f"Created order {order_id} ({data.get('total_quantity')} pcs)")
    return get_order(order_id)


def get_order(order_id):
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute('SELECT * FROM orders WHERE id = ?', (order_id,))
        return row_to_dict(cursor.fetchone())


def get_orders(status=None):
    """All orders newest first, optionally filtered by status"""
    query = 'SELECT * FROM orders'
    params = []
    if status:
        query += ' WHERE status = ?'
        params.append(status)
    query += ' ORDER BY created_at DESC, rowid DESC'
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute(query, params)
        return [row_to_dict(row) for row in cursor.fetchall()]


def get_customer_orders(customer_id, email=None):
    """Orders linked to the customer, plus orders placed under their email before signing up"""
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute(
            'SELECT * FROM orders WHERE customer_id = ? OR lower(email) = ? ORDER BY created_at DESC, rowid DESC',
            (customer_id, (email or '').lower())
        )
        return [row_to_dict(row) for row in cursor.fetchall()]


def update_order(order_id, updates):
    """Partial update of ORDER_COLUMNS. Returns the updated row (None if missing)."""
    fields = []
    values = []
    for key, value in updates.items():
        if key not in ORDER_COLUMNS:
            continue
        fields.append(f'{key} = ?')
        values.append(_encode(key, value))

    if fields:
        fields.append('updated_at = ?')
        values.extend([utc_now(), order_id])
        with Database.connect(get_shop_db()) as conn:
            conn.execute(f"UPDATE orders SET {', '.join(fields)} WHERE id = ?", values)
            conn.commit()
    return get_order(order_id)


# ===================
# ACTIVITY
# ===================

def log_activity(order_id, activity_type, description, performed_by='system', metadata=None):
    with Database.connect(get_shop_db()) as conn:
        conn.execute('''
            INSERT INTO order_activity (order_id, activity_type, description, performed_by, metadata, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
        ''', (order_id, activity_type, description, performed_by, to_json(metadata), utc_now()))
        conn.commit()


def get_activity(order_id):
    """Activity timeline, newest first"""
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute(
            'SELECT * FROM order_activity WHERE order_id = ? ORDER BY created_at DESC, id DESC',
            (order_id,)
        )
        return [row_to_dict(row) for row in cursor.fetchall()]


def get_order_by_payment_intent(payment_intent_id):
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute('SELECT * FROM orders WHERE stripe_payment_intent_id = ?', (payment_intent_id,))
        return row_to_dict(cursor.fetchone())
