"""
Campaigns Models
================

Group-order campaigns and the participant orders placed against them.
Both tables live in SHOP_DB.
"""

import logging
import random
import re
import sqlite3
import string

from swagco.core.database import Database, get_shop_db, row_to_dict, new_id, utc_now, to_json

logger = logging.getLogger(__name__)

CAMPAIGN_STATUSES = ('draft', 'active', 'closed', 'completed', 'deleted')
PAYMENT_STYLES = ('organizer_pays', 'everyone_pays')
CAMPAIGN_ORDER_STATUSES = ('pending', 'paid', 'confirmed', 'cancelled')

CAMPAIGN_COLUMNS = (
    'organizer_id', 'name', 'deadline', 'payment_style', 'status', 'garment_id',
    'selected_colors', 'garment_configs', 'print_config', 'artwork_urls',
    'artwork_transforms', 'price_per_shirt', 'organizer_name', 'organizer_email',
    'final_order_id', 'mockup_image_url', 'mockup_image_urls', 'deleted_at',
)

JSON_FIELDS = (
    'selected_colors', 'garment_configs', 'print_config', 'artwork_urls',
    'artwork_transforms', 'mockup_image_urls',
)

SLUG_ATTEMPTS = 5
_SLUG_ALPHABET = string.ascii_lowercase + string.digits


def _db_log(level, message, details=None):
    """Log to the persistent DB logger"""
    try:
        from swagco.core import db_log
        db_log(level, 'campaigns', message, details)
    except Exception:
        pass


def _encode(key, value):
    return to_json(value) if key in JSON_FIELDS else value


def generate_slug(name):
    """URL slug from the campaign name plus a 6-character random suffix"""
    base = re.sub(r'[^a-z0-9]+', '-', name.lower()).strip('-')[:50]
    suffix = ''.join(random.choice(_SLUG_ALPHABET) for _ in range(6))
    return f'{base}-{suffix}'


# ===================
# CAMPAIGNS
# ===================

def create_campaign(data):
    """Insert a campaign with a fresh slug, retrying on slug collisions"""
    campaign_id = new_id()
    now = utc_now()
    columns = [c for c in CAMPAIGN_COLUMNS if c in data]
    values = [_encode(c, data[c]) for c in columns]

    for attempt in range(SLUG_ATTEMPTS):
        slug = generate_slug(data['name'])
        try:
            with Database.connect(get_shop_db()) as conn:
                conn.execute(f'''
                    INSERT INTO campaigns (id, slug, {', '.join(columns)}, created_at, updated_at)
                    VALUES (?, ?, {', '.join('?' for _ in columns)}, ?, ?)
                ''', [campaign_id, slug] + values + [now, now])
                conn.commit()
            break
        except sqlite3.IntegrityError:
            if get_campaign_by_slug(slug) is None or attempt == SLUG_ATTEMPTS - 1:
                raise
            logger.warning(f"Slug collision on {slug}, retrying")

    logger.info(f"Created campaign {campaign_id} ({slug})")
    _db_log('info', f"Campaign created: {data['name']}", {'id': campaign_id, 'slug': slug})
    return get_campaign(campaign_id)


def get_campaign(campaign_id):
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute('SELECT * FROM campaigns WHERE id = ?', (campaign_id,))
        return row_to_dict(cursor.fetchone())


def get_campaign_by_slug(slug):
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute('SELECT * FROM campaigns WHERE slug = ?', (slug,))
        return row_to_dict(cursor.fetchone())


def get_campaigns(organizer_id=None, status=None):
    """Non-deleted campaigns newest first, optionally by organizer and status"""
    query = "SELECT * FROM campaigns WHERE deleted_at IS NULL AND status != 'deleted'"
    params = []
    if organizer_id:
        query += ' AND organizer_id = ?'
        params.append(organizer_id)
    if status:
        query += ' AND status = ?'
        params.append(status)
    query += ' ORDER BY created_at DESC, rowid DESC'
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute(query, params)
        return [row_to_dict(row) for row in cursor.fetchall()]


def update_campaign(campaign_id, updates):
    fields = []
    values = []
    for key, value in updates.items():
        if key not in CAMPAIGN_COLUMNS:
            continue
        fields.append(f'{key} = ?')
        values.append(_encode(key, value))

    if fields:
        fields.append('updated_at = ?')
        values.extend([utc_now(), campaign_id])
        with Database.connect(get_shop_db()) as conn:
            conn.execute(f"UPDATE campaigns SET {', '.join(fields)} WHERE id = ?", values)
            conn.commit()
    return get_campaign(campaign_id)


def campaign_garment_ids(campaign):
    """Configured garment ids, falling back to the primary garment"""
    configs = campaign.get('garment_configs') or {}
    if configs:
        return list(configs.keys())
    return [campaign['garment_id']] if campaign.get('garment_id') else []


def price_for_garment(campaign, garment_id):
    """Configured price for a garment, or the campaign's price_per_shirt"""
    config = (campaign.get('garment_configs') or {}).get(garment_id) or {}
    return config.get('price') or campaign.get('price_per_shirt') or 0


# ===================
# CAMPAIGN ORDERS
# ===================

def create_campaign_order(campaign_id, participant_name, participant_email, garment_id,
                          size, color, quantity, status):
    order_id = new_id()
    with Database.connect(get_shop_db()) as conn:
        conn.execute('''
            INSERT INTO campaign_orders (id, campaign_id, participant_name, participant_email,
                                         garment_id, size, color, quantity, amount_paid, status, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, 0, ?, ?)
        ''', (order_id, campaign_id, participant_name, participant_email, garment_id,
              size, color, quantity, status, utc_now()))
        conn.commit()
    return get_campaign_order(order_id)


def get_campaign_order(order_id, campaign_id=None):
    query = 'SELECT * FROM campaign_orders WHERE id = ?'
    params = [order_id]
    if campaign_id:
        query += ' AND campaign_id = ?'
        params.append(campaign_id)
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute(query, params)
        return row_to_dict(cursor.fetchone())


def get_campaign_orders(campaign_ids, statuses=None):
    """Orders for one or more campaigns, newest first"""
    if isinstance(campaign_ids, str):
        campaign_ids = [campaign_ids]
    if not campaign_ids:
        return []
    query = f"SELECT * FROM campaign_orders WHERE campaign_id IN ({', '.join('?' for _ in campaign_ids)})"
    params = list(campaign_ids)
    if statuses:
        query += f" AND status IN ({', '.join('?' for _ in statuses)})"
        params.extend(statuses)
    query += ' ORDER BY created_at DESC, rowid DESC'
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute(query, params)
        return [row_to_dict(row) for row in cursor.fetchall()]


def update_campaign_order(order_id, **updates):
    fields = [f'{key} = ?' for key in updates]
    values = list(updates.values()) + [order_id]
    with Database.connect(get_shop_db()) as conn:
        conn.execute(f"UPDATE campaign_orders SET {', '.join(fields)} WHERE id = ?", values)
        conn.commit()
    return get_campaign_order(order_id)


def mark_campaign_order_paid(order_id, amount_paid, payment_intent_id=None):
    """Set an order paid. Returns False when it was already paid."""
    order = get_campaign_order(order_id)
    if not order or order['status'] == 'paid':
        return False
    updates = {'status': 'paid', 'amount_paid': amount_paid}
    if payment_intent_id:
        updates['stripe_payment_intent_id'] = payment_intent_id
    update_campaign_order(order_id, **updates)
    _db_log('info', f'Campaign order paid: {order_id}', {'amount': amount_paid})
    return True


# ===================
# STATS
# ===================

def is_counted(order, payment_style):
    """Paid orders count for everyone_pays; any non-cancelled order otherwise"""
    if payment_style == 'everyone_pays':
        return order['status'] == 'paid'
    return order['status'] != 'cancelled'


def counted_orders(campaign, orders):
    return [o for o in orders if is_counted(o, campaign['payment_style'])]


def breakdown(orders, key):
    """Quantity per value of key (size, color or garment_id)"""
    result = {}
    for order in orders:
        value = order.get(key)
        if value:
            result[value] = result.get(value, 0) + order['quantity']
    return result


def admin_stats(campaign, orders):
    """order_count / total_quantity over counted orders plus revenue and pending count"""
    counted = counted_orders(campaign, orders)
    return {
        'order_count': len(counted),
        'total_quantity': sum(o['quantity'] for o in counted),
        'total_revenue': sum(o['amount_paid'] or 0 for o in orders if o['status'] == 'paid'),
        'pending_count': sum(
            1 for o in orders
            if campaign['payment_style'] == 'everyone_pays' and o['status'] == 'pending'
        ),
    }
