"""
Pricing Models
==============

Rate tables used by the quote calculator: app_config, pricing_tiers and
print_pricing. All tables live in SHOP_DB.
"""

import logging

from swagco.core.database import Database, get_shop_db, row_to_dict

logger = logging.getLogger(__name__)

DEFAULT_DEPOSIT_PERCENTAGE = 50
DEFAULT_MIN_ORDER_QUANTITY = 24
DEFAULT_MAX_INK_COLORS = 4


def _db_log(level, message, details=None):
    """Log to the persistent DB logger"""
    try:
        from swagco.core import db_log
        db_log(level, 'pricing', message, details)
    except Exception:
        pass


# ===================
# APP CONFIG
# ===================

def get_app_config():
    """Get the single app_config row (None if missing)"""
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute('SELECT * FROM app_config ORDER BY id LIMIT 1')
        return row_to_dict(cursor.fetchone())


def get_deposit_percentage():
    """Deposit percentage from app_config, 50 when unavailable"""
    try:
        config = get_app_config()
        if config and config.get('deposit_percentage') is not None:
            return config['deposit_percentage']
    except Exception as e:
        logger.error(f"Error fetching deposit percentage: {e}")
    return DEFAULT_DEPOSIT_PERCENTAGE


def get_min_order_quantity():
    try:
        config = get_app_config()
        if config and config.get('min_order_quantity'):
            return config['min_order_quantity']
    except Exception as e:
        logger.error(f"Error fetching min order quantity: {e}")
    return DEFAULT_MIN_ORDER_QUANTITY


def get_max_ink_colors():
    try:
        config = get_app_config()
        if config and config.get('max_ink_colors'):
            return config['max_ink_colors']
    except Exception as e:
        logger.error(f"Error fetching max ink colors: {e}")
    return DEFAULT_MAX_INK_COLORS


def update_app_config(updates):
    """Apply a partial update to app_config. Returns the updated row or None."""
    current = get_app_config()
    if not current:
        return None

    fields = [f'{key} = ?' for key in updates]
    values = list(updates.values())
    fields.append('updated_at = CURRENT_TIMESTAMP')
    values.append(current['id'])

    with Database.connect(get_shop_db()) as conn:
        conn.execute(f"UPDATE app_config SET {', '.join(fields)} WHERE id = ?", values)
        conn.commit()

    logger.info(f"App config updated: {updates}")
    _db_log('info', 'App config updated', updates)
    return get_app_config()


# ===================
# PRICING TIERS
# ===================

def get_all_tiers():
    """All pricing tiers ordered by min_qty"""
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute('SELECT * FROM pricing_tiers ORDER BY min_qty ASC')
        return [row_to_dict(row) for row in cursor.fetchall()]


def get_tier(tier_id):
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute('SELECT * FROM pricing_tiers WHERE id = ?', (tier_id,))
        return row_to_dict(cursor.fetchone())


def tier_covers(tier, quantity):
    return tier['min_qty'] <= quantity and (tier['max_qty'] is None or tier['max_qty'] >= quantity)


def get_tier_for_quantity(quantity):
    """The tier whose [min_qty, max_qty] range contains quantity (max_qty NULL = open ended)"""
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute('''
            SELECT * FROM pricing_tiers
            WHERE min_qty <= ? AND (max_qty IS NULL OR max_qty >= ?)
            ORDER BY min_qty DESC
            LIMIT 1
        ''', (quantity, quantity))
        return row_to_dict(cursor.fetchone())


def find_overlapping_tier(min_qty, max_qty, exclude_id=None):
    """Return the first existing tier whose range overlaps [min_qty, max_qty]"""
    new_max = float('inf') if max_qty is None else max_qty
    for tier in get_all_tiers():
        if exclude_id is not None and tier['id'] == exclude_id:
            continue
        tier_max = float('inf') if tier['max_qty'] is None else tier['max_qty']
        if min_qty <= tier_max and new_max >= tier['min_qty']:
            return tier
    return None


def create_tier(name, min_qty, max_qty, garment_markup_percentage):
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute('''
            INSERT INTO pricing_tiers (name, min_qty, max_qty, garment_markup_percentage)
            VALUES (?, ?, ?, ?)
        ''', (name, min_qty, max_qty, garment_markup_percentage))
        tier_id = cursor.lastrowid
        conn.commit()

    logger.info(f"Created pricing tier {tier_id}: {name}")
    _db_log('info', f'Pricing tier created: {name}', {'id': tier_id})
    return get_tier(tier_id)


def update_tier(tier_id, updates):
    if not updates:
        return get_tier(tier_id)

    fields = [f'{key} = ?' for key in updates]
    values = list(updates.values()) + [tier_id]
    with Database.connect(get_shop_db()) as conn:
        conn.execute(f"UPDATE pricing_tiers SET {', '.join(fields)} WHERE id = ?", values)
        conn.commit()

    _db_log('info', f'Pricing tier {tier_id} updated', updates)
    return get_tier(tier_id)


def delete_tier(tier_id):
    """Delete a tier and its print pricing rows. Returns True if a row was removed."""
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute('DELETE FROM pricing_tiers WHERE id = ?', (tier_id,))
        deleted = cursor.rowcount
        conn.commit()

    if deleted:
        _db_log('info', f'Pricing tier {tier_id} deleted')
    return deleted > 0


# ===================
# PRINT PRICING
# ===================

def get_all_print_pricing():
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute('''
            SELECT pp.*, pt.name AS tier_name
            FROM print_pricing pp
            JOIN pricing_tiers pt ON pt.id = pp.tier_id
            ORDER BY pt.min_qty ASC, pp.num_colors ASC
        ''')
        return [row_to_dict(row) for row in cursor.fetchall()]


def get_print_pricing(tier_id, num_colors):
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute(
            'SELECT * FROM print_pricing WHERE tier_id = ? AND num_colors = ?',
            (tier_id, num_colors)
        )
        return row_to_dict(cursor.fetchone())


def upsert_print_pricing(tier_id, num_colors, cost_per_shirt, setup_fee_per_screen):
    with Database.connect(get_shop_db()) as conn:
        conn.execute('''
            INSERT INTO print_pricing (tier_id, num_colors, cost_per_shirt, setup_fee_per_screen)
            VALUES (?, ?, ?, ?)
            ON CONFLICT (tier_id, num_colors) DO UPDATE SET
                cost_per_shirt = excluded.cost_per_shirt,
                setup_fee_per_screen = excluded.setup_fee_per_screen
        ''', (tier_id, num_colors, cost_per_shirt, setup_fee_per_screen))
        conn.commit()

    return get_print_pricing(tier_id, num_colors)
