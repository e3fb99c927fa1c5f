"""
Discount Codes Models
=====================

Code lookup, discount arithmetic and admin CRUD for discount_codes (SHOP_DB).
"""

import logging
from datetime import datetime, timezone

from swagco.core.database import Database, get_shop_db, row_to_dict, new_id, utc_now
from swagco.modules.pricing.calculator import round_money

logger = logging.getLogger(__name__)

DISCOUNT_TYPES = ('percentage', 'fixed')

UPDATABLE_FIELDS = ('code', 'description', 'discount_type', 'discount_value', 'active', 'expires_at')


class DiscountError(Exception):
    """Raised when a code cannot be applied"""


def normalize_code(code):
    return (code or '').strip().upper()


def parse_timestamp(value):
    parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_expired(discount_code, now=None):
    expires_at = discount_code.get('expires_at')
    if not expires_at:
        return False
    now = now or datetime.now(timezone.utc)
    try:
        return parse_timestamp(expires_at) < now
    except ValueError:
        logger.warning(f"Unparseable expires_at on discount code {discount_code.get('code')}: {expires_at}")
        return False


def calculate_discount_amount(discount_type, discount_value, subtotal):
    """Percentage codes round to cents; fixed codes never exceed the subtotal"""
    if discount_type == 'percentage':
        return round_money(subtotal * discount_value / 100)
    return min(discount_value, subtotal)


def apply_discount_code(code, subtotal):
    """Look up and evaluate a code against a subtotal.

    Returns (discount_code_row, discount_amount). Raises DiscountError with a
    customer-facing message when the code is unknown, inactive or expired.
    """
    discount_code = get_discount_code_by_code(code)
    if not discount_code:
        raise DiscountError('Invalid discount code')
    if not discount_code['active']:
        raise DiscountError('This discount code is no longer active')
    if is_expired(discount_code):
        raise DiscountError('This discount code has expired')

    amount = calculate_discount_amount(
        discount_code['discount_type'], discount_code['discount_value'], subtotal
    )
    return discount_code, amount


# ===================
# CRUD
# ===================

def get_discount_codes():
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute('SELECT * FROM discount_codes ORDER BY created_at DESC, rowid DESC')
        return [row_to_dict(row) for row in cursor.fetchall()]


def get_discount_code(discount_id):
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute('SELECT * FROM discount_codes WHERE id = ?', (discount_id,))
        return row_to_dict(cursor.fetchone())


def get_discount_code_by_code(code):
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute('SELECT * FROM discount_codes WHERE code = ?', (normalize_code(code),))
        return row_to_dict(cursor.fetchone())


def create_discount_code(code, discount_type, discount_value, description=None, active=True, expires_at=None):
    discount_id = new_id()
    with Database.connect(get_shop_db()) as conn:
        conn.execute('''
            INSERT INTO discount_codes (id, code, description, discount_type, discount_value,
                                        active, expires_at, usage_count, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, 0, ?)
        ''', (discount_id, normalize_code(code), description, discount_type, discount_value,
              bool(active), expires_at, utc_now()))
        conn.commit()
    logger.info(f"Created discount code {normalize_code(code)}")
    return get_discount_code(discount_id)


def update_discount_code(discount_id, updates):
    fields = []
    values = []
    for key, value in updates.items():
        if key not in UPDATABLE_FIELDS:
            continue
        fields.append(f'{key} = ?')
        values.append(normalize_code(value) if key == 'code' else value)

    if fields:
        values.append(discount_id)
        with Database.connect(get_shop_db()) as conn:
            conn.execute(f"UPDATE discount_codes SET {', '.join(fields)} WHERE id = ?", values)
            conn.commit()
    return get_discount_code(discount_id)


def delete_discount_code(discount_id):
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute('DELETE FROM discount_codes WHERE id = ?', (discount_id,))
        deleted = cursor.rowcount
        conn.commit()
    return deleted > 0


def increment_usage(discount_id):
    with Database.connect(get_shop_db()) as conn:
        conn.execute(
            'UPDATE discount_codes SET usage_count = usage_count + 1 WHERE id = ?',
            (discount_id,)
        )
        conn.commit()
