"""
Order Drafts Models
===================

Unfinished configurator state per customer (SHOP_DB). Every query is scoped
to the owning customer_id.
"""

import logging

from swagco.core.database import Database, get_shop_db, row_to_dict, new_id, utc_now, to_json

logger = logging.getLogger(__name__)

# Column -> default stored when the client leaves it out
DRAFT_DEFAULTS = {
    'garment_id': None,
    'selected_colors': [],
    'selected_garments': {},
    'color_size_quantities': {},
    'print_config': {'locations': {}},
    'artwork_file_records': {},
    'artwork_transforms': {},
    'vectorized_svg_data': {},
    'customer_name': None,
    'email': None,
    'phone': None,
    'organization_name': None,
    'need_by_date': None,
    'shipping_address': None,
    'quote': None,
    'text_description': None,
}

JSON_FIELDS = (
    'selected_colors', 'selected_garments', 'color_size_quantities', 'print_config',
    'artwork_file_records', 'artwork_transforms', 'vectorized_svg_data',
    'shipping_address', 'quote',
)


def draft_fields(data):
    """Draft columns from a client payload, falsy values replaced by their defaults"""
    fields = {}
    for column, default in DRAFT_DEFAULTS.items():
        value = data.get(column) or default
        fields[column] = to_json(value) if column in JSON_FIELDS else value
    return fields


def draft_name(garment_name=None, colors=None):
    garment_part = garment_name or 'Order'
    if colors:
        return f'{colors[0]} {garment_part} Draft'
    return f'{garment_part} Draft'


def get_drafts(customer_id):
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute(
            'SELECT * FROM order_drafts WHERE customer_id = ? ORDER BY updated_at DESC',
            (customer_id,)
        )
        return [row_to_dict(row) for row in cursor.fetchall()]


def get_draft(draft_id, customer_id):
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute(
            'SELECT * FROM order_drafts WHERE id = ? AND customer_id = ?',
            (draft_id, customer_id)
        )
        return row_to_dict(cursor.fetchone())


def create_draft(customer_id, name, fields):
    draft_id = new_id()
    now = utc_now()
    columns = list(fields)
    with Database.connect(get_shop_db()) as conn:
        conn.execute(f'''
            INSERT INTO order_drafts (id, customer_id, name, {', '.join(columns)}, created_at, updated_at)
            VALUES (?, ?, ?, {', '.join('?' for _ in columns)}, ?, ?)
        ''', [draft_id, customer_id, name] + [fields[c] for c in columns] + [now, now])
        conn.commit()
    logger.info(f"Created order draft {draft_id} for customer {customer_id}")
    return get_draft(draft_id, customer_id)


def update_draft(draft_id, customer_id, name, fields):
    """Overwrite a draft the customer owns. Returns None when there is no such draft."""
    assignments = ', '.join(f'{c} = ?' for c in fields)
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.execute(
            f'UPDATE order_drafts SET name = ?, {assignments}, updated_at = ? WHERE id = ? AND customer_id = ?',
            [name] + list(fields.values()) + [utc_now(), draft_id, customer_id]
        )
        conn.commit()
        if cursor.rowcount == 0:
            return None
    return get_draft(draft_id, customer_id)


def delete_draft(draft_id, customer_id):
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.execute(
            'DELETE FROM order_drafts WHERE id = ? AND customer_id = ?', (draft_id, customer_id)
        )
        conn.commit()
        return cursor.rowcount > 0
