"""
Garments Models
===============

Catalog CRUD for blank garments (style, colours, sizes, base cost).
"""

import logging

from swagco.core.database import Database, get_shop_db, row_to_dict, new_id, utc_now, to_json

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    'name', 'brand', 'description', 'category', 'base_cost', 'available_colors',
    'color_images', 'color_back_images', 'size_range', 'pricing_tier_id',
    'active', 'thumbnail_url',
)

JSON_FIELDS = ('available_colors', 'color_images', 'color_back_images', 'size_range')


def _db_log(level, message, details=None):
    """Log to the persistent DB logger"""
    try:
        from swagco.core import db_log
        db_log(level, 'garments', message, details)
    except Exception:
        pass


def get_garment(garment_id):
    """Get a single garment by ID"""
    if not garment_id:
        return None
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute('SELECT * FROM garments WHERE id = ?', (garment_id,))
        return row_to_dict(cursor.fetchone())


def get_garments(include_inactive=False):
    """All garments sorted by name"""
    query = 'SELECT * FROM garments'
    if not include_inactive:
        query += ' WHERE active = 1'
    query += ' ORDER BY name ASC'
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute(query)
        return [row_to_dict(row) for row in cursor.fetchall()]


def get_garments_by_ids(garment_ids):
    """Garments for a list of ids, keyed by id"""
    ids = [gid for gid in dict.fromkeys(garment_ids) if gid]
    if not ids:
        return {}
    placeholders = ', '.join('?' for _ in ids)
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute(f'SELECT * FROM garments WHERE id IN ({placeholders})', ids)
        return {row['id']: row_to_dict(row) for row in cursor.fetchall()}


def get_garment_names(garment_ids):
    return {gid: g['name'] for gid, g in get_garments_by_ids(garment_ids).items()}


def create_garment(data):
    """Insert a garment. Returns the new row."""
    garment_id = new_id()
    now = utc_now()
    with Database.connect(get_shop_db()) as conn:
        conn.execute('''
            INSERT INTO garments (id, name, brand, description, category, base_cost,
                                  available_colors, color_images, color_back_images, size_range,
                                  pricing_tier_id, active, thumbnail_url, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        ''', (
            garment_id,
            data['name'],
            data['brand'],
            data.get('description'),
            data.get('category'),
            data['base_cost'],
            to_json(data['available_colors']),
            to_json(data.get('color_images') or {}),
            to_json(data.get('color_back_images') or {}),
            to_json(data['size_range']),
            data.get('pricing_tier_id'),
            bool(data.get('active', True)),
            data.get('thumbnail_url'),
            now,
            now,
        ))
        conn.commit()

    logger.info(f"Created garment {garment_id}: {data['name']}")
    _db_log('info', f"Garment created: {data['name']}", {'id': garment_id})
    return get_garment(garment_id)


def update_garment(garment_id, updates):
    """Partial update. Returns the updated row, or None if the garment does not exist."""
    if not get_garment(garment_id):
        return None

    fields = []
    values = []
    for key, value in updates.items():
        if key not in UPDATABLE_FIELDS:
            continue
        fields.append(f'{key} = ?')
        values.append(to_json(value) if key in JSON_FIELDS else value)

    if fields:
        fields.append('updated_at = ?')
        values.extend([utc_now(), garment_id])
        with Database.connect(get_shop_db()) as conn:
            conn.execute(f"UPDATE garments SET {', '.join(fields)} WHERE id = ?", values)
            conn.commit()
        _db_log('info', f'Garment {garment_id} updated', {'fields': list(updates.keys())})

    return get_garment(garment_id)


def delete_garment(garment_id):
    """Hard delete. Returns the deleted row or None."""
    garment = get_garment(garment_id)
    if not garment:
        return None
    with Database.connect(get_shop_db()) as conn:
        conn.execute('DELETE FROM garments WHERE id = ?', (garment_id,))
        conn.commit()
    logger.info(f"Permanently deleted garment {garment_id}")
    _db_log('warning', f'Garment permanently deleted: {garment["name"]}', {'id': garment_id})
    return garment
