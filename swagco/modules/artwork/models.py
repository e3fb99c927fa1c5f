"""
Artwork Models
==============

Order artwork files (one per print location upload) and the customer's
saved-artwork library.
"""

from swagco.core.database import Database, get_shop_db, row_to_dict, new_id, utc_now, to_json

VECTOR_EXTENSIONS = ('svg', 'ai', 'eps')

DEFAULT_TRANSFORM = {'x': 0, 'y': 0, 'scale': 1, 'rotation': 0}


def file_extension(filename):
    return filename.rsplit('.', 1)[-1].lower() if filename and '.' in filename else ''


def is_vector_file(filename):
    return file_extension(filename) in VECTOR_EXTENSIONS


# ===================
# ARTWORK FILES
# ===================

def create_artwork_file(order_id, location, file_url, file_name, file_size=0, transform=None):
    """Insert an artwork row; vector formats skip vectorization"""
    artwork_id = new_id()
    now = utc_now()
    is_vector = is_vector_file(file_name)
    with Database.connect(get_shop_db()) as conn:
        conn.execute('''
            INSERT INTO artwork_files (id, order_id, location, file_url, file_name, file_size,
                                       is_vector, vectorization_status, transform, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        ''', (
            artwork_id, order_id, location, file_url, file_name, file_size or 0,
            is_vector, 'not_needed' if is_vector else 'pending',
            to_json(transform or DEFAULT_TRANSFORM), now, now
        ))
        conn.commit()
    return get_artwork_file(artwork_id)


def get_artwork_file(artwork_id):
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute('SELECT * FROM artwork_files WHERE id = ?', (artwork_id,))
        return row_to_dict(cursor.fetchone())


def get_order_artwork(order_id):
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute(
            'SELECT * FROM artwork_files WHERE order_id = ? ORDER BY created_at ASC, rowid ASC',
            (order_id,)
        )
        return [row_to_dict(row) for row in cursor.fetchall()]


def update_artwork_file(artwork_id, **updates):
    """Update status / vectorized url / transform. Returns the updated row."""
    if 'transform' in updates:
        updates['transform'] = to_json(updates['transform'])
    fields = [f'{key} = ?' for key in updates] + ['updated_at = ?']
    values = list(updates.values()) + [utc_now(), artwork_id]
    with Database.connect(get_shop_db()) as conn:
        conn.execute(f"UPDATE artwork_files SET {', '.join(fields)} WHERE id = ?", values)
        conn.commit()
    return get_artwork_file(artwork_id)


# ===================
# SAVED ARTWORK
# ===================

def get_saved_artwork(customer_id):
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute(
            'SELECT * FROM saved_artwork WHERE customer_id = ? ORDER BY created_at DESC, rowid DESC',
            (customer_id,)
        )
        return [row_to_dict(row) for row in cursor.fetchall()]


def get_saved_artwork_item(artwork_id):
    with Database.connect(get_shop_db()) as conn:
        cursor = conn.cursor()
        cursor.execute('SELECT * FROM saved_artwork WHERE id = ?', (artwork_id,))
        return row_to_dict(cursor.fetchone())


def create_saved_artwork(customer_id, name, image_url, prompt=None, is_ai_generated=False, metadata=None):
    artwork_id = new_id()
    with Database.connect(get_shop_db()) as conn:
        conn.execute('''
            INSERT INTO saved_artwork (id, customer_id, name, image_url, prompt, is_ai_generated, metadata, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        ''', (artwork_id, customer_id, name, image_url, prompt, bool(is_ai_generated),
              to_json(metadata or {}), utc_now()))
        conn.commit()
    return get_saved_artwork_item(artwork_id)


def delete_saved_artwork(artwork_id):
    with Database.connect(get_shop_db()) as conn:
        conn.execute('DELETE FROM saved_artwork WHERE id = ?', (artwork_id,))
        conn.commit()
