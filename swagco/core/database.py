"""
Shop Database
=============

SQLite connection helpers, schema creation and default seed data for the
shop tables. All commerce tables live in SHOP_DB; app_logs lives in
ANALYTICS_DB (see logging_service).
"""

import json
import logging
import os
import sqlite3
import threading
import uuid
from datetime import datetime, timezone

from .config import get_config_value

logger = logging.getLogger(__name__)

# Columns stored as JSON text and decoded on read
JSON_COLUMNS = {
    'available_colors', 'color_images', 'color_back_images', 'size_range',
    'default_shipping_address', 'shipping_address', 'size_quantities',
    'color_size_quantities', 'selected_garments', 'print_config',
    'pricing_breakdown', 'metadata', 'transform', 'selected_colors',
    'garment_configs', 'artwork_urls', 'artwork_transforms', 'mockup_image_urls',
    'artwork_data', 'artwork_file_records', 'vectorized_svg_data', 'quote',
}

# Columns stored as 0/1 and returned as bool
BOOL_COLUMNS = {'active', 'deposit_paid', 'is_vector', 'is_ai_generated'}

DEFAULT_PRICING_TIERS = [
    # (name, min_qty, max_qty, markup %, print cost per colour)
    ('Tier 1: 24-47', 24, 47, 50, 1.50),
    ('Tier 2: 48-71', 48, 71, 45, 1.25),
    ('Tier 3: 72-143', 72, 143, 40, 1.00),
    ('Tier 4: 144+', 144, None, 35, 0.75),
]

DEFAULT_SETUP_FEE_PER_SCREEN = 25.0

DEFAULT_GARMENTS = [
    {
        'name': 'Comfort Colors 1717',
        'brand': 'Comfort Colors',
        'description': 'Premium pigment-dyed heavyweight tee with a vintage, worn-in feel. 100% ring-spun cotton.',
        'category': 't-shirts',
        'base_cost': 8.50,
        'available_colors': ['White', 'Black', 'Navy', 'Grey', 'Crimson', 'Forest Green', 'Butter'],
        'size_range': ['S', 'M', 'L', 'XL', '2XL', '3XL'],
    },
    {
        'name': 'Bella+Canvas 3001',
        'brand': 'Bella+Canvas',
        'description': 'Soft, modern unisex tee made from premium combed ring-spun cotton. Retail fit and feel.',
        'category': 't-shirts',
        'base_cost': 6.75,
        'available_colors': ['White', 'Black', 'Heather Grey', 'Navy', 'Red', 'Royal Blue', 'Kelly Green'],
        'size_range': ['XS', 'S', 'M', 'L', 'XL', '2XL', '3XL'],
    },
    {
        'name': 'AS Colour Staple Tee',
        'brand': 'AS Colour',
        'description': 'Modern fit tee with a soft hand feel. Made from 100% combed cotton (Marl colors are 85% cotton / 15% viscose).',
        'category': 't-shirts',
        'base_cost': 7.25,
        'available_colors': ['White', 'Black', 'Navy', 'Grey Marle', 'Olive', 'Pale Blue'],
        'size_range': ['XS', 'S', 'M', 'L', 'XL', '2XL'],
    },
]


class Database:
    # Serialises schema creation when several workers boot at once
    _lock = threading.Lock()

    @staticmethod
    def connect(path):
        conn = sqlite3.connect(path)
        conn.row_factory = sqlite3.Row
        conn.execute('PRAGMA foreign_keys = ON')
        return conn


def get_shop_db():
    """Get the shop database path (app config, then Config, then env)"""
    return get_config_value('SHOP_DB', 'shop.db')


def utc_now():
    return datetime.now(timezone.utc).isoformat()


def new_id():
    return str(uuid.uuid4())


def to_json(value):
    """Encode a JSON column value, leaving None as NULL"""
    if value is None:
        return None
    return json.dumps(value)


def row_to_dict(row):
    """Convert a sqlite3.Row to a dict with JSON and boolean columns decoded"""
    if row is None:
        return None
    d = dict(row)
    for key, value in d.items():
        if key in JSON_COLUMNS and isinstance(value, str):
            try:
                d[key] = json.loads(value)
            except (json.JSONDecodeError, TypeError):
                d[key] = None
        elif key in BOOL_COLUMNS and value is not None:
            d[key] = bool(value)
    return d


def init_shop_db(db_path=None):
    """Create all shop tables and seed defaults on first run"""
    db_path = db_path or get_shop_db()
    db_dir = os.path.dirname(db_path)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)

    with Database._lock:
        try:
            with Database.connect(db_path) as conn:
                cursor = conn.cursor()
                cursor.executescript(SCHEMA)
                _seed_defaults(cursor)
                conn.commit()
                logger.info("Shop database tables created/verified successfully")
        except Exception as e:
            logger.error(f"Error initializing shop database: {e}")
            raise


def _seed_defaults(cursor):
    cursor.execute('SELECT COUNT(*) FROM app_config')
    if cursor.fetchone()[0] == 0:
        cursor.execute('''
            INSERT INTO app_config (deposit_percentage, min_order_quantity, max_ink_colors)
            VALUES (50, 24, 4)
        ''')

    cursor.execute('SELECT COUNT(*) FROM pricing_tiers')
    if cursor.fetchone()[0] > 0:
        return

    first_tier_id = None
    for name, min_qty, max_qty, markup, per_colour in DEFAULT_PRICING_TIERS:
        cursor.execute('''
            INSERT INTO pricing_tiers (name, min_qty, max_qty, garment_markup_percentage)
            VALUES (?, ?, ?, ?)
        ''', (name, min_qty, max_qty, markup))
        tier_id = cursor.lastrowid
        if first_tier_id is None:
            first_tier_id = tier_id
        for num_colors in range(1, 5):
            cursor.execute('''
                INSERT INTO print_pricing (tier_id, num_colors, cost_per_shirt, setup_fee_per_screen)
                VALUES (?, ?, ?, ?)
            ''', (tier_id, num_colors, round(num_colors * per_colour, 2), DEFAULT_SETUP_FEE_PER_SCREEN))

    cursor.execute('SELECT COUNT(*) FROM garments')
    if cursor.fetchone()[0] == 0:
        now = utc_now()
        for garment in DEFAULT_GARMENTS:
            cursor.execute('''
                INSERT INTO garments (id, name, brand, description, category, base_cost,
                                      available_colors, color_images, color_back_images,
                                      size_range, pricing_tier_id, active, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, '{}', '{}', ?, ?, 1, ?, ?)
            ''', (
                new_id(), garment['name'], garment['brand'], garment['description'],
                garment['category'], garment['base_cost'],
                json.dumps(garment['available_colors']), json.dumps(garment['size_range']),
                first_tier_id, now, now
            ))


SCHEMA = '''
CREATE TABLE IF NOT EXISTS app_config (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    deposit_percentage REAL NOT NULL DEFAULT 50,
    min_order_quantity INTEGER NOT NULL DEFAULT 24,
    max_ink_colors INTEGER NOT NULL DEFAULT 4,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS pricing_tiers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    min_qty INTEGER NOT NULL,
    max_qty INTEGER,
    garment_markup_percentage REAL NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS print_pricing (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    tier_id INTEGER NOT NULL,
    num_colors INTEGER NOT NULL,
    cost_per_shirt REAL NOT NULL,
    setup_fee_per_screen REAL NOT NULL,
    UNIQUE (tier_id, num_colors),
    FOREIGN KEY (tier_id) REFERENCES pricing_tiers(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS garments (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    brand TEXT NOT NULL,
    description TEXT,
    category TEXT,
    base_cost REAL NOT NULL,
    available_colors TEXT NOT NULL DEFAULT '[]',
    color_images TEXT DEFAULT '{}',
    color_back_images TEXT DEFAULT '{}',
    size_range TEXT NOT NULL DEFAULT '[]',
    pricing_tier_id INTEGER,
    active BOOLEAN DEFAULT 1,
    thumbnail_url TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
);

CREATE TABLE IF NOT EXISTS customers (
    id TEXT PRIMARY KEY,
    email TEXT UNIQUE NOT NULL,
    password_hash TEXT NOT NULL,
    name TEXT,
    phone TEXT,
    organization_name TEXT,
    default_shipping_address TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
);

CREATE TABLE IF NOT EXISTS admins (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    email TEXT UNIQUE NOT NULL,
    password_hash TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS orders (
    id TEXT PRIMARY KEY,
    customer_id TEXT,
    customer_name TEXT NOT NULL,
    email TEXT NOT NULL,
    phone TEXT,
    shipping_address TEXT,
    organization_name TEXT,
    need_by_date TEXT,
    garment_id TEXT,
    garment_color TEXT,
    size_quantities TEXT DEFAULT '{}',
    color_size_quantities TEXT,
    selected_garments TEXT,
    total_quantity INTEGER NOT NULL,
    print_config TEXT NOT NULL,
    total_cost REAL NOT NULL,
    deposit_amount REAL NOT NULL,
    deposit_paid BOOLEAN DEFAULT 0,
    balance_due REAL NOT NULL,
    discount_code_id TEXT,
    discount_amount REAL DEFAULT 0,
    pricing_breakdown TEXT,
    status TEXT NOT NULL DEFAULT 'pending_art_review',
    internal_notes TEXT,
    stripe_payment_intent_id TEXT,
    carrier TEXT,
    tracking_number TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_orders_status ON orders(status);
CREATE INDEX IF NOT EXISTS idx_orders_customer ON orders(customer_id);

CREATE TABLE IF NOT EXISTS order_activity (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    order_id TEXT NOT NULL,
    activity_type TEXT NOT NULL,
    description TEXT NOT NULL,
    performed_by TEXT,
    metadata TEXT,
    created_at TIMESTAMP,
    FOREIGN KEY (order_id) REFERENCES orders(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS artwork_files (
    id TEXT PRIMARY KEY,
    order_id TEXT NOT NULL,
    location TEXT NOT NULL,
    file_url TEXT NOT NULL,
    file_name TEXT NOT NULL,
    file_size INTEGER DEFAULT 0,
    is_vector BOOLEAN DEFAULT 0,
    vectorization_status TEXT DEFAULT 'pending',
    vectorized_file_url TEXT,
    transform TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    FOREIGN KEY (order_id) REFERENCES orders(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS saved_artwork (
    id TEXT PRIMARY KEY,
    customer_id TEXT NOT NULL,
    name TEXT NOT NULL,
    image_url TEXT NOT NULL,
    prompt TEXT,
    is_ai_generated BOOLEAN DEFAULT 0,
    metadata TEXT,
    created_at TIMESTAMP
);

CREATE TABLE IF NOT EXISTS discount_codes (
    id TEXT PRIMARY KEY,
    code TEXT UNIQUE NOT NULL,
    description TEXT,
    discount_type TEXT NOT NULL,
    discount_value REAL NOT NULL,
    active BOOLEAN DEFAULT 1,
    expires_at TEXT,
    usage_count INTEGER DEFAULT 0,
    created_at TIMESTAMP
);

CREATE TABLE IF NOT EXISTS campaigns (
    id TEXT PRIMARY KEY,
    slug TEXT UNIQUE NOT NULL,
    organizer_id TEXT NOT NULL,
    name TEXT NOT NULL,
    deadline TEXT NOT NULL,
    payment_style TEXT NOT NULL DEFAULT 'everyone_pays',
    status TEXT NOT NULL DEFAULT 'active',
    garment_id TEXT,
    selected_colors TEXT DEFAULT '[]',
    garment_configs TEXT,
    print_config TEXT NOT NULL,
    artwork_urls TEXT DEFAULT '{}',
    artwork_transforms TEXT DEFAULT '{}',
    price_per_shirt REAL NOT NULL DEFAULT 0,
    organizer_name TEXT,
    organizer_email TEXT,
    final_order_id TEXT,
    mockup_image_url TEXT,
    mockup_image_urls TEXT,
    deleted_at TIMESTAMP,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_campaigns_organizer ON campaigns(organizer_id);

CREATE TABLE IF NOT EXISTS campaign_orders (
    id TEXT PRIMARY KEY,
    campaign_id TEXT NOT NULL,
    participant_name TEXT NOT NULL,
    participant_email TEXT NOT NULL,
    garment_id TEXT,
    size TEXT NOT NULL,
    color TEXT NOT NULL,
    quantity INTEGER NOT NULL DEFAULT 1,
    amount_paid REAL DEFAULT 0,
    stripe_payment_intent_id TEXT,
    status TEXT NOT NULL DEFAULT 'pending',
    created_at TIMESTAMP,
    FOREIGN KEY (campaign_id) REFERENCES campaigns(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_campaign_orders_campaign ON campaign_orders(campaign_id);

CREATE TABLE IF NOT EXISTS pending_orders (
    id TEXT PRIMARY KEY,
    customer_id TEXT,
    customer_name TEXT NOT NULL,
    email TEXT NOT NULL,
    phone TEXT,
    shipping_address TEXT,
    organization_name TEXT,
    need_by_date TEXT,
    garment_id TEXT,
    garment_color TEXT,
    size_quantities TEXT DEFAULT '{}',
    color_size_quantities TEXT,
    selected_garments TEXT,
    total_quantity INTEGER NOT NULL,
    print_config TEXT NOT NULL,
    total_cost REAL NOT NULL,
    deposit_amount REAL NOT NULL,
    balance_due REAL NOT NULL,
    discount_code TEXT,
    discount_code_id TEXT,
    discount_amount REAL DEFAULT 0,
    pricing_breakdown TEXT,
    artwork_data TEXT,
    stripe_payment_intent_id TEXT,
    created_at TIMESTAMP,
    expires_at TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_pending_orders_expires ON pending_orders(expires_at);
CREATE INDEX IF NOT EXISTS idx_pending_orders_payment_intent ON pending_orders(stripe_payment_intent_id);

CREATE TABLE IF NOT EXISTS order_drafts (
    id TEXT PRIMARY KEY,
    customer_id TEXT NOT NULL,
    name TEXT,
    garment_id TEXT,
    selected_colors TEXT NOT NULL DEFAULT '[]',
    selected_garments TEXT NOT NULL DEFAULT '{}',
    color_size_quantities TEXT NOT NULL DEFAULT '{}',
    print_config TEXT NOT NULL DEFAULT '{"locations": {}}',
    artwork_file_records TEXT DEFAULT '{}',
    artwork_transforms TEXT DEFAULT '{}',
    vectorized_svg_data TEXT DEFAULT '{}',
    customer_name TEXT,
    email TEXT,
    phone TEXT,
    organization_name TEXT,
    need_by_date TEXT,
    shipping_address TEXT,
    quote TEXT,
    text_description TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    FOREIGN KEY (customer_id) REFERENCES customers(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_order_drafts_customer ON order_drafts(customer_id, updated_at);
'''
