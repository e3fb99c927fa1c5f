from werkzeug.security import generate_password_hash, check_password_hash

from swagco.core.database import Database, get_shop_db, row_to_dict, new_id, utc_now, to_json

PROFILE_FIELDS = ('name', 'phone', 'organization_name', 'default_shipping_address')


def _public(customer):
    """Strip the password hash from a customer row"""
    if customer:
        customer.pop('password_hash', None)
    return customer


class AccountDatabase:

    @staticmethod
    def get_customer_by_email(email):
        """Get customer row (including password hash) by email"""
        with Database.connect(get_shop_db()) as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT * FROM customers WHERE email = ?', (email.strip().lower(),))
            return row_to_dict(cursor.fetchone())

    @staticmethod
    def get_customer(customer_id):
        """Get customer profile by ID"""
        with Database.connect(get_shop_db()) as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT * FROM customers WHERE id = ?', (customer_id,))
            return _public(row_to_dict(cursor.fetchone()))

    @staticmethod
    def create_customer(email, password, name=None):
        """Create a new customer account. Returns the public profile."""
        customer_id = new_id()
        now = utc_now()
        with Database.connect(get_shop_db()) as conn:
            conn.execute("""
                INSERT INTO customers (id, email, password_hash, name, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (customer_id, email.strip().lower(), generate_password_hash(password), name, now, now))
            conn.commit()
        return AccountDatabase.get_customer(customer_id)

    @staticmethod
    def verify_customer_credentials(email, password):
        """Return the public profile if credentials match, else None"""
        customer = AccountDatabase.get_customer_by_email(email)
        if customer and check_password_hash(customer['password_hash'], password):
            return _public(customer)
        return None

    @staticmethod
    def update_customer_profile(customer_id, updates):
        """Update whitelisted profile fields. Returns the updated profile."""
        fields = []
        values = []
        for key, value in updates.items():
            if key not in PROFILE_FIELDS:
                continue
            fields.append(f'{key} = ?')
            values.append(to_json(value) if key == 'default_shipping_address' else value)

        if fields:
            fields.append('updated_at = ?')
            values.extend([utc_now(), customer_id])
            with Database.connect(get_shop_db()) as conn:
                conn.execute(f"UPDATE customers SET {', '.join(fields)} WHERE id = ?", values)
                conn.commit()
        return AccountDatabase.get_customer(customer_id)

    @staticmethod
    def create_admin(email, password):
        """Create an admin account. Returns the new admin id."""
        with Database.connect(get_shop_db()) as conn:
            cursor = conn.cursor()
            cursor.execute(
                'INSERT INTO admins (email, password_hash) VALUES (?, ?)',
                (email.strip().lower(), generate_password_hash(password))
            )
            admin_id = cursor.lastrowid
            conn.commit()
        return admin_id

    @staticmethod
    def verify_admin_credentials(email, password):
        """Return the admin row (without hash) if credentials match, else None"""
        with Database.connect(get_shop_db()) as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT * FROM admins WHERE email = ?', (email.strip().lower(),))
            admin = row_to_dict(cursor.fetchone())
        if admin and check_password_hash(admin['password_hash'], password):
            admin.pop('password_hash', None)
            return admin
        return None
