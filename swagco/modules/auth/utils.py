from functools import wraps

from flask import jsonify, session


def login_required(f):
    """Decorator to require a signed-in customer"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'user_id' not in session:
            return jsonify({'error': 'Unauthorized'}), 401
        return f(*args, **kwargs)
    return decorated_function


def admin_required(f):
    """Decorator to require admin login"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'admin_id' not in session:
            return jsonify({'error': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated_function


def current_user_id():
    """Signed-in customer id, or None"""
    return session.get('user_id')


def is_admin():
    return 'admin_id' in session
