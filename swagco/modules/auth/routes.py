"""
Auth Routes
===========

JSON sign-in endpoints for customers and admins. Sessions carry user_id/email
for customers and admin_id/admin_email for admins.
"""

import logging
import sqlite3
from flask import request, jsonify, session

from swagco.core import LoggingService
from swagco.modules.email.email_service import is_valid_email
from . import auth_bp
from .database import AccountDatabase, PROFILE_FIELDS
from .utils import login_required

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def _db_log(level, message, details=None):
    """Log to the persistent DB logger"""
    try:
        from swagco.core import db_log
        db_log(level, 'auth', message, details)
    except Exception:
        pass


# ===================
# CUSTOMER ACCOUNTS
# ===================

@auth_bp.route('/customers/register', methods=['POST'])
def register_customer():
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''

    if not is_valid_email(email):
        return jsonify({'error': 'A valid email is required'}), 400
    if len(password) < MIN_PASSWORD_LENGTH:
        return jsonify({'error': f'Password must be at least {MIN_PASSWORD_LENGTH} characters'}), 400

    if AccountDatabase.get_customer_by_email(email):
        return jsonify({'error': 'An account with this email already exists'}), 400

    try:
        customer = AccountDatabase.create_customer(email, password, data.get('name'))
    except sqlite3.IntegrityError:
        return jsonify({'error': 'An account with this email already exists'}), 400
    except Exception as e:
        LoggingService.log_error_with_traceback('auth', e, {'email': email})
        return jsonify({'error': 'Failed to create account'}), 500

    session['user_id'] = customer['id']
    session['email'] = customer['email']
    logger.info(f"Registered customer {customer['id']}")
    _db_log('info', f'Customer registered: {email}', {'customer_id': customer['id']})
    return jsonify({'customer': customer}), 201


@auth_bp.route('/customers/login', methods=['POST'])
def login_customer():
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''

    if not email or not password:
        return jsonify({'error': 'Email and password are required'}), 400

    customer = AccountDatabase.verify_customer_credentials(email, password)
    if not customer:
        _db_log('warning', 'Failed customer login', {'email': email})
        return jsonify({'error': 'Invalid email or password'}), 401

    session['user_id'] = customer['id']
    session['email'] = customer['email']
    return jsonify({'customer': customer})


@auth_bp.route('/customers/logout', methods=['POST'])
def logout_customer():
    session.pop('user_id', None)
    session.pop('email', None)
    return jsonify({'success': True})


@auth_bp.route('/customers/profile', methods=['GET'])
@login_required
def get_profile():
    customer = AccountDatabase.get_customer(session['user_id'])
    if not customer:
        return jsonify({'error': 'Customer not found'}), 404
    return jsonify({'customer': customer})


@auth_bp.route('/customers/profile', methods=['PATCH'])
@login_required
def update_profile():
    data = request.get_json(silent=True) or {}
    updates = {key: data[key] for key in PROFILE_FIELDS if key in data}
    if not updates:
        return jsonify({'error': 'No updates provided'}), 400

    address = updates.get('default_shipping_address')
    if address is not None and not isinstance(address, dict):
        return jsonify({'error': 'default_shipping_address must be an object'}), 400

    try:
        customer = AccountDatabase.update_customer_profile(session['user_id'], updates)
    except Exception as e:
        LoggingService.log_error_with_traceback('auth', e)
        return jsonify({'error': 'Failed to update profile'}), 500

    if not customer:
        return jsonify({'error': 'Customer not found'}), 404
    return jsonify({'customer': customer})


# ===================
# ADMIN
# ===================

@auth_bp.route('/admin/login', methods=['POST'])
def admin_login():
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''

    if not email or not password:
        return jsonify({'error': 'Email and password are required'}), 400

    admin = AccountDatabase.verify_admin_credentials(email, password)
    if not admin:
        _db_log('warning', 'Failed admin login', {'email': email})
        return jsonify({'error': 'Invalid credentials'}), 401

    session['admin_id'] = admin['id']
    session['admin_email'] = admin['email']
    _db_log('info', f"Admin signed in: {admin['email']}")
    return jsonify({'success': True, 'admin': admin})


@auth_bp.route('/admin/logout', methods=['POST'])
def admin_logout():
    session.pop('admin_id', None)
    session.pop('admin_email', None)
    return jsonify({'success': True})
