"""
Auth Module
===========

Provides:
- Customer account registration, sign-in and profile management
- Admin sign-in for the management API
- login_required / admin_required decorators
"""

from flask import Blueprint

auth_bp = Blueprint('auth', __name__, url_prefix='/api')

from . import routes
from .utils import login_required, admin_required

__all__ = ['auth_bp', 'login_required', 'admin_required']
