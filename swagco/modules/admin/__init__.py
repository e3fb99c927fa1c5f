"""
Admin Module
============

Back-office campaign oversight.

Provides:
- Campaign list across all organizers with order and revenue stats
- Campaign detail with participant orders
- Campaign edits that keep garment_id / garment_configs / colours consistent

Admin login and logout live in the auth module.
"""

from flask import Blueprint

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')

from . import routes

__all__ = ['admin_bp']
