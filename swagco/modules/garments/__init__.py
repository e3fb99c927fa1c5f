"""
Garments Module
===============

Blank garment catalog: public listing with customer prices, admin CRUD.
"""

from flask import Blueprint

garments_bp = Blueprint('garments', __name__, url_prefix='/api/garments')

from . import routes

__all__ = ['garments_bp']
