"""
Artwork Module
==============

Provides:
- Artwork uploads per print location, stored locally or on DigitalOcean Spaces
- Placement transforms (x, y, scale, rotation) for the mockup editor
- Raster-to-SVG vectorization through Vectorizer.AI
- The customer's saved-artwork library
"""

from flask import Blueprint

artwork_bp = Blueprint('artwork', __name__, url_prefix='/api')

from . import routes
from .vectorizer import VectorizerService, vectorizer_service

__all__ = ['artwork_bp', 'VectorizerService', 'vectorizer_service']
