"""
Artwork Routes
==============

Uploads and transforms are keyed by order; the saved-artwork library is per
signed-in customer.
"""

import base64
import binascii
import json
import logging
import time
from flask import request, jsonify
from werkzeug.utils import secure_filename

from swagco.core import LoggingService, get_config_value
from swagco.core.storage import upload_file, read_file, delete_file
from swagco.modules.auth.utils import login_required, current_user_id
from swagco.modules.orders.models import get_order
from swagco.modules.pricing.validation import PRINT_LOCATIONS, is_number
from . import artwork_bp
from .models import (
    DEFAULT_TRANSFORM, file_extension, is_vector_file, create_artwork_file,
    get_artwork_file, update_artwork_file, get_saved_artwork, get_saved_artwork_item,
    create_saved_artwork, delete_saved_artwork
)
from .vectorizer import VectorizerError, VectorizerNotConfigured, vectorizer_service

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = ('png', 'jpg', 'jpeg', 'pdf', 'ai', 'eps', 'svg')


def _db_log(level, message, details=None):
    """Log to the persistent DB logger"""
    try:
        from swagco.core import db_log
        db_log(level, 'artwork', message, details)
    except Exception:
        pass


def parse_transform(raw):
    """Validate a transform payload. Returns (transform, error)."""
    if raw is None:
        return dict(DEFAULT_TRANSFORM), None
    if not isinstance(raw, dict):
        return None, 'transform must be an object'

    transform = dict(DEFAULT_TRANSFORM)
    for key in DEFAULT_TRANSFORM:
        if key in raw:
            if not is_number(raw[key]):
                return None, f'transform.{key} must be a number'
            transform[key] = raw[key]
    if transform['scale'] <= 0:
        return None, 'transform.scale must be greater than 0'
    return transform, None


def _max_upload_bytes():
    return int(get_config_value('MAX_UPLOAD_MB', 50)) * 1024 * 1024


# ===================
# ORDER ARTWORK
# ===================

@artwork_bp.route('/artwork/upload', methods=['POST'])
def upload_artwork():
    if 'file' not in request.files:
        return jsonify({'error': 'No file provided'}), 400
    file = request.files['file']
    if file.filename == '':
        return jsonify({'error': 'No file selected'}), 400

    original_filename = secure_filename(file.filename)
    if file_extension(original_filename) not in ALLOWED_EXTENSIONS:
        return jsonify({'error': f"File type not allowed. Allowed: {', '.join(ALLOWED_EXTENSIONS)}"}), 400

    order_id = request.form.get('order_id')
    location = request.form.get('location')
    if not order_id or not location:
        return jsonify({'error': 'order_id and location are required'}), 400
    if location not in PRINT_LOCATIONS:
        return jsonify({'error': f"Invalid location. Must be one of: {', '.join(PRINT_LOCATIONS)}"}), 400

    transform = None
    if request.form.get('transform'):
        try:
            raw_transform = json.loads(request.form['transform'])
        except ValueError:
            return jsonify({'error': 'transform must be valid JSON'}), 400
        transform, error = parse_transform(raw_transform)
        if error:
            return jsonify({'error': error}), 400

    if not get_order(order_id):
        return jsonify({'error': 'Order not found'}), 404

    file_bytes = file.read()
    if len(file_bytes) > _max_upload_bytes():
        return jsonify({'error': f"File too large. Maximum size is {get_config_value('MAX_UPLOAD_MB', 50)}MB"}), 400

    try:
        filename = f"{location}_{int(time.time())}_{original_filename}"
        file_url = upload_file(file_bytes, filename, f'artwork/{order_id}')
        artwork = create_artwork_file(
            order_id, location, file_url, original_filename,
            file_size=len(file_bytes), transform=transform
        )
    except Exception as e:
        LoggingService.log_error_with_traceback('artwork', e, {'order_id': order_id, 'location': location})
        return jsonify({'error': 'Failed to upload artwork'}), 500

    _db_log('info', f'Artwork uploaded for order {order_id}', {'location': location, 'file': original_filename})
    return jsonify(artwork), 201


@artwork_bp.route('/artwork/<artwork_id>/transform', methods=['PATCH'])
def update_transform(artwork_id):
    data = request.get_json(silent=True) or {}
    transform, error = parse_transform(data.get('transform', data))
    if error:
        return jsonify({'error': error}), 400

    if not get_artwork_file(artwork_id):
        return jsonify({'error': 'Artwork file not found'}), 404
    return jsonify(update_artwork_file(artwork_id, transform=transform))


@artwork_bp.route('/artwork/vectorize', methods=['POST'])
def vectorize_artwork():
    data = request.get_json(silent=True) or {}
    artwork_id = data.get('artwork_file_id')
    if not artwork_id:
        return jsonify({'error': 'Missing artwork_file_id'}), 400
    if not vectorizer_service.is_configured():
        return jsonify({'error': 'Vectorization service not configured'}), 500

    artwork = get_artwork_file(artwork_id)
    if not artwork:
        return jsonify({'error': 'Artwork file not found'}), 404
    if artwork['is_vector'] or is_vector_file(artwork['file_name']):
        return jsonify({'error': 'File is already a vector format'}), 400
    if artwork['vectorization_status'] == 'completed' and artwork.get('vectorized_file_url'):
        return jsonify({
            'success': True,
            'vectorized_file_url': artwork['vectorized_file_url'],
            'status': 'completed',
        })

    update_artwork_file(artwork_id, vectorization_status='processing')
    try:
        source = read_file(artwork['file_url'])
        svg_bytes, _ = vectorizer_service.vectorize(source, artwork['file_name'])
        base_name = artwork['file_name'].rsplit('.', 1)[0]
        filename = f"{artwork['location']}_vectorized_{int(time.time())}_{base_name}.svg"
        vectorized_url = upload_file(svg_bytes, filename, f"artwork/{artwork['order_id']}")
    except VectorizerNotConfigured as e:
        update_artwork_file(artwork_id, vectorization_status='failed')
        return jsonify({'error': str(e)}), 500
    except VectorizerError as e:
        update_artwork_file(artwork_id, vectorization_status='failed')
        _db_log('error', f'Vectorization failed for {artwork_id}', {'error': str(e)})
        return jsonify({'error': str(e)}), 502
    except Exception as e:
        update_artwork_file(artwork_id, vectorization_status='failed')
        LoggingService.log_error_with_traceback('artwork', e, {'artwork_file_id': artwork_id})
        return jsonify({'error': 'Vectorization failed'}), 502

    artwork = update_artwork_file(
        artwork_id, vectorization_status='completed', vectorized_file_url=vectorized_url
    )
    _db_log('info', f'Artwork vectorized: {artwork_id}')
    return jsonify({'success': True, 'vectorized_file_url': vectorized_url, 'status': 'completed', 'artwork': artwork})


# ===================
# SAVED ARTWORK
# ===================

def _decode_data_url(image_data):
    """Decode a base64 data URL (or bare base64) to bytes. Returns None if invalid."""
    if not isinstance(image_data, str) or not image_data:
        return None
    if image_data.startswith('data:'):
        image_data = image_data.split(',', 1)[-1]
    try:
        return base64.b64decode(image_data, validate=True)
    except (binascii.Error, ValueError):
        return None


@artwork_bp.route('/saved-artwork', methods=['GET'])
@login_required
def list_saved_artwork():
    return jsonify({'artwork': get_saved_artwork(current_user_id())})


@artwork_bp.route('/saved-artwork', methods=['POST'])
@login_required
def save_artwork():
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    if not name or not data.get('image_data'):
        return jsonify({'error': 'name and image_data are required'}), 400

    image_bytes = _decode_data_url(data['image_data'])
    if not image_bytes:
        return jsonify({'error': 'image_data must be a base64 data URL'}), 400

    customer_id = current_user_id()
    try:
        filename = f"{int(time.time())}_{secure_filename(name) or 'artwork'}.png"
        image_url = upload_file(image_bytes, filename, f'saved-artwork/{customer_id}')
        item = create_saved_artwork(
            customer_id, name, image_url,
            prompt=data.get('prompt'),
            is_ai_generated=data.get('is_ai_generated', False),
            metadata=data.get('metadata'),
        )
    except Exception as e:
        LoggingService.log_error_with_traceback('artwork', e, {'customer_id': customer_id})
        return jsonify({'error': 'Failed to save artwork'}), 500

    return jsonify(item), 201


@artwork_bp.route('/saved-artwork/<artwork_id>', methods=['DELETE'])
@login_required
def remove_saved_artwork(artwork_id):
    item = get_saved_artwork_item(artwork_id)
    if not item or item['customer_id'] != current_user_id():
        return jsonify({'error': 'Artwork not found'}), 404
    delete_saved_artwork(artwork_id)
    try:
        delete_file(item['image_url'])
    except Exception as e:
        logger.warning(f"Could not remove stored image for saved artwork {artwork_id}: {e}")
    return jsonify({'success': True})
