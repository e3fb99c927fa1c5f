"""
Order Drafts Routes
===================

All routes require a signed-in customer and only ever see that customer's drafts.
"""

import logging
from flask import request, jsonify

from swagco.core import LoggingService
from swagco.modules.auth.utils import login_required, current_user_id
from swagco.modules.garments.models import get_garment, get_garments_by_ids
from . import drafts_bp
from .models import draft_fields, draft_name, get_drafts, get_draft, create_draft, update_draft, delete_draft

logger = logging.getLogger(__name__)

GARMENT_SUMMARY_FIELDS = ('id', 'name', 'brand', 'thumbnail_url', 'available_colors', 'color_images')


def _garment_summary(garment):
    if not garment:
        return None
    return {k: garment.get(k) for k in GARMENT_SUMMARY_FIELDS}


def _with_garment(draft, garments=None):
    if garments is None:
        garment = get_garment(draft['garment_id'])
    else:
        garment = garments.get(draft['garment_id'])
    return {**draft, 'garment': _garment_summary(garment)}


@drafts_bp.route('', methods=['GET'])
@login_required
def list_drafts():
    drafts = get_drafts(current_user_id())
    garments = get_garments_by_ids([d['garment_id'] for d in drafts])
    return jsonify({'drafts': [_with_garment(d, garments) for d in drafts]})


@drafts_bp.route('', methods=['POST'])
@login_required
def save_draft():
    """Create a draft, or overwrite draft_id when the customer owns it"""
    data = request.get_json(silent=True) or {}
    customer_id = current_user_id()
    draft_id = data.get('draft_id')

    selected_colors = data.get('selected_colors')
    if selected_colors is not None and not isinstance(selected_colors, list):
        return jsonify({'error': 'selected_colors must be a list'}), 400

    garment = get_garment(data.get('garment_id')) if data.get('garment_id') else None
    name = draft_name(garment['name'] if garment else None, selected_colors)
    fields = draft_fields(data)

    try:
        draft = update_draft(draft_id, customer_id, name, fields) if draft_id else None
        if draft_id and not draft:
            logger.info(f"Draft {draft_id} not found for customer {customer_id}, creating a new one")
        if not draft:
            draft = create_draft(customer_id, name, fields)
    except Exception as e:
        LoggingService.log_error_with_traceback('drafts', e, {'draft_id': draft_id})
        return jsonify({'error': 'Failed to save draft'}), 500

    return jsonify(_with_garment(draft)), 200 if draft_id else 201


@drafts_bp.route('/<draft_id>', methods=['GET'])
@login_required
def draft_detail(draft_id):
    draft = get_draft(draft_id, current_user_id())
    if not draft:
        return jsonify({'error': 'Draft not found'}), 404
    return jsonify(_with_garment(draft))


@drafts_bp.route('/<draft_id>', methods=['DELETE'])
@login_required
def remove_draft(draft_id):
    if not delete_draft(draft_id, current_user_id()):
        return jsonify({'error': 'Draft not found'}), 404
    return jsonify({'success': True})
