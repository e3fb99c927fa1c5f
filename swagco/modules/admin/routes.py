import logging
from flask import request, jsonify

from swagco.core import LoggingService
from swagco.modules.auth.utils import admin_required
from swagco.modules.campaigns.models import (
    CAMPAIGN_STATUSES, PAYMENT_STYLES, get_campaign, get_campaigns, update_campaign,
    campaign_garment_ids, get_campaign_orders, admin_stats
)
from swagco.modules.garments.models import get_garments_by_ids
from swagco.modules.pricing.validation import is_number
from . import admin_bp

logger = logging.getLogger(__name__)

ADMIN_CAMPAIGN_FIELDS = (
    'name', 'deadline', 'status', 'price_per_shirt', 'organizer_name',
    'organizer_email', 'selected_colors', 'payment_style', 'garment_configs',
    'garment_id',
)


def _db_log(level, message, details=None):
    """Log to the persistent DB logger"""
    try:
        from swagco.core import db_log
        db_log(level, 'admin', message, details)
    except Exception:
        pass


def _with_stats(campaign, orders):
    campaign.update(admin_stats(campaign, orders))
    return campaign


def _validate_updates(updates):
    errors = []
    if 'status' in updates and updates['status'] not in CAMPAIGN_STATUSES:
        errors.append(f"status must be one of: {', '.join(CAMPAIGN_STATUSES)}")
    if 'payment_style' in updates and updates['payment_style'] not in PAYMENT_STYLES:
        errors.append(f"payment_style must be one of: {', '.join(PAYMENT_STYLES)}")
    if 'price_per_shirt' in updates and (not is_number(updates['price_per_shirt']) or updates['price_per_shirt'] < 0):
        errors.append('price_per_shirt must be a non-negative number')
    if 'garment_configs' in updates and (not isinstance(updates['garment_configs'], dict) or not updates['garment_configs']):
        errors.append('garment_configs must be a non-empty object')
    if 'selected_colors' in updates and not isinstance(updates['selected_colors'], list):
        errors.append('selected_colors must be a list')
    return errors


def _sync_garment_fields(campaign, updates):
    """Keep garment_id, garment_configs and selected_colors consistent"""
    if 'garment_configs' in updates:
        updates['garment_id'] = next(iter(updates['garment_configs']))
        return updates

    configs = dict(campaign.get('garment_configs') or {})
    garment_id = updates.get('garment_id') or campaign.get('garment_id')
    if not garment_id or not configs:
        return updates

    config = dict(configs.get(garment_id) or {})
    changed = False
    if 'selected_colors' in updates:
        config['colors'] = updates['selected_colors']
        changed = True
    if 'price_per_shirt' in updates:
        config['price'] = updates['price_per_shirt']
        changed = True
    if 'garment_id' in updates and garment_id not in configs:
        config.setdefault('colors', updates.get('selected_colors') or campaign.get('selected_colors') or [])
        config.setdefault('price', updates.get('price_per_shirt') or campaign.get('price_per_shirt') or 0)
        changed = True

    if changed:
        configs[garment_id] = config
        updates['garment_configs'] = configs
    return updates


@admin_bp.route('/campaigns', methods=['GET'])
@admin_required
def list_campaigns():
    status = request.args.get('status')
    campaigns = get_campaigns(status=None if status in (None, '', 'all') else status)

    orders_by_campaign = {}
    for order in get_campaign_orders([c['id'] for c in campaigns]):
        orders_by_campaign.setdefault(order['campaign_id'], []).append(order)

    return jsonify({
        'campaigns': [_with_stats(c, orders_by_campaign.get(c['id'], [])) for c in campaigns]
    })


@admin_bp.route('/campaigns/<campaign_id>', methods=['GET'])
@admin_required
def campaign_detail(campaign_id):
    campaign = get_campaign(campaign_id)
    if not campaign:
        return jsonify({'error': 'Campaign not found'}), 404

    orders = get_campaign_orders(campaign_id)
    garments = get_garments_by_ids(campaign_garment_ids(campaign))
    campaign['garments'] = list(garments.values())
    campaign['orders'] = orders
    return jsonify({'campaign': _with_stats(campaign, orders)})


@admin_bp.route('/campaigns/<campaign_id>', methods=['PATCH'])
@admin_required
def edit_campaign(campaign_id):
    campaign = get_campaign(campaign_id)
    if not campaign:
        return jsonify({'error': 'Campaign not found'}), 404

    data = request.get_json(silent=True) or {}
    updates = {k: data[k] for k in ADMIN_CAMPAIGN_FIELDS if k in data}
    if not updates:
        return jsonify({'error': 'No valid fields to update'}), 400

    errors = _validate_updates(updates)
    if errors:
        return jsonify({'error': 'Invalid campaign update', 'details': errors}), 400

    try:
        campaign = update_campaign(campaign_id, _sync_garment_fields(campaign, updates))
    except Exception as e:
        LoggingService.log_error_with_traceback('admin', e, {'campaign_id': campaign_id})
        return jsonify({'error': 'Failed to update campaign'}), 500

    _db_log('info', f'Admin updated campaign {campaign_id}', {'fields': list(updates.keys())})
    return jsonify({'campaign': campaign})
