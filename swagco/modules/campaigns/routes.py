"""
Campaigns Routes
================

Organizer endpoints require a customer session; the slug page and the
participant order/pay endpoints are public.
"""

import logging
from flask import request, jsonify

import stripe

from swagco.core import LoggingService
from swagco.core.database import utc_now
from swagco.modules.auth.database import AccountDatabase
from swagco.modules.auth.utils import login_required, current_user_id
from swagco.modules.email.email_service import is_valid_email
from swagco.modules.garments.models import get_garment, get_garments_by_ids
from swagco.modules.orders.validation import validate_shipping_address
from swagco.modules.payments.stripe_service import (
    PaymentsNotConfigured, create_payment_intent, retrieve_payment_intent,
    refund_payment_intent, to_cents
)
from swagco.modules.pricing.calculator import PricingError, calculate_campaign_price_per_shirt, round_money
from swagco.modules.pricing.models import get_max_ink_colors
from swagco.modules.pricing.validation import is_number, validate_print_config
from . import campaigns_bp
from .fulfillment import CampaignOrderError, create_order_from_campaign
from .models import (
    PAYMENT_STYLES, create_campaign, get_campaign_by_slug, get_campaigns, update_campaign,
    campaign_garment_ids, price_for_garment, create_campaign_order, get_campaign_order,
    get_campaign_orders, update_campaign_order, mark_campaign_order_paid,
    counted_orders, breakdown
)

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ('name', 'deadline', 'status')
ORGANIZER_STATUSES = ('draft', 'active', 'closed')


def _db_log(level, message, details=None):
    """Log to the persistent DB logger"""
    try:
        from swagco.core import db_log
        db_log(level, 'campaigns', message, details)
    except Exception:
        pass


def _is_owner(campaign):
    return current_user_id() is not None and campaign['organizer_id'] == current_user_id()


def _load_owned(slug):
    """Returns (campaign, error_response)"""
    campaign = get_campaign_by_slug(slug)
    if not campaign:
        return None, (jsonify({'error': 'Campaign not found'}), 404)
    if not _is_owner(campaign):
        return None, (jsonify({'error': 'Forbidden'}), 403)
    return campaign, None


def _order_price(campaign, order):
    return price_for_garment(campaign, order.get('garment_id') or campaign.get('garment_id'))


def _garments_for(campaign):
    garments = get_garments_by_ids(campaign_garment_ids(campaign))
    return [garments[gid] for gid in campaign_garment_ids(campaign) if gid in garments]


def _stripe_error(e, details):
    LoggingService.log_error_with_traceback('campaigns', e, details)
    return jsonify({'error': getattr(e, 'user_message', None) or str(e)}), 500


# ===================
# CAMPAIGN CRUD
# ===================

def _build_garment_fields(data, print_config):
    """Resolve garment_id, selected_colors, garment_configs and price_per_shirt.

    Returns (fields, error).
    """
    configs = data.get('garment_configs')
    if configs:
        if not isinstance(configs, dict):
            return None, 'garment_configs must be an object'
        if not all(isinstance(cfg, dict) for cfg in configs.values()):
            return None, 'Each garment config must be an object'
        known = get_garments_by_ids(list(configs))
        for gid in configs:
            if gid not in known:
                return None, f'Garment not found: {gid}'

        configs = {gid: dict(cfg) for gid, cfg in configs.items()}
        for cfg in configs.values():
            price = cfg.get('price')
            cfg['price'] = price if is_number(price) and price > 0 else 0

        # Missing prices, or one price copied across every garment, are recalculated
        prices = [cfg['price'] for cfg in configs.values()]
        recalculate_all = all(p == 0 for p in prices) or (len(prices) > 1 and len(set(prices)) == 1)
        for gid, cfg in configs.items():
            if recalculate_all or cfg['price'] == 0:
                cfg['price'] = calculate_campaign_price_per_shirt(gid, print_config)['price_per_shirt']

        selected_colors = []
        for cfg in configs.values():
            for color in cfg.get('colors') or []:
                if color not in selected_colors:
                    selected_colors.append(color)

        first_id = next(iter(configs))
        return {
            'garment_id': first_id,
            'garment_configs': configs,
            'selected_colors': selected_colors,
            'price_per_shirt': configs[first_id]['price'],
        }, None

    garment_id = data['garment_id']
    if not get_garment(garment_id):
        return None, 'Garment not found'
    price = data.get('price_per_shirt')
    if not is_number(price) or price <= 0:
        price = calculate_campaign_price_per_shirt(garment_id, print_config)['price_per_shirt']
    colors = data.get('selected_colors') or []
    return {
        'garment_id': garment_id,
        'selected_colors': colors,
        'garment_configs': {garment_id: {'price': price, 'colors': colors}},
        'price_per_shirt': price,
    }, None


@campaigns_bp.route('', methods=['POST'])
@login_required
def add_campaign():
    data = request.get_json(silent=True) or {}
    if not data.get('name') or not data.get('deadline') or not data.get('print_config'):
        return jsonify({'error': 'Missing required fields: name, deadline, print_config'}), 400
    if not data.get('garment_id') and not data.get('garment_configs'):
        return jsonify({'error': 'Either garment_id or garment_configs must be provided'}), 400

    errors = validate_print_config(data['print_config'], get_max_ink_colors())
    if errors:
        return jsonify({'error': 'Invalid print configuration', 'details': errors}), 400

    payment_style = data.get('payment_style') or 'everyone_pays'
    if payment_style not in PAYMENT_STYLES:
        return jsonify({'error': f"payment_style must be one of: {', '.join(PAYMENT_STYLES)}"}), 400

    try:
        garment_fields, error = _build_garment_fields(data, data['print_config'])
        if error:
            return jsonify({'error': error}), 400

        customer = AccountDatabase.get_customer(current_user_id()) or {}
        campaign = create_campaign({
            'organizer_id': current_user_id(),
            'name': data['name'].strip(),
            'deadline': data['deadline'],
            'payment_style': payment_style,
            'status': 'active',
            'print_config': data['print_config'],
            'artwork_urls': data.get('artwork_urls') or {},
            'artwork_transforms': data.get('artwork_transforms') or {},
            'mockup_image_url': data.get('mockup_image_url'),
            'mockup_image_urls': data.get('mockup_image_urls'),
            'organizer_name': data.get('organizer_name') or customer.get('name'),
            'organizer_email': data.get('organizer_email') or customer.get('email'),
            **garment_fields,
        })
        return jsonify(campaign), 201

    except PricingError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        LoggingService.log_error_with_traceback('campaigns', e, {'name': data.get('name')})
        return jsonify({'error': 'Failed to create campaign'}), 500


@campaigns_bp.route('', methods=['GET'])
@login_required
def list_campaigns():
    campaigns = get_campaigns(organizer_id=current_user_id(), status=request.args.get('status'))
    orders = get_campaign_orders([c['id'] for c in campaigns])
    orders_by_campaign = {}
    for order in orders:
        orders_by_campaign.setdefault(order['campaign_id'], []).append(order)

    for campaign in campaigns:
        campaign_orders = orders_by_campaign.get(campaign['id'], [])
        paid = [o for o in campaign_orders if o['status'] == 'paid' and o.get('stripe_payment_intent_id')]
        campaign['garments'] = _garments_for(campaign)
        campaign['order_count'] = len(counted_orders(campaign, campaign_orders))
        campaign['total_paid'] = round_money(sum(o['amount_paid'] or 0 for o in paid))
        campaign['paid_order_count'] = len(paid)

    return jsonify({'campaigns': campaigns})


@campaigns_bp.route('/<slug>', methods=['GET'])
def campaign_detail(slug):
    campaign = get_campaign_by_slug(slug)
    is_owner = bool(campaign) and _is_owner(campaign)
    if not campaign or (campaign['status'] in ('draft', 'deleted') and not is_owner):
        return jsonify({'error': 'Campaign not found'}), 404

    counted = counted_orders(campaign, get_campaign_orders(campaign['id']))
    garments = _garments_for(campaign)
    campaign['garment'] = get_garment(campaign.get('garment_id'))
    campaign['garments'] = garments
    campaign['order_count'] = len(counted)
    campaign['size_breakdown'] = breakdown(counted, 'size')
    campaign['is_owner'] = is_owner
    return jsonify(campaign)


@campaigns_bp.route('/<slug>', methods=['PATCH'])
@login_required
def edit_campaign(slug):
    campaign, error = _load_owned(slug)
    if error:
        return error
    data = request.get_json(silent=True) or {}

    if data.get('action') == 'restore':
        if campaign['status'] != 'deleted':
            return jsonify({'error': 'Campaign is not deleted'}), 400
        campaign = update_campaign(campaign['id'], {'status': 'closed', 'deleted_at': None})
        _db_log('info', f'Campaign restored: {slug}')
        return jsonify(campaign)

    updates = {k: data[k] for k in UPDATABLE_FIELDS if k in data}
    if not updates:
        return jsonify({'error': 'No valid fields to update'}), 400
    if 'status' in updates and updates['status'] not in ORGANIZER_STATUSES:
        return jsonify({'error': f"status must be one of: {', '.join(ORGANIZER_STATUSES)}"}), 400

    return jsonify(update_campaign(campaign['id'], updates))


@campaigns_bp.route('/<slug>', methods=['DELETE'])
@login_required
def remove_campaign(slug):
    campaign, error = _load_owned(slug)
    if error:
        return error
    if campaign['status'] == 'deleted':
        return jsonify({'error': 'Campaign is already deleted'}), 400

    refund_results = []
    if request.args.get('refund_orders') == 'true' and campaign['payment_style'] == 'everyone_pays':
        for order in get_campaign_orders(campaign['id'], statuses=['paid']):
            if not order.get('stripe_payment_intent_id'):
                continue
            try:
                refund_payment_intent(order['stripe_payment_intent_id'])
                update_campaign_order(order['id'], status='cancelled')
                refund_results.append({'orderId': order['id'], 'success': True})
            except (stripe.StripeError, PaymentsNotConfigured) as e:
                logger.error(f"Refund failed for campaign order {order['id']}: {e}")
                refund_results.append({'orderId': order['id'], 'success': False, 'error': str(e)})

    update_campaign(campaign['id'], {'status': 'deleted', 'deleted_at': utc_now()})
    _db_log('warning', f'Campaign deleted: {slug}', {'refunds': len(refund_results)})
    return jsonify({
        'success': True,
        'refunds_processed': len(refund_results) > 0,
        'refund_results': refund_results,
    })


# ===================
# PARTICIPANT ORDERS
# ===================

@campaigns_bp.route('/<slug>/orders', methods=['GET'])
def campaign_orders(slug):
    campaign = get_campaign_by_slug(slug)
    if not campaign:
        return jsonify({'error': 'Campaign not found'}), 404

    orders = get_campaign_orders(campaign['id'])
    if _is_owner(campaign):
        garments = get_garments_by_ids([o.get('garment_id') for o in orders])
        for order in orders:
            order['garment'] = garments.get(order.get('garment_id'))
        return jsonify({'orders': orders})

    active = [o for o in orders if o['status'] != 'cancelled']
    return jsonify({
        'total_orders': len(active),
        'total_quantity': sum(o['quantity'] for o in active),
        'size_breakdown': breakdown(active, 'size'),
        'color_breakdown': breakdown(active, 'color'),
        'garment_breakdown': breakdown(active, 'garment_id'),
    })


def _resolve_item(campaign, item):
    """Validate one participant item. Returns (resolved, error)."""
    size = item.get('size')
    color = item.get('color')
    if not size or not color:
        return None, 'Size and color are required'

    quantity = item.get('quantity', 1)
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
        return None, 'Quantity must be at least 1'

    configs = campaign.get('garment_configs') or {}
    garment_id = item.get('garment_id') or campaign.get('garment_id')
    if configs:
        if garment_id not in configs:
            return None, 'Invalid garment selection'
        allowed_colors = configs[garment_id].get('colors') or []
    else:
        allowed_colors = campaign.get('selected_colors') or []

    if color not in allowed_colors:
        return None, 'Invalid color selection'

    return {
        'garment_id': garment_id,
        'size': size,
        'color': color,
        'quantity': quantity,
        'price_per_shirt': price_for_garment(campaign, garment_id),
    }, None


@campaigns_bp.route('/<slug>/orders', methods=['POST'])
def place_campaign_order(slug):
    data = request.get_json(silent=True) or {}
    name = (data.get('participant_name') or '').strip()
    email = (data.get('participant_email') or '').strip()
    if not name or not email:
        return jsonify({'error': 'participant_name and participant_email are required'}), 400
    if not is_valid_email(email):
        return jsonify({'error': 'Invalid email address'}), 400

    campaign = get_campaign_by_slug(slug)
    if not campaign:
        return jsonify({'error': 'Campaign not found'}), 404
    if campaign['status'] != 'active':
        return jsonify({'error': 'This campaign is no longer accepting orders'}), 400

    raw_items = data.get('items')
    if not isinstance(raw_items, list) or not raw_items:
        raw_items = [data]

    items = []
    for raw in raw_items:
        item, error = _resolve_item(campaign, raw if isinstance(raw, dict) else {})
        if error:
            return jsonify({'error': error}), 400
        items.append(item)

    requires_payment = campaign['payment_style'] == 'everyone_pays'
    status = 'pending' if requires_payment else 'confirmed'

    created = []
    for item in items:
        order = create_campaign_order(
            campaign['id'], name, email, item['garment_id'],
            item['size'], item['color'], item['quantity'], status
        )
        order['price_per_shirt'] = item['price_per_shirt']
        order['item_total'] = round_money(item['price_per_shirt'] * item['quantity'])
        created.append(order)

    amount_due = round_money(sum(o['item_total'] for o in created))
    _db_log('info', f'Campaign order placed on {slug}', {'orders': len(created), 'amount_due': amount_due})

    if len(created) == 1:
        payload = dict(created[0], requires_payment=requires_payment)
        if requires_payment:
            payload['amount_due'] = amount_due
        return jsonify(payload), 201

    return jsonify({
        'orders': created,
        'requires_payment': requires_payment,
        'amount_due': amount_due if requires_payment else 0,
        'primary_order_id': created[0]['id'],
    }), 201


# ===================
# PAYMENTS
# ===================

@campaigns_bp.route('/<slug>/pay', methods=['POST'])
@login_required
def organizer_pay(slug):
    campaign, error = _load_owned(slug)
    if error:
        return error
    if campaign['payment_style'] != 'organizer_pays':
        return jsonify({'error': 'This campaign does not require organizer payment'}), 400
    if campaign['status'] != 'active':
        return jsonify({'error': 'Campaign is not active'}), 400

    orders = get_campaign_orders(campaign['id'], statuses=['confirmed'])
    if not orders:
        return jsonify({'error': 'No orders to pay for'}), 400

    total = sum(_order_price(campaign, o) * o['quantity'] for o in orders)
    total_quantity = sum(o['quantity'] for o in orders)
    amount = to_cents(total)

    try:
        intent = create_payment_intent(
            amount,
            {
                'type': 'campaign_organizer_payment',
                'campaign_id': campaign['id'],
                'campaign_slug': campaign['slug'],
                'campaign_name': campaign['name'],
                'total_quantity': str(total_quantity),
                'order_count': str(len(orders)),
            },
            receipt_email=campaign.get('organizer_email'),
            description=f"{campaign['name']} - {total_quantity} shirts",
        )
    except PaymentsNotConfigured as e:
        return jsonify({'error': str(e)}), 500
    except stripe.StripeError as e:
        return _stripe_error(e, {'campaign_id': campaign['id']})

    return jsonify({
        'clientSecret': intent['client_secret'],
        'amount': amount,
        'totalQuantity': total_quantity,
        'orderCount': len(orders),
    })


@campaigns_bp.route('/<slug>/pay', methods=['PATCH'])
@login_required
def confirm_organizer_pay(slug):
    campaign, error = _load_owned(slug)
    if error:
        return error
    data = request.get_json(silent=True) or {}
    payment_intent_id = data.get('paymentIntentId')
    if not payment_intent_id:
        return jsonify({'error': 'Payment intent ID required'}), 400

    try:
        intent = retrieve_payment_intent(payment_intent_id)
    except PaymentsNotConfigured as e:
        return jsonify({'error': str(e)}), 500
    except stripe.StripeError as e:
        return _stripe_error(e, {'campaign_id': campaign['id']})

    if intent['status'] != 'succeeded':
        return jsonify({'error': 'Payment not completed'}), 400
    if (intent.get('metadata') or {}).get('campaign_id') != campaign['id']:
        return jsonify({'error': 'Payment does not match campaign'}), 400

    campaign = update_campaign(campaign['id'], {'status': 'closed'})
    _db_log('info', f'Organizer payment confirmed for {slug}', {'payment_intent_id': payment_intent_id})
    return jsonify({'success': True, 'campaign': campaign})


@campaigns_bp.route('/<slug>/orders/<order_id>/pay', methods=['POST'])
def participant_pay(slug, order_id):
    campaign = get_campaign_by_slug(slug)
    if not campaign:
        return jsonify({'error': 'Campaign not found'}), 404
    if campaign['payment_style'] != 'everyone_pays':
        return jsonify({'error': 'Payment not required for this campaign'}), 400

    order = get_campaign_order(order_id, campaign_id=campaign['id'])
    if not order:
        return jsonify({'error': 'Order not found'}), 404
    if order['status'] == 'paid':
        return jsonify({'error': 'Order is already paid'}), 400

    amount = round_money(_order_price(campaign, order) * order['quantity'])
    try:
        intent = create_payment_intent(
            to_cents(amount),
            {
                'campaign_id': campaign['id'],
                'campaign_order_id': order['id'],
                'campaign_name': campaign['name'],
            },
            receipt_email=order['participant_email'],
            description=f"{campaign['name']} - {order['quantity']} x {order['size']} {order['color']}",
        )
    except PaymentsNotConfigured as e:
        return jsonify({'error': str(e)}), 500
    except stripe.StripeError as e:
        return _stripe_error(e, {'campaign_order_id': order['id']})

    update_campaign_order(order['id'], stripe_payment_intent_id=intent['id'])
    return jsonify({'clientSecret': intent['client_secret'], 'amount': amount})


@campaigns_bp.route('/<slug>/orders/<order_id>/pay', methods=['PATCH'])
def confirm_participant_pay(slug, order_id):
    campaign = get_campaign_by_slug(slug)
    if not campaign:
        return jsonify({'error': 'Campaign not found'}), 404
    order = get_campaign_order(order_id, campaign_id=campaign['id'])
    if not order:
        return jsonify({'error': 'Order not found'}), 404
    if order['status'] == 'paid':
        return jsonify({'success': True, 'already_paid': True})

    if order.get('stripe_payment_intent_id'):
        try:
            intent = retrieve_payment_intent(order['stripe_payment_intent_id'])
        except PaymentsNotConfigured as e:
            return jsonify({'error': str(e)}), 500
        except stripe.StripeError as e:
            return _stripe_error(e, {'campaign_order_id': order['id']})
        if intent['status'] != 'succeeded':
            return jsonify({'error': 'Payment not completed'}), 400

    amount = round_money(_order_price(campaign, order) * order['quantity'])
    mark_campaign_order_paid(order['id'], amount)
    return jsonify({'success': True, 'already_paid': False})


# ===================
# STATS & FULFILLMENT
# ===================

@campaigns_bp.route('/<slug>/stats', methods=['GET'])
@login_required
def campaign_stats(slug):
    campaign, error = _load_owned(slug)
    if error:
        return error

    counted = counted_orders(campaign, get_campaign_orders(campaign['id']))
    stats = {
        'order_count': len(counted),
        'total_quantity': sum(o['quantity'] for o in counted),
        'size_breakdown': breakdown(counted, 'size'),
        'color_breakdown': breakdown(counted, 'color'),
    }
    if campaign['payment_style'] == 'everyone_pays':
        stats['total_revenue'] = round_money(sum(o['amount_paid'] or 0 for o in counted))
    return jsonify(stats)


@campaigns_bp.route('/<slug>/create-order', methods=['POST'])
@login_required
def create_production_order(slug):
    campaign, error = _load_owned(slug)
    if error:
        return error
    data = request.get_json(silent=True) or {}

    errors = validate_shipping_address(data.get('shipping_address'), require_country=False)
    if errors:
        return jsonify({'error': 'Invalid shipping address', 'details': errors}), 400
    if campaign.get('final_order_id'):
        return jsonify({'error': 'Production order already exists for this campaign'}), 400
    if campaign['status'] not in ('closed', 'active'):
        return jsonify({'error': 'Campaign must be active or closed to create an order'}), 400

    customer = AccountDatabase.get_customer(current_user_id()) or {}
    try:
        order = create_order_from_campaign(
            campaign,
            data['shipping_address'],
            is_fully_paid=campaign['payment_style'] == 'everyone_pays',
            payment_intent_id=data.get('paymentIntentId'),
            organizer_name=campaign.get('organizer_name') or customer.get('name') or 'Campaign Organizer',
            organizer_email=campaign.get('organizer_email') or customer.get('email'),
        )
    except CampaignOrderError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        LoggingService.log_error_with_traceback('campaigns', e, {'slug': slug})
        return jsonify({'error': 'Failed to create order'}), 500

    return jsonify({'success': True, 'order_id': order['id']})
