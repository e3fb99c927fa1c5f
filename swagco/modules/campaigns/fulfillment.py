"""
Campaign Fulfillment
====================

Turns the participant orders of a campaign into a single production order:
aggregation by garment / colour / size, campaign pricing (no setup fees),
artwork hand-off and notification emails.
"""

import logging

from swagco.modules.artwork.models import create_artwork_file
from swagco.modules.email.email_service import email_service
from swagco.modules.garments.models import get_garment_names
from swagco.modules.orders.models import create_order, log_activity
from swagco.modules.pricing.calculator import round_money
from swagco.modules.pricing.models import get_deposit_percentage
from .models import get_campaign_orders, update_campaign, price_for_garment

logger = logging.getLogger(__name__)

DEFAULT_GARMENT_KEY = 'default'


class CampaignOrderError(Exception):
    """Raised when a campaign cannot be turned into a production order"""


def aggregate_campaign_orders(orders):
    """Group participant orders into production quantities.

    Returns a dict with garment_id, garment_color, color_size_quantities,
    selected_garments, total_quantity and is_multi_garment. Multi-garment
    campaigns fill selected_garments; single-garment ones fill the flat fields.
    """
    groups = {}
    for order in orders:
        groups.setdefault(order.get('garment_id') or DEFAULT_GARMENT_KEY, []).append(order)

    real_ids = [gid for gid in groups if gid != DEFAULT_GARMENT_KEY]
    is_multi = len(real_ids) > 1

    total_quantity = 0
    selected_garments = {}
    garment_id = ''
    garment_color = ''
    color_size_quantities = {}

    for gid, group in groups.items():
        sizes_by_color = {}
        for order in group:
            sizes = sizes_by_color.setdefault(order['color'], {})
            sizes[order['size']] = sizes.get(order['size'], 0) + order['quantity']
            total_quantity += order['quantity']

        if is_multi:
            selected_garments[gid] = {
                'selectedColors': list(sizes_by_color.keys()),
                'colorSizeQuantities': sizes_by_color,
            }
        else:
            garment_id = gid if gid != DEFAULT_GARMENT_KEY else ''
            garment_color = next(iter(sizes_by_color), '')
            color_size_quantities = sizes_by_color

    return {
        'garment_id': garment_id,
        'garment_color': garment_color,
        'color_size_quantities': color_size_quantities,
        'selected_garments': selected_garments,
        'total_quantity': total_quantity,
        'is_multi_garment': is_multi,
    }


def _campaign_pricing(campaign, aggregated):
    """Returns (pricing_breakdown, total_cost) at campaign prices"""
    total_quantity = aggregated['total_quantity']

    if aggregated['is_multi_garment'] and campaign.get('garment_configs'):
        names = get_garment_names(list(aggregated['selected_garments'].keys()))
        garment_breakdown = []
        total = 0
        for gid, selection in aggregated['selected_garments'].items():
            qty = sum(sum(sizes.values()) for sizes in selection['colorSizeQuantities'].values())
            if qty <= 0:
                continue
            price = price_for_garment(campaign, gid)
            garment_breakdown.append({
                'garment_id': gid,
                'name': names.get(gid, 'Unknown'),
                'quantity': qty,
                'cost_per_shirt': price,
                'total': round_money(price * qty),
            })
            total += price * qty
        per_shirt = total / total_quantity
        breakdown = {'garment_breakdown': garment_breakdown}
    else:
        per_shirt = campaign['price_per_shirt']
        total = per_shirt * total_quantity
        breakdown = {}

    breakdown.update({
        'garment_cost_per_shirt': per_shirt,
        'print_cost_per_shirt': 0,
        'setup_fees': 0,
        'total_screens': 0,
        'per_shirt_total': per_shirt,
        'is_campaign_pricing': True,
    })
    return breakdown, round_money(total)


def create_order_from_campaign(campaign, shipping_address, is_fully_paid, payment_intent_id=None,
                               organizer_name=None, organizer_email=None):
    """Create the production order for a campaign and mark the campaign completed.

    Returns the new order. Raises CampaignOrderError when there are no
    paid (everyone_pays) or confirmed (organizer_pays) participant orders.
    """
    status = 'paid' if campaign['payment_style'] == 'everyone_pays' else 'confirmed'
    participant_orders = get_campaign_orders(campaign['id'], statuses=[status])
    if not participant_orders:
        raise CampaignOrderError(f'No {status} orders found for this campaign')

    for order in participant_orders:
        order['garment_id'] = order.get('garment_id') or campaign.get('garment_id')
    aggregated = aggregate_campaign_orders(participant_orders)

    pricing_breakdown, total_cost = _campaign_pricing(campaign, aggregated)
    deposit_amount = round_money(total_cost * get_deposit_percentage() / 100)
    balance_due = 0 if is_fully_paid else round_money(total_cost - deposit_amount)

    order = create_order({
        'customer_id': campaign['organizer_id'],
        'customer_name': organizer_name or campaign.get('organizer_name') or 'Campaign Organizer',
        'email': organizer_email or campaign.get('organizer_email') or '',
        'phone': '',
        'shipping_address': shipping_address,
        'garment_id': aggregated['garment_id'] or campaign.get('garment_id'),
        'garment_color': aggregated['garment_color'],
        'size_quantities': {},
        'color_size_quantities': aggregated['color_size_quantities'],
        'selected_garments': aggregated['selected_garments'] or None,
        'total_quantity': aggregated['total_quantity'],
        'print_config': campaign['print_config'],
        'total_cost': total_cost,
        'deposit_amount': deposit_amount,
        'deposit_paid': True,
        'balance_due': balance_due,
        'pricing_breakdown': pricing_breakdown,
        'status': 'pending_art_review',
        'stripe_payment_intent_id': payment_intent_id,
        'internal_notes': f"Created from campaign: {campaign['name']} ({campaign['slug']})",
    })

    transforms = campaign.get('artwork_transforms') or {}
    for location, url in (campaign.get('artwork_urls') or {}).items():
        if not url:
            continue
        extension = url.rsplit('.', 1)[-1] if '.' in url else ''
        create_artwork_file(
            order['id'], location, url,
            f'campaign-artwork-{location}.{extension}' if extension else f'campaign-artwork-{location}',
            transform=transforms.get(location),
        )

    log_activity(order['id'], 'status_change', f"Order created from campaign \"{campaign['name']}\"")
    update_campaign(campaign['id'], {'final_order_id': order['id'], 'status': 'completed'})
    logger.info(f"Campaign {campaign['slug']} fulfilled as order {order['id']}")

    try:
        email_service.send_order_confirmation(order)
        email_service.send_admin_order_notification(order)
    except Exception as e:
        logger.error(f"Campaign order emails failed for {order['id']}: {e}")

    return order
