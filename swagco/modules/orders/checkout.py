"""
Checkout pricing shared by direct orders and pay-first (pending) orders.

Totals are always computed server-side; client-supplied totals are ignored.
"""

import logging

from swagco.modules.discounts.models import DiscountError, apply_discount_code
from swagco.modules.garments.models import get_garment_names
from swagco.modules.pricing.calculator import (
    PricingError, round_money, calculate_quote, calculate_multi_garment_breakdown,
    calculate_total_quantity, calculate_total_quantity_from_colors, calculate_garment_quantity
)
from swagco.modules.pricing.models import get_deposit_percentage, get_min_order_quantity, get_max_ink_colors
from swagco.modules.pricing.validation import is_number
from .validation import validate_order

logger = logging.getLogger(__name__)


class CheckoutError(Exception):
    """Checkout data that cannot be turned into an order (HTTP 400)"""

    def __init__(self, message, details=None):
        super().__init__(message)
        self.details = details

    def to_dict(self):
        payload = {'error': str(self)}
        if self.details:
            payload['details'] = self.details
        return payload


def total_quantity(data):
    if data.get('selected_garments'):
        return sum(calculate_garment_quantity(sel) for sel in data['selected_garments'].values())
    if data.get('color_size_quantities') is not None:
        return calculate_total_quantity_from_colors(data['color_size_quantities'])
    return calculate_total_quantity(data.get('size_quantities'))


def pricing_breakdown(data, quantity):
    """Returns (pricing_breakdown, total) for single- or multi-garment orders"""
    print_config = data['print_config']
    selected_garments = data.get('selected_garments')
    if selected_garments:
        names = get_garment_names(list(selected_garments.keys()))
        return calculate_multi_garment_breakdown(selected_garments, quantity, print_config, names)

    quote = calculate_quote(data['garment_id'], quantity, print_config)
    return {
        'garment_cost_per_shirt': quote['garment_cost_per_shirt'],
        'print_cost_per_shirt': quote['print_cost_per_shirt'],
        'setup_fees': quote['setup_fees'],
        'total_screens': quote['total_screens'],
        'per_shirt_total': quote['per_shirt_price'],
    }, quote['total']


def price_checkout(data):
    """Validate and price a checkout payload.

    Returns the order columns derived from it: customer and garment details,
    quantities, pricing breakdown, discount and the deposit / balance split.
    A discount_code is re-validated against the computed subtotal.
    Raises CheckoutError.
    """
    errors = validate_order(data, get_max_ink_colors())
    if errors:
        raise CheckoutError('Invalid order data', errors)

    quantity = total_quantity(data)
    min_qty = get_min_order_quantity()
    if quantity < min_qty:
        raise CheckoutError(f'Minimum order quantity is {min_qty} pieces')

    try:
        breakdown, total = pricing_breakdown(data, quantity)
    except PricingError as e:
        raise CheckoutError(str(e))

    discount_code_id = data.get('discount_code_id')
    discount_amount = data.get('discount_amount') or 0
    if not is_number(discount_amount) or discount_amount < 0:
        raise CheckoutError('discount_amount must be a non-negative number')

    if data.get('discount_code'):
        try:
            discount_code, discount_amount = apply_discount_code(data['discount_code'], total)
        except DiscountError as e:
            raise CheckoutError(str(e))
        discount_code_id = discount_code['id']

    total = round_money(max(0, total - discount_amount))
    deposit_amount = round_money(total * get_deposit_percentage() / 100)

    return {
        'customer_name': data['customer_name'].strip(),
        'email': data['email'].strip(),
        'phone': data['phone'],
        'shipping_address': data['shipping_address'],
        'organization_name': data.get('organization_name') or None,
        'need_by_date': data.get('need_by_date') or None,
        'garment_id': data.get('garment_id') or next(iter(data.get('selected_garments') or {}), None),
        'garment_color': data.get('garment_color') or next(iter(data.get('color_size_quantities') or {}), ''),
        'size_quantities': data.get('size_quantities') or {},
        'color_size_quantities': data.get('color_size_quantities'),
        'selected_garments': data.get('selected_garments') or None,
        'total_quantity': quantity,
        'print_config': data['print_config'],
        'total_cost': total,
        'deposit_amount': deposit_amount,
        'balance_due': round_money(total - deposit_amount),
        'discount_code_id': discount_code_id,
        'discount_amount': discount_amount,
        'pricing_breakdown': breakdown,
    }
