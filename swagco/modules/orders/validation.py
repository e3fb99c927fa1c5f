"""
Order payload validation.

Each validator returns a list of human-readable error strings; an empty
list means the payload is acceptable.
"""

from swagco.modules.email.email_service import is_valid_email
from swagco.modules.pricing.validation import validate_print_config

SIZES = ('XS', 'S', 'M', 'L', 'XL', '2XL', '3XL')


def _text(value):
    return value.strip() if isinstance(value, str) else ''


def validate_shipping_address(address, require_country=True):
    if not isinstance(address, dict):
        return ['shipping_address is required']

    errors = []
    if not _text(address.get('line1')):
        errors.append('Address is required')
    if not _text(address.get('city')):
        errors.append('City is required')
    if len(_text(address.get('state'))) < 2:
        errors.append('State is required')
    if len(_text(address.get('postal_code'))) < 5:
        errors.append('Postal code is required')
    if require_country and len(_text(address.get('country'))) < 2:
        errors.append('Country is required')
    return errors


def validate_size_quantities(size_quantities, label='size_quantities'):
    if not isinstance(size_quantities, dict):
        return [f'{label} must be an object']

    errors = []
    for size, qty in size_quantities.items():
        if size not in SIZES:
            errors.append(f'{label}: unknown size {size}')
        elif not isinstance(qty, int) or isinstance(qty, bool) or qty < 0:
            errors.append(f'{label}: quantity for {size} must be a non-negative integer')
    return errors


def validate_color_size_quantities(color_size_quantities, label='color_size_quantities'):
    if not isinstance(color_size_quantities, dict):
        return [f'{label} must be an object']

    errors = []
    for color, sizes in color_size_quantities.items():
        errors.extend(validate_size_quantities(sizes, f'{label}.{color}'))
    return errors


def validate_order(data, max_colors=4):
    """Validate an order creation payload"""
    errors = []

    if not _text(data.get('customer_name')):
        errors.append('Name is required')
    if not is_valid_email(data.get('email')):
        errors.append('Valid email is required')
    if len(_text(data.get('phone'))) < 10:
        errors.append('Phone number is required')

    errors.extend(validate_shipping_address(data.get('shipping_address')))
    errors.extend(validate_print_config(data.get('print_config'), max_colors))

    selected_garments = data.get('selected_garments')
    if selected_garments:
        if not isinstance(selected_garments, dict):
            errors.append('selected_garments must be an object')
        else:
            for garment_id, selection in selected_garments.items():
                if not isinstance(selection, dict):
                    errors.append(f'selected_garments.{garment_id} must be an object')
                    continue
                errors.extend(validate_color_size_quantities(
                    selection.get('colorSizeQuantities') or {}, f'selected_garments.{garment_id}'
                ))
    elif not data.get('garment_id'):
        errors.append('garment_id is required')

    has_single = bool(data.get('garment_color')) and data.get('size_quantities') is not None
    has_multi = data.get('color_size_quantities') is not None
    if not has_single and not has_multi:
        errors.append('Either single-color or multi-color quantities must be provided')
    if data.get('size_quantities') is not None:
        errors.extend(validate_size_quantities(data['size_quantities']))
    if has_multi:
        errors.extend(validate_color_size_quantities(data['color_size_quantities']))

    return errors
