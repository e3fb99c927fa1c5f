"""
Print configuration validation shared by quotes, orders and campaigns.
"""

PRINT_LOCATIONS = ('front', 'back', 'left_chest', 'right_chest', 'full_back')


def is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_print_config(print_config, max_colors=4):
    """Return a list of error strings for a print_config payload.

    Expected shape: {"locations": {"front": {"enabled": true, "num_colors": 2}, ...}}
    """
    if not isinstance(print_config, dict):
        return ['print_config is required']

    locations = print_config.get('locations')
    if not isinstance(locations, dict):
        return ['print_config.locations must be an object']

    errors = []
    for location, settings in locations.items():
        if location not in PRINT_LOCATIONS:
            errors.append(f'Unknown print location: {location}')
            continue
        if not isinstance(settings, dict):
            errors.append(f'{location}: settings must be an object')
            continue
        if not isinstance(settings.get('enabled'), bool):
            errors.append(f'{location}: enabled must be true or false')
        num_colors = settings.get('num_colors')
        if not is_number(num_colors) or num_colors < 1 or num_colors > max_colors:
            errors.append(f'{location}: num_colors must be between 1 and {max_colors}')
    return errors
