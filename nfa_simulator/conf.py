from django.conf import settings

DEFAULTS = {
    # JSON key that marks an epsilon move in a definition file
    'EPSILON_KEY': '',
    'DEFINITION_PATH': None,
    'EXIT_WORD': 'exit',
}


def get_setting(name: str):
    """
    Read one option from the NFA_SIMULATOR settings dict, falling back to DEFAULTS.
    """
    if name not in DEFAULTS:
        raise KeyError(f'Unknown NFA_SIMULATOR setting: {name}')

    overrides = getattr(settings, 'NFA_SIMULATOR', {})
    return overrides.get(name, DEFAULTS[name])
