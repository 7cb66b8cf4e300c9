from flask import current_app, has_app_context

DEFAULTS = {
    'LOW_STOCK_THRESHOLD': 50,
    'NEAR_CAPACITY_PERCENT': 90.0,
    'CAPACITY_SERIALIZATION': True,
}


def get_setting(key, default=None):
    """
    Read a setting from the active Flask app config.

    Outside an application context (pure unit tests, scripts) the built-in
    defaults are used.
    """
    fallback = DEFAULTS.get(key, default) if default is None else default
    if has_app_context():
        return current_app.config.get(key, fallback)
    return fallback
