"""Access to the ``[custom]`` section of the domain configuration."""

from protean.utils.globals import current_domain

_DEFAULTS = {
    "restaurant_name": "Spicy Biryani",
    "strict_transitions": False,
    "fleet_list_limit": 500,
    "operator_username": "admin",
    "operator_password": "admin123",
}


def setting(key: str, domain=None):
    """Return a custom setting, falling back to the built-in default.

    Uses the active domain context unless ``domain`` is given explicitly.
    """
    source = domain if domain is not None else current_domain
    custom = source.config.get("custom") or {}
    return custom.get(key, _DEFAULTS[key])
