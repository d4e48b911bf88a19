"""
Engine configuration: YAML defaults with a typed pydantic schema.
"""

from .settings_loader import (
    get_setting,
    load_settings,
    get_pricing_config,
    get_payoff_config,
    get_sizing_config,
)

__all__ = [
    'get_setting',
    'load_settings',
    'get_pricing_config',
    'get_payoff_config',
    'get_sizing_config',
]
