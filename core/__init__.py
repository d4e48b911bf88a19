"""
Core Infrastructure
====================

Foundational components shared by the options analytics engine.

Components:
- exceptions: Engine exception hierarchy
- structured_log: JSON event logging
"""

from .exceptions import (
    OptionsEngineError,
    InvalidInputError,
    ContractDataError,
    PricingError,
    ConfigurationError,
    get_error_code,
)
from .structured_log import jlog, configure_event_log, configure_from_settings

__all__ = [
    # Exceptions
    'OptionsEngineError',
    'InvalidInputError',
    'ContractDataError',
    'PricingError',
    'ConfigurationError',
    'get_error_code',
    # Structured Logging
    'jlog',
    'configure_event_log',
    'configure_from_settings',
]
