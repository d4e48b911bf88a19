"""
Exception Hierarchy for the Options Analytics Engine.

All engine exceptions inherit from OptionsEngineError so callers can catch
one type at the engine boundary.

Usage:
    from core.exceptions import OptionsEngineError, PricingError

    try:
        pricing = price(spot, strike, t, r, vol, is_call=True)
    except PricingError as e:
        # Numeric failure inside the closed-form model
        log_and_degrade(e)
    except OptionsEngineError as e:
        # Catch-all for engine errors
        log_error(e)

Structural problems with a strategy's legs are NOT exceptions: they are
reported as messages on ValidationResult. Exceptions are reserved for
malformed inputs and numeric failures.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional


# =============================================================================
# BASE EXCEPTION
# =============================================================================

class OptionsEngineError(Exception):
    """
    Base exception for all options engine errors.

    Attributes:
        error_code: Unique identifier for this error type
        context: Additional context about the error
        cause: Underlying exception, if any
        timestamp: When the error occurred (UTC)
    """
    error_code: str = "ENGINE_ERROR"

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        self.message = message
        self.context = context or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(message)

    def __str__(self) -> str:
        base = f"[{self.error_code}] {self.message}"
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base = f"{base} ({ctx_str})"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }


# =============================================================================
# INPUT ERRORS
# =============================================================================

class InvalidInputError(OptionsEngineError, ValueError):
    """
    Raised when a caller passes arguments the engine cannot work with.

    Examples:
    - Sensitivity sweep with zero steps or max < min
    - Non-positive account balance for position sizing
    """
    error_code = "INVALID_INPUT"


class ContractDataError(InvalidInputError):
    """
    Raised when an option contract snapshot or leg violates its invariants.

    Examples:
    - Strike price <= 0
    - Negative implied volatility
    - Leg quantity <= 0
    """
    error_code = "CONTRACT_DATA_INVALID"


# =============================================================================
# NUMERIC ERRORS
# =============================================================================

class PricingError(OptionsEngineError):
    """
    Raised by the pricing model when it cannot produce a finite result.

    The Greeks engine catches this and degrades to cached Greeks; it
    should never reach a caller of calculate_greeks().
    """
    error_code = "PRICING_FAILED"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(OptionsEngineError):
    """
    Raised when engine settings are missing or fail validation.
    """
    error_code = "CONFIG_ERROR"


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_error_code(error: Exception) -> str:
    """
    Get the error code for an exception.

    Args:
        error: The exception to get the code for

    Returns:
        Error code string, or "UNKNOWN" for non-engine exceptions
    """
    if isinstance(error, OptionsEngineError):
        return error.error_code
    return "UNKNOWN"
