"""
Typed Settings Schema (Pydantic)
================================

Provides typed, validated configuration for the options analytics engine.

Usage:
    from config.settings_schema import load_validated_settings

    settings = load_validated_settings()
    rate = settings.pricing.risk_free_rate
    cap = settings.sizing.max_kelly_fraction
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

from config.settings_loader import load_settings
from core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


# ============================================================================
# Schema Definitions
# ============================================================================

class SystemConfig(BaseModel):
    """System-level configuration."""
    name: str = Field(default="options-analytics", description="System name")
    version: str = Field(default="1.0.0", description="System version")


class IVSolverConfig(BaseModel):
    """Implied volatility solver limits."""
    max_iterations: int = Field(default=100, ge=1, le=10_000)
    tolerance: float = Field(default=1e-5, gt=0, le=0.01)
    min_vol: float = Field(default=0.001, gt=0)
    max_vol: float = Field(default=5.0, gt=0, le=20.0)

    @model_validator(mode="after")
    def _check_bracket(self) -> "IVSolverConfig":
        if self.min_vol >= self.max_vol:
            raise ValueError(
                f"iv_solver.min_vol ({self.min_vol}) must be below max_vol ({self.max_vol})"
            )
        return self


class PricingConfig(BaseModel):
    """Pricing model defaults."""
    risk_free_rate: float = Field(default=0.05, ge=-0.05, le=0.5)
    default_volatility: float = Field(default=0.30, gt=0, le=5.0)
    iv_solver: IVSolverConfig = Field(default_factory=IVSolverConfig)


class PayoffConfig(BaseModel):
    """Payoff sampling grid."""
    grid_low_multiplier: float = Field(default=0.7, ge=0, lt=1.0)
    grid_high_multiplier: float = Field(default=1.3, gt=1.0, le=10.0)
    strike_margin_pct: float = Field(default=0.10, ge=0, le=1.0)
    steps: int = Field(default=100, ge=1, le=100_000)


class RiskThresholds(BaseModel):
    """Committed-capital buckets for Kelly risk levels."""
    safe: float = Field(default=0.10, gt=0, le=1.0)
    moderate: float = Field(default=0.25, gt=0, le=1.0)
    high: float = Field(default=0.50, gt=0, le=1.0)

    @model_validator(mode="after")
    def _check_ordering(self) -> "RiskThresholds":
        if not (self.safe <= self.moderate <= self.high):
            raise ValueError("risk_thresholds must satisfy safe <= moderate <= high")
        return self


class SizingConfig(BaseModel):
    """Kelly position sizing."""
    max_kelly_fraction: float = Field(default=1.0, gt=0, le=1.0)
    min_trades: int = Field(default=10, ge=0)
    default_win_rate: float = Field(default=0.50, gt=0, lt=1.0)
    default_win_loss_ratio: float = Field(default=1.5, gt=0)
    risk_thresholds: RiskThresholds = Field(default_factory=RiskThresholds)


class LoggingConfig(BaseModel):
    """Structured event log."""
    event_log: Optional[str] = Field(default=None, description="JSONL event log path")
    event_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="DEBUG", description="Lowest level written to the event log"
    )


class EngineSettings(BaseModel):
    """Root settings model."""
    system: SystemConfig = Field(default_factory=SystemConfig)
    pricing: PricingConfig = Field(default_factory=PricingConfig)
    payoff: PayoffConfig = Field(default_factory=PayoffConfig)
    sizing: SizingConfig = Field(default_factory=SizingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"extra": "allow"}


# ============================================================================
# Loading Functions
# ============================================================================

def validate_settings(raw: Dict[str, Any]) -> EngineSettings:
    """
    Validate a raw settings dictionary.

    Raises:
        ConfigurationError: If any value is out of range or mistyped
    """
    try:
        return EngineSettings.model_validate(raw or {})
    except ValidationError as e:
        logger.error(f"Settings validation failed: {e}")
        raise ConfigurationError(
            "Engine settings failed validation",
            context={"errors": len(e.errors())},
            cause=e,
        ) from e


def load_validated_settings(force_reload: bool = False) -> EngineSettings:
    """
    Load and validate settings from base.yaml.

    Returns:
        Validated EngineSettings object

    Raises:
        ConfigurationError: If settings are invalid
    """
    return validate_settings(load_settings(force_reload=force_reload))
