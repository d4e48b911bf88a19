"""
YAML settings loader for the options analytics engine.
Provides cached, dot-path access to base.yaml settings.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv


_settings_cache: Optional[Dict[str, Any]] = None


def get_config_path() -> Path:
    """Return path to base.yaml config file."""
    # .env may carry OPTIONS_ENGINE_CONFIG_PATH
    load_dotenv()
    env_path = os.getenv("OPTIONS_ENGINE_CONFIG_PATH")
    if env_path:
        return Path(env_path)
    return Path(__file__).parent / "base.yaml"


def load_settings(force_reload: bool = False) -> Dict[str, Any]:
    """
    Load, validate and cache settings from base.yaml.

    Raises:
        ConfigurationError: If the file holds out-of-range or mistyped values
    """
    global _settings_cache
    if _settings_cache is not None and not force_reload:
        return _settings_cache

    config_path = get_config_path()
    if not config_path.exists():
        _settings_cache = {}
        return _settings_cache

    with open(config_path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    # Deferred: the schema module imports this one
    from config.settings_schema import validate_settings

    validate_settings(raw)
    _settings_cache = raw
    return _settings_cache


def reset_settings_cache() -> None:
    """Drop cached settings so the next access re-reads the file."""
    global _settings_cache
    _settings_cache = None


def get_setting(path: str, default: Any = None) -> Any:
    """
    Get a nested setting by dot-notation path.
    Example: get_setting("pricing.risk_free_rate", 0.05)
    """
    settings = load_settings()
    keys = path.split(".")
    value = settings
    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value


# Specific config accessors for clarity

def get_risk_free_rate() -> float:
    """Annualised risk-free rate used when the caller does not pass one."""
    return float(get_setting("pricing.risk_free_rate", 0.05))


def get_default_volatility() -> float:
    """Implied volatility assumed for contracts that carry none."""
    return float(get_setting("pricing.default_volatility", 0.30))


def get_pricing_config() -> Dict[str, Any]:
    """Get pricing model configuration."""
    return {
        "risk_free_rate": get_risk_free_rate(),
        "default_volatility": get_default_volatility(),
        "iv_max_iterations": int(get_setting("pricing.iv_solver.max_iterations", 100)),
        "iv_tolerance": float(get_setting("pricing.iv_solver.tolerance", 1e-5)),
        "iv_min_vol": float(get_setting("pricing.iv_solver.min_vol", 0.001)),
        "iv_max_vol": float(get_setting("pricing.iv_solver.max_vol", 5.0)),
    }


def get_payoff_config() -> Dict[str, Any]:
    """Get payoff sampling grid configuration."""
    return {
        "grid_low_multiplier": float(get_setting("payoff.grid_low_multiplier", 0.7)),
        "grid_high_multiplier": float(get_setting("payoff.grid_high_multiplier", 1.3)),
        "strike_margin_pct": float(get_setting("payoff.strike_margin_pct", 0.10)),
        "steps": int(get_setting("payoff.steps", 100)),
    }


def get_sizing_config() -> Dict[str, Any]:
    """Get Kelly position sizing configuration."""
    return {
        "max_kelly_fraction": float(get_setting("sizing.max_kelly_fraction", 1.0)),
        "min_trades": int(get_setting("sizing.min_trades", 10)),
        "default_win_rate": float(get_setting("sizing.default_win_rate", 0.50)),
        "default_win_loss_ratio": float(get_setting("sizing.default_win_loss_ratio", 1.5)),
        "risk_thresholds": {
            "safe": float(get_setting("sizing.risk_thresholds.safe", 0.10)),
            "moderate": float(get_setting("sizing.risk_thresholds.moderate", 0.25)),
            "high": float(get_setting("sizing.risk_thresholds.high", 0.50)),
        },
    }


def get_event_log_path() -> Optional[str]:
    """Path of the structured event log, or None when file logging is off."""
    value = get_setting("logging.event_log", None)
    return str(value) if value else None


def get_event_log_level() -> str:
    """Lowest level written to the structured event log."""
    return str(get_setting("logging.event_level", "DEBUG")).upper()
