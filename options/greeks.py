"""
Greeks Engine.

Per-contract Greeks from the Black-Scholes model, what-if scenarios,
net strategy Greeks and spot sensitivity sweeps.

When the model cannot price a contract the engine degrades to the
provider's cached Greeks and tags the result FALLBACK instead of raising.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import pandas as pd

from config.settings_loader import get_default_volatility, get_risk_free_rate
from core.exceptions import InvalidInputError, PricingError
from core.structured_log import jlog
from options.black_scholes import price as bs_price
from options.models import (
    SHARES_PER_CONTRACT,
    GreeksData,
    GreeksResult,
    OptionContract,
    OptionType,
    StrategyLeg,
)

logger = logging.getLogger(__name__)

SECONDS_PER_YEAR = 365 * 24 * 60 * 60

# Pricer failures the engine degrades on
_PRICER_ERRORS = (PricingError, ArithmeticError)


@dataclass(frozen=True)
class Scenario:
    """What-if shock. Changes are decimal fractions (0.10 = +10%)."""
    price_change_pct: float = 0.0
    vol_change_pct: float = 0.0
    days_passed: float = 0.0


@dataclass(frozen=True)
class PriceRange:
    """Spot range for a sensitivity sweep; steps intervals give steps + 1 points."""
    min: float
    max: float
    steps: int


@dataclass(frozen=True)
class SensitivityPoint:
    price: float
    delta: float
    gamma: float
    theta: float
    vega: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "price": self.price,
            "delta": self.delta,
            "gamma": self.gamma,
            "theta": self.theta,
            "vega": self.vega,
        }


@dataclass(frozen=True)
class LegGreeks:
    leg: StrategyLeg
    result: GreeksResult

    def to_dict(self) -> Dict[str, Any]:
        return {**self.leg.to_dict(), "greeks": self.result.to_dict()}


@dataclass(frozen=True)
class StrategyGreeks:
    """Net Greeks of a multi-leg position (per share, signed by side and quantity)."""
    net_delta: float
    net_gamma: float
    net_theta: float
    net_vega: float
    net_rho: float
    total_cost: float  # Positive = net cash paid
    legs: Tuple[LegGreeks, ...]

    @property
    def any_fallback(self) -> bool:
        return any(lg.result.is_fallback for lg in self.legs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "net_delta": round(self.net_delta, 4),
            "net_gamma": round(self.net_gamma, 6),
            "net_theta": round(self.net_theta, 4),
            "net_vega": round(self.net_vega, 4),
            "net_rho": round(self.net_rho, 4),
            "total_cost": round(self.total_cost, 2),
            "any_fallback": self.any_fallback,
            "legs": [lg.to_dict() for lg in self.legs],
        }


# =============================================================================
# Time
# =============================================================================

def _as_utc(value: Union[str, date, datetime]) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00")) if "T" in value else date.fromisoformat(value[:10])
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    # A bare date means midnight UTC of that day
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def time_to_expiry(
    expiration: Union[str, date, datetime],
    now: Optional[datetime] = None,
) -> float:
    """
    Years until expiration, floored at 0.

    Args:
        expiration: Expiry as date (00:00 UTC), datetime or ISO string
        now: Reference time, defaults to the current UTC time

    Returns:
        max(0, (expiry - now) / 365 days)
    """
    now_utc = _as_utc(now) if now is not None else datetime.now(timezone.utc)
    seconds = (_as_utc(expiration) - now_utc).total_seconds()
    return max(0.0, seconds / SECONDS_PER_YEAR)


# =============================================================================
# Single contract
# =============================================================================

def _contract_iv(contract: OptionContract) -> float:
    # Zero is treated as missing
    return contract.implied_volatility or get_default_volatility()


def _intrinsic(is_call: bool, spot: float, strike: float, iv: float) -> GreeksData:
    if is_call:
        delta = 1.0 if spot > strike else 0.0
        value = max(0.0, spot - strike)
    else:
        delta = -1.0 if spot < strike else 0.0
        value = max(0.0, strike - spot)
    return GreeksData(
        delta=delta, gamma=0.0, theta=0.0, vega=0.0, rho=0.0,
        theoretical_price=value, implied_volatility=iv,
    )


def _zero_spot_greeks(is_call: bool, strike: float, years: float, rate: float, iv: float) -> GreeksData:
    """Analytic S -> 0 limit: calls are worthless, puts pay the discounted strike."""
    if is_call or years <= 0:
        return _intrinsic(is_call, 0.0, strike, iv)
    discounted = strike * math.exp(-rate * years)
    return GreeksData(
        delta=-1.0,
        gamma=0.0,
        theta=rate * discounted / 365,
        vega=0.0,
        rho=-years * discounted / 100,
        theoretical_price=discounted,
        implied_volatility=iv,
    )


def _model_greeks(
    contract: OptionContract,
    spot: float,
    years: float,
    rate: float,
    iv: float,
) -> GreeksData:
    is_call = contract.option_type == OptionType.CALL
    if years <= 0:
        return _intrinsic(is_call, spot, contract.strike, iv)

    pricing = bs_price(spot, contract.strike, years, rate, iv, is_call)
    return GreeksData(
        delta=pricing.delta,
        gamma=pricing.gamma,
        theta=pricing.theta,
        vega=pricing.vega,
        rho=pricing.rho,
        theoretical_price=pricing.price,
        implied_volatility=iv,
    )


def _cached_greeks(contract: OptionContract, error: Exception) -> GreeksResult:
    greeks = GreeksData(
        delta=contract.delta or 0.0,
        gamma=contract.gamma or 0.0,
        theta=contract.theta or 0.0,
        vega=contract.vega or 0.0,
        rho=0.0,
        theoretical_price=contract.last,
        implied_volatility=_contract_iv(contract),
    )
    reason = str(error)
    logger.warning(f"Greeks fallback for {contract.contract_symbol}: {reason}")
    jlog(
        "greeks_fallback",
        level="WARNING",
        contract=contract.contract_symbol,
        strike=contract.strike,
        reason=reason,
    )
    return GreeksResult.fallback(greeks, reason)


def _greeks_at(
    contract: OptionContract,
    underlying_price: float,
    years: float,
    rate: float,
) -> GreeksResult:
    try:
        return GreeksResult.ok(_model_greeks(contract, underlying_price, years, rate, _contract_iv(contract)))
    except _PRICER_ERRORS as e:
        return _cached_greeks(contract, e)


def calculate_greeks(
    contract: OptionContract,
    underlying_price: float,
    risk_free_rate: Optional[float] = None,
    now: Optional[datetime] = None,
) -> GreeksResult:
    """
    Greeks and theoretical value of one contract.

    Uses the contract's implied volatility (the configured default when
    absent or zero). Never raises for pricing failures: returns a
    FALLBACK result built from the contract's cached Greeks.
    """
    rate = get_risk_free_rate() if risk_free_rate is None else risk_free_rate
    years = time_to_expiry(contract.expiration, now)
    return _greeks_at(contract, underlying_price, years, rate)


def scenario_greeks(
    contract: OptionContract,
    underlying_price: float,
    scenario: Scenario,
    risk_free_rate: Optional[float] = None,
    now: Optional[datetime] = None,
) -> GreeksResult:
    """
    Greeks after a spot/vol/time shock.

    The reported implied volatility is the shocked one. If the shocked
    contract cannot be priced, the unshocked Greeks are returned tagged
    FALLBACK.
    """
    rate = get_risk_free_rate() if risk_free_rate is None else risk_free_rate
    shocked_spot = underlying_price * (1 + scenario.price_change_pct)
    shocked_iv = _contract_iv(contract) * (1 + scenario.vol_change_pct)
    years = max(0.0, time_to_expiry(contract.expiration, now) - scenario.days_passed / 365)

    try:
        return GreeksResult.ok(_model_greeks(contract, shocked_spot, years, rate, shocked_iv))
    except _PRICER_ERRORS as e:
        logger.warning(f"Scenario pricing failed for {contract.contract_symbol}: {e}")
        base = calculate_greeks(contract, underlying_price, rate, now)
        if base.is_fallback:
            return base
        return GreeksResult.fallback(base.greeks, f"scenario unpriceable, unshocked greeks: {e}")


# =============================================================================
# Strategies and sweeps
# =============================================================================

def strategy_greeks(
    legs: Sequence[StrategyLeg],
    underlying_price: float,
    risk_free_rate: Optional[float] = None,
    now: Optional[datetime] = None,
) -> StrategyGreeks:
    """Aggregate Greeks and cost across legs (buy +1, sell -1, times quantity)."""
    rate = get_risk_free_rate() if risk_free_rate is None else risk_free_rate
    net = {"delta": 0.0, "gamma": 0.0, "theta": 0.0, "vega": 0.0, "rho": 0.0}
    total_cost = 0.0
    per_leg: List[LegGreeks] = []

    for leg in legs:
        result = calculate_greeks(leg.contract, underlying_price, rate, now)
        g = result.greeks
        weight = leg.signed_quantity
        net["delta"] += g.delta * weight
        net["gamma"] += g.gamma * weight
        net["theta"] += g.theta * weight
        net["vega"] += g.vega * weight
        net["rho"] += g.rho * weight
        total_cost += g.theoretical_price * weight * SHARES_PER_CONTRACT
        per_leg.append(LegGreeks(leg=leg, result=result))

    return StrategyGreeks(
        net_delta=net["delta"],
        net_gamma=net["gamma"],
        net_theta=net["theta"],
        net_vega=net["vega"],
        net_rho=net["rho"],
        total_cost=total_cost,
        legs=tuple(per_leg),
    )


def sensitivity_sweep(
    contract: OptionContract,
    underlying_price: float,
    price_range: PriceRange,
    risk_free_rate: Optional[float] = None,
    now: Optional[datetime] = None,
) -> Tuple[SensitivityPoint, ...]:
    """
    Greeks at steps + 1 equally spaced spots across price_range.

    underlying_price is the current spot; it does not enter the sweep
    values. Time to expiry is resolved once, so identical arguments give
    identical output. A spot of exactly zero reports the analytic limit
    (put delta -1, call delta 0) rather than falling back.

    Raises:
        InvalidInputError: steps < 1, min < 0 or max < min
    """
    if isinstance(price_range.steps, bool) or not isinstance(price_range.steps, int) or price_range.steps < 1:
        raise InvalidInputError("Sweep needs at least one step", context={"steps": price_range.steps})
    if price_range.min < 0:
        raise InvalidInputError("Sweep min must not be negative", context={"min": price_range.min})
    if price_range.max < price_range.min:
        raise InvalidInputError(
            "Sweep max must not be below min",
            context={"min": price_range.min, "max": price_range.max},
        )

    rate = get_risk_free_rate() if risk_free_rate is None else risk_free_rate
    years = time_to_expiry(contract.expiration, now)
    step = (price_range.max - price_range.min) / price_range.steps
    is_call = contract.option_type == OptionType.CALL

    points = []
    for i in range(price_range.steps + 1):
        spot = price_range.min + i * step
        if spot == 0:
            g = _zero_spot_greeks(is_call, contract.strike, years, rate, _contract_iv(contract))
        else:
            g = _greeks_at(contract, spot, years, rate).greeks
        points.append(SensitivityPoint(price=spot, delta=g.delta, gamma=g.gamma, theta=g.theta, vega=g.vega))

    logger.debug(f"Swept {contract.contract_symbol} over {len(points)} spots (spot now {underlying_price})")
    return tuple(points)


def sweep_to_frame(points: Iterable[SensitivityPoint]) -> pd.DataFrame:
    """Sweep output as a DataFrame for charting."""
    return pd.DataFrame(
        [p.to_dict() for p in points],
        columns=["price", "delta", "gamma", "theta", "vega"],
    )


# =============================================================================
# Display helpers
# =============================================================================

def interpret_greek(value: float, greek: str) -> Tuple[str, str]:
    """(label, description) bucket for a Greek value."""
    greek = greek.lower()

    if greek == "delta":
        if value > 0.7:
            return "Deep ITM", "Behaves like stock"
        if value > 0.5:
            return "ITM", "Strong directional exposure"
        if value > 0.3:
            return "Near ATM", "Moderate directional exposure"
        if value > 0:
            return "OTM", "Lower probability"
        if value > -0.3:
            return "OTM Put", "Lower probability"
        if value > -0.5:
            return "Near ATM", "Moderate exposure"
        if value > -0.7:
            return "ITM Put", "Strong downside exposure"
        return "Deep ITM", "Strong downside exposure"

    if greek == "gamma":
        if value > 0.1:
            return "Very High", "Rapid delta changes"
        if value > 0.05:
            return "High", "Significant acceleration"
        if value > 0.02:
            return "Moderate", "Standard acceleration"
        return "Low", "Stable delta"

    if greek == "theta":
        if value < -0.5:
            return "Rapid Decay", "Losing value quickly"
        if value < -0.2:
            return "High Decay", "Notable time decay"
        if value < -0.05:
            return "Moderate Decay", "Standard decay"
        if value < 0:
            return "Low Decay", "Minimal decay"
        return "Positive", "Earning theta"

    if greek == "vega":
        if value > 0.5:
            return "Very Sensitive", "High volatility risk"
        if value > 0.3:
            return "Sensitive", "Moderate vol risk"
        if value > 0.1:
            return "Moderate", "Some vol exposure"
        return "Low", "Limited vol risk"

    if greek == "rho":
        if abs(value) > 0.5:
            return "High Sensitivity", "Rate sensitive"
        if abs(value) > 0.2:
            return "Moderate", "Some rate exposure"
        return "Low", "Limited rate risk"

    return "Unknown", ""
