"""
Payoff Engine.

Samples expiry P&L of a multi-leg position over a price grid, finds
break-evens by interpolating sign changes, and flags sides that keep
growing past the grid as unbounded.

Also reproduces the named strategy templates used for quick previews
(default strikes and premiums expressed as fractions of spot).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from config.settings_loader import get_payoff_config
from core.exceptions import InvalidInputError
from core.structured_log import jlog
from options.models import (
    SHARES_PER_CONTRACT,
    Bound,
    LegAction,
    OptionContract,
    OptionType,
    PayoffPoint,
    StrategyLeg,
    StrategyPayoff,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceGrid:
    """Inclusive price range sampled at steps + 1 points."""
    min: float
    max: float
    steps: int = 100

    def __post_init__(self):
        if isinstance(self.steps, bool) or not isinstance(self.steps, int) or self.steps < 1:
            raise InvalidInputError("Price grid needs at least one step", context={"steps": self.steps})
        if not (math.isfinite(self.min) and math.isfinite(self.max)):
            raise InvalidInputError("Price grid bounds must be finite", context={"min": self.min, "max": self.max})
        if self.min < 0 or self.max < self.min:
            raise InvalidInputError(
                "Price grid must satisfy 0 <= min <= max",
                context={"min": self.min, "max": self.max},
            )

    def prices(self) -> np.ndarray:
        return np.linspace(self.min, self.max, self.steps + 1)


def default_grid(legs: Sequence[StrategyLeg], underlying_price: float) -> PriceGrid:
    """
    Spot +/- 30% by default, widened so every strike sits inside the grid
    with a margin, floored at zero.
    """
    cfg = get_payoff_config()
    low = underlying_price * cfg["grid_low_multiplier"]
    high = underlying_price * cfg["grid_high_multiplier"]
    if legs:
        strikes = [leg.contract.strike for leg in legs]
        margin = cfg["strike_margin_pct"]
        low = min(low, min(strikes) * (1 - margin))
        high = max(high, max(strikes) * (1 + margin))
    return PriceGrid(min=max(0.0, low), max=high, steps=cfg["steps"])


def profit_at(legs: Sequence[StrategyLeg], prices: np.ndarray, underlying_price: float = 0.0, underlying_shares: int = 0) -> np.ndarray:
    """Expiry P&L in dollars at each price."""
    prices = np.asarray(prices, dtype=float)
    total = np.zeros_like(prices)
    for leg in legs:
        c = leg.contract
        if c.option_type == OptionType.CALL:
            intrinsic = np.maximum(prices - c.strike, 0.0)
        else:
            intrinsic = np.maximum(c.strike - prices, 0.0)
        total += leg.action.sign * (intrinsic - c.last) * leg.quantity * SHARES_PER_CONTRACT
    if underlying_shares:
        total += underlying_shares * (prices - underlying_price)
    return total


def find_break_evens(prices: np.ndarray, profits: np.ndarray) -> Tuple[float, ...]:
    """Prices where P&L crosses zero, linearly interpolated, ascending."""
    found: List[float] = []
    for i in range(1, len(prices)):
        prev, curr = profits[i - 1], profits[i]
        if (prev < 0 <= curr) or (prev >= 0 > curr):
            ratio = abs(prev) / (abs(prev) + abs(curr))
            point = float(prices[i - 1] + (prices[i] - prices[i - 1]) * ratio)
            # A sample sitting exactly on zero is reported by both neighbours
            if found and math.isclose(found[-1], point, rel_tol=1e-9, abs_tol=1e-9):
                continue
            found.append(point)
    return tuple(sorted(found))


def upside_slope(legs: Sequence[StrategyLeg], underlying_shares: int = 0) -> float:
    """Dollars of P&L per $1 move once spot is above every strike."""
    calls = sum(
        leg.signed_quantity * SHARES_PER_CONTRACT
        for leg in legs
        if leg.contract.option_type == OptionType.CALL
    )
    return float(calls + underlying_shares)


def _empty_payoff(strategy_name: str) -> StrategyPayoff:
    return StrategyPayoff(
        strategy_name=strategy_name,
        points=(),
        max_profit=Bound.of(0.0),
        max_loss=Bound.of(0.0),
        break_even_points=(),
    )


def calculate_payoff(
    legs: Sequence[StrategyLeg],
    underlying_price: float,
    grid: Optional[PriceGrid] = None,
    strategy_name: str = "Custom",
    underlying_shares: int = 0,
) -> StrategyPayoff:
    """
    Sample expiry P&L of legs (plus an optional stock position).

    Args:
        legs: Strategy legs; premiums are each contract's last price
        underlying_price: Current spot, centre of the default grid and
            cost basis of underlying_shares
        grid: Explicit sampling grid, default_grid() otherwise
        strategy_name: Label carried on the result
        underlying_shares: Shares held alongside the options (covered calls)

    Returns:
        StrategyPayoff with ascending points. max_loss is the lowest P&L
        (negative when the position can lose money).
    """
    if not legs:
        logger.warning(f"No legs provided to payoff calculation for {strategy_name}")
        return _empty_payoff(strategy_name)
    if not math.isfinite(underlying_price) or underlying_price <= 0:
        raise InvalidInputError("Underlying price must be positive", context={"underlying_price": underlying_price})

    grid = grid or default_grid(legs, underlying_price)
    prices = grid.prices()
    profits = profit_at(legs, prices, underlying_price, underlying_shares)

    extremes = profits
    if any(leg.contract.option_type == OptionType.PUT for leg in legs):
        # Below the lowest strike put P&L is linear, so its bounded end is S = 0
        extremes = np.append(profits, profit_at(legs, [0.0], underlying_price, underlying_shares))
    max_profit = Bound.of(float(extremes.max()))
    max_loss = Bound.of(float(extremes.min()))

    slope = upside_slope(legs, underlying_shares)
    if slope > 0:
        max_profit = Bound.unbounded(1)
    elif slope < 0:
        max_loss = Bound.unbounded(-1)
    if slope != 0:
        jlog(
            "payoff_unbounded",
            level="DEBUG",
            strategy=strategy_name,
            side="profit" if slope > 0 else "loss",
            slope=slope,
        )

    points = tuple(PayoffPoint(price=float(p), profit=float(v)) for p, v in zip(prices, profits))
    return StrategyPayoff(
        strategy_name=strategy_name,
        points=points,
        max_profit=max_profit,
        max_loss=max_loss,
        break_even_points=find_break_evens(prices, profits),
    )


# =============================================================================
# Named templates
# =============================================================================

# (type, action, strike multiplier, premium multiplier, quantity), all relative to spot
_TEMPLATES: Dict[str, List[Tuple[OptionType, LegAction, float, float, int]]] = {
    "Bull Call Spread": [
        (OptionType.CALL, LegAction.BUY, 0.98, 0.03, 1),
        (OptionType.CALL, LegAction.SELL, 1.02, 0.015, 1),
    ],
    "Bear Put Spread": [
        (OptionType.PUT, LegAction.BUY, 1.02, 0.03, 1),
        (OptionType.PUT, LegAction.SELL, 0.98, 0.015, 1),
    ],
    "Straddle": [
        (OptionType.CALL, LegAction.BUY, 1.00, 0.03, 1),
        (OptionType.PUT, LegAction.BUY, 1.00, 0.03, 1),
    ],
    "Strangle": [
        (OptionType.CALL, LegAction.BUY, 1.05, 0.02, 1),
        (OptionType.PUT, LegAction.BUY, 0.95, 0.02, 1),
    ],
    "Iron Condor": [
        (OptionType.PUT, LegAction.BUY, 0.90, 0.01, 1),
        (OptionType.PUT, LegAction.SELL, 0.95, 0.02, 1),
        (OptionType.CALL, LegAction.SELL, 1.05, 0.02, 1),
        (OptionType.CALL, LegAction.BUY, 1.10, 0.01, 1),
    ],
    "Butterfly Spread": [
        (OptionType.CALL, LegAction.BUY, 0.95, 0.06, 1),
        (OptionType.CALL, LegAction.SELL, 1.00, 0.04, 2),
        (OptionType.CALL, LegAction.BUY, 1.05, 0.02, 1),
    ],
    "Cash-Secured Put": [
        (OptionType.PUT, LegAction.SELL, 0.95, 0.03, 1),
    ],
    "Covered Call": [
        (OptionType.CALL, LegAction.SELL, 1.05, 0.03, 1),
    ],
}

# Stock held alongside the template's options
_TEMPLATE_SHARES: Dict[str, int] = {"Covered Call": SHARES_PER_CONTRACT}


def template_names() -> List[str]:
    return list(_TEMPLATES)


def _occ_symbol(symbol: str, expiration: date, option_type: OptionType, strike: float) -> str:
    flag = "C" if option_type == OptionType.CALL else "P"
    return f"{symbol}{expiration:%y%m%d}{flag}{int(round(strike * 1000)):08d}"


def template_legs(
    strategy_name: str,
    underlying_price: float,
    expiration: Optional[date] = None,
    symbol: str = "SPOT",
) -> List[StrategyLeg]:
    """
    Legs of a named template around underlying_price.

    Raises:
        InvalidInputError: Unknown template or non-positive spot
    """
    if strategy_name not in _TEMPLATES:
        raise InvalidInputError(
            f"No payoff template for {strategy_name}",
            context={"available": ", ".join(_TEMPLATES)},
        )
    if not math.isfinite(underlying_price) or underlying_price <= 0:
        raise InvalidInputError("Underlying price must be positive", context={"underlying_price": underlying_price})

    expiration = expiration or date.today() + timedelta(days=30)
    legs = []
    for option_type, action, strike_mult, premium_mult, qty in _TEMPLATES[strategy_name]:
        strike = underlying_price * strike_mult
        contract = OptionContract(
            symbol=symbol,
            contract_symbol=_occ_symbol(symbol, expiration, option_type, strike),
            option_type=option_type,
            expiration=expiration,
            strike=strike,
            last=underlying_price * premium_mult,
        )
        legs.append(StrategyLeg(contract=contract, action=action, quantity=qty))
    return legs


def template_payoff(
    strategy_name: str,
    underlying_price: float,
    grid: Optional[PriceGrid] = None,
    expiration: Optional[date] = None,
) -> StrategyPayoff:
    """Payoff of a named template, including the stock leg of a covered call."""
    legs = template_legs(strategy_name, underlying_price, expiration)
    return calculate_payoff(
        legs,
        underlying_price,
        grid=grid,
        strategy_name=strategy_name,
        underlying_shares=_TEMPLATE_SHARES.get(strategy_name, 0),
    )
