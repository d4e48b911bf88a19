"""
Black-Scholes Options Pricing Model.

Provides options pricing and Greeks calculation:
- European option pricing (calls and puts)
- Greeks: Delta, Gamma, Vega, Theta, Rho
- Intrinsic-value branch at (or numerically at) expiry
- Implied volatility via Newton-Raphson with a Brent fallback
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from scipy.optimize import brentq

from config.settings_loader import get_pricing_config
from core.exceptions import PricingError
from options.models import OptionType

logger = logging.getLogger(__name__)

# Below this sigma * sqrt(T) the distribution has collapsed onto the forward
MIN_VOL_SQRT_T = 1e-12


@dataclass
class OptionPricing:
    """Option pricing result with Greeks."""
    # Inputs
    option_type: OptionType
    spot_price: float
    strike_price: float
    time_to_expiry: float  # Years
    risk_free_rate: float
    volatility: float
    dividend_yield: float = 0.0

    # Outputs
    price: float = 0.0
    delta: float = 0.0
    gamma: float = 0.0
    vega: float = 0.0   # Per 1 vol point
    theta: float = 0.0  # Per calendar day
    rho: float = 0.0    # Per 1 rate point

    # Additional info
    intrinsic_value: float = 0.0
    time_value: float = 0.0
    probability_itm: float = 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "option_type": self.option_type.value,
            "spot_price": round(self.spot_price, 2),
            "strike_price": round(self.strike_price, 2),
            "time_to_expiry_years": round(self.time_to_expiry, 4),
            "time_to_expiry_days": round(self.time_to_expiry * 365, 0),
            "risk_free_rate": round(self.risk_free_rate, 4),
            "volatility": round(self.volatility, 4),
            "dividend_yield": round(self.dividend_yield, 4),
            "price": round(self.price, 4),
            "greeks": {
                "delta": round(self.delta, 4),
                "gamma": round(self.gamma, 6),
                "vega": round(self.vega, 4),
                "theta": round(self.theta, 4),
                "rho": round(self.rho, 4),
            },
            "intrinsic_value": round(self.intrinsic_value, 4),
            "time_value": round(self.time_value, 4),
            "probability_itm": round(self.probability_itm, 4),
        }


class BlackScholes:
    """
    Black-Scholes Option Pricing Model.

    Calculates European option prices and Greeks. Raises PricingError
    rather than returning NaN.
    """

    @staticmethod
    def _norm_cdf(x: float) -> float:
        """Standard normal cumulative distribution function."""
        return 0.5 * (1 + math.erf(x / math.sqrt(2)))

    @staticmethod
    def _norm_pdf(x: float) -> float:
        """Standard normal probability density function."""
        return math.exp(-0.5 * x * x) / math.sqrt(2 * math.pi)

    @staticmethod
    def _check_inputs(spot: float, strike: float, time: float, rate: float, vol: float, div: float) -> None:
        values = {"spot": spot, "strike": strike, "time": time, "rate": rate, "vol": vol, "div": div}
        for name, value in values.items():
            if value is None or not math.isfinite(value):
                raise PricingError(f"Non-finite pricing input: {name}", context=values)
        if spot <= 0:
            raise PricingError("Spot price must be positive", context=values)
        if strike <= 0:
            raise PricingError("Strike price must be positive", context=values)
        if vol < 0:
            raise PricingError("Volatility cannot be negative", context=values)

    def calculate_d1_d2(
        self,
        spot: float,
        strike: float,
        time: float,
        rate: float,
        vol: float,
        div: float = 0.0
    ) -> tuple:
        """
        Calculate d1 and d2 parameters.

        Args:
            spot: Current stock price
            strike: Option strike price
            time: Time to expiry in years
            rate: Risk-free interest rate
            vol: Volatility (annualized)
            div: Dividend yield

        Returns:
            Tuple of (d1, d2)
        """
        vol_sqrt_t = vol * math.sqrt(time) if time > 0 and vol > 0 else 0.0
        if vol_sqrt_t < MIN_VOL_SQRT_T:
            return 0.0, 0.0

        d1 = (math.log(spot / strike) + (rate - div + 0.5 * vol ** 2) * time) / vol_sqrt_t
        d2 = d1 - vol_sqrt_t

        return d1, d2

    def price_option(
        self,
        option_type: OptionType,
        spot: float,
        strike: float,
        time: float,
        rate: float,
        vol: float,
        div: float = 0.0
    ) -> OptionPricing:
        """
        Calculate option price and Greeks.

        Args:
            option_type: CALL or PUT
            spot: Current stock price
            strike: Option strike price
            time: Time to expiry in years
            rate: Risk-free interest rate (decimal, e.g., 0.05 for 5%)
            vol: Volatility (annualized, decimal, e.g., 0.20 for 20%)
            div: Dividend yield (decimal)

        Returns:
            OptionPricing with price and Greeks

        Raises:
            PricingError: On invalid inputs or a non-finite result
        """
        self._check_inputs(spot, strike, time, rate, vol, div)

        result = OptionPricing(
            option_type=option_type,
            spot_price=spot,
            strike_price=strike,
            time_to_expiry=time,
            risk_free_rate=rate,
            volatility=vol,
            dividend_yield=div,
        )

        # At expiry, or no diffusion left: intrinsic value only
        if time <= 0 or vol * math.sqrt(time) < MIN_VOL_SQRT_T:
            if option_type == OptionType.CALL:
                result.price = max(0.0, spot - strike)
                result.delta = 1.0 if spot > strike else 0.0
                result.probability_itm = 1.0 if spot > strike else 0.0
            else:
                result.price = max(0.0, strike - spot)
                result.delta = -1.0 if spot < strike else 0.0
                result.probability_itm = 1.0 if spot < strike else 0.0
            result.intrinsic_value = result.price
            return result

        # Calculate d1 and d2
        d1, d2 = self.calculate_d1_d2(spot, strike, time, rate, vol, div)

        # Calculate price
        exp_div = math.exp(-div * time)
        exp_rate = math.exp(-rate * time)

        if option_type == OptionType.CALL:
            result.price = spot * exp_div * self._norm_cdf(d1) - strike * exp_rate * self._norm_cdf(d2)
            result.delta = exp_div * self._norm_cdf(d1)
            result.probability_itm = self._norm_cdf(d2)
            result.intrinsic_value = max(0.0, spot - strike)
        else:
            result.price = strike * exp_rate * self._norm_cdf(-d2) - spot * exp_div * self._norm_cdf(-d1)
            result.delta = -exp_div * self._norm_cdf(-d1)
            result.probability_itm = self._norm_cdf(-d2)
            result.intrinsic_value = max(0.0, strike - spot)

        # Rounding can push deep OTM prices a hair below zero
        result.price = max(0.0, result.price)
        result.time_value = result.price - result.intrinsic_value

        # Calculate Greeks
        sqrt_t = math.sqrt(time)
        pdf_d1 = self._norm_pdf(d1)

        # Gamma (same for calls and puts)
        result.gamma = exp_div * pdf_d1 / (spot * vol * sqrt_t)

        # Vega (same for calls and puts) - per 1% change in vol
        result.vega = spot * exp_div * pdf_d1 * sqrt_t / 100

        # Theta (per day)
        if option_type == OptionType.CALL:
            theta = (
                -spot * exp_div * pdf_d1 * vol / (2 * sqrt_t)
                - rate * strike * exp_rate * self._norm_cdf(d2)
                + div * spot * exp_div * self._norm_cdf(d1)
            )
        else:
            theta = (
                -spot * exp_div * pdf_d1 * vol / (2 * sqrt_t)
                + rate * strike * exp_rate * self._norm_cdf(-d2)
                - div * spot * exp_div * self._norm_cdf(-d1)
            )
        result.theta = theta / 365  # Convert to per-day

        # Rho (per 1% change in rate)
        if option_type == OptionType.CALL:
            result.rho = strike * time * exp_rate * self._norm_cdf(d2) / 100
        else:
            result.rho = -strike * time * exp_rate * self._norm_cdf(-d2) / 100

        outputs = (result.price, result.delta, result.gamma, result.vega, result.theta, result.rho)
        if not all(math.isfinite(v) for v in outputs):
            raise PricingError(
                "Model produced a non-finite result",
                context={"spot": spot, "strike": strike, "time": time, "vol": vol},
            )

        return result

    def calculate_implied_volatility(
        self,
        option_type: OptionType,
        market_price: float,
        spot: float,
        strike: float,
        time: float,
        rate: float,
        div: float = 0.0,
        max_iterations: Optional[int] = None,
        tolerance: Optional[float] = None,
    ) -> Optional[float]:
        """
        Calculate implied volatility.

        Newton-Raphson on vega first; when that stalls or leaves the
        bracket, scipy's brentq searches [min_vol, max_vol].

        Args:
            option_type: CALL or PUT
            market_price: Observed market price
            spot: Current stock price
            strike: Option strike price
            time: Time to expiry in years
            rate: Risk-free interest rate
            div: Dividend yield
            max_iterations: Max Newton-Raphson iterations
            tolerance: Convergence tolerance on price

        Returns:
            Implied volatility or None if no volatility in range reproduces the price
        """
        if market_price <= 0 or time <= 0:
            return None

        cfg = get_pricing_config()
        max_iterations = max_iterations or cfg["iv_max_iterations"]
        tolerance = tolerance or cfg["iv_tolerance"]
        min_vol, max_vol = cfg["iv_min_vol"], cfg["iv_max_vol"]

        def objective(v: float) -> float:
            return self.price_option(option_type, spot, strike, time, rate, v, div).price - market_price

        # Initial guess
        vol = 0.20

        for _ in range(max_iterations):
            diff = -objective(vol)
            if abs(diff) < tolerance:
                return vol

            d1, _ = self.calculate_d1_d2(spot, strike, time, rate, vol, div)
            vega = spot * math.exp(-div * time) * self._norm_pdf(d1) * math.sqrt(time)
            if vega < 1e-10:
                break

            vol = vol + diff / vega
            if not (min_vol <= vol <= max_vol):
                break

        low, high = objective(min_vol), objective(max_vol)
        if low * high > 0:
            logger.debug(
                f"No implied vol in [{min_vol}, {max_vol}] for price {market_price} "
                f"(K={strike}, T={time:.4f})"
            )
            return None

        return brentq(objective, min_vol, max_vol, xtol=tolerance, maxiter=max_iterations * 5)


# Convenience functions
_bs = BlackScholes()


def price(
    spot: float,
    strike: float,
    time_to_expiry_years: float,
    risk_free_rate: float,
    volatility: float,
    is_call: bool,
    dividend_yield: float = 0.0,
) -> OptionPricing:
    """
    Price one European option.

    Raises:
        PricingError: On invalid inputs or a non-finite result
    """
    opt_type = OptionType.CALL if is_call else OptionType.PUT
    return _bs.price_option(
        opt_type, spot, strike, time_to_expiry_years, risk_free_rate, volatility, dividend_yield
    )


def implied_volatility(
    option_type: OptionType,
    market_price: float,
    spot: float,
    strike: float,
    time: float,
    rate: float,
    div: float = 0.0,
) -> Optional[float]:
    """Calculate implied volatility from market price (decimal, 0.25 = 25%)."""
    return _bs.calculate_implied_volatility(option_type, market_price, spot, strike, time, rate, div)
