"""
Value objects shared by the options analytics engine.

Contracts and legs are caller-supplied snapshots; every result type is a
transient, immutable value with a to_dict() for the surrounding app.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from core.exceptions import ContractDataError

SHARES_PER_CONTRACT = 100


class OptionType(Enum):
    """Option type."""
    CALL = "call"
    PUT = "put"


class LegAction(Enum):
    """Side of a strategy leg."""
    BUY = "buy"
    SELL = "sell"

    @property
    def sign(self) -> int:
        """+1 for long exposure, -1 for short."""
        return 1 if self is LegAction.BUY else -1


def _parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.strptime(value[:10], "%Y-%m-%d").date()
        except ValueError as e:
            raise ContractDataError(
                "Unparseable expiration date", context={"expiration": value}, cause=e
            ) from e
    raise ContractDataError("Missing expiration date", context={"expiration": value})


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    return float(value)


@dataclass(frozen=True)
class OptionContract:
    """Snapshot of a single listed option contract."""
    # Identification
    symbol: str               # Underlying symbol
    contract_symbol: str      # Full OCC symbol (e.g., "AAPL230120C00150000")
    option_type: OptionType
    expiration: date
    strike: float

    # Pricing
    last: float = 0.0
    implied_volatility: Optional[float] = None
    volume: int = 0
    open_interest: int = 0

    # Provider Greeks, only used when the model cannot price the contract
    delta: Optional[float] = None
    gamma: Optional[float] = None
    theta: Optional[float] = None
    vega: Optional[float] = None

    def __post_init__(self):
        if not math.isfinite(self.strike) or self.strike <= 0:
            raise ContractDataError(
                "Strike price must be positive",
                context={"contract": self.contract_symbol, "strike": self.strike},
            )
        if self.implied_volatility is not None and (
            math.isnan(self.implied_volatility) or self.implied_volatility < 0
        ):
            raise ContractDataError(
                "Implied volatility cannot be negative",
                context={"contract": self.contract_symbol, "iv": self.implied_volatility},
            )
        if self.volume < 0 or self.open_interest < 0:
            raise ContractDataError(
                "Volume and open interest cannot be negative",
                context={
                    "contract": self.contract_symbol,
                    "volume": self.volume,
                    "open_interest": self.open_interest,
                },
            )

    @property
    def is_illiquid(self) -> bool:
        """No trades and no open interest."""
        return self.volume == 0 and self.open_interest == 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OptionContract":
        """
        Build a contract from a market-data payload.

        Accepts the provider's snake_case keys (strike_price, expiration_date,
        contract_type, underlying_ticker, ticker, last, ...).
        """
        raw_type = str(data.get("contract_type", data.get("option_type", ""))).lower()
        try:
            option_type = OptionType(raw_type)
        except ValueError as e:
            raise ContractDataError(
                "Unknown contract type", context={"contract_type": raw_type}, cause=e
            ) from e

        strike = data.get("strike_price", data.get("strike"))
        if strike is None:
            raise ContractDataError("Missing strike price", context={"ticker": data.get("ticker")})

        return cls(
            symbol=data.get("underlying_ticker", data.get("symbol", "")),
            contract_symbol=data.get("ticker", data.get("contract_ticker", data.get("contract_symbol", ""))),
            option_type=option_type,
            expiration=_parse_date(data.get("expiration_date", data.get("expiration"))),
            strike=float(strike),
            last=float(data.get("last") or 0.0),
            implied_volatility=_optional_float(data.get("implied_volatility")),
            volume=int(data.get("volume") or 0),
            open_interest=int(data.get("open_interest") or 0),
            delta=_optional_float(data.get("delta")),
            gamma=_optional_float(data.get("gamma")),
            theta=_optional_float(data.get("theta")),
            vega=_optional_float(data.get("vega")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "symbol": self.symbol,
            "contract_symbol": self.contract_symbol,
            "option_type": self.option_type.value,
            "expiration": self.expiration.isoformat(),
            "strike": self.strike,
            "last": self.last,
            "implied_volatility": self.implied_volatility,
            "volume": self.volume,
            "open_interest": self.open_interest,
            "delta": self.delta,
            "gamma": self.gamma,
            "theta": self.theta,
            "vega": self.vega,
        }


@dataclass(frozen=True)
class StrategyLeg:
    """One contract, a side and a contract count."""
    contract: OptionContract
    action: LegAction
    quantity: int = 1

    def __post_init__(self):
        if isinstance(self.quantity, bool) or int(self.quantity) != self.quantity or self.quantity <= 0:
            raise ContractDataError(
                "Leg quantity must be a positive integer",
                context={"contract": self.contract.contract_symbol, "quantity": self.quantity},
            )

    @property
    def signed_quantity(self) -> int:
        return self.action.sign * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contract": self.contract.to_dict(),
            "action": self.action.value,
            "quantity": self.quantity,
        }


# =============================================================================
# Greeks
# =============================================================================

@dataclass(frozen=True)
class GreeksData:
    """Greeks and theoretical value for one contract."""
    delta: float
    gamma: float
    theta: float  # Per calendar day
    vega: float   # Per 1 vol point
    rho: float    # Per 1 rate point
    theoretical_price: float
    implied_volatility: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "delta": round(self.delta, 4),
            "gamma": round(self.gamma, 6),
            "theta": round(self.theta, 4),
            "vega": round(self.vega, 4),
            "rho": round(self.rho, 4),
            "theoretical_price": round(self.theoretical_price, 4),
            "implied_volatility": round(self.implied_volatility, 4),
        }


class GreeksStatus(Enum):
    OK = "ok"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class GreeksResult:
    """
    Greeks tagged with how they were obtained.

    FALLBACK means the model could not price the contract and the values
    are the provider's cached Greeks; reason says why.
    """
    status: GreeksStatus
    greeks: GreeksData
    reason: Optional[str] = None

    @classmethod
    def ok(cls, greeks: GreeksData) -> "GreeksResult":
        return cls(status=GreeksStatus.OK, greeks=greeks)

    @classmethod
    def fallback(cls, greeks: GreeksData, reason: str) -> "GreeksResult":
        return cls(status=GreeksStatus.FALLBACK, greeks=greeks, reason=reason)

    @property
    def is_fallback(self) -> bool:
        return self.status is GreeksStatus.FALLBACK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "greeks": self.greeks.to_dict(),
            "reason": self.reason,
        }


# =============================================================================
# Profit / loss bounds
# =============================================================================

@dataclass(frozen=True)
class Bound:
    """
    A profit or loss figure that may be unbounded.

    float(bound) gives the number, or +inf / -inf when unbounded.
    """
    value: Optional[float] = None
    sign: int = 1

    @classmethod
    def of(cls, value: float) -> "Bound":
        return cls(value=float(value))

    @classmethod
    def unbounded(cls, sign: int = 1) -> "Bound":
        return cls(value=None, sign=1 if sign >= 0 else -1)

    @property
    def is_unbounded(self) -> bool:
        return self.value is None

    def __float__(self) -> float:
        if self.value is None:
            return math.inf if self.sign > 0 else -math.inf
        return self.value

    def to_json(self) -> Any:
        """Number, or "unlimited" / "-unlimited" for JSON payloads."""
        if self.value is None:
            return "unlimited" if self.sign > 0 else "-unlimited"
        return round(self.value, 2)


# =============================================================================
# Strategy validation
# =============================================================================

@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of a structural strategy check.

    P/L fields are only populated when is_valid. max_loss is a loss
    magnitude (positive means money lost).
    """
    is_valid: bool
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    max_profit: Optional[Bound] = None
    max_loss: Optional[Bound] = None
    break_even_points: Tuple[float, ...] = ()
    net_debit: Optional[float] = None
    net_credit: Optional[float] = None

    @classmethod
    def invalid(cls, errors: List[str], warnings: Optional[List[str]] = None) -> "ValidationResult":
        return cls(is_valid=False, errors=tuple(errors), warnings=tuple(warnings or ()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "max_profit": self.max_profit.to_json() if self.max_profit else None,
            "max_loss": self.max_loss.to_json() if self.max_loss else None,
            "break_even_points": [round(p, 2) for p in self.break_even_points],
            "net_debit": round(self.net_debit, 2) if self.net_debit is not None else None,
            "net_credit": round(self.net_credit, 2) if self.net_credit is not None else None,
        }


# =============================================================================
# Payoff
# =============================================================================

@dataclass(frozen=True)
class PayoffPoint:
    price: float
    profit: float


@dataclass(frozen=True)
class StrategyPayoff:
    """
    Sampled expiry P&L for a set of legs.

    max_profit is the highest sampled P&L and max_loss the lowest (a
    negative number for a losing position), unless the position is
    unbounded on that side.
    """
    strategy_name: str
    points: Tuple[PayoffPoint, ...]
    max_profit: Bound
    max_loss: Bound
    break_even_points: Tuple[float, ...] = ()

    def to_frame(self) -> pd.DataFrame:
        """Points as a DataFrame with price and profit columns."""
        return pd.DataFrame(
            {
                "price": [p.price for p in self.points],
                "profit": [p.profit for p in self.points],
            }
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy_name": self.strategy_name,
            "points": [{"price": round(p.price, 2), "profit": round(p.profit, 2)} for p in self.points],
            "max_profit": self.max_profit.to_json(),
            "max_loss": self.max_loss.to_json(),
            "break_even_points": [round(p, 2) for p in self.break_even_points],
        }


# =============================================================================
# Position sizing
# =============================================================================

class RiskLevel(Enum):
    SAFE = "safe"
    MODERATE = "moderate"
    HIGH = "high"
    EXCESSIVE = "excessive"


@dataclass(frozen=True)
class RecommendedContracts:
    full: int
    half: int
    quarter: int

    def to_dict(self) -> Dict[str, int]:
        return {"full": self.full, "half": self.half, "quarter": self.quarter}


@dataclass(frozen=True)
class KellyCalculationResult:
    """Kelly sizing for one strategy against an account balance."""
    kelly_percentage: float          # f* as a fraction in [0, 1]
    full_kelly_size: float           # Dollars
    half_kelly_size: float
    quarter_kelly_size: float
    recommended_contracts: RecommendedContracts
    risk_level: RiskLevel
    capital_per_contract: float
    committed_pct: float             # Fraction of balance at full Kelly
    used_defaults: bool = False
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kelly_percentage": round(self.kelly_percentage * 100, 2),
            "full_kelly_size": round(self.full_kelly_size, 2),
            "half_kelly_size": round(self.half_kelly_size, 2),
            "quarter_kelly_size": round(self.quarter_kelly_size, 2),
            "recommended_contracts": self.recommended_contracts.to_dict(),
            "risk_level": self.risk_level.value,
            "capital_per_contract": round(self.capital_per_contract, 2),
            "committed_pct": round(self.committed_pct * 100, 2),
            "used_defaults": self.used_defaults,
            "warnings": list(self.warnings),
        }
