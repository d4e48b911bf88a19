"""
Kelly Criterion Position Sizing for Options Strategies
======================================================

Converts historical trade statistics and a strategy's net premium into
contract counts at full, half and quarter Kelly.

Mathematical Foundation:
    f* = p - (1 - p) / b
    where:
        f* = optimal fraction of bankroll to commit
        p = win rate (probability of winning)
        b = win/loss ratio (avg_win / avg_loss)

f* is clamped to [0, max_kelly_fraction]: a negative edge means "do not
trade", never a negative position. With fewer than min_trades of history
the configured default statistics replace the empirical ones.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

from config.settings_loader import get_sizing_config
from core.exceptions import InvalidInputError
from core.structured_log import jlog
from options.models import (
    SHARES_PER_CONTRACT,
    KellyCalculationResult,
    RecommendedContracts,
    RiskLevel,
    StrategyLeg,
)

logger = logging.getLogger(__name__)


def optimal_kelly(win_rate: float, win_loss_ratio: float) -> float:
    """
    Calculate the raw Kelly fraction.

    Formula: f* = p - q / b
    where: p = win_rate, q = 1 - win_rate, b = win_loss_ratio

    Args:
        win_rate: Probability of winning, strictly between 0 and 1
        win_loss_ratio: Average win / average loss

    Returns:
        Kelly fraction. Negative when the edge is negative; 0 for
        degenerate inputs.
    """
    if win_loss_ratio <= 0 or not math.isfinite(win_loss_ratio):
        logger.warning(f"Invalid win_loss_ratio: {win_loss_ratio}. Returning 0.")
        return 0.0
    if not (0 < win_rate < 1):
        logger.warning(f"Win rate {win_rate} outside (0, 1). Returning 0.")
        return 0.0

    return win_rate - (1.0 - win_rate) / win_loss_ratio


def clamp_kelly(kelly: float, max_fraction: float = 1.0) -> float:
    """Clamp a Kelly fraction to [0, min(max_fraction, 1)]."""
    return max(0.0, min(kelly, max_fraction, 1.0))


@dataclass(frozen=True)
class TradeStatistics:
    """Win rate and average win/loss from closed-trade P&L."""
    total_trades: int
    winning_trades: int
    win_rate: float
    average_win: float
    average_loss: float  # Positive magnitude

    @property
    def win_loss_ratio(self) -> float:
        return self.average_win / self.average_loss if self.average_loss > 0 else 0.0

    @classmethod
    def from_pnls(cls, pnls: Sequence[float]) -> "TradeStatistics":
        """
        Build statistics from a list of trade P&Ls.

        Breakeven trades count toward the total but are neither wins nor
        losses.
        """
        if not pnls:
            raise InvalidInputError("P&L list cannot be empty")

        wins = [p for p in pnls if p > 0]
        losses = [abs(p) for p in pnls if p < 0]
        total = len(pnls)

        return cls(
            total_trades=total,
            winning_trades=len(wins),
            win_rate=len(wins) / total,
            average_win=sum(wins) / len(wins) if wins else 0.0,
            average_loss=sum(losses) / len(losses) if losses else 0.0,
        )

    def to_dict(self) -> Dict:
        return {
            "total_trades": self.total_trades,
            "winning_trades": self.winning_trades,
            "win_rate": round(self.win_rate, 4),
            "average_win": round(self.average_win, 2),
            "average_loss": round(self.average_loss, 2),
            "win_loss_ratio": round(self.win_loss_ratio, 4),
        }


def validate_trade_metrics(
    total_trades: int,
    winning_trades: int,
    average_win: float,
    average_loss: float,
) -> Tuple[bool, List[str]]:
    """
    Sanity-check user-entered trade statistics.

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    errors = []
    if total_trades < 0:
        errors.append("Total trades cannot be negative")
    if winning_trades < 0 or winning_trades > total_trades:
        errors.append("Invalid winning trades count")
    if average_win < 0:
        errors.append("Average win cannot be negative")
    if average_loss < 0:
        errors.append("Average loss cannot be negative")
    return len(errors) == 0, errors


def capital_per_contract(leg_premiums: Sequence[Union[StrategyLeg, float]]) -> float:
    """
    Net premium of one strategy unit in dollars.

    StrategyLegs are signed by side and quantity; bare floats are
    per-share premiums of bought options.
    """
    net = 0.0
    for item in leg_premiums:
        if isinstance(item, StrategyLeg):
            net += item.signed_quantity * item.contract.last
        else:
            net += float(item)
    return abs(net) * SHARES_PER_CONTRACT


def classify_risk(committed_pct: float, thresholds: Dict[str, float]) -> RiskLevel:
    """Bucket the fraction of balance committed at full Kelly."""
    if committed_pct <= thresholds["safe"]:
        return RiskLevel.SAFE
    if committed_pct <= thresholds["moderate"]:
        return RiskLevel.MODERATE
    if committed_pct <= thresholds["high"]:
        return RiskLevel.HIGH
    return RiskLevel.EXCESSIVE


_RISK_WARNINGS = {
    RiskLevel.MODERATE: "Moderate risk: full Kelly commits {pct:.1%} of the account",
    RiskLevel.HIGH: "High risk: full Kelly commits {pct:.1%} of the account. Consider Half Kelly",
    RiskLevel.EXCESSIVE: (
        "Excessive risk: full Kelly commits {pct:.1%} of the account. "
        "Strongly consider Half Kelly or Quarter Kelly"
    ),
}


def size_position(
    win_rate: float,
    average_win: float,
    average_loss: float,
    account_balance: float,
    leg_premiums: Sequence[Union[StrategyLeg, float]],
    trade_count: Optional[int] = None,
    requested_contracts: Optional[int] = None,
) -> KellyCalculationResult:
    """
    Size an options strategy with the Kelly criterion.

    Args:
        win_rate: Historical win rate (0-1)
        average_win: Average winning trade (positive)
        average_loss: Average losing trade (positive magnitude)
        account_balance: Account equity in dollars
        leg_premiums: StrategyLegs, or per-share premiums of bought options
        trade_count: Number of trades behind the statistics; below the
            configured minimum the default statistics are used
        requested_contracts: Contracts the user intends to trade

    Returns:
        KellyCalculationResult

    Raises:
        InvalidInputError: account_balance is not a positive number
    """
    if account_balance is None or not math.isfinite(account_balance) or account_balance <= 0:
        raise InvalidInputError("Account balance must be positive", context={"account_balance": account_balance})

    cfg = get_sizing_config()
    warnings: List[str] = []

    used_defaults = trade_count is not None and trade_count < cfg["min_trades"]
    if used_defaults:
        win_rate = cfg["default_win_rate"]
        win_loss_ratio = cfg["default_win_loss_ratio"]
        warnings.append(
            f"Only {trade_count} trades of history (minimum {cfg['min_trades']}); "
            f"using default win rate {win_rate:.0%} and win/loss ratio {win_loss_ratio}"
        )
        jlog(
            "kelly_defaults_used",
            trade_count=trade_count,
            min_trades=cfg["min_trades"],
            win_rate=win_rate,
            win_loss_ratio=win_loss_ratio,
        )
    else:
        win_loss_ratio = average_win / average_loss if average_loss > 0 else 0.0
        if win_loss_ratio <= 0:
            warnings.append("Invalid win/loss ratio. No position recommended.")

    raw_kelly = optimal_kelly(win_rate, win_loss_ratio)
    kelly = clamp_kelly(raw_kelly, cfg["max_kelly_fraction"])
    if kelly <= 0:
        warnings.append(
            "Kelly Criterion suggests no position. Your win rate or win/loss ratio may be too low."
        )

    capital = capital_per_contract(leg_premiums)
    full_dollars = kelly * account_balance
    if capital > 0:
        full = int(math.floor(full_dollars / capital))
    else:
        full = 0
        warnings.append("Strategy has zero net premium; contract count cannot be sized.")

    committed_pct = full * capital / account_balance
    risk_level = classify_risk(committed_pct, cfg["risk_thresholds"])
    if risk_level in _RISK_WARNINGS:
        warnings.append(_RISK_WARNINGS[risk_level].format(pct=committed_pct))

    if requested_contracts is not None and requested_contracts > full:
        warnings.append(
            f"Requested {requested_contracts} contracts exceeds Kelly recommendation of {full}"
        )

    logger.debug(
        f"Kelly sizing: WR={win_rate:.1%}, W/L={win_loss_ratio:.2f}, "
        f"f*={raw_kelly:.3f} -> {kelly:.3f}, capital/contract=${capital:,.2f}, full={full}"
    )

    return KellyCalculationResult(
        kelly_percentage=kelly,
        full_kelly_size=full_dollars,
        half_kelly_size=full_dollars * 0.5,
        quarter_kelly_size=full_dollars * 0.25,
        recommended_contracts=RecommendedContracts(full=full, half=full // 2, quarter=full // 4),
        risk_level=risk_level,
        capital_per_contract=capital,
        committed_pct=committed_pct,
        used_defaults=used_defaults,
        warnings=tuple(warnings),
    )
