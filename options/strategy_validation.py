"""
Strategy Validator.

Checks that a set of legs actually forms the named strategy (leg count,
option types, shared underlying/expiration, strike ordering, sides) and,
for valid shapes, computes closed-form max profit, max loss, break-evens
and net debit/credit.

Structural problems are reported on the ValidationResult, never raised.
Dollar figures assume 100 shares per contract. max_loss is a loss
magnitude; unbounded sides are Bound.unbounded().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from options.models import (
    SHARES_PER_CONTRACT,
    Bound,
    LegAction,
    OptionType,
    StrategyLeg,
    ValidationResult,
)

logger = logging.getLogger(__name__)

CALL = OptionType.CALL
PUT = OptionType.PUT
BUY = LegAction.BUY
SELL = LegAction.SELL


@dataclass(frozen=True)
class StrategyRequirement:
    min_legs: int
    max_legs: int
    required_types: Tuple[str, ...]  # "call" / "put"
    requires_same_expiration: bool
    description: str

    def to_dict(self) -> dict:
        return {
            "min_legs": self.min_legs,
            "max_legs": self.max_legs,
            "required_types": list(self.required_types),
            "requires_same_expiration": self.requires_same_expiration,
            "description": self.description,
        }


STRATEGY_REQUIREMENTS: Dict[str, StrategyRequirement] = {
    "Bull Call Spread": StrategyRequirement(
        2, 2, ("call", "call"), True,
        "Requires buying a call at lower strike and selling a call at higher strike"),
    "Bear Put Spread": StrategyRequirement(
        2, 2, ("put", "put"), True,
        "Requires buying a put at higher strike and selling a put at lower strike"),
    "Bear Call Spread": StrategyRequirement(
        2, 2, ("call", "call"), True,
        "Requires selling a call at lower strike and buying a call at higher strike"),
    "Buy Put": StrategyRequirement(1, 1, ("put",), True, "Single long put position"),
    "Sell Call": StrategyRequirement(1, 1, ("call",), True, "Single short call position (unlimited risk)"),
    "Put Ratio Back Spread": StrategyRequirement(
        2, 3, ("put", "put"), True, "Sell one put, buy multiple puts at lower strike"),
    "Long Calendar with Puts": StrategyRequirement(
        2, 2, ("put", "put"), False, "Sell near-term put, buy longer-term put at same strike"),
    "Bear Condor": StrategyRequirement(
        4, 4, ("put", "put", "call", "call"), True, "Four-leg bearish range strategy"),
    "Bear Butterfly": StrategyRequirement(
        3, 4, ("put", "put", "put"), True, "Three-strike bearish butterfly with puts"),
    "Risk Reversal": StrategyRequirement(
        2, 2, ("put", "call"), True, "Buy put and sell call for synthetic short"),
    "Short Synthetic Future": StrategyRequirement(
        2, 2, ("call", "put"), True, "Sell call and buy put at same strike"),
    "Straddle": StrategyRequirement(
        2, 2, ("call", "put"), True, "Requires buying a call and put at the same strike price"),
    "Long Straddle": StrategyRequirement(
        2, 2, ("call", "put"), True, "Requires buying a call and put at the same strike price"),
    "Strangle": StrategyRequirement(
        2, 2, ("call", "put"), True, "Requires buying a call and put at different strike prices"),
    "Long Strangle": StrategyRequirement(
        2, 2, ("call", "put"), True, "Requires buying a call and put at different strike prices"),
    "Iron Condor": StrategyRequirement(
        4, 4, ("put", "put", "call", "call"), True,
        "Requires 4 legs: buy put, sell put, sell call, buy call"),
    "Butterfly Spread": StrategyRequirement(
        3, 4, ("call", "call", "call"), True,
        "Requires buying 1 lower strike, selling 2 middle strike, buying 1 higher strike"),
    "Iron Butterfly": StrategyRequirement(
        4, 4, ("put", "put", "call", "call"), True, "Requires 4 legs at 3 strikes with center ATM"),
}

SINGLE_LEG_STRATEGIES = ("Long Call", "Long Put", "Buy Put", "Cash-Secured Put", "Covered Call", "Sell Call")


# =============================================================================
# Helpers
# =============================================================================

def _dollars(per_share: float, quantity: int) -> float:
    return per_share * quantity * SHARES_PER_CONTRACT


def _first(legs: Sequence[StrategyLeg], predicate: Callable[[StrategyLeg], bool]) -> Optional[StrategyLeg]:
    return next((leg for leg in legs if predicate(leg)), None)


def _by_strike(legs: Sequence[StrategyLeg], option_type: OptionType) -> List[StrategyLeg]:
    return sorted((l for l in legs if l.contract.option_type == option_type), key=lambda l: l.contract.strike)


def _pair_checks(a: StrategyLeg, b: StrategyLeg, errors: List[str]) -> None:
    if a.contract.symbol != b.contract.symbol:
        errors.append("Both legs must have the same underlying asset")
    if a.contract.expiration != b.contract.expiration:
        errors.append("Both legs must have the same expiration date")


def _all_same(legs: Sequence[StrategyLeg], errors: List[str], same_type: bool = False) -> None:
    first = legs[0].contract
    for leg in legs:
        if leg.contract.symbol != first.symbol:
            errors.append("All legs must have the same underlying asset")
            break
        if leg.contract.expiration != first.expiration:
            errors.append("All legs must have the same expiration date")
            break
        if same_type and leg.contract.option_type != first.option_type:
            errors.append("All legs must be the same type (all calls or all puts)")
            break


def _bought_and_sold(legs: Sequence[StrategyLeg]) -> List[str]:
    """Contracts that appear on both sides of the same strategy."""
    actions: Dict[str, set] = {}
    for leg in legs:
        if not leg.contract.contract_symbol:
            continue
        actions.setdefault(leg.contract.contract_symbol, set()).add(leg.action)
    return [
        f"Duplicate contract {symbol} is both bought and sold"
        for symbol, sides in actions.items()
        if len(sides) > 1
    ]


def _net_premium(legs: Sequence[StrategyLeg]) -> float:
    """Signed premium in dollars: positive = credit received."""
    return sum(-leg.action.sign * _dollars(leg.contract.last, leg.quantity) for leg in legs)


def _debit_or_credit(net_credit: float) -> Dict[str, Optional[float]]:
    return {
        "net_credit": net_credit if net_credit > 0 else None,
        "net_debit": -net_credit if net_credit < 0 else None,
    }


def _buy_sell_pair(legs: Sequence[StrategyLeg], name: str) -> Tuple[Optional[StrategyLeg], Optional[StrategyLeg], List[str]]:
    if len(legs) != 2:
        return None, None, [f"{name} requires exactly 2 legs"]
    buy = _first(legs, lambda l: l.action == BUY)
    sell = _first(legs, lambda l: l.action == SELL)
    if buy is None or sell is None:
        return None, None, ["Must have one buy leg and one sell leg"]
    return buy, sell, []


def _call_put_pair(legs: Sequence[StrategyLeg], name: str, missing: str = "Must have one call and one put") -> Tuple[Optional[StrategyLeg], Optional[StrategyLeg], List[str]]:
    if len(legs) != 2:
        return None, None, [f"{name} requires exactly 2 legs"]
    call = _first(legs, lambda l: l.contract.option_type == CALL)
    put = _first(legs, lambda l: l.contract.option_type == PUT)
    if call is None or put is None:
        return None, None, [missing]
    return call, put, []


def _result(errors: List[str], warnings: List[str], **fields) -> ValidationResult:
    if errors:
        return ValidationResult.invalid(errors, warnings)
    if "break_even_points" in fields:
        fields["break_even_points"] = tuple(sorted(fields["break_even_points"]))
    return ValidationResult(is_valid=True, warnings=tuple(warnings), **fields)


# =============================================================================
# Vertical spreads
# =============================================================================

def validate_bull_call_spread(legs: Sequence[StrategyLeg]) -> ValidationResult:
    """Long lower-strike call, short higher-strike call, same size."""
    buy, sell, errors = _buy_sell_pair(legs, "Bull Call Spread")
    if errors:
        return ValidationResult.invalid(errors)
    warnings: List[str] = []

    if buy.contract.option_type != CALL or sell.contract.option_type != CALL:
        errors.append("Both legs must be call options")
    _pair_checks(buy, sell, errors)
    if buy.contract.strike >= sell.contract.strike:
        errors.append("Buy call strike must be lower than sell call strike")
    if buy.quantity != sell.quantity:
        errors.append("Both legs must have the same quantity")
    if buy.contract.contract_symbol == sell.contract.contract_symbol:
        errors.append("Cannot use the same contract for both legs")
    if buy.contract.is_illiquid:
        warnings.append("Buy leg has low liquidity")
    if sell.contract.is_illiquid:
        warnings.append("Sell leg has low liquidity")

    premium = buy.contract.last - sell.contract.last
    net_debit = _dollars(premium, buy.quantity)
    max_profit = _dollars(sell.contract.strike - buy.contract.strike, buy.quantity) - net_debit
    if max_profit <= 0:
        warnings.append("This spread has no profit potential at current prices")

    return _result(
        errors, warnings,
        max_profit=Bound.of(max_profit),
        max_loss=Bound.of(net_debit),
        break_even_points=[buy.contract.strike + premium],
        net_debit=net_debit,
    )


def validate_bear_put_spread(legs: Sequence[StrategyLeg]) -> ValidationResult:
    """Long higher-strike put, short lower-strike put, same size."""
    buy, sell, errors = _buy_sell_pair(legs, "Bear Put Spread")
    if errors:
        return ValidationResult.invalid(errors)
    warnings: List[str] = []

    if buy.contract.option_type != PUT or sell.contract.option_type != PUT:
        errors.append("Both legs must be put options")
    _pair_checks(buy, sell, errors)
    if buy.contract.strike <= sell.contract.strike:
        errors.append("Buy put strike must be higher than sell put strike")
    if buy.quantity != sell.quantity:
        errors.append("Both legs must have the same quantity")
    if buy.contract.contract_symbol == sell.contract.contract_symbol:
        errors.append("Cannot use the same contract for both legs")
    if buy.contract.is_illiquid:
        warnings.append("Buy leg has low liquidity")
    if sell.contract.is_illiquid:
        warnings.append("Sell leg has low liquidity")

    premium = buy.contract.last - sell.contract.last
    net_debit = _dollars(premium, buy.quantity)
    max_profit = _dollars(buy.contract.strike - sell.contract.strike, buy.quantity) - net_debit
    if max_profit <= 0:
        warnings.append("This spread has no profit potential at current prices")

    return _result(
        errors, warnings,
        max_profit=Bound.of(max_profit),
        max_loss=Bound.of(net_debit),
        break_even_points=[buy.contract.strike - premium],
        net_debit=net_debit,
    )


def validate_bear_call_spread(legs: Sequence[StrategyLeg]) -> ValidationResult:
    """Short lower-strike call, long higher-strike call (credit spread)."""
    buy, sell, errors = _buy_sell_pair(legs, "Bear Call Spread")
    if errors:
        return ValidationResult.invalid(errors)
    warnings: List[str] = []

    if sell.contract.option_type != CALL or buy.contract.option_type != CALL:
        errors.append("Both legs must be call options")
    _pair_checks(sell, buy, errors)
    if sell.contract.strike >= buy.contract.strike:
        errors.append("Sell call strike must be lower than buy call strike")
    if sell.quantity != buy.quantity:
        errors.append("Both legs must have the same quantity")

    premium = sell.contract.last - buy.contract.last
    net_credit = _dollars(premium, sell.quantity)
    max_loss = _dollars(buy.contract.strike - sell.contract.strike, sell.quantity) - net_credit
    if net_credit <= 0:
        warnings.append("This spread should generate a net credit")

    return _result(
        errors, warnings,
        max_profit=Bound.of(net_credit),
        max_loss=Bound.of(max_loss),
        break_even_points=[sell.contract.strike + premium],
        net_credit=net_credit,
    )


# =============================================================================
# Volatility plays
# =============================================================================

def validate_straddle(legs: Sequence[StrategyLeg]) -> ValidationResult:
    """Long call and long put at the same strike."""
    call, put, errors = _call_put_pair(legs, "Straddle")
    if errors:
        return ValidationResult.invalid(errors)

    if call.action != BUY or put.action != BUY:
        errors.append("Both legs must be buys for a long straddle")
    _pair_checks(call, put, errors)
    if call.contract.strike != put.contract.strike:
        errors.append("Call and put must have the same strike price for a straddle")
    if call.quantity != put.quantity:
        errors.append("Both legs must have the same quantity")

    combined = call.contract.last + put.contract.last
    net_debit = _dollars(combined, call.quantity)
    return _result(
        errors, [],
        max_profit=Bound.unbounded(),
        max_loss=Bound.of(net_debit),
        break_even_points=[call.contract.strike - combined, call.contract.strike + combined],
        net_debit=net_debit,
    )


def validate_strangle(legs: Sequence[StrategyLeg]) -> ValidationResult:
    """Long OTM call and long OTM put, call strike above put strike."""
    call, put, errors = _call_put_pair(legs, "Strangle")
    if errors:
        return ValidationResult.invalid(errors)
    warnings: List[str] = []

    if call.action != BUY or put.action != BUY:
        errors.append("Both legs must be buys for a long strangle")
    _pair_checks(call, put, errors)
    if call.contract.strike == put.contract.strike:
        warnings.append("Call and put have the same strike - this is a straddle, not a strangle")
    if call.contract.strike < put.contract.strike:
        errors.append("Call strike must be higher than put strike for a strangle")
    if call.quantity != put.quantity:
        errors.append("Both legs must have the same quantity")

    combined = call.contract.last + put.contract.last
    net_debit = _dollars(combined, call.quantity)
    return _result(
        errors, warnings,
        max_profit=Bound.unbounded(),
        max_loss=Bound.of(net_debit),
        break_even_points=[put.contract.strike - combined, call.contract.strike + combined],
        net_debit=net_debit,
    )


def _strip_or_strap(legs: Sequence[StrategyLeg], name: str, calls: int, puts: int) -> ValidationResult:
    call, put, errors = _call_put_pair(
        legs, name, missing="Must have one call leg and one put leg"
    )
    if errors:
        if len(legs) != 2:
            errors = [f"{name} requires exactly 2 legs ({calls} call{'s' if calls > 1 else ''}, "
                      f"{puts} put{'s' if puts > 1 else ''})"]
        return ValidationResult.invalid(errors)
    warnings: List[str] = []

    if call.action != BUY or put.action != BUY:
        errors.append("Both legs must be buys")
    if call.quantity != calls or put.quantity != puts:
        errors.append(f"{name} requires {calls} call{'s' if calls > 1 else ''} and {puts} put{'s' if puts > 1 else ''}")
    if call.contract.strike != put.contract.strike:
        warnings.append(f"For standard {name}, calls and puts should be at the same strike")

    net_debit = _dollars(call.contract.last * call.quantity + put.contract.last * put.quantity, 1)
    return _result(
        errors, warnings,
        max_profit=Bound.unbounded(),
        max_loss=Bound.of(net_debit),
        net_debit=net_debit,
    )


def validate_strip(legs: Sequence[StrategyLeg]) -> ValidationResult:
    """One long call and two long puts, bearish straddle."""
    return _strip_or_strap(legs, "Strip", calls=1, puts=2)


def validate_strap(legs: Sequence[StrategyLeg]) -> ValidationResult:
    """Two long calls and one long put, bullish straddle."""
    return _strip_or_strap(legs, "Strap", calls=2, puts=1)


# =============================================================================
# Four-leg and butterfly shapes
# =============================================================================

def _condor_wings(legs: Sequence[StrategyLeg], name: str, atm_hint: bool = False) -> Tuple[List[StrategyLeg], List[StrategyLeg], List[str]]:
    if len(legs) != 4:
        return [], [], [f"{name} requires exactly 4 legs"]
    puts, calls = _by_strike(legs, PUT), _by_strike(legs, CALL)
    if len(puts) != 2 or len(calls) != 2:
        return [], [], ["Must have 2 puts and 2 calls"]

    errors: List[str] = []
    atm = " (ATM)" if atm_hint else ""
    if puts[0].contract.strike == puts[1].contract.strike:
        errors.append("Put strikes must differ: lower put bought, higher put sold")
    if calls[0].contract.strike == calls[1].contract.strike:
        errors.append("Call strikes must differ: lower call sold, higher call bought")
    if puts[0].action != BUY or puts[1].action != SELL:
        errors.append(f"Lower put should be bought, higher put{atm} should be sold")
    if calls[0].action != SELL or calls[1].action != BUY:
        errors.append(f"Lower call{atm} should be sold, higher call should be bought")
    return puts, calls, errors


def validate_iron_condor(legs: Sequence[StrategyLeg]) -> ValidationResult:
    """
    Short put spread below a short call spread.

    Width and break-evens are scaled by the first leg's quantity; unequal
    leg quantities are flagged.
    """
    if len(legs) != 4:
        return ValidationResult.invalid(["Iron Condor requires exactly 4 legs"])
    puts, calls = _by_strike(legs, PUT), _by_strike(legs, CALL)
    if len(puts) != 2 or len(calls) != 2:
        return ValidationResult.invalid(["Must have 2 puts and 2 calls"])

    errors: List[str] = []
    warnings: List[str] = []
    _all_same(legs, errors)
    _, _, wing_errors = _condor_wings(legs, "Iron Condor")
    errors.extend(wing_errors)
    if puts[1].contract.strike >= calls[0].contract.strike:
        errors.append("Put spread strikes should be below call spread strikes")

    qty = legs[0].quantity
    if any(leg.quantity != qty for leg in legs):
        warnings.append("Legs have unequal quantities; P/L figures use the first leg's quantity")

    net_credit = _net_premium(legs)
    put_width = (puts[1].contract.strike - puts[0].contract.strike) * SHARES_PER_CONTRACT
    call_width = (calls[1].contract.strike - calls[0].contract.strike) * SHARES_PER_CONTRACT
    max_loss = max(put_width, call_width) * qty - net_credit
    if net_credit <= 0:
        warnings.append("Iron Condor should be a net credit strategy")

    per_share_credit = net_credit / (SHARES_PER_CONTRACT * qty)
    return _result(
        errors, warnings,
        max_profit=Bound.of(net_credit),
        max_loss=Bound.of(max_loss),
        break_even_points=[
            puts[1].contract.strike - per_share_credit,
            calls[0].contract.strike + per_share_credit,
        ],
        net_credit=net_credit,
    )


def validate_butterfly_spread(legs: Sequence[StrategyLeg]) -> ValidationResult:
    """
    Three strikes, one option type.

    Max profit and max loss are both reported as |net premium|, which
    ignores strike spacing; the result carries a warning saying so.
    """
    if not 3 <= len(legs) <= 4:
        return ValidationResult.invalid(["Butterfly Spread requires 3 or 4 legs"])

    errors: List[str] = []
    _all_same(legs, errors, same_type=True)
    if len({leg.contract.strike for leg in legs}) != 3:
        errors.append("Butterfly requires exactly 3 different strike prices")

    net = abs(_net_premium(legs))
    return _result(
        errors,
        ["Max profit and max loss are approximated by the net premium"],
        max_profit=Bound.of(net),
        max_loss=Bound.of(net),
        net_debit=net,
    )


def _long_iron(legs: Sequence[StrategyLeg], name: str, atm_hint: bool) -> ValidationResult:
    _, _, errors = _condor_wings(legs, name, atm_hint=atm_hint)
    if errors:
        return ValidationResult.invalid(errors)
    net = abs(_net_premium(legs))
    return _result(
        errors, [],
        max_profit=Bound.unbounded(),
        max_loss=Bound.of(net),
        net_debit=net,
    )


def validate_long_iron_butterfly(legs: Sequence[StrategyLeg]) -> ValidationResult:
    return _long_iron(legs, "Long Iron Butterfly", atm_hint=True)


def validate_long_iron_condor(legs: Sequence[StrategyLeg]) -> ValidationResult:
    return _long_iron(legs, "Long Iron Condor", atm_hint=False)


# =============================================================================
# Ratio spreads
# =============================================================================

def validate_put_ratio_back_spread(legs: Sequence[StrategyLeg]) -> ValidationResult:
    """One short higher-strike put against more long lower-strike puts."""
    if len(legs) < 2:
        return ValidationResult.invalid(["Put Ratio Back Spread requires at least 2 legs"])

    sells = [l for l in legs if l.action == SELL]
    buys = [l for l in legs if l.action == BUY]
    errors: List[str] = []
    warnings: List[str] = []
    if len(sells) != 1:
        errors.append("Must have exactly one sell leg")
    if not buys:
        errors.append("Must have at least one buy leg")
    if errors:
        return ValidationResult.invalid(errors)

    sell, buy = sells[0], buys[0]
    if sell.contract.option_type != PUT or buy.contract.option_type != PUT:
        errors.append("All legs must be put options")
    if sell.contract.strike <= buy.contract.strike:
        errors.append("Sell put strike must be higher than buy put strike")
    if buy.quantity <= sell.quantity:
        warnings.append("Buy leg should have more contracts than sell leg for ratio spread")

    net_credit = _dollars(sell.contract.last, sell.quantity) - _dollars(buy.contract.last, buy.quantity)
    spread_width = (sell.contract.strike - buy.contract.strike) * SHARES_PER_CONTRACT
    max_risk = spread_width * sell.quantity - net_credit

    return _result(
        errors, warnings,
        max_profit=Bound.unbounded(),
        max_loss=Bound.of(max_risk),
        **_debit_or_credit(net_credit),
    )


def _ratio_spread(legs: Sequence[StrategyLeg], name: str, option_type: OptionType) -> ValidationResult:
    buy, sell, errors = _buy_sell_pair(legs, name)
    if errors:
        return ValidationResult.invalid(errors)
    is_call = option_type == CALL
    kind = "call" if is_call else "put"

    if buy.contract.option_type != option_type or sell.contract.option_type != option_type:
        errors.append(f"Both legs must be {kind} options")
    if sell.quantity <= buy.quantity:
        errors.append("Sell leg must have more contracts than buy leg for ratio spread")
    if is_call and buy.contract.strike >= sell.contract.strike:
        errors.append("Buy call strike must be lower than sell call strike")
    if not is_call and buy.contract.strike <= sell.contract.strike:
        errors.append("Buy put strike must be higher than sell put strike")

    warnings = [
        "WARNING: Call Ratio Spread has unlimited upside risk" if is_call
        else "WARNING: Put Ratio Spread has significant downside risk"
    ]
    net_credit = _dollars(sell.contract.last, sell.quantity) - _dollars(buy.contract.last, buy.quantity)
    width = abs(sell.contract.strike - buy.contract.strike)
    return _result(
        errors, warnings,
        max_profit=Bound.of(_dollars(width, buy.quantity) + net_credit),
        max_loss=Bound.unbounded(),
        **_debit_or_credit(net_credit),
    )


def validate_call_ratio_spread(legs: Sequence[StrategyLeg]) -> ValidationResult:
    """Long lower-strike call against more short higher-strike calls."""
    return _ratio_spread(legs, "Call Ratio Spread", CALL)


def validate_put_ratio_spread(legs: Sequence[StrategyLeg]) -> ValidationResult:
    """Long higher-strike put against more short lower-strike puts."""
    return _ratio_spread(legs, "Put Ratio Spread", PUT)


# =============================================================================
# Synthetics
# =============================================================================

def _long_put_short_call(legs: Sequence[StrategyLeg], name: str) -> Tuple[Optional[StrategyLeg], Optional[StrategyLeg], List[str]]:
    call, put, errors = _call_put_pair(legs, name)
    if errors:
        return None, None, errors
    if put.action != BUY:
        errors.append("Put leg must be a buy")
    if call.action != SELL:
        errors.append("Call leg must be a sell")
    return call, put, errors


def validate_risk_reversal(legs: Sequence[StrategyLeg]) -> ValidationResult:
    """Long put, short call."""
    call, put, errors = _long_put_short_call(legs, "Risk Reversal")
    if call is None:
        return ValidationResult.invalid(errors)
    _pair_checks(put, call, errors)

    net_cost = _dollars(put.contract.last - call.contract.last, put.quantity)
    return _result(
        errors,
        ["Risk Reversal has unlimited risk above the short call strike"],
        max_profit=Bound.unbounded(),
        max_loss=Bound.unbounded(),
        break_even_points=[put.contract.strike - net_cost / SHARES_PER_CONTRACT],
        **_debit_or_credit(-net_cost),
    )


def validate_short_synthetic_future(legs: Sequence[StrategyLeg]) -> ValidationResult:
    """Long put and short call at the same strike."""
    call, put, errors = _long_put_short_call(legs, "Short Synthetic Future")
    if call is None:
        return ValidationResult.invalid(errors)
    if put.contract.strike != call.contract.strike:
        errors.append("Put and call must have the same strike price")
    _pair_checks(put, call, errors)

    net_cost = _dollars(put.contract.last - call.contract.last, put.quantity)
    return _result(
        errors,
        ["Synthetic short position has unlimited risk on upside"],
        max_profit=Bound.unbounded(),
        max_loss=Bound.unbounded(),
        break_even_points=[call.contract.strike],
        **_debit_or_credit(-net_cost),
    )


# =============================================================================
# Single leg and calendar
# =============================================================================

def _single_leg(strategy_name: str, legs: Sequence[StrategyLeg]) -> ValidationResult:
    if len(legs) != 1:
        return ValidationResult.invalid(["Single-leg strategy requires exactly 1 contract"])
    leg = legs[0]
    warnings = ["WARNING: Naked call selling has unlimited risk"] if strategy_name == "Sell Call" else []
    cash = _dollars(leg.contract.last, leg.quantity)
    return _result(
        [], warnings,
        net_debit=cash if leg.action == BUY else None,
        net_credit=cash if leg.action == SELL else None,
    )


def validate_long_calendar_with_puts(legs: Sequence[StrategyLeg]) -> ValidationResult:
    if len(legs) != 2:
        return ValidationResult.invalid(["Calendar spread requires exactly 2 legs"])
    return _result(
        [],
        ["Calendar spreads require different expirations"],
        net_debit=abs(_dollars(legs[0].contract.last - legs[1].contract.last, legs[0].quantity)),
    )


# =============================================================================
# Dispatch
# =============================================================================

Validator = Callable[[Sequence[StrategyLeg]], ValidationResult]

_VALIDATORS: Dict[str, Validator] = {
    "Bull Call Spread": validate_bull_call_spread,
    "Bear Put Spread": validate_bear_put_spread,
    "Bear Call Spread": validate_bear_call_spread,
    "Put Ratio Back Spread": validate_put_ratio_back_spread,
    "Risk Reversal": validate_risk_reversal,
    "Short Synthetic Future": validate_short_synthetic_future,
    "Straddle": validate_straddle,
    "Long Straddle": validate_straddle,
    "Strangle": validate_strangle,
    "Long Strangle": validate_strangle,
    "Iron Condor": validate_iron_condor,
    "Bear Condor": validate_iron_condor,
    "Butterfly Spread": validate_butterfly_spread,
    "Bear Butterfly": validate_butterfly_spread,
    "Call Ratio Spread": validate_call_ratio_spread,
    "Put Ratio Spread": validate_put_ratio_spread,
    "Strip": validate_strip,
    "Strap": validate_strap,
    "Long Iron Butterfly": validate_long_iron_butterfly,
    "Long Iron Condor": validate_long_iron_condor,
    "Long Calendar with Puts": validate_long_calendar_with_puts,
}


def validate_strategy(strategy_name: str, legs: Sequence[StrategyLeg]) -> ValidationResult:
    """Check legs against the named strategy shape."""
    if not legs:
        return ValidationResult.invalid(["No legs selected"])

    if strategy_name in SINGLE_LEG_STRATEGIES:
        result = _single_leg(strategy_name, legs)
    elif strategy_name in _VALIDATORS:
        result = _VALIDATORS[strategy_name](legs)
    else:
        return ValidationResult.invalid([f"Unknown strategy: {strategy_name}"])

    duplicates = _bought_and_sold(legs)
    if duplicates:
        result = ValidationResult.invalid(duplicates + list(result.errors), list(result.warnings))

    if not result.is_valid:
        logger.debug(f"{strategy_name} rejected: {'; '.join(result.errors)}")
    return result


def get_requirements(strategy_name: str) -> Optional[StrategyRequirement]:
    return STRATEGY_REQUIREMENTS.get(strategy_name)


def is_single_leg_strategy(strategy_name: str) -> bool:
    return strategy_name in SINGLE_LEG_STRATEGIES


def supported_strategies() -> List[str]:
    """Every strategy name validate_strategy understands."""
    return sorted(set(_VALIDATORS) | set(SINGLE_LEG_STRATEGIES))
