"""
Tests for strategy structural validation and closed-form P/L.
"""
import math
from datetime import date

import pytest

from options.models import LegAction, OptionType
from options.strategy_validation import (
    get_requirements,
    is_single_leg_strategy,
    supported_strategies,
    validate_strategy,
)

CALL, PUT = OptionType.CALL, OptionType.PUT
BUY, SELL = LegAction.BUY, LegAction.SELL


class TestDispatch:
    """Entry-point behaviour."""

    def test_no_legs(self):
        result = validate_strategy("Bull Call Spread", [])
        assert not result.is_valid
        assert result.errors == ("No legs selected",)

    def test_unknown_strategy(self, bull_call_legs):
        result = validate_strategy("Jade Lizard", bull_call_legs)
        assert not result.is_valid
        assert "Unknown strategy: Jade Lizard" in result.errors

    def test_supported_includes_aliases(self):
        names = supported_strategies()
        for name in ("Long Straddle", "Bear Condor", "Bear Butterfly", "Sell Call", "Long Calendar with Puts"):
            assert name in names

    def test_requirements_table(self):
        req = get_requirements("Iron Condor")
        assert req.min_legs == req.max_legs == 4
        assert req.requires_same_expiration
        assert get_requirements("Long Calendar with Puts").requires_same_expiration is False
        assert get_requirements("Nope") is None

    def test_single_leg_names(self):
        assert is_single_leg_strategy("Covered Call")
        assert not is_single_leg_strategy("Straddle")


class TestBullCallSpread:
    """Debit call vertical."""

    def test_worked_example(self, bull_call_legs):
        """Buy 95C @ 6, sell 105C @ 2."""
        result = validate_strategy("Bull Call Spread", bull_call_legs)

        assert result.is_valid
        assert result.net_debit == pytest.approx(400)
        assert float(result.max_profit) == pytest.approx(600)
        assert float(result.max_loss) == pytest.approx(400)
        assert result.break_even_points == pytest.approx((99.0,))

    def test_profit_plus_loss_equals_width(self, make_leg):
        legs = [make_leg(100, CALL, BUY, last=4.1, quantity=3), make_leg(110, CALL, SELL, last=1.3, quantity=3)]
        result = validate_strategy("Bull Call Spread", legs)

        assert float(result.max_profit) + float(result.max_loss) == pytest.approx(10 * 3 * 100)

    def test_inverted_strikes(self, make_leg):
        legs = [make_leg(105, CALL, BUY, last=2), make_leg(95, CALL, SELL, last=6)]
        result = validate_strategy("Bull Call Spread", legs)

        assert not result.is_valid
        assert "Buy call strike must be lower than sell call strike" in result.errors
        assert result.max_profit is None

    def test_two_buys(self, make_leg):
        legs = [make_leg(95, CALL, BUY), make_leg(105, CALL, BUY)]
        result = validate_strategy("Bull Call Spread", legs)
        assert result.errors == ("Must have one buy leg and one sell leg",)

    def test_wrong_leg_count(self, make_leg):
        result = validate_strategy("Bull Call Spread", [make_leg(95)])
        assert result.errors == ("Bull Call Spread requires exactly 2 legs",)

    def test_mismatched_expiration_and_qty(self, make_leg):
        legs = [
            make_leg(95, CALL, BUY, last=6, quantity=1),
            make_leg(105, CALL, SELL, last=2, quantity=2, expiration=date(2025, 3, 21)),
        ]
        result = validate_strategy("Bull Call Spread", legs)

        assert not result.is_valid
        assert "Both legs must have the same expiration date" in result.errors
        assert "Both legs must have the same quantity" in result.errors

    def test_same_contract(self, make_leg):
        legs = [make_leg(95, CALL, BUY, last=6, contract_symbol="X"), make_leg(105, CALL, SELL, last=2, contract_symbol="X")]
        result = validate_strategy("Bull Call Spread", legs)
        assert "Cannot use the same contract for both legs" in result.errors

    def test_warnings_do_not_block(self, make_leg):
        legs = [
            make_leg(95, CALL, BUY, last=12, volume=0, open_interest=0),
            make_leg(105, CALL, SELL, last=1),
        ]
        result = validate_strategy("Bull Call Spread", legs)

        assert result.is_valid
        assert "Buy leg has low liquidity" in result.warnings
        assert "This spread has no profit potential at current prices" in result.warnings


class TestOtherVerticals:
    """Bear put and bear call spreads."""

    def test_bear_put_spread(self, make_leg):
        legs = [make_leg(105, PUT, BUY, last=6), make_leg(95, PUT, SELL, last=2)]
        result = validate_strategy("Bear Put Spread", legs)

        assert result.is_valid
        assert result.net_debit == pytest.approx(400)
        assert float(result.max_profit) == pytest.approx(600)
        assert result.break_even_points == pytest.approx((101.0,))

    def test_bear_put_wrong_order(self, make_leg):
        legs = [make_leg(95, PUT, BUY, last=2), make_leg(105, PUT, SELL, last=6)]
        result = validate_strategy("Bear Put Spread", legs)
        assert "Buy put strike must be higher than sell put strike" in result.errors

    def test_bear_call_spread_credit(self, make_leg):
        legs = [make_leg(100, CALL, SELL, last=3), make_leg(105, CALL, BUY, last=1)]
        result = validate_strategy("Bear Call Spread", legs)

        assert result.is_valid
        assert result.net_credit == pytest.approx(200)
        assert float(result.max_profit) == pytest.approx(200)
        assert float(result.max_loss) == pytest.approx(300)
        assert result.break_even_points == pytest.approx((102.0,))

    def test_bear_call_debit_warns(self, make_leg):
        legs = [make_leg(100, CALL, SELL, last=1), make_leg(105, CALL, BUY, last=2)]
        result = validate_strategy("Bear Call Spread", legs)
        assert "This spread should generate a net credit" in result.warnings


class TestStraddleStrangle:
    """Long volatility shapes."""

    @pytest.mark.parametrize("name", ["Straddle", "Long Straddle"])
    def test_straddle(self, straddle_legs, name):
        result = validate_strategy(name, straddle_legs)

        assert result.is_valid
        assert result.max_profit.is_unbounded
        assert float(result.max_profit) == math.inf
        assert float(result.max_loss) == pytest.approx(550)
        lower, upper = result.break_even_points
        assert lower == pytest.approx(94.5)
        assert upper == pytest.approx(105.5)
        assert 100 - lower == pytest.approx(upper - 100)

    def test_straddle_strike_mismatch(self, make_leg):
        legs = [make_leg(100, CALL, BUY), make_leg(95, PUT, BUY)]
        result = validate_strategy("Straddle", legs)
        assert "Call and put must have the same strike price for a straddle" in result.errors

    def test_straddle_short_leg(self, make_leg):
        legs = [make_leg(100, CALL, SELL), make_leg(100, PUT, BUY)]
        result = validate_strategy("Straddle", legs)
        assert "Both legs must be buys for a long straddle" in result.errors

    def test_strangle(self, make_leg):
        legs = [make_leg(105, CALL, BUY, last=1.5), make_leg(95, PUT, BUY, last=1.0)]
        result = validate_strategy("Strangle", legs)

        assert result.is_valid
        assert result.max_profit.is_unbounded
        assert result.break_even_points == pytest.approx((92.5, 107.5))

    def test_strangle_equal_strikes_is_warning(self, make_leg):
        legs = [make_leg(100, CALL, BUY, last=3), make_leg(100, PUT, BUY, last=2)]
        result = validate_strategy("Long Strangle", legs)

        assert result.is_valid
        assert any("straddle" in w for w in result.warnings)

    def test_strangle_inverted(self, make_leg):
        legs = [make_leg(95, CALL, BUY), make_leg(105, PUT, BUY)]
        result = validate_strategy("Strangle", legs)
        assert "Call strike must be higher than put strike for a strangle" in result.errors


class TestIronCondor:
    """Four-leg credit strategy."""

    def test_worked_example(self, iron_condor_legs):
        result = validate_strategy("Iron Condor", iron_condor_legs)

        assert result.is_valid
        assert result.net_credit == pytest.approx(150)
        assert float(result.max_profit) == pytest.approx(150)
        assert float(result.max_loss) == pytest.approx(350)
        assert result.break_even_points == pytest.approx((93.5, 106.5))

    def test_bear_condor_alias(self, iron_condor_legs):
        assert validate_strategy("Bear Condor", iron_condor_legs).is_valid

    def test_wrong_actions(self, make_leg):
        legs = [
            make_leg(90, PUT, SELL), make_leg(95, PUT, BUY),
            make_leg(105, CALL, SELL), make_leg(110, CALL, BUY),
        ]
        result = validate_strategy("Iron Condor", legs)
        assert "Lower put should be bought, higher put should be sold" in result.errors

    def test_overlapping_wings(self, make_leg):
        legs = [
            make_leg(90, PUT, BUY), make_leg(106, PUT, SELL),
            make_leg(105, CALL, SELL), make_leg(110, CALL, BUY),
        ]
        result = validate_strategy("Iron Condor", legs)
        assert "Put spread strikes should be below call spread strikes" in result.errors

    def test_three_calls(self, make_leg):
        legs = [make_leg(90, PUT, BUY), make_leg(95, CALL, SELL), make_leg(105, CALL, SELL), make_leg(110, CALL, BUY)]
        result = validate_strategy("Iron Condor", legs)
        assert result.errors == ("Must have 2 puts and 2 calls",)

    def test_quantity_scaling(self, make_leg):
        legs = [
            make_leg(90, PUT, BUY, last=0.5, quantity=2), make_leg(95, PUT, SELL, last=1.25, quantity=2),
            make_leg(105, CALL, SELL, last=1.25, quantity=2), make_leg(110, CALL, BUY, last=0.5, quantity=2),
        ]
        result = validate_strategy("Iron Condor", legs)

        assert result.net_credit == pytest.approx(300)
        assert float(result.max_loss) == pytest.approx(700)
        assert result.break_even_points == pytest.approx((93.5, 106.5))

    def test_unequal_quantities_warn(self, iron_condor_legs, make_leg):
        legs = list(iron_condor_legs)
        legs[3] = make_leg(110, CALL, BUY, last=0.5, quantity=2)
        result = validate_strategy("Iron Condor", legs)
        assert any("unequal quantities" in w for w in result.warnings)

    def test_same_contract_bought_and_sold(self, make_leg):
        legs = [
            make_leg(95, PUT, BUY, last=1.25), make_leg(95, PUT, SELL, last=1.25),
            make_leg(105, CALL, SELL, last=1.25), make_leg(110, CALL, BUY, last=0.50),
        ]
        result = validate_strategy("Iron Condor", legs)

        assert not result.is_valid
        assert result.errors[0] == "Duplicate contract SPY250201P00095000 is both bought and sold"
        assert "Put strikes must differ: lower put bought, higher put sold" in result.errors
        assert result.max_profit is None
        assert result.break_even_points == ()

    def test_equal_call_strikes(self, make_leg):
        legs = [
            make_leg(90, PUT, BUY), make_leg(95, PUT, SELL),
            make_leg(105, CALL, SELL), make_leg(105, CALL, BUY, contract_symbol="SPY-ALT-105C"),
        ]
        result = validate_strategy("Iron Condor", legs)

        assert result.errors == ("Call strikes must differ: lower call sold, higher call bought",)

    def test_duplicate_rejected_for_any_shape(self, make_leg):
        legs = [make_leg(100, CALL, BUY), make_leg(100, CALL, SELL)]
        result = validate_strategy("Bull Call Spread", legs)

        assert result.errors[0] == "Duplicate contract SPY250201C00100000 is both bought and sold"
        assert "Buy call strike must be lower than sell call strike" in result.errors


class TestButterfly:
    """Three-strike spreads."""

    def test_call_butterfly(self, make_leg):
        legs = [make_leg(95, CALL, BUY, last=6), make_leg(100, CALL, SELL, last=4, quantity=2), make_leg(105, CALL, BUY, last=2)]
        result = validate_strategy("Butterfly Spread", legs)

        assert result.is_valid
        assert result.net_debit == pytest.approx(0)
        assert float(result.max_profit) == float(result.max_loss)
        assert any("approximated" in w for w in result.warnings)

    def test_debit_magnitude(self, make_leg):
        legs = [make_leg(95, PUT, BUY, last=1), make_leg(100, PUT, SELL, last=2.5, quantity=2), make_leg(105, PUT, BUY, last=5)]
        result = validate_strategy("Bear Butterfly", legs)
        assert result.net_debit == pytest.approx(100)

    def test_two_strikes(self, make_leg):
        legs = [make_leg(95, CALL, BUY), make_leg(100, CALL, SELL, quantity=2), make_leg(100, CALL, BUY)]
        result = validate_strategy("Butterfly Spread", legs)
        assert "Butterfly requires exactly 3 different strike prices" in result.errors

    def test_mixed_types(self, make_leg):
        legs = [make_leg(95, CALL, BUY), make_leg(100, PUT, SELL, quantity=2), make_leg(105, CALL, BUY)]
        result = validate_strategy("Butterfly Spread", legs)
        assert "All legs must be the same type (all calls or all puts)" in result.errors

    def test_leg_count(self, make_leg):
        result = validate_strategy("Butterfly Spread", [make_leg(95), make_leg(100)])
        assert result.errors == ("Butterfly Spread requires 3 or 4 legs",)


class TestRatioAndSynthetics:
    """Shapes with unbounded sides."""

    def test_call_ratio_spread(self, make_leg):
        legs = [make_leg(100, CALL, BUY, last=5, quantity=1), make_leg(110, CALL, SELL, last=2, quantity=2)]
        result = validate_strategy("Call Ratio Spread", legs)

        assert result.is_valid
        assert result.max_loss.is_unbounded
        assert float(result.max_profit) == pytest.approx(1000 - 100)
        assert result.net_debit == pytest.approx(100)
        assert result.net_credit is None

    def test_call_ratio_needs_more_sells(self, make_leg):
        legs = [make_leg(100, CALL, BUY, quantity=2), make_leg(110, CALL, SELL, quantity=2)]
        result = validate_strategy("Call Ratio Spread", legs)
        assert "Sell leg must have more contracts than buy leg for ratio spread" in result.errors

    def test_put_ratio_spread(self, make_leg):
        legs = [make_leg(100, PUT, BUY, last=4, quantity=1), make_leg(90, PUT, SELL, last=2.5, quantity=2)]
        result = validate_strategy("Put Ratio Spread", legs)

        assert result.is_valid
        assert result.net_credit == pytest.approx(100)
        assert float(result.max_profit) == pytest.approx(1100)
        assert float(result.max_loss) == math.inf

    def test_put_ratio_back_spread(self, make_leg):
        legs = [make_leg(100, PUT, SELL, last=5, quantity=1), make_leg(90, PUT, BUY, last=2, quantity=2)]
        result = validate_strategy("Put Ratio Back Spread", legs)

        assert result.is_valid
        assert result.max_profit.is_unbounded
        assert result.net_credit == pytest.approx(100)
        assert float(result.max_loss) == pytest.approx(900)

    def test_put_ratio_back_spread_two_sells(self, make_leg):
        legs = [make_leg(100, PUT, SELL), make_leg(95, PUT, SELL), make_leg(90, PUT, BUY)]
        result = validate_strategy("Put Ratio Back Spread", legs)
        assert "Must have exactly one sell leg" in result.errors

    def test_risk_reversal(self, make_leg):
        legs = [make_leg(95, PUT, BUY, last=2), make_leg(105, CALL, SELL, last=1.5)]
        result = validate_strategy("Risk Reversal", legs)

        assert result.is_valid
        assert result.max_profit.is_unbounded and result.max_loss.is_unbounded
        assert result.net_debit == pytest.approx(50)
        assert result.break_even_points == pytest.approx((94.5,))

    def test_short_synthetic_future(self, make_leg):
        legs = [make_leg(100, PUT, BUY, last=2), make_leg(100, CALL, SELL, last=3)]
        result = validate_strategy("Short Synthetic Future", legs)

        assert result.is_valid
        assert result.net_credit == pytest.approx(100)
        assert result.break_even_points == (100,)

    def test_short_synthetic_strike_mismatch(self, make_leg):
        legs = [make_leg(95, PUT, BUY), make_leg(100, CALL, SELL)]
        result = validate_strategy("Short Synthetic Future", legs)
        assert "Put and call must have the same strike price" in result.errors

    def test_strip_and_strap(self, make_leg):
        strip = [make_leg(100, CALL, BUY, last=3, quantity=1), make_leg(100, PUT, BUY, last=2, quantity=2)]
        strap = [make_leg(100, CALL, BUY, last=3, quantity=2), make_leg(100, PUT, BUY, last=2, quantity=1)]

        strip_result = validate_strategy("Strip", strip)
        strap_result = validate_strategy("Strap", strap)

        assert strip_result.net_debit == pytest.approx(700)
        assert strap_result.net_debit == pytest.approx(800)
        assert strip_result.max_profit.is_unbounded
        assert not validate_strategy("Strip", strap).is_valid

    def test_long_iron_condor(self, iron_condor_legs):
        result = validate_strategy("Long Iron Condor", iron_condor_legs)

        assert result.is_valid
        assert result.net_debit == pytest.approx(150)
        assert result.max_profit.is_unbounded


class TestSingleLegAndCalendar:
    """One-leg strategies and the put calendar."""

    def test_long_call_debit(self, make_leg):
        result = validate_strategy("Long Call", [make_leg(100, CALL, BUY, last=2.5, quantity=2)])

        assert result.is_valid
        assert result.net_debit == pytest.approx(500)
        assert result.net_credit is None

    def test_sell_call_warns(self, make_leg):
        result = validate_strategy("Sell Call", [make_leg(100, CALL, SELL, last=2.5)])

        assert result.net_credit == pytest.approx(250)
        assert any("unlimited risk" in w for w in result.warnings)

    def test_single_leg_count(self, make_leg):
        result = validate_strategy("Cash-Secured Put", [make_leg(95, PUT, SELL), make_leg(90, PUT, SELL)])
        assert result.errors == ("Single-leg strategy requires exactly 1 contract",)

    def test_calendar(self, make_leg):
        legs = [
            make_leg(100, PUT, SELL, last=2.0),
            make_leg(100, PUT, BUY, last=3.5, expiration=date(2025, 3, 21)),
        ]
        result = validate_strategy("Long Calendar with Puts", legs)

        assert result.is_valid
        assert result.net_debit == pytest.approx(150)
