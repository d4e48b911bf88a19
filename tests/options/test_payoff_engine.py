"""
Tests for the payoff engine and named templates.
"""
import math
from datetime import date

import numpy as np
import pandas as pd
import pytest

from core.exceptions import InvalidInputError
from options.models import LegAction, OptionType
from options.payoff import (
    PriceGrid,
    calculate_payoff,
    default_grid,
    find_break_evens,
    template_legs,
    template_names,
    template_payoff,
    upside_slope,
)


class TestPriceGrid:
    """Grid construction and validation."""

    def test_inclusive_points(self):
        prices = PriceGrid(80, 120, 40).prices()

        assert len(prices) == 41
        assert prices[0] == 80
        assert prices[-1] == 120

    @pytest.mark.parametrize("kwargs", [
        {"min": 10, "max": 5},
        {"min": -1, "max": 5},
        {"min": 0, "max": 5, "steps": 0},
        {"min": 0, "max": float("inf")},
    ])
    def test_rejects_bad_grid(self, kwargs):
        with pytest.raises(InvalidInputError):
            PriceGrid(**kwargs)

    def test_default_grid_follows_config(self, bull_call_legs):
        grid = default_grid(bull_call_legs, 100)

        assert grid.min == pytest.approx(70)
        assert grid.max == pytest.approx(130)
        assert grid.steps == 100

    def test_default_grid_widens_for_far_strikes(self, make_leg):
        grid = default_grid([make_leg(200)], 100)
        assert grid.max == pytest.approx(220)



class TestCalculatePayoff:
    """Sampled expiry P&L."""

    def test_bull_call_spread(self, bull_call_legs):
        payoff = calculate_payoff(bull_call_legs, 100, strategy_name="Bull Call Spread")

        assert float(payoff.max_profit) == pytest.approx(600)
        assert float(payoff.max_loss) == pytest.approx(-400)
        assert payoff.break_even_points == pytest.approx((99.0,))
        assert not payoff.max_profit.is_unbounded
        assert payoff.strategy_name == "Bull Call Spread"

    def test_straddle_unbounded_profit(self, straddle_legs):
        payoff = calculate_payoff(straddle_legs, 100)

        assert payoff.max_profit.is_unbounded
        assert float(payoff.max_loss) == pytest.approx(-550)
        assert payoff.break_even_points == pytest.approx((94.5, 105.5))

    def test_naked_call_unbounded_loss(self, make_leg):
        payoff = calculate_payoff([make_leg(100, action=LegAction.SELL, last=3)], 100)

        assert payoff.max_loss.is_unbounded
        assert float(payoff.max_loss) == -math.inf
        assert float(payoff.max_profit) == pytest.approx(300)

    def test_long_put_extreme_at_zero(self, make_leg):
        payoff = calculate_payoff([make_leg(95, option_type=OptionType.PUT, last=2)], 100)

        # (95 - 2) x 100 once the stock is worthless, below the sampled grid
        assert payoff.points[0].price == pytest.approx(70)
        assert float(payoff.max_profit) == pytest.approx(9300)
        assert float(payoff.max_loss) == pytest.approx(-200)
        assert payoff.break_even_points == pytest.approx((93.0,))

    def test_put_extreme_with_custom_grid(self, iron_condor_legs):
        payoff = calculate_payoff(iron_condor_legs, 100, grid=PriceGrid(92, 108, 16))

        # Wings sit outside the grid; losses still cap at the wider spread
        assert float(payoff.max_loss) == pytest.approx(-350)

    def test_short_put_extreme_at_zero(self, make_leg):
        payoff = calculate_payoff([make_leg(95, option_type=OptionType.PUT, action=LegAction.SELL, last=2)], 100)

        assert float(payoff.max_loss) == pytest.approx(-9300)
        assert float(payoff.max_profit) == pytest.approx(200)

    def test_iron_condor_bounded(self, iron_condor_legs):
        payoff = calculate_payoff(iron_condor_legs, 100)

        assert float(payoff.max_profit) == pytest.approx(150)
        assert float(payoff.max_loss) == pytest.approx(-350)
        assert payoff.break_even_points == pytest.approx((93.5, 106.5))

    def test_break_evens_bracket_sign_change(self, iron_condor_legs):
        payoff = calculate_payoff(iron_condor_legs, 100, grid=PriceGrid(80, 120, 37))
        frame = payoff.to_frame()

        for be in payoff.break_even_points:
            below = frame[frame.price < be].profit.iloc[-1]
            above = frame[frame.price > be].profit.iloc[0]
            assert below * above <= 0

    def test_custom_grid(self, bull_call_legs):
        payoff = calculate_payoff(bull_call_legs, 100, grid=PriceGrid(90, 110, 20))

        assert len(payoff.points) == 21
        assert payoff.points[0].price == 90
        prices = [p.price for p in payoff.points]
        assert prices == sorted(prices)

    def test_empty_legs(self, caplog):
        payoff = calculate_payoff([], 100, strategy_name="Nothing")

        assert payoff.points == ()
        assert float(payoff.max_profit) == 0
        assert payoff.break_even_points == ()
        assert "No legs" in caplog.text

    @pytest.mark.parametrize("spot", [0, -10, float("nan")])
    def test_bad_spot(self, bull_call_legs, spot):
        with pytest.raises(InvalidInputError):
            calculate_payoff(bull_call_legs, spot)

    def test_deterministic(self, iron_condor_legs):
        assert calculate_payoff(iron_condor_legs, 100) == calculate_payoff(iron_condor_legs, 100)

    def test_to_frame_and_dict(self, straddle_legs):
        payoff = calculate_payoff(straddle_legs, 100, grid=PriceGrid(90, 110, 4))

        frame = payoff.to_frame()
        assert isinstance(frame, pd.DataFrame)
        assert list(frame.columns) == ["price", "profit"]
        assert len(frame) == 5

        data = payoff.to_dict()
        assert data["max_profit"] == "unlimited"
        assert data["break_even_points"] == [94.5, 105.5]

    def test_quantity_scales_pnl(self, make_leg):
        single = calculate_payoff([make_leg(100, last=2, quantity=1)], 100)
        double = calculate_payoff([make_leg(100, last=2, quantity=2)], 100)
        assert float(double.max_loss) == pytest.approx(2 * float(single.max_loss))


class TestBreakEvenSearch:
    """Sign-change interpolation."""

    def test_exact_zero_sample_reported_once(self):
        prices = np.array([1.0, 2.0, 3.0])
        profits = np.array([-1.0, 0.0, 1.0])

        assert find_break_evens(prices, profits) == (2.0,)

    def test_no_crossing(self):
        prices = np.array([1.0, 2.0, 3.0])
        assert find_break_evens(prices, np.array([1.0, 2.0, 3.0])) == ()

    def test_upside_slope_counts_shares(self, make_leg):
        legs = [make_leg(105, action=LegAction.SELL)]
        assert upside_slope(legs) == -100
        assert upside_slope(legs, underlying_shares=100) == 0
        assert upside_slope([make_leg(95, option_type=OptionType.PUT)]) == 0


class TestTemplates:
    """Named strategy previews."""

    def test_names(self):
        names = template_names()
        assert len(names) == 8
        assert "Covered Call" in names

    def test_bull_call_template_strikes(self):
        legs = template_legs("Bull Call Spread", 100, expiration=date(2025, 2, 1))

        assert [leg.contract.strike for leg in legs] == pytest.approx([98, 102])
        assert [leg.contract.last for leg in legs] == pytest.approx([3.0, 1.5])
        assert legs[0].contract.contract_symbol == "SPOT250201C00098000"

    def test_covered_call_includes_stock(self):
        payoff = template_payoff("Covered Call", 100, expiration=date(2025, 2, 1))

        assert not payoff.max_profit.is_unbounded
        assert float(payoff.max_profit) == pytest.approx(800)
        assert payoff.break_even_points == pytest.approx((97.0,), abs=1e-6)

    def test_butterfly_quantities(self):
        legs = template_legs("Butterfly Spread", 100)
        assert [leg.quantity for leg in legs] == [1, 2, 1]

    def test_unknown_template(self):
        with pytest.raises(InvalidInputError):
            template_legs("Jade Lizard", 100)

    def test_bad_spot(self):
        with pytest.raises(InvalidInputError):
            template_payoff("Straddle", 0)
