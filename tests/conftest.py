"""
Pytest configuration and shared fixtures for options engine tests.
"""

import sys
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.settings_loader import reset_settings_cache  # noqa: E402
from options.models import LegAction, OptionContract, OptionType, StrategyLeg  # noqa: E402


# Fixed clock so time-to-expiry is reproducible
NOW = datetime(2025, 1, 2, tzinfo=timezone.utc)
EXPIRY = date(2025, 2, 1)  # 30 days after NOW


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Every test reads the bundled base.yaml, not a developer override."""
    monkeypatch.delenv("OPTIONS_ENGINE_CONFIG_PATH", raising=False)
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def expiry():
    return EXPIRY


def build_contract(
    strike,
    option_type=OptionType.CALL,
    last=1.0,
    iv=0.25,
    expiration=EXPIRY,
    symbol="SPY",
    volume=100,
    open_interest=500,
    **kwargs,
):
    flag = "C" if option_type == OptionType.CALL else "P"
    return OptionContract(
        symbol=symbol,
        contract_symbol=kwargs.pop(
            "contract_symbol", f"{symbol}{expiration:%y%m%d}{flag}{int(strike * 1000):08d}"
        ),
        option_type=option_type,
        expiration=expiration,
        strike=strike,
        last=last,
        implied_volatility=iv,
        volume=volume,
        open_interest=open_interest,
        **kwargs,
    )


def build_leg(strike, option_type=OptionType.CALL, action=LegAction.BUY, last=1.0, quantity=1, **kwargs):
    return StrategyLeg(
        contract=build_contract(strike, option_type=option_type, last=last, **kwargs),
        action=action,
        quantity=quantity,
    )


@pytest.fixture
def make_contract():
    """Factory for OptionContract snapshots expiring 30 days after NOW."""
    return build_contract


@pytest.fixture
def make_leg():
    """Factory for StrategyLegs."""
    return build_leg


@pytest.fixture
def bull_call_legs():
    """Buy 95 call @ 6.00, sell 105 call @ 2.00."""
    return [
        build_leg(95, OptionType.CALL, LegAction.BUY, last=6.0),
        build_leg(105, OptionType.CALL, LegAction.SELL, last=2.0),
    ]


@pytest.fixture
def iron_condor_legs():
    """Put spread 90/95 and call spread 105/110 for a $1.50 net credit."""
    return [
        build_leg(90, OptionType.PUT, LegAction.BUY, last=0.50),
        build_leg(95, OptionType.PUT, LegAction.SELL, last=1.25),
        build_leg(105, OptionType.CALL, LegAction.SELL, last=1.25),
        build_leg(110, OptionType.CALL, LegAction.BUY, last=0.50),
    ]


@pytest.fixture
def straddle_legs():
    return [
        build_leg(100, OptionType.CALL, LegAction.BUY, last=3.0),
        build_leg(100, OptionType.PUT, LegAction.BUY, last=2.5),
    ]


@pytest.fixture
def stale_clock():
    """A reference time after EXPIRY."""
    return NOW + timedelta(days=45)
