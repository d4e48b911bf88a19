"""
Options Analytics Engine.

Pure, synchronous analytics over caller-supplied contract snapshots:
- Black-Scholes pricing with Greeks and implied volatility
- Greeks engine: per contract, scenarios, strategy totals, sensitivity sweeps
- Structural validation of named multi-leg strategies
- Expiry payoff sampling with break-evens and unbounded-side detection
- Kelly criterion position sizing

Nothing here fetches market data, persists state or routes orders.
"""

from .models import (
    OptionType,
    LegAction,
    OptionContract,
    StrategyLeg,
    GreeksData,
    GreeksResult,
    GreeksStatus,
    Bound,
    ValidationResult,
    PayoffPoint,
    StrategyPayoff,
    KellyCalculationResult,
    RiskLevel,
    SHARES_PER_CONTRACT,
)

from .black_scholes import (
    BlackScholes,
    OptionPricing,
    price,
    implied_volatility,
)

from .greeks import (
    Scenario,
    PriceRange,
    StrategyGreeks,
    time_to_expiry,
    calculate_greeks,
    scenario_greeks,
    strategy_greeks,
    sensitivity_sweep,
    sweep_to_frame,
    interpret_greek,
)

from .strategy_validation import (
    validate_strategy,
    get_requirements,
    is_single_leg_strategy,
    supported_strategies,
)

from .payoff import (
    PriceGrid,
    calculate_payoff,
    template_legs,
    template_payoff,
)

from .position_sizing import (
    TradeStatistics,
    optimal_kelly,
    size_position,
    validate_trade_metrics,
)

__all__ = [
    # Models
    'OptionType',
    'LegAction',
    'OptionContract',
    'StrategyLeg',
    'GreeksData',
    'GreeksResult',
    'GreeksStatus',
    'Bound',
    'ValidationResult',
    'PayoffPoint',
    'StrategyPayoff',
    'KellyCalculationResult',
    'RiskLevel',
    'SHARES_PER_CONTRACT',
    # Black-Scholes
    'BlackScholes',
    'OptionPricing',
    'price',
    'implied_volatility',
    # Greeks
    'Scenario',
    'PriceRange',
    'StrategyGreeks',
    'time_to_expiry',
    'calculate_greeks',
    'scenario_greeks',
    'strategy_greeks',
    'sensitivity_sweep',
    'sweep_to_frame',
    'interpret_greek',
    # Strategy validation
    'validate_strategy',
    'get_requirements',
    'is_single_leg_strategy',
    'supported_strategies',
    # Payoff
    'PriceGrid',
    'calculate_payoff',
    'template_legs',
    'template_payoff',
    # Position sizing
    'TradeStatistics',
    'optimal_kelly',
    'size_position',
    'validate_trade_metrics',
]
