"""
quant_lab - Portfolio Simulation, Optimization and Pricing Analytics
"""

__version__ = "1.0.0"

# =============================================================================
# ERRORS AND CONFIGURATION
# =============================================================================
from .errors import (
    QuantLabError,
    InvalidInputError,
    NumericalDegeneracyError,
    InfeasibleOptimizationError,
    SimulationCancelledError,
)
from .config import (
    EngineSettings,
    DEFAULT_SETTINGS,
    FrontierMethod,
    OptionType,
)

# =============================================================================
# CORE TYPES
# =============================================================================
from .types import (
    Asset,
    SimulationConfig,
    SimulationStatistics,
    SimulationResult,
    WeightConstraints,
    FrontierPoint,
    EfficientFrontier,
    Greeks,
    OptionQuote,
    BondQuote,
    HistoricalVaR,
    RiskMetrics,
    PortfolioMetrics,
)

# =============================================================================
# PORTFOLIO STATISTICS
# =============================================================================
from .random_source import RandomSource
from .portfolio import (
    default_correlation,
    covariance_matrix,
    expected_return,
    volatility,
)

# =============================================================================
# SIMULATION
# =============================================================================
from .simulation import (
    MonteCarloSimulator,
    run_monte_carlo,
)

# =============================================================================
# OPTIMIZATION
# =============================================================================
from .optimization import (
    EfficientFrontierOptimizer,
    efficient_frontier,
    max_sharpe_portfolio,
)

# =============================================================================
# PRICING
# =============================================================================
from .options import (
    black_scholes,
    implied_volatility,
    normal_cdf,
)
from .bonds import (
    price_bond,
    yield_from_price,
)

# =============================================================================
# RISK
# =============================================================================
from .risk import (
    calculate_risk_metrics,
    portfolio_metrics,
    historical_var,
    max_drawdown,
    sharpe_ratio,
    sortino_ratio,
)

# =============================================================================
# I/O
# =============================================================================
from .io import (
    load_assets,
    save_assets,
    load_correlation,
    save_result,
)

# =============================================================================
# PUBLIC API
# =============================================================================
__all__ = [
    "__version__",
    # Errors / config
    "QuantLabError",
    "InvalidInputError",
    "NumericalDegeneracyError",
    "InfeasibleOptimizationError",
    "SimulationCancelledError",
    "EngineSettings",
    "DEFAULT_SETTINGS",
    "FrontierMethod",
    "OptionType",
    # Types
    "Asset",
    "SimulationConfig",
    "SimulationStatistics",
    "SimulationResult",
    "WeightConstraints",
    "FrontierPoint",
    "EfficientFrontier",
    "Greeks",
    "OptionQuote",
    "BondQuote",
    "HistoricalVaR",
    "RiskMetrics",
    "PortfolioMetrics",
    # Portfolio
    "RandomSource",
    "default_correlation",
    "covariance_matrix",
    "expected_return",
    "volatility",
    # Simulation
    "MonteCarloSimulator",
    "run_monte_carlo",
    # Optimization
    "EfficientFrontierOptimizer",
    "efficient_frontier",
    "max_sharpe_portfolio",
    # Pricing
    "black_scholes",
    "implied_volatility",
    "normal_cdf",
    "price_bond",
    "yield_from_price",
    # Risk
    "calculate_risk_metrics",
    "portfolio_metrics",
    "historical_var",
    "max_drawdown",
    "sharpe_ratio",
    "sortino_ratio",
    # I/O
    "load_assets",
    "save_assets",
    "load_correlation",
    "save_result",
]
