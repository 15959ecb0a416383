"""
types.py - Core Data Structures for quant_lab

This module defines the value objects that flow through the engine:
- Asset / SimulationConfig: caller-supplied inputs
- SimulationStatistics / SimulationResult: Monte Carlo output
- WeightConstraints / FrontierPoint / EfficientFrontier: optimizer I/O
- Greeks / OptionQuote: Black-Scholes output
- BondQuote: fixed-income analytics
- RiskMetrics / PortfolioMetrics / HistoricalVaR: risk analytics

Design Principles:
-----------------
1. Immutability (frozen dataclasses for every value object)
2. Validation at construction time (fail-fast with InvalidInputError)
3. Units follow the inputs: returns and volatilities are annualized
   decimals, prices are currency units, time is in years
4. Numpy-style docstrings throughout

Example Usage:
-------------
    >>> from quant_lab.types import Asset, SimulationConfig
    >>>
    >>> assets = [
    ...     Asset("EQ", weight=0.6, expected_return=0.08, volatility=0.18, price=100.0),
    ...     Asset("BD", weight=0.4, expected_return=0.03, volatility=0.05, price=100.0),
    ... ]
    >>> config = SimulationConfig(simulations=5000, time_horizon=1.0, initial_value=10_000)
    >>> config.steps()
    252
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np

from .errors import InvalidInputError


def _require_finite(name: str, value: float) -> None:
    try:
        finite = math.isfinite(value)
    except TypeError as e:
        raise InvalidInputError(f"{name} must be a number, got {value!r}") from e
    if not finite:
        raise InvalidInputError(f"{name} must be finite, got {value}")


# =============================================================================
# INPUT TYPES
# =============================================================================

@dataclass(frozen=True)
class Asset:
    """
    A single portfolio holding.

    Parameters
    ----------
    symbol : str
        Identifier of the asset.
    weight : float
        Portfolio weight as a fraction. Weights are NOT normalized by the
        engine; making them sum to 1 is the caller's responsibility.
    expected_return : float
        Annualized expected return (decimal).
    volatility : float
        Annualized standard deviation of returns (decimal, >= 0).
    price : float
        Current price in currency units (>= 0).
    name : str, optional
        Human-readable name.
    dividend : float, default=0.0
        Annual dividend yield (decimal). Informational only.
    """
    symbol: str
    weight: float
    expected_return: float
    volatility: float
    price: float
    name: str = ""
    dividend: float = 0.0

    def __post_init__(self):
        if not self.symbol:
            raise InvalidInputError("Asset symbol must be a non-empty string")
        for attr in ("weight", "expected_return", "volatility", "price", "dividend"):
            _require_finite(f"{self.symbol}.{attr}", getattr(self, attr))
        if self.volatility < 0:
            raise InvalidInputError(
                f"{self.symbol}: volatility must be >= 0, got {self.volatility}"
            )
        if self.price < 0:
            raise InvalidInputError(
                f"{self.symbol}: price must be >= 0, got {self.price}"
            )


@dataclass(frozen=True)
class SimulationConfig:
    """
    Parameters of a Monte Carlo run.

    Parameters
    ----------
    simulations : int
        Number of independent trials (> 0).
    time_horizon : float
        Horizon in years (> 0).
    initial_value : float
        Starting portfolio value (> 0).
    confidence : float, default=0.95
        Confidence level for VaR and CVaR, strictly between 0 and 1.
    """
    simulations: int
    time_horizon: float
    initial_value: float
    confidence: float = 0.95

    def __post_init__(self):
        try:
            integral = int(self.simulations) == self.simulations
        except (TypeError, ValueError, OverflowError):
            integral = False
        if isinstance(self.simulations, bool) or not integral:
            raise InvalidInputError(
                f"simulations must be an integer, got {self.simulations!r}"
            )
        if self.simulations <= 0:
            raise InvalidInputError(
                f"simulations must be positive, got {self.simulations}"
            )
        _require_finite("time_horizon", self.time_horizon)
        _require_finite("initial_value", self.initial_value)
        if self.time_horizon <= 0:
            raise InvalidInputError(
                f"time_horizon must be positive, got {self.time_horizon}"
            )
        if self.initial_value <= 0:
            raise InvalidInputError(
                f"initial_value must be positive, got {self.initial_value}"
            )
        _require_finite("confidence", self.confidence)
        if not 0.0 < self.confidence < 1.0:
            raise InvalidInputError(
                f"confidence must lie strictly between 0 and 1, got {self.confidence}"
            )

    def steps(self, trading_days_per_year: int = 252) -> int:
        """Number of simulation steps: floor(time_horizon * trading_days_per_year)."""
        return int(math.floor(self.time_horizon * trading_days_per_year))


# =============================================================================
# MONTE CARLO OUTPUT
# =============================================================================

@dataclass(frozen=True)
class SimulationStatistics:
    """
    Distributional summary of simulated final values.

    value_at_risk and conditional_var are expressed as losses relative to
    the initial value (positive = loss). expected_shortfall is an alias of
    conditional_var kept for callers that use either name.
    """
    mean: float
    median: float
    std: float
    min: float
    max: float
    value_at_risk: float
    conditional_var: float
    probability_of_loss: float
    expected_shortfall: float


@dataclass(frozen=True)
class SimulationResult:
    """
    Output of MonteCarloSimulator.run.

    Parameters
    ----------
    final_values : np.ndarray
        Shape (simulations,). Final portfolio value of each trial, in
        trial order (not sorted).
    paths : np.ndarray or None
        Shape (simulations, steps + 1) with paths[:, 0] == initial_value.
        None when the run was made with keep_paths=False.
    statistics : SimulationStatistics
        Summary of the final value distribution.
    percentiles : Dict[int, float]
        Final value at each configured percentile level, read directly
        from the sorted values without interpolation.
    config : SimulationConfig
        The configuration that produced this result.
    """
    final_values: np.ndarray
    paths: Optional[np.ndarray]
    statistics: SimulationStatistics
    percentiles: Dict[int, float]
    config: SimulationConfig

    @property
    def n_simulations(self) -> int:
        return int(self.final_values.shape[0])

    @property
    def has_paths(self) -> bool:
        return self.paths is not None


# =============================================================================
# OPTIMIZATION TYPES
# =============================================================================

@dataclass(frozen=True)
class WeightConstraints:
    """
    Per-asset weight bounds for the frontier search.

    Parameters
    ----------
    min_weight : float, default=0.0
        Lower bound applied to every weight.
    max_weight : float, default=1.0
        Upper bound applied to every weight.
    """
    min_weight: float = 0.0
    max_weight: float = 1.0

    def __post_init__(self):
        _require_finite("min_weight", self.min_weight)
        _require_finite("max_weight", self.max_weight)
        if self.min_weight > self.max_weight:
            raise InvalidInputError(
                f"min_weight ({self.min_weight}) must be <= max_weight ({self.max_weight})"
            )

    def admits_full_investment(self, n_assets: int) -> bool:
        """True when some weight vector inside the bounds sums to 1."""
        return n_assets * self.min_weight <= 1.0 <= n_assets * self.max_weight


@dataclass(frozen=True)
class FrontierPoint:
    """One portfolio on the risk/return frontier."""
    expected_return: float
    volatility: float
    weights: np.ndarray
    sharpe_ratio: float


@dataclass(frozen=True)
class EfficientFrontier:
    """
    Ordered frontier points plus the maximum-Sharpe portfolio.

    Points are ordered by the target return that produced them (ascending).
    The optimizer never builds an empty frontier; it raises
    InfeasibleOptimizationError instead.
    """
    points: Tuple[FrontierPoint, ...]
    optimal_portfolio: FrontierPoint
    risk_free_rate: float = 0.0
    method: str = "heuristic"

    def __len__(self) -> int:
        return len(self.points)

    @property
    def returns(self) -> np.ndarray:
        return np.array([p.expected_return for p in self.points])

    @property
    def volatilities(self) -> np.ndarray:
        return np.array([p.volatility for p in self.points])

    @property
    def sharpe_ratios(self) -> np.ndarray:
        return np.array([p.sharpe_ratio for p in self.points])

    @property
    def weights(self) -> np.ndarray:
        """Weights matrix with shape (n_points, n_assets)."""
        return np.vstack([p.weights for p in self.points])


# =============================================================================
# DERIVATIVES AND FIXED INCOME
# =============================================================================

@dataclass(frozen=True)
class Greeks:
    """
    Black-Scholes sensitivities.

    theta is per year, vega per unit of volatility and rho per unit of
    interest rate (no per-day or per-percent rescaling).
    """
    delta: float
    gamma: float
    theta: float
    vega: float
    rho: float


@dataclass(frozen=True)
class OptionQuote:
    """
    Prices and Greeks of a European call/put pair.

    `greeks` are the call Greeks; `put_greeks` those of the put.
    `implied_volatility` is only populated when a market price was supplied.
    """
    call_price: float
    put_price: float
    greeks: Greeks
    put_greeks: Greeks
    implied_volatility: Optional[float] = None


@dataclass(frozen=True)
class BondQuote:
    """
    Present-value bond analytics.

    duration and macaulay_duration are both the Macaulay duration in years;
    the two names are kept for callers that use either.
    """
    price: float
    yield_to_maturity: float
    duration: float
    modified_duration: float
    convexity: float
    macaulay_duration: float


# =============================================================================
# RISK TYPES
# =============================================================================

@dataclass(frozen=True)
class HistoricalVaR:
    """Historical-simulation VaR and expected shortfall (positive = loss)."""
    value_at_risk: float
    expected_shortfall: float
    confidence: float
    time_horizon: float


@dataclass(frozen=True)
class RiskMetrics:
    """Metrics of an asset return series measured against a market series."""
    beta: float
    alpha: float
    correlation: float
    tracking_error: float
    information_ratio: float
    treynor_ratio: float
    jensen_alpha: float
    m2_measure: float
    sharpe_ratio: float
    sortino_ratio: float
    max_drawdown: float
    value_at_risk: float
    conditional_var: float


@dataclass(frozen=True)
class PortfolioMetrics:
    """
    Combined ex-ante and realised metrics of a portfolio.

    expected_return, volatility and sharpe_ratio come from the asset
    parameters; the remaining fields are measured on realised returns.
    """
    expected_return: float
    volatility: float
    sharpe_ratio: float
    sortino_ratio: float
    max_drawdown: float
    value_at_risk: float
    conditional_var: float
    beta: float
    alpha: float
    treynor_ratio: float
    information_ratio: float
