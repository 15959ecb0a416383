"""
conftest.py - Pytest Configuration and Shared Fixtures

Fixtures are organized by category:
- Random number generators (for reproducibility)
- Asset universes and correlation matrices
- Return series for risk metrics
"""

import pytest
import numpy as np

from quant_lab import Asset, SimulationConfig


# =============================================================================
# RANDOM NUMBER GENERATORS
# =============================================================================

@pytest.fixture
def rng():
    """Seeded generator for reproducible test data."""
    return np.random.default_rng(seed=42)


# =============================================================================
# ASSETS
# =============================================================================

@pytest.fixture
def three_assets():
    """
    Equity / bond / commodity portfolio with weights summing to 1.

    Expected returns are distinct so the frontier has a non-degenerate
    return range [0.03, 0.10].
    """
    return [
        Asset("EQ", weight=0.5, expected_return=0.10, volatility=0.20, price=100.0, name="Equity"),
        Asset("BD", weight=0.3, expected_return=0.03, volatility=0.05, price=95.0, name="Bond"),
        Asset("CM", weight=0.2, expected_return=0.06, volatility=0.15, price=50.0, name="Commodity"),
    ]


@pytest.fixture
def riskless_asset():
    """Single asset with zero volatility: every simulated path is deterministic."""
    return [Asset("CASH", weight=1.0, expected_return=0.05, volatility=0.0, price=1.0)]


@pytest.fixture
def cash_and_equity():
    """Zero-volatility cash next to one risky asset."""
    return [
        Asset("CASH", weight=0.5, expected_return=0.02, volatility=0.0, price=1.0),
        Asset("EQ", weight=0.5, expected_return=0.08, volatility=0.2, price=1.0),
    ]


@pytest.fixture
def three_asset_correlation():
    """Valid symmetric correlation matrix for three_assets."""
    return np.array([
        [1.0, 0.1, 0.4],
        [0.1, 1.0, -0.2],
        [0.4, -0.2, 1.0],
    ])


@pytest.fixture
def small_config():
    """Short simulation suitable for unit tests."""
    return SimulationConfig(simulations=500, time_horizon=1.0, initial_value=10_000.0)


# =============================================================================
# RETURN SERIES
# =============================================================================

@pytest.fixture
def market_returns(rng):
    """250 daily market returns."""
    return rng.normal(0.0004, 0.01, size=250)


@pytest.fixture
def asset_returns(rng, market_returns):
    """Asset returns with beta ~1.2 to market_returns plus idiosyncratic noise."""
    return 0.0001 + 1.2 * market_returns + rng.normal(0.0, 0.005, size=250)
