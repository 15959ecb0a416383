"""
test_risk.py - Tests for Historical Risk Metrics

Tests cover:
- Beta, alpha and correlation on constructed series
- Sharpe / Sortino / drawdown on known values
- Historical VaR and expected shortfall
- Degenerate inputs raising NumericalDegeneracyError
"""

import math

import pytest
import numpy as np

from quant_lab import (
    InvalidInputError,
    NumericalDegeneracyError,
    calculate_risk_metrics,
    historical_var,
    max_drawdown,
    portfolio_metrics,
    sharpe_ratio,
    sortino_ratio,
)
from quant_lab.risk import beta, downside_deviation, jensen_alpha


class TestBetaAlpha:
    """Tests for beta and Jensen's alpha."""

    def test_identical_series(self, market_returns):
        """An asset identical to the market has beta 1 and alpha 0."""
        assert beta(market_returns, market_returns) == pytest.approx(1.0)
        assert jensen_alpha(market_returns, market_returns, 0.0001) == pytest.approx(0.0, abs=1e-15)

    def test_scaled_series(self, market_returns):
        assert beta(2.0 * market_returns, market_returns) == pytest.approx(2.0)

    def test_constant_market(self):
        with pytest.raises(NumericalDegeneracyError, match="beta"):
            beta([0.01, 0.02, 0.03], [0.25, 0.25, 0.25])

    def test_length_mismatch(self):
        with pytest.raises(InvalidInputError, match="mismatch"):
            beta([0.01, 0.02, 0.03], [0.01, 0.02])

    def test_too_short(self):
        with pytest.raises(InvalidInputError):
            beta([0.01], [0.02])


class TestSingleSeries:
    """Tests for Sharpe, Sortino, drawdown and downside deviation."""

    def test_sharpe(self):
        r = np.array([0.01, 0.03, -0.01, 0.05])
        expected = (r.mean() - 0.005) / r.std(ddof=1)
        assert sharpe_ratio(r, 0.005) == pytest.approx(expected)

    def test_sharpe_constant_series(self):
        with pytest.raises(NumericalDegeneracyError):
            sharpe_ratio([0.25, 0.25, 0.25])

    def test_downside_deviation_below_threshold(self):
        """Shortfalls -0.02 and -0.04 averaged over the two losing observations."""
        r = [0.02, -0.02, 0.01, -0.04]
        assert downside_deviation(r, 0.0) == pytest.approx(math.sqrt((0.0004 + 0.0016) / 2))

    def test_downside_deviation_shifted_threshold(self):
        """Only 0.01 and -0.01 sit below 0.02; 0.02 itself is not a shortfall."""
        r = [0.02, 0.01, -0.01, 0.05]
        assert downside_deviation(r, 0.02) == pytest.approx(math.sqrt((0.0001 + 0.0009) / 2))

    def test_downside_deviation_none_below(self):
        assert downside_deviation([0.05, 0.06], 0.0) == 0.0

    def test_sortino_no_downside(self):
        with pytest.raises(NumericalDegeneracyError, match="sortino"):
            sortino_ratio([0.05, 0.06, 0.07], 0.0)

    def test_max_drawdown_known(self):
        """Wealth 1 -> 1.1 -> 0.88 -> 0.968: peak 1.1, trough 0.88."""
        assert max_drawdown([0.10, -0.20, 0.10]) == pytest.approx(0.2)

    def test_max_drawdown_from_start(self):
        """A loss in the first period is measured against the initial wealth."""
        assert max_drawdown([-0.5, 0.1]) == pytest.approx(0.5)

    def test_max_drawdown_monotone_gain(self):
        assert max_drawdown([0.01, 0.02, 0.03]) == 0.0


class TestHistoricalVaR:
    """Tests for historical_var."""

    def test_known_values(self):
        r = np.linspace(-0.10, 0.09, 20)   # -0.10, -0.09, ..., 0.09
        result = historical_var(r, confidence=0.9)

        # floor(0.1 * 20) = 2 -> cutoff is the third-lowest return
        assert result.value_at_risk == pytest.approx(0.08)
        assert result.expected_shortfall == pytest.approx(0.095)
        assert result.confidence == 0.9

    def test_horizon_scaling(self, asset_returns):
        one_day = historical_var(asset_returns, 0.99)
        ten_day = historical_var(asset_returns, 0.99, time_horizon=10)
        assert ten_day.value_at_risk == pytest.approx(one_day.value_at_risk * math.sqrt(10))

    def test_shortfall_exceeds_var(self, asset_returns):
        result = historical_var(asset_returns, 0.95)
        assert result.expected_shortfall >= result.value_at_risk

    def test_invalid_confidence(self, asset_returns):
        with pytest.raises(InvalidInputError):
            historical_var(asset_returns, confidence=1.0)


class TestCalculateRiskMetrics:
    """Tests for calculate_risk_metrics."""

    def test_constructed_beta(self, asset_returns, market_returns):
        metrics = calculate_risk_metrics(asset_returns, market_returns, risk_free_rate=0.0001)

        assert metrics.beta == pytest.approx(1.2, abs=0.1)
        assert 0.8 < metrics.correlation <= 1.0
        assert metrics.tracking_error > 0.0
        assert metrics.jensen_alpha == metrics.alpha

    def test_consistent_with_components(self, asset_returns, market_returns):
        metrics = calculate_risk_metrics(asset_returns, market_returns, 0.0001)

        assert metrics.beta == pytest.approx(beta(asset_returns, market_returns))
        assert metrics.sharpe_ratio == pytest.approx(sharpe_ratio(asset_returns, 0.0001))
        assert metrics.max_drawdown == pytest.approx(max_drawdown(asset_returns))
        assert metrics.treynor_ratio == pytest.approx(
            (asset_returns.mean() - 0.0001) / metrics.beta
        )
        assert metrics.information_ratio == pytest.approx(
            (asset_returns.mean() - market_returns.mean()) / metrics.tracking_error
        )

    def test_m2_measure(self, asset_returns, market_returns):
        metrics = calculate_risk_metrics(asset_returns, market_returns, 0.0)
        expected = metrics.sharpe_ratio * market_returns.std(ddof=1)
        assert metrics.m2_measure == pytest.approx(expected)

    def test_identical_series_tracking_error(self, market_returns):
        """Identical series have zero tracking error, so the information ratio is undefined."""
        with pytest.raises(NumericalDegeneracyError, match="information_ratio"):
            calculate_risk_metrics(market_returns, market_returns)

    def test_var_fields(self, asset_returns, market_returns):
        metrics = calculate_risk_metrics(asset_returns, market_returns, confidence=0.99)
        expected = historical_var(asset_returns, 0.99)
        assert metrics.value_at_risk == pytest.approx(expected.value_at_risk)
        assert metrics.conditional_var == pytest.approx(expected.expected_shortfall)


class TestPortfolioMetrics:
    """Tests for portfolio_metrics."""

    def test_combines_ex_ante_and_realised(self, three_assets, asset_returns, market_returns):
        metrics = portfolio_metrics(three_assets, asset_returns, market_returns, risk_free_rate=0.02)

        assert metrics.expected_return == pytest.approx(0.071)
        assert metrics.volatility > 0.0
        assert metrics.sharpe_ratio == pytest.approx((0.071 - 0.02) / metrics.volatility)
        assert metrics.beta == pytest.approx(beta(asset_returns, market_returns))
        assert metrics.max_drawdown >= 0.0

    def test_zero_volatility_portfolio(self, riskless_asset, asset_returns, market_returns):
        with pytest.raises(NumericalDegeneracyError):
            portfolio_metrics(riskless_asset, asset_returns, market_returns)
