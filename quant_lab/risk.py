"""
risk.py - Historical Risk and Performance Metrics

Metrics of a return series measured against a market (benchmark) series:
- beta, Jensen's alpha, correlation, tracking error
- Information, Treynor, Sharpe, Sortino ratios and the M^2 measure
- maximum drawdown and historical VaR / expected shortfall

All moments are sample moments (ddof=1). Returns, the risk-free rate
and the results share whatever periodicity the caller supplies; nothing
is annualized here.

Undefined ratios are never reported as NaN or inf: a zero denominator
raises NumericalDegeneracyError naming the metric.

Example Usage:
-------------
    >>> import numpy as np
    >>> from quant_lab.risk import calculate_risk_metrics, historical_var
    >>>
    >>> metrics = calculate_risk_metrics(fund, benchmark, risk_free_rate=0.0001)
    >>> print(f"beta={metrics.beta:.2f}  IR={metrics.information_ratio:.2f}")
    >>> historical_var(fund, confidence=0.99, time_horizon=10).value_at_risk
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np
from loguru import logger

from .config import DEFAULT_SETTINGS, EngineSettings
from .errors import InvalidInputError, NumericalDegeneracyError
from .portfolio import CorrelationLike, expected_return, volatility
from .types import Asset, HistoricalVaR, PortfolioMetrics, RiskMetrics


# =============================================================================
# INPUT VALIDATION
# =============================================================================

def _as_series(name: str, values: Sequence[float], min_length: int = 1) -> np.ndarray:
    series = np.asarray(values, dtype=float)
    if series.ndim != 1:
        raise InvalidInputError(f"{name} must be 1D, got shape {series.shape}")
    if series.shape[0] < min_length:
        raise InvalidInputError(
            f"{name} needs at least {min_length} observations, got {series.shape[0]}"
        )
    if not np.all(np.isfinite(series)):
        raise InvalidInputError(f"{name} contains non-finite values")
    return series


def _paired(
    asset_returns: Sequence[float],
    market_returns: Sequence[float]
) -> Tuple[np.ndarray, np.ndarray]:
    a = _as_series("asset_returns", asset_returns, min_length=2)
    m = _as_series("market_returns", market_returns, min_length=2)
    if a.shape != m.shape:
        raise InvalidInputError(
            f"Series length mismatch: asset has {a.shape[0]}, market has {m.shape[0]}"
        )
    return a, m


def _ratio(quantity: str, numerator: float, denominator: float, what: str) -> float:
    if denominator == 0.0:
        raise NumericalDegeneracyError(quantity, f"{what} is zero")
    return float(numerator / denominator)


# =============================================================================
# SINGLE-SERIES METRICS
# =============================================================================

def sharpe_ratio(returns: Sequence[float], risk_free_rate: float = 0.02) -> float:
    """(mean - rf) / std."""
    r = _as_series("returns", returns, min_length=2)
    return _ratio("sharpe_ratio", r.mean() - risk_free_rate, r.std(ddof=1), "return volatility")


def downside_deviation(returns: Sequence[float], threshold: float = 0.0) -> float:
    """
    Root mean square shortfall of the observations strictly below `threshold`.

    The mean runs over the below-threshold observations only. With none of
    them the deviation is 0.
    """
    r = _as_series("returns", returns)
    below = r[r < threshold]
    if below.size == 0:
        return 0.0
    return float(np.sqrt(np.mean((below - threshold) ** 2)))


def sortino_ratio(returns: Sequence[float], risk_free_rate: float = 0.02) -> float:
    """(mean - rf) / downside deviation below rf."""
    r = _as_series("returns", returns, min_length=2)
    return _ratio(
        "sortino_ratio",
        r.mean() - risk_free_rate,
        downside_deviation(r, risk_free_rate),
        "downside deviation",
    )


def max_drawdown(returns: Sequence[float]) -> float:
    """
    Largest peak-to-trough decline of cumulative wealth, as a positive fraction.

    Wealth starts at 1 and compounds each period's return; the running
    peak includes the starting value.
    """
    r = _as_series("returns", returns)
    wealth = np.concatenate([[1.0], np.cumprod(1.0 + r)])
    peak = np.maximum.accumulate(wealth)
    return float(np.max((peak - wealth) / peak))


def historical_var(
    returns: Sequence[float],
    confidence: float = 0.95,
    time_horizon: float = 1.0
) -> HistoricalVaR:
    """
    Historical-simulation VaR and expected shortfall.

    Parameters
    ----------
    returns : sequence of float
        Periodic returns.
    confidence : float, default=0.95
        Strictly between 0 and 1.
    time_horizon : float, default=1.0
        Holding period in return periods; losses scale by sqrt(horizon).

    Notes
    -----
    VaR = -sorted[floor((1 - c) N)] * sqrt(h). Expected shortfall is the
    negated mean of the returns below that index, scaled the same way.
    With an empty tail the VaR cutoff stands in for the tail mean.
    """
    r = _as_series("returns", returns)
    if not 0.0 < confidence < 1.0:
        raise InvalidInputError(f"confidence must lie strictly between 0 and 1, got {confidence}")
    if time_horizon <= 0:
        raise InvalidInputError(f"time_horizon must be positive, got {time_horizon}")

    n = r.shape[0]
    sorted_returns = np.sort(r)
    index = min(int(math.floor((1.0 - confidence) * n + 1e-9)), n - 1)
    cutoff = sorted_returns[index]
    tail = sorted_returns[:index]
    tail_mean = tail.mean() if tail.size > 0 else cutoff
    scale = math.sqrt(time_horizon)

    return HistoricalVaR(
        value_at_risk=float(-cutoff * scale),
        expected_shortfall=float(-tail_mean * scale),
        confidence=confidence,
        time_horizon=time_horizon,
    )


# =============================================================================
# PAIRED-SERIES METRICS
# =============================================================================

def beta(asset_returns: Sequence[float], market_returns: Sequence[float]) -> float:
    """Cov(asset, market) / Var(market)."""
    a, m = _paired(asset_returns, market_returns)
    covariance = np.cov(a, m, ddof=1)[0, 1]
    return _ratio("beta", covariance, m.var(ddof=1), "market variance")


def jensen_alpha(
    asset_returns: Sequence[float],
    market_returns: Sequence[float],
    risk_free_rate: float = 0.02
) -> float:
    """mean(asset) - (rf + beta * (mean(market) - rf))."""
    a, m = _paired(asset_returns, market_returns)
    b = beta(a, m)
    return float(a.mean() - (risk_free_rate + b * (m.mean() - risk_free_rate)))


def calculate_risk_metrics(
    asset_returns: Sequence[float],
    market_returns: Sequence[float],
    risk_free_rate: float = 0.02,
    confidence: float = 0.95
) -> RiskMetrics:
    """
    Compute the full set of relative risk metrics.

    Parameters
    ----------
    asset_returns, market_returns : sequence of float
        Paired return series of equal length (>= 2).
    risk_free_rate : float, default=0.02
        Risk-free rate in the same periodicity as the returns.
    confidence : float, default=0.95
        Confidence level of the reported historical VaR / CVaR.

    Returns
    -------
    RiskMetrics

    Raises
    ------
    InvalidInputError
        For mismatched or too-short series.
    NumericalDegeneracyError
        If any ratio has a zero denominator, e.g. identical series make
        the tracking error (and so the information ratio) undefined.
    """
    a, m = _paired(asset_returns, market_returns)
    logger.debug(f"Computing risk metrics over {a.shape[0]} paired observations")

    asset_mean, market_mean = float(a.mean()), float(m.mean())
    asset_std, market_std = float(a.std(ddof=1)), float(m.std(ddof=1))
    covariance = float(np.cov(a, m, ddof=1)[0, 1])

    b = _ratio("beta", covariance, market_std ** 2, "market variance")
    alpha = asset_mean - (risk_free_rate + b * (market_mean - risk_free_rate))
    correlation = _ratio("correlation", covariance, asset_std * market_std, "a series volatility")

    tracking_error = float((a - m).std(ddof=1))
    information = _ratio(
        "information_ratio", asset_mean - market_mean, tracking_error, "tracking error"
    )
    treynor = _ratio("treynor_ratio", asset_mean - risk_free_rate, b, "beta")
    sharpe = _ratio("sharpe_ratio", asset_mean - risk_free_rate, asset_std, "asset volatility")
    var = historical_var(a, confidence)

    return RiskMetrics(
        beta=b,
        alpha=alpha,
        correlation=correlation,
        tracking_error=tracking_error,
        information_ratio=information,
        treynor_ratio=treynor,
        jensen_alpha=alpha,
        m2_measure=sharpe * market_std + risk_free_rate,
        sharpe_ratio=sharpe,
        sortino_ratio=sortino_ratio(a, risk_free_rate),
        max_drawdown=max_drawdown(a),
        value_at_risk=var.value_at_risk,
        conditional_var=var.expected_shortfall,
    )


def portfolio_metrics(
    assets: Sequence[Asset],
    portfolio_returns: Sequence[float],
    market_returns: Sequence[float],
    risk_free_rate: float = 0.02,
    correlation: CorrelationLike = None,
    confidence: float = 0.95,
    settings: EngineSettings = DEFAULT_SETTINGS
) -> PortfolioMetrics:
    """
    Combine ex-ante portfolio statistics with realised-series metrics.

    Expected return, volatility and the Sharpe ratio come from the asset
    parameters; Sortino, drawdown, VaR/CVaR, beta, alpha, Treynor and the
    information ratio are measured on `portfolio_returns` against
    `market_returns`.
    """
    exp_return = expected_return(assets)
    vol = volatility(assets, correlation, settings)
    sharpe = _ratio("sharpe_ratio", exp_return - risk_free_rate, vol, "portfolio volatility")

    p, m = _paired(portfolio_returns, market_returns)
    b = beta(p, m)
    var = historical_var(p, confidence)
    tracking_error = float((p - m).std(ddof=1))

    return PortfolioMetrics(
        expected_return=exp_return,
        volatility=vol,
        sharpe_ratio=sharpe,
        sortino_ratio=sortino_ratio(p, risk_free_rate),
        max_drawdown=max_drawdown(p),
        value_at_risk=var.value_at_risk,
        conditional_var=var.expected_shortfall,
        beta=b,
        alpha=jensen_alpha(p, m, risk_free_rate),
        treynor_ratio=_ratio("treynor_ratio", p.mean() - risk_free_rate, b, "beta"),
        information_ratio=_ratio(
            "information_ratio", p.mean() - m.mean(), tracking_error, "tracking error"
        ),
    )
