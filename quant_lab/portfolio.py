"""
portfolio.py - Portfolio Expected Return and Volatility

Pure functions that combine per-asset parameters into portfolio-level
figures. They are shared by the simulator, the frontier optimizer and the
risk metrics.

Mathematical Background:
-----------------------
    E[R_p]  = sum_i w_i r_i
    sigma_p = sqrt( sum_i sum_j w_i w_j sigma_i sigma_j rho_ij )
            = sqrt( w.T @ diag(sigma) @ rho @ diag(sigma) @ w )

When no correlation matrix is supplied the flat fallback from
EngineSettings.default_correlation (0.3 off-diagonal) is used. The
correlation matrix is assumed positive semi-definite; that is not checked.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
from loguru import logger

from .config import DEFAULT_SETTINGS, EngineSettings
from .errors import InvalidInputError
from .types import Asset

CorrelationLike = Optional[Sequence[Sequence[float]]]


# =============================================================================
# ASSET VECTORS
# =============================================================================

def _require_assets(assets: Sequence[Asset]) -> None:
    if len(assets) == 0:
        raise InvalidInputError("At least one asset is required")


def weights_of(assets: Sequence[Asset]) -> np.ndarray:
    return np.array([a.weight for a in assets], dtype=float)


def returns_of(assets: Sequence[Asset]) -> np.ndarray:
    return np.array([a.expected_return for a in assets], dtype=float)


def volatilities_of(assets: Sequence[Asset]) -> np.ndarray:
    return np.array([a.volatility for a in assets], dtype=float)


# =============================================================================
# CORRELATION HANDLING
# =============================================================================

def default_correlation(n: int, off_diagonal: float = 0.3) -> np.ndarray:
    """
    Build a flat correlation matrix with unit diagonal.

    Parameters
    ----------
    n : int
        Number of assets.
    off_diagonal : float, default=0.3
        Correlation assumed between every pair of distinct assets.
    """
    if n < 1:
        raise InvalidInputError(f"Correlation size must be positive, got {n}")
    matrix = np.full((n, n), float(off_diagonal))
    np.fill_diagonal(matrix, 1.0)
    return matrix


def resolve_correlation(
    correlation: CorrelationLike,
    n: int,
    settings: EngineSettings = DEFAULT_SETTINGS
) -> np.ndarray:
    """
    Validate a caller-supplied correlation matrix or build the default one.

    Always returns a fresh array; the caller's matrix is never modified.

    Raises
    ------
    InvalidInputError
        If the matrix is not (n, n), not symmetric, has a diagonal other
        than 1, or has entries outside [-1, 1].
    """
    if correlation is None:
        logger.debug(
            f"No correlation matrix supplied; using flat {settings.default_correlation} fallback"
        )
        return default_correlation(n, settings.default_correlation)

    rho = np.array(correlation, dtype=float)

    if rho.shape != (n, n):
        raise InvalidInputError(
            f"Correlation matrix shape mismatch: expected ({n}, {n}), got {rho.shape}"
        )
    if not np.all(np.isfinite(rho)):
        raise InvalidInputError("Correlation matrix contains non-finite values")
    if not np.allclose(rho, rho.T):
        raise InvalidInputError("Correlation matrix must be symmetric")
    if not np.allclose(np.diag(rho), 1.0):
        raise InvalidInputError("Correlation matrix diagonal must equal 1")
    if np.any(np.abs(rho) > 1.0 + 1e-12):
        raise InvalidInputError("Correlation entries must lie in [-1, 1]")

    return rho


def covariance_matrix(volatilities: np.ndarray, correlation: np.ndarray) -> np.ndarray:
    """Sigma = diag(sigma) @ rho @ diag(sigma)."""
    return np.outer(volatilities, volatilities) * correlation


# =============================================================================
# PORTFOLIO STATISTICS
# =============================================================================

def expected_return(assets: Sequence[Asset]) -> float:
    """Weighted sum of asset expected returns."""
    _require_assets(assets)
    return float(weights_of(assets) @ returns_of(assets))


def portfolio_volatility(
    weights: np.ndarray,
    volatilities: np.ndarray,
    correlation: np.ndarray
) -> float:
    """
    Quadratic-form volatility of an explicit weight vector.

    Tiny negative variances from rounding are clipped to zero.
    """
    variance = float(weights @ covariance_matrix(volatilities, correlation) @ weights)
    return float(np.sqrt(max(variance, 0.0)))


def volatility(
    assets: Sequence[Asset],
    correlation: CorrelationLike = None,
    settings: EngineSettings = DEFAULT_SETTINGS
) -> float:
    """
    Portfolio volatility of the assets at their own weights.

    Parameters
    ----------
    assets : sequence of Asset
        Holdings with weights and volatilities.
    correlation : array-like, optional
        (n, n) correlation matrix. Defaults to the flat fallback.
    settings : EngineSettings
        Source of the fallback correlation.
    """
    _require_assets(assets)
    rho = resolve_correlation(correlation, len(assets), settings)
    return portfolio_volatility(weights_of(assets), volatilities_of(assets), rho)
