"""
optimization.py - Mean-Variance Efficient Frontier

This module traces the risk/return frontier of a set of assets and picks
the maximum-Sharpe portfolio:
- EfficientFrontierOptimizer: sweeps target returns with one of two
  weight searches
- efficient_frontier / max_sharpe_portfolio: convenience wrappers

Weight Searches:
---------------
HEURISTIC (default) - iterative proportional adjustment:
    start from equal weights; repeatedly move each weight by
    (target - current) / n scaled by r_i / max|r|, clamp to the weight
    bounds and renormalize to sum 1; stop after max_iterations or once
    |target - current| < tolerance.
    This is an approximation. It lands on *a* portfolio near the target
    return, not the minimum-variance one, and is not guaranteed to be
    efficient.

QP - constrained minimum variance solved with CVXPY:

    minimize    w.T @ Sigma @ w
    subject to  1.T @ w = 1
                r.T @ w = target
                min_weight <= w_i <= max_weight

    Targets whose problem is not solved to optimality are skipped.

In both cases a retained point is reported at the return it actually
achieves, with volatility from portfolio.py and Sharpe ratio
(return - risk_free_rate) / volatility. Portfolios that are riskless up to
solver noise (e.g. fully in a zero-volatility cash asset) have no Sharpe
ratio and are dropped; if nothing else remains, NumericalDegeneracyError
is raised.

Example Usage:
-------------
    >>> from quant_lab.optimization import EfficientFrontierOptimizer
    >>> from quant_lab.config import FrontierMethod
    >>> from quant_lab.types import WeightConstraints
    >>>
    >>> optimizer = EfficientFrontierOptimizer(method=FrontierMethod.QP)
    >>> frontier = optimizer.optimize(
    ...     assets,
    ...     risk_free_rate=0.02,
    ...     constraints=WeightConstraints(min_weight=0.0, max_weight=0.6),
    ... )
    >>> best = frontier.optimal_portfolio
    >>> print(f"Sharpe {best.sharpe_ratio:.2f} at {best.volatility:.1%} vol")
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np
import cvxpy as cp
from loguru import logger

from .config import DEFAULT_SETTINGS, EngineSettings, FrontierMethod
from .errors import (
    InfeasibleOptimizationError,
    InvalidInputError,
    NumericalDegeneracyError,
)
from .portfolio import (
    CorrelationLike,
    covariance_matrix,
    portfolio_volatility,
    resolve_correlation,
    returns_of,
    volatilities_of,
)
from .types import Asset, EfficientFrontier, FrontierPoint, WeightConstraints

# Slack allowed when checking weight bounds and the return interval.
_BOUND_SLACK = 1e-9

# A portfolio is riskless when its volatility is below this fraction of the
# largest asset volatility, or when its total weight on risky assets is
# within solver noise of zero.
_ZERO_VOL_RELATIVE = 1e-10
_RISKY_WEIGHT_NOISE = 1e-7


class EfficientFrontierOptimizer:
    """
    Efficient frontier sweep over linearly spaced target returns.

    Parameters
    ----------
    settings : EngineSettings, optional
        Number of frontier points, heuristic tolerance and iteration cap,
        and the fallback correlation.
    method : FrontierMethod, default=FrontierMethod.HEURISTIC
        Weight search used for each target return.
    solver : str, optional
        CVXPY solver name for the QP method. If None, CVXPY auto-selects.
    verbose : bool, default=False
        Print solver output (QP method only).

    Examples
    --------
    >>> frontier = EfficientFrontierOptimizer().optimize(assets, risk_free_rate=0.02)
    >>> len(frontier), frontier.optimal_portfolio.sharpe_ratio
    """

    def __init__(
        self,
        settings: EngineSettings = DEFAULT_SETTINGS,
        method: FrontierMethod = FrontierMethod.HEURISTIC,
        solver: Optional[str] = None,
        verbose: bool = False
    ):
        self.settings = settings
        self.method = FrontierMethod(method)
        self.solver = solver
        self.verbose = verbose

    def optimize(
        self,
        assets: Sequence[Asset],
        risk_free_rate: float = 0.02,
        correlation: CorrelationLike = None,
        constraints: Optional[WeightConstraints] = None
    ) -> EfficientFrontier:
        """
        Trace the frontier and select the maximum-Sharpe portfolio.

        Parameters
        ----------
        assets : sequence of Asset
            Candidate assets. Their own weights are ignored.
        risk_free_rate : float, default=0.02
            Annualized rate used in the Sharpe ratio.
        correlation : array-like, optional
            (n, n) correlation matrix. Defaults to the flat fallback.
        constraints : WeightConstraints, optional
            Per-asset weight bounds. Defaults to long-only [0, 1].

        Returns
        -------
        EfficientFrontier

        Raises
        ------
        InvalidInputError
            For an empty asset list or a bad correlation matrix.
        NumericalDegeneracyError
            If every feasible portfolio has zero volatility. Individual
            zero-volatility points are dropped from the frontier.
        InfeasibleOptimizationError
            If no target return produced a feasible portfolio.
        """
        if len(assets) == 0:
            raise InvalidInputError("At least one asset is required")

        constraints = constraints if constraints is not None else WeightConstraints()
        r = returns_of(assets)
        rho = resolve_correlation(correlation, len(assets), self.settings)
        sigma = volatilities_of(assets)
        low, high = float(r.min()), float(r.max())
        targets = np.linspace(low, high, self.settings.frontier_points)

        logger.info(
            f"Tracing efficient frontier: {len(assets)} assets, {len(targets)} targets "
            f"in [{low:.4f}, {high:.4f}], method={self.method.value}"
        )
        if not constraints.admits_full_investment(len(assets)):
            logger.warning(
                f"Weight bounds [{constraints.min_weight}, {constraints.max_weight}] "
                f"cannot sum to 1 across {len(assets)} assets"
            )

        if self.method == FrontierMethod.QP:
            candidates = self._qp_sweep(r, covariance_matrix(sigma, rho), targets, constraints)
        else:
            candidates = [
                self._proportional_adjustment(r, target, constraints)
                for target in targets
            ]

        points: List[FrontierPoint] = []
        riskless = 0
        for weights in candidates:
            try:
                point = self._build_point(weights, r, sigma, rho, low, high, risk_free_rate)
            except NumericalDegeneracyError as e:
                logger.debug(f"Dropping frontier point: {e}")
                riskless += 1
                continue
            if point is not None:
                points.append(point)

        skipped = len(targets) - len(points) - riskless
        if skipped:
            logger.warning(f"Skipped {skipped} infeasible target returns")
        if riskless:
            logger.warning(f"Skipped {riskless} zero-volatility portfolios")

        if not points and riskless:
            raise NumericalDegeneracyError(
                "sharpe_ratio", "every frontier portfolio has zero volatility"
            )
        if not points:
            raise InfeasibleOptimizationError(
                f"No feasible frontier point found for {len(assets)} assets with "
                f"weight bounds [{constraints.min_weight}, {constraints.max_weight}]"
            )

        optimal = max(points, key=lambda p: p.sharpe_ratio)
        logger.success(
            f"Frontier traced with {len(points)} points. Max Sharpe {optimal.sharpe_ratio:.4f} "
            f"at return {optimal.expected_return:.4f}, volatility {optimal.volatility:.4f}"
        )

        return EfficientFrontier(
            points=tuple(points),
            optimal_portfolio=optimal,
            risk_free_rate=risk_free_rate,
            method=self.method.value,
        )

    # -------------------------------------------------------------------------
    # Point construction
    # -------------------------------------------------------------------------

    @staticmethod
    def _build_point(
        weights: Optional[np.ndarray],
        r: np.ndarray,
        sigma: np.ndarray,
        rho: np.ndarray,
        low: float,
        high: float,
        risk_free_rate: float
    ) -> Optional[FrontierPoint]:
        """Turn a weight vector into a FrontierPoint, or None if it is infeasible."""
        if weights is None:
            return None

        achieved = float(weights @ r)
        if achieved < low - _BOUND_SLACK or achieved > high + _BOUND_SLACK:
            return None
        achieved = min(max(achieved, low), high)

        vol = portfolio_volatility(weights, sigma, rho)
        risky_weight = float(np.sum(np.abs(weights[sigma > 0.0])))
        if vol <= _ZERO_VOL_RELATIVE * float(np.max(sigma)) or risky_weight <= _RISKY_WEIGHT_NOISE:
            raise NumericalDegeneracyError(
                "sharpe_ratio", f"frontier portfolio has zero volatility ({vol:.3e})"
            )

        weights.setflags(write=False)
        return FrontierPoint(
            expected_return=achieved,
            volatility=vol,
            weights=weights,
            sharpe_ratio=(achieved - risk_free_rate) / vol,
        )

    # -------------------------------------------------------------------------
    # Weight searches
    # -------------------------------------------------------------------------

    def _proportional_adjustment(
        self,
        r: np.ndarray,
        target: float,
        constraints: WeightConstraints
    ) -> Optional[np.ndarray]:
        """
        Heuristic search for weights whose return approaches `target`.

        Returns None when renormalization is impossible (weights sum to
        <= 0) or pushes a weight outside its bounds.
        """
        n = r.shape[0]
        lo, hi = constraints.min_weight, constraints.max_weight
        scale = float(np.max(np.abs(r)))
        if scale == 0.0:
            scale = 1.0

        w = np.full(n, 1.0 / n)
        for _ in range(self.settings.frontier_max_iterations):
            gap = target - float(w @ r)
            if abs(gap) < self.settings.frontier_tolerance:
                break

            w = np.clip(w + (gap / n) * (r / scale), lo, hi)
            total = w.sum()
            if total <= 0.0:
                return None
            w = w / total

        if np.any(w < lo - _BOUND_SLACK) or np.any(w > hi + _BOUND_SLACK):
            return None
        return w

    def _qp_sweep(
        self,
        r: np.ndarray,
        cov: np.ndarray,
        targets: np.ndarray,
        constraints: WeightConstraints
    ) -> List[Optional[np.ndarray]]:
        """Solve one minimum-variance problem per target with a shared CVXPY model."""
        n = r.shape[0]
        w = cp.Variable(n, name="weights")
        target = cp.Parameter(name="target_return")

        problem = cp.Problem(
            cp.Minimize(cp.quad_form(w, cp.psd_wrap(cov))),
            [
                cp.sum(w) == 1,
                r @ w == target,
                w >= constraints.min_weight,
                w <= constraints.max_weight,
            ],
        )

        results: List[Optional[np.ndarray]] = []
        for value in targets:
            target.value = float(value)
            try:
                if self.solver:
                    problem.solve(solver=self.solver, verbose=self.verbose)
                else:
                    problem.solve(verbose=self.verbose)
            except cp.SolverError as e:
                logger.debug(f"Solver error at target {value:.6f}: {e}")
                results.append(None)
                continue

            if problem.status != cp.OPTIMAL or w.value is None:
                logger.debug(f"Target {value:.6f} finished with status: {problem.status}")
                results.append(None)
                continue

            # Remove solver noise so bounds and the budget hold exactly.
            weights = np.clip(np.asarray(w.value, dtype=float), constraints.min_weight, constraints.max_weight)
            results.append(weights / weights.sum())

        return results


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def efficient_frontier(
    assets: Sequence[Asset],
    risk_free_rate: float = 0.02,
    correlation: CorrelationLike = None,
    constraints: Optional[WeightConstraints] = None,
    method: FrontierMethod = FrontierMethod.HEURISTIC,
    settings: EngineSettings = DEFAULT_SETTINGS
) -> EfficientFrontier:
    """
    Compute the efficient frontier with a freshly configured optimizer.

    Examples
    --------
    >>> frontier = efficient_frontier(assets, risk_free_rate=0.03, method="qp")
    """
    optimizer = EfficientFrontierOptimizer(settings=settings, method=method)
    return optimizer.optimize(
        assets,
        risk_free_rate=risk_free_rate,
        correlation=correlation,
        constraints=constraints,
    )


def max_sharpe_portfolio(
    assets: Sequence[Asset],
    risk_free_rate: float = 0.02,
    correlation: CorrelationLike = None,
    constraints: Optional[WeightConstraints] = None,
    method: FrontierMethod = FrontierMethod.HEURISTIC
) -> FrontierPoint:
    """Return only the maximum-Sharpe point of the frontier."""
    return efficient_frontier(
        assets, risk_free_rate, correlation, constraints, method
    ).optimal_portfolio
