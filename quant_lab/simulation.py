"""
simulation.py - Monte Carlo Portfolio Simulation

This module simulates portfolio value paths under Geometric Brownian
Motion and summarizes the distribution of final values:
- MonteCarloSimulator: chunked, optionally multi-threaded GBM simulation
- summarize: VaR / CVaR / percentile post-processing of final values
- run_monte_carlo: one-call convenience wrapper

Mathematical Background:
-----------------------
With portfolio drift mu and volatility sigma (see portfolio.py), each
trial walks steps = floor(T * 252) daily increments of dt = 1/252:

    V_{t+1} = V_t * exp((mu - sigma^2 / 2) dt + sigma sqrt(dt) Z_t),   Z_t ~ N(0, 1)

A fresh Z_t is drawn for every step of every trial. Within a block of
trials the log-increments are accumulated with a cumulative sum, which is
the same recursion written in log space.

Trials are independent, so they are split across worker threads, each
with its own child RandomSource spawned from the simulator's seed. A
fixed seed and worker count always reproduce the same result.

Example Usage:
-------------
    >>> from quant_lab.simulation import MonteCarloSimulator
    >>> from quant_lab.random_source import RandomSource
    >>>
    >>> simulator = MonteCarloSimulator(random_source=RandomSource(seed=7))
    >>> result = simulator.run(assets, SimulationConfig(10_000, 1.0, 100_000))
    >>> print(f"95% VaR: {result.statistics.value_at_risk:,.0f}")
    >>>
    >>> # Only final statistics, four threads, abort after 30 seconds
    >>> simulator = MonteCarloSimulator(random_source=RandomSource(seed=7), n_workers=4)
    >>> result = simulator.run(assets, config, keep_paths=False, timeout=30.0)
"""

from __future__ import annotations

import math
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from .config import DEFAULT_SETTINGS, EngineSettings
from .errors import InvalidInputError, SimulationCancelledError
from .portfolio import CorrelationLike, expected_return, volatility
from .random_source import RandomSource
from .types import Asset, SimulationConfig, SimulationResult, SimulationStatistics


# =============================================================================
# POST-PROCESSING
# =============================================================================

def _tail_index(fraction: float, n: int) -> int:
    """floor(fraction * n), guarded against representation error (0.1 * 100 = 9.99...)."""
    return min(int(math.floor(fraction * n + 1e-9)), n - 1)


def summarize(
    final_values: np.ndarray,
    initial_value: float,
    confidence: float = 0.95,
    settings: EngineSettings = DEFAULT_SETTINGS
) -> Tuple[SimulationStatistics, Dict[int, float]]:
    """
    Derive distribution statistics from simulated final values.

    Parameters
    ----------
    final_values : np.ndarray
        Final portfolio value of each trial, any order.
    initial_value : float
        Starting value; losses are measured against it.
    confidence : float, default=0.95
        VaR confidence level.
    settings : EngineSettings
        Supplies the reported percentile levels.

    Returns
    -------
    statistics : SimulationStatistics
    percentiles : Dict[int, float]

    Notes
    -----
    - VaR = initial - sorted[floor((1 - c) N)]
    - CVaR = initial - mean(sorted[:floor((1 - c) N)]). When the tail is
      empty (small N), the VaR cutoff value stands in for the tail mean,
      so CVaR >= VaR always holds.
    - Percentiles and the median index the sorted array directly; there
      is no interpolation between ranks.
    """
    values = np.asarray(final_values, dtype=float)
    n = values.shape[0]
    if n == 0:
        raise InvalidInputError("Cannot summarize an empty set of final values")

    sorted_values = np.sort(values)

    var_index = _tail_index(1.0 - confidence, n)
    cutoff = sorted_values[var_index]
    tail = sorted_values[:var_index]
    tail_mean = tail.mean() if tail.size > 0 else cutoff

    value_at_risk = initial_value - cutoff
    conditional_var = initial_value - tail_mean

    statistics = SimulationStatistics(
        mean=float(values.mean()),
        median=float(sorted_values[n // 2]),
        std=float(values.std(ddof=1)) if n > 1 else 0.0,
        min=float(sorted_values[0]),
        max=float(sorted_values[-1]),
        value_at_risk=float(value_at_risk),
        conditional_var=float(conditional_var),
        probability_of_loss=float(np.count_nonzero(values < initial_value) / n),
        expected_shortfall=float(conditional_var),
    )

    percentiles = {
        level: float(sorted_values[_tail_index(level / 100.0, n)])
        for level in settings.percentile_levels
    }

    return statistics, percentiles


# =============================================================================
# SIMULATOR
# =============================================================================

class MonteCarloSimulator:
    """
    GBM Monte Carlo simulator for a portfolio of assets.

    Parameters
    ----------
    random_source : RandomSource, optional
        Normal generator. A fresh unseeded source is created if omitted.
    settings : EngineSettings, optional
        Step size, default correlation, percentile levels and block size.
    n_workers : int, default=1
        Number of threads trials are split across. Each worker draws from
        its own spawned child stream.

    Notes
    -----
    The simulator is reusable but not re-entrant: successive runs advance
    the same RandomSource.
    """

    def __init__(
        self,
        random_source: Optional[RandomSource] = None,
        settings: EngineSettings = DEFAULT_SETTINGS,
        n_workers: int = 1
    ):
        if n_workers < 1:
            raise InvalidInputError(f"n_workers must be at least 1, got {n_workers}")
        self.random_source = random_source if random_source is not None else RandomSource()
        self.settings = settings
        self.n_workers = n_workers

        if n_workers > 1 and not self.random_source.is_spawnable:
            raise InvalidInputError(
                "Parallel simulation needs a seed-based RandomSource to spawn worker streams"
            )

    def run(
        self,
        assets: Sequence[Asset],
        config: SimulationConfig,
        correlation: CorrelationLike = None,
        keep_paths: bool = True,
        cancel_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None
    ) -> SimulationResult:
        """
        Simulate `config.simulations` independent portfolio paths.

        Parameters
        ----------
        assets : sequence of Asset
            Portfolio holdings; drift and volatility are derived from them.
        config : SimulationConfig
            Trial count, horizon, initial value and VaR confidence.
        correlation : array-like, optional
            (n, n) asset correlation matrix. Defaults to the flat fallback.
        keep_paths : bool, default=True
            Store every path. Set False to keep only final values; path
            storage is simulations x (steps + 1) floats.
        cancel_event : threading.Event, optional
            Checked between trial blocks; when set the run stops.
        timeout : float, optional
            Wall-clock budget in seconds, checked between trial blocks.

        Returns
        -------
        SimulationResult

        Raises
        ------
        InvalidInputError
            For an empty asset list, bad correlation matrix or timeout <= 0.
        SimulationCancelledError
            If the run was cancelled or timed out. No partial result is
            returned.
        """
        if timeout is not None and timeout <= 0:
            raise InvalidInputError(f"timeout must be positive, got {timeout}")

        mu = expected_return(assets)
        sigma = volatility(assets, correlation, self.settings)
        steps = config.steps(self.settings.trading_days_per_year)
        dt = self.settings.dt

        drift = (mu - 0.5 * sigma * sigma) * dt
        diffusion = sigma * math.sqrt(dt)

        logger.info(
            f"Starting Monte Carlo simulation: {config.simulations} trials x {steps} steps "
            f"(workers={self.n_workers}, keep_paths={keep_paths})"
        )
        logger.debug(f"Portfolio drift={mu:.6f}, volatility={sigma:.6f}")

        deadline = time.monotonic() + timeout if timeout is not None else None
        started = time.perf_counter()

        if self.n_workers == 1:
            finals, paths = self._run_serial(
                config, drift, diffusion, steps, keep_paths, cancel_event, deadline
            )
        else:
            finals, paths = self._run_parallel(
                config, drift, diffusion, steps, keep_paths, cancel_event, deadline
            )

        statistics, percentiles = summarize(
            finals, config.initial_value, config.confidence, self.settings
        )

        finals.setflags(write=False)
        if paths is not None:
            paths.setflags(write=False)

        logger.success(
            f"Simulation complete in {time.perf_counter() - started:.2f}s. "
            f"Mean final value: {statistics.mean:,.2f}, VaR: {statistics.value_at_risk:,.2f}"
        )

        return SimulationResult(
            final_values=finals,
            paths=paths,
            statistics=statistics,
            percentiles=percentiles,
            config=config,
        )

    # -------------------------------------------------------------------------
    # Execution strategies
    # -------------------------------------------------------------------------

    def _run_serial(
        self,
        config: SimulationConfig,
        drift: float,
        diffusion: float,
        steps: int,
        keep_paths: bool,
        cancel_event: Optional[threading.Event],
        deadline: Optional[float]
    ) -> Tuple[np.ndarray, Optional[np.ndarray]]:
        progress = [0]
        try:
            return self._simulate_block(
                self.random_source, config.simulations, config.initial_value,
                drift, diffusion, steps, keep_paths,
                (cancel_event,), deadline, progress, 0
            )
        except SimulationCancelledError as exc:
            logger.warning(f"Simulation stopped ({exc.reason}) after {progress[0]} trials")
            raise

    def _run_parallel(
        self,
        config: SimulationConfig,
        drift: float,
        diffusion: float,
        steps: int,
        keep_paths: bool,
        cancel_event: Optional[threading.Event],
        deadline: Optional[float]
    ) -> Tuple[np.ndarray, Optional[np.ndarray]]:
        streams = self.random_source.spawn(self.n_workers)
        counts = [len(c) for c in np.array_split(np.arange(config.simulations), self.n_workers)]
        progress = [0] * self.n_workers
        abort = threading.Event()

        def work(slot: int) -> Tuple[np.ndarray, Optional[np.ndarray]]:
            try:
                return self._simulate_block(
                    streams[slot], counts[slot], config.initial_value,
                    drift, diffusion, steps, keep_paths,
                    (cancel_event, abort), deadline, progress, slot
                )
            except Exception:
                # Any failure, cancellation included, stops the sibling workers.
                abort.set()
                raise

        with ThreadPoolExecutor(max_workers=self.n_workers) as pool:
            futures = [pool.submit(work, slot) for slot in range(self.n_workers)]
            outcomes: List[Tuple[np.ndarray, Optional[np.ndarray]]] = []
            failure: Optional[SimulationCancelledError] = None
            for future in futures:
                try:
                    outcomes.append(future.result())
                except SimulationCancelledError as exc:
                    failure = failure or exc

        if failure is not None:
            completed = sum(progress)
            logger.warning(f"Simulation stopped ({failure.reason}) after {completed} trials")
            raise SimulationCancelledError(completed, failure.reason)

        finals = np.concatenate([o[0] for o in outcomes])
        paths = np.concatenate([o[1] for o in outcomes]) if keep_paths else None
        return finals, paths

    def _simulate_block(
        self,
        source: RandomSource,
        n_trials: int,
        initial_value: float,
        drift: float,
        diffusion: float,
        steps: int,
        keep_paths: bool,
        stop_events: Tuple[Optional[threading.Event], ...],
        deadline: Optional[float],
        progress: List[int],
        slot: int
    ) -> Tuple[np.ndarray, Optional[np.ndarray]]:
        """Simulate `n_trials` trials in blocks of settings.trial_chunk_size."""
        finals = np.empty(n_trials)
        paths = np.empty((n_trials, steps + 1)) if keep_paths else None
        chunk = self.settings.trial_chunk_size

        for start in range(0, n_trials, chunk):
            if any(e is not None and e.is_set() for e in stop_events):
                raise SimulationCancelledError(progress[slot], "cancelled")
            if deadline is not None and time.monotonic() > deadline:
                raise SimulationCancelledError(progress[slot], "timeout")

            end = min(start + chunk, n_trials)

            if steps > 0:
                z = source.standard_normal((end - start, steps))
                log_path = np.cumsum(drift + diffusion * z, axis=1)
                finals[start:end] = initial_value * np.exp(log_path[:, -1])
                if paths is not None:
                    paths[start:end, 0] = initial_value
                    paths[start:end, 1:] = initial_value * np.exp(log_path)
            else:
                finals[start:end] = initial_value
                if paths is not None:
                    paths[start:end, 0] = initial_value

            progress[slot] = end

        return finals, paths


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def run_monte_carlo(
    assets: Sequence[Asset],
    config: SimulationConfig,
    correlation: CorrelationLike = None,
    seed: Optional[int] = None,
    keep_paths: bool = True,
    n_workers: int = 1,
    settings: EngineSettings = DEFAULT_SETTINGS
) -> SimulationResult:
    """
    Run a Monte Carlo simulation with a seeded default RandomSource.

    Examples
    --------
    >>> result = run_monte_carlo(assets, SimulationConfig(1000, 1.0, 100.0), seed=42)
    >>> result.final_values.shape
    (1000,)
    """
    simulator = MonteCarloSimulator(
        random_source=RandomSource(seed=seed),
        settings=settings,
        n_workers=n_workers,
    )
    return simulator.run(assets, config, correlation=correlation, keep_paths=keep_paths)
