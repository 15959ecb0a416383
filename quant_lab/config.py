"""
config.py - Engine Settings and Method Enums

All numerical constants the engine relies on are gathered in a single
frozen dataclass so that no component carries a hidden default. Pass a
custom EngineSettings to any component to override them.

Example Usage:
-------------
    >>> from quant_lab.config import EngineSettings
    >>> from quant_lab.simulation import MonteCarloSimulator
    >>>
    >>> # Weekly steps and a more conservative correlation fallback
    >>> settings = EngineSettings(trading_days_per_year=52, default_correlation=0.5)
    >>> simulator = MonteCarloSimulator(settings=settings)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from .errors import InvalidInputError


class FrontierMethod(str, Enum):
    """Weight search used by the efficient frontier optimizer."""
    HEURISTIC = "heuristic"
    QP = "qp"


class OptionType(str, Enum):
    """European option side."""
    CALL = "call"
    PUT = "put"


@dataclass(frozen=True)
class EngineSettings:
    """
    Numerical constants shared by the simulator, optimizer and statistics.

    Parameters
    ----------
    trading_days_per_year : int, default=252
        Steps per simulated year; dt = 1 / trading_days_per_year.
    default_correlation : float, default=0.3
        Flat off-diagonal correlation assumed when the caller supplies no
        correlation matrix.
    frontier_points : int, default=100
        Number of target returns swept between the lowest and highest
        asset return.
    frontier_tolerance : float, default=0.001
        Return gap below which the proportional-adjustment search stops.
    frontier_max_iterations : int, default=100
        Iteration cap of the proportional-adjustment search.
    percentile_levels : tuple of int
        Percentiles reported for simulated final values.
    trial_chunk_size : int, default=256
        Trials simulated per vectorized block. Cancellation and timeouts
        are checked between blocks.
    """
    trading_days_per_year: int = 252
    default_correlation: float = 0.3
    frontier_points: int = 100
    frontier_tolerance: float = 0.001
    frontier_max_iterations: int = 100
    percentile_levels: Tuple[int, ...] = (5, 10, 25, 50, 75, 90, 95, 99)
    trial_chunk_size: int = 256

    def __post_init__(self):
        if self.trading_days_per_year <= 0:
            raise InvalidInputError(
                f"trading_days_per_year must be positive, got {self.trading_days_per_year}"
            )
        if not -1.0 <= self.default_correlation <= 1.0:
            raise InvalidInputError(
                f"default_correlation must lie in [-1, 1], got {self.default_correlation}"
            )
        if self.frontier_points < 2:
            raise InvalidInputError(
                f"frontier_points must be at least 2, got {self.frontier_points}"
            )
        if self.frontier_tolerance <= 0:
            raise InvalidInputError("frontier_tolerance must be positive")
        if self.frontier_max_iterations < 1:
            raise InvalidInputError("frontier_max_iterations must be at least 1")
        if self.trial_chunk_size < 1:
            raise InvalidInputError("trial_chunk_size must be at least 1")
        for level in self.percentile_levels:
            if not 0 <= level <= 100:
                raise InvalidInputError(f"Percentile level out of range: {level}")

    @property
    def dt(self) -> float:
        """Length of one simulation step in years."""
        return 1.0 / self.trading_days_per_year


DEFAULT_SETTINGS = EngineSettings()
