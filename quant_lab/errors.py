"""
errors.py - Exception Hierarchy for quant_lab

Every failure raised by the numerical core derives from QuantLabError so
callers can catch the whole family at once, while still discriminating
between the three ways a computation can fail:

- InvalidInputError: parameters rejected before any computation starts
- NumericalDegeneracyError: a ratio or formula whose denominator is zero
- InfeasibleOptimizationError: the frontier sweep retained no point

InvalidInputError also subclasses ValueError and NumericalDegeneracyError
subclasses ArithmeticError, so generic handlers keep working.
"""

from __future__ import annotations


class QuantLabError(Exception):
    """Base class for all quant_lab errors."""


class InvalidInputError(QuantLabError, ValueError):
    """Raised when a parameter fails validation at the API boundary."""


class NumericalDegeneracyError(QuantLabError, ArithmeticError):
    """
    Raised when a quantity is mathematically undefined for the given data.

    Parameters
    ----------
    quantity : str
        Name of the metric that could not be computed (e.g. "beta").
    reason : str
        Short description of the zero denominator.
    """

    def __init__(self, quantity: str, reason: str):
        self.quantity = quantity
        self.reason = reason
        super().__init__(f"Cannot compute {quantity}: {reason}")


class InfeasibleOptimizationError(QuantLabError):
    """Raised when no target return on the frontier yields a feasible portfolio."""


class SimulationCancelledError(QuantLabError):
    """
    Raised when a Monte Carlo run is cancelled or exceeds its timeout.

    Parameters
    ----------
    completed_trials : int
        Number of trials finished before the run stopped. No partial
        result is returned.
    reason : str
        Either "cancelled" or "timeout".
    """

    def __init__(self, completed_trials: int, reason: str = "cancelled"):
        self.completed_trials = completed_trials
        self.reason = reason
        super().__init__(
            f"Simulation {reason} after {completed_trials} completed trials"
        )
