"""
random_source.py - Seedable Standard-Normal Generator

Standard-normal deviates are produced with the Box-Muller transform over
a uniform(0, 1) generator. The uniform generator is injected, so tests
can supply a deterministic stream and simulations can be reproduced from
a seed.

    Z = sqrt(-2 ln U1) * cos(2 pi U2),    U1, U2 ~ U(0, 1)

Uniform draws that are exactly 0 are redrawn before taking the logarithm.

Example Usage:
-------------
    >>> from quant_lab.random_source import RandomSource
    >>>
    >>> source = RandomSource(seed=42)
    >>> z = source.standard_normal((1000, 252))   # one row per trial
    >>>
    >>> # Independent child streams for parallel workers
    >>> workers = source.spawn(4)
"""

from __future__ import annotations

from typing import Callable, List, Optional, Tuple, Union

import numpy as np

from .errors import InvalidInputError

UniformCallable = Callable[[Union[int, Tuple[int, ...]]], np.ndarray]


class RandomSource:
    """
    Box-Muller standard-normal generator over an injectable uniform stream.

    Parameters
    ----------
    uniform : callable, optional
        Function ``uniform(size) -> np.ndarray`` returning draws in [0, 1).
        When omitted, ``np.random.default_rng(seed).random`` is used.
    seed : int or np.random.SeedSequence, optional
        Seed for the default generator. Ignored when `uniform` is given.

    Notes
    -----
    Only the default generator can be split with `spawn`, because child
    streams are derived from its SeedSequence.
    """

    def __init__(
        self,
        uniform: Optional[UniformCallable] = None,
        seed: Optional[Union[int, np.random.SeedSequence]] = None
    ):
        if uniform is not None:
            self._uniform = uniform
            self._seed_sequence: Optional[np.random.SeedSequence] = None
        else:
            if isinstance(seed, np.random.SeedSequence):
                self._seed_sequence = seed
            else:
                self._seed_sequence = np.random.SeedSequence(seed)
            self._uniform = np.random.default_rng(self._seed_sequence).random

    @property
    def is_spawnable(self) -> bool:
        return self._seed_sequence is not None

    def _positive_uniform(self, size: Union[int, Tuple[int, ...]]) -> np.ndarray:
        """Draw uniforms in (0, 1), redrawing any exact zeros."""
        u = np.asarray(self._uniform(size), dtype=float)
        zeros = u == 0.0
        while zeros.any():
            u[zeros] = self._uniform(int(zeros.sum()))
            zeros = u == 0.0
        return u

    def standard_normal(self, size: Union[int, Tuple[int, ...]]) -> np.ndarray:
        """
        Draw an array of independent N(0, 1) deviates.

        Parameters
        ----------
        size : int or tuple of int
            Output shape.

        Returns
        -------
        np.ndarray
            Standard-normal samples with the requested shape.
        """
        u1 = self._positive_uniform(size)
        u2 = self._positive_uniform(size)
        return np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)

    def next_standard_normal(self) -> float:
        """Draw a single N(0, 1) deviate."""
        return float(self.standard_normal(1)[0])

    def spawn(self, n: int) -> List["RandomSource"]:
        """
        Create `n` independent, non-overlapping child streams.

        Raises
        ------
        InvalidInputError
            If `n` < 1 or this source wraps a custom uniform callable.
        """
        if n < 1:
            raise InvalidInputError(f"Cannot spawn {n} streams")
        if self._seed_sequence is None:
            raise InvalidInputError(
                "A RandomSource built on a custom uniform generator cannot spawn child streams"
            )
        return [RandomSource(seed=child) for child in self._seed_sequence.spawn(n)]
