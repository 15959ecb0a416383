"""
bonds.py - Present-Value Bond Pricing and Risk

A fixed-coupon bond paying `frequency` coupons a year is priced by
discounting every cash flow at the periodic yield y / f:

    P         = sum_t CF_t (1 + y/f)^{-t}
    D_mac     = sum_t (t/f) CF_t (1 + y/f)^{-t} / P
    D_mod     = D_mac / (1 + y/f)
    convexity = sum_t (t/f)(t/f + 1/f) CF_t (1 + y/f)^{-t} / P

with CF_t = face * c / f for t < n and face * (1 + c / f) at t = n.
"""

from __future__ import annotations

import math

import numpy as np
from scipy.optimize import brentq

from .errors import InvalidInputError
from .types import BondQuote


def _periods(years_to_maturity: float, frequency: int) -> int:
    periods = int(round(years_to_maturity * frequency))
    if periods < 1:
        raise InvalidInputError(
            f"Bond must have at least one coupon period, got {years_to_maturity} years at frequency {frequency}"
        )
    return periods


def price_bond(
    face_value: float,
    coupon_rate: float,
    years_to_maturity: float,
    yield_to_maturity: float,
    frequency: int = 2
) -> BondQuote:
    """
    Price a fixed-coupon bond and compute duration and convexity.

    Parameters
    ----------
    face_value : float
        Principal repaid at maturity (> 0).
    coupon_rate : float
        Annual coupon rate (decimal, >= 0).
    years_to_maturity : float
        Remaining life in years (> 0). years * frequency is rounded to
        the nearest whole number of periods.
    yield_to_maturity : float
        Annual yield (decimal); 1 + ytm / frequency must be positive.
    frequency : int, default=2
        Coupon payments per year.

    Returns
    -------
    BondQuote

    Examples
    --------
    >>> price_bond(1000, 0.05, 10, 0.05).price   # coupon == yield -> par
    1000.0000000000...
    """
    if not math.isfinite(face_value) or face_value <= 0:
        raise InvalidInputError(f"face_value must be positive, got {face_value}")
    if coupon_rate < 0:
        raise InvalidInputError(f"coupon_rate must be >= 0, got {coupon_rate}")
    if years_to_maturity <= 0:
        raise InvalidInputError(f"years_to_maturity must be positive, got {years_to_maturity}")
    if int(frequency) != frequency or frequency < 1:
        raise InvalidInputError(f"frequency must be a positive integer, got {frequency}")

    frequency = int(frequency)
    periodic_yield = yield_to_maturity / frequency
    if 1.0 + periodic_yield <= 0:
        raise InvalidInputError(
            f"yield_to_maturity {yield_to_maturity} gives a non-positive discount base"
        )

    n = _periods(years_to_maturity, frequency)
    t = np.arange(1, n + 1, dtype=float)
    times = t / frequency

    cash_flows = np.full(n, face_value * coupon_rate / frequency)
    cash_flows[-1] += face_value

    present_values = cash_flows * (1.0 + periodic_yield) ** (-t)
    price = float(present_values.sum())

    macaulay = float((times * present_values).sum() / price)
    modified = macaulay / (1.0 + periodic_yield)
    convexity = float((times * (times + 1.0 / frequency) * present_values).sum() / price)

    return BondQuote(
        price=price,
        yield_to_maturity=yield_to_maturity,
        duration=macaulay,
        modified_duration=modified,
        convexity=convexity,
        macaulay_duration=macaulay,
    )


def yield_from_price(
    price: float,
    face_value: float,
    coupon_rate: float,
    years_to_maturity: float,
    frequency: int = 2,
    low: float = -0.99,
    high: float = 10.0
) -> float:
    """
    Solve for the yield to maturity that reproduces `price`.

    Raises
    ------
    InvalidInputError
        If price is not positive or no yield in [low, high] matches it.
    """
    if price <= 0:
        raise InvalidInputError(f"price must be positive, got {price}")

    def objective(y: float) -> float:
        return price_bond(face_value, coupon_rate, years_to_maturity, y, frequency).price - price

    try:
        return float(brentq(objective, low, high, xtol=1e-12))
    except ValueError as e:
        raise InvalidInputError(
            f"No yield in [{low}, {high}] reproduces price {price}"
        ) from e
