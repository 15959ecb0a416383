"""
options.py - Black-Scholes Pricing and Greeks

Closed-form European option pricing with continuous dividend yield q:

    d1 = (ln(S/K) + (r - q + sigma^2 / 2) T) / (sigma sqrt(T))
    d2 = d1 - sigma sqrt(T)

    call = S e^{-qT} N(d1) - K e^{-rT} N(d2)
    put  = K e^{-rT} N(-d2) - S e^{-qT} N(-d1)

N(x) is evaluated through the Abramowitz & Stegun 7.1.26 rational
approximation of erf, whose absolute error is at most 1.5e-7. This is
accurate enough for pricing but it is an approximation, not the exact
normal CDF. Because the approximation is odd in x, N(x) + N(-x) == 1
holds exactly and put-call parity is preserved to rounding error.

Greeks are analytic; theta is per year, vega per unit volatility and
rho per unit rate.

Example Usage:
-------------
    >>> from quant_lab.options import black_scholes, implied_volatility
    >>>
    >>> quote = black_scholes(spot=100, strike=100, time_to_expiry=1.0,
    ...                       risk_free_rate=0.05, volatility=0.2)
    >>> round(quote.call_price, 2), round(quote.greeks.delta, 3)
    (10.45, 0.637)
    >>> implied_volatility(10.4506, 100, 100, 1.0, 0.05)
    0.2000...
"""

from __future__ import annotations

import math
from typing import Optional, Union

import numpy as np
from scipy.optimize import brentq
from loguru import logger

from .config import OptionType
from .errors import InvalidInputError, NumericalDegeneracyError
from .types import Greeks, OptionQuote

ArrayLike = Union[float, np.ndarray]

# Abramowitz & Stegun 7.1.26 coefficients
_A1 = 0.254829592
_A2 = -0.284496736
_A3 = 1.421413741
_A4 = -1.453152027
_A5 = 1.061405429
_P = 0.3275911


# =============================================================================
# NORMAL DISTRIBUTION
# =============================================================================

def erf_approx(x: ArrayLike) -> ArrayLike:
    """Abramowitz & Stegun approximation of erf(x); |error| <= 1.5e-7."""
    x = np.asarray(x, dtype=float)
    sign = np.sign(x)
    ax = np.abs(x)
    t = 1.0 / (1.0 + _P * ax)
    poly = ((((_A5 * t + _A4) * t + _A3) * t + _A2) * t + _A1) * t
    y = 1.0 - poly * np.exp(-ax * ax)
    result = sign * y
    return float(result) if result.ndim == 0 else result


def normal_cdf(x: ArrayLike) -> ArrayLike:
    """Standard normal CDF via erf_approx (approximate, see module notes)."""
    return 0.5 * (1.0 + erf_approx(np.asarray(x, dtype=float) / math.sqrt(2.0)))


def normal_pdf(x: ArrayLike) -> ArrayLike:
    """Standard normal density."""
    x = np.asarray(x, dtype=float)
    result = np.exp(-0.5 * x * x) / math.sqrt(2.0 * math.pi)
    return float(result) if result.ndim == 0 else result


# =============================================================================
# PRICING
# =============================================================================

def _validate(spot: float, strike: float, time_to_expiry: float, volatility: float) -> None:
    for name, value in (
        ("spot", spot),
        ("strike", strike),
        ("time_to_expiry", time_to_expiry),
        ("volatility", volatility),
    ):
        if not math.isfinite(value) or value <= 0:
            raise InvalidInputError(f"{name} must be positive and finite, got {value}")


def _price(
    spot: float,
    strike: float,
    time_to_expiry: float,
    risk_free_rate: float,
    volatility: float,
    dividend_yield: float,
    option_type: OptionType
) -> float:
    """Single-sided price used by the implied volatility search."""
    sqrt_t = math.sqrt(time_to_expiry)
    d1 = (math.log(spot / strike)
          + (risk_free_rate - dividend_yield + 0.5 * volatility ** 2) * time_to_expiry) / (volatility * sqrt_t)
    d2 = d1 - volatility * sqrt_t
    spot_pv = spot * math.exp(-dividend_yield * time_to_expiry)
    strike_pv = strike * math.exp(-risk_free_rate * time_to_expiry)
    if option_type == OptionType.CALL:
        return spot_pv * normal_cdf(d1) - strike_pv * normal_cdf(d2)
    return strike_pv * normal_cdf(-d2) - spot_pv * normal_cdf(-d1)


def black_scholes(
    spot: float,
    strike: float,
    time_to_expiry: float,
    risk_free_rate: float,
    volatility: float,
    dividend_yield: float = 0.0,
    market_price: Optional[float] = None,
    option_type: OptionType = OptionType.CALL
) -> OptionQuote:
    """
    Price a European call and put and compute their Greeks.

    Parameters
    ----------
    spot : float
        Current underlying price (> 0).
    strike : float
        Strike price (> 0).
    time_to_expiry : float
        Time to expiry in years (> 0).
    risk_free_rate : float
        Continuously compounded annual rate.
    volatility : float
        Annualized volatility (> 0).
    dividend_yield : float, default=0.0
        Continuous dividend yield.
    market_price : float, optional
        Observed option price. When given, the quote also carries the
        implied volatility of the `option_type` side.
    option_type : OptionType, default=OptionType.CALL
        Side `market_price` refers to.

    Returns
    -------
    OptionQuote

    Raises
    ------
    InvalidInputError
        If spot, strike, time_to_expiry or volatility is not positive.
    NumericalDegeneracyError
        If sigma * sqrt(T) underflows to zero.
    """
    _validate(spot, strike, time_to_expiry, volatility)

    sqrt_t = math.sqrt(time_to_expiry)
    vol_sqrt_t = volatility * sqrt_t
    if vol_sqrt_t == 0.0:
        raise NumericalDegeneracyError("d1", "volatility * sqrt(time_to_expiry) is zero")

    d1 = (math.log(spot / strike)
          + (risk_free_rate - dividend_yield + 0.5 * volatility ** 2) * time_to_expiry) / vol_sqrt_t
    d2 = d1 - vol_sqrt_t

    div_discount = math.exp(-dividend_yield * time_to_expiry)
    rate_discount = math.exp(-risk_free_rate * time_to_expiry)
    spot_pv = spot * div_discount
    strike_pv = strike * rate_discount

    n_d1, n_d2 = normal_cdf(d1), normal_cdf(d2)
    n_neg_d1, n_neg_d2 = normal_cdf(-d1), normal_cdf(-d2)
    pdf_d1 = normal_pdf(d1)

    call_price = spot_pv * n_d1 - strike_pv * n_d2
    put_price = strike_pv * n_neg_d2 - spot_pv * n_neg_d1

    # Shared between call and put
    gamma = div_discount * pdf_d1 / (spot * vol_sqrt_t)
    vega = spot_pv * pdf_d1 * sqrt_t
    decay = -spot_pv * pdf_d1 * volatility / (2.0 * sqrt_t)

    call_greeks = Greeks(
        delta=div_discount * n_d1,
        gamma=gamma,
        theta=decay - risk_free_rate * strike_pv * n_d2 + dividend_yield * spot_pv * n_d1,
        vega=vega,
        rho=strike * time_to_expiry * rate_discount * n_d2,
    )
    put_greeks = Greeks(
        delta=-div_discount * n_neg_d1,
        gamma=gamma,
        theta=decay + risk_free_rate * strike_pv * n_neg_d2 - dividend_yield * spot_pv * n_neg_d1,
        vega=vega,
        rho=-strike * time_to_expiry * rate_discount * n_neg_d2,
    )

    implied = None
    if market_price is not None:
        implied = implied_volatility(
            market_price, spot, strike, time_to_expiry,
            risk_free_rate, dividend_yield, option_type
        )

    return OptionQuote(
        call_price=float(call_price),
        put_price=float(put_price),
        greeks=call_greeks,
        put_greeks=put_greeks,
        implied_volatility=implied,
    )


def implied_volatility(
    price: float,
    spot: float,
    strike: float,
    time_to_expiry: float,
    risk_free_rate: float,
    dividend_yield: float = 0.0,
    option_type: OptionType = OptionType.CALL,
    low: float = 1e-6,
    high: float = 5.0
) -> float:
    """
    Invert Black-Scholes for volatility with Brent's method.

    Parameters
    ----------
    price : float
        Observed option price.
    low, high : float
        Volatility bracket searched.

    Raises
    ------
    InvalidInputError
        If the price violates no-arbitrage bounds or no volatility in
        [low, high] reproduces it.
    """
    _validate(spot, strike, time_to_expiry, high)
    option_type = OptionType(option_type)

    spot_pv = spot * math.exp(-dividend_yield * time_to_expiry)
    strike_pv = strike * math.exp(-risk_free_rate * time_to_expiry)
    if option_type == OptionType.CALL:
        lower, upper = max(spot_pv - strike_pv, 0.0), spot_pv
    else:
        lower, upper = max(strike_pv - spot_pv, 0.0), strike_pv

    if not lower < price < upper:
        raise InvalidInputError(
            f"{option_type.value} price {price} outside no-arbitrage bounds ({lower:.6f}, {upper:.6f})"
        )

    def objective(vol: float) -> float:
        return _price(spot, strike, time_to_expiry, risk_free_rate, vol,
                      dividend_yield, option_type) - price

    try:
        vol = brentq(objective, low, high, xtol=1e-10)
    except ValueError as e:
        raise InvalidInputError(
            f"No implied volatility in [{low}, {high}] for price {price}"
        ) from e

    logger.debug(f"Implied volatility for {option_type.value} at {price}: {vol:.6f}")
    return float(vol)
