"""
test_bonds.py - Tests for Bond Pricing, Duration and Convexity
"""

import pytest
import numpy as np

from quant_lab import InvalidInputError, price_bond, yield_from_price


class TestPriceBond:
    """Tests for price_bond."""

    def test_par_bond(self):
        """Coupon rate equal to yield prices at face value."""
        quote = price_bond(1000, 0.05, 10, 0.05)
        assert quote.price == pytest.approx(1000.0, abs=1e-6)

    def test_premium_and_discount(self):
        assert price_bond(1000, 0.06, 10, 0.05).price > 1000.0
        assert price_bond(1000, 0.04, 10, 0.05).price < 1000.0

    def test_zero_coupon(self):
        """1000 / 1.02^10 with Macaulay duration equal to maturity."""
        quote = price_bond(1000, 0.0, 5, 0.04, frequency=2)

        assert quote.price == pytest.approx(820.3483, abs=1e-4)
        assert quote.macaulay_duration == pytest.approx(5.0)
        assert quote.modified_duration == pytest.approx(5.0 / 1.02)
        assert quote.convexity == pytest.approx(5.0 * 5.5)

    def test_duration_aliases(self):
        quote = price_bond(1000, 0.05, 7, 0.06)
        assert quote.duration == quote.macaulay_duration
        assert quote.yield_to_maturity == 0.06

    def test_duration_below_maturity(self):
        quote = price_bond(1000, 0.05, 10, 0.05)
        assert 0 < quote.macaulay_duration < 10
        assert quote.modified_duration < quote.macaulay_duration

    def test_duration_predicts_price_change(self):
        """dP / P ~ -D_mod * dy for small yield moves."""
        base = price_bond(1000, 0.05, 10, 0.05, frequency=1)
        bumped = price_bond(1000, 0.05, 10, 0.05001, frequency=1)

        predicted = -base.modified_duration * 0.00001
        actual = bumped.price / base.price - 1.0
        assert actual == pytest.approx(predicted, rel=1e-3)

    def test_annual_frequency(self):
        quote = price_bond(100, 0.1, 2, 0.1, frequency=1)
        expected = 10 / 1.1 + 110 / 1.1 ** 2
        assert quote.price == pytest.approx(expected)

    def test_periods_rounded(self):
        """2.26 years at semi-annual frequency rounds to 5 periods."""
        a = price_bond(1000, 0.05, 2.26, 0.04)
        b = price_bond(1000, 0.05, 2.5, 0.04)
        assert a.price == pytest.approx(b.price)

    @pytest.mark.parametrize("kwargs", [
        dict(face_value=0, coupon_rate=0.05, years_to_maturity=5, yield_to_maturity=0.05),
        dict(face_value=1000, coupon_rate=-0.01, years_to_maturity=5, yield_to_maturity=0.05),
        dict(face_value=1000, coupon_rate=0.05, years_to_maturity=0, yield_to_maturity=0.05),
        dict(face_value=1000, coupon_rate=0.05, years_to_maturity=5, yield_to_maturity=0.05, frequency=0),
        dict(face_value=1000, coupon_rate=0.05, years_to_maturity=0.1, yield_to_maturity=0.05),
        dict(face_value=1000, coupon_rate=0.05, years_to_maturity=5, yield_to_maturity=-2.5),
    ])
    def test_invalid_inputs(self, kwargs):
        with pytest.raises(InvalidInputError):
            price_bond(**kwargs)


class TestYieldFromPrice:
    """Tests for yield_from_price."""

    @pytest.mark.parametrize("ytm", [0.01, 0.045, 0.12])
    def test_round_trip(self, ytm):
        price = price_bond(1000, 0.05, 8, ytm).price
        assert yield_from_price(price, 1000, 0.05, 8) == pytest.approx(ytm, abs=1e-9)

    def test_par_yield(self):
        assert yield_from_price(1000.0, 1000, 0.06, 5) == pytest.approx(0.06, abs=1e-9)

    def test_non_positive_price(self):
        with pytest.raises(InvalidInputError):
            yield_from_price(0.0, 1000, 0.05, 5)

    def test_unreachable_price(self):
        with pytest.raises(InvalidInputError):
            yield_from_price(1e7, 1000, 0.05, 5)
