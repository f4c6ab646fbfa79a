"""Property-based checks of the normal form, field laws and conversions."""
import math
import unittest
from fractions import Fraction

import numpy as np
from hypothesis import assume, given, strategies as st

from librational import Rational8, Rational16, Rational32, Rational64

SPECIALISATIONS = [Rational8, Rational16, Rational32, Rational64]


def in_range(cls):
    info = np.iinfo(cls.integer_type)
    # abs() of the minimum wraps onto itself, so keep it out.
    return st.integers(int(info.min) + 1, int(info.max))


@st.composite
def components(draw, classes=SPECIALISATIONS):
    cls = draw(st.sampled_from(classes))
    num = draw(in_range(cls))
    den = draw(in_range(cls).filter(lambda value: value != 0))
    return cls, num, den


# Small enough that three-term sums and products stay inside int64.
small = st.builds(
    Rational64,
    st.integers(-1000, 1000),
    st.integers(-1000, 1000).filter(lambda value: value != 0),
)


def wrap(value, bits):
    half = 1 << (bits - 1)
    return (value + half) % (1 << bits) - half


class NormalFormProperties(unittest.TestCase):
    @given(components())
    def test_constructed_values_are_normal(self, drawn):
        cls, num, den = drawn
        n, d = cls(num, den).as_integer_ratio()
        self.assertGreaterEqual(d, 1)
        self.assertEqual(math.gcd(n, d), 1)
        if n == 0:
            self.assertEqual(d, 1)
        self.assertEqual(Fraction(n, d), Fraction(num, den))

    @given(
        st.integers(-10**6, 10**6),
        st.integers(-10**6, 10**6).filter(lambda value: value != 0),
        st.integers(-1000, 1000).filter(lambda value: value != 0),
    )
    def test_equal_values_share_representation(self, num, den, factor):
        scaled = Rational64(num * factor, den * factor)
        self.assertEqual(scaled.as_integer_ratio(), Rational64(num, den).as_integer_ratio())


class FieldProperties(unittest.TestCase):
    @given(small, small)
    def test_commutativity(self, a, b):
        self.assertEqual(a + b, b + a)
        self.assertEqual(a * b, b * a)

    @given(small, small, small)
    def test_associativity(self, a, b, c):
        self.assertEqual((a + b) + c, a + (b + c))
        self.assertEqual((a * b) * c, a * (b * c))

    @given(small, small, small)
    def test_distributivity(self, a, b, c):
        self.assertEqual(a * (b + c), a * b + a * c)

    @given(small)
    def test_identities_and_inverses(self, a):
        zero, one = Rational64(), Rational64(1)
        self.assertEqual(a + zero, a)
        self.assertEqual(a * one, a)
        self.assertEqual(a + (-a), zero)
        if a != zero:
            self.assertEqual(a * (one / a), one)

    @given(small, small)
    def test_matches_exact_fractions(self, a, b):
        self.assertEqual((a + b).as_fraction(), a.as_fraction() + b.as_fraction())
        self.assertEqual((a - b).as_fraction(), a.as_fraction() - b.as_fraction())
        self.assertEqual((a * b).as_fraction(), a.as_fraction() * b.as_fraction())
        if b:
            self.assertEqual((a / b).as_fraction(), a.as_fraction() / b.as_fraction())


class OrderProperties(unittest.TestCase):
    @given(small, small)
    def test_trichotomy(self, a, b):
        outcomes = [a < b, a == b, a > b]
        self.assertEqual(outcomes.count(True), 1)
        self.assertEqual(a < b, a.as_fraction() < b.as_fraction())
        self.assertEqual(a <= b, not (b < a))
        self.assertEqual(a >= b, not (a < b))

    @given(small, small, small)
    def test_monotonicity(self, a, b, c):
        assume(a < b)
        self.assertLess(a + c, b + c)
        if c > 0:
            self.assertLess(a * c, b * c)


class ConversionProperties(unittest.TestCase):
    @given(components([Rational32]))
    def test_float64_within_one_ulp(self, drawn):
        _, num, den = drawn
        assume(num != 0)
        value = Rational32(num, den)
        exact = Fraction(num, den)
        error = abs(Fraction(float(value)) - exact)
        self.assertLessEqual(error, Fraction(math.ulp(num / den)))

    @given(components([Rational16]))
    def test_float32_within_one_ulp(self, drawn):
        _, num, den = drawn
        assume(num != 0)
        result = Rational16(num, den).astype(np.float32)
        self.assertIsInstance(result, np.float32)
        exact = Fraction(num, den)
        ulp = np.spacing(np.abs(np.float32(num / den)))
        self.assertLessEqual(abs(Fraction(float(result)) - exact), Fraction(float(ulp)))

    @given(components([Rational8, Rational16]))
    def test_widening_preserves_value(self, drawn):
        cls, num, den = drawn
        value = cls(num, den)
        widened = value.astype(Rational64)
        self.assertEqual(widened.as_integer_ratio(), value.as_integer_ratio())

    @given(components([Rational32]))
    def test_narrowing_normalises_truncated_pair(self, drawn):
        _, num, den = drawn
        n, d = Rational32(num, den).as_integer_ratio()
        assume(wrap(d, 16) != 0)
        expected = Rational16(wrap(n, 16), wrap(d, 16))
        self.assertEqual(Rational32(num, den).astype(Rational16), expected)


if __name__ == "__main__":  # pragma: no cover - direct execution helper
    unittest.main()
