"""Fixed-width rational numbers backed by NumPy integer scalars."""
from __future__ import annotations

import logging
import numbers
import operator
from contextlib import contextmanager
from fractions import Fraction
from typing import Any, Dict, Iterator, Optional, Tuple, Type, Union

import numpy as np

logger = logging.getLogger(__name__)

IntegerLike = Union[numbers.Integral, np.integer]

DEFAULT_OVERFLOW_MODE = "ignore"
_OVERFLOW_MODES = ("ignore", "warn", "raise")
_overflow_mode = DEFAULT_OVERFLOW_MODE

_SPECIALIZATIONS: Dict[np.dtype, Type["Rational"]] = {}


def get_overflow_mode() -> str:
    """Return how integer overflow in Rational arithmetic is reported."""
    return _overflow_mode


def set_overflow_mode(mode: str) -> str:
    """Set the ``np.errstate`` overflow mode and return the previous one.

    ``"ignore"`` keeps the silent wraparound of the underlying integer type,
    ``"warn"`` emits :class:`RuntimeWarning` and ``"raise"`` raises
    :class:`FloatingPointError`.
    """
    global _overflow_mode
    if mode not in _OVERFLOW_MODES:
        raise ValueError(f"overflow mode must be one of {_OVERFLOW_MODES}, got {mode!r}")
    previous, _overflow_mode = _overflow_mode, mode
    if previous != mode:
        logger.info("Rational overflow mode changed from %s to %s", previous, mode)
    return previous


@contextmanager
def _integer_arithmetic() -> Iterator[None]:
    with np.errstate(over=_overflow_mode):
        yield


def _integer_dtype(integer_type: Any) -> np.dtype:
    """Resolve *integer_type* to a NumPy integer dtype or raise ``TypeError``."""
    try:
        dtype = np.dtype(integer_type)
    except (TypeError, ValueError) as exc:
        raise TypeError(f"{integer_type!r} is not an integer representation") from exc
    if dtype.kind not in "iu":
        raise TypeError(f"Rational requires an integer representation, got {dtype.name}")
    return dtype


def _arithmetic_dtype(target: Any) -> np.dtype:
    try:
        dtype = np.dtype(target)
    except (TypeError, ValueError) as exc:
        raise TypeError(f"cannot convert Rational to {target!r}") from exc
    if dtype.kind not in "iufc":
        raise TypeError(f"cannot convert Rational to non-arithmetic type {dtype.name}")
    return dtype


def _ensure_int(value: Any, dtype: np.dtype, *, name: str) -> np.integer:
    """Convert *value* to a scalar of *dtype* when it represents an integer."""
    if isinstance(value, np.integer):
        # C-style narrowing, wider values wrap.
        return value.astype(dtype)
    if isinstance(value, numbers.Integral):
        value = int(value)
        info = np.iinfo(dtype)
        if not info.min <= value <= info.max:
            raise OverflowError(f"{name} {value} does not fit in {dtype.name}")
        return dtype.type(value)
    raise TypeError(f"{name} must be an integer, got {type(value)!r}")


def _fits(value: Any, dtype: np.dtype) -> bool:
    info = np.iinfo(dtype)
    return bool(info.min <= int(value) <= info.max)


def _rebuild(dtype_str: str, num: int, den: int) -> "Rational":
    return Rational[dtype_str](num, den)


def _common_sign(a: np.integer, b: np.integer) -> np.integer:
    dtype = a.dtype
    if a == 0 or b == 0:
        return dtype.type(0)
    if (a > 0) == (b > 0):
        return dtype.type(1)
    return dtype.type(-1)


def _truncating_divide(num: np.integer, den: np.integer) -> np.integer:
    """Integer division rounding toward zero, as C does."""
    if den == 0:
        raise ZeroDivisionError("integer conversion with zero denominator")
    quotient = num // den
    if quotient < 0 and quotient * den != num:
        quotient = quotient + 1
    return quotient


class Rational:
    """Rational number over a fixed-width integer type, always in normal form.

    Specialise with an integer dtype before use::

        >>> Rational[np.int32](2, 4)
        Rational[int32](1, 2)

    Values keep ``denominator >= 1``, coprime components and ``0`` stored as
    ``0/1``, so equal values share one representation. All intermediate
    products are computed in the integer type itself and wrap on overflow.
    Components equal to the minimum of the integer type are excluded from
    that guarantee: their absolute value wraps, so e.g. ``Rational8(1, -128)``
    keeps a negative denominator.
    """

    __slots__ = ("_numerator", "_denominator")
    __array_priority__ = 1000.0  # Prefer Rational semantics in NumPy expressions.

    integer_type: Any = None

    def __class_getitem__(cls, integer_type: Any) -> Type["Rational"]:
        dtype = _integer_dtype(integer_type)
        try:
            return _SPECIALIZATIONS[dtype]
        except KeyError:
            pass
        name = f"Rational[{dtype.name}]"
        specialised = type(
            name,
            (Rational,),
            {"__slots__": (), "__module__": __name__, "__qualname__": name, "integer_type": dtype.type},
        )
        logger.debug("created %s", name)
        return _SPECIALIZATIONS.setdefault(dtype, specialised)

    def __init__(self, numerator: IntegerLike = 0, denominator: Optional[IntegerLike] = None) -> None:
        if self.integer_type is None:
            raise TypeError("Rational must be specialised first, e.g. Rational[np.int32]")
        dtype = np.dtype(self.integer_type)
        num = _ensure_int(numerator, dtype, name="numerator")
        if denominator is None:
            den = dtype.type(1)
        else:
            den = _ensure_int(denominator, dtype, name="denominator")
            num, den = self._normalize(num, den)

        self._numerator = num
        self._denominator = den

    # ------------------------------------------------------------------
    # Properties and helpers
    @property
    def numerator(self) -> np.integer:
        return self._numerator

    @property
    def denominator(self) -> np.integer:
        return self._denominator

    def as_integer_ratio(self) -> Tuple[int, int]:
        return int(self._numerator), int(self._denominator)

    def as_fraction(self) -> Fraction:
        """Return a :class:`Fraction` with the same value."""
        return Fraction(int(self._numerator), int(self._denominator))

    # ------------------------------------------------------------------
    # Conversions
    def astype(self, target: Any) -> Any:
        """Convert to a scalar type or to another Rational specialisation.

        For a NumPy numeric type ``T`` the result is ``T(num) / T(den)`` in
        ``T``'s arithmetic; integer targets truncate toward zero. For a
        ``Rational[J]`` target both components are cast to ``J`` (wrapping
        when narrowing) and the pair is normalised again.
        """
        if isinstance(target, type) and issubclass(target, Rational):
            return self._to_rational(target)
        dtype = _arithmetic_dtype(target)
        num = self._numerator.astype(dtype)
        den = self._denominator.astype(dtype)
        with _integer_arithmetic():
            if dtype.kind in "iu":
                return _truncating_divide(num, den)
            return num / den

    def _to_rational(self, target: Type["Rational"]) -> "Rational":
        if target.integer_type is None:
            raise TypeError("target Rational must be specialised, e.g. Rational[np.int64]")
        dtype = np.dtype(target.integer_type)
        num = self._numerator.astype(dtype)
        den = self._denominator.astype(dtype)
        if logger.isEnabledFor(logging.DEBUG) and (num != self._numerator or den != self._denominator):
            logger.debug("narrowing %r to %s truncated the pair to (%s, %s)", self, target.__name__, num, den)
        return target(num, den)

    def __float__(self) -> float:
        return float(self.astype(np.float64))

    def __int__(self) -> int:
        return int(self.astype(self.integer_type))

    def __bool__(self) -> bool:
        return bool(self._numerator != 0)

    # ------------------------------------------------------------------
    # Representation
    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._numerator}, {self._denominator})"

    def __str__(self) -> str:
        if self._denominator == 1:
            return str(self._numerator)
        return f"{self._numerator}/{self._denominator}"

    # ------------------------------------------------------------------
    # Internal helpers
    @staticmethod
    def _normalize(num: np.integer, den: np.integer) -> Tuple[np.integer, np.integer]:
        if den == 0:
            raise ZeroDivisionError("denominator must be non-zero")
        with _integer_arithmetic():
            gcd = np.gcd(num, den)
            sign = _common_sign(num, den)
            return sign * np.abs(num // gcd), np.abs(den // gcd)

    def _coerce(self, value: Any) -> "Rational":
        """Return *value* as a Rational of this type, or ``NotImplemented``."""
        if isinstance(value, Rational):
            if type(value) is type(self):
                return value
            return NotImplemented
        if isinstance(value, (numbers.Integral, np.integer)):
            return type(self)(value)
        return NotImplemented

    def _coerce_exact(self, value: Any) -> "Rational":
        """Like :meth:`_coerce`, but integers outside the range are ``NotImplemented``."""
        if isinstance(value, (numbers.Integral, np.integer)) and not isinstance(value, Rational):
            if not _fits(value, np.dtype(self.integer_type)):
                return NotImplemented
        return self._coerce(value)

    def _coerce_strict(self, value: Any) -> "Rational":
        coerced = self._coerce(value)
        if coerced is NotImplemented:
            raise TypeError(f"cannot combine {type(self).__name__} with {type(value).__name__}")
        return coerced

    def _binary_operation(self, other: Any, op):
        other_rat = self._coerce(other)
        if other_rat is NotImplemented:
            return NotImplemented
        with _integer_arithmetic():
            num, den = op(self, other_rat)
        return type(self)(num, den)

    def _reflected_operation(self, other: Any, op):
        other_rat = self._coerce(other)
        if other_rat is NotImplemented:
            return NotImplemented
        with _integer_arithmetic():
            num, den = op(other_rat, self)
        return type(self)(num, den)

    # ------------------------------------------------------------------
    # Arithmetic operators
    @staticmethod
    def _add(a: "Rational", b: "Rational"):
        return a._numerator * b._denominator + b._numerator * a._denominator, a._denominator * b._denominator

    @staticmethod
    def _sub(a: "Rational", b: "Rational"):
        return a._numerator * b._denominator - b._numerator * a._denominator, a._denominator * b._denominator

    @staticmethod
    def _mul(a: "Rational", b: "Rational"):
        return a._numerator * b._numerator, a._denominator * b._denominator

    @staticmethod
    def _truediv(a: "Rational", b: "Rational"):
        return a._numerator * b._denominator, a._denominator * b._numerator

    def __add__(self, other: Any) -> Any:
        return self._binary_operation(other, self._add)

    def __radd__(self, other: Any) -> Any:
        return self._reflected_operation(other, self._add)

    def __sub__(self, other: Any) -> Any:
        return self._binary_operation(other, self._sub)

    def __rsub__(self, other: Any) -> Any:
        return self._reflected_operation(other, self._sub)

    def __mul__(self, other: Any) -> Any:
        return self._binary_operation(other, self._mul)

    def __rmul__(self, other: Any) -> Any:
        return self._reflected_operation(other, self._mul)

    def __truediv__(self, other: Any) -> Any:
        return self._binary_operation(other, self._truediv)

    def __rtruediv__(self, other: Any) -> Any:
        return self._reflected_operation(other, self._truediv)

    def __neg__(self) -> "Rational":
        with _integer_arithmetic():
            num = -self._numerator
        return type(self)(num, self._denominator)

    def __pos__(self) -> "Rational":
        return type(self)(self._numerator, self._denominator)

    # ------------------------------------------------------------------
    # Comparisons
    def __eq__(self, other: Any) -> bool:
        other_rat = self._coerce_exact(other)
        if other_rat is NotImplemented:
            return NotImplemented
        return bool(self._numerator == other_rat._numerator and self._denominator == other_rat._denominator)

    def __ne__(self, other: Any) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def _less(self, a: "Rational", b: "Rational") -> bool:
        with _integer_arithmetic():
            return bool(a._numerator * b._denominator < b._numerator * a._denominator)

    def __lt__(self, other: Any) -> bool:
        other_rat = self._coerce(other)
        if other_rat is NotImplemented:
            return NotImplemented
        return self._less(self, other_rat)

    def __gt__(self, other: Any) -> bool:
        other_rat = self._coerce(other)
        if other_rat is NotImplemented:
            return NotImplemented
        return self._less(other_rat, self)

    def __ge__(self, other: Any) -> bool:
        other_rat = self._coerce(other)
        if other_rat is NotImplemented:
            return NotImplemented
        return not self._less(self, other_rat)

    def __le__(self, other: Any) -> bool:
        other_rat = self._coerce(other)
        if other_rat is NotImplemented:
            return NotImplemented
        return not self._less(other_rat, self)

    def __reduce__(self):
        return _rebuild, (np.dtype(self.integer_type).str, int(self._numerator), int(self._denominator))

    def __hash__(self) -> int:
        if self._denominator == 1:
            return hash(int(self._numerator))
        return hash((int(self._numerator), int(self._denominator)))

    # ------------------------------------------------------------------
    # NumPy interoperability
    _UFUNC_DISPATCH = {
        np.add: (operator.add, object),
        np.subtract: (operator.sub, object),
        np.multiply: (operator.mul, object),
        np.divide: (operator.truediv, object),
        np.true_divide: (operator.truediv, object),
        np.negative: (operator.neg, object),
        np.positive: (operator.pos, object),
        np.equal: (operator.eq, bool),
        np.not_equal: (operator.ne, bool),
        np.less: (operator.lt, bool),
        np.less_equal: (operator.le, bool),
        np.greater: (operator.gt, bool),
        np.greater_equal: (operator.ge, bool),
    }

    def __array_ufunc__(self, ufunc, method, *inputs, **kwargs):
        if method != "__call__" or kwargs.get("out") is not None:
            return NotImplemented
        try:
            op, otype = self._UFUNC_DISPATCH[ufunc]
        except KeyError:
            return NotImplemented

        def apply(*args):
            if op is operator.eq or op is operator.ne:
                coerced = [self._coerce_exact(arg) for arg in args]
                if any(value is NotImplemented for value in coerced):
                    return op is operator.ne
                return op(*coerced)
            return op(*(self._coerce_strict(arg) for arg in args))

        if any(isinstance(value, np.ndarray) for value in inputs):
            return np.vectorize(apply, otypes=[otype])(*inputs)
        return apply(*inputs)


Rational8 = Rational[np.int8]
Rational16 = Rational[np.int16]
Rational32 = Rational[np.int32]
Rational64 = Rational[np.int64]


def q(n: IntegerLike) -> Rational:
    """Shorthand for ``Rational[np.uint64](n)``, the widest unsigned representation."""
    return Rational[np.uint64](n)


def as_rational_array(values: Any, integer_type: Any = np.int64) -> np.ndarray:
    """Return an object ``numpy.ndarray`` of ``Rational[integer_type]`` values.

    ``values`` may hold integers or Rationals of the same specialisation.
    """
    cls = Rational[integer_type]
    array = np.asarray(values, dtype=object)
    result = np.empty(array.shape, dtype=object)
    for index, value in np.ndenumerate(array):
        result[index] = value if type(value) is cls else cls(value)
    return result


def zeros(shape: Any, integer_type: Any = np.int64) -> np.ndarray:
    cls = Rational[integer_type]
    result = np.empty(shape, dtype=object)
    for index in np.ndindex(result.shape):
        result[index] = cls()
    return result


__all__ = [
    "DEFAULT_OVERFLOW_MODE",
    "Rational",
    "Rational8",
    "Rational16",
    "Rational32",
    "Rational64",
    "as_rational_array",
    "get_overflow_mode",
    "q",
    "set_overflow_mode",
    "zeros",
]
