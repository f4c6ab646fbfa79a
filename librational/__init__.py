"""Fixed-width rational numbers."""

from .rational import (
    DEFAULT_OVERFLOW_MODE,
    Rational,
    Rational8,
    Rational16,
    Rational32,
    Rational64,
    as_rational_array,
    get_overflow_mode,
    q,
    set_overflow_mode,
    zeros,
)

__all__ = [
    "Rational",
    "Rational8",
    "Rational16",
    "Rational32",
    "Rational64",
    "q",
    "DEFAULT_OVERFLOW_MODE",
    "get_overflow_mode",
    "set_overflow_mode",
    "as_rational_array",
    "zeros",
]
