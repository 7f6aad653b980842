# Reorth/errors.py
"""
Exceptions raised by the reorthogonalization routines.

Both concrete errors derive from ValueError, so code that already guards
numerical helpers with ``except ValueError`` keeps working.

Numerical rank deficiency (the vector lies in the span of the selected columns)
is NOT an exception: it is reported through a zeroed vector and a zero norm.
"""

from __future__ import annotations


class ReorthError(Exception):
    """Base class for all errors raised by this package."""


class DimensionMismatch(ReorthError, ValueError):
    """Vector length, basis shape or a column index does not fit the basis."""


class InvalidArgument(ReorthError, ValueError):
    """Malformed argument: unknown method, empty index list, unusable vector."""
