# Reorth/core.py
"""
Iterated Gram-Schmidt reorthogonalization of one vector against selected
columns of a basis.

Math purpose:
- Remove from a vector r its components along the columns q_j (j in index)
  of a basis Q, using either modified or classical Gram-Schmidt.
- Decide with the alpha-ratio test (Bjorck; Daniel, Gragg, Kaufman, Stewart)
  whether one pass was enough, repeat at most once, and declare r numerically
  contained in span(Q[:, index]) when the second pass also collapses the norm.

Solver context (Lanczos bidiagonalization / Lanczos eigen-solvers):
- Each new Lanczos vector slowly loses orthogonality to the previous ones under
  floating-point rounding. The solver calls reorthogonalize() on the new vector
  against the (selectively chosen) earlier vectors before normalizing it.
  A zero result signals an invariant subspace / breakdown to the solver.

Conventions:
- The basis is a 2-D array of shape (n, k1) whose COLUMNS are the basis vectors.
- Column indices are 0-based and already resolved; "all columns" sugar and
  1-based numbering are handled by Reorth.gateway.
- The vector is mutated in place; the basis is only read.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .errors import DimensionMismatch, InvalidArgument

logger = logging.getLogger(__name__)

DEFAULT_ALPHA = 0.5


class Method(enum.IntEnum):
    """Gram-Schmidt variant used for each reorthogonalization pass."""

    MODIFIED = 0
    CLASSICAL = 1

    @classmethod
    def coerce(cls, value) -> "Method":
        """
        Turn a user-facing method selector into a Method.

        Accepts a Method, the integers 0 (modified) / 1 (classical), or the
        names "modified", "mgs", "classical", "cgs" in any case.

        Raises
        ------
        InvalidArgument
            If value names neither variant.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            member = _METHOD_NAMES.get(value.strip().lower())
            if member is not None:
                return member
        elif isinstance(value, (int, np.integer)) and not isinstance(value, bool):
            try:
                return cls(int(value))
            except ValueError:
                pass
        raise InvalidArgument(
            f"Unknown Gram-Schmidt method {value!r}; expected MODIFIED (0) or CLASSICAL (1)."
        )


_METHOD_NAMES = {
    "modified": Method.MODIFIED,
    "mgs": Method.MODIFIED,
    "classical": Method.CLASSICAL,
    "cgs": Method.CLASSICAL,
}


@dataclass(frozen=True)
class ReorthResult:
    """
    Outcome of one reorthogonalize() call.

    vector is the caller's array (mutated in place), not a copy.
    """
    vector: np.ndarray  # (n,) reorthogonalized vector, all zeros if rank-deficient
    norm: float         # ||vector||_2 after the last pass (0.0 if rank-deficient)
    passes: int         # 1 or 2
    n_selected: int     # number of selected columns k

    @property
    def inner_products(self) -> int:
        """Number of column/vector inner products performed (passes * k)."""
        return self.passes * self.n_selected

    @property
    def rank_deficient(self) -> bool:
        """True if the vector was found to lie in the span and was zeroed."""
        return self.passes == 2 and self.norm == 0.0


def _validate_basis(basis) -> np.ndarray:
    Q = np.asarray(basis, dtype=float)
    if Q.ndim != 2:
        raise DimensionMismatch(f"basis must be 2-D (n, k); got shape {Q.shape}.")
    return Q


def _validate_vector(vector, n: int) -> np.ndarray:
    if not isinstance(vector, np.ndarray):
        raise InvalidArgument(
            f"vector must be a numpy.ndarray (it is updated in place); got {type(vector).__name__}."
        )
    if vector.dtype != np.float64:
        raise InvalidArgument(f"vector must have dtype float64; got {vector.dtype}.")
    if not vector.flags.writeable:
        raise InvalidArgument("vector is read-only and cannot be updated in place.")
    if vector.ndim != 1:
        raise DimensionMismatch(f"vector must be 1-D; got shape {vector.shape}.")
    if vector.shape[0] != n:
        raise DimensionMismatch(
            f"vector length {vector.shape[0]} does not match basis column length {n}."
        )
    return vector


def _validate_index(index: Sequence[int], ncols: int) -> np.ndarray:
    idx = np.asarray(index)
    if idx.size == 0:
        raise InvalidArgument(
            "index must select at least one column; expand 'all columns' before calling."
        )
    if not np.issubdtype(idx.dtype, np.integer):
        raise InvalidArgument(f"column indices must be integers; got dtype {idx.dtype}.")
    idx = idx.reshape(-1)
    bad = (idx < 0) | (idx >= ncols)
    if np.any(bad):
        raise DimensionMismatch(
            f"column index {int(idx[bad][0])} out of range for a basis with {ncols} columns."
        )
    return idx


def _validate_work(work, k: int) -> np.ndarray:
    if work is None:
        return np.empty(k, dtype=float)
    if not isinstance(work, np.ndarray) or work.dtype != np.float64 or work.ndim != 1:
        raise InvalidArgument("work must be a 1-D float64 numpy.ndarray.")
    if not work.flags.writeable:
        raise InvalidArgument("work buffer is read-only.")
    if work.shape[0] < k:
        raise DimensionMismatch(
            f"work buffer has length {work.shape[0]}; need at least {k} for the selected columns."
        )
    return work


def _mgs_pass(Q: np.ndarray, idx: np.ndarray, r: np.ndarray) -> None:
    # Each projection sees the vector already updated by the previous ones.
    for j in idx:
        q = Q[:, j]
        r -= np.dot(q, r) * q


def _as_scalar(name: str, value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"{name} must be a real number; got {value!r}.") from exc


def _column_block(Q: np.ndarray, idx: np.ndarray) -> Optional[np.ndarray]:
    """Return Q[:, a:b] as a view when idx is the run a, a+1, ..., b-1; else None."""
    start = int(idx[0])
    stop = start + idx.shape[0]
    if np.array_equal(idx, np.arange(start, stop)):
        return Q[:, start:stop]
    return None


def _cgs_pass(Q: np.ndarray, idx: np.ndarray, r: np.ndarray, work: np.ndarray) -> None:
    # All coefficients come from the pre-pass vector. Columns are read through
    # views of Q; the only scratch is work[:k].
    k = idx.shape[0]
    block = _column_block(Q, idx)
    if block is not None:
        work[:k] = block.T @ r
        r -= block @ work[:k]
        return
    for i, j in enumerate(idx):
        work[i] = np.dot(Q[:, j], r)
    for i, j in enumerate(idx):
        r -= work[i] * Q[:, j]


def reorthogonalize(
    basis: np.ndarray,
    index: Sequence[int],
    vector: np.ndarray,
    norm_estimate: float,
    alpha: float = DEFAULT_ALPHA,
    method: Method = Method.MODIFIED,
    *,
    work: Optional[np.ndarray] = None,
) -> ReorthResult:
    """
    Reorthogonalize vector against basis[:, index] with iterated Gram-Schmidt.

    Math purpose:
    - One pass of modified (sequential) or classical (batched) Gram-Schmidt,
      followed by the ratio test
            ||r_new|| >= alpha * ||r_old||
      If the test fails, one more pass of the same variant is made and tested
      against the norm after the first pass. If that fails too, r is taken to
      lie numerically in span(basis[:, index]) and is set to zero.

    Solver context:
    - A single pass loses orthogonality when most of r cancels out. The ratio
      test detects exactly that case, so the common case costs one pass and the
      worst case two.

    Parameters
    ----------
    basis:
        (n, k1) array; columns are the basis vectors. Never written.
    index:
        Non-empty sequence of 0-based column positions, used in the given order
        (duplicates allowed).
    vector:
        (n,) float64 ndarray, updated in place.
    norm_estimate:
        Current ||vector||_2 as known to the caller. Trusted, not recomputed.
    alpha:
        Ratio threshold, normally in (0, 1]. Values outside are used as given.
    method:
        Method.MODIFIED or Method.CLASSICAL (or anything Method.coerce accepts).
    work:
        Optional float64 scratch buffer of length >= len(index) for the
        classical projection coefficients. Overwritten. Validated but unused
        by the modified variant.

    Returns
    -------
    ReorthResult
        (vector, norm, passes, n_selected); vector is the same object passed in.

    Raises
    ------
    DimensionMismatch
        If the basis is not 2-D, the vector length differs from the column
        length, an index is out of range, or work is too short.
    InvalidArgument
        If the method is unknown, index is empty or non-integer, or vector
        cannot be updated in place as float64, or alpha / norm_estimate is
        not a real number.

    All checks happen before vector is touched.
    """
    method = Method.coerce(method)
    Q = _validate_basis(basis)
    n, ncols = Q.shape
    r = _validate_vector(vector, n)
    idx = _validate_index(index, ncols)
    k = idx.shape[0]
    if method is Method.CLASSICAL or work is not None:
        work = _validate_work(work, k)
    alpha = _as_scalar("alpha", alpha)
    norm_old = _as_scalar("norm_estimate", norm_estimate)

    if not 0.0 < alpha <= 1.0:
        logger.warning("alpha=%g is outside (0, 1]; using it as given.", alpha)

    def one_pass() -> float:
        if method is Method.MODIFIED:
            _mgs_pass(Q, idx, r)
        else:
            _cgs_pass(Q, idx, r, work)
        return float(np.linalg.norm(r))

    norm_new = one_pass()
    if norm_new >= alpha * norm_old:
        logger.debug(
            "%s reorthogonalization accepted after 1 pass (k=%d, norm %g -> %g).",
            method.name, k, norm_old, norm_new,
        )
        return ReorthResult(vector=r, norm=norm_new, passes=1, n_selected=k)

    norm_old = norm_new
    norm_new = one_pass()
    if norm_new >= alpha * norm_old:
        logger.debug(
            "%s reorthogonalization accepted after 2 passes (k=%d, norm %g -> %g).",
            method.name, k, norm_old, norm_new,
        )
        return ReorthResult(vector=r, norm=norm_new, passes=2, n_selected=k)

    # Second pass still collapsed the norm: r is in the span of the columns.
    logger.debug(
        "Vector numerically in span of %d selected columns (norm %g -> %g); zeroing.",
        k, norm_old, norm_new,
    )
    r.fill(0.0)
    return ReorthResult(vector=r, norm=0.0, passes=2, n_selected=k)


@dataclass(frozen=True)
class ReorthOptions:
    """
    Immutable settings for repeated reorthogonalize() calls.

    Solver context:
    - A Lanczos run reorthogonalizes every new vector with the same threshold
      and variant; bundling them keeps the call sites short.
    """
    alpha: float = DEFAULT_ALPHA
    method: Method = Method.MODIFIED

    def __post_init__(self):
        object.__setattr__(self, "method", Method.coerce(self.method))
        object.__setattr__(self, "alpha", float(self.alpha))

    def apply(
        self,
        basis: np.ndarray,
        index: Sequence[int],
        vector: np.ndarray,
        norm_estimate: float,
        *,
        work: Optional[np.ndarray] = None,
    ) -> ReorthResult:
        """Run reorthogonalize() with these settings."""
        return reorthogonalize(
            basis, index, vector, norm_estimate,
            alpha=self.alpha, method=self.method, work=work,
        )
