# Reorth/gateway.py
"""
Caller-facing entry point around reorthogonalize().

Math purpose:
- Accept loosely shaped inputs (lists, (n,1) columns, 1-based index lists, an
  empty index meaning "every column") and hand reorthogonalize() a clean,
  explicit, 0-based problem.

Solver context:
- Mirrors the classic PROPACK-style call
      [r_new, normr_new, nre] = reorth(Q, r, normr, index, alpha, method)
  where the caller keeps its own r untouched and gets a fresh vector back.
  nre counts inner products (passes * number of selected columns), which
  solvers accumulate as a cost statistic.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

import numpy as np

from .core import DEFAULT_ALPHA, Method, reorthogonalize
from .errors import DimensionMismatch, InvalidArgument

logger = logging.getLogger(__name__)


def resolve_index(
    index: Optional[Sequence[int]],
    ncols: int,
    *,
    one_based: bool = False,
) -> np.ndarray:
    """
    Expand and normalize a column selection.

    Parameters
    ----------
    index:
        None or empty for all columns, else a sequence of column numbers.
        Integral floats (e.g. 3.0) are accepted.
    ncols:
        Number of columns in the basis.
    one_based:
        If True, index uses 1-based column numbers and is shifted once here.

    Returns
    -------
    np.ndarray
        (k,) int array of 0-based column positions, order and duplicates kept.
        Bounds are checked later by reorthogonalize().
    """
    if index is None:
        return np.arange(ncols)
    idx = np.asarray(index).reshape(-1)
    if idx.size == 0:
        return np.arange(ncols)

    if np.issubdtype(idx.dtype, np.floating):
        if not np.all(np.isfinite(idx)) or np.any(idx != np.round(idx)):
            raise InvalidArgument(f"column indices must be whole numbers; got {idx.tolist()}.")
        idx = idx.astype(np.intp)
    elif not np.issubdtype(idx.dtype, np.integer):
        raise InvalidArgument(f"column indices must be integers; got dtype {idx.dtype}.")

    if one_based:
        idx = idx - 1
    return idx


def _as_column_vector(r, n: int) -> np.ndarray:
    # Copy: the caller's r must stay untouched.
    vec = np.array(r, dtype=float)
    if vec.ndim == 2 and 1 in vec.shape:
        vec = vec.reshape(-1)
    if vec.ndim != 1:
        raise DimensionMismatch(f"r must be a vector or a single column; got shape {vec.shape}.")
    if vec.shape[0] != n:
        raise DimensionMismatch(f"r has length {vec.shape[0]}; basis columns have length {n}.")
    return vec


def reorth(
    Q,
    r,
    normr: float,
    index: Optional[Sequence[int]] = None,
    alpha: float = DEFAULT_ALPHA,
    method=Method.MODIFIED,
    *,
    one_based: bool = False,
) -> Tuple[np.ndarray, float, int]:
    """
    Reorthogonalize a copy of r against the selected columns of Q.

    Parameters
    ----------
    Q:
        (n, k1) array-like basis, columns are basis vectors.
    r:
        (n,) or (n,1) array-like vector. Not modified.
    normr:
        Current norm of r.
    index:
        Columns to use; None or empty means all columns of Q.
    alpha:
        Ratio threshold for repeating a pass (default 0.5).
    method:
        0 / "modified" / Method.MODIFIED, or 1 / "classical" / Method.CLASSICAL.
        An integral float (as numeric front ends pass it) is accepted.
    one_based:
        Interpret index as 1-based column numbers.

    Returns
    -------
    (r_new, normr_new, nre):
        New (n,) vector, its norm, and the number of inner products performed.
        A Q with no columns returns a copy of r, normr and nre=0 unchanged.

    Raises
    ------
    DimensionMismatch, InvalidArgument
        See reorthogonalize(); raised before any work is done.
    """
    if isinstance(method, (float, np.floating)) and float(method).is_integer():
        method = int(method)
    method = Method.coerce(method)

    Qa = np.asarray(Q, dtype=float)
    if Qa.ndim != 2:
        raise DimensionMismatch(f"Q must be 2-D (n, k); got shape {Qa.shape}.")
    n, ncols = Qa.shape

    vec = _as_column_vector(r, n)
    if ncols == 0:
        # Nothing to orthogonalize against yet (first step of a Lanczos run).
        return vec, float(normr), 0
    idx = resolve_index(index, ncols, one_based=one_based)

    result = reorthogonalize(Qa, idx, vec, normr, alpha=alpha, method=method)
    logger.debug("reorth: nre=%d, normr %g -> %g", result.inner_products, normr, result.norm)
    return result.vector, result.norm, result.inner_products
