import logging
import sys
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

repo_src = Path(__file__).resolve().parent / "src"
if str(repo_src) not in sys.path:
    sys.path.insert(0, str(repo_src))
from Reorth import Method, reorthogonalize

logger = logging.getLogger("orthogonality_demo")

# Smallest positive alpha: the ratio test always passes, so every call is a single pass.
SINGLE_PASS_ALPHA = np.finfo(float).tiny


def hilbert_like(n_rows, n_cols):
    """Tall, badly conditioned test matrix A[i, j] = 1 / (i + j + 1)."""
    i = np.arange(n_rows)[:, None]
    j = np.arange(n_cols)[None, :]
    return 1.0 / (i + j + 1.0)


def build_basis(A, method, alpha):
    """
    Orthonormalize the columns of A one at a time.

    Returns the orthonormal columns found, the loss of orthogonality
    ||I - Q^T Q||_F after each accepted column, and the columns that were
    dropped as numerically dependent.
    """
    n, m = A.shape
    Q = np.zeros((n, m))
    k = 0
    losses = []
    dropped = []
    for j in range(m):
        v = A[:, j].copy()
        norm_v = np.linalg.norm(v)
        if k > 0:
            result = reorthogonalize(Q, range(k), v, norm_v, alpha=alpha, method=method)
            norm_v = result.norm
        if norm_v == 0.0:
            dropped.append(j)
            continue
        Q[:, k] = v / norm_v
        k += 1
        Qk = Q[:, :k]
        losses.append(np.linalg.norm(np.eye(k) - Qk.T @ Qk))
    return Q[:, :k], losses, dropped


def plot_orthogonality_loss(A, show_plot=True):
    runs = [
        ("MGS, single pass", Method.MODIFIED, SINGLE_PASS_ALPHA),
        ("CGS, single pass", Method.CLASSICAL, SINGLE_PASS_ALPHA),
        ("MGS, iterated", Method.MODIFIED, 0.5),
        ("CGS, iterated", Method.CLASSICAL, 0.5),
    ]

    fig, ax = plt.subplots(figsize=(8, 5))
    for label, method, alpha in runs:
        Q, losses, dropped = build_basis(A, method, alpha)
        if not losses:
            logger.warning("%-18s every column was dropped; nothing to plot.", label)
            continue
        logger.info(
            "%-18s rank %d, final loss %.3e, dropped columns %s",
            label, Q.shape[1], losses[-1], dropped,
        )
        ax.semilogy(np.arange(1, len(losses) + 1), np.maximum(losses, 1e-17), marker="o", label=label)

    ax.set_xlabel("accepted columns k")
    ax.set_ylabel(r"$\|I - Q_k^T Q_k\|_F$")
    ax.set_title(f"Loss of orthogonality, Hilbert-like {A.shape[0]}x{A.shape[1]}")
    ax.grid(True, which="both", alpha=0.3)
    if ax.lines:
        ax.legend()
    plt.tight_layout()

    if show_plot:
        plt.show()
    return fig


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    n_rows = int(input("Number of rows (default 60): ") or "60")
    n_cols = int(input("Number of columns (default 20): ") or "20")
    if n_cols > n_rows:
        print(f"Need n_cols <= n_rows; got {n_cols} > {n_rows}")
        return

    A = hilbert_like(n_rows, n_cols)
    print(f"Condition number of A: {np.linalg.cond(A):.3e}")
    plot_orthogonality_loss(A)


if __name__ == "__main__":
    main()
