"""Linear systems for least squares fits."""

from typing import NamedTuple

import numpy as np

# pivots below this magnitude make the system singular
PIVOT_TOLERANCE = 1e-10


class Solution(NamedTuple):
    x: np.ndarray
    is_singular: bool

    @property
    def is_degenerate(self) -> bool:
        """Singular, or coefficients that are not all finite."""
        return self.is_singular or not np.isfinite(self.x).all()


def solve_linear_system(A, b) -> Solution:
    """Solve `A x = b` by Gaussian elimination with partial pivoting.

    ## parameters
    - A (array): square coefficient matrix, shape (n, n)
    - b (array): right hand side, shape (n,)

    ## returns
    - solution (Solution): `x` and a singular flag. For a singular system
      `x` is the zero vector.

    Note: `A` and `b` are not modified.
    """
    A = np.asarray(A, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64).ravel()
    n = b.shape[0]
    if A.shape != (n, n):
        raise ValueError(f"Expected a ({n}, {n}) matrix, got {A.shape}")

    # augmented matrix [A | b], a private copy
    aug = np.empty((n, n + 1), dtype=np.float64)
    aug[:, :n] = A
    aug[:, n] = b

    for i in range(n):
        pivot_row = i + int(np.argmax(np.abs(aug[i:, i])))
        if pivot_row != i:
            aug[[i, pivot_row]] = aug[[pivot_row, i]]

        pivot = aug[i, i]
        if not np.isfinite(pivot) or abs(pivot) < PIVOT_TOLERANCE:
            return Solution(np.zeros(n), True)

        factors = aug[i + 1 :, i] / pivot
        aug[i + 1 :, i:] -= factors[:, None] * aug[i, i:]

    x = np.zeros(n)
    for i in range(n - 1, -1, -1):
        x[i] = (aug[i, n] - aug[i, i + 1 : n] @ x[i + 1 :]) / aug[i, i]

    return Solution(x, False)


def normal_equations(design: np.ndarray, y: np.ndarray):
    """Form `(X^T X, X^T y)` for a design matrix `X`, shape (n, p)."""
    return design.T @ design, design.T @ y


def least_squares(design: np.ndarray, y: np.ndarray) -> Solution:
    """Least squares coefficients via the normal equations."""
    XtX, Xty = normal_equations(design, y)
    return solve_linear_system(XtX, Xty)
