import numpy as np

from gmdhsearch.dataset import Dataset, InputShapeError, check_feature_indices
from gmdhsearch.solver import Solution, least_squares

# basis of the pairwise model: 1, x1, x2, x1^2, x2^2, x1*x2
N_QUADRATIC_TERMS = 6


class PolynomialModel:
    """Quadratic model of a feature pair.

    `y = a0 + a1*x1 + a2*x2 + a3*x1^2 + a4*x2^2 + a5*x1*x2`

    In a layered search the feature references of layers after the first
    point into the previous layer's models, not into dataset columns.
    """

    __slots__ = ["coeffs", "feature1", "feature2", "error", "r2", "is_degenerate"]

    def __init__(
        self,
        coeffs,
        feature1: int,
        feature2: int,
        error: float = float("inf"),
        r2: float = float("-inf"),
        is_degenerate: bool = False,
    ) -> None:
        coeffs = np.array(coeffs, dtype=np.float64).ravel()
        if coeffs.shape != (N_QUADRATIC_TERMS,):
            raise InputShapeError(
                f"Expected {N_QUADRATIC_TERMS} coefficients, got {coeffs.shape[0]}"
            )
        if not 0 <= feature1 < feature2:
            raise InputShapeError(f"Invalid feature pair: ({feature1}, {feature2})")
        coeffs.flags.writeable = False

        self.coeffs = coeffs
        self.feature1 = feature1
        self.feature2 = feature2
        self.error = float(error)
        self.r2 = float(r2)
        self.is_degenerate = bool(is_degenerate)

    def __repr__(self) -> str:
        return (
            f"PolynomialModel(features={self.features}, "
            f"error={self.error:.4g}, r2={self.r2:.4g})"
        )

    @property
    def features(self) -> tuple[int, int]:
        return (self.feature1, self.feature2)

    def predict(self, x1, x2) -> np.ndarray:
        return quadratic_features(x1, x2) @ self.coeffs

    def predict_dataset(self, dataset: Dataset) -> np.ndarray:
        """Predict from the model's two columns of `dataset`."""
        return self.predict(dataset.column(self.feature1), dataset.column(self.feature2))


class LinearModel:
    """Affine model of a feature subset, `y = a0 + sum(a_i * x_i)`."""

    __slots__ = ["coeffs", "features", "error", "r2", "is_degenerate"]

    def __init__(
        self,
        coeffs,
        features,
        error: float = float("inf"),
        r2: float = float("-inf"),
        is_degenerate: bool = False,
    ) -> None:
        features = tuple(int(f) for f in features)
        coeffs = np.array(coeffs, dtype=np.float64).ravel()
        if coeffs.shape != (len(features) + 1,):
            raise InputShapeError(
                f"{coeffs.shape[0]} coefficients for {len(features)} features"
            )
        check_feature_indices(features, max(features, default=-1) + 1, increasing=True)
        coeffs.flags.writeable = False

        self.coeffs = coeffs
        self.features = features
        self.error = float(error)
        self.r2 = float(r2)
        self.is_degenerate = bool(is_degenerate)

    def __repr__(self) -> str:
        return (
            f"LinearModel(features={self.features}, "
            f"error={self.error:.4g}, r2={self.r2:.4g})"
        )

    @property
    def size(self) -> int:
        return len(self.features)

    @property
    def intercept(self) -> float:
        return float(self.coeffs[0])

    @property
    def weights(self) -> np.ndarray:
        return self.coeffs[1:]

    def predict(self, X) -> np.ndarray:
        """Predict samples, shape (n, k) with columns in `features` order."""
        return linear_features(X, self.size) @ self.coeffs

    def predict_dataset(self, dataset: Dataset) -> np.ndarray:
        return self.predict(dataset.select(self.features))


def quadratic_features(x1, x2) -> np.ndarray:
    """Design matrix of the pairwise basis, shape (n, 6)."""
    x1 = np.asarray(x1, dtype=np.float64).ravel()
    x2 = np.asarray(x2, dtype=np.float64).ravel()
    if x1.shape != x2.shape:
        raise InputShapeError(f"Inconsistent lengths: {x1.shape[0]}, {x2.shape[0]}")

    return np.column_stack([np.ones_like(x1), x1, x2, x1 * x1, x2 * x2, x1 * x2])


def linear_features(X, k: int | None = None) -> np.ndarray:
    """Design matrix with a leading constant column, shape (n, k + 1)."""
    X = np.asarray(X, dtype=np.float64)
    if X.ndim == 1:
        X = X[:, None]
    if X.ndim != 2 or (k is not None and X.shape[1] != k):
        raise InputShapeError(f"Expected samples with {k} columns, got {X.shape}")

    return np.hstack([np.ones((X.shape[0], 1)), X])


def fit_polynomial(x1, x2, y) -> Solution:
    """Least squares fit of the pairwise quadratic model.

    ## parameters
    - x1, x2 (array): the two feature columns, length n
    - y (array): target, length n

    ## returns
    - solution (Solution): 6 coefficients, zero if the system is singular.

    Note: rows where any of `x1`, `x2`, `y` is missing do not contribute.
    """
    design = quadratic_features(x1, x2)
    y = np.asarray(y, dtype=np.float64).ravel()
    if y.shape[0] != design.shape[0]:
        raise InputShapeError(f"{design.shape[0]} samples, {y.shape[0]} targets")

    present = ~(np.isnan(design).any(axis=1) | np.isnan(y))
    return least_squares(design[present], y[present])


def fit_linear(X, y) -> Solution:
    """Least squares fit of an affine model.

    ## parameters
    - X (array): samples of the selected features, shape (n, k)
    - y (array): target, length n

    ## returns
    - solution (Solution): k + 1 coefficients (intercept first), zero if the
      system is singular.

    Note: inputs are assumed complete, missing values are not filtered.
    """
    design = linear_features(X)
    y = np.asarray(y, dtype=np.float64).ravel()
    if y.shape[0] != design.shape[0]:
        raise InputShapeError(f"{design.shape[0]} samples, {y.shape[0]} targets")

    return least_squares(design, y)
