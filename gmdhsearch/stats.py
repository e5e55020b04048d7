"""Validation scores. Missing values (NaN) are skipped pairwise."""

import numpy as np

from gmdhsearch.dataset import InputShapeError


def rmse(pred, actual) -> float:
    """Root mean squared error over pairs where both values are present.

    Returns `inf` when there are no such pairs.
    """
    pred, actual = _check_lengths(pred, actual)
    valid = ~(np.isnan(pred) | np.isnan(actual))
    if not valid.any():
        return float("inf")

    diff = pred[valid] - actual[valid]
    return float(np.sqrt(np.mean(diff**2)))


def r2(pred, actual) -> float:
    """Coefficient of determination.

    The mean is taken over all present `actual` values, the sums of squares
    over pairs where both values are present.

    Note: for a constant `actual` (zero total sum of squares) the score is
    1.0 for a perfect prediction and `-inf` otherwise. Without any valid
    pair the score is `-inf`.
    """
    pred, actual = _check_lengths(pred, actual)
    present = ~np.isnan(actual)
    valid = present & ~np.isnan(pred)
    if not valid.any():
        return float("-inf")

    ss_res = np.sum((actual[valid] - pred[valid]) ** 2)

    # decided on the values, the computed mean of a constant can be off by an ulp
    if np.ptp(actual[present]) == 0:
        return 1.0 if ss_res == 0 else float("-inf")

    mean = actual[present].mean()
    ss_tot = np.sum((actual[valid] - mean) ** 2)
    if ss_tot == 0:
        return 1.0 if ss_res == 0 else float("-inf")
    return float(1.0 - ss_res / ss_tot)


def score(pred, actual) -> tuple[float, float]:
    """`(rmse, r2)` of predictions against validation targets."""
    return rmse(pred, actual), r2(pred, actual)


def _check_lengths(pred, actual):
    pred = np.asarray(pred, dtype=np.float64).ravel()
    actual = np.asarray(actual, dtype=np.float64).ravel()
    if pred.shape != actual.shape:
        raise InputShapeError("Need arrays of same shape")
    return pred, actual
