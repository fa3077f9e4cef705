"""
Model Metrics Module
====================

Pure functions comparing two equal-length numeric series.
"""

import numpy as np


def _pair(actual, predicted):
    actual = np.asarray(actual, dtype=float).ravel()
    predicted = np.asarray(predicted, dtype=float).ravel()
    if actual.shape != predicted.shape:
        raise ValueError(
            f"Series must have equal length, got {actual.size} and {predicted.size}"
        )
    if actual.size == 0:
        raise ValueError("Series must not be empty")
    return actual, predicted


def r2_score(actual, predicted) -> float:
    """
    Coefficient of determination, ``1 - SSres / SStot``.

    A constant ``actual`` series has no variance to explain: the score is 1.0
    for a perfect prediction and 0.0 otherwise.
    """
    actual, predicted = _pair(actual, predicted)
    ss_res = float(np.sum((actual - predicted) ** 2))
    ss_tot = float(np.sum((actual - actual.mean()) ** 2))
    if ss_tot == 0.0:
        return 1.0 if ss_res == 0.0 else 0.0
    return 1.0 - ss_res / ss_tot


def mse(actual, predicted) -> float:
    """Mean squared error."""
    actual, predicted = _pair(actual, predicted)
    return float(np.mean((actual - predicted) ** 2))


def rmse(actual, predicted) -> float:
    return float(np.sqrt(mse(actual, predicted)))


def mae(actual, predicted) -> float:
    actual, predicted = _pair(actual, predicted)
    return float(np.mean(np.abs(actual - predicted)))


def correlation(x, y) -> float:
    """
    Pearson correlation coefficient.

    Returns 0 when either series has zero variance.
    """
    x, y = _pair(x, y)
    dx = x - x.mean()
    dy = y - y.mean()
    denominator = np.sqrt(np.sum(dx * dx) * np.sum(dy * dy))
    if denominator == 0.0:
        return 0.0
    r = float(np.sum(dx * dy) / denominator)
    return max(-1.0, min(1.0, r))
