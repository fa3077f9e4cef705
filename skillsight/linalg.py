"""
Matrix Algebra Module
=====================

Dense matrix helpers used by the regression engine.

Functions:
    - transpose: Swap rows and columns
    - multiply: Matrix product with shape checking
    - mat_vec: Matrix-vector product
    - invert: Gauss-Jordan inversion with partial pivoting
"""

import logging

import numpy as np

from .exceptions import SingularMatrixError

logger = logging.getLogger(__name__)

# Pivots smaller than this fraction of their row's largest input entry are treated as zero
PIVOT_EPSILON = 1e-10


def _as_matrix(matrix, name: str = "matrix") -> np.ndarray:
    arr = np.asarray(matrix, dtype=float)
    if arr.ndim != 2:
        raise ValueError(f"{name} must be 2-dimensional, got shape {arr.shape}")
    return arr


def transpose(matrix) -> np.ndarray:
    """Return the transpose of a 2-D matrix."""
    return _as_matrix(matrix).T.copy()


def multiply(a, b) -> np.ndarray:
    """
    Multiply two matrices.

    Args:
        a: Matrix of shape (n, m)
        b: Matrix of shape (m, p)

    Returns:
        Product matrix of shape (n, p)

    Raises:
        ValueError: If the inner dimensions do not agree
    """
    a = _as_matrix(a, "a")
    b = _as_matrix(b, "b")

    if a.shape[1] != b.shape[0]:
        raise ValueError(
            f"Cannot multiply {a.shape[0]}x{a.shape[1]} by {b.shape[0]}x{b.shape[1]}: "
            f"column count of a must equal row count of b"
        )

    result = np.zeros((a.shape[0], b.shape[1]))
    for k in range(a.shape[1]):
        result += np.outer(a[:, k], b[k, :])
    return result


def mat_vec(matrix, vector) -> np.ndarray:
    """Multiply a matrix by a vector."""
    vector = np.asarray(vector, dtype=float).reshape(-1, 1)
    return multiply(matrix, vector).ravel()


def invert(matrix) -> np.ndarray:
    """
    Invert a square matrix with Gauss-Jordan elimination.

    The matrix is augmented with the identity ([M | I]). For each column the
    remaining row with the largest absolute value in that column is swapped
    into the pivot position, the pivot row is scaled so the pivot becomes 1 and
    the column is eliminated from every other row. The right half of the
    augmented matrix is then the inverse.

    Args:
        matrix: Square matrix of shape (n, n)

    Returns:
        Inverse matrix of shape (n, n)

    Raises:
        ValueError: If the matrix is not square
        SingularMatrixError: If a pivot is numerically zero
    """
    m = _as_matrix(matrix)
    n, cols = m.shape
    if n != cols:
        raise ValueError(f"Only square matrices can be inverted, got {n}x{cols}")

    augmented = np.hstack([m, np.eye(n)])
    # Largest entry of each input row, kept in step with row swaps
    row_scale = np.abs(m).max(axis=1) if m.size else np.zeros(n)

    for col in range(n):
        pivot_row = col + int(np.argmax(np.abs(augmented[col:, col])))
        pivot = augmented[pivot_row, col]

        if abs(pivot) <= PIVOT_EPSILON * row_scale[pivot_row]:
            logger.debug(f"Zero pivot {pivot!r} in column {col}")
            raise SingularMatrixError(
                f"Matrix is singular: pivot in column {col} is numerically zero"
            )

        if pivot_row != col:
            augmented[[col, pivot_row]] = augmented[[pivot_row, col]]
            row_scale[[col, pivot_row]] = row_scale[[pivot_row, col]]

        augmented[col] = augmented[col] / pivot

        for row in range(n):
            if row != col:
                factor = augmented[row, col]
                if factor != 0.0:
                    augmented[row] -= factor * augmented[col]

    return augmented[:, n:].copy()
