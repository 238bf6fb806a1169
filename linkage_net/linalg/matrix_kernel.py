"""
Dense linear algebra under explicit numeric tolerance.

Rank, null space and determinant are computed by Gaussian elimination with
partial pivoting on a private float64 copy, so callers' matrices are never
mutated and results are reproducible across calls. Pivots smaller than the
tolerance are treated as exact zeros.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple, Union

import numpy as np

MatrixLike = Union[np.ndarray, Sequence[Sequence[float]]]

DEFAULT_TOLERANCE = 1e-10
DEFAULT_PIVOT_TOLERANCE = 1e-12


def _as_matrix(matrix: MatrixLike) -> np.ndarray:
    """Private float64 2D copy of ``matrix``."""
    arr = np.array(matrix, dtype=float, copy=True)
    if arr.ndim == 1:
        arr = arr.reshape(1, -1) if arr.size else arr.reshape(0, 0)
    if arr.ndim != 2:
        raise ValueError(f"Expected a 2D matrix, got shape {arr.shape}")
    return arr


def row_echelon(
    matrix: MatrixLike,
    tolerance: float = DEFAULT_TOLERANCE,
    reduced: bool = False,
) -> Tuple[np.ndarray, List[int]]:
    """
    Reduce a matrix to (reduced) row echelon form.

    For each column the row with the largest magnitude at or below the
    current pivot row is swapped up. If that magnitude is below
    ``tolerance`` the column is skipped without consuming a row.

    Args:
        matrix: m x n input, left untouched.
        tolerance: Pivot threshold.
        reduced: If True, scale pivots to 1 and clear entries above them.

    Returns:
        Tuple of the reduced copy and the list of pivot columns.
    """
    A = _as_matrix(matrix)
    rows, cols = A.shape
    pivots: List[int] = []
    pivot_row = 0

    for col in range(cols):
        if pivot_row >= rows:
            break

        best = pivot_row + int(np.argmax(np.abs(A[pivot_row:, col])))
        if abs(A[best, col]) < tolerance:
            continue

        if best != pivot_row:
            A[[pivot_row, best]] = A[[best, pivot_row]]

        if reduced:
            A[pivot_row] /= A[pivot_row, col]
            others = [r for r in range(rows) if r != pivot_row and abs(A[r, col]) > tolerance]
        else:
            others = [r for r in range(pivot_row + 1, rows) if abs(A[r, col]) > tolerance]

        for r in others:
            A[r] -= (A[r, col] / A[pivot_row, col]) * A[pivot_row]

        pivots.append(col)
        pivot_row += 1

    return A, pivots


def rank(matrix: MatrixLike, tolerance: float = DEFAULT_TOLERANCE) -> int:
    """Number of pivots found by partial-pivoting elimination."""
    A = _as_matrix(matrix)
    if A.size == 0:
        return 0
    _, pivots = row_echelon(A, tolerance)
    return len(pivots)


def null_space(matrix: MatrixLike, tolerance: float = DEFAULT_TOLERANCE) -> np.ndarray:
    """
    Basis of the null space from the reduced row echelon form.

    Each free column contributes one vector with 1 on that column and
    ``-RREF[i, free]`` on the pivot column of row i.

    Args:
        matrix: m x n input, left untouched.
        tolerance: Pivot threshold.

    Returns:
        Array of shape (nullity, n) whose rows are basis vectors.
    """
    A = _as_matrix(matrix)
    n = A.shape[1]
    if n == 0:
        return np.zeros((0, 0))
    if A.shape[0] == 0:
        return np.eye(n)

    R, pivots = row_echelon(A, tolerance, reduced=True)
    pivot_set = set(pivots)
    free_columns = [c for c in range(n) if c not in pivot_set]

    basis = np.zeros((len(free_columns), n))
    for k, free in enumerate(free_columns):
        basis[k, free] = 1.0
        for i, pivot_col in enumerate(pivots):
            basis[k, pivot_col] = -R[i, free]
    return basis


def nullity(matrix: MatrixLike, tolerance: float = DEFAULT_TOLERANCE) -> int:
    return _as_matrix(matrix).shape[1] - rank(matrix, tolerance)


def determinant(matrix: MatrixLike, pivot_tolerance: float = DEFAULT_PIVOT_TOLERANCE) -> float:
    """
    Determinant by LU decomposition with partial pivoting.

    Returns exactly 0.0 as soon as a pivot falls below ``pivot_tolerance``.
    Each row swap flips the sign.
    """
    A = _as_matrix(matrix)
    n = A.shape[0]
    if A.shape[1] != n:
        raise ValueError(f"Determinant needs a square matrix, got shape {A.shape}")
    if n == 0:
        return 1.0

    det = 1.0
    for col in range(n):
        best = col + int(np.argmax(np.abs(A[col:, col])))
        if abs(A[best, col]) < pivot_tolerance:
            return 0.0
        if best != col:
            A[[col, best]] = A[[best, col]]
            det = -det
        pivot = A[col, col]
        det *= pivot
        if col + 1 < n:
            factors = A[col + 1 :, col] / pivot
            A[col + 1 :, col:] -= np.outer(factors, A[col, col:])
    return float(det)
