"""
Eigendecomposition of 3x3 symmetric matrices.
Used to orient cluster ellipsoids from their covariance matrices.
"""

import math
from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np

import config

MatrixLike = Union[Sequence[Sequence[float]], np.ndarray]


@dataclass
class EigenDecomposition:
    """Eigenpairs sorted by descending eigenvalue."""
    eigenvalues: np.ndarray   # (3,)
    eigenvectors: np.ndarray  # (3, 3), row k is the unit eigenvector for eigenvalues[k]


def _largest_off_diagonal(a: np.ndarray) -> tuple[float, int, int]:
    max_val, p, q = 0.0, 0, 1
    for i in range(3):
        for j in range(i + 1, 3):
            value = abs(a[i, j])
            if value > max_val:
                max_val, p, q = value, i, j
    return max_val, p, q


def compute_eigendecomposition(
    matrix: MatrixLike,
    epsilon: float = config.JACOBI_EPSILON,
    max_iterations: int = config.JACOBI_MAX_ITERATIONS,
) -> EigenDecomposition:
    """
    Diagonalize a symmetric 3x3 matrix with Jacobi rotations.

    Each pass zeroes the largest off-diagonal entry. Stops when that entry
    drops below ``epsilon`` or after ``max_iterations`` passes, whichever
    comes first. Matrices with entries above 1 in magnitude are divided by
    their largest entry first, so ``epsilon`` is then relative to it.
    Eigenvalues too large to represent saturate at the float64 maximum.

    Args:
        matrix: Symmetric 3x3 matrix (non-finite entries are read as 0)
        epsilon: Convergence threshold on the largest off-diagonal entry
        max_iterations: Maximum number of rotations

    Returns:
        EigenDecomposition with eigenvalues descending and unit eigenvectors

    Raises:
        ValueError: If the matrix is not 3x3
    """
    a = np.array(matrix, dtype=np.float64)
    if a.shape != (3, 3):
        raise ValueError(f"Expected a 3x3 matrix, got shape {a.shape}")
    a = np.where(np.isfinite(a), a, 0.0)

    # Work on a copy scaled into [-1, 1] so the rotation updates cannot overflow
    scale = float(np.max(np.abs(a)))
    if scale > 1.0:
        a = a / scale
    else:
        scale = 1.0

    v = np.eye(3)

    for _ in range(max_iterations):
        max_val, p, q = _largest_off_diagonal(a)
        if max_val < epsilon:
            break

        theta = 0.5 * math.atan2(2 * a[p, q], a[q, q] - a[p, p])
        c = math.cos(theta)
        s = math.sin(theta)

        app = a[p, p]
        aqq = a[q, q]
        apq = a[p, q]

        a[p, p] = c * c * app - 2 * s * c * apq + s * s * aqq
        a[q, q] = s * s * app + 2 * s * c * apq + c * c * aqq
        a[p, q] = 0.0
        a[q, p] = 0.0

        for i in range(3):
            if i != p and i != q:
                aip = a[i, p]
                aiq = a[i, q]
                a[i, p] = a[p, i] = c * aip - s * aiq
                a[i, q] = a[q, i] = s * aip + c * aiq

        for i in range(3):
            vip = v[i, p]
            viq = v[i, q]
            v[i, p] = c * vip - s * viq
            v[i, q] = s * vip + c * viq

    with np.errstate(over="ignore"):
        eigenvalues = np.diag(a) * scale
    limit = np.finfo(np.float64).max
    eigenvalues = np.clip(eigenvalues, -limit, limit)
    eigenvectors = np.array([_unit_or_basis(v[:, k], k) for k in range(3)])

    order = np.argsort(-eigenvalues, kind="stable")
    return EigenDecomposition(
        eigenvalues=eigenvalues[order],
        eigenvectors=eigenvectors[order],
    )


def _unit_or_basis(vector: np.ndarray, axis: int) -> np.ndarray:
    """Normalize; fall back to the standard basis vector if degenerate."""
    norm = np.linalg.norm(vector)
    if norm == 0 or not np.isfinite(norm):
        return np.eye(3)[axis]
    return vector / norm


def create_rotation_matrix(eigenvectors: MatrixLike) -> np.ndarray:
    """
    Build a rotation matrix whose columns are the given eigenvectors.

    The third column is flipped when needed so the basis is right-handed
    (determinant +1).
    """
    rotation = np.array(eigenvectors, dtype=np.float64).T
    if np.linalg.det(rotation) < 0:
        rotation[:, 2] = -rotation[:, 2]
    return rotation
